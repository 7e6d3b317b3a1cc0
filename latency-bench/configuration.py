"""
Configuration constants for the HTTP latency benchmark.

This module contains the default parameters including:
- Concurrency and sampling defaults
- HTTP client timeouts and connection pool limits
- Time unit conversion factors
- Logging defaults
"""

import os

# =============================================================================
# SAMPLING CONFIGURATION
# =============================================================================

DEFAULT_CONCURRENCY: int = 10  # Simultaneous workers when none is given
DEFAULT_SCHEME: str = "http://"  # Prefixed to URLs given without a scheme

# =============================================================================
# HTTP CLIENT CONFIGURATION
# =============================================================================

# Connection establishment (TCP connect and TLS handshake)
CONNECT_TIMEOUT_SECONDS: float = 10.0

# Maximum silence between two reads of the response
READ_TIMEOUT_SECONDS: float = 30.0

# Pooled connections are closed after this much idle time
IDLE_CONNECTION_TIMEOUT_SECONDS: float = 30.0

# Connection pool size per connector
MAX_CONNECTIONS: int = 100

# Follow redirects like a regular client would
FOLLOW_REDIRECTS: bool = True

# Read proxy settings (HTTP_PROXY, HTTPS_PROXY, NO_PROXY) from the environment
TRUST_ENV: bool = True

# =============================================================================
# TIME CONSTANTS
# =============================================================================

NANOSECONDS_PER_SECOND: int = 1_000_000_000
NANOSECONDS_PER_MILLISECOND: int = 1_000_000

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = "%(asctime)s - %(levelname)s - %(message)s"
