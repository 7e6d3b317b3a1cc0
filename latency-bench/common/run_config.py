"""
Per-run configuration for the HTTP latency benchmark.
"""

from dataclasses import dataclass, replace
from typing import Optional

from yarl import URL

from configuration import (
    DEFAULT_CONCURRENCY,
    DEFAULT_SCHEME,
    CONNECT_TIMEOUT_SECONDS,
    READ_TIMEOUT_SECONDS,
    IDLE_CONNECTION_TIMEOUT_SECONDS,
    MAX_CONNECTIONS,
    FOLLOW_REDIRECTS,
    TRUST_ENV,
)
from common.errors import InvalidInput

MODE_FIXED = "fixed"
MODE_TARGET = "target"

SUPPORTED_SCHEMES = ("http", "https")


def normalize_url(url: str) -> str:
    """Prefix the default scheme when the URL has none."""
    url = url.strip()
    if "://" not in url:
        return DEFAULT_SCHEME + url
    return url


@dataclass(frozen=True)
class BenchmarkConfig:
    """Immutable settings for one benchmark run.

    Attributes:
        url: Target URL, with or without scheme
        concurrency: Number of simultaneous workers
        total_samples: Sample target; None runs one probe per worker
        fail_fast: Abort the whole run on the first probe failure
        share_connections: Let probes share one connection pool
        follow_redirects: Follow HTTP redirects and measure the final hop
        connect_timeout: Seconds allowed for TCP connect and TLS handshake
        read_timeout: Seconds allowed between two reads of the response
        idle_timeout: Seconds a pooled connection may sit idle
        max_connections: Connection pool size
        trust_env: Read proxy settings from the environment
    """

    url: str
    concurrency: int = DEFAULT_CONCURRENCY
    total_samples: Optional[int] = None
    fail_fast: bool = True
    share_connections: bool = False
    follow_redirects: bool = FOLLOW_REDIRECTS
    connect_timeout: float = CONNECT_TIMEOUT_SECONDS
    read_timeout: float = READ_TIMEOUT_SECONDS
    idle_timeout: float = IDLE_CONNECTION_TIMEOUT_SECONDS
    max_connections: int = MAX_CONNECTIONS
    trust_env: bool = TRUST_ENV

    @property
    def normalized_url(self) -> str:
        return normalize_url(self.url)

    @property
    def mode(self) -> str:
        return MODE_FIXED if self.total_samples is None else MODE_TARGET

    @property
    def requested_samples(self) -> int:
        """Number of probes the run will attempt."""
        if self.total_samples is None:
            return self.concurrency
        return self.total_samples

    def validate(self) -> "BenchmarkConfig":
        """Check the settings and return self.

        Raises:
            InvalidInput: If any setting is out of range
        """
        if not self.url or not self.url.strip():
            raise InvalidInput("a target URL is required")
        self._validate_url()
        if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int):
            raise InvalidInput(f"concurrency must be an integer, got {self.concurrency!r}")
        if self.concurrency <= 0:
            raise InvalidInput(f"concurrency must be positive, got {self.concurrency}")
        if self.total_samples is not None and self.total_samples <= 0:
            raise InvalidInput(f"total samples must be positive, got {self.total_samples}")
        for name in ("connect_timeout", "read_timeout", "idle_timeout"):
            if getattr(self, name) <= 0:
                raise InvalidInput(f"{name.replace('_', ' ')} must be positive")
        if self.max_connections <= 0:
            raise InvalidInput(f"max connections must be positive, got {self.max_connections}")
        return self

    def _validate_url(self) -> None:
        url = self.normalized_url
        try:
            parsed = URL(url)
            port = parsed.port
        except (ValueError, TypeError) as e:
            raise InvalidInput(f"malformed URL {url!r}: {e}") from e
        if parsed.scheme.lower() not in SUPPORTED_SCHEMES:
            raise InvalidInput(f"unsupported scheme {parsed.scheme!r} in {url!r}, expected http or https")
        if not parsed.host:
            raise InvalidInput(f"URL {url!r} has no host")
        if port is not None and not 0 < port < 65536:
            raise InvalidInput(f"port {port} out of range in {url!r}")

    def with_overrides(self, **changes) -> "BenchmarkConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
