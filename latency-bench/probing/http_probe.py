"""
Instrumented async HTTP client that decomposes a GET into latency phases.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from common.errors import NetworkFailure
from common.run_config import BenchmarkConfig, normalize_url
from measurements.record import PhaseMeasurement
from probing.trace import CheckpointRecorder, create_trace_config

logger = logging.getLogger(__name__)

# Errors that mean the target could not be measured
PROBE_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


class HttpProbe:
    """Async HTTP client issuing one traced GET per measurement.

    Use as an async context manager. Unless connections are shared, every
    measurement runs on its own connector so DNS resolution and connection
    establishment are measured each time.
    """

    def __init__(self, config: BenchmarkConfig):
        self.config = config
        self._timeout = self._create_timeout()
        self._trace_config = create_trace_config()
        self.session: Optional[aiohttp.ClientSession] = None

        logger.info(
            f"Initialized HTTP probe (share_connections={config.share_connections}, "
            f"connect_timeout={config.connect_timeout}s, read_timeout={config.read_timeout}s)"
        )

    def _create_timeout(self) -> aiohttp.ClientTimeout:
        """Bound connection setup and reads; the request as a whole is unbounded."""
        return aiohttp.ClientTimeout(
            total=None,
            connect=self.config.connect_timeout,
            sock_read=self.config.read_timeout,
        )

    def _create_connector(self) -> aiohttp.TCPConnector:
        return aiohttp.TCPConnector(
            limit=self.config.max_connections,
            keepalive_timeout=self.config.idle_timeout,
        )

    def _create_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            connector=self._create_connector(),
            timeout=self._timeout,
            trace_configs=[self._trace_config],
            trust_env=self.config.trust_env,
        )

    async def __aenter__(self):
        """Async context manager entry."""
        if self.config.share_connections:
            self.session = self._create_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.session:
            await self.session.close()
            self.session = None

    async def measure(self, url: str, recorder: Optional[CheckpointRecorder] = None) -> PhaseMeasurement:
        """Issue one GET and return its phase breakdown.

        Args:
            url: Target URL (the default scheme is added when missing)
            recorder: Checkpoint recorder to fill (a new one by default)

        Returns:
            Measurement of the request

        Raises:
            NetworkFailure: If the request failed in any phase
        """
        url = normalize_url(url)
        recorder = recorder or CheckpointRecorder()

        try:
            if self.session is not None:
                await self._fetch(self.session, url, recorder)
            else:
                async with self._create_session() as session:
                    await self._fetch(session, url, recorder)
        except PROBE_ERRORS as e:
            phase = recorder.pending_phase()
            logger.debug(f"Probe of {url} failed during {phase}: {e!r}")
            raise NetworkFailure(url, phase, e) from e

        return recorder.to_measurement()

    async def _fetch(self, session: aiohttp.ClientSession, url: str, recorder: CheckpointRecorder) -> None:
        async with session.get(
            url,
            allow_redirects=self.config.follow_redirects,
            trace_request_ctx=recorder,
        ) as response:
            body = await response.read()
            recorder.mark("done")
        logger.debug(f"GET {url} -> {response.status} ({len(body)} bytes)")

