"""
Request lifecycle checkpoints captured through aiohttp client tracing.
"""

import time
import logging
from typing import Callable, Dict, List, Optional

import aiohttp

from measurements.record import (
    PhaseMeasurement,
    DNS_LOOKUP,
    TCP_CONNECTION,
    CONNECTION_ACQUISITION,
    SERVER_PROCESSING,
    CONTENT_TRANSFER,
)

logger = logging.getLogger(__name__)

# Checkpoints that bound the measured phases, in causal order
CHECKPOINT_NAMES = ("dns_start", "dns_done", "conn_done", "got_conn", "first_byte", "done")

# Auxiliary checkpoint used when dns_done is missing
AUXILIARY_NAMES = ("conn_start",)


class CheckpointRecorder:
    """Timestamps of one request's lifecycle events, in nanoseconds.

    One recorder is created per probe and passed to aiohttp as the
    per-request trace context, so concurrent probes never share one.
    """

    def __init__(self, clock: Callable[[], int] = time.perf_counter_ns):
        self._clock = clock
        self.checkpoints: Dict[str, Optional[int]] = {}
        self.reset()

    def reset(self) -> None:
        """Forget every checkpoint (used when a redirect starts a new hop)."""
        self.checkpoints = dict.fromkeys(AUXILIARY_NAMES + CHECKPOINT_NAMES)

    def mark(self, name: str, timestamp: Optional[int] = None) -> int:
        """Record a checkpoint at the given time or now.

        Args:
            name: Checkpoint name
            timestamp: Explicit timestamp in nanoseconds (defaults to the clock)

        Returns:
            The recorded timestamp
        """
        if name not in self.checkpoints:
            raise KeyError(f"unknown checkpoint: {name}")
        value = self._clock() if timestamp is None else timestamp
        self.checkpoints[name] = value
        return value

    def reached(self, name: str) -> bool:
        return self.checkpoints.get(name) is not None

    def pending_phase(self) -> str:
        """Name of the phase in progress, used to classify failures."""
        if self.reached("first_byte"):
            return CONTENT_TRANSFER
        if self.reached("got_conn"):
            return SERVER_PROCESSING
        if self.reached("conn_done"):
            return CONNECTION_ACQUISITION
        if self.reached("dns_start") and not self.reached("dns_done"):
            return DNS_LOOKUP
        return TCP_CONNECTION

    def resolve(self) -> List[int]:
        """Resolve the six phase boundaries, applying fallbacks.

        A missing dns_done falls back to the start of connection
        establishment. Any other missing checkpoint collapses onto its
        successor. The result is then made non-decreasing so every phase is
        non-negative and the phases add up to the total exactly.

        Raises:
            RuntimeError: If the request has not completed
        """
        values = dict(self.checkpoints)
        if values["done"] is None:
            raise RuntimeError("request has not completed")
        if values["dns_done"] is None:
            values["dns_done"] = values["conn_start"]

        resolved: List[int] = [0] * len(CHECKPOINT_NAMES)
        successor = values["done"]
        for index in reversed(range(len(CHECKPOINT_NAMES))):
            value = values[CHECKPOINT_NAMES[index]]
            if value is None:
                value = successor
            resolved[index] = value
            successor = value

        for index in range(1, len(resolved)):
            if resolved[index] < resolved[index - 1]:
                logger.debug(
                    f"Clamping {CHECKPOINT_NAMES[index]} forward by "
                    f"{resolved[index - 1] - resolved[index]}ns"
                )
                resolved[index] = resolved[index - 1]
        return resolved

    def to_measurement(self) -> PhaseMeasurement:
        return PhaseMeasurement.from_checkpoints(*self.resolve())

    def __repr__(self) -> str:
        reached = [name for name, value in self.checkpoints.items() if value is not None]
        return f"CheckpointRecorder(reached={reached})"


def _checkpoint_hook(name: str):
    """Build a trace hook that marks one checkpoint on the request's recorder."""

    async def hook(session, trace_config_ctx, params):
        recorder = trace_config_ctx.trace_request_ctx
        if isinstance(recorder, CheckpointRecorder):
            recorder.mark(name)

    return hook


async def _on_request_redirect(session, trace_config_ctx, params):
    recorder = trace_config_ctx.trace_request_ctx
    if isinstance(recorder, CheckpointRecorder):
        logger.debug(f"Redirected from {params.url} ({params.response.status}), measuring next hop")
        recorder.reset()


def create_trace_config() -> aiohttp.TraceConfig:
    """Create a trace config that feeds CheckpointRecorder request contexts.

    TLS completes inside connection creation, so the handshake is part of
    the TCP connection phase.
    """
    trace_config = aiohttp.TraceConfig()
    trace_config.on_connection_create_start.append(_checkpoint_hook("conn_start"))
    trace_config.on_dns_resolvehost_start.append(_checkpoint_hook("dns_start"))
    trace_config.on_dns_resolvehost_end.append(_checkpoint_hook("dns_done"))
    trace_config.on_connection_create_end.append(_checkpoint_hook("conn_done"))
    trace_config.on_connection_reuseconn.append(_checkpoint_hook("conn_done"))
    trace_config.on_request_headers_sent.append(_checkpoint_hook("got_conn"))
    trace_config.on_request_end.append(_checkpoint_hook("first_byte"))
    trace_config.on_request_redirect.append(_on_request_redirect)
    return trace_config
