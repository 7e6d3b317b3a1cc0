"""
Basic data structures for the HTTP latency benchmark.
"""

from dataclasses import dataclass, fields
from typing import Dict

from common.errors import NetworkFailure

# Request phases in causal order
DNS_LOOKUP = "dns_lookup"
TCP_CONNECTION = "tcp_connection"
CONNECTION_ACQUISITION = "connection_acquisition"
SERVER_PROCESSING = "server_processing"
CONTENT_TRANSFER = "content_transfer"
TOTAL = "total"

PHASE_NAMES = (
    DNS_LOOKUP,
    TCP_CONNECTION,
    CONNECTION_ACQUISITION,
    SERVER_PROCESSING,
    CONTENT_TRANSFER,
)
FIELD_NAMES = PHASE_NAMES + (TOTAL,)


@dataclass(frozen=True)
class PhaseMeasurement:
    """Latency breakdown of one HTTP request, in integer nanoseconds."""

    dns_lookup: int
    tcp_connection: int
    connection_acquisition: int
    server_processing: int
    content_transfer: int
    total: int

    def __post_init__(self):
        for field in fields(self):
            value = getattr(self, field.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{field.name} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"{field.name} must be non-negative, got {value}")

    @classmethod
    def from_checkpoints(
        cls,
        dns_start: int,
        dns_done: int,
        conn_done: int,
        got_conn: int,
        first_byte: int,
        done: int,
    ) -> "PhaseMeasurement":
        """Derive the phases from six ordered checkpoint timestamps."""
        return cls(
            dns_lookup=dns_done - dns_start,
            tcp_connection=conn_done - dns_done,
            connection_acquisition=got_conn - conn_done,
            server_processing=first_byte - got_conn,
            content_transfer=done - first_byte,
            total=done - dns_start,
        )

    def phases(self) -> Dict[str, int]:
        """The five phase durations in causal order."""
        return {name: getattr(self, name) for name in PHASE_NAMES}

    def as_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in FIELD_NAMES}

    def is_consistent(self) -> bool:
        """True if total equals the sum of the phases."""
        return self.total == sum(self.phases().values())


@dataclass(frozen=True)
class ProbeFailure:
    """A probe that ended in a network error."""

    probe_id: int
    worker_id: int
    error: NetworkFailure

    @property
    def phase(self) -> str:
        return self.error.phase
