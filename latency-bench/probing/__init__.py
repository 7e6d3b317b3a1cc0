"""
Instrumented HTTP probing.
"""

from .trace import CheckpointRecorder, create_trace_config
from .http_probe import HttpProbe

__all__ = ['CheckpointRecorder', 'create_trace_config', 'HttpProbe']
