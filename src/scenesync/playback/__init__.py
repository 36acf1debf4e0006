"""Playback collaborators: audio transport and prompt-apply sinks."""

from scenesync.playback.sinks import LoggingSink, RecordingSink, SceneSink
from scenesync.playback.transport import SimulatedTransport, Transport, TransportError

__all__ = [
    "Transport",
    "TransportError",
    "SimulatedTransport",
    "SceneSink",
    "LoggingSink",
    "RecordingSink",
]
