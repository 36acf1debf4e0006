"""scenesync: Keep a visual-generation stream's prompt in step with audio playback."""

from scenesync.config import PlanLimits, SchedulerConfig
from scenesync.models.schema import ControlNet, Scene, ScenePlan
from scenesync.playback.sinks import LoggingSink, RecordingSink
from scenesync.playback.transport import SimulatedTransport, Transport, TransportError
from scenesync.timeline.index import locate
from scenesync.timeline.plan import PlanError, normalize_plan
from scenesync.timeline.scheduler import (
    SceneScheduler,
    SchedulerError,
    SchedulerState,
    SchedulerStateError,
)

__version__ = "0.1.0"

__all__ = [
    "SceneScheduler",
    "SchedulerConfig",
    "SchedulerError",
    "SchedulerState",
    "SchedulerStateError",
    "Scene",
    "ScenePlan",
    "ControlNet",
    "PlanLimits",
    "PlanError",
    "normalize_plan",
    "locate",
    "Transport",
    "TransportError",
    "SimulatedTransport",
    "LoggingSink",
    "RecordingSink",
    "__version__",
]
