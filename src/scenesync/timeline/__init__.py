"""Timeline logic for scenesync.

- index: Resolve the scene containing a playback time
- scheduler: Keep the applied scene in step with audio playback
- plan: Normalize provider output into a gapless scene plan
"""

from scenesync.timeline.index import locate
from scenesync.timeline.plan import PlanError, normalize_plan
from scenesync.timeline.scheduler import (
    SceneScheduler,
    SchedulerError,
    SchedulerState,
    SchedulerStateError,
)

__all__ = [
    "locate",
    "normalize_plan",
    "PlanError",
    "SceneScheduler",
    "SchedulerError",
    "SchedulerState",
    "SchedulerStateError",
]
