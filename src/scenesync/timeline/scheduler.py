"""Audio-synchronized scene scheduler.

Keeps the prompt applied to a rendering stream in step with the audio
playback position:

- A one-shot boundary timer fires when playback should cross into the
  next scene
- A recurring drift check re-resolves the scene from the live position
  and corrects whatever the boundary timer missed
- Both paths share one apply-if-changed reconciliation, so the sink sees
  each distinct active scene once per continuous run

Every state transition bumps a generation counter and cancels both
timers before doing anything else. Deferred callbacks carry the
generation they were armed under and do nothing once it is stale.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from enum import Enum
from typing import Any

from scenesync.config import SchedulerConfig
from scenesync.models.schema import Scene, ScenePlan
from scenesync.playback.sinks import SceneSink
from scenesync.playback.transport import Clock, Transport
from scenesync.timeline.index import locate
from scenesync.utils.logging import prompt_preview

logger = logging.getLogger(__name__)


class SchedulerError(Exception):
    """Error in scene scheduling."""

    pass


class SchedulerStateError(SchedulerError):
    """Operation not valid in the scheduler's current state."""

    pass


class SchedulerState(str, Enum):
    """Scheduler lifecycle states."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class SceneScheduler:
    """Drives scene changes from the audio transport's playback position.

    One instance serves one playback session: one transport and one
    immutable plan. ``stop()`` is terminal; load a new plan into a new
    scheduler.

    Example:
        >>> scheduler = SceneScheduler(transport, plan, sink=apply_scene)
        >>> await scheduler.start()
        >>> scheduler.pause()
        >>> await scheduler.resume()
        >>> transport.position = 42.0
        >>> await scheduler.seek()
        >>> scheduler.stop()
    """

    def __init__(
        self,
        transport: Transport,
        plan: ScenePlan,
        sink: SceneSink,
        on_scene_changed: Callable[[int], None] | None = None,
        on_apply_error: Callable[[Scene, Exception], None] | None = None,
        on_ended: Callable[[], None] | None = None,
        config: SchedulerConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize a scheduler for one playback session.

        Args:
            transport: Audio transport to read and drive.
            plan: Ordered, gapless scene plan. Not re-validated.
            sink: Coroutine function that applies a scene to the stream.
            on_scene_changed: Called synchronously with the new index
                whenever the active scene changes. Errors it raises are
                logged and do not interrupt scheduling.
            on_apply_error: Called with the scene and exception when the
                sink fails.
            on_ended: Called after the transport reports the end of the track.
            config: Scheduler settings.
            clock: Timer source. Defaults to the running event loop.

        Raises:
            ValueError: If the plan has no scenes.
        """
        if not plan.scenes:
            raise ValueError("SceneScheduler requires a plan with at least one scene")

        self.transport = transport
        self.plan = plan
        self.config = config or SchedulerConfig()
        self._scenes: tuple[Scene, ...] = tuple(plan.scenes)
        self._sink = sink
        self._on_scene_changed = on_scene_changed
        self._on_apply_error = on_apply_error
        self._on_ended = on_ended
        self._clock = clock

        self._state = SchedulerState.IDLE
        self._current_index = -1
        self._generation = 0
        self._boundary_handle: Any = None
        self._drift_handle: Any = None
        self._tasks: set[asyncio.Task] = set()

        transport.on_ended(self._handle_ended)

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_active(self) -> bool:
        """True while running: between start/resume and pause/stop."""
        return self._state is SchedulerState.RUNNING

    @property
    def current_scene_index(self) -> int:
        """Index of the applied scene, or -1 before the first apply."""
        return self._current_index

    @property
    def current_scene(self) -> Scene | None:
        if self._current_index < 0:
            return None
        return self._scenes[self._current_index]

    @property
    def scenes(self) -> tuple[Scene, ...]:
        return self._scenes

    @property
    def has_pending_boundary(self) -> bool:
        return self._boundary_handle is not None

    @property
    def has_drift_check(self) -> bool:
        return self._drift_handle is not None

    async def start(self) -> None:
        """Rewind to 0, start playback and apply the first scene.

        Raises:
            SchedulerStateError: If the scheduler is not idle.
            Exception: Whatever ``transport.play()`` raises. The scheduler
                stays idle so the caller can retry.
        """
        if self._state is not SchedulerState.IDLE:
            raise SchedulerStateError(f"Cannot start from state '{self._state.value}'")

        if self._clock is None:
            self._clock = asyncio.get_running_loop()

        self.transport.position = 0.0
        await self.transport.play()

        if self._state is not SchedulerState.IDLE:
            # stop() arrived while play() was pending
            self.transport.pause()
            return

        self._state = SchedulerState.RUNNING
        generation = self._next_generation()
        logger.info(f"Scheduler started ({len(self._scenes)} scenes)")

        self._arm_drift_check(generation)
        await self._reconcile(generation)

    def pause(self) -> None:
        """Pause playback and cancel all timers. No-op unless running."""
        if self._state is not SchedulerState.RUNNING:
            return

        self._next_generation()
        self.transport.pause()
        self._state = SchedulerState.PAUSED
        logger.info(f"Scheduler paused at {self.transport.position:.2f}s")

    async def resume(self) -> None:
        """Resume playback and re-sync the scene for the current position.

        Raises:
            SchedulerStateError: If the scheduler was never started or is stopped.
            Exception: Whatever ``transport.play()`` raises. The scheduler
                stays paused.
        """
        if self._state is SchedulerState.RUNNING:
            return
        if self._state is not SchedulerState.PAUSED:
            raise SchedulerStateError(f"Cannot resume from state '{self._state.value}'")

        await self.transport.play()

        if self._state is not SchedulerState.PAUSED:
            if self._state is SchedulerState.STOPPED:
                self.transport.pause()
            return

        self._state = SchedulerState.RUNNING
        generation = self._next_generation()
        logger.info(f"Scheduler resumed at {self.transport.position:.2f}s")

        self._arm_drift_check(generation)
        await self._reconcile(generation)

    async def seek(self) -> None:
        """Re-sync after the transport position was changed externally.

        Applies the scene at the new position, even when it is earlier
        than the current one. Timers are re-armed only while running.

        Raises:
            SchedulerStateError: If the scheduler was never started or is stopped.
        """
        if self._state not in (SchedulerState.RUNNING, SchedulerState.PAUSED):
            raise SchedulerStateError(f"Cannot seek from state '{self._state.value}'")

        generation = self._next_generation()
        logger.info(f"Seek to {self.transport.position:.2f}s")

        if self._state is SchedulerState.RUNNING:
            self._arm_drift_check(generation)
        await self._reconcile(generation)

    def stop(self) -> None:
        """Cancel all timers and pause playback. Terminal."""
        if self._state is SchedulerState.STOPPED:
            return

        self._next_generation()
        self._state = SchedulerState.STOPPED
        self.transport.pause()
        logger.info("Scheduler stopped")

    async def reconcile(self) -> None:
        """Apply the scene at the current position if it changed.

        Safe to call at any frequency: the sink only sees a scene when the
        resolved index differs from the applied one.

        Raises:
            SchedulerStateError: If the scheduler is idle or stopped.
        """
        if self._state not in (SchedulerState.RUNNING, SchedulerState.PAUSED):
            raise SchedulerStateError(
                f"Cannot reconcile from state '{self._state.value}'"
            )
        await self._reconcile(self._generation)

    async def join(self) -> None:
        """Wait for in-flight timer-triggered reconciliations to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _next_generation(self) -> int:
        self._cancel_timers()
        self._generation += 1
        return self._generation

    def _cancel_timers(self) -> None:
        if self._boundary_handle is not None:
            self._boundary_handle.cancel()
            self._boundary_handle = None
        if self._drift_handle is not None:
            self._drift_handle.cancel()
            self._drift_handle = None

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state is SchedulerState.RUNNING

    async def _reconcile(self, generation: int) -> None:
        await self._apply_if_changed(generation)
        if self._is_current(generation) and not self.transport.paused:
            self._arm_boundary(generation)

    async def _apply_if_changed(self, generation: int) -> None:
        if generation != self._generation or self._state is SchedulerState.STOPPED:
            logger.debug(f"Ignoring apply from stale generation {generation}")
            return

        index = locate(self._scenes, self.transport.position)
        if index == self._current_index:
            return

        self._current_index = index
        scene = self._scenes[index]
        logger.info(
            f"Applying scene {index + 1}/{len(self._scenes)}: "
            f"{prompt_preview(scene.prompt, self.config.log_prompt_chars)}"
        )
        if self._on_scene_changed is not None:
            try:
                self._on_scene_changed(index)
            except Exception as e:
                logger.warning(f"Scene-changed callback failed for scene {index + 1}: {e}")

        try:
            await self._sink(scene)
        except Exception as e:
            logger.warning(f"Failed to apply scene {index + 1} ({scene.id}): {e}")
            if self._on_apply_error is not None:
                self._on_apply_error(scene, e)

    def _arm_boundary(self, generation: int) -> None:
        if self._boundary_handle is not None:
            self._boundary_handle.cancel()
            self._boundary_handle = None

        next_index = self._current_index + 1
        if next_index >= len(self._scenes):
            logger.debug("Last scene active, no boundary timer armed")
            return

        position = self.transport.position
        gap = max(0.0, self._scenes[next_index].start_sec - position)
        delay = gap / self.transport.playback_rate
        self._boundary_handle = self._clock.call_later(delay, self._on_boundary, generation)
        logger.debug(f"Boundary timer armed for scene {next_index + 1} in {delay:.3f}s")

    def _arm_drift_check(self, generation: int) -> None:
        self._drift_handle = self._clock.call_later(
            self.config.drift_check_interval, self._on_drift_tick, generation
        )

    def _on_boundary(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._boundary_handle = None
        if self._is_current(generation) and not self.transport.paused:
            self._spawn(self._reconcile(generation))

    def _on_drift_tick(self, generation: int) -> None:
        if not self._is_current(generation):
            return
        self._arm_drift_check(generation)

        if self.transport.paused:
            return

        index = locate(self._scenes, self.transport.position)
        if index != self._current_index:
            logger.info(
                f"Drift detected: correcting from scene {self._current_index} to {index}"
            )
            self._spawn(self._reconcile(generation))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Scene reconciliation failed: {task.exception()}")

    def _handle_ended(self) -> None:
        if self._state is SchedulerState.STOPPED:
            return
        logger.info("Playback ended")
        self.stop()
        if self._on_ended is not None:
            self._on_ended()
