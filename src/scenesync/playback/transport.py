"""Audio transport interface and a clock-driven simulation.

The scheduler never decodes or outputs audio. It only reads the playback
position and drives play/pause through a :class:`Transport`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Error starting or controlling audio playback."""

    pass


class Clock(Protocol):
    """Timer source: an asyncio event loop or a test double."""

    def time(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Any: ...


@runtime_checkable
class Transport(Protocol):
    """Audio playback controls consumed by the scheduler.

    ``position`` is in seconds and never decreases while playing unless
    someone seeks. Setting it seeks.
    """

    position: float

    @property
    def paused(self) -> bool: ...

    @property
    def playback_rate(self) -> float: ...

    async def play(self) -> None: ...

    def pause(self) -> None: ...

    def on_ended(self, callback: Callable[[], None]) -> None: ...


class SimulatedTransport:
    """Transport whose position advances with a clock instead of real audio.

    Used for dry runs and tests. Position is derived from ``clock.time()``
    while playing, clamped to ``[0, duration_sec]``. Reaching the end
    pauses playback and fires the ended callbacks.

    Example:
        >>> loop = asyncio.get_running_loop()
        >>> transport = SimulatedTransport(duration_sec=30.0, clock=loop)
        >>> await transport.play()
    """

    def __init__(
        self,
        duration_sec: float,
        clock: Clock,
        playback_rate: float = 1.0,
        autoplay_blocked: bool = False,
    ) -> None:
        """Initialize a simulated transport.

        Args:
            duration_sec: Length of the simulated track.
            clock: Time and timer source.
            playback_rate: Audio seconds per clock second.
            autoplay_blocked: Make ``play()`` fail, like a browser autoplay policy.

        Raises:
            ValueError: If duration or rate is not positive.
        """
        if duration_sec <= 0:
            raise ValueError(f"duration_sec must be positive, got {duration_sec}")
        if playback_rate <= 0:
            raise ValueError(f"playback_rate must be positive, got {playback_rate}")

        self.duration_sec = duration_sec
        self.autoplay_blocked = autoplay_blocked
        self._clock = clock
        self._rate = playback_rate
        self._offset = 0.0
        self._started_at: float | None = None
        self._end_handle: Any = None
        self._ended_callbacks: list[Callable[[], None]] = []

    @property
    def paused(self) -> bool:
        return self._started_at is None

    @property
    def playback_rate(self) -> float:
        return self._rate

    @property
    def ended(self) -> bool:
        """True once the position has reached the end of the track."""
        return self.position >= self.duration_sec

    @property
    def position(self) -> float:
        if self._started_at is None:
            return self._offset
        elapsed = (self._clock.time() - self._started_at) * self._rate
        return min(self.duration_sec, self._offset + elapsed)

    @position.setter
    def position(self, value: float) -> None:
        self._offset = max(0.0, min(self.duration_sec, float(value)))
        if self._started_at is not None:
            self._started_at = self._clock.time()
            self._arm_end()

    async def play(self) -> None:
        """Start or continue playback from the current position.

        Raises:
            TransportError: If playback is blocked.
        """
        if self.autoplay_blocked:
            raise TransportError("play() was blocked by autoplay policy")
        if self._started_at is not None:
            return
        if self._offset >= self.duration_sec:
            self._offset = 0.0
        self._started_at = self._clock.time()
        self._arm_end()

    def pause(self) -> None:
        if self._started_at is None:
            return
        self._offset = self.position
        self._started_at = None
        self._cancel_end()

    def on_ended(self, callback: Callable[[], None]) -> None:
        self._ended_callbacks.append(callback)

    def _arm_end(self) -> None:
        self._cancel_end()
        remaining = (self.duration_sec - self._offset) / self._rate
        self._end_handle = self._clock.call_later(max(0.0, remaining), self._finish)

    def _cancel_end(self) -> None:
        if self._end_handle is not None:
            self._end_handle.cancel()
            self._end_handle = None

    def _finish(self) -> None:
        self._end_handle = None
        self._offset = self.duration_sec
        self._started_at = None
        logger.debug("Simulated playback ended")
        for callback in list(self._ended_callbacks):
            callback()
