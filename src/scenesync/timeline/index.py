"""Scene index resolution: map a playback time to the active scene."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol


class TimeSpan(Protocol):
    start_sec: float
    end_sec: float


def locate(scenes: Sequence[TimeSpan], t: float) -> int:
    """Return the index of the scene whose interval contains ``t``.

    Intervals are half-open, ``[start_sec, end_sec)``, so a time exactly on
    a shared boundary belongs to the later scene. Times before the first
    scene clamp to ``0`` and times at or past the last ``end_sec`` clamp to
    the last index. Gaps left by an imperfect plan resolve to the scene
    just before the gap.

    Args:
        scenes: Scenes sorted by ``start_sec`` with no overlaps.
        t: Playback position in seconds.

    Returns:
        Index into ``scenes``. ``0`` for an empty sequence.
    """
    if not scenes:
        return 0

    lo = 0
    hi = len(scenes) - 1

    while lo <= hi:
        mid = (lo + hi) // 2
        scene = scenes[mid]

        if t < scene.start_sec:
            hi = mid - 1
        elif t >= scene.end_sec:
            lo = mid + 1
        else:
            return mid

    # lo is the insertion point; lo - 1 is -1 when t precedes every scene.
    return max(0, min(len(scenes) - 1, lo - 1))
