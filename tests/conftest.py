"""Pytest configuration and fixtures for scenesync tests."""

from __future__ import annotations

import asyncio
import itertools
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable

import pytest

from scenesync.models.schema import ScenePlan


class FakeTimerHandle:
    """Timer handle mirroring the parts of asyncio.TimerHandle we use."""

    def __init__(self, when: float, seq: int, callback: Callable[..., Any], args: tuple) -> None:
        self._when = when
        self._seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def when(self) -> float:
        return self._when


class FakeClock:
    """Virtual time source with asyncio-loop style ``call_later``.

    Timers only fire inside ``advance()``, in (when, insertion) order.
    Pending asyncio tasks are drained after each callback so that
    scheduler reconciliations complete before the next timer fires.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._timers: list[FakeTimerHandle] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now + max(0.0, delay), next(self._seq), callback, args)
        self._timers.append(handle)
        return handle

    def postpone(self, handle: FakeTimerHandle, when: float) -> None:
        """Delay a pending timer, as a throttled or suspended tab would."""
        handle._when = when

    @property
    def pending(self) -> list[FakeTimerHandle]:
        return [h for h in self._timers if not h.cancelled]

    async def settle(self) -> None:
        for _ in range(50):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await self.settle()
        while True:
            due = [h for h in self._timers if not h.cancelled and h._when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h._when, h._seq))
            self._timers.remove(handle)
            self.now = max(self.now, handle._when)
            handle.callback(*handle.args)
            await self.settle()
        self._timers = self.pending
        self.now = target
        await self.settle()


def make_plan(bounds: list[tuple[float, float]]) -> ScenePlan:
    """Build a plan with ids ``s0..sN`` from ``(start, end)`` pairs."""
    return ScenePlan.model_validate(
        {
            "durationSec": bounds[-1][1],
            "scenes": [
                {
                    "id": f"s{i}",
                    "startSec": start,
                    "endSec": end,
                    "prompt": f"scene {i} prompt",
                    "negativePrompt": "blurry",
                    "steps": 30,
                }
                for i, (start, end) in enumerate(bounds)
            ],
        }
    )


@pytest.fixture
def clock() -> FakeClock:
    """Deterministic virtual clock."""
    return FakeClock()


@pytest.fixture
def three_scene_plan() -> ScenePlan:
    """Plan with scenes [0,5), [5,10), [10,15)."""
    return make_plan([(0, 5), (5, 10), (10, 15)])


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def plan_file(temp_dir: Path, three_scene_plan: ScenePlan) -> Path:
    """Write the three-scene plan to a JSON file."""
    path = temp_dir / "plan.json"
    three_scene_plan.to_json(path)
    return path


@pytest.fixture
def raw_plan_file(temp_dir: Path) -> Path:
    """Write an unnormalized, LLM-style plan to a JSON file."""
    path = temp_dir / "raw.json"
    path.write_text(
        json.dumps(
            {
                "durationSec": 20,
                "scenes": [
                    {"startSec": 9.6, "endSec": 20.4, "prompt": "moonlit lake"},
                    {"startSec": 0.3, "endSec": 10.2, "prompt": "starry sky", "steps": 250},
                ],
            }
        )
    )
    return path


@pytest.fixture
def no_drift_env():
    """Ensure SCENESYNC_DRIFT_INTERVAL is not set."""
    original = os.environ.pop("SCENESYNC_DRIFT_INTERVAL", None)
    yield
    if original is not None:
        os.environ["SCENESYNC_DRIFT_INTERVAL"] = original
