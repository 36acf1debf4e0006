"""Prompt-apply sinks: where the scheduler sends the active scene."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from scenesync.models.schema import Scene
from scenesync.utils.logging import prompt_preview

logger = logging.getLogger(__name__)

SceneSink = Callable[[Scene], Awaitable[None]]


class LoggingSink:
    """Sink that logs each applied scene instead of calling a stream API.

    An optional ``latency`` models the network round trip of a real
    rendering stream.
    """

    def __init__(self, latency: float = 0.0, prompt_chars: int = 50) -> None:
        self.latency = latency
        self.prompt_chars = prompt_chars
        self.applied: list[str] = []

    async def __call__(self, scene: Scene) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        self.applied.append(scene.id)
        logger.info(
            f"Stream updated [{scene.start_sec:.1f}s - {scene.end_sec:.1f}s]: "
            f"{prompt_preview(scene.prompt, self.prompt_chars)}"
        )


class RecordingSink:
    """Sink that records applied scenes, optionally failing on demand."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.scenes: list[Scene] = []
        self.fail_with = fail_with

    async def __call__(self, scene: Scene) -> None:
        self.scenes.append(scene)
        if self.fail_with is not None:
            raise self.fail_with

    @property
    def ids(self) -> list[str]:
        return [scene.id for scene in self.scenes]
