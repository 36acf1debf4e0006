#!/usr/bin/env python3
"""scenesync Quickstart Example.

This script plays a scene plan against a simulated audio track and
prints every scene change as the scheduler applies it.

Usage:
    python examples/quickstart.py path/to/plan.json [--speed 10]
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path


async def play(plan_path: Path, speed: float) -> None:
    """Run one simulated playback session."""
    import scenesync

    plan = scenesync.ScenePlan.from_json(plan_path)
    loop = asyncio.get_running_loop()
    transport = scenesync.SimulatedTransport(plan.duration_sec, clock=loop, playback_rate=speed)
    finished = asyncio.Event()

    async def apply_scene(scene: scenesync.Scene) -> None:
        print(f"[{transport.position:6.2f}s] {scene.id}: {scene.prompt[:60]}")

    scheduler = scenesync.SceneScheduler(
        transport,
        plan,
        sink=apply_scene,
        on_ended=finished.set,
    )
    await scheduler.start()
    await finished.wait()
    await scheduler.join()


def main() -> None:
    """Run the quickstart example."""
    import scenesync

    if len(sys.argv) < 2:
        print("Usage: python quickstart.py <plan.json> [--speed N]")
        sys.exit(1)

    plan_path = Path(sys.argv[1])
    speed = 1.0
    if "--speed" in sys.argv:
        speed = float(sys.argv[sys.argv.index("--speed") + 1])

    if not plan_path.exists():
        print(f"Error: File not found: {plan_path}")
        sys.exit(1)

    print(f"scenesync v{scenesync.__version__}")
    print(f"Plan: {plan_path} (speed {speed}x)")
    print("-" * 50)

    asyncio.run(play(plan_path, speed))


if __name__ == "__main__":
    main()
