"""Command-line interface for scenesync."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from tqdm import tqdm

from scenesync import __version__
from scenesync.config import PlanLimits, SchedulerConfig
from scenesync.models.schema import ScenePlan
from scenesync.playback.sinks import LoggingSink
from scenesync.playback.transport import SimulatedTransport, TransportError
from scenesync.timeline.index import locate
from scenesync.timeline.plan import PlanError, normalize_plan
from scenesync.timeline.scheduler import SceneScheduler

app = typer.Typer(
    name="scenesync",
    help="Keep a visual-generation stream's prompt in step with audio playback.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"scenesync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """scenesync: audio-synchronized scene scheduling."""
    pass


def _fail(message: str) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


def _load_plan(path: Path) -> ScenePlan:
    try:
        return ScenePlan.from_json(path)
    except ValidationError as e:
        _fail(f"Invalid scene plan {path}: {e}")
    except OSError as e:
        _fail(str(e))


async def _run_simulation(
    plan: ScenePlan,
    config: SchedulerConfig,
    speed: float,
    latency: float,
    show_progress: bool,
) -> list[int]:
    """Play a plan against a simulated transport and collect scene changes."""
    loop = asyncio.get_running_loop()
    transport = SimulatedTransport(plan.duration_sec, clock=loop, playback_rate=speed)
    sink = LoggingSink(latency=latency, prompt_chars=config.log_prompt_chars)
    finished = asyncio.Event()
    changes: list[int] = []

    scheduler = SceneScheduler(
        transport,
        plan,
        sink,
        on_scene_changed=changes.append,
        on_ended=finished.set,
        config=config,
    )

    total = len(plan.scenes)
    with tqdm(
        total=round(plan.duration_sec, 1),
        unit="s",
        desc="Playing",
        disable=not show_progress,
        bar_format="{desc}: {percentage:3.0f}%|{bar}| {n:.1f}/{total_fmt}s [{elapsed}<{remaining}]",
        leave=True,
    ) as pbar:
        await scheduler.start()
        while not finished.is_set():
            try:
                await asyncio.wait_for(finished.wait(), timeout=0.1)
            except asyncio.TimeoutError:
                pass
            pbar.n = round(transport.position, 1)
            pbar.set_description(f"Scene {scheduler.current_scene_index + 1}/{total}")
        pbar.n = pbar.total
        pbar.refresh()

    await scheduler.join()
    return changes


@app.command()
def simulate(
    plan_path: Annotated[
        Path,
        typer.Argument(
            help="Path to a scene plan JSON file",
            exists=True,
            readable=True,
        ),
    ],
    speed: Annotated[
        float,
        typer.Option(
            "--speed",
            "-s",
            min=0.01,
            help="Playback rate (audio seconds per wall-clock second)",
        ),
    ] = 1.0,
    drift_interval: Annotated[
        Optional[float],
        typer.Option(
            "--drift-interval",
            help="Seconds between drift checks (default: SCENESYNC_DRIFT_INTERVAL or 1.0)",
        ),
    ] = None,
    latency: Annotated[
        float,
        typer.Option(
            "--latency",
            min=0.0,
            help="Simulated prompt-apply latency in seconds",
        ),
    ] = 0.0,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output",
        ),
    ] = False,
) -> None:
    """Dry-run a scene plan against simulated audio playback.

    Example:
        scenesync simulate plan.json --speed 10
    """
    import logging

    from scenesync.utils.logging import get_logger

    log_level = logging.WARNING if quiet else logging.INFO
    get_logger(level=log_level)

    plan = _load_plan(plan_path)

    overrides = {}
    if drift_interval is not None:
        overrides["drift_check_interval"] = drift_interval
    try:
        config = SchedulerConfig.from_env(**overrides)
        changes = asyncio.run(
            _run_simulation(plan, config, speed, latency, show_progress=not quiet)
        )
    except (ValueError, TransportError) as e:
        _fail(str(e))

    typer.echo(f"Scene sequence: {' -> '.join(str(i + 1) for i in changes)}")


@app.command(name="locate")
def locate_command(
    plan_path: Annotated[
        Path,
        typer.Argument(
            help="Path to a scene plan JSON file",
            exists=True,
            readable=True,
        ),
    ],
    time_sec: Annotated[
        float,
        typer.Argument(help="Playback time in seconds"),
    ],
) -> None:
    """Show which scene is active at a playback time."""
    plan = _load_plan(plan_path)
    index = locate(plan.scenes, time_sec)
    scene = plan.scenes[index]
    typer.echo(
        f"{index}\t{scene.id}\t[{scene.start_sec:g}s - {scene.end_sec:g}s)\t{scene.prompt}"
    )


@app.command()
def normalize(
    raw_path: Annotated[
        Path,
        typer.Argument(
            help="Path to a raw scene plan JSON file (e.g. LLM output)",
            exists=True,
            readable=True,
        ),
    ],
    duration: Annotated[
        Optional[float],
        typer.Option(
            "--duration",
            "-d",
            help="Audio duration in seconds (default: durationSec from the file)",
        ),
    ] = None,
    max_scenes: Annotated[
        int,
        typer.Option(
            "--max-scenes",
            min=1,
            help="Maximum number of scenes to keep",
        ),
    ] = 24,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Output JSON file path (default: stdout)",
        ),
    ] = None,
) -> None:
    """Normalize a raw scene plan into a gapless plan.

    Example:
        scenesync normalize gpt_output.json --duration 184 -o plan.json
    """
    try:
        raw = json.loads(raw_path.read_text())
        if not isinstance(raw, dict):
            raise PlanError("Top-level JSON value must be an object")
        plan = normalize_plan(raw, duration_sec=duration, limits=PlanLimits(max_scenes=max_scenes))
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON in {raw_path}: {e}")
    except (PlanError, ValidationError) as e:
        _fail(str(e))

    json_output = plan.to_json(indent=2)
    if output:
        output.write_text(json_output)
        typer.echo(f"Output written to: {output}")
    else:
        typer.echo(json_output)


@app.command()
def info() -> None:
    """Show version and default settings."""
    typer.echo(f"scenesync v{__version__}")
    typer.echo("")

    config = SchedulerConfig()
    typer.echo("Scheduler Defaults:")
    typer.echo(f"  Drift check interval: {config.drift_check_interval}s")
    typer.echo(f"  Prompt preview: {config.log_prompt_chars} chars")

    limits = PlanLimits()
    typer.echo("")
    typer.echo("Plan Limits:")
    typer.echo(f"  Max scenes: {limits.max_scenes}")
    typer.echo(f"  Steps: {limits.min_steps}-{limits.max_steps}")
    typer.echo(
        f"  Conditioning scale: {limits.min_conditioning_scale}-{limits.max_conditioning_scale}"
    )


if __name__ == "__main__":
    app()
