"""Scene plan normalization.

Turns a loosely structured plan (typically LLM output) into a
:class:`ScenePlan` that satisfies the scheduler's coverage invariant:

- Scenes sorted by start time and capped in number
- Times snapped to whole seconds and clamped to the audio duration
- Empty scenes dropped, steps and controlnet scales clamped
- Boundaries stitched so the plan is gapless from 0 to the duration
"""

from __future__ import annotations

import logging
import math
import uuid
from typing import Any

from scenesync.config import PlanLimits
from scenesync.models.schema import ScenePlan

logger = logging.getLogger(__name__)


class PlanError(ValueError):
    """Error normalizing a scene plan."""

    pass


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _seconds(value: Any) -> float | None:
    """Parse a finite number, or None for anything else."""
    try:
        seconds = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return seconds if math.isfinite(seconds) else None


def _normalize_controlnets(raw: list[Any], limits: PlanLimits) -> list[dict]:
    kept = []
    for cn in raw:
        if not isinstance(cn, dict):
            continue
        if not cn.get("model_id") or not cn.get("preprocessor"):
            continue
        cn = dict(cn)
        if cn.get("conditioning_scale") is not None:
            scale = _seconds(cn["conditioning_scale"])
            if scale is None:
                logger.debug(
                    f"Dropping controlnet {cn['model_id']!r}: "
                    f"invalid conditioning_scale {cn['conditioning_scale']!r}"
                )
                continue
            cn["conditioning_scale"] = _clamp(
                scale,
                limits.min_conditioning_scale,
                limits.max_conditioning_scale,
            )
        kept.append(cn)
    return kept


def normalize_plan(
    raw: dict[str, Any] | ScenePlan,
    duration_sec: float | None = None,
    limits: PlanLimits | None = None,
) -> ScenePlan:
    """Normalize a provider's scene plan into a gapless ScenePlan.

    Args:
        raw: Plan in camelCase wire format, or an existing ScenePlan.
        duration_sec: Audio duration. Falls back to ``durationSec`` in ``raw``.
        limits: Clamping bounds. Defaults to :class:`PlanLimits`.

    Returns:
        A ScenePlan whose scenes cover ``[0, duration_sec)`` with no gaps.

    Raises:
        PlanError: If the scenes list is missing, the duration is invalid,
            or no scene survives normalization.
    """
    limits = limits or PlanLimits()
    if isinstance(raw, ScenePlan):
        raw = raw.to_dict()

    if duration_sec is None:
        duration_sec = raw.get("durationSec", raw.get("totalDurationSec"))
    try:
        duration = float(duration_sec)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError) as e:
        raise PlanError(f"Invalid or missing durationSec: {duration_sec!r}") from e
    if not math.isfinite(duration) or duration <= 0:
        raise PlanError(f"Invalid or missing durationSec: {duration_sec!r}")

    scenes = raw.get("scenes")
    if not isinstance(scenes, list):
        raise PlanError("Missing or invalid scenes array")

    timed: list[tuple[float, int, dict[str, Any]]] = []
    for position, scene in enumerate(scenes):
        if not isinstance(scene, dict):
            logger.debug(f"Dropping scene {position}: not an object")
            continue
        start = _seconds(scene.get("startSec", 0))
        if start is None:
            logger.debug(f"Dropping scene {position}: invalid startSec {scene.get('startSec')!r}")
            continue
        timed.append((start, position, dict(scene)))
    timed.sort(key=lambda item: (item[0], item[1]))
    ordered = [scene for _, _, scene in timed]

    normalized: list[dict[str, Any]] = []
    for i, scene in enumerate(ordered[: limits.max_scenes]):
        if not scene.get("id"):
            scene["id"] = str(uuid.uuid4())

        raw_end = _seconds(scene.get("endSec", duration))
        if raw_end is None:
            logger.debug(f"Dropping scene {i}: invalid endSec {scene.get('endSec')!r}")
            continue
        start = max(0, math.floor(_seconds(scene.get("startSec", 0))))
        end = min(duration, math.ceil(raw_end))

        if start >= end:
            logger.debug(f"Dropping scene {i}: empty range [{start}, {end})")
            continue

        scene["startSec"] = start
        scene["endSec"] = end

        if scene.get("steps") is not None:
            try:
                scene["steps"] = int(
                    _clamp(int(scene["steps"]), limits.min_steps, limits.max_steps)
                )
            except (TypeError, ValueError, OverflowError):
                logger.debug(f"Scene {i}: ignoring non-numeric steps {scene['steps']!r}")
                scene.pop("steps")

        if scene.get("controlnets"):
            scene["controlnets"] = _normalize_controlnets(scene["controlnets"], limits)

        normalized.append(scene)

    if not normalized:
        raise PlanError("No valid scenes remain after normalization")

    normalized[0]["startSec"] = 0
    for prev, nxt in zip(normalized, normalized[1:]):
        prev["endSec"] = nxt["startSec"]
    normalized[-1]["endSec"] = duration

    # Stitching can collapse a scene whose start was pulled back to a later
    # sibling's snapped start; those carry no time and are dropped.
    stitched = [s for s in normalized if s["endSec"] > s["startSec"]]
    for prev, nxt in zip(stitched, stitched[1:]):
        prev["endSec"] = nxt["startSec"]
    stitched[0]["startSec"] = 0

    plan = ScenePlan.model_validate({"durationSec": duration, "scenes": stitched})
    logger.info(
        f"Normalized plan: {len(plan.scenes)} scenes over {duration:.1f}s "
        f"({len(scenes) - len(plan.scenes)} dropped)"
    )
    return plan
