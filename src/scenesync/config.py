"""Configuration and settings for scenesync."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, model_validator

DRIFT_INTERVAL_ENV = "SCENESYNC_DRIFT_INTERVAL"


class SchedulerConfig(BaseModel):
    """Configuration for a SceneScheduler."""

    drift_check_interval: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between drift reconciliation checks while running",
    )
    log_prompt_chars: int = Field(
        default=50, ge=0, description="Prompt prefix length shown in apply log lines"
    )

    @classmethod
    def from_env(cls, **overrides: object) -> SchedulerConfig:
        """Build a config, falling back to environment variables.

        ``SCENESYNC_DRIFT_INTERVAL`` sets the drift check period unless
        ``drift_check_interval`` is passed explicitly.

        Raises:
            ValueError: If the environment value is not a number.
        """
        values = dict(overrides)
        raw = os.environ.get(DRIFT_INTERVAL_ENV)
        if raw is not None and "drift_check_interval" not in values:
            try:
                values["drift_check_interval"] = float(raw)
            except ValueError as e:
                raise ValueError(
                    f"{DRIFT_INTERVAL_ENV} must be a number of seconds, got {raw!r}"
                ) from e
        return cls(**values)


class PlanLimits(BaseModel):
    """Bounds applied when normalizing a provider's scene plan."""

    max_scenes: int = Field(default=24, ge=1, description="Maximum scenes kept")
    min_steps: int = Field(default=1, ge=1, description="Lower bound for steps")
    max_steps: int = Field(default=100, ge=1, description="Upper bound for steps")
    min_conditioning_scale: float = Field(
        default=0.1, ge=0, description="Lower bound for controlnet conditioning"
    )
    max_conditioning_scale: float = Field(
        default=0.6, ge=0, description="Upper bound for controlnet conditioning"
    )

    @model_validator(mode="after")
    def _check_bounds(self) -> PlanLimits:
        if self.min_steps > self.max_steps:
            raise ValueError("min_steps must not exceed max_steps")
        if self.min_conditioning_scale > self.max_conditioning_scale:
            raise ValueError("min_conditioning_scale must not exceed max_conditioning_scale")
        return self
