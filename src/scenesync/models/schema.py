"""Pydantic models defining the scene plan schema.

Field names are snake_case in Python and camelCase on the wire
(``startSec``, ``negativePrompt``, ...), matching the JSON produced by
the scene-plan provider.
"""

from __future__ import annotations

import uuid
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class ControlNet(BaseModel):
    """A controlnet directive forwarded to the rendering stream.

    Keys stay snake_case on the wire, as the rendering API expects.
    """

    model_config = ConfigDict(extra="allow", protected_namespaces=())

    model_id: str = Field(..., description="Controlnet model identifier")
    preprocessor: str = Field(..., description="Preprocessor name (e.g. 'canny')")
    conditioning_scale: float | None = Field(
        default=None, description="Conditioning strength"
    )
    enabled: bool = Field(default=True, description="Whether the controlnet is active")


class Scene(_WireModel):
    """A time-boxed visual prompt covering ``[start_sec, end_sec)``.

    Everything other than the id and the time range is opaque payload
    for the prompt-apply sink. Unknown keys are kept and forwarded.
    """

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()), description="Stable scene identifier"
    )
    start_sec: float = Field(..., ge=0, description="Start time in seconds (inclusive)")
    end_sec: float = Field(..., description="End time in seconds (exclusive)")
    prompt: str = Field(default="", description="Visual generation prompt")
    negative_prompt: str = Field(default="", description="Negative prompt")
    steps: int | None = Field(default=None, description="Diffusion steps")
    controlnets: list[ControlNet] = Field(
        default_factory=list, description="Controlnet directives"
    )

    @model_validator(mode="after")
    def _check_range(self) -> Scene:
        if self.end_sec <= self.start_sec:
            raise ValueError(
                f"Scene {self.id!r} has an empty range: "
                f"[{self.start_sec}, {self.end_sec})"
            )
        return self

    @property
    def duration(self) -> float:
        """Duration of the scene in seconds."""
        return self.end_sec - self.start_sec

    def contains(self, t: float) -> bool:
        """True if ``t`` falls inside the half-open scene interval."""
        return self.start_sec <= t < self.end_sec


class ScenePlan(_WireModel):
    """Ordered, gapless sequence of scenes for one audio track."""

    duration_sec: float = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("durationSec", "totalDurationSec", "duration_sec"),
        serialization_alias="durationSec",
        description="Total audio duration in seconds",
    )
    scenes: list[Scene] = Field(..., min_length=1, description="Scenes sorted by start time")

    def is_contiguous(self, tolerance: float = 1e-6) -> bool:
        """Check the coverage invariant without raising.

        True when the first scene starts at 0, every scene ends where the
        next one starts, and the last one ends at ``duration_sec``.
        """
        if abs(self.scenes[0].start_sec) > tolerance:
            return False
        for prev, nxt in zip(self.scenes, self.scenes[1:]):
            if abs(prev.end_sec - nxt.start_sec) > tolerance:
                return False
        return abs(self.scenes[-1].end_sec - self.duration_sec) <= tolerance

    def to_dict(self) -> dict:
        """Export to the camelCase wire format."""
        return self.model_dump(by_alias=True)

    def to_json(self, path: str | Path | None = None, indent: int = 2) -> str:
        """Export to JSON string, optionally writing to a file.

        Args:
            path: Optional file path to write JSON to.
            indent: JSON indentation level.

        Returns:
            JSON string representation.
        """
        json_str = self.model_dump_json(by_alias=True, indent=indent)
        if path is not None:
            Path(path).write_text(json_str)
        return json_str

    @classmethod
    def from_json(cls, path: str | Path) -> ScenePlan:
        """Load a plan from a JSON file in wire format."""
        return cls.model_validate_json(Path(path).read_text())
