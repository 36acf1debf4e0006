"""Data models for scenesync."""

from scenesync.models.schema import ControlNet, Scene, ScenePlan

__all__ = ["Scene", "ScenePlan", "ControlNet"]
