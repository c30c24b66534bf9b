"""Typed events announced on the panel's event bus."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from ledpanel.models.levels import LevelVector
from ledpanel.models.preset import Preset
from ledpanel.models.sensor import SensorState


class LevelSource(StrEnum):
    LOCAL = "local"
    DEVICE = "device"


class PanelEvent(BaseModel):
    """Base for all bus events."""

    model_config = ConfigDict(frozen=True)

    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class LevelChanged(PanelEvent):
    """One channel of the mirrored level vector changed."""

    index: int
    level: int
    previous: int
    source: LevelSource
    levels: LevelVector = Field(..., description="Full vector after the change")


class SensorChanged(PanelEvent):
    previous: SensorState
    current: SensorState


class AutomationToggled(PanelEvent):
    enabled: bool


class PresetsChanged(PanelEvent):
    """The locally held preset list was replaced, appended to, or rolled back."""

    presets: tuple[Preset, ...]
    degraded: bool = False
