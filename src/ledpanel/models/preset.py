"""Preset models and the built-in preset table."""

from __future__ import annotations

from pydantic import field_validator

from ledpanel._constants import UNAVAILABLE_PRESET_NAME
from ledpanel.models._base import LevelTriple, PanelBaseModel


class Preset(PanelBaseModel):
    """A named triple of channel intensities.

    ``id`` is assigned by the backend and is ``None`` until the server
    has confirmed the record (and for local built-ins).
    """

    id: str | None = None
    name: str
    levels: LevelTriple

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        # Backends commonly hand out integer ids; the id stays opaque.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("preset name must be non-empty")
        return name


class CreatePresetRequest(PanelBaseModel):
    """Body of ``POST /presets``."""

    name: str
    levels: LevelTriple


class CreatePresetResponse(PanelBaseModel):
    """Response of ``POST /presets``: ``{"newItem": {...}}``."""

    new_item: Preset


BUILTIN_PRESETS: tuple[Preset, ...] = (
    Preset(name="All Off", levels=(0, 0, 0)),
    Preset(name="All On", levels=(255, 255, 255)),
    Preset(name="Reading", levels=(200, 200, 100)),
    Preset(name="Movie", levels=(20, 20, 150)),
    Preset(name="Warm", levels=(255, 180, 50)),
)

UNAVAILABLE_PRESET = Preset(name=UNAVAILABLE_PRESET_NAME, levels=(0, 0, 0))
"""Sentinel shown in place of the preset list when the backend is unreachable."""
