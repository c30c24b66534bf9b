"""MQTT wire messages exchanged with the device.

Topics ``led/set`` and ``led/state`` share the same ``{led, level}``
schema; ``sensor/pir`` carries ``{pir}``.
"""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from ledpanel.models._base import Level, PanelBaseModel


class LevelCommand(PanelBaseModel):
    """Outbound command for a single channel."""

    led: int
    level: Level

    def to_payload(self) -> str:
        """Canonical compact JSON, e.g. ``{"led":1,"level":128}``."""
        return self.model_dump_json(by_alias=True)


class LevelStateMessage(PanelBaseModel):
    """Device echo on the state topic.

    ``led`` is not range-checked here: out-of-range channels are the
    mirror's call to ignore, not a malformed payload.
    """

    led: int
    level: Level


class SensorMessage(PanelBaseModel):
    """PIR reading from the sensor topic.

    A message without ``pir`` reads as ``unknown``.
    """

    pir: str = "unknown"

    @field_validator("pir", mode="before")
    @classmethod
    def _coerce_to_str(cls, value: Any) -> str:
        return str(value)
