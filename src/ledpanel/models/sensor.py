"""PIR sensor state."""

from __future__ import annotations

from enum import StrEnum


class SensorState(StrEnum):
    """Tri-state value reported by the motion sensor.

    Values the device sends that have no mapped member resolve to
    ``UNKNOWN`` instead of raising ``ValueError``.
    """

    UNKNOWN = "unknown"
    DETECTED = "detected"
    CLEAR = "clear"

    @classmethod
    def _missing_(cls, value: object) -> SensorState:
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.UNKNOWN
