"""ledpanel models."""

from ledpanel.models.levels import ChannelLevel, LevelVector
from ledpanel.models.log_event import LogEvent, LogEventKind
from ledpanel.models.messages import LevelCommand, LevelStateMessage, SensorMessage
from ledpanel.models.preset import (
    BUILTIN_PRESETS,
    UNAVAILABLE_PRESET,
    CreatePresetRequest,
    CreatePresetResponse,
    Preset,
)
from ledpanel.models.sensor import SensorState

__all__ = [
    "BUILTIN_PRESETS",
    "ChannelLevel",
    "CreatePresetRequest",
    "CreatePresetResponse",
    "LevelCommand",
    "LevelStateMessage",
    "LevelVector",
    "LogEvent",
    "LogEventKind",
    "Preset",
    "SensorMessage",
    "SensorState",
    "UNAVAILABLE_PRESET",
]
