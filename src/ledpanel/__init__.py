"""ledpanel - Async control panel for an MQTT-connected three-channel LED device."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ledpanel")
except PackageNotFoundError:
    __version__ = "0+local"
from ledpanel.automation import AutomationEngine
from ledpanel.client import LightPanel
from ledpanel.config import AutomationConfig, PanelConfig
from ledpanel.exceptions import (
    PanelApiError,
    PanelConfigError,
    PanelConnectionError,
    PanelError,
    PanelParseError,
    PanelValidationError,
)
from ledpanel.models import (
    BUILTIN_PRESETS,
    UNAVAILABLE_PRESET,
    ChannelLevel,
    LevelVector,
    LogEvent,
    LogEventKind,
    Preset,
    SensorState,
)
from ledpanel.presets import PresetRepository
from ledpanel.state.bus import EventBus
from ledpanel.state.events import AutomationToggled, LevelChanged, LevelSource, PresetsChanged, SensorChanged

__all__ = [
    "__version__",
    "AutomationConfig",
    "AutomationEngine",
    "AutomationToggled",
    "BUILTIN_PRESETS",
    "ChannelLevel",
    "EventBus",
    "LevelChanged",
    "LevelSource",
    "LevelVector",
    "LightPanel",
    "LogEvent",
    "LogEventKind",
    "PanelApiError",
    "PanelConfig",
    "PanelConfigError",
    "PanelConnectionError",
    "PanelError",
    "PanelParseError",
    "PanelValidationError",
    "Preset",
    "PresetRepository",
    "PresetsChanged",
    "SensorChanged",
    "SensorState",
    "UNAVAILABLE_PRESET",
]
