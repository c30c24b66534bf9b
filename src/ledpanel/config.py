"""Panel configuration for ledpanel."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from ledpanel._constants import DEFAULT_BROKER_URL, DEFAULT_DEVICE_ID, MAX_LEVEL, MIN_LEVEL, NUM_CHANNELS
from ledpanel.exceptions import PanelConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _parse_levels(value: str, *, name: str) -> tuple[int, int, int]:
    """Parse ``"255,180,50"`` into a level triple."""
    parts = [part.strip() for part in value.split(",") if part.strip()]
    try:
        levels = tuple(int(part) for part in parts)
    except ValueError as exc:
        raise PanelConfigError(f"{name} must be comma separated integers, got {value!r}") from exc
    return _check_levels(levels, name=name)


def _check_levels(levels: Any, *, name: str) -> tuple[int, int, int]:
    values = tuple(levels)
    if len(values) != NUM_CHANNELS:
        raise PanelConfigError(f"{name} needs exactly {NUM_CHANNELS} levels, got {len(values)}")
    for value in values:
        if not isinstance(value, int) or isinstance(value, bool) or not MIN_LEVEL <= value <= MAX_LEVEL:
            raise PanelConfigError(f"{name} levels must be integers in {MIN_LEVEL}..{MAX_LEVEL}, got {value!r}")
    return values  # type: ignore[return-value]


@dataclasses.dataclass(frozen=True)
class AutomationConfig:
    """Motion automation settings.

    Parameters
    ----------
    enabled : bool
        Whether the automation starts armed.
    on_levels : tuple[int, int, int]
        Levels applied when the PIR reports ``detected``.
    off_levels : tuple[int, int, int]
        Levels applied when the PIR reports ``clear``.
    """

    enabled: bool = False
    on_levels: tuple[int, int, int] = (255, 255, 255)
    off_levels: tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "on_levels", _check_levels(self.on_levels, name="on_levels"))
        object.__setattr__(self, "off_levels", _check_levels(self.off_levels, name="off_levels"))


@dataclasses.dataclass(frozen=True)
class PanelConfig:
    """Panel configuration.

    Parameters
    ----------
    api_base_url : str
        Base URL of the preset/log REST backend (e.g. ``"http://nas:8000/api"``).
    device_id : str
        Device identifier used to namespace the MQTT topics.
    broker_url : str
        MQTT broker URL. ``mqtt://``, ``mqtts://``, ``ws://`` and ``wss://``
        schemes are accepted.
    mqtt_client_id : str or None
        MQTT client id. A random ``ledpanel-<hex>`` id is used when unset.
    mqtt_username : str or None
        Optional broker username.
    mqtt_password : str or None
        Optional broker password (only sent when a username is set).
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    reconnect_min_delay : int
        Initial delay in seconds before paho retries a dropped connection.
    reconnect_max_delay : int
        Upper bound for paho's reconnect backoff.
    automation : AutomationConfig
        Motion automation settings.
    """

    api_base_url: str
    device_id: str = DEFAULT_DEVICE_ID
    broker_url: str = DEFAULT_BROKER_URL
    mqtt_client_id: str | None = None
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_keepalive: int = 60
    reconnect_min_delay: int = 1
    reconnect_max_delay: int = 120
    automation: AutomationConfig = dataclasses.field(default_factory=AutomationConfig)

    def __post_init__(self) -> None:
        base_url = self.api_base_url.strip().rstrip("/")
        if not base_url:
            raise PanelConfigError("api_base_url must be non-empty")
        object.__setattr__(self, "api_base_url", base_url)

        device_id = self.device_id.strip()
        if not device_id or any(ch in device_id for ch in "/+#"):
            raise PanelConfigError(f"device_id must be a single topic level, got {self.device_id!r}")
        object.__setattr__(self, "device_id", device_id)

        if self.reconnect_min_delay <= 0 or self.reconnect_max_delay < self.reconnect_min_delay:
            raise PanelConfigError("reconnect delays must satisfy 0 < min <= max")

    @classmethod
    def from_env(cls, **overrides: Any) -> PanelConfig:
        """Create configuration from environment variables.

        Reads ``LEDPANEL_API_BASE_URL`` and optional ``LEDPANEL_*``
        variables. Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        PanelConfig
            Populated configuration.
        """
        env = os.environ

        automation_override = overrides.pop("automation", None)
        if isinstance(automation_override, AutomationConfig):
            automation = automation_override
        else:
            automation_kwargs: dict[str, Any] = {
                "enabled": _env_bool(env.get("LEDPANEL_AUTOMATION_ENABLED"), False),
            }
            on_env = env.get("LEDPANEL_AUTOMATION_ON_LEVELS")
            if on_env is not None:
                automation_kwargs["on_levels"] = _parse_levels(on_env, name="LEDPANEL_AUTOMATION_ON_LEVELS")
            off_env = env.get("LEDPANEL_AUTOMATION_OFF_LEVELS")
            if off_env is not None:
                automation_kwargs["off_levels"] = _parse_levels(off_env, name="LEDPANEL_AUTOMATION_OFF_LEVELS")
            if isinstance(automation_override, dict):
                automation_kwargs.update(automation_override)
            automation = AutomationConfig(**automation_kwargs)

        _ENV_CONFIG_MAP = {
            "LEDPANEL_API_BASE_URL": "api_base_url",
            "LEDPANEL_DEVICE_ID": "device_id",
            "LEDPANEL_BROKER_URL": "broker_url",
            "LEDPANEL_MQTT_CLIENT_ID": "mqtt_client_id",
            "LEDPANEL_MQTT_USERNAME": "mqtt_username",
            "LEDPANEL_MQTT_PASSWORD": "mqtt_password",
        }
        config_kwargs: dict[str, Any] = {"automation": automation}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        keepalive_env = env.get("LEDPANEL_MQTT_KEEPALIVE")
        if keepalive_env is not None and "mqtt_keepalive" not in overrides:
            try:
                config_kwargs["mqtt_keepalive"] = int(keepalive_env)
            except ValueError as exc:
                raise PanelConfigError(f"LEDPANEL_MQTT_KEEPALIVE must be an integer, got {keepalive_env!r}") from exc

        config_kwargs.update(overrides)

        if "api_base_url" not in config_kwargs:
            raise PanelConfigError("LEDPANEL_API_BASE_URL is not set")

        return cls(**config_kwargs)
