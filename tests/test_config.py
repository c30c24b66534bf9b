from __future__ import annotations

import pytest

from ledpanel.config import AutomationConfig, PanelConfig
from ledpanel.exceptions import PanelConfigError


def test_defaults() -> None:
    config = PanelConfig(api_base_url="http://backend.test/api/")

    assert config.api_base_url == "http://backend.test/api"
    assert config.device_id == "esp32-01"
    assert config.broker_url == "ws://broker.emqx.io:8083/mqtt"
    assert config.automation == AutomationConfig()
    assert config.automation.enabled is False


@pytest.mark.parametrize("device_id", ["", "a/b", "dev+", "#"])
def test_device_id_must_be_single_topic_level(device_id: str) -> None:
    with pytest.raises(PanelConfigError):
        PanelConfig(api_base_url="http://x", device_id=device_id)


def test_automation_levels_are_validated() -> None:
    with pytest.raises(PanelConfigError):
        AutomationConfig(on_levels=(1, 2))  # type: ignore[arg-type]
    with pytest.raises(PanelConfigError):
        AutomationConfig(off_levels=(0, 0, 256))


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LEDPANEL_API_BASE_URL", "http://nas:8000")
    monkeypatch.setenv("LEDPANEL_DEVICE_ID", "esp32-07")
    monkeypatch.setenv("LEDPANEL_BROKER_URL", "mqtt://10.0.0.5")
    monkeypatch.setenv("LEDPANEL_MQTT_KEEPALIVE", "30")
    monkeypatch.setenv("LEDPANEL_AUTOMATION_ENABLED", "yes")
    monkeypatch.setenv("LEDPANEL_AUTOMATION_ON_LEVELS", "200, 150, 100")

    config = PanelConfig.from_env()

    assert config.api_base_url == "http://nas:8000"
    assert config.device_id == "esp32-07"
    assert config.broker_url == "mqtt://10.0.0.5"
    assert config.mqtt_keepalive == 30
    assert config.automation.enabled is True
    assert config.automation.on_levels == (200, 150, 100)
    assert config.automation.off_levels == (0, 0, 0)


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LEDPANEL_API_BASE_URL", "http://nas:8000")
    monkeypatch.setenv("LEDPANEL_MQTT_KEEPALIVE", "30")

    config = PanelConfig.from_env(
        device_id="bench",
        mqtt_keepalive=90,
        automation={"enabled": True},
    )

    assert config.device_id == "bench"
    assert config.mqtt_keepalive == 90
    assert config.automation.enabled is True


def test_from_env_requires_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LEDPANEL_API_BASE_URL", raising=False)

    with pytest.raises(PanelConfigError):
        PanelConfig.from_env()


def test_from_env_rejects_bad_levels(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LEDPANEL_API_BASE_URL", "http://nas:8000")
    monkeypatch.setenv("LEDPANEL_AUTOMATION_OFF_LEVELS", "0,zero,0")

    with pytest.raises(PanelConfigError):
        PanelConfig.from_env()
