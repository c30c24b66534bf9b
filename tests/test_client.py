from __future__ import annotations

import asyncio
import json
import threading
from dataclasses import dataclass, field
from typing import Any

import pytest

from fakes import FakePahoFactory
from ledpanel.client import LightPanel
from ledpanel.config import AutomationConfig, PanelConfig
from ledpanel.exceptions import PanelApiError, PanelError, PanelValidationError
from ledpanel.models.preset import Preset
from ledpanel.models.sensor import SensorState
from ledpanel.state.events import LevelChanged

STATE_TOPIC = "home/esp32/esp32-01/led/state"
SENSOR_TOPIC = "home/esp32/esp32-01/sensor/pir"
COMMAND_TOPIC = "home/esp32/esp32-01/led/set"


@dataclass
class FakeBackend:
    calls: list[tuple[str, str, Any]] = field(default_factory=list)
    block_logs: asyncio.Event | None = None

    async def request_json(self, method: str, endpoint: str, *, body: Any = None) -> Any:
        self.calls.append((method, endpoint, body))
        if endpoint == "/logs" and self.block_logs is not None:
            await self.block_logs.wait()
        if method == "GET" and endpoint == "/presets":
            return [{"id": "1", "name": "Warm", "levels": [255, 180, 50]}]
        return None


class _DownBackend:
    async def request_json(self, method: str, endpoint: str, *, body: Any = None) -> Any:
        raise PanelApiError("refused", endpoint=endpoint)


def _published(factory: FakePahoFactory) -> list[dict[str, int]]:
    return [json.loads(payload) for topic, payload, _qos in factory.last.published if topic == COMMAND_TOPIC]


@pytest.mark.asyncio
async def test_device_echo_updates_mirror_without_publishing(
    config: PanelConfig, paho_factory: FakePahoFactory
) -> None:
    async with LightPanel(config, transport=FakeBackend(), mqtt_client_factory=paho_factory) as panel:
        paho_factory.last.fire_connack()
        assert panel.levels.as_list() == [0, 0, 0]

        panel.handle_message(STATE_TOPIC, {"led": 1, "level": 128})

        assert panel.levels.as_list() == [0, 128, 0]
        assert _published(paho_factory) == []


@pytest.mark.asyncio
async def test_set_level_and_apply_preset_publish_commands(
    config: PanelConfig, paho_factory: FakePahoFactory
) -> None:
    async with LightPanel(config, transport=FakeBackend(), mqtt_client_factory=paho_factory) as panel:
        paho_factory.last.fire_connack()
        assert panel.is_connected

        panel.set_level(2, 64)
        assert panel.apply_preset(Preset(name="Movie", levels=(20, 20, 150))) == 3

        assert panel.levels.as_list() == [20, 20, 150]
        assert _published(paho_factory) == [
            {"led": 2, "level": 64},
            {"led": 0, "level": 20},
            {"led": 1, "level": 20},
            {"led": 2, "level": 150},
        ]


@pytest.mark.asyncio
async def test_routes_sensor_messages_and_drops_bad_payloads(
    config: PanelConfig, paho_factory: FakePahoFactory
) -> None:
    async with LightPanel(config, transport=FakeBackend(), mqtt_client_factory=paho_factory) as panel:
        changes: list[LevelChanged] = []
        panel.bus.subscribe(LevelChanged, changes.append)

        panel.handle_message(SENSOR_TOPIC, {"pir": "detected"})
        panel.handle_message(STATE_TOPIC, {"led": 0, "level": 999})
        panel.handle_message(STATE_TOPIC, {"level": 10})
        panel.handle_message("home/esp32/other/led/state", {"led": 0, "level": 10})

        assert panel.sensor_state == SensorState.DETECTED
        assert changes == []


@pytest.mark.asyncio
async def test_motion_automation_end_to_end(paho_factory: FakePahoFactory) -> None:
    config = PanelConfig(
        api_base_url="http://backend.test",
        automation=AutomationConfig(enabled=True, on_levels=(255, 255, 255), off_levels=(0, 0, 0)),
    )
    backend = FakeBackend()
    async with LightPanel(config, transport=backend, mqtt_client_factory=paho_factory) as panel:
        paho_factory.last.fire_connack()

        panel.handle_message(SENSOR_TOPIC, {"pir": "detected"})
        await panel._tasks.drain()  # noqa: SLF001

        assert panel.levels.as_list() == [255, 255, 255]
        assert len(_published(paho_factory)) == 3
        log_calls = [c for c in backend.calls if c[1] == "/logs"]
        assert len(log_calls) == 1
        assert log_calls[0][2]["event"] == "PIR_ON"


@pytest.mark.asyncio
async def test_unreachable_broker_is_not_fatal(config: PanelConfig) -> None:
    factory = FakePahoFactory(fail_connect=True)
    backend = FakeBackend()

    async with LightPanel(config, transport=backend, mqtt_client_factory=factory) as panel:
        assert not panel.is_connected
        assert panel.set_level(0, 10) is False
        assert panel.levels.as_list() == [10, 0, 0]

        presets = await panel.refresh_presets()

    assert [p.name for p in presets] == ["Warm"]


@pytest.mark.asyncio
async def test_close_cancels_pending_log_posts_and_releases_connection(paho_factory: FakePahoFactory) -> None:
    config = PanelConfig(api_base_url="http://backend.test", automation=AutomationConfig(enabled=True))
    backend = FakeBackend(block_logs=asyncio.Event())
    panel = LightPanel(config, transport=backend, mqtt_client_factory=paho_factory)

    await panel.__aenter__()
    panel.handle_message(SENSOR_TOPIC, {"pir": "detected"})
    await asyncio.sleep(0)
    assert len(panel._tasks) == 1  # noqa: SLF001

    await panel.close()
    await panel.close()

    assert len(panel._tasks) == 0  # noqa: SLF001
    assert paho_factory.last.loop_stopped == 1
    assert paho_factory.last.disconnected == 1
    assert paho_factory.last.loop_stop_thread not in (None, threading.get_ident())


@pytest.mark.asyncio
async def test_presets_require_open_panel_with_default_transport(config: PanelConfig) -> None:
    panel = LightPanel(config)

    with pytest.raises(PanelError):
        await panel._transport.request_json("GET", "/presets")  # noqa: SLF001


@pytest.mark.asyncio
async def test_sensor_message_without_pir_reads_as_unknown(
    config: PanelConfig, paho_factory: FakePahoFactory
) -> None:
    async with LightPanel(config, transport=FakeBackend(), mqtt_client_factory=paho_factory) as panel:
        panel.handle_message(SENSOR_TOPIC, {"pir": "detected"})
        panel.handle_message(SENSOR_TOPIC, {})

        assert panel.sensor_state == SensorState.UNKNOWN


@pytest.mark.asyncio
async def test_apply_preset_by_name_prefers_backend_then_builtins(
    config: PanelConfig, paho_factory: FakePahoFactory
) -> None:
    async with LightPanel(config, transport=FakeBackend(), mqtt_client_factory=paho_factory) as panel:
        assert [p.name for p in panel.builtin_presets] == ["All Off", "All On", "Reading", "Movie", "Warm"]

        panel.apply_preset("Movie")
        assert panel.levels.as_list() == [20, 20, 150]

        await panel.refresh_presets()
        assert panel.find_preset("Warm").id == "1"

        with pytest.raises(PanelValidationError):
            panel.apply_preset("Disco")
        assert panel.levels.as_list() == [20, 20, 150]


@pytest.mark.asyncio
async def test_builtin_presets_survive_unavailable_backend(
    config: PanelConfig, paho_factory: FakePahoFactory
) -> None:
    async with LightPanel(config, transport=_DownBackend(), mqtt_client_factory=paho_factory) as panel:
        await panel.refresh_presets()
        assert panel.presets_degraded

        with pytest.raises(PanelValidationError):
            panel.find_preset("Presets unavailable")
        assert panel.apply_preset("All On") == 3
        assert panel.levels.as_list() == [255, 255, 255]
