"""High-level async control panel for an ESP32 three-channel LED device."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

import aiohttp
from pydantic import ValidationError

from ledpanel._api.logs import post_log
from ledpanel._mqtt import ChannelConnection, DeviceTopics
from ledpanel._tasks import TaskTracker
from ledpanel._transport import RestTransport, Transport
from ledpanel.automation import AutomationEngine
from ledpanel.config import PanelConfig
from ledpanel.exceptions import PanelConnectionError, PanelError, PanelValidationError
from ledpanel.models.levels import LevelVector
from ledpanel.models.log_event import LogEvent
from ledpanel.models.messages import LevelStateMessage, SensorMessage
from ledpanel.models.preset import BUILTIN_PRESETS, UNAVAILABLE_PRESET, Preset
from ledpanel.models.sensor import SensorState
from ledpanel.presets import AlertHandler, PresetRepository
from ledpanel.publisher import CommandPublisher
from ledpanel.state.bus import EventBus
from ledpanel.state.mirror import DeviceStateMirror
from ledpanel.state.sensor import SensorStateTracker

_logger = logging.getLogger(__name__)


class _DeferredTransport:
    """Forwards to the REST transport once the HTTP session exists."""

    def __init__(self) -> None:
        self.target: Transport | None = None

    async def request_json(self, method: str, endpoint: str, *, body: Any = None) -> Any:
        if self.target is None:
            raise PanelError("LightPanel is not open; use 'async with LightPanel(...)'")
        return await self.target.request_json(method, endpoint, body=body)


class LightPanel:
    """Async control panel.

    Usage::

        async with LightPanel(config) as panel:
            panel.set_level(0, 128)
            await panel.refresh_presets()

    The MQTT connection is acquired once on enter and released once on
    exit. A broker that cannot be reached is logged and tolerated: local
    state and the preset store keep working.
    """

    def __init__(
        self,
        config: PanelConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        on_alert: AlertHandler | None = None,
        mqtt_client_factory: Callable[[str, str], Any] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._mqtt_client_factory = mqtt_client_factory
        self._loop: asyncio.AbstractEventLoop | None = None
        self._connection: ChannelConnection | None = None
        self._closed = False

        self._topics = DeviceTopics.for_device(config.device_id)
        self._deferred_transport: _DeferredTransport | None = None
        if transport is None:
            self._deferred_transport = _DeferredTransport()
            transport = self._deferred_transport
        self._transport: Transport = transport

        self._bus = EventBus()
        self._tasks = TaskTracker()
        self._mirror = DeviceStateMirror(self._bus)
        self._tracker = SensorStateTracker(self._bus)
        self._presets = PresetRepository(self._transport, bus=self._bus, on_alert=on_alert)
        self._automation = AutomationEngine(
            bus=self._bus,
            mirror=self._mirror,
            tracker=self._tracker,
            config=config.automation,
            log_sink=self._post_log,
            tasks=self._tasks,
        )

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LightPanel:
        self._loop = asyncio.get_running_loop()
        if self._deferred_transport is not None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._deferred_transport.target = RestTransport(self._config.api_base_url, self._http_session)

        connection = ChannelConnection(
            config=self._config,
            loop=self._loop,
            on_message=self.handle_message,
            topics=self._topics,
            client_factory=self._mqtt_client_factory,
            logger=_logger,
        )
        self.attach_connection(connection)
        try:
            await self._loop.run_in_executor(None, connection.connect, self._config.broker_url)
        except PanelConnectionError as exc:
            _logger.warning("MQTT connection failed, continuing without live updates: %s", exc)
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    def attach_connection(self, connection: ChannelConnection) -> None:
        """Wire *connection* as the command channel."""
        self._connection = connection
        self._mirror.attach_publisher(CommandPublisher(connection, self._topics.command))

    async def close(self) -> None:
        """Tear down: cancel background work, release the MQTT connection, close HTTP."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._tasks.cancel_all()
        finally:
            connection = self._connection
            self._connection = None
            self._mirror.attach_publisher(None)
            if connection is not None:
                try:
                    # loop_stop() joins the paho network thread.
                    await asyncio.get_running_loop().run_in_executor(None, connection.close)
                except Exception:
                    _logger.debug("MQTT connection close failed", exc_info=True)
            if not self._external_session and self._http_session is not None:
                await self._http_session.close()
                self._http_session = None
            if self._deferred_transport is not None:
                self._deferred_transport.target = None
            self._automation.detach()
            self._loop = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def config(self) -> PanelConfig:
        return self._config

    @property
    def bus(self) -> EventBus:
        """Event bus announcing level, sensor, automation and preset changes."""
        return self._bus

    @property
    def topics(self) -> DeviceTopics:
        return self._topics

    @property
    def levels(self) -> LevelVector:
        return self._mirror.levels

    @property
    def sensor_state(self) -> SensorState:
        return self._tracker.state

    @property
    def automation_enabled(self) -> bool:
        return self._automation.enabled

    @property
    def presets(self) -> tuple[Preset, ...]:
        return self._presets.presets

    @property
    def builtin_presets(self) -> tuple[Preset, ...]:
        """Local presets that work without the backend."""
        return BUILTIN_PRESETS

    @property
    def presets_degraded(self) -> bool:
        return self._presets.degraded

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and self._connection.is_connected

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def set_level(self, index: int, level: int) -> bool:
        """Set one channel optimistically and send the command."""
        return self._mirror.optimistic_set(index, level)

    def apply_preset(self, preset: Preset | str | Sequence[int]) -> int:
        """Apply a preset to all three channels.

        *preset* may be a :class:`Preset`, a raw level triple, or the name
        of a loaded or built-in preset.
        """
        if isinstance(preset, str):
            preset = self.find_preset(preset)
        levels = preset.levels if isinstance(preset, Preset) else preset
        return self._automation.apply_preset(levels)

    def find_preset(self, name: str) -> Preset:
        """Look up a preset by name, backend presets first, then built-ins."""
        for preset in (*self._presets.presets, *BUILTIN_PRESETS):
            if preset.name == name and preset is not UNAVAILABLE_PRESET:
                return preset
        raise PanelValidationError(f"No preset named {name!r}")

    def set_automation_enabled(self, enabled: bool) -> None:
        self._automation.set_enabled(enabled)

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    async def refresh_presets(self) -> tuple[Preset, ...]:
        return await self._presets.list()

    async def create_preset(self, name: str, levels: Sequence[int]) -> Preset | None:
        return await self._presets.create(name, levels)

    async def delete_preset(self, preset_id: str) -> bool:
        return await self._presets.delete(preset_id)

    # ------------------------------------------------------------------
    # Inbound messages
    # ------------------------------------------------------------------

    def handle_message(self, topic: str, payload: dict[str, Any]) -> None:
        """Route a decoded MQTT message to the mirror or the sensor tracker."""
        try:
            if topic == self._topics.state:
                state = LevelStateMessage.model_validate(payload)
                self._mirror.reconcile(state.led, state.level)
            elif topic == self._topics.sensor:
                reading = SensorMessage.model_validate(payload)
                self._tracker.update(reading.pir)
            else:
                _logger.debug("Ignoring message on unexpected topic %s", topic)
        except ValidationError as exc:
            _logger.warning(
                "Dropping unexpected payload on %s: %r (%d validation error(s))",
                topic,
                payload,
                exc.error_count(),
            )

    async def _post_log(self, event: LogEvent) -> None:
        await post_log(self._transport, event)
