"""Internal MQTT connection manager and payload parsing."""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType
from typing import Any, cast
from urllib.parse import urlsplit

import paho.mqtt.client as mqtt

from ledpanel._constants import COMMAND_TOPIC, SENSOR_TOPIC, STATE_TOPIC, TOPIC_PREFIX
from ledpanel.config import PanelConfig
from ledpanel.exceptions import PanelConfigError, PanelConnectionError, PanelParseError

_logger = logging.getLogger(__name__)

MessageHandler = Callable[[str, dict[str, Any]], None]


@dataclass(frozen=True)
class DeviceTopics:
    """MQTT topics for one device."""

    command: str
    state: str
    sensor: str

    @classmethod
    def for_device(cls, device_id: str) -> DeviceTopics:
        fields = {"prefix": TOPIC_PREFIX, "device_id": device_id}
        return cls(
            command=COMMAND_TOPIC.format(**fields),
            state=STATE_TOPIC.format(**fields),
            sensor=SENSOR_TOPIC.format(**fields),
        )

    @property
    def subscriptions(self) -> tuple[str, ...]:
        return (self.state, self.sensor)


@dataclass(frozen=True)
class BrokerEndpoint:
    """Parsed broker URL."""

    host: str
    port: int
    transport: str
    tls: bool
    path: str = "/mqtt"


_SCHEMES: dict[str, tuple[str, bool, int]] = {
    "mqtt": ("tcp", False, 1883),
    "tcp": ("tcp", False, 1883),
    "mqtts": ("tcp", True, 8883),
    "ssl": ("tcp", True, 8883),
    "ws": ("websockets", False, 80),
    "wss": ("websockets", True, 443),
}


def parse_broker_url(url: str) -> BrokerEndpoint:
    """Split a broker URL into paho connection parameters.

    A bare ``host[:port]`` is treated as plain MQTT over TCP.
    """
    value = url.strip()
    if not value:
        raise PanelConfigError("Broker URL is empty")
    if "://" not in value:
        value = f"mqtt://{value}"

    parts = urlsplit(value)
    scheme = parts.scheme.lower()
    if scheme not in _SCHEMES:
        raise PanelConfigError(f"Unsupported broker scheme {parts.scheme!r} in {url!r}")
    if not parts.hostname:
        raise PanelConfigError(f"Broker URL {url!r} has no host")

    transport, tls, default_port = _SCHEMES[scheme]
    try:
        port = parts.port or default_port
    except ValueError as exc:
        raise PanelConfigError(f"Broker URL {url!r} has an invalid port") from exc
    return BrokerEndpoint(
        host=parts.hostname,
        port=port,
        transport=transport,
        tls=tls,
        path=parts.path or "/mqtt",
    )


def decode_payload(topic: str, payload: bytes | str) -> dict[str, Any]:
    """Decode an inbound MQTT payload into a JSON object."""
    try:
        text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
        parsed = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PanelParseError(f"Invalid JSON on {topic}: {exc}", topic=topic) from exc
    if not isinstance(parsed, dict):
        raise PanelParseError(f"Expected a JSON object on {topic}, got {type(parsed).__name__}", topic=topic)
    return parsed


def _default_client_factory(client_id: str, transport: str) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
        client_id=client_id,
        transport=transport,
    )


class ChannelConnection:
    """One MQTT connection for the lifetime of a panel.

    paho runs its network loop on a background thread; inbound messages
    are handed to the asyncio loop with ``call_soon_threadsafe`` so that
    every state mutation happens on the loop.
    """

    def __init__(
        self,
        *,
        config: PanelConfig,
        loop: asyncio.AbstractEventLoop,
        on_message: MessageHandler,
        topics: DeviceTopics | None = None,
        client_factory: Callable[[str, str], Any] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._loop = loop
        self._on_message = on_message
        self._topics = topics or DeviceTopics.for_device(config.device_id)
        self._client_factory = client_factory or _default_client_factory
        self._logger = logger or _logger
        self._client: Any = None
        self._connected = False
        self._closed = False

    @property
    def topics(self) -> DeviceTopics:
        return self._topics

    @property
    def is_connected(self) -> bool:
        """Whether the broker has acknowledged the connection."""
        return self._connected

    def __enter__(self) -> ChannelConnection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def connect(self, url: str | None = None) -> None:
        """Connect to the broker and start the network loop.

        Subscriptions are (re)issued on every successful CONNACK. Raises
        :class:`PanelConnectionError` when the broker cannot be reached.
        Blocking; call from an executor when on the event loop.
        """
        if self._closed:
            raise PanelConnectionError("Connection already closed")
        if self._client is not None:
            return

        endpoint = parse_broker_url(url or self._config.broker_url)
        client_id = self._config.mqtt_client_id or f"ledpanel-{secrets.token_hex(4)}"
        self._logger.debug(
            "MQTT connect requested host=%s port=%s transport=%s tls=%s client_id=%s",
            endpoint.host,
            endpoint.port,
            endpoint.transport,
            endpoint.tls,
            client_id,
        )

        client = self._client_factory(client_id, endpoint.transport)
        client.enable_logger(self._logger)
        if endpoint.transport == "websockets":
            client.ws_set_options(path=endpoint.path)
        if endpoint.tls:
            client.tls_set()
        if self._config.mqtt_username:
            client.username_pw_set(self._config.mqtt_username, self._config.mqtt_password)
        client.reconnect_delay_set(
            min_delay=self._config.reconnect_min_delay,
            max_delay=self._config.reconnect_max_delay,
        )

        client.on_connect = self._on_connect
        client.on_message = self._on_paho_message
        client.on_disconnect = self._on_disconnect

        try:
            client.connect(endpoint.host, endpoint.port, keepalive=self._config.mqtt_keepalive)
        except (OSError, ValueError) as exc:
            raise PanelConnectionError(f"Cannot reach broker {endpoint.host}:{endpoint.port}: {exc}") from exc

        client.loop_start()
        self._client = client
        self._logger.debug("MQTT network loop started")

    def _on_connect(
        self,
        client: Any,
        _userdata: Any,
        _flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        if getattr(reason_code, "is_failure", False):
            self._logger.warning("MQTT connect failed: %s", reason_code)
            return
        self._connected = True
        self._logger.debug("MQTT connected reason=%s", reason_code)
        for topic in self._topics.subscriptions:
            self._logger.debug("MQTT subscribing topic=%s", topic)
            client.subscribe(topic, qos=0)

    def _on_disconnect(
        self,
        _client: Any,
        _userdata: Any,
        _disconnect_flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        was_connected = self._connected
        self._connected = False
        if was_connected and not self._closed:
            self._logger.warning("MQTT disconnected: %s", reason_code)

    def _on_paho_message(self, _client: Any, _userdata: Any, msg: Any) -> None:
        try:
            self._loop.call_soon_threadsafe(self.handle_message, msg.topic, msg.payload)
        except RuntimeError:
            # Loop already closed during teardown.
            self._logger.debug("Dropping MQTT message on %s; event loop closed", msg.topic)

    def handle_message(self, topic: str, raw_payload: bytes | str) -> None:
        """Parse and dispatch one inbound message. Runs on the event loop."""
        try:
            payload = decode_payload(topic, raw_payload)
        except PanelParseError as exc:
            self._logger.warning("Dropping malformed MQTT message: %s", exc)
            return

        self._logger.debug("Received PUBLISH topic=%s payload=%s", topic, payload)
        try:
            self._on_message(topic, payload)
        except Exception:
            self._logger.exception("MQTT message handler failed for topic=%s", topic)

    def publish(self, topic: str, payload: str) -> bool:
        """Send *payload* on *topic* with QoS 0. Returns ``False`` if not sent."""
        client = self._client
        if client is None or self._closed:
            self._logger.debug("MQTT publish skipped on %s; not connected", topic)
            return False
        try:
            info = client.publish(topic, payload, qos=0)
        except (OSError, ValueError):
            self._logger.warning("MQTT publish failed on %s", topic, exc_info=True)
            return False
        rc = getattr(info, "rc", mqtt.MQTT_ERR_SUCCESS)
        if rc != mqtt.MQTT_ERR_SUCCESS:
            self._logger.warning("MQTT publish on %s not accepted rc=%s", topic, rc)
            return False
        self._logger.debug("Sent PUBLISH topic=%s payload=%s", topic, payload)
        return True

    def close(self) -> None:
        """Disconnect and stop the network loop. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        client = self._client
        self._client = None
        was_connected = self._connected
        self._connected = False
        if client is None:
            return
        try:
            if was_connected:
                self._logger.debug("MQTT disconnect requested")
            client.disconnect()
        except Exception:
            self._logger.debug("MQTT disconnect failed", exc_info=True)
        finally:
            try:
                client.loop_stop()
            except Exception:
                self._logger.debug("MQTT loop stop failed", exc_info=True)
            self._logger.debug("MQTT network loop stopped")
