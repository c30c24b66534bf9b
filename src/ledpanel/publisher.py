"""Outbound level commands."""

from __future__ import annotations

import logging
from typing import Protocol

from pydantic import ValidationError

from ledpanel.exceptions import PanelValidationError
from ledpanel.models.levels import ChannelLevel
from ledpanel.models.messages import LevelCommand

_logger = logging.getLogger(__name__)


class MessageSender(Protocol):
    def publish(self, topic: str, payload: str) -> bool:
        ...


class CommandPublisher:
    """Encodes ``{led, level}`` commands and sends them to the device.

    Fire-and-forget: there is no acknowledgement and no correlation id.
    Whether the device applied a command is only known from the echo it
    publishes on the state topic.
    """

    def __init__(self, sender: MessageSender, topic: str) -> None:
        self._sender = sender
        self._topic = topic

    @property
    def topic(self) -> str:
        return self._topic

    def publish(self, index: int, level: int) -> bool:
        """Send one channel level. Returns whether the transport accepted it."""
        try:
            channel = ChannelLevel(index=index, level=level)
        except ValidationError as exc:
            raise PanelValidationError(f"invalid channel command index={index} level={level}") from exc

        payload = LevelCommand(led=channel.index, level=channel.level).to_payload()
        sent = self._sender.publish(self._topic, payload)
        if not sent:
            _logger.debug("Level command for channel %d dropped", channel.index)
        return sent
