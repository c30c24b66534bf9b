from __future__ import annotations

import json

import pytest

from ledpanel.exceptions import PanelValidationError
from ledpanel.publisher import CommandPublisher


class _Sender:
    def __init__(self, accept: bool = True) -> None:
        self.sent: list[tuple[str, str]] = []
        self.accept = accept

    def publish(self, topic: str, payload: str) -> bool:
        self.sent.append((topic, payload))
        return self.accept


def test_publish_encodes_canonical_command() -> None:
    sender = _Sender()
    publisher = CommandPublisher(sender, "home/esp32/esp32-01/led/set")

    assert publisher.publish(1, 128) is True

    assert sender.sent == [("home/esp32/esp32-01/led/set", '{"led":1,"level":128}')]
    assert json.loads(sender.sent[0][1]) == {"led": 1, "level": 128}


def test_publish_reports_dropped_command() -> None:
    publisher = CommandPublisher(_Sender(accept=False), "t")

    assert publisher.publish(0, 0) is False


@pytest.mark.parametrize("index,level", [(3, 10), (0, 300), (-1, 0)])
def test_publish_rejects_invalid_channel_level(index: int, level: int) -> None:
    sender = _Sender()
    publisher = CommandPublisher(sender, "t")

    with pytest.raises(PanelValidationError):
        publisher.publish(index, level)

    assert sender.sent == []
