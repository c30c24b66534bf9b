from __future__ import annotations

from ledpanel.models.sensor import SensorState
from ledpanel.state.bus import EventBus
from ledpanel.state.events import AutomationToggled, PanelEvent, SensorChanged


def test_handlers_receive_only_their_event_type() -> None:
    bus = EventBus()
    sensor_events: list[SensorChanged] = []
    all_events: list[PanelEvent] = []
    bus.subscribe(SensorChanged, sensor_events.append)
    bus.subscribe(PanelEvent, all_events.append)

    bus.publish(AutomationToggled(enabled=True))
    bus.publish(SensorChanged(previous=SensorState.UNKNOWN, current=SensorState.CLEAR))

    assert len(sensor_events) == 1
    assert len(all_events) == 2


def test_failing_handler_does_not_block_others() -> None:
    bus = EventBus()
    seen: list[AutomationToggled] = []

    def _broken(_event: AutomationToggled) -> None:
        raise RuntimeError("subscriber bug")

    bus.subscribe(AutomationToggled, _broken)
    bus.subscribe(AutomationToggled, seen.append)

    bus.publish(AutomationToggled(enabled=False))

    assert len(seen) == 1


def test_unsubscribe() -> None:
    bus = EventBus()
    seen: list[AutomationToggled] = []
    unsubscribe = bus.subscribe(AutomationToggled, seen.append)

    unsubscribe()
    unsubscribe()
    bus.publish(AutomationToggled(enabled=True))

    assert seen == []
