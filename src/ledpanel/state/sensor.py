"""Deduplicated PIR sensor tracker."""

from __future__ import annotations

import logging
from typing import Any

from ledpanel.models.sensor import SensorState
from ledpanel.state.bus import EventBus
from ledpanel.state.events import SensorChanged

_logger = logging.getLogger(__name__)


class SensorStateTracker:
    """Holds the latest sensor state and announces changes only.

    Rapid transitions are not queued; observers see whatever the latest
    change was when they were notified.
    """

    def __init__(self, bus: EventBus, *, initial: SensorState = SensorState.UNKNOWN) -> None:
        self._bus = bus
        self._state = initial

    @property
    def state(self) -> SensorState:
        return self._state

    def update(self, raw: Any) -> bool:
        """Coerce *raw* to a :class:`SensorState` and record it if it changed."""
        current = raw if isinstance(raw, SensorState) else SensorState(str(raw))
        previous = self._state
        if current == previous:
            return False
        self._state = current
        _logger.debug("PIR %s -> %s", previous, current)
        self._bus.publish(SensorChanged(previous=previous, current=current))
        return True
