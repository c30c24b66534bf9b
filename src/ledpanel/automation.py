"""Motion-triggered automation.

When armed, a PIR change to ``detected`` applies the configured "on"
levels and a change to ``clear`` applies the "off" levels; each
application is followed by a best-effort audit log post.

| sensor transition | action                         |
|-------------------|--------------------------------|
| -> detected       | apply on_levels, log PIR_ON    |
| -> clear          | apply off_levels, log PIR_OFF  |
| -> unknown        | nothing                        |

Arming does not look at the current sensor value: the first action
happens on the next change after ``set_enabled(True)``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence

from ledpanel._tasks import TaskTracker
from ledpanel.config import AutomationConfig
from ledpanel.models.log_event import LogEvent, LogEventKind
from ledpanel.models.sensor import SensorState
from ledpanel.state.bus import EventBus
from ledpanel.state.events import AutomationToggled, SensorChanged
from ledpanel.state.mirror import DeviceStateMirror
from ledpanel.state.sensor import SensorStateTracker

_logger = logging.getLogger(__name__)

LogSink = Callable[[LogEvent], Awaitable[None]]


class AutomationEngine:
    """Reacts to sensor transitions by applying presets.

    Owns only its ``enabled`` flag; levels belong to the mirror and the
    sensor value to the tracker.
    """

    def __init__(
        self,
        *,
        bus: EventBus,
        mirror: DeviceStateMirror,
        tracker: SensorStateTracker,
        config: AutomationConfig | None = None,
        log_sink: LogSink | None = None,
        tasks: TaskTracker | None = None,
    ) -> None:
        self._bus = bus
        self._mirror = mirror
        self._tracker = tracker
        self._config = config if config is not None else AutomationConfig()
        self._enabled = self._config.enabled
        self._log_sink = log_sink
        self._tasks = tasks if tasks is not None else TaskTracker()
        self._unsubscribe = bus.subscribe(SensorChanged, self._on_sensor_changed)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def config(self) -> AutomationConfig:
        return self._config

    @property
    def sensor_state(self) -> SensorState:
        return self._tracker.state

    def set_enabled(self, enabled: bool) -> None:
        """Arm or disarm the automation. Does not evaluate the current sensor value."""
        enabled = bool(enabled)
        if enabled == self._enabled:
            return
        self._enabled = enabled
        _logger.info("Motion automation %s", "enabled" if enabled else "disabled")
        self._bus.publish(AutomationToggled(enabled=enabled))

    def apply_preset(self, levels: Sequence[int]) -> int:
        """Set all channels optimistically and publish one command per channel.

        Returns the number of commands the transport accepted.
        """
        return self._mirror.apply_levels(levels)

    def detach(self) -> None:
        """Stop listening for sensor changes."""
        self._unsubscribe()

    def _on_sensor_changed(self, event: SensorChanged) -> None:
        if not self._enabled:
            return
        if event.current == SensorState.DETECTED:
            levels, kind = self._config.on_levels, LogEventKind.PIR_ON
        elif event.current == SensorState.CLEAR:
            levels, kind = self._config.off_levels, LogEventKind.PIR_OFF
        else:
            return

        _logger.debug("PIR %s: applying %s", event.current, list(levels))
        self.apply_preset(levels)
        self._emit(kind, f"PIR {event.current}: applied levels {list(levels)}")

    def _emit(self, kind: LogEventKind, details: str) -> None:
        sink = self._log_sink
        if sink is None:
            return
        event = LogEvent(event=kind, details=details)
        coro = self._send_log(sink, event)
        try:
            self._tasks.spawn(coro, name=f"ledpanel-log-{kind}")
        except RuntimeError:
            coro.close()
            _logger.debug("No running event loop; audit event %s not sent", kind)

    @staticmethod
    async def _send_log(sink: LogSink, event: LogEvent) -> None:
        # At most once: no retry on failure.
        try:
            await sink(event)
        except Exception:
            _logger.warning("Audit log %s could not be delivered", event.event, exc_info=True)
