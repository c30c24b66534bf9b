"""Device state mirror.

This is the only component allowed to mutate the mirrored level vector.
Local writes are applied optimistically and announced immediately;
device echoes arriving on the state topic are merged idempotently.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from pydantic import ValidationError

from ledpanel._constants import MAX_LEVEL, MIN_LEVEL, NUM_CHANNELS
from ledpanel.exceptions import PanelValidationError
from ledpanel.models.levels import LevelVector
from ledpanel.state.bus import EventBus
from ledpanel.state.events import LevelChanged, LevelSource

_logger = logging.getLogger(__name__)


class CommandSink(Protocol):
    """Anything that can push one channel level to the device."""

    def publish(self, index: int, level: int) -> bool:
        ...


class DeviceStateMirror:
    """In-memory view of the three channel levels.

    Ordering: the latest local write for a channel stands until a device
    echo for that same channel arrives; the echo then wins, whatever its
    value (the firmware may clamp or reject a command).
    """

    def __init__(
        self,
        bus: EventBus,
        publisher: CommandSink | None = None,
        *,
        initial: LevelVector | None = None,
    ) -> None:
        self._bus = bus
        self._publisher = publisher
        self._levels = initial if initial is not None else LevelVector()
        self._pending: set[int] = set()

    @property
    def levels(self) -> LevelVector:
        return self._levels

    @property
    def pending_channels(self) -> frozenset[int]:
        """Channels written locally and not yet echoed by the device."""
        return frozenset(self._pending)

    def attach_publisher(self, publisher: CommandSink | None) -> None:
        self._publisher = publisher

    def reconcile(self, index: int, level: int) -> bool:
        """Merge a device echo. Returns ``True`` if the vector changed.

        Out-of-range channels are ignored. An echo equal to the cached
        value is a no-op and emits nothing.
        """
        if not 0 <= index < NUM_CHANNELS:
            _logger.debug("Ignoring echo for out-of-range channel %s", index)
            return False
        if not MIN_LEVEL <= level <= MAX_LEVEL:
            _logger.debug("Ignoring echo with out-of-range level %s for channel %s", level, index)
            return False

        self._pending.discard(index)
        previous = self._levels[index]
        if previous == level:
            return False
        self._set(index, level, previous, LevelSource.DEVICE)
        return True

    def optimistic_set(self, index: int, level: int) -> bool:
        """Apply a local write, then send it to the device.

        The vector is updated before the command is published. Returns
        whether the publisher accepted the command.
        """
        self._check(index, level)
        previous = self._levels[index]
        self._pending.add(index)
        if previous != level:
            self._set(index, level, previous, LevelSource.LOCAL)
        return self._send(index, level)

    def apply_levels(self, levels: Sequence[int]) -> int:
        """Set all channels locally, then publish them one by one.

        There is no cross-channel atomicity: if a publish fails midway
        the device may end up with a mix of old and new levels until it
        echoes its actual state. Returns the number of accepted publishes.
        """
        try:
            target = LevelVector.of(levels)
        except ValidationError as exc:
            raise PanelValidationError(f"invalid levels {list(levels)!r}: {exc.error_count()} error(s)") from exc
        for index in range(NUM_CHANNELS):
            level = target[index]
            previous = self._levels[index]
            self._pending.add(index)
            if previous != level:
                self._set(index, level, previous, LevelSource.LOCAL)

        accepted = 0
        for index in range(NUM_CHANNELS):
            if self._send(index, target[index]):
                accepted += 1
        if accepted < NUM_CHANNELS:
            _logger.warning("Only %d of %d channel commands were accepted", accepted, NUM_CHANNELS)
        return accepted

    def _set(self, index: int, level: int, previous: int, source: LevelSource) -> None:
        self._levels = self._levels.with_level(index, level)
        _logger.debug("Channel %d: %d -> %d (%s)", index, previous, level, source)
        self._bus.publish(
            LevelChanged(
                index=index,
                level=level,
                previous=previous,
                source=source,
                levels=self._levels,
            )
        )

    def _send(self, index: int, level: int) -> bool:
        if self._publisher is None:
            _logger.debug("No publisher attached; channel %d command not sent", index)
            return False
        return self._publisher.publish(index, level)

    @staticmethod
    def _check(index: int, level: int) -> None:
        if not 0 <= index < NUM_CHANNELS:
            raise PanelValidationError(f"channel index must be in 0..{NUM_CHANNELS - 1}, got {index}")
        if not MIN_LEVEL <= level <= MAX_LEVEL:
            raise PanelValidationError(f"level must be in {MIN_LEVEL}..{MAX_LEVEL}, got {level}")
