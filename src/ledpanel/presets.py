"""Preset repository with optimistic local mutation.

This component exclusively owns the locally held preset list. Creates
are appended only once the backend has confirmed them; deletes are
applied immediately and rolled back if the backend refuses.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from pydantic import ValidationError

from ledpanel._api import presets as _presets_api
from ledpanel._transport import Transport
from ledpanel.exceptions import PanelApiError, PanelValidationError
from ledpanel.models.preset import UNAVAILABLE_PRESET, CreatePresetRequest, Preset
from ledpanel.state.bus import EventBus
from ledpanel.state.events import PresetsChanged

_logger = logging.getLogger(__name__)

AlertHandler = Callable[[str], None]


def _log_alert(message: str) -> None:
    _logger.warning("%s", message)


class PresetRepository:
    """CRUD façade over the remote preset store.

    Concurrent create/delete calls for the same preset are not
    deduplicated; a double fire sends two requests.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        bus: EventBus | None = None,
        on_alert: AlertHandler | None = None,
    ) -> None:
        self._transport = transport
        self._bus = bus
        self._on_alert = on_alert or _log_alert
        self._presets: list[Preset] = []
        self._degraded = False

    @property
    def presets(self) -> tuple[Preset, ...]:
        return tuple(self._presets)

    @property
    def degraded(self) -> bool:
        """Whether the list currently shows the "unavailable" sentinel."""
        return self._degraded

    def find(self, preset_id: str) -> Preset | None:
        for preset in self._presets:
            if preset.id == preset_id:
                return preset
        return None

    async def list(self) -> tuple[Preset, ...]:
        """Reload the list from the backend.

        On failure the list is replaced by a single sentinel entry so the
        caller can show a degraded state instead of an empty list.
        """
        try:
            presets = await _presets_api.fetch_presets(self._transport)
        except PanelApiError as exc:
            _logger.warning("Loading presets failed: %s", exc)
            self._replace([UNAVAILABLE_PRESET], degraded=True)
        else:
            self._replace(presets, degraded=False)
        return self.presets

    refresh = list

    async def create(self, name: str, levels: Sequence[int]) -> Preset | None:
        """Create a preset and append the server-confirmed record.

        Raises :class:`PanelValidationError` without touching the network
        when *name* is blank or *levels* is not three values in 0..255.
        Returns ``None`` (after raising an alert) when the backend call
        fails; the local list is then left untouched.
        """
        clean_name = name.strip()
        if not clean_name:
            raise PanelValidationError("Preset name must not be empty")
        try:
            request = CreatePresetRequest(name=clean_name, levels=tuple(levels))
        except ValidationError as exc:
            raise PanelValidationError(f"Invalid preset levels: {list(levels)!r}") from exc

        try:
            created = await _presets_api.create_preset(self._transport, request.name, request.levels)
        except PanelApiError as exc:
            _logger.warning("Creating preset %r failed: %s", clean_name, exc)
            self._alert(f"Could not save preset {clean_name!r}: {exc}")
            return None

        self._presets.append(created)
        self._notify()
        return created

    async def delete(self, preset_id: str) -> bool:
        """Remove a preset optimistically; restore the list if the backend refuses.

        Returns ``True`` once the backend has confirmed the delete.
        """
        snapshot = list(self._presets)
        self._presets = [preset for preset in self._presets if preset.id != preset_id]
        self._notify()

        try:
            await _presets_api.delete_preset(self._transport, preset_id)
        except PanelApiError as exc:
            self._restore(snapshot)
            status = exc.status_code if exc.status_code is not None else "no response"
            _logger.warning("Deleting preset %r failed: %s", preset_id, exc)
            self._alert(f"Could not delete preset (status: {status})")
            return False
        except BaseException:
            # Unconfirmed (cancelled or unexpected failure): undo the removal.
            self._restore(snapshot)
            raise
        return True

    def _replace(self, presets: list[Preset], *, degraded: bool) -> None:
        self._presets = list(presets)
        self._degraded = degraded
        self._notify()

    def _restore(self, snapshot: list[Preset]) -> None:
        self._presets = snapshot
        self._notify()

    def _notify(self) -> None:
        if self._bus is not None:
            self._bus.publish(PresetsChanged(presets=self.presets, degraded=self._degraded))

    def _alert(self, message: str) -> None:
        try:
            self._on_alert(message)
        except Exception:
            _logger.debug("on_alert callback failed", exc_info=True)
