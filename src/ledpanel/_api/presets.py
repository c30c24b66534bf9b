"""Preset store endpoints.

Endpoints:
  - GET    /presets
  - POST   /presets
  - DELETE /presets?id=<id>
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from ledpanel._constants import PRESETS_ENDPOINT
from ledpanel._transport import Transport
from ledpanel.exceptions import PanelApiError
from ledpanel.models.preset import CreatePresetRequest, CreatePresetResponse, Preset

_logger = logging.getLogger(__name__)


def delete_endpoint(preset_id: str) -> str:
    """``/presets?id=<id>`` with the id percent-encoded (``/`` included)."""
    return f"{PRESETS_ENDPOINT}?id={quote(preset_id, safe='')}"


async def fetch_presets(transport: Transport) -> list[Preset]:
    """Fetch all presets. Entries that fail validation are skipped."""
    decoded = await transport.request_json("GET", PRESETS_ENDPOINT)
    if not isinstance(decoded, list):
        raise PanelApiError(
            f"Expected a JSON array from {PRESETS_ENDPOINT}, got {type(decoded).__name__}",
            endpoint=PRESETS_ENDPOINT,
        )

    presets: list[Preset] = []
    for item in decoded:
        try:
            presets.append(Preset.model_validate(item))
        except ValidationError:
            _logger.warning("Skipping malformed preset record: %r", item)
    _logger.debug("Preset list decoded count=%d", len(presets))
    return presets


async def create_preset(transport: Transport, name: str, levels: Sequence[int]) -> Preset:
    """Create a preset and return the server-confirmed record."""
    request = CreatePresetRequest(name=name, levels=tuple(levels))
    decoded: Any = await transport.request_json(
        "POST",
        PRESETS_ENDPOINT,
        body=request.model_dump(by_alias=True, mode="json"),
    )
    try:
        return CreatePresetResponse.model_validate(decoded).new_item
    except ValidationError as exc:
        raise PanelApiError(
            f"Malformed create response from {PRESETS_ENDPOINT}: {decoded!r}",
            endpoint=PRESETS_ENDPOINT,
        ) from exc


async def delete_preset(transport: Transport, preset_id: str) -> None:
    """Delete a preset. Raises :class:`PanelApiError` on any non-2xx status."""
    await transport.request_json("DELETE", delete_endpoint(preset_id))
