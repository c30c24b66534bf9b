"""Audit log events posted to the backend."""

from __future__ import annotations

from enum import StrEnum

from ledpanel.models._base import PanelBaseModel


class LogEventKind(StrEnum):
    PIR_ON = "PIR_ON"
    PIR_OFF = "PIR_OFF"


class LogEvent(PanelBaseModel):
    """Body of ``POST /logs``. Delivery is best-effort."""

    event: LogEventKind
    details: str
