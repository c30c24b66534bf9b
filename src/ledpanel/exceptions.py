"""Custom exception hierarchy for ledpanel."""

from __future__ import annotations


class PanelError(Exception):
    """Base exception for all ledpanel errors."""


class PanelConfigError(PanelError):
    """Invalid or missing configuration."""


class PanelConnectionError(PanelError):
    """MQTT transport-level failure (connect, subscribe, broker unreachable).

    Never fatal: the panel logs it and keeps serving local state and the
    REST-backed preset store.
    """


class PanelParseError(PanelError):
    """Inbound MQTT payload could not be decoded.

    The offending message is dropped; no other state is touched.
    """

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)


class PanelValidationError(PanelError):
    """Local input rejected before any network call was made."""


class PanelApiError(PanelError):
    """REST-level failure (network, timeout, non-2xx, invalid JSON).

    ``status_code`` is ``None`` when the request never produced a response.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)
