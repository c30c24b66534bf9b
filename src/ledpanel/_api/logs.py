"""Audit log endpoint.

Endpoint:
  - POST /logs
"""

from __future__ import annotations

from ledpanel._constants import LOGS_ENDPOINT
from ledpanel._transport import Transport
from ledpanel.models.log_event import LogEvent


async def post_log(transport: Transport, event: LogEvent) -> None:
    """Post one audit event. The response body is ignored."""
    await transport.request_json("POST", LOGS_ENDPOINT, body=event.model_dump(by_alias=True, mode="json"))
