"""HTTP transport for the preset/log backend."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

import aiohttp

from ledpanel.exceptions import PanelApiError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`RestTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        body: Any = None,
    ) -> Any:
        ...


class RestTransport:
    """JSON-over-HTTP transport bound to the backend base URL.

    ``endpoint`` may carry an already percent-encoded query string; it is
    appended to the base URL verbatim.
    """

    def __init__(self, base_url: str, http_session: aiohttp.ClientSession) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_session

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        body: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` if empty).

        Any non-2xx status, network failure, timeout or undecodable body is
        raised as :class:`PanelApiError`.
        """
        url = f"{self._base_url}{endpoint}"
        headers = {"accept": "application/json"}
        data: str | None = None
        if body is not None:
            data = json.dumps(body, separators=(",", ":"))
            headers["content-type"] = "application/json"

        _logger.debug("%s %s", method, url)

        status: int | None = None
        try:
            async with self._http.request(method, url, data=data, headers=headers) as resp:
                status = resp.status
                text = await resp.text()
        except UnicodeDecodeError as exc:
            raise PanelApiError(
                f"Undecodable body from {method} {endpoint} (HTTP {status})",
                status_code=status,
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise PanelApiError(f"{method} {endpoint} failed: {exc}", endpoint=endpoint) from exc
        except asyncio.TimeoutError as exc:
            raise PanelApiError(f"{method} {endpoint} timed out", endpoint=endpoint) from exc

        if not 200 <= status < 300:
            raise PanelApiError(
                f"HTTP {status} from {method} {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise PanelApiError(
                f"Invalid JSON from {method} {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc
