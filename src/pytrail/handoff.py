"""Downstream consumers of the finished route."""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import aiohttp

from pytrail._constants import USER_AGENT
from pytrail.exceptions import TrailTransportError
from pytrail.models.point import Route
from pytrail.storage.store import encode_route
from pytrail.view_sync import SnapshotHolder

_logger = logging.getLogger(__name__)


class RouteHandoff(Protocol):
    """Receives the final route on stop, plus the holder the UI reads from."""

    async def __call__(self, route: Route, holder: SnapshotHolder) -> None:
        ...


class CallbackHandoff:
    """Adapts a plain (sync or async) callable to :class:`RouteHandoff`."""

    def __init__(self, callback: Callable[[Route, SnapshotHolder], Awaitable[None] | None]) -> None:
        self._callback = callback

    async def __call__(self, route: Route, holder: SnapshotHolder) -> None:
        result = self._callback(route, holder)
        if inspect.isawaitable(result):
            await result


class HttpRouteUploader:
    """POSTs the finished route as JSON to an HTTP endpoint.

    Body: ``{"count": n, "points": [{"latitude", "longitude", "time"}, ...]}``.
    """

    def __init__(
        self,
        url: str,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._url = url
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._headers = headers or {}
        self.last_response: dict[str, Any] | None = None

    def _build_body(self, route: Route) -> str:
        points = json.loads(encode_route(route))
        return json.dumps({"count": len(points), "points": points}, separators=(",", ":"))

    async def _post(self, http: aiohttp.ClientSession, body: str) -> dict[str, Any]:
        headers = {
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
            **self._headers,
        }
        _logger.debug("POST %s", self._url)
        try:
            async with http.post(self._url, data=body, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status >= 300:
                    raise TrailTransportError(
                        f"HTTP {resp.status} from {self._url}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=self._url,
                    )
        except TrailTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise TrailTransportError(f"Upload to {self._url} failed: {exc}", endpoint=self._url) from exc

        if not text.strip():
            return {}
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return {"body": text}
        return parsed if isinstance(parsed, dict) else {"body": parsed}

    async def __call__(self, route: Route, holder: SnapshotHolder) -> None:
        body = self._build_body(route)
        if self._session is not None:
            self.last_response = await self._post(self._session, body)
        else:
            async with aiohttp.ClientSession() as http:
                self.last_response = await self._post(http, body)
        _logger.info("Uploaded route with %d location(s) to %s", len(route), self._url)
