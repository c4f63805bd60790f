import asyncio
import time
from typing import Optional

import httpx
from starlette.background import BackgroundTask
from starlette.datastructures import URL
from starlette.requests import Request
from starlette.responses import Response, StreamingResponse

from core.event_logger import EventLogger
from core.request_handler import json_response
from core.store.repositories import DelayRepository, KillSwitchRepository
from schema.records import DEFAULT_KILL_SWITCH

PROXY_PREFIX = "/proxy/"

# Connection-scoped headers (RFC 9110 section 7.6.1); never forwarded in either direction.
HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
})


def resolve_target(upstream: str, scope) -> httpx.URL:
    """
    Map ``/proxy/<path>?<query>`` onto the upstream base URL.

    Works on the raw request target from the ASGI ``scope`` so percent-escapes
    (``%2F``, ``%3F``, ``%23``) reach the upstream unchanged. The stripped path
    is absolute, so it replaces any path on the base URL.
    """
    raw_path = scope.get("raw_path")
    if raw_path and raw_path.startswith(PROXY_PREFIX.encode("ascii")):
        path = raw_path.decode("latin-1")
    else:
        path = scope["path"]
    target = path[len(PROXY_PREFIX) - 1:]
    query_string = scope.get("query_string", b"")
    if query_string:
        target += "?" + query_string.decode("latin-1")
    return httpx.URL(upstream).join(target)


def forwardable_headers(headers) -> list:
    return [
        (name, value)
        for name, value in headers.items()
        if name.lower() not in HOP_BY_HOP_HEADERS and name.lower() != "host"
    ]


class ProxyHandler:
    """
    Forwards ``/proxy/*`` requests upstream after injecting the configured
    delay, or answers with the kill-switch response when it is enabled.
    """

    def __init__(
        self,
        upstream: str,
        kill_switch_repository: KillSwitchRepository,
        delay_repository: DelayRepository,
        events: EventLogger,
        client: httpx.AsyncClient,
    ):
        self.upstream = upstream
        self.kill_switch_repository = kill_switch_repository
        self.delay_repository = delay_repository
        self.events = events
        self.client = client

    async def handle(self, request: Request, url: URL) -> Optional[Response]:
        if not url.path.startswith(PROXY_PREFIX):
            return None
        return await self._handle_proxy(request)

    async def _handle_proxy(self, request: Request) -> Response:
        kill_switch_result, delay_result = await asyncio.gather(
            self.kill_switch_repository.load(),
            self.delay_repository.load(),
        )
        if not kill_switch_result.ok:
            self.events.log("error", {"event": "kill-switch-load-failed", "error": str(kill_switch_result.error)})
        if not delay_result.ok:
            self.events.log("error", {"event": "delay-load-failed", "error": str(delay_result.error)})

        kill_switch = kill_switch_result.value_or(DEFAULT_KILL_SWITCH)
        delay_ms = delay_result.value_or(self.delay_repository.default_delay)

        target_url = resolve_target(self.upstream, request.scope)
        self.events.request(request, target_url)

        start_time = time.monotonic()

        # The snapshot loaded above decides the outcome; a toggle during the delay is not seen.
        if not kill_switch.enabled:
            await asyncio.sleep(delay_ms / 1000)

        if kill_switch.enabled:
            self.events.response(target_url, kill_switch.status, _elapsed_ms(start_time), True)
            return Response(
                content=kill_switch.body,
                status_code=kill_switch.status,
                headers=kill_switch.headers,
            )

        return await self._forward(request, target_url, start_time)

    async def _forward(self, request: Request, target_url: httpx.URL, start_time: float) -> Response:
        body = await request.body()
        upstream_request = self.client.build_request(
            request.method,
            target_url,
            headers=forwardable_headers(request.headers),
            content=body or None,
        )

        try:
            upstream_response = await self.client.send(upstream_request, stream=True)
        except httpx.RequestError as e:
            self.events.log("error", {
                "event": "upstream-failed",
                "targetUrl": str(target_url),
                "error": str(e) or type(e).__name__,
            })
            return json_response(502, {"error": "Bad gateway"})

        self.events.response(target_url, upstream_response.status_code, _elapsed_ms(start_time), False)

        response = StreamingResponse(
            upstream_response.aiter_raw(),
            status_code=upstream_response.status_code,
            background=BackgroundTask(upstream_response.aclose),
        )
        response.raw_headers = [
            (name.encode("latin-1"), value.encode("latin-1"))
            for name, value in upstream_response.headers.multi_items()
            if name.lower() not in HOP_BY_HOP_HEADERS
        ]
        return response


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)
