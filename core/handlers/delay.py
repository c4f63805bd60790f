from typing import Optional

from starlette.datastructures import URL
from starlette.requests import Request
from starlette.responses import Response

from core.event_logger import EventLogger
from core.request_handler import json_response, parse_payload
from core.store.repositories import DelayRepository
from schema.payloads import DelayUpdate

DELAY_PATH = "/api/delay"


class DelayHandler:
    """Management API for the injected delay."""

    def __init__(self, repository: DelayRepository, events: EventLogger):
        self.repository = repository
        self.events = events

    async def handle(self, request: Request, url: URL) -> Optional[Response]:
        if url.path != DELAY_PATH:
            return None
        if request.method == "POST":
            return await self._handle_post(request)
        if request.method == "GET":
            return await self._handle_get()
        return None

    async def _handle_post(self, request: Request) -> Response:
        ok, payload = await parse_payload(request, DelayUpdate)
        if not ok:
            return payload

        delay = payload.delay
        if delay is None:
            current = await self.repository.load()
            if not current.ok:
                self.events.log("error", {"event": "delay-load-failed", "error": str(current.error)})
            delay = current.value_or(self.repository.default_delay)

        saved = await self.repository.save(delay)
        saved.fold(
            lambda _: self.events.log("info", {"event": "delay-updated", "delay": delay}),
            lambda e: self.events.log("error", {"event": "delay-save-failed", "error": str(e)}),
        )

        return json_response(200, {"success": True, "delay": delay})

    async def _handle_get(self) -> Response:
        result = await self.repository.load()
        if not result.ok:
            self.events.log("error", {"event": "delay-load-failed", "error": str(result.error)})
            return json_response(500, {"error": "Failed to load delay"})
        return json_response(200, {"delay": result.value})
