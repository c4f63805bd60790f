from typing import Optional

from starlette.datastructures import URL
from starlette.requests import Request
from starlette.responses import Response

from core.event_logger import EventLogger
from core.request_handler import json_response, parse_payload
from core.store.repositories import KillSwitchRepository
from schema.payloads import KillSwitchUpdate
from schema.records import DEFAULT_KILL_SWITCH, KillSwitchRecord

KILL_SWITCH_PATH = "/api/kill-switch"


def merge_kill_switch(current: KillSwitchRecord, update: KillSwitchUpdate) -> KillSwitchRecord:
    """Apply a partial update field by field; omitted fields keep their current value."""
    changes = update.model_dump(exclude_none=True)
    return current.model_copy(update=changes, deep=True)


class KillSwitchHandler:
    """Management API for the kill-switch record."""

    def __init__(self, repository: KillSwitchRepository, events: EventLogger):
        self.repository = repository
        self.events = events

    async def handle(self, request: Request, url: URL) -> Optional[Response]:
        if url.path != KILL_SWITCH_PATH:
            return None
        if request.method == "POST":
            return await self._handle_post(request)
        if request.method == "GET":
            return await self._handle_get()
        return None

    async def _handle_post(self, request: Request) -> Response:
        ok, payload = await parse_payload(request, KillSwitchUpdate)
        if not ok:
            return payload

        current = await self.repository.load()
        if not current.ok:
            self.events.log("error", {"event": "kill-switch-load-failed", "error": str(current.error)})
        state = merge_kill_switch(current.value_or(DEFAULT_KILL_SWITCH), payload)

        saved = await self.repository.save(state)
        saved.fold(
            lambda _: self.events.log("info", {
                "event": "kill-switch-updated",
                "enabled": state.enabled,
                "status": state.status,
            }),
            lambda e: self.events.log("error", {"event": "kill-switch-save-failed", "error": str(e)}),
        )

        return json_response(200, {"success": True, "state": state.model_dump()})

    async def _handle_get(self) -> Response:
        result = await self.repository.load()
        if not result.ok:
            self.events.log("error", {"event": "kill-switch-load-failed", "error": str(result.error)})
            return json_response(500, {"error": "Failed to load state"})
        return json_response(200, result.value.model_dump())
