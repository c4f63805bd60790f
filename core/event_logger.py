import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class EventLogger:
    """
    Emits structured request/response and configuration events.

    Each event is one JSON object written through the standard ``logging``
    module, so handlers and levels are configured in one place.
    """

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger("delay_proxy.events")

    def log(self, level: str, data: Dict[str, Any]) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            **data,
        }
        self.logger.log(_LEVELS.get(level, logging.INFO), json.dumps(entry, default=str))

    def request(self, request, target_url) -> None:
        self.log("info", {
            "event": "request",
            "method": request.method,
            "url": str(request.url),
            "targetUrl": str(target_url),
            "userAgent": request.headers.get("user-agent") or "unknown",
        })

    def response(self, target_url, status: int, duration_ms: int, killed: bool) -> None:
        self.log("info", {
            "event": "response",
            "targetUrl": str(target_url),
            "status": status,
            "durationMs": duration_ms,
            "killed": killed,
        })
