from starlette.datastructures import URL
from starlette.requests import Request
from starlette.responses import Response

from core.request_handler import json_response


class NotFoundHandler:
    """Terminal handler: every request that reaches it gets a 404."""

    async def handle(self, request: Request, url: URL) -> Response:
        return json_response(404, {"error": "Not found"})
