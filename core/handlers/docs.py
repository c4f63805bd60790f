from typing import Optional

from starlette.datastructures import URL
from starlette.requests import Request
from starlette.responses import HTMLResponse, Response

from core.request_handler import json_response
from templates.openapi_document import get_openapi_document
from templates.template_registry import TemplateRegistry

SPEC_PATH = "/swagger/json"
UI_PATHS = ("/swagger/", "/swagger/index.html")


def server_url_for(request: Request, url: URL) -> str:
    """Base URL as the client sees it, honouring reverse-proxy forwarding headers."""
    host = request.headers.get("x-forwarded-host") or request.headers.get("host") or url.netloc
    scheme = request.headers.get("x-forwarded-proto") or url.scheme
    return f"{scheme}://{host}"


class DocsHandler:
    """Serves the OpenAPI document and the Swagger UI page."""

    def __init__(self, template_registry: TemplateRegistry = None):
        self.template_registry = template_registry or TemplateRegistry()

    async def handle(self, request: Request, url: URL) -> Optional[Response]:
        if request.method != "GET":
            return None
        if url.path == SPEC_PATH:
            return json_response(200, get_openapi_document(server_url_for(request, url)))
        if url.path in UI_PATHS:
            return HTMLResponse(self.template_registry.render_swagger_ui(spec_url=SPEC_PATH))
        return None
