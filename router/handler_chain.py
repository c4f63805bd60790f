import logging
from typing import List, Optional, Protocol

from starlette.datastructures import URL
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


class RequestHandler(Protocol):
    async def handle(self, request: Request, url: URL) -> Optional[Response]:
        """Return a response, or None when the request is not this handler's."""
        ...


class HandlerChain:
    """
    Dispatches each request through handlers in a fixed priority order.

    The first handler returning a response wins; when none does, the
    fallback handler answers.
    """

    def __init__(self, handlers: List[RequestHandler], fallback: RequestHandler):
        self._handlers = list(handlers)
        self._fallback = fallback

    @property
    def handlers(self) -> List[RequestHandler]:
        return list(self._handlers)

    async def dispatch(self, request: Request) -> Response:
        url = request.url
        for handler in self._handlers:
            response = await handler.handle(request, url)
            if response is not None:
                logger.debug(f"{request.method} {url.path} handled by {type(handler).__name__}")
                return response

        logger.debug(f"{request.method} {url.path} fell through to {type(self._fallback).__name__}")
        return await self._fallback.handle(request, url)
