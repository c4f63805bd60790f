# core/server_factory.py

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from starlette.requests import Request

from core.event_logger import EventLogger
from core.handlers.delay import DelayHandler
from core.handlers.docs import DocsHandler
from core.handlers.kill_switch import KillSwitchHandler
from core.handlers.not_found import NotFoundHandler
from core.handlers.proxy import ProxyHandler
from core.settings import ProxySettings
from core.store.config_store import ConfigStore, create_store
from core.store.repositories import DelayRepository, KillSwitchRepository
from router.handler_chain import HandlerChain

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_http_client() -> httpx.AsyncClient:
    """Shared upstream client. Redirects pass through to the caller; no client-side timeout."""
    return httpx.AsyncClient(follow_redirects=False, timeout=None)


def build_handler_chain(
    settings: ProxySettings,
    store: ConfigStore,
    client: httpx.AsyncClient,
    events: EventLogger = None,
) -> HandlerChain:
    events = events or EventLogger()
    delay_repository = DelayRepository(store, default_delay=settings.delay)
    kill_switch_repository = KillSwitchRepository(store)

    return HandlerChain(
        handlers=[
            DocsHandler(),
            KillSwitchHandler(kill_switch_repository, events),
            DelayHandler(delay_repository, events),
            ProxyHandler(settings.upstream, kill_switch_repository, delay_repository, events, client),
        ],
        fallback=NotFoundHandler(),
    )


def create_server(
    settings: ProxySettings,
    store: ConfigStore = None,
    http_client: httpx.AsyncClient = None,
    events: EventLogger = None,
) -> FastAPI:
    """
    Creates the proxy app. Every path goes through one catch-all route into
    the handler chain, so FastAPI's own docs routes are disabled.
    """
    store = store or create_store(settings.store_path)
    client = http_client or create_http_client()
    chain = build_handler_chain(settings, store, client, events)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        initial_delay = await DelayRepository(store, default_delay=settings.delay).load()
        logger.info("Starting proxy server")
        logger.info(f"Upstream: {settings.upstream}")
        logger.info(f"Store: {store.describe()}")
        logger.info(f"Delay: {initial_delay.value_or(settings.delay)}ms")
        try:
            yield
        finally:
            if http_client is None:
                await client.aclose()

    app = FastAPI(
        title="Delay Proxy",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.handler_chain = chain

    @app.api_route("/{full_path:path}", methods=PROXY_METHODS, include_in_schema=False)
    async def dispatch(request: Request):
        return await chain.dispatch(request)

    return app
