import os
import sys
import json
import logging

import httpx
import pytest
from fastapi.testclient import TestClient

# Ensure the project root is importable
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from core.exceptions import StoreError
from core.result import Result
from core.server_factory import create_server
from core.settings import ProxySettings
from core.store.config_store import ConfigStore, InMemoryConfigStore

UPSTREAM = "http://up.local"


class MockUpstream:
    """Stands in for the upstream server; records every request it receives."""

    def __init__(self, status_code=200, body=b'{"result": "mocked"}', headers=None, error=None):
        self.requests = []
        self.bodies = []
        self.status_code = status_code
        self.body = body
        self.headers = headers or {"content-type": "application/json"}
        self.error = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.bodies.append(request.content)
        if self.error is not None:
            raise self.error
        # A streamed body, as a real transport returns; the proxy reads it with aiter_raw().
        return httpx.Response(self.status_code, headers=self.headers, stream=httpx.ByteStream(self.body))

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class FailingStore(ConfigStore):
    """Backend whose loads and/or saves always fail."""

    def __init__(self, fail_load=True, fail_save=True):
        self.inner = InMemoryConfigStore()
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.save_attempts = []

    def load(self, key, default=None):
        if self.fail_load:
            return Result.failure(StoreError("backend unavailable", key))
        return self.inner.load(key, default)

    def save(self, key, value):
        self.save_attempts.append((key, value))
        if self.fail_save:
            return Result.failure(StoreError("backend unavailable", key))
        return self.inner.save(key, value)


@pytest.fixture
def settings():
    return ProxySettings(upstream=UPSTREAM)


@pytest.fixture
def store():
    return InMemoryConfigStore()


@pytest.fixture
def upstream():
    return MockUpstream()


@pytest.fixture
def make_client(settings, upstream):
    """Build a TestClient around a proxy app with the given store."""
    clients = []

    def _make(store, upstream_override=None, settings_override=None):
        mock = upstream_override or upstream
        app = create_server(settings_override or settings, store=store, http_client=mock.client())
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def client(make_client, store):
    return make_client(store)


@pytest.fixture
def events(caplog):
    """Parsed structured events emitted during the test."""
    caplog.set_level(logging.DEBUG, logger="delay_proxy.events")

    def _events(name=None):
        parsed = [
            json.loads(record.getMessage())
            for record in caplog.records
            if record.name == "delay_proxy.events"
        ]
        if name is None:
            return parsed
        return [event for event in parsed if event.get("event") == name]

    return _events
