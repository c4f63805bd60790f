import json
import logging

from starlette.requests import Request

from core.event_logger import EventLogger


def make_request(headers=None):
    return Request({
        "type": "http",
        "method": "PATCH",
        "path": "/proxy/items",
        "raw_path": b"/proxy/items",
        "query_string": b"a=1",
        "headers": headers or [],
        "scheme": "http",
        "server": ("testserver", 80),
        "root_path": "",
    })


def test_events_are_json_at_the_requested_level(caplog):
    caplog.set_level(logging.DEBUG, logger="delay_proxy.events")
    events = EventLogger()

    events.log("warn", {"event": "something", "count": 2})

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    entry = json.loads(record.getMessage())
    assert entry["level"] == "warn"
    assert entry["event"] == "something"
    assert entry["count"] == 2
    assert "timestamp" in entry


def test_request_event_defaults_user_agent(caplog):
    caplog.set_level(logging.INFO, logger="delay_proxy.events")

    EventLogger().request(make_request(), "http://up.local/items?a=1")

    entry = json.loads(caplog.records[-1].getMessage())
    assert entry == {
        "timestamp": entry["timestamp"],
        "level": "info",
        "event": "request",
        "method": "PATCH",
        "url": "http://testserver/proxy/items?a=1",
        "targetUrl": "http://up.local/items?a=1",
        "userAgent": "unknown",
    }


def test_response_event(caplog):
    caplog.set_level(logging.INFO, logger="delay_proxy.events")

    EventLogger().response("http://up.local/x", 503, 12, True)

    entry = json.loads(caplog.records[-1].getMessage())
    assert entry["event"] == "response"
    assert entry["status"] == 503
    assert entry["durationMs"] == 12
    assert entry["killed"] is True


def test_custom_logger_is_used():
    captured = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            captured.append(record)

    logger = logging.getLogger("tests.custom_events")
    logger.setLevel(logging.DEBUG)
    logger.addHandler(ListHandler())

    EventLogger(logger).log("error", {"event": "boom"})

    assert captured and captured[0].levelno == logging.ERROR
