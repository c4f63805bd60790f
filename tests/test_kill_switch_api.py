import pytest

from conftest import FailingStore
from schema.records import DEFAULT_KILL_SWITCH, KILL_SWITCH_KEY


def test_get_returns_default_record_when_nothing_stored(client):
    response = client.get("/api/kill-switch")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {
        "enabled": False,
        "status": 200,
        "headers": {"content-type": "application/json"},
        "body": '{"message": "blocked by kill-switch"}',
    }


def test_full_update_round_trips(client):
    record = {"enabled": True, "status": 503, "headers": {"X-Custom": "test"}, "body": "down"}

    response = client.post("/api/kill-switch", json=record)

    assert response.status_code == 200
    assert response.json() == {"success": True, "state": record}
    assert client.get("/api/kill-switch").json() == record


def test_enabled_only_preserves_other_fields(client):
    client.post("/api/kill-switch", json={
        "enabled": False,
        "status": 418,
        "headers": {"X-Teapot": "yes"},
        "body": "short and stout",
    })

    response = client.post("/api/kill-switch", json={"enabled": True})

    assert response.json()["state"] == {
        "enabled": True,
        "status": 418,
        "headers": {"X-Teapot": "yes"},
        "body": "short and stout",
    }


def test_partial_update_merges_onto_defaults(client):
    response = client.post("/api/kill-switch", json={"status": 500})
    state = response.json()["state"]
    assert state["status"] == 500
    assert state["enabled"] is False
    assert state["headers"] == DEFAULT_KILL_SWITCH.headers
    assert state["body"] == DEFAULT_KILL_SWITCH.body


def test_headers_are_replaced_not_merged(client):
    client.post("/api/kill-switch", json={"headers": {"A": "1", "B": "2"}})
    response = client.post("/api/kill-switch", json={"headers": {"C": "3"}})
    assert response.json()["state"]["headers"] == {"C": "3"}


def test_empty_body_and_headers_are_valid_values(client):
    client.post("/api/kill-switch", json={"body": "x", "headers": {"A": "1"}})
    response = client.post("/api/kill-switch", json={"body": "", "headers": {}})
    state = response.json()["state"]
    assert state["body"] == ""
    assert state["headers"] == {}


@pytest.mark.parametrize("payload, field", [
    ({"enabled": "yes"}, "enabled"),
    ({"enabled": 1}, "enabled"),
    ({"status": 99}, "status"),
    ({"status": 600}, "status"),
    ({"status": "503"}, "status"),
    ({"status": 503.5}, "status"),
    ({"headers": {"X-Count": 1}}, "headers"),
    ({"headers": ["X-Custom"]}, "headers"),
    ({"headers": {"X-Weather": "\u2603 snow"}}, "headers"),
    ({"body": {"message": "down"}}, "body"),
])
def test_invalid_fields_are_rejected_and_state_unchanged(client, payload, field):
    before = client.get("/api/kill-switch").json()

    response = client.post("/api/kill-switch", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request body"
    assert body["details"][0]["loc"][0] == field
    assert client.get("/api/kill-switch").json() == before


def test_malformed_json_is_rejected(client):
    response = client.post("/api/kill-switch", content=b"{oops", headers={"content-type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON body"}


def test_get_returns_500_when_store_load_fails(make_client):
    client = make_client(FailingStore(fail_load=True, fail_save=False))
    response = client.get("/api/kill-switch")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to load state"}


def test_update_merges_onto_default_when_load_fails(make_client, events):
    client = make_client(FailingStore(fail_load=True, fail_save=False))

    response = client.post("/api/kill-switch", json={"enabled": True})

    assert response.status_code == 200
    state = response.json()["state"]
    assert state["enabled"] is True
    assert state["status"] == DEFAULT_KILL_SWITCH.status
    assert events("kill-switch-load-failed")


def test_save_failure_still_reports_success(make_client, events):
    store = FailingStore(fail_load=False, fail_save=True)
    client = make_client(store)

    response = client.post("/api/kill-switch", json={"enabled": True, "status": 503})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["state"]["status"] == 503
    assert store.save_attempts[0][0] == KILL_SWITCH_KEY
    assert events("kill-switch-save-failed")


def test_successful_update_emits_event(client, events):
    client.post("/api/kill-switch", json={"enabled": True, "status": 503})
    updated = events("kill-switch-updated")
    assert len(updated) == 1
    assert updated[0]["enabled"] is True
    assert updated[0]["status"] == 503
