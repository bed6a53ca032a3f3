import logging

import pytest
from flask_jwt_extended import create_access_token

from config import TestConfig
from flagcore import create_app
from flagcore.models import ENVIRONMENTS, Environment
from flagcore.repository import InMemoryFlagStore


def _create(client, key="dark-mode", name="Dark Mode", **extra):
    return client.post("/api/flags", json={"key": key, "name": name, **extra})


def test_create_returns_summary(client):
    resp = _create(client, description="night theme")

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["key"] == "dark-mode"
    assert body["name"] == "Dark Mode"
    assert body["description"] == "night theme"
    assert body["enabled"] is False
    assert body["created_at"].endswith("Z")
    assert "environment" not in body


@pytest.mark.parametrize("payload", [
    {"name": "Dark Mode"},
    {"key": "dark-mode"},
    {"key": "  ", "name": "Dark Mode"},
    {"key": "dark-mode", "name": "Dark Mode", "description": 5},
])
def test_create_validation(client, payload):
    resp = client.post("/api/flags", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_create_requires_json_object(client):
    resp = client.post("/api/flags", data="nope", content_type="text/plain")
    assert resp.status_code == 400


def test_create_duplicate_is_400(client):
    _create(client)
    resp = _create(client)
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "already_exists"


def test_list_defaults_to_local(client):
    _create(client, key="a", name="A")
    _create(client, key="b", name="B")
    client.put("/api/flags/a/enable?environment=production")

    resp = client.get("/api/flags")

    assert resp.status_code == 200
    assert sorted(f["key"] for f in resp.get_json()) == ["a", "b"]
    assert all(f["enabled"] is False for f in resp.get_json())


def test_list_for_environment(client):
    _create(client)
    client.put("/api/flags/dark-mode/enable?environment=production")

    body = client.get("/api/flags?environment=production").get_json()
    assert [(f["key"], f["enabled"]) for f in body] == [("dark-mode", True)]


def test_list_invalid_environment(client):
    assert client.get("/api/flags?environment=qa").status_code == 400


def test_get_flag(client):
    _create(client)
    for env in ENVIRONMENTS:
        resp = client.get(f"/api/flags/dark-mode?environment={env.value}")
        assert resp.status_code == 200
        assert resp.get_json()["enabled"] is False


def test_get_flag_environment_errors(client):
    _create(client)
    assert client.get("/api/flags/dark-mode").status_code == 400
    assert client.get("/api/flags/dark-mode?environment=qa").status_code == 400


def test_get_missing_flag(client):
    resp = client.get("/api/flags/nope?environment=local")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not_found"


def test_update_flag(client):
    _create(client, description="old")

    resp = client.put("/api/flags/dark-mode", json={"description": "new", "name": "Dark Theme"})

    assert resp.status_code == 200
    assert resp.get_json()["description"] == "new"
    staging = client.get("/api/flags/dark-mode?environment=staging").get_json()
    assert (staging["name"], staging["description"]) == ("Dark Theme", "new")


def test_update_single_environment_scope(client):
    _create(client, description="old")

    resp = client.put("/api/flags/dark-mode?scope=environment&environment=staging", json={"description": "stg"})

    assert resp.status_code == 200
    assert client.get("/api/flags/dark-mode?environment=staging").get_json()["description"] == "stg"
    assert client.get("/api/flags/dark-mode?environment=local").get_json()["description"] == "old"


@pytest.mark.parametrize("query,payload", [
    ("", {"enabled": "yes"}),
    ("", {"name": 3}),
    ("?scope=bogus", {"description": "x"}),
    ("?scope=representative", {"name": "Renamed"}),
])
def test_update_validation(client, query, payload):
    _create(client)
    assert client.put("/api/flags/dark-mode" + query, json=payload).status_code == 400


def test_update_enabled_needs_single_environment(client):
    _create(client)

    resp = client.put("/api/flags/dark-mode", json={"enabled": True})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"
    for env in ENVIRONMENTS:
        assert client.get(f"/api/flags/dark-mode?environment={env.value}").get_json()["enabled"] is False

    resp = client.put("/api/flags/dark-mode?scope=environment&environment=staging", json={"enabled": True})
    assert resp.status_code == 200
    assert client.get("/api/flags/dark-mode?environment=staging").get_json()["enabled"] is True
    assert client.get("/api/flags/dark-mode?environment=production").get_json()["enabled"] is False


def test_update_missing_flag(client):
    assert client.put("/api/flags/nope", json={"description": "x"}).status_code == 404


def test_delete_flag(client):
    _create(client)

    resp = client.delete("/api/flags/dark-mode")

    assert resp.status_code == 204
    assert resp.data == b""
    for env in ENVIRONMENTS:
        assert client.get(f"/api/flags/dark-mode?environment={env.value}").status_code == 404
    assert client.delete("/api/flags/dark-mode").status_code == 404


def test_enable_and_disable(client):
    _create(client)

    resp = client.put("/api/flags/dark-mode/enable?environment=staging")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["environment"] == "staging"
    assert body["enabled"] is True
    assert client.get("/api/flags/dark-mode?environment=production").get_json()["enabled"] is False

    resp = client.put("/api/flags/dark-mode/disable?environment=staging")
    assert resp.status_code == 200
    assert resp.get_json()["enabled"] is False


def test_toggle_errors(client):
    _create(client)
    assert client.put("/api/flags/dark-mode/enable").status_code == 404
    assert client.put("/api/flags/nope/disable?environment=local").status_code == 404
    assert client.put("/api/flags/dark-mode/enable?environment=qa").status_code == 400


def test_environments(client):
    assert client.get("/api/environments").get_json() == ["local", "development", "staging", "production"]


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not_found"


def test_ops_routes(client):
    assert client.get("/healthz").get_json() == {"status": "ok"}
    assert client.get("/readyz").get_json() == {"ready": True}
    assert client.get("/").status_code == 200


def test_admin_guard_when_auth_required(app, client):
    app.config["FLAGS_REQUIRE_AUTH"] = True

    assert _create(client).status_code == 401

    viewer = create_access_token(identity="viewer", additional_claims={"role": "tenant"})
    resp = client.post("/api/flags", json={"key": "k", "name": "K"},
                       headers={"Authorization": f"Bearer {viewer}"})
    assert resp.status_code == 403

    admin = create_access_token(identity="ops", additional_claims={"role": "admin"})
    resp = client.post("/api/flags", json={"key": "k", "name": "K"},
                       headers={"Authorization": f"Bearer {admin}"})
    assert resp.status_code == 201

    # reads stay open
    assert client.get("/api/flags").status_code == 200


def test_requests_are_logged(client, caplog):
    caplog.set_level(logging.INFO, logger="flagcore.requests")

    client.get("/healthz")
    client.get("/api/flags/nope?environment=local")

    lines = [r.getMessage() for r in caplog.records if r.name == "flagcore.requests"]
    assert len(lines) == 2
    assert lines[0].startswith("GET /healthz -> 200 (")
    assert lines[1].startswith("GET /api/flags/nope -> 404 (")
    assert lines[1].endswith(" ms)")


class _LosingStore(InMemoryFlagStore):
    """Never stores the production copy of a fan-out."""

    def save_many(self, records):
        records = list(records)
        super().save_many([r for r in records if r.environment is not Environment.PRODUCTION])
        return records


def test_internal_error_is_logged_with_traceback(caplog):
    client = create_app(TestConfig, store=_LosingStore()).test_client()
    caplog.set_level(logging.ERROR, logger="flagcore.errors")

    resp = _create(client)

    assert resp.status_code == 500
    assert resp.get_json()["error"] == "internal_error"
    failures = [r for r in caplog.records if r.name == "flagcore.errors"]
    assert len(failures) == 1
    assert failures[0].exc_info is not None
    assert failures[0].exc_info[0].__name__ == "InternalError"
