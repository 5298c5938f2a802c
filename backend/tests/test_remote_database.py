from datetime import date

import httpx
import pytest

from goaltracker.persistence.remote import QUERY_PATH, RemoteDatabase


def test_unconfigured_client_makes_no_request(offline_db, fake_remote):
    r = offline_db.execute("SELECT 1")
    assert r.success is False
    assert "not configured" in r.error
    assert fake_remote.queries == []


def test_request_shape_and_headers(fake_remote):
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["headers"] = request.headers
        return fake_remote(request)

    db = RemoteDatabase("http://remote.test", "token-123", app_id="app-1", usage_key="usage-1",
                        transport=httpx.MockTransport(handler))
    fake_remote.on("SELECT", {"data": [{"id": 1}]})
    r = db.execute("SELECT * FROM goaltracker.goals WHERE start_date = $1", [date(2025, 1, 6)])

    assert r.success is True
    assert r.first == {"id": 1}
    assert seen["path"] == QUERY_PATH
    assert seen["headers"]["authorization"] == "Bearer token-123"
    assert seen["headers"]["x-generated-app-id"] == "app-1"
    assert seen["headers"]["x-usage-key"] == "usage-1"
    assert fake_remote.queries[0]["params"] == ["2025-01-06"]


def test_non_2xx_is_a_failure(remote_db, fake_remote):
    fake_remote.fail_all(503)
    r = remote_db.execute("SELECT 1")
    assert r.success is False
    assert r.error == "HTTP 503"


def test_transport_error_is_a_failure(remote_db, fake_remote):
    fake_remote.on("SELECT", lambda payload: httpx.ConnectError("connection refused"))
    r = remote_db.execute("SELECT 1")
    assert r.success is False
    assert "connection refused" in r.error


def test_malformed_bodies(remote_db, fake_remote):
    fake_remote.on("TEXT", httpx.Response(200, text="<html>"))
    fake_remote.on("SCALAR", {"data": 5})
    fake_remote.on("EMPTY", {"ok": True})

    assert remote_db.execute("SELECT TEXT").error == "Malformed response"
    assert remote_db.execute("SELECT SCALAR").error == "Malformed response"

    empty = remote_db.execute("SELECT EMPTY")
    assert empty.success is True
    assert empty.data == []
    assert empty.first is None


def test_initialize_creates_schema_and_tables(remote_db, fake_remote):
    r = remote_db.initialize()
    assert r.success is True
    statements = fake_remote.sql()
    assert statements[0] == "CREATE SCHEMA IF NOT EXISTS goaltracker"
    created = [s.split("(")[0].split()[-1] for s in statements[1:]]
    assert created == [
        "goaltracker.users",
        "goaltracker.goals",
        "goaltracker.progress_logs",
        "goaltracker.accountability_partners",
        "goaltracker.micro_goals",
        "goaltracker.reflections",
    ]


def test_initialize_stops_at_first_failure(remote_db, fake_remote):
    fake_remote.on("goaltracker.goals", httpx.Response(500))
    r = remote_db.initialize()
    assert r.success is False
    # schema, users, then the failing goals table
    assert len(fake_remote.queries) == 3


def test_schema_name_is_validated():
    with pytest.raises(ValueError):
        RemoteDatabase("http://remote.test", "t", schema="x; DROP TABLE users")
