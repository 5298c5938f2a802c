import json
import os

# Import-time settings (module-level engine, default app) must not touch a real db
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.pop("REMOTE_API_TOKEN", None)

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from goaltracker.core.config import Settings  # noqa: E402
from goaltracker.db import Base, make_engine, make_session_factory  # noqa: E402
from goaltracker.models.local_entry import LocalEntry  # noqa: E402,F401
from goaltracker.persistence.local import LocalStore  # noqa: E402
from goaltracker.persistence.remote import QUERY_PATH, RemoteDatabase  # noqa: E402


class FakeRemote:
    """MockTransport handler standing in for the hosted query and prompt endpoints.

    Responses are picked by the first registered fragment found in the SQL text;
    a response can be a JSON body, an httpx.Response, an exception or a callable
    taking the decoded payload.
    """

    def __init__(self):
        self.queries = []
        self.prompt_calls = []
        self.rules = []
        self.default = {"data": []}
        self.prompt_response = {"value": None}

    def on(self, fragment: str, response):
        self.rules.append((fragment, response))
        return self

    def fail_all(self, status: int = 500):
        self.default = httpx.Response(status, json={"error": "boom"})
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content or b"{}")
        if request.url.path != QUERY_PATH:
            self.prompt_calls.append((request.url.path, payload))
            response = self.prompt_response
        else:
            self.queries.append(payload)
            response = next((r for fragment, r in self.rules if fragment in payload["query"]), self.default)
        if callable(response) and not isinstance(response, httpx.Response):
            response = response(payload)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def sql(self) -> list[str]:
        return [q["query"] for q in self.queries]


@pytest.fixture
def fake_remote():
    return FakeRemote()


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def local_store(session_factory):
    return LocalStore(session_factory, prefix="goalTracker")


@pytest.fixture
def broken_store():
    # No tables: every read and write fails at the database
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield LocalStore(make_session_factory(engine), prefix="goalTracker")
    engine.dispose()


@pytest.fixture
def remote_db(fake_remote):
    db = RemoteDatabase(
        "http://remote.test",
        "token-123",
        app_id="app-1",
        usage_key="usage-1",
        transport=fake_remote.transport,
    )
    yield db
    db.close()


@pytest.fixture
def offline_db(fake_remote):
    db = RemoteDatabase("http://remote.test", None, transport=fake_remote.transport)
    yield db
    db.close()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite+pysqlite:///:memory:",
        remote_api_token=None,
        remote_api_base="http://remote.test",
        public_base_url="http://app.test",
        use_remote_suggestions=False,
    )


@pytest.fixture
def client(settings):
    from fastapi.testclient import TestClient  # noqa: WPS433
    from goaltracker.main import create_app  # noqa: WPS433

    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def logged_in(client):
    r = client.post("/auth/login", json={"email": "sam@example.com", "password": "x"})
    assert r.status_code == 200, r.text
    return client
