"""Client for the hosted Postgres-over-HTTP endpoint.

Every call is a single POST of `{"query": ..., "params": [...]}`; the server
substitutes `$1, $2, ...` positionally and answers `{"data": [rows]}`.
Nothing here raises to the caller: transport errors, non-2xx answers and
malformed bodies all come back as a failed `QueryResult`.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time

import httpx

logger = logging.getLogger(__name__)

QUERY_PATH = "/api_tools/templates/call_postgres"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass
class QueryResult:
    success: bool
    data: list = field(default_factory=list)
    error: str | None = None

    @property
    def first(self) -> dict | None:
        return self.data[0] if self.data else None


def _jsonable(value):
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def remote_headers(token: str | None, app_id: str | None, usage_key: str | None) -> dict:
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    if app_id:
        headers["X-Generated-App-ID"] = app_id
    if usage_key:
        headers["X-Usage-Key"] = usage_key
    return headers


class RemoteDatabase:
    def __init__(
        self,
        base_url: str,
        token: str | None,
        app_id: str | None = None,
        usage_key: str | None = None,
        schema: str = "goaltracker",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        if not _IDENTIFIER.match(schema):
            raise ValueError(f"Invalid schema name: {schema!r}")
        self.schema = schema
        self.configured = bool(token)
        self._client = httpx.Client(
            base_url=base_url,
            headers=remote_headers(token, app_id, usage_key),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings, transport: httpx.BaseTransport | None = None) -> "RemoteDatabase":
        return cls(
            settings.remote_api_base,
            settings.remote_api_token,
            app_id=settings.remote_app_id,
            usage_key=settings.remote_usage_key,
            schema=settings.remote_schema,
            timeout=settings.remote_timeout,
            transport=transport,
        )

    def table(self, name: str) -> str:
        return f"{self.schema}.{name}"

    def execute(self, query: str, params: list | None = None) -> QueryResult:
        if not self.configured:
            return QueryResult(False, error="Remote database not configured")

        payload = {"query": query, "params": [_jsonable(p) for p in (params or [])]}
        try:
            r = self._client.post(QUERY_PATH, json=payload)
        except httpx.HTTPError as e:
            logger.warning("Database error: %s", e)
            return QueryResult(False, error=str(e) or e.__class__.__name__)

        if not r.is_success:
            logger.warning("Database query failed: %s", r.status_code)
            return QueryResult(False, error=f"HTTP {r.status_code}")

        try:
            body = r.json()
        except ValueError:
            logger.warning("Database returned a non-JSON body")
            return QueryResult(False, error="Malformed response")

        data = body.get("data") if isinstance(body, dict) else None
        if data is None:
            data = []
        if not isinstance(data, list):
            logger.warning("Database returned unexpected data: %r", type(data).__name__)
            return QueryResult(False, error="Malformed response")
        return QueryResult(True, data=data)

    def initialize(self) -> QueryResult:
        """Provision the schema and tables. Stops at the first failing statement."""
        if not self.configured:
            logger.info("Remote database not configured, using local storage")
            return QueryResult(False, error="Remote database not configured")

        schema_result = self.execute(f"CREATE SCHEMA IF NOT EXISTS {self.schema}")
        if not schema_result.success:
            logger.warning("Failed to create schema, using local storage fallback")
            return QueryResult(False, error="Schema creation failed, using local storage")

        for ddl in self._table_ddl():
            result = self.execute(ddl)
            if not result.success:
                logger.warning("Failed to create table, using local storage fallback")
                return QueryResult(False, error="Database unavailable, using local storage")

        logger.info("Database initialization completed")
        return QueryResult(True)

    def close(self) -> None:
        self._client.close()

    def _table_ddl(self) -> list[str]:
        s = self.schema
        return [
            f"""CREATE TABLE IF NOT EXISTS {s}.users (
                id SERIAL PRIMARY KEY,
                email VARCHAR(255) UNIQUE NOT NULL,
                name VARCHAR(255) NOT NULL,
                password_hash VARCHAR(255) NOT NULL,
                onboarding_completed BOOLEAN DEFAULT FALSE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )""",
            f"""CREATE TABLE IF NOT EXISTS {s}.goals (
                id SERIAL PRIMARY KEY,
                user_id INTEGER REFERENCES {s}.users(id) ON DELETE CASCADE,
                title VARCHAR(500) NOT NULL,
                description TEXT,
                goal_type VARCHAR(20) NOT NULL,
                target_value INTEGER NOT NULL DEFAULT 1,
                total_progress INTEGER DEFAULT 0,
                start_date DATE NOT NULL,
                end_date DATE,
                status VARCHAR(20) DEFAULT 'active',
                habit_stack_trigger TEXT,
                reminder_time TIME,
                metadata TEXT DEFAULT '{{}}',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                completed_at TIMESTAMP
            )""",
            f"""CREATE TABLE IF NOT EXISTS {s}.progress_logs (
                id SERIAL PRIMARY KEY,
                goal_id INTEGER REFERENCES {s}.goals(id) ON DELETE CASCADE,
                value INTEGER NOT NULL,
                notes TEXT,
                logged_date DATE DEFAULT CURRENT_DATE,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )""",
            f"""CREATE TABLE IF NOT EXISTS {s}.accountability_partners (
                id SERIAL PRIMARY KEY,
                user_id INTEGER REFERENCES {s}.users(id) ON DELETE CASCADE,
                partner_name VARCHAR(255) NOT NULL,
                partner_email VARCHAR(255) NOT NULL,
                shared_goals TEXT DEFAULT '[]',
                privacy_settings TEXT DEFAULT '{{}}',
                status VARCHAR(20) DEFAULT 'active',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )""",
            f"""CREATE TABLE IF NOT EXISTS {s}.micro_goals (
                id SERIAL PRIMARY KEY,
                parent_goal_id INTEGER REFERENCES {s}.goals(id) ON DELETE CASCADE,
                title VARCHAR(500) NOT NULL,
                description TEXT,
                target_date DATE,
                completed BOOLEAN DEFAULT FALSE,
                order_index INTEGER DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                completed_at TIMESTAMP
            )""",
            f"""CREATE TABLE IF NOT EXISTS {s}.reflections (
                id SERIAL PRIMARY KEY,
                user_id INTEGER REFERENCES {s}.users(id) ON DELETE CASCADE,
                prompt TEXT NOT NULL,
                response TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )""",
        ]
