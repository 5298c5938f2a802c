from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    # Local durable key-value storage (fallback persistence + session slot)
    database_url: str = "sqlite+pysqlite:///./goaltracker.db"

    # Remote Postgres-over-HTTP and prompt execution service
    remote_api_base: str = "https://builder.empromptu.ai"
    remote_api_token: str | None = None
    remote_app_id: str | None = None
    remote_usage_key: str | None = None
    remote_schema: str = "goaltracker"
    remote_timeout: float = 10.0  # seconds, single attempt

    # Key namespace for local storage: <prefix>_<entity>_<ownerId>
    storage_prefix: str = "goalTracker"

    # Offline demo mode: fallback login/register succeed without a credential check.
    # Set to false to require a locally stored credential when the remote db is down.
    offline_demo_auth: bool = True

    # The shipped configuration answers suggestions from local rules only
    use_remote_suggestions: bool = False

    # Origin used for share and partner-invite links
    public_base_url: str = "http://localhost:5173"

    log_level: str = "INFO"

    # Allow empty env strings for optional fields
    @field_validator("remote_api_token", "remote_app_id", "remote_usage_key", mode="before")
    @classmethod
    def _empty_to_none(cls, v):
        if v in ("", None, "null", "None"):
            return None
        return v

    @property
    def remote_configured(self) -> bool:
        return bool(self.remote_api_token)

    class Config:
        env_file = ".env"


settings = Settings()
