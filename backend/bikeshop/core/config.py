from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Bikeshop Workflow"
    debug: bool = False

    # API
    frontend_url: str = "http://localhost:5173"
    cors_allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Redis (durable store)
    redis_url: str = "redis://localhost:6379"
    redis_socket_timeout: float = 5.0  # env: REDIS_SOCKET_TIMEOUT (seconds)
    redis_key_prefix: str = "bikeshop"

    # Workshop calendar: "today" is decided in this zone
    workshop_timezone: str = "Europe/Berlin"

    # Urgency classification
    upcoming_window_days: int = 3

    # Trash retention before the sweep purges an entity
    trash_retention_days: int = 30

    # Fields a build must supply on completion unless the workshop configured its own
    default_completion_fields: list[str] = ["brand", "model", "serial_number"]


@lru_cache
def get_settings() -> Settings:
    return Settings()
