"""Library configuration loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Cloud Tasks settings with environment variable loading and sensible defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = "tasksbox"
    debug: bool = False
    log_level: str = "INFO"

    # Default queue used by get_default_queue()
    gcp_project: str = ""
    gcp_location: str = "asia-northeast1"
    cloud_tasks_queue: str = "default"

    # Identity attached to every task as an OIDC token
    service_account_email: str = ""

    # Upper bound on in-flight creations during a multi-create. None = unbounded.
    max_concurrency: int | None = None


settings = Settings()
