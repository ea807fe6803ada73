from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "batch_worker"
    db_username: str = "batch_worker"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    batch_poll_interval_seconds: int = 600
    max_concurrent_jobs: int = 8
    stats_window_hours: int = 24

    batch_provider: str = "openai"

    openai_api_key: str = ""
    openai_timeout_seconds: int = 30

    openai_compatible_base_url: str = ""
    openai_compatible_api_key: str = ""
