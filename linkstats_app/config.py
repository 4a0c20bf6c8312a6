from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Application
    app_name: str = "LinkStats"
    app_version: str = "1.0.0"

    # Public base URL used to compose short URLs in responses
    base_url: str = "http://127.0.0.1:8000"

    # Record store (source of truth for URL records and their analytics)
    record_store_backend: str = "sqlalchemy"  # Options: "sqlalchemy", "memory"
    database_url: str = "sqlite:///./linkstats.db"

    # Alias generation
    alias_length: int = 8
    alias_max_attempts: int = 20

    # Cache settings
    cache_backend: str = "redis"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 0  # Seconds; 0 keeps entries until the backend evicts them

    # Click tracking
    click_tracking: str = "inline"  # Options: "inline", "queue"
    queue_backend: str = "redis_streams"  # Options: "redis_streams", "memory"
    queue_name: str = "url_clicks"
    queue_consumer_group: str = "click_workers"
    queue_batch_size: int = 100
    queue_block_ms: int = 1000
    queue_claim_idle_ms: int = 60000  # Pending clicks older than this are redelivered
    redis_timeout: int = 2

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
