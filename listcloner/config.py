from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/listcloner.db"

    # AT Protocol service (PDS / entryway)
    atproto_service_url: str = "https://bsky.social"
    atproto_timeout: float = 30.0

    # Host accepted in source list URLs
    list_url_host: str = "bsky.app"

    # Clone pipeline
    insert_batch_size: int = 25
    job_ttl_seconds: int = 7 * 24 * 60 * 60

    # Number of background workers draining the job queue
    worker_count: int = 2


settings = Settings()
