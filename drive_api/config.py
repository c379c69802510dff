from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/files.db"

    S3_BUCKET: str = "personal-drive"
    S3_REGION: str = "us-east-1"
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_ENDPOINT_URL: str | None = None
    S3_KEY_PREFIX: str = "files"
    S3_TIMEOUT_SECONDS: int = 30

    DOWNLOAD_URL_TTL_SECONDS: int = 3600
    MAX_UPLOAD_BYTES: int = 100 * 1024 * 1024
    ALLOWED_MIME_PREFIXES: list[str] = ["image/", "video/", "audio/", "application/", "text/"]

    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100
    RECENT_WINDOW_DAYS: int = 30

    AUTH_ENABLED: bool = True
    OWNER_EMAIL: str = "owner@localhost"
    OWNER_PASSWORD_HASH: str | None = None
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    FRONTEND_URL: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
