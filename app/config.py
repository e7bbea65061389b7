from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "1.0.0"


class Settings(BaseSettings):
    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8098
    API_PREFIX: str = "/api/v1"
    CORS_ORIGINS: str = "*"
    ENVIRONMENT: str = "development"  # development|production|test
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///notehub.db"  # 仅支持 sqlite / postgresql
    DB_ECHO: bool = False

    # Auth
    AUTH_JWT_SECRET: str = "notehub-dev-secret"
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_TOKEN_TTL_MINUTES: int = 60 * 24 * 7

    # Cache（进程内缓存，失效只作用于当前进程；多 worker 部署需关闭或改用共享缓存）
    CACHE_ENABLED: bool = True
    CACHE_PUBLIC_NOTES_TTL: int = 300
    CACHE_TAG_LIST_TTL: int = 3600

    # History
    HISTORY_RETENTION_DAYS: int = 7

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="NOTEHUB_", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in (self.CORS_ORIGINS or "").split(",") if item.strip()] or ["*"]

    @property
    def is_production(self) -> bool:
        return (self.ENVIRONMENT or "").strip().lower() == "production"


settings = Settings()
