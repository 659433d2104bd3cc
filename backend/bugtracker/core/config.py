import json
from typing import Any, List

from pydantic_settings import BaseSettings, SettingsConfigDict


# Signing secret used when JWT_SECRET_KEY is unset; startup warns (and refuses in production)
DEFAULT_JWT_SECRET = "fallback_secret"


def parse_cors_origins(value: Any) -> List[str]:
    """Accept a JSON list ('["http://a", "http://b"]') or a comma-separated string"""
    if isinstance(value, (list, tuple)):
        return [str(origin) for origin in value]
    if not isinstance(value, str):
        return []

    text = value.strip()
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [str(origin) for origin in parsed]
    return [origin.strip() for origin in text.split(",") if origin.strip()]


class Settings(BaseSettings):
    """Server settings, read from the environment and .env"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # --- service ---
    APP_NAME: str = "Bug Tracker"
    ENVIRONMENT: str = "development"  # development | testing | production
    DEBUG: bool = False
    API_PREFIX: str = "/api"
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 5000

    # --- storage ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./bugtracker.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # --- auth tokens & passwords ---
    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12

    # --- http ---
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://127.0.0.1:3000"
    MAX_REQUEST_SIZE: int = 1024 * 1024
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # --- logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/bugtracker.log"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    def is_dev_mode(self) -> bool:
        return self.DEBUG or self.ENVIRONMENT == "development"

    def uses_default_secret(self) -> bool:
        return self.JWT_SECRET_KEY in ("", DEFAULT_JWT_SECRET)


settings = Settings()
