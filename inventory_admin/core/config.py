# inventory_admin/core/config.py
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # tell pydantic-settings which .env file to load
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "inventory"

    # protected routes answer 500 while this is unset
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    RESET_MAX_ATTEMPTS: int = 5
    RESET_REQUEST_COOLDOWN_MINUTES: int = 20
    FRONTEND_URL: str = "http://localhost:5173"

    EMAIL_HOST: Optional[str] = None
    EMAIL_PORT: int = 587
    EMAIL_SECURE: bool = False
    EMAIL_USER: Optional[str] = None
    EMAIL_PASS: Optional[str] = None
    EMAIL_FROM_NAME: str = "Ndong World Wide"

    LOG_LEVEL: str = "INFO"


settings = Settings()


def get_settings() -> Settings:
    return settings
