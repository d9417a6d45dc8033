from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = Field(None)
    DB_HOST: str = Field("localhost")
    DB_PORT: int = Field(5432)
    DB_USER: str = Field("postgres")
    DB_PASSWORD: str = Field("postgres")
    DB_NAME: str = Field("store_rating_db")
    DB_POOL_SIZE: int = Field(20)
    DB_MAX_OVERFLOW: int = Field(10)
    DB_POOL_TIMEOUT: int = Field(2)
    CREATE_TABLES: bool = Field(False)

    # App
    APP_HOST: str = Field("0.0.0.0")
    APP_PORT: int = Field(8000)
    LOG_LEVEL: str = Field("INFO")

    # JWT / Auth
    SECRET_KEY: str = Field("defaultsecret")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(7 * 24 * 60)

    # Password hashing
    PASSWORD_SCHEMES: List[str] = Field(default_factory=lambda: ["pbkdf2_sha256"])
    PASSWORD_ROUNDS: Optional[int] = Field(None)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
