# teamboard/core/settings.py
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from typing import Annotated, List
from pydantic import field_validator

class Settings(BaseSettings):
    """
    Environment-driven application settings.
    Values are read from the process environment and from .env.
    """
    # Database
    DATABASE_URL: str = "sqlite:///./teamboard.db"

    # JWT / Security
    SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # App meta
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = ["http://localhost:3000"]

    # Comma-separated ALLOWED_ORIGINS from .env
    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

settings = Settings()
