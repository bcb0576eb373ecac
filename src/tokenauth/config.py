from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = Field("sqlite:///auth.db")
    api_title: str = Field("Authentication + JWT API")
    jwt_secret: str = Field("your-secret-key-change-this-in-production")
    jwt_algorithm: str = Field("HS256")
    access_token_expire_hours: int = Field(24)
    password_min_length: int = Field(6)
    bcrypt_rounds: int = Field(10, ge=4, le=31)
    auth_rate_limit: str = Field("5/minute")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    host: str = Field("127.0.0.1")
    port: int = Field(3004)
    log_level: str = Field("INFO")


settings = Settings()
