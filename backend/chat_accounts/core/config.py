"""Application configuration and settings management."""
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 64 random bytes encode to 103 base32 characters before padding
MIN_TOKEN_LENGTH = 32
MAX_TOKEN_LENGTH = 103


def check_token_length(value: int) -> int:
    if not MIN_TOKEN_LENGTH <= value <= MAX_TOKEN_LENGTH:
        raise ValueError(f"token_length must be between {MIN_TOKEN_LENGTH} and {MAX_TOKEN_LENGTH}")
    return value


class Settings(BaseSettings):
    """Global application settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".." / ".env"),
        env_file_encoding="utf-8",
        env_prefix="CHAT_ACCOUNTS_",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = "Chat Accounts"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./chat_accounts.db"
    database_echo: bool = False

    allowed_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Security tokens (password reset, email confirmation)
    token_length: int = 64

    # Outbound mail
    frontend_url: str = "http://localhost:3000"
    mail_from: str = "Chat Accounts <no-reply@localhost>"
    mailgun_api_key: str | None = None
    mailgun_domain: str | None = None
    mailgun_base_url: str = "https://api.mailgun.net/v3"
    mail_timeout_seconds: float = 10.0

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("token_length")
    @classmethod
    def _check_token_length(cls, value: int) -> int:
        return check_token_length(value)


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings()
