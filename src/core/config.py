"""Application configuration using pydantic-settings."""
from dataclasses import dataclass
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


@dataclass(frozen=True)
class JWTSettings:
    """The subset of settings needed to sign and verify tokens."""

    secret: str
    issuer: str
    audience: str
    enforce_expiration: bool = False
    expiration_minutes: int | None = None


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./bookmarks.db"
    db_log_mode: bool = False  # Echo SQL statements

    # Redis (optional - rate limiting fails open without it)
    # Only scheme, credentials, host and port are taken from the URL
    redis_url: str = "redis://localhost:6379"
    redis_db: int = 0
    redis_enabled: bool = True
    redis_pool_size: int = 10
    redis_max_retries: int = 2
    # Certificate verification for rediss:// URLs
    redis_tls_verify: bool = True

    # JWT
    jwt_secret: str
    jwt_issuer: str
    jwt_audience: str
    # Tokens carry an optional "expiration" claim; the auth gate ignores it unless enabled
    jwt_enforce_expiration: bool = False
    jwt_expiration_minutes: int | None = None

    # HTTP
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:5173"]
    port: int = 8000
    max_upload_bytes: int = 10 * 1024 * 1024

    log_level: str = "INFO"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Accept a comma-separated string or a list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def jwt(self) -> JWTSettings:
        """JWT configuration handed to the claims verifier."""
        return JWTSettings(
            secret=self.jwt_secret,
            issuer=self.jwt_issuer,
            audience=self.jwt_audience,
            enforce_expiration=self.jwt_enforce_expiration,
            expiration_minutes=self.jwt_expiration_minutes,
        )
