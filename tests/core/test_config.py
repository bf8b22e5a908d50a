"""Tests for application configuration."""
import pytest
from pydantic import ValidationError

from core.config import JWTSettings, Settings

JWT_FIELDS = {
    "jwt_secret": "secret",
    "jwt_issuer": "https://issuer.test/",
    "jwt_audience": "bookmarks-api",
}


def _settings(**overrides: object) -> Settings:
    # Don't load from .env file
    return Settings(_env_file=None, **{**JWT_FIELDS, **overrides})


class TestCorsOriginsParsing:
    """Tests for CORS origins parsing from environment variables."""

    def test_parse_single_origin_string(self) -> None:
        settings = _settings(cors_origins="http://localhost:5173")
        assert settings.cors_origins == ["http://localhost:5173"]

    def test_parse_origins_with_whitespace(self) -> None:
        """Whitespace around comma-separated origins is stripped."""
        settings = _settings(cors_origins="  http://localhost:5173 , https://example.com  ")
        assert settings.cors_origins == ["http://localhost:5173", "https://example.com"]

    def test_parse_origins_list_passthrough(self) -> None:
        origins = ["http://localhost:5173", "https://example.com"]
        assert _settings(cors_origins=origins).cors_origins == origins

    def test_parse_empty_string(self) -> None:
        assert _settings(cors_origins="").cors_origins == []

    def test_parse_trailing_comma(self) -> None:
        assert _settings(cors_origins="http://localhost:5173,").cors_origins == [
            "http://localhost:5173",
        ]

    def test_parse_origins_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A plain comma-separated env var is not mistaken for JSON."""
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test,http://b.test")
        assert _settings().cors_origins == ["http://a.test", "http://b.test"]


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self) -> None:
        settings = _settings()
        assert settings.database_url.startswith("sqlite+aiosqlite://")
        assert settings.redis_enabled is True
        assert settings.redis_db == 0
        assert settings.redis_max_retries == 2
        assert settings.redis_tls_verify is True
        assert settings.port == 8000
        assert settings.cors_origins == ["http://localhost:5173"]
        assert settings.jwt_enforce_expiration is False
        assert settings.jwt_expiration_minutes is None


class TestJWTConfig:
    """Tests for JWT settings."""

    def test_jwt_fields_are_required(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in JWT_FIELDS:
            monkeypatch.delenv(name.upper(), raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_jwt_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWT_SECRET", "from-env")
        monkeypatch.setenv("JWT_ISSUER", "X")
        monkeypatch.setenv("JWT_AUDIENCE", "Y")
        monkeypatch.setenv("JWT_ENFORCE_EXPIRATION", "true")

        settings = Settings(_env_file=None)

        assert settings.jwt == JWTSettings(
            secret="from-env", issuer="X", audience="Y", enforce_expiration=True,
        )

    def test_jwt_property(self) -> None:
        jwt = _settings(jwt_expiration_minutes=15).jwt
        assert jwt.secret == "secret"
        assert jwt.issuer == "https://issuer.test/"
        assert jwt.audience == "bookmarks-api"
        assert jwt.enforce_expiration is False
        assert jwt.expiration_minutes == 15


class TestRedisConfig:
    """Tests for the standalone Redis settings."""

    def test_redis_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REDIS_URL", "rediss://cache.internal:6380")
        monkeypatch.setenv("REDIS_DB", "3")
        monkeypatch.setenv("REDIS_POOL_SIZE", "25")
        monkeypatch.setenv("REDIS_TLS_VERIFY", "false")

        settings = _settings()

        assert settings.redis_url == "rediss://cache.internal:6380"
        assert settings.redis_db == 3
        assert settings.redis_pool_size == 25
        assert settings.redis_tls_verify is False
