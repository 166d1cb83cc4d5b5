import pytest
from pydantic import ValidationError

from app.core.config import Settings


def _settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": "sqlite+aiosqlite:///./test.db",
        "JWT_SECRET": "test-secret",
        "CORS_ORIGINS": "http://localhost:5173",
    }
    values.update(overrides)
    return Settings(**values)


def _settings_with_cors(value: str) -> Settings:
    return _settings(CORS_ORIGINS=value)


def test_cors_origin_list_supports_comma_separated_values() -> None:
    settings = _settings_with_cors("http://localhost:5173,http://localhost:3000")
    assert settings.cors_origin_list() == [
        "http://localhost:5173",
        "http://localhost:3000",
    ]


def test_cors_origin_list_normalizes_quotes_and_trailing_slashes() -> None:
    settings = _settings_with_cors("'http://localhost:5173/'")
    assert settings.cors_origin_list() == ["http://localhost:5173"]


def test_cors_origin_list_supports_json_array_format() -> None:
    settings = _settings_with_cors(
        '["http://localhost:5173", "http://127.0.0.1:5173/"]'
    )
    assert settings.cors_origin_list() == [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]


def test_postgres_url_is_normalized_to_asyncpg() -> None:
    settings = _settings(DATABASE_URL=" postgres://u:p@db:5432/campus ")
    assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/campus"


def test_friend_defaults_and_log_level() -> None:
    settings = _settings(LOG_LEVEL=" debug ")
    assert settings.log_level == "DEBUG"
    assert settings.max_friend_nums == 50
    assert settings.invitation_code_ttl_minutes == 60 * 24


def test_max_friend_nums_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        _settings(MAX_FRIEND_NUMS=0)
