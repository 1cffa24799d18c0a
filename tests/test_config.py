"""
Settings loading tests.
"""

import pytest
from pydantic import ValidationError

from visitflow.core.config import (
    CORSSettings,
    DatabaseSettings,
    Settings,
    _load_env_file_if_available,
    get_settings,
    reset_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


def test_sub_settings_read_their_prefixed_env(monkeypatch):
    monkeypatch.setenv("RETRY_THROTTLE_SECONDS", "45")
    monkeypatch.setenv("PAGINATION_MAX_LIMIT", "20")
    monkeypatch.setenv("WEBHOOK_SECRET", "hook")
    monkeypatch.setenv("RETENTION_DAYS", "30")

    settings = get_settings()

    assert settings.retry.throttle_seconds == 45
    assert settings.pagination.max_limit == 20
    assert settings.webhook.secret == "hook"
    assert settings.retention.days == 30


def test_defaults(monkeypatch):
    for name in ("RETRY_THROTTLE_SECONDS", "PAGINATION_DEFAULT_LIMIT", "RETENTION_PAGE_SIZE"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.retry.throttle_seconds == 30
    assert settings.pagination.default_limit == 50
    assert settings.retention.page_size == 200
    assert settings.retention.batch_max == 500


def test_get_settings_is_cached_until_reset():
    first = get_settings()
    assert get_settings() is first
    reset_settings()
    assert get_settings() is not first


def test_invalid_mongo_uri_is_rejected():
    with pytest.raises(ValidationError):
        DatabaseSettings(uri="postgres://localhost")


def test_cors_origins_accept_comma_separated_string():
    cors = CORSSettings(allowed_origins="https://a.example, https://b.example")
    assert cors.allowed_origins == ["https://a.example", "https://b.example"]


def test_invalid_app_env_is_rejected():
    with pytest.raises(ValidationError):
        Settings(app_env="moon")


def test_env_file_in_parent_directory_is_loaded(monkeypatch, tmp_path):
    # Registered with monkeypatch so the value loaded below is undone
    monkeypatch.setenv("MONGO_DB_NAME", "placeholder")
    monkeypatch.delenv("MONGO_DB_NAME")
    (tmp_path / ".env").write_text("MONGO_DB_NAME=from_env_file\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    _load_env_file_if_available()

    assert DatabaseSettings().db_name == "from_env_file"


def test_already_set_env_vars_take_precedence(monkeypatch, tmp_path):
    monkeypatch.setenv("MONGO_DB_NAME", "already_set")
    (tmp_path / ".env").write_text("MONGO_DB_NAME=from_env_file\n")
    monkeypatch.chdir(tmp_path)

    _load_env_file_if_available()

    assert DatabaseSettings().db_name == "already_set"
