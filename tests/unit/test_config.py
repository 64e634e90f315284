"""Unit tests for configuration loading and validation."""

from __future__ import annotations

import platformdirs
import pytest
from pydantic import ValidationError

from gitfirst.config import _DEFAULT_CACHE_URL, _DEFAULT_DATA_DIR, CacheSettings, Settings


class TestDefaults:
    def test_default_data_dir_matches_platformdirs(self) -> None:
        assert platformdirs.user_data_dir("gitfirst") == _DEFAULT_DATA_DIR

    def test_default_cache_is_sqlite_under_data_dir(self) -> None:
        settings = CacheSettings()
        assert settings.url == _DEFAULT_CACHE_URL
        assert settings.url.startswith("sqlite:///")
        assert settings.url.endswith("cache.db")

    def test_cache_entries_never_expire_by_default(self) -> None:
        assert CacheSettings().ttl_hours is None

    def test_no_token_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITFIRST__GITHUB__TOKEN", raising=False)
        assert Settings().github.token is None


class TestEnvironment:
    def test_nested_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITFIRST__GITHUB__TOKEN", "ghp_secret")
        monkeypatch.setenv("GITFIRST__CACHE__URL", "redis://localhost:6379/0")
        monkeypatch.setenv("GITFIRST__SERVER__PORT", "9090")
        settings = Settings()
        assert settings.github.token is not None
        assert settings.github.token.get_secret_value() == "ghp_secret"
        assert settings.cache.url == "redis://localhost:6379/0"
        assert settings.server.port == 9090

    def test_token_is_not_rendered(self) -> None:
        settings = Settings(github={"token": "ghp_secret"})
        assert "ghp_secret" not in repr(settings)

    def test_constructor_overrides_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITFIRST__SERVER__PORT", "9090")
        assert Settings(server={"port": 7000}).server.port == 7000


class TestValidation:
    def test_wrong_type_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            Settings(server={"port": "not-a-number"})  # type: ignore[arg-type]

    def test_unknown_top_level_field_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            Settings(completely_unknown_field="oops")  # type: ignore[call-arg]

    def test_unknown_nested_field_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            CacheSettings(urll="redis://localhost")  # type: ignore[call-arg]

    def test_ttl_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            CacheSettings(ttl_hours=0)

    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(logging={"level": "LOUD"})
