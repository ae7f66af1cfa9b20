import pytest
from pydantic import ValidationError

from benefit_tracker.config import Settings, get_settings


def test_log_level_is_normalized():
    assert Settings(log_level="debug").log_level == "DEBUG"


def test_unknown_log_level_is_rejected():
    with pytest.raises(ValidationError, match="LOG_LEVEL"):
        Settings(log_level="loud")


def test_reminder_days_must_be_positive():
    with pytest.raises(ValidationError, match="REMINDER_DAYS"):
        Settings(reminder_days=0)


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("REMINDER_DAYS", "14")
    monkeypatch.setenv("APP_NAME", "Benefits Test")

    settings = Settings()

    assert settings.reminder_days == 14
    assert settings.app_name == "Benefits Test"


def test_get_settings_is_cached():
    get_settings.cache_clear()

    assert get_settings() is get_settings()


def test_configs_dir_points_at_bundled_catalog():
    settings = Settings()

    assert settings.configs_dir.name == "cards"
    assert (settings.configs_dir / "amex-platinum.yaml").exists()


def test_user_data_path_follows_data_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))

    settings = Settings()

    assert settings.user_data_path == tmp_path / "user-benefits.json"


def test_explicit_user_data_path_is_kept(tmp_path):
    settings = Settings(data_dir=tmp_path, user_data_path=tmp_path / "elsewhere.json")

    assert settings.user_data_path == tmp_path / "elsewhere.json"
