from __future__ import annotations

import pytest

from config import db_config_from_env, env_flag, get_settings_module


@pytest.mark.parametrize(
    "value, expected",
    [
        ("production", "config.production"),
        ("PROD", "config.production"),
        ("test", "config.testing"),
        ("staging", "config.development"),
        ("", "config.development"),
    ],
)
def test_settings_module_follows_app_env(monkeypatch, value, expected):
    monkeypatch.setenv("APP_ENV", value)
    assert get_settings_module() == expected


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("AUTO_INIT_DB", "yes")
    monkeypatch.delenv("DB_NAME", raising=False)
    monkeypatch.setenv("DB_PORT", "3307")

    assert env_flag("AUTO_INIT_DB", False)
    assert not env_flag("SOMETHING_UNSET", False)

    db = db_config_from_env("hotel_academy_test")
    assert (db["port"], db["database"]) == (3307, "hotel_academy_test")
