from __future__ import annotations

import pytest
from pydantic import ValidationError

from c8y_client.domain.entities.managed_object import SMART_RULE_TYPE
from c8y_client.main.config import AppSettings, C8ySettings, get_settings
from c8y_client.shared.consts import EnumEnvironment


def test_get_settings_loads_defaults(monkeypatch) -> None:
    for key in ("C8Y_BASE_URL", "C8Y_PAGE_SIZE", "C8Y_PASSWORD", "C8Y_PASSWORD_FILE"):
        monkeypatch.delenv(key, raising=False)

    settings = get_settings()

    assert settings.c8y.base_url.startswith("https://")
    assert settings.c8y.page_size == 50
    assert settings.assets.include_groups is True
    assert settings.assets.skipped_types == [SMART_RULE_TYPE]
    assert settings.environment == EnumEnvironment.DEVELOPMENT


def test_settings_respect_environment_variables(monkeypatch) -> None:
    monkeypatch.setenv("C8Y_BASE_URL", "https://acme.cumulocity.com")
    monkeypatch.setenv("C8Y_TENANT", "t100")
    monkeypatch.setenv("C8Y_PASSWORD", "secret")
    monkeypatch.setenv("C8Y_PAGE_SIZE", "200")
    monkeypatch.setenv("ASSETS_INCLUDE_GROUPS", "false")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    settings = AppSettings()

    assert settings.c8y.base_url == "https://acme.cumulocity.com"
    assert settings.c8y.tenant == "t100"
    assert settings.c8y.password.get_secret_value() == "secret"
    assert settings.c8y.page_size == 200
    assert settings.assets.include_groups is False
    assert settings.logging.level.value == "DEBUG"


def test_password_file_is_resolved(tmp_path, monkeypatch) -> None:
    secret = tmp_path / "password"
    secret.write_text("from-file\n", encoding="utf-8")
    monkeypatch.delenv("C8Y_PASSWORD", raising=False)
    monkeypatch.setenv("C8Y_PASSWORD_FILE", str(secret))

    settings = get_settings()

    assert settings.c8y.password.get_secret_value() == "from-file"


def test_page_size_is_bounded() -> None:
    with pytest.raises(ValidationError):
        C8ySettings(page_size=0)
