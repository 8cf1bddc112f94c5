from __future__ import annotations

import logging
from dataclasses import dataclass

from c8y_client.shared.logging import (
    QUIET_LOGGERS,
    configure_logging,
    get_logger,
    update_logging_from_settings,
)


def test_configure_logging_sets_root_handlers(tmp_path) -> None:
    log_file = tmp_path / "c8y.log"
    configure_logging(level="DEBUG", file_path=str(log_file), environment="development")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(handler, logging.FileHandler) for handler in root.handlers)

    logger = get_logger(__name__)
    logger.info("inventory.request", method="GET")


def test_transport_loggers_are_quieted() -> None:
    configure_logging(level="DEBUG", environment="development")

    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


@dataclass
class _LoggingSettings:
    level: str = "WARNING"
    format: str = "%(message)s"
    file_path: str | None = None


@dataclass
class _Settings:
    logging: _LoggingSettings
    environment: str = "production"


def test_update_logging_from_settings_applies_configuration() -> None:
    settings = _Settings(logging=_LoggingSettings(level="ERROR"))

    update_logging_from_settings(settings)

    assert logging.getLogger().level == logging.ERROR


def test_update_logging_from_settings_tolerates_incomplete_settings() -> None:
    update_logging_from_settings(object())
