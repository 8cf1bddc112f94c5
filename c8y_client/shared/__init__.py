"""
Shared module - Cross-cutting concerns / Shared Layer

Constants, enums and logging helpers used by every layer of the client.

Following Clean Architecture principles:
- Shared module contains only *cross-cutting concerns*
- It must not depend on Domain, Application or Infrastructure
"""

from .consts import (
    C8Y_ID_TYPE,
    C8Y_SERIAL_TYPE,
    EnumEnvironment,
    EnumLogLevel,
)
from .logging import configure_logging, get_logger, update_logging_from_settings

__all__ = [
    "C8Y_ID_TYPE",
    "C8Y_SERIAL_TYPE",
    "EnumEnvironment",
    "EnumLogLevel",
    "configure_logging",
    "get_logger",
    "update_logging_from_settings",
]
