"""
Main module - Main/Composition Root Layer

Builds the application settings and wires the dependency container that
hands gateways and use cases to callers.
"""

from .config import AppSettings, get_settings
from .container import AppContainer, get_container, init_container

__all__ = [
    "AppSettings",
    "get_settings",
    "AppContainer",
    "init_container",
    "get_container",
]
