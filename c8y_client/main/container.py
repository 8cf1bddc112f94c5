"""
Dependency container injection module - Main Layer

Composition root of the client: builds the fragment registry, the
processor, the inventory gateway and the group sync use case from the
application settings.
"""

from contextlib import asynccontextmanager
from typing import Any

from dependency_injector import containers, providers
from pydantic import SecretStr

from c8y_client.application.use_cases.group_sync_use_case import GroupSyncUseCase
from c8y_client.domain.services.fragment_processor import CustomAssetProcessor
from c8y_client.domain.services.fragment_registry import create_default_registry
from c8y_client.infrastructure.gateways.cumulocity_inventory_gateway import (
    CumulocityInventoryGateway,
)
from c8y_client.shared import get_logger

from .config import AppSettings

logger = get_logger(__name__)


def _secret_value(value: Any) -> str:
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    return value or ""


class AppContainer(containers.DeclarativeContainer):
    """Composition Root using dependency-injector."""

    wiring_config = containers.WiringConfiguration(packages=["..application"])

    # Settings
    config = providers.Configuration()

    # Domain services
    fragment_registry = providers.Singleton(create_default_registry)

    asset_processor = providers.Singleton(
        CustomAssetProcessor,
        registry=fragment_registry,
    )

    # Gateways
    inventory_gateway = providers.Singleton(
        CumulocityInventoryGateway,
        base_url=config.c8y.base_url,
        processor=asset_processor,
        tenant=config.c8y.tenant,
        username=config.c8y.username,
        password=providers.Callable(_secret_value, config.c8y.password),
        timeout=config.c8y.timeout,
    )

    # Application (use cases); a singleton because it owns the mirrored trees
    group_sync_use_case = providers.Singleton(
        GroupSyncUseCase,
        inventory_gateway=inventory_gateway,
        include_groups=config.assets.include_groups,
        page_size=config.c8y.page_size,
        skipped_types=config.assets.skipped_types,
        external_id_concurrency=config.assets.external_id_concurrency,
    )


# -------------------------
# Global Container Instance
# -------------------------
_app_container: AppContainer | None = None


def init_container(settings: AppSettings) -> AppContainer:
    """Initialize global container with application settings."""

    global _app_container

    container = AppContainer()
    container.config.from_pydantic(settings)
    _app_container = container
    return container


def get_container() -> AppContainer:
    """Get the initialized global container."""

    if _app_container is None:
        raise RuntimeError("Container has not been initialized yet")

    return _app_container


@asynccontextmanager
async def app_lifespan():
    """
    Lifecycle of the container resources.

    The fragment registry is populated on entry so that collaborators can
    register their own fragment types before the first decode.
    """
    container = get_container()
    registry = container.fragment_registry()
    logger.info("container.resources.initialized", fragments=len(registry))
    try:
        yield container
    finally:
        logger.info("container.resources.shutdown")
