"""
Group Sync Use Case - Application Layer

Keeps one mirrored asset tree per root group. Loads and refreshes of the
same root are serialised with a per-root lock, so only one loader pass
mutates a tree at a time.
"""

import asyncio
from typing import Dict, List, Optional

from dependency_injector.wiring import Provide, inject

from c8y_client.application.dtos.asset_tree_dto import (
    AssetNodeDTO,
    BranchErrorDTO,
    GroupSyncResponseDTO,
)
from c8y_client.domain.entities.assets import AnyC8yObject, C8yGroup
from c8y_client.domain.entities.errors import DomainError
from c8y_client.domain.gateways.inventory_gateway import IInventoryGateway
from c8y_client.shared import get_logger

from .group_loader import (
    CancellationToken,
    GroupLoader,
    GroupLoadResult,
    Listener,
)

logger = get_logger(__name__)


class GroupSyncUseCase:
    """Use case for mirroring Cumulocity groups into in-memory trees."""

    @inject
    def __init__(
        self,
        inventory_gateway: IInventoryGateway = Provide["inventory_gateway"],
        include_groups: bool = Provide["config.assets.include_groups"],
        page_size: int = Provide["config.c8y.page_size"],
        skipped_types: List[str] = Provide["config.assets.skipped_types"],
        external_id_concurrency: int = Provide[
            "config.assets.external_id_concurrency"
        ],
    ):
        """
        Initialize the use case with its dependencies.

        Args:
            inventory_gateway: Gateway for the inventory and identity APIs
            include_groups: Keep sub-groups as nodes instead of flattening
            page_size: Objects requested per page
            skipped_types: Managed object types that are never mirrored
            external_id_concurrency: Concurrent external id requests
        """
        self.inventory_gateway = inventory_gateway
        self.include_groups = include_groups
        self.page_size = page_size
        self.skipped_types = list(skipped_types)
        self.external_id_concurrency = external_id_concurrency
        self._roots: Dict[str, C8yGroup] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._tokens: Dict[str, CancellationToken] = {}
        self._listeners: List[Listener] = []

    def group(self, group_id: str) -> Optional[C8yGroup]:
        """The tree mirrored so far for ``group_id``, if any."""
        return self._roots.get(group_id)

    def subscribe(self, listener: Listener) -> None:
        """Receive loader events of every subsequent sync."""
        self._listeners.append(listener)

    def cancel(self, group_id: str) -> bool:
        """Cancel the running sync of ``group_id``. False if none is running."""
        token = self._tokens.get(group_id)
        if token is None:
            return False
        token.cancel()
        logger.info("group_sync.cancel_requested", group_id=group_id)
        return True

    async def execute(
        self, group_id: str, refresh: bool = False
    ) -> GroupSyncResponseDTO:
        """
        Load (or refresh) the tree below ``group_id``.

        Raises:
            C8yAPIError: If the root group itself cannot be fetched
            GroupLoadError: If a page of the root group cannot be fetched
            GroupLoadCancelledError: If ``cancel`` was called meanwhile
        """
        lock = self._locks.setdefault(group_id, asyncio.Lock())
        async with lock:
            logger.info("group_sync.started", group_id=group_id, refresh=refresh)
            try:
                root = await self._root(group_id)
                token = CancellationToken()
                self._tokens[group_id] = token
                loader = GroupLoader(
                    root,
                    self.inventory_gateway,
                    include_groups=self.include_groups,
                    page_size=self.page_size,
                    skipped_types=self.skipped_types,
                    cancel_token=token,
                    external_id_concurrency=self.external_id_concurrency,
                )
                for listener in self._listeners:
                    loader.subscribe(listener)
                result = await (loader.refresh() if refresh else loader.load())
            except DomainError as e:
                logger.error(
                    "group_sync.failed",
                    group_id=group_id,
                    error=e.message,
                    exc_info=e,
                )
                raise
            finally:
                self._tokens.pop(group_id, None)

            logger.info(
                "group_sync.completed",
                group_id=group_id,
                device_count=root.device_count,
                errors=len(result.errors),
            )
            return _to_response(group_id, refresh, result)

    async def _root(self, group_id: str) -> C8yGroup:
        root = self._roots.get(group_id)
        if root is None:
            managed_object = await self.inventory_gateway.get_managed_object(group_id)
            root = C8yGroup(managed_object, hierarchy=[managed_object.name or group_id])
            try:
                root.set_external_ids(
                    await self.inventory_gateway.get_external_ids(group_id)
                )
            except DomainError as e:
                logger.warning(
                    "group_sync.external_ids.failed", group_id=group_id, error=e.message
                )
            self._roots[group_id] = root
        return root


def to_asset_node(obj: AnyC8yObject) -> AssetNodeDTO:
    wrapped = obj.wrapped
    device = obj.device
    return AssetNodeDTO(
        c8y_id=obj.c8y_id,
        name=obj.name,
        kind=obj.kind.value,
        type=wrapped.type,
        hierarchy=wrapped.hierarchy_path,
        status=device.status.value if device is not None else None,
        external_ids=[
            f"{ext.type}:{ext.external_id}" for ext in wrapped.external_ids.values()
        ],
        device_count=wrapped.device_count,
        online_count=wrapped.online_count,
        offline_count=wrapped.offline_count,
        alarms_count=wrapped.alarms_count,
        children=[to_asset_node(child) for child in obj.children],
    )


def _to_response(
    group_id: str, refresh: bool, result: GroupLoadResult
) -> GroupSyncResponseDTO:
    return GroupSyncResponseDTO(
        group_id=group_id,
        refresh=refresh,
        pages=result.pages,
        added=result.added,
        updated=result.updated,
        removed=result.removed,
        errors=[
            BranchErrorDTO(group_id=branch, message=message)
            for branch, message in result.errors
        ],
        tree=to_asset_node(AnyC8yObject(result.group)),
    )
