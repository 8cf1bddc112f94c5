"""
Group Loader - Application Layer

Mirrors the children of a Cumulocity group into an in-memory ``C8yGroup``.
Pages of the ``bygroupid`` query are fetched one after the other. Objects are
processed one at a time in server order. For a sub-group, its external ids
and a nested loader run concurrently before it is spliced into the parent.
A refresh also removes children the server no longer reports.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from c8y_client.domain.entities.assets import AnyC8yObject, C8yDevice, C8yGroup
from c8y_client.domain.entities.errors import (
    DomainError,
    GroupLoadCancelledError,
    GroupLoadError,
)
from c8y_client.domain.entities.external_id import ExternalId
from c8y_client.domain.entities.managed_object import SMART_RULE_TYPE, ManagedObject
from c8y_client.domain.entities.page import PagedManagedObjects
from c8y_client.domain.entities.query import ManagedObjectQuery
from c8y_client.domain.gateways.inventory_gateway import IInventoryGateway
from c8y_client.shared import get_logger

logger = get_logger(__name__)

FIRST_PAGE = 1
DEFAULT_PAGE_SIZE = 50
DEFAULT_EXTERNAL_ID_CONCURRENCY = 10


class LoaderState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    UNWRAPPING = "unwrapping"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class LoaderEvent(str, Enum):
    OBJECT_ADDED = "object_added"
    OBJECT_UPDATED = "object_updated"
    OBJECT_REMOVED = "object_removed"
    GROUP_LOADED = "group_loaded"
    DONE = "done"


Listener = Callable[[C8yGroup, LoaderEvent], None]


class CancellationToken:
    """Shared by a loader and all its nested loaders; checked before each page."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self, group_id: Optional[str], page: int) -> None:
        if self._cancelled:
            raise GroupLoadCancelledError(group_id, page)


@dataclass
class GroupLoadResult:
    group: C8yGroup
    processed: Set[str] = field(default_factory=set)
    added: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)
    # hierarchy paths of flattened branches that failed to load
    kept_branches: List[List[str]] = field(default_factory=list)
    pages: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors

    def merge(self, other: "GroupLoadResult") -> None:
        self.added.extend(other.added)
        self.updated.extend(other.updated)
        self.removed.extend(other.removed)
        self.errors.extend(other.errors)
        self.kept_branches.extend(other.kept_branches)
        self.pages += other.pages


class GroupLoader:
    """
    Loads or refreshes the subtree below ``group``.

    Args:
        group: Group to populate; must have a server id
        gateway: Inventory gateway used for queries and external ids
        include_groups: Keep sub-groups as tree nodes. When False their
            devices are flattened into ``group``
        page_size: Objects requested per page
        skipped_types: Managed object types ignored entirely
        path: Hierarchy names given to the loaded devices, defaults to the
            group's own hierarchy
        cancel_token: Token checked before every page fetch
        external_id_concurrency: Upper bound of concurrent external id
            requests
        semaphore: Limiter handed down by a parent loader, replaces
            ``external_id_concurrency``
    """

    def __init__(
        self,
        group: C8yGroup,
        gateway: IInventoryGateway,
        *,
        include_groups: bool = True,
        page_size: int = DEFAULT_PAGE_SIZE,
        skipped_types: Iterable[str] = (SMART_RULE_TYPE,),
        path: Optional[Sequence[str]] = None,
        cancel_token: Optional[CancellationToken] = None,
        external_id_concurrency: int = DEFAULT_EXTERNAL_ID_CONCURRENCY,
        semaphore: Optional[asyncio.Semaphore] = None,
    ):
        self.group = group
        self.gateway = gateway
        self.include_groups = include_groups
        self.page_size = page_size
        self.skipped_types = frozenset(skipped_types)
        self.path: List[str] = list(path if path is not None else group.hierarchy)
        self.cancel_token = cancel_token or CancellationToken()
        self.state = LoaderState.IDLE
        self.current_page = 0
        self.processed_objects: Set[str] = set()
        self._semaphore = semaphore or asyncio.Semaphore(external_id_concurrency)
        self._listeners: List[Listener] = []
        self._refreshing = False

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def load(self) -> GroupLoadResult:
        return await self._run(refresh=False)

    async def refresh(self) -> GroupLoadResult:
        """Load again and remove children that no longer exist on the server."""
        return await self._run(refresh=True)

    async def _run(self, refresh: bool) -> GroupLoadResult:
        group_id = self.group.c8y_id
        self._refreshing = refresh
        self.processed_objects = set()
        result = GroupLoadResult(group=self.group)
        query = ManagedObjectQuery.by_group_id(group_id or "")

        logger.info("group_loader.started", group_id=group_id, refresh=refresh)
        page = FIRST_PAGE
        try:
            while True:
                self.cancel_token.raise_if_cancelled(group_id, page)
                self.state = LoaderState.LOADING
                self.current_page = page
                paged = await self._fetch_page(query, page)
                result.pages += 1

                self.state = LoaderState.UNWRAPPING
                for managed_object in paged.objects:
                    await self._process(managed_object, result)

                if not paged.has_more(self.page_size):
                    break
                page += 1
        except GroupLoadCancelledError:
            self.state = LoaderState.CANCELLED
            logger.info("group_loader.cancelled", group_id=group_id, page=page)
            raise
        except GroupLoadError:
            self.state = LoaderState.FAILED
            raise

        if refresh:
            self._remove_vanished(result)

        result.processed = set(self.processed_objects)
        self.state = LoaderState.DONE
        logger.info(
            "group_loader.completed",
            group_id=group_id,
            pages=result.pages,
            processed=len(result.processed),
            removed=len(result.removed),
            errors=len(result.errors),
        )
        self._notify(LoaderEvent.DONE)
        return result

    async def _fetch_page(
        self, query: ManagedObjectQuery, page: int
    ) -> PagedManagedObjects:
        try:
            paged = await self.gateway.get_managed_objects(query, page, self.page_size)
        except DomainError as e:
            logger.error(
                "group_loader.page.failed",
                group_id=self.group.c8y_id,
                page=page,
                error=e.message,
            )
            raise GroupLoadError(self.group.c8y_id, page, e) from e

        logger.debug(
            "group_loader.page.fetched",
            group_id=self.group.c8y_id,
            page=page,
            count=len(paged.objects),
        )
        return paged

    async def _process(
        self, managed_object: ManagedObject, result: GroupLoadResult
    ) -> None:
        if managed_object.id is None:
            return
        if managed_object.type in self.skipped_types:
            logger.debug(
                "group_loader.object.skipped",
                c8y_id=managed_object.id,
                type=managed_object.type,
            )
            return

        if managed_object.is_group:
            await self._process_group(managed_object, result)
        else:
            await self._process_device(managed_object, result)

    async def _process_device(
        self, managed_object: ManagedObject, result: GroupLoadResult
    ) -> None:
        device = C8yDevice(
            managed_object,
            hierarchy=self.path,
            external_ids=await self._external_ids(managed_object.id),
        )
        self._reconcile(device, result)
        self.processed_objects.add(managed_object.id)

    async def _process_group(
        self, managed_object: ManagedObject, result: GroupLoadResult
    ) -> None:
        existing = self._direct_child(managed_object.id)
        sub_group = existing.group if existing is not None else None
        is_new = sub_group is None
        changed = False
        if sub_group is not None:
            changed = sub_group.managed_object != managed_object
            sub_group.managed_object = managed_object
        else:
            sub_group = C8yGroup(
                managed_object,
                hierarchy=[*self.path, managed_object.name or managed_object.id],
            )

        nested = GroupLoader(
            sub_group,
            self.gateway,
            include_groups=self.include_groups,
            page_size=self.page_size,
            skipped_types=self.skipped_types,
            path=sub_group.hierarchy,
            cancel_token=self.cancel_token,
            semaphore=self._semaphore,
        )
        for listener in self._listeners:
            nested.subscribe(listener)

        ids_task = asyncio.create_task(self._external_ids(managed_object.id))
        try:
            loaded = await self._load_nested(nested, result)
        except (DomainError, asyncio.CancelledError):
            ids_task.cancel()
            raise
        sub_group.set_external_ids(await ids_task)

        if self.include_groups:
            if is_new:
                self.group.add_to_group(sub_group)
                result.added.append(managed_object.id)
                self._notify(LoaderEvent.OBJECT_ADDED)
            elif changed:
                result.updated.append(managed_object.id)
                self._notify(LoaderEvent.OBJECT_UPDATED)
            self.processed_objects.add(managed_object.id)
        elif loaded:
            for device in _descendant_devices(sub_group):
                self._reconcile(device, result)
                self.processed_objects.add(device.c8y_id)
        else:
            result.kept_branches.append(list(sub_group.hierarchy))

        self._notify(LoaderEvent.GROUP_LOADED)

    async def _load_nested(
        self, nested: "GroupLoader", result: GroupLoadResult
    ) -> bool:
        try:
            nested_result = await (
                nested.refresh() if self._refreshing else nested.load()
            )
        except GroupLoadError as e:
            # the branch is kept as it is, so a refresh must not drop it
            logger.warning(
                "group_loader.branch.failed",
                group_id=self.group.c8y_id,
                branch_id=nested.group.c8y_id,
                error=e.message,
            )
            result.errors.append((nested.group.c8y_id or "", e.message))
            return False
        if self.include_groups:
            result.merge(nested_result)
        else:
            # the nested group is discarded, its devices are reconciled here
            result.errors.extend(nested_result.errors)
            result.kept_branches.extend(nested_result.kept_branches)
            result.pages += nested_result.pages
        return True

    async def _external_ids(self, c8y_id: str) -> List[ExternalId]:
        async with self._semaphore:
            try:
                return await self.gateway.get_external_ids(c8y_id)
            except DomainError as e:
                logger.warning(
                    "group_loader.external_ids.failed",
                    c8y_id=c8y_id,
                    error=e.message,
                )
                return []

    def _keep_branch(self, branch_path: List[str]) -> None:
        """Keep the devices flattened from a branch that could not be loaded."""
        depth = len(branch_path)
        for child in self.group.children:
            device = child.device
            if device is not None and device.hierarchy[:depth] == branch_path:
                self.processed_objects.add(device.c8y_id)

    def _direct_child(self, c8y_id: str) -> Optional[AnyC8yObject]:
        return next((c for c in self.group.children if c.c8y_id == c8y_id), None)

    def _reconcile(self, device: C8yDevice, result: GroupLoadResult) -> None:
        existing = self._direct_child(device.c8y_id)
        if existing is None:
            self.group.add_to_group(device)
            result.added.append(device.c8y_id)
            self._notify(LoaderEvent.OBJECT_ADDED)
        elif not self._refreshing or existing.wrapped.is_different(device):
            device.children = existing.children
            self.group.add_to_group(device)
            result.updated.append(device.c8y_id)
            self._notify(LoaderEvent.OBJECT_UPDATED)

    def _remove_vanished(self, result: GroupLoadResult) -> None:
        for path in result.kept_branches:
            self._keep_branch(path)
        for child in list(self.group.children):
            if child.c8y_id is None or child.c8y_id in self.processed_objects:
                continue
            self.group.remove_from_group(child.c8y_id)
            result.removed.append(child.c8y_id)
            logger.info(
                "group_loader.object.removed",
                group_id=self.group.c8y_id,
                c8y_id=child.c8y_id,
            )
            self._notify(LoaderEvent.OBJECT_REMOVED)

    def _notify(self, event: LoaderEvent) -> None:
        for listener in list(self._listeners):
            listener(self.group, event)


def _descendant_devices(group: C8yGroup) -> Iterator[C8yDevice]:
    for child in group.children:
        if child.group is not None:
            yield from _descendant_devices(child.group)
        elif child.device is not None:
            yield child.device
