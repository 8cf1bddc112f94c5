from __future__ import annotations

import asyncio
import math
import re
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from c8y_client.domain.entities.assets import C8yDevice, C8yGroup  # noqa: E402
from c8y_client.domain.entities.errors import C8yAPIError  # noqa: E402
from c8y_client.domain.entities.external_id import ExternalId  # noqa: E402
from c8y_client.domain.entities.managed_object import (  # noqa: E402
    GROUP_TYPE,
    ActiveAlarmsStatus,
    Availability,
    AvailabilityStatus,
    ManagedObject,
)
from c8y_client.domain.entities.page import (  # noqa: E402
    PagedManagedObjects,
    PageStatistics,
)
from c8y_client.domain.entities.query import ManagedObjectQuery  # noqa: E402
from c8y_client.domain.gateways.inventory_gateway import (  # noqa: E402
    IInventoryGateway,
)
from c8y_client.domain.services.fragment_processor import (  # noqa: E402
    CustomAssetProcessor,
)
from c8y_client.domain.services.fragment_registry import (  # noqa: E402
    FragmentRegistry,
    create_default_registry,
)

_GROUP_QUERY = re.compile(r"bygroupid\((?P<id>[^)]*)\)")


@pytest.fixture()
def registry() -> FragmentRegistry:
    return create_default_registry()


@pytest.fixture()
def processor(registry: FragmentRegistry) -> CustomAssetProcessor:
    return CustomAssetProcessor(registry)


def raw_device(
    c8y_id: str,
    name: str,
    status: str = "AVAILABLE",
    alarms: int = 0,
    **fragments: Any,
) -> Dict[str, Any]:
    raw: Dict[str, Any] = {
        "id": c8y_id,
        "name": name,
        "type": "c8y_Device",
        "c8y_IsDevice": {},
        "c8y_Availability": {"status": status},
        "c8y_ActiveAlarmsStatus": {"major": alarms},
    }
    raw.update(fragments)
    return raw


def raw_group(c8y_id: str, name: str, **fragments: Any) -> Dict[str, Any]:
    raw: Dict[str, Any] = {
        "id": c8y_id,
        "name": name,
        "type": GROUP_TYPE,
        "c8y_IsDeviceGroup": {},
    }
    raw.update(fragments)
    return raw


@pytest.fixture()
def device_json() -> Callable[..., Dict[str, Any]]:
    return raw_device


@pytest.fixture()
def group_json() -> Callable[..., Dict[str, Any]]:
    return raw_group


@pytest.fixture()
def make_device() -> Callable[..., C8yDevice]:
    def _make(
        c8y_id: Optional[str],
        name: str = "device",
        status: AvailabilityStatus = AvailabilityStatus.AVAILABLE,
        alarms: int = 0,
        external_ids: Iterable[ExternalId] = (),
    ) -> C8yDevice:
        managed_object = ManagedObject(
            id=c8y_id,
            name=name,
            is_device=True,
            availability=Availability(status=status),
            active_alarms_status=ActiveAlarmsStatus(major=alarms),
        )
        return C8yDevice(managed_object, external_ids=external_ids)

    return _make


@pytest.fixture()
def make_group() -> Callable[..., C8yGroup]:
    def _make(c8y_id: Optional[str], name: str = "group") -> C8yGroup:
        return C8yGroup(
            ManagedObject(id=c8y_id, name=name, type=GROUP_TYPE, is_group_marker=True),
            hierarchy=[name],
        )

    return _make


class FakeInventoryGateway(IInventoryGateway):
    """In-memory inventory: raw objects, group membership and external ids."""

    def __init__(self, processor: CustomAssetProcessor):
        self.processor = processor
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.children: Dict[str, List[str]] = {}
        self.external_ids: Dict[str, List[ExternalId]] = {}
        self.report_total_pages = True
        self.failing_pages: Set[Tuple[str, int]] = set()
        self.failing_external_ids: Set[str] = set()
        self.page_calls: List[Tuple[str, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add(self, raw: Dict[str, Any], parent: Optional[str] = None) -> None:
        self.objects[raw["id"]] = raw
        self.children.setdefault(raw["id"], [])
        if parent is not None:
            self.children.setdefault(parent, []).append(raw["id"])

    def remove(self, c8y_id: str) -> None:
        self.objects.pop(c8y_id, None)
        for members in self.children.values():
            if c8y_id in members:
                members.remove(c8y_id)

    async def get_managed_object(self, c8y_id: str) -> ManagedObject:
        if c8y_id not in self.objects:
            raise C8yAPIError(f"{c8y_id} not found", status_code=404, reason="Not Found")
        return ManagedObject.from_json(self.objects[c8y_id], self.processor)

    async def get_managed_objects(
        self, query: ManagedObjectQuery, page_num: int, page_size: int
    ) -> PagedManagedObjects:
        match = _GROUP_QUERY.search(query.build())
        assert match is not None
        group_id = match.group("id")
        self.page_calls.append((group_id, page_num))

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
        finally:
            self.in_flight -= 1

        if (group_id, page_num) in self.failing_pages:
            raise C8yAPIError("server error", status_code=500, reason="Server Error")

        members = self.children.get(group_id, [])
        start = (page_num - 1) * page_size
        page_ids = members[start : start + page_size]
        total_pages = max(1, math.ceil(len(members) / page_size))
        return PagedManagedObjects(
            objects=[
                ManagedObject.from_json(self.objects[i], self.processor)
                for i in page_ids
            ],
            statistics=PageStatistics(
                current_page=page_num,
                page_size=page_size,
                total_pages=total_pages if self.report_total_pages else None,
            ),
        )

    async def get_external_ids(self, c8y_id: str) -> List[ExternalId]:
        if c8y_id in self.failing_external_ids:
            raise C8yAPIError("identity unavailable", status_code=503)
        return list(self.external_ids.get(c8y_id, []))

    async def create_managed_object(self, managed_object: ManagedObject) -> ManagedObject:
        raw = managed_object.to_json(self.processor)
        raw["id"] = str(len(self.objects) + 1000)
        self.add(raw)
        return ManagedObject.from_json(raw, self.processor)

    async def update_managed_object(self, managed_object: ManagedObject) -> ManagedObject:
        raw = managed_object.to_json(self.processor)
        self.objects[raw["id"]] = raw
        return ManagedObject.from_json(raw, self.processor)

    async def delete_managed_object(self, c8y_id: str) -> None:
        self.remove(c8y_id)

    async def register_external_id(
        self, c8y_id: str, external_id: ExternalId
    ) -> ExternalId:
        stored = ExternalId(external_id.type, external_id.external_id, c8y_id)
        self.external_ids.setdefault(c8y_id, []).append(stored)
        return stored

    async def assign_to_group(self, group_id: str, child_id: str) -> None:
        self.children.setdefault(group_id, []).append(child_id)


@pytest.fixture()
def fake_gateway(processor: CustomAssetProcessor) -> FakeInventoryGateway:
    return FakeInventoryGateway(processor)
