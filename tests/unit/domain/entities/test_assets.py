from __future__ import annotations

import pytest

from c8y_client.domain.entities.assets import (
    AnyC8yObject,
    C8yDevice,
    C8yGroup,
    WrappedType,
)
from c8y_client.domain.entities.custom_asset import StringAsset
from c8y_client.domain.entities.errors import NotAGroupObjectError
from c8y_client.domain.entities.external_id import ExternalId
from c8y_client.domain.entities.fragments import Address
from c8y_client.domain.entities.managed_object import (
    AvailabilityStatus,
    Hardware,
    ManagedObject,
)


def test_group_rejects_non_group_managed_object() -> None:
    with pytest.raises(NotAGroupObjectError):
        C8yGroup(ManagedObject(id="1", type="c8y_Device"))


def test_group_accepts_uncreated_object() -> None:
    group = C8yGroup(ManagedObject(name="draft"))

    assert group.c8y_id is None


def test_add_to_group_orders_groups_before_devices(make_group, make_device) -> None:
    root = make_group("1", "Root")
    root.add_to_group(make_device("10"))
    root.add_to_group(make_group("2", "A"))
    root.add_to_group(make_device("11"))
    root.add_to_group(make_group("3", "B"))

    assert [c.c8y_id for c in root.children] == ["3", "2", "10", "11"]
    assert [g.c8y_id for g in root.sub_groups] == ["3", "2"]
    assert [d.c8y_id for d in root.devices] == ["10", "11"]


def test_add_to_group_is_idempotent_and_replaces(make_group, make_device) -> None:
    root = make_group("1")
    root.add_to_group(make_device("10", name="old"))
    root.add_to_group(make_device("11"))

    assert root.add_to_group(make_device("10", name="new")) is True

    assert [c.c8y_id for c in root.children] == ["10", "11"]
    assert root.children[0].name == "new"


def test_add_to_sub_group(make_group, make_device) -> None:
    root = make_group("1")
    sub = make_group("2")
    root.add_to_group(sub)

    assert root.add_to_group(make_device("10"), sub_group_id="2") is True
    assert root.add_to_group(make_device("11"), sub_group_id="404") is False
    assert [c.c8y_id for c in sub.children] == ["10"]
    assert root.parent_of("10") is sub


def test_counters(make_group, make_device) -> None:
    root = make_group("1")
    sub = make_group("2")
    root.add_to_group(sub)
    root.add_to_group(make_device("10", alarms=2))
    root.add_to_group(make_device("11", status=AvailabilityStatus.UNAVAILABLE))
    sub.add_to_group(make_device("12", status=AvailabilityStatus.MAINTENANCE, alarms=1))

    assert root.device_count == 3
    assert root.online_count == 2
    assert root.offline_count == 1
    assert root.alarms_count == 3
    assert root.devices_with_alarms_count == 2
    assert sub.device_count == 1


def test_device_counters_include_child_devices(make_device) -> None:
    gateway = make_device("10", alarms=1)
    gateway.children.append(
        AnyC8yObject(make_device("11", status=AvailabilityStatus.UNAVAILABLE))
    )

    assert gateway.device_count == 2
    assert gateway.online_count == 1
    assert gateway.alarms_count == 1


def test_find_by_external_id(make_group, make_device) -> None:
    root = make_group("1")
    sub = make_group("2")
    sub.set_external_ids([ExternalId("c8y_SiteCode", "S-7")])
    root.add_to_group(sub)
    sub.add_to_group(
        make_device("10", external_ids=[ExternalId("c8y_Serial", "SN-10")])
    )

    assert root.device_for_external_id("SN-10", "c8y_Serial").c8y_id == "10"
    assert root.device_for_external_id("SN-10", "c8y_Imei") is None
    assert root.device_for_id("10").serial_number == "SN-10"
    assert root.group_for_external_id("S-7", "c8y_SiteCode") is sub
    assert root.group_for_id("2") is sub
    assert root.group_for_id("10") is None
    assert root.object_for_name("device").c8y_id == "10"


def test_match_defaults_to_server_id(make_device) -> None:
    device = make_device("10", external_ids=[ExternalId("c8y_Serial", "10")])

    assert device.match("10")
    assert device.match("10", "c8y_Id")
    assert not device.match("11")
    assert not device.match("10", "c8y_Imei")


def test_remove_and_replace(make_group, make_device) -> None:
    root = make_group("1")
    sub = make_group("2")
    root.add_to_group(sub)
    sub.add_to_group(make_device("10", name="before"))

    assert root.replace_in_group(make_device("10", name="after")) is True
    assert root.device_for_id("10").name == "after"
    assert root.replace_in_group(make_device("404")) is False

    assert root.remove_from_group("10") is True
    assert root.remove_from_group("10") is False
    assert root.find("10") is None
    assert root.device_count == 0


def test_walk_is_preorder(make_group, make_device) -> None:
    root = make_group("1")
    sub = make_group("2")
    root.add_to_group(make_device("10"))
    root.add_to_group(sub)
    sub.add_to_group(make_device("20"))

    assert [o.c8y_id for o in root.walk()] == ["2", "20", "10"]


def test_any_object_equality(make_device, make_group) -> None:
    a = AnyC8yObject(make_device("10", name="a"))
    b = AnyC8yObject(make_device("10", name="b"))
    draft_1 = AnyC8yObject(make_device(None))
    draft_2 = AnyC8yObject(make_device(None))

    assert a == b
    assert hash(a) == hash(b)
    assert draft_1 != draft_2
    assert draft_1 == draft_1
    assert a.kind == WrappedType.DEVICE
    assert AnyC8yObject(make_group("1")).is_group


def test_saved_object_differs_from_draft_sharing_local_id(make_device) -> None:
    saved = make_device("10")
    draft = make_device(None)
    draft.id = saved.id

    a = AnyC8yObject(saved)
    b = AnyC8yObject(draft)

    assert a != b
    assert len({a, b}) == 2
    assert {a, AnyC8yObject(make_device("10"))} == {a}


def test_device_properties() -> None:
    managed_object = ManagedObject(
        id="10",
        is_device=True,
        hardware=Hardware(serial_number="HW-1", model="X1", supplier="Acme"),
        properties={"xC8yDeviceCategory": StringAsset("meter")},
    )
    device = C8yDevice(managed_object)

    assert device.serial_number == "HW-1"
    assert device.model == "X1"
    assert device.supplier == "Acme"
    assert device.category == "meter"
    assert device.is_online


def test_group_info() -> None:
    group = C8yGroup(
        ManagedObject(
            id="1",
            type="c8y_DeviceGroup",
            properties={
                "xGroupDescription": StringAsset("Acme Corp"),
                "xGroupAddress": Address("Main St 1", "Springfield", "12345"),
                "xGroupCategory": StringAsset("site"),
            },
        ),
        hierarchy=["Root", "Site"],
    )

    assert group.info.org_name == "Acme Corp"
    assert group.info.address.city == "Springfield"
    assert group.info.contact is None
    assert group.group_category == "site"
    assert group.hierarchy_path == "Root, Site"


def test_is_different(make_device) -> None:
    a = make_device("10")
    b = make_device("10")

    assert not a.is_different(b)
    b.set_external_ids([ExternalId("c8y_Serial", "SN")])
    assert a.is_different(b)
