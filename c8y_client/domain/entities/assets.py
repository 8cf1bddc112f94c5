"""
Asset Tree Entities

Groups and devices wrap a ``ManagedObject`` and are arranged in a tree that
mirrors the tenant's asset hierarchy. Children are held as ``AnyC8yObject``
so one list can mix groups and devices. Nodes hold no reference to their
parent; navigation upwards is a top-down search from the root.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple, Union
from uuid import uuid4

from c8y_client.shared.consts import C8Y_ID_TYPE, C8Y_SERIAL_TYPE

from .errors import NotAGroupObjectError
from .external_id import ExternalId, index_by_type
from .fragments import Address, AssignedNetwork, ContactInfo, Planning
from .managed_object import AvailabilityStatus, ManagedObject

HIERARCHY_SEPARATOR = ", "


class WrappedType(str, Enum):
    DEVICE = "device"
    GROUP = "group"


class C8yObject:
    """State shared by devices and groups."""

    def __init__(
        self,
        managed_object: ManagedObject,
        hierarchy: Optional[Iterable[str]] = None,
        external_ids: Optional[Iterable[ExternalId]] = None,
    ):
        self.id = str(uuid4())
        self.managed_object = managed_object
        self.hierarchy: List[str] = list(hierarchy or [])
        self.external_ids = index_by_type(list(external_ids or []))
        self.children: List[AnyC8yObject] = []

    @property
    def c8y_id(self) -> Optional[str]:
        return self.managed_object.id

    @property
    def name(self) -> Optional[str]:
        return self.managed_object.name

    @property
    def type(self) -> str:
        return self.managed_object.type

    @property
    def hierarchy_path(self) -> str:
        return HIERARCHY_SEPARATOR.join(self.hierarchy)

    @property
    def org_category(self) -> Optional[str]:
        return self.managed_object.string_property("xOrgCategory")

    @property
    def operational_level(self) -> Optional[str]:
        return self.managed_object.string_property("xOperationalLevel")

    def set_external_ids(self, external_ids: Iterable[ExternalId]) -> None:
        self.external_ids = index_by_type(list(external_ids))

    def external_id(self, id_type: str) -> Optional[ExternalId]:
        return self.external_ids.get(id_type)

    def match(self, value: str, id_type: Optional[str] = None) -> bool:
        """
        True if ``value`` identifies this object. Without a type, or with
        type ``c8y_Id``, the server id is compared.
        """
        if id_type is None or id_type == C8Y_ID_TYPE:
            return self.c8y_id == value
        ext = self.external_ids.get(id_type)
        return ext is not None and ext.external_id == value

    def is_different(self, other: "C8yObject") -> bool:
        return (
            self.managed_object != other.managed_object
            or self.external_ids != other.external_ids
        )

    def walk(self) -> Iterator["AnyC8yObject"]:
        """Yield every descendant, depth-first and pre-order."""
        for child in self.children:
            yield child
            yield from child.wrapped.walk()

    def find(self, c8y_id: str) -> Optional["AnyC8yObject"]:
        return next((o for o in self.walk() if o.c8y_id == c8y_id), None)

    def parent_of(self, c8y_id: str) -> Optional["C8yObject"]:
        """The node whose direct children include ``c8y_id``."""
        if any(child.c8y_id == c8y_id for child in self.children):
            return self
        for child in self.children:
            parent = child.wrapped.parent_of(c8y_id)
            if parent is not None:
                return parent
        return None

    def device_for_id(self, c8y_id: str) -> Optional["C8yDevice"]:
        return self.device_for_external_id(c8y_id, C8Y_ID_TYPE)

    def device_for_external_id(
        self, value: str, id_type: Optional[str] = None
    ) -> Optional["C8yDevice"]:
        return next(
            (o.device for o in self.walk() if o.device and o.device.match(value, id_type)),
            None,
        )

    def remove_from_group(self, c8y_id: str) -> bool:
        """Remove the first descendant with ``c8y_id``. False if absent."""
        for index, child in enumerate(self.children):
            if child.c8y_id == c8y_id:
                del self.children[index]
                return True
            if child.wrapped.remove_from_group(c8y_id):
                return True
        return False

    def replace_in_group(self, obj: Union["C8yObject", "AnyC8yObject"]) -> bool:
        """Replace the first descendant sharing ``obj``'s id. False if absent."""
        wrapped = AnyC8yObject.of(obj)
        for index, child in enumerate(self.children):
            if child == wrapped:
                self.children[index] = wrapped
                return True
            if child.wrapped.replace_in_group(wrapped):
                return True
        return False

    @property
    def devices(self) -> List["C8yDevice"]:
        return [child.device for child in self.children if child.device is not None]

    @property
    def device_count(self) -> int:
        return sum(child.wrapped.device_count for child in self.children)

    @property
    def online_count(self) -> int:
        return sum(child.wrapped.online_count for child in self.children)

    @property
    def offline_count(self) -> int:
        return self.device_count - self.online_count

    @property
    def alarms_count(self) -> int:
        return sum(child.wrapped.alarms_count for child in self.children)

    @property
    def devices_with_alarms_count(self) -> int:
        return sum(child.wrapped.devices_with_alarms_count for child in self.children)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(c8y_id={self.c8y_id!r}, name={self.name!r})"


class C8yDevice(C8yObject):
    """A device; its children are child devices."""

    @property
    def category(self) -> Optional[str]:
        return self.managed_object.string_property("xC8yDeviceCategory")

    @property
    def status(self) -> AvailabilityStatus:
        return self.managed_object.status

    @property
    def is_online(self) -> bool:
        return self.status != AvailabilityStatus.UNAVAILABLE

    @property
    def alarms(self) -> int:
        return self.managed_object.alarms

    @property
    def network(self) -> Optional[AssignedNetwork]:
        return self.managed_object.network

    @property
    def serial_number(self) -> Optional[str]:
        ext = self.external_ids.get(C8Y_SERIAL_TYPE)
        if ext is not None:
            return ext.external_id
        hardware = self.managed_object.hardware
        return hardware.serial_number if hardware else None

    @property
    def supplier(self) -> Optional[str]:
        hardware = self.managed_object.hardware
        return hardware.supplier if hardware else None

    @property
    def model(self) -> Optional[str]:
        hardware = self.managed_object.hardware
        return hardware.model if hardware else None

    @property
    def revision(self) -> Optional[str]:
        hardware = self.managed_object.hardware
        return hardware.revision if hardware else None

    @property
    def device_count(self) -> int:
        return 1 + super().device_count

    @property
    def online_count(self) -> int:
        return int(self.is_online) + super().online_count

    @property
    def alarms_count(self) -> int:
        return self.alarms + super().alarms_count

    @property
    def devices_with_alarms_count(self) -> int:
        return int(self.alarms > 0) + super().devices_with_alarms_count


@dataclass
class GroupInfo:
    org_name: Optional[str] = None
    address: Optional[Address] = None
    contact: Optional[ContactInfo] = None
    planning: Optional[Planning] = None

    @classmethod
    def from_managed_object(cls, managed_object: ManagedObject) -> "GroupInfo":
        props = managed_object.properties
        address = props.get(Address.KEY)
        contact = props.get(ContactInfo.PREFIX)
        planning = props.get(Planning.PREFIX)
        return cls(
            org_name=managed_object.string_property("xGroupDescription"),
            address=address if isinstance(address, Address) else None,
            contact=contact if isinstance(contact, ContactInfo) else None,
            planning=planning if isinstance(planning, Planning) else None,
        )


class C8yGroup(C8yObject):
    """
    A group of devices and sub-groups.

    Raises:
        NotAGroupObjectError: If ``managed_object`` has a server id but is
            not a group.
    """

    def __init__(
        self,
        managed_object: ManagedObject,
        hierarchy: Optional[Iterable[str]] = None,
        external_ids: Optional[Iterable[ExternalId]] = None,
    ):
        if managed_object.id is not None and not managed_object.is_group:
            raise NotAGroupObjectError(managed_object.id, managed_object.type)
        super().__init__(managed_object, hierarchy, external_ids)

    @property
    def group_category(self) -> Optional[str]:
        return self.managed_object.string_property("xGroupCategory")

    @property
    def info(self) -> GroupInfo:
        return GroupInfo.from_managed_object(self.managed_object)

    @property
    def sub_groups(self) -> List["C8yGroup"]:
        return [child.group for child in self.children if child.group is not None]

    def add_to_group(
        self,
        obj: Union[C8yObject, "AnyC8yObject"],
        sub_group_id: Optional[str] = None,
    ) -> bool:
        """
        Insert ``obj`` as a direct child, or as a child of the descendant group
        ``sub_group_id``. A child with the same id is replaced in place,
        otherwise groups go to the front and devices to the back.

        Returns:
            False if ``sub_group_id`` was given and no such group exists.
        """
        if sub_group_id is not None and sub_group_id != self.c8y_id:
            group = self.group_for_id(sub_group_id)
            if group is None:
                return False
            return group.add_to_group(obj)

        wrapped = AnyC8yObject.of(obj)
        for index, child in enumerate(self.children):
            if child == wrapped:
                self.children[index] = wrapped
                return True
        if wrapped.is_group:
            self.children.insert(0, wrapped)
        else:
            self.children.append(wrapped)
        return True

    def group_for_id(self, c8y_id: str) -> Optional["C8yGroup"]:
        return self.group_for_external_id(c8y_id, C8Y_ID_TYPE)

    def group_for_external_id(
        self, value: str, id_type: Optional[str] = None
    ) -> Optional["C8yGroup"]:
        return next(
            (o.group for o in self.walk() if o.group and o.group.match(value, id_type)),
            None,
        )

    def object_for_name(self, name: str) -> Optional["AnyC8yObject"]:
        return next((o for o in self.walk() if o.name == name), None)


class AnyC8yObject:
    """
    Tagged wrapper over a device or a group.

    Two wrappers are equal when their server ids are equal. Objects without
    a server id compare by local id.
    """

    __slots__ = ("wrapped",)

    def __init__(self, wrapped: Union[C8yDevice, C8yGroup]):
        self.wrapped = wrapped

    @classmethod
    def of(cls, obj: Union[C8yObject, "AnyC8yObject"]) -> "AnyC8yObject":
        return obj if isinstance(obj, AnyC8yObject) else cls(obj)

    @property
    def kind(self) -> WrappedType:
        if isinstance(self.wrapped, C8yGroup):
            return WrappedType.GROUP
        return WrappedType.DEVICE

    @property
    def is_group(self) -> bool:
        return self.kind == WrappedType.GROUP

    @property
    def device(self) -> Optional[C8yDevice]:
        return self.wrapped if isinstance(self.wrapped, C8yDevice) else None

    @property
    def group(self) -> Optional[C8yGroup]:
        return self.wrapped if isinstance(self.wrapped, C8yGroup) else None

    @property
    def id(self) -> str:
        return self.wrapped.id

    @property
    def c8y_id(self) -> Optional[str]:
        return self.wrapped.c8y_id

    @property
    def name(self) -> Optional[str]:
        return self.wrapped.name

    @property
    def children(self) -> List["AnyC8yObject"]:
        return self.wrapped.children

    def _identity(self) -> Tuple[str, str]:
        # objects not yet saved are told apart by their local id
        if self.c8y_id is not None:
            return ("c8y", self.c8y_id)
        return ("local", self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnyC8yObject):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        return f"AnyC8yObject({self.wrapped!r})"
