"""
Managed Object Entity

The generic Cumulocity inventory record. Core attributes are mapped onto
typed fields; every remaining top-level key is handed to the fragment
processor and lands in ``properties``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from .custom_asset import (
    CustomAsset,
    StringAsset,
    format_c8y_datetime,
    optional_float,
    optional_int,
    optional_str,
    parse_c8y_datetime,
    require_list,
    require_mapping,
)
from .fragments import AssignedNetwork

if TYPE_CHECKING:
    from c8y_client.domain.services.fragment_processor import CustomAssetProcessor

DEVICE_TYPE = "c8y_Device"
GROUP_TYPE = "c8y_DeviceGroup"
SUBGROUP_TYPE = "c8y_DeviceSubgroup"
SMART_RULE_TYPE = "c8y_PrivateSmartRule"

IS_DEVICE_KEY = "c8y_IsDevice"
IS_GROUP_KEY = "c8y_IsDeviceGroup"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
    MAINTENANCE = "MAINTENANCE"
    NEW = "NEW"
    UNKNOWN = "UNKNOWN"


@dataclass(slots=True)
class Position:
    lat: float
    lng: float
    alt: Optional[float] = None

    @classmethod
    def from_json(cls, value: Any) -> "Position":
        data = require_mapping("c8y_Position", value)
        # positions entered by hand are often stored as strings
        return cls(
            lat=optional_float("c8y_Position.lat", data.get("lat")) or 0.0,
            lng=optional_float("c8y_Position.lng", data.get("lng")) or 0.0,
            alt=optional_float("c8y_Position.alt", data.get("alt")),
        )

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"lat": self.lat, "lng": self.lng}
        if self.alt is not None:
            data["alt"] = self.alt
        return data


@dataclass(slots=True)
class Availability:
    status: AvailabilityStatus = AvailabilityStatus.UNKNOWN
    last_message: Optional[datetime] = None

    @classmethod
    def from_json(cls, value: Any) -> "Availability":
        data = require_mapping("c8y_Availability", value)
        try:
            status = AvailabilityStatus(data.get("status", "UNKNOWN"))
        except ValueError:
            status = AvailabilityStatus.UNKNOWN
        last_message = data.get("lastMessage")
        return cls(
            status=status,
            last_message=None
            if last_message is None
            else parse_c8y_datetime("c8y_Availability.lastMessage", last_message),
        )

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": self.status.value}
        if self.last_message is not None:
            data["lastMessage"] = format_c8y_datetime(self.last_message)
        return data


@dataclass(slots=True)
class ActiveAlarmsStatus:
    warning: int = 0
    minor: int = 0
    major: int = 0
    critical: int = 0

    @property
    def total(self) -> int:
        return self.warning + self.minor + self.major + self.critical

    @classmethod
    def from_json(cls, value: Any) -> "ActiveAlarmsStatus":
        data = require_mapping("c8y_ActiveAlarmsStatus", value)
        return cls(
            warning=_count("warning", data),
            minor=_count("minor", data),
            major=_count("major", data),
            critical=_count("critical", data),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "warning": self.warning,
            "minor": self.minor,
            "major": self.major,
            "critical": self.critical,
        }


@dataclass(slots=True)
class Hardware:
    serial_number: Optional[str] = None
    model: Optional[str] = None
    supplier: Optional[str] = None
    revision: Optional[str] = None

    _KEYS = ("serialNumber", "model", "supplier", "revision")

    @classmethod
    def from_json(cls, value: Any) -> "Hardware":
        data = require_mapping("c8y_Hardware", value)
        return cls(
            *(optional_str(f"c8y_Hardware.{key}", data.get(key)) for key in cls._KEYS)
        )

    def to_json(self) -> Dict[str, Any]:
        values = (self.serial_number, self.model, self.supplier, self.revision)
        return {k: v for k, v in zip(self._KEYS, values) if v is not None}


@dataclass(slots=True)
class Firmware:
    name: Optional[str] = None
    version: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_json(cls, value: Any) -> "Firmware":
        data = require_mapping("c8y_Firmware", value)
        return cls(
            name=optional_str("c8y_Firmware.name", data.get("name")),
            version=optional_str("c8y_Firmware.version", data.get("version")),
            url=optional_str("c8y_Firmware.url", data.get("url")),
        )

    def to_json(self) -> Dict[str, Any]:
        data = {"name": self.name, "version": self.version, "url": self.url}
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class ManagedObject:
    """
    A Cumulocity managed object.

    ``id`` is assigned by the server and stays ``None`` until the object has
    been created. ``properties`` holds one entry per decoded fragment.
    """

    id: Optional[str] = None
    type: str = DEVICE_TYPE
    name: Optional[str] = None
    owner: Optional[str] = None
    creation_time: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    notes: Optional[str] = None
    is_device: bool = False
    is_group_marker: bool = False
    position: Optional[Position] = None
    availability: Optional[Availability] = None
    required_availability: Optional[int] = None
    connection_status: Optional[str] = None
    active_alarms_status: Optional[ActiveAlarmsStatus] = None
    hardware: Optional[Hardware] = None
    firmware: Optional[Firmware] = None
    supported_operations: List[str] = field(default_factory=list)
    sensor_types: List[str] = field(default_factory=list)
    network: Optional[AssignedNetwork] = None
    properties: Dict[str, CustomAsset] = field(default_factory=dict)

    @property
    def status(self) -> AvailabilityStatus:
        if self.availability is None:
            return AvailabilityStatus.UNKNOWN
        return self.availability.status

    @property
    def is_group(self) -> bool:
        return self.is_group_marker or self.type in (GROUP_TYPE, SUBGROUP_TYPE)

    @property
    def alarms(self) -> int:
        if self.active_alarms_status is None:
            return 0
        return self.active_alarms_status.total

    def property_value(self, key: str) -> Optional[CustomAsset]:
        return self.properties.get(key)

    def string_property(self, key: str) -> Optional[str]:
        """Value of a plain string fragment, ``None`` for any other kind."""
        asset = self.properties.get(key)
        if isinstance(asset, StringAsset):
            return asset.value
        return None

    @classmethod
    def from_json(
        cls, raw: Mapping[str, Any], processor: "CustomAssetProcessor"
    ) -> "ManagedObject":
        """
        Decode a managed object.

        Raises:
            FragmentDecodeError: If any fragment has an unexpected shape. No
                partially decoded object is returned.
        """
        remaining = dict(raw)
        for key in _IGNORED_KEYS:
            remaining.pop(key, None)

        obj = cls(
            id=optional_str("id", remaining.pop("id", None)),
            type=optional_str("type", remaining.pop("type", None)) or DEVICE_TYPE,
            name=optional_str("name", remaining.pop("name", None)),
            owner=optional_str("owner", remaining.pop("owner", None)),
            notes=optional_str("c8y_Notes", remaining.pop("c8y_Notes", None)),
            is_device=IS_DEVICE_KEY in remaining,
            is_group_marker=IS_GROUP_KEY in remaining,
        )
        remaining.pop(IS_DEVICE_KEY, None)
        remaining.pop(IS_GROUP_KEY, None)

        created = remaining.pop("creationTime", None)
        if created is not None:
            obj.creation_time = parse_c8y_datetime("creationTime", created)
        updated = remaining.pop("lastUpdated", None)
        if updated is not None:
            obj.last_updated = parse_c8y_datetime("lastUpdated", updated)

        if "c8y_Position" in remaining:
            obj.position = Position.from_json(remaining.pop("c8y_Position"))
        if "c8y_Availability" in remaining:
            obj.availability = Availability.from_json(remaining.pop("c8y_Availability"))
        if "c8y_RequiredAvailability" in remaining:
            interval = require_mapping(
                "c8y_RequiredAvailability", remaining.pop("c8y_RequiredAvailability")
            ).get("responseInterval")
            obj.required_availability = optional_int(
                "c8y_RequiredAvailability.responseInterval", interval
            )
        if "c8y_Connection" in remaining:
            obj.connection_status = optional_str(
                "c8y_Connection.status",
                require_mapping("c8y_Connection", remaining.pop("c8y_Connection")).get(
                    "status"
                ),
            )
        if "c8y_ActiveAlarmsStatus" in remaining:
            obj.active_alarms_status = ActiveAlarmsStatus.from_json(
                remaining.pop("c8y_ActiveAlarmsStatus")
            )
        if "c8y_Hardware" in remaining:
            obj.hardware = Hardware.from_json(remaining.pop("c8y_Hardware"))
        if "c8y_Firmware" in remaining:
            obj.firmware = Firmware.from_json(remaining.pop("c8y_Firmware"))
        if "c8y_SupportedOperations" in remaining:
            obj.supported_operations = [
                str(op)
                for op in require_list(
                    "c8y_SupportedOperations", remaining.pop("c8y_SupportedOperations")
                )
            ]

        obj.sensor_types = [key for key in remaining if _is_sensor_marker(key)]
        for key in obj.sensor_types:
            remaining.pop(key)

        obj.network = AssignedNetwork.from_json(remaining)
        for key in AssignedNetwork.KEYS:
            remaining.pop(key, None)

        obj.properties = processor.decode(remaining)
        return obj

    def to_json(self, processor: "CustomAssetProcessor") -> Dict[str, Any]:
        """Encode the object into a payload suitable for POST or PUT."""
        payload = processor.encode(self.properties)
        if self.network is not None:
            self.network.encode_into(payload)

        core: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "owner": self.owner,
            "c8y_Notes": self.notes,
        }
        payload.update({k: v for k, v in core.items() if v is not None})

        if self.is_device:
            payload[IS_DEVICE_KEY] = {}
        if self.is_group_marker:
            payload[IS_GROUP_KEY] = {}
        for sensor in self.sensor_types:
            payload[sensor] = {}
        if self.position is not None:
            payload["c8y_Position"] = self.position.to_json()
        if self.availability is not None:
            payload["c8y_Availability"] = self.availability.to_json()
        if self.required_availability is not None:
            payload["c8y_RequiredAvailability"] = {
                "responseInterval": self.required_availability
            }
        if self.connection_status is not None:
            payload["c8y_Connection"] = {"status": self.connection_status}
        if self.active_alarms_status is not None:
            payload["c8y_ActiveAlarmsStatus"] = self.active_alarms_status.to_json()
        if self.hardware is not None:
            payload["c8y_Hardware"] = self.hardware.to_json()
        if self.firmware is not None:
            payload["c8y_Firmware"] = self.firmware.to_json()
        if self.supported_operations:
            payload["c8y_SupportedOperations"] = list(self.supported_operations)
        return payload


# Server managed references and links, never sent back.
_IGNORED_KEYS = (
    "self",
    "childAssets",
    "childDevices",
    "childAdditions",
    "assetParents",
    "deviceParents",
    "additionParents",
    "applicationId",
    "applicationOwner",
)


def _is_sensor_marker(key: str) -> bool:
    return key.startswith("c8y_") and key.endswith("Sensor")


def _count(severity: str, data: Mapping[str, Any]) -> int:
    return optional_int(f"c8y_ActiveAlarmsStatus.{severity}", data.get(severity)) or 0
