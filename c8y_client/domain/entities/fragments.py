"""
Built-in Fragment Records

Structured custom assets for the fragments the client understands out of the
box. Prefix records (``Planning``, ``ContactInfo``) are filled one raw key at
a time and keep unrecognised keys under their prefix in ``extras`` so that
re-encoding emits exactly the keys that were decoded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional

from .custom_asset import (
    CustomAsset,
    DictionaryAsset,
    format_c8y_datetime,
    merge_value,
    optional_float,
    optional_str,
    parse_c8y_datetime,
    require_bool,
    require_list,
    require_mapping,
    require_str,
)
from .errors import FragmentDecodeError


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


@dataclass
class Planning(CustomAsset):
    """Deployment planning of a device or group (``xPlanning*`` keys)."""

    PREFIX: ClassVar[str] = "xPlanning"
    IS_DEPLOYED_KEY: ClassVar[str] = "xPlanningIsDeployed"
    DEPLOYED_DATE_KEY: ClassVar[str] = "xPlanningDeployedDate"
    PLANNED_DATE_KEY: ClassVar[str] = "xPlanningDate"
    PROJECT_OWNER_KEY: ClassVar[str] = "xPlanningProjectOwner"

    is_deployed: bool = False
    deployed_date: Optional[datetime] = None
    planned_date: Optional[datetime] = None
    project_owner: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)
    # set once the flag has been decoded or assigned through mark_deployed
    has_deployed_flag: bool = field(default=False, compare=False, repr=False)

    def mark_deployed(self, deployed: bool = True) -> None:
        self.is_deployed = deployed
        self.has_deployed_flag = True

    def decode(self, key: str, value: Any) -> None:
        if key == self.IS_DEPLOYED_KEY:
            self.mark_deployed(require_bool(key, value))
        elif key == self.DEPLOYED_DATE_KEY:
            self.deployed_date = parse_c8y_datetime(key, value)
        elif key == self.PLANNED_DATE_KEY:
            self.planned_date = parse_c8y_datetime(key, value)
        elif key == self.PROJECT_OWNER_KEY:
            self.project_owner = require_str(key, value)
        else:
            self.extras[key] = value

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        if self.has_deployed_flag or self.is_deployed:
            payload[self.IS_DEPLOYED_KEY] = self.is_deployed
        if self.deployed_date is not None:
            payload[self.DEPLOYED_DATE_KEY] = format_c8y_datetime(self.deployed_date)
        if self.planned_date is not None:
            payload[self.PLANNED_DATE_KEY] = format_c8y_datetime(self.planned_date)
        if self.project_owner is not None:
            payload[self.PROJECT_OWNER_KEY] = self.project_owner
        payload.update(self.extras)


@dataclass
class ContactInfo(CustomAsset):
    """Contact person for a site (``xContact*`` keys)."""

    PREFIX: ClassVar[str] = "xContact"
    NAME_KEY: ClassVar[str] = "xContactName"
    PHONE_KEY: ClassVar[str] = "xContactPhone"
    EMAIL_KEY: ClassVar[str] = "xContactEmail"

    contact: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    def decode(self, key: str, value: Any) -> None:
        if key == self.NAME_KEY:
            self.contact = require_str(key, value)
        elif key == self.PHONE_KEY:
            # phone numbers are sometimes stored as plain integers
            if isinstance(value, int) and not isinstance(value, bool):
                value = str(value)
            self.phone = require_str(key, value)
        elif key == self.EMAIL_KEY:
            self.email = require_str(key, value)
        else:
            self.extras[key] = value

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        payload.update(
            _drop_none(
                {
                    self.NAME_KEY: self.contact,
                    self.PHONE_KEY: self.phone,
                    self.EMAIL_KEY: self.email,
                }
            )
        )
        payload.update(self.extras)


@dataclass
class Address(CustomAsset):
    """Postal address stored as a comma separated summary string."""

    KEY: ClassVar[str] = "xGroupAddress"

    address_line1: str = ""
    city: str = ""
    post_code: str = ""
    country: Optional[str] = None

    @classmethod
    def from_summary(cls, key: str, value: Any) -> "Address":
        parts = [part.strip() for part in require_str(key, value).split(",")]
        parts += [""] * (3 - len(parts))
        country = parts[3] if len(parts) > 3 and parts[3] else None
        return cls(
            address_line1=parts[0], city=parts[1], post_code=parts[2], country=country
        )

    @property
    def address_summary(self) -> str:
        parts = [self.address_line1, self.city, self.post_code]
        if self.country:
            parts.append(self.country)
        return ", ".join(parts)

    @property
    def is_empty(self) -> bool:
        return not (self.address_line1 or self.city or self.post_code or self.country)

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        payload[key] = self.address_summary


@dataclass
class Supplier:
    id: str
    name: str
    network_type: Optional[str] = None
    site: Optional[str] = None

    @classmethod
    def from_json(cls, key: str, data: Any) -> "Supplier":
        data = require_mapping(key, data)
        return cls(
            id=require_str(f"{key}.id", data.get("id")),
            name=require_str(f"{key}.name", data.get("name")),
            network_type=optional_str(f"{key}.networkType", data.get("networkType")),
            site=optional_str(f"{key}.site", data.get("site")),
        )

    def to_json(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "name": self.name,
                "networkType": self.network_type,
                "site": self.site,
            }
        )


@dataclass
class Suppliers(CustomAsset):
    KEY: ClassVar[str] = "xSuppliers"

    suppliers: List[Supplier] = field(default_factory=list)

    @classmethod
    def from_json(cls, key: str, value: Any) -> "Suppliers":
        return cls([Supplier.from_json(key, item) for item in require_list(key, value)])

    def supplier(self, supplier_id: str) -> Optional[Supplier]:
        return next((s for s in self.suppliers if s.id == supplier_id), None)

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        payload[key] = [supplier.to_json() for supplier in self.suppliers]


@dataclass
class DataPoint:
    """Measurement template of a device model."""

    fragment: str
    series: str
    label: str
    unit: Optional[str] = None
    color: Optional[str] = None
    line_type: Optional[str] = None
    render_type: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    upper: Optional[float] = None
    lower: Optional[float] = None
    middle: Optional[float] = None
    aggregation_type: Optional[str] = None
    value_as_percentage: Optional[bool] = None

    _STRINGS: ClassVar[Dict[str, str]] = {
        "unit": "unit",
        "color": "color",
        "line_type": "lineType",
        "render_type": "renderType",
        "aggregation_type": "aggregationType",
    }
    _NUMBERS: ClassVar[Dict[str, str]] = {
        "min": "min",
        "max": "max",
        "upper": "upper",
        "lower": "lower",
        "middle": "middle",
    }

    @classmethod
    def from_json(cls, key: str, data: Any) -> "DataPoint":
        data = require_mapping(key, data)
        point = cls(
            fragment=require_str(f"{key}.fragment", data.get("fragment")),
            series=require_str(f"{key}.series", data.get("series")),
            label=require_str(f"{key}.label", data.get("label")),
        )
        for attr, json_key in cls._STRINGS.items():
            setattr(point, attr, optional_str(f"{key}.{json_key}", data.get(json_key)))
        for attr, json_key in cls._NUMBERS.items():
            setattr(point, attr, optional_float(f"{key}.{json_key}", data.get(json_key)))
        if data.get("valueAsPercentage") is not None:
            point.value_as_percentage = require_bool(
                f"{key}.valueAsPercentage", data["valueAsPercentage"]
            )
        return point

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "fragment": self.fragment,
            "series": self.series,
            "label": self.label,
            "valueAsPercentage": self.value_as_percentage,
        }
        for attr, json_key in {**self._STRINGS, **self._NUMBERS}.items():
            data[json_key] = getattr(self, attr)
        return _drop_none(data)


@dataclass
class BusinessEvent:
    type: str
    label: str
    destructive: bool = False
    values: Optional[DictionaryAsset] = None

    @classmethod
    def from_json(cls, key: str, data: Any) -> "BusinessEvent":
        data = require_mapping(key, data)
        destructive = data.get("destructive")
        return cls(
            type=require_str(f"{key}.type", data.get("type")),
            label=require_str(f"{key}.label", data.get("label")),
            destructive=False
            if destructive is None
            else require_bool(f"{key}.destructive", destructive),
            values=None
            if data.get("values") is None
            else DictionaryAsset.from_json(f"{key}.values", data["values"]),
        )

    def to_json(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "type": self.type,
                "label": self.label,
                "destructive": self.destructive,
                "values": None if self.values is None else dict(self.values.values),
            }
        )


@dataclass
class ModelInfo(CustomAsset):
    """Device model description held under the ``model`` fragment."""

    KEY: ClassVar[str] = "model"
    DEFAULT_BUSINESS_FRAGMENT: ClassVar[str] = "c8y_BusinessData"

    id: str
    agent: Optional[str] = None
    category: Optional[str] = None
    link: Optional[str] = None
    preferred_metric: Optional[str] = None
    preferred_series: Optional[str] = None
    image_base64: Optional[str] = None
    manufacturer: Optional[str] = None
    datapoints: List[DataPoint] = field(default_factory=list)
    operations: List[Dict[str, Any]] = field(default_factory=list)
    business_data_fragment: str = DEFAULT_BUSINESS_FRAGMENT
    business_data_fields: Optional[List[str]] = None
    business_data_events: Optional[List[BusinessEvent]] = None

    _STRINGS: ClassVar[Dict[str, str]] = {
        "agent": "agent",
        "category": "category",
        "link": "link",
        "preferred_metric": "preferredMetric",
        "preferred_series": "preferredSeries",
        "image_base64": "imageBase64",
        "manufacturer": "manufacturer",
    }

    @classmethod
    def from_json(cls, key: str, value: Any) -> "ModelInfo":
        data = require_mapping(key, value)
        info = cls(id=require_str(f"{key}.id", data.get("id")))
        for attr, json_key in cls._STRINGS.items():
            setattr(info, attr, optional_str(f"{key}.{json_key}", data.get(json_key)))
        info.datapoints = [
            DataPoint.from_json(f"{key}.datapoints", item)
            for item in require_list(f"{key}.datapoints", data.get("datapoints", []))
        ]
        info.operations = [
            dict(require_mapping(f"{key}.operations", item))
            for item in require_list(f"{key}.operations", data.get("operations", []))
        ]
        if data.get("businessDataFragment") is not None:
            info.business_data_fragment = require_str(
                f"{key}.businessDataFragment", data["businessDataFragment"]
            )
        if data.get("businessDataFields") is not None:
            info.business_data_fields = [
                require_str(f"{key}.businessDataFields", item)
                for item in require_list(
                    f"{key}.businessDataFields", data["businessDataFields"]
                )
            ]
        if data.get("businessDataEvents") is not None:
            info.business_data_events = [
                BusinessEvent.from_json(f"{key}.businessDataEvents", item)
                for item in require_list(
                    f"{key}.businessDataEvents", data["businessDataEvents"]
                )
            ]
        return info

    @property
    def preferred_measurement(self) -> Optional[str]:
        """Preferred metric joined with its series, e.g. ``c8y_Temperature.T``."""
        if self.preferred_metric is None:
            return None
        if self.preferred_series is None:
            return self.preferred_metric
        return f"{self.preferred_metric}.{self.preferred_series}"

    def datapoint(self, fragment: str) -> Optional[DataPoint]:
        return next((d for d in self.datapoints if d.fragment == fragment), None)

    def operation_template(self, operation_type: str) -> Optional[Dict[str, Any]]:
        return next(
            (op for op in self.operations if op.get("type") == operation_type), None
        )

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        data: Dict[str, Any] = {"id": self.id}
        for attr, json_key in self._STRINGS.items():
            data[json_key] = getattr(self, attr)
        data["datapoints"] = [point.to_json() for point in self.datapoints]
        data["operations"] = [dict(op) for op in self.operations]
        data["businessDataFragment"] = self.business_data_fragment
        data["businessDataFields"] = self.business_data_fields
        if self.business_data_events is not None:
            data["businessDataEvents"] = [
                event.to_json() for event in self.business_data_events
            ]
        merge_value(payload, key, _drop_none(data))


class PropertyType(str, Enum):
    STRING = "string"
    PASSWORD = "password"
    IP = "ip"
    BOOL = "bool"
    NUMBER = "number"


@dataclass
class Property:
    """Provisioning property a network provider requires for a device."""

    name: str
    label: str
    type: PropertyType = PropertyType.STRING
    description: Optional[str] = None
    source: Optional[str] = None
    required: bool = False
    value: Optional[str] = None
    values: Optional[List[str]] = None

    @classmethod
    def from_json(cls, key: str, data: Any) -> "Property":
        data = require_mapping(key, data)
        raw_type = data.get("type", PropertyType.STRING.value)
        try:
            property_type = PropertyType(raw_type)
        except ValueError as e:
            raise FragmentDecodeError(key, f"unknown property type {raw_type!r}") from e
        values = data.get("values")
        return cls(
            name=require_str(f"{key}.name", data.get("name")),
            label=require_str(f"{key}.label", data.get("label")),
            type=property_type,
            description=optional_str(f"{key}.description", data.get("description")),
            source=optional_str(f"{key}.source", data.get("source")),
            required=require_bool(f"{key}.required", data.get("required", False)),
            value=optional_str(f"{key}.value", data.get("value")),
            values=None
            if values is None
            else [require_str(f"{key}.values", v) for v in require_list(key, values)],
        )

    def to_json(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "name": self.name,
                "label": self.label,
                "type": self.type.value,
                "description": self.description,
                "source": self.source,
                "required": self.required,
                "value": self.value,
                "values": None if self.values is None else dict(self.values.values),
            }
        )


@dataclass
class NetworkProviderProperties(CustomAsset):
    KEY: ClassVar[str] = "provisioningProperties"

    properties: List[Property] = field(default_factory=list)

    @classmethod
    def from_json(cls, key: str, value: Any) -> "NetworkProviderProperties":
        data = require_mapping(key, value)
        return cls(
            [
                Property.from_json(f"{key}.properties", item)
                for item in require_list(key, data.get("properties", []))
            ]
        )

    def find_property(self, name: str) -> Optional[Property]:
        return next((p for p in self.properties if p.name == name), None)

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        merge_value(payload, key, {"properties": [p.to_json() for p in self.properties]})


@dataclass
class LoRaNetworkInfo(CustomAsset):
    """LoRa network server proxy representation."""

    KEY: ClassVar[str] = "lora_ns_LNSProxyRepresentation"
    INSTANCE_KEY: ClassVar[str] = "lnsId"

    id: str
    name: Optional[str] = None
    version: Optional[str] = None

    @classmethod
    def from_json(cls, key: str, value: Any) -> "LoRaNetworkInfo":
        data = require_mapping(key, value)
        return cls(
            id=require_str(f"{key}.id", data.get("id")),
            name=optional_str(f"{key}.name", data.get("name")),
            version=optional_str(f"{key}.version", data.get("version")),
        )

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        merge_value(
            payload,
            key,
            _drop_none({"id": self.id, "name": self.name, "version": self.version}),
        )


@dataclass
class AssignedNetwork(CustomAsset):
    """
    Network a device is provisioned on.

    Its keys are top-level managed object attributes rather than a single
    fragment, so ``ManagedObject`` feeds them in one at a time.
    """

    TYPE_KEY: ClassVar[str] = "networkType"
    PROVIDER_KEY: ClassVar[str] = "networkProvider"
    INSTANCE_KEY: ClassVar[str] = "lnsInstanceId"
    APP_EUI_KEY: ClassVar[str] = "appEUI"
    APP_KEY_KEY: ClassVar[str] = "appKey"
    CODEC_KEY: ClassVar[str] = "codec"
    LPWAN_KEY: ClassVar[str] = "c8y_LpwanDevice"
    KEYS: ClassVar[tuple] = (
        TYPE_KEY,
        PROVIDER_KEY,
        INSTANCE_KEY,
        APP_EUI_KEY,
        APP_KEY_KEY,
        CODEC_KEY,
        LPWAN_KEY,
    )
    LORA: ClassVar[str] = "lora"

    type: Optional[str] = None
    provider: Optional[str] = None
    instance: Optional[str] = None
    app_eui: Optional[str] = None
    app_key: Optional[str] = None
    codec: Optional[str] = None
    provisioned: Optional[bool] = None

    _STRINGS: ClassVar[Dict[str, str]] = {
        TYPE_KEY: "type",
        PROVIDER_KEY: "provider",
        INSTANCE_KEY: "instance",
        APP_KEY_KEY: "app_key",
        CODEC_KEY: "codec",
    }

    def decode(self, key: str, value: Any) -> None:
        if key in self._STRINGS:
            setattr(self, self._STRINGS[key], optional_str(key, value))
        elif key == self.APP_EUI_KEY:
            self.app_eui = optional_str(key, value)
            if self.type is None:
                self.type = self.LORA
        elif key == self.LPWAN_KEY:
            provisioned = require_mapping(key, value).get("provisioned")
            self.provisioned = (
                None if provisioned is None else require_bool(key, provisioned)
            )
        else:
            raise FragmentDecodeError(key, "not a network attribute")

    @classmethod
    def from_json(cls, raw: Mapping[str, Any]) -> Optional["AssignedNetwork"]:
        keys = [key for key in cls.KEYS if key in raw]
        if not keys:
            return None
        network = cls()
        # type first, so that appEUI does not overwrite an explicit type
        for key in sorted(keys, key=lambda k: k != cls.TYPE_KEY):
            network.decode(key, raw[key])
        return network

    def encode_into(self, payload: Dict[str, Any], key: str = "") -> None:
        for json_key, attr in self._STRINGS.items():
            if getattr(self, attr) is not None:
                payload[json_key] = getattr(self, attr)
        if self.app_eui is not None:
            payload[self.APP_EUI_KEY] = self.app_eui
        if self.provisioned is not None:
            merge_value(payload, self.LPWAN_KEY, {"provisioned": self.provisioned})
