"""
Domain Entities Package

Managed objects, their decoded fragments and the group/device asset tree.
"""

from .assets import (
    AnyC8yObject,
    C8yDevice,
    C8yGroup,
    C8yObject,
    GroupInfo,
    WrappedType,
)
from .custom_asset import (
    AssetKind,
    BoolAsset,
    CustomAsset,
    DictionaryAsset,
    DoubleAsset,
    ListAsset,
    StringAsset,
)
from .errors import (
    C8yAPIError,
    DecoderNotImplementedError,
    DomainError,
    EncoderNotImplementedError,
    FragmentDecodeError,
    GroupLoadCancelledError,
    GroupLoadError,
    NotAGroupObjectError,
)
from .external_id import ExternalId
from .fragments import (
    Address,
    AssignedNetwork,
    BusinessEvent,
    ContactInfo,
    DataPoint,
    LoRaNetworkInfo,
    ModelInfo,
    NetworkProviderProperties,
    Planning,
    Property,
    PropertyType,
    Supplier,
    Suppliers,
)
from .managed_object import (
    GROUP_TYPE,
    SMART_RULE_TYPE,
    SUBGROUP_TYPE,
    ActiveAlarmsStatus,
    Availability,
    AvailabilityStatus,
    Firmware,
    Hardware,
    ManagedObject,
    Position,
)
from .page import PagedManagedObjects, PageStatistics
from .query import ManagedObjectQuery, Query, QueryOperator

__all__ = [
    "ActiveAlarmsStatus",
    "Address",
    "AnyC8yObject",
    "AssetKind",
    "AssignedNetwork",
    "Availability",
    "AvailabilityStatus",
    "BoolAsset",
    "BusinessEvent",
    "C8yAPIError",
    "C8yDevice",
    "C8yGroup",
    "C8yObject",
    "ContactInfo",
    "CustomAsset",
    "DataPoint",
    "DecoderNotImplementedError",
    "DictionaryAsset",
    "DomainError",
    "DoubleAsset",
    "EncoderNotImplementedError",
    "ExternalId",
    "Firmware",
    "FragmentDecodeError",
    "GROUP_TYPE",
    "GroupInfo",
    "GroupLoadCancelledError",
    "GroupLoadError",
    "Hardware",
    "ListAsset",
    "LoRaNetworkInfo",
    "ManagedObject",
    "ManagedObjectQuery",
    "ModelInfo",
    "NetworkProviderProperties",
    "NotAGroupObjectError",
    "PagedManagedObjects",
    "PageStatistics",
    "Planning",
    "Position",
    "Property",
    "PropertyType",
    "Query",
    "QueryOperator",
    "SMART_RULE_TYPE",
    "StringAsset",
    "SUBGROUP_TYPE",
    "Supplier",
    "Suppliers",
    "WrappedType",
]
