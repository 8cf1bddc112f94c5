"""
Custom Asset Entities

A managed object carries an open-ended set of named JSON fragments. Each
decoded fragment is held as a ``CustomAsset``: either a scalar variant
(string, number, bool, flat dictionary, list) or a structured record defined
in ``fragments``. Every asset knows how to write the raw keys it owns back
into an outgoing JSON payload.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union

from .errors import DecoderNotImplementedError, EncoderNotImplementedError
from .errors import FragmentDecodeError

PATH_SEPARATOR = "."

_BASIC_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


class AssetKind(str, Enum):
    """Variant tag of a custom asset."""

    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    DICTIONARY = "dictionary"
    LIST = "list"
    RECORD = "record"


class CustomAsset:
    """
    Base class for every decoded fragment value.

    Record fragments registered by prefix receive one ``decode`` call per raw
    key sharing the prefix and accumulate state across calls.
    """

    kind: ClassVar[AssetKind] = AssetKind.RECORD

    def decode(self, key: str, value: Any) -> None:
        raise DecoderNotImplementedError(key)

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        raise EncoderNotImplementedError(key)


@dataclass
class StringAsset(CustomAsset):
    kind: ClassVar[AssetKind] = AssetKind.STRING

    value: str

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        set_path(payload, key, self.value)


@dataclass
class DoubleAsset(CustomAsset):
    kind: ClassVar[AssetKind] = AssetKind.NUMBER

    value: Union[int, float]

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        payload[key] = self.value


@dataclass
class BoolAsset(CustomAsset):
    kind: ClassVar[AssetKind] = AssetKind.BOOL

    value: bool

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        payload[key] = self.value


@dataclass
class DictionaryAsset(CustomAsset):
    """Flat string-to-string map, e.g. business event values."""

    kind: ClassVar[AssetKind] = AssetKind.DICTIONARY

    values: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_json(cls, key: str, value: Any) -> "DictionaryAsset":
        data = require_mapping(key, value)
        return cls(
            {
                name: require_str(f"{key}.{name}", item)
                for name, item in data.items()
            }
        )

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        merge_value(payload, key, dict(self.values))


@dataclass
class ListAsset(CustomAsset):
    kind: ClassVar[AssetKind] = AssetKind.LIST

    values: List[Any] = field(default_factory=list)

    def encode_into(self, payload: Dict[str, Any], key: str) -> None:
        payload[key] = list(self.values)


def merge_value(payload: Dict[str, Any], key: str, value: Any) -> None:
    """Store ``value`` under ``key``, deep-merging when both sides are objects."""
    existing = payload.get(key)
    if isinstance(existing, dict) and isinstance(value, Mapping):
        for child_key, child_value in value.items():
            merge_value(existing, child_key, child_value)
    else:
        payload[key] = value


def set_path(payload: Dict[str, Any], path: str, value: Any) -> None:
    """Store ``value`` at a dotted ``path``, creating intermediate objects."""
    *parents, leaf = path.split(PATH_SEPARATOR)
    target = payload
    for part in parents:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child
    merge_value(target, leaf, value)


def require_str(key: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    raise FragmentDecodeError(key, f"expected a string, got {type(value).__name__}")


def optional_str(key: str, value: Any) -> Optional[str]:
    return None if value is None else require_str(key, value)


def require_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise FragmentDecodeError(key, f"expected a boolean, got {type(value).__name__}")


def optional_float(key: str, value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise FragmentDecodeError(key, "expected a number, got bool")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise FragmentDecodeError(key, f"expected a number, got {value!r}") from e


def optional_int(key: str, value: Any) -> Optional[int]:
    """Integer value of ``value``; whole numbers given as float or text pass."""
    number = optional_float(key, value)
    if number is None:
        return None
    if not number.is_integer():
        raise FragmentDecodeError(key, f"expected an integer, got {value!r}")
    return int(number)


def require_mapping(key: str, value: Any) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    raise FragmentDecodeError(key, f"expected an object, got {type(value).__name__}")


def require_list(key: str, value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    raise FragmentDecodeError(key, f"expected a list, got {type(value).__name__}")


def parse_c8y_datetime(key: str, value: Any) -> datetime:
    """Parse a Cumulocity timestamp such as ``2020-02-25T19:58:13.925+0100``."""
    text = require_str(key, value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _BASIC_OFFSET.sub(r"\1:\2", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise FragmentDecodeError(key, f"invalid timestamp {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_c8y_datetime(value: datetime) -> str:
    """Format a datetime with millisecond precision, UTC rendered as ``Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat(timespec="milliseconds")
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text
