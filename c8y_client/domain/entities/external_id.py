"""External identifiers mapping physical identities onto managed object ids."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from .custom_asset import optional_str, require_mapping, require_str


@dataclass(slots=True, frozen=True)
class ExternalId:
    """A (type, value) pair such as a serial number or IMEI."""

    type: str
    external_id: str
    managed_object_id: Optional[str] = None

    @classmethod
    def from_json(cls, value: Any) -> "ExternalId":
        data = require_mapping("externalId", value)
        managed_object = data.get("managedObject") or {}
        return cls(
            type=require_str("externalId.type", data.get("type")),
            external_id=require_str("externalId.externalId", data.get("externalId")),
            managed_object_id=optional_str(
                "externalId.managedObject.id",
                require_mapping("externalId.managedObject", managed_object).get("id"),
            ),
        )

    def to_json(self) -> Dict[str, Any]:
        """Body for registering the identifier; the target id is in the URL."""
        return {"type": self.type, "externalId": self.external_id}


def index_by_type(external_ids: List[ExternalId]) -> Dict[str, ExternalId]:
    """Key identifiers by type; a later identifier of the same type wins."""
    return {ext.type: ext for ext in external_ids}


def external_ids_from_json(payload: Mapping[str, Any]) -> List[ExternalId]:
    return [ExternalId.from_json(item) for item in payload.get("externalIds", [])]
