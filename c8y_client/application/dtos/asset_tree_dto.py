"""
Asset Tree DTOs - Application Layer

Serialisable views of a mirrored asset tree and of the outcome of a group
synchronisation.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class AssetNodeDTO(BaseModel):
    """DTO for one group or device of the asset tree."""

    c8y_id: Optional[str] = Field(default=None, description="Cumulocity id")
    name: Optional[str] = Field(default=None, description="Display name")
    kind: str = Field(description="Either 'group' or 'device'")
    type: str = Field(description="Managed object type")
    hierarchy: str = Field(default="", description="Path of parent names")
    status: Optional[str] = Field(
        default=None, description="Availability status (devices only)"
    )
    external_ids: List[str] = Field(
        default_factory=list, description="External ids as 'type:value'"
    )
    device_count: int = Field(default=0, description="Devices in this subtree")
    online_count: int = Field(default=0, description="Devices not unavailable")
    offline_count: int = Field(default=0, description="Unavailable devices")
    alarms_count: int = Field(default=0, description="Active alarms in subtree")
    children: List["AssetNodeDTO"] = Field(
        default_factory=list, description="Sub-groups first, then devices"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "c8y_id": "4711",
                "name": "Plant A",
                "kind": "group",
                "type": "c8y_DeviceGroup",
                "hierarchy": "Plant A",
                "status": None,
                "external_ids": [],
                "device_count": 1,
                "online_count": 1,
                "offline_count": 0,
                "alarms_count": 2,
                "children": [
                    {
                        "c8y_id": "8150",
                        "name": "Sensor",
                        "kind": "device",
                        "type": "c8y_Device",
                        "hierarchy": "Plant A",
                        "status": "AVAILABLE",
                        "external_ids": ["c8y_Serial:98765432112"],
                        "device_count": 1,
                        "online_count": 1,
                        "offline_count": 0,
                        "alarms_count": 2,
                        "children": [],
                    }
                ],
            }
        }
    }


AssetNodeDTO.model_rebuild()


class BranchErrorDTO(BaseModel):
    """DTO for a sub-group that could not be loaded."""

    group_id: str = Field(description="Id of the sub-group")
    message: str = Field(description="Reason of the failure")


class GroupSyncResponseDTO(BaseModel):
    """DTO for the result of loading or refreshing a group."""

    group_id: str = Field(description="Id of the synchronised root group")
    refresh: bool = Field(description="Whether vanished children were removed")
    pages: int = Field(description="Pages fetched over the whole subtree")
    added: List[str] = Field(default_factory=list, description="Ids added")
    updated: List[str] = Field(default_factory=list, description="Ids updated")
    removed: List[str] = Field(default_factory=list, description="Ids removed")
    errors: List[BranchErrorDTO] = Field(
        default_factory=list, description="Sub-groups that failed to load"
    )
    tree: AssetNodeDTO = Field(description="The mirrored tree")
