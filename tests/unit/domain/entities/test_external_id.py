from __future__ import annotations

import pytest

from c8y_client.domain.entities.errors import FragmentDecodeError
from c8y_client.domain.entities.external_id import (
    ExternalId,
    external_ids_from_json,
    index_by_type,
)


def test_external_ids_from_json() -> None:
    ids = external_ids_from_json(
        {
            "externalIds": [
                {
                    "type": "c8y_Serial",
                    "externalId": "SN-1",
                    "managedObject": {"id": "42"},
                },
                {"type": "c8y_Imei", "externalId": "3569"},
            ]
        }
    )

    assert ids == [
        ExternalId("c8y_Serial", "SN-1", "42"),
        ExternalId("c8y_Imei", "3569"),
    ]


def test_to_json_omits_target() -> None:
    assert ExternalId("c8y_Serial", "SN-1", "42").to_json() == {
        "type": "c8y_Serial",
        "externalId": "SN-1",
    }


def test_index_by_type_last_wins() -> None:
    index = index_by_type(
        [ExternalId("c8y_Serial", "a"), ExternalId("c8y_Serial", "b")]
    )

    assert index["c8y_Serial"].external_id == "b"


def test_invalid_external_id() -> None:
    with pytest.raises(FragmentDecodeError):
        ExternalId.from_json({"type": "c8y_Serial"})
