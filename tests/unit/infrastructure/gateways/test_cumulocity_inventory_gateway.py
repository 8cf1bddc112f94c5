from __future__ import annotations

import json as jsonlib
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from c8y_client.domain.entities.custom_asset import StringAsset
from c8y_client.domain.entities.errors import C8yAPIError, DomainError
from c8y_client.domain.entities.external_id import ExternalId
from c8y_client.domain.entities.managed_object import ManagedObject
from c8y_client.domain.entities.query import ManagedObjectQuery
from c8y_client.infrastructure.gateways.cumulocity_inventory_gateway import (
    CumulocityInventoryGateway,
)

BASE_URL = "https://acme.cumulocity.com"


class _StubResponse:
    def __init__(self, status_code: int, json_data: Optional[dict] = None):
        self.status_code = status_code
        self._json = json_data
        self.content = b"" if json_data is None else jsonlib.dumps(json_data).encode()

    def json(self) -> dict:
        return self._json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            request = httpx.Request("GET", f"{BASE_URL}/inventory/managedObjects")
            response = httpx.Response(self.status_code, request=request, text="error")
            raise httpx.HTTPStatusError("error", request=request, response=response)


class _StubAsyncClient:
    def __init__(self, response: _StubResponse, error: Optional[Exception] = None):
        self._response = response
        self._error = error
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    async def __aenter__(self) -> "_StubAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def _call(self, method: str, url: str, **kwargs: Any) -> _StubResponse:
        self.calls.append((method, url, kwargs))
        if self._error is not None:
            raise self._error
        return self._response

    async def get(self, url: str, **kwargs: Any) -> _StubResponse:
        return await self._call("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> _StubResponse:
        return await self._call("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> _StubResponse:
        return await self._call("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> _StubResponse:
        return await self._call("DELETE", url, **kwargs)


def _install(monkeypatch, client: _StubAsyncClient) -> _StubAsyncClient:
    monkeypatch.setattr("httpx.AsyncClient", lambda timeout: client)
    return client


@pytest.fixture()
def gateway(processor) -> CumulocityInventoryGateway:
    return CumulocityInventoryGateway(
        BASE_URL + "/",
        processor,
        tenant="t100",
        username="api",
        password="secret",
        timeout=5.0,
    )


@pytest.mark.asyncio
async def test_get_managed_objects(monkeypatch, gateway) -> None:
    client = _install(
        monkeypatch,
        _StubAsyncClient(
            _StubResponse(
                200,
                {
                    "managedObjects": [
                        {"id": "10", "name": "Sensor", "c8y_IsDevice": {}},
                        {"id": "2", "name": "G1", "type": "c8y_DeviceGroup"},
                    ],
                    "statistics": {"currentPage": 1, "pageSize": 2, "totalPages": 4},
                },
            )
        ),
    )

    paged = await gateway.get_managed_objects(
        ManagedObjectQuery.by_group_id("1"), page_num=1, page_size=2
    )

    assert [obj.id for obj in paged.objects] == ["10", "2"]
    assert paged.objects[1].is_group
    assert paged.has_more(2)
    method, url, kwargs = client.calls[0]
    assert method == "GET"
    assert url == f"{BASE_URL}/inventory/managedObjects"
    assert kwargs["params"] == {
        "query": "bygroupid(1)",
        "currentPage": "1",
        "pageSize": "2",
        "withTotalPages": "true",
    }
    assert kwargs["headers"]["Accept"] == "application/json"
    assert isinstance(kwargs["auth"], httpx.BasicAuth)


@pytest.mark.asyncio
async def test_get_managed_object(monkeypatch, gateway) -> None:
    client = _install(
        monkeypatch,
        _StubAsyncClient(
            _StubResponse(200, {"id": "42", "name": "Pump", "xOrgCategory": "Water"})
        ),
    )

    obj = await gateway.get_managed_object("42")

    assert obj.string_property("xOrgCategory") == "Water"
    assert client.calls[0][1] == f"{BASE_URL}/inventory/managedObjects/42"


@pytest.mark.asyncio
async def test_get_external_ids(monkeypatch, gateway) -> None:
    client = _install(
        monkeypatch,
        _StubAsyncClient(
            _StubResponse(
                200,
                {
                    "externalIds": [
                        {
                            "type": "c8y_Serial",
                            "externalId": "SN-1",
                            "managedObject": {"id": "42"},
                        }
                    ]
                },
            )
        ),
    )

    ids = await gateway.get_external_ids("42")

    assert ids == [ExternalId("c8y_Serial", "SN-1", "42")]
    assert client.calls[0][1] == f"{BASE_URL}/identity/globalIds/42/externalIds"


@pytest.mark.asyncio
async def test_create_managed_object_omits_id(monkeypatch, gateway) -> None:
    client = _install(
        monkeypatch,
        _StubAsyncClient(_StubResponse(201, {"id": "77", "name": "New"})),
    )

    created = await gateway.create_managed_object(
        ManagedObject(id="ignored", name="New", properties={"xLevel": StringAsset("2")})
    )

    assert created.id == "77"
    method, _, kwargs = client.calls[0]
    assert method == "POST"
    assert kwargs["json"] == {"type": "c8y_Device", "name": "New", "xLevel": "2"}


@pytest.mark.asyncio
async def test_update_requires_id(gateway) -> None:
    with pytest.raises(DomainError):
        await gateway.update_managed_object(ManagedObject(name="draft"))


@pytest.mark.asyncio
async def test_update_managed_object(monkeypatch, gateway) -> None:
    client = _install(
        monkeypatch,
        _StubAsyncClient(_StubResponse(200, {"id": "42", "name": "Renamed"})),
    )

    updated = await gateway.update_managed_object(ManagedObject(id="42", name="Renamed"))

    assert updated.name == "Renamed"
    method, url, kwargs = client.calls[0]
    assert method == "PUT"
    assert url.endswith("/inventory/managedObjects/42")
    assert "id" not in kwargs["json"]


@pytest.mark.asyncio
async def test_delete_and_assign_accept_empty_body(monkeypatch, gateway) -> None:
    client = _install(monkeypatch, _StubAsyncClient(_StubResponse(204)))

    await gateway.delete_managed_object("42")
    await gateway.assign_to_group("1", "42")

    assert client.calls[0][0] == "DELETE"
    method, url, kwargs = client.calls[1]
    assert method == "POST"
    assert url.endswith("/inventory/managedObjects/1/childAssets")
    assert kwargs["json"] == {"managedObject": {"id": "42"}}


@pytest.mark.asyncio
async def test_register_external_id(monkeypatch, gateway) -> None:
    client = _install(
        monkeypatch,
        _StubAsyncClient(
            _StubResponse(
                201,
                {
                    "type": "c8y_Serial",
                    "externalId": "SN-9",
                    "managedObject": {"id": "42"},
                },
            )
        ),
    )

    stored = await gateway.register_external_id("42", ExternalId("c8y_Serial", "SN-9"))

    assert stored.managed_object_id == "42"
    assert client.calls[0][2]["json"] == {"type": "c8y_Serial", "externalId": "SN-9"}


@pytest.mark.asyncio
async def test_http_error_raises_api_error(monkeypatch, gateway) -> None:
    _install(monkeypatch, _StubAsyncClient(_StubResponse(404, {})))

    with pytest.raises(C8yAPIError) as exc:
        await gateway.get_managed_object("404")

    assert exc.value.status_code == 404
    assert exc.value.reason == "Not Found"


@pytest.mark.asyncio
async def test_transport_error_raises_api_error(monkeypatch, gateway) -> None:
    request = httpx.Request("GET", BASE_URL)
    _install(
        monkeypatch,
        _StubAsyncClient(
            _StubResponse(200, {}), error=httpx.ConnectError("refused", request=request)
        ),
    )

    with pytest.raises(C8yAPIError) as exc:
        await gateway.get_external_ids("42")

    assert exc.value.status_code is None
