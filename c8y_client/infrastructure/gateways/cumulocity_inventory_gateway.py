"""Cumulocity inventory gateway implementation - Infrastructure layer."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from c8y_client.domain.entities.errors import C8yAPIError, DomainError
from c8y_client.domain.entities.external_id import ExternalId, external_ids_from_json
from c8y_client.domain.entities.managed_object import ManagedObject
from c8y_client.domain.entities.page import PagedManagedObjects, PageStatistics
from c8y_client.domain.entities.query import ManagedObjectQuery
from c8y_client.domain.gateways.inventory_gateway import IInventoryGateway
from c8y_client.domain.services.fragment_processor import CustomAssetProcessor
from c8y_client.shared import get_logger

logger = get_logger(__name__)

MANAGED_OBJECTS_PATH = "inventory/managedObjects"
EXTERNAL_IDS_PATH = "identity/globalIds/{c8y_id}/externalIds"


class CumulocityInventoryGateway(IInventoryGateway):
    """HTTP client for the Cumulocity inventory and identity APIs."""

    def __init__(
        self,
        base_url: str,
        processor: CustomAssetProcessor,
        tenant: Optional[str] = None,
        username: str = "",
        password: str = "",
        timeout: float = 30.0,
    ):
        """
        Initialize the gateway.

        Args:
            base_url: Tenant URL, e.g. ``https://acme.cumulocity.com``
            processor: Fragment processor used to decode and encode payloads
            tenant: Tenant id, prefixed to the user name when given
            username: API user
            password: API password
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.processor = processor
        self.timeout = timeout
        user = f"{tenant}/{username}" if tenant else username
        self._auth = httpx.BasicAuth(user, password)

    async def get_managed_object(self, c8y_id: str) -> ManagedObject:
        data = await self._request("get", f"{MANAGED_OBJECTS_PATH}/{c8y_id}")
        return ManagedObject.from_json(data, self.processor)

    async def get_managed_objects(
        self, query: ManagedObjectQuery, page_num: int, page_size: int
    ) -> PagedManagedObjects:
        params = {
            "query": query.build(),
            "currentPage": str(page_num),
            "pageSize": str(page_size),
            "withTotalPages": "true",
        }
        data = await self._request("get", MANAGED_OBJECTS_PATH, params=params)
        statistics = data.get("statistics")
        paged = PagedManagedObjects(
            objects=[
                ManagedObject.from_json(item, self.processor)
                for item in data.get("managedObjects", [])
            ],
            statistics=None
            if statistics is None
            else PageStatistics.from_json(statistics),
        )
        logger.info(
            "inventory.managed_objects.response",
            query=params["query"],
            page=page_num,
            count=len(paged.objects),
        )
        return paged

    async def get_external_ids(self, c8y_id: str) -> List[ExternalId]:
        data = await self._request("get", EXTERNAL_IDS_PATH.format(c8y_id=c8y_id))
        return external_ids_from_json(data)

    async def create_managed_object(self, managed_object: ManagedObject) -> ManagedObject:
        payload = managed_object.to_json(self.processor)
        payload.pop("id", None)
        data = await self._request("post", MANAGED_OBJECTS_PATH, json=payload)
        logger.info("inventory.managed_object.created", c8y_id=data.get("id"))
        return ManagedObject.from_json(data, self.processor)

    async def update_managed_object(self, managed_object: ManagedObject) -> ManagedObject:
        if managed_object.id is None:
            raise DomainError(
                "Cannot update a managed object that has not been created",
                {"name": managed_object.name},
            )
        payload = managed_object.to_json(self.processor)
        payload.pop("id", None)
        data = await self._request(
            "put", f"{MANAGED_OBJECTS_PATH}/{managed_object.id}", json=payload
        )
        return ManagedObject.from_json(data, self.processor)

    async def delete_managed_object(self, c8y_id: str) -> None:
        await self._request("delete", f"{MANAGED_OBJECTS_PATH}/{c8y_id}")
        logger.info("inventory.managed_object.deleted", c8y_id=c8y_id)

    async def register_external_id(
        self, c8y_id: str, external_id: ExternalId
    ) -> ExternalId:
        data = await self._request(
            "post",
            EXTERNAL_IDS_PATH.format(c8y_id=c8y_id),
            json=external_id.to_json(),
        )
        return ExternalId.from_json(data)

    async def assign_to_group(self, group_id: str, child_id: str) -> None:
        await self._request(
            "post",
            f"{MANAGED_OBJECTS_PATH}/{group_id}/childAssets",
            json={"managedObject": {"id": child_id}},
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Issue a request and return the decoded JSON body ({} when empty).

        Raises:
            C8yAPIError: On HTTP error statuses and transport failures
        """
        url = f"{self.base_url}/{path}"
        headers = {"Accept": "application/json"}
        kwargs: Dict[str, Any] = {"headers": headers, "auth": self._auth}
        if params is not None:
            kwargs["params"] = params
        if json is not None:
            kwargs["json"] = json

        logger.debug("inventory.request", method=method.upper(), url=url)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await getattr(client, method)(url, **kwargs)
                response.raise_for_status()
                if response.status_code == 204 or not response.content:
                    return {}
                return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(
                "inventory.http_error",
                method=method.upper(),
                status_code=e.response.status_code,
                response_text=e.response.text,
                url=url,
            )
            raise C8yAPIError(
                f"Cumulocity returned HTTP {e.response.status_code}: "
                f"{e.response.text}",
                status_code=e.response.status_code,
                reason=e.response.reason_phrase,
                details={"url": url},
            ) from e

        except httpx.RequestError as e:
            logger.error(
                "inventory.request_error",
                method=method.upper(),
                error=str(e),
                url=url,
            )
            raise C8yAPIError(
                f"Failed to communicate with Cumulocity: {e}", details={"url": url}
            ) from e
