"""
Inventory Gateway Interface - Domain Layer

Contract for reading and writing managed objects and their external ids.
"""

from abc import ABC, abstractmethod
from typing import List

from c8y_client.domain.entities.external_id import ExternalId
from c8y_client.domain.entities.managed_object import ManagedObject
from c8y_client.domain.entities.page import PagedManagedObjects
from c8y_client.domain.entities.query import ManagedObjectQuery


class IInventoryGateway(ABC):
    """Interface for the Cumulocity inventory and identity APIs."""

    @abstractmethod
    async def get_managed_object(self, c8y_id: str) -> ManagedObject:
        """
        Fetch a single managed object.

        Raises:
            C8yAPIError: If the object cannot be fetched
        """
        pass

    @abstractmethod
    async def get_managed_objects(
        self, query: ManagedObjectQuery, page_num: int, page_size: int
    ) -> PagedManagedObjects:
        """
        Fetch one page of managed objects matching ``query``.

        Args:
            query: Inventory query, e.g. ``bygroupid(12345)``
            page_num: Page to fetch, starting at 1
            page_size: Maximum number of objects per page

        Raises:
            C8yAPIError: If the page cannot be fetched
        """
        pass

    @abstractmethod
    async def get_external_ids(self, c8y_id: str) -> List[ExternalId]:
        """Fetch the external ids registered for a managed object."""
        pass

    @abstractmethod
    async def create_managed_object(self, managed_object: ManagedObject) -> ManagedObject:
        """Create a managed object and return it with its server id."""
        pass

    @abstractmethod
    async def update_managed_object(self, managed_object: ManagedObject) -> ManagedObject:
        """Update an existing managed object."""
        pass

    @abstractmethod
    async def delete_managed_object(self, c8y_id: str) -> None:
        pass

    @abstractmethod
    async def register_external_id(
        self, c8y_id: str, external_id: ExternalId
    ) -> ExternalId:
        """Map an external id onto a managed object."""
        pass

    @abstractmethod
    async def assign_to_group(self, group_id: str, child_id: str) -> None:
        """Add ``child_id`` as a child asset of ``group_id``."""
        pass
