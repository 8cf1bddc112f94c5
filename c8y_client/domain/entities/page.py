"""Paging entities returned by collection queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from .managed_object import ManagedObject


@dataclass(slots=True)
class PageStatistics:
    current_page: int
    page_size: int
    # only reported when the request asked for it (withTotalPages=true)
    total_pages: Optional[int] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "PageStatistics":
        total = data.get("totalPages")
        return cls(
            current_page=int(data.get("currentPage", 1)),
            page_size=int(data.get("pageSize", 0)),
            total_pages=None if total is None else int(total),
        )


@dataclass(slots=True)
class PagedManagedObjects:
    objects: List[ManagedObject] = field(default_factory=list)
    statistics: Optional[PageStatistics] = None

    def has_more(self, page_size: int) -> bool:
        """
        Whether another page should be requested after this one.

        Uses the total page count when the server reported one, otherwise
        assumes more objects follow a full page.
        """
        stats = self.statistics
        if stats is not None and stats.total_pages is not None:
            return stats.current_page < stats.total_pages
        return len(self.objects) > 0 and len(self.objects) >= page_size
