"""
Inventory Query Builder

Builds the ``query`` parameter of the inventory API, e.g.
``bygroupid(12345) and name eq '*[S|s]ensor*'``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class QueryOperator(str, Enum):
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    GT = "gt"
    LE = "le"
    GE = "ge"
    HAS = "has"


def case_insensitive(value: str) -> str:
    """Expand letters of a wildcard value into ``[U|l]`` classes."""
    if not (value.startswith("*") or value.endswith("*")):
        return value
    return "".join(
        f"[{c.upper()}|{c.lower()}]" if c.isalpha() else c for c in value
    )


@dataclass(slots=True)
class Query:
    """
    A single clause. Without an operator the key is a function name, so
    ``Query("bygroupid", None, "12")`` renders as ``bygroupid(12)``.
    """

    key: str
    operator: Optional[QueryOperator]
    value: str
    exclusive: bool = True

    def __str__(self) -> str:
        if self.operator is None:
            return f"{self.key}({self.value})"
        return f"{self.key} {self.operator.value} '{case_insensitive(self.value)}'"


class ManagedObjectQuery:
    """Ordered set of clauses joined with ``and`` (or ``or`` when not match_all)."""

    def __init__(self, match_all: bool = True):
        self.match_all = match_all
        self._queries: List[Query] = []

    @classmethod
    def by_group_id(cls, group_id: str) -> "ManagedObjectQuery":
        return cls().add_function("bygroupid", group_id)

    def add(
        self,
        key: str,
        operator: Optional[QueryOperator],
        value: str,
        exclusive: bool = True,
    ) -> "ManagedObjectQuery":
        self._queries.append(Query(key, operator, value, exclusive))
        return self

    def add_function(self, name: str, value: str) -> "ManagedObjectQuery":
        return self.add(name, None, value)

    def __len__(self) -> int:
        return len(self._queries)

    def build(self) -> str:
        """
        Render the query. Consecutive non-exclusive clauses are or-ed together
        inside parentheses, together with the clause preceding them.
        """
        parts: List[str] = []
        group_open = False
        for index, query in enumerate(self._queries):
            text = str(query)
            if index == 0:
                parts.append(text)
            elif not query.exclusive:
                if not group_open:
                    parts[-1] = parts[-1].replace(
                        str(self._queries[index - 1]),
                        "(" + str(self._queries[index - 1]),
                        1,
                    )
                    group_open = True
                parts.append(f" or {text}")
            else:
                if group_open:
                    parts[-1] += ")"
                    group_open = False
                parts.append((" and " if self.match_all else " or ") + text)
        if group_open:
            parts[-1] += ")"
        return "".join(parts)

    def __str__(self) -> str:
        return self.build()
