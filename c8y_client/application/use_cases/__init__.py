"""
Use Cases Package - Application Layer

Group loading (incremental sync of a Cumulocity group into an asset tree)
and the group sync use case that serialises passes per root group.
"""

from .group_loader import (
    CancellationToken,
    GroupLoader,
    GroupLoadResult,
    LoaderEvent,
    LoaderState,
)
from .group_sync_use_case import GroupSyncUseCase

__all__ = [
    "CancellationToken",
    "GroupLoader",
    "GroupLoadResult",
    "GroupSyncUseCase",
    "LoaderEvent",
    "LoaderState",
]
