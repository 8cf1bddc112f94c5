"""
DTOs Package - Application Layer

Pydantic models describing mirrored asset trees and sync results.
"""

from .asset_tree_dto import AssetNodeDTO, BranchErrorDTO, GroupSyncResponseDTO

__all__ = ["AssetNodeDTO", "BranchErrorDTO", "GroupSyncResponseDTO"]
