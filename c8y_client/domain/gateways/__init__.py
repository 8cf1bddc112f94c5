"""
Gateways Package - Domain Layer

Interfaces for the Cumulocity REST API. Implementations live in the
infrastructure layer.
"""

from .inventory_gateway import IInventoryGateway

__all__ = ["IInventoryGateway"]
