"""
Gateways Package - Infrastructure Layer

HTTP implementations of the domain gateway interfaces.
"""

from .cumulocity_inventory_gateway import CumulocityInventoryGateway

__all__ = ["CumulocityInventoryGateway"]
