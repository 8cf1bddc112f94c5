"""
Domain Services Package

Fragment registry and the custom asset processor that decodes and encodes
managed object fragments.
"""

from .fragment_processor import CustomAssetProcessor
from .fragment_registry import (
    CallableAssetFactory,
    CustomAssetFactory,
    FragmentRegistry,
    PrefixAssetFactory,
    StringAssetFactory,
    create_default_registry,
    register_default_fragments,
)

__all__ = [
    "CallableAssetFactory",
    "CustomAssetFactory",
    "CustomAssetProcessor",
    "FragmentRegistry",
    "PrefixAssetFactory",
    "StringAssetFactory",
    "create_default_registry",
    "register_default_fragments",
]
