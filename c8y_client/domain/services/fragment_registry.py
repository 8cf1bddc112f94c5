"""
Fragment Registry - Domain Service

Maps fragment names to the factories that decode them. A registry is built
once at startup, populated with the built-in fragments and handed to the
``CustomAssetProcessor``. Collaborators may register additional fragment
types before decoding objects that carry them.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from c8y_client.domain.entities.custom_asset import (
    CustomAsset,
    StringAsset,
    require_str,
)
from c8y_client.domain.entities.errors import DecoderNotImplementedError
from c8y_client.domain.entities.fragments import (
    Address,
    ContactInfo,
    LoRaNetworkInfo,
    ModelInfo,
    NetworkProviderProperties,
    Planning,
    Suppliers,
)
from c8y_client.shared import get_logger

logger = get_logger(__name__)


class CustomAssetFactory:
    """
    Builds custom assets for one registered fragment name.

    Factories for exact keys implement ``make_from``. Factories that claim
    every key starting with their name set ``accepts_prefixed_keys`` and
    implement ``make``, which returns an empty holder that is then fed each
    matching key.
    """

    accepts_prefixed_keys: bool = False

    def make(self) -> CustomAsset:
        raise DecoderNotImplementedError(type(self).__name__)

    def make_from(self, key: str, value: Any) -> CustomAsset:
        raise DecoderNotImplementedError(key)


class StringAssetFactory(CustomAssetFactory):
    def make_from(self, key: str, value: Any) -> CustomAsset:
        return StringAsset(require_str(key, value))


class CallableAssetFactory(CustomAssetFactory):
    """Decodes an exact key with a ``(key, value) -> CustomAsset`` parser."""

    def __init__(self, parser: Callable[[str, Any], CustomAsset]):
        self._parser = parser

    def make_from(self, key: str, value: Any) -> CustomAsset:
        return self._parser(key, value)


class PrefixAssetFactory(CustomAssetFactory):
    """Creates holders that accumulate every key sharing a prefix."""

    accepts_prefixed_keys = True

    def __init__(self, holder_type: Type[CustomAsset]):
        self._holder_type = holder_type

    def make(self) -> CustomAsset:
        return self._holder_type()

    def make_from(self, key: str, value: Any) -> CustomAsset:
        holder = self.make()
        holder.decode(key, value)
        return holder


class FragmentRegistry:
    """
    Thread-safe mapping of fragment name to factory.

    Registering a name again replaces its factory but keeps the position of
    the first registration, which decides prefix tie-breaks.
    """

    def __init__(self) -> None:
        self._factories: Dict[str, CustomAssetFactory] = {}
        self._lock = threading.Lock()

    def register(self, name: str, factory: CustomAssetFactory) -> None:
        with self._lock:
            replaced = name in self._factories
            self._factories[name] = factory
        logger.debug(
            "fragments.registry.registered",
            fragment=name,
            factory=type(factory).__name__,
            replaced=replaced,
        )

    def lookup(self, name: str) -> Optional[CustomAssetFactory]:
        with self._lock:
            return self._factories.get(name)

    def match_prefix(self, key: str) -> Optional[Tuple[str, CustomAssetFactory]]:
        """First registered prefix factory whose name ``key`` starts with."""
        with self._lock:
            entries = list(self._factories.items())
        for name, factory in entries:
            if factory.accepts_prefixed_keys and key.startswith(name):
                return name, factory
        return None

    def names(self) -> List[str]:
        with self._lock:
            return list(self._factories)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._factories

    def __len__(self) -> int:
        with self._lock:
            return len(self._factories)


def register_default_fragments(registry: FragmentRegistry) -> FragmentRegistry:
    """Install the built-in fragment types."""
    registry.register(Planning.PREFIX, PrefixAssetFactory(Planning))
    registry.register(ContactInfo.PREFIX, PrefixAssetFactory(ContactInfo))
    registry.register(Address.KEY, CallableAssetFactory(Address.from_summary))
    registry.register(Suppliers.KEY, CallableAssetFactory(Suppliers.from_json))
    registry.register(ModelInfo.KEY, CallableAssetFactory(ModelInfo.from_json))
    registry.register(
        NetworkProviderProperties.KEY,
        CallableAssetFactory(NetworkProviderProperties.from_json),
    )
    registry.register(
        LoRaNetworkInfo.KEY, CallableAssetFactory(LoRaNetworkInfo.from_json)
    )
    registry.register(LoRaNetworkInfo.INSTANCE_KEY, StringAssetFactory())
    logger.info("fragments.registry.defaults_registered", count=len(registry))
    return registry


def create_default_registry() -> FragmentRegistry:
    return register_default_fragments(FragmentRegistry())
