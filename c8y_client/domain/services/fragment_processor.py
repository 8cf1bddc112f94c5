"""
Custom Asset Processor - Domain Service

Decodes the fragment keys of a managed object into custom assets and encodes
them back. Each raw key is resolved, in order, by:

1. a factory registered for exactly that key,
2. a prefix factory whose name the key starts with (one holder per prefix
   and pass, taking the first match in registration order),
3. a plain string value,
4. recursive flattening of a nested object into dotted string paths.

Scalars that are neither strings nor objects are kept as number, bool or
list assets. Nested non-string leaves are dropped while flattening. When a
dotted raw key and a flattened path name the same entry the first one wins.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, TypeVar

from c8y_client.domain.entities.custom_asset import (
    PATH_SEPARATOR,
    BoolAsset,
    CustomAsset,
    DoubleAsset,
    ListAsset,
    StringAsset,
)
from c8y_client.domain.entities.errors import DomainError, FragmentDecodeError
from c8y_client.shared import get_logger

from .fragment_registry import FragmentRegistry

logger = get_logger(__name__)

T = TypeVar("T")


class CustomAssetProcessor:
    """Registry driven decoder and encoder for managed object fragments."""

    def __init__(self, registry: FragmentRegistry):
        self.registry = registry

    def decode(self, raw: Mapping[str, Any]) -> Dict[str, CustomAsset]:
        """
        Decode every key of ``raw``.

        Raises:
            FragmentDecodeError: If a registered factory rejects its value.
            DecoderNotImplementedError: If a factory lacks the needed operation.
        """
        properties: Dict[str, CustomAsset] = {}
        holders: Dict[str, CustomAsset] = {}

        for key, value in raw.items():
            factory = self.registry.lookup(key)
            if factory is not None and not factory.accepts_prefixed_keys:
                asset = self._guard(key, factory.make_from, key, value)
                self._store(properties, key, asset)
                continue

            match = (key, factory) if factory is not None else None
            match = match or self.registry.match_prefix(key)
            if match is not None:
                prefix, prefix_factory = match
                holder = holders.get(prefix)
                if holder is None:
                    holder = self._guard(key, prefix_factory.make)
                    holders[prefix] = holder
                    properties[prefix] = holder
                self._guard(key, holder.decode, key, value)
                continue

            if isinstance(value, str):
                self._store(properties, key, StringAsset(value))
            elif isinstance(value, Mapping):
                for path, leaf in self.flatten(key, value).items():
                    self._store(properties, path, leaf)
            elif isinstance(value, bool):
                self._store(properties, key, BoolAsset(value))
            elif isinstance(value, (int, float)):
                self._store(properties, key, DoubleAsset(value))
            elif isinstance(value, list):
                self._store(properties, key, ListAsset(list(value)))

        return properties

    def flatten(self, key: str, value: Mapping[str, Any]) -> Dict[str, StringAsset]:
        """Flatten ``value`` into ``key.child.leaf`` string assets."""
        flat: Dict[str, StringAsset] = {}
        for child_key, child_value in value.items():
            path = f"{key}{PATH_SEPARATOR}{child_key}"
            if isinstance(child_value, str):
                flat[path] = StringAsset(child_value)
            elif isinstance(child_value, Mapping):
                flat.update(self.flatten(path, child_value))
        return flat

    def encode(self, properties: Mapping[str, CustomAsset]) -> Dict[str, Any]:
        """
        Encode assets into a JSON payload. Dotted string paths are nested
        again and objects written under the same key are merged.

        Raises:
            EncoderNotImplementedError: If an asset cannot be encoded.
        """
        payload: Dict[str, Any] = {}
        for key, asset in properties.items():
            asset.encode_into(payload, key)
        return payload

    def _store(
        self, properties: Dict[str, CustomAsset], key: str, asset: CustomAsset
    ) -> None:
        # a dotted raw key and a flattened path may name the same entry
        if key in properties:
            logger.warning("fragments.key_collision", fragment=key)
            return
        properties[key] = asset

    def _guard(self, key: str, operation: Callable[..., T], *args: Any) -> T:
        try:
            return operation(*args)
        except DomainError as e:
            logger.warning("fragments.decode_failed", fragment=key, error=e.message)
            raise
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            logger.warning("fragments.decode_failed", fragment=key, error=str(e))
            raise FragmentDecodeError(key, str(e)) from e
