import asyncio
import logging
from typing import Any, Dict, List, Optional

from ledger_money.assets.sources import (
    AssetSource,
    ChainedAssetSource,
    NodeAssetSource,
    StaticAssetSource,
)
from ledger_money.config import RegistryConfig
from ledger_money.errors import AssetSourceError, InvalidArgument
from ledger_money.model import AssetDescriptor, is_descriptor_like

logger = logging.getLogger(__name__)


class AssetRegistry:
    """
    Resolves asset identifiers to descriptors.

    Resolved descriptors are cached for the registry's lifetime, so every Money
    built through one registry shares the same descriptor object per asset.
    Concurrent resolutions of the same unresolved identifier share a single
    fetch. Failed fetches are not cached.
    """

    def __init__(self, source: AssetSource):
        self.source = source
        self._cache: Dict[str, AssetDescriptor] = {}
        self._in_flight: Dict[str, "asyncio.Task[AssetDescriptor]"] = {}

    @classmethod
    def from_config(cls, config: RegistryConfig) -> "AssetRegistry":
        if config.assets_file:
            static = StaticAssetSource.from_yaml(config.assets_file)
        else:
            static = StaticAssetSource.well_known()

        sources: List[AssetSource] = [static]
        if config.use_node:
            sources.append(NodeAssetSource(config.node_url, timeouts=config.timeouts))

        logger.info(
            f"Asset registry: {len(static)} static assets, "
            f"node lookup {'enabled at ' + config.node_url if config.use_node else 'disabled'}"
        )
        return cls(ChainedAssetSource(sources))

    async def resolve(self, asset: Any) -> AssetDescriptor:
        """
        Returns the descriptor for an identifier, a descriptor, or descriptor-shaped
        data (a mapping or object with id, name and precision).
        Raises AssetNotFound if the source does not know the identifier.
        """
        if isinstance(asset, str):
            return await self._resolve_identifier(asset)

        if is_descriptor_like(asset):
            return self.register(AssetDescriptor.from_data(asset))

        raise InvalidArgument(
            f"Cannot resolve asset from {type(asset).__name__}: {asset!r}"
        )

    def register(self, descriptor: AssetDescriptor) -> AssetDescriptor:
        """
        Caches a descriptor supplied by the caller, without a round trip.
        Returns the cached instance if the identifier is already known.
        """
        cached = self._cache.get(descriptor.identifier)
        if cached is None:
            self._cache[descriptor.identifier] = descriptor
            return descriptor

        if cached.precision != descriptor.precision:
            raise InvalidArgument(
                f"Asset {descriptor.identifier} is already registered with precision "
                f"{cached.precision}, got {descriptor.precision}"
            )
        return cached

    def get(self, identifier: str) -> Optional[AssetDescriptor]:
        return self._cache.get(identifier)

    def forget(self, identifier: str):
        self._cache.pop(identifier, None)

    def clear(self):
        self._cache.clear()

    def close(self):
        """Closes the underlying source, e.g. the node's HTTP session."""
        self.source.close()

    def __enter__(self) -> "AssetRegistry":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def is_pending(self, identifier: str) -> bool:
        return identifier in self._in_flight

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    async def _resolve_identifier(self, identifier: str) -> AssetDescriptor:
        cached = self._cache.get(identifier)
        if cached is not None:
            return cached

        task = self._in_flight.get(identifier)
        if task is None:
            logger.debug(f"Asset {identifier} not cached, fetching")
            task = asyncio.ensure_future(self._fetch(identifier))
            self._in_flight[identifier] = task
            task.add_done_callback(lambda t: self._settle(identifier, t))
        else:
            logger.debug(f"Asset {identifier} fetch already in flight, waiting on it")

        # shield: a cancelled caller must not cancel the fetch other callers wait on
        descriptor = await asyncio.shield(task)
        # A descriptor registered while the fetch was running takes precedence.
        return self._cache.get(identifier, descriptor)

    async def _fetch(self, identifier: str) -> AssetDescriptor:
        descriptor = await self.source.fetch(identifier)
        if descriptor.identifier != identifier:
            raise AssetSourceError(
                f"Source returned asset {descriptor.identifier} for {identifier}"
            )
        return descriptor

    def _settle(self, identifier: str, task: "asyncio.Task[AssetDescriptor]"):
        if self._in_flight.get(identifier) is task:
            del self._in_flight[identifier]

        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            logger.warning(f"Failed to resolve asset {identifier}: {error}")
            return

        descriptor = task.result()
        self._cache.setdefault(identifier, descriptor)
