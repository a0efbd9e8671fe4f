import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import quote

import requests
import yaml

from ledger_money.constants import (
    ASSET_DETAILS_PATH,
    CONNECT_TIMEOUT_SECONDS,
    DEFAULT_NODE_URL,
    NATIVE_ASSET_ID,
    NATIVE_ASSET_NAME,
    NATIVE_ASSET_PRECISION,
    READ_TIMEOUT_SECONDS,
)
from ledger_money.errors import AssetNotFound, AssetSourceError, InvalidArgument
from ledger_money.model import AssetDescriptor

logger = logging.getLogger(__name__)


class AssetSource(ABC):
    """Supplies descriptors for identifiers the registry has not seen yet."""

    @abstractmethod
    async def fetch(self, identifier: str) -> AssetDescriptor:
        """Returns the descriptor for `identifier` or raises AssetNotFound."""

    def close(self):
        """Releases resources held by the source. Nothing to release by default."""


class StaticAssetSource(AssetSource):
    """In-memory table of descriptors, e.g. the ledger's well-known assets."""

    def __init__(self, descriptors: Iterable[Any] = ()):
        self._descriptors: Dict[str, AssetDescriptor] = {}
        for item in descriptors:
            self.add(AssetDescriptor.from_data(item))

    def add(self, descriptor: AssetDescriptor):
        self._descriptors[descriptor.identifier] = descriptor

    async def fetch(self, identifier: str) -> AssetDescriptor:
        descriptor = self._descriptors.get(identifier)
        if descriptor is None:
            raise AssetNotFound(identifier)
        return descriptor

    def identifiers(self) -> List[str]:
        return list(self._descriptors.keys())

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    @classmethod
    def well_known(cls) -> "StaticAssetSource":
        return cls([
            AssetDescriptor(
                identifier=NATIVE_ASSET_ID,
                display_name=NATIVE_ASSET_NAME,
                precision=NATIVE_ASSET_PRECISION,
            )
        ])

    @classmethod
    def from_yaml(cls, path: str, include_well_known: bool = True) -> "StaticAssetSource":
        """
        Loads a table of descriptors from YAML. Either a list of entries:

            - id: EIGHT
              name: Eight Precision Token
              precision: 8

        or a mapping keyed by identifier:

            EIGHT: {name: Eight Precision Token, precision: 8}
        """
        with open(path, "r") as f:
            data = yaml.safe_load(f) or []

        if isinstance(data, dict):
            entries = []
            for identifier, fields in data.items():
                entry = dict(fields or {})
                entry.setdefault("id", str(identifier))
                entries.append(entry)
        elif isinstance(data, list):
            entries = data
        else:
            raise InvalidArgument(
                f"Asset table {path} must be a list or a mapping, got {type(data).__name__}"
            )

        source = cls.well_known() if include_well_known else cls()
        for entry in entries:
            source.add(AssetDescriptor.from_data(entry))

        logger.info(f"Loaded {len(entries)} assets from {path}")
        return source


class NodeAssetSource(AssetSource):
    """
    Looks up asset details on a ledger node over HTTP.
    The blocking request runs in a worker thread so the event loop keeps going.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_NODE_URL,
        timeouts: Tuple[float, float] = (CONNECT_TIMEOUT_SECONDS, READ_TIMEOUT_SECONDS),
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeouts = timeouts
        self.session = session or requests.Session()

    def asset_url(self, identifier: str) -> str:
        return self.base_url + ASSET_DETAILS_PATH.format(asset_id=quote(identifier, safe=""))

    async def fetch(self, identifier: str) -> AssetDescriptor:
        return await asyncio.to_thread(self._fetch_blocking, identifier)

    def _fetch_blocking(self, identifier: str) -> AssetDescriptor:
        url = self.asset_url(identifier)
        logger.debug(f"Fetching asset details from {url}")

        try:
            response = self.session.get(url, timeout=self.timeouts)
        except requests.RequestException as e:
            logger.error(f"Failed to fetch asset {identifier} from {url}: {e}")
            raise AssetSourceError(f"Failed to fetch asset {identifier}: {e}") from e

        if response.status_code == 404:
            raise AssetNotFound(identifier)

        if response.status_code == 400:
            # The node answers 400 with an error body for ids it does not know or cannot parse
            raise AssetNotFound(identifier, f"Asset {identifier!r} not found: {_error_message(response)}")

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error(f"Node returned HTTP {response.status_code} for asset {identifier}: {e}")
            raise AssetSourceError(
                f"Node returned HTTP {response.status_code} for asset {identifier}"
            ) from e

        try:
            data = response.json()
            descriptor = AssetDescriptor.from_data(data)
        except (ValueError, InvalidArgument) as e:
            logger.error(f"Malformed asset details for {identifier}: {e}")
            raise AssetSourceError(f"Malformed asset details for {identifier}: {e}") from e

        return descriptor

    def close(self):
        self.session.close()


class ChainedAssetSource(AssetSource):
    """Asks each source in turn; the first one that knows the identifier wins."""

    def __init__(self, sources: Sequence[AssetSource]):
        if not sources:
            raise InvalidArgument("ChainedAssetSource needs at least one source")
        self.sources = list(sources)

    async def fetch(self, identifier: str) -> AssetDescriptor:
        for source in self.sources:
            try:
                return await source.fetch(identifier)
            except AssetNotFound:
                continue
        raise AssetNotFound(identifier)

    def close(self):
        for source in self.sources:
            source.close()


def _error_message(response: Any) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)
