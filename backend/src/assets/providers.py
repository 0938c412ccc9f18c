"""Asset providers: where avatar layer images come from.

The compositor asks a provider for one layer at a time by AssetRef. Providers
return decoded (80, 80, 4) uint8 straight-alpha arrays or raise an AssetError
subclass naming the layer. Layers are treated as read-only.

Backends:
- InMemoryAssetProvider: pre-decoded bundle (tests, embedding)
- DirectoryAssetProvider: "{category}{n}.png" files on disk
- PackageAssetProvider: PNGs shipped inside an installed package
- HttpAssetProvider: PNGs fetched from a static file server
- CachingAssetProvider: thread-safe memo around any of the above
"""

import logging
import os
import threading
from abc import ABC, abstractmethod
from functools import lru_cache
from importlib.resources import files
from pathlib import Path

import httpx
import numpy as np

from assets.catalog import AVATAR_SIZE, AssetRef, validate_ref
from engine.codec import decode_png
from errors import AssetDecodeError, AssetError, AssetNotFoundError
from security import validate_asset_dir, validate_asset_url

logger = logging.getLogger(__name__)

LAYER_SHAPE = (AVATAR_SIZE, AVATAR_SIZE, 4)


def check_layer(ref: AssetRef, layer) -> np.ndarray:
    """Ensure a decoded layer is an RGBA uint8 array of the avatar size."""
    if not isinstance(layer, np.ndarray):
        raise AssetDecodeError(
            ref.category, ref.variant, f"expected ndarray, got {type(layer).__name__}"
        )
    if layer.shape != LAYER_SHAPE:
        raise AssetDecodeError(
            ref.category, ref.variant, f"shape {layer.shape}, expected {LAYER_SHAPE}"
        )
    if layer.dtype != np.uint8:
        raise AssetDecodeError(
            ref.category, ref.variant, f"dtype {layer.dtype}, expected uint8"
        )
    return layer


class AssetProvider(ABC):
    """Base provider: validates the ref, loads, then checks the layer."""

    def load(self, ref: AssetRef) -> np.ndarray:
        errors = validate_ref(ref)
        if errors:
            raise AssetNotFoundError(ref.category, ref.variant, "; ".join(errors))
        return check_layer(ref, self._load(ref))

    @abstractmethod
    def _load(self, ref: AssetRef) -> np.ndarray:
        """Return the decoded layer or raise AssetError."""


class EncodedAssetProvider(AssetProvider):
    """Provider whose backend yields PNG bytes."""

    def _load(self, ref: AssetRef) -> np.ndarray:
        data = self.fetch_bytes(ref)
        try:
            return decode_png(data)
        except ValueError as e:
            raise AssetDecodeError(ref.category, ref.variant, str(e)) from e

    @abstractmethod
    def fetch_bytes(self, ref: AssetRef) -> bytes:
        """Return the encoded image for ref or raise AssetError."""


class InMemoryAssetProvider(AssetProvider):
    """Bundle of already-decoded layers keyed by AssetRef or (category, n)."""

    def __init__(self, layers: dict):
        self._layers: dict[AssetRef, np.ndarray] = {}
        for key, layer in layers.items():
            ref = key if isinstance(key, AssetRef) else AssetRef(*key)
            frozen = np.array(layer, dtype=np.uint8, copy=True)
            frozen.flags.writeable = False
            self._layers[ref] = frozen

    def __len__(self) -> int:
        return len(self._layers)

    def _load(self, ref: AssetRef) -> np.ndarray:
        layer = self._layers.get(ref)
        if layer is None:
            raise AssetNotFoundError(ref.category, ref.variant, "not in bundle")
        return layer


class DirectoryAssetProvider(EncodedAssetProvider):
    """Reads "{category}{n}.png" files from a directory."""

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root)

    def fetch_bytes(self, ref: AssetRef) -> bytes:
        path = self.root / ref.filename
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise AssetNotFoundError(ref.category, ref.variant, f"no file {path}") from e
        except OSError as e:
            raise AssetError(ref.category, ref.variant, type(e).__name__) from e


class PackageAssetProvider(EncodedAssetProvider):
    """Reads layer PNGs bundled as package data, e.g. ``mypkg/parts/mask1.png``."""

    def __init__(self, package: str, subdir: str = "parts"):
        self.package = package
        self._root = files(package).joinpath(subdir)

    def fetch_bytes(self, ref: AssetRef) -> bytes:
        resource = self._root.joinpath(ref.filename)
        try:
            return resource.read_bytes()
        except FileNotFoundError as e:
            raise AssetNotFoundError(
                ref.category, ref.variant, f"not bundled in {self.package}"
            ) from e
        except OSError as e:
            raise AssetError(ref.category, ref.variant, type(e).__name__) from e


class HttpAssetProvider(EncodedAssetProvider):
    """Fetches "{base_url}/{category}{n}.png" over HTTP(S)."""

    def __init__(
        self,
        base_url: str,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ):
        errors = validate_asset_url(base_url)
        if errors:
            raise ValueError("; ".join(errors))
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def fetch_bytes(self, ref: AssetRef) -> bytes:
        url = f"{self.base_url}/{ref.filename}"
        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            raise AssetError(ref.category, ref.variant, type(e).__name__) from e

        if response.status_code == 404:
            raise AssetNotFoundError(ref.category, ref.variant, f"404 from {url}")
        if response.status_code != 200:
            raise AssetError(
                ref.category, ref.variant, f"HTTP {response.status_code} from {url}"
            )
        return response.content

    def close(self):
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class CachingAssetProvider(AssetProvider):
    """Memoizes decoded layers from an inner provider.

    Cached arrays are read-only, so concurrent generate() calls can share
    them without copying. Failures are not cached.
    """

    def __init__(self, inner: AssetProvider):
        self.inner = inner
        self._lock = threading.Lock()
        self._cache: dict[AssetRef, np.ndarray] = {}

    def _load(self, ref: AssetRef) -> np.ndarray:
        with self._lock:
            cached = self._cache.get(ref)
        if cached is not None:
            return cached

        layer = self.inner.load(ref)
        if layer.flags.writeable:
            layer = layer.copy()
            layer.flags.writeable = False

        with self._lock:
            return self._cache.setdefault(ref, layer)

    def cached_refs(self) -> list[AssetRef]:
        with self._lock:
            return list(self._cache)

    def clear(self):
        with self._lock:
            self._cache.clear()


@lru_cache(maxsize=1)
def default_provider() -> AssetProvider:
    """Process-wide provider configured from the environment.

    WAVATAR_ASSET_URL selects HTTP, else WAVATAR_ASSET_DIR selects a
    directory, else ./parts is used.
    """
    url = os.environ.get("WAVATAR_ASSET_URL", "")
    if url:
        logger.info("Loading avatar layers from %s", url)
        return CachingAssetProvider(HttpAssetProvider(url))

    asset_dir = os.environ.get("WAVATAR_ASSET_DIR", "")
    if asset_dir:
        errors = validate_asset_dir(asset_dir)
        if errors:
            raise ValueError("; ".join(errors))
    else:
        asset_dir = "parts"
    logger.info("Loading avatar layers from directory %s", asset_dir)
    return CachingAssetProvider(DirectoryAssetProvider(asset_dir))
