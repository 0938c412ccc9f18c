from pathlib import Path

import numpy as np
import pytest

from assets.catalog import AVATAR_SIZE, AssetRef, all_refs
from assets.providers import InMemoryAssetProvider
from engine.codec import encode_png

# Mask outline: a 2px opaque square ring; everything inside it is one region.
RING_OUTER = (8, 72)
RING_WIDTH = 2


def _blank() -> np.ndarray:
    return np.zeros((AVATAR_SIZE, AVATAR_SIZE, 4), dtype=np.uint8)


def make_layer(ref: AssetRef) -> np.ndarray:
    """Synthetic artwork for one layer. Nothing but the fill touches (40, 40)."""
    layer = _blank()
    n = ref.variant

    if ref.category == "fade":
        # Uniform translucent white so the ring interior stays one colour
        layer[:, :] = [255, 255, 255, 30 * n]
    elif ref.category == "mask":
        lo, hi = RING_OUTER
        layer[lo:hi, lo : lo + RING_WIDTH] = [0, 0, 0, 255]
        layer[lo:hi, hi - RING_WIDTH : hi] = [0, 0, 0, 255]
        layer[lo : lo + RING_WIDTH, lo:hi] = [0, 0, 0, 255]
        layer[hi - RING_WIDTH : hi, lo:hi] = [0, 0, 0, 255]
        # Variant tick outside the ring
        layer[2, n] = [0, 0, 0, 255]
    elif ref.category == "shine":
        layer[12:15, 12 + n : 15 + n] = [255, 255, 255, 128]
    elif ref.category == "brow":
        layer[25, 20 + n : 30 + n] = [40, 20, 0, 255]
    elif ref.category == "eyes":
        layer[31:34, 24:29] = [255, 255, 255, 255]
        layer[31:34, 50 : 50 + n % 5 + 1] = [255, 255, 255, 255]
    elif ref.category == "pupils":
        layer[32, 25 + n % 3] = [0, 0, 0, 255]
        layer[32, 50 + n % 3] = [0, 0, 0, 255]
    elif ref.category == "mouth":
        layer[55, 30 : 31 + n] = [200, 0, 0, 255]
    return layer


@pytest.fixture(scope="session")
def synthetic_layers() -> dict[AssetRef, np.ndarray]:
    """A complete layer set covering every category and variant."""
    return {ref: make_layer(ref) for ref in all_refs()}


@pytest.fixture
def asset_provider(synthetic_layers):
    return InMemoryAssetProvider(synthetic_layers)


@pytest.fixture
def asset_dir(tmp_path, synthetic_layers) -> Path:
    """The synthetic layer set written as "{category}{n}.png" files."""
    d = tmp_path / "parts"
    d.mkdir()
    for ref, layer in synthetic_layers.items():
        (d / ref.filename).write_bytes(encode_png(layer))
    return d


class RecordingProvider(InMemoryAssetProvider):
    """In-memory provider that remembers the order layers were requested."""

    def __init__(self, layers):
        super().__init__(layers)
        self.requests: list[AssetRef] = []

    def _load(self, ref):
        self.requests.append(ref)
        return super()._load(ref)


@pytest.fixture
def recording_provider(synthetic_layers):
    return RecordingProvider(synthetic_layers)
