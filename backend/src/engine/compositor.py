"""Avatar compositor: stacks the named layers into one 80x80 RGBA frame.

Order: background fill → fade → mask → wave flood fill → shine → brow →
eyes → pupils → mouth. The flood fill runs after the mask so the mask's
outline bounds the recolored wave area.

CRITICAL: Blend math is integer-only (16-bit alpha, truncating division) so
output is bit-identical across platforms and numpy versions.
"""

import logging
import time

import numpy as np
import sentry_sdk

from assets.catalog import AVATAR_SIZE, AssetRef
from assets.providers import AssetProvider, default_provider
from engine.codec import encode_png
from engine.color import hsl_to_rgb, rgba
from engine.determinism import AvatarParams, derive_params
from engine.flood_fill import flood_fill
from errors import AssetError

logger = logging.getLogger(__name__)

BACKGROUND_SATURATION = 240
BACKGROUND_LIGHTNESS = 50
WAVE_SATURATION = 240
WAVE_LIGHTNESS = 170

# Fill start; must sit inside every mask's enclosed outline.
CENTER = (AVATAR_SIZE // 2, AVATAR_SIZE // 2)

# Per-call timing threshold (milliseconds)
GENERATE_WARN_MS = 50

_ALPHA_MAX = 0xFFFF


def _capture_with_context(e: AssetError, params: AvatarParams):
    """Capture a layer failure to Sentry with layer context and fingerprint dedup."""
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("asset_category", e.category)
        scope.fingerprint = ["asset-load", e.category, type(e).__name__]
        scope.set_context(
            "layer",
            {
                "category": e.category,
                "variant": e.variant,
                "params": list(params.as_tuple()),
            },
        )
        sentry_sdk.capture_exception(e, scope=scope)


def new_raster(color=(0, 0, 0, 0)) -> np.ndarray:
    """Allocate an avatar-sized RGBA frame filled with one colour."""
    return np.full((AVATAR_SIZE, AVATAR_SIZE, 4), color, dtype=np.uint8)


def draw_over(base: np.ndarray, layer: np.ndarray) -> None:
    """Source-over composite a straight-alpha layer onto base, in place.

    Alpha 0 leaves base untouched; alpha 255 replaces it.
    """
    if base.shape != layer.shape:
        raise ValueError(f"Layer shape {layer.shape} does not match {base.shape}")

    src = layer.astype(np.int64)
    dst = base.astype(np.int64)

    # Straight 8-bit → premultiplied 16-bit
    sa = src[:, :, 3:4] * 0x101
    s_rgb = src[:, :, :3] * sa // 0xFF
    a = (_ALPHA_MAX - sa) * 0x101

    out = np.empty_like(dst)
    out[:, :, :3] = (dst[:, :, :3] * a // _ALPHA_MAX + s_rgb) >> 8
    out[:, :, 3:4] = (dst[:, :, 3:4] * a // _ALPHA_MAX + sa) >> 8
    base[...] = out.astype(np.uint8)


def _apply_layer(
    raster: np.ndarray, provider: AssetProvider, category: str, variant: int
) -> None:
    layer = provider.load(AssetRef(category, variant))
    draw_over(raster, layer)


def compose(params: AvatarParams, provider: AssetProvider) -> np.ndarray:
    """Build the avatar frame for already-derived parameters.

    Raises:
        AssetError: If any layer is missing or undecodable.
    """
    background = rgba(
        hsl_to_rgb(params.background_hue, BACKGROUND_SATURATION, BACKGROUND_LIGHTNESS)
    )
    raster = new_raster(background)

    _apply_layer(raster, provider, "fade", params.fade)
    _apply_layer(raster, provider, "mask", params.face)

    wave = rgba(hsl_to_rgb(params.wave_hue, WAVE_SATURATION, WAVE_LIGHTNESS))
    flood_fill(raster, CENTER[0], CENTER[1], wave)

    for category, variant in (
        ("shine", params.face),
        ("brow", params.brow),
        ("eyes", params.eyes),
        ("pupils", params.pupil),
        ("mouth", params.mouth),
    ):
        _apply_layer(raster, provider, category, variant)

    return raster


def generate(data: bytes, provider: AssetProvider | None = None) -> np.ndarray:
    """Generate the avatar for an input byte sequence.

    Args:
        data:     Any bytes-like object, typically an MD5 digest of an email address.
        provider: Layer source. Defaults to default_provider().

    Returns:
        Read-only RGBA frame as uint8 (80, 80, 4).

    Raises:
        AssetError: If a layer cannot be obtained. No partial frame is returned.
        TypeError: If data is not bytes-like, such as an int or str.
    """
    # memoryview rejects ints and str
    data = memoryview(data).tobytes()
    if provider is None:
        provider = default_provider()

    t0 = time.monotonic()
    params = derive_params(data)

    try:
        raster = compose(params, provider)
    except AssetError as e:
        _capture_with_context(e, params)
        logger.error(
            "Avatar generation aborted: layer %s/%d failed (%s)",
            e.category,
            e.variant,
            type(e).__name__,
        )
        logger.debug("Layer failure detail: %s", e)
        raise

    elapsed_ms = (time.monotonic() - t0) * 1000
    if elapsed_ms > GENERATE_WARN_MS:
        logger.warning(
            "Avatar generation took %.0fms (>%dms warn threshold)",
            elapsed_ms,
            GENERATE_WARN_MS,
        )
    else:
        logger.debug("Avatar generated in %.1fms", elapsed_ms)

    raster.flags.writeable = False
    return raster


def render_png(data: bytes, provider: AssetProvider | None = None) -> bytes:
    """Generate the avatar and encode it as PNG bytes."""
    return encode_png(generate(data, provider))
