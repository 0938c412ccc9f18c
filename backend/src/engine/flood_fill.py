"""4-connected flood fill over an RGBA raster."""

import logging
from collections import deque

import numpy as np

logger = logging.getLogger(__name__)


def _pack(color) -> int:
    """Pack an RGBA pixel into the uint32 word the raster view uses."""
    return int(np.asarray(color, dtype=np.uint8).reshape(4).view(np.uint32)[0])


def flood_fill(raster: np.ndarray, x: int, y: int, color) -> None:
    """Recolor the uniform 4-connected region containing (x, y), in place.

    Membership is tested when a point is dequeued, so neighbours are queued
    unconditionally and already-recolored pixels are skipped. An out-of-bounds
    start or a start pixel already equal to color is a no-op.

    Args:
        raster: (H, W, 4) uint8 C-contiguous frame, modified in place.
        x, y:   Start coordinate (column, row).
        color:  Target RGBA pixel.
    """
    if raster.ndim != 3 or raster.shape[2] != 4 or raster.dtype != np.uint8:
        raise ValueError(f"Expected (H, W, 4) uint8 raster, got {raster.shape}")
    if not raster.flags.c_contiguous:
        raise ValueError("flood_fill needs a C-contiguous raster")

    height, width = raster.shape[:2]
    if not (0 <= x < width and 0 <= y < height):
        return

    # One uint32 word per pixel; writes go straight through to raster.
    words = raster.view(np.uint32).reshape(height, width)
    start = int(words[y, x])
    target = _pack(color)
    if start == target:
        return

    filled = 0
    queue = deque([(x, y)])
    while queue:
        px, py = queue.popleft()
        if px < 0 or px >= width or py < 0 or py >= height:
            continue
        if words[py, px] != start:
            continue

        words[py, px] = target
        filled += 1

        queue.append((px + 1, py))
        queue.append((px - 1, py))
        queue.append((px, py + 1))
        queue.append((px, py - 1))

    logger.debug("Flood fill from (%d, %d) recolored %d pixels", x, y, filled)
