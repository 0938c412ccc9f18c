"""PNG encoding/decoding for avatar rasters and asset layers."""

import io

import numpy as np
from PIL import Image, UnidentifiedImageError

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def encode_png(frame: np.ndarray) -> bytes:
    """Encode an RGBA frame to PNG bytes (lossless, alpha kept)."""
    img = Image.fromarray(np.ascontiguousarray(frame))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def decode_png(data: bytes) -> np.ndarray:
    """Decode image bytes to a straight-alpha RGBA uint8 array (H, W, 4).

    Palette, grayscale and RGB images are converted to RGBA.

    Raises:
        ValueError: If the bytes are not a decodable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValueError(f"undecodable image: {e}") from e
    return np.array(rgba, dtype=np.uint8)
