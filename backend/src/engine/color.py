"""240-domain HSL colour model.

Hue, saturation and lightness are integers in [0, 240] and channels are
computed on a 256 scale. The arithmetic is integer-only and the division
order is fixed: reordering or switching to floats changes every avatar.
"""

HSL_MAX = 240
BAND = 40


def _clamp(v: int) -> int:
    if v < 0:
        return 0
    if v > 255:
        return 255
    return v


def _hue_channels(h: int) -> tuple[int, int, int]:
    """Six 40-wide hue bands; one channel rises or falls per band."""
    if h <= 40:
        return 255, h // BAND * 256, 0
    if h <= 80:
        return (1 - (h - 40) // BAND) * 256, 255, 0
    if h <= 120:
        return 0, 255, (h - 80) // BAND * 256
    if h <= 160:
        return 0, (1 - (h - 120) // BAND) * 256, 255
    if h <= 200:
        return (h - 160) // BAND * 256, 0, 255
    return 255, 0, (1 - (h - 200) // BAND) * 256


def _desaturate(c: int, s: int) -> int:
    return c + (HSL_MAX - s) // HSL_MAX * (128 - c)


def _lightness(c: int, l: int) -> int:
    if l < 120:
        return (c // 120) * l
    return l * ((256 - c) // 120) + 2 * c - 256


def hsl_to_rgb(h: int, s: int, l: int) -> tuple[int, int, int]:
    """Convert a 240-domain HSL triple to 8-bit RGB.

    Out-of-range input yields black instead of raising.

    All dividends are non-negative for in-range input, so floor division
    matches truncating division here.
    """
    if not (0 <= h <= HSL_MAX and 0 <= s <= HSL_MAX and 0 <= l <= HSL_MAX):
        return 0, 0, 0

    channels = _hue_channels(h)
    channels = tuple(_desaturate(c, s) for c in channels)
    r, g, b = (_clamp(_lightness(c, l)) for c in channels)
    return r, g, b


def rgba(rgb: tuple[int, int, int], alpha: int = 255) -> tuple[int, int, int, int]:
    """Opaque (by default) RGBA pixel from an RGB triple."""
    r, g, b = rgb
    return r, g, b, alpha
