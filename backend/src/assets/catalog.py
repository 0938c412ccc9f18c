"""Asset catalog: layer categories, variant counts and file naming."""

from dataclasses import dataclass

AVATAR_SIZE = 80

# Variant counts must match the reference artwork set.
FADE_COUNT = 4
FACE_COUNT = 11
BROW_COUNT = 8
EYES_COUNT = 13
PUPIL_COUNT = 11
MOUTH_COUNT = 19

# mask and shine share the face index
VARIANT_COUNTS: dict[str, int] = {
    "fade": FADE_COUNT,
    "mask": FACE_COUNT,
    "shine": FACE_COUNT,
    "brow": BROW_COUNT,
    "eyes": EYES_COUNT,
    "pupils": PUPIL_COUNT,
    "mouth": MOUTH_COUNT,
}

CATEGORIES = tuple(VARIANT_COUNTS)


@dataclass(frozen=True)
class AssetRef:
    """Identifies one layer image: a category plus a 1-based variant number."""

    category: str
    variant: int

    @property
    def filename(self) -> str:
        return f"{self.category}{self.variant}.png"

    def __str__(self) -> str:
        return f"{self.category}/{self.variant}"


def validate_ref(ref: AssetRef) -> list[str]:
    """Validate a layer reference. Returns list of errors (empty = valid)."""
    errors: list[str] = []
    count = VARIANT_COUNTS.get(ref.category)
    if count is None:
        errors.append(
            f"Unknown category '{ref.category}'. Allowed: {sorted(VARIANT_COUNTS)}"
        )
        return errors
    if not isinstance(ref.variant, int) or isinstance(ref.variant, bool):
        errors.append(f"Variant must be an int, got {type(ref.variant).__name__}")
        return errors
    if not 1 <= ref.variant <= count:
        errors.append(
            f"Variant {ref.variant} out of range for '{ref.category}' (1..{count})"
        )
    return errors


def all_refs() -> list[AssetRef]:
    """Every layer of the complete asset set, in catalog order."""
    return [
        AssetRef(category, n)
        for category, count in VARIANT_COUNTS.items()
        for n in range(1, count + 1)
    ]
