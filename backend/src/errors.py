"""Exception hierarchy for avatar generation.

Parameter derivation, colour conversion and flood fill are total; the only
failure source is a layer that cannot be obtained or decoded.
"""


class WavatarError(Exception):
    """Base class for all avatar generation errors."""


class AssetError(WavatarError):
    """A named asset layer could not be provided.

    Carries the failing layer so callers can choose a retry or fallback policy.
    """

    def __init__(self, category: str, variant: int, reason: str = ""):
        self.category = category
        self.variant = variant
        self.reason = reason
        msg = f"asset layer {category}/{variant} unavailable"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class AssetNotFoundError(AssetError):
    """The provider has no such layer."""


class AssetDecodeError(AssetError):
    """The layer exists but is not a decodable RGBA image of the avatar size."""
