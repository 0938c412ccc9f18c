"""Seeded determinism for avatar reproducibility.

The input bytes are hashed with 64-bit FNV-1a and the digest seeds a PCG
generator (128-bit LCG state, DXSM output). Eight bounded draws in a fixed
order become the avatar parameters. Same input = same parameters, always.

CRITICAL: Do not reorder the draws in draw_params(). Each draw consumes one
or more values from the stream, so changing the order changes every avatar.
"""

import hashlib
from dataclasses import astuple, dataclass

from assets.catalog import (
    BROW_COUNT,
    EYES_COUNT,
    FACE_COUNT,
    FADE_COUNT,
    MOUTH_COUNT,
    PUPIL_COUNT,
)
from engine.color import HSL_MAX

MASK64 = (1 << 64) - 1
MASK128 = (1 << 128) - 1

FNV64_OFFSET = 0xCBF29CE484222325
FNV64_PRIME = 0x100000001B3

PCG_MULTIPLIER = 0x2360ED051FC65DA44385DF649FCCF645
PCG_INCREMENT = 0x5851F42D4C957F2D14057B7EF767814F
DXSM_MULTIPLIER = 0xDA942042E4DD58B5


def fnv1a_64(data: bytes) -> int:
    """64-bit FNV-1a digest. Order-sensitive, total over any length."""
    h = FNV64_OFFSET
    for byte in data:
        h ^= byte
        h = (h * FNV64_PRIME) & MASK64
    return h


def derive_seed(data: bytes) -> tuple[int, int]:
    """Derive the two 64-bit seed components (state, stream) from input bytes.

    The stream component always has its low bit set.
    """
    digest = fnv1a_64(data)
    return digest, (digest >> 1) | 1


class PCG:
    """PCG generator with 128-bit state and DXSM output permutation.

    The state is seeded directly from two 64-bit halves and advanced before
    each output.
    """

    def __init__(self, seed1: int, seed2: int):
        self._state = ((seed1 & MASK64) << 64) | (seed2 & MASK64)

    def next_u64(self) -> int:
        self._state = (self._state * PCG_MULTIPLIER + PCG_INCREMENT) & MASK128
        hi = self._state >> 64
        lo = self._state & MASK64

        hi ^= hi >> 32
        hi = (hi * DXSM_MULTIPLIER) & MASK64
        hi ^= hi >> 48
        hi = (hi * (lo | 1)) & MASK64
        return hi

    def int_n(self, n: int) -> int:
        """Uniform int in [0, n).

        Powers of two mask the low bits; anything else uses Lemire's
        multiply-shift with rejection of the biased low range.
        """
        if n <= 0:
            raise ValueError(f"int_n bound must be positive, got {n}")
        if n & (n - 1) == 0:
            return self.next_u64() & (n - 1)

        product = self.next_u64() * n
        hi, lo = product >> 64, product & MASK64
        if lo < n:
            threshold = ((1 << 64) - n) % n
            while lo < threshold:
                product = self.next_u64() * n
                hi, lo = product >> 64, product & MASK64
        return hi


@dataclass(frozen=True)
class AvatarParams:
    """The eight integers that fully describe one avatar."""

    face: int
    background_hue: int
    fade: int
    wave_hue: int
    brow: int
    eyes: int
    pupil: int
    mouth: int

    def as_tuple(self) -> tuple[int, ...]:
        return astuple(self)


def draw_params(rng: PCG) -> AvatarParams:
    """Draw avatar parameters from rng in the fixed declared order."""
    face = rng.int_n(FACE_COUNT) + 1
    background_hue = rng.int_n(HSL_MAX) + 1
    fade = rng.int_n(FADE_COUNT) + 1
    wave_hue = rng.int_n(HSL_MAX) + 1
    brow = rng.int_n(BROW_COUNT) + 1
    eyes = rng.int_n(EYES_COUNT) + 1
    pupil = rng.int_n(PUPIL_COUNT) + 1
    mouth = rng.int_n(MOUTH_COUNT) + 1
    return AvatarParams(
        face=face,
        background_hue=background_hue,
        fade=fade,
        wave_hue=wave_hue,
        brow=brow,
        eyes=eyes,
        pupil=pupil,
        mouth=mouth,
    )


def derive_params(data: bytes) -> AvatarParams:
    """Map input bytes to avatar parameters. No other entropy is involved."""
    return draw_params(PCG(*derive_seed(data)))


def email_digest(email: str) -> bytes:
    """MD5 digest of a normalized email address, the conventional avatar key."""
    normalized = email.strip().lower().encode("utf-8")
    return hashlib.md5(normalized).digest()  # noqa: S324
