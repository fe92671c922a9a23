"""Configuration values for fingerprinting, comparison and classification.

Every stage takes its configuration as an explicit, frozen value so that
comparisons under different settings can run side by side. The ``from_env``
constructors read ``VIDSIM_*`` environment variables and are meant for the
command-line glue only; library callers build the dataclasses directly.
"""

import math
import os
from dataclasses import dataclass

from .errors import ConfigurationError

HASH_METHODS = ("phash", "dhash", "ahash")
TOKEN_DISTANCE_NAMES = ("hamming_normalized", "exact")

# Calibrated on re-encoded / trimmed copies against unrelated clips; see
# experiments/compare_synthetic.py for the sweep.
DEFAULT_THRESHOLD = 0.75
# One dropped frame must cost less than aligning two maximally different ones.
DEFAULT_GAP_PENALTY = 0.7


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class FingerprintConfig:
    """Settings for the frame fingerprinter and sequence encoder.

    Args:
        hash_method: Perceptual hash to use ("phash", "dhash" or "ahash").
        hash_size: Side of the hash grid; the fingerprint has hash_size**2 bits.
        highfreq_factor: Oversampling factor for phash before the DCT.
        workers: Threads used to fingerprint frames. 1 keeps it sequential.
    """

    hash_method: str = "phash"
    hash_size: int = 8
    highfreq_factor: int = 4
    workers: int = 1

    def __post_init__(self):
        if self.hash_method not in HASH_METHODS:
            raise ConfigurationError(
                f"Unknown hash_method {self.hash_method!r}, expected one of {HASH_METHODS}"
            )
        if self.hash_size < 2:
            raise ConfigurationError(f"hash_size must be >= 2, got {self.hash_size}")
        if self.highfreq_factor < 1:
            raise ConfigurationError(
                f"highfreq_factor must be >= 1, got {self.highfreq_factor}"
            )
        if self.workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {self.workers}")

    @property
    def hash_bits(self) -> int:
        """Width L of one fingerprint in bits."""
        return self.hash_size * self.hash_size

    @property
    def token_length(self) -> int:
        """Number of hex characters in one serialized fingerprint."""
        return (self.hash_bits + 3) // 4

    @classmethod
    def from_env(cls) -> "FingerprintConfig":
        return cls(
            hash_method=os.getenv("VIDSIM_HASH_METHOD", "phash"),
            hash_size=_env_int("VIDSIM_HASH_SIZE", 8),
            highfreq_factor=_env_int("VIDSIM_HIGHFREQ_FACTOR", 4),
            workers=_env_int("VIDSIM_WORKERS", 1),
        )


@dataclass(frozen=True)
class ComparatorConfig:
    """Settings for the sequence alignment.

    Args:
        gap_penalty: Cost of leaving one frame unmatched. Must be > 0.
        token_distance: Name of the per-token distance strategy.
        band_width: If set, only evaluate cells within this many columns of the
            (length-scaled) diagonal. Approximate; off by default.
    """

    gap_penalty: float = DEFAULT_GAP_PENALTY
    token_distance: str = "hamming_normalized"
    band_width: int | None = None

    def __post_init__(self):
        if not math.isfinite(self.gap_penalty) or self.gap_penalty <= 0:
            raise ConfigurationError(
                f"gap_penalty must be a positive number, got {self.gap_penalty}"
            )
        if self.token_distance not in TOKEN_DISTANCE_NAMES:
            raise ConfigurationError(
                f"Unknown token_distance {self.token_distance!r}, "
                f"expected one of {TOKEN_DISTANCE_NAMES}"
            )
        if self.band_width is not None and self.band_width < 1:
            raise ConfigurationError(f"band_width must be >= 1, got {self.band_width}")

    @classmethod
    def from_env(cls) -> "ComparatorConfig":
        return cls(
            gap_penalty=_env_float("VIDSIM_GAP_PENALTY", DEFAULT_GAP_PENALTY),
            token_distance=os.getenv("VIDSIM_TOKEN_DISTANCE", "hamming_normalized"),
            band_width=_env_int("VIDSIM_BAND_WIDTH", None),
        )


def check_threshold(threshold: float) -> float:
    """Return threshold as a float, or raise ConfigurationError if outside [0, 1]."""
    try:
        value = float(threshold)
    except (TypeError, ValueError):
        raise ConfigurationError(f"threshold must be a number, got {threshold!r}") from None
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"threshold must be within [0, 1], got {threshold}")
    return value


@dataclass(frozen=True)
class ClassifierConfig:
    """Settings for the verdict classifier."""

    threshold: float = DEFAULT_THRESHOLD

    def __post_init__(self):
        check_threshold(self.threshold)

    @classmethod
    def from_env(cls) -> "ClassifierConfig":
        return cls(threshold=_env_float("VIDSIM_THRESHOLD", DEFAULT_THRESHOLD))
