"""Perceptual fingerprints for single decoded frames.

A frame is converted to a PIL image and hashed with ``imagehash``: the image
is reduced to a small greyscale grid and binarized, giving a square bit
pattern that barely moves under recompression, mild colour shifts or
rescaling, while unrelated frames land about half the bits apart.

Three hashes are available:
- phash: DCT of an oversampled grid, low-frequency block against its median.
- dhash: horizontal gradient sign on a (N, N+1) grid.
- ahash: each cell against the grid mean.
"""

import math
from dataclasses import dataclass
from functools import partial

import imagehash
import numpy as np
import torch
from PIL import Image

from ..config import FingerprintConfig
from ..errors import ConfigurationError, InvalidFrame

TOKEN_ALPHABET = "0123456789abcdef"


def token_length(bits: int) -> int:
    return (bits + 3) // 4


def check_hash_bits(bits: int) -> int:
    """Return the grid side for a square hash of ``bits`` bits.

    Raises:
        ConfigurationError: If bits is not the square of a side >= 2.
    """
    side = math.isqrt(bits) if bits > 0 else 0
    if side < 2 or side * side != bits:
        raise ConfigurationError(
            f"{bits}-bit fingerprints do not form a square hash grid (side >= 2)"
        )
    return side


def hash_from_token(token: str, bits: int) -> imagehash.ImageHash:
    """Parse a hex token back into an ``ImageHash`` of the given width.

    Raises:
        ConfigurationError: If the token is not exactly a ``bits``-bit hex value.
    """
    check_hash_bits(bits)
    width = token_length(bits)
    if not isinstance(token, str) or len(token) != width or any(c not in TOKEN_ALPHABET for c in token):
        raise ConfigurationError(f"Token {token!r} is not a {width}-character hex fingerprint")
    if int(token, 16) >> bits:
        raise ConfigurationError(f"Token {token!r} does not fit in {bits} bits")
    return imagehash.hex_to_hash(token)


@dataclass(frozen=True)
class FrameFingerprint:
    """Square perceptual hash of one frame.

    Attributes:
        hash: The ``imagehash.ImageHash`` bit grid.
        method: Hash that produced it.
    """

    hash: imagehash.ImageHash
    method: str = "phash"

    @property
    def bits(self) -> int:
        return int(self.hash.hash.size)

    @property
    def token(self) -> str:
        """Fixed-length lowercase hex rendering."""
        return str(self.hash)

    def bit_array(self) -> np.ndarray:
        """Bits as a (L,) bool array, row by row."""
        return self.hash.hash.flatten()

    def distance(self, other: "FrameFingerprint") -> float:
        """Fraction of differing bits, in [0, 1]."""
        return (self.hash - other.hash) / self.bits

    @classmethod
    def from_token(cls, token: str, bits: int, method: str = "phash") -> "FrameFingerprint":
        return cls(hash=hash_from_token(token, bits), method=method)

    def __str__(self) -> str:
        return self.token


def frame_to_image(
    frame: np.ndarray | torch.Tensor,
    channel_layout: str = "rgb",
) -> Image.Image:
    """Convert a decoded frame to a PIL image.

    Args:
        frame: (H, W) grey, or (H, W, C) with C in {1, 3, 4}. Float samples
            are read on the 0-255 scale.
        channel_layout: "rgb" or "bgr" for colour frames. An alpha channel is dropped.

    Returns:
        An "L" or "RGB" image.
    """
    if isinstance(frame, torch.Tensor):
        frame = frame.detach().cpu().numpy()
    arr = np.asarray(frame)
    if arr.dtype.kind not in "iuf":
        raise InvalidFrame(f"Frame is not a numeric pixel array (dtype {arr.dtype})")

    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[..., 0]

    if arr.ndim not in (2, 3):
        raise InvalidFrame(f"Expected a (H, W) or (H, W, C) frame, got shape {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidFrame(f"Frame has zero area: shape {arr.shape}")

    if arr.ndim == 3:
        if arr.shape[2] not in (3, 4):
            raise InvalidFrame(f"Unsupported channel count {arr.shape[2]}")
        if channel_layout not in ("rgb", "bgr"):
            raise ConfigurationError(f"Unknown channel_layout {channel_layout!r}")
        arr = arr[..., :3] if channel_layout == "rgb" else arr[..., 2::-1]

    if arr.dtype != np.uint8:
        if not np.isfinite(arr).all():
            raise InvalidFrame("Frame contains non-finite samples")
        arr = np.clip(arr, 0, 255).astype(np.uint8)

    return Image.fromarray(np.ascontiguousarray(arr))


class FrameFingerprinter:
    """Reduce decoded frames to fixed-width perceptual fingerprints.

    Holds only its configuration, so one instance can be shared across threads.
    """

    def __init__(self, config: FingerprintConfig | None = None):
        self.config = config or FingerprintConfig()
        hash_functions = {
            "phash": partial(imagehash.phash, highfreq_factor=self.config.highfreq_factor),
            "dhash": imagehash.dhash,
            "ahash": imagehash.average_hash,
        }
        self._hash = hash_functions[self.config.hash_method]

    def hash_image(self, image: Image.Image) -> imagehash.ImageHash:
        """Hash a PIL image into a (hash_size, hash_size) bit grid."""
        return self._hash(image, hash_size=self.config.hash_size)

    def fingerprint(
        self,
        frame: np.ndarray | torch.Tensor,
        channel_layout: str = "rgb",
    ) -> FrameFingerprint:
        """Fingerprint one frame.

        Raises:
            InvalidFrame: If the frame is empty or not a pixel grid.
        """
        image = frame_to_image(frame, channel_layout)
        return FrameFingerprint(hash=self.hash_image(image), method=self.config.hash_method)


def fingerprint_frame(
    frame: np.ndarray | torch.Tensor,
    config: FingerprintConfig | None = None,
    channel_layout: str = "rgb",
) -> FrameFingerprint:
    """Fingerprint a single frame with the given configuration."""
    return FrameFingerprinter(config).fingerprint(frame, channel_layout)
