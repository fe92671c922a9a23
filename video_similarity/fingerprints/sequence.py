"""Ordered fingerprint sequences, one per video.

A ``FingerprintSequence`` is what gets compared, cached and exchanged. Its
text form is a single header line followed by one hex token per line:

    # video-fingerprint v1 method=phash bits=64 cadence=1 unit=frames source=clip.mp4
    c3e1a0f0781e0f87
    ...
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from ..config import FingerprintConfig
from ..errors import ConfigurationError, EmptySequence
from .frame import FrameFingerprint, FrameFingerprinter, token_length

logger = logging.getLogger(__name__)

HEADER_PREFIX = "# video-fingerprint v1 "
CADENCE_UNITS = ("frames", "seconds")


@dataclass(frozen=True)
class FingerprintSequence:
    """Immutable ordered list of per-frame fingerprint tokens.

    Attributes:
        tokens: Fixed-length tokens in frame order.
        source_id: Identifier of the video the tokens came from.
        cadence: Sampling step between consecutive tokens.
        cadence_unit: "frames" (every Nth frame) or "seconds" (fixed interval).
        hash_method: Fingerprint method the tokens were built with.
        hash_bits: Bit width of each fingerprint.
    """

    tokens: tuple[str, ...]
    source_id: str = ""
    cadence: float = 1
    cadence_unit: str = "frames"
    hash_method: str = "phash"
    hash_bits: int = 64

    def __post_init__(self):
        tokens = tuple(self.tokens)
        object.__setattr__(self, "tokens", tokens)
        if self.hash_bits < 1:
            raise ConfigurationError(f"hash_bits must be >= 1, got {self.hash_bits}")
        if self.cadence_unit not in CADENCE_UNITS:
            raise ConfigurationError(
                f"Unknown cadence_unit {self.cadence_unit!r}, expected one of {CADENCE_UNITS}"
            )
        if self.cadence <= 0:
            raise ConfigurationError(f"cadence must be positive, got {self.cadence}")
        width = token_length(self.hash_bits)
        for index, token in enumerate(tokens):
            if not isinstance(token, str) or len(token) != width:
                raise ConfigurationError(
                    f"Token {index} ({token!r}) does not have the fixed length {width} "
                    f"for {self.hash_bits}-bit fingerprints"
                )

    def __len__(self) -> int:
        return len(self.tokens)

    def __iter__(self):
        return iter(self.tokens)

    def __getitem__(self, index):
        return self.tokens[index]

    @property
    def token_length(self) -> int:
        return token_length(self.hash_bits)

    def fingerprints(self) -> list[FrameFingerprint]:
        """Decode the tokens back into fingerprints."""
        return [
            FrameFingerprint.from_token(t, self.hash_bits, self.hash_method)
            for t in self.tokens
        ]

    def is_compatible(self, other: "FingerprintSequence") -> bool:
        """True if both sequences were built under the same fingerprint configuration."""
        return (
            self.hash_method == other.hash_method
            and self.hash_bits == other.hash_bits
            and self.token_length == other.token_length
        )

    def without_repeats(self, tolerance: float = 0.0, distance=None) -> "FingerprintSequence":
        """Drop frames that repeat the previously kept frame.

        A frame is dropped when its distance to the last kept frame is at most
        ``tolerance``. Useful for static scenes sampled many times, which would
        otherwise dominate the alignment.

        Args:
            tolerance: Maximum distance (in [0, 1]) still counted as a repeat.
            distance: Token distance strategy; normalized Hamming by default.
        """
        if not 0.0 <= tolerance <= 1.0:
            raise ConfigurationError(f"tolerance must be within [0, 1], got {tolerance}")
        if not self.tokens:
            return self
        if distance is None:
            from ..distance import HammingDistance

            distance = HammingDistance(self.hash_bits)

        kept = [self.tokens[0]]
        for token in self.tokens[1:]:
            if distance.distance(kept[-1], token) > tolerance:
                kept.append(token)

        logger.debug(f"{self.source_id or 'sequence'}: kept {len(kept)}/{len(self)} frames")
        return self._with_tokens(kept)

    def _with_tokens(self, tokens) -> "FingerprintSequence":
        return FingerprintSequence(
            tokens=tuple(tokens),
            source_id=self.source_id,
            cadence=self.cadence,
            cadence_unit=self.cadence_unit,
            hash_method=self.hash_method,
            hash_bits=self.hash_bits,
        )

    def dumps(self) -> str:
        """Serialize to the text form (header plus one token per line)."""
        header = (
            f"{HEADER_PREFIX}method={self.hash_method} bits={self.hash_bits} "
            f"cadence={_format_cadence(self.cadence)} unit={self.cadence_unit} source={self.source_id}"
        )
        return "\n".join([header, *self.tokens]) + "\n"

    @classmethod
    def loads(cls, text: str) -> "FingerprintSequence":
        """Parse the text form produced by ``dumps``."""
        lines = text.splitlines()
        if not lines or not lines[0].startswith(HEADER_PREFIX):
            raise ConfigurationError("Missing video-fingerprint header line")

        header = lines[0][len(HEADER_PREFIX):]
        fields_part, sep, source_id = header.partition(" source=")
        if not sep:
            raise ConfigurationError(f"Malformed fingerprint header: {lines[0]!r}")

        meta = {}
        for item in fields_part.split():
            key, eq, value = item.partition("=")
            if not eq:
                raise ConfigurationError(f"Malformed header field {item!r}")
            meta[key] = value

        try:
            cadence = float(meta.get("cadence", 1))
            hash_bits = int(meta.get("bits", 64))
        except ValueError as e:
            raise ConfigurationError(f"Malformed fingerprint header: {e}") from None

        return cls(
            tokens=tuple(line.strip() for line in lines[1:] if line.strip()),
            source_id=source_id,
            cadence=cadence,
            cadence_unit=meta.get("unit", "frames"),
            hash_method=meta.get("method", "phash"),
            hash_bits=hash_bits,
        )

    def save(self, path: str | Path) -> None:
        Path(path).write_text(self.dumps(), encoding="utf-8")

    @classmethod
    def load(cls, path: str | Path) -> "FingerprintSequence":
        try:
            text = Path(path).read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"{path} is not a fingerprint file: {e}") from None
        try:
            return cls.loads(text)
        except ConfigurationError as e:
            raise ConfigurationError(f"{path}: {e}") from None


def _format_cadence(cadence: float) -> str:
    # repr keeps every digit so the header parses back to the same float.
    value = float(cadence)
    return str(int(value)) if value.is_integer() else repr(value)


def _pixels(frame: Any):
    # Sampler records carry the pixel buffer and its layout; bare arrays are RGB or grey.
    pixels = getattr(frame, "pixels", frame)
    layout = getattr(frame, "channel_layout", "rgb")
    if layout not in ("rgb", "bgr"):
        layout = "rgb"
    return pixels, layout


def encode(
    frames: Iterable[Any],
    cadence: float = 1,
    source_id: str = "",
    config: FingerprintConfig | None = None,
    cadence_unit: str = "frames",
) -> FingerprintSequence:
    """Fingerprint an ordered run of frames into a ``FingerprintSequence``.

    Args:
        frames: Decoded frames (arrays, tensors or sampler records) in order.
        cadence: Sampling step that produced the frames.
        source_id: Identifier of the source video.
        config: Fingerprint configuration; ``config.workers > 1`` fingerprints
            frames on a thread pool, keeping their order.
        cadence_unit: "frames" or "seconds".

    Raises:
        EmptySequence: If no frames were supplied.
        InvalidFrame: If any frame is empty. No frame is skipped.
    """
    config = config or FingerprintConfig()
    frames = list(frames)
    if not frames:
        raise EmptySequence(f"No frames to encode for {source_id or 'sequence'}")

    fingerprinter = FrameFingerprinter(config)

    def fingerprint_one(frame) -> str:
        pixels, layout = _pixels(frame)
        return fingerprinter.fingerprint(pixels, layout).token

    if config.workers > 1 and len(frames) > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            tokens = list(executor.map(fingerprint_one, frames))
    else:
        tokens = [fingerprint_one(frame) for frame in frames]

    logger.debug(
        f"Encoded {len(tokens)} frames from {source_id or 'sequence'} "
        f"({config.hash_method}, {config.hash_bits} bits)"
    )

    return FingerprintSequence(
        tokens=tuple(tokens),
        source_id=source_id,
        cadence=cadence,
        cadence_unit=cadence_unit,
        hash_method=config.hash_method,
        hash_bits=config.hash_bits,
    )
