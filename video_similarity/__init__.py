"""Video similarity from perceptual frame fingerprints.

Decides whether two videos show substantially the same content despite
re-encoding, rescaling, frame-rate changes or small edits. Each sampled frame
is reduced to a short perceptual hash; the two resulting sequences are aligned
with a gap-tolerant dynamic program and the alignment cost is normalized into
a score in [0, 1].

Key components:
- fingerprints: Frame fingerprinter and sequence encoder
- matching: Sequence alignment, baseline comparison and verdicts
- distance: Per-token distance strategies
- utils: Video decoding and frame sampling (PyAV)
"""

from .config import ClassifierConfig, ComparatorConfig, FingerprintConfig, DEFAULT_THRESHOLD
from .distance import ExactDistance, HammingDistance, token_similarity
from .errors import (
    ConfigurationError,
    EmptySequence,
    InvalidFrame,
    VideoDecodeError,
    VideoSimilarityError,
)
from .fingerprints import FingerprintSequence, FrameFingerprint, encode, fingerprint_frame
from .matching import AlignmentResult, Verdict, calibrate_threshold, classify, compare, jaccard_similarity

__all__ = [
    "ClassifierConfig",
    "ComparatorConfig",
    "FingerprintConfig",
    "DEFAULT_THRESHOLD",
    "ExactDistance",
    "HammingDistance",
    "token_similarity",
    "ConfigurationError",
    "EmptySequence",
    "InvalidFrame",
    "VideoDecodeError",
    "VideoSimilarityError",
    "FingerprintSequence",
    "FrameFingerprint",
    "encode",
    "fingerprint_frame",
    "AlignmentResult",
    "Verdict",
    "calibrate_threshold",
    "classify",
    "compare",
    "jaccard_similarity",
]
