"""Sequence alignment, scoring and verdicts."""

from .alignment import (
    AlignmentOp,
    AlignmentResult,
    AlignmentStep,
    SequenceAligner,
    compare,
    normalize_score,
)
from .baseline import jaccard_similarity
from .verdict import Verdict, calibrate_threshold, classify

__all__ = [
    "AlignmentOp",
    "AlignmentResult",
    "AlignmentStep",
    "SequenceAligner",
    "compare",
    "normalize_score",
    "jaccard_similarity",
    "Verdict",
    "calibrate_threshold",
    "classify",
]
