"""Turning a similarity score into a similar / not-similar verdict."""

from dataclasses import dataclass
from typing import Iterable

from ..config import DEFAULT_THRESHOLD, ClassifierConfig, check_threshold
from ..errors import ConfigurationError
from .alignment import AlignmentResult


@dataclass(frozen=True)
class Verdict:
    similar: bool
    score: float
    threshold: float

    def __str__(self) -> str:
        label = "similar" if self.similar else "not similar"
        return f"{label} (score={self.score:.4f}, threshold={self.threshold:.4f})"


def classify(
    result: AlignmentResult,
    threshold: float | ClassifierConfig = DEFAULT_THRESHOLD,
) -> Verdict:
    """Threshold an alignment score.

    Args:
        result: Output of ``compare``.
        threshold: Minimum score counted as similar, in [0, 1], or a
            ``ClassifierConfig`` carrying it.

    Raises:
        ConfigurationError: If the threshold is outside [0, 1].
    """
    if isinstance(threshold, ClassifierConfig):
        threshold = threshold.threshold
    threshold = check_threshold(threshold)
    return Verdict(similar=result.score >= threshold, score=result.score, threshold=threshold)


def _checked_scores(scores: Iterable[float], label: str) -> list[float]:
    values = [float(s) for s in scores]
    if not values:
        raise ConfigurationError(f"Need at least one {label} score to calibrate")
    for s in values:
        if not 0.0 <= s <= 1.0:
            raise ConfigurationError(f"{label} score {s} is outside [0, 1]")
    return values


def calibrate_threshold(
    similar_scores: Iterable[float],
    dissimilar_scores: Iterable[float],
) -> float:
    """Pick the threshold that best separates labelled example scores.

    Candidate cuts are the lowest observed score and the midpoints between
    consecutive distinct scores. The cut with the highest balanced accuracy
    (mean of the hit rates on both classes) wins; the lowest such cut on ties.

    Args:
        similar_scores: Scores of pairs known to be the same content.
        dissimilar_scores: Scores of pairs known to be different content.

    Returns:
        Threshold in [0, 1].
    """
    positives = _checked_scores(similar_scores, "similar")
    negatives = _checked_scores(dissimilar_scores, "dissimilar")

    values = sorted(set(positives) | set(negatives))
    candidates = [values[0]] + [(lo + hi) / 2 for lo, hi in zip(values, values[1:])]

    best_cut, best_accuracy = candidates[0], -1.0
    for cut in candidates:
        hit_rate = sum(s >= cut for s in positives) / len(positives)
        reject_rate = sum(s < cut for s in negatives) / len(negatives)
        accuracy = (hit_rate + reject_rate) / 2
        if accuracy > best_accuracy:
            best_cut, best_accuracy = cut, accuracy

    return best_cut
