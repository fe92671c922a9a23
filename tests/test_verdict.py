import pytest

from video_similarity import DEFAULT_THRESHOLD, ClassifierConfig, calibrate_threshold, classify
from video_similarity.errors import ConfigurationError
from video_similarity.matching import AlignmentResult


def result_with_score(score: float) -> AlignmentResult:
    return AlignmentResult(cost=0.0, score=score, path=(), len_a=1, len_b=1, gap_penalty=0.7)


def test_score_at_threshold_is_similar():
    verdict = classify(result_with_score(0.8), 0.8)
    assert verdict.similar
    assert verdict.score == 0.8
    assert verdict.threshold == 0.8


def test_score_below_threshold_is_not_similar():
    assert not classify(result_with_score(0.79), 0.8).similar


def test_default_threshold():
    verdict = classify(result_with_score(DEFAULT_THRESHOLD))
    assert verdict.threshold == DEFAULT_THRESHOLD
    assert verdict.similar


def test_classifier_config_is_accepted():
    verdict = classify(result_with_score(0.5), ClassifierConfig(threshold=0.4))
    assert verdict.similar and verdict.threshold == 0.4


@pytest.mark.parametrize("threshold", [-0.1, 1.01, float("nan"), "high"])
def test_out_of_range_threshold(threshold):
    with pytest.raises(ConfigurationError):
        classify(result_with_score(0.5), threshold)


def test_verdict_str():
    assert str(classify(result_with_score(0.9), 0.75)).startswith("similar")
    assert str(classify(result_with_score(0.1), 0.75)).startswith("not similar")


def test_end_to_end_verdicts(video_sequence, unrelated_frames):
    from video_similarity import compare, encode

    assert classify(compare(video_sequence, video_sequence)).similar
    assert not classify(compare(video_sequence, encode(unrelated_frames))).similar


def test_calibration_splits_separated_scores():
    threshold = calibrate_threshold([0.9, 0.95, 1.0], [0.2, 0.3])
    assert threshold == pytest.approx(0.6)


def test_calibration_with_overlap_maximises_balanced_accuracy():
    # One dissimilar pair scores above one similar pair; the best cut misses only one.
    threshold = calibrate_threshold([0.6, 0.85, 0.9, 0.95], [0.1, 0.2, 0.7])
    assert 0.7 < threshold <= 0.85


@pytest.mark.parametrize(
    "similar, dissimilar",
    [([], [0.1]), ([0.9], []), ([1.5], [0.1]), ([0.9], [-0.2])],
)
def test_calibration_rejects_bad_input(similar, dissimilar):
    with pytest.raises(ConfigurationError):
        calibrate_threshold(similar, dissimilar)
