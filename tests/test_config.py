import dataclasses

import pytest

from video_similarity.config import (
    DEFAULT_GAP_PENALTY,
    DEFAULT_THRESHOLD,
    ClassifierConfig,
    ComparatorConfig,
    FingerprintConfig,
)
from video_similarity.errors import ConfigurationError


def test_defaults():
    assert FingerprintConfig().hash_bits == 64
    assert FingerprintConfig().token_length == 16
    assert ComparatorConfig().gap_penalty == DEFAULT_GAP_PENALTY
    assert ComparatorConfig().band_width is None
    assert ClassifierConfig().threshold == DEFAULT_THRESHOLD


def test_gap_penalty_is_below_maximum_token_distance():
    # A single missing frame must be cheaper than pairing two unrelated frames.
    assert 0 < DEFAULT_GAP_PENALTY < 1


def test_configs_are_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        ComparatorConfig().gap_penalty = 2.0


@pytest.mark.parametrize(
    "kwargs",
    [{"hash_method": "md5"}, {"hash_size": 1}, {"highfreq_factor": 0}, {"workers": 0}],
)
def test_invalid_fingerprint_config(kwargs):
    with pytest.raises(ConfigurationError):
        FingerprintConfig(**kwargs)


def test_from_env(monkeypatch):
    monkeypatch.setenv("VIDSIM_HASH_METHOD", "dhash")
    monkeypatch.setenv("VIDSIM_HASH_SIZE", "16")
    monkeypatch.setenv("VIDSIM_GAP_PENALTY", "0.5")
    monkeypatch.setenv("VIDSIM_BAND_WIDTH", "10")
    monkeypatch.setenv("VIDSIM_THRESHOLD", "0.9")

    assert FingerprintConfig.from_env() == FingerprintConfig(hash_method="dhash", hash_size=16)
    assert ComparatorConfig.from_env() == ComparatorConfig(gap_penalty=0.5, band_width=10)
    assert ClassifierConfig.from_env().threshold == 0.9


def test_from_env_defaults(monkeypatch):
    for name in ("VIDSIM_HASH_METHOD", "VIDSIM_GAP_PENALTY", "VIDSIM_BAND_WIDTH", "VIDSIM_THRESHOLD"):
        monkeypatch.delenv(name, raising=False)
    assert ComparatorConfig.from_env() == ComparatorConfig()
    assert ClassifierConfig.from_env() == ClassifierConfig()


@pytest.mark.parametrize(
    "name, value, factory",
    [
        ("VIDSIM_HASH_SIZE", "eight", FingerprintConfig.from_env),
        ("VIDSIM_GAP_PENALTY", "wide", ComparatorConfig.from_env),
        ("VIDSIM_THRESHOLD", "1.5", ClassifierConfig.from_env),
    ],
)
def test_bad_env_values(monkeypatch, name, value, factory):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        factory()
