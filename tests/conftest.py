"""Shared fixtures: synthetic frames, no video files needed."""

import cv2
import numpy as np
import pytest

from video_similarity import FingerprintConfig, encode


def make_scene(seed: int, height: int = 96, width: int = 128) -> np.ndarray:
    """Smooth random RGB frame: a coarse random grid upsampled bicubically."""
    rng = np.random.default_rng(seed)
    coarse = rng.integers(0, 256, size=(6, 8, 3)).astype(np.float32)
    smooth = cv2.resize(coarse, (width, height), interpolation=cv2.INTER_CUBIC)
    return np.clip(smooth, 0, 255).astype(np.uint8)


def add_noise(frame: np.ndarray, sigma: float = 3.0, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    noisy = frame.astype(np.float32) + rng.normal(0.0, sigma, size=frame.shape)
    return np.clip(noisy, 0, 255).astype(np.uint8)


@pytest.fixture
def scene():
    return make_scene(0)


@pytest.fixture
def video_frames():
    """Twelve distinct frames standing in for one sampled video."""
    return [make_scene(100 + i) for i in range(12)]


@pytest.fixture
def unrelated_frames():
    return [make_scene(500 + i) for i in range(12)]


@pytest.fixture
def fp_config():
    return FingerprintConfig()


@pytest.fixture
def video_sequence(video_frames, fp_config):
    return encode(video_frames, source_id="original", config=fp_config)
