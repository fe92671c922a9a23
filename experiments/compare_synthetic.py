#!/usr/bin/env python3
"""Synthetic test: check that aligned fingerprints separate copies from unrelated clips.

Builds synthetic "videos" (sequences of smooth random frames with slow camera
drift) and derived variants with known edits: recompression noise, rescaling,
a dropped frame, an irregular frame rate, a trimmed intro, and unrelated footage.
Prints the alignment and baseline scores for each variant, calibrates a
threshold on them and plots the alignment path of one pair.

This allows testing without needing actual video files.
"""

import argparse
from pathlib import Path

import cv2
import matplotlib.pyplot as plt
import numpy as np

from video_similarity import (
    ComparatorConfig,
    FingerprintConfig,
    calibrate_threshold,
    classify,
    compare,
    encode,
    jaccard_similarity,
)


def generate_scene(rng: np.random.Generator, height: int = 96, width: int = 128) -> np.ndarray:
    """Smooth random RGB image: a coarse random grid upsampled with bicubic interpolation."""
    coarse = rng.integers(0, 256, size=(6, 8, 3)).astype(np.float32)
    return np.clip(cv2.resize(coarse, (width, height), interpolation=cv2.INTER_CUBIC), 0, 255).astype(
        np.uint8
    )


def generate_video(
    seed: int,
    num_scenes: int = 6,
    frames_per_scene: int = 8,
    drift: int = 2,
) -> list[np.ndarray]:
    """Synthetic video: a few scenes, each panned slowly for a number of frames."""
    rng = np.random.default_rng(seed)
    frames = []
    for _ in range(num_scenes):
        scene = generate_scene(rng)
        for t in range(frames_per_scene):
            frames.append(np.roll(scene, shift=t * drift, axis=1))
    return frames


def recompress(frames: list[np.ndarray], quality: int = 40) -> list[np.ndarray]:
    """Round-trip every frame through JPEG."""
    out = []
    for frame in frames:
        ok, buf = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
        out.append(cv2.imdecode(buf, cv2.IMREAD_UNCHANGED))
    return out


def rescale(frames: list[np.ndarray], factor: float = 0.5) -> list[np.ndarray]:
    return [
        cv2.resize(f, (int(f.shape[1] * factor), int(f.shape[0] * factor)), interpolation=cv2.INTER_AREA)
        for f in frames
    ]


def make_variants(frames: list[np.ndarray]) -> dict[str, tuple[list[np.ndarray], bool]]:
    """Variants of a video, each tagged with whether it is the same content."""
    middle = len(frames) // 2
    return {
        "identical": (frames, True),
        "recompressed": (recompress(frames), True),
        "rescaled": (rescale(frames), True),
        "dropped_frame": (frames[:middle] + frames[middle + 1:], True),
        "jittered_fps": ([f for i, f in enumerate(frames) if i % 6 != 5], True),
        "trimmed_intro": (frames[len(frames) // 6:], True),
        "unrelated_1": (generate_video(seed=1001), False),
        "unrelated_2": (generate_video(seed=1002, frames_per_scene=5), False),
        "unrelated_3": (rescale(generate_video(seed=1003)), False),
    }


def run_synthetic_test(hash_method: str = "phash", plot_path: Path | None = None):
    """Run tests with synthetic videos."""
    print("=" * 70)
    print(f"Synthetic Alignment Test ({hash_method})")
    print("=" * 70)

    fp_config = FingerprintConfig(hash_method=hash_method)
    cmp_config = ComparatorConfig()

    original = generate_video(seed=7)
    reference = encode(original, source_id="original", config=fp_config)

    scores = {}
    labels = {}
    results = {}
    print(f"\n{'variant':16s}{'frames':>8s}{'score':>10s}{'jaccard':>10s}{'matched':>9s}{'gaps':>6s}")
    print("-" * 59)
    for name, (frames, same) in make_variants(original).items():
        sequence = encode(frames, source_id=name, config=fp_config)
        result = compare(reference, sequence, cmp_config)
        results[name] = result
        scores[name] = result.score
        labels[name] = same
        gaps = result.deletions + result.insertions
        print(
            f"{name:16s}{len(sequence):8d}{result.score:10.3f}"
            f"{jaccard_similarity(reference, sequence):10.3f}{result.matched:9d}{gaps:6d}"
        )

    threshold = calibrate_threshold(
        [s for n, s in scores.items() if labels[n]],
        [s for n, s in scores.items() if not labels[n]],
    )
    print(f"\nCalibrated threshold: {threshold:.3f}")
    for name, result in results.items():
        verdict = classify(result, threshold)
        mark = "ok" if verdict.similar == labels[name] else "WRONG"
        print(f"  {name:16s} {str(verdict):50s} {mark}")

    plot_alignment(results["jittered_fps"], plot_path or Path("alignment_jittered_fps.png"))


def plot_alignment(result, save_path: Path):
    """Plot the alignment path of one comparison."""
    pairs = np.array(result.matched_pairs())

    fig, ax = plt.subplots(figsize=(6, 6))
    if len(pairs):
        ax.plot(pairs[:, 1], pairs[:, 0], "b.-", alpha=0.7, label="matched")
    ax.set_xlim(-1, result.len_b)
    ax.set_ylim(-1, result.len_a)
    ax.invert_yaxis()
    ax.set_xlabel("frame in B")
    ax.set_ylabel("frame in A")
    ax.set_title(f"score={result.score:.3f}, cost={result.cost:.2f}")
    ax.legend(loc="upper right")

    plt.tight_layout()
    plt.savefig(save_path, dpi=150)
    print(f"\nAlignment plot saved to: {save_path}")
    plt.close(fig)


def main():
    parser = argparse.ArgumentParser(description="Synthetic alignment experiment")
    parser.add_argument("--hash-method", default="phash", choices=["phash", "dhash", "ahash"])
    parser.add_argument("--plot", type=Path, default=None, help="Where to save the alignment plot")
    args = parser.parse_args()
    run_synthetic_test(args.hash_method, args.plot)


if __name__ == "__main__":
    main()
