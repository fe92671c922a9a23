#!/usr/bin/env python3
"""Experiment: compare real videos with every frame hash.

Fingerprints each video once per hash method and prints the alignment score
(and set-overlap baseline) for each pair, to see which hash separates
re-encodes from different footage best on a given collection.

Usage:
    python experiments/compare_videos.py --video1 path/to/video1.mp4 --video2 path/to/video2.mp4
    python experiments/compare_videos.py --video-dir path/to/videos/
"""

import argparse
from pathlib import Path

from video_similarity import ComparatorConfig, FingerprintConfig, compare, jaccard_similarity
from video_similarity.config import HASH_METHODS
from video_similarity.logging_setup import setup_logging
from video_similarity.utils import fingerprint_video


def process_video(
    video_path: Path,
    sample_rate: int = 5,
    max_frames: int = 600,
    workers: int = 4,
) -> dict:
    """Fingerprint one video with every hash method.

    Returns:
        Dict mapping hash method to FingerprintSequence.
    """
    print(f"Processing: {video_path.name}")
    sequences = {}
    for method in HASH_METHODS:
        config = FingerprintConfig(hash_method=method, workers=workers)
        sequences[method] = fingerprint_video(
            video_path, sample_rate=sample_rate, max_frames=max_frames, config=config
        )
    print(f"  Sampled {len(sequences['phash'])} frames")
    return sequences


def compare_videos(seqs1: dict, seqs2: dict, config: ComparatorConfig) -> dict:
    """Score a pair of processed videos with every hash method."""
    scores = {}
    for method in HASH_METHODS:
        scores[f"{method}_aligned"] = compare(seqs1[method], seqs2[method], config).score
    scores["phash_jaccard"] = jaccard_similarity(seqs1["phash"], seqs2["phash"])
    return scores


def main():
    parser = argparse.ArgumentParser(description="Compare videos with each frame hash")
    parser.add_argument("--video1", type=Path, help="First video path")
    parser.add_argument("--video2", type=Path, help="Second video path")
    parser.add_argument("--video-dir", type=Path, help="Directory of videos to compare pairwise")
    parser.add_argument("--max-frames", type=int, default=600, help="Max frames per video")
    parser.add_argument("--sample-rate", type=int, default=5, help="Sample every Nth frame")
    parser.add_argument("--gap-penalty", type=float, default=0.7, help="Alignment gap penalty")
    parser.add_argument("--band-width", type=int, default=None, help="Banded alignment width")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    args = parser.parse_args()

    setup_logging(args.log_level)
    config = ComparatorConfig(gap_penalty=args.gap_penalty, band_width=args.band_width)

    if args.video_dir:
        video_files = list(args.video_dir.glob("*.mp4")) + list(args.video_dir.glob("*.avi"))
        print(f"Found {len(video_files)} videos")

        results = {}
        for vf in video_files:
            results[vf.name] = process_video(vf, args.sample_rate, args.max_frames)

        print("\n" + "=" * 60)
        print("Pairwise Similarities")
        print("=" * 60)

        names = list(results.keys())
        for i in range(len(names)):
            for j in range(i + 1, len(names)):
                name1, name2 = names[i], names[j]
                scores = compare_videos(results[name1], results[name2], config)

                print(f"\n{name1} vs {name2}:")
                for method, score in scores.items():
                    print(f"  {method:25s}: {score:.4f}")

    elif args.video1 and args.video2:
        result1 = process_video(args.video1, args.sample_rate, args.max_frames)
        result2 = process_video(args.video2, args.sample_rate, args.max_frames)

        scores = compare_videos(result1, result2, config)

        print("\n" + "=" * 60)
        print(f"Comparison: {args.video1.name} vs {args.video2.name}")
        print("=" * 60)
        for method, score in scores.items():
            print(f"  {method:25s}: {score:.4f}")

    else:
        parser.print_help()
        print("\nError: Provide either --video1 and --video2, or --video-dir")


if __name__ == "__main__":
    main()
