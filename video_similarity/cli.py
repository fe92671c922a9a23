"""Command-line entry point: compare two videos and print score and verdict.

Usage:
    video-similarity a.mp4 b.mp4
    video-similarity a.mp4 b.mp4 --cadence 5 --threshold 0.8
    video-similarity a.mp4 b.vfp --interval 1.0 --baseline

Inputs ending in ``.vfp`` are read as saved fingerprint sequences instead of
being decoded. Exit status is 0 whenever the comparison completes (whatever
the verdict) and 2 on input or configuration errors.
"""

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from .config import ClassifierConfig, ComparatorConfig, FingerprintConfig, HASH_METHODS
from .errors import ConfigurationError, VideoSimilarityError
from .fingerprints import FingerprintSequence
from .logging_setup import setup_logging
from .matching import classify, compare, jaccard_similarity
from .utils.video import fingerprint_video

logger = logging.getLogger(__name__)

FINGERPRINT_SUFFIX = ".vfp"
EXIT_OK = 0
EXIT_INPUT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="video-similarity",
        description="Decide whether two videos show substantially the same content",
    )
    parser.add_argument("video_a", type=Path, help="First video (or .vfp fingerprint file)")
    parser.add_argument("video_b", type=Path, help="Second video (or .vfp fingerprint file)")
    cadence = parser.add_mutually_exclusive_group()
    cadence.add_argument("--cadence", type=int, default=None, help="Sample every Nth frame")
    cadence.add_argument("--interval", type=float, default=None, help="Sample one frame per N seconds")
    parser.add_argument("--threshold", type=float, default=None, help="Similarity threshold in [0, 1]")
    parser.add_argument("--gap-penalty", type=float, default=None, help="Cost of an unmatched frame")
    parser.add_argument(
        "--band-width",
        type=int,
        default=None,
        help="Approximate the alignment within this band around the diagonal",
    )
    parser.add_argument("--hash-method", choices=HASH_METHODS, default=None, help="Frame hash")
    parser.add_argument("--hash-size", type=int, default=None, help="Hash grid side (bits = size^2)")
    parser.add_argument("--max-frames", type=int, default=None, help="Max sampled frames per video")
    parser.add_argument("--workers", type=int, default=None, help="Threads for fingerprinting")
    parser.add_argument(
        "--dedupe",
        type=float,
        default=None,
        metavar="TOLERANCE",
        help="Drop consecutive frames within this distance before comparing",
    )
    parser.add_argument("--baseline", action="store_true", help="Also print the set-overlap baseline")
    parser.add_argument(
        "--save-fingerprints",
        type=Path,
        default=None,
        metavar="DIR",
        help="Write each decoded video's fingerprint sequence to DIR",
    )
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "WARNING"), help="Logging level")
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    return parser


def _configs(args) -> tuple[FingerprintConfig, ComparatorConfig, ClassifierConfig]:
    fp_config = FingerprintConfig.from_env()
    fp_overrides = {
        "hash_method": args.hash_method,
        "hash_size": args.hash_size,
        "workers": args.workers,
    }
    fp_config = replace(fp_config, **{k: v for k, v in fp_overrides.items() if v is not None})

    cmp_config = ComparatorConfig.from_env()
    cmp_overrides = {"gap_penalty": args.gap_penalty, "band_width": args.band_width}
    cmp_config = replace(cmp_config, **{k: v for k, v in cmp_overrides.items() if v is not None})

    cls_config = ClassifierConfig.from_env()
    if args.threshold is not None:
        cls_config = ClassifierConfig(threshold=args.threshold)

    return fp_config, cmp_config, cls_config


def _load_sequence(path: Path, args, config: FingerprintConfig) -> FingerprintSequence:
    if path.suffix == FINGERPRINT_SUFFIX:
        try:
            sequence = FingerprintSequence.load(path)
        except OSError as e:
            raise ConfigurationError(f"Cannot read fingerprint file {path}: {e}") from e
        logger.info(f"Loaded {len(sequence)} fingerprints from {path}")
        return sequence

    sequence = fingerprint_video(
        path,
        sample_rate=args.cadence if args.cadence is not None else 1,
        interval=args.interval,
        max_frames=args.max_frames,
        config=config,
    )
    if args.save_fingerprints is not None:
        args.save_fingerprints.mkdir(parents=True, exist_ok=True)
        out = args.save_fingerprints / (path.name + FINGERPRINT_SUFFIX)
        sequence.save(out)
        logger.info(f"Saved fingerprints to {out}")
    return sequence


def run(args) -> int:
    fp_config, cmp_config, cls_config = _configs(args)

    seq_a = _load_sequence(args.video_a, args, fp_config)
    seq_b = _load_sequence(args.video_b, args, fp_config)

    if args.dedupe is not None:
        seq_a = seq_a.without_repeats(args.dedupe)
        seq_b = seq_b.without_repeats(args.dedupe)

    result = compare(seq_a, seq_b, cmp_config)
    verdict = classify(result, cls_config)

    print(f"score: {result.score:.4f}")
    print(f"verdict: {'similar' if verdict.similar else 'not similar'} (threshold {verdict.threshold:.2f})")
    print(
        f"alignment: {result.matched} matched, {result.deletions} only in A, "
        f"{result.insertions} only in B" + (" [banded approximation]" if result.banded else "")
    )
    if args.baseline:
        print(f"baseline (jaccard): {jaccard_similarity(seq_a, seq_b):.4f}")

    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        setup_logging(args.log_level, args.log_file)
    except ValueError as e:
        parser.error(str(e))

    try:
        return run(args)
    except VideoSimilarityError as e:
        logger.debug("Comparison failed", exc_info=True)
        print(f"error: {type(e).__name__}: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR


if __name__ == "__main__":
    sys.exit(main())
