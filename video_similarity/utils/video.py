"""Frame sampling from video files.

This is the decoding boundary: frames come out as RGB numpy arrays in
increasing frame order, ready for the fingerprinter. Nothing in the core
imports this module.
"""

import logging
from pathlib import Path
from typing import Iterator, NamedTuple

import av
import cv2
import numpy as np

from ..config import FingerprintConfig
from ..errors import ConfigurationError, EmptySequence, VideoDecodeError
from ..fingerprints.sequence import FingerprintSequence, encode

logger = logging.getLogger(__name__)


class SampledFrame(NamedTuple):
    frame_index: int
    pixels: np.ndarray
    width: int
    height: int
    channel_layout: str = "rgb"


def iter_frames(
    video_path: str | Path,
    sample_rate: int = 1,
    interval: float | None = None,
    max_frames: int | None = None,
    max_resolution: int | None = 720,
) -> Iterator[SampledFrame]:
    """Decode and yield sampled frames.

    Args:
        video_path: Path to video file.
        sample_rate: Keep every Nth decoded frame (ignored if interval is set).
        interval: Keep one frame per this many seconds of presentation time.
        max_frames: Stop after this many sampled frames (None = all).
        max_resolution: Maximum height (preserves aspect ratio). None = original.

    Raises:
        VideoDecodeError: If the file cannot be opened or decoded.
    """
    if sample_rate < 1:
        raise ConfigurationError(f"sample_rate must be >= 1, got {sample_rate}")
    if interval is not None and interval <= 0:
        raise ConfigurationError(f"interval must be positive, got {interval}")

    try:
        container = av.open(str(video_path))
    except (av.error.FFmpegError, OSError) as e:
        raise VideoDecodeError(f"Cannot open {video_path}: {e}") from e

    try:
        if not container.streams.video:
            raise VideoDecodeError(f"No video stream in {video_path}")

        sampled = 0
        next_time = 0.0
        for frame_count, frame in enumerate(container.decode(video=0)):
            if interval is not None:
                t = frame.time if frame.time is not None else 0.0
                if t < next_time:
                    continue
                next_time += interval * (1 + int((t - next_time) // interval))
            elif frame_count % sample_rate != 0:
                continue

            img = frame.to_ndarray(format="rgb24")

            # Resize if needed
            if max_resolution and img.shape[0] > max_resolution:
                scale = max_resolution / img.shape[0]
                new_h = max_resolution
                new_w = max(1, int(img.shape[1] * scale))
                img = cv2.resize(img, (new_w, new_h), interpolation=cv2.INTER_AREA)

            yield SampledFrame(frame_count, img, img.shape[1], img.shape[0])
            sampled += 1

            if max_frames and sampled >= max_frames:
                break
    except av.error.FFmpegError as e:
        raise VideoDecodeError(f"Failed to decode {video_path}: {e}") from e
    finally:
        container.close()


def load_video(
    video_path: str | Path,
    max_frames: int | None = None,
    sample_rate: int = 1,
    max_resolution: int | None = 720,
) -> tuple[list[SampledFrame], float]:
    """Load sampled video frames.

    Returns:
        Tuple of (sampled frames, fps).
    """
    try:
        with av.open(str(video_path)) as container:
            stream = container.streams.video[0]
            fps = float(stream.average_rate) if stream.average_rate else 0.0
    except (av.error.FFmpegError, OSError, IndexError) as e:
        raise VideoDecodeError(f"Cannot read {video_path}: {e}") from e

    frames = list(
        iter_frames(
            video_path,
            sample_rate=sample_rate,
            max_frames=max_frames,
            max_resolution=max_resolution,
        )
    )
    return frames, fps


def fingerprint_video(
    video_path: str | Path,
    sample_rate: int = 1,
    interval: float | None = None,
    max_frames: int | None = None,
    config: FingerprintConfig | None = None,
) -> FingerprintSequence:
    """Sample a video and encode it into a fingerprint sequence.

    Raises:
        VideoDecodeError: If the file cannot be decoded.
        EmptySequence: If the video yields no frames.
    """
    frames = iter_frames(
        video_path,
        sample_rate=sample_rate,
        interval=interval,
        max_frames=max_frames,
    )
    cadence, unit = (interval, "seconds") if interval is not None else (sample_rate, "frames")
    try:
        sequence = encode(
            frames,
            cadence=cadence,
            source_id=str(video_path),
            config=config,
            cadence_unit=unit,
        )
    except EmptySequence:
        raise EmptySequence(f"No frames could be sampled from {video_path}") from None

    logger.info(f"Fingerprinted {video_path}: {len(sequence)} frames")
    return sequence
