"""Video decoding and frame sampling."""

from .video import SampledFrame, fingerprint_video, iter_frames, load_video

__all__ = ["SampledFrame", "fingerprint_video", "iter_frames", "load_video"]
