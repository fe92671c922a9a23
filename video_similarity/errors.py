"""Exceptions raised by the fingerprinting and comparison core."""


class VideoSimilarityError(Exception):
    """Base error for everything raised by this package."""


class InvalidFrame(VideoSimilarityError):
    """A frame with no pixels (or an unusable shape) reached the fingerprinter."""


class EmptySequence(VideoSimilarityError):
    """Zero frames reached the encoder, or an empty sequence reached the comparator."""


class ConfigurationError(VideoSimilarityError, ValueError):
    """Out-of-range option, or two sequences built under different configurations."""


class VideoDecodeError(VideoSimilarityError):
    """The frame sampler could not open or decode a video file."""
