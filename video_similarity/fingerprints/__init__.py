"""Frame fingerprinting and sequence encoding."""

from .frame import FrameFingerprint, FrameFingerprinter, fingerprint_frame
from .sequence import FingerprintSequence, encode

__all__ = [
    "FrameFingerprint",
    "FrameFingerprinter",
    "fingerprint_frame",
    "FingerprintSequence",
    "encode",
]
