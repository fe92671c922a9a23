"""Order-insensitive baseline comparison.

Treats each sequence as a set of distinct fingerprint tokens and reports the
Jaccard index |A & B| / |A | B|. It ignores frame order and near matches, so
it only recognises bit-exact repeats; useful as a sanity check next to the
alignment score.
"""

from ..errors import ConfigurationError, EmptySequence
from ..fingerprints.sequence import FingerprintSequence


def jaccard_similarity(a: FingerprintSequence, b: FingerprintSequence) -> float:
    """Jaccard index of the two sequences' distinct tokens, in [0, 1]."""
    if len(a) == 0 or len(b) == 0:
        raise EmptySequence("Cannot compute the set overlap of an empty sequence")
    if not a.is_compatible(b):
        raise ConfigurationError("Fingerprint sequences were built with different configurations")

    left, right = set(a.tokens), set(b.tokens)
    return len(left & right) / len(left | right)
