"""Per-token distance strategies used as the alignment substitution cost.

A strategy maps two fingerprint tokens to a distance in [0, 1], with
distance(x, x) == 0 and distance(x, y) == distance(y, x). ``prepare`` decodes
a token list once into a sliceable array and ``cross`` computes the distance
table between two prepared slices; ``matrix`` chains the two.
"""

import numpy as np
import torch

from .errors import ConfigurationError
from .fingerprints.frame import check_hash_bits, hash_from_token


def tokens_to_bits(tokens, bits: int) -> np.ndarray:
    """Decode hex tokens into an (n, bits) uint8 array of 0/1."""
    out = np.zeros((len(tokens), bits), dtype=np.uint8)
    for row, token in enumerate(tokens):
        out[row] = hash_from_token(token, bits).hash.flatten()
    return out


class HammingDistance:
    """Hamming distance over the fingerprint bits, divided by the bit width."""

    name = "hamming_normalized"

    def __init__(self, bits: int = 64):
        check_hash_bits(bits)
        self.bits = bits

    def distance(self, a: str, b: str) -> float:
        return (hash_from_token(a, self.bits) - hash_from_token(b, self.bits)) / self.bits

    def prepare(self, tokens) -> np.ndarray:
        return tokens_to_bits(tokens, self.bits)

    def cross(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Distance table (len(a), len(b)) between prepared bit rows.

        Uses |x - y| = x(1 - y) + (1 - x)y over 0/1 vectors, so the count of
        differing bits is two matrix products.
        """
        a = torch.from_numpy(a).to(torch.float64)
        b = torch.from_numpy(b).to(torch.float64)
        differing = a @ (1.0 - b).T + (1.0 - a) @ b.T
        return (differing / self.bits).numpy()

    def matrix(self, a_tokens, b_tokens) -> np.ndarray:
        return self.cross(self.prepare(a_tokens), self.prepare(b_tokens))


class ExactDistance:
    """0 for identical tokens, 1 otherwise. Treats tokens as opaque symbols."""

    name = "exact"

    def __init__(self, bits: int | None = None):
        self.bits = bits

    def distance(self, a: str, b: str) -> float:
        return 0.0 if a == b else 1.0

    def prepare(self, tokens) -> np.ndarray:
        return np.asarray(list(tokens), dtype=object)

    def cross(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        return (a[:, None] != b[None, :]).astype(np.float64)

    def matrix(self, a_tokens, b_tokens) -> np.ndarray:
        return self.cross(self.prepare(a_tokens), self.prepare(b_tokens))


TOKEN_DISTANCES = {
    HammingDistance.name: HammingDistance,
    ExactDistance.name: ExactDistance,
}


def get_token_distance(name: str, bits: int):
    """Build the named distance strategy for fingerprints of the given width."""
    try:
        cls = TOKEN_DISTANCES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown token_distance {name!r}, expected one of {tuple(TOKEN_DISTANCES)}"
        ) from None
    return cls(bits)


def token_similarity(a: str, b: str, bits: int = 64) -> float:
    """Fraction of fingerprint bits on which two tokens agree."""
    return 1.0 - HammingDistance(bits).distance(a, b)
