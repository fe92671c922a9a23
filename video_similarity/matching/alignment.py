"""Global alignment of two fingerprint sequences.

Two copies of the same footage rarely line up index for index: a different
frame rate stretches one sequence, a trim or a dropped frame shifts the rest.
The aligner runs a Needleman-Wunsch style dynamic program where matching two
frames costs their fingerprint distance (continuous, in [0, 1]) and leaving a
frame unmatched costs a fixed gap penalty g:

    D[0][j] = j*g,  D[i][0] = i*g
    D[i][j] = min(D[i-1][j-1] + sub(i, j), D[i-1][j] + g, D[i][j-1] + g)

The score ``1 - D[n][m] / (g * max(n, m))`` (clamped to [0, 1]) compares the
best alignment against the all-gap worst case, so one threshold works across
video lengths.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

import numpy as np

from ..config import ComparatorConfig
from ..distance import get_token_distance
from ..errors import ConfigurationError, EmptySequence
from ..fingerprints.sequence import FingerprintSequence

logger = logging.getLogger(__name__)

# Back-pointer codes
_DIAG = 0
_UP = 1
_LEFT = 2


class AlignmentOp(str, Enum):
    MATCH = "match"  # a[i] paired with b[j], cost = distance
    DELETE = "delete"  # a[i] has no counterpart in b
    INSERT = "insert"  # b[j] has no counterpart in a


class AlignmentStep(NamedTuple):
    op: AlignmentOp
    a_index: int | None
    b_index: int | None
    cost: float


@dataclass(frozen=True)
class AlignmentResult:
    """Outcome of aligning two fingerprint sequences.

    Attributes:
        cost: Total alignment cost D[n][m].
        score: Normalized similarity in [0, 1].
        path: Alignment steps from the start of both sequences to the end.
        len_a: Length n of the first sequence.
        len_b: Length m of the second sequence.
        gap_penalty: Gap penalty g used.
        band_width: Band used for the approximate alignment, or None if exact.
    """

    cost: float
    score: float
    path: tuple[AlignmentStep, ...]
    len_a: int
    len_b: int
    gap_penalty: float
    band_width: int | None = None

    @property
    def banded(self) -> bool:
        return self.band_width is not None

    @property
    def matched(self) -> int:
        return sum(1 for step in self.path if step.op is AlignmentOp.MATCH)

    @property
    def deletions(self) -> int:
        return sum(1 for step in self.path if step.op is AlignmentOp.DELETE)

    @property
    def insertions(self) -> int:
        return sum(1 for step in self.path if step.op is AlignmentOp.INSERT)

    def matched_pairs(self) -> list[tuple[int, int]]:
        """(a_index, b_index) for every matched step, in order."""
        return [
            (step.a_index, step.b_index)
            for step in self.path
            if step.op is AlignmentOp.MATCH
        ]


def normalize_score(cost: float, gap_penalty: float, n: int, m: int) -> float:
    """Map an alignment cost to [0, 1] against the all-gap cost g * max(n, m)."""
    worst = gap_penalty * max(n, m)
    return min(1.0, max(0.0, 1.0 - cost / worst))


class SequenceAligner:
    """Align fingerprint sequences with a pluggable per-token distance.

    Args:
        config: Comparator configuration (gap penalty, distance name, band).
        distance: Optional distance strategy overriding ``config.token_distance``.
            Must provide ``distance``, ``prepare`` and ``cross``.
    """

    def __init__(self, config: ComparatorConfig | None = None, distance=None):
        self.config = config or ComparatorConfig()
        self.distance = distance

    def _check(self, a: FingerprintSequence, b: FingerprintSequence) -> None:
        for name, seq in (("first", a), ("second", b)):
            if len(seq) == 0:
                label = f" ({seq.source_id})" if seq.source_id else ""
                raise EmptySequence(f"The {name} fingerprint sequence{label} is empty")
        if not a.is_compatible(b):
            raise ConfigurationError(
                "Fingerprint sequences were built with different configurations: "
                f"{a.hash_method}/{a.hash_bits} bits vs {b.hash_method}/{b.hash_bits} bits"
            )

    def _strategy(self, a: FingerprintSequence):
        if self.distance is not None:
            return self.distance
        return get_token_distance(self.config.token_distance, a.hash_bits)

    def column_window(self, i: int, n: int, m: int) -> tuple[int, int]:
        """Inclusive column range evaluated in row i.

        Without a band this is the whole row. With one, the window follows the
        diagonal scaled by m / n and also covers the previous row's centre, so
        every cell in it stays reachable even when n and m differ a lot.
        """
        band = self.config.band_width
        if band is None:
            return 0, m
        lo = 0 if i == 0 else math.floor((i - 1) * m / n) - band
        hi = math.ceil(i * m / n) + band
        return max(0, lo), min(m, hi)

    def fill(self, sub_row, n: int, m: int) -> tuple[np.ndarray, np.ndarray]:
        """Fill the cost and back-pointer tables.

        Args:
            sub_row: Callable (i, lo, hi) returning distances between a[i - 1]
                and b[lo - 1 .. hi - 1] for columns lo..hi (lo >= 1).
            n, m: Sequence lengths.

        Returns:
            Flat (n + 1) * (m + 1) cost table and back-pointer table, both
            addressed as ``i * (m + 1) + j``. Cells outside the band are inf.
        """
        g = self.config.gap_penalty
        width = m + 1
        table = np.full((n + 1) * width, np.inf, dtype=np.float64)
        back = np.zeros((n + 1) * width, dtype=np.int8)

        lo, hi = self.column_window(0, n, m)
        cols = np.arange(lo, hi + 1)
        table[cols] = cols * g
        back[cols[cols > 0]] = _LEFT

        for i in range(1, n + 1):
            lo, hi = self.column_window(i, n, m)
            cols = np.arange(lo, hi + 1)
            row = i * width
            prev = row - width

            up = table[prev + cols] + g
            diag = np.full(cols.shape[0], np.inf)
            first = 1 if lo == 0 else 0
            if hi >= max(lo, 1):
                diag[first:] = table[prev + cols[first:] - 1] + sub_row(i, max(lo, 1), hi)

            best = np.minimum(diag, up)
            moves = np.where(diag <= up, _DIAG, _UP).astype(np.int8)

            # D[i][j] = min(best[j], D[i][j-1] + g) unrolls to
            # min over k <= j of best[k] + (j - k) * g, a running minimum.
            offsets = cols * g
            shifted = best - offsets
            running = np.minimum.accumulate(shifted)
            from_left = running < shifted

            table[row + cols] = np.where(from_left, running + offsets, best)
            back[row + cols] = np.where(from_left, _LEFT, moves)

        return table, back

    def traceback(self, back: np.ndarray, n: int, m: int, step_cost) -> tuple[AlignmentStep, ...]:
        g = self.config.gap_penalty
        width = m + 1
        steps = []
        i, j = n, m
        while i > 0 or j > 0:
            move = back[i * width + j] if i > 0 and j > 0 else (_UP if i > 0 else _LEFT)
            if move == _DIAG:
                steps.append(AlignmentStep(AlignmentOp.MATCH, i - 1, j - 1, step_cost(i - 1, j - 1)))
                i, j = i - 1, j - 1
            elif move == _UP:
                steps.append(AlignmentStep(AlignmentOp.DELETE, i - 1, None, g))
                i -= 1
            else:
                steps.append(AlignmentStep(AlignmentOp.INSERT, None, j - 1, g))
                j -= 1
        steps.reverse()
        return tuple(steps)

    def align(self, a: FingerprintSequence, b: FingerprintSequence) -> AlignmentResult:
        """Align two sequences and score them.

        Raises:
            EmptySequence: If either sequence has no fingerprints.
            ConfigurationError: If the sequences were built under different
                fingerprint configurations, or a token cannot be decoded.
        """
        self._check(a, b)
        strategy = self._strategy(a)
        g = self.config.gap_penalty
        n, m = len(a), len(b)

        if n == 1 and m == 1:
            # Single frames: the score is just how close the two fingerprints are.
            cost = float(strategy.distance(a[0], b[0]))
            return AlignmentResult(
                cost=cost,
                score=min(1.0, max(0.0, 1.0 - cost)),
                path=(AlignmentStep(AlignmentOp.MATCH, 0, 0, cost),),
                len_a=1,
                len_b=1,
                gap_penalty=g,
                band_width=self.config.band_width,
            )

        prep_a = strategy.prepare(a.tokens)
        prep_b = strategy.prepare(b.tokens)

        if self.config.band_width is None:
            sub = strategy.cross(prep_a, prep_b)

            def sub_row(i, lo, hi):
                return sub[i - 1, lo - 1:hi]

            def step_cost(i, j):
                return float(sub[i, j])
        else:
            # Banded: only the cells inside the window are ever computed.
            def sub_row(i, lo, hi):
                return strategy.cross(prep_a[i - 1:i], prep_b[lo - 1:hi])[0]

            def step_cost(i, j):
                return float(strategy.distance(a[i], b[j]))

        table, back = self.fill(sub_row, n, m)
        cost = float(table[n * (m + 1) + m])
        path = self.traceback(back, n, m, step_cost)
        score = normalize_score(cost, g, n, m)

        logger.debug(
            f"Aligned {a.source_id or 'a'} ({n}) vs {b.source_id or 'b'} ({m}): "
            f"cost={cost:.4f} score={score:.4f}"
            + (f" band={self.config.band_width}" if self.config.band_width else "")
        )

        return AlignmentResult(
            cost=cost,
            score=score,
            path=path,
            len_a=n,
            len_b=m,
            gap_penalty=g,
            band_width=self.config.band_width,
        )


def compare(
    a: FingerprintSequence,
    b: FingerprintSequence,
    config: ComparatorConfig | None = None,
    distance=None,
) -> AlignmentResult:
    """Align two fingerprint sequences and return the scored result."""
    return SequenceAligner(config, distance).align(a, b)
