"""Dynamic time warping over MFCC frame sequences.

Alignment is restricted to a Sakoe-Chiba band around the diagonal so a short
utterance cannot be stretched indefinitely over a long reference. Horizontal
and vertical moves pay a fixed warp penalty; diagonal moves are free.
"""

import logging
import math

import numpy as np
from scipy.spatial.distance import cdist

from phonicheck.types import DTWResult, MFCCFeatures

logger = logging.getLogger(__name__)


class DTWComparator:
    def __init__(
        self,
        band_ratio: float = 0.15,
        warp_penalty: float = 2.0,
        similarity_scale: float = 4.0,
    ):
        self.band_ratio = band_ratio
        self.warp_penalty = warp_penalty
        self.similarity_scale = similarity_scale

    def band_width(self, n: int, m: int) -> int:
        return max(abs(n - m), math.floor(max(n, m) * self.band_ratio))

    def compare(self, a: MFCCFeatures, b: MFCCFeatures) -> DTWResult:
        """Align two feature sequences and score their similarity (0-100)."""
        n, m = len(a), len(b)
        if n == 0 or m == 0:
            return DTWResult(
                distance=math.inf,
                normalized_distance=math.inf,
                similarity=0.0,
                path=[],
            )

        acc = self._accumulate(a.vectors(), b.vectors())
        distance = float(acc[n, m])
        path = self._backtrack(acc)

        normalized = distance / max(n, m)
        similarity = max(0.0, 100 - normalized / self.similarity_scale)
        logger.debug(
            f"DTW {n}x{m}: dist={distance:.2f}, norm={normalized:.2f}, sim={similarity:.1f}"
        )
        return DTWResult(
            distance=distance,
            normalized_distance=normalized,
            similarity=similarity,
            path=path,
        )

    def compare_region(
        self,
        a: MFCCFeatures,
        b: MFCCFeatures,
        a_start: int,
        a_end: int,
        b_start: int,
        b_end: int,
    ) -> float:
        """Similarity of frames [a_start, a_end) against [b_start, b_end)."""
        region_a = a.region(a_start, a_end)
        region_b = b.region(b_start, b_end)
        if len(region_a) == 0 or len(region_b) == 0:
            return 0.0
        return self.compare(region_a, region_b).similarity

    def _accumulate(self, seq_a: np.ndarray, seq_b: np.ndarray) -> np.ndarray:
        """(n+1) x (m+1) accumulated cost; cells outside the band stay inf."""
        n, m = len(seq_a), len(seq_b)
        local = cdist(seq_a, seq_b)
        band = self.band_width(n, m)
        penalty = self.warp_penalty

        acc = np.full((n + 1, m + 1), np.inf)
        acc[0, 0] = 0.0
        for i in range(1, n + 1):
            for j in range(max(1, i - band), min(m, i + band) + 1):
                acc[i, j] = local[i - 1, j - 1] + min(
                    acc[i - 1, j] + penalty,
                    acc[i, j - 1] + penalty,
                    acc[i - 1, j - 1],
                )
        return acc

    @staticmethod
    def _backtrack(acc: np.ndarray) -> list[tuple[int, int]]:
        i, j = acc.shape[0] - 1, acc.shape[1] - 1
        path = []
        while i > 0 and j > 0:
            path.append((i - 1, j - 1))
            # Ties resolve diagonal, then up, then left
            moves = ((acc[i - 1, j - 1], -1, -1), (acc[i - 1, j], -1, 0), (acc[i, j - 1], 0, -1))
            best = moves[0]
            for move in moves[1:]:
                if move[0] < best[0]:
                    best = move
            i += best[1]
            j += best[2]

        # Stepped off an edge early: finish along it to (0, 0)
        if path:
            last_i, last_j = path[-1]
            while last_i > 0:
                last_i -= 1
                path.append((last_i, last_j))
            while last_j > 0:
                last_j -= 1
                path.append((last_i, last_j))

        path.reverse()
        return path
