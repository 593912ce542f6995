"""In-memory cache for synthesized reference features."""

import logging
import threading
from typing import Callable

from phonicheck.reference import f0_for_age
from phonicheck.types import MFCCFeatures

logger = logging.getLogger(__name__)


def reference_key(phonemes: list[str], age: float) -> tuple:
    """Cache key: the phoneme sequence plus the age bracket (via its F0)."""
    return (tuple(phonemes), f0_for_age(age))


class ReferenceCache:
    """Reference MFCCs keyed by (phonemes, age bracket).

    Unbounded; callers that analyze an open vocabulary should clear() it
    periodically. Safe to share between threads.
    """

    def __init__(self):
        self._entries: dict[tuple, MFCCFeatures] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, phonemes: list[str], age: float) -> MFCCFeatures | None:
        key = reference_key(phonemes, age)
        with self._lock:
            features = self._entries.get(key)
            if features is None:
                self.misses += 1
            else:
                self.hits += 1
        return features

    def put(self, phonemes: list[str], age: float, features: MFCCFeatures) -> None:
        with self._lock:
            self._entries[reference_key(phonemes, age)] = features

    def get_or_compute(
        self,
        phonemes: list[str],
        age: float,
        compute: Callable[[], MFCCFeatures],
    ) -> MFCCFeatures:
        """Return the cached features, computing and storing them on a miss.

        compute() runs outside the lock. Two threads missing on the same key
        both compute and the later store wins.
        """
        features = self.get(phonemes, age)
        if features is not None:
            logger.debug(f"Cache hit: reference {'-'.join(phonemes)}")
            return features
        features = compute()
        self.put(phonemes, age, features)
        return features

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("Reference cache cleared")
