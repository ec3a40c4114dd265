"""
Bounded top-k selection over a stream of scored items.
"""

import heapq
import itertools
import math
from typing import Callable, Generic, List, Tuple, TypeVar

T = TypeVar("T")


def _clamp_capacity(k) -> int:
    try:
        k = float(k)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(k):
        return 1
    return max(1, int(math.floor(k)))


class TopK(Generic[T]):
    """Keeps the k highest-scoring items offered so far.

    Memory is O(k) and each offer costs O(log k). Ties are resolved in favour
    of the earliest-seen item: an offer whose score equals the held minimum is
    rejected, and among tied minimums the most recently offered is evicted
    first. Pass ``replace_ties=True`` to let equal scores evict instead.
    Items scoring NaN are ignored.
    """

    def __init__(self, k, score_of: Callable[[T], float], replace_ties: bool = False):
        self.capacity = _clamp_capacity(k)
        self.score_of = score_of
        self.replace_ties = replace_ties
        # Min-heap of (score, -seq, seq, item); the root is the next eviction.
        self._heap: List[Tuple[float, int, int, T]] = []
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def offer(self, item: T) -> None:
        """Consider an item for inclusion."""
        score = float(self.score_of(item))
        if math.isnan(score):
            return
        seq = next(self._seq)
        entry = (score, -seq, seq, item)

        if len(self._heap) < self.capacity:
            heapq.heappush(self._heap, entry)
            return

        min_score = self._heap[0][0]
        if score > min_score or (self.replace_ties and score == min_score):
            heapq.heapreplace(self._heap, entry)

    def values_sorted_desc(self) -> List[T]:
        """Held items by descending score, earliest-offered first on ties."""
        ordered = sorted(self._heap, key=lambda e: (-e[0], e[2]))
        return [e[3] for e in ordered]
