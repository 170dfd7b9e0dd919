"""
Frequency counter over discrete keys.

This is the building block of every probabilistic model in the project: word
and character n-gram models, the dictionary model and the conditional
distributions of the n-gram models are all CountingDistribution instances.
"""

import bisect
import random
from collections import Counter
from typing import Hashable, Iterable, Iterator, List, Optional, Tuple

from utils.exceptions import EmptyDistribution


class CountingDistribution:
    """Counts observations of hashable keys and turns them into probabilities.

    Counts are non-negative integers and `total` always equals the number of
    observations made. Keys keep the order in which they were first observed,
    which is what `top` uses to break ties.
    """

    def __init__(self, observations: Optional[Iterable[Hashable]] = None,
                 default: float = 0.0, rng: Optional[random.Random] = None):
        """Initialize the distribution.

        Args:
            observations: Optional keys to observe immediately
            default: Probability reported for keys never observed
            rng: Random generator used by `sample` (defaults to the module generator)
        """
        self.counts: Counter = Counter()
        self.total = 0
        self.default = default
        self._rng = rng or random
        self._cumulative: Optional[List[int]] = None
        self._sample_keys: Optional[List[Hashable]] = None
        if observations is not None:
            self.update(observations)

    def observe(self, key: Hashable, count: int = 1) -> None:
        """Record count observations of key (one by default)."""
        if count < 0:
            raise ValueError("count must be non-negative")
        if count == 0:
            return
        self.counts[key] += count
        self.total += count
        self._cumulative = None

    def update(self, keys: Iterable[Hashable]) -> None:
        """Record one observation for each key in keys."""
        for key in keys:
            self.observe(key)

    def count(self, key: Hashable) -> int:
        return self.counts.get(key, 0)

    def probability(self, key: Hashable) -> float:
        """Return count(key) / total, or the default for unseen keys.

        Args:
            key: The key to look up

        Returns:
            float: The normalized frequency of key
        """
        count = self.counts.get(key, 0)
        if count == 0 or self.total == 0:
            return self.default
        return count / self.total

    def top(self, k: int) -> List[Tuple[Hashable, int]]:
        """Return the k most frequent (key, count) pairs.

        Counts are non-increasing; equal counts keep first-observed order
        (Counter.most_common sorts stably over insertion order).
        """
        return self.counts.most_common(k)

    def sample(self) -> Hashable:
        """Draw a key with probability proportional to its count.

        Builds (and caches) the cumulative count array, draws a uniform value
        in [0, total) and locates it with a binary search.

        Raises:
            EmptyDistribution: If nothing has been observed
        """
        if self.total == 0:
            raise EmptyDistribution("Cannot sample from an empty distribution")

        if self._cumulative is None:
            self._sample_keys = list(self.counts)
            self._cumulative = []
            running = 0
            for key in self._sample_keys:
                running += self.counts[key]
                self._cumulative.append(running)

        target = self._rng.random() * self.total
        index = bisect.bisect_right(self._cumulative, target)
        return self._sample_keys[index]

    def items(self) -> Iterable[Tuple[Hashable, int]]:
        return self.counts.items()

    def __contains__(self, key: Hashable) -> bool:
        return key in self.counts

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.counts)

    def __len__(self) -> int:
        return len(self.counts)

    def __repr__(self) -> str:
        return f"CountingDistribution(keys={len(self.counts)}, total={self.total})"
