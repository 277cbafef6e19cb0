from __future__ import annotations
from typing import Optional, TYPE_CHECKING
import numpy as np

from ..utils.logging import get_logger

if TYPE_CHECKING:
    from .cache import CacheSet

logger = get_logger(__name__)

# Probability that BIP inserts a line at the MRU position
BIP_EPSILON = 1 / 32


class ReplacementPolicy:
    """
    Strategy interface for victim selection within one cache set.

    on_hit() runs when a probe finds the block, on_fill() when a block is
    written into a way, select_victim() picks the way to overwrite. Recency
    stamps come from the hierarchy's logical clock.
    """
    name = "BASE"

    def on_hit(self, cache_set: CacheSet, way: int, clock: int):
        raise NotImplementedError

    def on_fill(self, cache_set: CacheSet, way: int, clock: int):
        cache_set.lines[way].recency = clock

    def select_victim(self, cache_set: CacheSet) -> int:
        raise NotImplementedError


class LruPolicy(ReplacementPolicy):
    name = "LRU"

    def on_hit(self, cache_set: CacheSet, way: int, clock: int):
        cache_set.lines[way].recency = clock

    def select_victim(self, cache_set: CacheSet) -> int:
        victim = 0
        min_recency = cache_set.lines[0].recency
        for way, line in enumerate(cache_set.lines):
            if line.recency < min_recency:
                min_recency = line.recency
                victim = way
        return victim


class BipPolicy(LruPolicy):
    """Bimodal insertion: mostly insert at LRU so streaming blocks leave first."""
    name = "BIP"

    def __init__(self, rng: np.random.Generator, epsilon: float = BIP_EPSILON):
        self.rng = rng
        self.epsilon = epsilon

    def _stamp(self, cache_set: CacheSet, way: int, clock: int):
        if self.rng.random() < self.epsilon:
            cache_set.lines[way].recency = clock
        else:
            cache_set.lines[way].recency = 0

    def on_hit(self, cache_set: CacheSet, way: int, clock: int):
        self._stamp(cache_set, way, clock)

    def on_fill(self, cache_set: CacheSet, way: int, clock: int):
        self._stamp(cache_set, way, clock)


class RandomPolicy(ReplacementPolicy):
    name = "RANDOM"

    def __init__(self, rng: np.random.Generator):
        self.rng = rng

    def on_hit(self, cache_set: CacheSet, way: int, clock: int):
        pass

    def select_victim(self, cache_set: CacheSet) -> int:
        return int(self.rng.integers(0, len(cache_set.lines)))


_POLICIES = {
    "LRU": lambda rng: LruPolicy(),
    "BIP": lambda rng: BipPolicy(rng),
    "RANDOM": lambda rng: RandomPolicy(rng),
}


def make_policy(name: str, rng: Optional[np.random.Generator] = None) -> ReplacementPolicy:
    """Builds the policy named by `name`. Unknown names fall back to LRU."""
    if rng is None:
        rng = np.random.default_rng()
    key = str(name).strip().upper()
    if key not in _POLICIES:
        logger.warning("Unknown replacement policy '%s', falling back to LRU", name)
        key = "LRU"
    return _POLICIES[key](rng)
