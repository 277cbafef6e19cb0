from __future__ import annotations
from typing import List, Optional, Tuple
import numpy as np

from ..config import CacheLevelConfig
from .policy import ReplacementPolicy, make_policy


def decode_address(paddr: int, line_size_bytes: int, num_sets: int) -> Tuple[int, int]:
    """Maps an address to (set_index, tag) for one level's geometry."""
    block = paddr // line_size_bytes
    return block % num_sets, block // num_sets


class CacheLine:
    """Represents a single line in a cache set. Only tag presence is modelled."""
    __slots__ = ("tag", "valid", "recency")

    def __init__(self):
        self.tag = 0
        self.valid = False
        self.recency = 0

    def __repr__(self) -> str:
        return f"CacheLine(tag={self.tag:#x}, valid={self.valid}, recency={self.recency})"


class CacheSet:
    """A fixed number of ways. At most one valid line holds a given tag."""
    def __init__(self, associativity: int):
        self.lines: List[CacheLine] = [CacheLine() for _ in range(associativity)]

    def find_line(self, tag: int) -> Optional[int]:
        """Returns the way holding `tag`, or None."""
        for way, line in enumerate(self.lines):
            if line.valid and line.tag == tag:
                return way
        return None

    def first_invalid(self) -> Optional[int]:
        for way, line in enumerate(self.lines):
            if not line.valid:
                return way
        return None


class CacheLevel:
    """
    One level of the hierarchy: geometry, a bound replacement policy and
    `num_sets` sets. Timing is charged by the engines, not here.
    """
    def __init__(self, config: CacheLevelConfig, rng: Optional[np.random.Generator] = None, name: Optional[str] = None):
        config.validate()
        self.name = name or config.name
        self.size_bytes = config.size_bytes
        self.line_size_bytes = config.line_size_bytes
        self.associativity = config.associativity
        self.access_latency_cycles = config.access_latency_cycles
        self.num_sets = config.num_sets
        self.policy: ReplacementPolicy = make_policy(config.policy, rng)
        self.sets = [CacheSet(self.associativity) for _ in range(self.num_sets)]

    @property
    def policy_name(self) -> str:
        return self.policy.name

    def decode(self, paddr: int) -> Tuple[int, int]:
        return decode_address(paddr, self.line_size_bytes, self.num_sets)

    def probe(self, paddr: int) -> Tuple[int, int, Optional[int]]:
        """
        Looks the address up without touching replacement state.
        Returns (set_index, tag, way); way is None on a miss.
        """
        index, tag = self.decode(paddr)
        return index, tag, self.sets[index].find_line(tag)

    def contains(self, paddr: int) -> bool:
        return self.probe(paddr)[2] is not None

    def touch(self, index: int, way: int, clock: int):
        self.policy.on_hit(self.sets[index], way, clock)

    def select_victim(self, index: int) -> int:
        cache_set = self.sets[index]
        way = cache_set.first_invalid()
        if way is None:
            way = self.policy.select_victim(cache_set)
        return way

    def fill(self, paddr: int, clock: int) -> int:
        """Overwrites a victim with the block unconditionally. Returns the way used."""
        index, tag = self.decode(paddr)
        way = self.select_victim(index)
        line = self.sets[index].lines[way]
        line.tag = tag
        line.valid = True
        self.policy.on_fill(self.sets[index], way, clock)
        return way

    def install(self, paddr: int, clock: int) -> bool:
        """Fills the block only if absent. Returns True if a line was written."""
        if self.contains(paddr):
            return False
        self.fill(paddr, clock)
        return True

    def flush(self, paddr: int) -> bool:
        """Invalidates the block if resident. Returns True if a line was dropped."""
        index, _, way = self.probe(paddr)
        if way is None:
            return False
        self.sets[index].lines[way].valid = False
        return True

    def invalidate_all(self):
        for cache_set in self.sets:
            for line in cache_set.lines:
                line.valid = False

    def rebase_recency(self, offset: int):
        """Shifts every stamp down by `offset`; relative order is unchanged."""
        for cache_set in self.sets:
            for line in cache_set.lines:
                line.recency -= offset

    def __repr__(self) -> str:
        return (f"CacheLevel({self.name}, {self.size_bytes} B, {self.associativity}-way, "
                f"{self.line_size_bytes} B lines, {self.num_sets} sets, "
                f"{self.access_latency_cycles} cyc, {self.policy_name})")
