from __future__ import annotations
from dataclasses import dataclass
from typing import List

from ..core.cache import CacheLevel
from ..core.hierarchy import CacheHierarchy
from ..isa.opcode import AccessType
from ..utils.logging import get_logger

logger = get_logger(__name__)

MEMORY = 0


@dataclass(frozen=True)
class AccessResult:
    latency: int
    hit_level: int  # 1..4, or 0 when served by memory

    @property
    def is_memory(self) -> bool:
        return self.hit_level == MEMORY


def access(hierarchy: CacheHierarchy, addr: int, access_type: AccessType, is_write: bool = False) -> AccessResult:
    """
    Runs one demand access through L1 -> L2 -> L3 -> L4 -> memory.

    Every probed level charges its latency whether it hits or not. A hit at
    level N copies the block into every present level above N; a full miss
    charges memory latency and fills every present level bottom-up.
    `is_write` does not change timing or placement: dirty state is not modelled.
    """
    now = hierarchy.tick()
    stats = hierarchy.stats
    latency = 0
    missed: List[CacheLevel] = []

    for number, level in hierarchy.path(access_type):
        index, _, way = level.probe(addr)
        latency += level.access_latency_cycles
        stats.record_probe(level.name, way is not None)

        if way is not None:
            level.touch(index, way, now)
            for upper in reversed(missed):
                upper.fill(addr, now)
            stats.record_access(access_type, latency)
            logger.debug("%s %s %#x: %s hit, latency = %d cycles",
                         access_type, "W" if is_write else "R", addr, level.name, latency)
            return AccessResult(latency, number)

        missed.append(level)

    latency += hierarchy.mem_latency_cycles
    for level in reversed(missed):
        level.fill(addr, now)
    stats.record_access(access_type, latency)
    logger.debug("%s %s %#x: miss in all caches, latency = %d cycles",
                 access_type, "W" if is_write else "R", addr, latency)
    return AccessResult(latency, MEMORY)
