from __future__ import annotations
from typing import Optional

from ..core.cache import CacheLevel
from ..core.hierarchy import CacheHierarchy
from ..isa.opcode import AccessType

# Maintenance never ticks the clock and never touches statistics.


def flush_line(level: Optional[CacheLevel], addr: int) -> bool:
    """Drops the block from one level if resident. Absent levels are a no-op."""
    if level is None:
        return False
    return level.flush(addr)


def _flush_path(hierarchy: CacheHierarchy, addr: int, access_type: AccessType) -> int:
    levels = (hierarchy.l1(access_type), hierarchy.l2, hierarchy.l3, hierarchy.l4)
    return sum(flush_line(level, addr) for level in levels)


def flush_instruction(hierarchy: CacheHierarchy, addr: int) -> int:
    """Flushes from L1I, L2, L3 and L4. Returns the number of lines dropped."""
    return _flush_path(hierarchy, addr, AccessType.INSTRUCTION)


def flush_data(hierarchy: CacheHierarchy, addr: int) -> int:
    """Flushes from L1D, L2, L3 and L4. Returns the number of lines dropped."""
    return _flush_path(hierarchy, addr, AccessType.DATA)


def invalidate(hierarchy: CacheHierarchy, addr: int) -> int:
    """Forgets the block in every present level, both L1 instances included."""
    return sum(flush_line(level, addr) for level in hierarchy.present_levels())


def invalidate_all(hierarchy: CacheHierarchy):
    for level in hierarchy.present_levels():
        level.invalidate_all()
