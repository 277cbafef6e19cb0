from __future__ import annotations
from typing import Iterable, Optional

from ..core.cache import CacheLevel
from ..core.hierarchy import CacheHierarchy
from ..isa.opcode import AccessType
from ..utils.logging import get_logger

logger = get_logger(__name__)


def _install_all(levels: Iterable[Optional[CacheLevel]], addr: int, clock: int) -> int:
    """Install-if-absent into each present level; each one charges its latency."""
    latency = 0
    for level in levels:
        if level is None:
            continue
        level.install(addr, clock)
        latency += level.access_latency_cycles
    return latency


def _finish(hierarchy: CacheHierarchy, kind: str, addr: int, latency: int) -> int:
    hierarchy.stats.record_prefetch(latency)
    logger.debug("Prefetch %s %#x: latency = %d cycles", kind, addr, latency)
    return latency


def prefetch_basic(hierarchy: CacheHierarchy, addr: int, access_type: AccessType) -> int:
    """
    Free if the block is already in the selected L1. Otherwise probes L2
    (never L3/L4 or memory) and installs into L1, charging L2 + L1 latency.
    """
    now = hierarchy.tick()
    l1 = hierarchy.l1(access_type)
    if l1 is not None and l1.contains(addr):
        return _finish(hierarchy, "basic", addr, 0)

    latency = 0
    l2 = hierarchy.l2
    if l2 is not None:
        index, _, way = l2.probe(addr)
        if way is not None:
            l2.touch(index, way, now)
        latency += l2.access_latency_cycles

    latency += _install_all([l1], addr, now)
    return _finish(hierarchy, "basic", addr, latency)


def prefetch_t0(hierarchy: CacheHierarchy, addr: int, access_type: AccessType) -> int:
    """Temporal hint into every level: L1 (by access type), L2 and L3."""
    now = hierarchy.tick()
    latency = _install_all([hierarchy.l1(access_type), hierarchy.l2, hierarchy.l3], addr, now)
    return _finish(hierarchy, "T0", addr, latency)


def prefetch_t1(hierarchy: CacheHierarchy, addr: int, access_type: AccessType) -> int:
    """Temporal hint into L2 and L3; L1 is left alone."""
    now = hierarchy.tick()
    latency = _install_all([hierarchy.l2, hierarchy.l3], addr, now)
    return _finish(hierarchy, "T1", addr, latency)


def prefetch_t2(hierarchy: CacheHierarchy, addr: int, access_type: AccessType) -> int:
    """Temporal hint into L3 only. Without an L3 the block has to come from memory."""
    now = hierarchy.tick()
    if hierarchy.l3 is None:
        return _finish(hierarchy, "T2", addr, hierarchy.mem_latency_cycles)
    latency = _install_all([hierarchy.l3], addr, now)
    return _finish(hierarchy, "T2", addr, latency)


def prefetch_nta(hierarchy: CacheHierarchy, addr: int, access_type: AccessType) -> int:
    """Non-temporal hint: nothing is installed, memory latency is always charged."""
    hierarchy.tick()
    return _finish(hierarchy, "NTA", addr, hierarchy.mem_latency_cycles)


def prefetch_w(hierarchy: CacheHierarchy, addr: int, access_type: AccessType) -> int:
    """Write prefetch into the data L1. Instruction traffic makes it a no-op."""
    now = hierarchy.tick()
    if access_type != AccessType.DATA:
        return _finish(hierarchy, "W", addr, 0)
    latency = _install_all([hierarchy.l1d], addr, now)
    return _finish(hierarchy, "W", addr, latency)
