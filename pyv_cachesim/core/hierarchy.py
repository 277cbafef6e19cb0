from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import numpy as np

from ..config import SimConfig, ConfigurationError
from ..isa.opcode import AccessType
from ..runtime.stats import Statistics, StatsReport
from ..utils.logging import get_logger
from .cache import CacheLevel

logger = get_logger(__name__)


class CacheHierarchy:
    """
    Split L1 instruction/data caches over shared L2/L3/L4 and memory.

    Every slot is optional; an absent level is skipped by all engines at no
    cost. The hierarchy owns the logical clock that stamps recency and the
    statistics collector the engines report into.
    """
    def __init__(self, l1i: Optional[CacheLevel] = None, l1d: Optional[CacheLevel] = None,
                 l2: Optional[CacheLevel] = None, l3: Optional[CacheLevel] = None,
                 l4: Optional[CacheLevel] = None, mem_latency_cycles: int = 100):
        if mem_latency_cycles < 0:
            raise ConfigurationError("Memory latency cannot be negative.")
        self.l1i = l1i
        self.l1d = l1d
        self.l2 = l2
        self.l3 = l3
        self.l4 = l4
        self.mem_latency_cycles = mem_latency_cycles
        self.clock = 0
        self.stats = Statistics(level.name for level in self.present_levels())

    @classmethod
    def from_config(cls, config: SimConfig) -> CacheHierarchy:
        """Builds every enabled level. Raises ConfigurationError on bad geometry."""
        rng = np.random.default_rng(config.seed)

        def build(level_config, name):
            if not level_config.enabled:
                return None
            return CacheLevel(level_config, rng, name=name)

        hierarchy = cls(
            l1i=build(config.l1, "L1I"),
            l1d=build(config.l1, "L1D"),
            l2=build(config.l2, "L2"),
            l3=build(config.l3, "L3"),
            l4=build(config.l4, "L4"),
            mem_latency_cycles=config.mem_latency_cycles,
        )
        for level in hierarchy.present_levels():
            logger.debug("Built %r", level)
        return hierarchy

    def l1(self, access_type: AccessType) -> Optional[CacheLevel]:
        return self.l1i if access_type == AccessType.INSTRUCTION else self.l1d

    def path(self, access_type: AccessType) -> List[Tuple[int, CacheLevel]]:
        """(level number, level) pairs probed by an access, nearest first."""
        slots = [(1, self.l1(access_type)), (2, self.l2), (3, self.l3), (4, self.l4)]
        return [(number, level) for number, level in slots if level is not None]

    def present_levels(self) -> List[CacheLevel]:
        slots = (self.l1i, self.l1d, self.l2, self.l3, self.l4)
        return [level for level in slots if level is not None]

    def tick(self) -> int:
        self.clock += 1
        return self.clock

    def start_counting(self):
        # Warm-up stamps must stay older than anything stamped in the window
        for level in self.present_levels():
            level.rebase_recency(self.clock)
        self.clock = 0
        self.stats.start()

    def stop_counting(self):
        self.stats.stop()

    @property
    def counting(self) -> bool:
        return self.stats.counting

    def policies(self) -> Dict[str, str]:
        return {level.name: level.policy_name for level in self.present_levels()}

    def snapshot(self) -> StatsReport:
        return self.stats.snapshot(self.policies(), self.clock)

    def teardown(self):
        """Drops every level at once. The hierarchy is unusable afterwards."""
        self.l1i = self.l1d = self.l2 = self.l3 = self.l4 = None
        self.stats = Statistics()
        self.clock = 0
