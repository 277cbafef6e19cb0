from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Iterable, List, Optional

from ..isa.opcode import AccessType


@dataclass
class LevelCounters:
    accesses: int = 0
    hits: int = 0

    @property
    def misses(self) -> int:
        return self.accesses - self.hits

    @property
    def miss_rate(self) -> Optional[float]:
        if self.accesses == 0:
            return None
        return self.misses / self.accesses


@dataclass
class TrafficCounters:
    count: int = 0
    latency_sum: int = 0

    @property
    def average_latency(self) -> Optional[float]:
        if self.count == 0:
            return None
        return self.latency_sum / self.count


@dataclass
class LevelReport:
    name: str
    policy: str
    accesses: int
    hits: int
    misses: int
    miss_rate_pct: Optional[float]


@dataclass
class StatsReport:
    """Values handed to the report writer. Formatting happens in utils.reporting."""
    total_accesses: int
    instruction_accesses: int
    data_accesses: int
    avg_latency_instr: Optional[float]
    avg_latency_data: Optional[float]
    levels: List[LevelReport] = field(default_factory=list)
    prefetches: int = 0
    prefetch_latency_sum: int = 0
    clock: int = 0

    def level(self, name: str) -> Optional[LevelReport]:
        return next((lvl for lvl in self.levels if lvl.name == name), None)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Statistics:
    """
    Per-level access/hit counters and latency sums, gated by `counting`.
    While disarmed every record_* call is ignored so a caller can warm the
    hierarchy up without polluting the measurement window.
    """
    def __init__(self, level_names: Iterable[str] = ()):
        self.level_names = list(level_names)
        self.counting = False
        self._zero()

    def _zero(self):
        self.levels: Dict[str, LevelCounters] = {name: LevelCounters() for name in self.level_names}
        self.traffic: Dict[AccessType, TrafficCounters] = {t: TrafficCounters() for t in AccessType}
        self.prefetch = TrafficCounters()

    def start(self):
        self._zero()
        self.counting = True

    def stop(self):
        self.counting = False

    def record_probe(self, level_name: str, hit: bool):
        if not self.counting:
            return
        counters = self.levels[level_name]
        counters.accesses += 1
        if hit:
            counters.hits += 1

    def record_access(self, access_type: AccessType, latency: int):
        if not self.counting:
            return
        counters = self.traffic[access_type]
        counters.count += 1
        counters.latency_sum += latency

    def record_prefetch(self, latency: int):
        if not self.counting:
            return
        self.prefetch.count += 1
        self.prefetch.latency_sum += latency

    def snapshot(self, policies: Dict[str, str], clock: int = 0) -> StatsReport:
        instr = self.traffic[AccessType.INSTRUCTION]
        data = self.traffic[AccessType.DATA]
        levels = []
        for name in self.level_names:
            counters = self.levels[name]
            rate = counters.miss_rate
            levels.append(LevelReport(
                name=name,
                policy=policies.get(name, ""),
                accesses=counters.accesses,
                hits=counters.hits,
                misses=counters.misses,
                miss_rate_pct=None if rate is None else rate * 100.0,
            ))
        return StatsReport(
            total_accesses=instr.count + data.count,
            instruction_accesses=instr.count,
            data_accesses=data.count,
            avg_latency_instr=instr.average_latency,
            avg_latency_data=data.average_latency,
            levels=levels,
            prefetches=self.prefetch.count,
            prefetch_latency_sum=self.prefetch.latency_sum,
            clock=clock,
        )
