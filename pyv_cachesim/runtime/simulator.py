from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Iterable

from ..config import SimConfig
from ..core.hierarchy import CacheHierarchy
from ..ir.trace_importer import TraceOp
from ..isa.opcode import AccessType, Opcode
from ..utils.logging import get_logger
from . import maintenance, prefetch
from .access import access, AccessResult
from .stats import StatsReport

logger = get_logger(__name__)


class SimulatorStateError(RuntimeError):
    """Raised when the engine API is used without a live hierarchy."""


@dataclass
class TraceResult:
    op: TraceOp
    latency: Optional[int] = None
    hit_level: Optional[int] = None

    def describe(self) -> str:
        if self.op.opcode in (Opcode.READ, Opcode.WRITE, Opcode.IFETCH):
            where = f"L{self.hit_level} hit" if self.hit_level else "miss in all caches"
            return f"{self.op.opcode} access at {self.op.paddr:#x}: {where}, latency = {self.latency} cycles"
        if self.latency is not None:
            return f"{self.op.opcode} prefetch for {self.op.paddr:#x}: latency = {self.latency} cycles"
        return f"{self.op} executed"


_PREFETCH_BY_OPCODE = {
    Opcode.PREFETCH: prefetch.prefetch_basic,
    Opcode.PREFETCH_T0: prefetch.prefetch_t0,
    Opcode.PREFETCH_T1: prefetch.prefetch_t1,
    Opcode.PREFETCH_T2: prefetch.prefetch_t2,
    Opcode.PREFETCH_NTA: prefetch.prefetch_nta,
    Opcode.PREFETCH_W: prefetch.prefetch_w,
}


class CacheSimulator:
    """
    Engine API over one owned CacheHierarchy.

    init_hierarchy() builds it, teardown_hierarchy() drops it; every other
    call forwards to the access, prefetch and maintenance engines.
    """
    def __init__(self, config: Optional[SimConfig] = None):
        self.hierarchy: Optional[CacheHierarchy] = None
        if config is not None:
            self.init_hierarchy(config)

    def init_hierarchy(self, config: SimConfig) -> CacheHierarchy:
        self.hierarchy = CacheHierarchy.from_config(config)
        return self.hierarchy

    def teardown_hierarchy(self):
        if self.hierarchy is not None:
            self.hierarchy.teardown()
        self.hierarchy = None

    @property
    def _h(self) -> CacheHierarchy:
        if self.hierarchy is None:
            raise SimulatorStateError("No cache hierarchy: call init_hierarchy() first.")
        return self.hierarchy

    def start_counting(self):
        self._h.start_counting()

    def stop_counting(self):
        self._h.stop_counting()

    def access(self, addr: int, access_type: AccessType = AccessType.DATA, is_write: bool = False) -> AccessResult:
        return access(self._h, addr, access_type, is_write)

    def prefetch_basic(self, addr: int, access_type: AccessType = AccessType.DATA) -> int:
        return prefetch.prefetch_basic(self._h, addr, access_type)

    def prefetch_t0(self, addr: int, access_type: AccessType = AccessType.DATA) -> int:
        return prefetch.prefetch_t0(self._h, addr, access_type)

    def prefetch_t1(self, addr: int, access_type: AccessType = AccessType.DATA) -> int:
        return prefetch.prefetch_t1(self._h, addr, access_type)

    def prefetch_t2(self, addr: int, access_type: AccessType = AccessType.DATA) -> int:
        return prefetch.prefetch_t2(self._h, addr, access_type)

    def prefetch_nta(self, addr: int, access_type: AccessType = AccessType.DATA) -> int:
        return prefetch.prefetch_nta(self._h, addr, access_type)

    def prefetch_w(self, addr: int, access_type: AccessType = AccessType.DATA) -> int:
        return prefetch.prefetch_w(self._h, addr, access_type)

    def flush_instruction(self, addr: int) -> int:
        return maintenance.flush_instruction(self._h, addr)

    def flush_data(self, addr: int) -> int:
        return maintenance.flush_data(self._h, addr)

    def invalidate(self, addr: int) -> int:
        return maintenance.invalidate(self._h, addr)

    def invalidate_all(self):
        maintenance.invalidate_all(self._h)

    def snapshot_statistics(self) -> StatsReport:
        return self._h.snapshot()

    def execute(self, op: TraceOp) -> TraceResult:
        """Runs a single trace operation."""
        h = self._h
        code = op.opcode
        if code in (Opcode.READ, Opcode.WRITE, Opcode.IFETCH):
            access_type = AccessType.INSTRUCTION if code == Opcode.IFETCH else AccessType.DATA
            result = access(h, op.paddr, access_type, is_write=(code == Opcode.WRITE))
            return TraceResult(op, result.latency, result.hit_level)
        if code in _PREFETCH_BY_OPCODE:
            return TraceResult(op, _PREFETCH_BY_OPCODE[code](h, op.paddr, op.access_type))
        if code == Opcode.FLUSH:
            maintenance.invalidate(h, op.paddr)
        elif code == Opcode.FLUSH_I:
            maintenance.flush_instruction(h, op.paddr)
        elif code == Opcode.FLUSH_D:
            maintenance.flush_data(h, op.paddr)
        elif code == Opcode.INVALIDATE_ALL:
            maintenance.invalidate_all(h)
        elif code == Opcode.START:
            h.start_counting()
        elif code == Opcode.STOP:
            h.stop_counting()
        return TraceResult(op)

    def run_trace(self, ops: Iterable[TraceOp], warmup: int = 0) -> List[TraceResult]:
        """
        Replays a trace. Unless the trace opens its own measurement window
        with START, counting starts after the first `warmup` operations.
        """
        ops = list(ops)
        auto_window = not any(op.opcode == Opcode.START for op in ops)
        if auto_window and warmup <= 0:
            self.start_counting()

        results = []
        for i, op in enumerate(ops):
            if auto_window and warmup > 0 and i == warmup:
                logger.info("Warm-up of %d operations done, counting from here", warmup)
                self.start_counting()
            result = self.execute(op)
            logger.debug(result.describe())
            results.append(result)
        return results
