from enum import Enum


class AccessType(str, Enum):
    """Selects which L1 instance an access or prefetch goes through."""
    INSTRUCTION = "I"
    DATA = "D"

    def __str__(self) -> str:
        return self.value


class Opcode(str, Enum):
    """Defines the trace operation codes."""

    # Demand accesses
    READ = "R"
    WRITE = "W"
    IFETCH = "I"

    # Prefetch hints
    PREFETCH = "P"
    PREFETCH_T0 = "P0"
    PREFETCH_T1 = "P1"
    PREFETCH_T2 = "P2"
    PREFETCH_NTA = "PN"
    PREFETCH_W = "PW"

    # Maintenance
    FLUSH = "F"
    FLUSH_I = "FI"
    FLUSH_D = "FD"
    INVALIDATE_ALL = "X"

    # Measurement window
    START = "START"
    STOP = "STOP"

    def __str__(self) -> str:
        return self.value


PREFETCH_OPS = frozenset({
    Opcode.PREFETCH, Opcode.PREFETCH_T0, Opcode.PREFETCH_T1,
    Opcode.PREFETCH_T2, Opcode.PREFETCH_NTA, Opcode.PREFETCH_W,
})

# Ops that carry no address
CONTROL_OPS = frozenset({Opcode.INVALIDATE_ALL, Opcode.START, Opcode.STOP})
