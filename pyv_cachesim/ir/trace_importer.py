from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..isa.opcode import AccessType, Opcode, CONTROL_OPS, PREFETCH_OPS


class TraceFormatError(ValueError):
    """Raised for a trace line that cannot be parsed."""


@dataclass
class TraceOp:
    opcode: Opcode
    paddr: Optional[int] = None
    vaddr: Optional[int] = None
    access_type: AccessType = AccessType.DATA
    lineno: int = 0

    def __str__(self) -> str:
        if self.paddr is None:
            return str(self.opcode)
        return f"{self.opcode} {self.paddr:#x}"


def _parse_hex(token: str, source: str, lineno: int) -> int:
    try:
        return int(token, 16)
    except ValueError:
        raise TraceFormatError(f"{source}:{lineno}: bad address '{token}'") from None


def parse_line(line: str, lineno: int = 0, source: str = "<trace>") -> Optional[TraceOp]:
    """
    Parses `<OP> [vaddr] <paddr> [I|D]`. Returns None for blank and comment lines.

    With two addresses the first one is the virtual address; only the
    physical address is used to index the caches.
    """
    line = line.split("#", 1)[0].strip()
    if not line:
        return None

    tokens = line.split()
    try:
        opcode = Opcode(tokens[0].upper())
    except ValueError:
        raise TraceFormatError(f"{source}:{lineno}: unknown operation '{tokens[0]}'") from None
    args = tokens[1:]

    if opcode in CONTROL_OPS:
        if args:
            raise TraceFormatError(f"{source}:{lineno}: '{opcode}' takes no arguments")
        return TraceOp(opcode, lineno=lineno)

    access_type = AccessType.INSTRUCTION if opcode in (Opcode.IFETCH, Opcode.FLUSH_I) else AccessType.DATA
    if opcode in PREFETCH_OPS and args and args[-1].upper() in ("I", "D"):
        access_type = AccessType(args.pop().upper())

    if len(args) == 1:
        paddr = _parse_hex(args[0], source, lineno)
        vaddr = paddr
    elif len(args) == 2:
        vaddr = _parse_hex(args[0], source, lineno)
        paddr = _parse_hex(args[1], source, lineno)
    else:
        raise TraceFormatError(f"{source}:{lineno}: '{opcode}' expects one or two addresses, got {len(args)}")

    return TraceOp(opcode, paddr=paddr, vaddr=vaddr, access_type=access_type, lineno=lineno)


def parse_trace(lines: Iterable[str], source: str = "<trace>") -> List[TraceOp]:
    ops = []
    for lineno, line in enumerate(lines, start=1):
        op = parse_line(line, lineno, source)
        if op is not None:
            ops.append(op)
    return ops


def load_trace(path: str) -> List[TraceOp]:
    """Loads a text trace file into a list of TraceOps."""
    with open(path, "r") as f:
        return parse_trace(f, source=str(path))
