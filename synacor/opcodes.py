"""Opcode table for the Synacor instruction set."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Optional


class Opcode(enum.IntEnum):
    """Instruction codes as they appear in memory."""

    HALT = 0
    SET = 1
    PUSH = 2
    POP = 3
    EQ = 4
    GT = 5
    JMP = 6
    JT = 7
    JF = 8
    ADD = 9
    MULT = 10
    MOD = 11
    AND = 12
    OR = 13
    NOT = 14
    RMEM = 15
    WMEM = 16
    CALL = 17
    RET = 18
    OUT = 19
    IN = 20
    NOOP = 21


@dataclass(frozen=True)
class OpcodeInfo:
    """Static decode information for one opcode."""

    opcode: Opcode
    operands: int

    @property
    def mnemonic(self) -> str:
        return self.opcode.name.lower()

    @property
    def width(self) -> int:
        """Total instruction width in words, opcode included."""
        return 1 + self.operands


_OPERAND_COUNTS: Dict[Opcode, int] = {
    Opcode.HALT: 0,
    Opcode.SET: 2,
    Opcode.PUSH: 1,
    Opcode.POP: 1,
    Opcode.EQ: 3,
    Opcode.GT: 3,
    Opcode.JMP: 1,
    Opcode.JT: 2,
    Opcode.JF: 2,
    Opcode.ADD: 3,
    Opcode.MULT: 3,
    Opcode.MOD: 3,
    Opcode.AND: 3,
    Opcode.OR: 3,
    Opcode.NOT: 2,
    Opcode.RMEM: 2,
    Opcode.WMEM: 2,
    Opcode.CALL: 1,
    Opcode.RET: 0,
    Opcode.OUT: 1,
    Opcode.IN: 1,
    Opcode.NOOP: 0,
}

OPCODES: Dict[int, OpcodeInfo] = {
    int(op): OpcodeInfo(op, count) for op, count in _OPERAND_COUNTS.items()
}


def lookup(code: int) -> Optional[OpcodeInfo]:
    """Return decode info for ``code`` or ``None`` when it is not an opcode."""

    return OPCODES.get(code)


__all__ = ["Opcode", "OpcodeInfo", "OPCODES", "lookup"]
