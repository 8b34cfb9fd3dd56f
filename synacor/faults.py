"""Fault taxonomy reported by the interpreter when execution cannot continue."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class FaultKind(enum.Enum):
    """Reasons a step can end in the faulted state."""

    STACK_UNDERFLOW = "stack_underflow"
    UNKNOWN_OPCODE = "unknown_opcode"
    INVALID_MEMORY_ACCESS = "invalid_memory_access"
    ARITHMETIC_FAULT = "arithmetic_fault"
    INVALID_OPERAND = "invalid_operand"
    INPUT_EXHAUSTED = "input_exhausted"
    PORT_FAILURE = "port_failure"


@dataclass(frozen=True)
class Fault:
    """Terminal error recorded on the machine once it faults."""

    kind: FaultKind
    message: str
    pc: int

    def describe(self) -> str:
        return f"{self.kind.name} at pc={self.pc} (0x{self.pc:04X}): {self.message}"


class VMFault(Exception):
    """Raised by instruction handlers; never escapes ``VirtualMachine.step``."""

    def __init__(self, kind: FaultKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


__all__ = ["Fault", "FaultKind", "VMFault"]
