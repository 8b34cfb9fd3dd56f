"""Interpreter core for the Synacor word machine.

One ``VirtualMachine`` owns a 32768-word memory, eight registers, an unbounded
stack and the program counter. ``step`` executes exactly one instruction and
reports the resulting ``ExecutionStatus``; faults never escape it as
exceptions.
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from .constants import (
    MEMORY_SIZE,
    REGISTER_BASE,
    REGISTER_COUNT,
    REGISTER_LIMIT,
    WORD_MASK,
    WORD_MODULUS,
)
from .faults import Fault, FaultKind, VMFault
from .loader import decode_image, read_image
from .opcodes import Opcode, lookup
from .ports import CharacterSink, CharacterSource, NullSink, NullSource

if TYPE_CHECKING:
    from .snapshot import VMSnapshot

logger = logging.getLogger(__name__)

# Handlers return the next PC, or None to advance by the instruction width.
Handler = Callable[..., Optional[int]]


class ExecutionStatus(enum.Enum):
    """Interpreter state machine; only RUNNING is non-terminal."""

    RUNNING = "running"
    HALTED = "halted"
    FAULTED = "faulted"

    @property
    def terminal(self) -> bool:
        return self is not ExecutionStatus.RUNNING


class VirtualMachine:
    def __init__(
        self,
        output: Optional[CharacterSink] = None,
        input: Optional[CharacterSource] = None,
    ) -> None:
        self._memory = np.zeros(MEMORY_SIZE, dtype=np.uint16)
        self._registers = np.zeros(REGISTER_COUNT, dtype=np.uint16)
        self._stack: List[int] = []
        self._pc: int = 0

        self._status = ExecutionStatus.RUNNING
        self._fault: Optional[Fault] = None
        self._instruction_count: int = 0

        self._output: CharacterSink = output if output is not None else NullSink()
        self._input: CharacterSource = input if input is not None else NullSource()

        self._handlers: Dict[Opcode, Handler] = {
            Opcode.HALT: self._op_halt,
            Opcode.SET: self._op_set,
            Opcode.PUSH: self._op_push,
            Opcode.POP: self._op_pop,
            Opcode.EQ: self._op_eq,
            Opcode.GT: self._op_gt,
            Opcode.JMP: self._op_jmp,
            Opcode.JT: self._op_jt,
            Opcode.JF: self._op_jf,
            Opcode.ADD: self._op_add,
            Opcode.MULT: self._op_mult,
            Opcode.MOD: self._op_mod,
            Opcode.AND: self._op_and,
            Opcode.OR: self._op_or,
            Opcode.NOT: self._op_not,
            Opcode.RMEM: self._op_rmem,
            Opcode.WMEM: self._op_wmem,
            Opcode.CALL: self._op_call,
            Opcode.RET: self._op_ret,
            Opcode.OUT: self._op_out,
            Opcode.IN: self._op_in,
            Opcode.NOOP: self._op_noop,
        }

    @classmethod
    def from_image(
        cls,
        path: Union[str, Path],
        output: Optional[CharacterSink] = None,
        input: Optional[CharacterSource] = None,
    ) -> "VirtualMachine":
        vm = cls(output=output, input=input)
        vm.load_program(read_image(path))
        return vm

    # ------------------------------------------------------------------ #
    # Program loading
    # ------------------------------------------------------------------ #
    def load_program(self, data: bytes) -> int:
        """Copy a little-endian word image into memory from address 0.

        Returns the number of words copied. Must be called before stepping.
        """

        words = decode_image(data)
        self._memory[: len(words)] = words
        logger.debug("Loaded %d words", len(words))
        return len(words)

    # ------------------------------------------------------------------ #
    # Inspection
    # ------------------------------------------------------------------ #
    @property
    def pc(self) -> int:
        return self._pc

    @property
    def status(self) -> ExecutionStatus:
        return self._status

    @property
    def fault(self) -> Optional[Fault]:
        return self._fault

    @property
    def error(self) -> Optional[str]:
        """Diagnostic for the faulted state, ``None`` otherwise."""
        if self._fault is None:
            return None
        return self._fault.describe()

    @property
    def running(self) -> bool:
        return self._status is ExecutionStatus.RUNNING

    @property
    def halted(self) -> bool:
        return self._status is ExecutionStatus.HALTED

    @property
    def faulted(self) -> bool:
        return self._status is ExecutionStatus.FAULTED

    @property
    def instruction_count(self) -> int:
        return self._instruction_count

    @property
    def registers(self) -> Tuple[int, ...]:
        return tuple(int(value) for value in self._registers)

    @property
    def stack(self) -> Tuple[int, ...]:
        """Stack contents, bottom first."""
        return tuple(self._stack)

    @property
    def memory(self) -> np.ndarray:
        """Read-only view of memory."""
        view = self._memory.view()
        view.flags.writeable = False
        return view

    def read_register(self, index: int) -> int:
        if not 0 <= index < REGISTER_COUNT:
            raise IndexError(f"register index {index} outside 0..{REGISTER_COUNT - 1}")
        return int(self._registers[index])

    def read_memory(self, address: int) -> int:
        if not 0 <= address < MEMORY_SIZE:
            raise IndexError(f"memory address {address} outside 0..{MEMORY_SIZE - 1}")
        return int(self._memory[address])

    def snapshot(self) -> "VMSnapshot":
        from .snapshot import VMSnapshot

        return VMSnapshot.from_vm(self)

    # ------------------------------------------------------------------ #
    # Operand addressing
    # ------------------------------------------------------------------ #
    def resolve(self, operand: int) -> int:
        """Value of a source operand: a literal or a register's contents."""

        if operand < REGISTER_BASE:
            return operand
        if operand <= REGISTER_LIMIT:
            return int(self._registers[operand - REGISTER_BASE])
        raise VMFault(FaultKind.INVALID_OPERAND, f"invalid operand {operand}")

    def _store(self, operand: int, value: int) -> None:
        """Write ``value`` to a destination operand.

        A literal destination is accepted and the value discarded.
        """

        if operand < REGISTER_BASE:
            return
        if operand > REGISTER_LIMIT:
            raise VMFault(FaultKind.INVALID_OPERAND, f"invalid operand {operand}")
        self._registers[operand - REGISTER_BASE] = value

    @staticmethod
    def _address(value: int, what: str) -> int:
        if not 0 <= value < MEMORY_SIZE:
            raise VMFault(
                FaultKind.INVALID_MEMORY_ACCESS,
                f"{what} address {value} outside 0..{MEMORY_SIZE - 1}",
            )
        return value

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def step(self) -> ExecutionStatus:
        """Execute one instruction at PC and return the new status.

        Once the machine is halted or faulted this is a no-op.
        """

        if self._status.terminal:
            return self._status

        pc = self._pc
        code = int(self._memory[pc])
        info = lookup(code)
        try:
            if info is None:
                raise VMFault(
                    FaultKind.UNKNOWN_OPCODE, f"unknown opcode {code} at pc {pc}"
                )
            operands = [
                int(self._memory[(pc + offset) % MEMORY_SIZE])
                for offset in range(1, info.width)
            ]
            next_pc = self._handlers[info.opcode](*operands)
        except VMFault as exc:
            self._fault = Fault(kind=exc.kind, message=exc.message, pc=pc)
            self._status = ExecutionStatus.FAULTED
            logger.warning("VM faulted: %s", self._fault.describe())
            return self._status

        if next_pc is None:
            next_pc = (pc + info.width) % WORD_MODULUS
        self._pc = next_pc
        self._instruction_count += 1
        return self._status

    # ------------------------------------------------------------------ #
    # Instruction handlers
    # ------------------------------------------------------------------ #
    def _op_halt(self) -> Optional[int]:
        self._status = ExecutionStatus.HALTED
        return self._pc

    def _op_set(self, a: int, b: int) -> Optional[int]:
        self._store(a, self.resolve(b))
        return None

    def _op_push(self, a: int) -> Optional[int]:
        self._stack.append(self.resolve(a))
        return None

    def _op_pop(self, a: int) -> Optional[int]:
        if not self._stack:
            raise VMFault(FaultKind.STACK_UNDERFLOW, "pop from empty stack")
        # Validate the destination before consuming the stack.
        self._store(a, self._stack[-1])
        self._stack.pop()
        return None

    def _op_eq(self, a: int, b: int, c: int) -> Optional[int]:
        self._store(a, 1 if self.resolve(b) == self.resolve(c) else 0)
        return None

    def _op_gt(self, a: int, b: int, c: int) -> Optional[int]:
        self._store(a, 1 if self.resolve(b) > self.resolve(c) else 0)
        return None

    def _op_jmp(self, a: int) -> Optional[int]:
        return self._address(self.resolve(a), "jump")

    def _op_jt(self, a: int, b: int) -> Optional[int]:
        if self.resolve(a) != 0:
            return self._address(self.resolve(b), "jump")
        return None

    def _op_jf(self, a: int, b: int) -> Optional[int]:
        if self.resolve(a) == 0:
            return self._address(self.resolve(b), "jump")
        return None

    def _op_add(self, a: int, b: int, c: int) -> Optional[int]:
        self._store(a, (self.resolve(b) + self.resolve(c)) % WORD_MODULUS)
        return None

    def _op_mult(self, a: int, b: int, c: int) -> Optional[int]:
        self._store(a, (self.resolve(b) * self.resolve(c)) % WORD_MODULUS)
        return None

    def _op_mod(self, a: int, b: int, c: int) -> Optional[int]:
        divisor = self.resolve(c)
        if divisor == 0:
            raise VMFault(FaultKind.ARITHMETIC_FAULT, "mod by zero")
        self._store(a, self.resolve(b) % divisor)
        return None

    def _op_and(self, a: int, b: int, c: int) -> Optional[int]:
        self._store(a, self.resolve(b) & self.resolve(c))
        return None

    def _op_or(self, a: int, b: int, c: int) -> Optional[int]:
        self._store(a, self.resolve(b) | self.resolve(c))
        return None

    def _op_not(self, a: int, b: int) -> Optional[int]:
        self._store(a, ~self.resolve(b) & WORD_MASK)
        return None

    def _op_rmem(self, a: int, b: int) -> Optional[int]:
        address = self._address(self.resolve(b), "read")
        self._store(a, int(self._memory[address]))
        return None

    def _op_wmem(self, a: int, b: int) -> Optional[int]:
        address = self._address(self.resolve(a), "write")
        self._memory[address] = self.resolve(b)
        return None

    def _op_call(self, a: int) -> Optional[int]:
        target = self._address(self.resolve(a), "call")
        self._stack.append((self._pc + 2) % WORD_MODULUS)
        return target

    def _op_ret(self) -> Optional[int]:
        if not self._stack:
            self._status = ExecutionStatus.HALTED
            return self._pc
        target = self._address(self._stack[-1], "return")
        self._stack.pop()
        return target

    def _op_out(self, a: int) -> Optional[int]:
        value = self.resolve(a)
        try:
            self._output.write_char(value)
        except Exception as exc:
            raise VMFault(
                FaultKind.PORT_FAILURE, f"output port raised {exc!r}"
            ) from exc
        return None

    def _op_in(self, a: int) -> Optional[int]:
        # Reject a bad destination before consuming input.
        if a > REGISTER_LIMIT:
            raise VMFault(FaultKind.INVALID_OPERAND, f"invalid operand {a}")
        try:
            value = self._input.read_char()
        except EOFError as exc:
            raise VMFault(FaultKind.INPUT_EXHAUSTED, f"input exhausted: {exc}") from exc
        except Exception as exc:
            raise VMFault(
                FaultKind.PORT_FAILURE, f"input port raised {exc!r}"
            ) from exc
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise VMFault(
                FaultKind.PORT_FAILURE, f"input port produced non-integer value {value!r}"
            )
        value = int(value)
        if not 0 <= value <= WORD_MASK:
            raise VMFault(
                FaultKind.PORT_FAILURE, f"input port produced out-of-range value {value}"
            )
        self._store(a, value)
        return None

    def _op_noop(self) -> Optional[int]:
        return None


__all__ = ["ExecutionStatus", "VirtualMachine"]
