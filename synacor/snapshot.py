"""Immutable machine snapshots and single-step diffs.

Snapshots capture everything observable about a ``VirtualMachine`` except the
memory image: program counter, registers, stack, status and the executed
instruction count. ``step_with_diff`` runs one instruction and reports which of
those fields changed, which is what the runner logs in trace mode.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .constants import REGISTER_COUNT
from .opcodes import lookup

if TYPE_CHECKING:
    from .vm import ExecutionStatus, VirtualMachine


@dataclass(frozen=True, slots=True)
class VMSnapshot:
    """Observable register-file and control state of the machine."""

    pc: int
    registers: Tuple[int, ...]
    stack: Tuple[int, ...]
    status: "ExecutionStatus"
    instruction_count: int = 0
    error: Optional[str] = None

    @classmethod
    def from_vm(cls, vm: "VirtualMachine") -> "VMSnapshot":
        return cls(
            pc=vm.pc,
            registers=vm.registers,
            stack=vm.stack,
            status=vm.status,
            instruction_count=vm.instruction_count,
            error=vm.error,
        )

    def to_dict(self) -> Dict[str, object]:
        values: Dict[str, object] = {"pc": self.pc}
        for index, value in enumerate(self.registers):
            values[f"r{index}"] = value
        values["stack"] = list(self.stack)
        values["status"] = self.status.value
        values["instruction_count"] = self.instruction_count
        if self.error is not None:
            values["error"] = self.error
        return values

    def diff(self, other: "VMSnapshot") -> Dict[str, Tuple[object, object]]:
        diffs: Dict[str, Tuple[object, object]] = {}
        if self.pc != other.pc:
            diffs["PC"] = (self.pc, other.pc)
        for index in range(REGISTER_COUNT):
            before = self.registers[index]
            after = other.registers[index]
            if before != after:
                diffs[f"R{index}"] = (before, after)
        if self.stack != other.stack:
            diffs["STACK"] = (self.stack, other.stack)
        if self.status != other.status:
            diffs["STATUS"] = (self.status, other.status)
        return diffs

    def format_dump(self) -> str:
        """Human-readable status and register dump."""

        lines: List[str] = ["*** VM STATUS ***", self.status.name]
        if self.error is not None:
            lines.append(self.error)
        for index, value in enumerate(self.registers):
            lines.append(f"R{index}: {value:04X}")
        lines.append(f"PC : {self.pc:04X}")
        lines.append(f"STACK DEPTH: {len(self.stack)}")
        lines.append(f"INSTRUCTIONS: {self.instruction_count}")
        lines.append("*****************")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class StepResult:
    """Outcome of executing a single instruction."""

    pc: int
    mnemonic: str
    before: VMSnapshot
    after: VMSnapshot
    changed: Dict[str, Tuple[object, object]]

    @property
    def status(self) -> "ExecutionStatus":
        return self.after.status

    def describe(self) -> str:
        changes = " ".join(
            f"{name}={before}->{after}" for name, (before, after) in self.changed.items()
        )
        return f"{self.pc:04X} {self.mnemonic:<4} {changes}".rstrip()


def step_with_diff(vm: "VirtualMachine") -> StepResult:
    """Execute one instruction on ``vm`` and report the resulting changes."""

    before = VMSnapshot.from_vm(vm)
    code = vm.read_memory(before.pc)
    info = lookup(code)
    mnemonic = info.mnemonic if info is not None else f"?{code}"

    vm.step()

    after = VMSnapshot.from_vm(vm)
    return StepResult(
        pc=before.pc,
        mnemonic=mnemonic,
        before=before,
        after=after,
        changed=before.diff(after),
    )


__all__ = ["StepResult", "VMSnapshot", "step_with_diff"]
