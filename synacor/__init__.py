"""Synacor word-machine interpreter package."""

from .config import RunConfig
from .faults import Fault, FaultKind
from .opcodes import OPCODES, Opcode, OpcodeInfo
from .ports import (
    BufferSink,
    ChainedSource,
    CharacterSink,
    CharacterSource,
    LineBufferedSource,
    NullSink,
    NullSource,
    ScriptedSource,
    TerminalSink,
)
from .runner import RunResult, run
from .snapshot import StepResult, VMSnapshot, step_with_diff
from .vm import ExecutionStatus, VirtualMachine

__all__ = [
    "VirtualMachine",
    "ExecutionStatus",
    "Fault",
    "FaultKind",
    "Opcode",
    "OpcodeInfo",
    "OPCODES",
    "CharacterSink",
    "CharacterSource",
    "BufferSink",
    "ChainedSource",
    "LineBufferedSource",
    "NullSink",
    "NullSource",
    "ScriptedSource",
    "TerminalSink",
    "RunConfig",
    "RunResult",
    "run",
    "StepResult",
    "VMSnapshot",
    "step_with_diff",
]
