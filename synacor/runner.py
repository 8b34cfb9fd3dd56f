"""Caller-side loop that drives ``VirtualMachine.step`` to completion."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .faults import Fault
from .snapshot import step_with_diff
from .vm import ExecutionStatus, VirtualMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    status: ExecutionStatus
    steps: int
    fault: Optional[Fault] = None
    limit_reached: bool = False


def run(
    vm: VirtualMachine,
    *,
    max_steps: Optional[int] = None,
    trace: bool = False,
) -> RunResult:
    """Step ``vm`` until it halts, faults, or ``max_steps`` instructions ran."""

    steps = 0
    while vm.running:
        if max_steps is not None and steps >= max_steps:
            logger.warning(
                "Step budget of %d exhausted at pc=%d (0x%04X)", max_steps, vm.pc, vm.pc
            )
            return RunResult(status=vm.status, steps=steps, limit_reached=True)

        if trace and logger.isEnabledFor(logging.DEBUG):
            result = step_with_diff(vm)
            logger.debug("%s", result.describe())
        else:
            vm.step()
        steps += 1

    if vm.halted:
        logger.info("Program halted after %d steps at pc=%d", steps, vm.pc)
    else:
        logger.warning("Program faulted after %d steps: %s", steps, vm.error)
    return RunResult(status=vm.status, steps=steps, fault=vm.fault)


__all__ = ["RunResult", "run"]
