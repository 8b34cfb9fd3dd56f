from __future__ import annotations

import pytest

from synacor import BufferSink, ExecutionStatus, ScriptedSource
from synacor.opcodes import OPCODES, Opcode, lookup

R0 = 32768
R1 = 32769
R2 = 32770


def _run_steps(vm, count: int) -> None:
    for _ in range(count):
        vm.step()


def test_opcode_table_covers_instruction_set() -> None:
    assert sorted(OPCODES) == list(range(22))
    assert lookup(Opcode.ADD).width == 4
    assert lookup(Opcode.HALT).width == 1
    assert lookup(Opcode.JT).mnemonic == "jt"
    assert lookup(22) is None


def test_set_literal(make_vm) -> None:
    vm = make_vm([1, R0, 7])
    vm.step()

    assert vm.read_register(0) == 7
    assert vm.pc == 3


def test_set_from_register(make_vm) -> None:
    vm = make_vm([1, R1, 9, 1, R0, R1])
    _run_steps(vm, 2)

    assert vm.read_register(0) == 9
    assert vm.read_register(1) == 9


def test_push_and_pop_are_lifo(make_vm) -> None:
    vm = make_vm([2, 11, 2, 22, 3, R0, 3, R1])
    _run_steps(vm, 2)
    assert vm.stack == (11, 22)

    _run_steps(vm, 2)

    assert vm.read_register(0) == 22
    assert vm.read_register(1) == 11
    assert vm.stack == ()
    assert vm.pc == 8


def test_push_resolves_register(make_vm) -> None:
    vm = make_vm([1, R0, 5, 2, R0])
    _run_steps(vm, 2)

    assert vm.stack == (5,)


@pytest.mark.parametrize("b, c, expected", [(3, 3, 1), (3, 4, 0), (0, 0, 1)])
def test_eq(make_vm, b: int, c: int, expected: int) -> None:
    vm = make_vm([4, R0, b, c])
    vm.step()

    assert vm.read_register(0) == expected
    assert vm.pc == 4


@pytest.mark.parametrize("b, c, expected", [(5, 4, 1), (4, 4, 0), (3, 4, 0)])
def test_gt(make_vm, b: int, c: int, expected: int) -> None:
    vm = make_vm([5, R0, b, c])
    vm.step()

    assert vm.read_register(0) == expected


def test_jmp_literal(make_vm) -> None:
    vm = make_vm([6, 10])
    vm.step()

    assert vm.pc == 10


def test_jmp_register(make_vm) -> None:
    vm = make_vm([1, R0, 20, 6, R0])
    _run_steps(vm, 2)

    assert vm.pc == 20


@pytest.mark.parametrize(
    "opcode, condition, expected_pc",
    [(7, 1, 9), (7, 0, 3), (8, 0, 9), (8, 1, 3)],
    ids=["jt-taken", "jt-not-taken", "jf-taken", "jf-not-taken"],
)
def test_conditional_jumps(make_vm, opcode: int, condition: int, expected_pc: int) -> None:
    vm = make_vm([opcode, condition, 9])
    vm.step()

    assert vm.pc == expected_pc


@pytest.mark.parametrize(
    "opcode, b, c, expected",
    [
        (9, 2, 3, 5),
        (10, 200, 300, (200 * 300) % 32768),
        (11, 17, 5, 2),
        (12, 0b1100, 0b1010, 0b1000),
        (13, 0b1100, 0b1010, 0b1110),
    ],
    ids=["add", "mult", "mod", "and", "or"],
)
def test_binary_arithmetic(make_vm, opcode: int, b: int, c: int, expected: int) -> None:
    vm = make_vm([opcode, R0, b, c])
    vm.step()

    assert vm.read_register(0) == expected
    assert vm.pc == 4


@pytest.mark.parametrize("value, expected", [(0, 32767), (0x7FF0, 0x000F), (32767, 0)])
def test_not_masks_to_fifteen_bits(make_vm, value: int, expected: int) -> None:
    vm = make_vm([14, R0, value])
    vm.step()

    assert vm.read_register(0) == expected
    assert vm.pc == 3


def test_rmem(make_vm) -> None:
    vm = make_vm([15, R0, 3, 1234])
    vm.step()

    assert vm.read_register(0) == 1234
    assert vm.pc == 3


def test_wmem_literal_address(make_vm) -> None:
    vm = make_vm([16, 100, 55])
    vm.step()

    assert vm.read_memory(100) == 55
    assert vm.pc == 3


def test_wmem_register_address_and_value(make_vm) -> None:
    vm = make_vm([1, R0, 200, 1, R1, 9, 16, R0, R1])
    _run_steps(vm, 3)

    assert vm.read_memory(200) == 9


def test_call_then_ret_restores_pc(make_vm) -> None:
    vm = make_vm([17, 5, 0, 0, 0, 18])

    vm.step()
    assert vm.stack == (2,)
    assert vm.pc == 5

    vm.step()
    assert vm.stack == ()
    assert vm.pc == 2

    assert vm.step() is ExecutionStatus.HALTED


def test_call_return_address_wraps(make_vm) -> None:
    # call at 32767 reads its operand from address 0 (the jmp opcode, 6).
    vm = make_vm([6, 32767], patches={32767: 17})
    _run_steps(vm, 2)

    assert vm.stack == (1,)
    assert vm.pc == 6


def test_ret_on_empty_stack_halts(make_vm) -> None:
    vm = make_vm([18])

    assert vm.step() is ExecutionStatus.HALTED
    assert vm.fault is None
    assert vm.error is None
    assert vm.pc == 0


def test_out_writes_resolved_code(make_vm) -> None:
    sink = BufferSink()
    vm = make_vm([19, 72, 1, R0, 105, 19, R0], output=sink)
    _run_steps(vm, 3)

    assert sink.text() == "Hi"
    assert vm.pc == 7


def test_in_reads_one_character_per_instruction(make_vm) -> None:
    vm = make_vm([20, R0, 20, R1], input=ScriptedSource("hi"))
    _run_steps(vm, 2)

    assert vm.read_register(0) == ord("h")
    assert vm.read_register(1) == ord("i")
    assert vm.pc == 4


def test_in_to_literal_consumes_and_discards(make_vm) -> None:
    source = ScriptedSource("x")
    vm = make_vm([20, 5], input=source)
    vm.step()

    assert source.remaining == 0
    assert vm.registers == (0,) * 8
    assert vm.pc == 2


def test_noop_advances_one(make_vm) -> None:
    vm = make_vm([21, 21])
    _run_steps(vm, 2)

    assert vm.pc == 2
    assert vm.running
