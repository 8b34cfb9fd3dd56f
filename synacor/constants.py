"""Shared architecture constants for the Synacor virtual machine.

This module centralizes the numeric limits of the word machine used across
the interpreter, loader and tests.
"""

# Words are 15-bit values; every arithmetic result is reduced modulo this.
WORD_MODULUS = 0x8000  # 32768

# Mask keeping the low 15 bits of a value.
WORD_MASK = WORD_MODULUS - 1

# The address space holds exactly one word per addressable location.
MEMORY_SIZE = WORD_MODULUS

# Eight general-purpose registers, encoded in operands as 32768..32775.
REGISTER_COUNT = 8
REGISTER_BASE = WORD_MODULUS
REGISTER_LIMIT = REGISTER_BASE + REGISTER_COUNT - 1  # 32775

# Each word occupies two bytes in a program image (little-endian).
BYTES_PER_WORD = 2
