"""Shared pytest fixtures for the Synacor VM tests."""

from __future__ import annotations

import struct
from typing import Callable, Dict, Iterable, Optional, Sequence

import pytest

from synacor import CharacterSink, CharacterSource, VirtualMachine


def encode_words(words: Sequence[int]) -> bytes:
    return struct.pack(f"<{len(words)}H", *words)


def build_image(words: Iterable[int], patches: Optional[Dict[int, int]] = None) -> bytes:
    image = list(words)
    if patches:
        top = max(patches) + 1
        if top > len(image):
            image.extend([0] * (top - len(image)))
        for address, value in patches.items():
            image[address] = value
    return encode_words(image)


VMFactory = Callable[..., VirtualMachine]


@pytest.fixture
def encode() -> Callable[[Sequence[int]], bytes]:
    return encode_words


@pytest.fixture
def make_vm() -> VMFactory:
    """Build a VM with ``words`` loaded at address 0.

    ``patches`` places extra words at arbitrary addresses, e.g. near the top of
    memory for wraparound tests.
    """

    def _make(
        words: Iterable[int],
        *,
        output: Optional[CharacterSink] = None,
        input: Optional[CharacterSource] = None,
        patches: Optional[Dict[int, int]] = None,
    ) -> VirtualMachine:
        vm = VirtualMachine(output=output, input=input)
        vm.load_program(build_image(words, patches))
        return vm

    return _make
