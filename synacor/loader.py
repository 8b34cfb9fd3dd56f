"""Program image decoding.

Images are flat little-endian sequences of 16-bit words loaded at address 0.
Anything beyond the address space is dropped and an unpaired trailing byte is
ignored; neither case is an error.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import numpy as np

from .constants import BYTES_PER_WORD, MEMORY_SIZE

logger = logging.getLogger(__name__)

# Explicit little-endian unsigned 16-bit, independent of host byte order.
IMAGE_DTYPE = np.dtype("<u2")


def decode_image(data: bytes, *, limit: int = MEMORY_SIZE) -> np.ndarray:
    """Decode ``data`` into at most ``limit`` words."""

    usable_words = min(len(data) // BYTES_PER_WORD, limit)
    if len(data) > usable_words * BYTES_PER_WORD:
        logger.debug(
            "Image has %d bytes; using the first %d words",
            len(data),
            usable_words,
        )
    raw = bytes(data[: usable_words * BYTES_PER_WORD])
    return np.frombuffer(raw, dtype=IMAGE_DTYPE).astype(np.uint16)


def read_image(path: Union[str, Path]) -> bytes:
    """Read a program image from disk."""

    image_path = Path(path)
    data = image_path.read_bytes()
    logger.debug("Read %d bytes from %s", len(data), image_path)
    return data


__all__ = ["IMAGE_DTYPE", "decode_image", "read_image"]
