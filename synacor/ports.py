"""Character I/O ports connecting the interpreter to the outside world.

The interpreter only knows the two capability protocols below. Everything
terminal-specific lives in the adapters so the core never touches a console.
"""

from __future__ import annotations

import logging
import sys
from collections import deque
from pathlib import Path
from typing import Deque, Iterable, List, Optional, Protocol, TextIO, Union

logger = logging.getLogger(__name__)


class CharacterSink(Protocol):
    """Output port: accepts one character code per ``out`` instruction."""

    def write_char(self, code: int) -> None: ...


class CharacterSource(Protocol):
    """Input port: produces one character code per ``in`` instruction.

    Implementations raise ``EOFError`` when no further input exists.
    """

    def read_char(self) -> int: ...


# ---------------------------------------------------------------------- #
# Sinks
# ---------------------------------------------------------------------- #
class NullSink:
    """Discards all output."""

    def write_char(self, code: int) -> None:
        pass


class BufferSink:
    """Collects output codes in memory."""

    def __init__(self) -> None:
        self.codes: List[int] = []

    def write_char(self, code: int) -> None:
        self.codes.append(code)

    def text(self) -> str:
        return "".join(chr(code) for code in self.codes)

    def clear(self) -> None:
        self.codes.clear()


class TerminalSink:
    """Writes characters to a text stream, flushing at line ends.

    Stream failures are logged and absorbed; the output port contract forbids
    raising into the interpreter.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._broken = False

    def write_char(self, code: int) -> None:
        if self._broken:
            return
        try:
            self._stream.write(chr(code))
            if code == ord("\n"):
                self._stream.flush()
        except (OSError, ValueError) as exc:
            # Closed or broken stream: report once, then drop further output.
            logger.error("Terminal output failed, discarding output: %s", exc)
            self._broken = True

    def flush(self) -> None:
        if self._broken:
            return
        try:
            self._stream.flush()
        except (OSError, ValueError) as exc:
            logger.error("Terminal flush failed: %s", exc)
            self._broken = True


# ---------------------------------------------------------------------- #
# Sources
# ---------------------------------------------------------------------- #
class NullSource:
    """Source with no input at all."""

    def read_char(self) -> int:
        raise EOFError("no input port attached")


class ScriptedSource:
    """Replays pre-recorded input text character by character."""

    def __init__(self, text: str = "") -> None:
        self._pending: Deque[int] = deque(ord(ch) for ch in text)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ScriptedSource":
        return cls(Path(path).read_text(encoding="utf-8"))

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "ScriptedSource":
        return cls("".join(line.rstrip("\n") + "\n" for line in lines))

    def feed(self, text: str) -> None:
        self._pending.extend(ord(ch) for ch in text)

    @property
    def remaining(self) -> int:
        return len(self._pending)

    def read_char(self) -> int:
        if not self._pending:
            raise EOFError("scripted input exhausted")
        return self._pending.popleft()


class LineBufferedSource:
    """Reads whole lines from a text stream and hands them out per character.

    Once a line has been read its characters are served without touching the
    stream again, so a program reading up to the newline never blocks midway.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream if stream is not None else sys.stdin
        self._line: Deque[int] = deque()

    def read_char(self) -> int:
        if not self._line:
            line = self._stream.readline()
            if not line:
                raise EOFError("end of input stream")
            self._line.extend(ord(ch) for ch in line)
        return self._line.popleft()


class ChainedSource:
    """Reads from each source in turn, moving on when one is exhausted."""

    def __init__(self, *sources: CharacterSource) -> None:
        self._sources: Deque[CharacterSource] = deque(sources)

    def read_char(self) -> int:
        while self._sources:
            try:
                return self._sources[0].read_char()
            except EOFError:
                self._sources.popleft()
        raise EOFError("all input sources exhausted")


__all__ = [
    "CharacterSink",
    "CharacterSource",
    "BufferSink",
    "ChainedSource",
    "LineBufferedSource",
    "NullSink",
    "NullSource",
    "ScriptedSource",
    "TerminalSink",
]
