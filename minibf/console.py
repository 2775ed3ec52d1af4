from __future__ import annotations

import sys
from typing import Optional, TextIO

EOF_CHAR = "\0"


class ConsoleInput:
    """Read one character per call from a text stream (stdin by default).

    End of stream is reported as ``"\\0"`` so programs that loop until a zero
    cell terminate cleanly. A terminal stdin is line-buffered: nothing is read
    until Enter is pressed, and the newline itself reaches the program as
    ``"\\n"``.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream

    def __call__(self) -> str:
        stream = self.stream if self.stream is not None else sys.stdin
        char = stream.read(1)
        return char if char else EOF_CHAR


class ConsoleOutput:
    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream

    def __call__(self, char: str) -> None:
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(char)
        stream.flush()


class StringInput:
    """Feed a preset string to the program, then ``"\\0"`` forever."""

    def __init__(self, data: str = "") -> None:
        self.data = data
        self.offset = 0

    def __call__(self) -> str:
        if self.offset >= len(self.data):
            return EOF_CHAR
        char = self.data[self.offset]
        self.offset += 1
        return char

    @property
    def remaining(self) -> str:
        return self.data[self.offset:]

    def rewind(self) -> None:
        self.offset = 0


def discard_input() -> str:
    return EOF_CHAR


def discard_output(char: str) -> None:
    pass


__all__ = [
    "EOF_CHAR",
    "ConsoleInput",
    "ConsoleOutput",
    "StringInput",
    "discard_input",
    "discard_output",
]
