"""
Reader and writer collaborators used by the executor.

The executor only needs `readline()` on the reader and `write(str)` on the
writer, so any text stream works. These helpers wrap in-memory data for
embedding and tests.
"""
import io
from typing import Iterable, List, Optional


class LineReader:
    """Serve a fixed sequence of input lines, then end of input."""

    def __init__(self, lines: Iterable[str]):
        self._lines = [line if line.endswith("\n") else line + "\n" for line in lines]
        self._index = 0

    @classmethod
    def from_text(cls, text: str) -> "LineReader":
        return cls(text.splitlines())

    def readline(self) -> str:
        if self._index >= len(self._lines):
            return ""
        line = self._lines[self._index]
        self._index += 1
        return line


class BufferWriter:
    """Collect everything written so it can be inspected afterwards."""

    def __init__(self):
        self._buffer = io.StringIO()

    def write(self, text: str) -> int:
        return self._buffer.write(text)

    def flush(self) -> None:
        pass

    def getvalue(self) -> str:
        return self._buffer.getvalue()


def read_line(reader) -> Optional[str]:
    """
    Read one line with its terminator removed.

    Returns:
        The line text, or None when the reader is exhausted
    """
    line = reader.readline()
    if line == "":
        return None
    return line.rstrip("\r\n")


def first_token(line: str) -> Optional[str]:
    tokens: List[str] = line.split()
    return tokens[0] if tokens else None
