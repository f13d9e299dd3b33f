"""
The three-symbol wire alphabet and the lexer that produces it from source text.
"""
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Union


class Symbol(Enum):
    """Wire symbols, valued by the source character they stand for."""

    BLANK = " "
    MARK = "\t"
    BREAK = "\n"

    @property
    def visible(self) -> str:
        return VISIBLE_NAMES[self]


VISIBLE_NAMES = {
    Symbol.BLANK: "S",
    Symbol.MARK: "T",
    Symbol.BREAK: "L",
}

CHAR_TO_SYMBOL = {symbol.value: symbol for symbol in Symbol}


def tokenize(text: str) -> List[Symbol]:
    """
    Convert source text into a symbol stream.

    Any character other than space, tab and linefeed is a comment and is
    dropped.

    Args:
        text: Raw program source

    Returns:
        List of symbols in source order
    """
    return [CHAR_TO_SYMBOL[char] for char in text if char in CHAR_TO_SYMBOL]


def read_source(path: Union[str, Path]) -> List[Symbol]:
    """Read a program file and tokenize it."""
    path = Path(path)
    if path.is_dir():
        raise IsADirectoryError(f"Expected a program file, got a directory: {path}")
    return tokenize(path.read_text(encoding="utf-8"))


def to_text(symbols: Iterable[Symbol]) -> str:
    """Render symbols back to raw whitespace."""
    return "".join(symbol.value for symbol in symbols)


def to_visible(text: str) -> str:
    """Spell whitespace source as S/T/L, keeping a real newline after each L."""
    return text.replace(" ", "S").replace("\t", "T").replace("\n", "L\n")
