"""
Instruction model: the closed set of opcodes, their wire encodings and mnemonics.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .symbols import Symbol, tokenize, to_text


class Opcode(Enum):
    """Every instruction variant as (category, mnemonic, wire code, takes argument).

    The wire code excludes the trailing numeric field of instructions that
    take an argument.
    """

    # Stack manipulation
    PUSH = ("stack", "push", "  ", True)
    DUPLICATE = ("stack", "dup", " \n ", False)
    SWAP = ("stack", "swap", " \n\t", False)
    DISCARD = ("stack", "discard", " \n\n", False)

    # Arithmetic
    ADD = ("arithmetic", "add", "\t   ", False)
    SUBTRACT = ("arithmetic", "sub", "\t  \t", False)
    MULTIPLY = ("arithmetic", "mul", "\t  \n", False)
    DIVIDE = ("arithmetic", "div", "\t \t ", False)
    MODULO = ("arithmetic", "mod", "\t \t\t", False)

    # Heap access
    STORE = ("heap", "store", "\t\t ", False)
    RETRIEVE = ("heap", "retrieve", "\t\t\t", False)

    # Flow control
    MARK = ("flow", "label", "\n  ", True)
    CALL = ("flow", "call", "\n \t", True)
    JUMP = ("flow", "jump", "\n \n", True)
    JUMP_ZERO = ("flow", "jumpzero", "\n\t ", True)
    JUMP_NEGATIVE = ("flow", "jumpneg", "\n\t\t", True)
    RETURN = ("flow", "return", "\n\t\n", False)
    HALT = ("flow", "end", "\n\n\n", False)

    # I/O
    PRINT_CHAR = ("io", "printchar", "\t\n  ", False)
    PRINT_NUMBER = ("io", "printnum", "\t\n \t", False)
    READ_CHAR = ("io", "readchar", "\t\n\t ", False)
    READ_NUMBER = ("io", "readnum", "\t\n\t\t", False)

    def __init__(self, category: str, mnemonic: str, code: str, has_argument: bool):
        self.category = category
        self.mnemonic = mnemonic
        self.code = code
        self.has_argument = has_argument

    @property
    def symbols(self) -> Tuple[Symbol, ...]:
        return tuple(tokenize(self.code))


# Opcodes whose argument names a label rather than a value
LABELED_OPCODES = frozenset(
    {Opcode.MARK, Opcode.CALL, Opcode.JUMP, Opcode.JUMP_ZERO, Opcode.JUMP_NEGATIVE}
)


def encode_number(value: int) -> List[Symbol]:
    """
    Encode an integer as a numeric field.

    Sign symbol first (MARK for negative), then the magnitude in binary with
    the most significant bit first, then BREAK. Zero has no magnitude bits.

    Args:
        value: Any integer

    Returns:
        The numeric field as a list of symbols
    """
    field = [Symbol.MARK if value < 0 else Symbol.BLANK]
    if value != 0:
        field.extend(Symbol.MARK if bit == "1" else Symbol.BLANK for bit in format(abs(value), "b"))
    field.append(Symbol.BREAK)
    return field


@dataclass(frozen=True)
class Instruction:
    opcode: Opcode
    argument: Optional[int] = None

    def __post_init__(self):
        if self.opcode.has_argument and self.argument is None:
            raise ValueError(f"{self.opcode.name} requires an argument")
        if not self.opcode.has_argument and self.argument is not None:
            raise ValueError(f"{self.opcode.name} takes no argument")

    @property
    def is_labeled(self) -> bool:
        return self.opcode in LABELED_OPCODES

    @property
    def wire(self) -> Tuple[Symbol, ...]:
        """Canonical symbol sequence of this instruction."""
        if self.opcode.has_argument:
            return self.opcode.symbols + tuple(encode_number(self.argument))
        return self.opcode.symbols

    def to_whitespace(self) -> str:
        return to_text(self.wire)

    def __str__(self) -> str:
        if self.opcode is Opcode.MARK:
            return f"{self.argument}:"
        if self.opcode.has_argument:
            return f"{self.opcode.mnemonic} {self.argument}"
        return self.opcode.mnemonic


def push(value: int) -> Instruction:
    return Instruction(Opcode.PUSH, value)


def mark(label_id: int) -> Instruction:
    return Instruction(Opcode.MARK, label_id)


def call(label_id: int) -> Instruction:
    return Instruction(Opcode.CALL, label_id)


def jump(label_id: int) -> Instruction:
    return Instruction(Opcode.JUMP, label_id)


def jump_zero(label_id: int) -> Instruction:
    return Instruction(Opcode.JUMP_ZERO, label_id)


def jump_negative(label_id: int) -> Instruction:
    return Instruction(Opcode.JUMP_NEGATIVE, label_id)


DUPLICATE = Instruction(Opcode.DUPLICATE)
SWAP = Instruction(Opcode.SWAP)
DISCARD = Instruction(Opcode.DISCARD)
ADD = Instruction(Opcode.ADD)
SUBTRACT = Instruction(Opcode.SUBTRACT)
MULTIPLY = Instruction(Opcode.MULTIPLY)
DIVIDE = Instruction(Opcode.DIVIDE)
MODULO = Instruction(Opcode.MODULO)
STORE = Instruction(Opcode.STORE)
RETRIEVE = Instruction(Opcode.RETRIEVE)
RETURN = Instruction(Opcode.RETURN)
HALT = Instruction(Opcode.HALT)
PRINT_CHAR = Instruction(Opcode.PRINT_CHAR)
PRINT_NUMBER = Instruction(Opcode.PRINT_NUMBER)
READ_CHAR = Instruction(Opcode.READ_CHAR)
READ_NUMBER = Instruction(Opcode.READ_NUMBER)
