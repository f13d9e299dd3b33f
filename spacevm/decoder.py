"""
Decode a symbol stream into a structured Program.

Dispatch walks a prefix trie built from the opcode table: the first symbol
picks the category, MARK categories are split by a second symbol, and the
remaining symbols select the instruction. Instructions that take an argument
are followed by a numeric field.

Instructions land in the top-level sequence until the first label mark; after
that they belong to the most recently marked label. Marks never appear inside
any body.
"""
from typing import Dict, List, Optional, Sequence, Tuple, Union

import structlog

from .core.instruction import Instruction, Opcode
from .core.program import Label, Program
from .core.symbols import Symbol, tokenize
from .errors import DecodeError

logger = structlog.get_logger()

TrieNode = Dict[Symbol, Union["TrieNode", Opcode]]


def build_opcode_trie() -> TrieNode:
    """Build the prefix trie mapping symbol paths to opcodes."""
    root: TrieNode = {}
    for opcode in Opcode:
        *path, last = opcode.symbols
        node = root
        for symbol in path:
            child = node.setdefault(symbol, {})
            if isinstance(child, Opcode):
                raise ValueError(f"{opcode.name} code shadows {child.name}")
            node = child
        if last in node:
            raise ValueError(f"{opcode.name} code collides with another opcode")
        node[last] = opcode
    return root


OPCODE_TRIE = build_opcode_trie()


def decode_number(symbols: Sequence[Symbol], pos: int) -> Tuple[int, int]:
    """
    Decode a numeric field starting at pos.

    Args:
        symbols: The full symbol stream
        pos: Offset of the sign symbol

    Returns:
        Tuple (value, offset just past the terminating BREAK)

    Raises:
        DecodeError: If the field has no sign or the stream ends before BREAK
    """
    if pos >= len(symbols):
        raise DecodeError("stream ended before numeric field", pos)
    sign_symbol = symbols[pos]
    if sign_symbol is Symbol.BREAK:
        raise DecodeError("numeric field has no sign", pos)
    sign = -1 if sign_symbol is Symbol.MARK else 1
    pos += 1

    magnitude = 0
    while True:
        if pos >= len(symbols):
            raise DecodeError("numeric field is not terminated", pos)
        symbol = symbols[pos]
        pos += 1
        if symbol is Symbol.BREAK:
            break
        magnitude = (magnitude << 1) | (1 if symbol is Symbol.MARK else 0)

    # A negative sign with no magnitude bits still reads as 0
    return sign * magnitude, pos


def decode_instruction(symbols: Sequence[Symbol], pos: int) -> Tuple[Instruction, int]:
    """
    Decode one instruction starting at pos.

    Returns:
        Tuple (instruction, offset of the next instruction)
    """
    start = pos
    node: Union[TrieNode, Opcode] = OPCODE_TRIE
    while not isinstance(node, Opcode):
        if pos >= len(symbols):
            raise DecodeError("stream ended inside an instruction", pos)
        symbol = symbols[pos]
        if symbol not in node:
            prefix = "".join(s.visible for s in symbols[start:pos + 1])
            raise DecodeError(f"unknown instruction {prefix}", start)
        node = node[symbol]
        pos += 1

    opcode = node
    if opcode.has_argument:
        argument, pos = decode_number(symbols, pos)
        return Instruction(opcode, argument), pos
    return Instruction(opcode), pos


def decode(symbols: Sequence[Symbol]) -> Program:
    """
    Decode a complete symbol stream.

    Raises:
        DecodeError: On an unknown instruction, a truncated stream, or a
            label id that is marked twice
    """
    instructions: List[Instruction] = []
    bodies: Dict[int, List[Instruction]] = {}
    active: Optional[List[Instruction]] = None

    pos = 0
    while pos < len(symbols):
        start = pos
        instr, pos = decode_instruction(symbols, pos)
        if instr.opcode is Opcode.MARK:
            if instr.argument in bodies:
                raise DecodeError(f"label {instr.argument} is marked more than once", start)
            active = bodies[instr.argument] = []
        elif active is not None:
            active.append(instr)
        else:
            instructions.append(instr)

    program = Program(
        tuple(instructions),
        {label_id: Label(label_id, tuple(body)) for label_id, body in bodies.items()},
    )
    logger.debug(
        "Decoded program",
        symbols=len(symbols),
        instructions=len(program.instructions),
        labels=len(program.labels),
    )
    return program


def decode_text(text: str) -> Program:
    """Tokenize source text and decode it."""
    return decode(tokenize(text))
