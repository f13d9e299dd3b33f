"""
Interpreter for the stack language written in spaces, tabs and linefeeds.
"""

__version__ = "0.1.0"

# Wire format and instruction model
from .core.symbols import Symbol, tokenize, read_source, to_text, to_visible
from .core.instruction import Instruction, Opcode, encode_number
from .core.program import Label, Program

# Decoding and execution
from .decoder import decode, decode_number, decode_text
from .engine.executor import ExecutionResult, ExecutionStatus, Executor, evaluate
from .engine.io import BufferWriter, LineReader

# Utilities
from .builder import ProgramBuilder, build_program
from .config import ExecutionConfig, LoggingConfig
from .logging_config import configure_default_logging, configure_logging
from .errors import (
    SpaceError,
    DecodeError,
    ExecutionError,
    StackUnderflow,
    UnboundAddress,
    UndefinedLabel,
    InvalidNumericInput,
    ArithmeticFault,
    EndOfInput,
    InvalidCharacter,
    CallDepthExceeded,
)


__all__ = [
    # Wire format
    "Symbol",
    "tokenize",
    "read_source",
    "to_text",
    "to_visible",
    "Instruction",
    "Opcode",
    "encode_number",
    "Label",
    "Program",
    # Decoding and execution
    "decode",
    "decode_number",
    "decode_text",
    "ExecutionResult",
    "ExecutionStatus",
    "Executor",
    "evaluate",
    "BufferWriter",
    "LineReader",
    # Utilities
    "ProgramBuilder",
    "build_program",
    "ExecutionConfig",
    "LoggingConfig",
    "configure_logging",
    # Errors
    "SpaceError",
    "DecodeError",
    "ExecutionError",
    "StackUnderflow",
    "UnboundAddress",
    "UndefinedLabel",
    "InvalidNumericInput",
    "ArithmeticFault",
    "EndOfInput",
    "InvalidCharacter",
    "CallDepthExceeded",
]

configure_default_logging()
