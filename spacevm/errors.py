"""Error types raised while decoding and executing programs."""
from typing import Optional


class SpaceError(Exception):
    """Base class for every error raised by spacevm."""


class DecodeError(SpaceError):
    """The symbol stream does not form a valid program."""

    def __init__(self, message: str, offset: Optional[int] = None):
        where = f" at symbol {offset}" if offset is not None else ""
        super().__init__(f"Decode error{where}: {message}")
        self.offset = offset


class ExecutionError(SpaceError):
    """A program failed while running.

    Args:
        message: Human readable description of the fault
        instruction: The instruction being executed when the fault happened
    """

    def __init__(self, message: str, instruction=None):
        op_str = f" at '{instruction}'" if instruction is not None else ""
        super().__init__(f"Execution error{op_str}: {message}")
        self.instruction = instruction


class StackUnderflow(ExecutionError):
    pass


class UnboundAddress(ExecutionError):
    pass


class UndefinedLabel(ExecutionError):
    pass


class InvalidNumericInput(ExecutionError):
    pass


class ArithmeticFault(ExecutionError):
    pass


class EndOfInput(ExecutionError):
    """The reader ran out of lines during a read instruction."""


class InvalidCharacter(ExecutionError):
    """PrintChar was asked to write a value that is not a code point."""


class CallDepthExceeded(ExecutionError):
    """Too many nested label invocations are active at once."""
