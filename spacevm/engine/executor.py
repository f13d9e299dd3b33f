"""
Execution engine.

Every transfer of control to a label (call, jump or a taken conditional
branch) runs that label's body as a nested invocation. Return leaves one
invocation, falling off the end of a body does the same, and Halt ends the
whole run. Invocations live on an explicit frame stack so jump-based loops
grow a Python list instead of the interpreter's call stack.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

import structlog

from ..config import ExecutionConfig
from ..core.instruction import Instruction, Opcode
from ..core.program import Program
from ..errors import (
    ArithmeticFault,
    CallDepthExceeded,
    EndOfInput,
    InvalidCharacter,
    InvalidNumericInput,
    StackUnderflow,
    UnboundAddress,
    UndefinedLabel,
)
from ..utils.int_ops import int_add, int_div, int_mod, int_mul, int_sub
from .io import first_token, read_line

logger = structlog.get_logger()

NUMBER_PATTERN = re.compile(r"[+-]?\d+")

BINARY_OPS = {
    Opcode.ADD: int_add,
    Opcode.SUBTRACT: int_sub,
    Opcode.MULTIPLY: int_mul,
    Opcode.DIVIDE: int_div,
    Opcode.MODULO: int_mod,
}


class ExecutionStatus(Enum):
    HALTED = "halted"  # an end instruction ran
    FINISHED = "finished"  # the top-level sequence ran out or returned


@dataclass
class Frame:
    """One active body invocation: the body and the next position in it."""

    body: Tuple[Instruction, ...]
    index: int = 0


class ExecutionState:
    """Operand stack and heap for a single run."""

    def __init__(self):
        self.stack: List[int] = []
        self.heap: Dict[int, int] = {}

    def push(self, value: int):
        self.stack.append(value)

    def pop(self, instruction: Optional[Instruction] = None) -> int:
        if not self.stack:
            raise StackUnderflow("pop from an empty stack", instruction)
        return self.stack.pop()

    def store(self, address: int, value: int):
        self.heap[address] = value

    def retrieve(self, address: int, instruction: Optional[Instruction] = None) -> int:
        if address not in self.heap:
            raise UnboundAddress(f"address {address} is not stored in the heap", instruction)
        return self.heap[address]


@dataclass
class ExecutionResult:
    status: ExecutionStatus
    state: ExecutionState
    steps: int = 0
    max_depth: int = 0

    @property
    def halted(self) -> bool:
        return self.status is ExecutionStatus.HALTED

    @property
    def stack(self) -> List[int]:
        return self.state.stack

    @property
    def heap(self) -> Dict[int, int]:
        return self.state.heap


class Executor:
    """
    Runs a Program against injected reader/writer collaborators.

    Args:
        program: The decoded program
        reader: Object with readline(), used by readchar/readnum
        writer: Object with write(str), used by printchar/printnum
        config: Execution settings; defaults to ExecutionConfig()
    """

    def __init__(self, program: Program, reader, writer, config: Optional[ExecutionConfig] = None):
        self.program = program
        self.reader = reader
        self.writer = writer
        self.config = config or ExecutionConfig()
        self.state = ExecutionState()
        self.frames: List[Frame] = []
        self.steps = 0
        self.max_depth = 0

    @property
    def depth(self) -> int:
        """Number of active label invocations."""
        return max(len(self.frames) - 1, 0)

    def run(self) -> ExecutionResult:
        """Execute from the first top-level instruction with a fresh stack and heap."""
        self.state = ExecutionState()
        self.frames = [Frame(self.program.instructions)]
        self.steps = 0
        self.max_depth = 0
        logger.debug(
            "Executing program",
            instructions=len(self.program.instructions),
            labels=len(self.program.labels),
            max_call_depth=self.config.max_call_depth,
        )

        while self.frames:
            frame = self.frames[-1]
            if frame.index >= len(frame.body):
                # Falling off the end returns to the caller
                self.frames.pop()
                continue

            instr = frame.body[frame.index]
            frame.index += 1
            self.steps += 1

            if instr.opcode is Opcode.HALT:
                return self._finish(ExecutionStatus.HALTED)
            if instr.opcode is Opcode.RETURN:
                self.frames.pop()
                continue
            self.execute(instr)

        return self._finish(ExecutionStatus.FINISHED)

    def _finish(self, status: ExecutionStatus) -> ExecutionResult:
        self.frames = []
        logger.debug("Program finished", status=status.value, steps=self.steps, max_depth=self.max_depth)
        return ExecutionResult(status=status, state=self.state, steps=self.steps, max_depth=self.max_depth)

    def enter(self, label_id: int, instr: Instruction):
        """Start a nested invocation of a label body."""
        label = self.program.labels.get(label_id)
        if label is None:
            raise UndefinedLabel(f"label {label_id} does not exist", instr)
        limit = self.config.depth_limit
        if limit is not None and self.depth >= limit:
            raise CallDepthExceeded(f"more than {limit} nested label invocations", instr)
        self.frames.append(Frame(label.body))
        self.max_depth = max(self.max_depth, self.depth)

    def execute(self, instr: Instruction):
        """Execute one instruction other than return and end."""
        state = self.state
        opcode = instr.opcode

        # Stack manipulation
        if opcode is Opcode.PUSH:
            state.push(instr.argument)
        elif opcode is Opcode.DUPLICATE:
            value = state.pop(instr)
            state.push(value)
            state.push(value)
        elif opcode is Opcode.SWAP:
            first = state.pop(instr)
            second = state.pop(instr)
            state.push(first)
            state.push(second)
        elif opcode is Opcode.DISCARD:
            state.pop(instr)
        # Arithmetic
        elif opcode in BINARY_OPS:
            right = state.pop(instr)
            left = state.pop(instr)
            try:
                state.push(BINARY_OPS[opcode](left, right))
            except ZeroDivisionError as e:
                raise ArithmeticFault(str(e), instr) from e
        # Heap access
        elif opcode is Opcode.STORE:
            value = state.pop(instr)
            address = state.pop(instr)
            state.store(address, value)
        elif opcode is Opcode.RETRIEVE:
            address = state.pop(instr)
            state.push(state.retrieve(address, instr))
        # Flow control
        elif opcode is Opcode.CALL or opcode is Opcode.JUMP:
            self.enter(instr.argument, instr)
        elif opcode is Opcode.JUMP_ZERO:
            if state.pop(instr) == 0:
                self.enter(instr.argument, instr)
        elif opcode is Opcode.JUMP_NEGATIVE:
            if state.pop(instr) < 0:
                self.enter(instr.argument, instr)
        # I/O
        elif opcode is Opcode.PRINT_CHAR:
            value = state.pop(instr)
            try:
                char = chr(value)
            except (ValueError, OverflowError) as e:
                raise InvalidCharacter(f"{value} is not a character code", instr) from e
            self.writer.write(char)
        elif opcode is Opcode.PRINT_NUMBER:
            self.writer.write(str(state.pop(instr)))
        elif opcode is Opcode.READ_CHAR:
            address = state.pop(instr)
            line = self._read_line(instr)
            state.store(address, ord(line[0]) if line else ord("\n"))
        elif opcode is Opcode.READ_NUMBER:
            address = state.pop(instr)
            line = self._read_line(instr)
            token = first_token(line)
            if token is None or not NUMBER_PATTERN.fullmatch(token):
                raise InvalidNumericInput(f"expected a number, got {line!r}", instr)
            state.store(address, int(token))
        else:
            # Marks never reach a body; anything else is a new opcode without a handler
            raise ValueError(f"Cannot execute {opcode.name}")

    def _read_line(self, instr: Instruction) -> str:
        flush = getattr(self.writer, "flush", None)
        if flush is not None:
            flush()
        line = read_line(self.reader)
        if line is None:
            raise EndOfInput("input is exhausted", instr)
        return line


def evaluate(program: Program, reader, writer, config: Optional[ExecutionConfig] = None) -> ExecutionResult:
    """Run a program with a fresh stack and heap and report how it ended."""
    return Executor(program, reader, writer, config).run()
