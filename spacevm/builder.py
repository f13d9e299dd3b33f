"""
Programmatic construction of programs.

    builder = ProgramBuilder()
    builder.push(0, 33, 100)
    builder.emit(call(0))
    with builder.label(0) as body:
        body.emit(DUPLICATE, jump_zero(1), PRINT_CHAR, jump(0))
    program = builder.build()
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Union

from .core.instruction import Instruction, Opcode, push
from .core.program import Label, Program


class BodyBuilder:
    """Shared emit/push for anything that collects a sequence of instructions."""

    def __init__(self):
        self.instructions: List[Instruction] = []

    def emit(self, *instructions: Instruction) -> "BodyBuilder":
        for instr in instructions:
            if instr.opcode is Opcode.MARK:
                raise ValueError("Use ProgramBuilder.label() to open a label")
            self.instructions.append(instr)
        return self

    def push(self, *values: int) -> "BodyBuilder":
        return self.emit(*(push(value) for value in values))


class LabelBuilder(BodyBuilder):
    """Collects the body of one label."""

    def __init__(self, label_id: int):
        super().__init__()
        self.label_id = label_id

    def build(self) -> Label:
        return Label(self.label_id, tuple(self.instructions))


class ProgramBuilder(BodyBuilder):
    """Collects top-level instructions and labels, in order."""

    def __init__(self):
        super().__init__()
        self.labels: Dict[int, Label] = {}

    @classmethod
    def from_program(cls, program: Program) -> "ProgramBuilder":
        builder = cls()
        builder.emit(*program.instructions)
        builder.labels.update(program.labels)
        return builder

    @contextmanager
    def label(self, label_id: int) -> Iterator[LabelBuilder]:
        """Open a label; its body is whatever is emitted inside the block."""
        if label_id in self.labels:
            raise ValueError(f"Label {label_id} is already defined")
        body = LabelBuilder(label_id)
        yield body
        if label_id in self.labels:
            raise ValueError(f"Label {label_id} is already defined")
        self.labels[label_id] = body.build()

    def build(self) -> Program:
        return Program(tuple(self.instructions), dict(self.labels))

    def export(self, path: Union[str, Path]) -> Path:
        """Write the program's whitespace encoding to a file and return its path."""
        path = Path(path)
        path.write_text(self.build().to_whitespace(), encoding="utf-8")
        return path


def build_program(block: Callable[[ProgramBuilder], None]) -> Program:
    builder = ProgramBuilder()
    block(builder)
    return builder.build()
