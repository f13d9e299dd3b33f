"""
Structured program: top-level instructions plus label bodies.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from .instruction import Instruction, Opcode, mark
from .symbols import Symbol, to_text


@dataclass(frozen=True)
class Label:
    """A jump target that is also a callable body."""

    id: int
    body: Tuple[Instruction, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "body", tuple(self.body))
        for instr in self.body:
            if instr.opcode is Opcode.MARK:
                raise ValueError(f"Label {self.id} body cannot contain a label mark")

    @property
    def marker(self) -> Instruction:
        return mark(self.id)

    def encode(self) -> List[Symbol]:
        symbols = list(self.marker.wire)
        for instr in self.body:
            symbols.extend(instr.wire)
        return symbols

    def __str__(self) -> str:
        lines = [f"label {self.id}:"]
        lines.extend(f"\t{instr}" for instr in self.body)
        return "\n".join(lines)


@dataclass(frozen=True)
class Program:
    """
    Immutable decoded program.

    Labels are kept in the order they were marked; that order is also the
    order they are serialized in.
    """

    instructions: Tuple[Instruction, ...] = ()
    labels: Mapping[int, Label] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "instructions", tuple(self.instructions))
        for instr in self.instructions:
            if instr.opcode is Opcode.MARK:
                raise ValueError("Top-level instructions cannot contain a label mark")
        labels: Dict[int, Label] = {}
        for key, label in self.labels.items():
            if key != label.id:
                raise ValueError(f"Label stored under id {key} is label {label.id}")
            labels[key] = label
        object.__setattr__(self, "labels", MappingProxyType(labels))

    @classmethod
    def from_labels(cls, instructions: Iterable[Instruction], labels: Iterable[Label]) -> "Program":
        """Build a program from a label sequence, rejecting duplicate ids."""
        by_id: Dict[int, Label] = {}
        for label in labels:
            if label.id in by_id:
                raise ValueError(f"Duplicate label id {label.id}")
            by_id[label.id] = label
        return cls(tuple(instructions), by_id)

    def encode(self) -> List[Symbol]:
        """Serialize to symbols: top level first, then each label with its body."""
        symbols: List[Symbol] = []
        for instr in self.instructions:
            symbols.extend(instr.wire)
        for label in self.labels.values():
            symbols.extend(label.encode())
        return symbols

    def to_whitespace(self) -> str:
        return to_text(self.encode())

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data listing used by the JSON and YAML exporters."""
        return {
            "instructions": [str(instr) for instr in self.instructions],
            "labels": [
                {"id": label.id, "body": [str(instr) for instr in label.body]}
                for label in self.labels.values()
            ],
        }

    def __eq__(self, other):
        if not isinstance(other, Program):
            return NotImplemented
        return (
            self.instructions == other.instructions
            and list(self.labels.items()) == list(other.labels.items())
        )

    def __hash__(self):
        return hash((self.instructions, tuple(self.labels.items())))

    def __str__(self) -> str:
        lines = [str(instr) for instr in self.instructions]
        lines.extend(str(label) for label in self.labels.values())
        return "\n".join(lines)
