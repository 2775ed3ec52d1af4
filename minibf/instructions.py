from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Iterable, Iterator, Sequence, Tuple, Union, overload


class Instruction:
    symbol: ClassVar[str] = ""

    def __str__(self) -> str:
        return self.symbol


@dataclass(frozen=True)
class MovePointer(Instruction):
    """Shift the tape cursor by ``delta`` cells."""

    delta: int

    def __str__(self) -> str:
        return (">" if self.delta > 0 else "<") * abs(self.delta)


@dataclass(frozen=True)
class MoveValue(Instruction):
    """Add ``delta`` to the current cell (wrapping modulo 256)."""

    delta: int

    def __str__(self) -> str:
        return ("+" if self.delta > 0 else "-") * abs(self.delta)


@dataclass(frozen=True)
class Output(Instruction):
    symbol: ClassVar[str] = "."


@dataclass(frozen=True)
class Input(Instruction):
    symbol: ClassVar[str] = ","


@dataclass(frozen=True)
class OpenLoop(Instruction):
    symbol: ClassVar[str] = "["


@dataclass(frozen=True)
class CloseLoop(Instruction):
    symbol: ClassVar[str] = "]"


COMMANDS: Dict[str, Instruction] = {
    ">": MovePointer(1),
    "<": MovePointer(-1),
    "+": MoveValue(1),
    "-": MoveValue(-1),
    ".": Output(),
    ",": Input(),
    "[": OpenLoop(),
    "]": CloseLoop(),
}


class Instructions(Sequence[Instruction]):
    """Immutable, ordered sequence of instructions fed to a :class:`Program`.

    Anything that is not one of the eight command characters is a comment and
    is dropped by :meth:`from_string`; parsing never fails.

    >>> len(Instructions.from_string("+ add one, then print it: ."))
    3
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Instruction] = ()) -> None:
        self._items: Tuple[Instruction, ...] = tuple(items)

    @classmethod
    def from_string(cls, commands: str) -> "Instructions":
        return cls(COMMANDS[char] for char in commands if char in COMMANDS)

    @overload
    def __getitem__(self, index: int) -> Instruction: ...

    @overload
    def __getitem__(self, index: slice) -> "Instructions": ...

    def __getitem__(self, index: Union[int, slice]) -> Union[Instruction, "Instructions"]:
        if isinstance(index, slice):
            return Instructions(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Instructions):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"Instructions({list(self._items)!r})"

    def __str__(self) -> str:
        return "".join(str(instruction) for instruction in self._items)


__all__ = [
    "COMMANDS",
    "CloseLoop",
    "Input",
    "Instruction",
    "Instructions",
    "MovePointer",
    "MoveValue",
    "OpenLoop",
    "Output",
]
