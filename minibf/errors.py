from __future__ import annotations

from enum import Enum
from typing import Optional


class BFErrorKind(str, Enum):
    MISSING_OPEN = "MissingOpen"
    MISSING_CLOSE = "MissingClose"
    INVALID_INPUT = "InvalidInput"
    CELL_BOUNDS = "CellBoundsError"
    INSTRUCTION_BOUNDS = "InstructionBoundsError"


_MESSAGES = {
    BFErrorKind.MISSING_OPEN: "The program has a close bracket with no open bracket.",
    BFErrorKind.MISSING_CLOSE: "The program has an open bracket with no close bracket.",
    BFErrorKind.INVALID_INPUT: "An invalid value was passed to BF input.",
    BFErrorKind.CELL_BOUNDS: "Tried to access cell out of bounds.",
    BFErrorKind.INSTRUCTION_BOUNDS: "Tried to process instruction out of bounds.",
}


class BFError(Exception):
    """Base class for every error the execution engine can raise.

    ``kind`` identifies which of the five failure classes occurred and
    ``position`` is the instruction cursor at the time of failure, when known.
    """

    kind: BFErrorKind

    def __init__(self, detail: Optional[str] = None, *, position: Optional[int] = None) -> None:
        self.detail = detail
        self.position = position
        super().__init__(self.message)

    @property
    def message(self) -> str:
        text = _MESSAGES[self.kind]
        if self.detail:
            text = f"{text} {self.detail}"
        if self.position is not None:
            text = f"{text} (instruction {self.position})"
        return text


class MissingOpen(BFError):
    kind = BFErrorKind.MISSING_OPEN


class MissingClose(BFError):
    kind = BFErrorKind.MISSING_CLOSE


class InvalidInput(BFError):
    kind = BFErrorKind.INVALID_INPUT


class CellBoundsError(BFError):
    kind = BFErrorKind.CELL_BOUNDS


class InstructionBoundsError(BFError):
    kind = BFErrorKind.INSTRUCTION_BOUNDS


__all__ = [
    "BFError",
    "BFErrorKind",
    "CellBoundsError",
    "InstructionBoundsError",
    "InvalidInput",
    "MissingClose",
    "MissingOpen",
]
