from __future__ import annotations

from typing import List, Optional, Union

from .instructions import Instruction, Instructions, MovePointer, MoveValue

_Move = Union[MovePointer, MoveValue]


def optimize(instructions: Instructions) -> Instructions:
    """Collapse runs of same-direction pointer or value moves.

    ``>>>`` becomes ``MovePointer(3)`` and ``---`` becomes ``MoveValue(-3)``.
    A run never absorbs a move in the opposite direction: ``<>`` at cell 0
    must still fail with a cell bounds error, so only moves that agree in
    sign are merged. Every other instruction is copied unchanged and keeps
    its relative order.
    """
    merged: List[Instruction] = []
    pending: Optional[_Move] = None

    for instruction in instructions:
        if pending is not None and _can_merge(pending, instruction):
            pending = type(pending)(pending.delta + instruction.delta)  # type: ignore[union-attr]
            continue
        if pending is not None:
            merged.append(pending)
            pending = None
        if isinstance(instruction, (MovePointer, MoveValue)):
            pending = instruction
        else:
            merged.append(instruction)

    if pending is not None:
        merged.append(pending)
    return Instructions(merged)


def _can_merge(pending: _Move, instruction: Instruction) -> bool:
    if type(instruction) is not type(pending):
        return False
    return (pending.delta > 0) == (instruction.delta > 0)  # type: ignore[union-attr]


__all__ = ["optimize"]
