from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .errors import (
    BFError,
    CellBoundsError,
    InstructionBoundsError,
    InvalidInput,
    MissingClose,
    MissingOpen,
)
from .instructions import (
    CloseLoop,
    Input,
    Instruction,
    Instructions,
    MovePointer,
    MoveValue,
    OpenLoop,
    Output,
)

logger = logging.getLogger(__name__)

InputProvider = Callable[[], str]
OutputConsumer = Callable[[str], None]

CELL_MODULUS = 256


@dataclass
class Program:
    """Execution engine for an :class:`Instructions` sequence.

    All machine state lives on the instance: the instruction cursor, a tape of
    byte cells that grows to the right on demand, the tape cursor and the
    stack of positions of currently entered loops. I/O goes through the
    callbacks handed to :meth:`step` and :meth:`execute`, so the engine itself
    never touches a terminal.

    >>> out = []
    >>> Program.from_string("+" * 65 + ".").execute(lambda: "\\0", out.append)
    >>> out
    ['A']
    """

    instructions: Instructions

    instruction_cursor: int = field(init=False)
    tape: bytearray = field(init=False, repr=False)
    tape_cursor: int = field(init=False)
    loop_stack: List[int] = field(init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.instructions, Instructions):
            self.instructions = Instructions(self.instructions)
        self.reset()

    @classmethod
    def from_string(cls, commands: str) -> "Program":
        return cls(Instructions.from_string(commands))

    def reset(self) -> None:
        self.instruction_cursor = 0
        self.tape = bytearray()
        self.tape_cursor = 0
        self.loop_stack = []

    @property
    def current_instruction(self) -> Optional[Instruction]:
        if self.instruction_cursor >= len(self.instructions):
            return None
        return self.instructions[self.instruction_cursor]

    @property
    def current_cell(self) -> int:
        if self.tape_cursor < len(self.tape):
            return self.tape[self.tape_cursor]
        return 0

    @property
    def loop_depth(self) -> int:
        return len(self.loop_stack)

    def done(self) -> bool:
        """Return True once every instruction ran and no loop is left open.

        Raises :class:`MissingClose` when the end of the sequence was reached
        from inside a loop body whose closing bracket does not exist.
        """
        if self.instruction_cursor < len(self.instructions):
            return False
        if self.loop_stack:
            raise MissingClose(position=self.loop_stack[-1])
        return True

    def execute(self, input_provider: InputProvider, output_consumer: OutputConsumer) -> None:
        try:
            while not self.done():
                self.step(input_provider, output_consumer)
        except BFError as exc:
            logger.debug("Execution stopped: %s", exc)
            raise

    def step(self, input_provider: InputProvider, output_consumer: OutputConsumer) -> None:
        # The current cell must be addressable before any instruction runs.
        self._grow_tape()

        if self.instruction_cursor >= len(self.instructions):
            raise InstructionBoundsError(
                "The program may already have finished.",
                position=self.instruction_cursor,
            )

        instruction = self.instructions[self.instruction_cursor]
        self.instruction_cursor = self._execute_instruction(
            instruction, input_provider, output_consumer
        )

    def _execute_instruction(
        self,
        instruction: Instruction,
        input_provider: InputProvider,
        output_consumer: OutputConsumer,
    ) -> int:
        pc = self.instruction_cursor
        new_pc = pc + 1
        if isinstance(instruction, MovePointer):
            self._move_pointer(instruction.delta)
        elif isinstance(instruction, MoveValue):
            self.tape[self.tape_cursor] = (self.tape[self.tape_cursor] + instruction.delta) % CELL_MODULUS
        elif isinstance(instruction, Output):
            output_consumer(chr(self.tape[self.tape_cursor]))
        elif isinstance(instruction, Input):
            self.tape[self.tape_cursor] = self._read_input(input_provider)
        elif isinstance(instruction, OpenLoop):
            if self.tape[self.tape_cursor] != 0:
                self.loop_stack.append(pc)
            else:
                new_pc = self._find_matching_close(pc) + 1
        elif isinstance(instruction, CloseLoop):
            if not self.loop_stack:
                raise MissingOpen(position=pc)
            # Land back on the opening bracket so its guard is re-evaluated.
            new_pc = self.loop_stack.pop()
        return new_pc

    def _grow_tape(self) -> None:
        missing = self.tape_cursor + 1 - len(self.tape)
        if missing > 0:
            self.tape.extend(bytes(missing))

    def _move_pointer(self, delta: int) -> None:
        target = self.tape_cursor + delta
        if target < 0:
            raise CellBoundsError(
                f"Pointer would move to cell {target}.",
                position=self.instruction_cursor,
            )
        self.tape_cursor = target

    def _read_input(self, input_provider: InputProvider) -> int:
        char = input_provider()
        if not isinstance(char, str) or len(char) != 1:
            raise InvalidInput(
                f"Expected a single character, got {char!r}.",
                position=self.instruction_cursor,
            )
        code_point = ord(char)
        if code_point >= CELL_MODULUS:
            raise InvalidInput(
                f"Character U+{code_point:04X} does not fit in one byte.",
                position=self.instruction_cursor,
            )
        return code_point

    def _find_matching_close(self, open_index: int) -> int:
        depth = 0
        for index in range(open_index + 1, len(self.instructions)):
            instruction = self.instructions[index]
            if isinstance(instruction, OpenLoop):
                depth += 1
            elif isinstance(instruction, CloseLoop):
                if depth == 0:
                    return index
                depth -= 1
        raise MissingClose(position=open_index)


__all__ = [
    "CELL_MODULUS",
    "InputProvider",
    "OutputConsumer",
    "Program",
]
