from __future__ import annotations

import argparse
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .console import StringInput
from .errors import BFError
from .instructions import Instructions
from .optimizer import optimize as optimize_instructions
from .program import Program


class StepLimitExceeded(RuntimeError):
    """Raised when a session exceeds its configured step budget."""


@dataclass
class ExecutionState:
    step: int
    pc: int
    command: Optional[str]
    pointer: int
    tape_start: int
    tape: List[int]
    output: str
    code_length: int
    loop_depth: int
    remaining_input: str


@dataclass
class VisualizerSession:
    code: str
    input_template: str = ""
    tape_window: int = 10
    max_steps: Optional[int] = None
    history_limit: int = 200
    optimize: bool = False

    def __post_init__(self) -> None:
        instructions = Instructions.from_string(self.code)
        if self.optimize:
            instructions = optimize_instructions(instructions)
        self.program = Program(instructions)
        self.input_feed = StringInput(self.input_template)
        self.breakpoints: set[int] = set()
        self.history: List[ExecutionState] = []
        self.hit_breakpoint: Optional[int] = None
        self._reset_run()

    @property
    def instructions(self) -> Instructions:
        return self.program.instructions

    @property
    def code_text(self) -> str:
        """Source rendered with one character per instruction, so ``code_text[pc]``
        is the command at ``pc`` even when moves were merged."""
        return "".join(str(instruction)[:1] for instruction in self.instructions)

    def _reset_run(self) -> None:
        self.program.reset()
        self.input_feed.rewind()
        self.output_buffer: List[str] = []
        self.steps = 0
        self.finished = False
        self.error: Optional[BFError] = None
        self.last_state: ExecutionState = self._snapshot(None)
        self._record_state(self.last_state)

    def restart(self) -> None:
        self.history.clear()
        self.hit_breakpoint = None
        self._reset_run()

    def _snapshot(self, command: Optional[str]) -> ExecutionState:
        program = self.program
        pointer = program.tape_cursor
        start = max(0, pointer - self.tape_window)
        end = pointer + self.tape_window + 1
        tape_view = list(program.tape[start:end])
        # Cells right of the grown tape read as zero.
        tape_view.extend([0] * (min(end, pointer + 1) - start - len(tape_view)))
        return ExecutionState(
            step=self.steps,
            pc=program.instruction_cursor,
            command=command,
            pointer=pointer,
            tape_start=start,
            tape=tape_view,
            output="".join(self.output_buffer),
            code_length=len(program.instructions),
            loop_depth=program.loop_depth,
            remaining_input=self.input_feed.remaining,
        )

    def _record_state(self, state: ExecutionState) -> None:
        self.history.append(state)
        if len(self.history) > self.history_limit:
            self.history.pop(0)
        self.last_state = state

    def _advance(self) -> ExecutionState:
        if self.max_steps is not None and self.steps >= self.max_steps:
            self.finished = True
            raise StepLimitExceeded("BF program exceeded allowed step count")
        instruction = self.program.current_instruction
        self.program.step(self.input_feed, self.output_buffer.append)
        self.steps += 1
        state = self._snapshot(str(instruction))
        self._record_state(state)
        return state

    def step_forward(self, count: int = 1) -> Sequence[ExecutionState]:
        states: List[ExecutionState] = []
        if count <= 0:
            return states
        self.hit_breakpoint = None
        for _ in range(count):
            if self.finished:
                break
            try:
                if self.program.done():
                    self.finished = True
                    break
                state = self._advance()
                states.append(state)
                self.finished = self.program.done()
            except BFError as exc:
                self.finished = True
                self.error = exc
                raise
            if self.finished:
                break
            if state.pc in self.breakpoints:
                self.hit_breakpoint = state.pc
                break
        return states

    def run_until_break(self, limit: Optional[int] = None) -> Sequence[ExecutionState]:
        states: List[ExecutionState] = []
        executed = 0
        while limit is None or executed < limit:
            step_states = self.step_forward(1)
            if not step_states:
                break
            states.extend(step_states)
            executed += 1
            if self.hit_breakpoint is not None:
                break
        return states

    def current_state(self) -> ExecutionState:
        return self.last_state

    def add_breakpoint(self, pc: int) -> None:
        self.breakpoints.add(pc)

    def remove_breakpoint(self, pc: int) -> bool:
        if pc in self.breakpoints:
            self.breakpoints.remove(pc)
            return True
        return False

    def clear_breakpoints(self) -> None:
        self.breakpoints.clear()

    def list_breakpoints(self) -> List[int]:
        return sorted(self.breakpoints)

    def is_finished(self) -> bool:
        return self.finished


def format_state(state: ExecutionState, code: str) -> str:
    lines: List[str] = []
    cmd_display = state.command if state.command is not None else "(init)"
    lines.append(
        f"step={state.step} pc={state.pc}/{state.code_length} command={cmd_display!r} "
        f"pointer={state.pointer} depth={state.loop_depth}"
    )
    if state.output:
        lines.append(f"output={state.output!r}")
    if state.remaining_input:
        lines.append(f"input={state.remaining_input!r}")
    tape_parts: List[str] = []
    for idx, value in enumerate(state.tape):
        absolute = state.tape_start + idx
        cell_repr = f"{absolute}:{value:03}"
        if absolute == state.pointer:
            tape_parts.append(f"[{cell_repr}]")
        else:
            tape_parts.append(f" {cell_repr} ")
    lines.append("tape=" + " ".join(tape_parts))
    lines.append(f"code={_format_code_window(code, state.pc)}")
    return "\n".join(lines)


def _format_code_window(code: str, pc: int, window: int = 16) -> str:
    if not code:
        return "(empty)"
    start = max(0, pc - window)
    end = min(len(code), pc + window + 1)
    pieces: List[str] = []
    for index in range(start, end):
        ch = code[index]
        if index == pc:
            pieces.append(f"[{ch}]")
        else:
            pieces.append(ch)
    if pc >= len(code):
        pieces.append("[END]")
    return "".join(pieces)


def run_repl(session: VisualizerSession) -> None:
    code = session.code_text
    print("minibf visualizer (type 'help' for commands)")
    _print_state(session.current_state(), code)
    while True:
        try:
            line = input("(viz) ").strip()
        except EOFError:
            print()
            break
        if not line:
            continue
        parts = shlex.split(line)
        command = parts[0].lower()
        args = parts[1:]
        try:
            if command in {"n", "next"}:
                count = max(1, int(args[0])) if args else 1
                states = session.step_forward(count)
                if states:
                    _print_state(states[-1], code)
                elif session.is_finished():
                    print("Program has finished.")
            elif command in {"r", "run"}:
                limit = int(args[0]) if args else None
                states = session.run_until_break(limit)
                if states:
                    _print_state(states[-1], code)
                    if session.hit_breakpoint is not None:
                        print(f"Hit breakpoint {session.hit_breakpoint}.")
                        session.hit_breakpoint = None
                elif session.is_finished():
                    print("Program finished.")
            elif command == "state":
                _print_state(session.current_state(), code)
            elif command == "history":
                count = int(args[0]) if args else 10
                for state in session.history[-count:]:
                    _print_state(state, code)
            elif command == "break":
                if not args:
                    print("Specify an instruction index.")
                    continue
                pc = int(args[0])
                session.add_breakpoint(pc)
                print(f"Breakpoint set at {pc}.")
            elif command == "breaks":
                points = session.list_breakpoints()
                if not points:
                    print("No breakpoints.")
                else:
                    print("Breakpoints:", ", ".join(map(str, points)))
            elif command == "clear":
                if not args:
                    session.clear_breakpoints()
                    print("Cleared all breakpoints.")
                elif session.remove_breakpoint(int(args[0])):
                    print(f"Removed breakpoint {args[0]}.")
                else:
                    print(f"No breakpoint at {args[0]}.")
            elif command == "restart":
                session.restart()
                print("Session restarted.")
                _print_state(session.current_state(), code)
            elif command in {"quit", "exit"}:
                break
            elif command == "help":
                _print_help()
            else:
                print("Unknown command, see 'help'.")
        except ValueError:
            print("Invalid number.", file=sys.stderr)
        except StepLimitExceeded as exc:
            print(str(exc), file=sys.stderr)
        except BFError as exc:
            print(f"Error: {exc}", file=sys.stderr)


def _print_state(state: ExecutionState, code: str) -> None:
    print("-" * 40)
    print(format_state(state, code))


def _print_help() -> None:
    print(
        "Commands:\n"
        "  next [N]    : execute N instructions (default 1)\n"
        "  run [N]     : run until a breakpoint, the end, or N instructions\n"
        "  state       : show the current state\n"
        "  history [N] : show the last N states\n"
        "  break PC    : set a breakpoint at instruction PC\n"
        "  breaks      : list breakpoints\n"
        "  clear [PC]  : remove a breakpoint (all when PC is omitted)\n"
        "  restart     : reset the machine\n"
        "  quit/exit   : leave\n"
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="minibf visualizer")
    parser.add_argument("source", help="Path to a BF source file")
    parser.add_argument("--input", default="", help="Input string fed to the program")
    parser.add_argument(
        "--max-steps",
        type=int,
        default=5_000_000,
        help="Step budget (default: 5,000,000)",
    )
    parser.add_argument("--tape-window", type=int, default=10, help="Cells shown on each side")
    parser.add_argument("--history-limit", type=int, default=200, help="States kept in history")
    parser.add_argument("-O", "--optimize", action="store_true", help="Merge runs of moves")
    args = parser.parse_args(argv)

    try:
        source_text = Path(args.source).read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Cannot open file: {exc}", file=sys.stderr)
        return 1

    session = VisualizerSession(
        source_text,
        input_template=args.input,
        tape_window=args.tape_window,
        max_steps=args.max_steps,
        history_limit=args.history_limit,
        optimize=args.optimize,
    )
    run_repl(session)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
