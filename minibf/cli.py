from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from .console import ConsoleInput, ConsoleOutput, StringInput, discard_input, discard_output
from .errors import BFError
from .instructions import Instructions
from .optimizer import optimize
from .program import InputProvider, OutputConsumer, Program

logger = logging.getLogger(__name__)


def _read_source(path: str) -> str:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_text(encoding="utf-8")


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="minibf interpreter")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-p", "--program", metavar="FILE", help="BF file to interpret")
    source.add_argument("-c", "--code", metavar="CODE", help="Raw BF string to interpret")
    parser.add_argument(
        "-n",
        "--repeat",
        type=_positive_int,
        default=1,
        help="Run the program N times and report timings (default: 1)",
    )
    parser.add_argument(
        "--no-io",
        action="store_true",
        help="Discard output and feed NUL as input (for benchmarking)",
    )
    parser.add_argument(
        "-O",
        "--optimize",
        action="store_true",
        help="Merge runs of identical moves before execution",
    )
    parser.add_argument(
        "--input",
        default=None,
        help="Preset input string instead of reading from the console",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.program is not None:
        try:
            source_text = _read_source(args.program)
        except (OSError, UnicodeDecodeError) as exc:
            print(f"Error reading from file: {exc}", file=sys.stderr)
            return 1
    else:
        source_text = args.code

    instructions = Instructions.from_string(source_text)
    if args.optimize:
        optimized = optimize(instructions)
        logger.debug("Optimized %d instructions down to %d", len(instructions), len(optimized))
        instructions = optimized
    program = Program(instructions)

    output_consumer: OutputConsumer
    if args.no_io:
        output_consumer = discard_output
    else:
        output_consumer = ConsoleOutput()

    timings: list[float] = []
    for run in range(args.repeat):
        input_provider: InputProvider
        if args.no_io:
            input_provider = discard_input
        elif args.input is not None:
            input_provider = StringInput(args.input)
        else:
            input_provider = ConsoleInput()

        program.reset()
        started = time.perf_counter()
        try:
            program.execute(input_provider, output_consumer)
        except BFError as exc:
            print(f"\n{exc}", file=sys.stderr)
            return 1
        elapsed = time.perf_counter() - started
        timings.append(elapsed)

    print("\nProgram finished.")
    if args.repeat > 1:
        for run, elapsed in enumerate(timings, start=1):
            print(f"run {run}: {elapsed:.6f}s")
        total = sum(timings)
        print(
            f"{args.repeat} runs in {total:.6f}s "
            f"(mean {total / args.repeat:.6f}s, best {min(timings):.6f}s)"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
