import unittest
from typing import List

from minibf import (
    BFErrorKind,
    CellBoundsError,
    InstructionBoundsError,
    Instructions,
    InvalidInput,
    MissingClose,
    MissingOpen,
    MovePointer,
    MoveValue,
    Program,
)
from minibf.console import StringInput

HELLO_WORLD = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]>>.>---.+++++++..+++.>>.<-.<.+++."
    "------.--------.>>+.>++."
)


def _no_input() -> str:
    raise AssertionError("program should not read input")


class ProgramExecutionTests(unittest.TestCase):
    def run_program(self, code: str, data: str = "") -> str:
        output: List[str] = []
        Program.from_string(code).execute(StringInput(data), output.append)
        return "".join(output)

    def test_hello_world(self) -> None:
        self.assertEqual(self.run_program(HELLO_WORLD), "Hello World!\n")

    def test_hello_world_ignores_input_callback(self) -> None:
        output: List[str] = []
        Program.from_string(HELLO_WORLD).execute(lambda: " ", output.append)
        self.assertEqual("".join(output), "Hello World!\n")

    def test_copies_input_in_order(self) -> None:
        self.assertEqual(self.run_program(",>,<.>.", "AB"), "AB")

    def test_balanced_program_finishes(self) -> None:
        program = Program.from_string("++[>+++[>+<-]<-]>>.")
        output: List[str] = []
        program.execute(_no_input, output.append)
        self.assertTrue(program.done())
        self.assertEqual(output, [chr(6)])

    def test_empty_program_is_done(self) -> None:
        program = Program.from_string("no commands here")
        self.assertTrue(program.done())
        program.execute(_no_input, lambda c: None)
        self.assertEqual(program.tape, bytearray())

    def test_execute_on_finished_program_is_noop(self) -> None:
        program = Program.from_string("+")
        program.execute(_no_input, lambda c: None)
        program.execute(_no_input, lambda c: None)
        self.assertEqual(program.tape[0], 1)


class CellArithmeticTests(unittest.TestCase):
    def test_decrement_wraps_to_255(self) -> None:
        program = Program.from_string("-")
        program.execute(_no_input, lambda c: None)
        self.assertEqual(program.tape[0], 255)

    def test_increment_wraps_to_zero(self) -> None:
        program = Program.from_string("-+")
        program.step(_no_input, lambda c: None)
        self.assertEqual(program.current_cell, 255)
        program.step(_no_input, lambda c: None)
        self.assertEqual(program.current_cell, 0)

    def test_large_value_delta_wraps(self) -> None:
        program = Program(Instructions([MoveValue(-300), MoveValue(600)]))
        program.step(_no_input, lambda c: None)
        self.assertEqual(program.tape[0], 212)
        program.step(_no_input, lambda c: None)
        self.assertEqual(program.tape[0], (212 + 600) % 256)

    def test_tape_grows_lazily_for_large_moves(self) -> None:
        program = Program(Instructions([MovePointer(5), MoveValue(3)]))
        program.step(_no_input, lambda c: None)
        self.assertEqual(len(program.tape), 1)
        self.assertEqual(program.tape_cursor, 5)
        program.step(_no_input, lambda c: None)
        self.assertEqual(len(program.tape), 6)
        self.assertEqual(program.tape[5], 3)

    def test_current_cell_reads_zero_before_growth(self) -> None:
        program = Program.from_string(">>")
        program.execute(_no_input, lambda c: None)
        self.assertEqual(program.tape_cursor, 2)
        self.assertEqual(program.current_cell, 0)


class LoopTests(unittest.TestCase):
    def test_close_loop_returns_to_open(self) -> None:
        program = Program.from_string("+[-]")
        for _ in range(3):
            program.step(_no_input, lambda c: None)
        self.assertEqual(program.loop_stack, [1])
        program.step(_no_input, lambda c: None)
        self.assertEqual(program.instruction_cursor, 1)
        self.assertEqual(program.loop_depth, 0)
        program.step(_no_input, lambda c: None)
        self.assertEqual(program.instruction_cursor, 4)
        self.assertTrue(program.done())

    def test_zero_guard_skips_nested_loops(self) -> None:
        program = Program.from_string("[[+]-[+]]+")
        program.step(_no_input, lambda c: None)
        self.assertEqual(program.instruction_cursor, 9)
        self.assertEqual(program.loop_stack, [])
        program.execute(_no_input, lambda c: None)
        self.assertEqual(program.tape[0], 1)

    def test_nonzero_guard_pushes_position(self) -> None:
        program = Program.from_string("+>+[<")
        for _ in range(4):
            program.step(_no_input, lambda c: None)
        self.assertEqual(program.loop_stack, [3])


class ErrorTests(unittest.TestCase):
    def test_lone_close_is_missing_open(self) -> None:
        program = Program.from_string("]")
        with self.assertRaises(MissingOpen) as ctx:
            program.execute(_no_input, lambda c: None)
        self.assertEqual(ctx.exception.kind, BFErrorKind.MISSING_OPEN)
        self.assertEqual(ctx.exception.position, 0)

    def test_lone_open_is_missing_close(self) -> None:
        program = Program.from_string("[")
        with self.assertRaises(MissingClose):
            program.execute(_no_input, lambda c: None)

    def test_entered_unclosed_loop_is_missing_close(self) -> None:
        program = Program.from_string("+[")
        program.step(_no_input, lambda c: None)
        program.step(_no_input, lambda c: None)
        with self.assertRaises(MissingClose):
            program.done()

    def test_skip_without_match_is_missing_close(self) -> None:
        program = Program.from_string("[[]")
        with self.assertRaises(MissingClose) as ctx:
            program.step(_no_input, lambda c: None)
        self.assertEqual(ctx.exception.position, 0)
        self.assertEqual(program.instruction_cursor, 0)

    def test_leading_left_move_is_cell_bounds_error(self) -> None:
        program = Program.from_string("<+")
        with self.assertRaises(CellBoundsError):
            program.execute(_no_input, lambda c: None)
        self.assertEqual(program.tape_cursor, 0)
        self.assertEqual(program.instruction_cursor, 0)
        self.assertFalse(any(program.tape))

    def test_no_upper_bound_on_pointer(self) -> None:
        program = Program(Instructions([MovePointer(100_000), MoveValue(1)]))
        program.execute(_no_input, lambda c: None)
        self.assertEqual(program.tape[100_000], 1)

    def test_wide_character_input_is_invalid(self) -> None:
        program = Program.from_string(",")
        with self.assertRaises(InvalidInput):
            program.execute(lambda: chr(0x10FFFF), lambda c: None)
        self.assertFalse(any(program.tape))
        self.assertEqual(program.instruction_cursor, 0)

    def test_invalid_input_leaves_cell_untouched(self) -> None:
        program = Program.from_string("+,")
        program.step(_no_input, lambda c: None)
        with self.assertRaises(InvalidInput):
            program.step(lambda: "Ā", lambda c: None)
        self.assertEqual(program.tape, bytearray([1]))

    def test_highest_single_byte_input_is_accepted(self) -> None:
        program = Program.from_string(",")
        program.execute(lambda: "\xff", lambda c: None)
        self.assertEqual(program.tape[0], 255)

    def test_multi_character_input_is_invalid(self) -> None:
        program = Program.from_string(",")
        with self.assertRaises(InvalidInput):
            program.execute(lambda: "AB", lambda c: None)

    def test_stepping_after_completion_is_instruction_bounds_error(self) -> None:
        program = Program.from_string("+")
        program.execute(_no_input, lambda c: None)
        with self.assertRaises(InstructionBoundsError):
            program.step(_no_input, lambda c: None)

    def test_output_before_error_is_kept(self) -> None:
        output: List[str] = []
        program = Program.from_string("+.]")
        with self.assertRaises(MissingOpen):
            program.execute(_no_input, output.append)
        self.assertEqual(output, ["\x01"])

    def test_error_message_names_the_problem(self) -> None:
        error = MissingClose(position=4)
        self.assertIn("open bracket with no close bracket", str(error))
        self.assertIn("instruction 4", str(error))
        self.assertEqual(error.kind.value, "MissingClose")


class ResetTests(unittest.TestCase):
    def test_reset_matches_fresh_program(self) -> None:
        instructions = Instructions.from_string(HELLO_WORLD)
        program = Program(instructions)
        program.execute(_no_input, lambda c: None)
        self.assertNotEqual(program, Program(instructions))
        program.reset()
        self.assertEqual(program, Program(instructions))

    def test_reset_mid_loop(self) -> None:
        program = Program.from_string("+++[>+<-]")
        for _ in range(6):
            program.step(_no_input, lambda c: None)
        self.assertTrue(program.loop_stack)
        program.reset()
        self.assertEqual(program.instruction_cursor, 0)
        self.assertEqual(program.tape_cursor, 0)
        self.assertEqual(program.tape, bytearray())
        self.assertEqual(program.loop_stack, [])

    def test_reset_after_error_allows_rerun(self) -> None:
        program = Program.from_string(",.")
        with self.assertRaises(InvalidInput):
            program.execute(lambda: "☺", lambda c: None)
        program.reset()
        output: List[str] = []
        program.execute(lambda: "x", output.append)
        self.assertEqual(output, ["x"])

    def test_program_accepts_plain_instruction_list(self) -> None:
        program = Program([MoveValue(1)])  # type: ignore[arg-type]
        self.assertIsInstance(program.instructions, Instructions)


if __name__ == "__main__":
    unittest.main()
