from .errors import (
    BFError,
    BFErrorKind,
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
from .optimizer import optimize
from .program import Program
from .visualizer import ExecutionState, StepLimitExceeded, VisualizerSession

__all__ = [
    "BFError",
    "BFErrorKind",
    "CellBoundsError",
    "CloseLoop",
    "ExecutionState",
    "Input",
    "InstructionBoundsError",
    "Instruction",
    "Instructions",
    "InvalidInput",
    "MissingClose",
    "MissingOpen",
    "MovePointer",
    "MoveValue",
    "OpenLoop",
    "Output",
    "Program",
    "StepLimitExceeded",
    "VisualizerSession",
    "optimize",
]
