"""
Penplot - A Pseudo-Assembly Turtle Graphics Language
====================================================

This package interprets penplot programs: line-oriented pseudo-assembly
that steers a virtual pen over a fixed-size RGBA canvas. A program is
parsed in full (labels resolved to addresses) before any instruction runs,
then executed by a small machine with a program counter and a combined
call/loop stack. The finished canvas can be saved as a PNG.

Main Components
---------------
- **assembler**: Lexer and two-pass parser producing a Program
- **machine**: Execution engine, pen, canvas and configuration
- **lsystem**: L-system rewriting that generates programs
- **cli**: The ``penplot`` command (run, check, fractal)

Quick Start
-----------
Run a program and save the result:
    >>> import penplot
    >>> canvas = penplot.run('''
    ... MOVE 5 5
    ... RGBA 255 0 0 255
    ... BLOT
    ... HALT
    ... ''', penplot.MachineConfig(width=10, height=10))
    >>> canvas.save("dot.png")

Or use the command-line tool:
    $ penplot run square.pen square.png --trace
    $ penplot fractal koch.lsys -c 3 -o koch.pen

Version History
---------------
1.0.0 - Initial release with interpreter, L-system generator and CLI

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from penplot.color import Color
from penplot.errors import (
    PenplotError,
    ProgramError,
    MalformedInstructionError,
    UnknownLabelError,
    DuplicateLabelError,
    LSystemError,
    ExecutionError,
    AddressOutOfRangeError,
    StepLimitError,
    SourceLocation,
)
from penplot.assembler import (
    Instruction,
    Opcode,
    Program,
    parse_file,
    parse_program,
)
from penplot.machine import (
    BlendMode,
    Canvas,
    Machine,
    MachineConfig,
    MachineState,
    StopEvent,
    StopReason,
    run,
    run_program,
)
from penplot.lsystem import LSystem, format_program, koch, parse_lsystem

__all__ = [
    "__version__",
    # Running programs
    "run",
    "run_program",
    "parse_program",
    "parse_file",
    "Machine",
    "MachineConfig",
    "MachineState",
    "BlendMode",
    "StopEvent",
    "StopReason",
    # Data model
    "Instruction",
    "Opcode",
    "Program",
    "Canvas",
    "Color",
    # L-systems
    "LSystem",
    "parse_lsystem",
    "format_program",
    "koch",
    # Exception hierarchy
    "PenplotError",
    "ProgramError",
    "MalformedInstructionError",
    "UnknownLabelError",
    "DuplicateLabelError",
    "LSystemError",
    "ExecutionError",
    "AddressOutOfRangeError",
    "StepLimitError",
    "SourceLocation",
]
