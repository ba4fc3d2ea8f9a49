"""
Penplot Virtual Machine
=======================

Executes a parsed penplot Program against a pen and an RGBA canvas.

Quick Start
-----------

One-shot execution::

    >>> from penplot.machine import run, MachineConfig
    >>> canvas = run("MOVE 5 5\\nRGBA 255 0 0 255\\nBLOT\\nHALT",
    ...              MachineConfig(width=10, height=10))
    >>> canvas.get_pixel(5, 5)
    Color(r=255, g=0, b=0, a=255)

Stepping and breakpoints::

    >>> machine = Machine(MachineConfig(width=10, height=10))
    >>> machine.load_source(source)
    >>> machine.add_breakpoint(3)
    >>> event = machine.run()
    >>> if event.reason == StopReason.BREAKPOINT:
    ...     print(machine.pen.position, machine.stack)

Module Structure
----------------

- `engine.py`: Machine class, call/loop frames, run helpers
- `pen.py`: Pen position, heading and colour
- `canvas.py`: RGBA framebuffer and Pillow export
- `config.py`: MachineConfig and BlendMode
- `breakpoints.py`: StopReason, StopEvent, BreakpointManager

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from penplot.machine.breakpoints import BreakpointManager, StopEvent, StopReason
from penplot.machine.canvas import Canvas, round_half_away
from penplot.machine.config import BlendMode, MachineConfig
from penplot.machine.engine import (
    CallFrame,
    Frame,
    LoopFrame,
    Machine,
    MachineState,
    run,
    run_program,
)
from penplot.machine.pen import Pen

__all__ = [
    # Engine
    "Machine",
    "MachineState",
    "CallFrame",
    "LoopFrame",
    "Frame",
    "run",
    "run_program",
    # Configuration
    "MachineConfig",
    "BlendMode",
    # Drawing
    "Canvas",
    "Pen",
    "round_half_away",
    # Debugging
    "StopReason",
    "StopEvent",
    "BreakpointManager",
]
