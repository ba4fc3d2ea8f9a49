"""
Penplot Execution Engine
========================

This module provides the `Machine` class, the fetch-decode-execute loop that
runs a parsed Program against a Pen and a Canvas.

States
------
The machine is either RUNNING or HALTED. It halts on a HALT instruction or,
as an implicit halt, when the program counter moves past the last
instruction. Moving the program counter before address 0 is a fatal
AddressOutOfRangeError.

Call/Loop Stack
---------------
CALL and LOOP share one stack of frames:

- ``CallFrame(return_address)``: pushed by CALL. RTRN pops it and resumes
  at the return address.
- ``LoopFrame(return_address, body_address, remaining)``: pushed by
  ``LOOP addr n`` (n > 0). Each RTRN reaching it counts one iteration
  down; the body is re-entered until the count reaches zero, then the frame
  is popped and execution resumes after the LOOP.

RTRN on an empty stack does nothing but advance, and ``LOOP addr n`` with
n <= 0 is skipped without entering the body.

The engine does not detect infinite loops (``GOTO`` to itself, ``JUMP 0``)
or unbounded CALL recursion. Callers that need a guarantee pass
``max_steps`` to `Machine.run`.

Example usage:
    >>> from penplot.assembler import parse_program
    >>> from penplot.machine import Machine, MachineConfig
    >>> machine = Machine(MachineConfig(width=10, height=10))
    >>> machine.load(parse_program("MOVE 5 5\\nRGBA 255 0 0 255\\nBLOT\\nHALT"))
    >>> event = machine.run()
    >>> machine.canvas.get_pixel(5, 5)
    Color(r=255, g=0, b=0, a=255)

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional, Union
import logging

from penplot.assembler.instructions import Instruction, Opcode
from penplot.assembler.parser import Program, parse_program
from penplot.color import Color
from penplot.errors import AddressOutOfRangeError, StepLimitError
from penplot.machine.breakpoints import BreakpointManager, StopEvent, StopReason
from penplot.machine.canvas import Canvas
from penplot.machine.config import MachineConfig
from penplot.machine.pen import Pen

logger = logging.getLogger(__name__)


class MachineState(Enum):
    RUNNING = auto()
    HALTED = auto()


# =============================================================================
# Call/Loop Frames
# =============================================================================

@dataclass(frozen=True)
class CallFrame:
    """Return context pushed by CALL."""
    return_address: int


@dataclass
class LoopFrame:
    """
    Return context pushed by LOOP.

    Attributes:
        return_address: Address after the LOOP instruction
        body_address: Entry address of the loop body
        remaining: Iterations left, including the one running now
    """
    return_address: int
    body_address: int
    remaining: int


Frame = Union[CallFrame, LoopFrame]

InstructionHook = Callable[[int, Instruction], None]


# =============================================================================
# Machine
# =============================================================================

class Machine:
    """
    The penplot virtual machine.

    The machine owns its pen, canvas and stack for the whole run; nothing
    else should mutate them until it halts.

    Attributes:
        config: The MachineConfig used for this machine
        breakpoints: Addresses at which run() stops
        on_instruction: Optional hook called as hook(pc, instruction)
                        before each instruction executes
    """

    def __init__(self, config: Optional[MachineConfig] = None):
        self.config = config or MachineConfig()
        self.breakpoints = BreakpointManager()
        self.on_instruction: Optional[InstructionHook] = None
        self._program = Program(instructions=())
        self.last_event: Optional[StopEvent] = None
        self.reset()

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load(self, program: Program) -> None:
        """Load a program and reset the machine to its initial state."""
        self._program = program
        self.reset()

    def load_source(self, source: str, filename: str = "<input>") -> None:
        """
        Parse program text and load it.

        Raises:
            ProgramError: If the text is not a valid program
        """
        self.load(parse_program(source, filename))

    def reset(self) -> None:
        """
        Return to the initial state: pc 0, pen at the configured defaults,
        empty stack, a fresh canvas, RUNNING.
        """
        config = self.config
        self.pen = Pen(
            x=float(config.origin[0]),
            y=float(config.origin[1]),
            heading=float(config.heading),
            color=config.pen_color,
        )
        self.canvas = Canvas(config.width, config.height,
                             background=config.background, blend=config.blend)
        self._pc = 0
        self._stack: list[Frame] = []
        self._state = MachineState.RUNNING
        self._steps = 0
        self.last_event = None

    # =========================================================================
    # State Inspection
    # =========================================================================

    @property
    def program(self) -> Program:
        return self._program

    @property
    def pc(self) -> int:
        return self._pc

    @property
    def state(self) -> MachineState:
        return self._state

    @property
    def halted(self) -> bool:
        return self._state is MachineState.HALTED

    @property
    def stack(self) -> tuple[Frame, ...]:
        """Snapshot of the call/loop stack, bottom first."""
        return tuple(self._stack)

    @property
    def steps_executed(self) -> int:
        """Instructions executed since the last reset."""
        return self._steps

    # =========================================================================
    # Execution Control
    # =========================================================================

    def step(self) -> StopEvent:
        """
        Execute a single instruction, ignoring breakpoints.

        Returns:
            A STEP event, or a HALT/END_OF_PROGRAM event if the machine
            halted (calling step() on a halted machine does nothing)

        Raises:
            AddressOutOfRangeError: If the instruction moved pc before 0
        """
        if self.halted and self.last_event:
            return self.last_event
        return self._execute_next()

    def run(self, max_steps: Optional[int] = None) -> StopEvent:
        """
        Run until the machine halts, a breakpoint is reached, or the step
        budget is used up.

        Args:
            max_steps: Maximum instructions to execute in this call.
                       None means no limit.

        Returns:
            StopEvent describing why execution stopped

        Raises:
            AddressOutOfRangeError: If control flow moved pc before 0
        """
        executed = 0
        while True:
            if self.halted and self.last_event:
                return self.last_event

            if max_steps is not None and executed >= max_steps:
                return self._stop(StopReason.MAX_STEPS, steps=executed)

            if executed > 0 and self._pc in self.breakpoints:
                return self._stop(StopReason.BREAKPOINT, steps=executed)

            event = self._execute_next()
            executed += 1
            if event.reason.is_halt:
                return event

    def run_until(self, address: int, max_steps: Optional[int] = None) -> bool:
        """
        Run until pc reaches an address.

        Uses a temporary breakpoint.

        Returns:
            True if the address was reached, False if the machine halted or
            the budget ran out first
        """
        was_set = self.breakpoints.has_breakpoint(address)
        if not was_set:
            self.breakpoints.add_breakpoint(address)
        try:
            event = self.run(max_steps)
            return event.reason is StopReason.BREAKPOINT and event.address == address
        finally:
            if not was_set:
                self.breakpoints.remove_breakpoint(address)

    def add_breakpoint(self, address: int) -> None:
        self.breakpoints.add_breakpoint(address)

    def remove_breakpoint(self, address: int) -> None:
        self.breakpoints.remove_breakpoint(address)

    def clear_breakpoints(self) -> None:
        self.breakpoints.clear_all()

    # =========================================================================
    # Fetch / Decode / Execute
    # =========================================================================

    def _stop(self, reason: StopReason, steps: Optional[int] = None) -> StopEvent:
        event = StopEvent(
            reason,
            address=self._pc,
            steps=self._steps if steps is None else steps,
        )
        self.last_event = event
        return event

    def _halt(self, reason: StopReason) -> StopEvent:
        self._state = MachineState.HALTED
        if reason is StopReason.END_OF_PROGRAM:
            logger.debug(f"Implicit halt: pc {self._pc} is past the end "
                         f"({len(self._program)} instructions)")
        else:
            logger.debug(f"HALT at address {self._pc} after {self._steps} steps")
        return self._stop(reason)

    def _execute_next(self) -> StopEvent:
        if self._pc >= len(self._program):
            return self._halt(StopReason.END_OF_PROGRAM)

        instruction = self._program[self._pc]
        if self.on_instruction is not None:
            self.on_instruction(self._pc, instruction)

        self._execute(instruction)
        self._steps += 1

        if self._state is MachineState.HALTED:
            return self._halt(StopReason.HALT)
        if self._pc >= len(self._program):
            return self._halt(StopReason.END_OF_PROGRAM)
        return self._stop(StopReason.STEP)

    def _execute(self, instruction: Instruction) -> None:
        """Apply one instruction and move the program counter."""
        pc = self._pc
        next_pc = pc + 1
        pen = self.pen
        ops = instruction.operands

        op = instruction.opcode
        if op is Opcode.NOOP or op is Opcode.COMMENT:
            pass
        elif op is Opcode.MOVE:
            self._move_pen(pen.move_to, *ops)
        elif op is Opcode.SHFT:
            self._move_pen(pen.move_by, *ops)
        elif op is Opcode.WALK:
            self._move_pen(pen.walk, *ops)
        elif op is Opcode.FACE:
            pen.face(ops[0])
        elif op is Opcode.TURN:
            pen.turn(ops[0])
        elif op is Opcode.RGBA:
            pen.set_color(ops[0])
        elif op is Opcode.BLNK:
            pen.set_color(Color.transparent())
        elif op is Opcode.BLOT:
            self.canvas.blot(pen.x, pen.y, pen.color)
        elif op is Opcode.GOTO:
            next_pc = ops[0]
        elif op is Opcode.JUMP:
            next_pc = pc + ops[0]
        elif op is Opcode.CALL:
            self._stack.append(CallFrame(return_address=pc + 1))
            next_pc = ops[0]
        elif op is Opcode.RTRN:
            next_pc = self._return(pc)
        elif op is Opcode.LOOP:
            address, count = ops
            if count > 0:
                self._stack.append(LoopFrame(pc + 1, address, count))
                logger.debug(f"LOOP at {pc}: body {address} x{count}")
                next_pc = address
        elif op is Opcode.HALT:
            self._state = MachineState.HALTED
            next_pc = pc

        if next_pc < 0:
            self._state = MachineState.HALTED
            self.last_event = StopEvent(
                StopReason.HALT, address=pc, steps=self._steps,
                message=f"Stopped by jump to address {next_pc}",
            )
            raise AddressOutOfRangeError(next_pc, source_address=pc)
        self._pc = next_pc

    def _return(self, pc: int) -> int:
        """RTRN: resolve the next pc from the top frame."""
        if not self._stack:
            return pc + 1

        frame = self._stack[-1]
        if isinstance(frame, CallFrame):
            self._stack.pop()
            return frame.return_address

        frame.remaining -= 1
        if frame.remaining <= 0:
            self._stack.pop()
            return frame.return_address
        return frame.body_address

    def _move_pen(self, move: Callable[..., None], *args: float) -> None:
        pen = self.pen
        start = pen.pixel() if pen.is_finite else None
        move(*args)
        if not self.config.trace_moves or pen.color.is_transparent:
            return
        # A move from or to an overflowed position has no line to draw
        if start is not None and pen.is_finite:
            self.canvas.plot_line(*start, *pen.pixel(), pen.color)


# =============================================================================
# Convenience Functions
# =============================================================================

def run_program(program: Program, config: Optional[MachineConfig] = None,
                max_steps: Optional[int] = None) -> Canvas:
    """
    Execute a parsed program to completion and return its canvas.

    Raises:
        AddressOutOfRangeError: If control flow moved pc before 0
        StepLimitError: If max_steps ran out before the program halted
    """
    machine = Machine(config)
    machine.load(program)
    event = machine.run(max_steps)
    if event.reason is StopReason.MAX_STEPS:
        raise StepLimitError(event.steps, address=event.address)
    return machine.canvas


def run(source: str, config: Optional[MachineConfig] = None,
        max_steps: Optional[int] = None, filename: str = "<input>") -> Canvas:
    """
    Parse and execute program text, returning the final canvas.

    This is the single entry point of the interpreter: either the whole
    program runs and a canvas comes back, or an exception is raised and no
    canvas is produced.

    Args:
        source: Program text
        config: Machine configuration (default: 512x512, pen at origin)
        max_steps: Optional step budget for possibly non-terminating programs
        filename: Name used in parse error messages

    Raises:
        ProgramError: If the text is not a valid program
        AddressOutOfRangeError: If control flow moved pc before 0
        StepLimitError: If max_steps ran out before the program halted
    """
    return run_program(parse_program(source, filename), config, max_steps)
