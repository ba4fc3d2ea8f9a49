"""
Stop Events and Breakpoints
===========================

Why a run stopped, and the address breakpoints that can stop it.

Breakpoints are checked before the instruction at their address executes.
They exist for debugging and test harnesses; programs themselves have no
way to set them.

Example usage:

    >>> from penplot.machine import Machine, StopReason
    >>> machine = Machine()
    >>> machine.load(program)
    >>> machine.add_breakpoint(4)
    >>> event = machine.run()
    >>> if event.reason == StopReason.BREAKPOINT:
    ...     print(f"Stopped before address {event.address}")

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class StopReason(Enum):
    """Why execution stopped."""
    HALT = auto()            # HALT instruction executed
    END_OF_PROGRAM = auto()  # pc ran past the last instruction (implicit halt)
    BREAKPOINT = auto()      # pc reached a breakpoint address
    STEP = auto()            # single step completed
    MAX_STEPS = auto()       # step budget used up

    @property
    def is_halt(self) -> bool:
        """True for both explicit and implicit halts."""
        return self in (StopReason.HALT, StopReason.END_OF_PROGRAM)


@dataclass
class StopEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        address: Program counter at the stop
        steps: Instructions executed so far in this run
        message: Human-readable description (optional)
    """
    reason: StopReason
    address: Optional[int] = None
    steps: int = 0
    message: str = ""

    def __str__(self) -> str:
        if self.message:
            return self.message
        match self.reason:
            case StopReason.HALT:
                return f"Halted at address {self.address}"
            case StopReason.END_OF_PROGRAM:
                return f"Ran off the end of the program at address {self.address}"
            case StopReason.BREAKPOINT:
                return f"Breakpoint at address {self.address}"
            case StopReason.STEP:
                return f"Step to address {self.address}"
            case StopReason.MAX_STEPS:
                return f"Step budget exhausted after {self.steps} steps"
            case _:
                return "Unknown"


class BreakpointManager:
    """
    Set of program addresses at which a run should stop.

    A breakpoint is skipped for the first instruction of a run, so resuming
    from a breakpoint does not stop again immediately.
    """

    def __init__(self) -> None:
        self._addresses: set[int] = set()

    def __len__(self) -> int:
        return len(self._addresses)

    def __contains__(self, address: int) -> bool:
        return address in self._addresses

    def add_breakpoint(self, address: int) -> None:
        if address < 0:
            raise ValueError(f"breakpoint address must be non-negative, got {address}")
        self._addresses.add(address)

    def remove_breakpoint(self, address: int) -> None:
        self._addresses.discard(address)

    def has_breakpoint(self, address: int) -> bool:
        return address in self._addresses

    def clear_all(self) -> None:
        self._addresses.clear()

    @property
    def addresses(self) -> frozenset[int]:
        return frozenset(self._addresses)
