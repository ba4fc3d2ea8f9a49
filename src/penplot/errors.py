"""
Penplot Error Hierarchy
=======================

This module defines the exception hierarchy for the whole penplot package.
All exceptions inherit from PenplotError, allowing callers to catch every
penplot failure with a single except clause if desired.

Exception Hierarchy
-------------------
PenplotError (base)
├── ProgramError (parse time, aborts before any execution)
│   ├── MalformedInstructionError - bad mnemonic, operand count or literal
│   ├── UnknownLabelError - address operand names no label
│   ├── DuplicateLabelError - label defined more than once
│   └── LSystemError - malformed L-system specification
└── ExecutionError (run time, fatal)
    ├── AddressOutOfRangeError - control flow before address 0
    └── StepLimitError - step budget exhausted without HALT

Error messages for program errors follow this format:
    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class PenplotError(Exception):
    """
    Base exception for all penplot errors.

        try:
            canvas = penplot.run(source)
        except PenplotError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in program source, used for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed, 0 when unknown)
    """
    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        if self.column > 0:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


# =============================================================================
# Parse-Time Exceptions
# =============================================================================

class ProgramError(PenplotError):
    """
    Base exception for errors found while parsing a program.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        """Line number of the offending source line, if known."""
        return self.location.line if self.location else None

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            square.pen:4:6: error: unknown label 'lop'
                GOTO lop
                     ^
            hint: did you mean 'loop'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class MalformedInstructionError(ProgramError):
    """
    A line that cannot be decoded into an instruction.

    Raised for:
        - Unknown mnemonic
        - Wrong number of operands
        - Unparsable numeric literal or colour
        - Colour channel outside 0-255
        - Malformed label annotation
    """
    pass


class UnknownLabelError(ProgramError):
    """
    Address operand that names a label never defined in the program.

    Raised during the second parser pass. Similar label names are offered
    as a hint to help catch typos.
    """

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_labels: Optional[list[str]] = None,
    ):
        self.label = label
        self.similar_labels = similar_labels or []

        if not hint and self.similar_labels:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_labels[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unknown label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateLabelError(ProgramError):
    """Label defined more than once."""

    def __init__(
        self,
        label: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.label = label
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{label}' was first defined at {original_location}"

        super().__init__(
            f"duplicate label '{label}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class LSystemError(ProgramError):
    """
    Malformed L-system specification.

    Raised for unbalanced braces, a missing seed block, or an instruction
    inside a block that does not parse.
    """
    pass


# =============================================================================
# Run-Time Exceptions
# =============================================================================

class ExecutionError(PenplotError):
    """
    Base exception for fatal errors while a program runs.

    Attributes:
        address: Program counter value involved in the failure
    """

    def __init__(self, message: str, address: Optional[int] = None):
        self.address = address
        super().__init__(message)


class AddressOutOfRangeError(ExecutionError):
    """
    Control flow moved the program counter before address 0.

    Running past the end of the program is an implicit HALT, not an error,
    so only negative targets (from JUMP) reach this.
    """

    def __init__(self, address: int, source_address: Optional[int] = None):
        self.source_address = source_address
        message = f"address {address} is out of range"
        if source_address is not None:
            message += f" (jump from address {source_address})"
        super().__init__(message, address=address)


class StepLimitError(ExecutionError):
    """
    The step budget given to run() was used up before the program halted.

    The engine itself has no guard against infinite loops; this is raised
    only when a caller asks for a bounded run.
    """

    def __init__(self, steps: int, address: Optional[int] = None):
        self.steps = steps
        super().__init__(
            f"program did not halt within {steps} steps",
            address=address,
        )
