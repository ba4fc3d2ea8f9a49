"""
Penplot Program Parser
======================

This module turns program text into a Program: the ordered instruction
sequence (index = address) plus the label table.

Two-Pass Resolution
-------------------
Labels may be used before they are defined (forward jumps), so parsing runs
in two passes over the lexed lines:

1. **Label collection**: every instruction or comment line gets the next
   sequential address, and any ``@ label`` on it (or on preceding
   label-only lines) is bound to that address.

2. **Decoding**: each line is decoded against the opcode table. Address
   operands that name a label are replaced by the label's address; any
   other address operand must be a non-negative integer literal.

Any malformed line aborts parsing with an error carrying the line number;
there is no partial Program.

Example
-------
>>> from penplot.assembler import parse_program
>>> program = parse_program('''
... CALL square
... HALT
... WALK 10 @ square
... RTRN
... ''')
>>> program.labels["square"]
2
>>> str(program[0])
'CALL 2'

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional
import difflib
import logging
import math
import re

from penplot.color import Color
from penplot.errors import (
    DuplicateLabelError,
    MalformedInstructionError,
    SourceLocation,
    UnknownLabelError,
)
from penplot.assembler.instructions import (
    MNEMONICS,
    Instruction,
    InstructionInfo,
    OperandKind,
    get_instruction_info,
)
from penplot.assembler.lexer import (
    Lexer,
    LineKind,
    SourceLine,
    Token,
    is_integer_literal,
)

logger = logging.getLogger(__name__)

_REAL_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


# =============================================================================
# Program
# =============================================================================

@dataclass(frozen=True)
class Program:
    """
    A parsed penplot program.

    Programs are immutable once parsed.

    Attributes:
        instructions: Instructions in address order
        labels: Label name -> address
        lines: Source line number for each address
        filename: Name of the source the program came from
    """
    instructions: tuple[Instruction, ...]
    labels: Mapping[str, int] = field(default_factory=dict)
    lines: tuple[int, ...] = ()
    filename: str = "<input>"

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, address: int) -> Instruction:
        return self.instructions[address]

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def labels_at(self, address: int) -> list[str]:
        """Return the labels bound to an address, in definition order."""
        return [name for name, value in self.labels.items() if value == address]

    def line_for(self, address: int) -> Optional[int]:
        """Return the source line an address was parsed from, if known."""
        if 0 <= address < len(self.lines):
            return self.lines[address]
        return None

    def to_source(self) -> str:
        """
        Render the program as canonical source text.

        Address operands are written as the resolved numbers, and each
        label is re-attached to its instruction, so parsing the result
        yields an equal Program (line numbers aside).
        """
        out = []
        for address, instruction in enumerate(self.instructions):
            names = self.labels_at(address)
            for extra in names[1:]:
                out.append(f"@ {extra}")
            text = str(instruction)
            if names:
                text = f"{text} @ {names[0]}"
            out.append(text)
        return "\n".join(out) + "\n" if out else ""


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Two-pass parser for penplot program text.

    Usage:
        parser = Parser(source_text, "drawing.pen")
        program = parser.parse()

    Attributes:
        source: Program text being parsed
        filename: Name used in error messages
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename
        self._labels: dict[str, int] = {}
        self._label_locations: dict[str, SourceLocation] = {}

    def parse(self) -> Program:
        """
        Parse the source into a Program.

        Raises:
            MalformedInstructionError: For any undecodable line
            UnknownLabelError: For an address operand naming no label
            DuplicateLabelError: For a label defined twice
        """
        lines = list(Lexer(self.source, self.filename).tokenize())

        self._collect_labels(lines)
        logger.debug(f"Collected {len(self._labels)} labels from {self.filename}")

        instructions = []
        line_numbers = []
        for line in lines:
            if line.kind is LineKind.LABEL_ONLY:
                continue
            instructions.append(self._decode(line))
            line_numbers.append(line.number)

        logger.debug(f"Parsed {len(instructions)} instructions from {self.filename}")

        return Program(
            instructions=tuple(instructions),
            labels=MappingProxyType(dict(self._labels)),
            lines=tuple(line_numbers),
            filename=self.filename,
        )

    # =========================================================================
    # Pass 1: Label Collection
    # =========================================================================

    def _collect_labels(self, lines: list[SourceLine]) -> None:
        self._labels.clear()
        self._label_locations.clear()

        address = 0
        pending: list[tuple[Token, SourceLine]] = []

        for line in lines:
            if line.kind is LineKind.LABEL_ONLY:
                pending.append((line.label, line))
                continue

            if line.label is not None:
                pending.append((line.label, line))
            for token, owner in pending:
                self._define_label(token, owner, address)
            pending.clear()
            address += 1

        if pending:
            token, owner = pending[0]
            raise MalformedInstructionError(
                f"label '{token.text}' is not followed by an instruction",
                location=token.location,
                source_line=owner.text,
            )

    def _define_label(self, token: Token, line: SourceLine, address: int) -> None:
        name = token.text
        if name in self._labels:
            raise DuplicateLabelError(
                name,
                location=token.location,
                original_location=self._label_locations[name],
                source_line=line.text,
            )
        self._labels[name] = address
        self._label_locations[name] = token.location

    # =========================================================================
    # Pass 2: Decoding
    # =========================================================================

    def _decode(self, line: SourceLine) -> Instruction:
        if line.kind is LineKind.COMMENT:
            return Instruction.comment(line.comment)

        mnemonic = line.mnemonic
        info = get_instruction_info(mnemonic.text)
        if info is None:
            close = difflib.get_close_matches(mnemonic.text.upper(), sorted(MNEMONICS), n=1)
            raise self._malformed(
                f"unknown mnemonic '{mnemonic.text}'", mnemonic, line,
                hint=f"did you mean '{close[0]}'?" if close else None,
            )

        if info.channels:
            return Instruction(info.opcode, (self._decode_color(info, line),))

        operands = line.operands
        if len(operands) != len(info.operands):
            raise self._arity_error(info, line, f"{len(info.operands)} operand(s)")

        values = tuple(
            self._decode_operand(kind, token, line)
            for kind, token in zip(info.operands, operands)
        )
        return Instruction(info.opcode, values)

    def _decode_operand(self, kind: OperandKind, token: Token, line: SourceLine):
        match kind:
            case OperandKind.REAL:
                return self._decode_real(token, line)
            case OperandKind.INTEGER:
                return self._decode_integer(token, line)
            case OperandKind.ADDRESS:
                return self._decode_address(token, line)
        raise self._malformed(f"unexpected operand kind {kind}", token, line)

    def _decode_real(self, token: Token, line: SourceLine) -> float:
        if not _REAL_RE.fullmatch(token.text):
            raise self._malformed(f"invalid number '{token.text}'", token, line)
        value = float(token.text)
        if not math.isfinite(value):
            raise self._malformed(f"number '{token.text}' is out of range", token, line)
        return value

    def _decode_integer(self, token: Token, line: SourceLine) -> int:
        if not is_integer_literal(token.text):
            raise self._malformed(f"invalid integer '{token.text}'", token, line)
        return int(token.text)

    def _decode_address(self, token: Token, line: SourceLine) -> int:
        if token.text in self._labels:
            return self._labels[token.text]

        if is_integer_literal(token.text):
            address = int(token.text)
            if address < 0:
                raise self._malformed(f"address {address} is negative", token, line)
            return address

        similar = difflib.get_close_matches(token.text, list(self._labels), n=3)
        raise UnknownLabelError(
            token.text,
            location=token.location,
            source_line=line.text,
            similar_labels=similar,
        )

    def _decode_color(self, info: InstructionInfo, line: SourceLine) -> Color:
        operands = line.operands

        if len(operands) == 1:
            token = operands[0]
            try:
                return Color.from_hex(token.text)
            except ValueError:
                raise self._malformed(
                    f"invalid hex colour '{token.text}'", token, line,
                    hint="use #RRGGBB or #RRGGBBAA",
                ) from None

        if len(operands) != info.channels:
            raise self._arity_error(
                info, line, f"{info.channels} channels or one hex colour"
            )

        channels = []
        for token in operands:
            value = self._decode_integer(token, line)
            if not 0 <= value <= 255:
                raise self._malformed(
                    f"colour channel {value} is outside 0-255", token, line
                )
            channels.append(value)

        if info.channels == 3:
            channels.append(255)
        return Color(*channels)

    # =========================================================================
    # Error Helpers
    # =========================================================================

    def _malformed(self, message: str, token: Token, line: SourceLine,
                   hint: Optional[str] = None) -> MalformedInstructionError:
        return MalformedInstructionError(
            message,
            location=token.location,
            hint=hint,
            source_line=line.text,
        )

    def _arity_error(self, info: InstructionInfo, line: SourceLine,
                     expected: str) -> MalformedInstructionError:
        mnemonic = line.mnemonic
        return self._malformed(
            f"{mnemonic.text.upper()} expects {expected}, got {len(line.operands)}",
            mnemonic, line,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_program(source: str, filename: str = "<input>") -> Program:
    """
    Parse program text.

    Args:
        source: Program text
        filename: Name used in error messages

    Returns:
        The parsed Program

    Raises:
        ProgramError: If the text is not a valid program
    """
    return Parser(source, filename).parse()


def parse_instruction(text: str, filename: str = "<input>", line: int = 1) -> Instruction:
    """
    Decode one instruction line on its own, with an empty label table.

    Address operands must be numeric and ``@ label`` annotations are
    rejected, since a lone line has no program to bind a label to.

    Args:
        text: A single line of program text
        filename: Name used in error messages
        line: Line number the text came from

    Raises:
        MalformedInstructionError: If the line is blank, labelled or undecodable
        UnknownLabelError: If an address operand is not a number
    """
    lines = list(Lexer(text, filename, first_line=line).tokenize())
    if len(lines) != 1:
        raise MalformedInstructionError(
            "expected exactly one instruction",
            location=SourceLocation(filename, line),
            source_line=text,
        )

    source_line = lines[0]
    if source_line.label is not None:
        raise MalformedInstructionError(
            "labels are not allowed here",
            location=source_line.label.location,
            source_line=text,
        )
    return Parser(text, filename)._decode(source_line)


def parse_file(filepath: str | Path) -> Program:
    """
    Parse a program file (UTF-8).

    Raises:
        ProgramError: If the file is not a valid program
        FileNotFoundError: If the file does not exist
    """
    filepath = Path(filepath)
    return parse_program(filepath.read_text(encoding="utf-8"), str(filepath))
