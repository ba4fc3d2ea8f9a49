"""
L-System Program Generator
==========================

Generates penplot programs by repeatedly rewriting a seed instruction
sequence, as in a Lindenmayer system.

Specification Format
--------------------
::

    seed {
        WALK 10
    }
    aliases {
        <F> {
            WALK 10
        }
    }
    <F> {
        <F>
        TURN 60
        <F>
    }

- ``seed`` comes first and holds the starting instructions.
- ``aliases`` is optional. Its entries are applied once, after the last
  rewriting round, which lets marker comments like ``<F>`` stand in for
  real instructions during rewriting.
- Every other block is a rule: the header names one instruction and the
  body is what that instruction is replaced with.

Rule keys match by value, so ``WALK 10`` matches ``WALK 10.0`` but not
``WALK 5``. Instructions with no rule are copied unchanged.

Example
-------
>>> from penplot.lsystem import koch, format_program
>>> instructions = koch(length=3, angle=90).iterate(2)
>>> len(instructions)
49
>>> program_text = format_program(instructions)

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional
import logging
import re

from penplot.assembler.instructions import Instruction
from penplot.assembler.parser import parse_instruction
from penplot.errors import LSystemError, ProgramError, SourceLocation

logger = logging.getLogger(__name__)

_HEADER_RE = re.compile(r"^\s*(\S.*?)\s*\{\s*$")
_CLOSE_RE = re.compile(r"^\s*\}\s*$")

SEED_KEYWORD = "seed"
ALIASES_KEYWORD = "aliases"

RuleTable = dict[Instruction, tuple[Instruction, ...]]


# =============================================================================
# L-System
# =============================================================================

@dataclass
class LSystem:
    """
    A seed sequence plus rewriting rules.

    Attributes:
        seed: Instructions rewriting starts from
        rules: Instruction -> replacement, applied on every round
        aliases: Instruction -> replacement, applied once at the end
    """
    seed: tuple[Instruction, ...]
    rules: RuleTable = field(default_factory=dict)
    aliases: RuleTable = field(default_factory=dict)

    @staticmethod
    def rewrite(instructions: Iterable[Instruction], table: RuleTable) -> list[Instruction]:
        """Replace each instruction that has an entry in table."""
        result: list[Instruction] = []
        for instruction in instructions:
            replacement = table.get(instruction)
            if replacement is None:
                result.append(instruction)
            else:
                result.extend(replacement)
        return result

    def evaluate(self, instructions: Iterable[Instruction]) -> list[Instruction]:
        """Apply one rewriting round of the rules."""
        return self.rewrite(instructions, self.rules)

    def apply_aliases(self, instructions: Iterable[Instruction]) -> list[Instruction]:
        return self.rewrite(instructions, self.aliases)

    def iterate(self, count: int) -> list[Instruction]:
        """
        Rewrite the seed ``count`` times, then apply the aliases.

        Raises:
            ValueError: If count is negative
        """
        if count < 0:
            raise ValueError(f"iteration count must be non-negative, got {count}")

        current = list(self.seed)
        for round_number in range(count):
            current = self.evaluate(current)
            logger.debug(f"Round {round_number + 1}: {len(current)} instructions")

        if self.aliases:
            current = self.apply_aliases(current)
        return current


def koch(length: float = 10.0, angle: float = 60.0) -> LSystem:
    """
    The Koch curve: every ``WALK length`` becomes five walks joined by
    turns of -angle, +angle, +angle, -angle.
    """
    step = Instruction.walk(length)
    return LSystem(
        seed=(step,),
        rules={
            step: (
                step,
                Instruction.turn(-angle),
                step,
                Instruction.turn(angle),
                step,
                Instruction.turn(angle),
                step,
                Instruction.turn(-angle),
                step,
            ),
        },
    )


# =============================================================================
# Specification Parser
# =============================================================================

class LSystemParser:
    """
    Line-oriented parser for L-system specification text.

    Usage:
        parser = LSystemParser(text, "koch.lsys")
        system = parser.parse()
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename
        self._lines: list[tuple[int, str]] = []
        self._index = 0

    def parse(self) -> LSystem:
        """
        Raises:
            LSystemError: For any structural or instruction error, with the
                          offending line
        """
        self._lines = [
            (number, text)
            for number, text in enumerate(self.source.splitlines(), start=1)
            if text.strip()
        ]
        self._index = 0

        if self._at_end():
            raise LSystemError("empty L-system specification",
                               location=SourceLocation(self.filename, 1))

        number, text = self._peek()
        if self._header(text) != SEED_KEYWORD:
            raise self._error(f"expected '{SEED_KEYWORD} {{'", number, text)
        self._advance()
        seed = self._parse_block(number)

        aliases: RuleTable = {}
        if not self._at_end() and self._header(self._peek()[1]) == ALIASES_KEYWORD:
            aliases_line = self._advance()[0]
            aliases = self._parse_rules(nested=True, opened_at=aliases_line)

        rules = self._parse_rules(nested=False, opened_at=number)
        if not rules:
            raise LSystemError("L-system has no rules",
                               location=SourceLocation(self.filename, number))

        logger.debug(f"Parsed L-system from {self.filename}: seed of {len(seed)}, "
                     f"{len(rules)} rules, {len(aliases)} aliases")
        return LSystem(seed=tuple(seed), rules=rules, aliases=aliases)

    # =========================================================================
    # Blocks
    # =========================================================================

    def _parse_rules(self, nested: bool, opened_at: int) -> RuleTable:
        """
        Parse ``KEY { ... }`` entries until the input ends, or until the
        closing brace of an enclosing block when nested.
        """
        table: RuleTable = {}
        while not self._at_end():
            number, text = self._peek()
            if _CLOSE_RE.match(text):
                if nested:
                    self._advance()
                    return table
                raise self._error("unexpected '}'", number, text)

            header = self._header(text)
            if header is None:
                raise self._error("expected a rule header 'INSTRUCTION {'", number, text)
            if header.lower() in (SEED_KEYWORD, ALIASES_KEYWORD):
                raise self._error(f"'{header}' block is out of place", number, text)

            self._advance()
            key = self._decode(header, number, text)
            if key in table:
                raise self._error(f"rule for '{key}' is defined twice", number, text)
            table[key] = tuple(self._parse_block(number))

        if nested:
            raise LSystemError("aliases block is never closed",
                               location=SourceLocation(self.filename, opened_at))
        return table

    def _parse_block(self, opened_at: int) -> list[Instruction]:
        """Parse instruction lines up to and including the closing brace."""
        body: list[Instruction] = []
        while not self._at_end():
            number, text = self._advance()
            if _CLOSE_RE.match(text):
                if not body:
                    raise self._error("block is empty", number, text)
                return body
            if self._header(text) is not None:
                raise self._error("blocks cannot be nested here", number, text)
            body.append(self._decode(text, number, text))

        raise LSystemError("block is never closed",
                           location=SourceLocation(self.filename, opened_at),
                           hint="add a line holding only '}'")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _decode(self, instruction_text: str, number: int, line_text: str) -> Instruction:
        try:
            return parse_instruction(instruction_text, self.filename, number)
        except ProgramError as e:
            raise LSystemError(e.message, location=e.location, hint=e.hint,
                               source_line=line_text) from e

    @staticmethod
    def _header(text: str) -> Optional[str]:
        match = _HEADER_RE.match(text)
        if match is None:
            return None
        name = match.group(1)
        if name.lower() in (SEED_KEYWORD, ALIASES_KEYWORD):
            return name.lower()
        return name

    def _at_end(self) -> bool:
        return self._index >= len(self._lines)

    def _peek(self) -> tuple[int, str]:
        return self._lines[self._index]

    def _advance(self) -> tuple[int, str]:
        line = self._lines[self._index]
        self._index += 1
        return line

    def _error(self, message: str, number: int, text: str) -> LSystemError:
        return LSystemError(message, location=SourceLocation(self.filename, number),
                            source_line=text)


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_lsystem(source: str, filename: str = "<input>") -> LSystem:
    """
    Parse L-system specification text.

    Raises:
        LSystemError: If the text is not a valid specification
    """
    return LSystemParser(source, filename).parse()


def parse_lsystem_file(filepath: str | Path) -> LSystem:
    filepath = Path(filepath)
    return parse_lsystem(filepath.read_text(encoding="utf-8"), str(filepath))


def format_program(instructions: Iterable[Instruction]) -> str:
    """
    Render instructions as program text, one per line.

    The result parses back with ``parse_program`` to the same instructions.
    """
    lines = [str(instruction) for instruction in instructions]
    return "\n".join(lines) + "\n" if lines else ""
