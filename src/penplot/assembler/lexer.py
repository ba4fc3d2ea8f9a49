"""
Penplot Program Lexer
=====================

This module splits program text into source lines and each line into
whitespace-delimited tokens. Penplot programs are strictly line-oriented,
so the lexer works one line at a time and never looks across lines.

Line Forms
----------
    MNEMONIC [operand ...] [@ label]     instruction
    ; free text [@ label]                comment (an instruction that does nothing)
    <c> [@ label]                        single-character marker comment
    @ label                              label for the next instruction
    (blank)                              skipped, takes no address

Everything after the first ``@`` is the label annotation. A label is one
token and may not be a plain integer (integers are numeric addresses).

Example
-------
>>> from penplot.assembler.lexer import Lexer
>>> for line in Lexer("WALK 10 @ start\\n; done").tokenize():
...     print(line.kind, [t.text for t in line.tokens], line.label)
LineKind.INSTRUCTION ['WALK', '10'] Token('start', 1:11)
LineKind.COMMENT [] None

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional
import re

from penplot.errors import MalformedInstructionError, SourceLocation


_TOKEN_RE = re.compile(r"\S+")
_INTEGER_RE = re.compile(r"[+-]?\d+")

LABEL_MARKER = "@"
COMMENT_MARKER = ";"


# =============================================================================
# Token and Line Data Classes
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single whitespace-delimited token.

    Attributes:
        text: The token text exactly as written
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    text: str
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        return f"Token({self.text!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


class LineKind(Enum):
    """Classification of a non-blank source line."""
    INSTRUCTION = auto()  # mnemonic and operands
    COMMENT = auto()      # ; text, or <c>
    LABEL_ONLY = auto()   # @ label with nothing before it


@dataclass
class SourceLine:
    """
    One non-blank line of program text.

    Attributes:
        number: Line number (1-indexed)
        text: Raw line text without the line terminator
        kind: What the line holds
        tokens: Mnemonic followed by operands (INSTRUCTION lines only)
        comment: Comment text (COMMENT lines only)
        label: Label token from a trailing "@ label", if any
    """
    number: int
    text: str
    kind: LineKind
    filename: str = "<input>"
    tokens: list[Token] = field(default_factory=list)
    comment: str = ""
    label: Optional[Token] = None

    @property
    def mnemonic(self) -> Optional[Token]:
        return self.tokens[0] if self.tokens else None

    @property
    def operands(self) -> list[Token]:
        return self.tokens[1:]

    @property
    def location(self) -> SourceLocation:
        column = self.tokens[0].column if self.tokens else 0
        return SourceLocation(self.filename, self.number, column)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes penplot program text.

    Usage:
        lexer = Lexer(source_text, filename)
        lines = list(lexer.tokenize())

    Blank lines are dropped, so every yielded line other than LABEL_ONLY
    occupies exactly one program address.

    Raises:
        MalformedInstructionError: For malformed label annotations
    """

    def __init__(self, source: str, filename: str = "<input>", first_line: int = 1):
        self.source = source
        self.filename = filename
        self.first_line = first_line

    def tokenize(self) -> Iterator[SourceLine]:
        for number, text in enumerate(self.source.splitlines(), start=self.first_line):
            line = self._lex_line(number, text)
            if line is not None:
                yield line

    def _error(self, message: str, number: int, column: int, text: str,
               hint: Optional[str] = None) -> MalformedInstructionError:
        return MalformedInstructionError(
            message,
            location=SourceLocation(self.filename, number, column),
            hint=hint,
            source_line=text,
        )

    def _lex_line(self, number: int, text: str) -> Optional[SourceLine]:
        payload, label = self._split_label(number, text)

        stripped = payload.strip()
        if not stripped:
            if label is None:
                return None
            return SourceLine(number, text, LineKind.LABEL_ONLY,
                              filename=self.filename, label=label)

        if stripped.startswith(COMMENT_MARKER):
            return SourceLine(number, text, LineKind.COMMENT,
                              filename=self.filename,
                              comment=stripped[1:].strip(), label=label)

        if len(stripped) == 3 and stripped[0] == "<" and stripped[2] == ">":
            return SourceLine(number, text, LineKind.COMMENT,
                              filename=self.filename,
                              comment=stripped[1], label=label)

        tokens = [
            Token(match.group(), number, match.start() + 1, self.filename)
            for match in _TOKEN_RE.finditer(payload)
        ]
        return SourceLine(number, text, LineKind.INSTRUCTION,
                          filename=self.filename, tokens=tokens, label=label)

    def _split_label(self, number: int, text: str) -> tuple[str, Optional[Token]]:
        """Separate the instruction payload from a trailing "@ label"."""
        at = text.find(LABEL_MARKER)
        if at < 0:
            return text, None

        rest = text[at + 1:]
        if LABEL_MARKER in rest:
            column = at + 2 + rest.index(LABEL_MARKER)
            raise self._error("more than one label on a line", number, column, text)

        matches = list(_TOKEN_RE.finditer(rest))
        if not matches:
            raise self._error("empty label", number, at + 1, text,
                              hint="write a name after '@', e.g. '@ start'")
        if len(matches) > 1:
            raise self._error("label names cannot contain whitespace",
                              number, at + 2 + matches[1].start(), text)

        name = matches[0].group()
        column = at + 2 + matches[0].start()
        if _INTEGER_RE.fullmatch(name):
            raise self._error(f"label '{name}' is a number", number, column, text,
                              hint="numbers are read as addresses; pick a name")

        return text[:at], Token(name, number, column, self.filename)


def is_integer_literal(text: str) -> bool:
    """Return True if text is a (signed) decimal integer literal."""
    return _INTEGER_RE.fullmatch(text) is not None
