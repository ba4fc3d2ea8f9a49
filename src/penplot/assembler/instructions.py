"""
Penplot Instruction Set Definition
==================================

This module defines the penplot instruction set: the opcodes, the operand
kinds each opcode takes, and the immutable Instruction value that the parser
produces and the machine executes.

Instruction Set
---------------

| Mnemonic | Operands        | Effect                                      |
|----------|-----------------|---------------------------------------------|
| NOOP     |                 | nothing                                     |
| MOVE     | x y             | pen to (x, y)                               |
| SHFT     | dx dy           | pen by (dx, dy)                             |
| WALK     | d               | pen d pixels along heading                  |
| FACE     | angle           | heading = angle (degrees)                   |
| TURN     | angle           | heading += angle (counterclockwise)         |
| RGBA     | r g b a / hex   | pen colour                                  |
| RGB      | r g b / hex     | pen colour, alpha 255                       |
| BLNK     |                 | pen colour = transparent                    |
| BLOT     |                 | paint the pixel under the pen               |
| GOTO     | addr            | pc = addr                                   |
| JUMP     | n               | pc += n                                     |
| CALL     | addr            | push return, pc = addr                      |
| RTRN     |                 | return from CALL / repeat LOOP body         |
| LOOP     | addr n          | run body at addr n times                    |
| HALT     |                 | stop                                        |
| ;        | free text       | comment (occupies an address, does nothing) |

Angles are degrees. Heading 0 points along +x and increases towards +y.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Union

from penplot.color import Color


# =============================================================================
# Opcode and Operand Enumerations
# =============================================================================

class Opcode(Enum):
    """Operations understood by the penplot machine."""
    NOOP = auto()
    MOVE = auto()
    SHFT = auto()
    WALK = auto()
    FACE = auto()
    TURN = auto()
    RGBA = auto()
    BLNK = auto()
    BLOT = auto()
    GOTO = auto()
    JUMP = auto()
    CALL = auto()
    RTRN = auto()
    LOOP = auto()
    HALT = auto()
    COMMENT = auto()


class OperandKind(Enum):
    """
    How an operand token is decoded.

    REAL and INTEGER are numeric literals, ADDRESS is a non-negative integer
    literal or a label name, COLOR is a channel list or one hex token.
    """
    REAL = auto()
    INTEGER = auto()
    ADDRESS = auto()
    COLOR = auto()

    def __str__(self) -> str:
        return self.name.lower()


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Static description of one mnemonic.

    Attributes:
        opcode: The operation the mnemonic decodes to
        operands: Operand kinds in source order
        channels: For colour mnemonics, the number of channels given
                  in decimal form (3 for RGB, 4 for RGBA)
    """
    opcode: Opcode
    operands: tuple[OperandKind, ...] = ()
    channels: int = 0

    @property
    def arity(self) -> int:
        """Number of operand tokens in the plain (non-hex) form."""
        if self.channels:
            return self.channels
        return len(self.operands)


# =============================================================================
# Opcode Table
# =============================================================================
# Key: uppercase mnemonic. Comments (";") are recognised by the lexer and
# never looked up here.
# =============================================================================

OPCODE_TABLE: dict[str, InstructionInfo] = {
    "NOOP": InstructionInfo(Opcode.NOOP),
    "MOVE": InstructionInfo(Opcode.MOVE, (OperandKind.REAL, OperandKind.REAL)),
    "SHFT": InstructionInfo(Opcode.SHFT, (OperandKind.REAL, OperandKind.REAL)),
    "WALK": InstructionInfo(Opcode.WALK, (OperandKind.REAL,)),
    "FACE": InstructionInfo(Opcode.FACE, (OperandKind.REAL,)),
    "TURN": InstructionInfo(Opcode.TURN, (OperandKind.REAL,)),
    "RGBA": InstructionInfo(Opcode.RGBA, (OperandKind.COLOR,), channels=4),
    "RGB": InstructionInfo(Opcode.RGBA, (OperandKind.COLOR,), channels=3),
    "BLNK": InstructionInfo(Opcode.BLNK),
    "BLOT": InstructionInfo(Opcode.BLOT),
    "GOTO": InstructionInfo(Opcode.GOTO, (OperandKind.ADDRESS,)),
    "JUMP": InstructionInfo(Opcode.JUMP, (OperandKind.INTEGER,)),
    "CALL": InstructionInfo(Opcode.CALL, (OperandKind.ADDRESS,)),
    "RTRN": InstructionInfo(Opcode.RTRN),
    "LOOP": InstructionInfo(Opcode.LOOP, (OperandKind.ADDRESS, OperandKind.INTEGER)),
    "HALT": InstructionInfo(Opcode.HALT),
}

MNEMONICS = frozenset(OPCODE_TABLE)

# Opcodes that change the program counter other than by stepping forward
CONTROL_OPCODES = frozenset({
    Opcode.GOTO, Opcode.JUMP, Opcode.CALL, Opcode.RTRN, Opcode.LOOP, Opcode.HALT,
})

# Opcodes whose operands hold instruction addresses (after resolution)
ADDRESS_OPCODES = frozenset({Opcode.GOTO, Opcode.CALL, Opcode.LOOP})


def get_instruction_info(mnemonic: str) -> InstructionInfo | None:
    """Look up a mnemonic (case-insensitive)."""
    return OPCODE_TABLE.get(mnemonic.upper())


# =============================================================================
# Instruction Value
# =============================================================================

Operand = Union[int, float, str, Color]


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value)


@dataclass(frozen=True)
class Instruction:
    """
    One decoded instruction.

    Instructions are immutable and hashable so they can be compared and
    used as dictionary keys (L-system rules match on instruction equality).

    Attributes:
        opcode: The operation
        operands: Decoded operand values; addresses are already resolved
                  to ints. A COMMENT carries its text as the only operand.
    """
    opcode: Opcode
    operands: tuple[Operand, ...] = ()

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def noop(cls) -> "Instruction":
        return cls(Opcode.NOOP)

    @classmethod
    def move(cls, x: float, y: float) -> "Instruction":
        return cls(Opcode.MOVE, (float(x), float(y)))

    @classmethod
    def shift(cls, dx: float, dy: float) -> "Instruction":
        return cls(Opcode.SHFT, (float(dx), float(dy)))

    @classmethod
    def walk(cls, distance: float) -> "Instruction":
        return cls(Opcode.WALK, (float(distance),))

    @classmethod
    def face(cls, angle: float) -> "Instruction":
        return cls(Opcode.FACE, (float(angle),))

    @classmethod
    def turn(cls, angle: float) -> "Instruction":
        return cls(Opcode.TURN, (float(angle),))

    @classmethod
    def color(cls, color: Color) -> "Instruction":
        return cls(Opcode.RGBA, (color,))

    @classmethod
    def goto(cls, address: int) -> "Instruction":
        return cls(Opcode.GOTO, (address,))

    @classmethod
    def jump(cls, offset: int) -> "Instruction":
        return cls(Opcode.JUMP, (offset,))

    @classmethod
    def call(cls, address: int) -> "Instruction":
        return cls(Opcode.CALL, (address,))

    @classmethod
    def loop(cls, address: int, count: int) -> "Instruction":
        return cls(Opcode.LOOP, (address, count))

    @classmethod
    def comment(cls, text: str) -> "Instruction":
        return cls(Opcode.COMMENT, (text,))

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    @property
    def mnemonic(self) -> str:
        if self.opcode is Opcode.COMMENT:
            return ";"
        return self.opcode.name

    @property
    def is_comment(self) -> bool:
        return self.opcode is Opcode.COMMENT

    @property
    def is_control(self) -> bool:
        return self.opcode in CONTROL_OPCODES

    def __str__(self) -> str:
        """Canonical source form, accepted back by the parser."""
        match self.opcode:
            case Opcode.COMMENT:
                text = self.operands[0] if self.operands else ""
                return f"; {text}".rstrip()
            case Opcode.RGBA:
                return f"RGBA {self.operands[0]}"
            case _:
                parts = [self.mnemonic]
                parts.extend(_format_number(op) for op in self.operands)
                return " ".join(parts)
