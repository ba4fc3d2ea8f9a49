"""
Penplot Program Assembler
=========================

This package turns penplot program text into a Program that the machine
can execute.

Main Components
---------------
- **Lexer**: Splits text into source lines and whitespace-delimited tokens,
  separating trailing ``@ label`` annotations and comments
- **Parser**: Two-pass parser; pass 1 collects labels, pass 2 decodes
  operands and resolves label references to addresses
- **Instruction / Opcode**: The instruction set and its decoded values
- **Program**: Immutable instruction sequence plus label table

Example Usage
-------------
>>> from penplot.assembler import parse_program
>>> program = parse_program('''
... MOVE 5 5
... RGBA 255 0 0 255
... BLOT
... HALT
... ''')
>>> len(program)
4

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from penplot.assembler.instructions import (
    ADDRESS_OPCODES,
    CONTROL_OPCODES,
    MNEMONICS,
    OPCODE_TABLE,
    Instruction,
    InstructionInfo,
    Opcode,
    OperandKind,
    get_instruction_info,
)
from penplot.assembler.lexer import Lexer, LineKind, SourceLine, Token
from penplot.assembler.parser import (
    Parser,
    Program,
    parse_file,
    parse_instruction,
    parse_program,
)

__all__ = [
    # Instruction set
    "Opcode",
    "OperandKind",
    "InstructionInfo",
    "Instruction",
    "OPCODE_TABLE",
    "MNEMONICS",
    "CONTROL_OPCODES",
    "ADDRESS_OPCODES",
    "get_instruction_info",
    # Lexer
    "Lexer",
    "LineKind",
    "SourceLine",
    "Token",
    # Parser
    "Parser",
    "Program",
    "parse_program",
    "parse_instruction",
    "parse_file",
]
