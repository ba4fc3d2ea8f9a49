#!/usr/bin/env python3
"""
Penplot Demo
============

This script demonstrates how to use the penplot library to:
1. Run a program in one call
2. Step through a program and inspect the pen and call/loop stack
3. Stop at breakpoints
4. Generate a program from an L-system and render it

Usage:
    source .venv/bin/activate
    python examples/penplot_demo.py

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from pathlib import Path

import penplot
from penplot.lsystem import format_program, parse_lsystem_file
from penplot.machine import BlendMode, Machine, MachineConfig, StopReason


EXAMPLES = Path(__file__).parent


def main():
    output_dir = Path("out")
    output_dir.mkdir(exist_ok=True)

    # ==========================================================================
    # 1. One-shot execution
    # ==========================================================================
    # penplot.run() parses, runs to completion and returns the canvas.
    # Parse errors and runtime errors raise; there is no partial canvas.

    print("Running square.pen...")
    config = MachineConfig(width=64, height=64, trace_moves=True)
    source = (EXAMPLES / "square.pen").read_text(encoding="utf-8")
    canvas = penplot.run(source, config, filename="square.pen")
    canvas.save(output_dir / "square.png", scale=4)
    print(f"  {len(canvas.painted())} pixels painted -> {output_dir / 'square.png'}")

    # ==========================================================================
    # 2. Stepping
    # ==========================================================================
    # step() executes one instruction and reports a StopEvent.

    print("\nStepping through dots.pen...")
    machine = Machine(MachineConfig(width=32, height=32))
    machine.load(penplot.parse_file(EXAMPLES / "dots.pen"))

    while not machine.halted:
        pc = machine.pc
        instruction = machine.program[pc] if pc < len(machine.program) else None
        event = machine.step()
        if instruction is not None and not instruction.is_comment:
            print(f"  {pc:3d}  {str(instruction):<16} pen={machine.pen.pixel()} "
                  f"depth={len(machine.stack)}")
    print(f"  {event}")

    # ==========================================================================
    # 3. Breakpoints
    # ==========================================================================
    # Breakpoints stop before the instruction at their address executes.

    print("\nBreaking inside the square's loop body...")
    machine = Machine(config)
    machine.load_source(source, "square.pen")
    side = machine.program.labels["side"]
    machine.add_breakpoint(side)

    while True:
        event = machine.run(max_steps=10_000)
        if event.reason is not StopReason.BREAKPOINT:
            break
        frame = machine.stack[-1]
        print(f"  at {event.address}: heading={machine.pen.heading:g}, "
              f"iterations left={frame.remaining}")
    print(f"  {event}")

    # ==========================================================================
    # 4. L-systems
    # ==========================================================================
    # An L-system expands into ordinary program text.

    print("\nExpanding koch.lsys...")
    system = parse_lsystem_file(EXAMPLES / "koch.lsys")
    instructions = system.iterate(3)
    program_text = format_program(instructions)
    (output_dir / "koch.pen").write_text(program_text, encoding="utf-8")
    print(f"  {len(instructions)} instructions")

    snowflake = penplot.run(
        program_text,
        MachineConfig(width=200, height=240, origin=(19, 60),
                      pen_color=penplot.Color(20, 60, 200, 160),
                      trace_moves=True, blend=BlendMode.OVER),
    )
    snowflake.save(output_dir / "koch.png", scale=2)
    print(f"  Saved {output_dir / 'koch.png'}")


if __name__ == "__main__":
    main()
