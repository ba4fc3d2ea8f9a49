"""
penplot - Turtle Graphics Interpreter Command-Line Interface
=============================================================

This module implements the ``penplot`` command: running programs into PNG
images, checking programs without running them, and expanding L-system
specifications into program text.

Usage Examples
--------------
Run a program:
    $ penplot run square.pen square.png

Read the program from stdin, draw lines as the pen moves:
    $ cat star.pen | penplot run - star.png --trace --width 256 --height 256

Guard against programs that never halt:
    $ penplot run spiral.pen spiral.png --max-steps 100000

Check a program and print its canonical listing:
    $ penplot check square.pen --listing

Expand an L-system three times and render it:
    $ penplot fractal koch.lsys -c 3 -o koch.pen
    $ penplot run koch.pen koch.png --trace --origin 10 400

Environment
-----------
PENPLOT_WIDTH, PENPLOT_HEIGHT, PENPLOT_TRACE and PENPLOT_BLEND provide
defaults for ``run``; command-line options override them.

Exit Codes
----------
0 - Success
1 - Program error (parse, L-system or runtime)
2 - Invalid arguments or missing files
3 - Internal error

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import replace
from pathlib import Path
from typing import Optional, TextIO
import logging

import click

from penplot import __version__
from penplot.assembler import Instruction, parse_program
from penplot.cli.errors import handle_cli_exception
from penplot.lsystem import format_program, parse_lsystem
from penplot.machine import BlendMode, Machine, MachineConfig, StopReason
from penplot.errors import StepLimitError

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores options given to the group itself.
    """

    def __init__(self) -> None:
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.INFO
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


def source_name(stream: TextIO) -> str:
    """Name of an input stream for error messages."""
    return getattr(stream, "name", None) or "<input>"


def build_config(
    width: Optional[int],
    height: Optional[int],
    origin: Optional[tuple[float, float]],
    heading: Optional[float],
    trace: Optional[bool],
    blend: Optional[str],
) -> MachineConfig:
    """Environment defaults overlaid with the options actually given."""
    config = MachineConfig.from_env()
    changes: dict = {}
    if width is not None:
        changes["width"] = width
    if height is not None:
        changes["height"] = height
    if origin is not None:
        changes["origin"] = origin
    if heading is not None:
        changes["heading"] = heading
    if trace is not None:
        changes["trace_moves"] = trace
    if blend is not None:
        changes["blend"] = BlendMode(blend.lower())
    return replace(config, **changes) if changes else config


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output and debug logging",
)
@click.version_option(version=__version__, prog_name="penplot")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    A pseudo-assembly turtle graphics language.

    Programs steer a pen over an RGBA canvas; the result is saved as a
    PNG image.
    """
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Run Command
# =============================================================================

@main.command()
@click.argument("input_file", metavar="INPUT", type=click.File("r", encoding="utf-8"))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--width",
    type=click.IntRange(min=1),
    default=None,
    help="Canvas width in pixels (default: 512)",
)
@click.option(
    "--height",
    type=click.IntRange(min=1),
    default=None,
    help="Canvas height in pixels (default: 512)",
)
@click.option(
    "--origin",
    type=(float, float),
    default=None,
    help="Initial pen position X Y (default: 0 0)",
)
@click.option(
    "--heading",
    type=float,
    default=None,
    help="Initial heading in degrees (default: 0, along +x)",
)
@click.option(
    "--trace/--no-trace",
    default=None,
    help="Draw a line whenever the pen moves (default: off)",
)
@click.option(
    "--blend",
    type=click.Choice([mode.value for mode in BlendMode], case_sensitive=False),
    default=None,
    help="How drawn pixels combine with the canvas (default: replace)",
)
@click.option(
    "--max-steps",
    type=click.IntRange(min=1),
    default=None,
    help="Fail if the program has not halted after this many instructions",
)
@click.option(
    "--scale",
    type=click.IntRange(min=1),
    default=1,
    help="Integer upscaling factor for the saved image (default: 1)",
)
@click.option(
    "--trace-exec",
    is_flag=True,
    help="Print each instruction to stderr as it executes",
)
@pass_context
def run(
    ctx: Context,
    input_file: TextIO,
    output: Path,
    width: Optional[int],
    height: Optional[int],
    origin: Optional[tuple[float, float]],
    heading: Optional[float],
    trace: Optional[bool],
    blend: Optional[str],
    max_steps: Optional[int],
    scale: int,
    trace_exec: bool,
) -> None:
    """
    Run a program and save the canvas as a PNG.

    INPUT is the program file, or '-' to read from stdin.
    OUTPUT is the PNG file to write.

    \b
    Examples:
        penplot run square.pen square.png
        penplot run - out.png --trace < star.pen
    """
    try:
        config = build_config(width, height, origin, heading, trace, blend)
        logger.debug(f"Machine configuration: {config}")
        program = parse_program(input_file.read(), source_name(input_file))

        machine = Machine(config)
        machine.load(program)
        if trace_exec:
            def echo_instruction(pc: int, instruction: Instruction) -> None:
                click.echo(f"{pc:6d}  {instruction}", err=True)
            machine.on_instruction = echo_instruction

        if ctx.verbose:
            click.echo(f"Running {len(program)} instructions on a "
                       f"{config.width}x{config.height} canvas", err=True)

        event = machine.run(max_steps)
        if event.reason is StopReason.MAX_STEPS:
            raise StepLimitError(event.steps, address=event.address)

        output.write_bytes(machine.canvas.render_png(scale))

        if ctx.verbose:
            click.echo(f"{event} after {machine.steps_executed} steps", err=True)
            click.echo(f"Wrote {output}", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Check Command
# =============================================================================

@main.command()
@click.argument("input_file", metavar="INPUT", type=click.File("r", encoding="utf-8"))
@click.option(
    "-l", "--listing",
    is_flag=True,
    help="Print the canonical program listing instead of the label table",
)
@pass_context
def check(ctx: Context, input_file: TextIO, listing: bool) -> None:
    """
    Parse a program without running it.

    Reports the first error with its line, or prints a summary of the
    program.
    """
    try:
        program = parse_program(input_file.read(), source_name(input_file))

        if listing:
            click.echo(program.to_source(), nl=False)
            return

        click.echo(f"{program.filename}: {len(program)} instructions, "
                   f"{len(program.labels)} labels")
        for name, address in sorted(program.labels.items(), key=lambda item: item[1]):
            click.echo(f"  {address:6d}  {name}")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Fractal Command
# =============================================================================

@main.command()
@click.argument("input_file", metavar="INPUT", type=click.File("r", encoding="utf-8"))
@click.option(
    "-c", "--count",
    type=click.IntRange(min=0),
    required=True,
    help="Number of rewriting rounds",
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File to write the program to (default: stdout)",
)
@pass_context
def fractal(ctx: Context, input_file: TextIO, count: int, output: Optional[Path]) -> None:
    """
    Expand an L-system specification into a program.

    INPUT is the specification file, or '-' to read from stdin.

    \b
    Examples:
        penplot fractal koch.lsys -c 3 -o koch.pen
        penplot fractal koch.lsys -c 2 | penplot run - koch.png --trace
    """
    try:
        system = parse_lsystem(input_file.read(), source_name(input_file))
        instructions = system.iterate(count)
        text = format_program(instructions)

        if output is None:
            click.echo(text, nl=False)
        else:
            output.write_text(text, encoding="utf-8")
            if ctx.verbose:
                click.echo(f"Wrote {len(instructions)} instructions to {output}", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


if __name__ == "__main__":
    main()
