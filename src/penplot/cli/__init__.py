"""
Penplot Command-Line Interface
==============================

The ``penplot`` command is a Click group with three subcommands:

- **run**: Execute a program and write the canvas as a PNG
- **check**: Parse a program without running it
- **fractal**: Expand an L-system specification into program text

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

__all__ = ["penplot"]
