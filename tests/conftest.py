"""
Penplot Test Configuration
==========================

Shared fixtures for the penplot test suite.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from pathlib import Path

import pytest

from penplot.machine import Machine, MachineConfig


@pytest.fixture(scope="session")
def project_root() -> Path:
    """
    Fixture: Get project root directory.

    Returns the directory holding pyproject.toml.
    """
    current = Path(__file__).parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def examples_dir(project_root: Path) -> Path:
    """Fixture: Get examples directory."""
    return project_root / "examples"


@pytest.fixture
def make_machine():
    """
    Fixture: Factory for a machine loaded with program text.

    Usage:
        machine = make_machine("MOVE 5 5\\nBLOT", width=10, height=10)
    """
    def factory(source: str, **config) -> Machine:
        machine = Machine(MachineConfig(**config))
        machine.load_source(source)
        return machine

    return factory
