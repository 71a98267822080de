"""Pytest configuration for the tube_fem test suite.

Plotting tests run headless, so the non-interactive Agg backend is selected
before matplotlib is imported anywhere.
"""

import os

import pytest

os.environ.setdefault("MPLBACKEND", "Agg")

from tube_fem.defaults import PHYSICS_PARAMS  # noqa: E402
from tube_fem.mesh import generate_mesh  # noqa: E402


@pytest.fixture
def air():
    """Medium used throughout the original analysis scripts."""
    return dict(PHYSICS_PARAMS)


@pytest.fixture
def quadratic_mesh(air):
    """L = 1 m tube sized for 1 kHz: 18 quadratic elements, 37 nodes."""
    return generate_mesh(1.0, air["c0"] / 1000.0, shape_type=2)


@pytest.fixture
def linear_mesh(air):
    """L = 1 m tube sized for 1 kHz: 18 linear elements, 19 nodes."""
    return generate_mesh(1.0, air["c0"] / 1000.0, shape_type=1)
