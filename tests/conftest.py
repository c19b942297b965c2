"""Pytest configuration and shared fixtures."""

import pytest

from springmass.config import SimConfig
from springmass.models import Point, Spring
from springmass.solver import SpringMassSolver

# Obstacles parked far from anything a test builds near the origin
FAR_GROUND = (0.0, -1.0e6, 0.0)
FAR_SPHERE = (1.0e6, 1.0e6, 1.0e6)


@pytest.fixture
def free_config():
    """No gravity, no drag, obstacles out of reach."""
    return SimConfig(
        gravity=(0.0, 0.0, 0.0),
        drag=0.0,
        ground_point=FAR_GROUND,
        sphere_center=FAR_SPHERE,
        sphere_radius=1.0,
        substeps=10,
    )


@pytest.fixture
def make_solver():
    """Build a solver from (x, y, z) tuples plus optional (i, j, stiffness) springs."""

    def _make(config, positions, springs=(), masses=None, **kwargs):
        masses = masses or [config.particle_mass] * len(positions)
        points = [Point(*p, mass=m) for p, m in zip(positions, masses)]
        links = [Spring(points[i], points[j], stiffness=k) for i, j, k in springs]
        return SpringMassSolver(points, links, config, **kwargs)

    return _make


@pytest.fixture
def small_config():
    """A quick 6x5 cloth with a fixed seed."""
    return SimConfig(width=6, height=5, seed=1234)
