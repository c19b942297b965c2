# grid.py
"""
Rectangular cloth mesh generation with:
1. Structural springs between direct horizontal/vertical neighbours
2. Both diagonals per cell (shear), each direction added twice
3. Skip-one bending springs along rows and columns
"""

import logging

import numpy as np

from springmass.config import SimConfig
from springmass.models import Point, Spring, SpringKind
from springmass.types import GEN_GRID

logger = logging.getLogger(__name__)


def grid_index(x: int, y: int, width: int) -> int:
    """Row-major index of grid cell (x, y)."""
    return y * width + x


def pinned_indices(width: int) -> tuple[int, int]:
    """The two corners of the first row that start pinned."""
    return 0, width - 1


def generate_grid(
    config: SimConfig,
    rng: np.random.Generator | None = None,
) -> GEN_GRID:
    """
    Generate a W x H cloth sheet hanging in the x/y plane.

    Particle (x, y) starts at ((x-1)*spacing, top-(y-1)*spacing, jitter) where
    the jitter is drawn per particle from [0, config.jitter) so that no spring
    starts perfectly coplanar with its neighbours.

    Args:
        config: Grid size, spacing, masses and spring stiffnesses
        rng: Source of jitter; defaults to one seeded with config.seed

    Returns:
        (points, springs) tuple
    """
    if rng is None:
        rng = np.random.default_rng(config.seed)

    width, height = config.width, config.height
    spacing = config.spacing
    points: list[Point] = []
    springs: list[Spring] = []

    # 1. POINTS, row by row
    for y in range(height):
        for x in range(width):
            points.append(
                Point(
                    (x - 1) * spacing,
                    config.top - (y - 1) * spacing,
                    float(rng.random()) * config.jitter,
                    mass=config.particle_mass,
                )
            )

    def add_spring(x0: int, y0: int, x1: int, y1: int, stiffness: float, kind: SpringKind) -> None:
        a = points[grid_index(x0, y0, width)]
        b = points[grid_index(x1, y1, width)]
        springs.append(Spring(a, b, stiffness=stiffness, kind=kind))

    # 2. STRUCTURAL springs
    for y in range(height):
        for x in range(width - 1):
            add_spring(x, y, x + 1, y, config.structural_stiffness, SpringKind.STRUCTURAL)
    for y in range(height - 1):
        for x in range(width):
            add_spring(x, y, x, y + 1, config.structural_stiffness, SpringKind.STRUCTURAL)

    # 3. SHEAR springs, both diagonals per cell.
    # The full pass runs twice, so every diagonal is present twice and shear
    # stiffness is effectively doubled.
    for _ in range(2):
        for y in range(height - 1):
            for x in range(width - 1):
                add_spring(x, y, x + 1, y + 1, config.shear_stiffness, SpringKind.SHEAR)
        for y in range(height - 1):
            for x in range(width - 1):
                add_spring(x, y + 1, x + 1, y, config.shear_stiffness, SpringKind.SHEAR)

    # 4. BENDING springs (skip one particle)
    for y in range(height):
        for x in range(width - 2):
            add_spring(x, y, x + 2, y, config.bend_stiffness, SpringKind.BEND)
    for y in range(height - 2):
        for x in range(width):
            add_spring(x, y, x, y + 2, config.bend_stiffness, SpringKind.BEND)

    # 5. PINS
    for idx in pinned_indices(width):
        points[idx].pinned = True

    counts = {kind: sum(1 for s in springs if s.kind is kind) for kind in SpringKind}
    logger.info(f"Generated {len(points)} points, {len(springs)} springs")
    logger.debug(
        f"  structural: {counts[SpringKind.STRUCTURAL]}, "
        f"shear: {counts[SpringKind.SHEAR]}, bend: {counts[SpringKind.BEND]}"
    )

    return points, springs
