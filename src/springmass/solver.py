# solver.py
"""
Explicit mass-spring solver over a particle arena.

Particles live as rows of contiguous arrays (``pos``, ``vel``, ``force``,
``mass``, ``fixed``); springs are pairs of row indices. :class:`Particle` and
:class:`SpringLink` are thin handles onto those rows, so every operation on a
handle acts on the same live state the batch kernels step.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging

import numpy as np

from springmass import kernels
from springmass.config import SimConfig
from springmass.models import Plane, Point, Sphere, Spring, SpringKind
from springmass.types import INDEX, MASK, VEC

logger = logging.getLogger(__name__)


class Particle:
    """Live view of one mass point in a :class:`SpringMassSolver`."""

    __slots__ = ["_solver", "index"]

    def __init__(self, solver: SpringMassSolver, index: int) -> None:
        self._solver = solver
        self.index = index

    def __repr__(self) -> str:
        x, y, z = self.position
        return f"Particle({self.index}, pos=({x:.3f}, {y:.3f}, {z:.3f}), fixed={self.fixed})"

    @property
    def mass(self) -> float:
        return float(self._solver.mass[self.index])

    @property
    def position(self) -> VEC:
        return self._solver.pos[self.index]

    @property
    def velocity(self) -> VEC:
        return self._solver.vel[self.index]

    @property
    def force(self) -> VEC:
        return self._solver.force[self.index]

    @property
    def fixed(self) -> bool:
        return bool(self._solver.fixed[self.index])

    @fixed.setter
    def fixed(self, value: bool) -> None:
        self._solver.fixed[self.index] = value

    def clear_force(self) -> None:
        kernels.clear_force(self.force)

    def add_force(self, force: Sequence[float] | VEC) -> None:
        kernels.add_force(self.force, np.asarray(force, dtype=np.float64))

    def step(self, dt: float) -> None:
        kernels.step_particle(self.position, self.velocity, self.force, self.mass, self.fixed, dt)

    def is_contacting(self, obstacle: Plane | Sphere) -> bool:
        cfg = self._solver.config
        if isinstance(obstacle, Plane):
            p, n = _plane_arrays(obstacle)
            return bool(
                kernels.is_contacting_plane(
                    self.position, self.velocity, p, n, cfg.contact_distance, cfg.slow_speed
                )
            )
        c = obstacle.center.to_array()
        return bool(
            kernels.is_contacting_sphere(
                self.position, self.velocity, c, obstacle.radius,
                cfg.surface_epsilon, cfg.slow_speed,
            )
        )

    def resolve_contact(self, obstacle: Plane | Sphere, dt: float) -> bool:
        """Friction plus normal-force cancellation; a no-op unless in slow contact."""
        cfg = self._solver.config
        if isinstance(obstacle, Plane):
            p, n = _plane_arrays(obstacle)
            return bool(
                kernels.resolve_contact_plane(
                    self.position, self.velocity, self.force, self.mass, p, n,
                    dt, cfg.friction, cfg.contact_distance, cfg.slow_speed,
                )
            )
        c = obstacle.center.to_array()
        return bool(
            kernels.resolve_contact_sphere(
                self.position, self.velocity, self.force, self.mass, c, obstacle.radius,
                dt, cfg.friction, cfg.surface_epsilon, cfg.slow_speed,
            )
        )

    def resolve_collision(self, obstacle: Plane | Sphere) -> bool:
        """Restitution for a penetrating, approaching particle."""
        cfg = self._solver.config
        if isinstance(obstacle, Plane):
            p, n = _plane_arrays(obstacle)
            return bool(
                kernels.resolve_collision_plane(
                    self.position, self.velocity, p, n, cfg.restitution, cfg.penetration_distance
                )
            )
        c = obstacle.center.to_array()
        return bool(
            kernels.resolve_collision_sphere(
                self.position, self.velocity, c, obstacle.radius,
                cfg.restitution, cfg.surface_epsilon,
            )
        )


class SpringLink:
    """Live view of one spring: two arena indices plus its constants."""

    __slots__ = ["_solver", "index"]

    def __init__(self, solver: SpringMassSolver, index: int) -> None:
        self._solver = solver
        self.index = index

    @property
    def i(self) -> int:
        return int(self._solver.spring_i[self.index])

    @property
    def j(self) -> int:
        return int(self._solver.spring_j[self.index])

    @property
    def rest_length(self) -> float:
        return float(self._solver.rest_lengths[self.index])

    @property
    def stiffness(self) -> float:
        return float(self._solver.stiffness[self.index])

    @property
    def kind(self) -> SpringKind:
        return self._solver.spring_kinds[self.index]

    def length(self) -> float:
        s = self._solver
        return float(np.linalg.norm(s.pos[self.j] - s.pos[self.i]))

    def add_force(self) -> None:
        s = self._solver
        a, b = self.i, self.j
        kernels.spring_force(
            s.pos[a], s.vel[a], s.force[a], s.pos[b], s.vel[b], s.force[b],
            self.rest_length, self.stiffness, s.config.spring_damping,
        )


def _plane_arrays(plane: Plane) -> tuple[VEC, VEC]:
    return plane.point.to_array(), plane.normal.to_array()


# ===============================
# SOLVER CLASS
# ===============================


class SpringMassSolver:
    """
    Fixed-substep explicit solver:
    - semi-implicit Euler integration
    - damped springs accumulated in conflict-free color groups
    - slow contact (friction) before integration, fast collision after
    - divergence detection after every advance
    """

    def __init__(
        self,
        points: list[Point],
        springs: list[Spring],
        config: SimConfig,
        ground: Plane | None = None,
        obstacle: Sphere | None = None,
    ) -> None:
        self.config = config
        self.ground = ground if ground is not None else config.ground()
        self.obstacle = obstacle if obstacle is not None else config.obstacle()

        # Particle arena
        n = len(points)
        self.pos: VEC = np.array([tuple(p.pos) for p in points], dtype=np.float64).reshape(n, 3)
        self.vel: VEC = np.zeros((n, 3), dtype=np.float64)
        self.force: VEC = np.zeros((n, 3), dtype=np.float64)
        self.mass: VEC = np.array([p.mass for p in points], dtype=np.float64)
        self.fixed: MASK = np.array([p.pinned for p in points], dtype=np.bool_)
        if n and not (self.mass > 0).all():
            raise ValueError("Every particle mass must be positive")

        # Springs as index pairs into the arena
        p_to_idx = {id(p): i for i, p in enumerate(points)}
        try:
            self.spring_i: INDEX = np.array([p_to_idx[id(s.a)] for s in springs], dtype=np.int32)
            self.spring_j: INDEX = np.array([p_to_idx[id(s.b)] for s in springs], dtype=np.int32)
        except KeyError:
            raise ValueError("Spring references a point that is not part of the mesh") from None
        self.rest_lengths: VEC = np.array([s.rest_length for s in springs], dtype=np.float64)
        self.stiffness: VEC = np.array([s.stiffness for s in springs], dtype=np.float64)
        self.spring_kinds: list[SpringKind] = [s.kind for s in springs]
        self.spring_color_groups = kernels.color_springs(self.spring_i, self.spring_j, n)

        # Obstacles and global forces as arrays, built once
        self._gravity = np.array(config.gravity, dtype=np.float64)
        self._plane_p, self._plane_n = _plane_arrays(self.ground)
        self._center = self.obstacle.center.to_array()
        self._radius = float(self.obstacle.radius)

        self.particles = [Particle(self, i) for i in range(n)]
        self.springs = [SpringLink(self, k) for k in range(len(springs))]

        # Diagnostics
        self.is_exploded = False
        self.max_speed = 0.0
        self.steps = 0

        logger.info(
            f"Solver initialized: {n} particles, {len(springs)} springs, "
            f"{len(self.spring_color_groups)} color groups, {config.substeps} substeps"
        )

    def substep(self, dt: float) -> None:
        """One physics update of size ``dt``."""
        cfg = self.config

        # 1. Clear
        self.force.fill(0.0)

        # 2. Gravity and drag
        kernels.apply_global_forces(self.force, self.vel, self.mass, self._gravity, cfg.drag)

        # 3. Springs; groups run in order, each group in parallel
        for group in self.spring_color_groups:
            kernels.accumulate_spring_group(
                self.pos,
                self.vel,
                self.force,
                group,
                self.spring_i,
                self.spring_j,
                self.rest_lengths,
                self.stiffness,
                cfg.spring_damping,
            )

        # 4. Slow contact
        kernels.resolve_contacts(
            self.pos,
            self.vel,
            self.force,
            self.mass,
            self._plane_p,
            self._plane_n,
            self._center,
            self._radius,
            dt,
            cfg.friction,
            cfg.contact_distance,
            cfg.surface_epsilon,
            cfg.slow_speed,
        )

        # 5. Integrate
        kernels.integrate(self.pos, self.vel, self.force, self.mass, self.fixed, dt)

        # 6. Fast collision
        kernels.resolve_collisions(
            self.pos,
            self.vel,
            self._plane_p,
            self._plane_n,
            self._center,
            self._radius,
            cfg.restitution,
            cfg.penetration_distance,
            cfg.surface_epsilon,
        )

    def advance(self, dt: float) -> None:
        """Advance by ``dt`` using ``config.substeps`` equal substeps."""
        if self.is_exploded or dt <= 0:
            return

        substeps = self.config.substeps
        h = dt / substeps
        for _ in range(substeps):
            self.substep(h)
        self.steps += substeps

        if not (np.isfinite(self.pos).all() and np.isfinite(self.vel).all()):
            self.is_exploded = True
            logger.warning(
                f"Simulation became unstable after {self.steps} substeps "
                f"(max speed before divergence: {self.max_speed:.4f})"
            )
            return

        if len(self.vel):
            speed = float(np.sqrt((self.vel * self.vel).sum(axis=1).max()))
            self.max_speed = max(self.max_speed, speed)

    def toggle_pin(self, index: int) -> bool:
        if not 0 <= index < len(self.fixed):
            raise IndexError(f"Particle index {index} out of range [0, {len(self.fixed)})")
        self.fixed[index] = not self.fixed[index]
        logger.info(f"Particle {index} {'pinned' if self.fixed[index] else 'released'}")
        return bool(self.fixed[index])

    # ------------------------
    # Host reads (between advance calls)
    # ------------------------

    def positions(self) -> VEC:
        return self.pos.copy()

    def segments(self) -> VEC:
        """Spring endpoints as an (M, 2, 3) array."""
        return np.stack((self.pos[self.spring_i], self.pos[self.spring_j]), axis=1)

    def total_momentum(self) -> VEC:
        return (self.mass[:, None] * self.vel).sum(axis=0)
