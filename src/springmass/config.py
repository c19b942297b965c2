"""
Simulation configuration.

All physical constants of the cloth live in :class:`SimConfig`. The defaults
reproduce the reference scene: a 20 x 20 sheet of 10 g masses hanging from two
corners above a ground plane, with a large sphere underneath.

Any field can be overridden from the environment with a ``SPRINGMASS_``
prefixed variable (``SPRINGMASS_SUBSTEPS=200``, ``SPRINGMASS_GRAVITY=0,-9.8,0``).
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
import logging
import os
from typing import Any

from springmass.models import Plane, Sphere, Vector3

logger = logging.getLogger(__name__)

ENV_PREFIX = "SPRINGMASS_"


@dataclass(frozen=True)
class SimConfig:
    # Mesh
    width: int = 20
    height: int = 20
    spacing: float = 2.0
    top: float = 100.0
    jitter: float = 0.1
    particle_mass: float = 0.01
    seed: int | None = None

    # Springs
    structural_stiffness: float = 800.0
    shear_stiffness: float = 200.0
    bend_stiffness: float = 100.0
    spring_damping: float = 0.01

    # Global forces
    gravity: tuple[float, float, float] = (0.0, -980.0, 0.0)
    drag: float = 0.05

    # Contact / collision
    friction: float = 10.0
    restitution: float = 0.8
    contact_distance: float = 1e-3
    penetration_distance: float = 1e-5
    surface_epsilon: float = 1e-4
    slow_speed: float = 30.0

    # Obstacles
    ground_point: tuple[float, float, float] = (0.0, 0.0, 0.0)
    ground_normal: tuple[float, float, float] = (0.0, 1.0, 0.0)
    sphere_center: tuple[float, float, float] = (0.0, 30.0, -5.0)
    sphere_radius: float = 30.0

    # Time stepping
    substeps: int = 100
    fps: int = 60

    def validate(self) -> SimConfig:
        """Raise ``ValueError`` for settings the solver cannot run with."""
        if self.width < 2 or self.height < 2:
            raise ValueError(f"Grid must be at least 2x2, got {self.width}x{self.height}")
        if self.spacing <= 0:
            raise ValueError(f"spacing must be positive, got {self.spacing}")
        if self.particle_mass <= 0:
            raise ValueError(f"particle_mass must be positive, got {self.particle_mass}")
        if self.jitter < 0:
            raise ValueError(f"jitter must be non-negative, got {self.jitter}")
        if self.substeps < 1:
            raise ValueError(f"substeps must be >= 1, got {self.substeps}")
        if self.fps < 1:
            raise ValueError(f"fps must be >= 1, got {self.fps}")
        for name in (
            "drag",
            "spring_damping",
            "friction",
            "contact_distance",
            "penetration_distance",
            "surface_epsilon",
            "slow_speed",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if not 0.0 <= self.restitution <= 1.0:
            raise ValueError(f"restitution must be within [0, 1], got {self.restitution}")
        if self.sphere_radius <= 0:
            raise ValueError(f"sphere_radius must be positive, got {self.sphere_radius}")
        if not any(self.ground_normal):
            raise ValueError("ground_normal must be non-zero")
        return self

    def ground(self) -> Plane:
        return Plane(Vector3(*self.ground_point), Vector3(*self.ground_normal))

    def obstacle(self) -> Sphere:
        return Sphere(Vector3(*self.sphere_center), self.sphere_radius)

    def with_overrides(self, **kwargs: Any) -> SimConfig:
        return replace(self, **kwargs).validate()

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> SimConfig:
        """Build a config from ``SPRINGMASS_*`` variables on top of the defaults."""
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            overrides[f.name] = _parse(f.name, raw, getattr(cls(), f.name))
            logger.debug(f"Config override from env: {f.name}={overrides[f.name]!r}")
        return cls(**overrides).validate()


def _parse(name: str, raw: str, default: Any) -> Any:
    try:
        if isinstance(default, tuple):
            values = tuple(float(v) for v in raw.split(","))
            if len(values) != 3:
                raise ValueError(f"expected 3 components, got {len(values)}")
            return values
        if isinstance(default, int) or name == "seed":
            return int(raw)
        return float(raw)
    except ValueError as e:
        raise ValueError(f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r} ({e})") from e
