"""
Spring-Mass Cloth Simulation Package

A cloth sheet of point masses joined by damped springs, stepped with a
fixed-substep semi-implicit Euler scheme and resolving friction contact and
restitution collisions against a ground plane and a sphere.
"""

from .config import SimConfig
from .models import Plane, Point, Sphere, Spring, SpringKind, Vector3
from .simulation import ClothSimulation
from .solver import Particle, SpringLink, SpringMassSolver

__version__ = "0.1.0"

__all__ = [
    "ClothSimulation",
    "Particle",
    "Plane",
    "Point",
    "SimConfig",
    "Sphere",
    "Spring",
    "SpringKind",
    "SpringLink",
    "SpringMassSolver",
    "Vector3",
]
