# models.py
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
import math

import numpy as np


class Vector3:
    """Immutable 3-component vector; arithmetic returns new instances."""

    __slots__ = ["x", "y", "z"]

    x: float
    y: float
    z: float

    def __init__(self, x: float, y: float, z: float) -> None:
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)
        object.__setattr__(self, "z", z)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"Vector3 is immutable; cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Vector3 is immutable; cannot delete {name!r}")

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __repr__(self) -> str:
        return f"Vector3({self.x:g}, {self.y:g}, {self.z:g})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector3):
            return NotImplemented
        return self.x == other.x and self.y == other.y and self.z == other.z

    def __hash__(self) -> int:
        return hash((self.x, self.y, self.z))

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __rmul__(self, scalar: float) -> Vector3:  # Handles: scalar * vector
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> Vector3:
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def dot(self, other: Vector3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def length(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def normalize(self) -> Vector3:
        length = self.length()
        return self / length if length != 0 else Vector3(0, 0, 0)

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)


class Point:
    """Build-time description of one mass point, consumed by the solver."""

    def __init__(
        self, x: float, y: float, z: float, mass: float = 0.01, pinned: bool = False
    ) -> None:
        self.pos = Vector3(x, y, z)
        self.mass = mass
        self.pinned = pinned  # If True, integration leaves this point in place


class SpringKind(str, Enum):
    STRUCTURAL = "structural"
    SHEAR = "shear"
    BEND = "bend"


class Spring:
    def __init__(
        self,
        a: Point,
        b: Point,
        stiffness: float = 800.0,
        kind: SpringKind = SpringKind.STRUCTURAL,
    ) -> None:
        self.a = a
        self.b = b
        self.stiffness = stiffness
        self.kind = kind
        # Captured once; later edits to a.pos / b.pos do not change it
        self._rest_length = (b.pos - a.pos).length()

    @property
    def rest_length(self) -> float:
        return self._rest_length


# ------------------------
# Static obstacles
# ------------------------


@dataclass(frozen=True)
class Plane:
    """Infinite plane through ``point``; ``normal`` points to the free side."""

    point: Vector3
    normal: Vector3

    def __post_init__(self) -> None:
        length = self.normal.length()
        if length == 0:
            raise ValueError("Plane normal must be non-zero")
        object.__setattr__(self, "normal", self.normal / length)


@dataclass(frozen=True)
class Sphere:
    center: Vector3
    radius: float

    def __post_init__(self) -> None:
        if not self.radius > 0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")
