"""
Plane geometry for brush faces.

Vectors are immutable triples with the handful of operations the converter
needs. Planes are stored as the three points Hammer wrote, since both the
source and the target format describe faces that way.
"""

from __future__ import annotations
import math
import numbers
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence

import numpy as np

EPSILON = 1e-6


class Axis(IntEnum):
    """Discrete facing directions, numbered the way ``func_wall`` expects."""
    POS_X = 0   # East
    NEG_X = 1   # West
    POS_Y = 2   # North
    NEG_Y = 3   # South
    POS_Z = 4   # Up
    NEG_Z = 5   # Down


# Row i is the unit vector of Axis(i)
AXIS_VECTORS = np.array([
    (1.0, 0.0, 0.0),
    (-1.0, 0.0, 0.0),
    (0.0, 1.0, 0.0),
    (0.0, -1.0, 0.0),
    (0.0, 0.0, 1.0),
    (0.0, 0.0, -1.0),
])


def format_number(value: float) -> str:
    """Format a number the way the MAP tools expect it.

    Integral values drop their fractional part (``96.0`` -> ``96``), negative
    zero prints as ``0`` and everything else uses the shortest round-trip
    representation.
    """
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _component(value, name: str) -> float:
    if isinstance(value, bool):
        raise TypeError(f"{name} component is not a number")
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            raise TypeError(f"{name} component is not a number: {value!r}") from None
    elif not isinstance(value, numbers.Real):
        raise TypeError(f"{name} component is not a number: {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise TypeError(f"{name} component is not finite: {value!r}")
    return value


@dataclass(frozen=True)
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "x", _component(self.x, "X"))
        object.__setattr__(self, "y", _component(self.y, "Y"))
        object.__setattr__(self, "z", _component(self.z, "Z"))

    # ---------------------------------------------------------------
    # Constructors
    # ---------------------------------------------------------------

    @classmethod
    def from_string(cls, text: str) -> "Vector3":
        """Parse a space-delimited triple such as ``"128 -64  32"``."""
        parts = text.split()
        if len(parts) != 3:
            raise ValueError(f"Expected 3 vector components, got {len(parts)}: {text!r}")
        return cls(*parts)

    @classmethod
    def from_angles(cls, angles: "Vector3") -> "Vector3":
        """Forward vector for Hammer ``pitch yaw roll`` angles in degrees.

        Roll does not change the forward direction and is ignored.
        """
        pitch = math.radians(angles.x)
        yaw = math.radians(angles.y)
        cy, sy = math.cos(yaw), math.sin(yaw)
        cp, sp = math.cos(pitch), math.sin(pitch)
        return cls(cy * cp, sy * cp, -sp)

    # ---------------------------------------------------------------
    # Arithmetic
    # ---------------------------------------------------------------

    def copy(self) -> "Vector3":
        return Vector3(self.x, self.y, self.z)

    def scale(self, factor: float) -> "Vector3":
        return Vector3(self.x * factor, self.y * factor, self.z * factor)

    def add(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def sub(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def cross(self, other: "Vector3") -> "Vector3":
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalize(self) -> "Vector3":
        ln = self.length()
        if ln == 0:
            raise ValueError("Cannot normalize a zero-length vector")
        return self.scale(1.0 / ln)

    __add__ = add
    __sub__ = sub

    def __mul__(self, factor: float) -> "Vector3":
        return self.scale(factor)

    # ---------------------------------------------------------------
    # Axis checks
    # ---------------------------------------------------------------

    def as_array(self) -> np.ndarray:
        return np.array((self.x, self.y, self.z))

    def near(self, other: "Vector3", epsilon: float = EPSILON) -> bool:
        """True if every component is within ``epsilon`` of ``other``."""
        return (
            abs(self.x - other.x) < epsilon
            and abs(self.y - other.y) < epsilon
            and abs(self.z - other.z) < epsilon
        )

    def get_axis(self) -> Optional[Axis]:
        """Return the axis this vector points along, or None."""
        return axes_of(self.as_array()[np.newaxis, :])[0]

    def __str__(self) -> str:
        return f"{format_number(self.x)} {format_number(self.y)} {format_number(self.z)}"


def axes_of(normals: np.ndarray) -> List[Optional[Axis]]:
    """Classify an (N, 3) array of unit normals against the six axes."""
    if len(normals) == 0:
        return []
    close = np.all(np.abs(normals[:, np.newaxis, :] - AXIS_VECTORS[np.newaxis, :, :]) < EPSILON, axis=2)
    result: List[Optional[Axis]] = []
    for row in close:
        hits = np.flatnonzero(row)
        result.append(Axis(int(hits[0])) if len(hits) else None)
    return result


class Plane:
    """A brush plane through three points.

    The point order decides which way the face points; it is carried
    through untouched from the source file to the output.
    """

    def __init__(self, points: Sequence[Vector3]):
        points = list(points)
        if len(points) != 3:
            raise ValueError(f"A plane needs exactly 3 points, got {len(points)}")
        for i, point in enumerate(points):
            if not isinstance(point, Vector3):
                raise TypeError(f"Point {i + 1} is not a Vector3")
        self.points: List[Vector3] = points

    @classmethod
    def from_string(cls, text: str) -> "Plane":
        """Parse ``"(x y z) (x y z) (x y z)"``."""
        groups = text.replace(")", "").split("(")[1:]
        return cls([Vector3.from_string(g) for g in groups])

    def normal(self) -> Vector3:
        p0, p1, p2 = self.points
        v1 = p1.sub(p0)
        v2 = p2.sub(p0)
        return v2.cross(v1).normalize()

    def scale(self, factor: float) -> "Plane":
        return Plane([p.scale(factor) for p in self.points])

    def __eq__(self, other) -> bool:
        return isinstance(other, Plane) and self.points == other.points

    def __str__(self) -> str:
        return " ".join(f"( {p} )" for p in self.points)

    def __repr__(self) -> str:
        return f"Plane({self})"
