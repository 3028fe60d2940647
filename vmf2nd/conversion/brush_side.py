"""
Brush side conversion between VMF side blocks and MAP side lines.

MAP side line format (Valve 220 texture axes):
    ( x y z ) ( x y z ) ( x y z ) TEXTURE [ ux uy uz uoff ] [ vx vy vz voff ] rot uscale vscale

csg.exe needs the trailing space after the V scale, so lines are always
emitted with it.
"""

from __future__ import annotations
import re
from typing import List, Mapping, Optional, Sequence

from .materials import Material, MaterialTable
from .plane_math import Plane, Vector3, format_number

PARAM_COUNT = 5
OFFSET_SLOT = 3
SCALE_SLOT = 4

_MAP_LINE_RE = re.compile(
    r"^(?P<plane>(?:\(\s*[^()]+\)\s*){3})"
    r"(?P<texture>\S+)\s+"
    r"\[\s*(?P<u>[^\]]+?)\s*\]\s+"
    r"\[\s*(?P<v>[^\]]+?)\s*\]\s+"
    r"(?P<rotation>\S+)\s+(?P<uscale>\S+)\s+(?P<vscale>\S+) ?$"
)


def parse_axis(text: str) -> List[float]:
    """Parse a VMF texture axis like ``"[1 0 0 0] 0.25"`` into 5 floats."""
    parts = text.replace("[", " ").replace("]", " ").split()
    if len(parts) != PARAM_COUNT:
        raise ValueError(f"Texture axis needs {PARAM_COUNT} values, got {len(parts)}: {text!r}")
    return [_number(p) for p in parts]


def _number(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        raise TypeError(f"Texture parameter is not a number: {text!r}") from None


class Side:
    """One textured face of a solid."""

    def __init__(self, plane: Plane, uparams: Sequence[float], vparams: Sequence[float],
                 rotation: float, material: Material):
        if len(uparams) != PARAM_COUNT or len(vparams) != PARAM_COUNT:
            raise ValueError(f"Texture parameters need exactly {PARAM_COUNT} slots")
        self.plane = plane
        self.uparams = [float(v) for v in uparams]
        self.vparams = [float(v) for v in vparams]
        self.rotation = float(rotation)
        self.material = material

    @classmethod
    def from_vmf(cls, side: Mapping[str, str], materials: MaterialTable) -> "Side":
        """Build a Side from a VMF ``side`` block."""
        for key in ("plane", "uaxis", "vaxis"):
            if key not in side:
                raise ValueError(f"Side {side.get('id', '?')} has no {key}")
        return cls(
            Plane.from_string(side["plane"]),
            parse_axis(side["uaxis"]),
            parse_axis(side["vaxis"]),
            _number(side.get("rotation") or "0"),
            materials.resolve(side.get("material")),
        )

    @classmethod
    def from_map_line(cls, line: str, materials: MaterialTable) -> "Side":
        """Parse a side line previously produced by ``to_line``."""
        match = _MAP_LINE_RE.match(line.rstrip("\n"))
        if match is None:
            raise ValueError(f"Not a MAP side line: {line!r}")
        u = [_number(p) for p in match["u"].split()]
        v = [_number(p) for p in match["v"].split()]
        if len(u) != 4 or len(v) != 4:
            raise ValueError(f"Texture axes need 4 values: {line!r}")
        return cls(
            Plane.from_string(match["plane"]),
            u + [_number(match["uscale"])],
            v + [_number(match["vscale"])],
            _number(match["rotation"]),
            materials.by_texture(match["texture"]),
        )

    def scale(self, factor: float) -> "Side":
        """Scale the plane and texture offsets in place."""
        self.plane = self.plane.scale(factor)
        self.uparams[OFFSET_SLOT] *= factor
        self.vparams[OFFSET_SLOT] *= factor
        return self

    @property
    def texture(self) -> str:
        return self.material.texture

    def normal(self) -> Vector3:
        return self.plane.normal()

    def to_line(self, texture: Optional[str] = None) -> str:
        u = " ".join(format_number(p) for p in self.uparams[:SCALE_SLOT])
        v = " ".join(format_number(p) for p in self.vparams[:SCALE_SLOT])
        return (
            f"{self.plane} {texture or self.material.texture} "
            f"[ {u} ] [ {v} ] "
            f"{format_number(self.rotation)} "
            f"{format_number(self.uparams[SCALE_SLOT])} "
            f"{format_number(self.vparams[SCALE_SLOT])} "
        )

    def __str__(self) -> str:
        return self.to_line()
