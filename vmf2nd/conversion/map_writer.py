"""
Narbacular Drop MAP document writer.

Builds the map as a worldspawn header followed by independent entity
blocks. Keyvalues are kept as ordered pairs so that output is byte-stable
between runs.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .brush_side import Side
from .materials import Material
from .plane_math import Plane, Vector3, format_number

MAP_VERSION = "220"

KeyValue = Tuple[str, str]


def _value_text(value) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


@dataclass
class MapEntity:
    """
    An entity block in the output map.

    Point entities carry keyvalues only; brush entities also carry the
    sides of a single brush.
    """
    keyvalues: List[KeyValue] = field(default_factory=list)
    sides: Optional[List[Side]] = None

    @classmethod
    def create(cls, pairs: Iterable[Tuple[str, object]], sides: Optional[List[Side]] = None) -> "MapEntity":
        return cls([(key, _value_text(value)) for key, value in pairs], sides)

    @property
    def classname(self) -> str:
        return self.get("classname") or ""

    def get(self, key: str) -> Optional[str]:
        for k, v in self.keyvalues:
            if k == key:
                return v
        return None

    def set_property(self, key: str, value) -> None:
        """Append a keyvalue, keeping insertion order."""
        self.keyvalues.append((key, _value_text(value)))

    def render(self) -> str:
        lines = ["{\n"]
        for key, value in self.keyvalues:
            lines.append(f'"{key}" "{value}"\n')
        if self.sides is not None:
            lines.append("{\n")
            lines.append("\n".join(side.to_line() for side in self.sides))
            lines.append("\n}\n")
        lines.append("}\n")
        return "".join(lines)


class MapDocument:
    """
    Accumulates the output map.

    World brushes (anonymous geometry with no keyvalues, such as logic cell
    enclosures) are embedded in the worldspawn block; everything else is an
    entity block appended in order.
    """

    def __init__(self, wad_path: Union[str, Path]):
        self.wad_path = str(wad_path)
        self.world_brushes: List[List[Side]] = []
        self.entities: List[MapEntity] = []

    def add_entity(self, entity: MapEntity) -> MapEntity:
        self.entities.append(entity)
        return entity

    def add_point(self, *pairs: Tuple[str, object]) -> MapEntity:
        """Append a point entity from ordered (key, value) pairs."""
        return self.add_entity(MapEntity.create(pairs))

    def add_brush_entity(self, pairs: Iterable[Tuple[str, object]], sides: List[Side]) -> MapEntity:
        return self.add_entity(MapEntity.create(pairs, sides))

    def add_world_brush(self, sides: List[Side]) -> None:
        self.world_brushes.append(sides)

    def entities_of(self, classname: str) -> List[MapEntity]:
        return [e for e in self.entities if e.classname == classname]

    def render_worldspawn(self) -> str:
        lines = [
            "{\n",
            '"classname" "worldspawn"\n',
            f'"mapversion" "{MAP_VERSION}"\n',
            f'"wad" "{self.wad_path}"\n',
        ]
        for sides in self.world_brushes:
            lines.append("{\n")
            lines.append("\n".join(side.to_line() for side in sides))
            lines.append("\n}\n")
        lines.append("}\n")
        return "".join(lines)

    def render(self) -> str:
        return self.render_worldspawn() + "".join(e.render() for e in self.entities)

    def write(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.write_text(self.render(), encoding="utf-8")
        return path


def replace_texture(text: str, texture: str, replacement: str) -> str:
    """Replace whole-token occurrences of ``texture`` in rendered map text."""
    pattern = re.compile(r"(?<!\S)" + re.escape(texture) + r"(?!\S)")
    return pattern.sub(replacement, text)


def create_box_brush(origin: Vector3, size: Vector3, material: Material) -> List[Side]:
    """
    Create an axis-aligned box brush with 6 faces.

    Args:
        origin: Center of the box, already unit scaled
        size: Half-extent of the box on every axis, already unit scaled
        material: Material used for all faces

    Returns:
        Six sides, outward facing, in top/bottom/west/east/north/south order
    """
    x1, y1, z1 = origin.x - size.x, origin.y - size.y, origin.z - size.z
    x2, y2, z2 = origin.x + size.x, origin.y + size.y, origin.z + size.z

    def side(p1, p2, p3, u, v) -> Side:
        plane = Plane([Vector3(*p1), Vector3(*p2), Vector3(*p3)])
        return Side(plane, list(u) + [1.0], list(v) + [1.0], 0, material)

    return [
        # Top face (Z = z2 plane)
        side((x1, y2, z2), (x2, y2, z2), (x2, y1, z2), (1, 0, 0, 0), (0, -1, 0, 0)),
        # Bottom face (Z = z1 plane)
        side((x1, y1, z1), (x2, y1, z1), (x2, y2, z1), (1, 0, 0, 0), (0, -1, 0, 0)),
        # West face (X = x1 plane)
        side((x1, y2, z2), (x1, y1, z2), (x1, y1, z1), (0, 1, 0, 0), (0, 0, -1, 0)),
        # East face (X = x2 plane)
        side((x2, y2, z1), (x2, y1, z1), (x2, y1, z2), (0, 1, 0, 0), (0, 0, -1, 0)),
        # North face (Y = y2 plane)
        side((x2, y2, z2), (x1, y2, z2), (x1, y2, z1), (1, 0, 0, 0), (0, 0, -1, 0)),
        # South face (Y = y1 plane)
        side((x2, y1, z1), (x1, y1, z1), (x1, y1, z2), (1, 0, 0, 0), (0, 0, -1, 0)),
    ]
