"""
Solid classification and emission.

Axis-aligned boxes become up to six ``func_wall`` entities, one per visible
face, so that portalability can be set per face. Everything else becomes a
single ``collidable_geometry`` (or ``lava`` when a face uses a hazard
material).
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Mapping, Optional

import numpy as np

from .brush_side import Side
from .map_writer import MapEntity
from .materials import MaterialTable
from .plane_math import Axis, axes_of

logger = logging.getLogger(__name__)

WALL_SIDE_COUNT = 6


class SolidClass(Enum):
    WALL = auto()
    GEOMETRY = auto()
    LAVA = auto()


@dataclass
class SolidInfo:
    """Per-solid facts gathered before emission."""
    sides: List[Side]
    axes: List[Optional[Axis]]
    kind: SolidClass
    portalable: bool
    seethrough: bool


def load_sides(solid: Mapping, materials: MaterialTable, unit_scale: float) -> List[Side]:
    """Convert the ``side`` blocks of a VMF solid and apply the world scale."""
    return [Side.from_vmf(s, materials).scale(unit_scale) for s in solid.get("side") or []]


def classify_sides(sides: List[Side]) -> SolidInfo:
    normals = np.array([side.normal().as_array() for side in sides]).reshape(-1, 3)
    axes = axes_of(normals)

    portalable = any(not s.material.noportal for s in sides)
    seethrough = any(s.material.seethrough for s in sides)
    lava = any(s.material.lava for s in sides)

    is_wall = (
        len(sides) == WALL_SIDE_COUNT
        and all(axis is not None for axis in axes)
        and not seethrough
        and not lava
    )
    if is_wall:
        kind = SolidClass.WALL
    elif lava:
        kind = SolidClass.LAVA
    else:
        kind = SolidClass.GEOMETRY
    return SolidInfo(sides, axes, kind, portalable, seethrough)


def emit_solid(info: SolidInfo) -> List[MapEntity]:
    """Build the target entities for one classified solid."""
    if info.kind is SolidClass.WALL:
        walls = []
        for side, axis in zip(info.sides, info.axes):
            # Faces that never render need no entity
            if side.material.is_empty:
                continue
            walls.append(MapEntity.create([
                ("classname", "func_wall"),
                ("axis_choice", int(axis)),
                ("wall_type", 1 if side.material.noportal else 0),
            ], info.sides))
        return walls

    classname = "lava" if info.kind is SolidClass.LAVA else "collidable_geometry"
    entity = MapEntity.create([("classname", classname)], info.sides)
    if not info.portalable:
        entity.set_property("sfx_type", 1)
    if info.seethrough:
        entity.set_property("spawnflags", 1)
    return [entity]


def emit_solids(solids: List[Mapping], materials: MaterialTable, unit_scale: float) -> List[MapEntity]:
    """Classify and emit every solid that has at least one side."""
    entities: List[MapEntity] = []
    counts = {kind: 0 for kind in SolidClass}
    for solid in solids:
        sides = load_sides(solid, materials, unit_scale)
        # Solids without sides can't exist in Narbacular Drop
        if not sides:
            continue
        info = classify_sides(sides)
        counts[info.kind] += 1
        entities.extend(emit_solid(info))

    logger.info(
        "Solids: %d walls, %d geometry, %d lava",
        counts[SolidClass.WALL], counts[SolidClass.GEOMETRY], counts[SolidClass.LAVA],
    )
    return entities
