"""
Conversion rules for hand-built (Hammer) maps.

Unlike editor maps, buttons in Hammer maps can drive anything, so their
targets are found by tracing the IO graph. Doors and hazard fields are
registered as barriers here and wired up once every button is known (see
``translator.link_logic``).
"""

from __future__ import annotations
import logging
import math
from typing import Dict, List, Tuple

from ..conversion.brush_side import Side
from ..conversion.map_writer import create_box_brush
from ..conversion.plane_math import Vector3
from ..conversion.solid_emitter import load_sides
from .context import Barrier, ExitMarker, TranslationContext
from .editor_rules import Rule, add_crate, add_level_end, spawn
from .entity_kinds import Entity, EntityKind, fixup_int
from .io_graph import get_outputs, trace_connection

logger = logging.getLogger(__name__)

GRATE_MATERIAL_PATH = "metal/metalgrate018"

DOOR_HALF_WIDTH = 64
DOOR_HALF_HEIGHT = 64
DOOR_HALF_THICKNESS = 4

# Hammer's default when a light has no brightness
DEFAULT_BRIGHTNESS = 200


def _parse_light(value: str) -> Tuple[int, int, int]:
    """Scale ``"R G B brightness"`` to plain RGB."""
    parts = [float(p) for p in value.split()]
    if len(parts) < 3:
        raise ValueError(f"Light colour needs 3 components: {value!r}")
    brightness = (parts[3] if len(parts) > 3 else DEFAULT_BRIGHTNESS) / 255
    return tuple(math.floor(c * brightness) for c in parts[:3])


def door_box(ctx: TranslationContext, barrier: Barrier) -> Tuple[Vector3, Vector3]:
    """Center and half-size of a door's opening, scaled."""
    center = barrier.origin.add(Vector3(0, 0, DOOR_HALF_HEIGHT * ctx.unit_scale))
    forward = Vector3.from_angles(barrier.angles)
    right = forward.cross(Vector3(0, 0, 1))
    size = Vector3(
        DOOR_HALF_THICKNESS + abs(right.x) * DOOR_HALF_WIDTH,
        DOOR_HALF_THICKNESS + abs(right.y) * DOOR_HALF_WIDTH,
        DOOR_HALF_HEIGHT,
    ).scale(ctx.unit_scale)
    return center, size


def closed_door(ctx: TranslationContext, barrier: Barrier) -> None:
    """A door nothing can open is just a grate."""
    center, size = door_box(ctx, barrier)
    ctx.document.add_brush_entity([
        ("classname", "collidable_geometry"),
        ("sfx_type", 1),
        ("spawnflags", 1),
    ], create_box_brush(center, size, ctx.materials.resolve(GRATE_MATERIAL_PATH)))


def trigger_sides(ctx: TranslationContext, sides: List[Side]) -> List[Side]:
    """Copy of ``sides`` textured with the invisible trigger texture."""
    empty = ctx.materials.empty
    return [Side(s.plane, s.uparams, s.vparams, s.rotation, empty) for s in sides]


def exit_door(ctx: TranslationContext, entity: Entity) -> None:
    origin = ctx.scaled_origin(entity)
    add_level_end(ctx, origin)
    # Buttons reach the exit through counters named after the source door
    ctx.exit = ExitMarker(entity["targetname"], origin, fixup_int(entity, "$connectioncount"))


def floor_button(ctx: TranslationContext, entity: Entity) -> None:
    """
    Floor buttons become ``button_standard`` driving a set of one-shot
    counters, one per entity the button ultimately reaches.
    """
    origin = ctx.scaled_origin(entity)
    counter_name = f"button{ctx.next_button()}_counter"
    ctx.document.add_point(
        ("classname", "button_standard"),
        ("origin", origin),
        ("weight", 100),
        ("target", counter_name),
    )

    # Narbacular Drop buttons activate and deactivate their targets alike,
    # so pressed and unpressed targets are merged
    depth = ctx.settings.max_trace_depth
    targets = trace_connection(get_outputs(entity, "OnPressed"), ctx.entities, depth)
    for target in trace_connection(get_outputs(entity, "OnUnPressed"), ctx.entities, depth):
        if not any(target is t for t in targets):
            targets.append(target)

    for target in targets:
        target_name = target.get("targetname")
        if not target_name:
            ctx.warn(f"{counter_name}: target {target.get('classname')} has no name, skipped")
            continue
        ctx.document.add_point(
            ("classname", "counter"),
            ("targetname", counter_name),
            ("target", target_name),
            ("threshold", 1),
            ("origin", origin),
        )
        ctx.add_wire(target_name)


def door(ctx: TranslationContext, entity: Entity) -> None:
    barrier = Barrier(
        kind="door",
        source_name=entity.get("targetname") or "",
        origin=ctx.scaled_origin(entity),
        angles=Vector3.from_string(entity.get("angles") or "0 0 0"),
    )
    if not barrier.source_name:
        closed_door(ctx, barrier)
        return
    logger.debug("Door %s waits for its wires", barrier.source_name)
    ctx.barriers.append(barrier)


def hazard_field(ctx: TranslationContext, entity: Entity) -> None:
    """Laser fields become reset triggers shaped exactly like the source brush."""
    source_name = entity.get("targetname") or ""
    volume_name = f"field{ctx.next_barrier()}_volume"
    origin = None
    for solid in entity["solid"]:
        sides = load_sides(solid, ctx.materials, ctx.unit_scale)
        if not sides:
            continue
        pairs = [("classname", "trigger_respawn")]
        if source_name:
            pairs.append(("targetname", volume_name))
        ctx.document.add_brush_entity(pairs, trigger_sides(ctx, sides))
        if origin is None:
            origin = sides[0].plane.points[0]

    if source_name and origin is not None:
        ctx.barriers.append(Barrier("field", source_name, origin, volume_name=volume_name))


def cube(ctx: TranslationContext, entity: Entity) -> None:
    """Includes cubes in droppers, unless the dropper is an uncollapsed instance."""
    add_crate(ctx, ctx.scaled_origin(entity))


def point_light(ctx: TranslationContext, entity: Entity) -> None:
    """Colours carry over; range is fixed since falloff is rarely set."""
    r, g, b = _parse_light(entity.get("_light") or "255 255 255 200")
    ctx.document.add_point(
        ("classname", "light_point"),
        ("origin", ctx.scaled_origin(entity)),
        ("_r", r),
        ("_g", g),
        ("_b", b),
        ("_range", 300),
    )


def spot_light(ctx: TranslationContext, entity: Entity) -> None:
    r, g, b = _parse_light(entity.get("_light") or "255 255 255 200")
    angles = Vector3.from_string(entity.get("angles") or "0 0 0")
    if entity.get("pitch"):
        # The pitch key takes precedence over the pitch in angles
        angles = Vector3(float(entity["pitch"]), angles.y, angles.z)
    forward = Vector3.from_angles(angles)
    ctx.document.add_point(
        ("classname", "light_point"),
        ("origin", ctx.scaled_origin(entity)),
        ("_cone1", entity.get("_inner_cone") or "30"),
        ("_cone2", entity.get("_cone") or "45"),
        ("_r", r),
        ("_g", g),
        ("_b", b),
        ("_range", 500),
        ("_x", forward.x),
        ("_y", forward.z),
        ("_z", -forward.y),
    )


def counter(ctx: TranslationContext, entity: Entity) -> None:
    """math_counter maps onto counter, one per entity reached on OnHitMax."""
    origin = ctx.scaled_origin(entity)
    threshold = float(entity.get("max") or 0) - float(entity.get("min") or 0)
    base = [
        ("classname", "counter"),
        ("targetname", entity.get("targetname") or ""),
    ]
    targets = trace_connection(get_outputs(entity, "OnHitMax"), ctx.entities,
                               ctx.settings.max_trace_depth)
    names = [t["targetname"] for t in targets if t.get("targetname")]
    if not names:
        ctx.document.add_point(*base, ("threshold", threshold), ("origin", origin))
        return
    for name in names:
        ctx.document.add_point(*base, ("target", name), ("threshold", threshold), ("origin", origin))
        ctx.add_wire(name)


HAMMER_RULES: Dict[EntityKind, Rule] = {
    EntityKind.SPAWN: spawn,
    EntityKind.EXIT: exit_door,
    EntityKind.FLOOR_BUTTON: floor_button,
    EntityKind.DOOR: door,
    EntityKind.HAZARD_FIELD: hazard_field,
    EntityKind.CUBE: cube,
    EntityKind.POINT_LIGHT: point_light,
    EntityKind.SPOT_LIGHT: spot_light,
    EntityKind.COUNTER: counter,
}
