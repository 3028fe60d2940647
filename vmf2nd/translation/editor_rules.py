"""
Conversion rules for puzzle maker (editor) maps.

Editor maps are built from a fixed set of instances, so every rule works
from the instance origin alone. All floor buttons open the exit door.
"""

from __future__ import annotations
from typing import Callable, Dict

from ..conversion.plane_math import Vector3
from .context import ExitMarker, TranslationContext
from .entity_kinds import Entity, EntityKind, fixup_int

EXIT_COUNTER = "exit_counter"
EXIT_TARGET = "exit_door"

# Narbacular Drop exits always face south, so the door is pushed back on +Y
EXIT_PUSHBACK = 96
EXIT_RAISE = 128

BUTTON_DROP = 64
DROPPER_DROP = 64
FAITH_PLATE_DROP = 112

Rule = Callable[[TranslationContext, Entity], None]


def add_level_end(ctx: TranslationContext, origin: Vector3) -> None:
    """Exit door, shared by both dialects. Rotation isn't supported."""
    ctx.document.add_point(
        ("classname", "level_end"),
        ("origin", origin.add(Vector3(0, EXIT_PUSHBACK * ctx.unit_scale, EXIT_RAISE))),
        ("targetname", EXIT_TARGET),
        ("next_level", ctx.settings.next_level),
    )


def add_crate(ctx: TranslationContext, origin: Vector3) -> None:
    """
    Cubes become crates. Weight 150 sets them apart from the player
    (weight 100), which lets buttons tell the two apart.
    """
    ctx.document.add_point(
        ("classname", "crate"),
        ("origin", origin),
        ("weight", 150),
        ("scale", 2.4),
    )


def spawn(ctx: TranslationContext, entity: Entity) -> None:
    # Elevators are far too complex, the entrance door is the spawn point
    ctx.document.add_point(
        ("classname", "player_respawn"),
        ("origin", ctx.scaled_origin(entity)),
    )


def exit_door(ctx: TranslationContext, entity: Entity) -> None:
    origin = ctx.scaled_origin(entity)
    add_level_end(ctx, origin)
    ctx.exit = ExitMarker(EXIT_COUNTER, origin, fixup_int(entity, "$connectioncount"))


def light_strip(ctx: TranslationContext, entity: Entity) -> None:
    ctx.document.add_point(
        ("classname", "light_point"),
        ("origin", ctx.scaled_origin(entity)),
        ("_r", 120),
        ("_g", 120),
        ("_b", 128),
        ("_range", 300),
    )


def cube(ctx: TranslationContext, entity: Entity) -> None:
    add_crate(ctx, ctx.scaled_origin(entity))


def dropper_cube(ctx: TranslationContext, entity: Entity) -> None:
    # The cube starts at the dropper's mouth rather than inside it
    origin = ctx.scaled_origin(entity)
    add_crate(ctx, origin.add(Vector3(0, 0, -DROPPER_DROP * ctx.unit_scale)))


def floor_button(ctx: TranslationContext, entity: Entity) -> None:
    """
    Buttons take weight 100 so both the player and crates press them. All
    of them feed the exit counter, which expects one press per button.
    """
    origin = ctx.scaled_origin(entity)
    ctx.document.add_point(
        ("classname", "button_standard"),
        ("origin", origin.add(Vector3(0, 0, -BUTTON_DROP * ctx.unit_scale))),
        ("weight", 100),
        ("target", EXIT_COUNTER),
    )
    ctx.next_button()


def faith_plate(ctx: TranslationContext, entity: Entity) -> None:
    """
    A boulder with negative speed, sunk into the faith plate's hole, bounces
    the player much harder than usual. Axis -Z keeps it harmless.
    """
    origin = ctx.scaled_origin(entity)
    ctx.document.add_point(
        ("classname", "boulder"),
        ("origin", origin.add(Vector3(0, 0, -FAITH_PLATE_DROP * ctx.unit_scale))),
        ("speed", -1),
        ("axis_choice", 5),
    )


EDITOR_RULES: Dict[EntityKind, Rule] = {
    EntityKind.SPAWN: spawn,
    EntityKind.EXIT: exit_door,
    EntityKind.LIGHT_STRIP: light_strip,
    EntityKind.CUBE: cube,
    EntityKind.DROPPER_CUBE: dropper_cube,
    EntityKind.EDITOR_BUTTON: floor_button,
    EntityKind.FAITH_PLATE: faith_plate,
}
