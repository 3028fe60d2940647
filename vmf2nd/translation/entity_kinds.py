"""
Classification of source entities.

Every source entity falls into exactly one EntityKind. The rules for each
dialect are plain ordered tables, and anything they do not cover ends up in
one of the two UNRECOGNIZED kinds.
"""

from __future__ import annotations
import re
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple

from .context import Dialect

Entity = Dict[str, Any]


class EntityKind(Enum):
    SPAWN = auto()              # Entry door / player start
    EXIT = auto()               # Exit door
    LIGHT_STRIP = auto()        # Editor light strip, fixed colour
    POINT_LIGHT = auto()        # light
    SPOT_LIGHT = auto()         # light_spot
    CUBE = auto()
    DROPPER_CUBE = auto()       # Cube spawned by an editor dropper
    EDITOR_BUTTON = auto()      # Editor floor button, always opens the exit
    FLOOR_BUTTON = auto()       # Hammer floor button, wired through the IO graph
    FAITH_PLATE = auto()
    DOOR = auto()               # Test chamber door, becomes a timed barrier
    HAZARD_FIELD = auto()       # Laser field, becomes a reset trigger
    COUNTER = auto()            # math_counter
    UNRECOGNIZED_BRUSH = auto() # Solids join the world geometry
    UNRECOGNIZED = auto()


EDITOR_INSTANCE_DIR = "instances/p2editor/"

# Ordered: the first matching prefix wins
EDITOR_INSTANCES: List[Tuple[str, EntityKind]] = [
    ("door_entrance", EntityKind.SPAWN),
    ("door_exit", EntityKind.EXIT),
    ("light_strip", EntityKind.LIGHT_STRIP),
    ("item_dropper_cube", EntityKind.DROPPER_CUBE),
    ("cube", EntityKind.CUBE),
    ("floor_button", EntityKind.FLOOR_BUTTON),
    ("faith_plate_floor", EntityKind.FAITH_PLATE),
]

ENTRY_NAMES = ("@entry_door", "door_0-testchamber_door")
EXIT_NAMES = ("@exit_door", "door_1-testchamber_door")

HAMMER_CLASSES: Dict[str, EntityKind] = {
    "prop_floor_button": EntityKind.FLOOR_BUTTON,
    "prop_testchamber_door": EntityKind.DOOR,
    "prop_weighted_cube": EntityKind.CUBE,
    "light": EntityKind.POINT_LIGHT,
    "light_spot": EntityKind.SPOT_LIGHT,
    "math_counter": EntityKind.COUNTER,
}

HAZARD_CLASSES = ("trigger_hurt",)

_FIXUP_KEY_RE = re.compile(r"^replace\d+$", re.IGNORECASE)


def instance_file(entity: Entity) -> str:
    return (entity.get("file") or "").lower().replace("\\", "/")


def fixup_value(entity: Entity, variable: str) -> Optional[str]:
    """
    Value of an instance fixup variable such as ``$connectioncount``.

    Instances store these as ``"replace01" "$connectioncount 2"``; a plain
    ``connectioncount`` key is accepted as well.
    """
    variable = variable.lower()
    for key, value in entity.items():
        if not isinstance(value, str) or not _FIXUP_KEY_RE.match(key):
            continue
        name, _, rest = value.partition(" ")
        if name.lower() == variable:
            return rest.strip()
    for key, value in entity.items():
        if isinstance(value, str) and key.lower() == variable.lstrip("$"):
            return value.strip()
    return None


def fixup_int(entity: Entity, variable: str) -> Optional[int]:
    value = fixup_value(entity, variable)
    if value is None:
        return None
    try:
        return int(float(value))
    except ValueError:
        return None


def classify_editor(entity: Entity) -> EntityKind:
    if entity.get("solid"):
        return EntityKind.UNRECOGNIZED_BRUSH
    # Puzzle maker maps are built almost exclusively from instances
    path = instance_file(entity)
    if entity.get("classname") != "func_instance" or not path.startswith(EDITOR_INSTANCE_DIR):
        return EntityKind.UNRECOGNIZED
    name = path[len(EDITOR_INSTANCE_DIR):]
    for prefix, kind in EDITOR_INSTANCES:
        if name.startswith(prefix):
            # Editor buttons are not wired through the IO graph
            return EntityKind.EDITOR_BUTTON if kind is EntityKind.FLOOR_BUTTON else kind
    return EntityKind.UNRECOGNIZED


def classify_hammer(entity: Entity) -> EntityKind:
    classname = (entity.get("classname") or "").lower()
    if entity.get("solid"):
        if classname in HAZARD_CLASSES:
            return EntityKind.HAZARD_FIELD
        return EntityKind.UNRECOGNIZED_BRUSH

    targetname = (entity.get("targetname") or "").lower()
    if targetname in ENTRY_NAMES:
        return EntityKind.SPAWN
    if targetname in EXIT_NAMES:
        return EntityKind.EXIT
    return HAMMER_CLASSES.get(classname, EntityKind.UNRECOGNIZED)


def classify(entity: Entity, dialect: Dialect) -> EntityKind:
    if dialect is Dialect.EDITOR:
        return classify_editor(entity)
    return classify_hammer(entity)
