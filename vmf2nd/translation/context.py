"""
Translation state for a single conversion run.

Everything that used to be process-wide (material table, generated-name
counters, output buffers) lives here and is handed to every component that
reads or advances it.
"""

from __future__ import annotations
import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..conversion.map_writer import MapDocument
from ..conversion.materials import MaterialTable
from ..conversion.plane_math import Vector3
from ..settings import ConverterSettings

logger = logging.getLogger(__name__)


class Dialect(Enum):
    EDITOR = "editor"   # Puzzle maker (PeTI) exports
    HAMMER = "hammer"   # Hand-built maps


# Present in every map exported by the puzzle maker
EDITOR_MARKER = "instances/p2editor/elevator_exit.vmf"


def detect_dialect(raw_text: str) -> Dialect:
    """Guess the map dialect from the raw VMF text. Not exhaustive."""
    return Dialect.EDITOR if EDITOR_MARKER in raw_text else Dialect.HAMMER


@dataclass
class ExitMarker:
    """The level exit, linked to its counter once all wires are known."""
    source_name: str
    origin: Vector3
    threshold: Optional[int] = None


@dataclass
class Barrier:
    """A door or hazard field that buttons can switch off."""
    kind: str               # "door" or "field"
    source_name: str
    origin: Vector3
    angles: Vector3 = field(default_factory=Vector3)
    volume_name: Optional[str] = None


@dataclass
class TranslationContext:
    settings: ConverterSettings
    materials: MaterialTable
    document: MapDocument
    dialect: Dialect = Dialect.HAMMER
    entities: List[Dict[str, Any]] = field(default_factory=list)
    world_solids: List[Dict[str, Any]] = field(default_factory=list)

    button_count: int = 0
    logic_cells: int = 0
    barrier_count: int = 0
    # Lowercased targetname -> number of one-shot button counters aimed at it
    wires: Counter = field(default_factory=Counter)

    exit: Optional[ExitMarker] = None
    barriers: List[Barrier] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def unit_scale(self) -> float:
        return self.settings.unit_scale

    def scaled_origin(self, entity: Dict[str, Any]) -> Vector3:
        return Vector3.from_string(entity.get("origin") or "0 0 0").scale(self.unit_scale)

    def next_button(self) -> int:
        index = self.button_count
        self.button_count += 1
        return index

    def next_logic_cell(self) -> int:
        index = self.logic_cells
        self.logic_cells += 1
        return index

    def next_barrier(self) -> int:
        index = self.barrier_count
        self.barrier_count += 1
        return index

    def add_wire(self, target_name: str) -> None:
        self.wires[target_name.lower()] += 1

    def wire_count(self, target_name: str) -> int:
        return self.wires[target_name.lower()]

    def warn(self, message: str) -> None:
        logger.warning("%s", message)
        self.warnings.append(message)
