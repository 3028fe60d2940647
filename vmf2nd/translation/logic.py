"""
Logic circuits built from Narbacular Drop primitives.

Narbacular Drop has buttons, counters and rising lava but nothing that can
switch a target *off* on a signal, or fire only on the first of many
signals. Both are emulated physically, in small cells placed far outside the
playable space:

NOT-gate
    A crate rests on a button, keeping the button's target active. Lava
    named after the gate input sits under the crate; when triggered it rises
    and knocks the crate off, releasing the button for good. An optional
    ceiling button catches the crate on its way up and fires an indicator
    once.

Pulse latch
    Lava named after the latch input lifts a crate into a ceiling button,
    which fires the output once through a one-shot counter. The crate stays
    pinned, so the latch never fires again.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..conversion.map_writer import create_box_brush
from ..conversion.plane_math import Vector3
from .context import TranslationContext

logger = logging.getLogger(__name__)

# Start of the reserved logic area, in output units
LOGIC_REGION_ORIGIN = Vector3(16384, 16384, -8192)
LOGIC_CELL_SPACING = 256

CELL_HALF_WIDTH = 64
FLOOR_THICKNESS = 8
CEILING_HEIGHT = 160
LAVA_RISE = 128

LAVA_MATERIAL_PATH = "nature/toxicslime_a2_bridge_intro"

BUTTON_WEIGHT = 100
CRATE_WEIGHT = 150
CRATE_SCALE = 2.4


@dataclass
class LogicCell:
    index: int
    origin: Vector3
    input_name: str
    output_name: str


class LogicSynthesizer:
    """Places NOT-gates and pulse latches for one translation run."""

    def __init__(self, ctx: TranslationContext):
        self.ctx = ctx

    def _open_cell(self) -> Tuple[int, Vector3]:
        index = self.ctx.next_logic_cell()
        origin = LOGIC_REGION_ORIGIN.add(Vector3(index * LOGIC_CELL_SPACING, 0, 0))
        # Floor under the cell, embedded in worldspawn
        self.ctx.document.add_world_brush(create_box_brush(
            origin.sub(Vector3(0, 0, FLOOR_THICKNESS)),
            Vector3(CELL_HALF_WIDTH, CELL_HALF_WIDTH, FLOOR_THICKNESS),
            self.ctx.materials.missing,
        ))
        return index, origin

    def _lava(self, name: str, origin: Vector3) -> None:
        sides = create_box_brush(
            origin.add(Vector3(0, 0, FLOOR_THICKNESS / 2)),
            Vector3(CELL_HALF_WIDTH - 8, CELL_HALF_WIDTH - 8, FLOOR_THICKNESS / 2),
            self.ctx.materials.resolve(LAVA_MATERIAL_PATH),
        )
        self.ctx.document.add_brush_entity([
            ("classname", "lava"),
            ("targetname", name),
            ("rise", LAVA_RISE),
        ], sides)

    def _one_shot(self, name: str, target: str, origin: Vector3) -> None:
        self.ctx.document.add_point(
            ("classname", "counter"),
            ("targetname", name),
            ("target", target),
            ("threshold", 1),
            ("origin", origin),
        )

    def not_gate(self, input_name: str, output_name: str, indicator: Optional[str] = None) -> LogicCell:
        """
        Keep ``output_name`` active until ``input_name`` fires once.

        Args:
            input_name: Name that disarms the gate when triggered
            output_name: Target kept active while the gate is armed
            indicator: Optional target fired once when the gate flips
        """
        index, origin = self._open_cell()
        doc = self.ctx.document

        doc.add_point(
            ("classname", "button_standard"),
            ("origin", origin),
            ("weight", BUTTON_WEIGHT),
            ("target", output_name),
        )
        doc.add_point(
            ("classname", "crate"),
            ("origin", origin.add(Vector3(0, 0, 48))),
            ("weight", CRATE_WEIGHT),
            ("scale", CRATE_SCALE),
        )
        self._lava(input_name, origin)

        if indicator:
            latch_name = f"logic{index}_indicator"
            ceiling = origin.add(Vector3(0, 0, CEILING_HEIGHT))
            doc.add_point(
                ("classname", "button_standard"),
                ("origin", ceiling),
                ("weight", BUTTON_WEIGHT),
                ("target", latch_name),
            )
            self._one_shot(latch_name, indicator, ceiling)

        logger.debug("NOT-gate %d: %s disarms %s", index, input_name, output_name)
        return LogicCell(index, origin, input_name, output_name)

    def pulse_latch(self, input_name: str, output_name: str) -> LogicCell:
        """Fire ``output_name`` exactly once, the first time ``input_name`` fires."""
        index, origin = self._open_cell()
        doc = self.ctx.document
        latch_name = f"logic{index}_latch"
        ceiling = origin.add(Vector3(0, 0, CEILING_HEIGHT))

        doc.add_point(
            ("classname", "crate"),
            ("origin", origin.add(Vector3(0, 0, 24))),
            ("weight", CRATE_WEIGHT),
            ("scale", CRATE_SCALE),
        )
        doc.add_point(
            ("classname", "button_standard"),
            ("origin", ceiling),
            ("weight", BUTTON_WEIGHT),
            ("target", latch_name),
        )
        self._one_shot(latch_name, output_name, ceiling)
        self._lava(input_name, origin)

        logger.debug("Pulse latch %d: %s -> %s", index, input_name, output_name)
        return LogicCell(index, origin, input_name, output_name)
