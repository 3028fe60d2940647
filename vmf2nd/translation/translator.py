"""
Entity translation driver.

Routes every source entity through the rule table of its dialect, links the
logic that depends on the whole map (exit counter, door and field gates),
and finally turns every collected solid into target geometry.
"""

from __future__ import annotations
import logging
from collections import Counter
from pathlib import Path
from typing import Dict, Union

from ..conversion.map_writer import MapDocument, create_box_brush
from ..conversion.materials import MaterialTable
from ..conversion.plane_math import Vector3
from ..conversion.solid_emitter import emit_solids
from ..settings import ConverterSettings
from .context import Dialect, TranslationContext, detect_dialect
from .editor_rules import EDITOR_RULES, EXIT_TARGET, Rule
from .entity_kinds import EntityKind, classify
from .hammer_rules import HAMMER_RULES, closed_door, door_box
from .logic import LogicSynthesizer
from .vmf_tree import VMFTree

logger = logging.getLogger(__name__)

RULES: Dict[Dialect, Dict[EntityKind, Rule]] = {
    Dialect.EDITOR: EDITOR_RULES,
    Dialect.HAMMER: HAMMER_RULES,
}

# How far past the door the proximity hint reaches, before scaling
HINT_REACH = 96


def create_context(tree: VMFTree, raw_text: str, settings: ConverterSettings,
                   materials: MaterialTable, wad_path: Union[str, Path]) -> TranslationContext:
    """Fresh state for one run. The parsed tree itself is never modified."""
    return TranslationContext(
        settings=settings,
        materials=materials,
        document=MapDocument(wad_path),
        dialect=detect_dialect(raw_text),
        entities=list(tree.get("entity") or []),
        world_solids=list((tree.get("world") or {}).get("solid") or []),
    )


def translate_entity(ctx: TranslationContext, entity: Dict) -> EntityKind:
    kind = classify(entity, ctx.dialect)
    if kind is EntityKind.UNRECOGNIZED_BRUSH:
        # No dynamic brushes in Narbacular Drop; treat them as world geometry
        ctx.world_solids.extend(entity["solid"])
        return kind

    rule = RULES[ctx.dialect].get(kind)
    if rule is None:
        logger.debug("Skipping %s (%s)", entity.get("classname"), kind.name)
        return EntityKind.UNRECOGNIZED
    rule(ctx, entity)
    return kind


def translate_entities(ctx: TranslationContext) -> Counter:
    """Entity pass. Returns how many entities of each kind were seen."""
    kinds: Counter = Counter()
    for entity in ctx.entities:
        kinds[translate_entity(ctx, entity)] += 1
    logger.info(
        "Translated %d entities as %s map (%d unrecognized)",
        len(ctx.entities), ctx.dialect.value, kinds[EntityKind.UNRECOGNIZED],
    )
    return kinds


def _link_exit(ctx: TranslationContext) -> None:
    marker = ctx.exit
    if marker is None:
        return
    threshold = marker.threshold
    if threshold is None:
        if ctx.dialect is Dialect.EDITOR:
            threshold = ctx.button_count
        else:
            threshold = ctx.wire_count(marker.source_name)
    if threshold <= 0:
        logger.info("Exit is not gated")
        return
    ctx.document.add_point(
        ("classname", "counter"),
        ("targetname", marker.source_name),
        ("target", EXIT_TARGET),
        ("threshold", threshold),
    )


def _add_door_hint(ctx: TranslationContext, synth: LogicSynthesizer, volume_name: str,
                   center: Vector3, size: Vector3) -> None:
    """Show a message the first time the player walks up to a locked door."""
    hint_name = f"{volume_name}_hint"
    latch_input = f"{hint_name}_latch"
    reach = HINT_REACH * ctx.unit_scale
    ctx.document.add_brush_entity([
        ("classname", "trigger_activate"),
        ("target", latch_input),
    ], create_box_brush(center, size.add(Vector3(reach, reach, 0)), ctx.materials.empty))
    synth.pulse_latch(latch_input, hint_name)
    ctx.document.add_point(
        ("classname", "hint_text"),
        ("targetname", hint_name),
        ("origin", center),
        ("message", ctx.settings.hint_message),
    )


def link_logic(ctx: TranslationContext) -> None:
    """
    Emit the logic that needs every button wire to be known.

    Doors and hazard fields reset the player on entry until everything
    wired to them has fired once: a counter collects the wires and flips a
    NOT-gate that holds the reset volume active.
    """
    _link_exit(ctx)

    synth = LogicSynthesizer(ctx)
    for barrier in ctx.barriers:
        wires = ctx.wire_count(barrier.source_name)
        if not wires:
            if barrier.kind == "door":
                closed_door(ctx, barrier)
            continue

        if barrier.kind == "door":
            barrier.volume_name = f"door{ctx.next_barrier()}_barrier"
            center, size = door_box(ctx, barrier)
            ctx.document.add_brush_entity([
                ("classname", "trigger_respawn"),
                ("targetname", barrier.volume_name),
            ], create_box_brush(center, size, ctx.materials.empty))

        gate_input = f"{barrier.volume_name}_gate"
        ctx.document.add_point(
            ("classname", "counter"),
            ("targetname", barrier.source_name),
            ("target", gate_input),
            ("threshold", wires),
            ("origin", barrier.origin),
        )
        synth.not_gate(gate_input, barrier.volume_name)

        if barrier.kind == "door" and ctx.settings.door_hints:
            _add_door_hint(ctx, synth, barrier.volume_name, center, size)

    if ctx.barriers:
        logger.info("Linked %d barriers using %d logic cells", len(ctx.barriers), ctx.logic_cells)


def emit_world(ctx: TranslationContext) -> int:
    """Solid pass. Returns the number of entities emitted."""
    entities = emit_solids(ctx.world_solids, ctx.materials, ctx.unit_scale)
    for entity in entities:
        ctx.document.add_entity(entity)
    return len(entities)


def translate(tree: VMFTree, raw_text: str, settings: ConverterSettings,
              materials: MaterialTable, wad_path: Union[str, Path]) -> TranslationContext:
    """Run all three passes and return the context holding the finished document."""
    ctx = create_context(tree, raw_text, settings, materials, wad_path)
    translate_entities(ctx)
    link_logic(ctx)
    emit_world(ctx)
    return ctx
