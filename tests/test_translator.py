from __future__ import annotations

from conftest import box_solid, output
from vmf2nd.conversion.materials import MaterialTable, TextureMode
from vmf2nd.translation.context import EDITOR_MARKER, Dialect
from vmf2nd.translation.entity_kinds import EntityKind, classify, fixup_int
from vmf2nd.translation.translator import translate

WAD = "/kit/narbaculardrop.wad"


def tree(*entities, solids=()) -> dict:
    return {"world": {"classname": "worldspawn", "solid": list(solids)}, "entity": list(entities)}


def hammer_door(name: str, origin: str = "0 0 0", **extra) -> dict:
    return dict(classname="prop_testchamber_door", targetname=name, origin=origin, angles="0 0 0", **extra)


def button(origin: str, *targets, unpressed=()) -> dict:
    connections = {"OnPressed": [output(t, "Open") for t in targets]}
    if unpressed:
        connections["OnUnPressed"] = [output(t, "Close") for t in unpressed]
    return {"classname": "prop_floor_button", "origin": origin, "connections": connections}


def instance(name: str, origin: str = "0 0 0", **extra) -> dict:
    return dict(classname="func_instance", file=f"instances/p2editor/{name}.vmf", origin=origin, **extra)


def run(source: dict, settings, raw_text: str = "", materials=None):
    return translate(source, raw_text, settings, materials or MaterialTable(mode=TextureMode.RULES), WAD)


def classnames(ctx):
    return [e.classname for e in ctx.document.entities]


def test_two_buttons_open_the_exit(settings) -> None:
    source = tree(
        hammer_door("@entry_door", "0 0 0"),
        hammer_door("@exit_door", "512 0 0", replace01="$connectioncount 2"),
        button("128 0 0", "@exit_door"),
        button("256 0 0", "@exit_door"),
    )
    ctx = run(source, settings)

    assert ctx.dialect is Dialect.HAMMER
    assert classnames(ctx) == [
        "player_respawn", "level_end",
        "button_standard", "counter",
        "button_standard", "counter",
        "counter",
    ]
    entities = ctx.document.entities
    assert entities[2].get("target") == "button0_counter"
    assert entities[3].get("targetname") == "button0_counter"
    assert entities[3].get("target") == "@exit_door"
    assert entities[5].get("targetname") == "button1_counter"

    exit_counter = entities[6]
    assert exit_counter.get("targetname") == "@exit_door"
    assert exit_counter.get("target") == "exit_door"
    assert exit_counter.get("threshold") == "2"


def test_level_end_position_and_next_level(settings) -> None:
    ctx = run(tree(hammer_door("@exit_door", "512 0 0")), settings)
    level_end = ctx.document.entities_of("level_end")[0]
    assert level_end.get("origin") == "768 144 128"
    assert level_end.get("targetname") == "exit_door"
    assert level_end.get("next_level") == "Levels/LongHaul.cmf"
    # No buttons, no gate on the exit
    assert ctx.document.entities_of("counter") == []


def test_translation_is_repeatable(settings) -> None:
    source = tree(
        hammer_door("@entry_door"),
        hammer_door("@exit_door", "512 0 0"),
        button("128 0 0", "@exit_door"),
        solids=[box_solid((0, 0, -16), (512, 512, 0))],
    )
    first = run(source, settings).document.render()
    second = run(source, settings).document.render()
    assert first == second
    assert source["world"]["solid"][0]["side"][0]["material"] == "metal/black_wall_metal_002a"


def test_rendered_document_header(settings) -> None:
    text = run(tree(solids=[box_solid((0, 0, 0), (64, 64, 64))]), settings).document.render()
    assert text.startswith('{\n"classname" "worldspawn"\n"mapversion" "220"\n"wad" "/kit/narbaculardrop.wad"\n}\n')
    assert text.count('"classname" "func_wall"') == 6


def test_pressed_and_unpressed_targets_merge(settings) -> None:
    source = tree(
        hammer_door("door_a", "0 256 0"),
        hammer_door("door_b", "0 512 0"),
        button("0 0 0", "door_a", unpressed=("door_a", "door_b")),
    )
    ctx = run(source, settings)
    per_button = [e for e in ctx.document.entities_of("counter") if e.get("targetname") == "button0_counter"]
    assert [c.get("target") for c in per_button] == ["door_a", "door_b"]
    assert ctx.wire_count("door_a") == 1
    assert ctx.wire_count("DOOR_B") == 1


def test_button_through_relay(settings) -> None:
    relay = {
        "classname": "logic_relay",
        "targetname": "relay",
        "connections": {"OnTrigger": [output("@exit_door", "Open")]},
    }
    pressed = {"classname": "prop_floor_button", "origin": "0 0 0",
               "connections": {"OnPressed": [output("relay", "Trigger")]}}
    ctx = run(tree(hammer_door("@exit_door", "512 0 0"), relay, pressed), settings)
    counters = ctx.document.entities_of("counter")
    assert counters[0].get("target") == "@exit_door"
    assert counters[-1].get("threshold") == "1"


def test_wired_door_becomes_gated_barrier(settings) -> None:
    ctx = run(tree(hammer_door("door_a", "0 256 0"), button("0 0 0", "door_a")), settings)
    doc = ctx.document

    volume = doc.entities_of("trigger_respawn")
    assert len(volume) == 1
    assert volume[0].get("targetname") == "door0_barrier"
    assert all(s.texture == "AAATRIGGER" for s in volume[0].sides)

    gate_counter = [c for c in doc.entities_of("counter") if c.get("targetname") == "door_a"]
    assert len(gate_counter) == 1
    assert gate_counter[0].get("target") == "door0_barrier_gate"
    assert gate_counter[0].get("threshold") == "1"

    holder = [b for b in doc.entities_of("button_standard") if b.get("target") == "door0_barrier"]
    assert len(holder) == 1
    assert doc.entities_of("lava")[0].get("targetname") == "door0_barrier_gate"
    assert doc.entities_of("collidable_geometry") == []


def test_unwired_door_is_a_closed_grate(settings) -> None:
    ctx = run(tree(hammer_door("door_a", "0 256 0"), hammer_door("", "0 512 0")), settings)
    grates = ctx.document.entities_of("collidable_geometry")
    assert len(grates) == 2
    assert grates[0].get("sfx_type") == "1"
    assert grates[0].get("spawnflags") == "1"
    assert grates[0].sides[0].texture == "GRATE"
    assert ctx.logic_cells == 0


def test_door_hints(settings) -> None:
    hinted = settings.with_overrides(door_hints=True, hint_message="Find the button.")
    ctx = run(tree(hammer_door("door_a", "0 256 0"), button("0 0 0", "door_a")), hinted)
    doc = ctx.document

    proximity = doc.entities_of("trigger_activate")
    assert len(proximity) == 1
    assert proximity[0].get("target") == "door0_barrier_hint_latch"

    hint = doc.entities_of("hint_text")[0]
    assert hint.get("targetname") == "door0_barrier_hint"
    assert hint.get("message") == "Find the button."
    assert ctx.logic_cells == 2
    latch = [c for c in doc.entities_of("counter") if c.get("target") == "door0_barrier_hint"]
    assert len(latch) == 1


def test_hazard_field_wired_like_a_barrier(settings) -> None:
    field = {
        "classname": "trigger_hurt",
        "targetname": "laser",
        "solid": [box_solid((0, 0, 0), (8, 128, 128), "tools/toolstrigger")],
    }
    ctx = run(tree(field, button("0 0 0", "laser")), settings)
    doc = ctx.document

    volume = doc.entities_of("trigger_respawn")[0]
    assert volume.get("targetname") == "field0_volume"
    assert len(volume.sides) == 6
    gate = [c for c in doc.entities_of("counter") if c.get("targetname") == "laser"][0]
    assert gate.get("target") == "field0_volume_gate"
    assert doc.entities_of("lava")[0].get("targetname") == "field0_volume_gate"
    # Trigger brushes never reach the world geometry
    assert doc.entities_of("func_wall") == []


def test_unwired_field_stays_armed(settings) -> None:
    field = {"classname": "trigger_hurt", "solid": [box_solid((0, 0, 0), (8, 128, 128))]}
    ctx = run(tree(field), settings)
    volume = ctx.document.entities_of("trigger_respawn")
    assert len(volume) == 1
    assert volume[0].get("targetname") is None
    assert ctx.logic_cells == 0


def test_unknown_brush_entity_joins_the_world(settings) -> None:
    detail = {"classname": "func_detail", "solid": [box_solid((0, 0, 0), (64, 64, 64))]}
    ctx = run(tree(detail), settings)
    assert len(ctx.world_solids) == 1
    assert len(ctx.document.entities_of("func_wall")) == 6


def test_lights(settings) -> None:
    point = {"classname": "light", "origin": "0 0 64", "_light": "255 128 0 127.5"}
    spot = {"classname": "light_spot", "origin": "0 0 64", "angles": "0 0 0",
            "_light": "255 255 255 255", "_inner_cone": "20", "_cone": "40"}
    ctx = run(tree(point, spot), settings)
    first, second = ctx.document.entities_of("light_point")

    assert (first.get("_r"), first.get("_g"), first.get("_b")) == ("127", "64", "0")
    assert first.get("_range") == "300"
    assert first.get("origin") == "0 0 96"

    assert (second.get("_cone1"), second.get("_cone2")) == ("20", "40")
    assert second.get("_range") == "500"
    assert (second.get("_x"), second.get("_y"), second.get("_z")) == ("1", "0", "0")


def test_spot_light_pitch_key_wins(settings) -> None:
    spot = {"classname": "light_spot", "origin": "0 0 0", "angles": "0 0 0", "pitch": "-90",
            "_light": "255 255 255 200"}
    light = run(tree(spot), settings).document.entities_of("light_point")[0]
    assert abs(float(light.get("_x"))) < 1e-9
    assert float(light.get("_y")) == 1


def test_math_counter(settings) -> None:
    counter = {
        "classname": "math_counter", "targetname": "count", "origin": "0 0 0",
        "min": "0", "max": "3",
        "connections": {"OnHitMax": [output("door_a", "Open")]},
    }
    ctx = run(tree(counter, hammer_door("door_a", "0 256 0")), settings)
    source = [c for c in ctx.document.entities_of("counter") if c.get("targetname") == "count"][0]
    assert source.get("target") == "door_a"
    assert source.get("threshold") == "3"
    assert ctx.wire_count("door_a") == 1


def test_unnamed_button_target_warns(settings) -> None:
    cube = {"classname": "prop_weighted_cube", "origin": "0 0 0"}
    pressed = {"classname": "prop_floor_button", "origin": "0 0 0",
               "connections": {"OnPressed": [output("prop_weighted_cube", "Dissolve")]}}
    ctx = run(tree(cube, pressed), settings)
    assert len(ctx.warnings) == 1
    assert ctx.document.entities_of("counter") == []


# ---------------------------------------------------------------------------
# Puzzle maker maps
# ---------------------------------------------------------------------------

def editor_map(*entities) -> dict:
    return tree(instance("elevator_exit"), *entities)


def test_editor_dialect_detection(settings) -> None:
    ctx = run(editor_map(), settings, raw_text=f'"file" "{EDITOR_MARKER}"')
    assert ctx.dialect is Dialect.EDITOR


def test_editor_exit_uses_connection_count(settings) -> None:
    source = editor_map(
        instance("door_entrance", "0 0 0"),
        instance("door_exit", "512 0 0", replace01="$connectioncount 2"),
        instance("floor_button_cube", "128 0 0"),
        instance("floor_button", "256 0 0"),
        instance("floor_button", "384 0 0"),
    )
    ctx = run(source, settings, raw_text=EDITOR_MARKER)
    doc = ctx.document

    assert doc.entities_of("player_respawn")[0].get("origin") == "0 0 0"
    buttons = doc.entities_of("button_standard")
    assert len(buttons) == 3
    assert all(b.get("target") == "exit_counter" for b in buttons)
    assert buttons[0].get("origin") == "192 0 -96"

    exit_counter = doc.entities_of("counter")[0]
    assert exit_counter.get("targetname") == "exit_counter"
    assert exit_counter.get("target") == "exit_door"
    assert exit_counter.get("threshold") == "2"


def test_editor_exit_falls_back_to_button_count(settings) -> None:
    source = editor_map(
        instance("door_exit", "512 0 0"),
        instance("floor_button", "256 0 0"),
        instance("floor_button", "384 0 0"),
    )
    ctx = run(source, settings, raw_text=EDITOR_MARKER)
    assert ctx.document.entities_of("counter")[0].get("threshold") == "2"


def test_editor_items(settings) -> None:
    source = editor_map(
        instance("light_strip", "0 0 128"),
        instance("cube", "64 0 0"),
        instance("item_dropper_cube", "128 0 256"),
        instance("faith_plate_floor", "0 128 0"),
    )
    ctx = run(source, settings, raw_text=EDITOR_MARKER)
    doc = ctx.document

    light = doc.entities_of("light_point")[0]
    assert (light.get("_r"), light.get("_g"), light.get("_b")) == ("120", "120", "128")

    crates = doc.entities_of("crate")
    assert [c.get("origin") for c in crates] == ["96 0 0", "192 0 288"]
    assert crates[0].get("scale") == "2.4"

    boulder = doc.entities_of("boulder")[0]
    assert boulder.get("origin") == "0 192 -168"
    assert boulder.get("speed") == "-1"
    assert boulder.get("axis_choice") == "5"


def test_classification_is_closed() -> None:
    assert classify({"classname": "info_player_start"}, Dialect.HAMMER) is EntityKind.UNRECOGNIZED
    assert classify({"classname": "func_brush", "solid": [{}]}, Dialect.HAMMER) is EntityKind.UNRECOGNIZED_BRUSH
    assert classify(instance("glass_128"), Dialect.EDITOR) is EntityKind.UNRECOGNIZED
    assert classify(instance("floor_button_ball"), Dialect.EDITOR) is EntityKind.EDITOR_BUTTON
    assert classify(hammer_door("door_1-testchamber_door"), Dialect.HAMMER) is EntityKind.EXIT


def test_fixup_int_reads_instance_variables() -> None:
    assert fixup_int({"replace01": "$connectioncount 3"}, "$connectioncount") == 3
    assert fixup_int({"connectioncount": "4"}, "$connectioncount") == 4
    assert fixup_int({"replace01": "$other 1"}, "$connectioncount") is None
