from __future__ import annotations

import hashlib

from vmf2nd.conversion.materials import (
    EMPTY_TEXTURE,
    MaterialTable,
    SurfaceProperties,
    TextureMode,
    hash_texture_name,
    normalize_material_path,
)


def test_normalize_lowercases_and_rewrites_dlc_glass() -> None:
    assert normalize_material_path("METAL\\Black_Wall_Metal_002A") == "metal/black_wall_metal_002a"
    assert normalize_material_path("glass/glasswindow007a_less_shiny") == "glass/glasswindow007a"


def test_hash_texture_is_md5_prefix() -> None:
    path = "metal/black_wall_metal_002a"
    expected = hashlib.md5(path.encode("utf-8")).hexdigest()[:15]
    assert hash_texture_name(path) == expected
    assert len(hash_texture_name(path)) == 15


def test_hash_mode_is_deterministic_across_tables() -> None:
    first = MaterialTable(mode=TextureMode.HASH).resolve("Metal/Black_Wall_Metal_002a")
    second = MaterialTable(mode=TextureMode.HASH).resolve("metal\\black_wall_metal_002a")
    assert first.texture == second.texture
    assert first.path == second.path


def test_hash_mode_tool_prefixes(hash_materials) -> None:
    assert hash_materials.resolve("tools/toolsnodraw").texture == EMPTY_TEXTURE
    assert hash_materials.resolve("effects/some_effect").texture == EMPTY_TEXTURE
    assert hash_materials.resolve("effects/laserplane").texture == hash_texture_name("effects/laserplane")
    assert hash_materials.resolve("tools/toolsskybox").texture == hash_materials.missing.texture


def test_missing_path_gives_empty_material(hash_materials) -> None:
    assert hash_materials.resolve(None) is hash_materials.empty
    assert hash_materials.resolve("") is hash_materials.empty
    assert hash_materials.empty.is_empty


def test_lava_flag_in_both_modes(materials, hash_materials) -> None:
    for table in (materials, hash_materials):
        assert table.resolve("nature/toxicslime_a2_bridge_intro").lava
        assert not table.resolve("nature/dirt").lava


def test_rules_mode_vocabulary(materials) -> None:
    assert materials.resolve("glass/glasswindow007a_less_shiny").texture == "GLASS"
    assert materials.resolve("metal/metalgrate018").texture == "GRATE"
    assert materials.resolve("tile/white_floor_tile002a").texture == "TILE_WHITE"
    assert materials.resolve("concrete/concrete_modular_floor001a").texture == "CONCRETE"
    assert materials.resolve("metal/black_wall_metal_002a").texture == "METAL_DARK"
    assert materials.resolve("props/unknown").texture == EMPTY_TEXTURE


def test_surface_flags_keyed_by_path_in_hash_mode() -> None:
    surfaces = SurfaceProperties.from_lines(["metal/black_wall_metal_002a"], ["glass/glasswindow007a"])
    table = MaterialTable(mode=TextureMode.HASH, surfaces=surfaces)
    assert table.resolve("METAL/black_wall_metal_002a").noportal
    assert table.resolve("glass/glasswindow007a_less_shiny").seethrough
    assert not table.resolve("tile/white_floor_tile002a").noportal


def test_surface_flags_keyed_by_texture_in_rules_mode(surfaces) -> None:
    table = MaterialTable(mode=TextureMode.RULES, surfaces=surfaces)
    assert table.resolve("metal/black_wall_metal_002a").noportal
    assert table.resolve("glass/glasswindow001a").seethrough
    assert not table.resolve("tile/white_floor_tile002a").noportal


def test_source_lookup_by_texture(hash_materials) -> None:
    material = hash_materials.resolve("tile/white_floor_tile002a")
    assert hash_materials.source_of(material.texture) == "tile/white_floor_tile002a"
    assert hash_materials.by_texture(material.texture) is material
    assert hash_materials.source_of("NOPE") is None
    assert material.texture in hash_materials.textures
