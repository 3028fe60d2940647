from __future__ import annotations

import pytest

from vmf2nd.translation.vmf_tree import VMFTreeError, load_vmf, parse_vmf

VMF_TEXT = """versioninfo
{
	"editorversion" "400"
}
world
{
	"id" "1"
	"classname" "worldspawn"
	solid
	{
		"id" "2"
		side
		{
			"id" "1"
			"plane" "(0 64 64) (64 64 64) (64 0 64)"
			"material" "METAL/BLACK_WALL_METAL_002A"
			"uaxis" "[1 0 0 0] 0.25"
			"vaxis" "[0 -1 0 0] 0.25"
		}
		side
		{
			"id" "2"
			"plane" "(0 0 0) (64 0 0) (64 64 0)"
			"material" "METAL/BLACK_WALL_METAL_002A"
			"uaxis" "[1 0 0 0] 0.25"
			"vaxis" "[0 -1 0 0] 0.25"
		}
	}
	hidden
	{
		solid
		{
			"id" "3"
		}
	}
}
entity
{
	"id" "10"
	"classname" "prop_floor_button"
	"origin" "0 0 0"
	"solid" "6"
	connections
	{
		"OnPressed" "door\x1bOpen\x1b\x1b0\x1b-1"
		"OnPressed" "relay\x1bTrigger\x1b\x1b0\x1b-1"
	}
}
entity
{
	"id" "11"
	"classname" "func_detail"
	solid
	{
		"id" "12"
	}
}
"""


def test_world_solids_and_sides() -> None:
    tree = parse_vmf(VMF_TEXT)
    solids = tree["world"]["solid"]
    assert [s["id"] for s in solids] == ["2", "3"]
    assert len(solids[0]["side"]) == 2
    assert solids[0]["side"][0]["material"] == "METAL/BLACK_WALL_METAL_002A"
    assert tree["world"]["classname"] == "worldspawn"


def test_entities_keep_connections_in_order() -> None:
    button, detail = parse_vmf(VMF_TEXT)["entity"]
    assert button["classname"] == "prop_floor_button"
    assert button["connections"]["OnPressed"] == [
        "door\x1bOpen\x1b\x1b0\x1b-1",
        "relay\x1bTrigger\x1b\x1b0\x1b-1",
    ]
    assert [s["id"] for s in detail["solid"]] == ["12"]


def test_solid_keyvalue_is_not_a_brush() -> None:
    button = parse_vmf(VMF_TEXT)["entity"][0]
    assert "solid" not in button


def test_empty_map() -> None:
    tree = parse_vmf("")
    assert tree == {"world": {"solid": []}, "entity": []}


def test_syntax_errors_are_wrapped() -> None:
    with pytest.raises(VMFTreeError):
        parse_vmf("world\n{\n}\n}\n", "broken.vmf")


def test_load_vmf_returns_raw_text(tmp_path) -> None:
    path = tmp_path / "map.vmf"
    path.write_text(VMF_TEXT, encoding="utf-8")
    raw_text, tree = load_vmf(path)
    assert raw_text == VMF_TEXT
    assert len(tree["entity"]) == 2
