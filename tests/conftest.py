from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from vmf2nd.conversion.materials import MaterialTable, SurfaceProperties, TextureMode
from vmf2nd.settings import ConverterSettings
from vmf2nd.translation.context import Dialect, TranslationContext
from vmf2nd.conversion.map_writer import MapDocument

WALL_MATERIAL = "metal/black_wall_metal_002a"

Point = Tuple[float, float, float]


def _plane(*points: Point) -> str:
    return " ".join("(" + " ".join(str(c) for c in p) + ")" for p in points)


def _side(points: Sequence[Point], material: str, uaxis: str, vaxis: str) -> Dict[str, str]:
    return {
        "plane": _plane(*points),
        "material": material,
        "uaxis": uaxis,
        "vaxis": vaxis,
        "rotation": "0",
        "lightmapscale": "16",
        "smoothing_groups": "0",
    }


def box_solid(mins: Point, maxs: Point, material: str = WALL_MATERIAL,
              materials: Optional[List[str]] = None) -> Dict:
    """A VMF solid for an axis-aligned box, wound the way Hammer writes it.

    ``materials`` overrides the material per face, in top/bottom/west/east/
    north/south order.
    """
    x1, y1, z1 = mins
    x2, y2, z2 = maxs
    faces = [
        ((x1, y2, z2), (x2, y2, z2), (x2, y1, z2)),
        ((x1, y1, z1), (x2, y1, z1), (x2, y2, z1)),
        ((x1, y2, z2), (x1, y1, z2), (x1, y1, z1)),
        ((x2, y2, z1), (x2, y1, z1), (x2, y1, z2)),
        ((x2, y2, z2), (x1, y2, z2), (x1, y2, z1)),
        ((x2, y1, z1), (x1, y1, z1), (x1, y1, z2)),
    ]
    materials = materials or [material] * 6
    return {
        "id": "1",
        "side": [
            _side(face, mat, "[1 0 0 0] 0.25", "[0 -1 0 0] 0.25")
            for face, mat in zip(faces, materials)
        ],
    }


def wedge_solid(material: str = WALL_MATERIAL) -> Dict:
    """A 64 unit wedge whose slope rises towards +Y."""
    faces = [
        ((0, 0, 0), (64, 0, 0), (64, 64, 0)),
        ((64, 64, 64), (0, 64, 64), (0, 64, 0)),
        ((0, 64, 64), (0, 0, 64), (0, 0, 0)),
        ((64, 64, 0), (64, 0, 0), (64, 0, 64)),
        ((0, 0, 0), (64, 64, 64), (64, 0, 0)),
    ]
    return {
        "id": "2",
        "side": [_side(face, material, "[1 0 0 0] 0.25", "[0 -1 0 0] 0.25") for face in faces],
    }


def output(target: str, inp: str, value: str = "", delay: str = "0", times: str = "-1") -> str:
    return "\x1b".join([target, inp, value, delay, times])


@pytest.fixture
def settings() -> ConverterSettings:
    return ConverterSettings(unit_scale=1.5)


@pytest.fixture
def materials() -> MaterialTable:
    return MaterialTable(mode=TextureMode.RULES)


@pytest.fixture
def hash_materials() -> MaterialTable:
    return MaterialTable(mode=TextureMode.HASH)


@pytest.fixture
def make_context(settings, materials):
    def make(entities=None, dialect=Dialect.HAMMER, **overrides) -> TranslationContext:
        ctx_settings = settings.with_overrides(**overrides) if overrides else settings
        return TranslationContext(
            settings=ctx_settings,
            materials=materials,
            document=MapDocument("/kit/narbaculardrop.wad"),
            dialect=dialect,
            entities=list(entities or []),
        )
    return make


@pytest.fixture
def kit_dir(tmp_path):
    """A minimal level creation kit without a texture pack."""
    root = tmp_path / "nb_tools"
    root.mkdir()
    (root / "narbaculardrop.wad").write_bytes(b"WAD3")
    (root / "csg.exe").write_bytes(b"MZ")
    (root / "noportal.txt").write_text("metal_dark\n", encoding="utf-8")
    (root / "seethrough.txt").write_text("glass\ngrate\n", encoding="utf-8")
    return root


@pytest.fixture
def surfaces() -> SurfaceProperties:
    return SurfaceProperties.from_lines(["METAL_DARK"], ["GLASS", "GRATE"])
