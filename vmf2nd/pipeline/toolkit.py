"""
Level creation kit discovery.

The kit directory holds the map compiler (csg.exe), the stock texture WAD
and the surface property lists. Fetching the kit is not handled here: the
directory must already exist.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..conversion.materials import MaterialTable, SurfaceProperties, TextureMode
from ..settings import ConverterSettings, get_config_dir

logger = logging.getLogger(__name__)

COMPILER_NAME = "csg.exe"
STOCK_WAD_NAME = "narbaculardrop.wad"
# Converted game materials, written by a VPK to WAD exporter
TEXTURE_PACK_NAME = "portal2.wad"
NOPORTAL_LIST = "noportal.txt"
SEETHROUGH_LIST = "seethrough.txt"


class ToolkitError(Exception):
    """Raised when the level creation kit is missing or incomplete."""
    pass


def default_tools_dir() -> Path:
    return get_config_dir() / "nb_tools"


def _read_list(path: Path) -> List[str]:
    if not path.is_file():
        logger.warning("Surface list %s not found, treating it as empty", path)
        return []
    return path.read_text(encoding="utf-8", errors="replace").splitlines()


@dataclass
class Toolkit:
    root: Path
    texture_pack: Path

    @classmethod
    def locate(cls, settings: ConverterSettings) -> "Toolkit":
        """
        Find the kit described by ``settings``.

        Raises:
            ToolkitError: If the kit directory or a file needed for this run
                is missing
        """
        root = Path(settings.tools_dir).expanduser() if settings.tools_dir else default_tools_dir()
        if not root.is_dir():
            raise ToolkitError(f"Level creation kit not found at {root}")

        pack = Path(settings.texture_pack).expanduser() if settings.texture_pack else root / TEXTURE_PACK_NAME
        toolkit = cls(root=root, texture_pack=pack)

        missing = [p for p in toolkit.required_files(settings) if not p.is_file()]
        if missing:
            raise ToolkitError(
                f"Level creation kit at {root} is incomplete, missing: "
                + ", ".join(p.name for p in missing)
            )
        if settings.texture_mode == "hash" and not toolkit.has_texture_pack:
            raise ToolkitError(f"Hash texture mode needs a texture pack, none found at {pack}")

        logger.debug("Using level creation kit at %s", root)
        return toolkit

    def required_files(self, settings: ConverterSettings) -> List[Path]:
        files = [self.stock_wad]
        if settings.compile:
            files.append(self.compiler)
        return files

    @property
    def compiler(self) -> Path:
        return self.root / COMPILER_NAME

    @property
    def stock_wad(self) -> Path:
        return self.root / STOCK_WAD_NAME

    @property
    def has_texture_pack(self) -> bool:
        return self.texture_pack.is_file() and self.texture_pack.stat().st_size > 0

    def texture_mode(self, requested: str = "auto") -> TextureMode:
        """Hash names need the converted texture pack; rule names use stock textures."""
        if requested == "auto":
            return TextureMode.HASH if self.has_texture_pack else TextureMode.RULES
        return TextureMode(requested)

    def wad_path(self, mode: TextureMode) -> Path:
        wad = self.texture_pack if mode is TextureMode.HASH else self.stock_wad
        return wad.resolve()

    def surface_properties(self) -> SurfaceProperties:
        return SurfaceProperties.from_lines(
            _read_list(self.root / NOPORTAL_LIST),
            _read_list(self.root / SEETHROUGH_LIST),
        )

    def material_table(self, requested: str = "auto",
                       surfaces: Optional[SurfaceProperties] = None) -> MaterialTable:
        mode = self.texture_mode(requested)
        logger.info("Texture mode: %s", mode.value)
        return MaterialTable(mode=mode, surfaces=surfaces or self.surface_properties())
