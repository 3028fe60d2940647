"""
Portal 2 material to Narbacular Drop texture mapping.

Two texture modes exist:

- ``hash``: the texture pack was generated from the game's VPKs, and every
  texture is named after the first 15 hex digits of the MD5 of its material
  path (the WAD format caps names at 15 characters).
- ``rules``: only the stock Narbacular Drop WAD is available, so material
  families are mapped onto a small built-in vocabulary.

Usage:
    table = MaterialTable(TextureMode.HASH, SurfaceProperties(noportal, seethrough))
    material = table.resolve("METAL\\Black_Wall_Metal_002a")
    material.texture      # '3c5c0e8a7b...'
    table.source_of(material.texture)   # 'metal/black_wall_metal_002a'
"""

from __future__ import annotations
import hashlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Texture drawn on faces that should never render
EMPTY_TEXTURE = "AAATRIGGER"

EMPTY_MATERIAL_PATH = "tools/toolsnodraw"
MISSING_MATERIAL_PATH = "metal/black_wall_metal_001d"
SKYBOX_MATERIAL_PATH = "tools/toolsskybox"

HASH_LENGTH = 15

# DLC-only materials and their always-available equivalents
MATERIAL_REWRITES = {
    "glass/glasswindow007a_less_shiny": "glass/glasswindow007a",
}

# Hazard materials, compiled into lava volumes
LAVA_PREFIXES = ("nature/toxicslime",)

# Tool/effect materials that still have to render
HASHED_EFFECT_PREFIXES = ("effects/laserplane",)

# Ordered (match, pattern, texture) rules for the stock WAD.
# match is "prefix" or "contains"; the first hit wins.
BUILTIN_RULES: List[Tuple[str, str, str]] = [
    ("contains", "glass", "GLASS"),
    ("contains", "grate", "GRATE"),
    ("contains", "elevator", "ELEVATOR"),
    ("prefix", "signage/", "SIGN"),
    ("prefix", "tile/", "TILE_WHITE"),
    ("contains", "white", "TILE_WHITE"),
    ("prefix", "concrete/", "CONCRETE"),
    ("contains", "carpet", "CARPET"),
    ("contains", "wood", "WOOD"),
    ("prefix", "plastic/", "PLASTIC"),
    ("prefix", "nature/", "NATURE"),
    ("prefix", "metal/", "METAL_DARK"),
    ("prefix", "anim_wp/", "METAL_DARK"),
]


class TextureMode(Enum):
    HASH = "hash"
    RULES = "rules"


def normalize_material_path(path: str) -> str:
    """Lowercase a material path and use forward slashes throughout."""
    normalized = path.strip().lower().replace("\\", "/")
    return MATERIAL_REWRITES.get(normalized, normalized)


def hash_texture_name(path: str) -> str:
    return hashlib.md5(path.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def rule_texture_name(path: str) -> str:
    for match, pattern, texture in BUILTIN_RULES:
        if match == "prefix" and path.startswith(pattern):
            return texture
        if match == "contains" and pattern in path:
            return texture
    return EMPTY_TEXTURE


@dataclass(frozen=True)
class SurfaceProperties:
    """Externally supplied surface lists.

    In hash mode the entries are material paths, in rules mode they are
    texture names from the stock WAD.
    """
    noportal: FrozenSet[str] = frozenset()
    seethrough: FrozenSet[str] = frozenset()

    @classmethod
    def from_lines(cls, noportal: Iterable[str], seethrough: Iterable[str]) -> "SurfaceProperties":
        def clean(lines):
            return frozenset(line.strip().lower() for line in lines if line.strip())
        return cls(noportal=clean(noportal), seethrough=clean(seethrough))


@dataclass(frozen=True)
class Material:
    """A source material with its target texture and surface flags."""
    path: str
    texture: str
    noportal: bool = False
    seethrough: bool = False
    lava: bool = False

    @property
    def is_empty(self) -> bool:
        return self.texture == EMPTY_TEXTURE

    def __str__(self) -> str:
        return self.texture


@dataclass
class MaterialTable:
    """Resolves materials for one conversion run.

    Every texture handed out is remembered together with the material it
    came from, so compiler complaints about a texture can be traced back.
    """
    mode: TextureMode = TextureMode.HASH
    surfaces: SurfaceProperties = field(default_factory=SurfaceProperties)
    _sources: Dict[str, str] = field(default_factory=dict, repr=False)
    _cache: Dict[str, Material] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        # Sentinels are registered first so they always have a mapping
        self.empty = self.resolve(EMPTY_MATERIAL_PATH)
        self.missing = self.resolve(MISSING_MATERIAL_PATH)

    def convert(self, path: str) -> str:
        """Texture name for an already normalized material path."""
        if self.mode is TextureMode.RULES:
            return rule_texture_name(path)

        if path == SKYBOX_MATERIAL_PATH:
            return hash_texture_name(MISSING_MATERIAL_PATH)
        if path.startswith(HASHED_EFFECT_PREFIXES):
            return hash_texture_name(path)
        if path.startswith(("tools/", "effects/")):
            return EMPTY_TEXTURE
        return hash_texture_name(path)

    def resolve(self, raw_path: Optional[str]) -> Material:
        if not raw_path:
            return self.empty
        path = normalize_material_path(raw_path)
        cached = self._cache.get(path)
        if cached is not None:
            return cached

        texture = self.convert(path)
        key = path if self.mode is TextureMode.HASH else texture.lower()
        material = Material(
            path=path,
            texture=texture,
            noportal=key in self.surfaces.noportal,
            seethrough=key in self.surfaces.seethrough,
            lava=path.startswith(LAVA_PREFIXES),
        )
        if texture == EMPTY_TEXTURE and not path.startswith(("tools/", "effects/")):
            logger.debug("No texture for %s, drawing it as %s", path, EMPTY_TEXTURE)
        self._cache[path] = material
        # First source wins, sentinels included
        self._sources.setdefault(texture, path)
        return material

    def source_of(self, texture: str) -> Optional[str]:
        """Material path that produced ``texture``, if any."""
        return self._sources.get(texture)

    def by_texture(self, texture: str) -> Material:
        """Look a Material up by its target texture name.

        Textures never handed out by this table (hand-written MAP lines)
        come back as a bare Material named after the texture.
        """
        source = self._sources.get(texture)
        if source is not None:
            return self.resolve(source)
        return Material(path=texture.lower(), texture=texture)

    @property
    def textures(self) -> Dict[str, str]:
        return dict(self._sources)
