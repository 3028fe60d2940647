"""
Geometry and material conversion package.

Handles vectors and planes, brush sides, texture naming and the Narbacular
Drop .map document.
"""

from .plane_math import Axis, Plane, Vector3, format_number
from .brush_side import Side
from .materials import Material, MaterialTable, SurfaceProperties, TextureMode
from .map_writer import MapDocument, MapEntity, create_box_brush, replace_texture
from .solid_emitter import SolidClass, classify_sides, emit_solids

__all__ = [
    # Geometry
    'Axis',
    'Plane',
    'Vector3',
    'format_number',
    'Side',
    # Materials
    'Material',
    'MaterialTable',
    'SurfaceProperties',
    'TextureMode',
    # Map output
    'MapDocument',
    'MapEntity',
    'create_box_brush',
    'replace_texture',
    # Solids
    'SolidClass',
    'classify_sides',
    'emit_solids',
]
