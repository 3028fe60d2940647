"""
Entity translation package.

Parses VMF text, follows entity IO connections and converts entities of
puzzle maker and Hammer maps into Narbacular Drop entities and logic.
"""

from .vmf_tree import VMFTreeError, load_vmf, parse_vmf
from .context import Dialect, TranslationContext, detect_dialect
from .entity_kinds import EntityKind, classify
from .io_graph import Output, trace_connection
from .logic import LogicSynthesizer
from .translator import create_context, emit_world, link_logic, translate, translate_entities

__all__ = [
    'VMFTreeError',
    'load_vmf',
    'parse_vmf',
    'Dialect',
    'TranslationContext',
    'detect_dialect',
    'EntityKind',
    'classify',
    'Output',
    'trace_connection',
    'LogicSynthesizer',
    'create_context',
    'emit_world',
    'link_logic',
    'translate',
    'translate_entities',
]
