"""
VMF text to generic entity tree.

The translator works on plain dictionaries shaped like::

    {
        "world": {"classname": "worldspawn", ..., "solid": [solid, ...]},
        "entity": [
            {"classname": "prop_floor_button", "targetname": "button_1",
             "origin": "0 0 0",
             "connections": {"OnPressed": ["door\\x1bOpen\\x1b\\x1b0\\x1b-1"]}},
            ...
        ],
    }

where every solid is ``{"id": ..., "side": [side, ...]}`` and every side
holds its raw ``plane``/``uaxis``/``vaxis``/``material`` strings. Parsing the
KeyValues syntax itself is left to srctools.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from srctools.keyvalues import Keyvalues
from srctools.tokenizer import TokenSyntaxError

logger = logging.getLogger(__name__)

# Blocks that may repeat and are always collected into lists
LIST_BLOCKS = {"solid", "side", "entity"}
# Wrapper emitted by Hammer around objects hidden through visgroups
HIDDEN_BLOCK = "hidden"
CONNECTIONS_BLOCK = "connections"

VMFTree = Dict[str, Any]


class VMFTreeError(Exception):
    """Raised when VMF text cannot be parsed into a tree."""
    pass


def _connections(block: Keyvalues) -> Dict[str, List[str]]:
    outputs: Dict[str, List[str]] = {}
    for kv in block:
        if kv.has_children():
            continue
        outputs.setdefault(kv.real_name, []).append(kv.value)
    return outputs


def _block_to_dict(block: Keyvalues) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for kv in block:
        name = kv.name.casefold() if kv.name else ""
        if not kv.has_children():
            if name in LIST_BLOCKS:
                # Props carry a "solid" collision keyvalue; it is not a brush
                continue
            # Duplicate keys keep their first value
            result.setdefault(kv.real_name, kv.value)
            continue
        if name == CONNECTIONS_BLOCK:
            result[CONNECTIONS_BLOCK] = _connections(kv)
        elif name == HIDDEN_BLOCK:
            for key, value in _block_to_dict(kv).items():
                if key in LIST_BLOCKS:
                    result.setdefault(key, []).extend(value)
        elif name in LIST_BLOCKS:
            result.setdefault(name, []).append(_block_to_dict(kv))
        else:
            result[name] = _block_to_dict(kv)
    return result


def parse_vmf(text: str, filename: str = "<string>") -> VMFTree:
    """Parse VMF text into the generic world/entity tree."""
    try:
        root = Keyvalues.parse(text, filename, allow_escapes=False)
    except TokenSyntaxError as exc:
        raise VMFTreeError(f"{filename}: {exc}") from exc

    top = _block_to_dict(root)
    world = top.get("world") or {}
    world.setdefault("solid", [])
    tree: VMFTree = {
        "world": world,
        "entity": top.get("entity", []),
    }
    logger.debug(
        "Parsed %s: %d world solids, %d entities",
        filename, len(world["solid"]), len(tree["entity"]),
    )
    return tree


def load_vmf(path: Union[str, Path]) -> Tuple[str, VMFTree]:
    """Read a VMF file and return ``(raw_text, tree)``."""
    path = Path(path)
    text = path.read_text(encoding="utf-8", errors="replace")
    return text, parse_vmf(text, str(path))
