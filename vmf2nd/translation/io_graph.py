"""
Static resolution of the entity input/output graph.

Only enough of the graph is followed to find which concrete entities an
output ends up reaching: relays, instance IO proxies and FireUser inputs are
looked through, anything else is a terminal target. Timing, parameters and
runtime state are not simulated.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

logger = logging.getLogger(__name__)

# Post-L4D output separator; older maps use commas
OUTPUT_SEP = "\x1b"

RELAY_CLASS = "logic_relay"
PROXY_CLASS = "func_instance_io_proxy"
FIRE_USER_PREFIX = "fireuser"

Entity = Dict[str, Any]


@dataclass(frozen=True)
class Output:
    """One parsed connection: ``target<SEP>input<SEP>value<SEP>delay<SEP>times``."""
    target: str
    input: str
    value: str = ""
    delay: float = 0.0
    times: int = -1

    @classmethod
    def parse(cls, text: str) -> "Output":
        sep = OUTPUT_SEP if OUTPUT_SEP in text else ","
        parts = text.split(sep)
        if len(parts) < 2:
            raise ValueError(f"Malformed output: {text!r}")
        target, inp = parts[0].strip(), parts[1].strip()
        value = parts[2] if len(parts) > 2 else ""
        try:
            delay = float(parts[3]) if len(parts) > 3 and parts[3].strip() else 0.0
            times = int(parts[4]) if len(parts) > 4 and parts[4].strip() else -1
        except ValueError:
            raise ValueError(f"Malformed output timing: {text!r}") from None
        return cls(target, inp, value, delay, times)


def get_outputs(entity: Entity, name: str) -> List[str]:
    """Encoded outputs of ``entity`` for output ``name`` (case-insensitive)."""
    connections = entity.get("connections") or {}
    wanted = name.lower()
    for key, value in connections.items():
        if key.lower() == wanted:
            return [value] if isinstance(value, str) else list(value)
    return []


def find_target(entities: Iterable[Entity], target: str) -> Optional[Entity]:
    """
    First entity named ``target``; failing that, the first of that classname.

    Classname matches are not unique, but when an output addresses a
    classname only the type of the receiver matters.
    """
    target = target.lower()
    fallback = None
    for entity in entities:
        name = entity.get("targetname")
        if name and name.lower() == target:
            return entity
        if fallback is None and (entity.get("classname") or "").lower() == target:
            fallback = entity
    return fallback


class _Trace:
    def __init__(self, entities: List[Entity], max_depth: int):
        self.entities = entities
        self.max_depth = max_depth
        # Every (entity, input) expanded so far, and those on the current chain
        self.visited: Set[Tuple[int, str]] = set()
        self.path: Set[Tuple[int, str]] = set()
        self.found: List[Entity] = []

    def follow(self, outputs: Iterable[str], depth: int) -> None:
        for text in outputs:
            output = Output.parse(text)
            entity = find_target(self.entities, output.target)
            if entity is None:
                # Partial results are fine; stop expanding this list
                logger.debug("No entity matches output target %r", output.target)
                return

            classname = (entity.get("classname") or "").lower()
            inp = output.input.lower()
            if classname == RELAY_CLASS:
                if inp == "trigger":
                    self._forward(entity, inp, get_outputs(entity, "OnTrigger"), depth)
            elif classname == PROXY_CLASS:
                self._forward(entity, inp, get_outputs(entity, output.input), depth)
            elif inp.startswith(FIRE_USER_PREFIX):
                index = output.input[len(FIRE_USER_PREFIX):]
                self._forward(entity, inp, get_outputs(entity, "OnUser" + index), depth)
            else:
                self.found.append(entity)

    def _forward(self, entity: Entity, inp: str, outputs: List[str], depth: int) -> None:
        key = (id(entity), inp)
        label = f"{entity.get('targetname') or entity.get('classname')}.{inp}"
        if key in self.path:
            logger.warning("Signal cycle through %s, not following it again", label)
            return
        if key in self.visited:
            # Reached again by another branch; its targets are already found
            logger.debug("Already followed %s", label)
            return
        if depth >= self.max_depth:
            logger.warning("Signal chain deeper than %d at %s, truncated", self.max_depth, label)
            return
        self.visited.add(key)
        self.path.add(key)
        try:
            self.follow(outputs, depth + 1)
        finally:
            self.path.discard(key)


def trace_connection(outputs: Union[None, str, Iterable[str]], entities: List[Entity],
                     max_depth: int = 64) -> List[Entity]:
    """
    Resolve encoded outputs to the entities that finally receive them.

    Args:
        outputs: Encoded output string(s), or None for a missing connection
        entities: Every entity of the map, searched in order
        max_depth: Longest relay chain followed before truncating

    Returns:
        Terminal target entities in order of discovery. Cycles and chains
        deeper than ``max_depth`` are cut where they repeat, everything
        reached before that is kept.
    """
    if not outputs:
        return []
    if isinstance(outputs, str):
        outputs = [outputs]
    trace = _Trace(entities, max_depth)
    trace.follow(outputs, 0)
    return trace.found
