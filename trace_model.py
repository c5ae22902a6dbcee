"""
Trace model: immutable snapshots recorded while an algorithm runs.

A trace is a plain ``list`` of :class:`TraceStep`.  Every step is a
self-contained picture of the structure at one moment (never a diff),
so a renderer can jump to any cursor position and draw it directly.

Step schema
───────────
    action      : str          category (compare/swap/visit/relax/done ...)
    description : str          human-readable explanation
    highlight   : int | None   pseudocode line to highlight
    snapshot    : (Element,)   every element with its role markers
    aux         : Auxiliary?   queue / stack / distances side channel
    visited     : tuple        visit order so far (trees & graphs)
    current     : key | None   node being processed (trees & graphs)
    extra       : mapping      family metadata (bounds, found index, path)
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Hashable, Iterable, Mapping, Optional, Tuple


# ═════════════════════════════════════════════════════════════════
#  ROLE MARKERS
#
#  Each algorithm family draws from its own small set.  Roles are
#  not mutually exclusive: an element can be "sorted" and
#  "comparing" in the same snapshot.
# ═════════════════════════════════════════════════════════════════
COMPARING = "comparing"
SWAPPING  = "swapping"
SORTED    = "sorted"
PIVOT     = "pivot"
SELECTED  = "selected"

CHECKING  = "checking"
FOUND     = "found"
IN_RANGE  = "in_range"

VISITING  = "visiting"
VISITED   = "visited"
START     = "start"
END       = "end"

SEQUENCE_ROLES = frozenset({COMPARING, SWAPPING, SORTED, PIVOT, SELECTED})
SEARCH_ROLES   = frozenset({CHECKING, FOUND, IN_RANGE})
NODE_ROLES     = frozenset({VISITING, VISITED, START, END})

# Distance of a node that has not been reached (yet).
INFINITY = math.inf


@dataclass(frozen=True)
class Element:
    """
    One element of a snapshot.

    Attributes:
        key   : Stable identity (array slot id, tree node id, graph node).
        value : Displayed value.  For Dijkstra traces this is the node's
                tentative distance.
        roles : Role markers attached at this step.
    """
    key: Hashable
    value: Any
    roles: frozenset = frozenset()

    def has(self, role: str) -> bool:
        return role in self.roles


@dataclass(frozen=True)
class Auxiliary:
    """
    Algorithm-specific side channel.  Exactly one of the three kinds.

    Use the ``queue`` / ``stack`` / ``distances`` constructors rather
    than building it by hand.
    """
    kind: str
    items: Tuple = ()

    QUEUE = "queue"
    STACK = "stack"
    DISTANCES = "distances"

    @classmethod
    def queue(cls, items: Iterable) -> "Auxiliary":
        return cls(cls.QUEUE, tuple(items))

    @classmethod
    def stack(cls, items: Iterable) -> "Auxiliary":
        return cls(cls.STACK, tuple(items))

    @classmethod
    def distances(cls, mapping: Mapping) -> "Auxiliary":
        return cls(cls.DISTANCES, tuple(mapping.items()))

    def as_list(self) -> list:
        """Queue/stack contents, front (or bottom) first."""
        if self.kind == self.DISTANCES:
            raise TypeError("distances auxiliary state is a mapping")
        return list(self.items)

    def as_dict(self) -> dict:
        """Node -> best-known distance."""
        if self.kind != self.DISTANCES:
            raise TypeError(f"{self.kind} auxiliary state is a list")
        return dict(self.items)


@dataclass(frozen=True)
class TraceStep:
    action: str
    description: str
    snapshot: Tuple[Element, ...]
    highlight: Optional[int] = None
    aux: Optional[Auxiliary] = None
    visited: Tuple = ()
    current: Optional[Hashable] = None
    extra: Mapping = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the metadata, nested lists and dicts included.
        object.__setattr__(self, "extra", _freeze(self.extra))

    @property
    def values(self) -> list:
        return [e.value for e in self.snapshot]

    @property
    def keys(self) -> list:
        return [e.key for e in self.snapshot]

    def tagged(self, role: str) -> list:
        """Keys of the elements carrying ``role``, in snapshot order."""
        return [e.key for e in self.snapshot if role in e.roles]

    def indices(self, role: str) -> list:
        """Snapshot positions of the elements carrying ``role``."""
        return [i for i, e in enumerate(self.snapshot) if role in e.roles]

    def to_dict(self) -> dict:
        """Plain JSON-friendly representation (used by the exporters)."""
        aux = None
        if self.aux is not None:
            if self.aux.kind == Auxiliary.DISTANCES:
                aux = {self.aux.kind: {str(k): _json_number(v)
                                       for k, v in self.aux.items}}
            else:
                aux = {self.aux.kind: list(self.aux.items)}
        return {
            "action":      self.action,
            "description": self.description,
            "highlight":   self.highlight,
            "snapshot":    [{"key": e.key, "value": _json_number(e.value),
                             "roles": sorted(e.roles)}
                            for e in self.snapshot],
            "aux":         aux,
            "visited":     list(self.visited),
            "current":     self.current,
            "extra":       {k: _json_number(v) for k, v in self.extra.items()},
        }


def _freeze(v):
    if isinstance(v, Mapping):
        return MappingProxyType({k: _freeze(x) for k, x in v.items()})
    if isinstance(v, (list, tuple)):
        return tuple(_freeze(x) for x in v)
    if isinstance(v, (set, frozenset)):
        return frozenset(v)
    return v


def _json_number(v):
    # JSON has no infinity literal.
    if isinstance(v, float) and math.isinf(v):
        return "inf"
    if isinstance(v, Mapping):
        return {str(k): _json_number(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [_json_number(x) for x in v]
    return v


def make_snapshot(items, roles_for=None) -> Tuple[Element, ...]:
    """
    Build an immutable snapshot from ``(key, value)`` pairs.

    Args:
        items     : Iterable of (key, value) pairs, in display order.
        roles_for : Optional callable ``(index, key) -> iterable of roles``.

    Returns:
        tuple[Element, ...]
    """
    out = []
    for idx, (key, value) in enumerate(items):
        roles = frozenset(roles_for(idx, key)) if roles_for else frozenset()
        out.append(Element(key, value, roles))
    return tuple(out)


def format_snapshot(step: TraceStep) -> str:
    """One-line text rendering: ``5 [3:comparing] 8 ...``."""
    parts = []
    for e in step.snapshot:
        value = "∞" if isinstance(e.value, float) and math.isinf(e.value) else e.value
        if e.roles:
            parts.append(f"[{value}:{','.join(sorted(e.roles))}]")
        else:
            parts.append(str(value))
    return " ".join(parts)
