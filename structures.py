"""
Structure builders: arrays, binary search trees, graphs, stacks, queues.

Everything a tracer consumes is constructed here, from user text or
from a random generator.  Input is validated at this boundary; once a
structure exists, the tracers assume it is well formed.

Random generation takes an optional ``random.Random`` so callers (and
tests) can seed it.  Tracing itself never touches randomness.
"""

import logging
import random
import re
from collections import deque

from trace_model import Element

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════
#  ERRORS
# ═════════════════════════════════════════════════════════════════
class AlgoVizError(Exception):
    """Base class for every error raised by this package."""


class InvalidInputError(AlgoVizError):
    """Non-numeric or out-of-range values, too many values, bad names."""


class EmptyStructureError(AlgoVizError):
    """Operation requested on an empty structure."""


# ═════════════════════════════════════════════════════════════════
#  LIMITS
# ═════════════════════════════════════════════════════════════════
MIN_VALUE       = 1
MAX_VALUE       = 999
MAX_ARRAY_SIZE  = 50
MAX_TREE_SIZE   = 20
HISTORY_LENGTH  = 10

_SPLIT = re.compile(r"[,\s]+")


def parse_values(text, max_count=MAX_ARRAY_SIZE, lo=MIN_VALUE, hi=MAX_VALUE):
    """
    Parse a comma/space separated list of integers.

    Args:
        text      (str): Raw input, e.g. ``"7, 3 18,10"``.
        max_count (int): Maximum number of values accepted.
        lo, hi    (int): Inclusive value range.

    Returns:
        list[int]: Parsed values in input order.

    Raises:
        InvalidInputError: empty input, a token that is not an integer,
            a value outside ``[lo, hi]``, or more than ``max_count`` values.

    Examples:
        >>> parse_values("7,3,18,10,22")
        [7, 3, 18, 10, 22]
    """
    tokens = [t for t in _SPLIT.split((text or "").strip()) if t]
    if not tokens:
        raise InvalidInputError(
            f"Please enter valid numbers ({lo}-{hi}) separated by commas or spaces")

    values = []
    for token in tokens:
        try:
            value = int(token)
        except ValueError:
            raise InvalidInputError(f"'{token}' is not a whole number") from None
        if not lo <= value <= hi:
            raise InvalidInputError(
                f"{value} is out of range; values must be between {lo} and {hi}")
        values.append(value)

    if len(values) > max_count:
        raise InvalidInputError(f"Maximum {max_count} elements allowed")
    return values


# ═════════════════════════════════════════════════════════════════
#  ARRAYS (sorting & searching)
#
#  An array is a tuple of Elements whose key is the element's
#  original slot id.  The id survives reordering, so a renderer
#  can animate an element moving between slots.
# ═════════════════════════════════════════════════════════════════
def build_array(values):
    """Wrap raw integers as an immutable array of Elements."""
    return tuple(Element(i, v) for i, v in enumerate(values))


def array_from_text(text, max_count=MAX_ARRAY_SIZE, lo=MIN_VALUE, hi=MAX_VALUE):
    return build_array(parse_values(text, max_count, lo, hi))


def random_array(size=20, rng=None):
    """
    Random array for the sorting page (values 10..309).

    Raises:
        InvalidInputError: size outside ``1..MAX_ARRAY_SIZE``.
    """
    if not 1 <= size <= MAX_ARRAY_SIZE:
        raise InvalidInputError(f"Array size must be between 1 and {MAX_ARRAY_SIZE}")
    rng = rng or random.Random()
    return build_array(rng.randint(10, 309) for _ in range(size))


def build_search_array(values, algorithm):
    """Binary search needs ascending input: sort before building."""
    if algorithm == "binary":
        values = sorted(values)
    return build_array(values)


def random_search_array(algorithm, size=20, rng=None):
    """
    Random array plus a target for the searching page.

    Binary search gets the evenly spaced ascending values 5, 10, 15...;
    linear search gets random values 1..100.  The target is always
    drawn from the array so the default search succeeds.

    Returns:
        tuple: ``(array, target)``

    Raises:
        InvalidInputError: size outside ``1..MAX_ARRAY_SIZE``.
    """
    if not 1 <= size <= MAX_ARRAY_SIZE:
        raise InvalidInputError(f"Array size must be between 1 and {MAX_ARRAY_SIZE}")
    rng = rng or random.Random()
    if algorithm == "binary":
        values = [(i + 1) * 5 for i in range(size)]
    else:
        values = [rng.randint(1, 100) for _ in range(size)]
    array = build_array(values)
    return array, rng.choice(values)


class ArrayBuilder:
    """
    Editable array used by the sorting/searching pages.

    Every edit either succeeds completely or raises and leaves the
    current values untouched.

    Attributes:
        max_size (int) : Element cap.
        keep_sorted (bool) : Re-sort after every edit (binary search).
    """

    def __init__(self, values=(), max_size=MAX_ARRAY_SIZE, keep_sorted=False):
        self.max_size    = max_size
        self.keep_sorted = keep_sorted
        self._values     = []
        if values:
            self.replace(values)

    def __len__(self):
        return len(self._values)

    @property
    def values(self):
        return list(self._values)

    def replace(self, values):
        values = list(values)
        if len(values) > self.max_size:
            raise InvalidInputError(f"Maximum {self.max_size} elements allowed")
        for v in values:
            _check_value(v)
        self._values = sorted(values) if self.keep_sorted else values

    def load_text(self, text):
        self.replace(parse_values(text, self.max_size))

    def add(self, value):
        _check_value(value)
        if len(self._values) >= self.max_size:
            raise InvalidInputError(f"Maximum {self.max_size} elements allowed")
        self._values.append(value)
        if self.keep_sorted:
            self._values.sort()

    def remove_last(self):
        if not self._values:
            raise EmptyStructureError("The array is already empty")
        return self._values.pop()

    def clear(self):
        self._values = []

    def build(self):
        return build_array(self._values)


def _check_value(value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{value!r} is not a whole number")
    if not MIN_VALUE <= value <= MAX_VALUE:
        raise InvalidInputError(
            f"Please enter a valid number between {MIN_VALUE} and {MAX_VALUE}")


# ═════════════════════════════════════════════════════════════════
#  BINARY SEARCH TREE
#
#  Plain BST: smaller keys go left, larger go right, duplicates
#  are ignored.  Node ids are derived from the value, which is
#  unique within one tree.
# ═════════════════════════════════════════════════════════════════
class TreeNode:
    """
    A single BST node.

    Attributes:
        value (int)          : Node value.
        id    (str)          : Stable identity, ``"node-<value>"``.
        left  (TreeNode|None): Left child.
        right (TreeNode|None): Right child.
    """
    __slots__ = ('value', 'id', 'left', 'right')

    def __init__(self, value):
        self.value = value
        self.id    = f"node-{value}"
        self.left  = None
        self.right = None


class BinarySearchTree:

    SAMPLE_VALUES = (50, 30, 70, 20, 40, 60, 80, 10, 25, 35, 45)

    def __init__(self, max_size=MAX_TREE_SIZE):
        self.root     = None
        self.max_size = max_size
        self._size    = 0

    def __len__(self):
        return self._size

    # ── Construction ────────────────────────────────────────────
    @classmethod
    def from_values(cls, values, max_size=MAX_TREE_SIZE):
        values = list(values)
        if len(values) > max_size:
            raise InvalidInputError(
                f"Maximum {max_size} nodes allowed for better visualization")
        tree = cls(max_size)
        for v in values:
            tree.insert(v)
        return tree

    @classmethod
    def from_text(cls, text, max_size=MAX_TREE_SIZE, lo=MIN_VALUE, hi=MAX_VALUE):
        return cls.from_values(parse_values(text, max_size, lo, hi), max_size)

    @classmethod
    def sample(cls):
        return cls.from_values(cls.SAMPLE_VALUES)

    @classmethod
    def random(cls, rng=None):
        """8-17 distinct values in 1..100, inserted in random order."""
        rng  = rng or random.Random()
        size = rng.randint(8, 17)
        return cls.from_values(rng.sample(range(1, 101), size))

    def insert(self, value):
        """
        Insert ``value``.

        Returns:
            bool: False when the value was already present (ignored).

        Raises:
            InvalidInputError: value out of range or tree already full.
        """
        _check_value(value)
        if self.contains(value):
            return False
        if self._size >= self.max_size:
            raise InvalidInputError(f"Maximum {self.max_size} nodes allowed")

        node = TreeNode(value)
        if self.root is None:
            self.root = node
        else:
            cur = self.root
            while True:
                if value < cur.value:
                    if cur.left is None:
                        cur.left = node
                        break
                    cur = cur.left
                else:
                    if cur.right is None:
                        cur.right = node
                        break
                    cur = cur.right
        self._size += 1
        return True

    def contains(self, value):
        cur = self.root
        while cur is not None:
            if value == cur.value:
                return True
            cur = cur.left if value < cur.value else cur.right
        return False

    def clear(self):
        self.root  = None
        self._size = 0

    # ── Inspection ──────────────────────────────────────────────
    def nodes(self):
        """All nodes in pre-order (the layout order of snapshots)."""
        out, stack = [], [self.root] if self.root else []
        while stack:
            n = stack.pop()
            out.append(n)
            if n.right:
                stack.append(n.right)
            if n.left:
                stack.append(n.left)
        return out

    def height(self):
        def _h(n):
            if n is None:
                return 0
            return 1 + max(_h(n.left), _h(n.right))
        return _h(self.root)

    def values(self):
        """In-order values (ascending)."""
        out = []
        def _in(n):
            if n is None:
                return
            _in(n.left); out.append(n.value); _in(n.right)
        _in(self.root)
        return out

    def to_tuple(self, node=None):
        """Nested ``(value, left, right)`` tuple; ``None`` for empty."""
        def _t(n):
            if n is None:
                return None
            return (n.value, _t(n.left), _t(n.right))
        return _t(self.root if node is None else node)


# ═════════════════════════════════════════════════════════════════
#  GRAPH
#
#  Undirected, positively weighted.  Node order is the order the
#  caller supplied; Dijkstra uses it to break ties.  Neighbours
#  are enumerated in ascending node-id order.
# ═════════════════════════════════════════════════════════════════
class Graph:
    """
    Attributes:
        nodes (list[str])                 : Node ids in input order.
        edges (list[tuple[str, str, int]]): ``(from, to, weight)``.
    """

    def __init__(self, nodes, edges=()):
        self.nodes = []
        self.edges = []
        self._adj  = {}
        for n in nodes:
            if n in self._adj:
                raise InvalidInputError(f"Duplicate node {n!r}")
            self.nodes.append(n)
            self._adj[n] = {}
        for edge in edges:
            self.add_edge(*edge)

    def __contains__(self, node):
        return node in self._adj

    def __len__(self):
        return len(self.nodes)

    def add_edge(self, a, b, weight=1):
        if a not in self._adj or b not in self._adj:
            missing = a if a not in self._adj else b
            raise InvalidInputError(f"Edge references unknown node {missing!r}")
        if a == b:
            raise InvalidInputError(f"Self-loop on {a!r} is not allowed")
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight <= 0:
            raise InvalidInputError(f"Edge {a}-{b} needs a positive weight")
        if b in self._adj[a]:
            raise InvalidInputError(f"Duplicate edge {a}-{b}")
        self.edges.append((a, b, weight))
        self._adj[a][b] = weight
        self._adj[b][a] = weight

    def neighbors(self, node):
        """``[(neighbor, weight), ...]`` sorted by neighbor id."""
        return sorted(self._adj[node].items(), key=lambda kv: kv[0])

    def weight(self, a, b):
        return self._adj[a].get(b)

    def require_node(self, node, role="start"):
        """
        Boundary check used before tracing.

        Raises:
            InvalidInputError: node is not part of the graph.
        """
        if node not in self._adj:
            raise InvalidInputError(f"{role.capitalize()} node {node!r} is not in the graph")
        return node

    @classmethod
    def sample(cls):
        """The seven-node, nine-edge demo graph."""
        return cls(
            ["A", "B", "C", "D", "E", "F", "G"],
            [("A", "B", 4), ("A", "D", 2), ("B", "C", 3), ("B", "E", 1),
             ("C", "F", 6), ("C", "G", 2), ("D", "E", 5), ("E", "F", 3),
             ("F", "G", 1)],
        )

    @classmethod
    def random(cls, size=7, extra_edges=3, rng=None, max_weight=9):
        """
        Random connected graph on nodes ``A, B, C ...``.

        A random spanning tree guarantees connectivity, then up to
        ``extra_edges`` further edges are added.
        """
        if not 2 <= size <= 26:
            raise InvalidInputError("Graph size must be between 2 and 26")
        rng   = rng or random.Random()
        nodes = [chr(ord("A") + i) for i in range(size)]
        graph = cls(nodes)
        for i in range(1, size):
            graph.add_edge(nodes[rng.randrange(i)], nodes[i],
                           rng.randint(1, max_weight))
        candidates = [(a, b) for i, a in enumerate(nodes) for b in nodes[i + 1:]
                      if graph.weight(a, b) is None]
        rng.shuffle(candidates)
        for a, b in candidates[:extra_edges]:
            graph.add_edge(a, b, rng.randint(1, max_weight))
        return graph

    @classmethod
    def from_text(cls, text):
        """
        Parse ``"A-B:4, A-D:2, B-C"`` (weight defaults to 1).

        Nodes are collected in order of first appearance.
        """
        nodes, edges = [], []
        for token in (t.strip() for t in (text or "").split(",")):
            if not token:
                continue
            m = re.fullmatch(r"(\w+)\s*-\s*(\w+)(?:\s*:\s*(\d+))?", token)
            if not m:
                raise InvalidInputError(f"Cannot parse edge {token!r}; use A-B:4")
            a, b, w = m.group(1), m.group(2), int(m.group(3) or 1)
            for n in (a, b):
                if n not in nodes:
                    nodes.append(n)
            edges.append((a, b, w))
        if not nodes:
            raise InvalidInputError("Please enter at least one edge, e.g. A-B:4")
        return cls(nodes, edges)


# ═════════════════════════════════════════════════════════════════
#  STACK & QUEUE
#
#  Immediate-mode containers.  Each call is logged to a short
#  newest-first history, failures included.
# ═════════════════════════════════════════════════════════════════
class Operation:
    """One history entry: ``push 'x'``, ``pop -> 'y'``, ``peek -> 'Stack is empty'``."""
    __slots__ = ('type', 'value', 'result')

    def __init__(self, type, value=None, result=None):
        self.type   = type
        self.value  = value
        self.result = result

    def __repr__(self):
        return f"Operation({self.type!r}, value={self.value!r}, result={self.result!r})"

    def __eq__(self, other):
        return (isinstance(other, Operation)
                and (self.type, self.value, self.result)
                == (other.type, other.value, other.result))


class _Container:
    """Shared storage, history and validation for Stack and Queue."""

    NAME = "Container"

    def __init__(self):
        self._items  = []
        self.history = deque(maxlen=HISTORY_LENGTH)

    def __len__(self):
        return len(self._items)

    @property
    def items(self):
        return list(self._items)

    def is_empty(self):
        empty = not self._items
        self._log("isEmpty", result=str(empty).lower())
        return empty

    def clear(self):
        self._items.clear()
        self.history.clear()

    def _log(self, op, value=None, result=None):
        self.history.appendleft(Operation(op, value, result))

    def _checked_value(self, value):
        value = "" if value is None else str(value).strip()
        if not value:
            raise InvalidInputError("Please enter a value")
        return value

    def _require_items(self, op):
        if not self._items:
            message = f"{self.NAME} is empty"
            self._log(op, result=message)
            raise EmptyStructureError(message)


class Stack(_Container):
    """LIFO stack; ``items`` lists bottom first."""

    NAME = "Stack"

    def push(self, value):
        value = self._checked_value(value)
        self._items.append(value)
        self._log("push", value=value)
        return value

    def pop(self):
        self._require_items("pop")
        value = self._items.pop()
        self._log("pop", result=value)
        return value

    def peek(self):
        self._require_items("peek")
        value = self._items[-1]
        self._log("peek", result=value)
        return value


class Queue(_Container):
    """FIFO queue; ``items`` lists front first."""

    NAME = "Queue"

    def enqueue(self, value):
        value = self._checked_value(value)
        self._items.append(value)
        self._log("enqueue", value=value)
        return value

    def dequeue(self):
        self._require_items("dequeue")
        value = self._items.pop(0)
        self._log("dequeue", result=value)
        return value

    def peek(self):
        self._require_items("peek")
        value = self._items[0]
        self._log("peek", result=value)
        return value
