"""
One visualizer page: structure + algorithm + playback.

``AlgorithmSession`` is the explicit owner of what used to be page
state.  Changing the structure, the algorithm or a parameter drops the
recorded trace; the next ``play``/``step`` asks ``generate`` for a
fresh one.  Input errors are raised before anything is replaced, so a
failed edit leaves the previous structure in place.
"""

import logging

import structures
from playback import PlaybackController, clamp_delay
from settings import FAMILY_DELAYS
from structures import (
    BinarySearchTree, EmptyStructureError, Graph, InvalidInputError,
)
from tracers import ALGORITHMS, get_tracer, trace

logger = logging.getLogger(__name__)


class AlgorithmSession:
    """
    Args:
        family    (str)       : "sorting", "searching", "trees" or "graphs".
        algorithm (str)       : Algorithm name within the family.
        scheduler (Scheduler) : Passed to the playback controller.
        settings  (Settings)  : Optional; supplies delays and input caps.
    """

    def __init__(self, family, algorithm, scheduler, settings=None):
        get_tracer(family, algorithm)
        self.family     = family
        self.algorithm  = algorithm
        self.settings   = settings
        self.structure  = None
        self.params     = {}
        delay = (settings.delay_for(family) if settings
                 else clamp_delay(FAMILY_DELAYS.get(family, 600)))
        self.controller = PlaybackController(scheduler, delay,
                                             trace_factory=self.generate)

    @property
    def info(self):
        """Catalogue entry (name, complexity, pseudocode) of the algorithm."""
        return ALGORITHMS[self.family][self.algorithm]

    # ── Configuration changes (all invalidate the trace) ────────
    def select_algorithm(self, algorithm):
        get_tracer(self.family, algorithm)
        self.algorithm = algorithm
        if (self.family == "searching" and algorithm == "binary"
                and self.structure is not None):
            # Binary search needs ascending input.
            self.structure = structures.build_search_array(
                [e.value for e in self.structure], "binary")
        self.controller.invalidate()

    def set_structure(self, structure, **params):
        self._check_params(structure, {**self.params, **params})
        self.structure = structure
        self.params.update(params)
        self.controller.invalidate()

    def set_params(self, **params):
        merged = {**self.params, **params}
        if self.structure is not None:
            self._check_params(self.structure, merged)
        self.params = merged
        self.controller.invalidate()

    # ── Structure builders ──────────────────────────────────────
    def load_text(self, text, **params):
        """
        Build the structure from user text (values, or edges for graphs).

        ``params`` are validated together with the new structure; on
        any error neither is stored.  A missing search target defaults
        to the first value, a missing graph start to the first node.
        """
        merged = {**self.params, **params}
        lo, hi = self._value_range()
        if self.family == "sorting":
            structure = structures.array_from_text(text, self._array_cap(), lo, hi)
        elif self.family == "searching":
            values = structures.parse_values(text, self._array_cap(), lo, hi)
            structure = structures.build_search_array(values, self.algorithm)
            if merged.get("target") is None:
                params["target"] = structure[0].value
        elif self.family == "trees":
            structure = BinarySearchTree.from_text(text, self._tree_cap(), lo, hi)
        else:
            structure = Graph.from_text(text)
            if "start" not in params and merged.get("start") not in structure:
                params["start"] = structure.nodes[0]
            if "end" not in params and merged.get("end") not in structure:
                params["end"] = None
        self.set_structure(structure, **params)

    def load_random(self, rng=None, size=20):
        if self.family == "sorting":
            self.set_structure(structures.random_array(size, rng))
        elif self.family == "searching":
            array, target = structures.random_search_array(self.algorithm, size, rng)
            self.set_structure(array, target=target)
        elif self.family == "trees":
            self.set_structure(BinarySearchTree.random(rng))
        else:
            graph = Graph.random(rng=rng)
            self.set_structure(graph, start=graph.nodes[0], end=graph.nodes[-1])

    def load_sample(self):
        """Demo structures of the tree and graph pages."""
        if self.family == "trees":
            self.set_structure(BinarySearchTree.sample())
        elif self.family == "graphs":
            self.set_structure(Graph.sample(), start="A", end="G")
        else:
            raise InvalidInputError(f"No sample structure for {self.family}")

    def _array_cap(self):
        return self.settings.max_array_size if self.settings else structures.MAX_ARRAY_SIZE

    def _tree_cap(self):
        return self.settings.max_tree_size if self.settings else structures.MAX_TREE_SIZE

    def _value_range(self):
        return self.settings.value_range if self.settings else (structures.MIN_VALUE,
                                                                structures.MAX_VALUE)

    # ── Trace generation ────────────────────────────────────────
    def generate(self):
        """
        Trace the current structure.  Used as the controller's factory.

        Raises:
            EmptyStructureError: no structure, or nothing to search/traverse.
            InvalidInputError  : missing or unknown parameters.
        """
        if self.structure is None or len(self.structure) == 0:
            noun = {"trees": "tree", "graphs": "graph"}.get(self.family, "array")
            raise EmptyStructureError(f"Please create {'an' if noun == 'array' else 'a'} "
                                      f"{noun} first!")
        self._check_params(self.structure, self.params)
        steps = trace(self.family, self.algorithm, self.structure,
                      **self._tracer_params())
        logger.info("Generated %d steps for %s", len(steps), self.info["name"])
        return steps

    def _tracer_params(self):
        if self.family == "searching":
            return {"target": self.params["target"]}
        if self.family == "graphs":
            return {"start": self.params["start"], "end": self.params.get("end")}
        return {}

    def _check_params(self, structure, params):
        if self.family == "searching":
            target = params.get("target")
            if target is None:
                raise InvalidInputError("Please choose a target value")
            if isinstance(target, bool) or not isinstance(target, int):
                raise InvalidInputError(f"Target {target!r} is not a whole number")
        elif self.family == "graphs":
            if params.get("start") is None:
                raise InvalidInputError("Please choose a start node")
            structure.require_node(params["start"], "start")
            if params.get("end") is not None:
                structure.require_node(params["end"], "end")

    # ── Playback pass-throughs ──────────────────────────────────
    def play(self):
        self.controller.play()

    def pause(self):
        self.controller.pause()

    def step(self):
        return self.controller.step()

    def reset(self):
        self.controller.reset()
