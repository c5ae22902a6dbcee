"""
Shared test fixtures for the algorithm visualizer tests.

Provides small arrays, trees, graphs and a virtual-clock playback
controller used across the tracer, playback and session tests.
"""

import random

import pytest

from playback import ManualScheduler, PlaybackController
from structures import BinarySearchTree, Graph, build_array
from tracers import bubble_sort


@pytest.fixture
def small_array():
    """The four-element array from the bubble sort walkthrough."""
    return build_array([5, 3, 8, 1])


@pytest.fixture
def random_arrays():
    """Seeded random arrays including duplicates and edge sizes."""
    rng = random.Random(1234)
    arrays = [build_array([rng.randint(1, 30) for _ in range(n)])
              for n in (1, 2, 3, 7, 12, 25)]
    arrays.append(build_array([4, 4, 4, 4]))
    arrays.append(build_array([1, 2, 3, 4, 5]))
    arrays.append(build_array([9, 7, 5, 3, 1]))
    return arrays


@pytest.fixture
def small_tree():
    return BinarySearchTree.from_values([50, 30, 70, 20, 40])


@pytest.fixture
def triangle_graph():
    """A-B(1), B-C(1), A-C(5): the direct edge is not the shortest path."""
    return Graph(["A", "B", "C"], [("A", "B", 1), ("B", "C", 1), ("A", "C", 5)])


@pytest.fixture
def sample_graph():
    return Graph.sample()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def controller(scheduler, small_array):
    """Controller at 100 ms per tick with the bubble sort trace loaded."""
    ctl = PlaybackController(scheduler, delay_ms=100)
    ctl.load_trace(bubble_sort(small_array))
    return ctl
