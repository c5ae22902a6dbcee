"""
Tests for graph BFS, DFS and Dijkstra tracers.

Tests cover:
- Dijkstra distances against a brute-force path search
- Tie-breaking and neighbour ordering
- Reachability: disconnected nodes are never visited
- Terminal step clears the side channel
"""

import itertools

import pytest

from structures import Graph
from trace_model import END, INFINITY, START, VISITING
from tracers import (
    dijkstra, final_distances, graph_bfs, graph_dfs, shortest_path, visited_order,
)


def _brute_force_distances(graph, start):
    """Cheapest simple path to each node by trying every ordering."""
    best = {n: INFINITY for n in graph.nodes}
    best[start] = 0
    others = [n for n in graph.nodes if n != start]
    for k in range(1, len(others) + 1):
        for route in itertools.permutations(others, k):
            total, here = 0, start
            for node in route:
                w = graph.weight(here, node)
                if w is None:
                    break
                total += w
                here = node
                best[node] = min(best[node], total)
    return best


@pytest.fixture
def split_graph():
    """Two components: A-B-C and the lone pair X-Y."""
    return Graph(["A", "B", "C", "X", "Y"],
                 [("A", "B", 2), ("B", "C", 3), ("X", "Y", 1)])


# =============================================================================
# Dijkstra
# =============================================================================

def test_dijkstra_prefers_two_hops(triangle_graph):
    steps = dijkstra(triangle_graph, "A")
    assert final_distances(steps) == {"A": 0, "B": 1, "C": 2}
    assert steps[-1].extra["distances"] == {"A": 0, "B": 1, "C": 2}


def test_dijkstra_matches_brute_force(sample_graph):
    for start in sample_graph.nodes:
        steps = dijkstra(sample_graph, start)
        assert final_distances(steps) == _brute_force_distances(sample_graph, start)


def test_dijkstra_path_to_end(sample_graph):
    steps = dijkstra(sample_graph, "A", "G")

    assert shortest_path(steps) == ["A", "B", "C", "G"]
    assert final_distances(steps)["G"] == 9
    final = steps[-1]
    assert final.tagged(START) == ["A"]
    assert final.tagged(END) == ["G"]


def test_dijkstra_relax_steps_only_lower_distances(sample_graph):
    best = {}
    for step in dijkstra(sample_graph, "A"):
        if step.action != "relax":
            continue
        node, distance = step.extra["node"], step.extra["distance"]
        assert distance < best.get(node, INFINITY)
        best[node] = distance
        assert step.aux.as_dict()[node] == distance


def test_dijkstra_unreachable_nodes_stay_infinite(split_graph):
    steps = dijkstra(split_graph, "A", "Y")
    distances = final_distances(steps)

    assert distances["X"] == INFINITY
    assert distances["Y"] == INFINITY
    assert steps[-1].extra["unreachable"] == ("X", "Y")
    assert shortest_path(steps) == []
    assert visited_order(steps) == ["A", "B", "C"]


def test_dijkstra_ties_follow_node_order():
    graph = Graph(["S", "Q", "P"], [("S", "P", 1), ("S", "Q", 1)])
    order = visited_order(dijkstra(graph, "S"))
    assert order == ["S", "Q", "P"]


# =============================================================================
# BFS / DFS
# =============================================================================

def test_bfs_order_on_sample(sample_graph):
    assert visited_order(graph_bfs(sample_graph, "A")) == \
        ["A", "B", "D", "C", "E", "F", "G"]


def test_dfs_explores_smallest_neighbour_first(sample_graph):
    assert visited_order(graph_dfs(sample_graph, "A")) == \
        ["A", "B", "C", "F", "E", "D", "G"]


def test_dfs_skips_already_visited(triangle_graph):
    steps = graph_dfs(triangle_graph, "A")
    assert any(s.action == "skip" for s in steps)
    assert visited_order(steps) == ["A", "B", "C"]


@pytest.mark.parametrize("tracer", [graph_bfs, graph_dfs, dijkstra],
                         ids=lambda f: f.__name__)
def test_visits_exactly_the_reachable_component(tracer, split_graph):
    steps = tracer(split_graph, "A")
    order = visited_order(steps)

    assert sorted(order) == ["A", "B", "C"]
    assert len(set(order)) == len(order)
    for step in steps:
        assert not {"X", "Y"} & set(step.visited)


@pytest.mark.parametrize("tracer", [graph_bfs, graph_dfs, dijkstra],
                         ids=lambda f: f.__name__)
def test_terminal_step_clears_side_channel(tracer, sample_graph):
    steps = tracer(sample_graph, "A")

    assert all(s.aux is not None for s in steps[:-1])
    assert steps[-1].aux is None
    assert steps[-1].tagged(VISITING) == []


def test_bfs_queue_never_holds_duplicates(sample_graph):
    for step in graph_bfs(sample_graph, "A"):
        if step.aux is not None:
            items = step.aux.as_list()
            assert len(items) == len(set(items))


# =============================================================================
# Recorded traces stay fixed
# =============================================================================

def test_terminal_metadata_is_read_only(sample_graph):
    steps = dijkstra(sample_graph, "A", "G")
    extra = steps[-1].extra

    with pytest.raises(TypeError):
        extra["distances"]["B"] = 99
    with pytest.raises(TypeError):
        extra["path"][0] = "Z"
    with pytest.raises(AttributeError):
        extra["path"].append("Z")
    assert extra["distances"]["B"] == 4
    assert shortest_path(steps) == ["A", "B", "C", "G"]


def test_visit_order_metadata_is_read_only(sample_graph):
    steps = graph_bfs(sample_graph, "A")
    with pytest.raises(AttributeError):
        steps[-1].extra["order"].append("Z")
    assert steps == graph_bfs(sample_graph, "A")


@pytest.mark.parametrize("tracer", [graph_bfs, graph_dfs, dijkstra],
                         ids=lambda f: f.__name__)
def test_non_string_node_ids(tracer):
    graph = Graph([1, 2, 3], [(1, 2, 1), (2, 3, 2)])
    steps = tracer(graph, 1, 3) if tracer is dijkstra else tracer(graph, 1)

    assert visited_order(steps) == [1, 2, 3]
    assert "1" in steps[-1].description
