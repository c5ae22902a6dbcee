"""
Tests for JSON and PDF export, and the command-line player.
"""

import io
import json

import pytest

from export import ExportError, PDFExporter, export_json, trace_to_dict
from main import main, play, print_step
from playback import ManualScheduler
from session import AlgorithmSession
from structures import Graph, build_array
from tracers import bubble_sort, dijkstra


# =============================================================================
# JSON
# =============================================================================

def test_trace_to_dict_counts(small_array):
    steps = bubble_sort(small_array)
    data = trace_to_dict(steps, "Bubble Sort")

    assert data["title"] == "Bubble Sort"
    assert data["total_steps"] == len(steps)
    assert data["comparisons"] == sum(1 for s in steps if s.action == "compare")
    assert data["steps"][-1]["snapshot"][0]["value"] == 1
    assert data["steps"][-1]["snapshot"][0]["roles"] == ["sorted"]


def test_export_json_handles_infinity(tmp_path):
    graph = Graph(["A", "B", "Z"], [("A", "B", 2)])
    path = tmp_path / "trace.json"
    export_json(dijkstra(graph, "A"), str(path), title="Dijkstra")

    data = json.loads(path.read_text(encoding="utf-8"))
    first = data["steps"][0]
    assert first["aux"]["distances"] == {"A": 0, "B": "inf", "Z": "inf"}
    assert data["steps"][-1]["extra"]["distances"]["Z"] == "inf"
    assert data["steps"][-1]["aux"] is None


def test_export_json_unwritable(tmp_path, small_array):
    with pytest.raises(ExportError):
        export_json(bubble_sort(small_array), str(tmp_path / "no" / "such" / "dir.json"))


# =============================================================================
# PDF
# =============================================================================

def test_pdf_export(tmp_path, small_array):
    pytest.importorskip("reportlab")
    path = tmp_path / "walkthrough.pdf"
    steps = bubble_sort(small_array)
    PDFExporter("Bubble Sort", ["for ...", "  for ...", "    if ...", "      swap"]).export(
        steps, str(path))

    assert path.read_bytes().startswith(b"%PDF")


def test_pdf_export_with_distances(tmp_path, sample_graph):
    pytest.importorskip("reportlab")
    path = tmp_path / "dijkstra.pdf"
    PDFExporter("Dijkstra").export(dijkstra(sample_graph, "A", "G"), str(path))
    assert path.stat().st_size > 0


# =============================================================================
# Command line
# =============================================================================

def test_print_step_shows_side_channel(sample_graph):
    out = io.StringIO()
    step = dijkstra(sample_graph, "A")[0]
    print_step(1, 10, step, out)

    text = out.getvalue()
    assert "[  1/10] Initializing distances from A" in text
    assert "distances: [A=0, B=∞" in text


def test_play_instant_prints_every_step():
    session = AlgorithmSession("sorting", "bubble", ManualScheduler())
    session.set_structure(build_array([2, 1]))
    out = io.StringIO()

    steps = play(session, instant=True, out=out)
    assert len(steps) == 4
    assert out.getvalue().count("\n") >= 4
    assert "completely sorted" in out.getvalue()


def test_main_instant_sort_with_json(tmp_path, capsys):
    path = tmp_path / "sort.json"
    code = main(["sort", "--values", "5,3,8,1", "--instant", "--json", str(path)])

    assert code == 0
    assert json.loads(path.read_text(encoding="utf-8"))["steps"][-1]["action"] == "done"
    assert "Bubble Sort" in capsys.readouterr().out


def test_main_reports_bad_input(capsys):
    code = main(["sort", "--values", "5, x", "--instant"])
    assert code == 1
    assert "is not a whole number" in capsys.readouterr().err


def test_main_stack_operations(capsys):
    assert main(["stack", "push", "x", "push", "y", "pop", "pop", "pop"]) == 0
    out = capsys.readouterr().out
    assert "pop -> y" in out
    assert "pop: Stack is empty" in out
    assert "stack: []" in out


def test_pdf_export_wraps_long_snapshots(tmp_path):
    pytest.importorskip("reportlab")
    path = tmp_path / "long.pdf"
    steps = bubble_sort(build_array(list(range(999, 949, -1))))[:3]
    PDFExporter("Bubble Sort").export(steps, str(path))
    assert path.read_bytes().startswith(b"%PDF")


def test_main_rejects_oversized_random_search(capsys):
    assert main(["search", "--random", "120", "--instant"]) == 1
    assert "between 1 and 50" in capsys.readouterr().err


def test_main_passes_target_with_values(capsys):
    assert main(["search", "--values", "4 8 15", "--target", "15", "--instant"]) == 0
    assert "Target 15 found at index 2" in capsys.readouterr().out
