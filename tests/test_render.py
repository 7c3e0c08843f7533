"""
Tests for the tree utilities and the image / PDF / video exporters
"""

import pytest

from blocks import BlockIndex
from digital import DigitalTree
from huffman import HuffmanCoder
from multiway import MultiwayResidueTree
from recorder import fill_states
from render import (tree_height, layout_tree, count_nodes, collect_keys,
                    table_rows, summary_lines)
from settings import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(str(tmp_path / "settings.json"))


@pytest.fixture
def tree_steps():
    tree = DigitalTree()
    tree.insert("C")
    tree.insert("A")
    return tree.insert("E").steps


class TestTreeUtilities:
    def test_height_count_keys(self):
        tree = DigitalTree()
        for ch in "CAEP":
            tree.insert(ch)
        root = tree.snapshot()["root"]
        assert tree_height(root) == 3
        assert count_nodes(root) == 4
        assert collect_keys(root) == ["C", "A", "E", "P"]
        assert tree_height(None) == 0

    def test_layout_splits_range(self):
        tree = DigitalTree()
        for ch in "CAP":
            tree.insert(ch)
        positions = {}
        layout_tree(tree.snapshot()["root"], 0, 0.0, 1.0, positions)
        assert positions[""]["x"] == 0.5
        assert positions["0"]["x"] == 0.25
        assert positions["1"]["x"] == 0.75
        assert positions["1"]["y"] == 1

    def test_multiway_ids_are_unique(self):
        root = MultiwayResidueTree(2).snapshot()["root"]
        positions = {}
        layout_tree(root, 0, 0.0, 1.0, positions)
        assert len(positions) == count_nodes(root) == 1 + 4 + 16 + 32


class TestTableRows:
    def test_blocks(self):
        index = BlockIndex(9)
        for k in ("4", "8"):
            index.insert(k)
        rows = table_rows(index.snapshot())
        assert [label for label, _ in rows] == ["B1", "B2", "B3"]
        assert rows[0][1][0] == (1, "4", False)

    def test_rejects_tree(self):
        with pytest.raises(ValueError):
            table_rows({"kind": "tree", "root": None})


def test_summary_lines(tree_steps):
    lines = summary_lines(tree_steps)
    assert lines[0] == f"Total Steps: {len(tree_steps)}"
    assert "Insert: 1" in lines
    assert "Comparisons: 2" in lines


class TestImages:
    @pytest.fixture(autouse=True)
    def _pil(self):
        pytest.importorskip("PIL")

    def test_tree_step(self, tree_steps, settings):
        from render import render_step
        img = render_step(tree_steps[-1], settings)
        assert img.size == (800, 500)

    def test_forest_step(self, settings):
        from render import render_step
        steps = HuffmanCoder().build("ABRACADABRA").steps
        merge = next(s for s in steps if s["action"] == "merge")
        assert render_step(merge, settings, index=3).size == (800, 500)

    def test_table_step_with_filled_state(self, settings):
        from render import render_step
        index = BlockIndex(9)
        index.insert("4")
        steps = fill_states(index.search("4").steps)
        visit = next(s for s in steps if s["action"] == "visit")
        assert render_step(visit, settings).size == (800, 500)

    def test_export_png(self, tree_steps, settings, tmp_path):
        from render import export_png
        path = export_png(tree_steps[0], str(tmp_path / "s.png"), settings)
        assert (tmp_path / "s.png").read_bytes()[:4] == b"\x89PNG"
        assert path.endswith("s.png")


def test_pdf_export(tree_steps, settings, tmp_path):
    pytest.importorskip("PIL")
    pytest.importorskip("reportlab")
    from render import PDFExporter
    out = PDFExporter(settings).export(tree_steps, str(tmp_path / "w.pdf"))
    with open(out, "rb") as f:
        assert f.read(4) == b"%PDF"


def test_video_frames(tree_steps, settings):
    pytest.importorskip("PIL")
    pytest.importorskip("numpy")
    from render import VideoExporter
    frames = list(VideoExporter(settings).frames(tree_steps[:2], hold=2))
    assert len(frames) == 4
    assert frames[0].shape == (720, 1280, 3)
