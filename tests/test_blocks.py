"""
Tests for the block-indexed search
"""

import pytest

from blocks import BlockIndex
from engine_errors import DuplicateKeyError, StructureFullError, ValidationError
from recorder import FOUND, NOT_FOUND, DELETED


class TestGeometry:
    def test_capacity_27(self):
        index = BlockIndex(27)
        assert index.block_size == 5
        assert index.block_count == 6
        assert [len(b) for b in index.blocks()] == [5, 5, 5, 5, 5, 2]

    def test_capacity_bounds(self):
        with pytest.raises(ValidationError):
            BlockIndex(3)
        with pytest.raises(ValidationError):
            BlockIndex(10001)

    def test_numeric_ordering(self):
        index = BlockIndex(9)
        for k in ("10", "9", "100"):
            index.insert(k)
        assert index.sorted_keys() == ["9", "10", "100"]
        assert index.blocks()[0] == ["9", "10", "100"]


class TestSearch:
    def test_key_beyond_every_block(self):
        index = BlockIndex(27)
        for k in ("1", "2", "3"):
            index.insert(k)
        res = index.search("99")
        assert res.status == NOT_FOUND
        assert res.comparisons == index.block_count == 6

    def test_found_after_block_then_scan(self):
        index = BlockIndex(27)
        for k in ("3", "1", "2"):
            index.insert(k)
        res = index.search("2")
        assert res.status == FOUND
        assert res.position == 2
        assert res.comparisons == 3
        assert res.extra == {"block": 1, "offset": 2}

    def test_scan_stops_early(self):
        index = BlockIndex(9)
        for k in ("10", "20", "30", "40"):
            index.insert(k)
        res = index.search("15")
        assert res.status == NOT_FOUND
        # block max 30, then 10, then 20 > 15
        assert res.comparisons == 3

    def test_second_block(self):
        index = BlockIndex(9)
        for k in ("1", "2", "3", "4", "5"):
            index.insert(k)
        res = index.search("5")
        assert res.position == 5
        assert res.extra == {"block": 2, "offset": 2}
        assert res.comparisons == 4


class TestInsertDelete:
    def test_full(self):
        index = BlockIndex(4)
        for k in ("1", "2", "3", "4"):
            index.insert(k)
        with pytest.raises(StructureFullError):
            index.insert("5")
        assert len(index) == 4

    def test_duplicate(self):
        index = BlockIndex(4)
        index.insert("7")
        with pytest.raises(DuplicateKeyError):
            index.insert("7")

    def test_delete(self):
        index = BlockIndex(9)
        for k in ("4", "8", "6"):
            index.insert(k)
        res = index.delete("6")
        assert res.status == DELETED
        assert res.position == 2
        assert index.sorted_keys() == ["4", "8"]

    def test_delete_missing_leaves_state(self):
        index = BlockIndex(9)
        index.insert("4")
        before = index.snapshot()
        res = index.delete("5")
        assert res.status == NOT_FOUND
        assert res.comparisons > 0
        assert index.snapshot() == before
