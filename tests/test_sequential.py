"""
Tests for sequential and binary search over the sorted array
"""

import pytest

from engine_errors import DuplicateKeyError, ValidationError
from recorder import FOUND, NOT_FOUND, DELETED
from sequential import SearchArray


@pytest.fixture
def array():
    arr = SearchArray(2)
    for k in ("30", "10", "20"):
        arr.insert(k)
    return arr


class TestSearchArray:
    def test_kept_sorted(self, array):
        assert array.items == ["10", "20", "30"]

    def test_sequential_hit(self, array):
        res = array.search("20")
        assert res.status == FOUND
        assert res.position == 2
        assert res.comparisons == 2

    def test_sequential_stops_early(self, array):
        res = array.search("15")
        assert res.status == NOT_FOUND
        assert res.trace == [1, 2]

    def test_binary_hit(self, array):
        res = array.search("30", method="binary")
        assert res.position == 3
        assert res.trace == [2, 3]

    def test_binary_miss(self, array):
        res = array.search("05", method="binary")
        assert res.status == NOT_FOUND
        assert res.trace == [2, 1]

    def test_delete(self, array):
        res = array.delete("10", method="binary")
        assert res.status == DELETED
        assert array.items == ["20", "30"]

    @pytest.mark.parametrize("method", ["sequential", "binary"])
    def test_delete_missing_leaves_state(self, array, method):
        before = array.snapshot()
        res = array.delete("25", method=method)
        assert res.status == NOT_FOUND
        assert res.comparisons > 0
        assert array.snapshot() == before
        assert array.items == ["10", "20", "30"]

    def test_empty_array_still_counts(self):
        res = SearchArray(2).delete("10")
        assert res.status == NOT_FOUND
        assert res.comparisons == 1

    def test_rejections(self, array):
        with pytest.raises(DuplicateKeyError):
            array.insert("20")
        with pytest.raises(ValidationError):
            array.insert("7")
        with pytest.raises(ValidationError):
            array.search("20", method="jump")
