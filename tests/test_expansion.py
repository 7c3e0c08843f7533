"""
Tests for the dynamic expansion tables
"""

import pytest

from engine_errors import DuplicateKeyError, ValidationError
from expansion import ExpansionTable, grow
from recorder import INSERTED, FOUND, DELETED, NOT_FOUND


def replay(order, buckets, slots):
    """Independent re-insertion of ``order`` with H(k) = k mod buckets."""
    matrix = [[None] * slots for _ in range(buckets)]
    overflow = [[] for _ in range(buckets)]
    for key in order:
        row = matrix[int(key) % buckets]
        if None in row:
            row[row.index(None)] = key
        else:
            overflow[int(key) % buckets].append(key)
    return matrix, overflow


class TestGrowth:
    def test_total_doubles(self):
        assert grow(2, "total") == 4
        assert grow(6, "total") == 12

    def test_partial_adds_half(self):
        assert grow(2, "partial") == 3
        assert grow(3, "partial") == 4
        assert grow(10, "partial") == 15

    def test_two_partials_match_one_total_from_two(self):
        assert grow(grow(2, "partial"), "partial") == grow(2, "total")


class TestInsert:
    def test_insert_reports_bucket_and_row(self):
        table = ExpansionTable(2, 3)
        res = table.insert("7")
        assert res.status == INSERTED
        assert res.position == (1, 1)
        assert res.extra["expanded"] is False

    def test_expansion_triggers_at_threshold(self):
        table = ExpansionTable(2, 3, "total")
        for k in ("1", "2", "3", "4"):
            assert table.insert(k).extra["expanded"] is False
        assert table.buckets == 2
        res = table.insert("5")
        assert res.extra["expanded"] is True
        assert table.buckets == 4
        assert table.expansions == 1
        assert table.matrix == [["4", None, None], ["1", "5", None],
                                ["2", None, None], ["3", None, None]]
        assert res.position == (1, 2)

    def test_only_one_expansion_per_insert(self):
        table = ExpansionTable(2, 1, "total")
        for k in ("2", "4", "6"):
            table.insert(k)
        assert table.overflow[0] == ["4", "6"]
        res = table.insert("1")
        assert res.extra["expanded"] is True
        assert table.buckets == 4
        assert table.expansions == 1
        # still at 0.75 after the rebuild; the next insert decides
        assert table.occupancy()[2] == pytest.approx(0.75)

    def test_partial_sequence(self):
        table = ExpansionTable(2, 1, "partial")
        table.expand()
        assert table.buckets == 3
        table.expand()
        assert table.buckets == 4

    def test_live_state_equals_replay(self):
        table = ExpansionTable(2, 2, "partial")
        for k in ("12", "7", "33", "18", "5", "40", "21", "9"):
            table.insert(k)
        matrix, overflow = replay(table.order, table.buckets, table.slots)
        assert table.matrix == matrix
        assert table.overflow == overflow

    def test_duplicate_rejected_without_mutation(self):
        table = ExpansionTable(2, 3)
        table.insert("8")
        before = table.snapshot()
        with pytest.raises(DuplicateKeyError):
            table.insert("8")
        assert table.snapshot() == before
        assert table.order == ["8"]

    def test_validation(self):
        with pytest.raises(ValidationError):
            ExpansionTable(3, 2)
        with pytest.raises(ValidationError):
            ExpansionTable(2, 0)
        with pytest.raises(ValidationError):
            ExpansionTable(2, 2, "half")
        with pytest.raises(ValidationError):
            ExpansionTable().insert("12a")


class TestSearchDelete:
    def test_search_into_overflow(self):
        table = ExpansionTable(2, 1)
        for k in ("2", "4", "6"):
            table.insert(k)
        res = table.search("6")
        assert res.status == FOUND
        assert res.position == (0, 3)
        assert res.comparisons == 3
        assert res.trace == [(0, 1), (0, 2), (0, 3)]

    def test_search_missing(self):
        table = ExpansionTable(2, 3)
        table.insert("2")
        res = table.search("4")
        assert res.status == NOT_FOUND
        assert res.comparisons == 2

    def test_delete_relays_bucket(self):
        table = ExpansionTable(2, 1)
        for k in ("2", "4", "6"):
            table.insert(k)
        res = table.delete("2")
        assert res.status == DELETED
        assert table.matrix[0] == ["4"]
        assert table.overflow[0] == ["6"]
        assert table.order == ["4", "6"]

    def test_delete_missing_leaves_state(self):
        table = ExpansionTable(2, 3)
        table.insert("2")
        before = table.snapshot()
        res = table.delete("9")
        assert res.status == NOT_FOUND
        assert res.comparisons > 0
        assert table.snapshot() == before

    def test_clear_returns_to_initial_buckets(self):
        table = ExpansionTable(2, 1)
        for k in ("1", "2"):
            table.insert(k)
        assert table.buckets == 4
        table.clear()
        assert table.buckets == 2
        assert len(table) == 0
