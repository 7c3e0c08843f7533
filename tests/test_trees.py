"""
Tests for the digital search tree, the residue trie and the m-ary tree
"""

import pytest

from digital import DigitalTree
from engine_errors import DuplicateKeyError, ValidationError
from keycodes import letter_code
from multiway import MultiwayResidueTree, chunk_sizes, residues
from recorder import INSERTED, FOUND, DELETED, NOT_FOUND
from tries import ResidueTrie, divergence


def build(cls, letters, *args):
    tree = cls(*args)
    for ch in letters:
        tree.insert(ch)
    return tree


class TestLetterCodes:
    def test_five_bit_codes(self):
        assert letter_code("A") == "00001"
        assert letter_code("B") == "00010"
        assert letter_code("Z") == "11010"


class TestDigitalTree:
    def test_first_letter_is_root(self):
        tree = DigitalTree()
        res = tree.insert("C")
        assert res.position == ""
        assert tree.root.key == "C"

    def test_insert_walks_bits(self):
        tree = build(DigitalTree, "CAEB")
        assert dict(tree.items()) == {"": "C", "0": "A", "00": "E", "000": "B"}

    def test_search_path_and_steps(self):
        tree = build(DigitalTree, "CAE")
        res = tree.search("E")
        assert res.status == FOUND
        assert res.position == "00"
        assert res.trace == ["", "0", "00"]

    def test_search_missing(self):
        tree = build(DigitalTree, "CA")
        res = tree.search("Z")
        assert res.status == NOT_FOUND
        assert res.comparisons == 1

    def test_delete_single_child_chain(self):
        tree = build(DigitalTree, "CAEB")
        res = tree.delete("A")
        assert res.status == DELETED
        assert dict(tree.items()) == {"": "C", "0": "E", "00": "B"}
        for letter in "CEB":
            assert tree.search(letter).status == FOUND

    def test_delete_two_children_uses_leftmost_of_right(self):
        tree = build(DigitalTree, "CAPQ")
        assert dict(tree.items()) == {"": "C", "0": "A", "1": "P", "10": "Q"}
        tree.delete("C")
        assert dict(tree.items()) == {"": "Q", "0": "A", "1": "P"}
        assert tree.search("P").position == "1"
        assert tree.search("A").position == "0"

    def test_delete_last_key(self):
        tree = build(DigitalTree, "K")
        tree.delete("K")
        assert tree.root is None

    def test_delete_missing_leaves_state(self):
        tree = build(DigitalTree, "CAE")
        before = tree.snapshot()
        res = tree.delete("B")
        assert res.status == NOT_FOUND
        assert res.comparisons > 0
        assert tree.snapshot() == before

    def test_duplicate_and_validation(self):
        tree = build(DigitalTree, "CA")
        with pytest.raises(DuplicateKeyError):
            tree.insert("a")
        with pytest.raises(ValidationError):
            tree.insert("AB")


class TestResidueTrie:
    def test_shared_prefix_chain(self):
        trie = build(ResidueTrie, "AB")
        assert trie.leaves() == [("0000", "A"), ("0001", "B")]
        # three single-child chain nodes for bits 0, 1, 2 ...
        chain = [p for p in ("", "0", "00")
                 if len(trie.node_at(p).children()) == 1]
        assert chain == ["", "0", "00"]
        # ... then the branch on bit 3
        branch = trie.node_at("000")
        assert branch.left.key == "A" and branch.right.key == "B"
        assert trie.internal_count() == 4

    def test_divergence_index(self):
        assert divergence("00001", "00010") == 3
        assert divergence("00001", "00001") is None

    def test_expansion_recorded_per_level(self):
        trie = build(ResidueTrie, "A")
        res = trie.insert("B")
        assert res.status == INSERTED
        assert res.position == "0001"
        expands = [s for s in res.steps if s["action"] == "expand"]
        assert len(expands) == 4
        assert all(s["state"] is not None for s in expands)

    def test_split_below_existing_branch(self):
        trie = build(ResidueTrie, "ABC")
        assert trie.leaves() == [("0000", "A"), ("00010", "B"), ("00011", "C")]
        res = trie.search("C")
        assert res.comparisons == 6

    def test_delete_compacts(self):
        trie = build(ResidueTrie, "ABC")
        trie.delete("C")
        assert trie.leaves() == [("0000", "A"), ("0001", "B")]
        trie.delete("B")
        assert trie.leaves() == [("", "A")]
        assert trie.internal_count() == 0

    def test_empty_link_gets_leaf(self):
        trie = build(ResidueTrie, "AP")
        assert trie.leaves() == [("0", "A"), ("1", "P")]
        res = trie.insert("Z")
        assert res.position == "11"
        assert trie.leaves() == [("0", "A"), ("10", "P"), ("11", "Z")]

    def test_delete_missing_leaves_state(self):
        trie = build(ResidueTrie, "AB")
        before = trie.snapshot()
        res = trie.delete("C")
        assert res.status == NOT_FOUND
        assert res.comparisons > 0
        assert trie.snapshot() == before

    def test_duplicate(self):
        trie = build(ResidueTrie, "AB")
        with pytest.raises(DuplicateKeyError):
            trie.insert("B")


class TestMultiwayTree:
    def test_chunks(self):
        assert chunk_sizes(1) == [1, 1, 1, 1, 1]
        assert chunk_sizes(2) == [2, 2, 1]
        assert chunk_sizes(3) == [3, 2]
        assert chunk_sizes(5) == [5]

    def test_residues(self):
        assert residues("D", 2) == (0, 2, 0)
        assert residues("Z", 3) == (6, 2)

    def test_prebuilt_shape(self):
        tree = MultiwayResidueTree(2)
        assert tree.degree == 4
        assert tree.depth == 3
        assert len(tree.root.children) == 4
        assert len(tree.root.children[0].children[0].children) == 2

    def test_insert_search_delete(self):
        tree = MultiwayResidueTree(2)
        res = tree.insert("D")
        assert res.position == (0, 2, 0)
        assert res.comparisons == 4
        assert tree.search("D").status == FOUND
        assert tree.delete("D").status == DELETED
        assert tree.search("D").status == NOT_FOUND
        assert len(tree) == 0

    def test_duplicate(self):
        tree = build(MultiwayResidueTree, "AZ", 3)
        assert tree.keys() == ["A", "Z"]
        with pytest.raises(DuplicateKeyError):
            tree.insert("Z")

    def test_delete_missing_leaves_state(self):
        tree = build(MultiwayResidueTree, "AZ", 2)
        before = tree.snapshot()
        res = tree.delete("D")
        assert res.status == NOT_FOUND
        assert res.comparisons == 4
        assert tree.snapshot() == before

    def test_bits_per_level_bounds(self):
        with pytest.raises(ValidationError):
            MultiwayResidueTree(0)
        with pytest.raises(ValidationError):
            MultiwayResidueTree(6)
