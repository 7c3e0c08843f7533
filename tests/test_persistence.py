"""
Tests for saving and loading engine documents
"""

import json

import pytest

from blocks import BlockIndex
from conversion import BaseConversionTable
from digital import DigitalTree
from engine_errors import InvalidFormatError
from expansion import ExpansionTable
from hashing import HashTable
from huffman import HuffmanCoder
from multiway import MultiwayResidueTree
from persistence import ENGINES, dumps, loads, save, load, from_document
from sequential import SearchArray
from tries import ResidueTrie


def _filled(engine, keys):
    for k in keys:
        engine.insert(k)
    return engine


def _engines():
    linear = _filled(HashTable(7, 2, "folding", "linear"), ["A1", "B2", "C3"])
    linear.delete("B2")
    return [
        _filled(ExpansionTable(2, 2, "total"), ["1", "2", "3", "4", "5"]),
        _filled(ExpansionTable(2, 2, "partial"), ["10", "11", "12", "13"]),
        _filled(BlockIndex(9), ["5", "12", "7"]),
        _filled(BaseConversionTable(5, 10), ["3", "8", "4"]),
        linear,
        _filled(HashTable(3, 1, "modulo", "nested"), ["3", "6", "1"]),
        _filled(HashTable(3, 1, "mid_square", "chained"), ["3", "6", "1"]),
        _filled(SearchArray(3), ["300", "100", "200"]),
        _filled(DigitalTree(), "CAPQ"),
        _filled(ResidueTrie(), "ABCZ"),
        _filled(MultiwayResidueTree(3), "DOG"),
        HuffmanCoder("MISSISSIPPI"),
    ]


class TestRoundTrip:
    @pytest.mark.parametrize("engine", _engines(),
                             ids=lambda e: e.TYPE_TAG)
    def test_dumps_loads(self, engine):
        restored = loads(dumps(engine))
        assert type(restored) is type(engine)
        assert restored.to_dict() == engine.to_dict()
        assert restored.snapshot() == engine.snapshot()

    def test_every_tag_registered(self):
        tags = {e.TYPE_TAG for e in _engines()}
        assert tags == set(ENGINES)

    def test_restored_engine_keeps_working(self):
        tree = loads(dumps(_filled(DigitalTree(), "CAE")))
        assert tree.search("E").position == "00"
        tree.insert("B")
        assert tree.path_of("B") == "000"

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "trie.json"
        save(_filled(ResidueTrie(), "AB"), path)
        trie = load(path, expected="tries")
        assert trie.leaves() == [("0000", "A"), ("0001", "B")]


class TestRejection:
    def test_not_json(self):
        with pytest.raises(InvalidFormatError):
            loads("{not json")

    def test_not_an_object(self):
        with pytest.raises(InvalidFormatError):
            loads("[1, 2, 3]")

    def test_missing_tag(self):
        with pytest.raises(InvalidFormatError):
            from_document({"keys": []})

    def test_unknown_tag(self):
        with pytest.raises(InvalidFormatError):
            loads(json.dumps({"type": "skiplist"}))

    def test_wrong_expected_tag(self):
        text = dumps(_filled(BlockIndex(9), ["5"]))
        with pytest.raises(InvalidFormatError):
            loads(text, expected="hash")

    def test_tampered_expansion_matrix(self):
        table = _filled(ExpansionTable(2, 3, "total"), ["1", "2", "3"])
        doc = table.to_dict()
        row = doc["matrix"][1]
        row[0], row[1] = row[1], row[0]
        with pytest.raises(InvalidFormatError):
            from_document(doc)

    def test_misplaced_tree_key(self):
        doc = _filled(DigitalTree(), "CA").to_dict()
        doc["root"]["children"][0]["key"] = "P"     # P starts with bit 1
        with pytest.raises(InvalidFormatError):
            from_document(doc)

    def test_probing_key_off_its_path(self):
        doc = _filled(HashTable(5, 1, "modulo", "linear"), ["2"]).to_dict()
        assert doc["slots"] == [None, None, "2", None, None]
        doc["slots"] = [None, None, None, None, "2"]
        with pytest.raises(InvalidFormatError):
            from_document(doc)

    def test_probing_key_behind_tombstone(self):
        table = _filled(HashTable(5, 1, "modulo", "linear"), ["2", "7"])
        table.delete("2")
        restored = from_document(table.to_dict())
        assert restored.slots == [None, None, "*", "7", None]
        assert restored.search("7").position == 4
        doc = table.to_dict()
        doc["slots"][2] = None
        with pytest.raises(InvalidFormatError):
            from_document(doc)

    def test_huffman_codes_mismatch(self):
        doc = HuffmanCoder("AAB").to_dict()
        doc["codes"] = {"A": "0", "B": "1"}
        with pytest.raises(InvalidFormatError):
            from_document(doc)

    def test_bad_value_is_logged(self, caplog):
        with caplog.at_level("WARNING", logger="searchsim"):
            with pytest.raises(InvalidFormatError):
                loads('{"type": "secuencial", "keyLength": 2, '
                      '"items": ["1x"]}')
        assert "rejected" in caplog.text
