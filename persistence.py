"""
╔══════════════════════════════════════════════════════════════════╗
║           Search Structure Simulator  v1.0  —  PERSISTENCE       ║
║                                                                  ║
║  Export / import of a single engine as a JSON document tagged    ║
║  with a "type" discriminator:                                    ║
║                                                                  ║
║     expTotal  expParcial  bloques  conversion  hash              ║
║     secuencial  digital  tries  multiple  huffman                ║
║                                                                  ║
║  Loading always builds a NEW engine through the engine's own     ║
║  ``from_dict`` validator, so a failed load never touches the     ║
║  engine the caller already holds.                                ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

import json

from engine_errors import InvalidFormatError
from expansion import ExpansionTable
from blocks import BlockIndex
from conversion import BaseConversionTable
from hashing import HashTable
from sequential import SearchArray
from digital import DigitalTree
from tries import ResidueTrie
from multiway import MultiwayResidueTree
from huffman import HuffmanCoder
from settings import get_logger

_log = get_logger("persistence")

ENGINES = {
    "expTotal":   ExpansionTable,
    "expParcial": ExpansionTable,
    "bloques":    BlockIndex,
    "conversion": BaseConversionTable,
    "hash":       HashTable,
    "secuencial": SearchArray,
    "digital":    DigitalTree,
    "tries":      ResidueTrie,
    "multiple":   MultiwayResidueTree,
    "huffman":    HuffmanCoder,
}


def to_document(engine):
    """Tagged dict for any engine."""
    doc = engine.to_dict()
    if doc.get("type") not in ENGINES:
        raise InvalidFormatError(f"unknown engine type {doc.get('type')!r}")
    return doc


def from_document(doc, expected=None):
    """
    Build a new engine from a tagged dict.

    Args:
        doc      (dict)     : Parsed document.
        expected (str|None) : Required type tag, if the caller needs one.

    Raises:
        InvalidFormatError: Missing / unknown / unexpected tag or a
                            document that fails the engine's checks.
    """
    if not isinstance(doc, dict):
        raise InvalidFormatError("document must be a JSON object")
    tag = doc.get("type")
    if tag not in ENGINES:
        raise InvalidFormatError(f"unknown or missing type tag {tag!r}")
    if expected is not None and tag != expected:
        raise InvalidFormatError(f"expected a {expected!r} document, got {tag!r}")
    return ENGINES[tag].from_dict(doc)


def dumps(engine, indent=2):
    return json.dumps(to_document(engine), indent=indent)


def loads(text, expected=None):
    try:
        doc = json.loads(text)
    except ValueError as e:
        _log.warning("unparsable document: %s", e)
        raise InvalidFormatError(f"not valid JSON: {e}")
    try:
        return from_document(doc, expected)
    except InvalidFormatError as e:
        _log.warning("rejected %s document: %s",
                     doc.get("type") if isinstance(doc, dict) else "?", e)
        raise


def save(engine, path):
    with open(path, "w", encoding="utf-8") as f:
        f.write(dumps(engine))
    _log.debug("saved %s to %s", engine.TYPE_TAG, path)


def load(path, expected=None):
    with open(path, encoding="utf-8") as f:
        return loads(f.read(), expected)
