"""
╔══════════════════════════════════════════════════════════════════╗
║           Search Structure Simulator  v1.0  —  ERRORS            ║
║                                                                  ║
║  Exception hierarchy shared by every engine.                     ║
║                                                                  ║
║  EngineError                                                     ║
║   ├── ValidationError      (also a ValueError)                   ║
║   ├── DuplicateKeyError                                          ║
║   ├── StructureFullError                                         ║
║   ├── ExhaustedBitsError                                         ║
║   └── InvalidFormatError   (also a ValueError)                   ║
║                                                                  ║
║  Any of these is raised BEFORE the engine is mutated, so the     ║
║  engine stays usable after catching it.  "Key not found" is NOT  ║
║  an error: it is an OpResult with status NOT_FOUND.              ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""


class EngineError(Exception):
    """Base class for all simulator errors."""


class ValidationError(EngineError, ValueError):
    """Malformed key or construction parameter."""


class DuplicateKeyError(EngineError):
    """The key is already stored in the structure."""

    def __init__(self, key, position=None):
        self.key = key
        self.position = position
        where = f" at {position}" if position is not None else ""
        super().__init__(f"key {key!r} already exists{where}")


class StructureFullError(EngineError):
    """Capacity, probe budget or nested row exhausted."""


class ExhaustedBitsError(EngineError):
    """Two keys share every bit of their code, so a trie cannot split them."""


class InvalidFormatError(EngineError, ValueError):
    """A persisted document could not be parsed or fails validation."""
