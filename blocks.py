"""
╔══════════════════════════════════════════════════════════════════╗
║           Search Structure Simulator  v1.0  —  BLOCK SEARCH      ║
║                                                                  ║
║  Sorted numeric keys viewed as blocks of ⌊√capacity⌋ entries.    ║
║  A search first walks the blocks comparing against each block's  ║
║  largest stored key, then scans the one block that may hold it.  ║
║                                                                  ║
║     capacity 27  →  block size 5, 6 blocks (5,5,5,5,5,2 slots)   ║
║                                                                  ║
║     block 1      block 2      …      block 6                     ║
║   ┌─┬─┬─┬─┬──┐ ┌─┬─┬─┬─┬──┐       ┌─┬─┐                          ║
║   │ │ │ │ │mx│ │ │ │ │ │mx│  …    │ │ │                          ║
║   └─┴─┴─┴─┴──┘ └─┴─┴─┴─┴──┘       └─┴─┘                          ║
║                                                                  ║
║  Every block visit is one counted step, empty blocks included.   ║
║  Positions are global 1-based indexes in the sorted order.       ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

import math

from engine_errors import (DuplicateKeyError, StructureFullError,
                           InvalidFormatError, ValidationError)
from keycodes import (validate_numeric, validate_range, natural_key,
                      compare_natural)
from recorder import StepRecorder, INSERTED, FOUND, DELETED, NOT_FOUND
from settings import get_logger

_log = get_logger("blocks")

MIN_CAPACITY = 4
MAX_CAPACITY = 10000


class BlockIndex(StepRecorder):
    """
    Block-indexed search over a bounded sorted key set.

    Attributes:
        capacity    (int) : Maximum number of keys.
        block_size  (int) : ⌊√capacity⌋.
        block_count (int) : ⌈capacity / block_size⌉.
    """
    TYPE_TAG = "bloques"

    def __init__(self, capacity):
        super().__init__()
        self.capacity    = validate_range("capacity", capacity,
                                          MIN_CAPACITY, MAX_CAPACITY)
        self.block_size  = math.isqrt(self.capacity)
        self.block_count = math.ceil(self.capacity / self.block_size)
        self._keys       = []              # arrival order

    # ─────────────────────────────────────────────────────────────
    #  VIEWS
    # ─────────────────────────────────────────────────────────────

    def sorted_keys(self):
        return sorted(self._keys, key=natural_key)

    def blocks(self):
        """
        Sorted keys padded with None up to ``capacity`` and cut into
        blocks of ``block_size`` (the last block may be shorter).
        """
        flat = self.sorted_keys() + [None] * (self.capacity - len(self._keys))
        bs = self.block_size
        return [flat[i:i + bs] for i in range(0, self.capacity, bs)]

    def _snapshot(self):
        return {"kind": "blocks", "block_size": self.block_size,
                "blocks": self.blocks()}

    def __len__(self):
        return len(self._keys)

    def __contains__(self, key):
        return str(key) in self._keys

    # ─────────────────────────────────────────────────────────────
    #  OPERATIONS
    # ─────────────────────────────────────────────────────────────

    def insert(self, key):
        """
        Raises:
            DuplicateKeyError  : Key already stored.
            StructureFullError : ``capacity`` keys already stored.
        """
        key = validate_numeric(key)
        self._begin("insert", key)
        if key in self._keys:
            pos = self.sorted_keys().index(key) + 1
            self._record("duplicate", f"⚠️ Key {key} already exists",
                         position=pos, highlight=[pos])
            raise DuplicateKeyError(key, pos)
        if len(self._keys) >= self.capacity:
            self._record("full", f"⚠️ Index is full ({self.capacity} keys)")
            raise StructureFullError(
                f"block index is full ({self.capacity} keys)")
        self._keys.append(key)
        pos = self.sorted_keys().index(key) + 1
        self._record("place", f"Insert {key} at sorted position {pos}",
                     position=pos, highlight=[pos], snapshot=True)
        _log.debug("insert %s -> %d", key, pos)
        return self._finish("insert", key, INSERTED,
                            f"✅ {key} stored at position {pos}", pos,
                            extra=self._block_of(pos))

    def _block_of(self, pos):
        return {"block": (pos - 1) // self.block_size + 1,
                "offset": (pos - 1) % self.block_size + 1}

    def _scan(self, key):
        """Two-phase recorded search; returns global position or None."""
        bs = self.block_size
        for bi, block in enumerate(self.blocks()):
            stored = [k for k in block if k is not None]
            base = bi * bs
            if not stored:
                self._visit(f"Block {bi + 1} is empty → next block",
                            base + 1, extra={"block": bi + 1})
                continue
            top = base + len(stored)
            mx = stored[-1]
            self._visit(f"Block {bi + 1}: compare {key} with max {mx}",
                        top, extra={"block": bi + 1})
            if compare_natural(key, mx) > 0:
                continue
            self._record("enter", f"{key} ≤ {mx} → scan block {bi + 1}",
                         extra={"block": bi + 1})
            for off, k in enumerate(stored):
                pos = base + off + 1
                self._visit(f"Compare {key} with {k} at position {pos}",
                            pos, extra={"block": bi + 1})
                c = compare_natural(k, key)
                if c == 0:
                    return pos
                if c > 0:
                    self._record("stop", f"{k} > {key} → stop scanning")
                    return None
            return None
        return None

    def search(self, key):
        key = validate_numeric(key)
        self._begin("search", key)
        pos = self._scan(key)
        if pos is None:
            return self._finish("search", key, NOT_FOUND,
                                f"❌ {key} not found after "
                                f"{self._comparisons} steps")
        return self._finish("search", key, FOUND,
                            f"✅ {key} found at position {pos}", pos,
                            extra=self._block_of(pos))

    def delete(self, key):
        key = validate_numeric(key)
        self._begin("delete", key)
        pos = self._scan(key)
        if pos is None:
            return self._finish("delete", key, NOT_FOUND,
                                f"❌ {key} not found, nothing deleted")
        self._keys.remove(key)
        self._record("remove", f"Removed {key} from position {pos}",
                     position=pos, snapshot=True)
        _log.debug("delete %s from %d", key, pos)
        return self._finish("delete", key, DELETED,
                            f"🗑 {key} deleted", pos,
                            extra=self._block_of(pos))

    def clear(self):
        self._keys = []
        self.clear_steps()

    # ─────────────────────────────────────────────────────────────
    #  PERSISTENCE
    # ─────────────────────────────────────────────────────────────

    def to_dict(self):
        return {"type": self.TYPE_TAG, "capacity": self.capacity,
                "keys": list(self._keys)}

    @classmethod
    def from_dict(cls, data):
        try:
            index = cls(data["capacity"])
            keys = [validate_numeric(k) for k in data["keys"]]
        except (KeyError, TypeError, ValidationError) as e:
            raise InvalidFormatError(f"bad block index document: {e}")
        if len(set(keys)) != len(keys) or len(keys) > index.capacity:
            raise InvalidFormatError("duplicate keys or too many keys")
        index._keys = keys
        return index
