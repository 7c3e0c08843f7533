"""
╔══════════════════════════════════════════════════════════════════╗
║      Search Structure Simulator  v1.0  —  SEQUENTIAL / BINARY    ║
║                                                                  ║
║  A dynamic array of fixed-length numeric keys kept in sorted     ║
║  order and searched either sequentially (stopping as soon as an  ║
║  entry exceeds the key) or by halving (mid = (lo + hi) // 2).    ║
║                                                                  ║
║  Positions are 1-based indexes in the sorted order.              ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

from engine_errors import ValidationError, DuplicateKeyError, InvalidFormatError
from keycodes import validate_numeric, validate_range, natural_key, compare_natural
from recorder import StepRecorder, INSERTED, FOUND, DELETED, NOT_FOUND
from settings import get_logger

_log = get_logger("sequential")

METHODS = ("sequential", "binary")


class SearchArray(StepRecorder):
    """Sorted array searched sequentially or by binary search."""
    TYPE_TAG = "secuencial"

    def __init__(self, key_length):
        super().__init__()
        self.key_length = validate_range("key_length", key_length, 1, 12)
        self.items = []

    def _snapshot(self):
        return {"kind": "array", "items": list(self.items)}

    def __len__(self):
        return len(self.items)

    def __contains__(self, key):
        return str(key) in self.items

    def _check(self, method):
        if method not in METHODS:
            raise ValidationError(
                f"method must be one of {list(METHODS)}, got {method!r}")

    # ─────────────────────────────────────────────────────────────
    #  SEARCH STRATEGIES
    # ─────────────────────────────────────────────────────────────

    def _sequential(self, key):
        for i, item in enumerate(self.items):
            self._visit(f"Compare {key} with {item} at position {i + 1}", i + 1)
            c = compare_natural(item, key)
            if c == 0:
                return i + 1
            if c > 0:
                self._record("stop", f"{item} > {key} → cannot be further on")
                return None
        return None

    def _binary(self, key):
        lo, hi = 0, len(self.items) - 1
        while lo <= hi:
            mid = (lo + hi) // 2
            item = self.items[mid]
            self._visit(f"lo = {lo + 1}, hi = {hi + 1}, mid = {mid + 1}: "
                        f"compare {key} with {item}", mid + 1,
                        extra={"lo": lo + 1, "hi": hi + 1})
            c = compare_natural(item, key)
            if c == 0:
                return mid + 1
            if c < 0:
                lo = mid + 1
            else:
                hi = mid - 1
        self._record("stop", "lo > hi → interval is empty")
        return None

    def _scan(self, key, method):
        if not self.items:
            self._visit("Array is empty → nothing to compare", None,
                        highlight=[])
            return None
        if method == "binary":
            return self._binary(key)
        return self._sequential(key)

    # ─────────────────────────────────────────────────────────────
    #  OPERATIONS
    # ─────────────────────────────────────────────────────────────

    def insert(self, key):
        key = validate_numeric(key, self.key_length)
        self._begin("insert", key)
        if key in self.items:
            pos = self.items.index(key) + 1
            self._record("duplicate", f"⚠️ Key {key} already exists",
                         position=pos, highlight=[pos])
            raise DuplicateKeyError(key, pos)
        self.items.append(key)
        self.items.sort(key=natural_key)
        pos = self.items.index(key) + 1
        self._record("place", f"Insert {key} at position {pos}; "
                              f"later keys shift right",
                     position=pos, highlight=[pos], snapshot=True)
        _log.debug("insert %s -> %d", key, pos)
        return self._finish("insert", key, INSERTED,
                            f"✅ {key} stored at position {pos}", pos)

    def search(self, key, method="sequential"):
        self._check(method)
        key = validate_numeric(key, self.key_length)
        self._begin("search", key)
        pos = self._scan(key, method)
        if pos is None:
            return self._finish("search", key, NOT_FOUND,
                                f"❌ {key} not found ({method})")
        return self._finish("search", key, FOUND,
                            f"✅ {key} found at position {pos} ({method})",
                            pos)

    def delete(self, key, method="sequential"):
        self._check(method)
        key = validate_numeric(key, self.key_length)
        self._begin("delete", key)
        pos = self._scan(key, method)
        if pos is None:
            return self._finish("delete", key, NOT_FOUND,
                                f"❌ {key} not found, nothing deleted")
        del self.items[pos - 1]
        self._record("remove", f"Removed {key}; later keys shift left",
                     position=pos, snapshot=True)
        return self._finish("delete", key, DELETED,
                            f"🗑 {key} deleted from position {pos}", pos)

    def clear(self):
        self.items = []
        self.clear_steps()

    def to_dict(self):
        return {"type": self.TYPE_TAG, "keyLength": self.key_length,
                "items": list(self.items)}

    @classmethod
    def from_dict(cls, data):
        try:
            array = cls(data["keyLength"])
            items = [validate_numeric(k, array.key_length)
                     for k in data["items"]]
        except (KeyError, TypeError, ValidationError) as e:
            raise InvalidFormatError(f"bad search array document: {e}")
        if len(set(items)) != len(items):
            raise InvalidFormatError("duplicate keys in array")
        array.items = sorted(items, key=natural_key)
        return array
