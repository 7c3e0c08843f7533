"""
╔══════════════════════════════════════════════════════════════════╗
║        Search Structure Simulator  v1.0  —  DYNAMIC EXPANSION    ║
║                                                                  ║
║  Bucket × slot matrix hashed by  H(k) = k mod n  with unbounded  ║
║  per-bucket overflow lists.  When the occupancy (D.O.) reaches   ║
║  0.75 after an insert, the table grows and every key is          ║
║  replayed in its original insertion order.                       ║
║                                                                  ║
║     mode      new bucket count                                   ║
║     ───────   ────────────────                                   ║
║     total     n' = 2n                                            ║
║     partial   n' = n + ⌊n/2⌋      (2 → 3 → 4 …)                  ║
║                                                                  ║
║  Positions are (bucket, row): bucket is the 0-based column       ║
║  header, row is 1-based and continues past the m fixed slots     ║
║  into the overflow list (m+1, m+2, …).                           ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

from engine_errors import ValidationError, DuplicateKeyError, InvalidFormatError
from keycodes import validate_numeric, validate_range
from recorder import (StepRecorder, INSERTED, FOUND, DELETED, NOT_FOUND,
                      EXPANDED)
from settings import get_logger

_log = get_logger("expansion")

THRESHOLD = 0.75
MODES = {"total": "expTotal", "partial": "expParcial"}


def grow(n, mode):
    """Bucket count after one expansion of an ``n``-bucket table."""
    if mode == "total":
        return 2 * n
    return n + n // 2


class ExpansionTable(StepRecorder):
    """
    Dynamic-expansion hash table (total or partial growth).

    Attributes:
        buckets         (int)  : Current bucket count n.
        initial_buckets (int)  : n at creation; ``clear()`` returns to it.
        slots           (int)  : Fixed slots per bucket m.
        mode            (str)  : "total" or "partial".
        matrix          (list) : matrix[bucket][slot] → key or None.
        overflow        (list) : overflow[bucket] → list of keys.
        order           (list) : Keys in insertion order.
        expansions      (int)  : Expansions performed since the last clear.
    """

    def __init__(self, buckets=2, slots=3, mode="total"):
        super().__init__()
        if mode not in MODES:
            raise ValidationError(
                f"mode must be one of {sorted(MODES)}, got {mode!r}")
        buckets = validate_range("buckets", buckets, 2, 10000)
        if buckets % 2:
            raise ValidationError("buckets must be an even number")
        self.mode            = mode
        self.initial_buckets = buckets
        self.slots           = validate_range("slots", slots, 1, 10000)
        self.order           = []
        self.expansions      = 0
        self._reset(buckets)

    @property
    def TYPE_TAG(self):
        return MODES[self.mode]

    def _reset(self, buckets):
        self.buckets  = buckets
        self.matrix   = [[None] * self.slots for _ in range(buckets)]
        self.overflow = [[] for _ in range(buckets)]

    # ─────────────────────────────────────────────────────────────
    #  SNAPSHOT & QUERIES
    # ─────────────────────────────────────────────────────────────

    def _snapshot(self):
        return {"kind": "buckets", "buckets": self.buckets,
                "slots": self.slots,
                "matrix": [list(row) for row in self.matrix],
                "overflow": [list(ch) for ch in self.overflow]}

    def hash(self, key):
        return int(key) % self.buckets

    def occupancy(self):
        """
        Returns:
            tuple[int, int, float]: (occupied slots, total slots, ratio).
                                    Overflow entries are not counted.
        """
        occupied = sum(1 for row in self.matrix for k in row if k is not None)
        total = self.buckets * self.slots
        return occupied, total, occupied / total

    def position_of(self, key):
        """(bucket, 1-based row) of a stored key, or None."""
        b = self.hash(key)
        for r, k in enumerate(self.matrix[b]):
            if k == key:
                return (b, r + 1)
        for i, k in enumerate(self.overflow[b]):
            if k == key:
                return (b, self.slots + i + 1)
        return None

    def keys(self):
        return list(self.order)

    def __len__(self):
        return len(self.order)

    def __contains__(self, key):
        return str(key) in self.order

    # ─────────────────────────────────────────────────────────────
    #  PLACEMENT
    # ─────────────────────────────────────────────────────────────

    def _place(self, key):
        """Drop ``key`` into its bucket without recording; return position."""
        b = self.hash(key)
        row = self.matrix[b]
        for r, k in enumerate(row):
            if k is None:
                row[r] = key
                return (b, r + 1)
        self.overflow[b].append(key)
        return (b, self.slots + len(self.overflow[b]))

    def _rebuild(self, buckets):
        self._reset(buckets)
        for k in self.order:
            self._place(k)

    def _expand_recorded(self):
        old = self.buckets
        new = grow(old, self.mode)
        self._record("expand",
                     f"D.O. ≥ {THRESHOLD} → {self.mode} expansion "
                     f"n = {old} → {new}",
                     extra={"from": old, "to": new})
        self._rebuild(new)
        self.expansions += 1
        occupied, total, ratio = self.occupancy()
        self._record("rehash",
                     f"Replayed {len(self.order)} keys with H(k) = k mod {new}"
                     f"  (D.O. = {occupied}/{total} = {ratio:.2f})",
                     extra={"buckets": new}, snapshot=True)
        _log.info("%s expansion %d -> %d buckets (%d keys)",
                  self.mode, old, new, len(self.order))

    # ─────────────────────────────────────────────────────────────
    #  INSERT / SEARCH / DELETE
    # ─────────────────────────────────────────────────────────────

    def insert(self, key):
        """
        Insert a numeric key.

        Steps recorded:
            start → hash → visit(s) → place → occupancy → [expand → rehash] → done

        Raises:
            ValidationError   : Non-numeric key.
            DuplicateKeyError : Key already stored (no mutation).
        """
        key = validate_numeric(key)
        self._begin("insert", key)
        if key in self.order:
            pos = self.position_of(key)
            self._record("duplicate", f"⚠️ Key {key} already exists at {pos}",
                         position=pos, highlight=[pos])
            raise DuplicateKeyError(key, pos)

        b = self.hash(key)
        self._record("hash", f"H({key}) = {key} mod {self.buckets} = {b}",
                     extra={"bucket": b})
        for r, k in enumerate(self.matrix[b]):
            self._visit(f"Slot ({b}, {r + 1}) is "
                        f"{'empty' if k is None else 'taken by ' + k}",
                        (b, r + 1))
            if k is None:
                break

        self.order.append(key)
        pos = self._place(key)
        where = "overflow" if pos[1] > self.slots else "slot"
        self._record("place", f"Place {key} in {where} {pos}",
                     position=pos, highlight=[pos], snapshot=True)

        occupied, total, ratio = self.occupancy()
        self._record("occupancy",
                     f"D.O. = {occupied}/{total} = {ratio:.2f}",
                     extra={"occupied": occupied, "total": total,
                            "ratio": ratio})
        expanded = ratio >= THRESHOLD
        if expanded:
            self._expand_recorded()
            pos = self.position_of(key)

        _log.debug("insert %s -> %s (n=%d)", key, pos, self.buckets)
        return self._finish("insert", key, INSERTED,
                            f"✅ {key} stored at {pos}", pos,
                            extra={"expanded": expanded,
                                   "buckets": self.buckets})

    def expand(self):
        """Force one expansion and replay every key."""
        self._begin("expand", self.buckets)
        self._expand_recorded()
        return self._finish("expand", None, EXPANDED,
                            f"Table now has {self.buckets} buckets",
                            extra={"buckets": self.buckets})

    def _scan(self, key):
        """Recorded scan of the key's bucket; returns position or None."""
        b = self.hash(key)
        self._record("hash", f"H({key}) = {key} mod {self.buckets} = {b}",
                     extra={"bucket": b})
        for r, k in enumerate(self.matrix[b]):
            self._visit(f"Compare {key} with slot ({b}, {r + 1})"
                        f" = {k if k is not None else '∅'}", (b, r + 1))
            if k == key:
                return (b, r + 1)
            if k is None:
                return None
        for i, k in enumerate(self.overflow[b]):
            pos = (b, self.slots + i + 1)
            self._visit(f"Compare {key} with overflow {pos} = {k}", pos)
            if k == key:
                return pos
        return None

    def search(self, key):
        key = validate_numeric(key)
        self._begin("search", key)
        pos = self._scan(key)
        if pos is None:
            return self._finish("search", key, NOT_FOUND,
                                f"❌ {key} not found")
        return self._finish("search", key, FOUND,
                            f"✅ {key} found at {pos}", pos)

    def delete(self, key):
        """
        Remove a key; its bucket is re-laid from the insertion order so
        the table always equals a replay of ``order``.
        """
        key = validate_numeric(key)
        self._begin("delete", key)
        pos = self._scan(key)
        if pos is None:
            return self._finish("delete", key, NOT_FOUND,
                                f"❌ {key} not found, nothing deleted")
        self.order.remove(key)
        b = pos[0]
        self.matrix[b] = [None] * self.slots
        self.overflow[b] = []
        for k in self.order:
            if self.hash(k) == b:
                self._place(k)
        self._record("remove", f"Removed {key}; bucket {b} compacted",
                     position=pos, snapshot=True)
        _log.debug("delete %s from %s", key, pos)
        return self._finish("delete", key, DELETED,
                            f"🗑 {key} deleted from {pos}", pos)

    def clear(self):
        """Empty the table and return to the original bucket count."""
        self.order = []
        self.expansions = 0
        self._reset(self.initial_buckets)
        self.clear_steps()

    # ─────────────────────────────────────────────────────────────
    #  PERSISTENCE
    # ─────────────────────────────────────────────────────────────

    def to_dict(self):
        return {"type": self.TYPE_TAG,
                "buckets": self.buckets,
                "initialBuckets": self.initial_buckets,
                "slots": self.slots,
                "order": list(self.order),
                "matrix": [list(row) for row in self.matrix],
                "overflow": [list(ch) for ch in self.overflow]}

    @classmethod
    def from_dict(cls, data):
        mode = {v: k for k, v in MODES.items()}.get(data.get("type"))
        if mode is None:
            raise InvalidFormatError(
                f"not an expansion table: {data.get('type')!r}")
        try:
            table = cls(data["initialBuckets"], data["slots"], mode)
            buckets = validate_range("buckets", data["buckets"], 2, 10 ** 6)
            order = [validate_numeric(k) for k in data["order"]]
        except (KeyError, TypeError, ValidationError) as e:
            raise InvalidFormatError(f"bad expansion document: {e}")
        if len(set(order)) != len(order):
            raise InvalidFormatError("duplicate keys in insertion order")
        table.order = order
        table._rebuild(buckets)
        if (table.matrix != data.get("matrix")
                or table.overflow != data.get("overflow")):
            raise InvalidFormatError(
                "matrix does not match a replay of the insertion order")
        return table
