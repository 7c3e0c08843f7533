"""
╔══════════════════════════════════════════════════════════════════╗
║           Search Structure Simulator  v1.0  —  HASH TABLES       ║
║                                                                  ║
║  Four hash functions × five collision strategies over fixed-     ║
║  length alphanumeric keys.                                       ║
║                                                                  ║
║  Key value k                                                     ║
║  ───────────                                                     ║
║     letters A=1 … Z=26 and digits are concatenated:  "B7" → 27   ║
║                                                                  ║
║  Hash functions (1-based result, d = digits of size)             ║
║  ─────────────────────────────────────────────────               ║
║     modulo       (k mod size) + 1                                ║
║     mid_square   central d digits of k², mod size, + 1           ║
║     truncation   digits of k at positions 0,2,4… (max d), + 1    ║
║     folding      sum of (d-1)-digit groups of k, mod size, + 1   ║
║                                                                  ║
║  Collision strategies (0-based probe i ≥ 1, h = 1-based hash)    ║
║  ──────────────────────────────────────────────────────────      ║
║     linear       (h-1+i)  mod size                               ║
║     quadratic    (h-1+i²) mod size                               ║
║     double_hash  H(str(previous + 2)) - 1                        ║
║     nested       row h-1, first free column (row holds size)     ║
║     chained      chain h-1, appended                             ║
║                                                                  ║
║  Probing strategies give up after ``size`` probes.  Deleted      ║
║  probing slots keep a DELETED marker so later probe chains are   ║
║  not cut short; inserts reuse marked slots.                      ║
║                                                                  ║
║  Positions reported 1-based: slot for probing, (row, column)     ║
║  for nested, (chain, node) for chained.                          ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

from engine_errors import (ValidationError, DuplicateKeyError,
                           StructureFullError, InvalidFormatError)
from keycodes import validate_alnum, validate_range, alnum_value, digits_of
from recorder import StepRecorder, INSERTED, FOUND, DELETED, NOT_FOUND
from settings import get_logger

_log = get_logger("hashing")

DELETED_MARK = "*"            # tombstone left by a probing delete
MAX_SIZE = 1000
MAX_KEY_LENGTH = 12


# ═════════════════════════════════════════════════════════════════
#  HASH FUNCTIONS — integer key value → 1-based slot
# ═════════════════════════════════════════════════════════════════

def hash_modulo(k, size):
    return k % size + 1


def hash_mid_square(k, size):
    """Central ``digits_of(size)`` digits of k², or the whole square."""
    square = str(k * k)
    need = digits_of(size)
    if len(square) >= need:
        start = (len(square) - need) // 2
        square = square[start:start + need]
    return int(square) % size + 1


def hash_truncation(k, size):
    """
    Keep the digits of k at even positions, at most ``digits_of(size)``
    of them.  A value that still falls outside the table is reduced
    mod size.
    """
    picked = str(k)[0::2][:digits_of(size)]
    value = int(picked)
    if value >= size:
        value %= size
    return value + 1


def hash_folding(k, size):
    """Sum of ``digits_of(size) - 1`` digit groups (at least 1 digit)."""
    text = str(k)
    group = max(1, digits_of(size) - 1)
    total = sum(int(text[i:i + group]) for i in range(0, len(text), group))
    return total % size + 1


HASH_FUNCTIONS = {
    "modulo":     hash_modulo,
    "mid_square": hash_mid_square,
    "truncation": hash_truncation,
    "folding":    hash_folding,
}

PROBING    = ("linear", "quadratic", "double_hash")
COLLISIONS = PROBING + ("nested", "chained")


def probe_positions(h, size, collision, hash_fn):
    """
    Yield the 0-based probe sequence for a 1-based home slot ``h``.

    Exactly ``size`` positions are produced (the first is ``h - 1``).
    """
    pos = h - 1
    yield pos
    for i in range(1, size):
        if collision == "linear":
            pos = (h - 1 + i) % size
        elif collision == "quadratic":
            pos = (h - 1 + i * i) % size
        else:
            pos = hash_fn(pos + 2, size) - 1
        yield pos


# ═════════════════════════════════════════════════════════════════
#  HASH TABLE ENGINE
# ═════════════════════════════════════════════════════════════════
class HashTable(StepRecorder):
    """
    Hash table over fixed-length alphanumeric keys.

    Attributes:
        size       (int) : Slots / rows / chains.
        key_length (int) : Required key length.
        method     (str) : Key of HASH_FUNCTIONS.
        collision  (str) : One of COLLISIONS.
        slots  (list) : probing table (None, key or DELETED_MARK).
        rows   (list) : nested rows, each a compact list (≤ size keys).
        chains (list) : chained lists.
    """
    TYPE_TAG = "hash"

    def __init__(self, size, key_length, method="modulo", collision="linear"):
        super().__init__()
        if method not in HASH_FUNCTIONS:
            raise ValidationError(
                f"method must be one of {sorted(HASH_FUNCTIONS)}, got {method!r}")
        if collision not in COLLISIONS:
            raise ValidationError(
                f"collision must be one of {list(COLLISIONS)}, got {collision!r}")
        self.size       = validate_range("size", size, 2, MAX_SIZE)
        self.key_length = validate_range("key_length", key_length,
                                         1, MAX_KEY_LENGTH)
        self.method     = method
        self.collision  = collision
        self._hash_fn   = HASH_FUNCTIONS[method]
        self._reset()

    def _reset(self):
        self.slots  = [None] * self.size if self.collision in PROBING else None
        self.rows   = ([[] for _ in range(self.size)]
                       if self.collision == "nested" else None)
        self.chains = ([[] for _ in range(self.size)]
                       if self.collision == "chained" else None)

    def _snapshot(self):
        if self.collision in PROBING:
            return {"kind": "slots", "slots": list(self.slots)}
        if self.collision == "nested":
            return {"kind": "rows", "width": self.size,
                    "rows": [list(r) for r in self.rows]}
        return {"kind": "chains", "chains": [list(c) for c in self.chains]}

    # ─────────────────────────────────────────────────────────────
    #  KEYS & HASHING
    # ─────────────────────────────────────────────────────────────

    def normalize(self, key):
        """Validate and upper-case a key; returns (text, integer value)."""
        text = validate_alnum(key, self.key_length)
        return text, alnum_value(text)

    def hash(self, key):
        """1-based home slot of a key."""
        return self._hash_fn(self.normalize(key)[1], self.size)

    def probe_sequence(self, key):
        """1-based positions the key would probe, in order."""
        h = self.hash(key)
        if self.collision not in PROBING:
            return [h]
        return [p + 1 for p in probe_positions(h, self.size, self.collision,
                                                 self._hash_fn)]

    def _record_hash(self, text, k):
        h = self._hash_fn(k, self.size)
        self._record("hash", f"{text} → k = {k};  {self.method}(k) = {h}",
                     position=h, extra={"k": k, "hash": h})
        return h

    def locate(self, key):
        """Unrecorded lookup: 1-based position or None."""
        text = validate_alnum(key, self.key_length)
        if self.collision in PROBING:
            if text in self.slots:
                return self.slots.index(text) + 1
        elif self.collision == "nested":
            for r, row in enumerate(self.rows):
                if text in row:
                    return (r + 1, row.index(text) + 1)
        else:
            for c, chain in enumerate(self.chains):
                if text in chain:
                    return (c + 1, chain.index(text) + 1)
        return None

    def __contains__(self, key):
        return self.locate(key) is not None

    def __len__(self):
        if self.collision in PROBING:
            return sum(1 for s in self.slots
                       if s is not None and s != DELETED_MARK)
        return sum(len(x) for x in (self.rows or self.chains))

    # ─────────────────────────────────────────────────────────────
    #  INSERT
    # ─────────────────────────────────────────────────────────────

    def insert(self, key):
        """
        Raises:
            ValidationError    : Wrong length or characters.
            DuplicateKeyError  : Key already stored.
            StructureFullError : Probe budget or nested row exhausted.
        """
        text, k = self.normalize(key)
        self._begin("insert", text)
        dup = self.locate(text)
        if dup is not None:
            self._record("duplicate", f"⚠️ Key {text} already exists at {dup}",
                         position=dup, highlight=[dup])
            raise DuplicateKeyError(text, dup)
        h = self._record_hash(text, k)
        if self.collision in PROBING:
            pos = self._insert_probing(text, h)
        elif self.collision == "nested":
            pos = self._insert_nested(text, h)
        else:
            pos = self._insert_chained(text, h)
        _log.debug("insert %s -> %s (%s/%s)", text, pos,
                   self.method, self.collision)
        return self._finish("insert", text, INSERTED,
                            f"✅ {text} stored at {pos}", pos)

    def _insert_probing(self, text, h):
        for i, p in enumerate(probe_positions(h, self.size, self.collision,
                                              self._hash_fn)):
            cur = self.slots[p]
            self._visit(f"Probe {i}: slot {p + 1} = "
                        f"{'∅' if cur is None else cur}", p + 1)
            if cur is None or cur == DELETED_MARK:
                self.slots[p] = text
                self._record("place", f"Place {text} in slot {p + 1}",
                             position=p + 1, highlight=[p + 1],
                             snapshot=True)
                return p + 1
            self._record("collision",
                         f"Collision at slot {p + 1} → {self.collision}")
        self._record("full", f"⚠️ No free slot after {self.size} probes")
        raise StructureFullError(
            f"no free slot for {text} after {self.size} probes")

    def _insert_nested(self, text, h):
        row = self.rows[h - 1]
        for c, cur in enumerate(row):
            self._visit(f"Row {h}, column {c + 1} taken by {cur}", (h, c + 1))
        if len(row) >= self.size:
            self._record("full", f"⚠️ Row {h} is full")
            raise StructureFullError(f"row {h} is full ({self.size} columns)")
        pos = (h, len(row) + 1)
        self._visit(f"Row {h}, column {pos[1]} is free", pos)
        row.append(text)
        self._record("place", f"Place {text} at {pos}", position=pos,
                     highlight=[pos], snapshot=True)
        return pos

    def _insert_chained(self, text, h):
        chain = self.chains[h - 1]
        for c, cur in enumerate(chain):
            self._visit(f"Chain {h}, node {c + 1} = {cur}", (h, c + 1))
        chain.append(text)
        pos = (h, len(chain))
        self._record("place", f"Append {text} to chain {h} as node {pos[1]}",
                     position=pos, highlight=[pos], snapshot=True)
        return pos

    # ─────────────────────────────────────────────────────────────
    #  SEARCH / DELETE
    # ─────────────────────────────────────────────────────────────

    def _scan(self, text, k):
        """Recorded lookup along the key's probe path / row / chain."""
        h = self._record_hash(text, k)
        if self.collision in PROBING:
            for i, p in enumerate(probe_positions(h, self.size,
                                                  self.collision,
                                                  self._hash_fn)):
                cur = self.slots[p]
                self._visit(f"Probe {i}: slot {p + 1} = "
                            f"{'∅' if cur is None else cur}", p + 1)
                if cur is None:
                    return None
                if cur == text:
                    return p + 1
            return None
        cells = self.rows[h - 1] if self.collision == "nested" \
            else self.chains[h - 1]
        for c, cur in enumerate(cells):
            self._visit(f"Compare {text} with {cur} at {(h, c + 1)}",
                        (h, c + 1))
            if cur == text:
                return (h, c + 1)
        if not cells or (self.collision == "nested"
                         and len(cells) < self.size):
            self._visit(f"{(h, len(cells) + 1)} is empty → stop",
                        (h, len(cells) + 1))
        return None

    def search(self, key):
        text, k = self.normalize(key)
        self._begin("search", text)
        pos = self._scan(text, k)
        if pos is None:
            return self._finish("search", text, NOT_FOUND,
                                f"❌ {text} not found")
        return self._finish("search", text, FOUND,
                            f"✅ {text} found at {pos}", pos)

    def delete(self, key):
        text, k = self.normalize(key)
        self._begin("delete", text)
        pos = self._scan(text, k)
        if pos is None:
            return self._finish("delete", text, NOT_FOUND,
                                f"❌ {text} not found, nothing deleted")
        if self.collision in PROBING:
            self.slots[pos - 1] = DELETED_MARK
            desc = f"Slot {pos} marked deleted"
        else:
            cells = self.rows if self.collision == "nested" else self.chains
            del cells[pos[0] - 1][pos[1] - 1]
            desc = f"Removed {text} from {pos}; later entries shift left"
        self._record("remove", desc, position=pos, snapshot=True)
        _log.debug("delete %s from %s", text, pos)
        return self._finish("delete", text, DELETED,
                            f"🗑 {text} deleted", pos)

    def clear(self):
        self._reset()
        self.clear_steps()

    # ─────────────────────────────────────────────────────────────
    #  PERSISTENCE
    # ─────────────────────────────────────────────────────────────

    def to_dict(self):
        d = {"type": self.TYPE_TAG, "size": self.size,
             "keyLength": self.key_length, "method": self.method,
             "collision": self.collision}
        d.update({k: v for k, v in self._snapshot().items() if k != "kind"})
        return d

    def _check_reachable(self, cells, key, index):
        """A probing search for ``key`` must reach slot ``index`` before
        an empty slot."""
        for p in probe_positions(self.hash(key), self.size, self.collision,
                                 self._hash_fn):
            if p == index:
                return
            if cells[p] is None:
                break
        raise InvalidFormatError(
            f"{key} in slot {index + 1} is off its probe path")

    @classmethod
    def from_dict(cls, data):
        try:
            table = cls(data["size"], data["keyLength"], data["method"],
                        data["collision"])
            if table.collision in PROBING:
                cells = list(data["slots"])
                for v in cells:
                    if v is not None and v != DELETED_MARK:
                        validate_alnum(v, table.key_length)
                if len(cells) != table.size:
                    raise InvalidFormatError("slot count does not match size")
                stored = [v for v in cells
                          if v is not None and v != DELETED_MARK]
                for i, v in enumerate(cells):
                    if v is not None and v != DELETED_MARK:
                        table._check_reachable(cells, v, i)
                table.slots = cells
            else:
                field = "rows" if table.collision == "nested" else "chains"
                groups = [[validate_alnum(v, table.key_length) for v in g]
                          for g in data[field]]
                if len(groups) != table.size:
                    raise InvalidFormatError(f"{field} count does not match size")
                for i, g in enumerate(groups):
                    if any(table.hash(v) != i + 1 for v in g):
                        raise InvalidFormatError(f"key misplaced in {field} {i + 1}")
                    if table.collision == "nested" and len(g) > table.size:
                        raise InvalidFormatError(f"row {i + 1} overflows")
                stored = [v for g in groups for v in g]
                setattr(table, field, groups)
        except (KeyError, TypeError, ValidationError) as e:
            raise InvalidFormatError(f"bad hash table document: {e}")
        if len(set(stored)) != len(stored):
            raise InvalidFormatError("duplicate keys in table")
        return table
