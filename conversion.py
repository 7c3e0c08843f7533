"""
╔══════════════════════════════════════════════════════════════════╗
║        Search Structure Simulator  v1.0  —  BASE CONVERSION      ║
║                                                                  ║
║  Hash by positional notation: the key's decimal digits are read  ║
║  as digits of another base, and the value is reduced mod size.   ║
║                                                                  ║
║     key "23", base 7, size 100                                   ║
║       2·7¹ + 3·7⁰ = 17      17 mod 100 = 17  → slot 18 (1-based) ║
║                                                                  ║
║  Collisions go to per-slot chains (append-only).                 ║
║  Positions are (slot, node), both 1-based.                       ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

from engine_errors import DuplicateKeyError, InvalidFormatError, ValidationError
from keycodes import validate_numeric, validate_range
from recorder import StepRecorder, INSERTED, FOUND, DELETED, NOT_FOUND
from settings import get_logger

_log = get_logger("conversion")


def conversion_hash(key, base, size):
    """
    Returns:
        tuple[int, int]: (Σ d_i · base^(n-1-i), that value mod size).
    """
    n = len(key)
    raw = sum(int(d) * base ** (n - 1 - i) for i, d in enumerate(key))
    return raw, raw % size


def conversion_formula(key, base):
    """Human readable expansion, e.g. ``2×7^1 + 3×7^0``."""
    n = len(key)
    return " + ".join(f"{d}×{base}^{n - 1 - i}" for i, d in enumerate(key))


class BaseConversionTable(StepRecorder):
    """
    Attributes:
        size   (int)  : Number of slots (5..10000).
        base   (int)  : Radix the digits are read in (2..36).
        chains (list) : chains[slot] → keys in arrival order.
    """
    TYPE_TAG = "conversion"

    def __init__(self, size, base):
        super().__init__()
        self.size   = validate_range("size", size, 5, 10000)
        self.base   = validate_range("base", base, 2, 36)
        self.chains = [[] for _ in range(self.size)]

    def _snapshot(self):
        return {"kind": "chains", "chains": [list(c) for c in self.chains]}

    def hash(self, key):
        return conversion_hash(key, self.base, self.size)[1]

    def __len__(self):
        return sum(len(c) for c in self.chains)

    def __contains__(self, key):
        return any(str(key) in c for c in self.chains)

    def _record_hash(self, key):
        raw, slot = conversion_hash(key, self.base, self.size)
        self._record("hash",
                     f"{conversion_formula(key, self.base)} = {raw};  "
                     f"{raw} mod {self.size} = {slot} → slot {slot + 1}",
                     extra={"raw": raw, "slot": slot + 1})
        return slot

    # ─────────────────────────────────────────────────────────────
    #  OPERATIONS
    # ─────────────────────────────────────────────────────────────

    def insert(self, key):
        key = validate_numeric(key)
        self._begin("insert", key)
        for s, chain in enumerate(self.chains):
            if key in chain:
                pos = (s + 1, chain.index(key) + 1)
                self._record("duplicate", f"⚠️ Key {key} already exists at {pos}",
                             position=pos, highlight=[pos])
                raise DuplicateKeyError(key, pos)
        slot = self._record_hash(key)
        chain = self.chains[slot]
        chain.append(key)
        pos = (slot + 1, len(chain))
        what = "slot" if len(chain) == 1 else "chain (collision)"
        self._record("place", f"Append {key} to {what} {pos}",
                     position=pos, highlight=[pos], snapshot=True)
        _log.debug("insert %s -> %s", key, pos)
        return self._finish("insert", key, INSERTED,
                            f"✅ {key} stored at {pos}", pos)

    def _scan(self, key):
        """Linear scan of the target chain; returns (slot, node) or None."""
        slot = self._record_hash(key)
        chain = self.chains[slot]
        if not chain:
            self._visit(f"Slot {slot + 1} is empty", (slot + 1, 1))
            return None
        for i, k in enumerate(chain):
            pos = (slot + 1, i + 1)
            self._visit(f"Compare {key} with {k} at {pos}", pos)
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
        key = validate_numeric(key)
        self._begin("delete", key)
        pos = self._scan(key)
        if pos is None:
            return self._finish("delete", key, NOT_FOUND,
                                f"❌ {key} not found, nothing deleted")
        del self.chains[pos[0] - 1][pos[1] - 1]
        self._record("remove", f"Unlink {key} from {pos}",
                     position=pos, snapshot=True)
        _log.debug("delete %s from %s", key, pos)
        return self._finish("delete", key, DELETED,
                            f"🗑 {key} deleted", pos)

    def clear(self):
        self.chains = [[] for _ in range(self.size)]
        self.clear_steps()

    # ─────────────────────────────────────────────────────────────
    #  PERSISTENCE
    # ─────────────────────────────────────────────────────────────

    def to_dict(self):
        return {"type": self.TYPE_TAG, "size": self.size, "base": self.base,
                "chains": [list(c) for c in self.chains]}

    @classmethod
    def from_dict(cls, data):
        try:
            table = cls(data["size"], data["base"])
            chains = [[validate_numeric(k) for k in c] for c in data["chains"]]
        except (KeyError, TypeError, ValidationError) as e:
            raise InvalidFormatError(f"bad conversion document: {e}")
        if len(chains) != table.size:
            raise InvalidFormatError("chain count does not match size")
        seen = set()
        for s, chain in enumerate(chains):
            for k in chain:
                if k in seen or table.hash(k) != s:
                    raise InvalidFormatError(f"key {k} misplaced or repeated")
                seen.add(k)
        table.chains = chains
        return table
