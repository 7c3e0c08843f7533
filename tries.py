"""
╔══════════════════════════════════════════════════════════════════╗
║           Search Structure Simulator  v1.0  —  RESIDUE TRIE      ║
║                                                                  ║
║  Binary trie over 5-bit letter codes in which ONLY leaves hold   ║
║  letters; internal nodes are keyless branches.                   ║
║                                                                  ║
║  Collision at a leaf                                             ║
║  ───────────────────                                             ║
║     A = 00001, B = 00010 share the prefix 000 and split at       ║
║     bit 3, so inserting B into a trie holding only A gives       ║
║                                                                  ║
║            ●          bit 0   ┐                                  ║
║           /                   │  three chain nodes for the       ║
║          ●            bit 1   │  shared bits 0, 1, 2             ║
║         /                     │                                  ║
║        ●              bit 2   ┘                                  ║
║       /                                                          ║
║      ●                bit 3   branch                             ║
║     / \\                                                          ║
║    A   B                                                         ║
║                                                                  ║
║  Deletion unlinks the leaf and then collapses upward every       ║
║  internal node left with a single leaf child (or none).          ║
║                                                                  ║
║  Node ids / positions are bit paths ("0000" for A above).        ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

from engine_errors import (DuplicateKeyError, ExhaustedBitsError,
                           InvalidFormatError, ValidationError)
from keycodes import CODE_BITS, validate_letter, letter_code
from recorder import StepRecorder, INSERTED, FOUND, DELETED, NOT_FOUND
from settings import get_logger

_log = get_logger("tries")


class TrieNode:
    """Leaf when ``key`` is set, keyless branch otherwise."""
    __slots__ = ("key", "left", "right")

    def __init__(self, key=None):
        self.key   = key
        self.left  = None
        self.right = None

    @property
    def is_leaf(self):
        return self.key is not None

    def child(self, bit):
        return self.left if bit == "0" else self.right

    def set_child(self, bit, node):
        if bit == "0":
            self.left = node
        else:
            self.right = node

    def children(self):
        return [c for c in (self.left, self.right) if c is not None]


def divergence(code_a, code_b, start=0):
    """First bit index ≥ start where two codes differ, or None."""
    for i in range(start, CODE_BITS):
        if code_a[i] != code_b[i]:
            return i
    return None


class ResidueTrie(StepRecorder):
    """Leaf-only binary residue trie."""
    TYPE_TAG = "tries"
    SNAPSHOT_EVERY_STEP = True

    def __init__(self):
        super().__init__()
        self.root = None

    # ─────────────────────────────────────────────────────────────
    #  SNAPSHOT & QUERIES
    # ─────────────────────────────────────────────────────────────

    def _snapshot(self):
        def _snap(n, path):
            if n is None:
                return None
            return {"id": path, "key": n.key,
                    "children": [_snap(n.left, path + "0"),
                                 _snap(n.right, path + "1")]}
        return {"kind": "tree", "root": _snap(self.root, "")}

    def node_at(self, path):
        node = self.root
        for bit in path:
            if node is None:
                return None
            node = node.child(bit)
        return node

    def _set_at(self, path, node):
        if path == "":
            self.root = node
        else:
            self.node_at(path[:-1]).set_child(path[-1], node)

    def leaves(self):
        """(path, letter) pairs left to right."""
        out = []

        def _walk(n, path):
            if n is None:
                return
            if n.is_leaf:
                out.append((path, n.key))
                return
            _walk(n.left, path + "0")
            _walk(n.right, path + "1")
        _walk(self.root, "")
        return out

    def keys(self):
        return [k for _, k in self.leaves()]

    def internal_count(self):
        def _c(n):
            if n is None or n.is_leaf:
                return 0
            return 1 + _c(n.left) + _c(n.right)
        return _c(self.root)

    def __len__(self):
        return len(self.leaves())

    def __contains__(self, letter):
        return str(letter).upper() in self.keys()

    # ─────────────────────────────────────────────────────────────
    #  INSERT
    # ─────────────────────────────────────────────────────────────

    def insert(self, letter):
        """
        Steps recorded:
            start → code → visit(s) → [expand per shared bit → branch]
            or place → done

        Raises:
            DuplicateKeyError  : Letter already stored.
            ExhaustedBitsError : Codes agree on every remaining bit.
        """
        letter = validate_letter(letter)
        code = letter_code(letter)
        self._begin("insert", letter)
        self._record("code", f"{letter} → {code}", extra={"code": code})

        if self.root is None:
            self.root = TrieNode(letter)
            self._record("place", f"Trie empty → {letter} is the only leaf",
                         position="", highlight=[""])
            return self._finish("insert", letter, INSERTED,
                                f"✅ {letter} stored at the root", "")

        node, path = self.root, ""
        while not node.is_leaf:
            bit = code[len(path)]
            self._visit(f"Branch at bit {len(path)}: {letter} has {bit} → "
                        f"{'LEFT' if bit == '0' else 'RIGHT'}", path)
            nxt = node.child(bit)
            if nxt is None:
                path += bit
                node.set_child(bit, TrieNode(letter))
                self._record("place", f"Empty link → new leaf {letter} at "
                             f"{path}", position=path, highlight=[path])
                _log.debug("insert %s at %r", letter, path)
                return self._finish("insert", letter, INSERTED,
                                    f"✅ {letter} stored at path {path}", path)
            node, path = nxt, path + bit

        self._visit(f"Leaf {node.key} at {path or 'root'}", path)
        if node.key == letter:
            self._record("duplicate", f"⚠️ {letter} already exists",
                         position=path, highlight=[path])
            raise DuplicateKeyError(letter, path)
        other = letter_code(node.key)
        split = divergence(other, code, len(path))
        if split is None:
            self._record("exhausted", f"⚠️ {letter} and {node.key} share "
                         f"every bit from {len(path)} on")
            raise ExhaustedBitsError(
                f"{letter} and {node.key} cannot be separated")
        path = self._expand(node, path, letter, code, other, split)
        _log.debug("insert %s at %r (split at bit %d)", letter, path, split)
        return self._finish("insert", letter, INSERTED,
                            f"✅ {letter} stored at path {path}", path)

    def _expand(self, leaf, path, letter, code, other, split):
        """Replace ``leaf`` with a chain of branches ending in two leaves."""
        cur, cpath = TrieNode(), path
        self._set_at(cpath, cur)
        self._record("expand",
                     f"Collision with {leaf.key}: leaf becomes a branch on "
                     f"bit {len(path)}", position=cpath, highlight=[cpath])
        for j in range(len(path), split):
            nxt = TrieNode()
            cur.set_child(code[j], nxt)
            cur, cpath = nxt, cpath + code[j]
            self._record("expand",
                         f"bit {j} equal ({code[j]}) → chain node at {cpath}",
                         position=cpath, highlight=[cpath])
        cur.set_child(other[split], leaf)
        cur.set_child(code[split], TrieNode(letter))
        old_path, new_path = cpath + other[split], cpath + code[split]
        self._record("branch",
                     f"bit {split} differs → {leaf.key} to {old_path}, "
                     f"{letter} to {new_path}",
                     position=new_path, highlight=[old_path, new_path])
        return new_path

    # ─────────────────────────────────────────────────────────────
    #  SEARCH / DELETE
    # ─────────────────────────────────────────────────────────────

    def _walk(self, letter):
        code = letter_code(letter)
        self._record("code", f"{letter} → {code}", extra={"code": code})
        node, path = self.root, ""
        if node is None:
            self._visit("Trie is empty", "", highlight=[])
            return None
        while not node.is_leaf:
            bit = code[len(path)]
            self._visit(f"Branch at bit {len(path)}: go "
                        f"{'LEFT' if bit == '0' else 'RIGHT'}", path)
            node, path = node.child(bit), path + bit
            if node is None:
                self._record("miss", f"Empty link at {path} → absent")
                return None
        self._visit(f"Leaf {node.key} at {path or 'root'}", path)
        return path if node.key == letter else None

    def search(self, letter):
        letter = validate_letter(letter)
        self._begin("search", letter)
        path = self._walk(letter)
        if path is None:
            return self._finish("search", letter, NOT_FOUND,
                                f"❌ {letter} not found")
        return self._finish("search", letter, FOUND,
                            f"✅ {letter} found at path {path or 'root'}",
                            path)

    def delete(self, letter):
        letter = validate_letter(letter)
        self._begin("delete", letter)
        path = self._walk(letter)
        if path is None:
            return self._finish("delete", letter, NOT_FOUND,
                                f"❌ {letter} not found, nothing deleted")
        self._set_at(path, None)
        self._record("unlink", f"Leaf {letter} removed from "
                     f"{path or 'root'}", position=path)
        self._compact(path)
        _log.debug("delete %s from %r", letter, path)
        return self._finish("delete", letter, DELETED,
                            f"🗑 {letter} deleted", path)

    def _compact(self, path):
        """Collapse branches along ``path`` from the bottom up."""
        while path:
            path = path[:-1]
            node = self.node_at(path)
            kids = node.children()
            if not kids:
                self._set_at(path, None)
                self._record("compact", f"Empty branch at {path or 'root'} "
                             f"removed", position=path)
            elif len(kids) == 1 and kids[0].is_leaf:
                self._set_at(path, kids[0])
                self._record("compact", f"Leaf {kids[0].key} moves up to "
                             f"{path or 'root'}", position=path,
                             highlight=[path])
            else:
                return

    def clear(self):
        self.root = None
        self.clear_steps()

    # ─────────────────────────────────────────────────────────────
    #  PERSISTENCE
    # ─────────────────────────────────────────────────────────────

    def to_dict(self):
        return {"type": self.TYPE_TAG, "root": self._snapshot()["root"]}

    @classmethod
    def from_dict(cls, data):
        trie = cls()
        seen = set()

        def _load(d, path):
            if d is None:
                return None
            if not isinstance(d, dict) or len(path) > CODE_BITS:
                raise InvalidFormatError(f"bad node at {path!r}")
            kids = d.get("children") or [None, None]
            try:
                left, right = kids
                key = d.get("key")
                if key is not None:
                    key = validate_letter(key)
            except (TypeError, ValueError, ValidationError) as e:
                raise InvalidFormatError(f"bad node at {path!r}: {e}")
            node = TrieNode(key)
            if key is not None:
                if left is not None or right is not None:
                    raise InvalidFormatError(f"leaf {key} has children")
                if key in seen or not letter_code(key).startswith(path):
                    raise InvalidFormatError(f"{key} cannot sit at {path!r}")
                seen.add(key)
                return node
            node.left = _load(left, path + "0")
            node.right = _load(right, path + "1")
            if not node.children():
                raise InvalidFormatError(f"empty branch at {path!r}")
            return node
        if "root" not in data:
            raise InvalidFormatError("trie document has no root")
        trie.root = _load(data["root"], "")
        return trie
