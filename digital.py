"""
╔══════════════════════════════════════════════════════════════════╗
║        Search Structure Simulator  v1.0  —  DIGITAL SEARCH TREE  ║
║                                                                  ║
║  Binary tree of letters.  The first letter becomes the root;     ║
║  every later letter walks its 5-bit code from the root, one bit  ║
║  per level (0 → left, 1 → right), and settles in the first       ║
║  empty link.                                                     ║
║                                                                  ║
║     insert C (00011), then A (00001), then E (00101)             ║
║                                                                  ║
║            C                                                     ║
║           /          bit 0 of A = 0 → left of C                  ║
║          A           bit 0 of E = 0 → A, bit 1 = 0 → left of A   ║
║         /                                                        ║
║        E                                                         ║
║                                                                  ║
║  Node ids / positions are the bit path from the root ("" for     ║
║  the root, "00" for E above).                                    ║
║                                                                  ║
║  Deletion                                                        ║
║  ────────                                                        ║
║    leaf          → unlink it                                     ║
║    one child     → copy the child's key up, delete it below      ║
║    two children  → copy the leftmost key of the right subtree    ║
║                    up, delete it below                           ║
║  Keys move, links do not, so every key stays on a path that is   ║
║  a prefix of its own code.  A final prune pass drops any keyless ║
║  childless node.                                                 ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

from engine_errors import (DuplicateKeyError, ExhaustedBitsError,
                           InvalidFormatError, ValidationError)
from keycodes import CODE_BITS, validate_letter, letter_code
from recorder import StepRecorder, INSERTED, FOUND, DELETED, NOT_FOUND
from settings import get_logger

_log = get_logger("digital")


class DigitalNode:
    """Tree node: optional letter, left (bit 0) and right (bit 1) links."""
    __slots__ = ("key", "left", "right")

    def __init__(self, key=None):
        self.key   = key
        self.left  = None
        self.right = None

    def child(self, bit):
        return self.left if bit == "0" else self.right

    def set_child(self, bit, node):
        if bit == "0":
            self.left = node
        else:
            self.right = node


class DigitalTree(StepRecorder):
    """Digital search tree keyed by 5-bit letter codes."""
    TYPE_TAG = "digital"
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

    def items(self):
        """(path, letter) pairs in pre-order."""
        out = []

        def _walk(n, path):
            if n is None:
                return
            if n.key is not None:
                out.append((path, n.key))
            _walk(n.left, path + "0")
            _walk(n.right, path + "1")
        _walk(self.root, "")
        return out

    def keys(self):
        return [k for _, k in self.items()]

    def path_of(self, letter):
        for path, k in self.items():
            if k == letter:
                return path
        return None

    def __len__(self):
        return len(self.items())

    def __contains__(self, letter):
        return self.path_of(str(letter).upper()) is not None

    # ─────────────────────────────────────────────────────────────
    #  INSERT
    # ─────────────────────────────────────────────────────────────

    def insert(self, letter):
        """
        Raises:
            ValidationError   : Not a single letter A-Z.
            DuplicateKeyError : Letter already in the tree.
        """
        letter = validate_letter(letter)
        code = letter_code(letter)
        self._begin("insert", letter)
        self._record("code", f"{letter} → {code}", extra={"code": code})

        if self.root is None:
            self.root = DigitalNode(letter)
            self._record("place", f"Tree empty → {letter} becomes the root",
                         position="", highlight=[""])
            return self._finish("insert", letter, INSERTED,
                                f"✅ {letter} is the root", "")

        dup = self.path_of(letter)
        if dup is not None:
            self._record("duplicate", f"⚠️ {letter} already exists",
                         position=dup, highlight=[dup])
            raise DuplicateKeyError(letter, dup)

        node, path = self.root, ""
        while True:
            self._visit(f"Compare {letter} with {node.key} at "
                        f"{'root' if not path else path}", path)
            if len(path) == CODE_BITS:
                raise ExhaustedBitsError(f"no free link for {letter}")
            bit = code[len(path)]
            nxt = node.child(bit)
            side = "LEFT" if bit == "0" else "RIGHT"
            if nxt is None:
                path += bit
                node.set_child(bit, DigitalNode(letter))
                self._record("place",
                             f"bit {len(path) - 1} = {bit} → {side} link "
                             f"empty, place {letter}",
                             position=path, highlight=[path])
                break
            self._record("descend", f"bit {len(path)} = {bit} → go {side}",
                         position=path + bit, highlight=[path + bit])
            node, path = nxt, path + bit

        _log.debug("insert %s at %r", letter, path)
        return self._finish("insert", letter, INSERTED,
                            f"✅ {letter} stored at path {path}", path)

    # ─────────────────────────────────────────────────────────────
    #  SEARCH
    # ─────────────────────────────────────────────────────────────

    def _walk(self, letter):
        """Recorded search; returns the path of the letter or None."""
        code = letter_code(letter)
        self._record("code", f"{letter} → {code}", extra={"code": code})
        node, path = self.root, ""
        if node is None:
            self._visit("Tree is empty", "", highlight=[])
            return None
        while node is not None:
            self._visit(f"Compare {letter} with {node.key} at "
                        f"{'root' if not path else path}", path)
            if node.key == letter:
                return path
            if len(path) == CODE_BITS:
                break
            bit = code[len(path)]
            node, path = node.child(bit), path + bit
            if node is not None:
                self._record("descend", f"bit {len(path) - 1} = {bit} → go "
                             f"{'LEFT' if bit == '0' else 'RIGHT'}",
                             position=path, highlight=[path])
        self._record("miss", f"Reached an empty link → {letter} absent")
        return None

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

    # ─────────────────────────────────────────────────────────────
    #  DELETE
    # ─────────────────────────────────────────────────────────────

    def delete(self, letter):
        letter = validate_letter(letter)
        self._begin("delete", letter)
        path = self._walk(letter)
        if path is None:
            return self._finish("delete", letter, NOT_FOUND,
                                f"❌ {letter} not found, nothing deleted")
        self._remove_at(path)
        self._prune()
        _log.debug("delete %s from %r", letter, path)
        return self._finish("delete", letter, DELETED,
                            f"🗑 {letter} deleted", path)

    def _remove_at(self, path):
        node = self.node_at(path)
        while True:
            if node.left is None and node.right is None:
                if path == "":
                    self.root = None
                else:
                    self.node_at(path[:-1]).set_child(path[-1], None)
                self._record("unlink", f"Leaf at {path or 'root'} removed",
                             position=path)
                return
            if node.left is None or node.right is None:
                bit = "0" if node.left is not None else "1"
                src = node.child(bit)
                self._record("promote",
                             f"Single child: move {src.key} up from "
                             f"{path + bit} to {path or 'root'}",
                             position=path, highlight=[path, path + bit])
                node.key = src.key
                node, path = src, path + bit
                continue
            succ, spath = node.right, path + "1"
            while succ.left is not None:
                succ, spath = succ.left, spath + "0"
            self._record("successor",
                         f"Two children: leftmost of right subtree is "
                         f"{succ.key} at {spath}",
                         position=spath, highlight=[path, spath])
            node.key = succ.key
            self._record("replace", f"{succ.key} copied to {path or 'root'}",
                         position=path, highlight=[path])
            node, path = succ, spath

    def _prune(self):
        """Drop keyless nodes that have no children."""
        def _p(n, path):
            if n is None:
                return None
            n.left = _p(n.left, path + "0")
            n.right = _p(n.right, path + "1")
            if n.key is None and n.left is None and n.right is None:
                self._record("prune", f"Empty node at {path} pruned",
                             position=path)
                return None
            return n
        self.root = _p(self.root, "")

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
        tree = cls()
        seen = set()

        def _load(d, path):
            if d is None:
                return None
            if not isinstance(d, dict) or len(path) > CODE_BITS:
                raise InvalidFormatError(f"bad node at {path!r}")
            try:
                key = validate_letter(d["key"])
                kids = d.get("children") or [None, None]
                left, right = kids
            except (KeyError, TypeError, ValueError, ValidationError) as e:
                raise InvalidFormatError(f"bad node at {path!r}: {e}")
            if key in seen or (path and not letter_code(key).startswith(path)):
                raise InvalidFormatError(f"{key} cannot sit at path {path!r}")
            seen.add(key)
            node = DigitalNode(key)
            node.left = _load(left, path + "0")
            node.right = _load(right, path + "1")
            return node
        if "root" not in data:
            raise InvalidFormatError("digital tree document has no root")
        tree.root = _load(data["root"], "")
        return tree
