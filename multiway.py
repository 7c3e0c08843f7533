"""
╔══════════════════════════════════════════════════════════════════╗
║        Search Structure Simulator  v1.0  —  M-ARY RESIDUE TREE   ║
║                                                                  ║
║  A complete tree built up front: each level consumes m bits of   ║
║  the 5-bit letter code, so every internal node has 2^m children  ║
║  and the tree is ⌈5/m⌉ levels deep (the last level takes the     ║
║  leftover 5 mod m bits when that is not zero).                   ║
║                                                                  ║
║     m = 2:  D = 00100 → chunks 00 | 10 | 0 → residues (0, 2, 0)  ║
║                                                                  ║
║  Every node exists from construction; inserting a letter only    ║
║  writes it into the leaf its residues lead to, deleting clears   ║
║  that leaf again.                                                ║
║                                                                  ║
║  Node ids are residue paths joined with dots ("0.2.0"), the      ║
║  root is "".  Reported positions are residue tuples.             ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

from engine_errors import DuplicateKeyError, InvalidFormatError, ValidationError
from keycodes import CODE_BITS, validate_letter, validate_range, letter_code
from recorder import StepRecorder, INSERTED, FOUND, DELETED, NOT_FOUND
from settings import get_logger

_log = get_logger("multiway")


def chunk_sizes(m):
    """Bits consumed per level, e.g. m=2 → [2, 2, 1]."""
    sizes = [m] * (CODE_BITS // m)
    if CODE_BITS % m:
        sizes.append(CODE_BITS % m)
    return sizes


def residues(letter, m):
    """Per-level branch indexes of a letter's code."""
    code, out, i = letter_code(letter), [], 0
    for size in chunk_sizes(m):
        out.append(int(code[i:i + size], 2))
        i += size
    return tuple(out)


def node_id(path):
    return ".".join(str(r) for r in path)


class MultiwayNode:
    __slots__ = ("key", "children")

    def __init__(self, degree=0):
        self.key      = None
        self.children = [None] * degree


class MultiwayResidueTree(StepRecorder):
    """
    Attributes:
        m      (int)  : Bits per level (1..5).
        degree (int)  : 2^m.
        depth  (int)  : Number of levels below the root.
    """
    TYPE_TAG = "multiple"
    SNAPSHOT_EVERY_STEP = True

    def __init__(self, m=2):
        super().__init__()
        self.m      = validate_range("m", m, 1, CODE_BITS)
        self.degree = 2 ** self.m
        self.sizes  = chunk_sizes(self.m)
        self.depth  = len(self.sizes)
        self.root   = self._build(0)

    def _build(self, level):
        if level == self.depth:
            return MultiwayNode()
        node = MultiwayNode(2 ** self.sizes[level])
        for i in range(len(node.children)):
            node.children[i] = self._build(level + 1)
        return node

    # ─────────────────────────────────────────────────────────────
    #  SNAPSHOT & QUERIES
    # ─────────────────────────────────────────────────────────────

    def _snapshot(self):
        def _snap(n, path, level):
            edge_bits = self.sizes[level - 1] if level else 0
            return {"id": node_id(path), "key": n.key,
                    "edge": format(path[-1], f"0{edge_bits}b") if path else "",
                    "children": [_snap(c, path + (i,), level + 1)
                                 for i, c in enumerate(n.children)]}
        return {"kind": "tree", "root": _snap(self.root, (), 0)}

    def leaf(self, path):
        node = self.root
        for r in path:
            node = node.children[r]
        return node

    def items(self):
        """(residue tuple, letter) of every filled leaf."""
        out = []

        def _walk(n, path):
            if not n.children:
                if n.key is not None:
                    out.append((path, n.key))
                return
            for i, c in enumerate(n.children):
                _walk(c, path + (i,))
        _walk(self.root, ())
        return out

    def keys(self):
        return [k for _, k in self.items()]

    def __len__(self):
        return len(self.items())

    def __contains__(self, letter):
        return str(letter).upper() in self.keys()

    # ─────────────────────────────────────────────────────────────
    #  OPERATIONS
    # ─────────────────────────────────────────────────────────────

    def _descend(self, letter):
        """Recorded walk to the letter's leaf; returns (leaf, path)."""
        res = residues(letter, self.m)
        code = letter_code(letter)
        self._record("code", f"{letter} → {code} → residues {res}",
                     extra={"code": code, "residues": res})
        node, path = self.root, ()
        for level, r in enumerate(res):
            self._visit(f"Level {level}: residue {r} of {len(node.children)}",
                        node_id(path))
            node, path = node.children[r], path + (r,)
        self._visit(f"Leaf {node_id(path)} holds "
                    f"{node.key if node.key is not None else '∅'}",
                    node_id(path))
        return node, path

    def insert(self, letter):
        letter = validate_letter(letter)
        self._begin("insert", letter)
        node, path = self._descend(letter)
        if node.key == letter:
            self._record("duplicate", f"⚠️ {letter} already exists",
                         position=path, highlight=[node_id(path)])
            raise DuplicateKeyError(letter, path)
        node.key = letter
        self._record("place", f"Store {letter} at leaf {node_id(path)}",
                     position=path, highlight=[node_id(path)])
        _log.debug("insert %s at %s", letter, path)
        return self._finish("insert", letter, INSERTED,
                            f"✅ {letter} stored at {path}", path)

    def search(self, letter):
        letter = validate_letter(letter)
        self._begin("search", letter)
        node, path = self._descend(letter)
        if node.key != letter:
            return self._finish("search", letter, NOT_FOUND,
                                f"❌ {letter} not found")
        return self._finish("search", letter, FOUND,
                            f"✅ {letter} found at {path}", path)

    def delete(self, letter):
        letter = validate_letter(letter)
        self._begin("delete", letter)
        node, path = self._descend(letter)
        if node.key != letter:
            return self._finish("delete", letter, NOT_FOUND,
                                f"❌ {letter} not found, nothing deleted")
        node.key = None
        self._record("remove", f"Leaf {node_id(path)} cleared",
                     position=path, highlight=[node_id(path)])
        _log.debug("delete %s from %s", letter, path)
        return self._finish("delete", letter, DELETED,
                            f"🗑 {letter} deleted", path)

    def clear(self):
        self.root = self._build(0)
        self.clear_steps()

    # ─────────────────────────────────────────────────────────────
    #  PERSISTENCE
    # ─────────────────────────────────────────────────────────────

    def to_dict(self):
        return {"type": self.TYPE_TAG, "m": self.m,
                "keys": {node_id(p): k for p, k in self.items()}}

    @classmethod
    def from_dict(cls, data):
        try:
            tree = cls(data["m"])
            stored = dict(data["keys"])
            for nid, key in stored.items():
                key = validate_letter(key)
                if node_id(residues(key, tree.m)) != nid:
                    raise InvalidFormatError(f"{key} cannot sit at {nid!r}")
                tree.leaf(residues(key, tree.m)).key = key
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            if isinstance(e, InvalidFormatError):
                raise
            raise InvalidFormatError(f"bad residue tree document: {e}")
        return tree
