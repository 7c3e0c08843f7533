"""
╔══════════════════════════════════════════════════════════════════╗
║           Search Structure Simulator  v1.0  —  HUFFMAN CODER     ║
║                                                                  ║
║  Optimal prefix code for the letters of a word.                  ║
║                                                                  ║
║  Construction                                                    ║
║  ────────────                                                    ║
║  1. Count letters, remembering the order they first appear.      ║
║  2. Push one leaf per letter on a min-heap keyed by              ║
║     (weight, first-appearance order).                            ║
║  3. Pop two entries: the first becomes the 0-branch (left), the  ║
║     second the 1-branch (right); push their parent, whose order  ║
║     is the earlier order of the two.                             ║
║  4. Repeat until one tree remains.                               ║
║                                                                  ║
║     "ABRACADABRA":  A×5 B×2 R×2 C×1 D×1                          ║
║                                                                  ║
║  A word with a single distinct letter yields a lone leaf whose   ║
║  code is "0".  Removing a letter rebuilds from the remaining     ║
║  word, keeping its letter order.                                 ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

import heapq

from engine_errors import ValidationError, InvalidFormatError
from keycodes import validate_word, validate_letter
from recorder import StepRecorder, BUILT, FOUND, DELETED, NOT_FOUND
from settings import get_logger

_log = get_logger("huffman")


class HuffmanNode:
    """Leaf when ``letter`` is set, otherwise an internal merge node."""
    __slots__ = ("letter", "weight", "order", "left", "right")

    def __init__(self, letter, weight, order, left=None, right=None):
        self.letter = letter
        self.weight = weight
        self.order  = order
        self.left   = left
        self.right  = right

    @property
    def is_leaf(self):
        return self.left is None and self.right is None


def letter_frequencies(word):
    """[(letter, count)] in order of first appearance."""
    counts = {}
    for ch in word:
        counts[ch] = counts.get(ch, 0) + 1
    return list(counts.items())


def assign_codes(root):
    """letter → code; a lone leaf gets "0"."""
    if root is None:
        return {}
    if root.is_leaf:
        return {root.letter: "0"}
    codes = {}

    def _walk(n, prefix):
        if n.is_leaf:
            codes[n.letter] = prefix
            return
        _walk(n.left, prefix + "0")
        _walk(n.right, prefix + "1")
    _walk(root, "")
    return codes


class HuffmanCoder(StepRecorder):
    """
    Attributes:
        word  (str)         : Word the tree was built from.
        root  (HuffmanNode) : Finished tree, or None when empty.
        codes (dict)        : letter → code string.
    """
    TYPE_TAG = "huffman"
    SNAPSHOT_EVERY_STEP = True

    def __init__(self, word=None):
        super().__init__()
        self.word    = ""
        self.root    = None
        self.codes   = {}
        self._forest = None
        if word:
            self.build(word)

    # ─────────────────────────────────────────────────────────────
    #  SNAPSHOT
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def _snap(n, path):
        if n is None:
            return None
        if n.is_leaf:
            return {"id": path, "key": n.letter, "weight": n.weight,
                    "children": []}
        return {"id": path, "key": None, "weight": n.weight,
                "children": [HuffmanCoder._snap(n.left, path + "0"),
                             HuffmanCoder._snap(n.right, path + "1")]}

    def _snapshot(self):
        if self._forest is not None:
            trees = sorted(self._forest, key=lambda e: e[1])
            return {"kind": "forest",
                    "trees": [self._snap(n, f"{order}:") for _, order, n in trees]}
        return {"kind": "tree", "root": self._snap(self.root, "")}

    # ─────────────────────────────────────────────────────────────
    #  BUILD
    # ─────────────────────────────────────────────────────────────

    def build(self, word):
        """
        Rebuild the tree from scratch for ``word``.

        Steps recorded:
            start → frequencies → merge (one per combination) → codes → done
        """
        word = validate_word(word)
        self._begin("build", word)
        self._build(word)
        return self._finish("build", word, BUILT,
                            f"✅ {len(self.codes)} codes, "
                            f"{self.weighted_length()} bits for {word}",
                            extra={"codes": dict(self.codes)})

    insert = build

    def _build(self, word):
        self.word, self.root, self.codes = word, None, {}
        if not word:
            self._record("empty", "No letters left → empty tree")
            return
        freqs = letter_frequencies(word)
        self._forest = [(w, i, HuffmanNode(ch, w, i))
                        for i, (ch, w) in enumerate(freqs)]
        heapq.heapify(self._forest)
        self._record("frequencies",
                     "Frequencies: " + ", ".join(f"{c}={w}" for c, w in freqs),
                     extra={"frequencies": freqs})
        while len(self._forest) > 1:
            wa, oa, a = heapq.heappop(self._forest)
            wb, ob, b = heapq.heappop(self._forest)
            order = min(oa, ob)
            parent = HuffmanNode(None, wa + wb, order, a, b)
            heapq.heappush(self._forest, (parent.weight, order, parent))
            self._record("merge",
                         f"Merge {self._label(a)} (0) + {self._label(b)} (1)"
                         f" = {parent.weight}",
                         highlight=[f"{order}:"])
        self.root = self._forest[0][2]
        self._forest = None
        self.codes = assign_codes(self.root)
        self._record("codes", "Codes: " + ", ".join(
            f"{c}={self.codes[c]}" for c, _ in freqs),
            extra={"codes": dict(self.codes)})
        _log.info("built huffman tree for %s (%d letters)", word, len(freqs))

    @staticmethod
    def _label(n):
        return f"{n.letter}:{n.weight}" if n.is_leaf else f"[{n.weight}]"

    # ─────────────────────────────────────────────────────────────
    #  SEARCH / DELETE
    # ─────────────────────────────────────────────────────────────

    def _walk(self, letter):
        """Recorded lookup; returns the letter's code or None."""
        if self.root is None:
            self._visit("Tree is empty", "", highlight=[])
            return None
        code = self.codes.get(letter)
        if code is None:
            for path, n in self._leaves():
                self._visit(f"Leaf {n.letter} ≠ {letter}", path)
            return None
        node, path = self.root, ""
        self._visit(f"Start at root ({node.weight})", "")
        if node.is_leaf:
            return code
        for bit in code:
            node = node.left if bit == "0" else node.right
            path += bit
            self._visit(f"bit {bit} → {self._label(node)}", path)
        return code

    def _leaves(self):
        out = []

        def _w(n, path):
            if n.is_leaf:
                out.append((path, n))
                return
            _w(n.left, path + "0")
            _w(n.right, path + "1")
        if self.root is not None:
            _w(self.root, "")
        return out

    def search(self, letter):
        letter = validate_letter(letter)
        self._begin("search", letter)
        code = self._walk(letter)
        if code is None:
            return self._finish("search", letter, NOT_FOUND,
                                f"❌ {letter} is not in {self.word or 'the tree'}")
        return self._finish("search", letter, FOUND,
                            f"✅ {letter} has code {code}", code)

    def delete(self, letter):
        """Drop every occurrence of ``letter`` from the word and rebuild."""
        letter = validate_letter(letter)
        self._begin("delete", letter)
        code = self._walk(letter)
        if code is None:
            return self._finish("delete", letter, NOT_FOUND,
                                f"❌ {letter} not found, nothing deleted")
        remaining = self.word.replace(letter, "")
        self._record("rebuild", f"Remove {letter}: rebuild from "
                     f"{remaining or 'an empty word'}")
        self._build(remaining)
        return self._finish("delete", letter, DELETED,
                            f"🗑 {letter} deleted (code was {code})", code,
                            extra={"codes": dict(self.codes)})

    def clear(self):
        self.word, self.root, self.codes = "", None, {}
        self.clear_steps()

    # ─────────────────────────────────────────────────────────────
    #  CODING HELPERS
    # ─────────────────────────────────────────────────────────────

    def code_table(self):
        """[(letter, weight, code)] in first-appearance order."""
        return [(c, w, self.codes[c]) for c, w in letter_frequencies(self.word)]

    def weighted_length(self):
        """Σ weight × code length (bits needed to encode the word)."""
        return sum(w * len(code) for _, w, code in self.code_table())

    def encode(self, text):
        text = validate_word(text)
        missing = sorted(set(text) - set(self.codes))
        if missing:
            raise ValidationError(f"no code for {', '.join(missing)}")
        return "".join(self.codes[ch] for ch in text)

    def decode(self, bits):
        if self.root is None:
            raise ValidationError("tree is empty")
        if any(b not in "01" for b in bits):
            raise ValidationError(f"{bits!r} is not a bit string")
        if self.root.is_leaf:
            if "1" in bits:
                raise ValidationError("only 0 is a valid code")
            return self.root.letter * len(bits)
        out, node = [], self.root
        for b in bits:
            node = node.left if b == "0" else node.right
            if node.is_leaf:
                out.append(node.letter)
                node = self.root
        if node is not self.root:
            raise ValidationError("bit string ends inside a code")
        return "".join(out)

    # ─────────────────────────────────────────────────────────────
    #  PERSISTENCE
    # ─────────────────────────────────────────────────────────────

    def to_dict(self):
        return {"type": self.TYPE_TAG, "word": self.word,
                "codes": dict(self.codes)}

    @classmethod
    def from_dict(cls, data):
        try:
            word = data["word"]
            coder = cls()
            if word:
                coder.build(word)
                coder.clear_steps()
        except (KeyError, TypeError, ValidationError) as e:
            raise InvalidFormatError(f"bad huffman document: {e}")
        if "codes" in data and data["codes"] != coder.codes:
            raise InvalidFormatError("codes do not match the word")
        return coder
