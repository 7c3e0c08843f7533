"""
╔══════════════════════════════════════════════════════════════════╗
║           Search Structure Simulator  v1.0  —  RENDER & EXPORT   ║
║                                                                  ║
║  Off-screen rendering of recorded steps and multi-format export. ║
║                                                                  ║
║  Architecture                                                    ║
║  ────────────                                                    ║
║  step["state"]["kind"]                                           ║
║     "tree" / "forest"              → TreeImageRenderer           ║
║     "buckets" / "blocks" / "chains"                              ║
║     "slots" / "rows" / "array"     → TableImageRenderer          ║
║                                                                  ║
║  render_step() picks the renderer; the exporters iterate a       ║
║  trace and call it once per step:                                ║
║     PDFExporter      → one landscape-A4 page per step            ║
║     VideoExporter    → MP4 via OpenCV or imageio                 ║
║                                                                  ║
║  Dependencies                                                    ║
║  ────────────                                                    ║
║  Optional : Pillow  → every image                                ║
║             reportlab → PDF walkthrough                          ║
║             numpy + opencv-python → MP4 (primary backend)        ║
║             numpy + imageio → MP4 (fallback backend)             ║
║  A missing optional package raises RuntimeError naming it.       ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

import os
import shutil
import tempfile
from datetime import datetime

from recorder import fill_states, VISIT
from settings import Settings, get_logger

_log = get_logger("render")

# ─── Pillow: image rendering for PNG/PDF/Video frames ───────────
try:
    from PIL import Image, ImageDraw, ImageFont
    HAS_PIL = True
except ImportError:
    HAS_PIL = False

# ─── NumPy: frame arrays for both video backends ────────────────
try:
    import numpy as np
    HAS_NUMPY = True
except ImportError:
    HAS_NUMPY = False

# ─── OpenCV: primary MP4 video export engine ────────────────────
try:
    import cv2
    HAS_CV2 = True
except ImportError:
    HAS_CV2 = False

# ─── imageio: fallback video export if OpenCV unavailable ────────
try:
    import imageio
    HAS_IMAGEIO = True
except ImportError:
    HAS_IMAGEIO = False

# ─── ReportLab: PDF generation for full step walkthrough ────────
try:
    from reportlab.lib.pagesizes import A4, landscape
    from reportlab.pdfgen import canvas as pdf_canvas
    HAS_REPORTLAB = True
except ImportError:
    HAS_REPORTLAB = False


def _require(flag, package):
    if not flag:
        raise RuntimeError(f"{package} is required for this export "
                           f"(pip install {package})")


# ═════════════════════════════════════════════════════════════════
#  TREE UTILITY FUNCTIONS
#
#  Operate on the snapshot dict format
#  ({"id", "key", "children": [...], optional "weight"/"edge"})
#  rather than live node objects.
# ═════════════════════════════════════════════════════════════════

def _kids(node):
    return node.get("children") or []


def tree_height(node):
    """Height of a snapshot tree (0 for None / empty)."""
    if node is None:
        return 0
    return 1 + max([tree_height(c) for c in _kids(node)] or [0])


def layout_tree(node, depth, lo, hi, positions):
    """
    Compute normalised (0..1) x-positions for each node.

    Each node sits at the midpoint of its range; the range is split
    evenly between child slots (empty slots keep their share).

    Args:
        node      (dict|None) : Current snapshot node.
        depth     (int)       : Current depth (0 = root).
        lo, hi    (float)     : Horizontal range [lo, hi) in [0, 1].
        positions (dict)      : Output — id → {"x", "y", "node"}.
    """
    if node is None:
        return
    mid = (lo + hi) / 2.0
    positions[node["id"]] = {"x": mid, "y": depth, "node": node}
    kids = _kids(node)
    if kids:
        w = (hi - lo) / len(kids)
        for i, c in enumerate(kids):
            layout_tree(c, depth + 1, lo + i * w, lo + (i + 1) * w, positions)


def count_nodes(node):
    if node is None:
        return 0
    return 1 + sum(count_nodes(c) for c in _kids(node))


def collect_keys(node):
    """Pre-order list of the keys stored in a snapshot tree."""
    if node is None:
        return []
    own = [node["key"]] if node.get("key") is not None else []
    return own + [k for c in _kids(node) for k in collect_keys(c)]


def _font_set():
    """(normal_14pt, small_11pt, title_16pt), falling back to Pillow's."""
    candidates_mono = [
        "consola.ttf",                                         # Windows
        "Consolas.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf", # Debian/Ubuntu
        "/usr/share/fonts/TTF/DejaVuSansMono.ttf",             # Arch
        "/System/Library/Fonts/Menlo.ttc",                     # macOS
    ]
    for p in candidates_mono:
        try:
            return (ImageFont.truetype(p, 14), ImageFont.truetype(p, 11),
                    ImageFont.truetype(p, 16))
        except OSError:
            continue
    font = ImageFont.load_default()
    return font, font, font


def _as_id(pos):
    """JSON turns tuples into lists; highlight ids compare as tuples."""
    return tuple(pos) if isinstance(pos, list) else pos


class _BaseRenderer:
    def __init__(self, settings=None, width=800, height=500):
        self.settings = settings or Settings()
        self.width    = width
        self.height   = height
        self.padding  = 50

    def _canvas(self, title, desc):
        """Blank image with the title and description box; returns
        (img, draw, fonts, content bottom y)."""
        _require(HAS_PIL, "Pillow")
        s = self.settings
        img  = Image.new("RGB", (self.width, self.height), s.get("CANVAS_BG"))
        draw = ImageDraw.Draw(img)
        fonts = _font_set()
        if title:
            draw.text((10, 8), title, fill=s.get("ACCENT"), font=fonts[2])
        bottom = self.height - 30
        if desc:
            y0 = self.height - 80
            draw.rectangle([5, y0, self.width - 5, self.height - 5],
                           fill=s.get("CASE_BG"))
            for i, ln in enumerate(desc.split("\n")[:3]):
                draw.text((10, y0 + 5 + i * 16), ln[:110],
                          fill=s.get("FG"), font=fonts[1])
            bottom = y0 - 10
        return img, draw, fonts, bottom

    def _watermark(self, draw, fonts):
        draw.text((10, self.height - 18), "Search Sim v1.0",
                  fill="#555555", font=fonts[1])


# ═════════════════════════════════════════════════════════════════
#  TREE IMAGE RENDERER
#
#  Layout: title at top, tree in middle, description box at bottom.
#  Forests (Huffman construction) are laid out side by side.
# ═════════════════════════════════════════════════════════════════
class TreeImageRenderer(_BaseRenderer):
    """
    Off-screen tree renderer using Pillow.

        1. Compute layout positions (layout_tree)
        2. Draw edges with their bit / residue label
        3. Draw nodes (keyed nodes filled, keyless nodes dimmed)
        4. Ring highlighted node ids
    """
    node_radius = 20

    def render(self, state, highlight=None, title="", desc=""):
        s = self.settings
        highlight = {_as_id(h) for h in (highlight or []) if h is not None}
        img, draw, fonts, bottom = self._canvas(title, desc)
        font, font_s, _ = fonts

        roots = []
        if state is not None:
            if state.get("kind") == "forest":
                roots = [t for t in state.get("trees", []) if t]
            elif state.get("root") is not None:
                roots = [state["root"]]
        if not roots:
            draw.text((self.width // 2 - 40, self.height // 2),
                      "Empty Tree", fill=s.get("FG"), font=font)
            self._watermark(draw, fonts)
            return img

        positions = {}
        share = 1.0 / len(roots)
        for i, r in enumerate(roots):
            layout_tree(r, 0, i * share, (i + 1) * share, positions)
        th  = max(max(tree_height(r) for r in roots) - 1, 1)
        pad = self.padding

        def cx(x): return int(pad + x * (self.width - 2 * pad))
        def cy(y): return int(60 + y * (bottom - 60 - self.node_radius) / th)

        def _draw(node, pp=None, label=""):
            if node is None:
                return
            pos = positions[node["id"]]
            x, y = cx(pos["x"]), cy(pos["y"])
            if pp:
                draw.line([pp, (x, y)], fill=s.get("EDGE"), width=2)
                if label:
                    draw.text(((pp[0] + x) // 2 + 4, (pp[1] + y) // 2 - 8),
                              label, fill=s.get("EDGE_TEXT"), font=font_s)
            kids = _kids(node)
            for i, c in enumerate(kids):
                if c is not None:
                    lab = c.get("edge") if "edge" in c else (
                        str(i) if len(kids) == 2 else "")
                    _draw(c, (x, y), lab)

            r = self.node_radius
            keyed = node.get("key") is not None
            fill = s.get("NODE_FILL") if keyed else s.get("NODE_EMPTY")
            hl = node["id"] in highlight
            draw.ellipse([x - r, y - r, x + r, y + r], fill=fill,
                         outline=s.get("HIGHLIGHT") if hl else "white",
                         width=3 if hl else 1)
            txt = str(node["key"]) if keyed else (
                str(node["weight"]) if node.get("weight") is not None else "")
            if txt:
                bb = draw.textbbox((0, 0), txt, font=font)
                draw.text((x - (bb[2] - bb[0]) // 2, y - (bb[3] - bb[1]) // 2),
                          txt, fill=s.get("NODE_TEXT"), font=font)
            if keyed and node.get("weight") is not None:
                draw.text((x + r - 2, y + r - 8), str(node["weight"]),
                          fill=s.get("EDGE_TEXT"), font=font_s)

        for r in roots:
            _draw(r)
        self._watermark(draw, fonts)
        return img


# ═════════════════════════════════════════════════════════════════
#  TABLE IMAGE RENDERER
#
#  Every table-shaped snapshot is turned into labelled rows of
#  cells; each cell carries the position id engines report, so the
#  step's highlight list maps straight onto cells.
# ═════════════════════════════════════════════════════════════════

def table_rows(state):
    """
    Returns:
        list[tuple[str, list[tuple[id, value, bool]]]]:
            (row label, [(cell id, value or None, is_overflow)]).
    """
    kind = state.get("kind")
    if kind == "buckets":
        m = state["slots"]
        rows = []
        for b, (slots, extra) in enumerate(zip(state["matrix"],
                                               state["overflow"])):
            cells = [((b, r + 1), v, False) for r, v in enumerate(slots)]
            cells += [((b, m + i + 1), v, True) for i, v in enumerate(extra)]
            rows.append((str(b), cells))
        return rows
    if kind == "blocks":
        bs = state["block_size"]
        return [(f"B{i + 1}", [(i * bs + j + 1, v, False)
                               for j, v in enumerate(block)])
                for i, block in enumerate(state["blocks"])]
    if kind == "chains":
        return [(str(i + 1), [((i + 1, j + 1), v, j > 0)
                              for j, v in enumerate(chain)]
                 or [((i + 1, 1), None, False)])
                for i, chain in enumerate(state["chains"])]
    if kind == "rows":
        width = state["width"]
        return [(str(i + 1), [((i + 1, j + 1),
                               row[j] if j < len(row) else None, False)
                              for j in range(width)])
                for i, row in enumerate(state["rows"])]
    if kind == "slots":
        return [(str(i + 1), [(i + 1, v, False)])
                for i, v in enumerate(state["slots"])]
    if kind == "array":
        return [(str(i + 1), [(i + 1, v, False)])
                for i, v in enumerate(state["items"])]
    raise ValueError(f"not a table snapshot: {kind!r}")


class TableImageRenderer(_BaseRenderer):
    """Grid renderer for matrices, chains, slot lists and blocks."""
    cell_w = 64
    cell_h = 24

    def render(self, state, highlight=None, title="", desc=""):
        s = self.settings
        highlight = {_as_id(h) for h in (highlight or []) if h is not None}
        img, draw, fonts, bottom = self._canvas(title, desc)
        font, font_s, _ = fonts
        if state is None:
            self._watermark(draw, fonts)
            return img

        x0, y = 60, 44
        per_line = max(1, (self.width - x0 - 10) // self.cell_w)
        for label, cells in table_rows(state):
            if y + self.cell_h > bottom:
                draw.text((10, y), "…", fill=s.get("FG"), font=font)
                break
            draw.text((10, y + 4), label, fill=s.get("ACCENT"), font=font_s)
            for i, (cid, value, spill) in enumerate(cells):
                if i and i % per_line == 0:
                    y += self.cell_h + 2
                    if y + self.cell_h > bottom:
                        break
                x = x0 + (i % per_line) * self.cell_w
                hl = cid in highlight
                fill = s.get("CELL_EMPTY") if value is None else s.get("CELL_FILL")
                draw.rectangle([x, y, x + self.cell_w - 4, y + self.cell_h],
                               fill=fill,
                               outline=s.get("HIGHLIGHT") if hl else s.get("EDGE"),
                               width=3 if hl else 1)
                if spill:
                    draw.line([x - 4, y + self.cell_h // 2, x, y + self.cell_h // 2],
                              fill=s.get("EDGE"), width=2)
                if value is not None:
                    draw.text((x + 4, y + 5), str(value)[:8],
                              fill=s.get("CELL_TEXT"), font=font_s)
            y += self.cell_h + 6
        self._watermark(draw, fonts)
        return img


def render_step(step, settings=None, width=800, height=500, index=None):
    """
    Render one step (its state must already be filled in).

    Returns:
        Image: Pillow image of the step.
    """
    state = step.get("state")
    kind = (state or {}).get("kind")
    cls = TreeImageRenderer if kind in (None, "tree", "forest") \
        else TableImageRenderer
    title = step.get("action", "")
    if index is not None:
        title = f"Step {index + 1}: {title}"
    return cls(settings, width, height).render(
        state, step.get("highlight"), title, step.get("desc", ""))


def export_png(step, filename, settings=None):
    render_step(step, settings).save(filename)
    return filename


# ═════════════════════════════════════════════════════════════════
#  PDF EXPORTER
#
#  Multi-page PDF walkthrough of a trace:
#    • title page
#    • one page per step (image + description)
#    • summary page (operations, comparisons)
#
#  Requires: reportlab + Pillow
# ═════════════════════════════════════════════════════════════════
class PDFExporter:
    """Export a step list as a landscape-A4 PDF document."""

    def __init__(self, settings=None, title="Search Structure Walkthrough"):
        self.settings = settings or Settings()
        self.title    = title

    def export(self, steps, filename):
        """
        Args:
            steps    (list) : Step dicts (one or more concatenated traces).
            filename (str)  : Output PDF file path.

        Returns:
            str: ``filename``.
        """
        _require(HAS_REPORTLAB, "reportlab")
        _require(HAS_PIL, "Pillow")
        steps = fill_states(steps)
        pw, ph = landscape(A4)
        c = pdf_canvas.Canvas(filename, pagesize=landscape(A4))

        c.setFont("Helvetica-Bold", 28)
        c.drawCentredString(pw / 2, ph - 100, self.title)
        c.setFont("Helvetica", 12)
        c.drawCentredString(pw / 2, ph - 180,
            f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
        c.drawCentredString(pw / 2, ph - 200, f"Total Steps: {len(steps)}")
        c.showPage()

        tmp = tempfile.mkdtemp()
        try:
            for i, st in enumerate(steps):
                img = render_step(st, self.settings, 700, 400, index=i)
                ip = os.path.join(tmp, f"s{i:04d}.png")
                img.save(ip)
                c.setFont("Helvetica-Bold", 14)
                c.drawString(30, ph - 30, f"Step {i + 1} of {len(steps)}")
                c.drawImage(ip, 30, ph - 450, width=700, height=400,
                            preserveAspectRatio=True)
                c.setFont("Helvetica", 12)
                c.drawString(30, ph - 480, f"Action: {st.get('desc', '')}")
                if st.get("position") is not None:
                    c.setFont("Helvetica", 10)
                    c.drawString(30, ph - 500, f"Position: {st['position']}")
                c.showPage()

            c.setFont("Helvetica-Bold", 20)
            c.drawCentredString(pw / 2, ph - 100, "Summary")
            c.setFont("Helvetica", 12)
            y = ph - 150
            for line in summary_lines(steps):
                c.drawString(100, y, line)
                y -= 22
            c.showPage()
            c.save()
        finally:
            shutil.rmtree(tmp, ignore_errors=True)
        _log.info("PDF walkthrough with %d steps written to %s",
                  len(steps), filename)
        return filename


def summary_lines(steps):
    """Aggregate counters shown on the PDF summary page."""
    ops = {}
    for st in steps:
        if st.get("action") == "start":
            op = (st.get("extra") or {}).get("operation", "?")
            ops[op] = ops.get(op, 0) + 1
    lines = [f"Total Steps: {len(steps)}"]
    lines += [f"{op.capitalize()}: {n}" for op, n in sorted(ops.items())]
    lines.append("Comparisons: "
                 f"{sum(1 for st in steps if st.get('action') == VISIT)}")
    return lines


# ═════════════════════════════════════════════════════════════════
#  VIDEO EXPORTER
#
#  Two backends supported:
#    1. OpenCV  (cv2.VideoWriter) — preferred
#    2. imageio (imageio.mimwrite) — fallback
#
#  Each step is rendered to a 1280×720 Pillow image, then
#  converted to a NumPy array for the video encoder.
# ═════════════════════════════════════════════════════════════════
class VideoExporter:
    """Export a step list as an MP4 video."""
    size = (1280, 720)

    def __init__(self, settings=None):
        self.settings = settings or Settings()

    def frames(self, steps, hold=1):
        """Yield one RGB uint8 array per step, ``hold`` times each."""
        _require(HAS_PIL, "Pillow")
        _require(HAS_NUMPY, "numpy")
        for i, st in enumerate(fill_states(steps)):
            img = render_step(st, self.settings, *self.size, index=i)
            arr = np.array(img)
            for _ in range(max(1, hold)):
                yield arr

    def export(self, steps, filename, fps=2):
        """Use OpenCV when present, imageio otherwise."""
        if HAS_CV2:
            return self.export_cv2(steps, filename, fps)
        return self.export_imageio(steps, filename, fps)

    def export_cv2(self, steps, filename, fps=2):
        _require(HAS_CV2, "opencv-python")
        fourcc = cv2.VideoWriter_fourcc(*"mp4v")
        out = cv2.VideoWriter(filename, fourcc, fps, self.size)
        try:
            for arr in self.frames(steps, hold=fps):
                out.write(cv2.cvtColor(arr, cv2.COLOR_RGB2BGR))
        finally:
            out.release()
        _log.info("video with %d steps written to %s", len(steps), filename)
        return filename

    def export_imageio(self, steps, filename, fps=2):
        _require(HAS_IMAGEIO, "imageio")
        imageio.mimwrite(filename, list(self.frames(steps)), fps=fps)
        _log.info("video with %d steps written to %s", len(steps), filename)
        return filename
