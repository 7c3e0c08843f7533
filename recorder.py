"""
╔══════════════════════════════════════════════════════════════════╗
║           Search Structure Simulator  v1.0  —  STEP RECORDER     ║
║                                                                  ║
║  Shared recording machinery for every engine.                    ║
║                                                                  ║
║  Data Flow                                                       ║
║  ─────────                                                       ║
║  1. Caller invokes engine.insert()/search()/delete()             ║
║  2. The engine calls _begin(), then _visit() for every location  ║
║     it examines and _record() for every other sub-step           ║
║  3. _finish() appends the "done" step and returns an OpResult    ║
║  4. Players / exporters read OpResult.steps[i]["state"]          ║
║                                                                  ║
║  Step Dict Schema                                                ║
║  ────────────────                                                ║
║  { "action"   : str,    # start/visit/place/expand/done/…        ║
║    "desc"     : str,    # human-readable explanation             ║
║    "position" : any?,   # 1-based slot, (row, col), bit path …   ║
║    "highlight": [any],  # ids / positions to emphasise           ║
║    "extra"    : dict?,  # metadata (operation, key, counters)    ║
║    "state"    : dict?,  # snapshot of the structure, or None     ║
║    "op_id"    : int }   # unique per operation                   ║
║                                                                  ║
║  Table engines only snapshot on steps that change the structure  ║
║  (and on start/done); tree engines snapshot on every step.       ║
║  ``fill_states()`` carries the last snapshot forward for         ║
║  consumers that need one per step.                               ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

import copy

# ═════════════════════════════════════════════════════════════════
#  OPERATION STATUS VALUES
# ═════════════════════════════════════════════════════════════════
INSERTED  = "inserted"
FOUND     = "found"
DELETED   = "deleted"
NOT_FOUND = "not_found"
BUILT     = "built"
EXPANDED  = "expanded"

VISIT = "visit"          # action name of a counted comparison step


class OpResult:
    """
    Outcome of one engine operation.

    Attributes:
        operation   (str)     : "insert", "search", "delete", "build" …
        key         (str)     : The (normalised) key operated on.
        status      (str)     : INSERTED / FOUND / DELETED / NOT_FOUND,
                                or BUILT / EXPANDED for rebuilds.
        position    (any)     : Reported 1-based position, or None.
        comparisons (int)     : Number of counted comparisons ("steps").
        steps       (list)    : Full ordered step trace.
        extra       (dict)    : Engine-specific details (e.g. "expanded").
    """
    __slots__ = ("operation", "key", "status", "position",
                 "comparisons", "steps", "extra")

    def __init__(self, operation, key, status, position=None,
                 comparisons=0, steps=None, extra=None):
        self.operation   = operation
        self.key         = key
        self.status      = status
        self.position    = position
        self.comparisons = comparisons
        self.steps       = steps if steps is not None else []
        self.extra       = extra or {}

    @property
    def found(self):
        return self.status in (FOUND, DELETED)

    @property
    def trace(self):
        """Ordered positions examined during the operation."""
        return [s["position"] for s in self.steps if s["action"] == VISIT]

    def __repr__(self):
        return (f"OpResult({self.operation} {self.key!r}: {self.status}, "
                f"position={self.position!r}, "
                f"comparisons={self.comparisons})")


# ═════════════════════════════════════════════════════════════════
#  STEP RECORDER — base class of every engine
# ═════════════════════════════════════════════════════════════════
class StepRecorder:
    """
    Mixin-style base class that records step dicts.

    Subclasses implement ``_snapshot()`` and set ``SNAPSHOT_EVERY_STEP``.

    Attributes:
        steps (list): Step dicts of the current / last operation.
    """
    TYPE_TAG = None
    SNAPSHOT_EVERY_STEP = False

    def __init__(self):
        self.steps        = []
        self._op_counter  = 0
        self._comparisons = 0

    def _snapshot(self):
        raise NotImplementedError

    def _record(self, action, desc, position=None, highlight=None,
                extra=None, snapshot=None):
        """
        Append one step to self.steps[].

        ``snapshot`` defaults to the class policy; pass True for steps
        that change the structure.
        """
        if snapshot is None:
            snapshot = self.SNAPSHOT_EVERY_STEP
        self.steps.append({
            "action":    action,
            "desc":      desc,
            "position":  position,
            "highlight": list(highlight or []),
            "extra":     extra,
            "state":     copy.deepcopy(self._snapshot()) if snapshot else None,
            "op_id":     self._op_counter,
        })

    def _visit(self, desc, position, highlight=None, extra=None):
        """Record a counted comparison at ``position``."""
        self._comparisons += 1
        if highlight is None:
            highlight = [position]
        self._record(VISIT, desc, position, highlight, extra)

    def _begin(self, operation, key):
        self._op_counter += 1
        self.clear_steps()
        self._comparisons = 0
        self._record("start", f"═══ {operation.upper()} {key} ═══",
                     extra={"operation": operation, "key": key},
                     snapshot=True)

    def _finish(self, operation, key, status, desc, position=None,
                extra=None):
        self._record("done", desc, position,
                     highlight=[position] if position is not None else [],
                     extra={"operation": operation, "key": key,
                            "status": status,
                            "comparisons": self._comparisons},
                     snapshot=True)
        return OpResult(operation, key, status, position,
                        self._comparisons, list(self.steps), extra)

    def clear_steps(self):
        """Reset the step buffer."""
        self.steps = []

    def snapshot(self):
        """Public copy of the current structure snapshot."""
        return copy.deepcopy(self._snapshot())


def fill_states(steps):
    """
    Return a copy of ``steps`` where every step carries a state.

    Steps recorded without a snapshot inherit the most recent one.
    """
    filled, last = [], None
    for st in steps:
        if st.get("state") is not None:
            last = st["state"]
            filled.append(st)
        else:
            filled.append(dict(st, state=last))
    return filled
