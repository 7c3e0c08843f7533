"""
╔══════════════════════════════════════════════════════════════════╗
║           Search Structure Simulator  v1.0  —  SETTINGS          ║
║                                                                  ║
║  Persisted user preferences (theme, playback speed, colour       ║
║  overrides) and the logging setup shared by every module.        ║
║                                                                  ║
║  Files / environment                                             ║
║  ───────────────────                                             ║
║     ~/.searchsim_v1.json   theme, anim_speed, custom_colors,     ║
║                            log_level                             ║
║     SEARCHSIM_LOG_LEVEL    overrides the stored log level        ║
║                                                                  ║
║  Logs go to STDERR only.                                         ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

import os
import sys
import json
import logging

LOG_ENV = "SEARCHSIM_LOG_LEVEL"
_ROOT_LOGGER = "searchsim"


# ═════════════════════════════════════════════════════════════════
#  LOGGING
# ═════════════════════════════════════════════════════════════════

def configure_logging(level=None):
    """
    Attach a STDERR handler to the ``searchsim`` logger (once) and set
    its level.

    Priority: explicit ``level`` → $SEARCHSIM_LOG_LEVEL → WARNING.
    An unknown level name falls back to WARNING with a warning.
    """
    root = logging.getLogger(_ROOT_LOGGER)
    if not root.handlers:
        h = logging.StreamHandler(stream=sys.stderr)
        h.setFormatter(logging.Formatter(
            "%(levelname)s %(name)s: %(message)s"))
        root.addHandler(h)
    name = str(level or os.getenv(LOG_ENV) or "WARNING").upper()
    if isinstance(logging.getLevelName(name), int):
        root.setLevel(name)
    else:
        root.setLevel(logging.WARNING)
        root.warning("unknown log level %r, using WARNING", name)
    return root


def get_logger(module):
    """Logger named ``searchsim.<module>``, configuring the root once."""
    if not logging.getLogger(_ROOT_LOGGER).handlers:
        configure_logging()
    return logging.getLogger(f"{_ROOT_LOGGER}.{module}")


_logger = get_logger("settings")


def _colour_map(value):
    if not isinstance(value, dict):
        raise TypeError(f"expected an object, got {type(value).__name__}")
    return {str(k): str(v) for k, v in value.items()}


# ═════════════════════════════════════════════════════════════════
#  THEME DEFINITIONS
#  Two built-in Catppuccin-inspired palettes used by the renderers.
# ═════════════════════════════════════════════════════════════════
THEMES = {
    # ── Dark theme (Catppuccin Mocha) ────────────────────────────
    "dark": {
        "BG": "#1e1e2e",
        "FG": "#cdd6f4",
        "ACCENT": "#89b4fa",
        "GREEN_C": "#a6e3a1",
        "RED_C": "#f38ba8",
        "CANVAS_BG": "#1e1e2e",
        "NODE_FILL": "#585b70",        # Nodes that hold a key
        "NODE_EMPTY": "#313244",       # Keyless / internal nodes
        "NODE_TEXT": "#ffffff",
        "EDGE": "#585b70",
        "EDGE_TEXT": "#a6adc8",        # Bit / residue labels on edges
        "CELL_FILL": "#45475a",        # Occupied table cell
        "CELL_EMPTY": "#2a2a3d",       # Empty table cell
        "CELL_TEXT": "#cdd6f4",
        "HIGHLIGHT": "#f9e2af",        # Ring / border of visited items
        "CASE_BG": "#313244",          # Description box fill
    },
    # ── Light theme (Catppuccin Latte) ───────────────────────────
    "light": {
        "BG": "#eff1f5",
        "FG": "#4c4f69",
        "ACCENT": "#1e66f5",
        "GREEN_C": "#40a02b",
        "RED_C": "#d20f39",
        "CANVAS_BG": "#e6e9ef",
        "NODE_FILL": "#4c4f69",
        "NODE_EMPTY": "#9ca0b0",
        "NODE_TEXT": "#ffffff",
        "EDGE": "#8c8fa1",
        "EDGE_TEXT": "#5c5f77",
        "CELL_FILL": "#bcc0cc",
        "CELL_EMPTY": "#dce0e8",
        "CELL_TEXT": "#4c4f69",
        "HIGHLIGHT": "#df8e1d",
        "CASE_BG": "#bcc0cc",
    },
}


# ═════════════════════════════════════════════════════════════════
#  SETTINGS — persisted user preferences
# ═════════════════════════════════════════════════════════════════
class Settings:
    """
    Persistent user preferences manager.

    Attributes:
        theme        (str) : Active theme name ("dark" / "light").
        anim_speed   (int) : Milliseconds per playback step.
        custom_colors(dict): Key→hex overrides on top of the theme.
        log_level    (str) : Level applied by ``apply_logging()``.

    File location:  ~/.searchsim_v1.json  (``path`` overrides it)
    """
    _PATH = os.path.join(os.path.expanduser("~"), ".searchsim_v1.json")

    def __init__(self, path=None):
        self.path          = path or self._PATH
        self.theme         = "dark"
        self.anim_speed    = 600
        self.custom_colors = {}
        self.log_level     = "WARNING"
        self._load()

    # ── Load from disk ──────────────────────────────────────────
    def _load(self):
        """Read the JSON file; a corrupt file is logged and ignored."""
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path) as f:
                d = json.load(f)
        except (OSError, ValueError) as e:
            _logger.warning("ignoring unreadable settings %s: %s",
                            self.path, e)
            return
        if not isinstance(d, dict):
            _logger.warning("ignoring settings %s: not a JSON object",
                            self.path)
            return
        theme = d.get("theme", "dark")
        self.theme = theme if isinstance(theme, str) and theme in THEMES \
            else "dark"
        self._field(d, "anim_speed", int)
        self._field(d, "custom_colors", _colour_map)
        self._field(d, "log_level", str)

    def _field(self, d, name, convert):
        """Coerce one stored value; a bad one keeps the default."""
        if name not in d:
            return
        try:
            setattr(self, name, convert(d[name]))
        except (TypeError, ValueError) as e:
            _logger.warning("ignoring %s=%r in %s: %s",
                            name, d[name], self.path, e)

    # ── Save to disk ────────────────────────────────────────────
    def save(self):
        with open(self.path, "w") as f:
            json.dump({"theme": self.theme,
                       "anim_speed": self.anim_speed,
                       "custom_colors": self.custom_colors,
                       "log_level": self.log_level}, f)
        _logger.debug("settings saved to %s", self.path)

    def apply_logging(self):
        """Configure logging from the environment, else ``log_level``."""
        return configure_logging(os.getenv(LOG_ENV) or self.log_level)

    # ── Colour lookup ───────────────────────────────────────────
    def get(self, key):
        """
        Resolve a colour key to its hex value.

        Priority: custom_colors[key]  →  THEMES[theme][key]  →  "#ffffff"
        """
        if key in self.custom_colors:
            return self.custom_colors[key]
        return THEMES[self.theme].get(key, "#ffffff")
