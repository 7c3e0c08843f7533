"""
╔══════════════════════════════════════════════════════════════════╗
║           Search Structure Simulator  v1.0  —  KEY CODES         ║
║                                                                  ║
║  Key validation and the numeric/bit encodings the engines hash   ║
║  or branch on.                                                   ║
║                                                                  ║
║  Letter code table (5 bits, A = 1 … Z = 26)                      ║
║  ──────────────────────────────────────────                      ║
║     A → 00001   B → 00010   C → 00011   …   Z → 11010            ║
║                                                                  ║
║  Alphanumeric value                                              ║
║  ──────────────────                                              ║
║     each letter → its 1..26 value as decimal text,               ║
║     each digit  → itself, then the pieces are concatenated:      ║
║     "AB3" → "1" + "2" + "3" → 123                                ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

import re

from engine_errors import ValidationError

CODE_BITS = 5                               # Bits per letter code
_NUMERIC_RE = re.compile(r"^[0-9]+$")
_ALNUM_RE   = re.compile(r"^[A-Z0-9]+$")
_LETTER_RE  = re.compile(r"^[A-Z]$")
_WORD_RE    = re.compile(r"^[A-Z]+$")


# ═════════════════════════════════════════════════════════════════
#  VALIDATION
# ═════════════════════════════════════════════════════════════════

def validate_numeric(key, length=None):
    """
    Check a numeric-string key.

    Args:
        key    (str|int) : Candidate key.
        length (int|None): Exact number of digits required, if any.

    Returns:
        str: The key as a digit string.

    Raises:
        ValidationError: Non-digit characters or wrong length.
    """
    text = str(key).strip()
    if not _NUMERIC_RE.match(text):
        raise ValidationError(f"key {key!r} must contain digits only")
    if length is not None and len(text) != length:
        raise ValidationError(
            f"key {key!r} must have exactly {length} digits")
    return text


def validate_alnum(key, length=None):
    """Upper-case an alphanumeric key and check its length."""
    text = str(key).strip().upper()
    if not _ALNUM_RE.match(text):
        raise ValidationError(
            f"key {key!r} must contain letters and digits only")
    if length is not None and len(text) != length:
        raise ValidationError(
            f"key {key!r} must have exactly {length} characters")
    return text


def validate_letter(key):
    text = str(key).strip().upper()
    if not _LETTER_RE.match(text):
        raise ValidationError(f"key {key!r} must be a single letter A-Z")
    return text


def validate_word(word):
    text = str(word).strip().upper()
    if not _WORD_RE.match(text):
        raise ValidationError(f"word {word!r} must contain letters A-Z only")
    return text


def validate_range(name, value, lo, hi):
    """Coerce ``value`` to int and require ``lo <= value <= hi``."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if not lo <= number <= hi:
        raise ValidationError(f"{name} must be between {lo} and {hi}")
    return number


# ═════════════════════════════════════════════════════════════════
#  ENCODINGS
# ═════════════════════════════════════════════════════════════════

def letter_value(letter):
    """A → 1 … Z → 26."""
    return ord(letter) - ord("A") + 1


def letter_code(letter):
    """Five-bit binary code of a letter, most significant bit first."""
    return format(letter_value(letter), f"0{CODE_BITS}b")


def alnum_value(key):
    """
    Convert an upper-case alphanumeric key to its integer value.

    Each letter contributes its 1..26 value written in decimal and
    each digit contributes itself; the concatenated text is parsed.
    """
    parts = []
    for ch in key:
        parts.append(str(letter_value(ch)) if ch.isalpha() else ch)
    return int("".join(parts))


def digits_of(number):
    """Number of decimal digits of a non-negative integer."""
    return len(str(number))


def natural_key(key):
    """Sort key ordering digit strings by numeric value ("9" < "10")."""
    return (int(key), key)


def compare_natural(a, b):
    """-1 / 0 / 1 comparison of two digit strings by numeric value."""
    ka, kb = natural_key(a), natural_key(b)
    return (ka > kb) - (ka < kb)
