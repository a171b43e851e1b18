# utils/normalize.py

# =========================================
# Necessary imports
# =========================================

from __future__ import annotations

import re
import unicodedata

# =========================================
# Normalization
# =========================================

_WORD_START = re.compile(r"(^|\s)(\S)")
_CPF_GROUPS = re.compile(r"^(\d{3})(\d{3})(\d{3})(\d{2})$")


def strip_accents(text: str) -> str:
    """
    Remove diacritical marks (accents) from a string.

    This is useful for accent-insensitive comparisons. Example:
        "Assistida à distância" -> "Assistida a distancia"
    """
    s = str(text or "")
    return "".join(
        ch
        for ch in unicodedata.normalize("NFKD", s)
        if unicodedata.category(ch) != "Mn"
    )

def collapse_whitespace(text: str) -> str:
    """
    Normalize whitespace by trimming and collapsing consecutive spaces/newlines.

    Example:
        "  Maria \\n  Silva " -> "Maria Silva"
    """
    return " ".join(str(text or "").strip().split())

def norm_key(text: str) -> str:
    """
    Build a stable, comparison-friendly key from a string.

    Operations:
    - Convert to string (safe for None)
    - Trim and collapse whitespace
    - Lowercase
    - Remove accents

    Used to match option labels typed in JSON definitions ("Média importância",
    "media importancia") against the internal enum values.
    """
    s = collapse_whitespace(text).lower()
    return strip_accents(s)

def capitalize_words(text: str) -> str:
    """
    Capitalize the first letter of every word and lowercase the rest.

    Whitespace is preserved as typed, so the function can run on every
    keystroke without moving the cursor. Locale-naive.

    Example:
        "maria DA silva" -> "Maria Da Silva"
    """
    s = str(text or "").lower()
    return _WORD_START.sub(lambda m: m.group(1) + m.group(2).upper(), s)

def only_digits(text: str) -> str:
    """Keep only the ASCII digits of `text` ("529.982.247-25" -> "52998224725")."""
    return "".join(ch for ch in str(text or "") if ch in "0123456789")

def format_cpf(text: str) -> str:
    """
    Format a CPF for display as XXX.XXX.XXX-XX.

    Inputs that do not have exactly 11 digits are returned as bare digits, so a
    partially typed number stays editable.
    """
    digits = only_digits(text)
    return _CPF_GROUPS.sub(r"\1.\2.\3-\4", digits)

def slugify(text: str) -> str:
    """
    Convert an arbitrary string into a stable, ASCII-ish slug.

    Operations:
    - Remove accents
    - Trim/collapse whitespace
    - Replace non-alphanumeric characters with underscores
    - Collapse consecutive underscores and lowercase

    Example:
        "Fractal: Mega-Sena" -> "fractal_mega_sena"
    """
    s = strip_accents(collapse_whitespace(text))
    s = "".join(ch if ch.isalnum() else "_" for ch in s)
    s = "_".join([t for t in s.split("_") if t])
    return s.lower()
