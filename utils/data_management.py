# utils/data_management.py

# =========================================
# Necessary imports
# =========================================

from __future__ import annotations

import json
import logging
import re

from pathlib import Path
from typing  import Dict, List, Tuple

from utils.forms_schema import FormVariant, forms_schema

logger = logging.getLogger(__name__)


# =========================================
# Data management
# =========================================

def load_json(source: str | Path | Dict) -> Dict:
    """
    Load a JSON object from multiple input types.

    Parameters
    ----------
    source:
        - dict: returned as-is
        - Path: read as UTF-8 (accepts BOM via utf-8-sig) and parsed as JSON
        - str: either a filesystem path to a JSON file, or a raw JSON string

    Returns
    -------
    dict
        The parsed JSON object.

    Notes
    -----
    A malformed file raises `json.JSONDecodeError`; form definitions are part
    of the deployment, so the error is left to surface at startup.
    """
    if isinstance(source, dict):
        return source

    if isinstance(source, Path):
        return json.loads(source.read_text(encoding="utf-8-sig"))

    # accept either a file path string or a JSON string
    p = Path(str(source))
    try:
        is_file = p.exists()
    except OSError:
        is_file = False # raw JSON longer than a valid path name
    if is_file:
        return json.loads(p.read_text(encoding="utf-8-sig"))

    return json.loads(str(source).lstrip("\ufeff"))


def load_form_variant(source: str | Path | Dict) -> FormVariant:
    """Load and normalize a single form definition."""
    return forms_schema(load_json(source))


def discover_forms(forms_root: str | Path) -> List[Tuple[str, Path]]:
    """
    Scan `forms_root` for *.json form definitions.

    Returns
    -------
    list[tuple[str, Path]]
        `(label, path)` pairs sorted by label. The label comes from the
        "title"/"titulo" field when the file can be read, otherwise from the
        file stem.
    """
    root = Path(forms_root)
    if not root.is_absolute() and not root.exists():
        # Support running Streamlit from a different working directory.
        root = Path(__file__).resolve().parents[1] / root
    if not root.exists():
        return []

    found: List[Tuple[str, Path]] = []
    for f in sorted(root.glob("*.json")):
        label = f.stem
        try:
            data = load_json(f)
            label = str(data.get("title") or data.get("titulo") or f.stem)
            label = re.sub(r"\s+", " ", label).strip()
        except (OSError, ValueError):
            logger.warning("Could not read form definition %s; using file name", f.name)
        found.append((label, f))

    found.sort(key=lambda t: t[0].lower())
    return found
