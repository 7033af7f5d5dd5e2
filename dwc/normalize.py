from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional
import tomllib

import pandas as pd

# Base directory for rule files
_RULES_DIR = Path(__file__).resolve().parent.parent / "config" / "rules"

# Values that aggregators use for "no data" in text columns
MISSING_STRINGS = frozenset({"", "NA"})


@lru_cache(maxsize=None)
def _load_rules(name: str) -> Dict[str, Any]:
    """Load a TOML rule file from the configuration directory.

    Parameters
    ----------
    name: str
        Name of the rule file without extension.
    """

    path = _RULES_DIR / f"{name}.toml"
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh)


def is_unknown(value: Any) -> bool:
    """Return ``True`` when ``value`` carries no usable information.

    Missing values (``None``, ``NaN``, ``pd.NA``), empty or whitespace-only
    strings and the literal ``"NA"`` are all treated alike.
    """

    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() in MISSING_STRINGS
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def clean_value(value: Any) -> Optional[str]:
    """Return ``value`` as a string, or ``None`` if it is unknown."""

    if is_unknown(value):
        return None
    return str(value)


def family_synonyms() -> Dict[str, str]:
    """Return the packaged family synonym table (name -> accepted name)."""

    return dict(_load_rules("family_synonyms").get("families", {}))


def normalize_institution(value: str | None) -> str | None:
    """Return the normalised institution code for ``value``.

    The function consults ``config/rules/institutions.toml`` which is
    expected to contain a simple mapping of aliases to canonical codes.
    If no rule matches, the stripped and upper-cased ``value`` is returned.
    """

    if is_unknown(value):
        return None
    cleaned = " ".join(str(value).split())
    rules = _load_rules("institutions")
    mapping = {k.lower(): v for k, v in rules.items()}
    return mapping.get(cleaned.lower(), cleaned.upper())


def normalize_collection_code(value: str | None) -> str | None:
    """Return ``value`` stripped of spaces and punctuation padding, upper-cased."""

    if is_unknown(value):
        return None
    return " ".join(str(value).split()).strip(" .-_").upper() or None
