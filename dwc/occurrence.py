"""Formatting of collector names, numbers, dates and codes.

The helpers in this module standardize the fields that herbarium
aggregators (GBIF, speciesLink) deliver in many different notations.
:func:`format_occ` chains them in the order used by the cleaning
workflow and adds the results as ``<term>.new`` columns.
"""

from __future__ import annotations

from datetime import date
import logging
import re
from typing import Optional
import unicodedata

import pandas as pd

from qc.errors import InvalidInputError
from .normalize import clean_value, is_unknown, normalize_collection_code, normalize_institution

logger = logging.getLogger(__name__)

# Separators used between people in a single field
NAME_SEPARATORS_RE = re.compile(r"\s*(?:;|&|\||\s(?:and|e|y|et|und)\s)\s*", re.IGNORECASE)
ET_AL_RE = re.compile(r",?\s*(?:\bet\.?\s*al(?:ii)?\b\.?|&\s*al\b\.?)", re.IGNORECASE)
BRACKETS_RE = re.compile(r"[\[\]\(\)\{\}\"]")
NUMBER_PREFIX_RE = re.compile(r"^(?:n[°º]\.?|no\.|nr\.|num\.|#)\s*", re.IGNORECASE)
NO_NUMBER_RE = re.compile(r"^(?:s\.?\s*n\.?|s/n\.?|sem\s+n[uú]mero|n/a)$", re.IGNORECASE)
YEAR_RE = re.compile(r"(?<!\d)(1[5-9]\d{2}|20\d{2})(?!\d)")

NAME_PARTICLES = {"de", "da", "do", "das", "dos", "del", "della", "di", "du", "van", "von", "der", "den", "la", "le"}
NAME_SUFFIXES = {"filho", "neto", "sobrinho", "junior", "jr", "jr.", "jun."}
PLACEHOLDER_NAMES = {
    "",
    "sn",
    "na",
    "semnome",
    "anonymous",
    "anonimo",
    "anon",
    "unknown",
    "desconhecido",
    "ignorado",
    "indet",
    "semcoletor",
    "semdeterminador",
}


def fix_name(value: Optional[str]) -> Optional[str]:
    """Clean a people name field.

    Removes ``et al.`` and brackets, normalises the separators between
    people to ``"; "`` and makes sure initials are followed by a space.
    """

    if is_unknown(value):
        return None
    name = " ".join(str(value).split())
    name = ET_AL_RE.sub("", name)
    name = BRACKETS_RE.sub("", name)
    name = re.sub(r"\.(?=[A-Z][a-z])", ". ", name)
    people = [p.strip(" ,-") for p in NAME_SEPARATORS_RE.split(name)]
    return clean_value("; ".join(p for p in people if p))


def _format_person(name: str) -> str:
    """Return ``name`` as ``Surname, I.N.``."""

    if "," in name:
        surname, _, given = name.partition(",")
    else:
        tokens = name.split()
        if len(tokens) == 1:
            return tokens[0].capitalize() if tokens[0].islower() else tokens[0]
        cut = len(tokens) - 1
        if tokens[-1].lower() in NAME_SUFFIXES and len(tokens) > 2:
            cut -= 1
        surname = " ".join(tokens[cut:])
        given = " ".join(tokens[:cut])

    # "J.A." and "José Augusto" both give two initials
    given_tokens = [t for t in re.split(r"[.\s]+", given) if t]
    initials = "".join(
        f"{t[0].upper()}." for t in given_tokens if t.lower() not in NAME_PARTICLES and t[0].isalpha()
    )
    surname = surname.strip()
    if surname.islower():
        surname = surname.title()
    return f"{surname}, {initials}" if initials else surname


def prep_name(value: Optional[str], output: str = "first", sep_out: str = "; ") -> Optional[str]:
    """Put people names into the ``Surname, I.`` notation.

    Parameters
    ----------
    value:
        Names separated by ``"; "`` (see :func:`fix_name`).
    output:
        ``"first"`` for the main (first) person, ``"aux"`` for the others
        or ``"all"`` for everybody.
    sep_out:
        Separator used when several names are returned.
    """

    if is_unknown(value):
        return None
    people = [_format_person(p.strip()) for p in str(value).split(";") if p.strip()]
    if output == "first":
        people = people[:1]
    elif output == "aux":
        people = people[1:]
    return clean_value(sep_out.join(people))


def miss_name(value: Optional[str], no_name: str = "s.n.") -> str:
    """Replace missing or placeholder names with ``no_name``."""

    if is_unknown(value):
        return no_name
    plain = "".join(
        c for c in unicodedata.normalize("NFKD", str(value).lower()) if not unicodedata.combining(c)
    )
    if re.sub(r"[^a-z]", "", plain) in PLACEHOLDER_NAMES:
        return no_name
    return str(value)


def last_name(value: Optional[str], no_name: str = "s.n.") -> str:
    """Return the surname of a formatted name, or ``no_name``."""

    if is_unknown(value) or value == no_name:
        return no_name
    name = str(value)
    if "," in name:
        return name.split(",")[0].strip()
    return name.split()[-1]


def col_number(value: Optional[str], no_numb: str = "s.n.") -> str:
    """Standardize a collector number."""

    if is_unknown(value):
        return no_numb
    number = " ".join(str(value).split())
    if NO_NUMBER_RE.match(number):
        return no_numb
    number = NUMBER_PREFIX_RE.sub("", number)
    # Numbers read from spreadsheets often come back as floats
    if re.fullmatch(r"\d+\.0", number):
        number = number[:-2]
    suffixed = re.fullmatch(r"(\d+)\s*-?\s*([A-Za-z])", number)
    if suffixed:
        number = f"{suffixed.group(1)}{suffixed.group(2).upper()}"
    if not re.search(r"\d", number) or re.fullmatch(r"0+", number):
        return no_numb
    return number


def get_year(value: Optional[str], no_year: str = "n.d.") -> str:
    """Extract a four digit year from a date string."""

    if is_unknown(value):
        return no_year
    match = YEAR_RE.search(str(value))
    if not match or int(match.group(1)) > date.today().year:
        return no_year
    return match.group(1)


def get_code(df: pd.DataFrame) -> pd.DataFrame:
    """Add standardized ``institutionCode.new`` and ``collectionCode.new`` columns."""

    out = df.copy()
    if "institutionCode" in out.columns:
        out["institutionCode.new"] = out["institutionCode"].map(normalize_institution)
    if "collectionCode" in out.columns:
        out["collectionCode.new"] = out["collectionCode"].map(normalize_collection_code)
    return out


def _backfill(df: pd.DataFrame, target: str, source: str) -> None:
    if target not in df.columns or source not in df.columns:
        return
    missing = df[target].map(is_unknown) & ~df[source].map(is_unknown)
    if missing.any():
        logger.debug("Filling %d missing '%s' values from '%s'", int(missing.sum()), target, source)
        df[target] = df[target].astype(object).where(~missing, df[source])


def format_occ(
    df: pd.DataFrame,
    no_numb: str = "s.n.",
    no_year: str = "n.d.",
    no_name: str = "s.n.",
) -> pd.DataFrame:
    """Format names, numbers, dates and codes of an occurrence table.

    Missing collection years are taken from ``eventDate`` and then
    ``verbatimEventDate``; missing identification dates from
    ``yearIdentified``.  Columns absent from ``df`` are skipped.

    Returns
    -------
    pandas.DataFrame
        A copy of ``df`` with the ``.new``/``.aux`` columns and ``last.name``.
    """

    if not isinstance(df, pd.DataFrame):
        raise InvalidInputError("input object needs to be a data frame")
    if len(df.index) == 0:
        raise InvalidInputError("input data frame is empty")

    out = df.copy()
    _backfill(out, "year", "eventDate")
    _backfill(out, "year", "verbatimEventDate")
    _backfill(out, "dateIdentified", "yearIdentified")

    out = get_code(out)

    if "recordNumber" in out.columns:
        out["recordNumber.new"] = out["recordNumber"].map(lambda v: col_number(v, no_numb))
    if "year" in out.columns:
        out["year.new"] = out["year"].map(lambda v: get_year(v, no_year))
    if "dateIdentified" in out.columns:
        out["yearIdentified.new"] = out["dateIdentified"].map(lambda v: get_year(v, no_year))

    for term in ("recordedBy", "identifiedBy"):
        if term not in out.columns:
            continue
        fixed = out[term].map(fix_name)
        out[f"{term}.aux"] = fixed.map(lambda v: prep_name(v, output="aux"))
        out[f"{term}.new"] = fixed.map(lambda v: miss_name(prep_name(v, output="first"), no_name))

    if "recordedBy.new" in out.columns:
        out["last.name"] = out["recordedBy.new"].map(lambda v: last_name(v, no_name))

    logger.info("Formatted %d occurrence records", len(out.index))
    return out


__all__ = [
    "fix_name",
    "prep_name",
    "miss_name",
    "last_name",
    "col_number",
    "get_year",
    "get_code",
    "format_occ",
]
