"""Standardization of botanical family names in occurrence tables.

Family names are resolved per unique ``(family, genus)`` pair and then
mapped back onto every record:

1. the original family is looked up in the family synonym dictionary
   (APG IV for angiosperms, PPG I for lycophytes and ferns);
2. pairs without an answer are resolved from their genus through an
   external name resolver (GBIF by default); an answer that differs from a
   name already on record replaces it and is reported;
3. pairs still without an answer are resolved from the original family
   string and, failing that, from the genus (unless it is ``Indet.``);
4. every resolved name is run through the dictionary once more, falling
   back to the resolved name and finally to the original family.

The result is written to a new column (``family.new`` by default) and the
genus column receives the derived genera; the original family and species
columns are left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

import pandas as pd
from tabulate import tabulate

from dwc.normalize import clean_value, family_synonyms, is_unknown
from .errors import InternalConsistencyError, InvalidInputError
from .gbif import NameResolver, resolve_many

logger = logging.getLogger(__name__)

# Informal qualifiers left at the end of a genus token ("Casearia cf.")
QUALIFIER_RE = re.compile(r"\s*(?:cf|aff)\.$", re.IGNORECASE)

PairKey = Tuple[Optional[str], Optional[str]]


class FamilySynonyms:
    """Read-only mapping of family names to their accepted names."""

    def __init__(self, mapping: Mapping[str, str]):
        self._mapping = MappingProxyType(dict(mapping))

    @classmethod
    def default(cls) -> "FamilySynonyms":
        """Load the dictionary shipped in ``config/rules/family_synonyms.toml``."""
        return cls(family_synonyms())

    def lookup(self, name: Optional[str]) -> Optional[str]:
        if is_unknown(name):
            return None
        return self._mapping.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)


@dataclass
class FamilyGenusPair:
    """Unit of resolution work shared by all records with the same key."""

    family: Optional[str]
    genus: Optional[str]
    resolved: Optional[str] = None
    source: Optional[str] = None
    final: Optional[str] = None

    @property
    def key(self) -> PairKey:
        return (self.family, self.genus)


class FamilyConflict(NamedTuple):
    genus: Optional[str]
    old_family: Optional[str]
    new_family: str


@dataclass
class ConflictReport:
    """Family names replaced because the resolver disagreed with them."""

    conflicts: List[FamilyConflict] = field(default_factory=list)

    def add(self, genus: Optional[str], old_family: Optional[str], new_family: str) -> None:
        conflict = FamilyConflict(genus, old_family, new_family)
        if conflict not in self.conflicts:
            self.conflicts.append(conflict)

    def rows(self) -> List[FamilyConflict]:
        return sorted(self.conflicts, key=lambda c: (c.genus or "", c.old_family or ""))

    def render(self) -> str:
        """Return the report as a text table (Genus | Old fam. | New fam.)."""
        return tabulate(
            [list(row) for row in self.rows()],
            headers=["Genus", "Old fam.", "New fam."],
            tablefmt="pipe",
            missingval="NA",
        )

    def __bool__(self) -> bool:
        return bool(self.conflicts)

    def __len__(self) -> int:
        return len(self.conflicts)


# ----------------------------------------------------------------------
# Genus derivation
# ----------------------------------------------------------------------
def first_token(name: Optional[str]) -> Optional[str]:
    """Return the first whitespace-delimited token of ``name``."""

    if is_unknown(name):
        return None
    return name.split()[0]


def strip_qualifier(genus: Optional[str]) -> Optional[str]:
    """Remove a trailing ``cf.``/``aff.`` from ``genus``."""

    if is_unknown(genus):
        return None
    return clean_value(QUALIFIER_RE.sub("", genus).strip())


def derive_genus(
    genera: Iterable[Optional[str]], species: Iterable[Optional[str]]
) -> List[Optional[str]]:
    """Fill unknown genera from the species name and drop informal qualifiers."""

    derived = []
    for genus, name in zip(genera, species):
        if is_unknown(genus):
            genus = first_token(name)
        derived.append(strip_qualifier(genus))
    return derived


# ----------------------------------------------------------------------
# Reconciler
# ----------------------------------------------------------------------
@dataclass
class FamilyReconciler:
    """Resolve one accepted family name per record of an occurrence table.

    ``resolver`` may be ``None`` in which case only the dictionary is used.
    """

    synonyms: FamilySynonyms = field(default_factory=FamilySynonyms.default)
    resolver: Optional[NameResolver] = None
    family_column: str = "family"
    genus_column: str = "genus"
    species_column: str = "scientificName"
    output_column: str = "family.new"
    fuzzy: bool = True
    genus_overrides_dictionary: bool = False
    indeterminate: str = "Indet."
    print_report: bool = True

    @classmethod
    def from_config(
        cls,
        cfg: Dict[str, Any],
        resolver: Optional[NameResolver] = None,
        synonyms: Optional[FamilySynonyms] = None,
    ) -> "FamilyReconciler":
        """Create a reconciler from the ``[family]`` and ``[gbif]`` sections."""
        fam_cfg = cfg.get("family", {})
        return cls(
            synonyms=synonyms if synonyms is not None else FamilySynonyms.default(),
            resolver=resolver,
            family_column=fam_cfg.get("family_column", "family"),
            genus_column=fam_cfg.get("genus_column", "genus"),
            species_column=fam_cfg.get("species_column", "scientificName"),
            output_column=fam_cfg.get("output_column", "family.new"),
            fuzzy=cfg.get("gbif", {}).get("fuzzy", True),
            genus_overrides_dictionary=fam_cfg.get("genus_overrides_dictionary", False),
            indeterminate=fam_cfg.get("indeterminate", "Indet."),
            print_report=fam_cfg.get("print_report", True),
        )

    def _check_input(self, df: Any) -> None:
        if not isinstance(df, pd.DataFrame):
            raise InvalidInputError("input object needs to be a data frame")
        if len(df.index) == 0:
            raise InvalidInputError("input data frame is empty")
        if self.family_column not in df.columns:
            raise InvalidInputError(
                f"input data frame must have a column with family names ('{self.family_column}')"
            )
        if self.species_column not in df.columns:
            raise InvalidInputError(
                f"input data frame must have a column with species names ('{self.species_column}')"
            )

    # ------------------------------------------------------------------
    # Resolution stages
    # ------------------------------------------------------------------
    def _lookup_dictionary(self, pairs: Iterable[FamilyGenusPair]) -> None:
        for pair in pairs:
            accepted = self.synonyms.lookup(pair.family)
            if accepted is not None:
                pair.resolved = accepted
                pair.source = "dictionary"

    def _resolve_by_genus(self, pairs: List[FamilyGenusPair], report: ConflictReport) -> None:
        candidates = [
            p
            for p in pairs
            if p.genus is not None and (p.resolved is None or self.genus_overrides_dictionary)
        ]
        answers = resolve_many(self.resolver, (p.genus for p in candidates), fuzzy=self.fuzzy)
        for pair in candidates:
            answer = answers.get(pair.genus)
            if answer is None:
                continue
            if pair.resolved is not None and answer != pair.resolved:
                report.add(pair.genus, pair.family, answer)
            pair.resolved = answer
            pair.source = "genus"

    def _resolve_missing(self, pairs: List[FamilyGenusPair]) -> None:
        missing = [p for p in pairs if p.resolved is None]
        if not missing:
            return
        by_family = resolve_many(
            self.resolver, (p.family for p in missing), fuzzy=self.fuzzy, replace_synonyms=False
        )
        retry = [
            p
            for p in missing
            if by_family.get(p.family) is None and p.genus not in (None, self.indeterminate)
        ]
        by_genus = resolve_many(
            self.resolver, (p.genus for p in retry), fuzzy=self.fuzzy, replace_synonyms=False
        )
        for pair in missing:
            answer = by_family.get(pair.family)
            source = "family"
            if answer is None:
                answer = by_genus.get(pair.genus)
                source = "genus"
            if answer is not None:
                pair.resolved = answer
                pair.source = source

    def _revalidate(self, pairs: Iterable[FamilyGenusPair]) -> None:
        for pair in pairs:
            if pair.resolved is None:
                pair.final = pair.family
                continue
            accepted = self.synonyms.lookup(pair.resolved)
            pair.final = accepted if accepted is not None else pair.resolved

    def _rejoin(
        self, keys: List[PairKey], pairs: Dict[PairKey, FamilyGenusPair]
    ) -> List[Optional[str]]:
        names = []
        for row, key in enumerate(keys):
            pair = pairs.get(key)
            if pair is None:
                raise InternalConsistencyError(f"record {row} with key {key!r} has no resolved pair")
            names.append(pair.final)
        return names

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def reconcile(self, df: pd.DataFrame) -> Tuple[pd.DataFrame, ConflictReport]:
        """Return a copy of ``df`` with the resolved family column and the conflict report."""

        self._check_input(df)

        families = [clean_value(v) for v in df[self.family_column]]
        species = [clean_value(v) for v in df[self.species_column]]
        if self.genus_column in df.columns:
            genera = [clean_value(v) for v in df[self.genus_column]]
        else:
            genera = [None] * len(families)
        genera = derive_genus(genera, species)

        # Row position is the record identity; keys line up with it
        keys: List[PairKey] = list(zip(families, genera))
        pairs: Dict[PairKey, FamilyGenusPair] = {}
        for family, genus in keys:
            if (family, genus) not in pairs:
                pairs[(family, genus)] = FamilyGenusPair(family, genus)
        pair_list = list(pairs.values())
        logger.info("Reconciling %d records (%d family/genus pairs)", len(keys), len(pair_list))

        self._lookup_dictionary(pair_list)
        logger.debug(
            "Dictionary resolved %d of %d pairs",
            sum(1 for p in pair_list if p.resolved is not None),
            len(pair_list),
        )

        report = ConflictReport()
        if self.resolver is not None:
            self._resolve_by_genus(pair_list, report)
            self._resolve_missing(pair_list)
        else:
            logger.debug("No name resolver configured; skipping external lookups")

        self._revalidate(pair_list)
        unresolved = sum(1 for p in pair_list if p.resolved is None)
        if unresolved:
            logger.info("%d family/genus pairs kept their original family name", unresolved)

        if self.print_report and report:
            logger.warning(
                "The following family names were automatically replaced:\n%s", report.render()
            )

        result = df.copy()
        result[self.genus_column] = genera
        result[self.output_column] = self._rejoin(keys, pairs)
        return result, report


def prep_family(
    df: pd.DataFrame,
    fam_name: str = "family",
    gen_name: str = "genus",
    spp_name: str = "scientificName",
    print_report: bool = True,
    resolver: Optional[NameResolver] = None,
    synonyms: Optional[FamilySynonyms] = None,
    genus_overrides_dictionary: bool = False,
) -> pd.DataFrame:
    """Standardize botanical family names of ``df``.

    Parameters
    ----------
    df:
        Occurrence table with at least a family and a species column.
    fam_name, gen_name, spp_name:
        Column names for family, genus (optional, derived from the species
        name when absent) and species.
    print_report:
        Log the family names that were automatically replaced.
    resolver:
        External name resolver used when the dictionary has no answer.
    synonyms:
        Family synonym dictionary; the packaged APG IV / PPG I table by default.
    genus_overrides_dictionary:
        Also check dictionary answers against the genus-based resolution.

    Returns
    -------
    pandas.DataFrame
        ``df`` with the additional column ``family.new``.
    """

    reconciler = FamilyReconciler(
        synonyms=synonyms if synonyms is not None else FamilySynonyms.default(),
        resolver=resolver,
        family_column=fam_name,
        genus_column=gen_name,
        species_column=spp_name,
        genus_overrides_dictionary=genus_overrides_dictionary,
        print_report=print_report,
    )
    result, _ = reconciler.reconcile(df)
    return result


__all__ = [
    "FamilySynonyms",
    "FamilyGenusPair",
    "FamilyConflict",
    "ConflictReport",
    "FamilyReconciler",
    "first_token",
    "strip_qualifier",
    "derive_genus",
    "prep_family",
]
