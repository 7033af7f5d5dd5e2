"""Quality control of taxonomic information in occurrence tables.

``prep_family``
    Resolve one accepted family name per record using the packaged
    family synonym dictionary, falling back to an external name resolver
    (GBIF by default) for names the dictionary does not know.

``GbifFamilyResolver``
    Name resolver backed by the GBIF backbone taxonomy.
"""

from __future__ import annotations

from .errors import (
    ExternalResolutionError,
    InternalConsistencyError,
    InvalidInputError,
    ReconciliationError,
)
from .family import (
    ConflictReport,
    FamilyConflict,
    FamilyGenusPair,
    FamilyReconciler,
    FamilySynonyms,
    derive_genus,
    first_token,
    prep_family,
    strip_qualifier,
)
from .gbif import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CACHE_SIZE,
    DEFAULT_KINGDOM,
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_RETRY_ATTEMPTS,
    GbifFamilyResolver,
    NameResolver,
    resolve_many,
)

__all__ = [
    # Errors
    "ReconciliationError",
    "InvalidInputError",
    "ExternalResolutionError",
    "InternalConsistencyError",
    # Family reconciliation
    "ConflictReport",
    "FamilyConflict",
    "FamilyGenusPair",
    "FamilyReconciler",
    "FamilySynonyms",
    "derive_genus",
    "first_token",
    "prep_family",
    "strip_qualifier",
    # GBIF integration
    "NameResolver",
    "GbifFamilyResolver",
    "resolve_many",
    "DEFAULT_KINGDOM",
    "DEFAULT_MIN_CONFIDENCE",
    "DEFAULT_RETRY_ATTEMPTS",
    "DEFAULT_BACKOFF_FACTOR",
    "DEFAULT_CACHE_SIZE",
]
