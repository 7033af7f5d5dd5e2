"""GBIF backbone lookup used to resolve family names.

The module provides a small wrapper around the GBIF species match
endpoint (through ``pygbif``) that answers one question: which family
does a genus or family string belong to.  It is the fallback used by the
family reconciler when the synonym dictionary has no answer.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
import logging
import time
from typing import Any, Dict, Iterable, Optional, Protocol, Tuple, runtime_checkable

from pygbif import species

from dwc.normalize import clean_value, is_unknown
from .errors import ExternalResolutionError

DEFAULT_KINGDOM = "Plantae"
DEFAULT_MIN_CONFIDENCE = 0.0
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_BACKOFF_FACTOR = 1.0
DEFAULT_CACHE_SIZE = 1000

logger = logging.getLogger(__name__)


@runtime_checkable
class NameResolver(Protocol):
    """Anything that maps a genus or family string to a family name."""

    def resolve(
        self, query: str, fuzzy: bool = True, replace_synonyms: bool = True
    ) -> Optional[str]:
        """Return the family for ``query`` or ``None`` when not found."""
        ...


def resolve_many(
    resolver: NameResolver,
    queries: Iterable[Optional[str]],
    fuzzy: bool = True,
    replace_synonyms: bool = True,
) -> Dict[str, Optional[str]]:
    """Resolve each distinct known query once.

    Failures of the resolver are raised as :class:`ExternalResolutionError`.
    Empty answers are returned as ``None``.
    """

    results: Dict[str, Optional[str]] = {}
    for query in sorted({q for q in queries if not is_unknown(q)}):
        try:
            answer = resolver.resolve(query, fuzzy=fuzzy, replace_synonyms=replace_synonyms)
        except ExternalResolutionError:
            raise
        except Exception as exc:
            raise ExternalResolutionError(f"name resolution failed for '{query}': {exc}") from exc
        results[query] = clean_value(answer)
    logger.debug(
        "Resolved %d of %d names (fuzzy=%s, replace_synonyms=%s)",
        sum(1 for v in results.values() if v),
        len(results),
        fuzzy,
        replace_synonyms,
    )
    return results


@dataclass
class GbifFamilyResolver:
    """Resolve family names against the GBIF backbone taxonomy with caching and retries."""

    kingdom: Optional[str] = DEFAULT_KINGDOM
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    cache_size: int = DEFAULT_CACHE_SIZE
    _cache: "OrderedDict[Tuple[str, bool, bool], Optional[str]]" = field(
        default_factory=OrderedDict, repr=False
    )

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "GbifFamilyResolver":
        """Create a resolver from the ``[gbif]`` configuration section."""
        gbif_cfg = cfg.get("gbif", {})
        return cls(
            kingdom=gbif_cfg.get("kingdom", DEFAULT_KINGDOM),
            min_confidence=gbif_cfg.get("min_confidence", DEFAULT_MIN_CONFIDENCE),
            retry_attempts=gbif_cfg.get("retry_attempts", DEFAULT_RETRY_ATTEMPTS),
            backoff_factor=gbif_cfg.get("backoff_factor", DEFAULT_BACKOFF_FACTOR),
            cache_size=gbif_cfg.get("cache_size", DEFAULT_CACHE_SIZE),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _match(self, name: str, strict: bool) -> Dict[str, Any]:
        """Call the species match endpoint with retry logic."""
        params: Dict[str, Any] = {"name": name, "strict": strict}
        if self.kingdom:
            params["kingdom"] = self.kingdom

        last_exception: Exception | None = None
        for attempt in range(max(self.retry_attempts, 1)):
            try:
                result = species.name_backbone(**params)
                logger.debug("GBIF match for '%s' (attempt %d)", name, attempt + 1)
                return result or {}
            except Exception as e:
                last_exception = e
                logger.warning("GBIF API error on attempt %d: %s", attempt + 1, e)
                if attempt < self.retry_attempts - 1:
                    time.sleep(self.backoff_factor * (2**attempt))

        logger.error("GBIF API failed after %d attempts: %s", self.retry_attempts, last_exception)
        raise ExternalResolutionError(
            f"GBIF lookup for '{name}' failed: {last_exception}"
        ) from last_exception

    def _family_from(self, result: Dict[str, Any], replace_synonyms: bool) -> Optional[str]:
        match_type = result.get("matchType", "NONE")
        if match_type == "NONE":
            return None

        confidence = (result.get("confidence") or 0) / 100.0
        if match_type == "FUZZY" and confidence < self.min_confidence:
            logger.info(
                "Rejected fuzzy match '%s' (confidence %.2f < %.2f)",
                result.get("canonicalName"),
                confidence,
                self.min_confidence,
            )
            return None

        # A family queried without synonym replacement keeps its own name
        if not replace_synonyms and result.get("rank") == "FAMILY":
            return clean_value(result.get("canonicalName"))
        return clean_value(result.get("family"))

    def resolve(
        self, query: str, fuzzy: bool = True, replace_synonyms: bool = True
    ) -> Optional[str]:
        """Return the family name GBIF associates with ``query``.

        Parameters
        ----------
        query:
            A genus or family name.
        fuzzy:
            Allow near matches (``strict=False`` in the GBIF API).
        replace_synonyms:
            When ``False`` a family-rank match returns the matched name even
            if GBIF treats it as a synonym.
        """

        if is_unknown(query):
            return None
        key = (query, fuzzy, replace_synonyms)
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]

        family = self._family_from(self._match(query, strict=not fuzzy), replace_synonyms)

        self._cache[key] = family
        if len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return family

    def clear_cache(self) -> None:
        """Drop all cached answers."""
        self._cache.clear()


__all__ = [
    "NameResolver",
    "GbifFamilyResolver",
    "resolve_many",
    "DEFAULT_KINGDOM",
    "DEFAULT_MIN_CONFIDENCE",
    "DEFAULT_RETRY_ATTEMPTS",
    "DEFAULT_BACKOFF_FACTOR",
    "DEFAULT_CACHE_SIZE",
]
