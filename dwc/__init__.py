from .normalize import (
    is_unknown,
    clean_value,
    family_synonyms,
    normalize_institution,
    normalize_collection_code,
)
from .occurrence import (
    fix_name,
    prep_name,
    miss_name,
    last_name,
    col_number,
    get_year,
    get_code,
    format_occ,
)

__all__ = [
    "is_unknown",
    "clean_value",
    "family_synonyms",
    "normalize_institution",
    "normalize_collection_code",
    "fix_name",
    "prep_name",
    "miss_name",
    "last_name",
    "col_number",
    "get_year",
    "get_code",
    "format_occ",
]
