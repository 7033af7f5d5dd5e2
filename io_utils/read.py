from pathlib import Path

import pandas as pd

from qc.errors import InvalidInputError

# Separators inferred from the file suffix
SEPARATORS = {".csv": ",", ".tsv": "\t", ".txt": "\t"}


def table_separator(path: Path) -> str:
    """Return the column separator for ``path`` or raise ``InvalidInputError``."""
    try:
        return SEPARATORS[path.suffix.lower()]
    except KeyError:
        raise InvalidInputError(
            f"unsupported table format '{path.suffix}' for {path.name}; "
            f"use one of: {', '.join(sorted(SEPARATORS))}"
        ) from None


def read_occurrences(path: Path) -> pd.DataFrame:
    """Read an occurrence table (CSV or tab separated) keeping every value as text.

    Darwin Core downloads from GBIF (``occurrence.txt``) and speciesLink are
    tab separated; other exports are usually comma separated.  Empty cells
    are read as missing values.

    Args:
        path: Path to the table

    Returns:
        DataFrame with one row per occurrence record
    """
    return pd.read_csv(
        path,
        sep=table_separator(path),
        dtype=str,
        keep_default_na=False,
        na_values=[""],
        encoding="utf-8",
    )
