from .logs import setup_logging
from .read import read_occurrences, table_separator
from .write import write_conflicts, write_manifest, write_occurrences

__all__ = [
    "setup_logging",
    "read_occurrences",
    "table_separator",
    "write_conflicts",
    "write_manifest",
    "write_occurrences",
]
