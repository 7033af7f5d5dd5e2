from pathlib import Path
from typing import Any, Dict
import csv
import json

import pandas as pd

from qc.family import ConflictReport

from .read import table_separator

CONFLICT_COLUMNS = ["genus", "old_family", "new_family"]


def write_manifest(output_dir: Path, meta: Dict[str, Any]) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    manifest_path = output_dir / "manifest.json"
    manifest_path.write_text(json.dumps(meta, indent=2))


def write_occurrences(df: pd.DataFrame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, sep=table_separator(path), index=False)


def write_conflicts(path: Path, report: ConflictReport) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CONFLICT_COLUMNS)
        for row in report.rows():
            writer.writerow(["" if v is None else v for v in row])
