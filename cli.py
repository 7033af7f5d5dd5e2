from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any
from importlib import resources
import tomllib

import typer

from dwc import format_occ
from io_utils import (
    read_occurrences,
    setup_logging,
    table_separator,
    write_conflicts,
    write_manifest,
    write_occurrences,
)
from qc import FamilyReconciler, GbifFamilyResolver, ReconciliationError
from qc.family import ConflictReport


def load_config(config_path: Optional[Path]) -> Dict[str, Any]:
    cfg_path = resources.files("config").joinpath("config.default.toml")
    with cfg_path.open("rb") as f:
        config = tomllib.load(f)
    if config_path:
        with config_path.open("rb") as f:
            user_cfg = tomllib.load(f)
        _deep_update(config, user_cfg)
    return config


def _deep_update(d: Dict[str, Any], u: Dict[str, Any]) -> Dict[str, Any]:
    for k, v in u.items():
        if isinstance(v, dict) and isinstance(d.get(k), dict):
            _deep_update(d[k], v)
        else:
            d[k] = v
    return d


def setup_run(input: Path, output: Path, config: Optional[Path]) -> Dict[str, Any]:
    """Prepare configuration and logging for a run.

    Both table formats are checked first so an unsupported output suffix
    fails before any record is processed.
    """
    table_separator(input)
    table_separator(output)
    cfg = load_config(config)
    setup_logging(output.parent, cfg.get("logging", {}).get("level", "INFO"))
    return cfg


def family_cli(
    input: Path,
    output: Path,
    config: Optional[Path] = None,
    offline: bool = False,
    print_report: Optional[bool] = None,
    conflicts: Optional[Path] = None,
) -> ConflictReport:
    """Standardize the family names of ``input`` and write the result to ``output``."""
    cfg = setup_run(input, output, config)
    if print_report is not None:
        cfg.setdefault("family", {})["print_report"] = print_report

    resolver = None if offline else GbifFamilyResolver.from_config(cfg)
    reconciler = FamilyReconciler.from_config(cfg, resolver=resolver)

    df = read_occurrences(input)
    result, report = reconciler.reconcile(df)
    write_occurrences(result, output)
    if conflicts:
        write_conflicts(conflicts, report)

    write_manifest(
        output.parent,
        {
            "command": "family",
            "input": str(input),
            "output": str(output),
            "records": len(result.index),
            "replaced_families": len(report),
            "offline": offline,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "config": cfg,
        },
    )
    logging.info(
        "Processed %d records. Output written to %s | %d family names replaced",
        len(result.index),
        output,
        len(report),
    )
    return report


def format_cli(input: Path, output: Path, config: Optional[Path] = None) -> None:
    """Format names, numbers, dates and codes of ``input`` and write to ``output``."""
    cfg = setup_run(input, output, config)
    fmt_cfg = cfg.get("format", {})

    df = read_occurrences(input)
    result = format_occ(
        df,
        no_numb=fmt_cfg.get("no_numb", "s.n."),
        no_year=fmt_cfg.get("no_year", "n.d."),
        no_name=fmt_cfg.get("no_name", "s.n."),
    )
    write_occurrences(result, output)
    write_manifest(
        output.parent,
        {
            "command": "format",
            "input": str(input),
            "output": str(output),
            "records": len(result.index),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "config": cfg,
        },
    )
    logging.info("Processed %d records. Output written to %s", len(result.index), output)


app = typer.Typer(help="Herbarium occurrence record cleaning")


@app.command()
def family(
    input: Path = typer.Option(
        ...,
        "--input",
        "-i",
        exists=True,
        file_okay=True,
        dir_okay=False,
        help="Occurrence table (.csv, .tsv or .txt)",
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        file_okay=True,
        dir_okay=False,
        help="Output table",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        file_okay=True,
        help="Optional config file",
    ),
    offline: bool = typer.Option(
        False,
        "--offline",
        help="Use only the family dictionary (no GBIF lookups)",
    ),
    report: Optional[bool] = typer.Option(
        None,
        "--report/--no-report",
        help="Log the family names that were automatically replaced",
    ),
    conflicts: Optional[Path] = typer.Option(
        None,
        "--conflicts",
        file_okay=True,
        dir_okay=False,
        help="Write the replaced family names to this CSV file",
    ),
) -> None:
    """Standardize botanical family names (APG IV / PPG I)."""
    try:
        replaced = family_cli(input, output, config, offline, report, conflicts)
    except ReconciliationError as e:
        typer.echo(f"❌ Family standardization failed: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✅ Families standardized: {output}")
    if replaced:
        typer.echo(f"🔁 Replaced family names: {len(replaced)}")


@app.command("format")
def format_(
    input: Path = typer.Option(
        ...,
        "--input",
        "-i",
        exists=True,
        file_okay=True,
        dir_okay=False,
        help="Occurrence table (.csv, .tsv or .txt)",
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        file_okay=True,
        dir_okay=False,
        help="Output table",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        file_okay=True,
        help="Optional config file",
    ),
) -> None:
    """Format collector names, numbers, dates and collection codes."""
    try:
        format_cli(input, output, config)
    except ReconciliationError as e:
        typer.echo(f"❌ Formatting failed: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✅ Occurrences formatted: {output}")


if __name__ == "__main__":
    app()
