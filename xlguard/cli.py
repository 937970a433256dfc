"""Typer based command line entry points for xlguard."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer

from xlguard.core.errors import ConfigError, ExportError
from xlguard.core.pipeline import ExportPipeline
from xlguard.core.profiles import get_profile
from xlguard_io.columns import resolve_columns
from xlguard_io.mapping import MappingError, load_field_table
from xlguard_io.policy import resolve_editable_map
from xlguard_io.utils.log import get_logger, set_level
from xlguard_io.utils.paths import prepare_output_path

app = typer.Typer(help="Write Excel workbooks with locked columns, dropdowns and header comments.")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    level_value = getattr(logging, log_level.upper(), None)
    if not isinstance(level_value, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")
    set_level(level_value)


@app.command("export")
def export(
    profile_name: str = typer.Argument(..., help="Profile key from profiles.yaml"),
    source: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True, help="Source xlsx/csv file"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Output workbook path"),
    profiles: Optional[Path] = typer.Option(None, "--profiles", help="Alternative profiles.yaml"),
    password: Optional[str] = typer.Option(None, "--password", help="Override the protection password"),
    protect: Optional[bool] = typer.Option(None, "--protect/--no-protect", help="Override sheet protection"),
) -> None:
    """Export SOURCE through PROFILE into a protected workbook."""

    logger = get_logger("cli")
    try:
        profile = get_profile(profile_name, profiles)
    except ConfigError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc

    out_path = out or prepare_output_path(f"{source.stem}_{profile.name}.xlsx")
    try:
        result = ExportPipeline().run(
            profile,
            source,
            out_path,
            password=password,
            enable_protection=protect,
        )
    except ExportError as exc:
        logger.error("export failed profile=%s source=%s: %s", profile_name, source, exc)
        typer.secho(f"Export failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Rows exported: {result['rows']}")
    typer.echo(f"Output: {result['output_path']}")


@app.command("columns")
def columns(
    fields_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML field table"),
    exclude: List[str] = typer.Option([], "--exclude", "-x", help="Field name to exclude (repeatable)"),
    editable: Optional[List[str]] = typer.Option(None, "--editable", "-e", help="Editable override (repeatable)"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show the resolved column layout and editable flags for FIELDS_FILE."""

    try:
        table = load_field_table(fields_file)
    except MappingError as exc:
        typer.secho(f"Invalid field table: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc

    override = set(editable) if editable else None
    editable_map = resolve_editable_map(table, override)
    layout = [
        {
            "index": meta.index,
            "field": meta.field_name,
            "header": meta.header,
            "editable": editable_map.get(meta.field_name, True),
        }
        for meta in resolve_columns(table, exclude)
    ]
    if as_json:
        typer.echo(json.dumps(layout, ensure_ascii=False))
        return
    for item in layout:
        flag = "editable" if item["editable"] else "locked"
        typer.echo(f"{item['index']:>3}  {item['field']:<24} {item['header']:<24} {flag}")


if __name__ == "__main__":
    app()
