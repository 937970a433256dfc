"""YAML-backed field tables for record types without dataclass declarations."""

# Module responsibilities:
# - Load FieldTable definitions from YAML so profiles can export plain dict/DataFrame rows.
# - Reject malformed payloads early with MappingError.

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from .schema import UNSET_INDEX, FieldTable

_ALLOWED_KEYS = {"name", "header", "index", "ignore", "editable", "options", "key", "comment"}


class MappingError(RuntimeError):
    """Raised when a field table definition is invalid."""


def _as_bool(value: Any, *, field: str, attr: str) -> bool:
    if isinstance(value, bool):
        return value
    raise MappingError(f"Field '{field}': '{attr}' must be true/false, got {value!r}")


def _build_entry(table: FieldTable, position: int, entry: Any) -> None:
    if not isinstance(entry, Mapping):
        raise MappingError(f"fields[{position}] must be a mapping")
    if unknown := set(entry) - _ALLOWED_KEYS:
        raise MappingError(f"fields[{position}] has unknown keys: {', '.join(sorted(unknown))}")
    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        raise MappingError(f"fields[{position}] requires a non-empty 'name'")
    name = name.strip()

    options = entry.get("options") or []
    if not isinstance(options, list):
        raise MappingError(f"Field '{name}': 'options' must be a list")
    try:
        index = int(entry.get("index", UNSET_INDEX))
    except (TypeError, ValueError) as exc:
        raise MappingError(f"Field '{name}': 'index' must be an integer") from exc
    if index < UNSET_INDEX:
        raise MappingError(f"Field '{name}': 'index' must be >= 0 or -1 for automatic placement")

    header = entry.get("header")
    comment = entry.get("comment")
    try:
        table.add(
            name,
            str(header) if header is not None else None,
            index=index,
            ignore=_as_bool(entry.get("ignore", False), field=name, attr="ignore"),
            editable=_as_bool(entry.get("editable", True), field=name, attr="editable"),
            options=[str(option) for option in options],
            key=str(entry.get("key") or ""),
            comment=str(comment) if comment else None,
        )
    except ValueError as exc:
        raise MappingError(str(exc)) from exc


def field_table_from_payload(payload: Any) -> FieldTable:
    """Build a FieldTable from an already-parsed YAML/JSON payload."""

    if not isinstance(payload, Mapping):
        raise MappingError("Invalid field table structure (expected mapping)")
    entries = payload.get("fields")
    if not isinstance(entries, list) or not entries:
        raise MappingError("Field table requires a non-empty 'fields' list")
    table = FieldTable()
    for position, entry in enumerate(entries):
        _build_entry(table, position, entry)
    return table


def load_field_table(path: Path) -> FieldTable:
    """Load a field table from a YAML file.

    Raises:
        FileNotFoundError: When ``path`` does not exist.
        MappingError: When the payload is malformed.
    """

    if not path.exists():
        raise FileNotFoundError(f"Field table not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        payload = yaml.safe_load(fh)
    return field_table_from_payload(payload)


__all__ = ["MappingError", "field_table_from_payload", "load_field_table"]
