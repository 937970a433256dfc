from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

import pandas as pd

from xlguard_io import DropdownHandler, ExcelWriter, LockHandler, load_field_table
from xlguard_io.mapping import MappingError
from xlguard_io.utils.log import get_logger

from .errors import ExportError
from .profiles import ExportProfile


ProgressCB = Callable[[str, str], None]


def read_source(path: Path) -> pd.DataFrame:
    """Load source rows from an xlsx/xls/csv file."""

    if not path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in {".xlsx", ".xls"}:
        return pd.read_excel(path)
    if suffix == ".csv":
        return pd.read_csv(path)
    raise ValueError(f"unsupported input file: {path}")


class ExportPipeline:
    """Coordinates Load -> Layout -> Write -> Lock for one export profile."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("pipeline")

    def run(
        self,
        profile: ExportProfile,
        source_path: Path,
        out_path: Path,
        *,
        password: str | None = None,
        enable_protection: bool | None = None,
        progress_cb: ProgressCB | None = None,
    ) -> dict[str, Any]:
        def progress(stage: str, detail: str = "") -> None:
            if progress_cb:
                progress_cb(stage, detail)
            self.logger.info("%s - %s", stage, detail)

        progress("1/3 load", f"reading {source_path.name}")
        try:
            table = load_field_table(Path(profile.fields_file))
            frame = read_source(source_path)
        except (OSError, ValueError, MappingError) as e:
            raise ExportError(str(e)) from e
        # Sources may carry header texts instead of field names.
        renames = {
            d.header: d.name
            for d in table
            if d.header in frame.columns and d.name not in frame.columns
        }
        frame = frame.rename(columns=renames)
        progress("1/3 load", f"{len(frame)} rows, {len(table)} declared fields")

        protect = profile.enable_protection if enable_protection is None else enable_protection
        lock = LockHandler(
            table,
            profile.override_set(),
            enable_protection=protect,
            protect_password=password if password is not None else profile.resolve_password(),
        )
        dropdown = DropdownHandler(
            table,
            profile.dynamic_options,
            last_row=profile.validation_last_row,
        )

        progress("2/3 write", f"sheet {profile.sheet_name}")
        try:
            writer = ExcelWriter(
                out_path,
                table,
                handlers=[dropdown, lock],
                exclude_fields=profile.exclude_fields,
                max_rows_per_sheet=profile.max_rows_per_sheet,
            )
            sheets = writer.write_sheet(frame, profile.sheet_name)
            progress("3/3 lock", "protecting workbook")
            output = writer.finish()
        except OSError as e:
            raise ExportError(f"Failed to write {out_path}: {e}") from e
        progress("3/3 lock", f"done: {output.name}")

        return {
            "profile": profile.name,
            "source_path": str(source_path),
            "output_path": str(output),
            "rows": len(frame),
            "sheets": [sheet.title for sheet in sheets],
            "columns": [meta.field_name for meta in writer.columns],
            "lock": lock.last_stats,
            "protected": protect,
        }
