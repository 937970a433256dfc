"""Model-driven Excel writer that drives the handler lifecycle."""

# Module responsibilities:
# - Lay records out by the resolved column layout and write header + data rows with openpyxl.
# - Call handler hooks in a fixed order: sheet created -> header -> data rows -> workbook done.
# - Spread large record sets over several sheets when a per-sheet capacity is configured.

from __future__ import annotations

from pathlib import Path
from typing import Any, Collection, Iterable, Iterator, List, Mapping, Optional, Sequence

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.worksheet import Worksheet

from .columns import resolve_columns
from .handlers.base import CellWriteContext, SheetWriteContext, WorkbookWriteContext, WriteHandler
from .schema import ColumnMeta, FieldSource
from .utils.log import get_logger

logger = get_logger("excel_writer")

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(fill_type="solid", fgColor="D9E1F2")
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")

Records = Any


class WriterClosedError(RuntimeError):
    """Raised when a finished writer is used again."""


def _iter_records(records: Records) -> Iterator[Any]:
    if isinstance(records, pd.DataFrame):
        for _, row in records.iterrows():
            yield row
        return
    yield from records


def _chunk_rows(rows: Sequence[Any], chunk_size: Optional[int]) -> Iterable[Sequence[Any]]:
    if not chunk_size or chunk_size <= 0 or not rows:
        yield rows
        return
    for start in range(0, len(rows), chunk_size):
        yield rows[start : start + chunk_size]


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _record_value(record: Any, field_name: str) -> Any:
    if isinstance(record, (pd.Series, Mapping)):
        value = record.get(field_name)
    else:
        value = getattr(record, field_name, None)
    if isinstance(value, (list, tuple, set)):
        return "; ".join(str(v) for v in value)
    if _is_missing(value):
        return None
    return value


class ExcelWriter:
    """Write model records to an xlsx workbook, notifying registered handlers.

    Args:
        path: Output workbook path.
        model: Model type, field table or descriptors describing the columns.
        handlers: Initial handlers; more can be added with ``register_handler``.
        exclude_fields: Field names left out of every sheet.
        max_rows_per_sheet: Data rows per sheet before spilling to ``<name>_2`` ...
        header_style: Apply the bold/filled header style.
    """

    def __init__(
        self,
        path: Path | str,
        model: FieldSource,
        *,
        handlers: Iterable[WriteHandler] = (),
        exclude_fields: Collection[str] = (),
        max_rows_per_sheet: Optional[int] = None,
        header_style: bool = True,
    ) -> None:
        self.path = Path(path)
        self.model = model
        self.handlers: List[WriteHandler] = list(handlers)
        self.exclude_fields = frozenset(exclude_fields)
        self.max_rows_per_sheet = max_rows_per_sheet
        self.header_style = header_style
        self.columns: List[ColumnMeta] = resolve_columns(model, self.exclude_fields)
        self.workbook = Workbook()
        self._sheet_count = 0
        self._closed = False

    def __enter__(self) -> "ExcelWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None and not self._closed:
            self.finish()
        self._closed = True

    def register_handler(self, handler: WriteHandler) -> "ExcelWriter":
        self._check_open()
        self.handlers.append(handler)
        return self

    def _check_open(self) -> None:
        if self._closed:
            raise WriterClosedError(f"Writer for {self.path} already finished")

    def _new_sheet(self, title: str) -> Worksheet:
        if self._sheet_count == 0:
            sheet = self.workbook.active
            sheet.title = title
        else:
            sheet = self.workbook.create_sheet(title=title)
        self._sheet_count += 1
        return sheet

    def _write_cell(self, sheet: Worksheet, row_index: int, meta: ColumnMeta, value: Any, *, head: bool) -> None:
        context = CellWriteContext(
            sheet=sheet,
            row_index=row_index,
            column_index=meta.index,
            head=head,
            field_name=meta.field_name,
            value=value,
        )
        for handler in self.handlers:
            handler.before_cell_create(context)
        cell = sheet.cell(row=row_index + 1, column=meta.index + 1)
        cell.value = context.value
        if head and self.header_style:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.alignment = HEADER_ALIGNMENT
        context.cell = cell
        for handler in self.handlers:
            handler.after_cell_dispose(context)

    def _write_one(self, title: str, rows: Sequence[Any]) -> Worksheet:
        sheet = self._new_sheet(title)
        context = SheetWriteContext(
            workbook=self.workbook,
            sheet=sheet,
            sheet_no=self._sheet_count - 1,
            exclude_fields=self.exclude_fields,
        )
        for handler in self.handlers:
            handler.after_sheet_create(context)

        for meta in self.columns:
            self._write_cell(sheet, 0, meta, meta.header, head=True)
        for row_index, record in enumerate(rows, start=1):
            for meta in self.columns:
                self._write_cell(sheet, row_index, meta, _record_value(record, meta.field_name), head=False)

        logger.info(
            "Sheet written",
            extra={"sheet": title, "rows": len(rows), "columns": [m.field_name for m in self.columns]},
        )
        return sheet

    def write_sheet(self, records: Records, sheet_name: Optional[str] = None) -> List[Worksheet]:
        """Write ``records`` to a new sheet (or several, see ``max_rows_per_sheet``).

        Args:
            records: Dataclass instances, mappings or a pandas DataFrame.
            sheet_name: Title of the first sheet; defaults to ``Sheet<n>``.

        Returns:
            The worksheets created for these records.
        """

        self._check_open()
        rows = list(_iter_records(records))
        base = sheet_name or f"Sheet{self._sheet_count + 1}"
        sheets: List[Worksheet] = []
        for chunk_no, chunk in enumerate(_chunk_rows(rows, self.max_rows_per_sheet)):
            title = base if chunk_no == 0 else f"{base}_{chunk_no + 1}"
            sheets.append(self._write_one(title, chunk))
        if len(sheets) > 1:
            logger.info(
                "Records split across multiple sheets due to row capacity",
                extra={"sheets": [s.title for s in sheets]},
            )
        return sheets

    def finish(self) -> Path:
        """Run the workbook-level hooks and save the file."""

        self._check_open()
        if self._sheet_count == 0:
            self.write_sheet([])
        context = WorkbookWriteContext(workbook=self.workbook)
        for handler in self.handlers:
            handler.after_workbook_dispose(context)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.workbook.save(self.path)
        self._closed = True
        logger.info("Workbook saved", extra={"output": str(self.path), "sheets": self._sheet_count})
        return self.path


def write_records(
    path: Path | str,
    model: FieldSource,
    records: Records,
    *,
    handlers: Iterable[WriteHandler] = (),
    exclude_fields: Collection[str] = (),
    sheet_name: Optional[str] = None,
    max_rows_per_sheet: Optional[int] = None,
) -> Path:
    """One-shot helper: write ``records`` to ``path`` and finish the workbook."""

    writer = ExcelWriter(
        path,
        model,
        handlers=handlers,
        exclude_fields=exclude_fields,
        max_rows_per_sheet=max_rows_per_sheet,
    )
    writer.write_sheet(records, sheet_name)
    return writer.finish()


__all__ = ["ExcelWriter", "WriterClosedError", "write_records"]
