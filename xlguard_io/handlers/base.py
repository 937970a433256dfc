"""Write lifecycle hooks shared by the writer and its handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Optional

from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet


@dataclass(frozen=True)
class SheetWriteContext:
    """Handed to ``after_sheet_create`` before any row is written."""

    workbook: Workbook
    sheet: Worksheet
    sheet_no: int
    exclude_fields: FrozenSet[str] = field(default_factory=frozenset)


@dataclass
class CellWriteContext:
    """Handed to the per-cell hooks. Indices are 0-based; ``cell`` is None before creation."""

    sheet: Worksheet
    row_index: int
    column_index: int
    head: bool
    field_name: Optional[str] = None
    value: Any = None
    cell: Any = None


@dataclass(frozen=True)
class WorkbookWriteContext:
    """Handed to ``after_workbook_dispose`` once every sheet is written."""

    workbook: Workbook


class WriteHandler:
    """Base class for write handlers; override only the hooks you need."""

    def after_sheet_create(self, context: SheetWriteContext) -> None:
        pass

    def before_cell_create(self, context: CellWriteContext) -> None:
        pass

    def after_cell_dispose(self, context: CellWriteContext) -> None:
        pass

    def after_workbook_dispose(self, context: WorkbookWriteContext) -> None:
        pass


__all__ = ["SheetWriteContext", "CellWriteContext", "WorkbookWriteContext", "WriteHandler"]
