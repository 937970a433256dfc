"""Cell lock handler: editable columns stay open, everything else is protected."""

# Module responsibilities:
# - Bridge the writer lifecycle hooks onto an EditableSession.
# - Resolve the policy lazily on the first cell, learn column -> field from header
#   cells, and run the lock/protection pass once the workbook is complete.

from __future__ import annotations

from typing import AbstractSet, Dict, Optional

from ..backend import SheetBackend
from ..policy import HEADER_ROW, EditableSession
from ..schema import FieldSource
from .base import CellWriteContext, WorkbookWriteContext, WriteHandler


class LockHandler(WriteHandler):
    """Lock non-editable columns and protect every sheet of the workbook.

    Two sources decide whether a column stays editable:

    * the ``editable`` flag declared on the field (default: editable);
    * ``editable_fields``, a runtime override. Listed fields are always
      editable; unlisted fields fall back to their declaration. ``None``
      (the default) means "declarations only".

    The header row is always locked. Columns whose header text matches no
    declared field stay editable.

    Example::

        writer = ExcelWriter(path, Product)
        writer.register_handler(LockHandler(Product, editable_fields={"name", "price"}))
        writer.write_sheet(products, "Products")
        writer.finish()
    """

    def __init__(
        self,
        model: FieldSource,
        editable_fields: Optional[AbstractSet[str]] = None,
        *,
        enable_protection: bool = True,
        protect_password: Optional[str] = None,
        backend: Optional[SheetBackend] = None,
    ) -> None:
        self.session = EditableSession(
            model,
            editable_fields,
            enable_protection=enable_protection,
            password=protect_password,
            backend=backend,
        )
        self.last_stats: Dict[str, int] = {}

    def before_cell_create(self, context: CellWriteContext) -> None:
        self.session.ensure_resolved()

    def after_cell_dispose(self, context: CellWriteContext) -> None:
        cell = context.cell
        if cell is None:
            return
        if context.head and context.row_index == HEADER_ROW:
            self.session.observe_header(context.column_index, cell.value)

    def after_workbook_dispose(self, context: WorkbookWriteContext) -> None:
        self.last_stats = self.session.finalize(context.workbook)


__all__ = ["LockHandler"]
