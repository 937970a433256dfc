"""Dropdown validations and header comments driven by field declarations."""

# Module responsibilities:
# - Attach list validations (static options first, then the dynamic option table)
#   to each resolved column, rows 1..last_row, header excluded.
# - Fall back to a hidden option sheet when a list cannot be written inline.
# - Attach declared comments to header cells before any row is written.

from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence, Tuple

from openpyxl.comments import Comment
from openpyxl.utils import get_column_letter
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.worksheet import Worksheet

from ..columns import resolve_columns
from ..schema import ColumnMeta, FieldDescriptor, FieldSource, describe
from ..utils.log import get_logger
from .base import SheetWriteContext, WriteHandler

logger = get_logger("handlers.dropdown")

DEFAULT_LAST_ROW = 200
# Excel rejects inline list formulas longer than this.
INLINE_LIST_LIMIT = 255
# Longer or comma-bearing option lists go to a hidden sheet named <prefix><field>.
OPTIONS_SHEET_PREFIX = "opt_"
MAX_SHEET_TITLE = 31
# Comment box spans the header cell plus the next column, rows 0-3.
COMMENT_COLUMN_SPAN = 2
COMMENT_ROW_SPAN = 4
_COLUMN_WIDTH_PT = 72
_ROW_HEIGHT_PT = 20


def resolve_options(
    descriptor: FieldDescriptor,
    dynamic_options: Mapping[str, Sequence[str]],
) -> Tuple[str, ...]:
    """Static options win; otherwise look the declared key up in ``dynamic_options``."""

    if descriptor.select_options:
        return tuple(descriptor.select_options)
    if descriptor.select_key:
        return tuple(str(option) for option in dynamic_options.get(descriptor.select_key, ()))
    return ()


def _inline_formula(options: Sequence[str]) -> Optional[str]:
    if any("," in option for option in options):
        return None
    body = ",".join(option.replace('"', '""') for option in options)
    if len(body) > INLINE_LIST_LIMIT:
        return None
    return f'"{body}"'


def options_sheet_title(field_name: str) -> str:
    return f"{OPTIONS_SHEET_PREFIX}{field_name}"[:MAX_SHEET_TITLE]


def _options_range(workbook: Workbook, field_name: str, options: Sequence[str]) -> str:
    """Write ``options`` to a hidden, protected sheet and return a reference to them.

    The sheet is created once per field and workbook; split data sheets reuse it.
    """

    title = options_sheet_title(field_name)
    if title not in workbook.sheetnames:
        ws = workbook.create_sheet(title=title)
        ws.append(["Allowed Values"])
        for option in options:
            ws.append([option])
        ws.sheet_state = "hidden"
        ws.protection.enable()
    return f"'{title}'!$A$2:$A${len(options) + 1}"


class DropdownHandler(WriteHandler):
    """Attach dropdown validations and header comments once the sheet exists.

    Args:
        model: Model type, field table or descriptors of the exported records.
        dynamic_options: ``select key -> options`` for fields without static options.
        last_row: Last 0-based row covered by validations (row 0 is the header).
        comment_author: Author recorded on header comments.
    """

    def __init__(
        self,
        model: FieldSource,
        dynamic_options: Optional[Mapping[str, Sequence[str]]] = None,
        last_row: int = DEFAULT_LAST_ROW,
        *,
        comment_author: str = "xlguard",
    ) -> None:
        if last_row < 1:
            raise ValueError("last_row must be >= 1")
        self.model = model
        self.dynamic_options: Dict[str, Sequence[str]] = dict(dynamic_options or {})
        self.last_row = last_row
        self.comment_author = comment_author

    def after_sheet_create(self, context: SheetWriteContext) -> None:
        descriptors = {d.name: d for d in describe(self.model)}
        for meta in resolve_columns(self.model, context.exclude_fields):
            descriptor = descriptors[meta.field_name]
            options = resolve_options(descriptor, self.dynamic_options)
            if options:
                self._add_validation(context.workbook, context.sheet, meta, options)
            if descriptor.comment:
                self._add_comment(context.sheet, meta, descriptor.comment)

    def _add_validation(
        self,
        workbook: Workbook,
        sheet: Worksheet,
        meta: ColumnMeta,
        options: Sequence[str],
    ) -> None:
        formula = _inline_formula(options)
        if formula is None:
            formula = _options_range(workbook, meta.field_name, options)
            logger.info(
                "Options moved to a hidden sheet",
                extra={"field": meta.field_name, "options": len(options), "source": formula},
            )
        letter = get_column_letter(meta.index + 1)
        validation = DataValidation(type="list", formula1=formula, allow_blank=True, showErrorMessage=True)
        # 0-based rows 1..last_row are Excel rows 2..last_row+1.
        validation.add(f"{letter}2:{letter}{self.last_row + 1}")
        sheet.add_data_validation(validation)
        logger.info(
            "Dropdown attached",
            extra={
                "index": meta.index,
                "field": meta.field_name,
                "header": meta.header,
                "options": list(options),
            },
        )

    def _add_comment(self, sheet: Worksheet, meta: ColumnMeta, text: str) -> None:
        cell = sheet.cell(row=1, column=meta.index + 1)
        comment = Comment(
            text,
            self.comment_author,
            height=COMMENT_ROW_SPAN * _ROW_HEIGHT_PT,
            width=COMMENT_COLUMN_SPAN * _COLUMN_WIDTH_PT,
        )
        cell.comment = comment
        logger.info(
            "Header comment attached",
            extra={"index": meta.index, "field": meta.field_name, "comment": text},
        )


__all__ = ["DEFAULT_LAST_ROW", "DropdownHandler", "options_sheet_title", "resolve_options"]
