"""Unit tests for the model-driven Excel writer."""

# Module responsibilities:
# - Validate hook ordering, record sources (dataclasses, dicts, DataFrames) and sheet splitting.
# - Assert defensive behaviour once the writer has finished.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest
from openpyxl import load_workbook

from xlguard_io.excel_writer import ExcelWriter, WriterClosedError, write_records
from xlguard_io.handlers import WriteHandler
from xlguard_io.schema import FieldTable, column


@dataclass
class Invoice:
    project: str = column("项目名称")
    quantity: int = column("数量", index=2)
    amount: Decimal = column("金额(USD)", index=1)
    note: str = column(ignore=True)


class Recorder(WriteHandler):
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def after_sheet_create(self, context) -> None:
        self.events.append(("sheet", context.sheet.title, context.sheet_no, context.exclude_fields))

    def before_cell_create(self, context) -> None:
        assert context.cell is None
        self.events.append(("before", context.row_index, context.column_index, context.head))

    def after_cell_dispose(self, context) -> None:
        assert context.cell is not None
        self.events.append(("after", context.row_index, context.column_index, context.cell.value))

    def after_workbook_dispose(self, context) -> None:
        self.events.append(("workbook", tuple(context.workbook.sheetnames)))


def test_hooks_fire_in_write_order(tmp_path: Path) -> None:
    recorder = Recorder()
    writer = ExcelWriter(tmp_path / "order.xlsx", Invoice, handlers=[recorder], exclude_fields={"quantity"})
    writer.write_sheet([Invoice("服务费", 1, Decimal("1200"))], "Invoice")
    writer.finish()

    assert recorder.events == [
        ("sheet", "Invoice", 0, frozenset({"quantity"})),
        ("before", 0, 0, True),
        ("after", 0, 0, "项目名称"),
        ("before", 0, 1, True),
        ("after", 0, 1, "金额(USD)"),
        ("before", 1, 0, False),
        ("after", 1, 0, "服务费"),
        ("before", 1, 1, False),
        ("after", 1, 1, Decimal("1200")),
        ("workbook", ("Invoice",)),
    ]


def test_columns_follow_resolved_layout(tmp_path: Path) -> None:
    out = write_records(tmp_path / "layout.xlsx", Invoice, [Invoice("备件", 4, Decimal("800"))], sheet_name="Invoice")
    ws = load_workbook(out)["Invoice"]
    assert [cell.value for cell in ws[1]] == ["项目名称", "金额(USD)", "数量"]
    assert [cell.value for cell in ws[2]] == ["备件", 800, 4]
    assert ws["A1"].font.bold is True
    assert not ws["A2"].font.bold


def test_dataframe_and_mapping_records(tmp_path: Path) -> None:
    table = FieldTable().add("project", "项目名称").add("amount", "金额(USD)")
    frame = pd.DataFrame(
        [
            {"project": "服务费", "amount": 1200},
            {"project": "咨询", "amount": float("nan")},
        ]
    )
    writer = ExcelWriter(tmp_path / "frame.xlsx", table)
    writer.write_sheet(frame, "Frame")
    writer.write_sheet([{"project": "备件", "amount": 800, "ignored": True}], "Dicts")
    wb = load_workbook(writer.finish())

    assert wb.sheetnames == ["Frame", "Dicts"]
    assert wb["Frame"]["A3"].value == "咨询"
    assert wb["Frame"]["B3"].value is None
    assert wb["Dicts"]["B2"].value == 800


def test_rows_split_across_sheets(tmp_path: Path) -> None:
    rows = [Invoice(f"p{n}", n, Decimal(n)) for n in range(5)]
    writer = ExcelWriter(tmp_path / "split.xlsx", Invoice, max_rows_per_sheet=2)
    sheets = writer.write_sheet(rows, "Invoice")
    assert [sheet.title for sheet in sheets] == ["Invoice", "Invoice_2", "Invoice_3"]
    wb = load_workbook(writer.finish())
    assert wb["Invoice_3"]["A1"].value == "项目名称"
    assert wb["Invoice_3"]["A2"].value == "p4"
    assert wb["Invoice_3"].max_row == 2


def test_empty_workbook_still_gets_header(tmp_path: Path) -> None:
    writer = ExcelWriter(tmp_path / "empty.xlsx", Invoice)
    ws = load_workbook(writer.finish()).active
    assert [cell.value for cell in ws[1]] == ["项目名称", "金额(USD)", "数量"]
    assert ws.max_row == 1


def test_context_manager_finishes_on_clean_exit(tmp_path: Path) -> None:
    path = tmp_path / "ctx.xlsx"
    with ExcelWriter(path, Invoice) as writer:
        writer.write_sheet([Invoice("a", 1, Decimal("1"))], "Invoice")
    assert path.exists()


def test_context_manager_skips_save_on_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.xlsx"
    with pytest.raises(RuntimeError):
        with ExcelWriter(path, Invoice):
            raise RuntimeError("boom")
    assert not path.exists()


def test_finished_writer_rejects_writes(tmp_path: Path) -> None:
    writer = ExcelWriter(tmp_path / "done.xlsx", Invoice)
    writer.finish()
    with pytest.raises(WriterClosedError):
        writer.write_sheet([], "Again")
    with pytest.raises(WriterClosedError):
        writer.finish()
