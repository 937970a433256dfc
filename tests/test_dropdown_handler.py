"""Tests for dropdown validations and header comments."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook

from xlguard_io.excel_writer import ExcelWriter
from xlguard_io.handlers import DropdownHandler, LockHandler, SheetWriteContext
from xlguard_io.handlers.dropdown import (
    COMMENT_COLUMN_SPAN,
    COMMENT_ROW_SPAN,
    options_sheet_title,
    resolve_options,
)
from xlguard_io.schema import FieldDescriptor, column


@dataclass
class Stocked:
    id: int = column("ID", comment="不要修改！！！")
    name: str = column("Name")
    stock: str = column("Stock", options=["A", "B"], key="colors")
    color: str = column("Color", key="colors")
    size: str = column("Size", key="sizes")


COLORS = {"colors": ["red", "blue"]}


def _write(path: Path, handler: DropdownHandler, *, exclude=()) -> Path:
    writer = ExcelWriter(path, Stocked, exclude_fields=exclude)
    writer.register_handler(handler)
    writer.write_sheet([Stocked(1, "widget", "A", "red", "M")], "Items")
    return writer.finish()


def _validations(path: Path) -> dict[str, str]:
    ws = load_workbook(path)["Items"]
    return {str(dv.sqref): dv.formula1 for dv in ws.data_validations.dataValidation}


def test_static_options_win_over_dynamic_key() -> None:
    descriptor = FieldDescriptor(name="stock", header="Stock", select_options=("A", "B"), select_key="colors")
    assert resolve_options(descriptor, COLORS) == ("A", "B")


def test_dynamic_key_lookup_and_missing_key() -> None:
    color = FieldDescriptor(name="color", header="Color", select_key="colors")
    size = FieldDescriptor(name="size", header="Size", select_key="sizes")
    plain = FieldDescriptor(name="name", header="Name")
    assert resolve_options(color, COLORS) == ("red", "blue")
    assert resolve_options(size, COLORS) == ()
    assert resolve_options(plain, COLORS) == ()


def test_validations_cover_data_rows_of_resolved_columns(tmp_path: Path) -> None:
    out = _write(tmp_path / "dropdown.xlsx", DropdownHandler(Stocked, COLORS))
    assert _validations(out) == {
        "C2:C201": '"A,B"',
        "D2:D201": '"red,blue"',
    }
    dv = load_workbook(out)["Items"].data_validations.dataValidation[0]
    assert dv.type == "list"
    assert dv.showErrorMessage is True


def test_validations_shift_with_exclusions(tmp_path: Path) -> None:
    out = _write(tmp_path / "excluded.xlsx", DropdownHandler(Stocked, COLORS, last_row=50), exclude={"name"})
    assert _validations(out) == {
        "B2:B51": '"A,B"',
        "C2:C51": '"red,blue"',
    }


def test_options_with_commas_use_hidden_sheet(tmp_path: Path) -> None:
    out = _write(tmp_path / "commas.xlsx", DropdownHandler(Stocked, {"colors": ["red, dark", "blue"]}))
    assert _validations(out) == {
        "C2:C201": '"A,B"',
        "D2:D201": "'opt_color'!$A$2:$A$3",
    }
    wb = load_workbook(out)
    options = wb[options_sheet_title("color")]
    assert options.sheet_state == "hidden"
    assert options.protection.sheet is True
    assert [row[0] for row in options.iter_rows(values_only=True)] == ["Allowed Values", "red, dark", "blue"]
    assert wb.active.title == "Items"


def test_long_option_list_uses_hidden_sheet(tmp_path: Path) -> None:
    departments = [f"Department-{n:03d}" for n in range(30)]
    out = _write(tmp_path / "long.xlsx", DropdownHandler(Stocked, {"colors": departments}))
    assert _validations(out)["D2:D201"] == "'opt_color'!$A$2:$A$31"
    options = load_workbook(out)["opt_color"]
    assert options["A31"].value == "Department-029"


def test_hidden_option_sheet_shared_by_split_sheets(tmp_path: Path) -> None:
    departments = [f"Department-{n:03d}" for n in range(30)]
    writer = ExcelWriter(tmp_path / "split.xlsx", Stocked, max_rows_per_sheet=1)
    writer.register_handler(DropdownHandler(Stocked, {"colors": departments}))
    lock = LockHandler(Stocked)
    writer.register_handler(lock)
    writer.write_sheet([Stocked(1, "a", "A", "x", "M"), Stocked(2, "b", "B", "y", "L")], "Items")
    wb = load_workbook(writer.finish())

    assert sorted(wb.sheetnames) == ["Items", "Items_2", "opt_color"]
    for title in ("Items", "Items_2"):
        formulas = {str(dv.sqref): dv.formula1 for dv in wb[title].data_validations.dataValidation}
        assert formulas["D2:D201"] == "'opt_color'!$A$2:$A$31"
    # The lock pass only walks the visible data sheets.
    assert lock.last_stats["sheets"] == 2
    assert wb["opt_color"]["A2"].protection.locked is True


def test_header_comment_attached(tmp_path: Path) -> None:
    out = _write(tmp_path / "comment.xlsx", DropdownHandler(Stocked, comment_author="hr"))
    ws = load_workbook(out)["Items"]
    assert ws["A1"].value == "ID"
    assert ws["A1"].comment is not None
    assert ws["A1"].comment.text == "不要修改！！！"
    assert ws["A1"].comment.author == "hr"
    assert ws["B1"].comment is None


def test_header_comment_box_spans_two_columns_and_four_rows() -> None:
    wb = Workbook()
    ws = wb.active
    ws.title = "Items"
    handler = DropdownHandler(Stocked)
    handler.after_sheet_create(SheetWriteContext(workbook=wb, sheet=ws, sheet_no=0))
    comment = ws["A1"].comment
    assert comment.width == COMMENT_COLUMN_SPAN * 72 == 144
    assert comment.height == COMMENT_ROW_SPAN * 20 == 80


def test_header_comment_follows_excluded_layout(tmp_path: Path) -> None:
    @dataclass
    class Noted:
        skipped: str = column("Skipped")
        noted: str = column("Noted", comment="fill me")

    writer = ExcelWriter(tmp_path / "noted.xlsx", Noted, exclude_fields={"skipped"})
    writer.register_handler(DropdownHandler(Noted))
    writer.write_sheet([Noted("x", "y")], "Items")
    ws = load_workbook(writer.finish())["Items"]
    assert ws["A1"].value == "Noted"
    assert ws["A1"].comment.text == "fill me"


def test_last_row_must_be_positive() -> None:
    with pytest.raises(ValueError):
        DropdownHandler(Stocked, last_row=0)
