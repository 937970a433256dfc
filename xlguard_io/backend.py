"""Worksheet backend capability used by the lock finalisation pass."""

# Module responsibilities:
# - Describe what the finalisation pass needs from a spreadsheet library (SheetBackend).
# - Implement it for openpyxl: populated-cell walk, lock-variant styles, sheet protection.
# - Keep per-pass lock variants in a StyleCache keyed by style id.

from __future__ import annotations

from typing import Any, Dict, Hashable, Iterable, Iterator, NamedTuple, Optional, Protocol, Tuple

from openpyxl.styles import Protection
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

CellPosition = Tuple[int, int, Any]


class LockVariants(NamedTuple):
    locked: Any
    unlocked: Any


class StyleCache:
    """Original style id -> (locked, unlocked) protection variants for one finalisation pass."""

    def __init__(self) -> None:
        self._variants: Dict[Hashable, LockVariants] = {}

    def get(self, key: Hashable) -> Optional[LockVariants]:
        return self._variants.get(key)

    def store(self, key: Hashable, locked: Any, unlocked: Any) -> LockVariants:
        variants = LockVariants(locked=locked, unlocked=unlocked)
        self._variants[key] = variants
        return variants

    def __len__(self) -> int:
        return len(self._variants)


class SheetBackend(Protocol):
    """Capabilities the editable-policy engine relies on at finalisation time."""

    def worksheets(self, workbook: Any) -> Iterable[Any]:
        """Return the sheets that carry cells."""

    def iter_cells(self, sheet: Any) -> Iterator[CellPosition]:
        """Yield ``(row_index, column_index, cell)`` for populated cells, 0-based."""

    def apply_lock(self, cell: Any, locked: bool, cache: StyleCache) -> bool:
        """Give ``cell`` the locked/unlocked variant of its style; False when it has none."""

    def protect(self, sheet: Any, password: str) -> None:
        """Enable sheet protection."""

    def allow_resize(self, sheet: Any) -> None:
        """Re-allow column width / row height changes on a protected sheet."""


class OpenpyxlBackend:
    """SheetBackend for in-memory openpyxl workbooks."""

    def worksheets(self, workbook: Workbook) -> Iterable[Worksheet]:
        # Chartsheets are not part of Workbook.worksheets; hidden option sheets protect themselves.
        return [sheet for sheet in workbook.worksheets if sheet.sheet_state == "visible"]

    def iter_cells(self, sheet: Worksheet) -> Iterator[CellPosition]:
        # iter_rows() would materialise every empty cell inside the used range.
        # _cells is stable across the openpyxl 3.1 line pinned in pyproject.toml.
        for row, col in sorted(sheet._cells):
            yield row - 1, col - 1, sheet._cells[(row, col)]

    @staticmethod
    def style_key(cell: Any) -> Optional[Hashable]:
        # Read-only EmptyCell has no style slot.
        return getattr(cell, "style_id", None)

    def apply_lock(self, cell: Any, locked: bool, cache: StyleCache) -> bool:
        key = self.style_key(cell)
        if key is None:
            return False
        variants = cache.get(key)
        if variants is None:
            hidden = cell.protection.hidden
            variants = cache.store(
                key,
                Protection(locked=True, hidden=hidden),
                Protection(locked=False, hidden=hidden),
            )
        # Assigning protection registers a new style id; other cells keep the original one.
        cell.protection = variants.locked if locked else variants.unlocked
        return True

    def protect(self, sheet: Worksheet, password: str) -> None:
        protection = sheet.protection
        if password:
            protection.set_password(password)
        protection.enable()

    def allow_resize(self, sheet: Worksheet) -> None:
        protection = sheet.protection
        protection.formatColumns = False
        protection.formatRows = False


__all__ = ["CellPosition", "LockVariants", "StyleCache", "SheetBackend", "OpenpyxlBackend"]
