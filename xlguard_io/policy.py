"""Editable-policy engine: which columns stay editable once the sheet is protected."""

# Module responsibilities:
# - Resolve the field -> editable map from declared defaults plus an optional override set.
# - Track one write session explicitly (resolve -> observe headers -> finalise).
# - Run the whole-workbook lock/protection pass through a SheetBackend.

from __future__ import annotations

from enum import Enum
from typing import AbstractSet, Any, Dict, Mapping, Optional

from .backend import OpenpyxlBackend, SheetBackend, StyleCache
from .columns import find_field_by_header
from .schema import FieldSource, describe
from .utils.log import get_logger

logger = get_logger("policy")

HEADER_ROW = 0


class SessionStateError(RuntimeError):
    """Raised when a finished session is used again."""


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RESOLVING = "resolving"
    ACTIVE = "active"
    FINALIZING = "finalizing"
    DONE = "done"


def resolve_editable_map(
    source: FieldSource,
    override: Optional[AbstractSet[str]] = None,
) -> Dict[str, bool]:
    """Compute ``field name -> editable`` for every non-ignored field.

    Without an override each field keeps its declared default. With an override,
    listed fields become editable and every other field keeps its declared
    default: the override only widens, it never locks a field by omission.
    Names in ``override`` unknown to the type are ignored.
    """

    descriptors = describe(source)
    editable: Dict[str, bool] = {}
    for descriptor in descriptors:
        if descriptor.ignored:
            continue
        if override is not None and descriptor.name in override:
            editable[descriptor.name] = True
        else:
            editable[descriptor.name] = descriptor.default_editable

    if override:
        unknown = set(override) - {d.name for d in descriptors}
        if unknown:
            logger.debug("Ignoring unknown editable overrides", extra={"fields": sorted(unknown)})
    return editable


class EditableSession:
    """State for one workbook write: editable map, header observations, finalisation.

    Args:
        source: Model type, field table or descriptors of the exported records.
        editable_fields: Optional override set (``None`` means "declarations only").
        enable_protection: Protect every sheet after locking cells.
        password: Optional protection password; empty means no password.
        backend: Spreadsheet backend; defaults to openpyxl.
    """

    def __init__(
        self,
        source: FieldSource,
        editable_fields: Optional[AbstractSet[str]] = None,
        *,
        enable_protection: bool = True,
        password: Optional[str] = None,
        backend: Optional[SheetBackend] = None,
    ) -> None:
        self.source = source
        self.editable_fields = frozenset(editable_fields) if editable_fields is not None else None
        self.enable_protection = enable_protection
        self.password = password or ""
        self.backend: SheetBackend = backend or OpenpyxlBackend()
        self.state = SessionState.UNINITIALIZED
        self._editable: Dict[str, bool] = {}
        self._columns: Dict[int, str] = {}

    def _check_open(self) -> None:
        if self.state is SessionState.DONE:
            raise SessionStateError("Editable session already finalised")

    @property
    def editable_map(self) -> Mapping[str, bool]:
        return dict(self._editable)

    @property
    def column_map(self) -> Mapping[int, str]:
        return dict(self._columns)

    def ensure_resolved(self) -> None:
        """Build the editable map on first use; later calls are no-ops."""

        self._check_open()
        if self.state is not SessionState.UNINITIALIZED:
            return
        self.state = SessionState.RESOLVING
        self._editable = resolve_editable_map(self.source, self.editable_fields)
        self.state = SessionState.ACTIVE
        logger.info(
            "Editable policy resolved",
            extra={
                "editable": sorted(name for name, flag in self._editable.items() if flag),
                "locked": sorted(name for name, flag in self._editable.items() if not flag),
            },
        )

    def observe_header(self, column_index: int, text: Any) -> Optional[str]:
        """Record which field a rendered header cell belongs to."""

        self._check_open()
        if not isinstance(text, str) or not text.strip():
            return None
        field_name = find_field_by_header(self.source, text)
        if field_name is not None:
            self._columns[column_index] = field_name
        return field_name

    def should_lock(self, row_index: int, column_index: int) -> bool:
        """Lock decision for one cell; unmapped columns stay editable."""

        if row_index == HEADER_ROW:
            return True
        field_name = self._columns.get(column_index)
        if field_name is None:
            return False
        return not self._editable.get(field_name, True)

    def finalize(self, workbook: Any) -> Dict[str, int]:
        """Apply lock styles to every populated cell and protect each sheet.

        Returns:
            Counters ``sheets``, ``locked``, ``unlocked``, ``skipped`` and ``styles``.
        """

        self._check_open()
        self.ensure_resolved()
        self.state = SessionState.FINALIZING
        if not self._columns:
            logger.warning("No header columns observed; data cells will stay editable")

        cache = StyleCache()
        stats = {"sheets": 0, "locked": 0, "unlocked": 0, "skipped": 0}
        for sheet in self.backend.worksheets(workbook):
            stats["sheets"] += 1
            for row_index, column_index, cell in self.backend.iter_cells(sheet):
                lock = self.should_lock(row_index, column_index)
                if not self.backend.apply_lock(cell, lock, cache):
                    stats["skipped"] += 1
                elif lock:
                    stats["locked"] += 1
                else:
                    stats["unlocked"] += 1

            if self.enable_protection:
                self.backend.protect(sheet, self.password)
                # Protection must be on before the resize permissions are relaxed.
                self.backend.allow_resize(sheet)

        stats["styles"] = len(cache)
        self.state = SessionState.DONE
        logger.info(
            "Workbook lock pass complete",
            extra={**stats, "protected": self.enable_protection},
        )
        return stats


__all__ = [
    "HEADER_ROW",
    "SessionState",
    "SessionStateError",
    "EditableSession",
    "resolve_editable_map",
]
