"""`xlguard_io` exposes field declarations, column resolution and the guarded Excel writer."""

# Module responsibilities:
# - Re-export the declaration helpers, resolvers, handlers and writer as one stable API surface.

from __future__ import annotations

from .backend import OpenpyxlBackend, SheetBackend, StyleCache
from .columns import find_field_by_header, resolve_columns
from .excel_writer import ExcelWriter, WriterClosedError, write_records
from .handlers import DropdownHandler, LockHandler, WriteHandler
from .mapping import MappingError, load_field_table
from .policy import EditableSession, SessionState, SessionStateError, resolve_editable_map
from .schema import (
    UNSET_INDEX,
    ColumnMeta,
    FieldDescriptor,
    FieldTable,
    column,
    describe,
    register_fields,
)

__all__ = [
    "UNSET_INDEX",
    "ColumnMeta",
    "FieldDescriptor",
    "FieldTable",
    "column",
    "describe",
    "register_fields",
    "resolve_columns",
    "find_field_by_header",
    "resolve_editable_map",
    "EditableSession",
    "SessionState",
    "SessionStateError",
    "OpenpyxlBackend",
    "SheetBackend",
    "StyleCache",
    "WriteHandler",
    "LockHandler",
    "DropdownHandler",
    "ExcelWriter",
    "WriterClosedError",
    "write_records",
    "MappingError",
    "load_field_table",
]

__version__ = "0.1.0"
