"""Write handlers plugged into ExcelWriter."""

from .base import CellWriteContext, SheetWriteContext, WorkbookWriteContext, WriteHandler
from .dropdown import DropdownHandler
from .lock import LockHandler

__all__ = [
    "CellWriteContext",
    "SheetWriteContext",
    "WorkbookWriteContext",
    "WriteHandler",
    "DropdownHandler",
    "LockHandler",
]
