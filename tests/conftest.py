from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep package logs out of the home directory during the test session.
os.environ.setdefault("XLGUARD_LOG_DIR", tempfile.mkdtemp(prefix="xlguard-logs-"))


@pytest.fixture()
def header_columns():
    """Return a helper mapping header text -> 1-based column number of row 1."""

    def _header_columns(sheet) -> dict[str, int]:
        return {
            cell.value: cell.column
            for cell in next(sheet.iter_rows(min_row=1, max_row=1))
            if cell.value is not None
        }

    return _header_columns
