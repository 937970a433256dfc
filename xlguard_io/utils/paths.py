"""Filesystem helpers for the xlguard workspace layout."""

# Module responsibilities:
# - Define the default ~/XLGuard directory layout and create folders on demand.
# - Resolve export paths without silently overwriting an existing workbook.

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

DEFAULT_BASE = Path.home() / "XLGuard"


def ensure_default_structure(base: Optional[Path] = None) -> Dict[str, Path]:
    """Ensure the workspace directory structure exists.

    Args:
        base: Optional override for the workspace base directory.

    Returns:
        Mapping with keys ``base``, ``out``, ``logs``.
    """

    target_base = base or DEFAULT_BASE
    paths = {
        "base": target_base,
        "out": target_base / "out",
        "logs": target_base / "logs",
    }
    for path in paths.values():
        path.mkdir(parents=True, exist_ok=True)
    return paths


def prepare_output_path(filename: str, base: Optional[Path] = None, *, overwrite: bool = False) -> Path:
    """Prepare an export path inside the workspace ``out`` directory.

    When ``overwrite`` is False and the file already exists, a numeric suffix is
    appended (``report_2.xlsx``, ``report_3.xlsx`` ...).
    """

    out_dir = ensure_default_structure(base)["out"]
    candidate = out_dir / filename
    if overwrite or not candidate.exists():
        return candidate
    counter = 2
    while True:
        numbered = candidate.with_name(f"{candidate.stem}_{counter}{candidate.suffix}")
        if not numbered.exists():
            return numbered
        counter += 1
