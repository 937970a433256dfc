"""Shared helpers (logging, workspace paths) for xlguard_io."""

from .log import get_logger, set_level
from .paths import ensure_default_structure, prepare_output_path

__all__ = ["get_logger", "set_level", "ensure_default_structure", "prepare_output_path"]
