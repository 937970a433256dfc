from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError


load_dotenv(override=False)


class ExportProfile(BaseModel):
    """One named export configuration.

    Attributes:
        name: Profile key.
        display_name: Human readable name.
        fields_file: YAML field table describing the exported columns.
        sheet_name: Title of the first worksheet.
        exclude_fields: Fields left out of the document.
        editable_fields: Override set; ``None`` keeps the declared defaults only.
        enable_protection: Protect sheets after locking cells.
        protect_password: Inline protection password.
        protect_password_env: Environment variable holding the password (wins over inline).
        dynamic_options: ``select key -> options`` for dropdown columns.
        validation_last_row: Last 0-based row covered by dropdown validations.
        max_rows_per_sheet: Optional per-sheet capacity.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    display_name: str = ""
    fields_file: str
    sheet_name: str = "Sheet1"
    exclude_fields: List[str] = Field(default_factory=list)
    editable_fields: Optional[List[str]] = None
    enable_protection: bool = True
    protect_password: Optional[str] = None
    protect_password_env: Optional[str] = None
    dynamic_options: Dict[str, List[str]] = Field(default_factory=dict)
    validation_last_row: int = 200
    max_rows_per_sheet: Optional[int] = None

    @field_validator("validation_last_row")
    @classmethod
    def _positive_last_row(cls, value: int) -> int:
        if value < 1:
            raise ValueError("validation_last_row must be >= 1")
        return value

    def resolve_password(self) -> str:
        """Return the protection password, preferring the configured env var."""

        if self.protect_password_env:
            from_env = os.getenv(self.protect_password_env)
            if from_env:
                return from_env
        return self.protect_password or ""

    def override_set(self) -> Optional[set[str]]:
        return set(self.editable_fields) if self.editable_fields is not None else None


def _project_root() -> Path:
    env = os.getenv("XLGUARD_ROOT")
    if env:
        return Path(env)
    # In source layout, this file is under <root>/xlguard/core
    return Path(__file__).resolve().parents[2]


def _config_dir() -> Path:
    return _project_root() / "xlguard" / "config"


def resolve_config_path(path: str | Path, base: Path | None = None) -> Path:
    """Resolve a config-relative path (absolute paths pass through)."""

    p = Path(path)
    if p.is_absolute():
        return p
    if base is not None:
        return base / p
    parts = p.parts
    if parts and parts[0] == "xlguard":
        return _project_root() / p
    return _config_dir() / p


def load_profiles(path: str | Path | None = None) -> dict[str, ExportProfile]:
    """Load export profiles from config/profiles.yaml.

    Relative ``fields_file`` entries are resolved against the profile file's directory.
    """

    cfg_path = Path(path) if path else _config_dir() / "profiles.yaml"
    if not cfg_path.exists():
        raise ConfigError(f"profiles.yaml not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError("profiles.yaml must contain a mapping")
    profiles_raw = data.get("profiles") or {}
    if not profiles_raw:
        raise ConfigError("profiles.yaml defines no profiles")
    profiles: dict[str, ExportProfile] = {}
    for key, raw in profiles_raw.items():
        if not isinstance(raw, dict):
            raise ConfigError(f"Profile {key} must be a mapping")
        payload: dict[str, Any] = {"display_name": key, **raw, "name": key}
        try:
            profile = ExportProfile.model_validate(payload)
        except ValidationError as e:
            raise ConfigError(f"Invalid profile {key}: {e}") from e
        fields_path = resolve_config_path(profile.fields_file, base=cfg_path.parent)
        profiles[key] = profile.model_copy(update={"fields_file": str(fields_path)})
    return profiles


def get_profile(name: str, path: str | Path | None = None) -> ExportProfile:
    profiles = load_profiles(path)
    try:
        return profiles[name]
    except KeyError as e:
        known = ", ".join(sorted(profiles))
        raise ConfigError(f"Unknown profile '{name}' (known: {known})") from e
