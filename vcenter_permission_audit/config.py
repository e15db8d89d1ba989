"""Configuration loading for the permission audit."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

logger = logging.getLogger(__name__)

VALID_THEMES = ("Dark", "Light", "Blue")
DEFAULT_CHUNK_SIZE = 300
DEFAULT_MAX_WIDTH = 400


class ConfigurationError(ValueError):
    """Raised when configuration values or referenced files are unusable."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


def _configuration_error(exc: ValidationError) -> ConfigurationError:
    error = exc.errors()[0]
    field = str(error["loc"][0]) if error["loc"] else None
    if field is None:
        return ConfigurationError(f"Invalid configuration: {error['msg']}")
    return ConfigurationError(f"Invalid value for '{field}': {error['msg']}", field)


class AuditConfig(BaseModel):
    """Read-only settings consumed by the audit and enrichment pipeline.

    Values are strictly typed: JSON booleans for flags and numbers for sizes
    and ratios, so a quoted ``"yes"`` or ``"400"`` is rejected rather than
    guessed at.
    """

    model_config = ConfigDict(frozen=True, strict=True, extra="ignore")

    exclusions_enabled: bool = False
    exclusion_file: Optional[str] = Field(default=None, validate_default=True)
    tooltips_enabled: bool = True
    tooltip_theme: str = "Dark"
    tooltip_max_width: int = Field(default=DEFAULT_MAX_WIDTH, gt=0)
    tooltip_chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)
    keyboard_navigation: bool = True
    filtering: bool = True
    report_title: str = "vCenter Permissions Report"
    growth_ratio_small: float = Field(default=5.0, ge=1)
    growth_ratio_medium: float = Field(default=3.0, ge=1)
    growth_ratio_large: float = Field(default=2.0, ge=1)

    @field_validator("exclusion_file")
    @classmethod
    def _file_when_enabled(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if info.data.get("exclusions_enabled") and not value:
            raise ValueError("required when exclusions are enabled")
        return value

    @field_validator("tooltip_theme")
    @classmethod
    def _known_theme(cls, value: str) -> str:
        if value not in VALID_THEMES:
            valid = ", ".join(VALID_THEMES)
            raise ValueError(f"unknown tooltip theme '{value}', valid themes: {valid}")
        return value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AuditConfig":
        """Validate *data*, warning about keys this tool does not know."""

        if not isinstance(data, Mapping):
            raise ConfigurationError("Configuration must be a JSON object")
        unknown = sorted(str(key) for key in data if key not in cls.model_fields)
        if unknown:
            logger.warning("Ignoring unknown configuration key(s): %s", ", ".join(unknown))
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise _configuration_error(exc) from exc

    def with_overrides(self, **overrides: Any) -> "AuditConfig":
        """Return a validated copy with every non-``None`` override applied."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        if not changes:
            return self
        return self.from_mapping({**self.model_dump(), **changes})


def load_config(path: Union[str, Path, None]) -> AuditConfig:
    """Load an :class:`AuditConfig` from a JSON file, or defaults for ``None``."""

    if path is None:
        return AuditConfig()
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Unable to read configuration file {config_path}: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Configuration file {config_path} is not valid JSON: {exc}") from exc
    return AuditConfig.from_mapping(data)


__all__ = [
    "AuditConfig",
    "ConfigurationError",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_MAX_WIDTH",
    "VALID_THEMES",
    "load_config",
]
