"""YAML configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order):
1. --config <path> CLI flag
2. ./stuffing-planner.yaml (working directory)
3. ~/.stuffing-planner/config.yaml (user home)

Environment variables override YAML: STUFFING_<SECTION>_<KEY>.
${VAR} references in YAML values resolve from environment at load time.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")
ENV_PREFIX = "STUFFING_"


def resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} references in a string from environment variables.

    Missing env vars resolve to empty string.
    """
    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    """Recursively resolve ${VAR} references in a nested data structure."""
    if isinstance(data, str):
        return resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


class PlanStoreConfig(BaseModel):
    """Connection settings for the remote Plan Store API."""

    base_url: str = "http://127.0.0.1:8080/api/v1"
    api_key: str = ""
    timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class DuplicateCheckConfig(BaseModel):
    """Snapshot settings for the cross-plan container number check."""

    page_size: int = Field(default=1000, ge=1)
    max_pages: int = Field(default=20, ge=1)


class ValidationConfig(BaseModel):
    """Form validation switches."""

    strict_iso6346: bool = False


class LoggingConfig(BaseModel):
    """Logging output for the CLI process."""

    level: str = "warning"
    file: str | None = None


class PlannerConfig(BaseModel):
    """Top-level configuration for the stuffing planner."""

    plan_store: PlanStoreConfig = PlanStoreConfig()
    duplicate_check: DuplicateCheckConfig = DuplicateCheckConfig()
    validation: ValidationConfig = ValidationConfig()
    logging: LoggingConfig = LoggingConfig()


def _find_config_file() -> Path | None:
    """Search for config file in standard locations."""
    candidates = [
        Path.cwd() / "stuffing-planner.yaml",
        Path.cwd() / "stuffing-planner.yml",
        Path.home() / ".stuffing-planner" / "config.yaml",
        Path.home() / ".stuffing-planner" / "config.yml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply STUFFING_<SECTION>_<KEY> env var overrides to config data.

    Matches section names by longest prefix so multi-word section names
    like ``plan_store`` and ``duplicate_check`` are handled correctly.
    For example, ``STUFFING_PLAN_STORE_BASE_URL`` maps to section
    ``plan_store``, field ``base_url``.
    """
    known_sections = sorted(
        PlannerConfig.model_fields.keys(), key=len, reverse=True
    )
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        suffix = key[len(ENV_PREFIX):].lower()
        matched_section = None
        matched_field = None
        for section in known_sections:
            section_prefix = section + "_"
            if suffix.startswith(section_prefix):
                matched_section = section
                matched_field = suffix[len(section_prefix):]
                break
        if matched_section is None or not matched_field:
            continue
        if not isinstance(data.get(matched_section), dict):
            data[matched_section] = {}
        # Strings stay strings (api keys may be all digits); pydantic
        # coerces numeric and boolean text for typed fields.
        if value.lower() in ("true", "false"):
            data[matched_section][matched_field] = value.lower() == "true"
        else:
            data[matched_section][matched_field] = value
    return data


def load_config(config_path: str | None = None) -> PlannerConfig:
    """Load configuration from YAML with env var resolution.

    Args:
        config_path: Explicit path to config file. If None, searches
            standard locations (cwd, then ~/.stuffing-planner/).

    Returns:
        Validated PlannerConfig. Defaults plus env overrides when no
        file is found.

    Raises:
        FileNotFoundError: If an explicit config_path does not exist.
        pydantic.ValidationError: If the merged config is invalid.
    """
    if config_path:
        path: Path | None = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = _find_config_file()

    raw_data: dict[str, Any] = {}
    if path is not None:
        logger.info("Loading config from %s", path)
        with open(path) as f:
            raw_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults")

    data = _resolve_env_vars_recursive(raw_data)
    data = _apply_env_overrides(data)
    return PlannerConfig(**data)
