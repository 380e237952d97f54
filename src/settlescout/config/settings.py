# src/settlescout/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/settlescout/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `SETTLESCOUT_LOG_LEVEL`, `SETTLESCOUT_INPUT_PATH`)
- an external YAML file via `SETTLESCOUT_CONFIG_PATH`

Design rule:
- Tuning knobs (radius, band, retry budget, pauses) live in YAML, not hard-coded in resolution logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any
from settlescout.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field, model_validator

from settlescout.selection.policy import SelectionPolicy


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `settlescout.config`."""
    text = resources.files("settlescout.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "SettleScout"
    http_timeout_seconds: float = 60
    log_level: str = "INFO"
    user_agent: str = "settlescout/0.1.0 (+https://local)"


class OverpassSettings(BaseModel):
    url: str = "https://overpass-api.de/api/interpreter"
    radius_m: int = Field(100_000, gt=0)
    query_timeout_seconds: int = Field(30, gt=0)
    place_kinds: list[str] = Field(default_factory=lambda: ["city", "town", "village"])


class RetrySettings(BaseModel):
    max_attempts: int = Field(3, ge=1)
    base_delay_seconds: float = Field(2.0, ge=0)


class PopulationBand(BaseModel):
    min: int = Field(20_000, ge=0)
    max: int = Field(50_000, ge=0)

    @model_validator(mode="after")
    def _validate_order(self) -> "PopulationBand":
        if self.max < self.min:
            raise ValueError("population_band.max must be >= population_band.min")
        return self

    def as_tuple(self) -> tuple[int, int]:
        return (self.min, self.max)


class SelectionSettings(BaseModel):
    policy: SelectionPolicy = SelectionPolicy.POPULATION_THEN_DISTANCE
    population_band: PopulationBand = Field(default_factory=PopulationBand)


class RunSettings(BaseModel):
    input_path: str = "data/grid.xlsx"
    output_dir: str = "data/results"
    pause_seconds: float = Field(1.0, ge=0)
    boundary_source: str | None = None
    not_available_marker: str = "N/A"


class DiagnosticsSettings(BaseModel):
    dir: str = "logs"
    parse_errors_file: str = "parse_errors.log"
    errors_file: str = "errors.log"


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    overpass: OverpassSettings = Field(default_factory=OverpassSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    selection: SelectionSettings = Field(default_factory=SelectionSettings)
    run: RunSettings = Field(default_factory=RunSettings)
    diagnostics: DiagnosticsSettings = Field(default_factory=DiagnosticsSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("SETTLESCOUT_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    input_path = os.getenv("SETTLESCOUT_INPUT_PATH")
    if input_path:
        data.setdefault("run", {})["input_path"] = input_path

    output_dir = os.getenv("SETTLESCOUT_OUTPUT_DIR")
    if output_dir:
        data.setdefault("run", {})["output_dir"] = output_dir

    overpass_url = os.getenv("SETTLESCOUT_OVERPASS_URL")
    if overpass_url:
        data.setdefault("overpass", {})["url"] = overpass_url

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("SETTLESCOUT_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
