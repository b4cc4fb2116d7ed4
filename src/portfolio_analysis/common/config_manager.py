"""
Configuration Manager - Portfolio Analysis

Loads named analysis profiles from YAML. A profile fixes the metric window
lengths and percentiles and the rules used when ingesting an asset table.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

logger = logging.getLogger(__name__)

DEFAULT_PROFILES_FILE = Path(__file__).resolve().parents[1] / "configs" / "profiles.yaml"

ConfigDict = dict[str, Any]


class ConfigError(ValueError):
    """Raised when an analysis profile is invalid."""


@dataclass(frozen=True)
class AnalysisProfile:
    """Metric parameters and asset-table ingestion rules."""

    name: str = "default"
    withdrawal_years: int = 30
    baseline_long_term_years: int = 15
    baseline_long_term_percentile: float = 0.15
    baseline_short_term_years: int = 3
    baseline_short_term_percentile: float = 0.15
    start_date_sensitivity_years: int = 20
    min_history_years: int = 35
    first_year: int | None = None
    last_year: int | None = None
    name_aliases: Mapping[str, str] = field(
        default_factory=lambda: {"TSM (US)": "TSM", "TBM (US)": "TBM"}
    )
    description: str = ""

    def normalize_name(self, name: str) -> str:
        return self.name_aliases.get(name, name)

    @classmethod
    def from_dict(cls, name: str, config: ConfigDict) -> "AnalysisProfile":
        if not isinstance(config, dict):
            raise ConfigError(f"Profile '{name}' config must be a mapping")

        long_term = _section(name, config, "baseline_long_term")
        short_term = _section(name, config, "baseline_short_term")
        aliases = config.get("name_aliases") or {}
        if not isinstance(aliases, dict):
            raise ConfigError(f"Profile '{name}' field 'name_aliases' must be a mapping")

        defaults = cls()
        try:
            profile = cls(
                name=name,
                withdrawal_years=int(config.get("withdrawal_years", defaults.withdrawal_years)),
                baseline_long_term_years=int(long_term.get("years", defaults.baseline_long_term_years)),
                baseline_long_term_percentile=float(
                    long_term.get("percentile", defaults.baseline_long_term_percentile)
                ),
                baseline_short_term_years=int(short_term.get("years", defaults.baseline_short_term_years)),
                baseline_short_term_percentile=float(
                    short_term.get("percentile", defaults.baseline_short_term_percentile)
                ),
                start_date_sensitivity_years=int(
                    config.get("start_date_sensitivity_years", defaults.start_date_sensitivity_years)
                ),
                min_history_years=int(config.get("min_history_years", defaults.min_history_years)),
                first_year=_optional_int(config.get("first_year")),
                last_year=_optional_int(config.get("last_year")),
                name_aliases={str(k): str(v) for k, v in aliases.items()},
                description=str(config.get("description") or ""),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Profile '{name}' has an invalid value: {exc}") from exc
        profile.validate()
        return profile

    def validate(self) -> None:
        for label, years in (
            ("withdrawal_years", self.withdrawal_years),
            ("baseline_long_term.years", self.baseline_long_term_years),
            ("baseline_short_term.years", self.baseline_short_term_years),
            ("start_date_sensitivity_years", self.start_date_sensitivity_years),
            ("min_history_years", self.min_history_years),
        ):
            if years < 0:
                raise ConfigError(f"Profile '{self.name}' field '{label}' must be >= 0")
        for label, pct in (
            ("baseline_long_term.percentile", self.baseline_long_term_percentile),
            ("baseline_short_term.percentile", self.baseline_short_term_percentile),
        ):
            if not 0 <= pct < 1:
                raise ConfigError(
                    f"Profile '{self.name}' field '{label}' must be in [0, 1), got {pct}"
                )
        if (
            self.first_year is not None
            and self.last_year is not None
            and self.first_year > self.last_year
        ):
            raise ConfigError(f"Profile '{self.name}' first_year is after last_year")

    @property
    def longest_window(self) -> int:
        """Years of history any series needs for every metric to be defined."""
        return max(
            self.withdrawal_years,
            self.baseline_long_term_years,
            self.baseline_short_term_years,
            self.start_date_sensitivity_years,
        )


def _section(name: str, config: ConfigDict, key: str) -> ConfigDict:
    value = config.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Profile '{name}' field '{key}' must be a mapping")
    return value


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class ConfigManager:
    """Load analysis profiles from a YAML file.

    The file holds an optional ``defaults`` mapping and a ``profiles`` mapping;
    each profile is deep-merged over the defaults before validation.
    """

    profiles_file: Path = DEFAULT_PROFILES_FILE

    @classmethod
    def from_default_paths(cls) -> "ConfigManager":
        return cls(profiles_file=DEFAULT_PROFILES_FILE)

    @staticmethod
    def deep_merge(base: ConfigDict, override: ConfigDict) -> ConfigDict:
        result = deepcopy(base)
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = ConfigManager.deep_merge(result[key], value)
            else:
                result[key] = deepcopy(value)
        return result

    @classmethod
    def parse_payload(cls, payload: Any) -> dict[str, AnalysisProfile]:
        if not isinstance(payload, dict):
            raise ConfigError("profiles file must contain a mapping")

        defaults = payload.get("defaults") or {}
        if not isinstance(defaults, dict):
            raise ConfigError("YAML field 'defaults' must be a mapping")
        entries = payload.get("profiles")
        if not isinstance(entries, dict) or not entries:
            raise ConfigError("YAML field 'profiles' must be a non-empty mapping")

        parsed: dict[str, AnalysisProfile] = {}
        for name, override in entries.items():
            if override is None:
                override = {}
            if not isinstance(override, dict):
                raise ConfigError(f"YAML profile '{name}' must be a mapping")
            parsed[str(name)] = AnalysisProfile.from_dict(str(name), cls.deep_merge(defaults, override))
        return parsed

    def load_profiles(self) -> dict[str, AnalysisProfile]:
        path = Path(self.profiles_file)
        if not path.exists():
            raise ConfigError(f"profiles file not found: {path}")
        with open(path, "r", encoding="utf-8") as handle:
            try:
                payload = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise ConfigError(f"failed to parse {path}: {exc}") from exc
        profiles = self.parse_payload(payload)
        logger.debug("Loaded %d analysis profiles from %s", len(profiles), path)
        return profiles

    def list_available(self) -> list[str]:
        return sorted(self.load_profiles())

    def load_profile(self, name: str = "default") -> AnalysisProfile:
        profiles = self.load_profiles()
        if name not in profiles:
            raise ConfigError(
                f"Profile not found: {name!r} (available: {', '.join(sorted(profiles))})"
            )
        return profiles[name]


def load_profile(name: str = "default", profiles_file: Path | str | None = None) -> AnalysisProfile:
    manager = ConfigManager(Path(profiles_file)) if profiles_file else ConfigManager.from_default_paths()
    return manager.load_profile(name)
