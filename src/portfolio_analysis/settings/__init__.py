from .environment import (
    parse_env_bool,
    parse_env_choice,
    parse_env_int,
    parse_env_names,
    parse_env_path,
    parse_env_str,
)
from .settings import AnalysisSettings, default_workers, load_settings

__all__ = [
    "AnalysisSettings",
    "default_workers",
    "load_settings",
    "parse_env_bool",
    "parse_env_choice",
    "parse_env_int",
    "parse_env_names",
    "parse_env_path",
    "parse_env_str",
]
