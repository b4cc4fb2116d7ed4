"""Environment variable parsing helpers.

Every parser takes an optional *environ* mapping so settings can be built
from a plain dict in tests. Invalid values fall back to the default.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path

_LIST_SEPARATORS = re.compile(r"[,|]")


def parse_env_str(name: str, default: str = "", *, environ: Mapping[str, str] | None = None) -> str:
    source = os.environ if environ is None else environ
    value = source.get(name)
    if value is None:
        return default
    return str(value).strip()


def parse_env_bool(
    name: str,
    default: bool = False,
    *,
    environ: Mapping[str, str] | None = None,
) -> bool:
    raw = parse_env_str(name, "", environ=environ).lower()
    if raw in {"1", "true", "yes", "on", "y"}:
        return True
    if raw in {"0", "false", "no", "off", "n"}:
        return False
    return default


def parse_env_int(
    name: str,
    default: int,
    minimum: int,
    maximum: int,
    *,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Integer from the environment, clamped to ``[minimum, maximum]``.

    Underscore separators are accepted (``20_000_000``).
    """
    raw = parse_env_str(name, "", environ=environ)
    if not raw:
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    return max(minimum, min(parsed, maximum))


def parse_env_choice(
    name: str,
    default: str,
    choices: Iterable[str],
    *,
    environ: Mapping[str, str] | None = None,
) -> str:
    """One of *choices*, matched case-insensitively and returned as spelled there."""
    raw = parse_env_str(name, "", environ=environ)
    for choice in choices:
        if raw.lower() == choice.lower():
            return choice
    return default


def parse_env_path(name: str, *, environ: Mapping[str, str] | None = None) -> str | None:
    """User-expanded path, or None when unset."""
    raw = parse_env_str(name, "", environ=environ)
    if not raw:
        return None
    return str(Path(raw).expanduser())


def parse_env_names(name: str, *, environ: Mapping[str, str] | None = None) -> tuple[str, ...]:
    """Asset names separated by commas or pipes (``TSM,GLD`` or ``|TSM|GLD|``)."""
    raw = parse_env_str(name, "", environ=environ)
    return tuple(item.strip() for item in _LIST_SEPARATORS.split(raw) if item.strip())
