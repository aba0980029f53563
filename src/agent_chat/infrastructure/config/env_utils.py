"""Environment variable parsing helpers

Unset or blank variables fall back to the default. Malformed numbers raise
ConfigurationError instead of quietly becoming the default.
"""

import os
from typing import Callable, List, Optional, TypeVar

from ...domain.exceptions import ConfigurationError

N = TypeVar("N", int, float)

TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
FALSE_VALUES = frozenset({"false", "0", "no", "off"})


def _raw(var_name: str) -> str:
    return os.getenv(var_name, "").strip()


def _parse_number(var_name: str, default: N, cast: Callable[[str], N], kind: str) -> N:
    value = _raw(var_name)
    if not value:
        return default
    try:
        return cast(value)
    except ValueError:
        raise ConfigurationError(f"{var_name} must be {kind}, got {value!r}") from None


def parse_bool_env(var_name: str, default: bool = False) -> bool:
    """
    Parse an environment variable as bool

    "true"/"1"/"yes"/"on" and "false"/"0"/"no"/"off" in any case; anything
    else (including unset) gives the default.

    Examples:
        >>> os.environ["LOG_JSON"] = "on"
        >>> parse_bool_env("LOG_JSON")
        True
    """
    value = _raw(var_name).lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    return default


def parse_int_env(var_name: str, default: int = 0) -> int:
    """
    Parse an environment variable as int

    Raises:
        ConfigurationError: Value is set but not an integer

    Examples:
        >>> os.environ["WEB_PORT"] = "8080"
        >>> parse_int_env("WEB_PORT")
        8080
    """
    return _parse_number(var_name, default, int, "an integer")


def parse_float_env(var_name: str, default: float = 0.0) -> float:
    """
    Parse an environment variable as float

    Raises:
        ConfigurationError: Value is set but not a number
    """
    return _parse_number(var_name, default, float, "a number")


def parse_str_env(var_name: str, default: Optional[str] = "") -> Optional[str]:
    """
    Stripped value of an environment variable; blank counts as unset

    Examples:
        >>> os.environ["ANTHROPIC_API_KEY"] = "  sk-ant-xxx  "
        >>> parse_str_env("ANTHROPIC_API_KEY")
        'sk-ant-xxx'
    """
    return _raw(var_name) or default


def parse_list_env(var_name: str, default: Optional[List[str]] = None) -> List[str]:
    """Comma-separated list, items stripped, empty items dropped"""
    value = _raw(var_name)
    if not value:
        return list(default or [])
    return [item.strip() for item in value.split(",") if item.strip()]
