"""
Configuration infrastructure

Environment parsing and the AppConfig loader.
"""

from .env_utils import (
    parse_bool_env,
    parse_float_env,
    parse_int_env,
    parse_list_env,
    parse_str_env,
)
from .settings import AppConfig, load_app_config

__all__ = [
    "AppConfig",
    "load_app_config",
    "parse_bool_env",
    "parse_float_env",
    "parse_int_env",
    "parse_list_env",
    "parse_str_env",
]
