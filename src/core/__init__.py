"""Core package exports for integrations.

This package re-exports the minimal APIs integrations need so they can use
`from src.core import SlackConfig, http_post` without deep imports.

Keep this file small: its purpose is purely convenience.
"""

from .config import SlackConfig
from .utils import http_post, parse_json_response, save_object, write_csv, write_json

__all__ = [
    "SlackConfig",
    "http_post",
    "parse_json_response",
    "save_object",
    "write_csv",
    "write_json",
]
