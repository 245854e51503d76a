"""
tenhou.net/6 log adapter.

Dependency direction: tenhou imports from convlog.logic.
Conversion logic modules never import from tenhou.
"""

from convlog.tenhou.loader import (
    WIN_STATUS,
    LogLoadError,
    load_log_from_file,
    load_log_from_string,
    parse_action_item,
    parse_log,
)

__all__ = [
    "WIN_STATUS",
    "LogLoadError",
    "load_log_from_file",
    "load_log_from_string",
    "parse_action_item",
    "parse_log",
]
