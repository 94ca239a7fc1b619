"""
Google Apps Script MCP Integration

This module provides MCP tools for editing Apps Script projects.
"""

from .appsscript_tools import (
    get_bound_script_id,
    get_apps_script_metadata,
    list_apps_script_files,
    read_apps_script_file,
    update_apps_script_file,
)

__all__ = [
    "get_bound_script_id",
    "get_apps_script_metadata",
    "list_apps_script_files",
    "read_apps_script_file",
    "update_apps_script_file",
]
