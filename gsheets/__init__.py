"""
Google Sheets MCP Integration

This module provides MCP tools for structural editing of Google Sheets.
"""

from .sheets_tools import (
    format_cells,
    batch_format_sheet,
    merge_cells,
    unmerge_cells,
    freeze_rows_columns,
    delete_rows,
    delete_columns,
    delete_row_ranges,
    add_conditional_format_rule,
    get_conditional_format_rules,
    delete_conditional_format_rule,
    clear_conditional_format_rules,
    set_dropdown_validation,
    get_data_validation,
    get_cell_formatting,
)

__all__ = [
    "format_cells",
    "batch_format_sheet",
    "merge_cells",
    "unmerge_cells",
    "freeze_rows_columns",
    "delete_rows",
    "delete_columns",
    "delete_row_ranges",
    "add_conditional_format_rule",
    "get_conditional_format_rules",
    "delete_conditional_format_rule",
    "clear_conditional_format_rules",
    "set_dropdown_validation",
    "get_data_validation",
    "get_cell_formatting",
]
