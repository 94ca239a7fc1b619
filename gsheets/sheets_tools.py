"""
Google Sheets MCP Tools

This module provides MCP tools for structural editing of Google Sheets:
formatting, merges, freezing, row/column deletion, conditional formatting
and dropdown validation.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from auth.service_decorator import require_google_service
from core.batch import BatchSubmitter
from core.errors import ErrorContext, InvalidParameterError, NotFoundError
from core.server import server
from core.style_codec import build_cell_format, validate_choice
from core.utils import handle_http_errors
from gsheets.sheets_helpers import (
    MERGE_TYPES,
    ParsedRange,
    build_add_conditional_format_request,
    build_boolean_rule,
    build_clear_conditional_format_requests,
    build_data_validation_request,
    build_delete_conditional_format_request,
    build_delete_dimension_request,
    build_dimension_properties_request,
    build_freeze_request,
    build_gradient_rule,
    build_merge_request,
    build_repeat_cell_request,
    build_unmerge_request,
    check_rule_index,
    column_letters_to_index,
    extract_data_validations,
    fetch_sheet_rules,
    fetch_sheets_with_rules,
    parse_json_list,
    parse_range_address,
    plan_cell_formats,
    plan_dimension_deletions,
    plan_hidden_columns,
    plan_merge_ranges,
    quote_sheet_title,
    resolve_sheet_id,
    summarize_cell_formats,
    summarize_conditional_rule,
    to_grid_range,
    validate_dimension_band,
)

# Configure module logger
logger = logging.getLogger(__name__)


async def _resolve_range(
    service, spreadsheet_id: str, range_name: str, sheet_name: Optional[str]
) -> Tuple[ParsedRange, int, Dict[str, Any]]:
    """Parse a range (before any remote call), then resolve its sheet live."""
    parsed = parse_range_address(range_name, sheet_name)
    sheet_id = await resolve_sheet_id(service, spreadsheet_id, parsed.sheet_name)
    return parsed, sheet_id, to_grid_range(parsed.coordinate, sheet_id)


def _sheet_label(sheet_name: Optional[str]) -> str:
    return f"'{sheet_name}'" if sheet_name else "(first sheet)"


def _qualified_a1(parsed: ParsedRange) -> str:
    if parsed.sheet_name:
        return f"{quote_sheet_title(parsed.sheet_name)}!{parsed.a1}"
    return parsed.a1


@server.tool()
@handle_http_errors("format_cells", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def format_cells(
    service,
    spreadsheet_id: str,
    range_name: str,
    bold: Optional[bool] = None,
    italic: Optional[bool] = None,
    underline: Optional[bool] = None,
    strikethrough: Optional[bool] = None,
    font_size: Optional[int] = None,
    font_family: Optional[str] = None,
    font_color: Optional[str] = None,
    background_color: Optional[str] = None,
    horizontal_alignment: Optional[str] = None,
    vertical_alignment: Optional[str] = None,
    wrap_strategy: Optional[str] = None,
    number_format_type: Optional[str] = None,
    number_format_pattern: Optional[str] = None,
    sheet_name: Optional[str] = None,
) -> str:
    """
    Applies formatting to a range of cells in a Google Sheet.

    Only the options you pass are changed; every other formatting attribute
    of the cells is left untouched.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        range_name (str): The range to format: cells ("A1:D10"), whole rows ("1:1") or whole columns ("A:C"). May include a sheet prefix ("Sheet1!A1:D10"). Required.
        bold (Optional[bool]): Set text bold.
        italic (Optional[bool]): Set text italic.
        underline (Optional[bool]): Set text underline.
        strikethrough (Optional[bool]): Set text strikethrough.
        font_size (Optional[int]): Font size in points (e.g., 10, 12, 14).
        font_family (Optional[str]): Font family name (e.g., "Arial", "Courier New").
        font_color (Optional[str]): Text color - hex (#RRGGBB or #RGB) or name (red, blue, etc.).
        background_color (Optional[str]): Cell background color - hex or name.
        horizontal_alignment (Optional[str]): LEFT, CENTER, or RIGHT.
        vertical_alignment (Optional[str]): TOP, MIDDLE, or BOTTOM.
        wrap_strategy (Optional[str]): OVERFLOW_CELL, CLIP, or WRAP.
        number_format_type (Optional[str]): TEXT, NUMBER, CURRENCY, PERCENT, DATE, TIME, DATE_TIME, SCIENTIFIC.
        number_format_pattern (Optional[str]): Custom pattern (e.g., "#,##0.00", "yyyy-mm-dd").
        sheet_name (Optional[str]): Sheet to format when range_name has no prefix. Defaults to the first sheet.

    Returns:
        str: Confirmation message of the successful formatting operation.
    """
    logger.info(
        f"[format_cells] Invoked. Spreadsheet: {spreadsheet_id}, Range: {range_name}"
    )

    options = {
        "bold": bold,
        "italic": italic,
        "underline": underline,
        "strikethrough": strikethrough,
        "font_size": font_size,
        "font_family": font_family,
        "font_color": font_color,
        "background_color": background_color,
        "horizontal_alignment": horizontal_alignment,
        "vertical_alignment": vertical_alignment,
        "wrap_strategy": wrap_strategy,
        "number_format_type": number_format_type,
        "number_format_pattern": number_format_pattern,
    }
    cell_format = build_cell_format(**options)
    if not cell_format:
        return "No formatting options specified. Please provide at least one formatting option."

    parsed, _, grid_range = await _resolve_range(
        service, spreadsheet_id, range_name, sheet_name
    )

    await BatchSubmitter(service, "sheets").submit(
        spreadsheet_id, [build_repeat_cell_request(grid_range, cell_format)]
    )

    applied = ", ".join(f"{k}={v}" for k, v in options.items() if v is not None)
    logger.info(f"[format_cells] Applied fields: {cell_format.mask}")
    return (
        f"Successfully formatted range '{_qualified_a1(parsed)}' in spreadsheet {spreadsheet_id}.\n"
        f"Applied formatting: {applied}"
    )


@server.tool()
@handle_http_errors("batch_format_sheet", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def batch_format_sheet(
    service,
    spreadsheet_id: str,
    sheet_name: str,
    cell_formats: Optional[List[Dict[str, Any]]] = None,
    column_widths: Optional[List[Dict[str, Any]]] = None,
    row_heights: Optional[List[Dict[str, Any]]] = None,
    hide_columns: Optional[str] = None,
    merges: Optional[List[str]] = None,
    freeze_rows: Optional[int] = None,
    freeze_columns: Optional[int] = None,
) -> str:
    """
    Applies several formatting operations to one sheet in a single atomic batch.

    Either every operation is applied or none is.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        sheet_name (str): Exact name of the sheet to format. Required.
        cell_formats (Optional[List[Dict]]): Entries like {"range": "A1:F1", "bold": true, "background_color": "#D9EAD3"}. Accepts the same options as format_cells.
        column_widths (Optional[List[Dict]]): Entries like {"column": "A", "width": 120} (pixels).
        row_heights (Optional[List[Dict]]): Entries like {"row": 1, "height": 32} (1-based row, pixels).
        hide_columns (Optional[str]): Column band to hide, e.g. "D:F". A sheet prefix must name sheet_name.
        merges (Optional[List[str]]): Ranges to merge, e.g. ["A1:C1", "A2:A4"]. A sheet prefix must name sheet_name.
        freeze_rows (Optional[int]): Number of rows to freeze from the top.
        freeze_columns (Optional[int]): Number of columns to freeze from the left.

    Returns:
        str: Confirmation message listing how many requests were applied.
    """
    logger.info(
        f"[batch_format_sheet] Invoked. Spreadsheet: {spreadsheet_id}, Sheet: {sheet_name}"
    )

    cell_formats = parse_json_list(cell_formats, "cell_formats") or []
    column_widths = parse_json_list(column_widths, "column_widths") or []
    row_heights = parse_json_list(row_heights, "row_heights") or []
    merges = parse_json_list(merges, "merges") or []

    # Parse every coordinate before touching the spreadsheet
    planned_formats = plan_cell_formats(cell_formats, sheet_name)

    width_specs = []
    for position, entry in enumerate(column_widths):
        if not isinstance(entry, dict) or "column" not in entry or "width" not in entry:
            raise InvalidParameterError(
                f"column_widths[{position}] must be an object with 'column' and 'width'"
            )
        width_specs.append((column_letters_to_index(entry["column"]), int(entry["width"])))

    height_specs = []
    for position, entry in enumerate(row_heights):
        if not isinstance(entry, dict) or "row" not in entry or "height" not in entry:
            raise InvalidParameterError(
                f"row_heights[{position}] must be an object with 'row' and 'height'"
            )
        row = int(entry["row"])
        if row < 1:
            raise InvalidParameterError(f"row_heights[{position}].row must be 1 or greater")
        height_specs.append((row - 1, int(entry["height"])))

    hidden_band = plan_hidden_columns(hide_columns, sheet_name)
    merge_ranges = plan_merge_ranges(merges, sheet_name)
    for name, value in (("freeze_rows", freeze_rows), ("freeze_columns", freeze_columns)):
        if value is not None and value < 0:
            raise InvalidParameterError(f"{name} must be 0 or greater, got {value}")
    for _, size in width_specs + height_specs:
        if size <= 0:
            raise InvalidParameterError(f"Column widths and row heights must be positive, got {size}")

    if not (
        planned_formats
        or width_specs
        or height_specs
        or hidden_band
        or merge_ranges
        or freeze_rows is not None
        or freeze_columns is not None
    ):
        return "No formatting operations specified. Nothing was changed."

    sheet_id = await resolve_sheet_id(service, spreadsheet_id, sheet_name)

    requests = [
        build_repeat_cell_request(to_grid_range(coordinate, sheet_id), cell_format)
        for coordinate, cell_format in planned_formats
    ]
    for col_index, width in width_specs:
        requests.append(
            build_dimension_properties_request(
                sheet_id, "COLUMNS", col_index, col_index + 1, pixel_size=width
            )
        )
    for row_index, height in height_specs:
        requests.append(
            build_dimension_properties_request(
                sheet_id, "ROWS", row_index, row_index + 1, pixel_size=height
            )
        )
    if hidden_band is not None:
        requests.append(
            build_dimension_properties_request(
                sheet_id,
                "COLUMNS",
                hidden_band.start_column,
                hidden_band.end_column,
                hidden=True,
            )
        )
    for coordinate in merge_ranges:
        requests.append(build_merge_request(to_grid_range(coordinate, sheet_id)))
    freeze_request = build_freeze_request(sheet_id, freeze_rows, freeze_columns)
    if freeze_request:
        requests.append(freeze_request)

    result = await BatchSubmitter(service, "sheets").submit(spreadsheet_id, requests)

    logger.info(
        f"[batch_format_sheet] Applied {result.requests_count} requests in {result.calls_made} call(s)."
    )
    return (
        f"Successfully applied {result.requests_count} formatting operation(s) to sheet "
        f"'{sheet_name}' in spreadsheet {spreadsheet_id}."
    )


@server.tool()
@handle_http_errors("merge_cells", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def merge_cells(
    service,
    spreadsheet_id: str,
    range_name: str,
    merge_type: str = "MERGE_ALL",
    sheet_name: Optional[str] = None,
) -> str:
    """
    Merges cells in a range in a Google Sheet.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        range_name (str): The range to merge (e.g., "A1:D4"). Required.
        merge_type (str): MERGE_ALL (single merged cell), MERGE_COLUMNS (merge columns, keep rows separate), or MERGE_ROWS (merge rows, keep columns separate). Defaults to MERGE_ALL.
        sheet_name (Optional[str]): Sheet name when range_name has no prefix. Defaults to the first sheet.

    Returns:
        str: Confirmation message of the successful merge operation.
    """
    logger.info(
        f"[merge_cells] Invoked. Spreadsheet: {spreadsheet_id}, Range: {range_name}, Type: {merge_type}"
    )

    parsed = parse_range_address(range_name, sheet_name)
    validate_choice(merge_type, MERGE_TYPES, "merge_type")

    sheet_id = await resolve_sheet_id(service, spreadsheet_id, parsed.sheet_name)
    request = build_merge_request(to_grid_range(parsed.coordinate, sheet_id), merge_type)

    await BatchSubmitter(service, "sheets").submit(spreadsheet_id, [request])

    merge_type_upper = request["mergeCells"]["mergeType"]
    logger.info(f"[merge_cells] Merged {range_name} ({merge_type_upper}).")
    return (
        f"Successfully merged cells in range '{_qualified_a1(parsed)}' with type '{merge_type_upper}' "
        f"in spreadsheet {spreadsheet_id}."
    )


@server.tool()
@handle_http_errors("unmerge_cells", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def unmerge_cells(
    service,
    spreadsheet_id: str,
    range_name: str,
    sheet_name: Optional[str] = None,
) -> str:
    """
    Unmerges any merged cells in a range in a Google Sheet.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        range_name (str): The range to unmerge (e.g., "A1:D4"). Required.
        sheet_name (Optional[str]): Sheet name when range_name has no prefix. Defaults to the first sheet.

    Returns:
        str: Confirmation message of the successful unmerge operation.
    """
    logger.info(
        f"[unmerge_cells] Invoked. Spreadsheet: {spreadsheet_id}, Range: {range_name}"
    )

    parsed, _, grid_range = await _resolve_range(
        service, spreadsheet_id, range_name, sheet_name
    )
    await BatchSubmitter(service, "sheets").submit(
        spreadsheet_id, [build_unmerge_request(grid_range)]
    )

    logger.info(f"[unmerge_cells] Unmerged {range_name}.")
    return (
        f"Successfully unmerged cells in range '{_qualified_a1(parsed)}' "
        f"in spreadsheet {spreadsheet_id}."
    )


@server.tool()
@handle_http_errors("freeze_rows_columns", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def freeze_rows_columns(
    service,
    spreadsheet_id: str,
    frozen_rows: Optional[int] = None,
    frozen_columns: Optional[int] = None,
    sheet_name: Optional[str] = None,
) -> str:
    """
    Sets the number of frozen rows and/or columns in a Google Sheet.

    Frozen rows stay visible at the top when scrolling down.
    Frozen columns stay visible on the left when scrolling right.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        frozen_rows (Optional[int]): Rows to freeze from the top. Use 0 to unfreeze.
        frozen_columns (Optional[int]): Columns to freeze from the left. Use 0 to unfreeze.
        sheet_name (Optional[str]): Name of the sheet. Defaults to the first sheet.

    Returns:
        str: Confirmation message of the successful freeze operation.
    """
    logger.info(
        f"[freeze_rows_columns] Invoked. Spreadsheet: {spreadsheet_id}, Rows: {frozen_rows}, Cols: {frozen_columns}"
    )

    if frozen_rows is None and frozen_columns is None:
        return "No freeze options specified. Please provide frozen_rows and/or frozen_columns."
    for name, value in (("frozen_rows", frozen_rows), ("frozen_columns", frozen_columns)):
        if value is not None and value < 0:
            raise InvalidParameterError(f"{name} must be 0 or greater, got {value}")

    sheet_id = await resolve_sheet_id(service, spreadsheet_id, sheet_name)
    request = build_freeze_request(sheet_id, frozen_rows, frozen_columns)

    await BatchSubmitter(service, "sheets").submit(spreadsheet_id, [request])

    summary_parts = []
    if frozen_rows is not None:
        summary_parts.append(
            f"{frozen_rows} row(s) frozen" if frozen_rows > 0 else "rows unfrozen"
        )
    if frozen_columns is not None:
        summary_parts.append(
            f"{frozen_columns} column(s) frozen" if frozen_columns > 0 else "columns unfrozen"
        )

    logger.info(f"[freeze_rows_columns] Updated sheet {sheet_id}.")
    return (
        f"Successfully updated freeze settings on sheet {_sheet_label(sheet_name)} in spreadsheet "
        f"{spreadsheet_id}: " + ", ".join(summary_parts)
    )


@server.tool()
@handle_http_errors("delete_rows", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def delete_rows(
    service,
    spreadsheet_id: str,
    start_row: int,
    end_row: int,
    sheet_name: Optional[str] = None,
) -> str:
    """
    Deletes a band of rows from a sheet. Rows below shift up.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        start_row (int): First row to delete (1-based, inclusive). Required.
        end_row (int): Last row to delete (1-based, inclusive). Required.
        sheet_name (Optional[str]): Name of the sheet. Defaults to the first sheet.

    Returns:
        str: Confirmation message of the deletion.
    """
    logger.info(
        f"[delete_rows] Invoked. Spreadsheet: {spreadsheet_id}, Rows: {start_row}-{end_row}, Sheet: {sheet_name}"
    )

    validate_dimension_band(start_row, end_row, "ROWS")

    sheet_id = await resolve_sheet_id(service, spreadsheet_id, sheet_name)
    request = build_delete_dimension_request(sheet_id, "ROWS", start_row, end_row)
    await BatchSubmitter(service, "sheets").submit(spreadsheet_id, [request])

    count = end_row - start_row + 1
    logger.info(f"[delete_rows] Deleted {count} row(s) from sheet {sheet_id}.")
    return (
        f"Successfully deleted {count} row(s) ({start_row}-{end_row}) from sheet "
        f"{_sheet_label(sheet_name)} in spreadsheet {spreadsheet_id}."
    )


@server.tool()
@handle_http_errors("delete_columns", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def delete_columns(
    service,
    spreadsheet_id: str,
    start_column: str,
    end_column: str,
    sheet_name: Optional[str] = None,
) -> str:
    """
    Deletes a band of columns from a sheet. Columns to the right shift left.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        start_column (str): First column to delete, as letters (e.g., "C"). Required.
        end_column (str): Last column to delete, inclusive (e.g., "E"). Required.
        sheet_name (Optional[str]): Name of the sheet. Defaults to the first sheet.

    Returns:
        str: Confirmation message of the deletion.
    """
    logger.info(
        f"[delete_columns] Invoked. Spreadsheet: {spreadsheet_id}, Columns: {start_column}-{end_column}, Sheet: {sheet_name}"
    )

    start = column_letters_to_index(start_column) + 1
    end = column_letters_to_index(end_column) + 1
    validate_dimension_band(start, end, "COLUMNS")

    sheet_id = await resolve_sheet_id(service, spreadsheet_id, sheet_name)
    request = build_delete_dimension_request(sheet_id, "COLUMNS", start, end)
    await BatchSubmitter(service, "sheets").submit(spreadsheet_id, [request])

    count = end - start + 1
    logger.info(f"[delete_columns] Deleted {count} column(s) from sheet {sheet_id}.")
    return (
        f"Successfully deleted {count} column(s) ({start_column.upper()}-{end_column.upper()}) "
        f"from sheet {_sheet_label(sheet_name)} in spreadsheet {spreadsheet_id}."
    )


@server.tool()
@handle_http_errors("delete_row_ranges", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def delete_row_ranges(
    service,
    spreadsheet_id: str,
    row_ranges: List[List[int]],
    sheet_name: Optional[str] = None,
) -> str:
    """
    Deletes several row bands in one atomic batch.

    Bands use the row numbers as they are before any deletion. Overlapping or
    adjacent bands are merged and deleted bottom-to-top, so you never need to
    adjust numbers yourself.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        row_ranges (List[List[int]]): Bands as [start_row, end_row] pairs (1-based, inclusive), e.g. [[3, 5], [10, 10]]. Required.
        sheet_name (Optional[str]): Name of the sheet. Defaults to the first sheet.

    Returns:
        str: Confirmation message listing the deleted bands.
    """
    logger.info(
        f"[delete_row_ranges] Invoked. Spreadsheet: {spreadsheet_id}, Ranges: {row_ranges}, Sheet: {sheet_name}"
    )

    bands = parse_json_list(row_ranges, "row_ranges")
    plan = plan_dimension_deletions(bands or [], "ROWS")

    sheet_id = await resolve_sheet_id(service, spreadsheet_id, sheet_name)
    requests = [
        build_delete_dimension_request(sheet_id, "ROWS", start, end) for start, end in plan
    ]
    await BatchSubmitter(service, "sheets").submit(spreadsheet_id, requests)

    total = sum(end - start + 1 for start, end in plan)
    band_text = ", ".join(f"{start}-{end}" for start, end in plan)
    logger.info(f"[delete_row_ranges] Deleted {total} row(s) in {len(plan)} band(s).")
    return (
        f"Successfully deleted {total} row(s) in {len(plan)} band(s) ({band_text}) from sheet "
        f"{_sheet_label(sheet_name)} in spreadsheet {spreadsheet_id}."
    )


@server.tool()
@handle_http_errors("add_conditional_format_rule", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def add_conditional_format_rule(
    service,
    spreadsheet_id: str,
    range_name: str,
    rule_type: str = "BOOLEAN",
    condition_type: Optional[str] = None,
    condition_values: Optional[List[str]] = None,
    background_color: Optional[str] = None,
    font_color: Optional[str] = None,
    bold: Optional[bool] = None,
    italic: Optional[bool] = None,
    min_color: Optional[str] = None,
    mid_color: Optional[str] = None,
    max_color: Optional[str] = None,
    index: int = 0,
    sheet_name: Optional[str] = None,
) -> str:
    """
    Adds a conditional formatting rule to a range in a Google Sheet.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        range_name (str): The range the rule applies to (e.g., "A1:D10", "C:C"). Required.
        rule_type (str): BOOLEAN (condition-based) or GRADIENT (color scale). Defaults to BOOLEAN.
        condition_type (Optional[str]): For BOOLEAN rules: NUMBER_GREATER, NUMBER_GREATER_THAN_EQ, NUMBER_LESS, NUMBER_LESS_THAN_EQ, NUMBER_EQ, NUMBER_NOT_EQ, NUMBER_BETWEEN, NUMBER_NOT_BETWEEN, TEXT_CONTAINS, TEXT_NOT_CONTAINS, TEXT_STARTS_WITH, TEXT_ENDS_WITH, TEXT_EQ, BLANK, NOT_BLANK, CUSTOM_FORMULA.
        condition_values (Optional[List[str]]): Values for the condition. For NUMBER_BETWEEN provide [min, max]. For CUSTOM_FORMULA provide the formula (e.g., "=$B2>100").
        background_color (Optional[str]): Background color for BOOLEAN rules - hex or name.
        font_color (Optional[str]): Font color for BOOLEAN rules - hex or name.
        bold (Optional[bool]): Apply bold for BOOLEAN rules.
        italic (Optional[bool]): Apply italic for BOOLEAN rules.
        min_color (Optional[str]): GRADIENT color for the minimum value. Defaults to green.
        mid_color (Optional[str]): GRADIENT color for the 50th percentile (optional).
        max_color (Optional[str]): GRADIENT color for the maximum value. Defaults to red.
        index (int): Position in the sheet's rule list; 0 gives the rule highest priority. Defaults to 0.
        sheet_name (Optional[str]): Sheet name when range_name has no prefix. Defaults to the first sheet.

    Returns:
        str: Confirmation message of the rule creation.
    """
    logger.info(
        f"[add_conditional_format_rule] Invoked. Spreadsheet: {spreadsheet_id}, Range: {range_name}, Type: {rule_type}"
    )

    condition_values = parse_json_list(condition_values, "condition_values")
    rule_type_upper = (rule_type or "").upper()
    if rule_type_upper == "BOOLEAN":
        if not condition_type:
            raise InvalidParameterError("condition_type is required for BOOLEAN rules")
        boolean_rule = build_boolean_rule(
            condition_type, condition_values, background_color, font_color, bold, italic
        )
        gradient_rule = None
    elif rule_type_upper == "GRADIENT":
        boolean_rule = None
        gradient_rule = build_gradient_rule(min_color, mid_color, max_color)
    else:
        raise InvalidParameterError(
            f"Invalid rule_type: '{rule_type}'. Must be BOOLEAN or GRADIENT."
        )

    parsed, _, grid_range = await _resolve_range(
        service, spreadsheet_id, range_name, sheet_name
    )
    request = build_add_conditional_format_request(
        [grid_range], boolean_rule=boolean_rule, gradient_rule=gradient_rule, index=index
    )
    await BatchSubmitter(service, "sheets").submit(spreadsheet_id, [request])

    logger.info(f"[add_conditional_format_rule] Added {rule_type_upper} rule at index {index}.")
    return (
        f"Successfully added {rule_type_upper} conditional formatting rule at index {index} "
        f"to range '{_qualified_a1(parsed)}' in spreadsheet {spreadsheet_id}."
    )


@server.tool()
@handle_http_errors("get_conditional_format_rules", is_read_only=True, service_type="sheets")
@require_google_service("sheets", "sheets_read")
async def get_conditional_format_rules(
    service,
    spreadsheet_id: str,
    sheet_name: Optional[str] = None,
) -> str:
    """
    Lists conditional formatting rules with their current indices.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        sheet_name (Optional[str]): Only list rules for this sheet. Defaults to all sheets.

    Returns:
        str: One line per rule, grouped by sheet.
    """
    logger.info(
        f"[get_conditional_format_rules] Invoked. Spreadsheet: {spreadsheet_id}, Sheet: {sheet_name}"
    )

    sheets = await fetch_sheets_with_rules(service, spreadsheet_id)
    sheet_titles = {
        s.get("properties", {}).get("sheetId"): s.get("properties", {}).get("title", "")
        for s in sheets
    }

    if sheet_name is not None:
        sheets = [s for s in sheets if s.get("properties", {}).get("title") == sheet_name]
        if not sheets:
            available = list(sheet_titles.values())
            raise NotFoundError(
                f"Sheet '{sheet_name}' not found. Available sheets: {available}",
                context=ErrorContext(received={"sheet_name": sheet_name}, available=available),
            )

    sections = []
    for sheet in sheets:
        title = sheet.get("properties", {}).get("title", "Unknown")
        rules = sheet.get("conditionalFormats", [])
        lines = [f"Sheet '{title}': {len(rules)} rule(s)"]
        lines.extend(
            f"  {summarize_conditional_rule(rule, i, sheet_titles)}"
            for i, rule in enumerate(rules)
        )
        sections.append("\n".join(lines))

    logger.info(f"[get_conditional_format_rules] Listed rules for {len(sheets)} sheet(s).")
    return f"Conditional formatting rules in spreadsheet {spreadsheet_id}:\n\n" + "\n\n".join(sections)


@server.tool()
@handle_http_errors("delete_conditional_format_rule", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def delete_conditional_format_rule(
    service,
    spreadsheet_id: str,
    index: int,
    sheet_name: Optional[str] = None,
) -> str:
    """
    Deletes one conditional formatting rule by its index.

    Rules after the deleted one move up by one; list the rules again before
    deleting another by index.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        index (int): Zero-based index of the rule (see get_conditional_format_rules). Required.
        sheet_name (Optional[str]): Name of the sheet. Defaults to the first sheet.

    Returns:
        str: Confirmation message of the deletion.
    """
    logger.info(
        f"[delete_conditional_format_rule] Invoked. Spreadsheet: {spreadsheet_id}, Index: {index}, Sheet: {sheet_name}"
    )

    if index < 0:
        raise InvalidParameterError(f"index must be 0 or greater, got {index}")

    sheet_id = await resolve_sheet_id(service, spreadsheet_id, sheet_name)
    rules = await fetch_sheet_rules(service, spreadsheet_id, sheet_id)
    check_rule_index(index, len(rules), _sheet_label(sheet_name))

    await BatchSubmitter(service, "sheets").submit(
        spreadsheet_id, [build_delete_conditional_format_request(sheet_id, index)]
    )

    logger.info(f"[delete_conditional_format_rule] Deleted rule {index} on sheet {sheet_id}.")
    return (
        f"Successfully deleted conditional formatting rule {index} from sheet "
        f"{_sheet_label(sheet_name)} in spreadsheet {spreadsheet_id}. "
        f"{len(rules) - 1} rule(s) remain."
    )


@server.tool()
@handle_http_errors("clear_conditional_format_rules", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def clear_conditional_format_rules(
    service,
    spreadsheet_id: str,
    sheet_name: Optional[str] = None,
) -> str:
    """
    Removes every conditional formatting rule from a sheet in one atomic batch.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        sheet_name (Optional[str]): Name of the sheet. Defaults to the first sheet.

    Returns:
        str: Confirmation message with the number of rules removed.
    """
    logger.info(
        f"[clear_conditional_format_rules] Invoked. Spreadsheet: {spreadsheet_id}, Sheet: {sheet_name}"
    )

    sheet_id = await resolve_sheet_id(service, spreadsheet_id, sheet_name)
    rules = await fetch_sheet_rules(service, spreadsheet_id, sheet_id)
    if not rules:
        return (
            f"No conditional formatting rules on sheet {_sheet_label(sheet_name)} "
            f"in spreadsheet {spreadsheet_id}. Nothing was changed."
        )

    requests = build_clear_conditional_format_requests(sheet_id, len(rules))
    await BatchSubmitter(service, "sheets").submit(spreadsheet_id, requests)

    logger.info(f"[clear_conditional_format_rules] Removed {len(rules)} rule(s) from sheet {sheet_id}.")
    return (
        f"Successfully cleared {len(rules)} conditional formatting rule(s) from sheet "
        f"{_sheet_label(sheet_name)} in spreadsheet {spreadsheet_id}."
    )


@server.tool()
@handle_http_errors("set_dropdown_validation", service_type="sheets")
@require_google_service("sheets", "sheets_write")
async def set_dropdown_validation(
    service,
    spreadsheet_id: str,
    range_name: str,
    values: Optional[List[str]] = None,
    source_range: Optional[str] = None,
    strict: bool = True,
    input_message: Optional[str] = None,
    sheet_name: Optional[str] = None,
) -> str:
    """
    Adds a dropdown to a range, or removes validation when no options are given.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        range_name (str): Cells that get the dropdown (e.g., "B2:B100"). Required.
        values (Optional[List[str]]): Fixed dropdown options, e.g. ["Open", "Closed"].
        source_range (Optional[str]): Range holding the options instead of a fixed list, e.g. "Lists!A1:A10". Takes precedence over values.
        strict (bool): Reject input that is not in the list. Defaults to True.
        input_message (Optional[str]): Help text shown when a cell is selected.
        sheet_name (Optional[str]): Sheet name when range_name has no prefix. Defaults to the first sheet.

    Returns:
        str: Confirmation message describing the validation that was set or cleared.
    """
    logger.info(
        f"[set_dropdown_validation] Invoked. Spreadsheet: {spreadsheet_id}, Range: {range_name}"
    )

    values = parse_json_list(values, "values")
    source_formula = None
    if source_range:
        source = parse_range_address(source_range)
        source_formula = f"={_qualified_a1(source)}"

    parsed, _, grid_range = await _resolve_range(
        service, spreadsheet_id, range_name, sheet_name
    )
    if source_range and source.sheet_name:
        # Raises NotFoundError for a missing source sheet
        await resolve_sheet_id(service, spreadsheet_id, source.sheet_name)

    request = build_data_validation_request(
        grid_range, values, source_formula, strict, input_message
    )
    await BatchSubmitter(service, "sheets").submit(spreadsheet_id, [request])

    target = _qualified_a1(parsed)
    if source_formula:
        detail = f"dropdown from range {source_formula[1:]}"
    elif values:
        detail = f"dropdown with {len(values)} option(s)"
    else:
        logger.info(f"[set_dropdown_validation] Cleared validation on {target}.")
        return f"Successfully cleared data validation from '{target}' in spreadsheet {spreadsheet_id}."

    logger.info(f"[set_dropdown_validation] Set {detail} on {target}.")
    return (
        f"Successfully set {detail} on '{target}' in spreadsheet {spreadsheet_id} "
        f"(strict={strict})."
    )


async def _read_grid(service, spreadsheet_id: str, range_name: str, fields: str) -> Dict[str, Any]:
    parsed = parse_range_address(range_name)
    return await asyncio.to_thread(
        service.spreadsheets()
        .get(
            spreadsheetId=spreadsheet_id,
            ranges=[_qualified_a1(parsed)],
            includeGridData=True,
            fields=fields,
        )
        .execute
    )


@server.tool()
@handle_http_errors("get_data_validation", is_read_only=True, service_type="sheets")
@require_google_service("sheets", "sheets_read")
async def get_data_validation(
    service,
    spreadsheet_id: str,
    range_name: str,
) -> str:
    """
    Reads the data validation rules (dropdowns etc.) for a range of cells.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        range_name (str): Range to inspect, optionally with a sheet prefix (e.g., "Sheet1!B2:B20"). Required.

    Returns:
        str: One line per cell that has validation.
    """
    logger.info(
        f"[get_data_validation] Invoked. Spreadsheet: {spreadsheet_id}, Range: {range_name}"
    )

    spreadsheet = await _read_grid(
        service,
        spreadsheet_id,
        range_name,
        "sheets(properties(title,sheetId),data(startRow,startColumn,rowData(values(dataValidation))))",
    )
    lines = extract_data_validations(spreadsheet)
    if not lines:
        return f"No data validation rules found in range '{range_name}'."

    logger.info(f"[get_data_validation] Found {len(lines)} validated cell(s).")
    return f"Data validation in '{range_name}' ({len(lines)} cell(s)):\n" + "\n".join(lines)


@server.tool()
@handle_http_errors("get_cell_formatting", is_read_only=True, service_type="sheets")
@require_google_service("sheets", "sheets_read")
async def get_cell_formatting(
    service,
    spreadsheet_id: str,
    range_name: str,
) -> str:
    """
    Reads the effective formatting (font, colors, alignment, number format) of a range.

    Only cells whose formatting differs from the defaults are listed.

    Args:
        spreadsheet_id (str): The ID of the spreadsheet. Required.
        range_name (str): Range to inspect, optionally with a sheet prefix (e.g., "Schedule!A10:P16"). Required.

    Returns:
        str: One line per non-default cell.
    """
    logger.info(
        f"[get_cell_formatting] Invoked. Spreadsheet: {spreadsheet_id}, Range: {range_name}"
    )

    spreadsheet = await _read_grid(
        service,
        spreadsheet_id,
        range_name,
        "sheets(properties(title,sheetId),data(startRow,startColumn,rowData(values(effectiveFormat))))",
    )
    lines = summarize_cell_formats(spreadsheet)
    if not lines:
        return f"All cells in '{range_name}' have default formatting."

    logger.info(f"[get_cell_formatting] Found {len(lines)} formatted cell(s).")
    return f"Cell formatting in '{range_name}':\n" + "\n".join(lines)
