"""
Google Docs Document Structure Navigation

This module walks the structural metadata of a fetched Google Docs document
to turn human-facing table coordinates (table start index, row, column) into
absolute character offsets. It never inspects or renders text content.
"""

import asyncio
import logging
from typing import Any, Optional

from core.errors import (
    ErrorContext,
    IndexOutOfRangeError,
    NotATableError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def _find_tab_body(tabs: list[dict[str, Any]], target_id: str) -> Optional[dict[str, Any]]:
    """Recursively search tabs and child tabs for the target tab ID."""
    for tab in tabs:
        if tab.get("tabProperties", {}).get("tabId") == target_id:
            return tab.get("documentTab", {}).get("body", {})
        child_tabs = tab.get("childTabs", [])
        if child_tabs:
            body = _find_tab_body(child_tabs, target_id)
            if body is not None:
                return body
    return None


def _collect_tab_ids(tabs: list[dict[str, Any]]) -> list[str]:
    ids = []
    for tab in tabs:
        tab_id = tab.get("tabProperties", {}).get("tabId")
        if tab_id:
            ids.append(tab_id)
        ids.extend(_collect_tab_ids(tab.get("childTabs", [])))
    return ids


def get_body_for_tab(doc_data: dict[str, Any], tab_id: str = None) -> dict[str, Any]:
    """
    Get the body content for a specific tab in a document.

    For multi-tab documents fetched with includeTabsContent=True, this extracts
    the body content for the specified tab. If tab_id is None, returns the default
    tab's body (either root body for legacy format or first tab's body).

    Args:
        doc_data: Raw document data from Google Docs API
        tab_id: Optional tab ID to get body for. If None, uses default/first tab.

    Returns:
        Body dictionary with 'content' array

    Raises:
        NotFoundError: if tab_id is given but no such tab exists
    """
    tabs = doc_data.get("tabs", [])

    if tab_id is not None:
        body = _find_tab_body(tabs, tab_id)
        if body is None:
            available = _collect_tab_ids(tabs)
            raise NotFoundError(
                f"Tab '{tab_id}' not found in document",
                context=ErrorContext(received={"tab_id": tab_id}, available=available),
            )
        return body

    if tabs:
        return tabs[0].get("documentTab", {}).get("body", {})

    return doc_data.get("body", {})


def _describe_element(element: dict[str, Any]) -> str:
    for kind in ("paragraph", "table", "sectionBreak", "tableOfContents"):
        if kind in element:
            return kind
    return "unknown"


def _find_table_element(content: list[dict[str, Any]], table_start_index: int) -> dict[str, Any]:
    """Find the top-level table whose startIndex is exactly table_start_index."""
    for element in content:
        if element.get("startIndex") != table_start_index:
            continue
        if "table" in element:
            return element
        found = _describe_element(element)
        raise NotATableError(
            f"Element at index {table_start_index} is a {found}, not a table",
            context=ErrorContext(received={"table_start_index": table_start_index, "found": found}),
        )

    table_starts = [str(e.get("startIndex")) for e in content if "table" in e]
    raise NotATableError(
        f"No table starts at index {table_start_index}",
        reason="tableStartIndex must be the startIndex of the table element itself.",
        context=ErrorContext(
            received={"table_start_index": table_start_index},
            available=table_starts,
        ),
    )


def get_table_cell_range(
    doc_data: dict[str, Any],
    table_start_index: int,
    row: int,
    column: int,
    tab_id: str = None,
) -> tuple[int, int]:
    """
    Compute the content offset span of one table cell.

    The span covers the cell's text but not the paragraph delimiter that
    ends its last paragraph, so an empty cell yields start == end.

    Args:
        doc_data: Raw document data from Google Docs API
        table_start_index: startIndex of the table element
        row: Zero-based row
        column: Zero-based column
        tab_id: Optional tab ID for multi-tab documents

    Returns:
        (start_index, end_index), end exclusive

    Raises:
        NotATableError: if no table element starts at table_start_index
        IndexOutOfRangeError: if row or column is outside the table
    """
    body = get_body_for_tab(doc_data, tab_id)
    table_element = _find_table_element(body.get("content", []), table_start_index)
    rows = table_element["table"].get("tableRows", [])

    if row < 0 or row >= len(rows):
        raise IndexOutOfRangeError(
            f"Row {row} is out of range: table at {table_start_index} has {len(rows)} row(s)",
            context=ErrorContext(received={"row": row}, expected={"min": 0, "max": len(rows) - 1}),
        )

    cells = rows[row].get("tableCells", [])
    if column < 0 or column >= len(cells):
        raise IndexOutOfRangeError(
            f"Column {column} is out of range: row {row} of table at {table_start_index} "
            f"has {len(cells)} cell(s)",
            context=ErrorContext(
                received={"column": column}, expected={"min": 0, "max": len(cells) - 1}
            ),
        )

    cell = cells[column]
    content = cell.get("content", [])
    if not content:
        # A cell always holds at least one paragraph; fall back to its bounds
        start = cell.get("startIndex", 0) + 1
        end = max(start, cell.get("endIndex", start + 1) - 1)
        logger.debug(f"Cell ({row}, {column}) has no content elements, using bounds {start}-{end}")
        return start, end

    start = content[0].get("startIndex", cell.get("startIndex", 0) + 1)
    end = content[-1].get("endIndex", start + 1) - 1
    logger.debug(f"Cell ({row}, {column}) of table at {table_start_index}: content {start}-{end}")
    return start, max(start, end)


async def resolve_table_cell_range(
    service,
    document_id: str,
    table_start_index: int,
    row: int,
    column: int,
    tab_id: str = None,
) -> tuple[int, int]:
    """
    Live read of the document followed by get_table_cell_range.

    Offsets change with every edit, so this must run immediately before the
    requests that use them are built.
    """
    get_kwargs = {"documentId": document_id}
    if tab_id is not None:
        get_kwargs["includeTabsContent"] = True
    doc_data = await asyncio.to_thread(service.documents().get(**get_kwargs).execute)
    return get_table_cell_range(doc_data, table_start_index, row, column, tab_id)
