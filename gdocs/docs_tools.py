"""
Google Docs MCP Tools

This module provides MCP tools for index-addressed editing of Google Docs
tables.
"""
import logging
from typing import Optional

from auth.service_decorator import require_google_service
from core.errors import InvalidParameterError, NoOpError
from core.server import server
from core.style_codec import build_paragraph_style, build_text_style
from core.utils import handle_http_errors
from gdocs.managers.cell_edit_manager import TableCellEditManager

logger = logging.getLogger(__name__)


@server.tool()
@handle_http_errors("edit_table_cell", service_type="docs")
@require_google_service("docs", "docs_write")
async def edit_table_cell(
    service,
    document_id: str,
    table_start_index: int,
    row_index: int,
    column_index: int,
    text_content: Optional[str] = None,
    bold: Optional[bool] = None,
    italic: Optional[bool] = None,
    underline: Optional[bool] = None,
    strikethrough: Optional[bool] = None,
    font_size: Optional[float] = None,
    font_family: Optional[str] = None,
    foreground_color: Optional[str] = None,
    background_color: Optional[str] = None,
    link_url: Optional[str] = None,
    alignment: Optional[str] = None,
    named_style_type: Optional[str] = None,
    indent_start: Optional[float] = None,
    indent_end: Optional[float] = None,
    space_above: Optional[float] = None,
    space_below: Optional[float] = None,
    tab_id: Optional[str] = None,
) -> str:
    """
    Replaces the content of one table cell and/or restyles it.

    The table is addressed by the start index of its table element (as shown
    by the document structure), and the cell by zero-based row and column.
    Cell offsets are resolved from the live document right before editing,
    and the delete, insert and style requests are applied in one atomic batch.

    Args:
        document_id (str): The ID of the document. Required.
        table_start_index (int): startIndex of the table element. Required.
        row_index (int): Zero-based row of the cell. Required.
        column_index (int): Zero-based column of the cell. Required.
        text_content (Optional[str]): New cell text. Replaces existing content; an empty string clears the cell. Omit to keep the current text.
        bold (Optional[bool]): Set text bold.
        italic (Optional[bool]): Set text italic.
        underline (Optional[bool]): Set text underline.
        strikethrough (Optional[bool]): Set text strikethrough.
        font_size (Optional[float]): Font size in points.
        font_family (Optional[str]): Font family name (e.g., "Arial").
        foreground_color (Optional[str]): Text color - hex (#RRGGBB or #RGB) or name.
        background_color (Optional[str]): Text highlight color - hex or name.
        link_url (Optional[str]): Hyperlink for the cell text. Empty string removes a link.
        alignment (Optional[str]): START, CENTER, END, or JUSTIFIED.
        named_style_type (Optional[str]): NORMAL_TEXT, TITLE, SUBTITLE, HEADING_1 ... HEADING_6.
        indent_start (Optional[float]): Start indent in points.
        indent_end (Optional[float]): End indent in points.
        space_above (Optional[float]): Space above the paragraph in points.
        space_below (Optional[float]): Space below the paragraph in points.
        tab_id (Optional[str]): Tab containing the table, for multi-tab documents.

    Returns:
        str: Confirmation message with the position shift caused by the edit.
    """
    logger.info(
        f"[edit_table_cell] Invoked. Document: {document_id}, Table: {table_start_index}, "
        f"Cell: ({row_index}, {column_index})"
    )

    if table_start_index < 1:
        raise InvalidParameterError(
            f"table_start_index must be >= 1, got {table_start_index}"
        )
    if row_index < 0 or column_index < 0:
        raise InvalidParameterError(
            f"row_index and column_index must be >= 0, got ({row_index}, {column_index})"
        )

    text_style = build_text_style(
        bold=bold,
        italic=italic,
        underline=underline,
        strikethrough=strikethrough,
        font_size=font_size,
        font_family=font_family,
        foreground_color=foreground_color,
        background_color=background_color,
        link_url=link_url,
    )
    paragraph_style = build_paragraph_style(
        alignment=alignment,
        indent_start=indent_start,
        indent_end=indent_end,
        space_above=space_above,
        space_below=space_below,
        named_style_type=named_style_type,
    )
    if text_content is None and not text_style and not paragraph_style:
        return (
            "No changes specified. Provide text_content or at least one text or "
            "paragraph style option."
        )

    manager = TableCellEditManager(service)
    try:
        result = await manager.edit_cell(
            document_id,
            table_start_index,
            row_index,
            column_index,
            text_content=text_content,
            text_style=text_style or None,
            paragraph_style=paragraph_style or None,
            tab_id=tab_id,
        )
    except NoOpError as e:
        logger.info(f"[edit_table_cell] Nothing to apply: {e.structured.reason}")
        return (
            f"No changes applied to cell ({row_index}, {column_index}): "
            f"{(e.structured.reason or e.message).rstrip('.')}."
        )

    logger.info(
        f"[edit_table_cell] Applied {result.requests_count} request(s) to document {document_id}"
    )
    link = f"https://docs.google.com/document/d/{document_id}/edit"
    details = [f"position shift {result.position_shift:+d}"]
    if result.styles_applied:
        details.append(f"styles: {', '.join(result.styles_applied)}")
    return f"{result.message} in document {document_id} ({'; '.join(details)}). Link: {link}"
