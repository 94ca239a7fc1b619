"""
Table Cell Edit Manager

Builds and submits the requests for one logical table-cell edit: replace
the cell's content, then restyle the result.

Features:
- Offsets resolved live immediately before the requests are built
- Forward-only builder: delete, insert, text style, paragraph style
- Later request ranges account for the drift caused by earlier ones
- Atomic submission of the whole edit in one batchUpdate
"""
import logging
from enum import IntEnum
from typing import Any, Dict, List, Optional

from core.batch import BatchSubmitter
from core.errors import NoOpError
from core.style_codec import FieldMaskBuilder
from gdocs.docs_helpers import (
    OperationResult,
    OperationType,
    calculate_position_shift,
    create_delete_range_request,
    create_insert_text_request,
    create_update_paragraph_style_request,
    create_update_text_style_request,
)
from gdocs.docs_structure import resolve_table_cell_range

logger = logging.getLogger(__name__)

_STEP_ORDER = ("replace_text", "apply_text_style", "apply_paragraph_style", "build")


class CellEditState(IntEnum):
    """Builder states. Transitions only move forward."""
    UNEDITED = 0
    DELETED = 1
    INSERTED = 2
    STYLED = 3


class CellEditBuilder:
    """
    Computes the ordered requests for an edit of the content range [start, end).

    Steps must be called in order: replace_text, apply_text_style,
    apply_paragraph_style, build. Any step may be skipped, but none may be
    called after a later one.

    Example:
        builder = CellEditBuilder(10, 15)
        builder.replace_text("newtext8")
        builder.apply_text_style(build_text_style(bold=True))
        requests = builder.build()
        # delete[10,15), insert@10, updateTextStyle[10,18)
    """

    def __init__(self, start: int, end: int, tab_id: Optional[str] = None):
        if start < 0 or end < start:
            raise ValueError(f"Invalid content range [{start}, {end})")
        self.start = start
        self.end = end
        self.tab_id = tab_id
        self.state = CellEditState.UNEDITED
        self._last_step = -1
        self.text: Optional[str] = None
        self.requests: List[Dict[str, Any]] = []
        self.styles_applied: List[str] = []
        self.skipped: List[str] = []

    def _enter(self, step: str) -> None:
        position = _STEP_ORDER.index(step)
        if position <= self._last_step:
            raise RuntimeError(
                f"{step} called after {_STEP_ORDER[self._last_step]}; "
                f"steps must run in the order {', '.join(_STEP_ORDER)}"
            )
        self._last_step = position

    @property
    def new_end(self) -> int:
        """End of the cell content once deletion and insertion have applied."""
        if self.text is not None:
            return self.start + len(self.text)
        return self.end

    def replace_text(self, text: str) -> "CellEditBuilder":
        """Delete existing content (if any) and insert text (if non-empty) at start."""
        self._enter("replace_text")
        self.text = text

        if self.end > self.start:
            self.requests.append(
                create_delete_range_request(self.start, self.end, self.tab_id)
            )
        self.state = CellEditState.DELETED

        self.state = CellEditState.INSERTED
        if text:
            self.requests.append(
                create_insert_text_request(self.start, text, self.tab_id)
            )
        return self

    def apply_text_style(self, text_style: FieldMaskBuilder) -> "CellEditBuilder":
        """Style [start, new_end). Skipped when the resulting content is empty."""
        self._enter("apply_text_style")
        self.state = CellEditState.STYLED
        if text_style and self.new_end > self.start:
            self.requests.append(
                create_update_text_style_request(
                    self.start, self.new_end, text_style, self.tab_id
                )
            )
            self.styles_applied.extend(text_style.fields)
        elif text_style:
            logger.debug("Cell content is empty after edit, skipping text style")
            self.skipped.append("the text style was skipped because the cell has no text to style")
        return self

    def apply_paragraph_style(self, paragraph_style: FieldMaskBuilder) -> "CellEditBuilder":
        """Style the paragraph including its trailing delimiter."""
        self._enter("apply_paragraph_style")
        self.state = CellEditState.STYLED
        if not paragraph_style or self.new_end < self.start:
            return self

        if self.text is not None:
            paragraph_end = self.new_end + 1
        else:
            paragraph_end = self.end + 1
        self.requests.append(
            create_update_paragraph_style_request(
                self.start, paragraph_end, paragraph_style, self.tab_id
            )
        )
        self.styles_applied.extend(paragraph_style.fields)
        return self

    def build(self) -> List[Dict[str, Any]]:
        """
        Return the ordered requests.

        Raises:
            NoOpError: if no step produced a request
        """
        if not self.requests:
            if self.text is not None:
                self.skipped.insert(0, "the cell is already empty")
            raise NoOpError(
                "No changes to apply",
                reason="; ".join(self.skipped)
                or "Provide text_content, a text style or a paragraph style.",
            )
        self._enter("build")
        logger.debug(f"Built {len(self.requests)} request(s) for range [{self.start}, {self.end})")
        return list(self.requests)


class TableCellEditManager:
    """
    High-level manager for editing one table cell.

    Usage:
        manager = TableCellEditManager(service)
        result = await manager.edit_cell(document_id, table_start_index, row, column, ...)
    """

    def __init__(self, service):
        self.service = service

    async def edit_cell(
        self,
        document_id: str,
        table_start_index: int,
        row: int,
        column: int,
        text_content: Optional[str] = None,
        text_style: Optional[FieldMaskBuilder] = None,
        paragraph_style: Optional[FieldMaskBuilder] = None,
        tab_id: Optional[str] = None,
    ) -> OperationResult:
        """
        Resolve the cell, build the drift-compensated requests and submit them.

        Raises:
            NoOpError: if nothing was requested for the cell
            NotATableError, IndexOutOfRangeError: from cell resolution
        """
        start, end = await resolve_table_cell_range(
            self.service, document_id, table_start_index, row, column, tab_id
        )
        logger.info(f"Cell ({row}, {column}) content range: {start}-{end}")

        builder = CellEditBuilder(start, end, tab_id)
        if text_content is not None:
            builder.replace_text(text_content)
        if text_style:
            builder.apply_text_style(text_style)
        if paragraph_style:
            builder.apply_paragraph_style(paragraph_style)
        requests = builder.build()

        result = await BatchSubmitter(self.service, "docs").submit(document_id, requests)

        if text_content is not None:
            operation = OperationType.REPLACE
            shift, affected = calculate_position_shift(
                operation, start, end, len(text_content)
            )
        else:
            operation = OperationType.FORMAT
            shift, affected = calculate_position_shift(operation, start, end, 0)

        return OperationResult(
            success=True,
            operation=operation.value,
            position_shift=shift,
            affected_range=affected,
            message=f"Edited cell ({row}, {column}) of table at index {table_start_index}",
            deleted_length=(end - start) if text_content is not None else None,
            new_length=len(text_content) if text_content is not None else None,
            requests_count=result.requests_count,
            styles_applied=builder.styles_applied or None,
        )
