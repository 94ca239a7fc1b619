"""
Google Docs Helper Functions

This module provides builders for the primitive Google Docs batchUpdate
requests used by the document editing tools, plus the position-shift
bookkeeping reported back to callers after an edit.
"""
import logging
from typing import Dict, Any, Optional, Tuple, List
from enum import Enum
from dataclasses import dataclass, asdict

from core.style_codec import FieldMaskBuilder

logger = logging.getLogger(__name__)


class OperationType(str, Enum):
    """Type of document modification operation."""
    REPLACE = "replace"
    FORMAT = "format"


@dataclass
class OperationResult:
    """
    Result of a document modification operation with position shift information.

    This enables follow-up edits in the same session to account for the
    exact position shift caused by the operation without guessing.
    """
    success: bool
    operation: str  # OperationType value
    position_shift: int  # Positive = positions shifted right, negative = shifted left
    affected_range: Dict[str, int]  # {"start": x, "end": y}
    message: str

    # Optional fields depending on operation type
    deleted_length: Optional[int] = None
    new_length: Optional[int] = None
    requests_count: Optional[int] = None
    styles_applied: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = asdict(self)
        return {k: v for k, v in result.items() if v is not None}


def calculate_position_shift(
    operation_type: OperationType,
    start_index: int,
    end_index: int,
    text_length: int
) -> Tuple[int, Dict[str, int]]:
    """
    Calculate the position shift caused by a document operation.

    Args:
        operation_type: Type of operation performed
        start_index: Start position of the operation
        end_index: End position of the replaced or formatted range
        text_length: Length of the new text (0 for format)

    Returns:
        Tuple of (position_shift, affected_range)
        - position_shift: How much positions after the operation shifted
        - affected_range: {"start": x, "end": y} of the affected area
    """
    if operation_type == OperationType.REPLACE:
        shift = text_length - (end_index - start_index)
        return shift, {"start": start_index, "end": start_index + text_length}

    # Formatting never moves content
    return 0, {"start": start_index, "end": end_index}


def _range(start_index: int, end_index: int, tab_id: Optional[str]) -> Dict[str, Any]:
    doc_range = {'startIndex': start_index, 'endIndex': end_index}
    if tab_id:
        doc_range['tabId'] = tab_id
    return doc_range


def create_insert_text_request(index: int, text: str, tab_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Create an insertText request for Google Docs API.

    Args:
        index: Position to insert text
        text: Text to insert
        tab_id: Optional tab to target in a multi-tab document

    Returns:
        Dictionary representing the insertText request
    """
    location = {'index': index}
    if tab_id:
        location['tabId'] = tab_id
    return {
        'insertText': {
            'location': location,
            'text': text
        }
    }


def create_delete_range_request(start_index: int, end_index: int, tab_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Create a deleteContentRange request for Google Docs API.

    Args:
        start_index: Start position of content to delete
        end_index: End position of content to delete (exclusive)
        tab_id: Optional tab to target in a multi-tab document
    """
    return {
        'deleteContentRange': {
            'range': _range(start_index, end_index, tab_id)
        }
    }


def create_update_text_style_request(
    start_index: int,
    end_index: int,
    text_style: FieldMaskBuilder,
    tab_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Create an updateTextStyle request from a built text style.

    Returns:
        The request, or None if the style sets no fields
    """
    if not text_style:
        return None
    return {
        'updateTextStyle': {
            'range': _range(start_index, end_index, tab_id),
            'textStyle': text_style.payload,
            'fields': text_style.mask
        }
    }


def create_update_paragraph_style_request(
    start_index: int,
    end_index: int,
    paragraph_style: FieldMaskBuilder,
    tab_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Create an updateParagraphStyle request from a built paragraph style.

    The range must reach the paragraph's trailing newline for the style to
    apply to the whole paragraph.

    Returns:
        The request, or None if the style sets no fields
    """
    if not paragraph_style:
        return None
    return {
        'updateParagraphStyle': {
            'range': _range(start_index, end_index, tab_id),
            'paragraphStyle': paragraph_style.payload,
            'fields': paragraph_style.mask
        }
    }
