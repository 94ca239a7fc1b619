"""
Workspace Edit Error Handling

This module provides the error taxonomy shared by the Sheets and Docs
edit tools. Every failure carries a structured, machine-readable payload so
that both humans and AI agents can see what went wrong and how to fix it.

Local errors (malformed coordinates, colors, parameters) are raised before
any remote call is issued. Remote errors are translated from googleapiclient
HttpError instances with the original HTTP status preserved.
"""
import json
import logging
import re
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, List, Optional

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standardized error codes for edit operations."""

    # Local validation errors
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_PARAM_VALUE = "INVALID_PARAM_VALUE"

    # Structural resolution errors
    NOT_FOUND = "NOT_FOUND"
    EMPTY_DOCUMENT = "EMPTY_DOCUMENT"
    NOT_A_TABLE = "NOT_A_TABLE"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"

    # Remote errors
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UNAVAILABLE = "UNAVAILABLE"

    # Successful but empty
    NO_OP = "NO_OP"


@dataclass
class ErrorContext:
    """Additional context for error messages."""
    received: Optional[Dict[str, Any]] = None
    expected: Optional[Dict[str, Any]] = None
    available: Optional[List[str]] = None
    http_status: Optional[int] = None
    remote_message: Optional[str] = None
    possible_causes: Optional[List[str]] = None


@dataclass
class StructuredError:
    """
    Structured error response with actionable guidance.

    Attributes:
        error: Always True for error responses
        code: Machine-readable error code from ErrorCode enum
        message: Human-readable error description
        reason: Explanation of why this error occurred
        suggestion: Actionable advice on how to fix the issue
        context: Additional context like received values or the HTTP status
    """
    error: bool = True
    code: str = ""
    message: str = ""
    reason: str = ""
    suggestion: str = ""
    context: Optional[ErrorContext] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = {
            "error": self.error,
            "code": self.code,
            "message": self.message,
        }

        if self.reason:
            result["reason"] = self.reason
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.context:
            ctx = asdict(self.context)
            ctx = {k: v for k, v in ctx.items() if v is not None}
            if ctx:
                result["context"] = ctx

        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


class WorkspaceEditError(Exception):
    """Base class for every error raised by the edit engine."""

    code = ErrorCode.INVALID_ARGUMENT
    default_suggestion = ""

    def __init__(
        self,
        message: str,
        reason: str = "",
        suggestion: Optional[str] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.structured = StructuredError(
            code=self.code.value,
            message=message,
            reason=reason,
            suggestion=suggestion if suggestion is not None else self.default_suggestion,
            context=context,
        )

    @property
    def http_status(self) -> Optional[int]:
        if self.structured.context is None:
            return None
        return self.structured.context.http_status

    def to_json(self) -> str:
        return self.structured.to_json()


class InvalidFormatError(WorkspaceEditError):
    """Malformed human-facing coordinate or color text."""

    code = ErrorCode.INVALID_FORMAT
    default_suggestion = (
        "Use A1 notation such as 'B12', 'A1:C5', '3:5' (whole rows) or 'A:C' "
        "(whole columns), and hex colors such as '#FF0000' or 'F00'."
    )


class InvalidParameterError(WorkspaceEditError):
    """A parameter failed type, bounds or enum validation."""

    code = ErrorCode.INVALID_PARAM_VALUE


class NotFoundError(WorkspaceEditError):
    """Named sheet, table, cell or document does not exist."""

    code = ErrorCode.NOT_FOUND
    default_suggestion = "Verify the identifier and the exact (case-sensitive) name."


class EmptyDocumentError(WorkspaceEditError):
    """The spreadsheet has no sheets and none was named."""

    code = ErrorCode.EMPTY_DOCUMENT


class NotATableError(WorkspaceEditError):
    """The element at the given document offset is not a table."""

    code = ErrorCode.NOT_A_TABLE
    default_suggestion = (
        "Pass the startIndex of the table element itself. Read the document "
        "structure first to find it."
    )


class IndexOutOfRangeError(WorkspaceEditError):
    """A numeric coordinate exceeds known structural bounds."""

    code = ErrorCode.INDEX_OUT_OF_RANGE


class PermissionDeniedError(WorkspaceEditError):
    """Remote authorization failure."""

    code = ErrorCode.PERMISSION_DENIED
    default_suggestion = "Ensure the authenticated account has edit access."


class InvalidArgumentError(WorkspaceEditError):
    """The remote service rejected the request shape."""

    code = ErrorCode.INVALID_ARGUMENT


class UnavailableError(WorkspaceEditError):
    """Transient remote failure. Safe to retry the whole logical operation."""

    code = ErrorCode.UNAVAILABLE
    default_suggestion = "The service is temporarily unavailable. Try again shortly."


class NoOpError(WorkspaceEditError):
    """A well-formed request that resolved to zero primitive operations."""

    code = ErrorCode.NO_OP


_DOCS_INDEX_PATTERNS = (
    re.compile(r"Index\s+\d+\s+must be less than the end index", re.IGNORECASE),
    re.compile(r"insertion index must be inside the bounds", re.IGNORECASE),
)


def _remote_message(error: HttpError) -> str:
    reason = getattr(error, "reason", None)
    if reason:
        return str(reason)
    return str(error)


def translate_http_error(error: HttpError, target_id: Optional[str] = None) -> WorkspaceEditError:
    """
    Translate a googleapiclient HttpError into the engine's error taxonomy.

    Args:
        error: The HttpError raised by a discovery request's execute()
        target_id: Spreadsheet or document ID the request targeted

    Returns:
        A WorkspaceEditError subclass instance with the HTTP status preserved
    """
    status = getattr(error.resp, "status", None)
    try:
        status = int(status)
    except (TypeError, ValueError):
        status = None

    remote = _remote_message(error)
    context = ErrorContext(
        received={"target_id": target_id} if target_id else None,
        http_status=status,
        remote_message=remote,
    )
    target = f" '{target_id}'" if target_id else ""

    if status == 404:
        return NotFoundError(
            f"Target{target} was not found",
            reason="The ID may be incorrect, the file deleted, or not shared with you.",
            context=context,
        )
    if status in (401, 403):
        return PermissionDeniedError(
            f"Permission denied for{target or ' target'}",
            reason=remote,
            context=context,
        )
    if status == 400:
        if any(p.search(remote) for p in _DOCS_INDEX_PATTERNS):
            return IndexOutOfRangeError(
                f"Index is outside the bounds of{target or ' the document'}",
                reason=remote,
                suggestion="Re-read the document structure and recompute indices.",
                context=context,
            )
        return InvalidArgumentError(
            f"Request rejected by the remote service: {remote}",
            reason="A request in the batch was malformed (e.g. overlapping ranges or an invalid field mask).",
            context=context,
        )
    if status == 429 or (status is not None and status >= 500):
        return UnavailableError(
            f"Remote service unavailable (HTTP {status})",
            reason=remote,
            context=context,
        )

    return InvalidArgumentError(
        f"Remote error (HTTP {status}): {remote}",
        context=context,
    )
