"""
Batch Submitter

Packages an ordered list of primitive requests into batchUpdate calls for
Google Sheets or Google Docs.

Features:
- Atomic submission (the remote service applies a whole call or none of it)
- Order preserved exactly as built
- Oversized lists split into sequential, individually atomic chunks
- No automatic retry; errors are translated and surfaced to the caller
"""
import asyncio
import logging
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional

from googleapiclient.errors import HttpError

from core.config import get_max_batch_requests
from core.errors import NoOpError, translate_http_error

logger = logging.getLogger(__name__)

SUPPORTED_SERVICES = ("sheets", "docs")


def chunk_requests(requests: List[Dict[str, Any]], chunk_size: int) -> List[List[Dict[str, Any]]]:
    """
    Split requests into ordered chunks of at most chunk_size.

    Raises:
        ValueError: if chunk_size is not positive
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [requests[i : i + chunk_size] for i in range(0, len(requests), chunk_size)]


@dataclass
class BatchResult:
    """Outcome of one submission."""
    target_id: str
    requests_count: int
    calls_made: int
    replies: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BatchSubmitter:
    """
    Submits request lists to a Sheets or Docs batchUpdate endpoint.

    Usage:
        submitter = BatchSubmitter(service, "sheets")
        result = await submitter.submit(spreadsheet_id, requests)
    """

    def __init__(self, service, service_type: str, max_batch_requests: Optional[int] = None):
        if service_type not in SUPPORTED_SERVICES:
            raise ValueError(
                f"Unsupported service type '{service_type}'. Must be one of: {list(SUPPORTED_SERVICES)}"
            )
        self.service = service
        self.service_type = service_type
        self.max_batch_requests = max_batch_requests or get_max_batch_requests()

    def _batch_update(self, target_id: str, requests: List[Dict[str, Any]]):
        body = {"requests": requests}
        if self.service_type == "sheets":
            return self.service.spreadsheets().batchUpdate(spreadsheetId=target_id, body=body)
        return self.service.documents().batchUpdate(documentId=target_id, body=body)

    async def submit(self, target_id: str, requests: List[Dict[str, Any]]) -> BatchResult:
        """
        Submit requests in order.

        Args:
            target_id: Spreadsheet or document ID
            requests: Ordered, non-empty list of primitive requests

        Returns:
            BatchResult with the collected replies

        Raises:
            NoOpError: if requests is empty
            WorkspaceEditError: translated remote failure; chunks already
                applied are reported in the error context
        """
        if not requests:
            raise NoOpError("No requests to submit")

        chunks = chunk_requests(requests, self.max_batch_requests)
        if len(chunks) > 1:
            logger.info(
                f"Splitting {len(requests)} requests into {len(chunks)} batchUpdate calls "
                f"(max {self.max_batch_requests} per call) for {target_id}"
            )

        replies: List[Dict[str, Any]] = []
        for chunk_number, chunk in enumerate(chunks):
            logger.debug(
                f"Submitting chunk {chunk_number + 1}/{len(chunks)} "
                f"({len(chunk)} requests) to {self.service_type} {target_id}"
            )
            try:
                response = await asyncio.to_thread(
                    self._batch_update(target_id, chunk).execute
                )
            except HttpError as error:
                translated = translate_http_error(error, target_id)
                if chunk_number > 0 and translated.structured.context is not None:
                    translated.structured.context.received = {
                        "target_id": target_id,
                        "chunks_applied": chunk_number,
                        "chunks_total": len(chunks),
                    }
                logger.error(
                    f"batchUpdate failed on chunk {chunk_number + 1}/{len(chunks)} for {target_id}: {error}"
                )
                raise translated from error
            replies.extend((response or {}).get("replies", []))

        return BatchResult(
            target_id=target_id,
            requests_count=len(requests),
            calls_made=len(chunks),
            replies=replies,
        )
