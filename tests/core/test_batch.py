"""
Unit tests for the batch submitter.

These tests verify ordering, chunking and error translation of batchUpdate
submissions using a mocked discovery service.
"""

import json
from unittest.mock import MagicMock

import pytest
from googleapiclient.errors import HttpError

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

from core.batch import BatchSubmitter, chunk_requests
from core.errors import InvalidArgumentError, NoOpError, UnavailableError


def make_http_error(status, message="Something went wrong"):
    resp = MagicMock()
    resp.status = status
    resp.reason = "Reason"
    content = json.dumps({"error": {"code": status, "message": message}}).encode("utf-8")
    return HttpError(resp, content)


def _requests(n):
    return [{"deleteConditionalFormatRule": {"sheetId": 0, "index": i}} for i in range(n)]


class TestChunkRequests:
    """Tests for chunk_requests."""

    def test_single_chunk(self):
        assert chunk_requests(_requests(3), 50) == [_requests(3)]

    def test_exact_multiple(self):
        chunks = chunk_requests(_requests(4), 2)
        assert [len(c) for c in chunks] == [2, 2]

    def test_order_preserved(self):
        requests = _requests(5)
        chunks = chunk_requests(requests, 2)
        assert [r for chunk in chunks for r in chunk] == requests

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            chunk_requests(_requests(1), 0)


class TestBatchSubmitterSheets:
    """Tests for submitting to the Sheets endpoint."""

    @pytest.mark.asyncio
    async def test_single_call_with_body(self):
        service = MagicMock()
        service.spreadsheets().batchUpdate().execute.return_value = {"replies": [{}]}
        requests = _requests(1)

        result = await BatchSubmitter(service, "sheets").submit("sheet123", requests)

        service.spreadsheets().batchUpdate.assert_called_with(
            spreadsheetId="sheet123", body={"requests": requests}
        )
        assert result.requests_count == 1
        assert result.calls_made == 1
        assert result.replies == [{}]

    @pytest.mark.asyncio
    async def test_empty_list_raises_noop(self):
        service = MagicMock()
        with pytest.raises(NoOpError):
            await BatchSubmitter(service, "sheets").submit("sheet123", [])
        service.spreadsheets().batchUpdate.assert_not_called()

    @pytest.mark.asyncio
    async def test_oversized_list_split_in_order(self):
        service = MagicMock()
        service.spreadsheets().batchUpdate().execute.return_value = {"replies": [{}]}
        requests = _requests(5)

        result = await BatchSubmitter(service, "sheets", max_batch_requests=2).submit(
            "sheet123", requests
        )

        bodies = [
            c.kwargs["body"]["requests"]
            for c in service.spreadsheets().batchUpdate.call_args_list
            if "body" in c.kwargs
        ]
        assert bodies == [requests[0:2], requests[2:4], requests[4:5]]
        assert result.calls_made == 3
        assert len(result.replies) == 3

    @pytest.mark.asyncio
    async def test_http_error_translated(self):
        service = MagicMock()
        service.spreadsheets().batchUpdate().execute.side_effect = make_http_error(
            400, "Invalid requests[0]: overlapping ranges"
        )
        with pytest.raises(InvalidArgumentError) as exc_info:
            await BatchSubmitter(service, "sheets").submit("sheet123", _requests(1))
        assert exc_info.value.http_status == 400

    @pytest.mark.asyncio
    async def test_failure_mid_way_reports_applied_chunks(self):
        service = MagicMock()
        service.spreadsheets().batchUpdate().execute.side_effect = [
            {"replies": [{}, {}]},
            make_http_error(503, "Backend Error"),
        ]
        with pytest.raises(UnavailableError) as exc_info:
            await BatchSubmitter(service, "sheets", max_batch_requests=2).submit(
                "sheet123", _requests(5)
            )
        received = exc_info.value.structured.context.received
        assert received["chunks_applied"] == 1
        assert received["chunks_total"] == 3

    @pytest.mark.asyncio
    async def test_not_retried(self):
        service = MagicMock()
        execute = service.spreadsheets().batchUpdate().execute
        execute.side_effect = make_http_error(500, "Internal error")
        with pytest.raises(UnavailableError):
            await BatchSubmitter(service, "sheets").submit("sheet123", _requests(1))
        assert execute.call_count == 1


class TestBatchSubmitterDocs:
    """Tests for submitting to the Docs endpoint."""

    @pytest.mark.asyncio
    async def test_uses_document_id(self):
        service = MagicMock()
        service.documents().batchUpdate().execute.return_value = {"replies": []}
        requests = [{"insertText": {"location": {"index": 5}, "text": "x"}}]

        await BatchSubmitter(service, "docs").submit("doc123", requests)

        service.documents().batchUpdate.assert_called_with(
            documentId="doc123", body={"requests": requests}
        )

    def test_unknown_service_type(self):
        with pytest.raises(ValueError):
            BatchSubmitter(MagicMock(), "slides")

    def test_max_batch_requests_from_environment(self, monkeypatch):
        monkeypatch.setenv("WORKSPACE_MCP_MAX_BATCH_REQUESTS", "7")
        assert BatchSubmitter(MagicMock(), "docs").max_batch_requests == 7
