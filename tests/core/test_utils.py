"""
Unit tests for the tool error-handling decorator and configuration.
"""

import json
import ssl
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastmcp.exceptions import ToolError
from googleapiclient.errors import HttpError

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

from core import config
from core.errors import ErrorContext, InvalidFormatError, NotFoundError
from core.utils import handle_http_errors


def make_http_error(status, message="Something went wrong"):
    resp = MagicMock()
    resp.status = status
    resp.reason = "Reason"
    content = json.dumps({"error": {"code": status, "message": message}}).encode("utf-8")
    return HttpError(resp, content)


def error_payload(exc_info):
    return json.loads(str(exc_info.value))


class TestHandleHttpErrors:
    """Tests for handle_http_errors."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        @handle_http_errors("ok_tool")
        async def tool():
            return "done"

        assert await tool() == "done"

    @pytest.mark.asyncio
    async def test_http_error_reaches_client_structured(self):
        @handle_http_errors("format_cells", service_type="sheets")
        async def tool(spreadsheet_id):
            raise make_http_error(404, "Requested entity was not found.")

        with pytest.raises(ToolError) as exc_info:
            await tool(spreadsheet_id="abc")

        payload = error_payload(exc_info)
        assert payload["code"] == "NOT_FOUND"
        assert payload["context"]["http_status"] == 404
        assert payload["context"]["received"] == {"target_id": "abc"}
        assert "remote_message" in payload["context"]
        assert isinstance(exc_info.value.__cause__, HttpError)

    @pytest.mark.asyncio
    async def test_script_id_used_as_target(self):
        @handle_http_errors("read_apps_script_file", is_read_only=True, service_type="script")
        async def tool(script_id):
            raise make_http_error(403, "The caller does not have permission")

        with pytest.raises(ToolError) as exc_info:
            await tool(script_id="script-1")

        payload = error_payload(exc_info)
        assert payload["code"] == "PERMISSION_DENIED"
        assert payload["context"]["http_status"] == 403
        assert payload["context"]["received"] == {"target_id": "script-1"}

    @pytest.mark.asyncio
    async def test_engine_error_reaches_client_structured(self):
        @handle_http_errors("delete_rows")
        async def tool():
            raise NotFoundError(
                "Sheet 'Missing' not found. Available sheets: ['Data']",
                context=ErrorContext(received={"sheet_name": "Missing"}, available=["Data"]),
            )

        with pytest.raises(ToolError) as exc_info:
            await tool()

        payload = error_payload(exc_info)
        assert payload["error"] is True
        assert payload["code"] == "NOT_FOUND"
        assert payload["message"].startswith("Sheet 'Missing' not found")
        assert payload["context"]["available"] == ["Data"]
        assert isinstance(exc_info.value.__cause__, NotFoundError)

    @pytest.mark.asyncio
    async def test_local_validation_error_code(self):
        @handle_http_errors("format_cells")
        async def tool():
            raise InvalidFormatError("Invalid range: 'A0'")

        with pytest.raises(ToolError) as exc_info:
            await tool()
        assert error_payload(exc_info)["code"] == "INVALID_FORMAT"

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self):
        @handle_http_errors("format_cells")
        async def tool():
            raise KeyError("boom")

        with pytest.raises(Exception, match="unexpected error occurred in format_cells"):
            await tool()

    @pytest.mark.asyncio
    async def test_ssl_error_retried_for_read_only(self):
        calls = AsyncMock(side_effect=[ssl.SSLError("eof"), "rules"])

        @handle_http_errors("get_conditional_format_rules", is_read_only=True)
        async def tool():
            return await calls()

        with patch("core.utils.asyncio.sleep", new=AsyncMock()):
            assert await tool() == "rules"
        assert calls.call_count == 2

    @pytest.mark.asyncio
    async def test_ssl_error_not_retried_for_mutation(self):
        calls = AsyncMock(side_effect=ssl.SSLError("eof"))

        @handle_http_errors("delete_rows")
        async def tool():
            return await calls()

        with pytest.raises(ToolError) as exc_info:
            await tool()
        assert error_payload(exc_info)["code"] == "UNAVAILABLE"
        assert calls.call_count == 1


class TestConfig:
    """Tests for environment-driven configuration."""

    def test_max_batch_requests_default(self, monkeypatch):
        monkeypatch.delenv("WORKSPACE_MCP_MAX_BATCH_REQUESTS", raising=False)
        assert config.get_max_batch_requests() == 50

    def test_max_batch_requests_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("WORKSPACE_MCP_MAX_BATCH_REQUESTS", "0")
        with pytest.raises(ValueError):
            config.get_max_batch_requests()

    def test_port(self, monkeypatch):
        monkeypatch.setenv("WORKSPACE_MCP_PORT", "9001")
        assert config.get_port() == 9001

    def test_token_file_expands_user(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_OAUTH_TOKEN_FILE", "~/token.json")
        assert config.get_token_file() == os.path.expanduser("~/token.json")

    def test_transport_mode(self, monkeypatch):
        monkeypatch.setattr(config, "_transport_mode", "stdio")
        config.set_transport_mode("streamable-http")
        assert config.get_transport_mode() == "streamable-http"
        with pytest.raises(ValueError):
            config.set_transport_mode("sse")
