"""
Unit tests for the drift-compensating table cell edit builder and manager.

Each later request's range must account for the length change caused by
the requests before it in the same batch.
"""

import pytest
from unittest.mock import MagicMock

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

from core.errors import NoOpError, NotATableError
from core.style_codec import build_paragraph_style, build_text_style
from gdocs.managers.cell_edit_manager import (
    CellEditBuilder,
    CellEditState,
    TableCellEditManager,
)


def _kinds(requests):
    return [next(iter(r)) for r in requests]


class TestCellEditBuilderText:
    """Tests for replacing cell content."""

    def test_replace_with_style(self):
        """Cell [10,15) replaced with 'newtext8' then bolded."""
        requests = (
            CellEditBuilder(10, 15)
            .replace_text("newtext8")
            .apply_text_style(build_text_style(bold=True))
            .build()
        )
        assert requests == [
            {"deleteContentRange": {"range": {"startIndex": 10, "endIndex": 15}}},
            {"insertText": {"location": {"index": 10}, "text": "newtext8"}},
            {
                "updateTextStyle": {
                    "range": {"startIndex": 10, "endIndex": 18},
                    "textStyle": {"bold": True},
                    "fields": "bold",
                }
            },
        ]

    def test_empty_cell_skips_delete(self):
        requests = CellEditBuilder(16, 16).replace_text("abc").build()
        assert _kinds(requests) == ["insertText"]

    def test_empty_text_deletes_only(self):
        requests = CellEditBuilder(10, 14).replace_text("").build()
        assert requests == [
            {"deleteContentRange": {"range": {"startIndex": 10, "endIndex": 14}}}
        ]

    def test_empty_text_skips_text_style(self):
        requests = (
            CellEditBuilder(10, 14)
            .replace_text("")
            .apply_text_style(build_text_style(italic=True))
            .build()
        )
        assert _kinds(requests) == ["deleteContentRange"]

    def test_empty_cell_empty_text_is_noop(self):
        with pytest.raises(NoOpError):
            CellEditBuilder(16, 16).replace_text("").build()

    def test_empty_cell_empty_text_reason(self):
        with pytest.raises(NoOpError) as exc_info:
            CellEditBuilder(16, 16).replace_text("").build()
        assert exc_info.value.structured.reason == "the cell is already empty"

    def test_text_style_on_empty_cell_reason(self):
        builder = CellEditBuilder(16, 16).apply_text_style(build_text_style(bold=True))
        with pytest.raises(NoOpError) as exc_info:
            builder.build()
        reason = exc_info.value.structured.reason
        assert "no text to style" in reason
        assert "already empty" not in reason

    def test_shorter_replacement(self):
        requests = (
            CellEditBuilder(10, 20)
            .replace_text("ab")
            .apply_text_style(build_text_style(underline=True))
            .build()
        )
        assert requests[-1]["updateTextStyle"]["range"] == {"startIndex": 10, "endIndex": 12}

    def test_tab_id_on_every_request(self):
        requests = (
            CellEditBuilder(10, 15, tab_id="t.1")
            .replace_text("x")
            .apply_text_style(build_text_style(bold=True))
            .apply_paragraph_style(build_paragraph_style(alignment="CENTER"))
            .build()
        )
        assert requests[0]["deleteContentRange"]["range"]["tabId"] == "t.1"
        assert requests[1]["insertText"]["location"]["tabId"] == "t.1"
        assert requests[2]["updateTextStyle"]["range"]["tabId"] == "t.1"
        assert requests[3]["updateParagraphStyle"]["range"]["tabId"] == "t.1"


class TestCellEditBuilderStyles:
    """Tests for style-only edits and paragraph ranges."""

    def test_style_only_uses_original_range(self):
        requests = CellEditBuilder(10, 14).apply_text_style(build_text_style(bold=True)).build()
        assert requests == [
            {
                "updateTextStyle": {
                    "range": {"startIndex": 10, "endIndex": 14},
                    "textStyle": {"bold": True},
                    "fields": "bold",
                }
            }
        ]

    def test_paragraph_style_includes_delimiter_after_new_text(self):
        requests = (
            CellEditBuilder(10, 15)
            .replace_text("abc")
            .apply_paragraph_style(build_paragraph_style(alignment="CENTER"))
            .build()
        )
        paragraph = requests[-1]["updateParagraphStyle"]
        assert paragraph["range"] == {"startIndex": 10, "endIndex": 14}
        assert paragraph["paragraphStyle"] == {"alignment": "CENTER"}
        assert paragraph["fields"] == "alignment"

    def test_paragraph_style_without_text(self):
        requests = (
            CellEditBuilder(10, 15)
            .apply_paragraph_style(build_paragraph_style(named_style_type="HEADING_1"))
            .build()
        )
        assert requests[0]["updateParagraphStyle"]["range"] == {"startIndex": 10, "endIndex": 16}

    def test_paragraph_style_on_empty_cell(self):
        requests = (
            CellEditBuilder(16, 16)
            .apply_paragraph_style(build_paragraph_style(alignment="END"))
            .build()
        )
        assert requests[0]["updateParagraphStyle"]["range"] == {"startIndex": 16, "endIndex": 17}

    def test_full_order(self):
        builder = CellEditBuilder(10, 15)
        builder.replace_text("hello")
        builder.apply_text_style(build_text_style(bold=True, font_size=11))
        builder.apply_paragraph_style(build_paragraph_style(alignment="CENTER"))
        requests = builder.build()
        assert _kinds(requests) == [
            "deleteContentRange",
            "insertText",
            "updateTextStyle",
            "updateParagraphStyle",
        ]
        assert builder.styles_applied == ["bold", "fontSize", "alignment"]
        assert builder.state == CellEditState.STYLED

    def test_nothing_requested_is_noop(self):
        with pytest.raises(NoOpError):
            CellEditBuilder(10, 15).build()


class TestCellEditBuilderOrdering:
    """Tests for the forward-only step order."""

    def test_text_after_style_rejected(self):
        builder = CellEditBuilder(10, 15).apply_text_style(build_text_style(bold=True))
        with pytest.raises(RuntimeError):
            builder.replace_text("late")

    def test_text_style_after_paragraph_style_rejected(self):
        builder = CellEditBuilder(10, 15).apply_paragraph_style(build_paragraph_style(alignment="END"))
        with pytest.raises(RuntimeError):
            builder.apply_text_style(build_text_style(bold=True))

    def test_step_after_build_rejected(self):
        builder = CellEditBuilder(10, 15).replace_text("x")
        builder.build()
        with pytest.raises(RuntimeError):
            builder.apply_paragraph_style(build_paragraph_style(alignment="END"))

    def test_repeated_step_rejected(self):
        builder = CellEditBuilder(10, 15).replace_text("x")
        with pytest.raises(RuntimeError):
            builder.replace_text("y")

    def test_states_advance(self):
        builder = CellEditBuilder(10, 15)
        assert builder.state == CellEditState.UNEDITED
        builder.replace_text("x")
        assert builder.state == CellEditState.INSERTED

    @pytest.mark.parametrize("start,end", [(-1, 5), (10, 9)])
    def test_invalid_range(self, start, end):
        with pytest.raises(ValueError):
            CellEditBuilder(start, end)


class TestTableCellEditManager:
    """Tests for TableCellEditManager with a mocked Docs service."""

    @pytest.fixture
    def service(self, table_doc):
        service = MagicMock()
        service.documents().get().execute = MagicMock(return_value=table_doc)
        service.documents().batchUpdate().execute = MagicMock(return_value={"replies": [{}, {}, {}]})
        return service

    @pytest.mark.asyncio
    async def test_replace_and_style(self, service):
        result = await TableCellEditManager(service).edit_cell(
            "doc1", 7, 0, 0, text_content="Full name", text_style=build_text_style(bold=True)
        )

        body = service.documents().batchUpdate.call_args.kwargs["body"]
        assert body["requests"] == [
            {"deleteContentRange": {"range": {"startIndex": 10, "endIndex": 14}}},
            {"insertText": {"location": {"index": 10}, "text": "Full name"}},
            {
                "updateTextStyle": {
                    "range": {"startIndex": 10, "endIndex": 19},
                    "textStyle": {"bold": True},
                    "fields": "bold",
                }
            },
        ]
        assert result.operation == "replace"
        assert result.position_shift == 5
        assert result.affected_range == {"start": 10, "end": 19}
        assert result.requests_count == 3

    @pytest.mark.asyncio
    async def test_one_atomic_call(self, service):
        await TableCellEditManager(service).edit_cell("doc1", 7, 1, 1, text_content="37")
        calls = [c for c in service.documents().batchUpdate.call_args_list if c.kwargs]
        assert len(calls) == 1
        assert calls[0].kwargs["documentId"] == "doc1"

    @pytest.mark.asyncio
    async def test_format_only(self, service):
        result = await TableCellEditManager(service).edit_cell(
            "doc1", 7, 1, 0, paragraph_style=build_paragraph_style(alignment="CENTER")
        )
        assert result.operation == "format"
        assert result.position_shift == 0
        assert result.styles_applied == ["alignment"]

    @pytest.mark.asyncio
    async def test_clearing_empty_cell_submits_nothing(self, service):
        with pytest.raises(NoOpError):
            await TableCellEditManager(service).edit_cell("doc1", 7, 0, 1, text_content="")
        assert not [c for c in service.documents().batchUpdate.call_args_list if c.kwargs]

    @pytest.mark.asyncio
    async def test_not_a_table_submits_nothing(self, service):
        with pytest.raises(NotATableError):
            await TableCellEditManager(service).edit_cell("doc1", 1, 0, 0, text_content="x")
        assert not [c for c in service.documents().batchUpdate.call_args_list if c.kwargs]
