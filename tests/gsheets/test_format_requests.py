"""
Unit tests for cell formatting, merge, freeze, dimension and data
validation request builders.
"""

import pytest

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

from core.errors import InvalidFormatError, InvalidParameterError
from core.style_codec import build_cell_format
from gsheets.sheets_helpers import (
    CellRect,
    ColumnBand,
    RowBand,
    build_data_validation_request,
    build_dimension_properties_request,
    build_freeze_request,
    build_merge_request,
    build_repeat_cell_request,
    build_unmerge_request,
    extract_data_validations,
    parse_json_list,
    parse_range_address,
    plan_cell_formats,
    plan_hidden_columns,
    plan_merge_ranges,
    summarize_cell_formats,
    to_grid_range,
)


class TestRepeatCellRequest:
    """Tests for build_repeat_cell_request."""

    def test_row_band_header_format(self):
        grid_range = to_grid_range(parse_range_address("1:1").coordinate, 0)
        request = build_repeat_cell_request(grid_range, build_cell_format(bold=True))
        assert request == {
            "repeatCell": {
                "range": {"sheetId": 0, "startRowIndex": 0, "endRowIndex": 1},
                "cell": {"userEnteredFormat": {"textFormat": {"bold": True}}},
                "fields": "userEnteredFormat.textFormat.bold",
            }
        }

    def test_fields_match_payload(self):
        cell_format = build_cell_format(italic=True, background_color="#EEE", wrap_strategy="clip")
        request = build_repeat_cell_request({"sheetId": 0}, cell_format)
        assert request["repeatCell"]["fields"] == (
            "userEnteredFormat.textFormat.italic,"
            "userEnteredFormat.backgroundColor,"
            "userEnteredFormat.wrapStrategy"
        )


class TestMergeRequests:
    """Tests for merge and unmerge request builders."""

    def test_merge_all_default(self):
        grid_range = to_grid_range(parse_range_address("A1:C1").coordinate, 0)
        request = build_merge_request(grid_range)
        assert request["mergeCells"]["mergeType"] == "MERGE_ALL"
        assert request["mergeCells"]["range"]["endColumnIndex"] == 3

    def test_merge_type_normalized(self):
        assert build_merge_request({"sheetId": 0}, "merge_rows")["mergeCells"]["mergeType"] == "MERGE_ROWS"

    def test_invalid_merge_type(self):
        with pytest.raises(InvalidParameterError):
            build_merge_request({"sheetId": 0}, "MERGE_DIAGONAL")

    def test_unmerge(self):
        assert build_unmerge_request({"sheetId": 2}) == {"unmergeCells": {"range": {"sheetId": 2}}}


class TestFreezeRequest:
    """Tests for build_freeze_request."""

    def test_rows_only(self):
        request = build_freeze_request(0, frozen_rows=1)
        assert request == {
            "updateSheetProperties": {
                "properties": {"sheetId": 0, "gridProperties": {"frozenRowCount": 1}},
                "fields": "gridProperties.frozenRowCount",
            }
        }

    def test_rows_and_columns(self):
        request = build_freeze_request(3, frozen_rows=2, frozen_columns=1)
        assert request["updateSheetProperties"]["fields"] == (
            "gridProperties.frozenRowCount,gridProperties.frozenColumnCount"
        )

    def test_zero_unfreezes(self):
        request = build_freeze_request(0, frozen_columns=0)
        assert request["updateSheetProperties"]["properties"]["gridProperties"] == {
            "frozenColumnCount": 0
        }

    def test_nothing_given(self):
        assert build_freeze_request(0) is None

    def test_negative(self):
        with pytest.raises(InvalidParameterError):
            build_freeze_request(0, frozen_rows=-1)


class TestDimensionPropertiesRequest:
    """Tests for build_dimension_properties_request."""

    def test_column_width(self):
        request = build_dimension_properties_request(0, "COLUMNS", 0, 1, pixel_size=120)
        assert request["updateDimensionProperties"]["properties"] == {"pixelSize": 120}
        assert request["updateDimensionProperties"]["fields"] == "pixelSize"

    def test_hide(self):
        request = build_dimension_properties_request(0, "COLUMNS", 3, 6, hidden=True)
        assert request["updateDimensionProperties"]["properties"] == {"hiddenByUser": True}
        assert request["updateDimensionProperties"]["range"]["startIndex"] == 3

    def test_requires_property(self):
        with pytest.raises(InvalidParameterError):
            build_dimension_properties_request(0, "ROWS", 0, 1)

    def test_positive_size(self):
        with pytest.raises(InvalidParameterError):
            build_dimension_properties_request(0, "ROWS", 0, 1, pixel_size=0)


class TestDataValidationRequest:
    """Tests for build_data_validation_request."""

    def test_list(self):
        request = build_data_validation_request({"sheetId": 0}, ["Yes", "No"])
        rule = request["setDataValidation"]["rule"]
        assert rule["condition"] == {
            "type": "ONE_OF_LIST",
            "values": [{"userEnteredValue": "Yes"}, {"userEnteredValue": "No"}],
        }
        assert rule["showCustomUi"] is True
        assert rule["strict"] is True

    def test_source_range_takes_precedence(self):
        request = build_data_validation_request(
            {"sheetId": 0}, ["ignored"], source_formula="=Options!A1:A10", strict=False
        )
        rule = request["setDataValidation"]["rule"]
        assert rule["condition"]["type"] == "ONE_OF_RANGE"
        assert rule["condition"]["values"] == [{"userEnteredValue": "=Options!A1:A10"}]
        assert rule["strict"] is False

    def test_input_message(self):
        request = build_data_validation_request({"sheetId": 0}, ["a"], input_message="Pick one")
        assert request["setDataValidation"]["rule"]["inputMessage"] == "Pick one"

    def test_neither_clears(self):
        assert build_data_validation_request({"sheetId": 0}) == {
            "setDataValidation": {"range": {"sheetId": 0}}
        }


class TestPlanCellFormats:
    """Tests for validating batch cell format entries."""

    def test_entries_planned_in_order(self):
        planned = plan_cell_formats(
            [
                {"range": "A1:F1", "bold": True},
                {"range": "B:B", "number_format_type": "CURRENCY"},
                {"range": "3:4", "background_color": "#D9EAD3"},
            ],
            "Sheet1",
        )
        assert [coordinate for coordinate, _ in planned] == [
            CellRect(0, 1, 0, 6),
            ColumnBand(1, 2),
            RowBand(2, 4),
        ]
        assert planned[1][1].mask == "userEnteredFormat.numberFormat"

    def test_matching_sheet_prefix_allowed(self):
        planned = plan_cell_formats([{"range": "Sheet1!A1", "italic": True}], "Sheet1")
        assert len(planned) == 1

    def test_other_sheet_rejected(self):
        with pytest.raises(InvalidParameterError):
            plan_cell_formats([{"range": "Other!A1", "italic": True}], "Sheet1")

    def test_unknown_option_rejected(self):
        with pytest.raises(InvalidParameterError):
            plan_cell_formats([{"range": "A1", "blink": True}], "Sheet1")

    def test_missing_range_rejected(self):
        with pytest.raises(InvalidParameterError):
            plan_cell_formats([{"bold": True}], "Sheet1")

    def test_bad_range_rejected(self):
        with pytest.raises(InvalidFormatError):
            plan_cell_formats([{"range": "A0", "bold": True}], "Sheet1")

    def test_entry_without_options_skipped(self):
        assert plan_cell_formats([{"range": "A1"}], "Sheet1") == []


class TestPlanMergeRanges:
    """Tests for validating batch merge ranges."""

    def test_ranges_planned_in_order(self):
        assert plan_merge_ranges(["A1:C1", "Data!A2:A4"], "Data") == [
            CellRect(0, 1, 0, 3),
            CellRect(1, 4, 0, 1),
        ]

    def test_other_sheet_rejected(self):
        with pytest.raises(InvalidParameterError) as exc_info:
            plan_merge_ranges(["A1:C1", "Other!A1:B2"], "Data")
        assert "merges[1]" in exc_info.value.message
        assert "'Other'" in exc_info.value.message


class TestPlanHiddenColumns:
    """Tests for validating the batch hidden column band."""

    def test_nothing_to_hide(self):
        assert plan_hidden_columns(None, "Data") is None
        assert plan_hidden_columns("", "Data") is None

    def test_band(self):
        assert plan_hidden_columns("Data!D:F", "Data") == ColumnBand(3, 6)

    def test_other_sheet_rejected(self):
        with pytest.raises(InvalidParameterError) as exc_info:
            plan_hidden_columns("Other!D:F", "Data")
        assert exc_info.value.structured.context.expected == {"sheet": "Data"}

    def test_not_a_column_band(self):
        with pytest.raises(InvalidParameterError):
            plan_hidden_columns("D1:F2", "Data")


class TestParseJsonList:
    """Tests for parse_json_list."""

    def test_list_passthrough(self):
        assert parse_json_list(["A1:B1"], "merges") == ["A1:B1"]

    def test_json_string(self):
        assert parse_json_list('["A1:B1", "C1:D1"]', "merges") == ["A1:B1", "C1:D1"]

    def test_none(self):
        assert parse_json_list(None, "merges") is None

    def test_invalid_json(self):
        with pytest.raises(InvalidParameterError):
            parse_json_list("[A1", "merges")

    def test_not_a_list(self):
        with pytest.raises(InvalidParameterError):
            parse_json_list('{"range": "A1"}', "merges")


class TestDisplayHelpers:
    """Tests for validation and format listings."""

    def test_extract_data_validations(self):
        spreadsheet = {
            "sheets": [
                {
                    "data": [
                        {
                            "startRow": 1,
                            "startColumn": 2,
                            "rowData": [
                                {
                                    "values": [
                                        {
                                            "dataValidation": {
                                                "condition": {
                                                    "type": "ONE_OF_LIST",
                                                    "values": [
                                                        {"userEnteredValue": "Yes"},
                                                        {"userEnteredValue": "No"},
                                                    ],
                                                },
                                                "strict": True,
                                                "showCustomUi": True,
                                            }
                                        },
                                        {},
                                    ]
                                }
                            ],
                        }
                    ]
                }
            ]
        }
        assert extract_data_validations(spreadsheet) == [
            "C2: ONE_OF_LIST | values=['Yes', 'No'] | strict=True | dropdown"
        ]

    def test_summarize_cell_formats_skips_defaults(self):
        spreadsheet = {
            "sheets": [
                {
                    "data": [
                        {
                            "rowData": [
                                {
                                    "values": [
                                        {
                                            "effectiveFormat": {
                                                "backgroundColor": {"red": 1, "green": 1, "blue": 1},
                                                "textFormat": {"bold": True, "fontSize": 12},
                                                "horizontalAlignment": "CENTER",
                                            }
                                        },
                                        {
                                            "effectiveFormat": {
                                                "backgroundColor": {"red": 1, "green": 1, "blue": 1},
                                                "horizontalAlignment": "LEFT",
                                            }
                                        },
                                    ]
                                }
                            ]
                        }
                    ]
                }
            ]
        }
        assert summarize_cell_formats(spreadsheet) == ["A1: size: 12pt | bold | align: CENTER"]

    def test_empty_grid(self):
        assert extract_data_validations({"sheets": []}) == []
