"""
Google Sheets Helper Functions

Coordinate translation between A1 notation and GridRange indices, live sheet
resolution, and builders for the primitive batchUpdate requests used by the
Sheets tools.

All indices produced here are zero-based and end-exclusive, matching the
Sheets API GridRange convention. An unbounded axis (whole rows or whole
columns) is represented by omitting both of its keys.
"""
import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from core.errors import (
    EmptyDocumentError,
    ErrorContext,
    IndexOutOfRangeError,
    InvalidFormatError,
    InvalidParameterError,
    NotFoundError,
)
from core.style_codec import (
    FieldMaskBuilder,
    build_cell_format,
    color_to_hex,
    hex_to_color,  # noqa: F401
    sheets_color,
    validate_choice,
)

logger = logging.getLogger(__name__)

_ROW_BAND_RE = re.compile(r"^(\d+)(?::(\d+))?$")
_COLUMN_BAND_RE = re.compile(r"^([A-Za-z]+)(?::([A-Za-z]+))?$")
_CELL_RECT_RE = re.compile(r"^([A-Za-z]+\d+)(?::([A-Za-z]+\d+))?$")
_CELL_RE = re.compile(r"^([A-Za-z]+)(\d+)$")
_LETTERS_RE = re.compile(r"^[A-Za-z]+$")
_PLAIN_SHEET_TITLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DIMENSIONS = ["ROWS", "COLUMNS"]
MERGE_TYPES = ["MERGE_ALL", "MERGE_COLUMNS", "MERGE_ROWS"]

BOOLEAN_CONDITION_TYPES = [
    "NUMBER_GREATER",
    "NUMBER_GREATER_THAN_EQ",
    "NUMBER_LESS",
    "NUMBER_LESS_THAN_EQ",
    "NUMBER_EQ",
    "NUMBER_NOT_EQ",
    "NUMBER_BETWEEN",
    "NUMBER_NOT_BETWEEN",
    "TEXT_CONTAINS",
    "TEXT_NOT_CONTAINS",
    "TEXT_STARTS_WITH",
    "TEXT_ENDS_WITH",
    "TEXT_EQ",
    "BLANK",
    "NOT_BLANK",
    "CUSTOM_FORMULA",
]
_CONDITIONS_WITHOUT_VALUES = {"BLANK", "NOT_BLANK"}
_CONDITIONS_WITH_TWO_VALUES = {"NUMBER_BETWEEN", "NUMBER_NOT_BETWEEN"}

CELL_FORMAT_OPTIONS = (
    "bold",
    "italic",
    "underline",
    "strikethrough",
    "font_size",
    "font_family",
    "font_color",
    "background_color",
    "horizontal_alignment",
    "vertical_alignment",
    "wrap_strategy",
    "number_format_type",
    "number_format_pattern",
)


# ---------------------------------------------------------------------------
# Coordinate types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CellRect:
    """Bounded rectangle. Zero-based, end-exclusive on both axes."""
    start_row: int
    end_row: int
    start_column: int
    end_column: int


@dataclass(frozen=True)
class RowBand:
    """Whole rows. No column bounds."""
    start_row: int
    end_row: int


@dataclass(frozen=True)
class ColumnBand:
    """Whole columns. No row bounds."""
    start_column: int
    end_column: int


Coordinate = Union[CellRect, RowBand, ColumnBand]


@dataclass(frozen=True)
class ParsedRange:
    sheet_name: Optional[str]
    coordinate: Coordinate
    a1: str


# ---------------------------------------------------------------------------
# Coordinate translation
# ---------------------------------------------------------------------------


def column_letters_to_index(letters: str) -> int:
    """
    Convert column letters to a zero-based index (A=0, Z=25, AA=26).

    Raises:
        InvalidFormatError: if letters is empty or contains non-letters
    """
    if not letters or not _LETTERS_RE.match(letters):
        raise InvalidFormatError(
            f"Invalid column letters: '{letters}'",
            context=ErrorContext(received={"column": letters}),
        )

    index = 0
    for char in letters.upper():
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def index_to_column_letters(index: int) -> str:
    """
    Convert a zero-based column index to letters (0='A', 25='Z', 26='AA').

    Raises:
        InvalidFormatError: if index is negative
    """
    if index < 0:
        raise InvalidFormatError(
            f"Column index must be non-negative, got {index}",
            context=ErrorContext(received={"column_index": index}),
        )

    result = ""
    index += 1
    while index > 0:
        index -= 1
        result = chr(ord("A") + index % 26) + result
        index //= 26
    return result


def parse_cell_address(text: str) -> Tuple[int, int]:
    """
    Parse a cell reference like 'B12' into zero-based (row, column).

    Raises:
        InvalidFormatError: if the text is not <Letters><Digits> with a row >= 1
    """
    match = _CELL_RE.match((text or "").strip())
    if not match or int(match.group(2)) < 1:
        raise InvalidFormatError(
            f"Invalid cell reference: '{text}'. Expected format like 'A1', 'B2', 'AA10'.",
            context=ErrorContext(received={"cell": text}),
        )
    return int(match.group(2)) - 1, column_letters_to_index(match.group(1))


def _row_number(text: str, full_text: str) -> int:
    row = int(text)
    if row < 1:
        raise InvalidFormatError(
            f"Invalid range: '{full_text}'. Row numbers start at 1.",
            context=ErrorContext(received={"range": full_text}),
        )
    return row


def _ordered(a: int, b: int) -> Tuple[int, int]:
    return (a, b) if a <= b else (b, a)


def split_sheet_name(text: str) -> Tuple[Optional[str], str]:
    """
    Split 'Sheet1!A1:B2' into ('Sheet1', 'A1:B2').

    Surrounding single quotes are stripped from the sheet name and doubled
    quotes inside it are unescaped ("'Bob''s'!A1" -> "Bob's").
    """
    if "!" not in text:
        return None, text

    sheet_part, _, a1_part = text.rpartition("!")
    sheet_part = sheet_part.strip()
    if len(sheet_part) >= 2 and sheet_part.startswith("'") and sheet_part.endswith("'"):
        sheet_part = sheet_part[1:-1].replace("''", "'")
    if not sheet_part:
        raise InvalidFormatError(
            f"Invalid range: '{text}'. Sheet name before '!' is empty.",
            context=ErrorContext(received={"range": text}),
        )
    return sheet_part, a1_part


def parse_range_address(text: str, default_sheet_name: Optional[str] = None) -> ParsedRange:
    """
    Parse an A1 range into a sheet name and a coordinate.

    Accepted shapes, tried in this order:
        '3' or '3:5'         -> RowBand
        'A' or 'A:C'         -> ColumnBand
        'B12' or 'A1:B2'     -> CellRect

    A sheet prefix ('Sheet1!A1:B2', "'My Sheet'!3:5") overrides
    default_sheet_name. Reversed bounds are normalized.

    Raises:
        InvalidFormatError: if no shape matches
    """
    if text is None or not text.strip():
        raise InvalidFormatError("Range must not be empty")

    sheet_name, a1 = split_sheet_name(text.strip())
    a1 = a1.strip()
    if sheet_name is None:
        sheet_name = default_sheet_name

    match = _ROW_BAND_RE.match(a1)
    if match:
        first = _row_number(match.group(1), text)
        last = _row_number(match.group(2), text) if match.group(2) else first
        first, last = _ordered(first, last)
        return ParsedRange(sheet_name, RowBand(first - 1, last), a1)

    match = _COLUMN_BAND_RE.match(a1)
    if match:
        first = column_letters_to_index(match.group(1))
        last = column_letters_to_index(match.group(2)) if match.group(2) else first
        first, last = _ordered(first, last)
        return ParsedRange(sheet_name, ColumnBand(first, last + 1), a1)

    match = _CELL_RECT_RE.match(a1)
    if match:
        start_row, start_col = parse_cell_address(match.group(1))
        end_row, end_col = (
            parse_cell_address(match.group(2)) if match.group(2) else (start_row, start_col)
        )
        start_row, end_row = _ordered(start_row, end_row)
        start_col, end_col = _ordered(start_col, end_col)
        return ParsedRange(
            sheet_name, CellRect(start_row, end_row + 1, start_col, end_col + 1), a1
        )

    raise InvalidFormatError(
        f"Invalid range: '{text}'",
        reason="Expected 'A1:B2' (cells), '3:5' (whole rows) or 'A:C' (whole columns).",
        context=ErrorContext(received={"range": text}),
    )


def to_grid_range(coordinate: Coordinate, sheet_id: int) -> Dict[str, int]:
    """Convert a coordinate to an API GridRange, omitting unbounded axes."""
    grid_range = {"sheetId": sheet_id}
    if isinstance(coordinate, (CellRect, RowBand)):
        grid_range["startRowIndex"] = coordinate.start_row
        grid_range["endRowIndex"] = coordinate.end_row
    if isinstance(coordinate, (CellRect, ColumnBand)):
        grid_range["startColumnIndex"] = coordinate.start_column
        grid_range["endColumnIndex"] = coordinate.end_column
    return grid_range


def quote_sheet_title(title: str) -> str:
    """Quote a sheet title for use in an A1 reference when needed."""
    if _PLAIN_SHEET_TITLE_RE.match(title):
        return title
    return "'" + title.replace("'", "''") + "'"


def grid_range_to_a1(grid_range: Dict[str, Any], sheet_titles: Optional[Dict[int, str]] = None) -> str:
    """
    Convert a GridRange back to A1 notation for display.

    Whole-row and whole-column ranges come back as '3:5' and 'A:C'. When
    sheet_titles is given the result is prefixed with the sheet title.
    """
    start_row = grid_range.get("startRowIndex")
    end_row = grid_range.get("endRowIndex")
    start_col = grid_range.get("startColumnIndex")
    end_col = grid_range.get("endColumnIndex")

    has_rows = start_row is not None or end_row is not None
    has_cols = start_col is not None or end_col is not None

    if has_rows and has_cols:
        start = f"{index_to_column_letters(start_col or 0)}{(start_row or 0) + 1}"
        if end_row is None or end_col is None:
            range_ref = start
        else:
            end = f"{index_to_column_letters(end_col - 1)}{end_row}"
            range_ref = start if start == end else f"{start}:{end}"
    elif has_rows:
        first = (start_row or 0) + 1
        range_ref = f"{first}:{end_row}" if end_row is not None else f"{first}"
    elif has_cols:
        first = index_to_column_letters(start_col or 0)
        range_ref = (
            f"{first}:{index_to_column_letters(end_col - 1)}" if end_col is not None else first
        )
    else:
        range_ref = ""

    if sheet_titles is None:
        return range_ref

    sheet_id = grid_range.get("sheetId", 0)
    title = quote_sheet_title(sheet_titles.get(sheet_id, f"Sheet {sheet_id}"))
    return f"{title}!{range_ref}" if range_ref else title


def parse_json_list(value: Any, param_name: str) -> Optional[List[Any]]:
    """
    Accept a list or its JSON string encoding.

    MCP clients sometimes pass list parameters as JSON strings.
    """
    if value is None or isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as e:
            raise InvalidParameterError(
                f"Invalid JSON format for {param_name}: {e}"
            ) from e
        if not isinstance(parsed, list):
            raise InvalidParameterError(
                f"{param_name} must be a list, got {type(parsed).__name__}"
            )
        logger.debug(f"Parsed {param_name} from JSON string ({len(parsed)} items)")
        return parsed
    raise InvalidParameterError(
        f"{param_name} must be a list, got {type(value).__name__}"
    )


# ---------------------------------------------------------------------------
# Live resolution
# ---------------------------------------------------------------------------


async def fetch_sheet_properties(service, spreadsheet_id: str) -> List[Dict[str, Any]]:
    """Read the ordered sheet list (sheetId and title only)."""
    spreadsheet = await asyncio.to_thread(
        service.spreadsheets()
        .get(spreadsheetId=spreadsheet_id, fields="sheets.properties(sheetId,title)")
        .execute
    )
    return [sheet.get("properties", {}) for sheet in spreadsheet.get("sheets", [])]


async def resolve_sheet_id(
    service, spreadsheet_id: str, sheet_name: Optional[str] = None
) -> int:
    """
    Resolve a sheet title to its numeric sheet ID with a live read.

    Args:
        service: Authenticated Sheets service
        spreadsheet_id: The spreadsheet ID
        sheet_name: Exact, case-sensitive sheet title. First sheet if omitted.

    Returns:
        The sheet ID

    Raises:
        NotFoundError: if the named sheet does not exist
        EmptyDocumentError: if the spreadsheet has no sheets and no name was given
    """
    sheets = await fetch_sheet_properties(service, spreadsheet_id)

    if sheet_name is None:
        if not sheets:
            raise EmptyDocumentError(
                f"Spreadsheet {spreadsheet_id} has no sheets",
                suggestion="Add a sheet first or pass an existing sheet_name.",
            )
        sheet_id = sheets[0].get("sheetId", 0)
        logger.debug(f"Resolved first sheet of {spreadsheet_id} to sheetId {sheet_id}")
        return sheet_id

    for props in sheets:
        if props.get("title") == sheet_name:
            sheet_id = props.get("sheetId", 0)
            logger.debug(f"Resolved sheet '{sheet_name}' to sheetId {sheet_id}")
            return sheet_id

    available = [props.get("title") for props in sheets]
    raise NotFoundError(
        f"Sheet '{sheet_name}' not found. Available sheets: {available}",
        context=ErrorContext(received={"sheet_name": sheet_name}, available=available),
    )


async def fetch_sheets_with_rules(service, spreadsheet_id: str) -> List[Dict[str, Any]]:
    """Read every sheet's properties and ordered conditional-format rules."""
    spreadsheet = await asyncio.to_thread(
        service.spreadsheets()
        .get(
            spreadsheetId=spreadsheet_id,
            fields="sheets(properties(sheetId,title),conditionalFormats)",
        )
        .execute
    )
    return spreadsheet.get("sheets", [])


async def fetch_sheet_rules(service, spreadsheet_id: str, sheet_id: int) -> List[Dict[str, Any]]:
    """
    Read the current conditional-format rules of one sheet, in order.

    Raises:
        NotFoundError: if no sheet has the given ID
    """
    sheets = await fetch_sheets_with_rules(service, spreadsheet_id)
    for sheet in sheets:
        if sheet.get("properties", {}).get("sheetId") == sheet_id:
            return sheet.get("conditionalFormats", [])
    raise NotFoundError(
        f"Sheet with ID {sheet_id} not found in spreadsheet {spreadsheet_id}",
        context=ErrorContext(received={"sheet_id": sheet_id}),
    )


# ---------------------------------------------------------------------------
# Request builders
# ---------------------------------------------------------------------------


def build_repeat_cell_request(grid_range: Dict[str, Any], cell_format: FieldMaskBuilder) -> Dict[str, Any]:
    return {
        "repeatCell": {
            "range": grid_range,
            "cell": {"userEnteredFormat": cell_format.payload},
            "fields": cell_format.mask,
        }
    }


def build_merge_request(grid_range: Dict[str, Any], merge_type: str = "MERGE_ALL") -> Dict[str, Any]:
    return {
        "mergeCells": {
            "range": grid_range,
            "mergeType": validate_choice(merge_type, MERGE_TYPES, "merge_type"),
        }
    }


def build_unmerge_request(grid_range: Dict[str, Any]) -> Dict[str, Any]:
    return {"unmergeCells": {"range": grid_range}}


def build_freeze_request(
    sheet_id: int,
    frozen_rows: Optional[int] = None,
    frozen_columns: Optional[int] = None,
) -> Optional[Dict[str, Any]]:
    """
    Build an updateSheetProperties request for frozen rows/columns.

    Returns None when neither count is given.
    """
    grid = FieldMaskBuilder(prefix="gridProperties")
    if frozen_rows is not None:
        if frozen_rows < 0:
            raise InvalidParameterError("frozen_rows must be 0 or greater")
        grid.set("frozenRowCount", frozen_rows)
    if frozen_columns is not None:
        if frozen_columns < 0:
            raise InvalidParameterError("frozen_columns must be 0 or greater")
        grid.set("frozenColumnCount", frozen_columns)
    if not grid:
        return None

    return {
        "updateSheetProperties": {
            "properties": {"sheetId": sheet_id, "gridProperties": grid.payload},
            "fields": grid.mask,
        }
    }


def build_dimension_properties_request(
    sheet_id: int,
    dimension: str,
    start_index: int,
    end_index: int,
    pixel_size: Optional[int] = None,
    hidden: Optional[bool] = None,
) -> Dict[str, Any]:
    """updateDimensionProperties over zero-based [start_index, end_index)."""
    props = FieldMaskBuilder()
    if pixel_size is not None:
        if pixel_size <= 0:
            raise InvalidParameterError(f"Pixel size must be positive, got {pixel_size}")
        props.set("pixelSize", pixel_size)
    if hidden is not None:
        props.set("hiddenByUser", hidden)
    if not props:
        raise InvalidParameterError("No dimension properties specified")

    return {
        "updateDimensionProperties": {
            "range": {
                "sheetId": sheet_id,
                "dimension": validate_choice(dimension, DIMENSIONS, "dimension"),
                "startIndex": start_index,
                "endIndex": end_index,
            },
            "properties": props.payload,
            "fields": props.mask,
        }
    }


def validate_dimension_band(start: int, end: int, dimension: str) -> None:
    label = "Row" if dimension == "ROWS" else "Column"
    if start < 1 or end < 1:
        raise InvalidParameterError(
            f"{label} numbers must be 1-based (minimum 1), got {start}-{end}"
        )
    if start > end:
        raise InvalidParameterError(
            f"Start {label.lower()} ({start}) cannot be greater than end {label.lower()} ({end})"
        )


def build_delete_dimension_request(
    sheet_id: int, dimension: str, start: int, end: int
) -> Dict[str, Any]:
    """
    Build a deleteDimension request from one-based, inclusive bounds.

    Rows 3-5 become startIndex 2, endIndex 5.
    """
    dimension = validate_choice(dimension, DIMENSIONS, "dimension")
    validate_dimension_band(start, end, dimension)
    return {
        "deleteDimension": {
            "range": {
                "sheetId": sheet_id,
                "dimension": dimension,
                "startIndex": start - 1,
                "endIndex": end,
            }
        }
    }


def plan_dimension_deletions(
    bands: Sequence[Tuple[int, int]], dimension: str = "ROWS"
) -> List[Tuple[int, int]]:
    """
    Order several one-based inclusive bands for deletion in one batch.

    Overlapping and adjacent bands are merged, and the result is sorted
    highest-first. Deleting a band never shifts a band above it, so every
    request in the batch can use pre-deletion numbering.
    """
    dimension = validate_choice(dimension, DIMENSIONS, "dimension")
    if not bands:
        raise InvalidParameterError("At least one band is required")

    normalized = []
    for band in bands:
        if len(band) != 2:
            raise InvalidParameterError(f"Each band must be [start, end], got {band}")
        start, end = int(band[0]), int(band[1])
        validate_dimension_band(start, end, dimension)
        normalized.append((start, end))

    merged: List[List[int]] = []
    for start, end in sorted(normalized):
        if merged and start <= merged[-1][1] + 1:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])

    plan = [(start, end) for start, end in reversed(merged)]
    logger.debug(f"Planned {dimension.lower()} deletions (highest first): {plan}")
    return plan


def build_delete_conditional_format_request(sheet_id: int, index: int) -> Dict[str, Any]:
    return {"deleteConditionalFormatRule": {"sheetId": sheet_id, "index": index}}


def build_clear_conditional_format_requests(sheet_id: int, rule_count: int) -> List[Dict[str, Any]]:
    """Delete requests for every rule, highest index first (N-1 ... 0)."""
    return [
        build_delete_conditional_format_request(sheet_id, index)
        for index in range(rule_count - 1, -1, -1)
    ]


def build_boolean_rule(
    condition_type: str,
    condition_values: Optional[List[Any]] = None,
    background_color: Optional[str] = None,
    font_color: Optional[str] = None,
    bold: Optional[bool] = None,
    italic: Optional[bool] = None,
) -> Dict[str, Any]:
    """Build a booleanRule (condition plus format)."""
    condition_type = validate_choice(condition_type, BOOLEAN_CONDITION_TYPES, "condition_type")
    values = [str(v) for v in (condition_values or [])]

    if condition_type in _CONDITIONS_WITH_TWO_VALUES and len(values) != 2:
        raise InvalidParameterError(
            f"{condition_type} requires exactly 2 condition values [min, max], got {len(values)}"
        )
    if condition_type not in _CONDITIONS_WITHOUT_VALUES and not values:
        raise InvalidParameterError(f"{condition_type} requires at least one condition value")

    condition: Dict[str, Any] = {"type": condition_type}
    if values and condition_type not in _CONDITIONS_WITHOUT_VALUES:
        condition["values"] = [{"userEnteredValue": v} for v in values]

    cell_format: Dict[str, Any] = {}
    if background_color:
        cell_format["backgroundColor"] = sheets_color(background_color, "background_color")
    text_format: Dict[str, Any] = {}
    if font_color:
        text_format["foregroundColor"] = sheets_color(font_color, "font_color")
    if bold is not None:
        text_format["bold"] = bold
    if italic is not None:
        text_format["italic"] = italic
    if text_format:
        cell_format["textFormat"] = text_format

    if not cell_format:
        raise InvalidParameterError(
            "A BOOLEAN rule needs at least one of background_color, font_color, bold, italic"
        )

    return {"condition": condition, "format": cell_format}


def build_gradient_rule(
    min_color: Optional[str] = None,
    mid_color: Optional[str] = None,
    max_color: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a gradientRule. Defaults to a green-to-red scale."""
    gradient: Dict[str, Any] = {
        "minpoint": {"type": "MIN", "color": sheets_color(min_color or "green", "min_color")},
        "maxpoint": {"type": "MAX", "color": sheets_color(max_color or "red", "max_color")},
    }
    if mid_color:
        gradient["midpoint"] = {
            "type": "PERCENTILE",
            "value": "50",
            "color": sheets_color(mid_color, "mid_color"),
        }
    return gradient


def build_add_conditional_format_request(
    grid_ranges: List[Dict[str, Any]],
    boolean_rule: Optional[Dict[str, Any]] = None,
    gradient_rule: Optional[Dict[str, Any]] = None,
    index: int = 0,
) -> Dict[str, Any]:
    if (boolean_rule is None) == (gradient_rule is None):
        raise InvalidParameterError("Exactly one of boolean_rule or gradient_rule is required")
    if index < 0:
        raise InvalidParameterError(f"Rule index must be non-negative, got {index}")

    rule: Dict[str, Any] = {"ranges": grid_ranges}
    if boolean_rule is not None:
        rule["booleanRule"] = boolean_rule
    else:
        rule["gradientRule"] = gradient_rule
    return {"addConditionalFormatRule": {"rule": rule, "index": index}}


def check_rule_index(index: int, rule_count: int, sheet_label: str) -> None:
    """
    Raises:
        IndexOutOfRangeError: if index is not a current rule position
    """
    if index < 0 or index >= rule_count:
        valid = f"0-{rule_count - 1}" if rule_count else "none"
        raise IndexOutOfRangeError(
            f"Rule index {index} is out of range for sheet {sheet_label} "
            f"({rule_count} rule(s), valid indices: {valid})",
            suggestion="List the current rules first to find the right index.",
            context=ErrorContext(
                received={"index": index},
                expected={"min": 0, "max": rule_count - 1},
            ),
        )


def build_data_validation_request(
    grid_range: Dict[str, Any],
    values: Optional[List[str]] = None,
    source_formula: Optional[str] = None,
    strict: bool = True,
    input_message: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a setDataValidation request for a dropdown.

    A source_formula ('=Sheet1!A1:A10') takes precedence over values. With
    neither, the request clears validation from the range.
    """
    request: Dict[str, Any] = {"range": grid_range}
    if source_formula:
        condition = {
            "type": "ONE_OF_RANGE",
            "values": [{"userEnteredValue": source_formula}],
        }
    elif values:
        condition = {
            "type": "ONE_OF_LIST",
            "values": [{"userEnteredValue": str(v)} for v in values],
        }
    else:
        return {"setDataValidation": request}

    rule: Dict[str, Any] = {"condition": condition, "showCustomUi": True, "strict": strict}
    if input_message:
        rule["inputMessage"] = input_message
    request["rule"] = rule
    return {"setDataValidation": request}


def _parse_on_sheet(address: str, sheet_name: Optional[str], label: str) -> ParsedRange:
    """Parse an address that may only carry a sheet prefix naming sheet_name."""
    parsed = parse_range_address(address, sheet_name)
    if sheet_name is not None and parsed.sheet_name != sheet_name:
        raise InvalidParameterError(
            f"{label} targets sheet '{parsed.sheet_name}', "
            f"but this batch formats '{sheet_name}'",
            context=ErrorContext(received={label: address}, expected={"sheet": sheet_name}),
        )
    return parsed


def plan_merge_ranges(
    merges: List[str], sheet_name: Optional[str] = None
) -> List[Coordinate]:
    """Validate merge ranges for one sheet; a different sheet prefix is rejected."""
    return [
        _parse_on_sheet(address, sheet_name, f"merges[{position}]").coordinate
        for position, address in enumerate(merges)
    ]


def plan_hidden_columns(
    hide_columns: Optional[str], sheet_name: Optional[str] = None
) -> Optional[ColumnBand]:
    """
    Validate the column band to hide, e.g. "D:F" or "Data!D:F".

    Returns None when nothing should be hidden.
    """
    if not hide_columns:
        return None
    band = _parse_on_sheet(hide_columns, sheet_name, "hide_columns").coordinate
    if not isinstance(band, ColumnBand):
        raise InvalidParameterError(
            f"hide_columns must be a column band like 'D:F', got '{hide_columns}'"
        )
    return band


def plan_cell_formats(
    cell_formats: List[Dict[str, Any]], sheet_name: Optional[str] = None
) -> List[Tuple[Coordinate, FieldMaskBuilder]]:
    """
    Validate a list of {"range": ..., <format options>} entries.

    Returns (coordinate, cell_format) pairs ready for repeatCell once the
    sheet ID is known.

    Ranges may carry a sheet prefix only if it names the target sheet.
    Entries with no format options are skipped.
    """
    planned = []
    for position, entry in enumerate(cell_formats):
        if not isinstance(entry, dict) or "range" not in entry:
            raise InvalidParameterError(
                f"cell_formats[{position}] must be an object with a 'range' key"
            )
        unknown = set(entry) - {"range"} - set(CELL_FORMAT_OPTIONS)
        if unknown:
            raise InvalidParameterError(
                f"cell_formats[{position}] has unknown option(s): {sorted(unknown)}. "
                f"Valid options: {list(CELL_FORMAT_OPTIONS)}"
            )

        parsed = _parse_on_sheet(entry["range"], sheet_name, f"cell_formats[{position}]")

        options = {key: entry[key] for key in CELL_FORMAT_OPTIONS if key in entry}
        cell_format = build_cell_format(**options)
        if not cell_format:
            logger.debug(f"cell_formats[{position}] has no options, skipping")
            continue
        planned.append((parsed.coordinate, cell_format))
    return planned


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def summarize_conditional_rule(
    rule: Dict[str, Any], index: int, sheet_titles: Dict[int, str]
) -> str:
    """One-line human-readable summary of a conditional formatting rule."""
    range_labels = [
        grid_range_to_a1(rng, sheet_titles) for rng in rule.get("ranges", [])
    ] or ["(no range)"]

    if "booleanRule" in rule:
        boolean_rule = rule["booleanRule"]
        condition = boolean_rule.get("condition", {})
        cond_values = [
            val.get("userEnteredValue")
            for val in condition.get("values", [])
            if isinstance(val, dict) and "userEnteredValue" in val
        ]
        value_desc = f" values={cond_values}" if cond_values else ""

        fmt = boolean_rule.get("format", {})
        fmt_parts = []
        bg_hex = color_to_hex(fmt.get("backgroundColor"))
        if bg_hex:
            fmt_parts.append(f"bg {bg_hex}")
        fg_hex = color_to_hex(fmt.get("textFormat", {}).get("foregroundColor"))
        if fg_hex:
            fmt_parts.append(f"text {fg_hex}")
        if fmt.get("textFormat", {}).get("bold"):
            fmt_parts.append("bold")
        if fmt.get("textFormat", {}).get("italic"):
            fmt_parts.append("italic")
        fmt_desc = ", ".join(fmt_parts) if fmt_parts else "no format"

        return (
            f"[{index}] {condition.get('type', 'UNKNOWN')}{value_desc} -> {fmt_desc} "
            f"on {', '.join(range_labels)}"
        )

    if "gradientRule" in rule:
        points = []
        for point_name in ("minpoint", "midpoint", "maxpoint"):
            point = rule["gradientRule"].get(point_name)
            if not point:
                continue
            point_desc = point.get("type", point_name)
            if point.get("value"):
                point_desc += f":{point['value']}"
            color_hex = color_to_hex(point.get("color"))
            if color_hex:
                point_desc += f" {color_hex}"
            points.append(point_desc)
        gradient_desc = " | ".join(points) if points else "gradient"
        return f"[{index}] gradient -> {gradient_desc} on {', '.join(range_labels)}"

    return f"[{index}] (unknown rule) on {', '.join(range_labels)}"


def _grid_cells(spreadsheet: Dict[str, Any]):
    """Yield (row_index, col_index, cell) for the first sheet's first grid."""
    sheets = spreadsheet.get("sheets", [])
    if not sheets or not sheets[0].get("data"):
        return
    grid = sheets[0]["data"][0]
    start_row = grid.get("startRow", 0)
    start_col = grid.get("startColumn", 0)
    for row_offset, row in enumerate(grid.get("rowData", [])):
        for col_offset, cell in enumerate(row.get("values", [])):
            yield start_row + row_offset, start_col + col_offset, cell


def _cell_label(row_index: int, col_index: int) -> str:
    return f"{index_to_column_letters(col_index)}{row_index + 1}"


def extract_data_validations(spreadsheet: Dict[str, Any]) -> List[str]:
    """One line per cell that carries a data validation rule."""
    lines = []
    for row_index, col_index, cell in _grid_cells(spreadsheet):
        validation = cell.get("dataValidation")
        if not validation:
            continue
        condition = validation.get("condition", {})
        values = [
            v.get("userEnteredValue") or v.get("relativeDate") or ""
            for v in condition.get("values", [])
        ]
        parts = [f"{condition.get('type', 'UNKNOWN')}"]
        if values:
            parts.append(f"values={values}")
        if "strict" in validation:
            parts.append(f"strict={validation['strict']}")
        if validation.get("showCustomUi"):
            parts.append("dropdown")
        if validation.get("inputMessage"):
            parts.append(f"message={validation['inputMessage']!r}")
        lines.append(f"{_cell_label(row_index, col_index)}: {' | '.join(parts)}")
    return lines


def summarize_cell_formats(spreadsheet: Dict[str, Any]) -> List[str]:
    """One line per cell whose effective format differs from the defaults."""
    lines = []
    for row_index, col_index, cell in _grid_cells(spreadsheet):
        fmt = cell.get("effectiveFormat")
        if not fmt:
            continue

        parts = []
        bg_hex = color_to_hex(fmt.get("backgroundColor"))
        if bg_hex and bg_hex != "#FFFFFF":
            parts.append(f"bg: {bg_hex}")

        text_format = fmt.get("textFormat", {})
        fg_hex = color_to_hex(text_format.get("foregroundColor"))
        if fg_hex and fg_hex != "#000000":
            parts.append(f"color: {fg_hex}")
        if text_format.get("fontFamily"):
            parts.append(f"font: {text_format['fontFamily']}")
        if text_format.get("fontSize"):
            parts.append(f"size: {text_format['fontSize']}pt")
        for flag in ("bold", "italic", "strikethrough", "underline"):
            if text_format.get(flag):
                parts.append(flag)

        if fmt.get("horizontalAlignment") and fmt["horizontalAlignment"] != "LEFT":
            parts.append(f"align: {fmt['horizontalAlignment']}")
        if fmt.get("verticalAlignment") and fmt["verticalAlignment"] != "BOTTOM":
            parts.append(f"valign: {fmt['verticalAlignment']}")
        if fmt.get("wrapStrategy") and fmt["wrapStrategy"] != "OVERFLOW_CELL":
            parts.append(f"wrap: {fmt['wrapStrategy']}")
        if fmt.get("numberFormat", {}).get("pattern"):
            parts.append(f"numFmt: {fmt['numberFormat']['pattern']}")

        if parts:
            lines.append(f"{_cell_label(row_index, col_index)}: {' | '.join(parts)}")
    return lines
