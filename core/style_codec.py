"""
Color and Style Codec

Deterministic conversion between human-facing style options and the API
representations used by Google Sheets and Google Docs batch requests:

- hex color strings <-> normalized red/green/blue components
- named style options -> payload object plus field mask

The payload and its field mask are always produced together by
FieldMaskBuilder, so a field can never be populated without being listed in
the mask (or listed without being populated).
"""
import logging
import re
from typing import Any, Dict, List, Optional

from core.errors import InvalidFormatError, InvalidParameterError

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$")

NAMED_COLORS = {
    "black": "#000000",
    "white": "#FFFFFF",
    "red": "#FF0000",
    "green": "#00FF00",
    "blue": "#0000FF",
    "yellow": "#FFFF00",
    "cyan": "#00FFFF",
    "magenta": "#FF00FF",
    "orange": "#FFA500",
    "purple": "#800080",
    "pink": "#FFC0CB",
    "gray": "#808080",
    "grey": "#808080",
    "lightgray": "#D3D3D3",
    "lightgrey": "#D3D3D3",
    "darkgray": "#A9A9A9",
    "darkgrey": "#A9A9A9",
}

DOCS_ALIGNMENTS = ["START", "CENTER", "END", "JUSTIFIED"]
DOCS_NAMED_STYLES = [
    "NORMAL_TEXT",
    "TITLE",
    "SUBTITLE",
    "HEADING_1",
    "HEADING_2",
    "HEADING_3",
    "HEADING_4",
    "HEADING_5",
    "HEADING_6",
]
SHEETS_HORIZONTAL_ALIGNMENTS = ["LEFT", "CENTER", "RIGHT"]
SHEETS_VERTICAL_ALIGNMENTS = ["TOP", "MIDDLE", "BOTTOM"]
SHEETS_WRAP_STRATEGIES = ["OVERFLOW_CELL", "CLIP", "WRAP"]
SHEETS_NUMBER_FORMAT_TYPES = [
    "TEXT",
    "NUMBER",
    "CURRENCY",
    "PERCENT",
    "DATE",
    "TIME",
    "DATE_TIME",
    "SCIENTIFIC",
]


def hex_to_color(text: Optional[str]) -> Optional[Dict[str, float]]:
    """
    Convert a hex color string into unit-interval RGB components.

    Accepts 3- or 6-digit hex with an optional leading '#', case-insensitive.
    The 3-digit form is expanded by digit duplication ('F00' -> 'FF0000').

    Returns:
        {"red", "green", "blue"} floats in [0.0, 1.0], or None for malformed input
    """
    if not text:
        return None
    match = _HEX_RE.match(text.strip())
    if not match:
        return None

    hex_val = match.group(1)
    if len(hex_val) == 3:
        hex_val = "".join(c * 2 for c in hex_val)

    return {
        "red": int(hex_val[0:2], 16) / 255.0,
        "green": int(hex_val[2:4], 16) / 255.0,
        "blue": int(hex_val[4:6], 16) / 255.0,
    }


def color_to_hex(color: Optional[Dict[str, Any]]) -> Optional[str]:
    """Convert an API color object back to a #RRGGBB string for display."""
    if not color:
        return None
    if "rgbColor" in color:
        color = color["rgbColor"]

    def _component(value: Optional[float]) -> int:
        try:
            return max(0, min(255, int(round(float(value or 0) * 255))))
        except (TypeError, ValueError):
            return 0

    return "#{:02X}{:02X}{:02X}".format(
        _component(color.get("red")),
        _component(color.get("green")),
        _component(color.get("blue")),
    )


def parse_color(color_str: str, param_name: str = "color") -> Dict[str, float]:
    """
    Parse a tool-supplied color (hex or common color name).

    Unlike hex_to_color, malformed input is fatal here.

    Raises:
        InvalidFormatError: if the value is neither a known name nor valid hex
    """
    value = (color_str or "").strip()
    named = NAMED_COLORS.get(value.lower())
    color = hex_to_color(named or value)
    if color is None:
        raise InvalidFormatError(
            f"Invalid {param_name}: '{color_str}'",
            reason="Colors must be hex (#RRGGBB or #RGB) or a common color name (red, blue, ...).",
            suggestion="Use a value like '#FF0000', 'F00' or 'red'.",
        )
    return color


def sheets_color(color_str: str, param_name: str = "color") -> Dict[str, float]:
    """Sheets color object with full opacity."""
    color = parse_color(color_str, param_name)
    color["alpha"] = 1.0
    return color


def docs_color(color_str: str, param_name: str = "color") -> Dict[str, Any]:
    """Docs OptionalColor object."""
    return {"color": {"rgbColor": parse_color(color_str, param_name)}}


def validate_choice(value: str, valid: List[str], param_name: str) -> str:
    upper = (value or "").upper()
    if upper not in valid:
        raise InvalidParameterError(
            f"Invalid {param_name}: '{value}'. Must be one of: {valid}",
            suggestion=f"Use one of: {', '.join(valid)}",
        )
    return upper


class FieldMaskBuilder:
    """
    Accumulates a request payload and its field mask together.

    Usage:
        builder = FieldMaskBuilder(prefix="userEnteredFormat")
        builder.set("textFormat.bold", True)
        builder.payload  # {"textFormat": {"bold": True}}
        builder.mask     # "userEnteredFormat.textFormat.bold"
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix
        self.payload: Dict[str, Any] = {}
        self._fields: List[str] = []

    def set(self, path: str, value: Any) -> "FieldMaskBuilder":
        """Populate `path` in the payload and register it in the mask."""
        keys = path.split(".")
        node = self.payload
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value

        field = f"{self.prefix}.{path}" if self.prefix else path
        if field not in self._fields:
            self._fields.append(field)
        return self

    @property
    def fields(self) -> List[str]:
        return list(self._fields)

    @property
    def mask(self) -> str:
        return ",".join(self._fields)

    def __bool__(self) -> bool:
        return bool(self._fields)

    def __repr__(self) -> str:
        return f"FieldMaskBuilder(prefix={self.prefix!r}, fields={self._fields!r})"


def build_text_style(
    bold: Optional[bool] = None,
    italic: Optional[bool] = None,
    underline: Optional[bool] = None,
    strikethrough: Optional[bool] = None,
    font_size: Optional[float] = None,
    font_family: Optional[str] = None,
    foreground_color: Optional[str] = None,
    background_color: Optional[str] = None,
    link_url: Optional[str] = None,
) -> FieldMaskBuilder:
    """
    Build a Docs TextStyle payload and mask.

    Args:
        link_url: URL for a hyperlink; an empty string removes an existing link
    """
    style = FieldMaskBuilder()

    if bold is not None:
        style.set("bold", bold)
    if italic is not None:
        style.set("italic", italic)
    if underline is not None:
        style.set("underline", underline)
    if strikethrough is not None:
        style.set("strikethrough", strikethrough)
    if font_size is not None:
        if font_size <= 0:
            raise InvalidParameterError(f"font_size must be positive, got {font_size}")
        style.set("fontSize", {"magnitude": font_size, "unit": "PT"})
    if font_family is not None:
        style.set("weightedFontFamily", {"fontFamily": font_family})
    if foreground_color is not None:
        style.set("foregroundColor", docs_color(foreground_color, "foreground_color"))
    if background_color is not None:
        style.set("backgroundColor", docs_color(background_color, "background_color"))
    if link_url is not None:
        style.set("link", {"url": link_url} if link_url else None)

    return style


def build_paragraph_style(
    alignment: Optional[str] = None,
    indent_start: Optional[float] = None,
    indent_end: Optional[float] = None,
    space_above: Optional[float] = None,
    space_below: Optional[float] = None,
    named_style_type: Optional[str] = None,
    keep_with_next: Optional[bool] = None,
) -> FieldMaskBuilder:
    """Build a Docs ParagraphStyle payload and mask."""
    style = FieldMaskBuilder()

    if alignment is not None:
        style.set("alignment", validate_choice(alignment, DOCS_ALIGNMENTS, "alignment"))
    if indent_start is not None:
        style.set("indentStart", {"magnitude": indent_start, "unit": "PT"})
    if indent_end is not None:
        style.set("indentEnd", {"magnitude": indent_end, "unit": "PT"})
    if space_above is not None:
        style.set("spaceAbove", {"magnitude": space_above, "unit": "PT"})
    if space_below is not None:
        style.set("spaceBelow", {"magnitude": space_below, "unit": "PT"})
    if named_style_type is not None:
        style.set(
            "namedStyleType",
            validate_choice(named_style_type, DOCS_NAMED_STYLES, "named_style_type"),
        )
    if keep_with_next is not None:
        style.set("keepWithNext", keep_with_next)

    return style


def build_cell_format(
    bold: Optional[bool] = None,
    italic: Optional[bool] = None,
    underline: Optional[bool] = None,
    strikethrough: Optional[bool] = None,
    font_size: Optional[int] = None,
    font_family: Optional[str] = None,
    font_color: Optional[str] = None,
    background_color: Optional[str] = None,
    horizontal_alignment: Optional[str] = None,
    vertical_alignment: Optional[str] = None,
    wrap_strategy: Optional[str] = None,
    number_format_type: Optional[str] = None,
    number_format_pattern: Optional[str] = None,
) -> FieldMaskBuilder:
    """
    Build a Sheets userEnteredFormat payload with fully qualified field paths.

    Returns:
        FieldMaskBuilder whose payload is the CellFormat and whose mask is
        suitable for repeatCell.fields
    """
    fmt = FieldMaskBuilder(prefix="userEnteredFormat")

    if bold is not None:
        fmt.set("textFormat.bold", bold)
    if italic is not None:
        fmt.set("textFormat.italic", italic)
    if underline is not None:
        fmt.set("textFormat.underline", underline)
    if strikethrough is not None:
        fmt.set("textFormat.strikethrough", strikethrough)
    if font_size is not None:
        if font_size <= 0:
            raise InvalidParameterError(f"font_size must be positive, got {font_size}")
        fmt.set("textFormat.fontSize", font_size)
    if font_family is not None:
        fmt.set("textFormat.fontFamily", font_family)
    if font_color is not None:
        fmt.set("textFormat.foregroundColor", sheets_color(font_color, "font_color"))

    if background_color is not None:
        fmt.set("backgroundColor", sheets_color(background_color, "background_color"))

    if horizontal_alignment is not None:
        fmt.set(
            "horizontalAlignment",
            validate_choice(horizontal_alignment, SHEETS_HORIZONTAL_ALIGNMENTS, "horizontal_alignment"),
        )
    if vertical_alignment is not None:
        fmt.set(
            "verticalAlignment",
            validate_choice(vertical_alignment, SHEETS_VERTICAL_ALIGNMENTS, "vertical_alignment"),
        )
    if wrap_strategy is not None:
        fmt.set("wrapStrategy", validate_choice(wrap_strategy, SHEETS_WRAP_STRATEGIES, "wrap_strategy"))

    if number_format_type is not None or number_format_pattern is not None:
        number_format: Dict[str, Any] = {}
        if number_format_type is not None:
            number_format["type"] = validate_choice(
                number_format_type, SHEETS_NUMBER_FORMAT_TYPES, "number_format_type"
            )
        else:
            number_format["type"] = "NUMBER"
        if number_format_pattern is not None:
            number_format["pattern"] = number_format_pattern
        fmt.set("numberFormat", number_format)

    return fmt
