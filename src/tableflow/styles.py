"""Row/cell style records, styling policies and named table style presets."""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Protocol, Union

from reportlab.lib.colors import Color
from reportlab.pdfbase import pdfmetrics

from .errors import InvalidConfiguration

ColorValue = Union[str, Color]


@dataclass(frozen=True)
class RowStyle:
    """Visual settings applied to a whole row."""
    has_fill: bool = False
    has_stroke: bool = False
    fill_opacity: float = 1.0
    font_family: Optional[str] = None
    font_size: Optional[float] = None
    text_color: Optional[ColorValue] = None
    fill_color: Optional[ColorValue] = None
    stroke_color: Optional[ColorValue] = None


@dataclass(frozen=True)
class CellStyle:
    """Visual settings applied to a single cell, on top of its row style."""
    has_fill: bool = False
    has_stroke: bool = False
    fill_opacity: float = 1.0
    line_width: float = 1.0
    font_family: Optional[str] = None
    font_size: Optional[float] = None
    text_color: Optional[ColorValue] = None
    fill_color: Optional[ColorValue] = None
    stroke_color: Optional[ColorValue] = None


class AlignPicker(Protocol):
    """Chooses the text alignment ("left", "center", "right", "justify") of a cell."""

    def __call__(self, row_idx: int, col_idx: int) -> str:
        ...


class RowStylePicker(Protocol):
    """Chooses the style of a row."""

    def __call__(self, row_idx: int) -> RowStyle:
        ...


class CellStylePicker(Protocol):
    """Chooses the style of a cell."""

    def __call__(self, row_idx: int, col_idx: int) -> CellStyle:
        ...


def center_everything(row_idx: int, col_idx: int) -> str:
    return "center"


def no_row_style(row_idx: int) -> RowStyle:
    return RowStyle()


def no_cell_style(row_idx: int, col_idx: int) -> CellStyle:
    return CellStyle()


def align_two_columns_to_extremes() -> AlignPicker:
    """Left-align even columns and right-align odd ones (label/value tables)."""
    def make_align(row_idx: int, col_idx: int) -> str:
        return "left" if col_idx % 2 == 0 else "right"
    return make_align


def make_even_columns_bold(
    main_font: Optional[str],
    highlighted_font: Optional[str],
) -> CellStylePicker:
    """Use highlighted_font for columns 0, 2, 4, ... and main_font elsewhere."""
    def prepare_cell(row_idx: int, col_idx: int) -> CellStyle:
        if col_idx % 2 == 0:
            return CellStyle(font_family=highlighted_font)
        return CellStyle(font_family=main_font)
    return prepare_cell


def make_odd_columns_bold(
    main_font: Optional[str],
    highlighted_font: Optional[str],
) -> CellStylePicker:
    """Use highlighted_font for columns 1, 3, 5, ... and main_font elsewhere."""
    def prepare_cell(row_idx: int, col_idx: int) -> CellStyle:
        if col_idx % 2 == 0:
            return CellStyle(font_family=main_font)
        return CellStyle(font_family=highlighted_font)
    return prepare_cell


def alternate_main_colors(
    fill_color_1: Optional[ColorValue],
    fill_color_2: Optional[ColorValue],
    common: Optional[RowStyle] = None,
) -> RowStylePicker:
    """Fill even rows with fill_color_1 and odd rows with fill_color_2."""
    base = replace(common or RowStyle(), has_fill=True)

    def prepare_row(row_idx: int) -> RowStyle:
        if row_idx % 2 == 0:
            return replace(base, fill_color=fill_color_1)
        return replace(base, fill_color=fill_color_2)
    return prepare_row


def highlight_headers(
    headers_fill: Optional[ColorValue],
    headers_font_family: Optional[str],
    row_fill: Optional[ColorValue],
    row_font_family: Optional[str],
    common: Optional[RowStyle] = None,
) -> RowStylePicker:
    """Give row 0 its own fill and font, and every other row a shared one."""
    base = replace(common or RowStyle(), has_fill=True)

    def prepare_row(row_idx: int) -> RowStyle:
        if row_idx == 0:
            return replace(base, font_family=headers_font_family, fill_color=headers_fill)
        return replace(base, font_family=row_font_family, fill_color=row_fill)
    return prepare_row


_BOLD_VARIANTS = {
    "Times-Roman": "Times-Bold",
    "Times-Italic": "Times-BoldItalic",
    "Helvetica-Oblique": "Helvetica-BoldOblique",
    "Courier-Oblique": "Courier-BoldOblique",
}


def get_bold_font(font_family: str) -> str:
    """
    Get the bold variant of a font family.

    Fonts with no registered bold variant are returned unchanged.
    """
    if font_family in _BOLD_VARIANTS:
        return _BOLD_VARIANTS[font_family]
    elif "Bold" in font_family:
        return font_family

    bold_font = f"{font_family}-Bold"
    try:
        pdfmetrics.getFont(bold_font)
    except KeyError:
        return font_family
    return bold_font


@dataclass(frozen=True)
class TableStyle:
    """A named bundle of styling policies."""
    name: str
    make_align: AlignPicker
    prepare_row: RowStylePicker
    prepare_cell: CellStylePicker


def _build_presets(font_family: str = "Helvetica") -> Dict[str, TableStyle]:
    bold_font = get_bold_font(font_family)
    return {
        "plain": TableStyle(
            name="plain",
            make_align=center_everything,
            prepare_row=no_row_style,
            prepare_cell=no_cell_style,
        ),
        "zebra": TableStyle(
            name="zebra",
            make_align=center_everything,
            prepare_row=alternate_main_colors("#ffffff", "#f3f3f3"),
            prepare_cell=no_cell_style,
        ),
        "header_highlight": TableStyle(
            name="header_highlight",
            make_align=center_everything,
            prepare_row=highlight_headers(
                headers_fill="#d5d5d5",
                headers_font_family=bold_font,
                row_fill="#f3f3f3",
                row_font_family=font_family,
            ),
            prepare_cell=no_cell_style,
        ),
        "key_value": TableStyle(
            name="key_value",
            make_align=align_two_columns_to_extremes(),
            prepare_row=no_row_style,
            prepare_cell=make_even_columns_bold(font_family, bold_font),
        ),
    }


TABLE_STYLES: Dict[str, TableStyle] = _build_presets()


def get_table_style(name: str, font_family: Optional[str] = None) -> TableStyle:
    """
    Look up a style preset by name.

    Args:
        name: Preset name (see TABLE_STYLES)
        font_family: Base font the bold variants derive from; defaults to Helvetica
    """
    presets = TABLE_STYLES if font_family is None else _build_presets(font_family)
    try:
        return presets[name]
    except KeyError:
        raise InvalidConfiguration(
            f"Unknown table style {name!r}; expected one of {sorted(presets)}"
        ) from None
