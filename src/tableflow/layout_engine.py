"""Layout engine: page geometry, column widths and row heights for tables."""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from .config import VERTICAL_ALIGNS, DocumentConfig, TableConfig
from .errors import InvalidConfiguration
from .images import scale_image_to_max_width
from .styles import (
    AlignPicker, CellStyle, CellStylePicker, ColorValue, RowStyle, RowStylePicker,
    center_everything, get_table_style, no_cell_style, no_row_style,
)

if TYPE_CHECKING:
    from .surface import DocumentSurface

logger = logging.getLogger(__name__)

DEFAULT_PADDING = 5
DEFAULT_MIN_ROWS_BOTTOM_OF_PAGE = 3

# Per-cell overrides accepted by DocumentSurface.text and DocumentSurface.image
TEXT_OPTIONS = ("width", "align", "line_gap")
IMAGE_OPTIONS = ("width", "height", "fit")


@dataclass
class PageLayout:
    """Page size and margins. Y grows downward from the top edge."""
    page_width: float
    page_height: float
    margin_left: float = 72
    margin_right: float = 72
    margin_top: float = 72
    margin_bottom: float = 72

    @classmethod
    def from_config(cls, config: DocumentConfig) -> "PageLayout":
        width, height = config.page_dimensions
        return cls(
            page_width=width,
            page_height=height,
            margin_left=config.margin_left,
            margin_right=config.margin_right,
            margin_top=config.margin_top,
            margin_bottom=config.margin_bottom,
        )

    @property
    def content_width(self) -> float:
        return self.page_width - self.margin_left - self.margin_right

    @property
    def content_height(self) -> float:
        return self.page_height - self.margin_top - self.margin_bottom

    @property
    def max_x(self) -> float:
        return self.page_width - self.margin_right

    @property
    def max_y(self) -> float:
        """Lowest Y content may reach before the bottom margin."""
        return self.page_height - self.margin_bottom

    @property
    def middle_x(self) -> float:
        return self.margin_left + self.content_width / 2


@dataclass
class TableCell:
    """A table cell holding text, an image, or both (image drawn above text)."""
    text: Optional[str] = None
    image: Optional[bytes] = None
    text_options: Dict[str, Any] = field(default_factory=dict)
    image_options: Dict[str, Any] = field(default_factory=dict)


TableRow = List[TableCell]


@dataclass
class RowYPos:
    """Vertical band occupied by the row currently being placed."""
    top_y: float
    bottom_y: float

    def advance(self, row_height: float) -> None:
        """Move the band directly below its current position."""
        self.top_y = self.bottom_y
        self.bottom_y = self.top_y + row_height

    def shift(self, offset: float) -> None:
        self.top_y += offset
        self.bottom_y += offset


@dataclass(frozen=True)
class ColumnGeometry:
    """Parallel per-column x positions, widths and text widths."""
    column_xs: Tuple[float, ...]
    column_widths: Tuple[float, ...]
    column_text_widths: Tuple[float, ...]


@dataclass(frozen=True)
class TableLayoutParameters:
    """Fully resolved table options plus the geometry derived from them."""
    start_x: float
    start_y: float
    width: float
    hor_padding: float
    ver_padding: float
    vertical_align: str
    min_rows_bottom_of_page: int
    has_header_on_top_of_new_page: bool
    has_new_pages: bool
    has_horizontal_lines: bool
    text_color: ColorValue
    make_align: AlignPicker
    prepare_row: RowStylePicker
    prepare_cell: CellStylePicker

    # Derived during resolution
    column_count: int
    column_xs: Tuple[float, ...]
    column_widths: Tuple[float, ...]
    column_text_widths: Tuple[float, ...]
    row_heights: Tuple[float, ...]
    height_min_number_of_rows: float
    total_height: float
    max_y: float
    base_font: Tuple[str, float]  # (font name, size) in effect at resolution

    @property
    def end_x(self) -> float:
        return self.start_x + self.width


def compute_column_geometry(
    column_count: int,
    start_x: float,
    width: float,
    hor_padding: float,
    predefined_widths: Optional[Sequence[float]] = None,
    predefined_width_fractions: Optional[Sequence[float]] = None,
) -> ColumnGeometry:
    """
    Compute column positions and widths.

    Explicit widths win over fractions of the table width, which win over
    an even split. X positions accumulate left to right from start_x.

    Raises:
        InvalidConfiguration: if the widths/fractions do not match column_count
            or leave a column no wider than its padding
    """
    if predefined_widths:
        widths = [float(w) for w in predefined_widths]
        source = "predefined_widths"
    elif predefined_width_fractions:
        widths = [width * fraction for fraction in predefined_width_fractions]
        source = "predefined_width_fractions"
    else:
        widths = [width / column_count] * column_count
        source = None

    if source and len(widths) != column_count:
        raise InvalidConfiguration(
            f"{source} has {len(widths)} entries but the table has {column_count} columns"
        )

    text_widths = tuple(w - 2 * hor_padding for w in widths)
    for col_idx, text_width in enumerate(text_widths):
        if text_width <= 0:
            raise InvalidConfiguration(
                f"Column {col_idx} is {widths[col_idx]:g}pt wide, "
                f"too narrow for a horizontal padding of {hor_padding:g}pt"
            )

    xs = []
    last_x = start_x
    for column_width in widths:
        xs.append(last_x)
        last_x += column_width

    return ColumnGeometry(
        column_xs=tuple(xs),
        column_widths=tuple(widths),
        column_text_widths=text_widths,
    )


def apply_cell_font(
    surface: "DocumentSurface",
    base_font: Tuple[str, float],
    row_style: RowStyle,
    cell_style: CellStyle,
) -> None:
    """Set the surface font for a cell: base font, then row override, then cell override."""
    font_name, font_size = base_font
    font_name = cell_style.font_family or row_style.font_family or font_name
    font_size = cell_style.font_size or row_style.font_size or font_size
    surface.font(font_name, font_size)


class LayoutEngine:
    """Resolves table options against a surface and measures rows."""

    def __init__(self, surface: "DocumentSurface"):
        self.surface = surface

    def resolve(self, rows: List[TableRow], config: Optional[TableConfig] = None) -> TableLayoutParameters:
        """
        Merge config with defaults and compute all table geometry.

        Measuring rows changes the surface font; the font in effect on entry
        is restored before returning.

        Args:
            rows: Table rows; the first row defines the column count
            config: Partial options, None for all defaults

        Returns:
            Read-only TableLayoutParameters
        """
        config = config or TableConfig()
        self._validate_rows(rows)

        surface = self.surface
        page = surface.page.layout

        make_align, prepare_row, prepare_cell = self._resolve_policies(config)

        start_x = surface.x if config.start_x is None else config.start_x
        start_y = surface.y if config.start_y is None else config.start_y
        hor_padding = DEFAULT_PADDING if config.hor_padding is None else config.hor_padding
        ver_padding = DEFAULT_PADDING if config.ver_padding is None else config.ver_padding
        width = config.width or page.content_width
        vertical_align = config.vertical_align or "center"
        min_rows = config.min_rows_bottom_of_page or DEFAULT_MIN_ROWS_BOTTOM_OF_PAGE

        if vertical_align not in VERTICAL_ALIGNS:
            raise InvalidConfiguration(
                f"vertical_align must be one of {VERTICAL_ALIGNS}, got {vertical_align!r}"
            )
        if hor_padding < 0 or ver_padding < 0:
            raise InvalidConfiguration("Cell padding cannot be negative")

        column_count = len(rows[0])
        geometry = compute_column_geometry(
            column_count=column_count,
            start_x=start_x,
            width=width,
            hor_padding=hor_padding,
            predefined_widths=config.predefined_widths,
            predefined_width_fractions=config.predefined_width_fractions,
        )

        base_font = surface.current_font
        try:
            row_heights = tuple(
                self._row_height(
                    row, row_idx, geometry.column_text_widths, ver_padding,
                    make_align, prepare_row, prepare_cell, base_font,
                )
                for row_idx, row in enumerate(rows)
            )
        finally:
            surface.font(*base_font)

        params = TableLayoutParameters(
            start_x=start_x,
            start_y=start_y,
            width=width,
            hor_padding=hor_padding,
            ver_padding=ver_padding,
            vertical_align=vertical_align,
            min_rows_bottom_of_page=min_rows,
            has_header_on_top_of_new_page=_default(config.has_header_on_top_of_new_page, True),
            has_new_pages=_default(config.has_new_pages, True),
            has_horizontal_lines=_default(config.has_horizontal_lines, True),
            text_color=config.text_color or surface.default_colors["text_color"],
            make_align=make_align,
            prepare_row=prepare_row,
            prepare_cell=prepare_cell,
            column_count=column_count,
            column_xs=geometry.column_xs,
            column_widths=geometry.column_widths,
            column_text_widths=geometry.column_text_widths,
            row_heights=row_heights,
            height_min_number_of_rows=sum(row_heights[:min_rows]),
            total_height=sum(row_heights),
            max_y=page.max_y,
            base_font=base_font,
        )
        logger.debug(
            "Resolved table: %d rows x %d columns, total height %.1f",
            len(rows), column_count, params.total_height,
        )
        return params

    def _validate_rows(self, rows: List[TableRow]) -> None:
        if not rows or not rows[0]:
            raise InvalidConfiguration("A table needs at least one row with at least one cell")
        column_count = len(rows[0])
        for row_idx, row in enumerate(rows):
            if len(row) != column_count:
                raise InvalidConfiguration(
                    f"Row {row_idx} has {len(row)} cells; expected {column_count} like row 0"
                )
            for col_idx, cell in enumerate(row):
                _check_options(cell.text_options, TEXT_OPTIONS, "text_options", row_idx, col_idx)
                _check_options(cell.image_options, IMAGE_OPTIONS, "image_options", row_idx, col_idx)

    def _resolve_policies(self, config: TableConfig) -> Tuple[AlignPicker, RowStylePicker, CellStylePicker]:
        """Explicit policies first, then the named preset, then the plain defaults."""
        make_align, prepare_row, prepare_cell = center_everything, no_row_style, no_cell_style
        if config.style:
            preset = get_table_style(config.style, self.surface.current_font[0])
            make_align, prepare_row, prepare_cell = preset.make_align, preset.prepare_row, preset.prepare_cell
        return (
            config.make_align or make_align,
            config.prepare_row or prepare_row,
            config.prepare_cell or prepare_cell,
        )

    def _row_height(
        self,
        row: TableRow,
        row_idx: int,
        column_text_widths: Sequence[float],
        ver_padding: float,
        make_align: AlignPicker,
        prepare_row: RowStylePicker,
        prepare_cell: CellStylePicker,
        base_font: Tuple[str, float],
    ) -> float:
        """Tallest cell content in the row plus vertical padding on both sides."""
        row_style = prepare_row(row_idx)
        max_height = 0.0

        for col_idx, cell in enumerate(row):
            text_width = column_text_widths[col_idx]
            cell_height = 0.0

            if cell.image:
                _, image_h = scale_image_to_max_width(cell.image, text_width)
                cell_height += image_h

            if cell.text:
                apply_cell_font(self.surface, base_font, row_style, prepare_cell(row_idx, col_idx))
                cell_height += self.surface.height_of_string(
                    cell.text,
                    **text_layout_options(cell, text_width, make_align(row_idx, col_idx)),
                )

            max_height = max(max_height, cell_height)

        return max_height + 2 * ver_padding


def text_layout_options(cell: TableCell, text_width: float, align: str) -> Dict[str, Any]:
    """Keyword options used both to measure and to draw a cell's text."""
    options: Dict[str, Any] = {"width": text_width, "align": align}
    options.update(cell.text_options)
    return options


def _check_options(options: Dict[str, Any], allowed: Sequence[str], name: str, row_idx: int, col_idx: int) -> None:
    unknown = set(options) - set(allowed)
    if unknown:
        raise InvalidConfiguration(
            f"Cell ({row_idx}, {col_idx}) has unknown {name} {sorted(unknown)}; "
            f"expected some of {list(allowed)}"
        )


def _default(value: Optional[bool], default: bool) -> bool:
    return default if value is None else value
