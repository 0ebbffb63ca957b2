"""Table pagination and row rendering on a DocumentSurface."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .config import TableConfig
from .images import scale_image_to_max_width
from .layout_engine import (
    LayoutEngine, RowYPos, TableLayoutParameters, TableRow,
    apply_cell_font, text_layout_options,
)
from .surface import DocumentSurface

logger = logging.getLogger(__name__)


class PaginationState(Enum):
    """Where the pagination loop is in a table render."""
    BEFORE_FIRST_ROW = "before_first_row"
    RENDERING_ROW = "rendering_row"
    PAGE_BREAK = "page_break"
    DONE = "done"


@dataclass
class RenderedRow:
    """Where a row ended up."""
    row_index: int
    page_index: int
    top_y: float
    bottom_y: float
    is_header_repeat: bool = False


@dataclass
class RenderedTable:
    """Placement metadata for a rendered table."""
    start_page: int
    end_page: int
    total_height: float
    page_breaks: int
    final_y: float
    rows: List[RenderedRow] = field(default_factory=list)


class TableRenderer:
    """Lays out, paginates and draws tables on a surface."""

    def __init__(self, surface: DocumentSurface):
        self.surface = surface
        self.layout_engine = LayoutEngine(surface)
        self.state = PaginationState.DONE

    def render(self, rows: List[TableRow], config: Optional[TableConfig] = None) -> RenderedTable:
        """
        Render a table starting at the configured anchor.

        Rows are never split: a row that does not fit below the previous one
        moves to the next page, and a row taller than a whole page is drawn
        in full past the bottom margin.

        A row only triggers a page break when the current page already holds
        a row of this table. An oversized first row is therefore drawn on the
        page it starts on instead of being pushed onto a blank page.

        The surface font is restored even when a page transition fails.

        Returns:
            RenderedTable with the page and band of every drawn row
        """
        tp = self.layout_engine.resolve(rows, config)
        surface = self.surface
        self.state = PaginationState.BEFORE_FIRST_ROW

        x1, x2 = tp.start_x, tp.end_x
        start_y = tp.start_y

        try:
            # Check to have enough room for the header and first rows
            page_breaks = 0
            if start_y + tp.height_min_number_of_rows > tp.max_y:
                logger.debug(
                    "Not enough room for %d rows at y=%.1f; starting table on next page",
                    tp.min_rows_bottom_of_page, start_y,
                )
                self._turn_page(tp)
                page_breaks += 1
                start_y = surface.page.layout.margin_top

            result = RenderedTable(
                start_page=surface.current_page_number,
                end_page=surface.current_page_number,
                total_height=tp.total_height,
                page_breaks=0,
                final_y=start_y,
            )

            band = RowYPos(top_y=start_y, bottom_y=start_y)
            rows_on_page = 0

            # Topmost line
            if tp.has_horizontal_lines:
                self._hr(x1, x2, start_y)

            for row_idx, row in enumerate(rows):
                row_height = tp.row_heights[row_idx]
                if rows_on_page and band.bottom_y + row_height > tp.max_y:
                    self.state = PaginationState.PAGE_BREAK
                    self._break_page(tp, band, row_idx)
                    page_breaks += 1
                    rows_on_page = 0
                    if tp.has_header_on_top_of_new_page and row_idx > 0:
                        self._repeat_header(rows[0], tp, band, result)
                else:
                    band.advance(row_height)

                self.state = PaginationState.RENDERING_ROW
                self._render_row(row, row_idx, band, tp)
                rows_on_page += 1
                result.rows.append(RenderedRow(
                    row_index=row_idx,
                    page_index=surface.current_page_number,
                    top_y=band.top_y,
                    bottom_y=band.bottom_y,
                ))
                if tp.has_horizontal_lines:
                    self._hr(x1, x2, band.bottom_y)
        finally:
            self.state = PaginationState.DONE
            surface.font(*tp.base_font)

        surface.x = tp.start_x
        surface.y = band.bottom_y

        result.end_page = surface.current_page_number
        result.page_breaks = page_breaks
        result.final_y = band.bottom_y
        return result

    def _turn_page(self, tp: TableLayoutParameters) -> None:
        if tp.has_new_pages:
            self.surface.add_page()
        else:
            self.surface.go_to_next_page()

    def _break_page(self, tp: TableLayoutParameters, band: RowYPos, row_idx: int) -> None:
        """Continue the table at the top of the next page with row row_idx."""
        self._turn_page(tp)
        margin_top = self.surface.page.layout.margin_top
        logger.debug("Row %d continues on page %d", row_idx, self.surface.current_page_number)

        if tp.has_horizontal_lines:
            self._hr(tp.start_x, tp.end_x, margin_top)

        band.top_y = margin_top
        band.bottom_y = margin_top + tp.row_heights[row_idx]

    def _repeat_header(
        self,
        header_row: TableRow,
        tp: TableLayoutParameters,
        band: RowYPos,
        result: RenderedTable,
    ) -> None:
        """Draw row 0 at the top of the page and push the pending row below it."""
        header_height = tp.row_heights[0]
        header_band = RowYPos(top_y=band.top_y, bottom_y=band.top_y + header_height)
        self._render_row(header_row, 0, header_band, tp)
        result.rows.append(RenderedRow(
            row_index=0,
            page_index=self.surface.current_page_number,
            top_y=header_band.top_y,
            bottom_y=header_band.bottom_y,
            is_header_repeat=True,
        ))
        band.shift(header_height)
        if tp.has_horizontal_lines:
            self._hr(tp.start_x, tp.end_x, header_band.bottom_y)

    def _render_row(self, row: TableRow, row_idx: int, band: RowYPos, tp: TableLayoutParameters) -> None:
        """Draw a row's background, then each cell's background, image and text."""
        surface = self.surface
        row_height = tp.row_heights[row_idx]
        row_style = tp.prepare_row(row_idx)
        row_text_color = row_style.text_color or tp.text_color

        if row_style.has_fill or row_style.has_stroke:
            surface.rect(tp.start_x, band.top_y, tp.width, row_height)
            if row_style.has_fill:
                surface.opacity(row_style.fill_opacity)
                surface.fill(row_style.fill_color)
                surface.opacity(1)
            if row_style.has_stroke:
                surface.stroke(row_style.stroke_color)

        for col_idx, cell in enumerate(row):
            cell_style = tp.prepare_cell(row_idx, col_idx)
            apply_cell_font(surface, tp.base_font, row_style, cell_style)

            column_x = tp.column_xs[col_idx]
            text_width = tp.column_text_widths[col_idx]

            if cell_style.has_fill or cell_style.has_stroke:
                surface.line_width(cell_style.line_width)
                surface.rect(column_x, band.top_y, tp.column_widths[col_idx], row_height)
                if cell_style.has_fill:
                    surface.opacity(cell_style.fill_opacity)
                    surface.fill(cell_style.fill_color)
                    surface.opacity(1)
                if cell_style.has_stroke:
                    surface.stroke(cell_style.stroke_color)

            surface.fill_color(cell_style.text_color or row_text_color)

            image_w, image_h = (0.0, 0.0)
            if cell.image:
                image_w, image_h = scale_image_to_max_width(cell.image, text_width)
            text_options = text_layout_options(cell, text_width, tp.make_align(row_idx, col_idx))
            text_h = surface.height_of_string(cell.text, **text_options) if cell.text else 0.0

            content_y = self._content_y(band, row_height, image_h + text_h, tp)

            if cell.image:
                image_options = {"width": image_w, "height": image_h}
                image_options.update(cell.image_options)
                surface.image(cell.image, column_x + tp.hor_padding, content_y, **image_options)

            if cell.text:
                surface.text(cell.text, column_x + tp.hor_padding, content_y + image_h, **text_options)

    @staticmethod
    def _content_y(band: RowYPos, row_height: float, content_height: float, tp: TableLayoutParameters) -> float:
        """Top of a cell's content block according to the vertical alignment."""
        if tp.vertical_align == "top":
            return band.top_y + tp.ver_padding
        if tp.vertical_align == "bottom":
            return band.top_y + row_height - content_height - tp.ver_padding
        return band.top_y + (row_height - content_height) / 2

    def _hr(self, x1: float, x2: float, y: float) -> None:
        self.surface.line_width(1).line(x1, y, x2, y)

