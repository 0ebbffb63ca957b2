"""TableDocument: a drawing surface with tables and a few layout helpers."""

import logging
from typing import List, Optional, Tuple

from .config import DocumentConfig, TableConfig
from .images import image_dimensions, image_height
from .layout_engine import LayoutEngine, TableRow
from .styles import ColorValue
from .surface import DocumentSurface
from .table_renderer import RenderedTable, TableRenderer

logger = logging.getLogger(__name__)


class TableDocument(DocumentSurface):
    """
    PDF document with paginated tables.

    Example:
        doc = TableDocument()
        doc.add_page()
        doc.table([[TableCell(text="Food"), TableCell(text="Note")],
                   [TableCell(text="Pizza"), TableCell(text="15/10")]])
        doc.save("output.pdf")
    """

    def __init__(self, config: Optional[DocumentConfig] = None):
        super().__init__(config)
        self._table_renderer = TableRenderer(self)

    def table(self, rows: List[TableRow], config: Optional[TableConfig] = None) -> RenderedTable:
        """
        Draw a table, adding or switching pages as rows overflow.

        The cursor ends at the table's left edge, just below its last row.
        """
        return self._table_renderer.render(rows, config)

    def get_table_height(self, rows: List[TableRow], config: Optional[TableConfig] = None) -> float:
        """Height the table would take if drawn on a single page. Draws nothing."""
        return LayoutEngine(self).resolve(rows, config).total_height

    def image_height(self, image: bytes, width: float) -> float:
        return image_height(image, width)

    def hr(
        self,
        x1: Optional[float] = None,
        x2: Optional[float] = None,
        y: Optional[float] = None,
        stroke_color: Optional[ColorValue] = None,
        line_width: float = 1,
    ) -> None:
        """Horizontal rule, by default across the content area at the cursor."""
        layout = self.page.layout
        x1 = layout.margin_left if x1 is None else x1
        x2 = layout.max_x if x2 is None else x2
        y = self.y if y is None else y
        if stroke_color:
            self.stroke_color(stroke_color)
        self.line_width(line_width).line(x1, y, x2, y)

    def superscript(self, text: str, font_size: float, continued: bool = False) -> None:
        """Draw text at half font_size without moving the cursor down."""
        current_y = self.y
        self.font_size(font_size / 2).text(text)
        self.font_size(font_size)
        self.y = current_y
        if not continued:
            self.move_down()

    def aligned_image(
        self,
        image: bytes,
        align: str = "left",
        image_width: Optional[float] = None,
        container_width: Optional[float] = None,
        x: Optional[float] = None,
        y: Optional[float] = None,
        force_cursor_displacement: bool = False,
        plot_frame: bool = False,
        fit: Optional[Tuple[float, float]] = None,
    ) -> None:
        """
        Place an image aligned inside a container starting at x.

        Args:
            image: Encoded image bytes
            align: "left", "center" or "right" within the container
            image_width: Drawn width; defaults to the native pixel width
            container_width: Defaults to the page's usable width
            x, y: Container origin; default to the cursor
            force_cursor_displacement: Move the cursor below the image
            plot_frame: Stroke a rectangle around the placed image
            fit: Box the image is scaled into instead of using image_width
        """
        image_width = image_width or image_dimensions(image)[0]
        container_width = container_width or self.usable_width
        x = self.x if x is None else x
        y = self.y if y is None else y

        if align == "center":
            x_image = x + (container_width - image_width) / 2
        elif align == "right":
            x_image = x + container_width - image_width
        else:
            x_image = x

        if fit is not None:
            drawn_w, drawn_h = self.image(image, x_image, y, fit=fit)
        else:
            drawn_w, drawn_h = self.image(image, x_image, y, width=image_width)

        if force_cursor_displacement:
            self.x = x_image
            self.y = y + drawn_h
        if plot_frame:
            frame_w, frame_h = fit if fit is not None else (drawn_w, drawn_h)
            self.rect(x_image, y, frame_w, frame_h).stroke()

    def left_aligned_image(self, image: bytes, **kwargs) -> None:
        self.aligned_image(image, align="left", **kwargs)

    def right_aligned_image(self, image: bytes, **kwargs) -> None:
        self.aligned_image(image, align="right", **kwargs)

    def centered_image(self, image: bytes, **kwargs) -> None:
        self.aligned_image(image, align="center", **kwargs)

    def text_with_bounding_rectangle(
        self,
        text: str,
        x: Optional[float] = None,
        y: Optional[float] = None,
        width: Optional[float] = None,
        padding_all: float = 1,
        padding: Optional[Tuple[float, float, float, float]] = None,
        corner_radius: float = 0,
        fill_opacity: float = 1,
        stroke_color: Optional[ColorValue] = None,
        fill_color: Optional[ColorValue] = None,
        text_color: Optional[ColorValue] = None,
        line_width: float = 1,
        align: str = "justify",
    ) -> None:
        """
        Draw text inside a filled, stroked box.

        A new page is added first when the box does not fit below the cursor.

        Args:
            padding: (top, left, bottom, right); overrides padding_all
            width: Box width; defaults to the text width plus horizontal padding
        """
        top, left, bottom, right = padding or (padding_all,) * 4
        stroke_color = stroke_color or self.default_colors["stroke_color"]
        fill_color = fill_color or self.default_colors["fill_color"]
        text_color = text_color or self.default_colors["text_color"]

        rectangle_width = width or self.width_of_string(text) + left + right
        text_width = rectangle_width - left - right
        rectangle_height = self.height_of_string(text, width=text_width) + top + bottom

        if rectangle_height > self.remaining_height():
            logger.info("Adding page for bounded text: %.40s", text)
            self.add_page()

        x = self.x if x is None else x
        y = self.y if y is None else y

        if corner_radius:
            self.rounded_rect(x, y, rectangle_width, rectangle_height, corner_radius)
        else:
            self.rect(x, y, rectangle_width, rectangle_height)
        self.line_width(line_width).fill_opacity(fill_opacity)
        self.fill_and_stroke(fill_color, stroke_color)

        self.fill_color(text_color).fill_opacity(1)
        self.text(text, x + left, y + top, width=text_width, align=align)
        self.y = y + rectangle_height
