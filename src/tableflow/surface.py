"""Buffered drawing surface rendered to PDF with ReportLab.

All coordinates taken by the surface are top-down: (0, 0) is the top-left
corner of the page and y grows downward. Drawing operations are recorded
per page so earlier pages stay editable until the document is saved, at
which point they are replayed onto a ReportLab canvas in PDF coordinates.
"""

import logging
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Tuple, Union

from reportlab.lib.colors import Color, toColor
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from .config import DocumentConfig
from .errors import InvalidConfiguration, PageLookupFailure, SurfaceFailure
from .images import image_dimensions, image_height
from .layout_engine import PageLayout
from .styles import ColorValue

logger = logging.getLogger(__name__)


@dataclass
class DrawOp:
    """A recorded drawing operation, already in PDF (bottom-up) coordinates."""
    kind: str  # "rect", "line", "text" or "image"
    params: Dict[str, Any]


@dataclass
class Page:
    """A buffered page: its geometry and the operations drawn on it."""
    layout: PageLayout
    ops: List[DrawOp] = field(default_factory=list)

    def ops_of_kind(self, kind: str) -> List[DrawOp]:
        return [op for op in self.ops if op.kind == kind]


def _to_color(value: ColorValue) -> Color:
    try:
        return toColor(value)
    except (ValueError, TypeError) as exc:
        raise InvalidConfiguration(f"Invalid color {value!r}") from exc


class DocumentSurface:
    """Stateful drawing surface: pages, cursor, font and color state."""

    def __init__(self, config: Optional[DocumentConfig] = None):
        self.config = config or DocumentConfig()
        self._pages: List[Page] = []
        self._current: Optional[int] = None

        # Cursor
        self.x: float = self.config.margin_left
        self.y: float = self.config.margin_top

        self._font_name = self.config.font_family
        self._font_size = self.config.font_size
        self.font(self._font_name, self._font_size)

        self.default_colors: Dict[str, Optional[str]] = {
            "text_color": self.config.text_color,
            "stroke_color": self.config.stroke_color,
            "background_color": self.config.background_color,
            "fill_color": self.config.fill_color,
        }
        self._fill_color = _to_color(self.config.text_color)
        self._stroke_color = _to_color(self.config.stroke_color)
        self._fill_alpha = 1.0
        self._stroke_alpha = 1.0
        self._line_width = 1.0
        self._path: Optional[Tuple[float, float, float, float, float]] = None

        self._header_image = self._read_image(self.config.header_image)
        self._footer_image = self._read_image(self.config.footer_image)

        if self.config.auto_first_page:
            self.add_page()

    @staticmethod
    def _read_image(path: Optional[Path]) -> Optional[bytes]:
        if path is None:
            return None
        try:
            return Path(path).read_bytes()
        except OSError as exc:
            raise SurfaceFailure(f"Unable to read image {path}") from exc

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    @property
    def page(self) -> Page:
        """The page currently being drawn on."""
        if self._current is None:
            raise SurfaceFailure("No page has been added to the document")
        return self._pages[self._current]

    @property
    def pages(self) -> List[Page]:
        return list(self._pages)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def current_page_number(self) -> int:
        """Zero-based index of the current page in the page buffer."""
        if self._current is None:
            raise PageLookupFailure("Unable to get current page number: no page added")
        return self._current

    def add_page(self, layout: Optional[PageLayout] = None) -> Page:
        """Append a page, make it current and move the cursor to its top-left margin."""
        page = Page(layout=layout or PageLayout.from_config(self.config))
        self._pages.append(page)
        self._current = len(self._pages) - 1
        self._reset_cursor()
        self._on_page_added()
        return page

    def switch_to_page(self, index: int) -> Page:
        """Make an already buffered page current. The cursor is left untouched."""
        if not 0 <= index < len(self._pages):
            raise PageLookupFailure(
                f"Page {index} is not buffered (pages 0 to {len(self._pages) - 1} exist)"
            )
        self._current = index
        return self._pages[index]

    def go_to_next_page(self) -> Page:
        """Switch to the buffered page after the current one and reset the cursor."""
        page = self.switch_to_page(self.current_page_number + 1)
        self._reset_cursor()
        return page

    def _reset_cursor(self) -> None:
        layout = self.page.layout
        self.x = layout.margin_left
        self.y = layout.margin_top

    def _on_page_added(self) -> None:
        """Paint the background, restore default colors and place header/footer images."""
        layout = self.page.layout
        background = self.default_colors["background_color"]
        if background:
            self.rect(0, 0, layout.page_width, layout.page_height).fill(background)
        self.use_default_colors()

        if self._header_image is not None:
            self._centered_edge_image(self._header_image, self.config.header_image_width, 0)
        if self._footer_image is not None:
            width = self.config.footer_image_width or image_dimensions(self._footer_image)[0]
            height = self.config.footer_image_height or image_height(self._footer_image, width)
            self._centered_edge_image(self._footer_image, width, layout.page_height - height, height)

    def _centered_edge_image(
        self, image: bytes, width: Optional[float], y: float, height: Optional[float] = None,
    ) -> None:
        layout = self.page.layout
        width = width or image_dimensions(image)[0]
        x = layout.margin_left + (layout.content_width - width) / 2
        self.image(image, x, y, width=width, height=height)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def usable_width(self) -> float:
        return self.page.layout.content_width

    @property
    def usable_height(self) -> float:
        return self.page.layout.content_height

    @property
    def max_x(self) -> float:
        return self.page.layout.max_x

    @property
    def max_y(self) -> float:
        return self.page.layout.max_y

    @property
    def middle_point(self) -> float:
        return self.page.layout.middle_x

    def remaining_height(self) -> float:
        """Space left between the cursor and the bottom margin."""
        return self.page.layout.max_y - self.y

    def move_down(self, lines: float = 1) -> None:
        self.y += lines * self.line_height()

    # ------------------------------------------------------------------
    # Graphics state
    # ------------------------------------------------------------------

    @property
    def current_font(self) -> Tuple[str, float]:
        return self._font_name, self._font_size

    def font(self, name: str, size: Optional[float] = None) -> "DocumentSurface":
        try:
            pdfmetrics.getFont(name)
        except KeyError as exc:
            raise InvalidConfiguration(f"Unknown font {name!r}") from exc
        self._font_name = name
        if size is not None:
            self._font_size = size
        return self

    def font_size(self, size: float) -> "DocumentSurface":
        self._font_size = size
        return self

    def fill_color(self, color: ColorValue) -> "DocumentSurface":
        self._fill_color = _to_color(color)
        return self

    def stroke_color(self, color: ColorValue) -> "DocumentSurface":
        self._stroke_color = _to_color(color)
        return self

    def opacity(self, value: float) -> "DocumentSurface":
        self._fill_alpha = value
        self._stroke_alpha = value
        return self

    def fill_opacity(self, value: float) -> "DocumentSurface":
        self._fill_alpha = value
        return self

    def line_width(self, width: float) -> "DocumentSurface":
        self._line_width = width
        return self

    def use_default_colors(self) -> None:
        self.fill_color(self.default_colors["text_color"])
        self.stroke_color(self.default_colors["stroke_color"])

    def set_default_colors(self, **colors: Optional[str]) -> None:
        """Override some of text_color, stroke_color, background_color, fill_color."""
        unknown = set(colors) - set(self.default_colors)
        if unknown:
            raise InvalidConfiguration(f"Unknown default colors: {sorted(unknown)}")
        self.default_colors.update(colors)

    # ------------------------------------------------------------------
    # Text metrics
    # ------------------------------------------------------------------

    def width_of_string(self, text: str) -> float:
        return pdfmetrics.stringWidth(text, self._font_name, self._font_size)

    def line_height(self) -> float:
        ascent, descent = pdfmetrics.getAscentDescent(self._font_name, self._font_size)
        return ascent - descent

    def wrap_lines(self, text: str, width: Optional[float] = None) -> List[Tuple[str, bool]]:
        """
        Break text into lines no wider than width with the current font.

        Returns:
            List of (line, ends_paragraph) tuples
        """
        lines = []
        for paragraph in text.split("\n"):
            if width is None:
                wrapped = [paragraph]
            else:
                wrapped = simpleSplit(paragraph, self._font_name, self._font_size, width) or [""]
            for idx, line in enumerate(wrapped):
                lines.append((line, idx == len(wrapped) - 1))
        return lines

    def height_of_string(
        self,
        text: str,
        width: Optional[float] = None,
        align: Optional[str] = None,
        line_gap: float = 0.0,
    ) -> float:
        """Height text would take if drawn with text() using the current font."""
        if not text:
            return 0.0
        return len(self.wrap_lines(text, width)) * (self.line_height() + line_gap)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _pdf_y(self, y: float) -> float:
        return self.page.layout.page_height - y

    def rect(self, x: float, y: float, width: float, height: float) -> "DocumentSurface":
        """Start a rectangular path; paint it with fill(), stroke() or fill_and_stroke()."""
        self._path = (x, y, width, height, 0.0)
        return self

    def rounded_rect(self, x: float, y: float, width: float, height: float, radius: float) -> "DocumentSurface":
        self._path = (x, y, width, height, radius)
        return self

    def fill(self, color: Optional[ColorValue] = None) -> "DocumentSurface":
        if color is not None:
            self.fill_color(color)
        self._paint(fill=True, stroke=False)
        return self

    def stroke(self, color: Optional[ColorValue] = None) -> "DocumentSurface":
        if color is not None:
            self.stroke_color(color)
        self._paint(fill=False, stroke=True)
        return self

    def fill_and_stroke(
        self,
        fill_color: Optional[ColorValue] = None,
        stroke_color: Optional[ColorValue] = None,
    ) -> "DocumentSurface":
        if fill_color is not None:
            self.fill_color(fill_color)
        if stroke_color is not None:
            self.stroke_color(stroke_color)
        self._paint(fill=True, stroke=True)
        return self

    def _paint(self, fill: bool, stroke: bool) -> None:
        if self._path is None:
            raise SurfaceFailure("No path to paint; call rect() first")
        x, y, width, height, radius = self._path
        self.page.ops.append(DrawOp("rect", {
            "x": x,
            "y": self._pdf_y(y + height),
            "width": width,
            "height": height,
            "radius": radius,
            "fill": fill,
            "stroke": stroke,
            "fill_color": self._fill_color,
            "stroke_color": self._stroke_color,
            "fill_alpha": self._fill_alpha,
            "stroke_alpha": self._stroke_alpha,
            "line_width": self._line_width,
        }))

    def line(self, x1: float, y1: float, x2: float, y2: float) -> "DocumentSurface":
        """Stroke a straight line with the current stroke color and line width."""
        self.page.ops.append(DrawOp("line", {
            "x1": x1,
            "y1": self._pdf_y(y1),
            "x2": x2,
            "y2": self._pdf_y(y2),
            "color": self._stroke_color,
            "alpha": self._stroke_alpha,
            "line_width": self._line_width,
        }))
        return self

    def text(
        self,
        text: str,
        x: Optional[float] = None,
        y: Optional[float] = None,
        width: Optional[float] = None,
        align: str = "left",
        line_gap: float = 0.0,
    ) -> "DocumentSurface":
        """
        Draw text with its top edge at y, wrapping at width.

        The cursor moves to x and to the bottom of the drawn text.
        """
        x = self.x if x is None else x
        y = self.y if y is None else y
        lines = self.wrap_lines(text, width)
        if width is None:
            width = max((self.width_of_string(line) for line, _ in lines), default=0.0)

        ascent, descent = pdfmetrics.getAscentDescent(self._font_name, self._font_size)
        top = y
        for line, ends_paragraph in lines:
            line_width = self.width_of_string(line)
            word_space = 0.0
            if align == "right":
                line_x = x + width - line_width
            elif align == "center":
                line_x = x + (width - line_width) / 2
            else:
                line_x = x
                spaces = line.count(" ")
                if align == "justify" and not ends_paragraph and spaces:
                    word_space = (width - line_width) / spaces

            self.page.ops.append(DrawOp("text", {
                "text": line,
                "x": line_x,
                "y": self._pdf_y(top + ascent),
                "font": self._font_name,
                "size": self._font_size,
                "color": self._fill_color,
                "alpha": self._fill_alpha,
                "word_space": word_space,
            }))
            top += ascent - descent + line_gap

        self.x = x
        self.y = top
        return self

    def image(
        self,
        image: bytes,
        x: Optional[float] = None,
        y: Optional[float] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
        fit: Optional[Tuple[float, float]] = None,
    ) -> Tuple[float, float]:
        """
        Place an image with its top-left corner at (x, y).

        Size comes from fit (largest size inside the box), from width and/or
        height (the missing one keeps the aspect ratio), or from the native
        pixel size. When y is omitted the cursor moves below the image.

        Returns:
            Tuple of (drawn_width, drawn_height)
        """
        native_width, native_height = image_dimensions(image)
        if fit is not None:
            scale = min(fit[0] / native_width, fit[1] / native_height)
            width, height = native_width * scale, native_height * scale
        elif width is not None and height is None:
            height = native_height * width / native_width
        elif height is not None and width is None:
            width = native_width * height / native_height
        elif width is None and height is None:
            width, height = native_width, native_height

        advance_cursor = y is None
        x = self.x if x is None else x
        y = self.y if y is None else y

        self.page.ops.append(DrawOp("image", {
            "data": image,
            "x": x,
            "y": self._pdf_y(y + height),
            "width": width,
            "height": height,
        }))
        if advance_cursor:
            self.y = y + height
        return width, height

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def save(self, target: Union[str, Path, BinaryIO]) -> None:
        """Replay every buffered page onto a ReportLab canvas and write the PDF."""
        if not self._pages:
            raise SurfaceFailure("Cannot save a document without pages")

        first = self._pages[0].layout
        if isinstance(target, Path):
            target = str(target)
        try:
            c = canvas.Canvas(target, pagesize=(first.page_width, first.page_height))
            for page in self._pages:
                c.setPageSize((page.layout.page_width, page.layout.page_height))
                for op in page.ops:
                    _REPLAY[op.kind](c, op.params)
                c.showPage()
            c.save()
        except OSError as exc:
            raise SurfaceFailure(f"Unable to write PDF to {target}") from exc

        logger.debug("Saved %d pages", len(self._pages))


def _replay_rect(c: canvas.Canvas, p: Dict[str, Any]) -> None:
    c.saveState()
    c.setLineWidth(p["line_width"])
    c.setFillColor(p["fill_color"])
    c.setFillAlpha(p["fill_alpha"])
    c.setStrokeColor(p["stroke_color"])
    c.setStrokeAlpha(p["stroke_alpha"])
    if p["radius"]:
        c.roundRect(p["x"], p["y"], p["width"], p["height"], p["radius"],
                    stroke=int(p["stroke"]), fill=int(p["fill"]))
    else:
        c.rect(p["x"], p["y"], p["width"], p["height"],
               stroke=int(p["stroke"]), fill=int(p["fill"]))
    c.restoreState()


def _replay_line(c: canvas.Canvas, p: Dict[str, Any]) -> None:
    c.saveState()
    c.setLineWidth(p["line_width"])
    c.setStrokeColor(p["color"])
    c.setStrokeAlpha(p["alpha"])
    c.line(p["x1"], p["y1"], p["x2"], p["y2"])
    c.restoreState()


def _replay_text(c: canvas.Canvas, p: Dict[str, Any]) -> None:
    c.saveState()
    c.setFillAlpha(p["alpha"])
    text_obj = c.beginText(p["x"], p["y"])
    text_obj.setFont(p["font"], p["size"])
    text_obj.setFillColor(p["color"])
    if p["word_space"]:
        text_obj.setWordSpace(p["word_space"])
    text_obj.textOut(p["text"])
    c.drawText(text_obj)
    c.restoreState()


def _replay_image(c: canvas.Canvas, p: Dict[str, Any]) -> None:
    c.drawImage(ImageReader(BytesIO(p["data"])), p["x"], p["y"],
                width=p["width"], height=p["height"], mask="auto")


_REPLAY: Dict[str, Callable[[canvas.Canvas, Dict[str, Any]], None]] = {
    "rect": _replay_rect,
    "line": _replay_line,
    "text": _replay_text,
    "image": _replay_image,
}
