"""Shared test configuration and fixtures."""

from io import BytesIO

import pytest
from PIL import Image

from tableflow.document import TableDocument
from tableflow.layout_engine import TableCell


def make_png(width: int, height: int, color=(200, 30, 30)) -> bytes:
    """Encode a solid-color RGB PNG of the given pixel size."""
    buf = BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def text_rows(*rows):
    """Build table rows from plain strings."""
    return [[TableCell(text=text) for text in row] for row in rows]


@pytest.fixture
def doc() -> TableDocument:
    """A LETTER document (612 x 792, 72pt margins) with one page added."""
    document = TableDocument()
    document.add_page()
    return document


@pytest.fixture
def png_factory():
    return make_png
