"""Configuration dataclasses and YAML loading for documents and tables."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from reportlab.lib.pagesizes import A4, LEGAL, LETTER, landscape

from .errors import InvalidConfiguration
from .styles import AlignPicker, CellStylePicker, ColorValue, RowStylePicker

PAGE_SIZES: Dict[str, Tuple[float, float]] = {
    "LETTER": LETTER,
    "A4": A4,
    "LEGAL": LEGAL,
}

VERTICAL_ALIGNS = ("top", "center", "bottom")

# Options that hold callables and are therefore never read from or written to YAML
_POLICY_FIELDS = ("make_align", "prepare_row", "prepare_cell")


@dataclass
class TableConfig:
    """
    User-facing table options. Every field left as None takes its default
    when the table is laid out (see LayoutEngine.resolve).
    """

    start_x: Optional[float] = None
    start_y: Optional[float] = None
    hor_padding: Optional[float] = None
    ver_padding: Optional[float] = None
    width: Optional[float] = None
    predefined_width_fractions: Optional[List[float]] = None
    predefined_widths: Optional[List[float]] = None
    vertical_align: Optional[str] = None  # "top", "center" or "bottom"
    # If fewer than this many rows fit below start_y, the table starts on a new page
    min_rows_bottom_of_page: Optional[int] = None
    has_header_on_top_of_new_page: Optional[bool] = None
    has_new_pages: Optional[bool] = None
    has_horizontal_lines: Optional[bool] = None
    text_color: Optional[ColorValue] = None

    # Named preset from styles.TABLE_STYLES; explicit policies below take precedence
    style: Optional[str] = None

    make_align: Optional[AlignPicker] = None
    prepare_row: Optional[RowStylePicker] = None
    prepare_cell: Optional[CellStylePicker] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TableConfig":
        """Build a config from plain data, rejecting unknown keys."""
        known = {f.name for f in fields(cls)} - set(_POLICY_FIELDS)
        unknown = set(data) - known
        if unknown:
            raise InvalidConfiguration(f"Unknown table options: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path) -> "TableConfig":
        """Load table options from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    def to_yaml(self, path: Path) -> None:
        """Save the serializable table options to a YAML file."""
        data = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in _POLICY_FIELDS and getattr(self, f.name) is not None
        }
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


@dataclass
class DocumentConfig:
    """Page geometry, default colors and fonts for a TableDocument."""

    page_size: str = "LETTER"
    orientation: str = "portrait"  # "portrait" or "landscape"
    margin_top: float = 72
    margin_bottom: float = 72
    margin_left: float = 72
    margin_right: float = 72

    font_family: str = "Helvetica"
    font_size: float = 12

    # Default colors, reapplied on every new page
    text_color: str = "#000000"
    stroke_color: str = "#cdcdce"
    background_color: Optional[str] = "#ffffff"
    fill_color: str = "#cdcdce"

    auto_first_page: bool = False

    # Optional images drawn centered at the top/bottom edge of every page
    header_image: Optional[Path] = None
    header_image_width: Optional[float] = None
    footer_image: Optional[Path] = None
    footer_image_width: Optional[float] = None
    footer_image_height: Optional[float] = None

    @property
    def page_dimensions(self) -> Tuple[float, float]:
        """(width, height) of a page in points, honoring the orientation."""
        try:
            size = PAGE_SIZES[self.page_size.upper()]
        except KeyError:
            raise InvalidConfiguration(
                f"Unknown page size {self.page_size!r}; expected one of {sorted(PAGE_SIZES)}"
            ) from None
        if self.orientation == "landscape":
            return landscape(size)
        return size

    @classmethod
    def from_yaml(cls, path: Path) -> "DocumentConfig":
        """Load document options from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        unknown = set(data) - {option.name for option in fields(cls)}
        if unknown:
            raise InvalidConfiguration(f"Unknown document options: {sorted(unknown)}")

        # Convert image paths to Path
        for key in ("header_image", "footer_image"):
            if data.get(key) is not None:
                data[key] = Path(data[key])

        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save document options to a YAML file."""
        data = {}
        for option in fields(self):
            value = getattr(self, option.name)
            data[option.name] = str(value) if isinstance(value, Path) else value
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def load_table_config(path: Optional[Path] = None) -> TableConfig:
    """Load table config from path or return an all-defaults config."""
    if path is None:
        return TableConfig()
    return TableConfig.from_yaml(path)


def load_document_config(path: Optional[Path] = None) -> DocumentConfig:
    """Load document config from path or return the default config."""
    if path is None:
        return DocumentConfig()
    return DocumentConfig.from_yaml(path)
