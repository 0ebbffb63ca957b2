"""Unit tests for column geometry, row height measurement and table option resolution."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import pytest
from reportlab.pdfbase import pdfmetrics

from conftest import text_rows
from tableflow.config import TableConfig
from tableflow.errors import InvalidConfiguration
from tableflow.layout_engine import LayoutEngine, PageLayout, RowYPos, TableCell, compute_column_geometry
from tableflow.styles import CellStyle, RowStyle


def line_height(font="Helvetica", size=12):
    ascent, descent = pdfmetrics.getAscentDescent(font, size)
    return ascent - descent


# ===========================================================================
# compute_column_geometry
# ===========================================================================


class TestColumnGeometry:

    def test_even_split(self):
        geometry = compute_column_geometry(column_count=3, start_x=72, width=450, hor_padding=5)
        assert geometry.column_widths == (150, 150, 150)
        assert geometry.column_xs == (72, 222, 372)
        assert geometry.column_text_widths == (140, 140, 140)

    def test_even_split_sums_to_table_width(self):
        geometry = compute_column_geometry(column_count=7, start_x=0, width=500, hor_padding=5)
        assert sum(geometry.column_widths) == pytest.approx(500)

    def test_fractions(self):
        geometry = compute_column_geometry(
            column_count=2, start_x=50, width=300, hor_padding=5,
            predefined_width_fractions=[0.4, 0.6],
        )
        assert geometry.column_widths == pytest.approx((120, 180))
        assert geometry.column_xs == pytest.approx((50, 170))
        assert geometry.column_text_widths == pytest.approx((110, 170))

    def test_explicit_widths_take_priority_over_fractions(self):
        geometry = compute_column_geometry(
            column_count=2, start_x=10, width=300, hor_padding=2,
            predefined_widths=[100, 40],
            predefined_width_fractions=[0.5, 0.5],
        )
        assert geometry.column_widths == (100, 40)
        assert geometry.column_xs == (10, 110)
        assert geometry.column_text_widths == (96, 36)

    def test_widths_length_mismatch(self):
        with pytest.raises(InvalidConfiguration, match="predefined_widths"):
            compute_column_geometry(column_count=3, start_x=0, width=300, hor_padding=5,
                                    predefined_widths=[100, 200])

    def test_column_narrower_than_padding(self):
        with pytest.raises(InvalidConfiguration, match="Column 0"):
            compute_column_geometry(column_count=2, start_x=0, width=300, hor_padding=5,
                                    predefined_widths=[8, 100])

    def test_column_exactly_padding_wide(self):
        with pytest.raises(InvalidConfiguration):
            compute_column_geometry(column_count=1, start_x=0, width=300, hor_padding=5,
                                    predefined_widths=[10])

    def test_fractions_length_mismatch(self):
        with pytest.raises(InvalidConfiguration, match="predefined_width_fractions"):
            compute_column_geometry(column_count=1, start_x=0, width=300, hor_padding=5,
                                    predefined_width_fractions=[0.5, 0.5])


# ===========================================================================
# LayoutEngine.resolve
# ===========================================================================


class TestResolveDefaults:

    def test_defaults(self, doc):
        tp = LayoutEngine(doc).resolve(text_rows(["a", "b"]))
        assert tp.start_x == 72
        assert tp.start_y == 72
        assert tp.width == 612 - 144
        assert tp.hor_padding == 5
        assert tp.ver_padding == 5
        assert tp.vertical_align == "center"
        assert tp.min_rows_bottom_of_page == 3
        assert tp.has_header_on_top_of_new_page is True
        assert tp.has_new_pages is True
        assert tp.has_horizontal_lines is True
        assert tp.text_color == "#000000"
        assert tp.max_y == 792 - 72
        assert tp.make_align(3, 1) == "center"
        assert tp.prepare_row(0) == RowStyle()
        assert tp.prepare_cell(0, 0) == CellStyle()

    def test_anchor_follows_cursor(self, doc):
        doc.x, doc.y = 100, 250
        tp = LayoutEngine(doc).resolve(text_rows(["a"]))
        assert (tp.start_x, tp.start_y) == (100, 250)

    def test_three_equal_columns_of_450(self, doc):
        rows = text_rows(["a", "b", "c"], ["d", "e", "f"], ["g", "h", "i"])
        tp = LayoutEngine(doc).resolve(rows, TableConfig(width=450))
        assert tp.column_count == 3
        assert tp.column_widths == (150, 150, 150)
        assert tp.column_text_widths == (140, 140, 140)
        assert len(set(tp.row_heights)) == 1

    def test_parallel_column_arrays(self, doc):
        rows = text_rows(["a", "b", "c", "d"])
        tp = LayoutEngine(doc).resolve(rows, TableConfig(hor_padding=8))
        assert len(tp.column_xs) == len(tp.column_widths) == len(tp.column_text_widths) == tp.column_count
        for width, text_width in zip(tp.column_widths, tp.column_text_widths):
            assert text_width == pytest.approx(width - 16)

    def test_zero_min_rows_falls_back_to_default(self, doc):
        tp = LayoutEngine(doc).resolve(text_rows(["a"]), TableConfig(min_rows_bottom_of_page=0))
        assert tp.min_rows_bottom_of_page == 3


class TestResolveValidation:

    def test_empty_grid(self, doc):
        with pytest.raises(InvalidConfiguration):
            LayoutEngine(doc).resolve([])

    def test_empty_first_row(self, doc):
        with pytest.raises(InvalidConfiguration):
            LayoutEngine(doc).resolve([[]])

    def test_ragged_rows(self, doc):
        with pytest.raises(InvalidConfiguration, match="Row 1"):
            LayoutEngine(doc).resolve(text_rows(["a", "b"], ["c"]))

    def test_unknown_vertical_align(self, doc):
        with pytest.raises(InvalidConfiguration, match="vertical_align"):
            LayoutEngine(doc).resolve(text_rows(["a"]), TableConfig(vertical_align="middle"))

    def test_negative_padding(self, doc):
        with pytest.raises(InvalidConfiguration):
            LayoutEngine(doc).resolve(text_rows(["a"]), TableConfig(ver_padding=-1))

    def test_width_count_mismatch(self, doc):
        with pytest.raises(InvalidConfiguration):
            LayoutEngine(doc).resolve(text_rows(["a", "b"]), TableConfig(predefined_widths=[100]))

    def test_narrow_image_column_rejected(self, doc, png_factory):
        rows = [[TableCell(image=png_factory(20, 20)), TableCell(text="x")]]
        with pytest.raises(InvalidConfiguration):
            LayoutEngine(doc).resolve(rows, TableConfig(predefined_widths=[8, 100]))

    def test_unknown_text_option(self, doc):
        rows = [[TableCell(text="x", text_options={"underline": True})]]
        with pytest.raises(InvalidConfiguration, match="underline"):
            LayoutEngine(doc).resolve(rows)
        with pytest.raises(InvalidConfiguration, match="underline"):
            doc.get_table_height(rows)

    def test_unknown_image_option(self, doc, png_factory):
        rows = [[TableCell(image=png_factory(20, 20), image_options={"opacity": 0.5})]]
        with pytest.raises(InvalidConfiguration, match="opacity"):
            doc.table(rows)

    def test_known_cell_options(self, doc):
        rows = [[TableCell(text="x", text_options={"align": "right", "line_gap": 2})]]
        tp = LayoutEngine(doc).resolve(rows)
        assert tp.row_heights[0] == pytest.approx(line_height() + 2 + 10)

    def test_validation_happens_before_drawing(self, doc):
        ops_before = len(doc.page.ops)
        with pytest.raises(InvalidConfiguration):
            doc.table(text_rows(["a", "b"], ["c"]))
        assert len(doc.page.ops) == ops_before


class TestResolvePolicies:

    def test_style_preset(self, doc):
        tp = LayoutEngine(doc).resolve(text_rows(["k", "v"]), TableConfig(style="key_value"))
        assert tp.make_align(0, 0) == "left"
        assert tp.make_align(0, 1) == "right"
        assert tp.prepare_cell(0, 0).font_family == "Helvetica-Bold"

    def test_explicit_policy_beats_preset(self, doc):
        config = TableConfig(style="key_value", make_align=lambda row_idx, col_idx: "justify")
        tp = LayoutEngine(doc).resolve(text_rows(["k", "v"]), config)
        assert tp.make_align(0, 1) == "justify"
        assert tp.prepare_cell(0, 1).font_family == "Helvetica"

    def test_unknown_style(self, doc):
        with pytest.raises(InvalidConfiguration, match="Unknown table style"):
            LayoutEngine(doc).resolve(text_rows(["a"]), TableConfig(style="fancy"))


# ===========================================================================
# Row heights
# ===========================================================================


class TestRowHeights:

    def test_single_line_text(self, doc):
        tp = LayoutEngine(doc).resolve(text_rows(["Pizza", "15/10"]))
        assert tp.row_heights[0] == pytest.approx(line_height() + 10)

    def test_wrapped_text_is_taller(self, doc):
        long_text = "word " * 60
        tp = LayoutEngine(doc).resolve(text_rows(["short", long_text]), TableConfig(width=200))
        lines = len(doc.wrap_lines(long_text, 90))
        assert lines > 1
        assert tp.row_heights[0] == pytest.approx(lines * line_height() + 10)

    def test_empty_cells_only_padding(self, doc):
        rows = [[TableCell(), TableCell()]]
        tp = LayoutEngine(doc).resolve(rows, TableConfig(ver_padding=7))
        assert tp.row_heights == (14,)

    def test_total_and_min_rows_heights(self, doc):
        rows = text_rows(["a"], ["b\nc"], ["d"], ["e\nf\ng"], ["h"])
        tp = LayoutEngine(doc).resolve(rows)
        assert tp.total_height == pytest.approx(sum(tp.row_heights))
        assert tp.height_min_number_of_rows == pytest.approx(sum(tp.row_heights[:3]))
        assert all(height >= 10 for height in tp.row_heights)

    def test_min_rows_larger_than_table(self, doc):
        rows = text_rows(["a"], ["b"])
        tp = LayoutEngine(doc).resolve(rows, TableConfig(min_rows_bottom_of_page=5))
        assert tp.height_min_number_of_rows == pytest.approx(tp.total_height)

    def test_row_font_size_override(self, doc):
        config = TableConfig(prepare_row=lambda row_idx: RowStyle(font_size=24 if row_idx == 0 else None))
        tp = LayoutEngine(doc).resolve(text_rows(["Header"], ["body"]), config)
        assert tp.row_heights[0] == pytest.approx(line_height(size=24) + 10)
        assert tp.row_heights[1] == pytest.approx(line_height() + 10)

    def test_cell_font_overrides_row_font(self, doc):
        config = TableConfig(
            prepare_row=lambda row_idx: RowStyle(font_size=20),
            prepare_cell=lambda row_idx, col_idx: CellStyle(font_size=30 if col_idx == 1 else None),
        )
        tp = LayoutEngine(doc).resolve(text_rows(["a", "b"]), config)
        assert tp.row_heights[0] == pytest.approx(line_height(size=30) + 10)

    def test_cell_font_does_not_leak_into_next_cell(self, doc):
        config = TableConfig(
            prepare_cell=lambda row_idx, col_idx: CellStyle(font_size=30 if (row_idx, col_idx) == (0, 0) else None),
        )
        tp = LayoutEngine(doc).resolve(text_rows(["a", "b"], ["c", "d"]), config)
        assert tp.row_heights[1] == pytest.approx(line_height() + 10)

    def test_resolve_restores_font(self, doc):
        config = TableConfig(prepare_row=lambda row_idx: RowStyle(font_family="Times-Bold", font_size=18))
        LayoutEngine(doc).resolve(text_rows(["a"]), config)
        assert doc.current_font == ("Helvetica", 12)

    def test_wide_image_scaled_to_column(self, doc, png_factory):
        rows = [[TableCell(image=png_factory(280, 140)), TableCell(text="x")]]
        tp = LayoutEngine(doc).resolve(rows, TableConfig(width=300))
        # Column text width 140: image scaled by 0.5
        assert tp.row_heights[0] == pytest.approx(70 + 10)

    def test_narrow_image_keeps_native_size(self, doc, png_factory):
        rows = [[TableCell(image=png_factory(40, 20))]]
        tp = LayoutEngine(doc).resolve(rows, TableConfig(width=300))
        assert tp.row_heights[0] == pytest.approx(20 + 10)

    def test_image_and_text_stack(self, doc, png_factory):
        rows = [[TableCell(text="caption", image=png_factory(280, 140)), TableCell(text="x")]]
        tp = LayoutEngine(doc).resolve(rows, TableConfig(width=300))
        assert tp.row_heights[0] == pytest.approx(70 + line_height() + 10)

    def test_text_options_line_gap(self, doc):
        rows = [[TableCell(text="a\nb", text_options={"line_gap": 4})]]
        tp = LayoutEngine(doc).resolve(rows)
        assert tp.row_heights[0] == pytest.approx(2 * (line_height() + 4) + 10)


# ===========================================================================
# Small value types
# ===========================================================================


class TestValueTypes:

    def test_row_band_advance(self):
        band = RowYPos(top_y=0, bottom_y=100)
        band.advance(20)
        assert (band.top_y, band.bottom_y) == (100, 120)

    def test_row_band_shift(self):
        band = RowYPos(top_y=72, bottom_y=90)
        band.shift(10)
        assert (band.top_y, band.bottom_y) == (82, 100)

    def test_page_layout_geometry(self):
        layout = PageLayout(page_width=612, page_height=792, margin_left=50, margin_right=30,
                            margin_top=40, margin_bottom=60)
        assert layout.content_width == 532
        assert layout.content_height == 692
        assert layout.max_x == 582
        assert layout.max_y == 732
        assert layout.middle_x == 50 + 266
