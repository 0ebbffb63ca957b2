"""Command-line interface rendering a sample document with a paginated table."""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

import numpy as np
from faker import Faker

from .config import TableConfig, load_document_config, load_table_config
from .document import TableDocument
from .layout_engine import TableCell, TableRow
from .styles import TABLE_STYLES


def generate_inventory_rows(rng: np.random.Generator, fake: Faker, num_rows: int = 60) -> List[TableRow]:
    """Generate a header row plus num_rows rows of fake inventory data."""
    rows: List[TableRow] = [[
        TableCell(text="Item", text_options={"align": "left"}),
        TableCell(text="Description"),
        TableCell(text="Qty"),
        TableCell(text="Unit price", text_options={"align": "right"}),
    ]]

    for _ in range(num_rows):
        # Longer descriptions produce taller rows
        nb_words = int(rng.integers(3, 25))
        rows.append([
            TableCell(text=fake.catch_phrase(), text_options={"align": "left"}),
            TableCell(text=fake.sentence(nb_words=nb_words)),
            TableCell(text=str(int(rng.integers(1, 500)))),
            TableCell(text=f"{float(rng.uniform(0.5, 900)):,.2f}", text_options={"align": "right"}),
        ])

    return rows


def render_demo(
    out_path: Path,
    table_config: TableConfig,
    document_config_path: Optional[Path] = None,
    num_rows: int = 60,
    seed: int = 42,
) -> dict:
    """
    Render the demo document and save it.

    Returns summary statistics.
    """
    rng = np.random.default_rng(seed)
    fake = Faker()
    fake.seed_instance(int(rng.integers(0, 2**31)))

    doc = TableDocument(load_document_config(document_config_path))
    doc.add_page()

    doc.text_with_bounding_rectangle(
        f"Inventory report for {fake.company()}",
        padding=(5, 3, 2, 3),
        fill_color="#dbe7f3",
        corner_radius=2,
        fill_opacity=0.5,
        stroke_color="#2c5282",
        align="center",
    )
    doc.move_down()
    doc.hr(stroke_color="#555555")
    doc.move_down()

    rows = generate_inventory_rows(rng, fake, num_rows)
    expected_height = doc.get_table_height(rows, table_config)
    rendered = doc.table(rows, table_config)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    doc.save(out_path)

    return {
        "rows": len(rows),
        "pages": doc.page_count,
        "page_breaks": rendered.page_breaks,
        "header_repeats": sum(1 for r in rendered.rows if r.is_header_repeat),
        "table_height": expected_height,
    }


def main():
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Render a sample paginated table to PDF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to YAML table configuration file",
    )
    parser.add_argument(
        "--document-config",
        type=Path,
        help="Path to YAML document configuration file",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=Path("out/demo.pdf"),
        help="Output PDF path",
    )
    parser.add_argument(
        "--rows",
        type=int,
        default=60,
        help="Number of data rows to generate",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed",
    )
    parser.add_argument(
        "--style",
        choices=sorted(TABLE_STYLES),
        help="Table style preset (overrides config)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log pagination decisions",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    table_config = load_table_config(args.config)
    if args.style:
        table_config.style = args.style
    elif table_config.style is None:
        table_config.style = "header_highlight"

    stats = render_demo(
        out_path=args.out,
        table_config=table_config,
        document_config_path=args.document_config,
        num_rows=args.rows,
        seed=args.seed,
    )

    print(f"Rendered {args.out}")
    print(f"  Rows: {stats['rows']}")
    print(f"  Pages: {stats['pages']}")
    print(f"  Page breaks: {stats['page_breaks']}")
    print(f"  Header repeats: {stats['header_repeats']}")
    print(f"  Table height (single page): {stats['table_height']:.1f}")


if __name__ == "__main__":
    main()
