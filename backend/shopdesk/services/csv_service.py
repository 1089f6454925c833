# Overview: CSV export/import of the product catalog.

"""
Product catalog CSV exchange.

Layout (fixed columns, header row first):

    Name,Price,Cost,Stock,Company,Category
    "Basmati Rice 1kg",120.00,95.50,40,"Daawat","Grocery"

Money is written as two-place decimals and read back into integer cents.
Import skips rows it cannot parse and reports how many it took.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field

from ..extensions import db
from ..models import Product
from ..validation import (
    ValidationError,
    cents_to_decimal,
    enforce_rules_product,
    parse_money_to_cents,
)
from shopdesk.time_utils import utcnow


CSV_HEADER = ["Name", "Price", "Cost", "Stock", "Company", "Category"]
MIN_FIELDS = 4


class CsvImportError(ValueError):
    """Raised when an uploaded file cannot be imported at all."""


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    skipped_lines: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "skipped_lines": self.skipped_lines,
        }


def export_filename() -> str:
    return f"products-{utcnow().date().isoformat()}.csv"


def export_products_csv() -> str:
    """Render the whole catalog, ordered by name."""
    products = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()

    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADER)

    # Text fields quoted, numbers bare
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for p in products:
        writer.writerow([
            p.name,
            cents_to_decimal(p.price_cents),
            cents_to_decimal(p.cost_cents),
            p.stock,
            p.company or "",
            p.category or "",
        ])
    return buffer.getvalue()


def _parse_row(row: list[str]) -> dict | None:
    if len(row) < MIN_FIELDS:
        return None

    name = row[0].strip()
    if not name:
        return None

    try:
        stock = int(row[3].strip())
        patch = {
            "name": name,
            "price_cents": parse_money_to_cents(row[1], "price"),
            "cost_cents": parse_money_to_cents(row[2], "cost"),
            "stock": stock,
            "company": (row[4].strip() or None) if len(row) > 4 else None,
            "category": (row[5].strip() or None) if len(row) > 5 else None,
        }
        enforce_rules_product(patch)
    except (ValueError, ValidationError):
        return None
    return patch


def import_products_csv(text: str) -> ImportResult:
    """
    Insert every parsable data row as a new product.

    All accepted rows are written in one transaction.

    Raises:
        CsvImportError: If the file has no data rows or no row is valid
    """
    # (physical 1-based line number, text) with blank lines dropped
    lines = [(no, line) for no, line in enumerate(text.splitlines(), start=1) if line.strip()]
    if len(lines) < 2:
        raise CsvImportError("Invalid CSV file")

    result = ImportResult()
    patches = []
    for line_no, line in lines[1:]:
        row = next(csv.reader([line]), [])
        patch = _parse_row(row)
        if patch is None:
            result.skipped += 1
            result.skipped_lines.append(line_no)
            continue
        patches.append(patch)

    if not patches:
        raise CsvImportError("No valid products found in CSV")

    for patch in patches:
        db.session.add(Product(**patch))
    db.session.commit()

    result.imported = len(patches)
    return result
