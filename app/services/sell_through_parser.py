"""
Sell-through sheet parsing

The sheet is exported as CSV from the store's analytics ("Sell-through rate"
report, 24 month window). Rows are keyed by normalized SKU so they can be
joined with Shopify metrics.
"""
import math
from typing import Dict, List, Optional

from app.exceptions import SourceFormatError
from app.models.inventory_report import ExternalSkuRecord
from app.services.sku_normalizer import normalize_sku
from app.utils.logger import log

# Header name -> field name
COLUMN_MAP = {
    "Product title": "product_title",
    "Product variant title": "variant_title",
    "Product variant SKU": "sku",
    "Product variant ABC grade": "abc_grade",
    "Sell-through rate": "sell_through_rate_reported",
    "Inventory units sold": "units_sold_reported",
    "Starting inventory units": "starting_units",
    "Ending inventory units": "ending_units",
    "Days in stock (at location)": "days_in_stock",
    "Days out of stock (at location)": "days_out_of_stock",
    "Percent of inventory sold": "percent_inventory_sold_reported",
}

REQUIRED_COLUMNS = ("Product variant SKU", "Days in stock (at location)")

TEXT_FIELDS = ("product_title", "variant_title", "abc_grade")
INT_FIELDS = ("days_in_stock", "days_out_of_stock", "units_sold_reported", "starting_units", "ending_units")
PERCENT_FIELDS = ("sell_through_rate_reported", "percent_inventory_sold_reported")


def parse_csv(text: str) -> List[List[str]]:
    """
    Minimal CSV parser (handles quotes, commas and line breaks)

    Supports quoted fields with embedded commas/newlines, "" as an escaped
    quote, and \\r\\n, \\n or bare \\r line endings. Blank lines are skipped.
    """
    rows: List[List[str]] = []
    row: List[str] = []
    field: List[str] = []
    in_quotes = False
    i = 0
    n = len(text)

    while i < n:
        c = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if c == '"' and in_quotes and nxt == '"':
            # Escaped quote ""
            field.append('"')
            i += 1
        elif c == '"':
            in_quotes = not in_quotes
        elif c == "," and not in_quotes:
            row.append("".join(field))
            field = []
        elif c in "\r\n" and not in_quotes:
            if field or row:
                row.append("".join(field))
                rows.append(row)
                row = []
                field = []
            # Swallow CRLF pairs
            if c == "\r" and nxt == "\n":
                i += 1
        else:
            field.append(c)
        i += 1

    if field or row:
        row.append("".join(field))
        rows.append(row)

    return rows


def parse_number(value: Optional[str], percent: bool = False) -> Optional[float]:
    """
    Parse a numeric cell

    Returns None (not zero) for blank or unparseable cells so "unreported"
    stays distinguishable from "reported as zero".
    """
    if value is None:
        return None

    cleaned = str(value).strip().replace(",", "")
    if percent and cleaned.endswith("%"):
        cleaned = cleaned[:-1].strip()
    if not cleaned:
        return None

    try:
        number = float(cleaned)
    except ValueError:
        return None

    return number if math.isfinite(number) else None


def parse_int(value: Optional[str]) -> Optional[int]:
    number = parse_number(value)
    return int(round(number)) if number is not None else None


def _cell(row: List[str], idx: int) -> Optional[str]:
    if idx < 0 or idx >= len(row):
        return None
    return row[idx]


def parse_sell_through_report(text: str) -> Dict[str, ExternalSkuRecord]:
    """
    Parse the sell-through export into records keyed by normalized SKU

    Later rows overwrite earlier rows that normalize to the same SKU.

    Raises:
        SourceFormatError: empty sheet or a required column is missing
    """
    rows = parse_csv(text or "")
    if not rows:
        raise SourceFormatError("Sell-through sheet appears to be empty")

    header = [h.strip() for h in rows[0]]
    missing = [col for col in REQUIRED_COLUMNS if col not in header]
    if missing:
        log.error(f"Sell-through header row: {header}")
        raise SourceFormatError(
            f"Expected columns {', '.join(repr(c) for c in REQUIRED_COLUMNS)} not found in sheet header"
        )

    idx = {field: (header.index(col) if col in header else -1) for col, field in COLUMN_MAP.items()}

    by_sku: Dict[str, ExternalSkuRecord] = {}
    for row in rows[1:]:
        raw_sku = (_cell(row, idx["sku"]) or "").strip()
        sku = normalize_sku(raw_sku)
        if not sku:
            continue

        values = {"sku": sku, "sku_raw": raw_sku}
        for field in TEXT_FIELDS:
            values[field] = (_cell(row, idx[field]) or "").strip()
        for field in INT_FIELDS:
            values[field] = parse_int(_cell(row, idx[field]))
        for field in PERCENT_FIELDS:
            values[field] = parse_number(_cell(row, idx[field]), percent=True)

        by_sku[sku] = ExternalSkuRecord(**values)

    log.info(f"Parsed {len(by_sku)} SKUs from sell-through sheet ({len(rows) - 1} rows)")
    return by_sku
