"""
Sell-through sheet parsing tests.

Guards against:
1. CSV quoting / line-ending regressions
2. Blank cells being reported as zero
3. Silent acceptance of a sheet with the wrong header
"""
import pytest

from app.exceptions import SourceFormatError
from app.services.sell_through_parser import parse_csv, parse_number, parse_sell_through_report

HEADER = (
    "Product title,Product variant title,Product variant SKU,Product variant ABC grade,"
    "Sell-through rate,Inventory units sold,Starting inventory units,Ending inventory units,"
    "Days in stock (at location),Days out of stock (at location),Percent of inventory sold"
)


def _sheet(*rows):
    return "\n".join([HEADER, *rows]) + "\n"


# ---------------------------------------------------------------------------
# CSV tokenizer
# ---------------------------------------------------------------------------

def test_quoted_comma_and_escaped_quote():
    assert parse_csv('"a,b""c",d\n') == [['a,b"c', "d"]]


def test_quoted_newline_stays_in_field():
    assert parse_csv('"line1\nline2",x') == [["line1\nline2", "x"]]


@pytest.mark.parametrize("text", ["a,b\r\nc,d\r\n", "a,b\nc,d\n", "a,b\rc,d\r", "a,b\nc,d"])
def test_line_endings(text):
    assert parse_csv(text) == [["a", "b"], ["c", "d"]]


def test_blank_lines_skipped():
    assert parse_csv("a,b\n\n\r\nc,d\n") == [["a", "b"], ["c", "d"]]


def test_trailing_empty_field_kept():
    assert parse_csv("a,\n") == [["a", ""]]


def test_empty_text():
    assert parse_csv("") == []


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("value, percent, expected", [
    ("12", False, 12.0),
    ("1,234", False, 1234.0),
    ("45.5%", True, 45.5),
    (" 3 % ", True, 3.0),
    ("", False, None),
    ("  ", False, None),
    (None, False, None),
    ("n/a", False, None),
    ("inf", False, None),
    ("nan", False, None),
])
def test_parse_number(value, percent, expected):
    assert parse_number(value, percent=percent) == expected


# ---------------------------------------------------------------------------
# Report rows
# ---------------------------------------------------------------------------

def test_rows_keyed_by_normalized_sku():
    text = _sheet('Sun Hat,Red,HAT-053-##,A,45.5%,"1,200",50,10,300,65,80%')
    records = parse_sell_through_report(text)

    record = records["HAT-053"]
    assert record.sku_raw == "HAT-053-##"
    assert record.product_title == "Sun Hat"
    assert record.variant_title == "Red"
    assert record.abc_grade == "A"
    assert record.sell_through_rate_reported == 45.5
    assert record.units_sold_reported == 1200
    assert record.starting_units == 50
    assert record.ending_units == 10
    assert record.days_in_stock == 300
    assert record.days_out_of_stock == 65
    assert record.percent_inventory_sold_reported == 80.0


def test_blank_numeric_cells_are_none():
    records = parse_sell_through_report(_sheet("Hat,,HAT-1,,,,,,,,"))
    record = records["HAT-1"]
    assert record.days_in_stock is None
    assert record.days_out_of_stock is None
    assert record.sell_through_rate_reported is None


def test_rows_without_sku_skipped():
    records = parse_sell_through_report(_sheet("Hat,,,A,1%,1,1,1,1,1,1%", "Cap,,CAP-2,B,,,,,5,0,"))
    assert list(records) == ["CAP-2"]


def test_later_rows_overwrite_same_normalized_sku():
    records = parse_sell_through_report(_sheet("Old,,HAT-1-##,,,,,,10,0,", "New,,HAT-1,,,,,,20,0,"))
    assert records["HAT-1"].product_title == "New"
    assert records["HAT-1"].days_in_stock == 20


def test_short_rows_are_tolerated():
    text = "Product variant SKU,Days in stock (at location)\nHAT-1\n"
    records = parse_sell_through_report(text)
    assert records["HAT-1"].days_in_stock is None
    assert records["HAT-1"].product_title == ""


def test_columns_found_by_name_in_any_order():
    text = "Days in stock (at location),Product variant SKU\r\n12,CAP-9 ##\r\n"
    assert parse_sell_through_report(text)["CAP-9"].days_in_stock == 12


def test_missing_required_column_raises():
    with pytest.raises(SourceFormatError):
        parse_sell_through_report("Product title,SKU\nHat,HAT-1\n")


def test_empty_sheet_raises():
    with pytest.raises(SourceFormatError):
        parse_sell_through_report("")
