"""CSV renderings of the daily reports."""

import csv
import io
from datetime import date, datetime

import pytest

from supermarket_pos.services import export_service

DAY = date(2026, 3, 14)


def read_rows(content: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(content)))


@pytest.mark.parametrize(
    "cents,expected",
    [(0, "0.00"), (5, "0.05"), (1234, "12.34"), (100000, "1000.00"), (-50, "-0.50"), (-12345, "-123.45")],
)
def test_format_cents(cents, expected):
    assert export_service.format_cents(cents) == expected


def test_filenames():
    assert export_service.daily_sales_filename(DAY) == "daily_sales_report_2026-03-14.csv"
    assert export_service.daily_sales_filename(DAY, "night cashier") == "daily_sales_report_2026-03-14_night_cashier.csv"
    assert export_service.product_sales_filename(DAY) == "product_sales_2026-03-14.csv"
    assert export_service.daily_sales_filename(DAY, 'say "hi"') == "daily_sales_report_2026-03-14_say_hi_.csv"
    assert export_service.daily_sales_filename(DAY, "../etc;x") == "daily_sales_report_2026-03-14_.._etc_x.csv"


class TestDailySalesCsv:

    def test_one_row_per_item_with_sale_totals(self, db_session, cashier, product_a, product_b, clock, sell):
        clock(datetime(2026, 3, 14, 9, 0))
        receipt = sell(
            cashier,
            [(product_a.id, 2), (product_b.id, 1)],
            discount_percentage=10,
            amount_paid_cents=40000,
        )

        rows = read_rows(export_service.daily_sales_csv(db_session, DAY))

        assert rows[0] == export_service.DAILY_SALES_HEADER
        assert rows[1] == [
            receipt.transaction_code, "2026-03-14 09:00:00", "cashier", "Walk-in Customer",
            "Product A", "2", "100.00", "200.00",
            "400.00", "10.00", "40.00", "360.00", "400.00", "40.00",
        ]
        assert rows[2][4] == "Product B"
        assert rows[2][8:] == rows[1][8:]
        assert rows[3] == []
        assert rows[4][0] == "TOTAL SALES"
        assert rows[4][-1] == "360.00"

    def test_total_spans_all_sales(self, db_session, cashier, second_cashier, product_a, clock, sell):
        clock(datetime(2026, 3, 14, 10, 0))
        sell(cashier, [(product_a.id, 1)])
        sell(second_cashier, [(product_a.id, 2)])

        rows = read_rows(export_service.daily_sales_csv(db_session, DAY))
        assert rows[-1][-1] == "300.00"

        only_night = read_rows(export_service.daily_sales_csv(db_session, DAY, "night_cashier"))
        assert len(only_night) == 4
        assert only_night[1][2] == "night_cashier"
        assert only_night[-1][-1] == "200.00"

    def test_empty_day(self, db_session):
        rows = read_rows(export_service.daily_sales_csv(db_session, DAY))
        assert rows[0] == export_service.DAILY_SALES_HEADER
        assert rows[1:] == [[], ["TOTAL SALES", "", "", "", "", "", "", "", "", "", "", "0.00"]]


class TestProductSalesCsv:

    def test_rows_by_name_then_total(self, db_session, cashier, product_a, product_b, clock, sell):
        clock(datetime(2026, 3, 14, 11, 0))
        sell(cashier, [(product_b.id, 3), (product_a.id, 1)])
        sell(cashier, [(product_a.id, 2)])

        rows = read_rows(export_service.product_sales_csv(db_session, DAY))

        assert rows == [
            ["Product", "Quantity Sold", "Total Amount"],
            ["Product A", "3", "300.00"],
            ["Product B", "3", "600.00"],
            ["TOTAL", "6", "900.00"],
        ]
