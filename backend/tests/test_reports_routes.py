"""
HTTP tests for the report endpoints.

Verifies:
- JSON reports for a given day, with and without cashier filters
- CSV downloads carry attachment headers and filenames
- Bad parameters are rejected with 400
"""

from datetime import datetime

import pytest


@pytest.fixture
def rung_up_day(db_session, cashier, second_cashier, product_a, product_b, clock, sell):
    """Three sales on 2026-03-14 and one the day before."""
    clock(datetime(2026, 3, 13, 18, 0))
    sell(cashier, [(product_b.id, 1)])
    clock(datetime(2026, 3, 14, 9, 0))
    first = sell(cashier, [(product_a.id, 1), (product_b.id, 2)], amount_paid_cents=50000)
    second = sell(cashier, [(product_a.id, 2)], discount_percentage=50, amount_paid_cents=10000)
    third = sell(second_cashier, [(product_b.id, 1)], amount_paid_cents=20000)
    return first, second, third


class TestJsonReports:

    def test_daily_sales(self, client, rung_up_day):
        first, second, third = rung_up_day

        resp = client.get("/api/reports/daily-sales?date=2026-03-14")

        assert resp.status_code == 200
        assert resp.json["date"] == "2026-03-14"
        assert [s["transaction_code"] for s in resp.json["sales"]] == [
            first.transaction_code, second.transaction_code, third.transaction_code,
        ]
        assert len(resp.json["sales"][0]["items"]) == 2
        assert resp.json["grand_total_cents"] == 50000 + 10000 + 20000

    def test_daily_sales_for_cashier(self, client, rung_up_day):
        resp = client.get("/api/reports/daily-sales?date=2026-03-14&cashier=night_cashier")
        assert resp.status_code == 200
        assert resp.json["cashier"] == "night_cashier"
        assert len(resp.json["sales"]) == 1
        assert resp.json["sales"][0]["cashier_username"] == "night_cashier"

    def test_blank_cashier_rejected(self, client, db_session):
        resp = client.get("/api/reports/daily-sales?date=2026-03-14&cashier=%20")
        assert resp.status_code == 400

    def test_product_sales(self, client, rung_up_day):
        resp = client.get("/api/reports/product-sales?date=2026-03-14")

        assert resp.status_code == 200
        assert resp.json["rows"] == [
            {"product": "Product A", "total_quantity": 3, "total_amount_cents": 30000},
            {"product": "Product B", "total_quantity": 3, "total_amount_cents": 60000},
        ]
        assert resp.json["total_amount_cents"] == 90000

    def test_summary(self, client, rung_up_day, cashier):
        resp = client.get("/api/reports/summary?date=2026-03-14")
        assert resp.json["sales_count"] == 3
        assert resp.json["revenue_cents"] == 80000

        resp = client.get(f"/api/reports/summary?date=2026-03-14&cashier_id={cashier.id}")
        assert resp.json["sales_count"] == 2
        assert resp.json["revenue_cents"] == 60000

    def test_overview(self, client, rung_up_day):
        resp = client.get("/api/reports/overview")
        assert resp.status_code == 200
        assert resp.json["count"] == 4

        resp = client.get("/api/reports/overview?limit=2")
        assert resp.json["count"] == 2

    def test_overview_bad_limit(self, client, db_session):
        assert client.get("/api/reports/overview?limit=0").status_code == 400
        assert client.get("/api/reports/overview?limit=all").status_code == 400
        assert client.get(f"/api/reports/overview?limit={10**20}").status_code == 400

    @pytest.mark.parametrize("cashier_id", ["abc", "", "0", "-4", "1.5", str(10**20)])
    def test_summary_rejects_bad_cashier_id(self, client, rung_up_day, cashier_id):
        resp = client.get(f"/api/reports/summary?date=2026-03-14&cashier_id={cashier_id}")

        assert resp.status_code == 400
        assert "cashier_id" in resp.json["error"]
        assert "sales_count" not in resp.json

    @pytest.mark.parametrize(
        "path",
        [
            "/api/reports/daily-sales?date=14-03-2026",
            "/api/reports/product-sales?date=2026-13-01",
            "/api/reports/summary?date=today",
            "/api/reports/daily-sales.csv?date=nope",
            "/api/reports/product-sales.csv?date=2026/03/14",
        ],
    )
    def test_bad_date(self, client, db_session, path):
        resp = client.get(path)
        assert resp.status_code == 400
        assert "YYYY-MM-DD" in resp.json["error"]

    def test_empty_day(self, client, db_session):
        resp = client.get("/api/reports/daily-sales?date=2020-01-01")
        assert resp.status_code == 200
        assert resp.json["sales"] == []
        assert resp.json["grand_total_cents"] == 0


class TestCsvDownloads:

    def test_daily_sales_csv(self, client, rung_up_day):
        resp = client.get("/api/reports/daily-sales.csv?date=2026-03-14")

        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert resp.headers["Content-Disposition"] == 'attachment; filename="daily_sales_report_2026-03-14.csv"'
        body = resp.get_data(as_text=True)
        assert body.startswith("Transaction Code,Date,Cashier")
        assert "TOTAL SALES" in body

    def test_daily_sales_csv_for_cashier(self, client, rung_up_day):
        resp = client.get("/api/reports/daily-sales.csv?date=2026-03-14&cashier=cashier")
        assert 'filename="daily_sales_report_2026-03-14_cashier.csv"' in resp.headers["Content-Disposition"]
        assert "night_cashier" not in resp.get_data(as_text=True)

    def test_quoted_cashier_keeps_header_well_formed(self, client, db_session):
        resp = client.get('/api/reports/daily-sales.csv?date=2026-03-14&cashier=o"brien')

        assert resp.status_code == 200
        assert resp.headers["Content-Disposition"] == 'attachment; filename="daily_sales_report_2026-03-14_o_brien.csv"'

    def test_product_sales_csv(self, client, rung_up_day):
        resp = client.get("/api/reports/product-sales.csv?date=2026-03-14")

        assert resp.status_code == 200
        assert 'filename="product_sales_2026-03-14.csv"' in resp.headers["Content-Disposition"]
        lines = resp.get_data(as_text=True).splitlines()
        assert lines[0] == "Product,Quantity Sold,Total Amount"
        assert lines[-1] == "TOTAL,6,900.00"
