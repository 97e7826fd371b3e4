# Overview: CSV renderings of the daily ledger reports.

from __future__ import annotations

import csv
import io
import re
from datetime import date

from .ledger_service import get_product_aggregates, get_sales_by_date

DAILY_SALES_HEADER = [
    "Transaction Code",
    "Date",
    "Cashier",
    "Customer",
    "Product",
    "Quantity",
    "Unit Price",
    "Line Total",
    "Subtotal",
    "Discount %",
    "Discount Amount",
    "Grand Total",
    "Amount Paid",
    "Change",
]

PRODUCT_SALES_HEADER = ["Product", "Quantity Sold", "Total Amount"]


def format_cents(cents: int) -> str:
    """1234 -> '12.34', -50 -> '-0.50'"""
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    return f"{sign}{whole}.{frac:02d}"


_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def daily_sales_filename(day: date, cashier_username: str | None = None) -> str:
    # Usernames land inside a quoted Content-Disposition value
    suffix = f"_{_UNSAFE_FILENAME_CHARS.sub('_', cashier_username)}" if cashier_username else ""
    return f"daily_sales_report_{day.isoformat()}{suffix}.csv"


def product_sales_filename(day: date) -> str:
    return f"product_sales_{day.isoformat()}.csv"


def daily_sales_csv(session, day: date, cashier_username: str | None = None) -> str:
    """
    One row per line item; each row repeats its sale's totals. A trailing
    row carries the grand total across all sales in the report.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(DAILY_SALES_HEADER)

    overall = 0
    for sale, items in get_sales_by_date(session, day, cashier_username):
        overall += sale.grand_total_cents
        cashier = sale.cashier.username if sale.cashier else "Unknown"
        for item in items:
            writer.writerow([
                sale.transaction_code,
                sale.sale_date.strftime("%Y-%m-%d %H:%M:%S"),
                cashier,
                sale.customer_name,
                item.product.name if item.product else item.product_id,
                item.quantity,
                format_cents(item.unit_price_cents),
                format_cents(item.line_total_cents),
                format_cents(sale.subtotal_cents),
                str(sale.discount_percentage),
                format_cents(sale.discount_amount_cents),
                format_cents(sale.grand_total_cents),
                format_cents(sale.amount_paid_cents),
                format_cents(sale.change_cents),
            ])

    writer.writerow([])
    writer.writerow(["TOTAL SALES", "", "", "", "", "", "", "", "", "", "", format_cents(overall)])
    return buffer.getvalue()


def product_sales_csv(session, day: date) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(PRODUCT_SALES_HEADER)

    total_qty = 0
    total_amount = 0
    for name, agg in get_product_aggregates(session, day).items():
        total_qty += agg.total_quantity
        total_amount += agg.total_amount_cents
        writer.writerow([name, agg.total_quantity, format_cents(agg.total_amount_cents)])

    writer.writerow(["TOTAL", total_qty, format_cents(total_amount)])
    return buffer.getvalue()
