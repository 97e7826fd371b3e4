# Overview: Read-only queries over completed sales for receipts, histories and reports.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import joinedload, selectinload

from ..models import Product, Sale, SaleItem, User
from ..time_utils import day_bounds, parse_iso_date, utcnow
from ..validation import MAX_SQL_INT


class ReportError(Exception):
    """Raised when report parameters are unusable."""
    pass


class SaleNotFound(Exception):
    def __init__(self, sale_id):
        super().__init__(f"Sale {sale_id} not found")
        self.sale_id = sale_id


@dataclass(frozen=True)
class ProductAggregate:
    total_quantity: int
    total_amount_cents: int

    def to_dict(self) -> dict:
        return {
            "total_quantity": self.total_quantity,
            "total_amount_cents": self.total_amount_cents,
        }


def resolve_report_day(value: str | None) -> date:
    """YYYY-MM-DD from a query string, defaulting to today (UTC)."""
    try:
        day = parse_iso_date(value)
    except ValueError:
        raise ReportError("date must be YYYY-MM-DD")
    return day or utcnow().date()


def _on_day(day: date):
    start, end = day_bounds(day)
    return Sale.sale_date >= start, Sale.sale_date < end


def _with_items(query):
    return query.options(
        joinedload(Sale.cashier),
        selectinload(Sale.items).joinedload(SaleItem.product),
    )


def get_sales_by_date(
    session,
    day: date,
    cashier_username: str | None = None,
) -> list[tuple[Sale, list[SaleItem]]]:
    """Sales on ``day`` in the order they were rung up, each with its items."""
    query = session.query(Sale).filter(*_on_day(day))
    if cashier_username is not None:
        query = query.join(User, Sale.cashier_id == User.id).filter(User.username == cashier_username)

    sales = _with_items(query).order_by(Sale.id.asc()).all()
    return [(sale, list(sale.items)) for sale in sales]


def get_sales_by_cashier(session, cashier_id: int) -> list[Sale]:
    """A cashier's own history, most recent first."""
    return (
        session.query(Sale)
        .filter(Sale.cashier_id == cashier_id)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .all()
    )


def get_sale_by_id(session, sale_id: int) -> tuple[Sale, list[SaleItem]]:
    if not 1 <= sale_id <= MAX_SQL_INT:
        raise SaleNotFound(sale_id)
    sale = _with_items(session.query(Sale).filter(Sale.id == sale_id)).first()
    if sale is None:
        raise SaleNotFound(sale_id)
    return sale, list(sale.items)


def get_product_aggregates(session, day: date) -> dict[str, ProductAggregate]:
    """Units sold and revenue per product name on ``day``, ordered by name."""
    rows = (
        session.query(
            Product.name.label("product"),
            func.coalesce(func.sum(SaleItem.quantity), 0).label("total_qty"),
            func.coalesce(func.sum(SaleItem.line_total_cents), 0).label("total_amount"),
        )
        .join(SaleItem, SaleItem.product_id == Product.id)
        .join(Sale, SaleItem.sale_id == Sale.id)
        .filter(*_on_day(day))
        .group_by(Product.name)
        .order_by(Product.name.asc())
        .all()
    )
    return {
        row.product: ProductAggregate(int(row.total_qty or 0), int(row.total_amount or 0))
        for row in rows
    }


def daily_totals(session, day: date, cashier_id: int | None = None) -> dict:
    """Sale count and revenue for the dashboard tiles."""
    query = session.query(
        func.count(Sale.id).label("sales_count"),
        func.coalesce(func.sum(Sale.grand_total_cents), 0).label("revenue"),
    ).filter(*_on_day(day))
    if cashier_id is not None:
        query = query.filter(Sale.cashier_id == cashier_id)

    row = query.one()
    return {
        "date": day.isoformat(),
        "cashier_id": cashier_id,
        "sales_count": int(row.sales_count or 0),
        "revenue_cents": int(row.revenue or 0),
    }


def sales_overview(session, limit: int | None = None) -> list[Sale]:
    """Every sale, newest first, with its cashier loaded."""
    query = (
        session.query(Sale)
        .options(joinedload(Sale.cashier))
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()
