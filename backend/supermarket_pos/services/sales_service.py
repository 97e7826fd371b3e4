"""
Sales Service - one-shot sale processing

WHY: A sale is only worth recording if its header, its line items and the
stock it consumed all land together. process_sale validates the whole cart,
writes everything, and commits once; any failure rolls the session back so
nothing is visible to other cashiers.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, NamedTuple

from ..models import Sale, SaleItem
from ..models.sales import bps_to_percentage
from ..time_utils import to_utc_z, utcnow
from ..validation import MAX_SQL_INT
from .catalog_service import decrement_stock, lookup_product
from .concurrency import begin_write
from .errors import (
    EmptyCart,
    InsufficientStock,
    InvalidDiscount,
    InvalidPayment,
    InvalidQuantity,
    PersistenceFailure,
    SaleError,
)

DEFAULT_CUSTOMER_NAME = "Walk-in Customer"
DEFAULT_PAYMENT_METHOD = "Cash"
COMPLETED = "Completed"

MAX_DISCOUNT_PERCENTAGE = Decimal(100)
TRANSACTION_CODE_ATTEMPTS = 5


class CartLine(NamedTuple):
    product_id: int
    quantity: int


@dataclass(frozen=True)
class ReceiptItem:
    product_id: int
    product_name: str
    quantity: int
    unit_price_cents: int
    line_total_cents: int

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }


@dataclass(frozen=True)
class Receipt:
    """What the cashier hands back to the customer once a sale commits."""
    sale_id: int
    transaction_code: str
    cashier_id: int
    customer_name: str
    sale_date: datetime
    subtotal_cents: int
    discount_percentage: Decimal
    discount_amount_cents: int
    grand_total_cents: int
    amount_paid_cents: int
    change_cents: int
    payment_method: str
    items: tuple[ReceiptItem, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "sale_id": self.sale_id,
            "transaction_code": self.transaction_code,
            "cashier_id": self.cashier_id,
            "customer_name": self.customer_name,
            "sale_date": to_utc_z(self.sale_date),
            "subtotal_cents": self.subtotal_cents,
            "discount_percentage": str(self.discount_percentage),
            "discount_amount_cents": self.discount_amount_cents,
            "grand_total_cents": self.grand_total_cents,
            "amount_paid_cents": self.amount_paid_cents,
            "change_cents": self.change_cents,
            "payment_method": self.payment_method,
            "items": [item.to_dict() for item in self.items],
        }


def percentage_to_bps(discount_percentage) -> int:
    """
    Validate a discount percentage and convert it to basis points.

    Accepts int, Decimal or numeric strings in [0, 100] with at most two
    decimal places ("12.5" -> 1250).
    """
    if isinstance(discount_percentage, bool):
        raise InvalidDiscount(discount_percentage, "must be a number")
    try:
        pct = Decimal(str(discount_percentage))
    except (InvalidOperation, ValueError):
        raise InvalidDiscount(discount_percentage, "must be a number")
    if not pct.is_finite():
        raise InvalidDiscount(discount_percentage, "must be a finite number")
    if pct < 0 or pct > MAX_DISCOUNT_PERCENTAGE:
        raise InvalidDiscount(discount_percentage, "must be between 0 and 100")
    bps = pct * 100
    if bps != bps.to_integral_value():
        raise InvalidDiscount(discount_percentage, "at most two decimal places allowed")
    return int(bps)


def discount_cents(subtotal_cents: int, discount_bps: int) -> int:
    """subtotal * rate, rounded half-up to the cent."""
    raw = Decimal(subtotal_cents) * Decimal(discount_bps) / Decimal(10_000)
    return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def generate_transaction_code(now: datetime | None = None) -> str:
    """SALE-YYYYMMDD-HHMMSS-XXXXX: UTC timestamp plus five random hex digits."""
    now = now or utcnow()
    return f"SALE-{now:%Y%m%d-%H%M%S}-{secrets.token_hex(3).upper()[:5]}"


def _allocate_transaction_code(session, now: datetime) -> str:
    for _ in range(TRANSACTION_CODE_ATTEMPTS):
        code = generate_transaction_code(now)
        taken = session.query(Sale.id).filter(Sale.transaction_code == code).first()
        if taken is None:
            return code
    raise PersistenceFailure("Could not allocate a unique transaction code.")


def _validate_cart(session, cart_lines: list[CartLine]) -> list[ReceiptItem]:
    """
    Step 1-2: look up every product (row-locked), check quantities against
    stock, and snapshot prices. Repeated products are merged into one item.
    """
    merged: dict[int, ReceiptItem] = {}

    for product_id, quantity in cart_lines:
        product = lookup_product(session, product_id, for_update=True)

        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise InvalidQuantity(product.id, product.name, quantity)

        already = merged[product.id].quantity if product.id in merged else 0
        requested = already + quantity
        if requested > product.stock_quantity:
            raise InsufficientStock(product.id, product.name, requested, product.stock_quantity)

        merged[product.id] = ReceiptItem(
            product_id=product.id,
            product_name=product.name,
            quantity=requested,
            unit_price_cents=product.price_cents,
            line_total_cents=product.price_cents * requested,
        )

    return list(merged.values())


def _record_sale(
    session,
    *,
    cashier_id: int,
    customer_name: str,
    items: list[ReceiptItem],
    discount_bps: int,
    amount_paid_cents: int,
    payment_method: str,
) -> Receipt:
    # Step 3: totals
    subtotal = sum(item.line_total_cents for item in items)
    discount_amount = discount_cents(subtotal, discount_bps)
    grand_total = subtotal - discount_amount
    change = amount_paid_cents - grand_total

    # Step 4: public identifier
    now = utcnow()
    code = _allocate_transaction_code(session, now)

    # Step 5: header, then items, then stock
    sale = Sale(
        transaction_code=code,
        cashier_id=cashier_id,
        customer_name=customer_name,
        sale_date=now,
        subtotal_cents=subtotal,
        discount_bps=discount_bps,
        discount_amount_cents=discount_amount,
        grand_total_cents=grand_total,
        amount_paid_cents=amount_paid_cents,
        change_cents=change,
        payment_method=payment_method,
        status=COMPLETED,
    )
    session.add(sale)
    session.flush()

    for item in items:
        session.add(SaleItem(
            sale_id=sale.id,
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price_cents=item.unit_price_cents,
            line_total_cents=item.line_total_cents,
        ))
    session.flush()

    for item in items:
        decrement_stock(session, item.product_id, item.quantity)

    return Receipt(
        sale_id=sale.id,
        transaction_code=code,
        cashier_id=cashier_id,
        customer_name=customer_name,
        sale_date=now,
        subtotal_cents=subtotal,
        discount_percentage=bps_to_percentage(discount_bps),
        discount_amount_cents=discount_amount,
        grand_total_cents=grand_total,
        amount_paid_cents=amount_paid_cents,
        change_cents=change,
        payment_method=payment_method,
        items=tuple(items),
    )


def process_sale(
    session,
    *,
    cashier_id: int,
    cart_lines: Iterable,
    discount_percentage=0,
    amount_paid_cents: int = 0,
    customer_name: str | None = None,
    payment_method: str = DEFAULT_PAYMENT_METHOD,
) -> Receipt:
    """
    Validate a cart, persist the sale and its items, and decrement stock as
    one atomic unit.

    Args:
        session: SQLAlchemy session; committed on success, rolled back on
            any failure. Must not hold uncommitted writes.
        cashier_id: users.id of the cashier ringing up the sale.
        cart_lines: ordered (product_id, quantity) pairs.
        discount_percentage: 0-100, at most two decimal places.
        amount_paid_cents: tendered amount; may be less than the total, in
            which case change is negative.
        customer_name: defaults to "Walk-in Customer".

    Returns:
        Receipt for the committed sale.

    Raises:
        EmptyCart, InvalidPayment, InvalidDiscount: before touching the catalog.
        ProductNotFound, InvalidQuantity, InsufficientStock: while validating lines.
        PersistenceFailure: any storage or unexpected error; the cause is
            chained.
    """
    lines = [CartLine(*line) for line in cart_lines]
    if not lines:
        raise EmptyCart()

    if not isinstance(amount_paid_cents, int) or isinstance(amount_paid_cents, bool) or amount_paid_cents < 0:
        raise InvalidPayment(amount_paid_cents)
    if amount_paid_cents > MAX_SQL_INT:
        raise InvalidPayment(amount_paid_cents, "is too large")

    discount_bps = percentage_to_bps(discount_percentage)
    customer_name = (customer_name or "").strip() or DEFAULT_CUSTOMER_NAME

    try:
        begin_write(session)
        items = _validate_cart(session, lines)
        receipt = _record_sale(
            session,
            cashier_id=cashier_id,
            customer_name=customer_name,
            items=items,
            discount_bps=discount_bps,
            amount_paid_cents=amount_paid_cents,
            payment_method=payment_method or DEFAULT_PAYMENT_METHOD,
        )
        session.commit()
    except SaleError:
        session.rollback()
        raise
    except Exception as exc:
        # Storage errors and anything unexpected: the write lock must not outlive the call
        session.rollback()
        raise PersistenceFailure() from exc

    return receipt
