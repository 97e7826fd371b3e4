from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Largest value an INTEGER column (and the sqlite3 driver) can bind
MAX_SQL_INT = 2**63 - 1


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate product name)."""


def coerce_int(field: str, value: Any) -> int:
    """Strict integer coercion: rejects floats, bools and scientific notation."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def coerce_id(field: str, value: Any) -> int:
    """Positive integer that fits an INTEGER column (row ids, limits)."""
    result = coerce_int(field, value)
    if result < 1 or result > MAX_SQL_INT:
        raise ValidationError(f"{field} out of range")
    return result


def coerce_decimal(field: str, value: Any) -> Decimal:
    """Numbers and numeric strings become Decimal; floats go through str() to avoid binary noise."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def parse_sale_payload(payload: dict | None) -> dict:
    """
    Validates + normalizes a sale submission.

    Returns the keyword arguments for sales_service.process_sale (minus the
    session). Shape problems (wrong types, missing cashier) raise
    ValidationError; business rules (quantity >= 1, payment >= 0, discount
    range) are left to the workflow so they surface as SaleError kinds.

    Cart entries without a product_id are dropped, as a half-filled form row
    would be; an empty result becomes EmptyCart downstream.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if payload.get("cashier_id") in (None, ""):
        raise ValidationError("cashier_id required")
    cashier_id = coerce_id("cashier_id", payload["cashier_id"])

    customer_name = payload.get("customer_name")
    if customer_name is not None:
        if not isinstance(customer_name, str):
            raise ValidationError("customer_name must be a string")
        customer_name = customer_name.strip()[:255] or None

    items = payload.get("items") or []
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    cart_lines: list[tuple[int, int]] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = item.get("product_id")
        if product_id in (None, ""):
            continue
        cart_lines.append((
            coerce_int(f"items[{index}].product_id", product_id),
            coerce_int(f"items[{index}].quantity", item.get("quantity", 0)),
        ))

    discount = payload.get("discount_percentage")
    discount_percentage = Decimal(0) if discount in (None, "") else coerce_decimal("discount_percentage", discount)

    paid = payload.get("amount_paid_cents")
    amount_paid_cents = 0 if paid in (None, "") else coerce_int("amount_paid_cents", paid)

    parsed = {
        "cashier_id": cashier_id,
        "customer_name": customer_name,
        "cart_lines": cart_lines,
        "discount_percentage": discount_percentage,
        "amount_paid_cents": amount_paid_cents,
    }

    payment_method = payload.get("payment_method")
    if payment_method is not None:
        if not isinstance(payment_method, str) or not payment_method.strip():
            raise ValidationError("payment_method must be a non-empty string")
        parsed["payment_method"] = payment_method.strip()[:32]

    return parsed


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "name" in patch and not patch["name"]:
        raise ValidationError("name cannot be blank")

    if "price_cents" in patch:
        price = coerce_int("price_cents", patch["price_cents"])
        # Range checks
        if price < 0:
            raise ValidationError("price_cents must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"price_cents cannot exceed {MAX_PRICE_CENTS} ({MAX_PRICE_CENTS / 100:,.2f})")
        patch["price_cents"] = price

    if "stock_quantity" in patch:
        stock = coerce_int("stock_quantity", patch["stock_quantity"])
        if stock < 0:
            raise ValidationError("stock_quantity must be >= 0")
        patch["stock_quantity"] = stock
