"""
Sale workflow failures.

Every way process_sale can refuse a cart is one of the classes below. Each
carries a human-readable message, a machine-readable ``error_code`` and a
``details`` dict with the fields a caller needs to explain the problem
(product, requested vs. available, ...). None of them leave state behind:
the workflow rolls back before raising.
"""

from __future__ import annotations


class SaleError(Exception):
    """Raised for sale operation errors."""
    error_code = "SALE_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class EmptyCart(SaleError):
    error_code = "EMPTY_CART"

    def __init__(self):
        super().__init__("No items selected for the sale.")


class ProductNotFound(SaleError):
    error_code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id):
        super().__init__(f"Product ID {product_id} not found.", details={"product_id": product_id})
        self.product_id = product_id


class InvalidQuantity(SaleError):
    error_code = "INVALID_QUANTITY"

    def __init__(self, product_id, product_name: str | None, quantity):
        label = product_name or f"product {product_id}"
        super().__init__(
            f"Quantity for {label} must be at least 1.",
            details={"product_id": product_id, "product_name": product_name, "quantity": quantity},
        )
        self.product_id = product_id
        self.quantity = quantity


class InsufficientStock(SaleError):
    error_code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}, Ordered: {requested}",
            details={
                "product_id": product_id,
                "product_name": product_name,
                "requested_quantity": requested,
                "available_quantity": available,
                "shortfall": requested - available,
            },
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available

    @property
    def shortfall(self) -> int:
        return self.requested - self.available


class InvalidPayment(SaleError):
    error_code = "INVALID_PAYMENT"

    def __init__(self, amount_paid_cents, reason: str = "cannot be negative"):
        super().__init__(
            f"Amount paid {reason}.",
            details={"amount_paid_cents": amount_paid_cents},
        )


class InvalidDiscount(SaleError):
    error_code = "INVALID_DISCOUNT"

    def __init__(self, discount_percentage, reason: str):
        super().__init__(
            f"Invalid discount percentage: {reason}",
            details={"discount_percentage": str(discount_percentage)},
        )


class PersistenceFailure(SaleError):
    """
    Storage-level failure while saving a sale.

    The underlying exception is chained as ``__cause__``. The message never
    includes driver or SQL details.
    """
    error_code = "PERSISTENCE_FAILURE"

    def __init__(self, message: str = "The sale could not be saved. Please try again."):
        super().__init__(message)
