from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..time_utils import to_utc_z


def bps_to_percentage(bps: int) -> Decimal:
    """825 -> Decimal('8.25')"""
    return (Decimal(bps) / 100).quantize(Decimal("0.01"))


class Sale(db.Model):
    """
    Ledger header for one completed sale.

    Written exactly once by sales_service.process_sale and never updated
    afterwards. All amounts are in cents; the discount rate is in basis
    points (1000 = 10%).

    TOTALS:
    - discount_amount_cents = round_half_up(subtotal_cents * discount_bps / 10000)
    - grand_total_cents = subtotal_cents - discount_amount_cents
    - change_cents = amount_paid_cents - grand_total_cents (may be negative)
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("transaction_code", name="uq_sales_transaction_code"),
        db.Index("ix_sales_cashier_sale_date", "cashier_id", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable code printed on receipts (e.g., "SALE-20260101-093015-4F2A9")
    transaction_code = db.Column(db.String(64), nullable=False)

    cashier_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    customer_name = db.Column(db.String(255), nullable=False, default="Walk-in Customer")

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    discount_bps = db.Column(db.Integer, nullable=False, default=0)
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    grand_total_cents = db.Column(db.Integer, nullable=False)
    amount_paid_cents = db.Column(db.Integer, nullable=False)
    change_cents = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(32), nullable=False, default="Cash")
    status = db.Column(db.String(16), nullable=False, default="Completed")

    cashier = db.relationship("User", backref=db.backref("sales", lazy=True))
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
        lazy=True,
    )

    @property
    def discount_percentage(self) -> Decimal:
        return bps_to_percentage(self.discount_bps or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_code": self.transaction_code,
            "cashier_id": self.cashier_id,
            "cashier_username": self.cashier.username if self.cashier else None,
            "customer_name": self.customer_name,
            "sale_date": to_utc_z(self.sale_date),
            "subtotal_cents": self.subtotal_cents,
            "discount_percentage": str(self.discount_percentage),
            "discount_amount_cents": self.discount_amount_cents,
            "grand_total_cents": self.grand_total_cents,
            "amount_paid_cents": self.amount_paid_cents,
            "change_cents": self.change_cents,
            "payment_method": self.payment_method,
            "status": self.status,
        }


class SaleItem(db.Model):
    """One product's contribution to a sale, priced at the moment of sale."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "product_id", name="uq_sale_items_sale_product"),
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }
