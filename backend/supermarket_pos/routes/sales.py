# Overview: Flask API routes for sales; parses input and returns JSON responses.

# backend/supermarket_pos/routes/sales.py
"""Sale entry, receipts and cashier history"""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..models import User
from ..services import ledger_service, sales_service
from ..services.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidDiscount,
    InvalidPayment,
    InvalidQuantity,
    PersistenceFailure,
    ProductNotFound,
    SaleError,
)
from ..services.ledger_service import SaleNotFound
from ..validation import ValidationError, coerce_id, parse_sale_payload


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

SALE_ERROR_STATUS = {
    EmptyCart: 400,
    InvalidQuantity: 400,
    InvalidPayment: 400,
    InvalidDiscount: 400,
    ProductNotFound: 404,
    InsufficientStock: 409,
}


def _sale_error_response(exc: SaleError):
    body = {"error": str(exc), "error_code": exc.error_code, "details": exc.details}
    return jsonify(body), SALE_ERROR_STATUS.get(type(exc), 400)


@sales_bp.post("")
def process_sale_route():
    """
    Ring up a cart in one step.

    Body: cashier_id, customer_name?, items[{product_id, quantity}],
    discount_percentage?, amount_paid_cents?, payment_method?
    """
    try:
        sale_input = parse_sale_payload(request.get_json(silent=True))

        cashier = db.session.get(User, sale_input["cashier_id"])
        if cashier is None or not cashier.is_active:
            return jsonify({"error": "Unknown or inactive cashier", "error_code": "UNKNOWN_CASHIER"}), 400

        receipt = sales_service.process_sale(db.session, **sale_input)
        current_app.logger.info(
            "Sale %s recorded by cashier %s: total=%s change=%s",
            receipt.transaction_code,
            cashier.username,
            receipt.grand_total_cents,
            receipt.change_cents,
        )
        return jsonify({"receipt": receipt.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e), "error_code": "VALIDATION_ERROR"}), 400
    except PersistenceFailure as e:
        current_app.logger.error("Failed to persist sale", exc_info=e.__cause__ or e)
        return jsonify({"error": str(e), "error_code": e.error_code}), 500
    except SaleError as e:
        current_app.logger.info("Sale rejected (%s): %s", e.error_code, e)
        return _sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    """Receipt view: sale header with its items."""
    try:
        sale, items = ledger_service.get_sale_by_id(db.session, sale_id)
    except SaleNotFound as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({
        "sale": sale.to_dict(),
        "items": [item.to_dict() for item in items],
    }), 200


@sales_bp.get("")
def list_cashier_sales_route():
    """A cashier's sales history, most recent first."""
    raw = request.args.get("cashier_id")
    if not raw:
        return jsonify({"error": "cashier_id is required"}), 400
    try:
        cashier_id = coerce_id("cashier_id", raw)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    sales = ledger_service.get_sales_by_cashier(db.session, cashier_id)
    return jsonify({"items": [sale.to_dict() for sale in sales], "count": len(sales)}), 200
