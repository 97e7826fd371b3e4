# Overview: Read-only catalog endpoints feeding the sale-entry screen.

from flask import Blueprint, current_app, jsonify, request

from ..extensions import db
from ..services import catalog_service
from ..services.errors import ProductNotFound
from ..validation import MAX_SQL_INT, ValidationError, coerce_int


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products_route():
    products = catalog_service.list_products(db.session)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/low-stock")
def low_stock_route():
    raw = request.args.get("threshold")
    if raw is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    else:
        try:
            threshold = coerce_int("threshold", raw)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        if not 0 <= threshold <= MAX_SQL_INT:
            return jsonify({"error": "threshold out of range"}), 400
    products = catalog_service.low_stock_products(db.session, threshold)
    return jsonify({
        "threshold": threshold,
        "items": [p.to_dict() for p in products],
        "count": len(products),
    }), 200


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        product = catalog_service.lookup_product(db.session, product_id)
    except ProductNotFound as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"product": product.to_dict()}), 200
