# Overview: Read-only report endpoints over the sales ledger, plus CSV downloads.

from __future__ import annotations

from flask import Blueprint, Response, jsonify, request

from ..extensions import db
from ..services import export_service, ledger_service
from ..services.ledger_service import ReportError
from ..validation import ValidationError, coerce_id


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _csv_response(content: str, filename: str) -> Response:
    response = Response(content, mimetype="text/csv")
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return response


def _cashier_filter() -> str | None:
    cashier = request.args.get("cashier")
    if cashier is None:
        return None
    cashier = cashier.strip()
    if not cashier:
        raise ReportError("Invalid cashier username provided")
    return cashier


def _cashier_id_filter() -> int | None:
    raw = request.args.get("cashier_id")
    if raw is None:
        return None
    try:
        return coerce_id("cashier_id", raw)
    except ValidationError as exc:
        raise ReportError(str(exc))


@reports_bp.get("/daily-sales")
def daily_sales_report():
    try:
        day = ledger_service.resolve_report_day(request.args.get("date"))
        cashier = _cashier_filter()
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    sales = ledger_service.get_sales_by_date(db.session, day, cashier)
    return jsonify({
        "date": day.isoformat(),
        "cashier": cashier,
        "grand_total_cents": sum(sale.grand_total_cents for sale, _ in sales),
        "sales": [
            {**sale.to_dict(), "items": [item.to_dict() for item in items]}
            for sale, items in sales
        ],
    }), 200


@reports_bp.get("/product-sales")
def product_sales_report():
    try:
        day = ledger_service.resolve_report_day(request.args.get("date"))
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    aggregates = ledger_service.get_product_aggregates(db.session, day)
    return jsonify({
        "date": day.isoformat(),
        "total_amount_cents": sum(agg.total_amount_cents for agg in aggregates.values()),
        "rows": [
            {"product": name, **agg.to_dict()}
            for name, agg in aggregates.items()
        ],
    }), 200


@reports_bp.get("/summary")
def daily_summary_report():
    try:
        day = ledger_service.resolve_report_day(request.args.get("date"))
        cashier_id = _cashier_id_filter()
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify(ledger_service.daily_totals(db.session, day, cashier_id)), 200


@reports_bp.get("/overview")
def sales_overview_report():
    raw = request.args.get("limit")
    try:
        limit = None if raw is None else coerce_id("limit", raw)
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    sales = ledger_service.sales_overview(db.session, limit)
    return jsonify({"items": [sale.to_dict() for sale in sales], "count": len(sales)}), 200


@reports_bp.get("/daily-sales.csv")
def export_daily_sales_csv():
    try:
        day = ledger_service.resolve_report_day(request.args.get("date"))
        cashier = _cashier_filter()
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    content = export_service.daily_sales_csv(db.session, day, cashier)
    return _csv_response(content, export_service.daily_sales_filename(day, cashier))


@reports_bp.get("/product-sales.csv")
def export_product_sales_csv():
    try:
        day = ledger_service.resolve_report_day(request.args.get("date"))
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    content = export_service.product_sales_csv(db.session, day)
    return _csv_response(content, export_service.product_sales_filename(day))
