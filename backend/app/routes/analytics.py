# Overview: Flask API routes for read-only analytics.

from flask import Blueprint, current_app, jsonify, request

from ..errors import AppError, error_response, internal_error_response
from ..services import reporting_service

analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


@analytics_bp.get("/overview")
def overview_route():
    try:
        return jsonify(reporting_service.overview_report()), 200
    except Exception:
        current_app.logger.exception("Failed to build overview analytics")
        return internal_error_response()


@analytics_bp.get("/categories/<int:category_id>")
def category_analytics_route(category_id: int):
    try:
        return jsonify(reporting_service.category_report(category_id)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to build category analytics")
        return internal_error_response()


@analytics_bp.get("/sales")
def sales_analytics_route():
    """Query params: start_date, end_date, group_by (day|week|month, default day)."""
    try:
        report = reporting_service.sales_report(
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
            group_by=request.args.get("group_by", "day"),
        )
        return jsonify(report), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to build sales analytics")
        return internal_error_response()
