# Overview: Flask API routes for sell history listing and corrections.

from flask import Blueprint, current_app, jsonify, request

from ..errors import AppError, error_response, internal_error_response
from ..services import sell_history_service
from ..validation import require_json_object

sell_history_bp = Blueprint("sell_history", __name__, url_prefix="/api/sell-history")


@sell_history_bp.get("")
def list_sell_history_route():
    """
    List sales, newest first.

    Query params: product_id, service_id, start_date, end_date (ISO-8601), limit
    """
    try:
        rows = sell_history_service.list_sell_history(
            product_id=request.args.get("product_id", type=int),
            service_id=request.args.get("service_id", type=int),
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
            limit=request.args.get("limit", type=int),
        )
        return jsonify([h.to_dict(include_owner=True, include_links=True) for h in rows]), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list sell history")
        return internal_error_response()


@sell_history_bp.get("/<int:history_id>")
def get_sell_history_route(history_id: int):
    try:
        history = sell_history_service.get_sell_history(history_id)
        return jsonify(history.to_dict(include_owner=True, include_links=True)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load sell history")
        return internal_error_response()


@sell_history_bp.put("/<int:history_id>")
def update_sell_history_route(history_id: int):
    """
    Correct a recorded sale.

    Body (all optional): {"amount": int, "sold_price_cents": int, "created_at": ISO-8601}
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        history = sell_history_service.update_sell_history(history_id, payload)
        return jsonify(history.to_dict(include_owner=True, include_links=True)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update sell history")
        return internal_error_response()


@sell_history_bp.delete("/<int:history_id>")
def delete_sell_history_route(history_id: int):
    try:
        sell_history_service.delete_sell_history(history_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete sell history")
        return internal_error_response()
