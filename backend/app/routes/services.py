# Overview: Flask API routes for the services catalog; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..errors import AppError, error_response, internal_error_response
from ..services import sales_service, services_service
from ..validation import require_json_object

services_bp = Blueprint("services", __name__, url_prefix="/api/services")

# Services list shows only the most recent sales of each entry
RECENT_HISTORY_LIMIT = 10


@services_bp.get("")
def list_services_route():
    try:
        services = services_service.list_services()
        return jsonify([s.to_dict(include_history=True, history_limit=RECENT_HISTORY_LIMIT) for s in services]), 200
    except Exception:
        current_app.logger.exception("Failed to list services")
        return internal_error_response()


@services_bp.post("")
def create_service_route():
    try:
        payload = require_json_object(request.get_json(silent=True))
        service = services_service.create_service(payload)
        return jsonify(service.to_dict()), 201
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create service")
        return internal_error_response()


@services_bp.get("/<int:service_id>")
def get_service_route(service_id: int):
    try:
        service = services_service.get_service(service_id)
        return jsonify(service.to_dict(include_history=True)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load service")
        return internal_error_response()


@services_bp.put("/<int:service_id>")
def update_service_route(service_id: int):
    try:
        payload = require_json_object(request.get_json(silent=True))
        service = services_service.update_service(service_id, payload)
        return jsonify(service.to_dict()), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update service")
        return internal_error_response()


@services_bp.delete("/<int:service_id>")
def delete_service_route(service_id: int):
    try:
        services_service.delete_service(service_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete service")
        return internal_error_response()


@services_bp.post("/<int:service_id>/sell")
def sell_service_route(service_id: int):
    """
    Sell a service.

    Body: {"amount": int > 0, "sold_price_cents": int > 0}
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        service = sales_service.sell_service(service_id, data.get("amount"), data.get("sold_price_cents"))
        return jsonify(service.to_dict(include_history=True)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to sell service")
        return internal_error_response()
