# Overview: Flask API routes for debits (deferred payments); parses input and returns JSON responses.

# backend/app/routes/debits.py
"""
Debit routes.

A debit is opened over existing sell history rows and paid off through
POST /<id>/pay. Status (PENDING / PARTIAL / PAID) is derived by the service
and cannot be set through these routes.
"""
from flask import Blueprint, current_app, jsonify, request

from ..errors import AppError, error_response, internal_error_response
from ..services import debit_service
from ..validation import require_json_object

debits_bp = Blueprint("debits", __name__, url_prefix="/api/debits")


@debits_bp.get("")
def list_debits_route():
    """
    List debits, newest first.

    Query params: status (PENDING|PARTIAL|PAID), start_date, end_date
    """
    try:
        debits = debit_service.list_debits(
            status=request.args.get("status"),
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
        )
        return jsonify([d.to_dict(include_items=True) for d in debits]), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list debits")
        return internal_error_response()


@debits_bp.post("")
def create_debit_route():
    """
    Open a debit.

    Body: {"customer_name"?: str, "notes"?: str,
           "items": [{"sell_history_id": int, "amount_cents": int}, ...]}
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        debit = debit_service.create_debit(payload)
        return jsonify(debit.to_dict(include_items=True)), 201
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create debit")
        return internal_error_response()


@debits_bp.get("/<int:debit_id>")
def get_debit_route(debit_id: int):
    try:
        debit = debit_service.get_debit(debit_id)
        return jsonify(debit.to_dict(include_items=True)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load debit")
        return internal_error_response()


@debits_bp.put("/<int:debit_id>")
def update_debit_route(debit_id: int):
    """Edit customer_name / notes. Payments go through POST /<id>/pay."""
    try:
        payload = require_json_object(request.get_json(silent=True))
        debit = debit_service.update_debit(debit_id, payload)
        return jsonify(debit.to_dict(include_items=True)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update debit")
        return internal_error_response()


@debits_bp.delete("/<int:debit_id>")
def delete_debit_route(debit_id: int):
    try:
        debit_service.delete_debit(debit_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete debit")
        return internal_error_response()


@debits_bp.post("/<int:debit_id>/pay")
def pay_debit_route(debit_id: int):
    """
    Record a payment.

    Body: {"amount_cents": int > 0}
    400 with details.max_payment_cents when the payment would exceed the total.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        debit = debit_service.pay_debit(debit_id, data.get("amount_cents"))
        return jsonify(debit.to_dict(include_items=True)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record payment")
        return internal_error_response()


@debits_bp.post("/remove-item")
def remove_debit_item_route():
    """
    Detach a sale from its debit.

    Body: {"sell_history_id": int}
    Returns the updated debit, or {"debit": null} when its last item was removed.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        debit = debit_service.remove_debit_item(data.get("sell_history_id"))
        return jsonify({"debit": debit.to_dict(include_items=True) if debit else None}), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to remove item from debit")
        return internal_error_response()
