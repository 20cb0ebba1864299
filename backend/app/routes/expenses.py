# Overview: Flask API routes for daily and supply expenses.

from flask import Blueprint, current_app, jsonify, request

from ..errors import AppError, error_response, internal_error_response
from ..models.expenses import EXPENSE_CATEGORIES
from ..services import expense_service
from ..validation import require_json_object

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("/categories")
def list_expense_categories_route():
    """Suggested daily expense categories (the category field itself is free text)."""
    return jsonify(list(EXPENSE_CATEGORIES)), 200


# =============================================================================
# DAILY EXPENSES
# =============================================================================

@expenses_bp.get("/daily")
def list_daily_expenses_route():
    """Query params: category, start_date, end_date (filter on expense_date)."""
    try:
        expenses = expense_service.list_daily_expenses(
            category=request.args.get("category"),
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
        )
        return jsonify([e.to_dict() for e in expenses]), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list daily expenses")
        return internal_error_response()


@expenses_bp.post("/daily")
def create_daily_expense_route():
    try:
        payload = require_json_object(request.get_json(silent=True))
        expense = expense_service.create_daily_expense(payload)
        return jsonify(expense.to_dict()), 201
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create daily expense")
        return internal_error_response()


@expenses_bp.get("/daily/<int:expense_id>")
def get_daily_expense_route(expense_id: int):
    try:
        return jsonify(expense_service.get_daily_expense(expense_id).to_dict()), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load daily expense")
        return internal_error_response()


@expenses_bp.put("/daily/<int:expense_id>")
def update_daily_expense_route(expense_id: int):
    try:
        payload = require_json_object(request.get_json(silent=True))
        expense = expense_service.update_daily_expense(expense_id, payload)
        return jsonify(expense.to_dict()), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update daily expense")
        return internal_error_response()


@expenses_bp.delete("/daily/<int:expense_id>")
def delete_daily_expense_route(expense_id: int):
    try:
        expense_service.delete_daily_expense(expense_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete daily expense")
        return internal_error_response()


# =============================================================================
# SUPPLY EXPENSES
# =============================================================================

@expenses_bp.get("/supply")
def list_supply_expenses_route():
    """Query params: start_date, end_date (filter on created_at)."""
    try:
        expenses = expense_service.list_supply_expenses(
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
        )
        return jsonify([e.to_dict() for e in expenses]), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list supply expenses")
        return internal_error_response()


@expenses_bp.post("/supply")
def create_supply_expense_route():
    try:
        payload = require_json_object(request.get_json(silent=True))
        expense = expense_service.create_supply_expense(payload)
        return jsonify(expense.to_dict()), 201
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create supply expense")
        return internal_error_response()


@expenses_bp.get("/supply/<int:expense_id>")
def get_supply_expense_route(expense_id: int):
    try:
        return jsonify(expense_service.get_supply_expense(expense_id).to_dict()), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load supply expense")
        return internal_error_response()


@expenses_bp.put("/supply/<int:expense_id>")
def update_supply_expense_route(expense_id: int):
    try:
        payload = require_json_object(request.get_json(silent=True))
        expense = expense_service.update_supply_expense(expense_id, payload)
        return jsonify(expense.to_dict()), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update supply expense")
        return internal_error_response()


@expenses_bp.delete("/supply/<int:expense_id>")
def delete_supply_expense_route(expense_id: int):
    try:
        expense_service.delete_supply_expense(expense_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete supply expense")
        return internal_error_response()
