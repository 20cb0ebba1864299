# Overview: Flask API routes for categories; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..errors import AppError, error_response, internal_error_response
from ..services import categories_service
from ..validation import require_json_object

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories_route():
    try:
        categories = categories_service.list_categories()
        return jsonify([c.to_dict(include_counts=True) for c in categories]), 200
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return internal_error_response()


@categories_bp.post("")
def create_category_route():
    try:
        payload = require_json_object(request.get_json(silent=True))
        category = categories_service.create_category(payload)
        return jsonify(category.to_dict(include_counts=True)), 201
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create category")
        return internal_error_response()


@categories_bp.get("/<int:category_id>")
def get_category_route(category_id: int):
    """Get a category with its products."""
    try:
        category = categories_service.get_category(category_id)
        data = category.to_dict(include_counts=True)
        data["products"] = [p.to_dict() for p in category.products]
        return jsonify(data), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load category")
        return internal_error_response()


@categories_bp.put("/<int:category_id>")
def update_category_route(category_id: int):
    try:
        payload = require_json_object(request.get_json(silent=True))
        category = categories_service.update_category(category_id, payload)
        return jsonify(category.to_dict(include_counts=True)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update category")
        return internal_error_response()


@categories_bp.delete("/<int:category_id>")
def delete_category_route(category_id: int):
    """Delete a category and every product in it."""
    try:
        categories_service.delete_category(category_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return internal_error_response()
