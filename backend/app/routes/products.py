# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/app/routes/products.py
"""
Product routes.

Money fields are integer cents. Selling goes through POST /<id>/sell, which
is the only route that changes stock and sales counters together.
"""
from flask import Blueprint, current_app, jsonify, request

from ..errors import AppError, error_response, internal_error_response
from ..services import products_service, sales_service
from ..validation import require_json_object

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List all products with optional pagination.

    Query params:
    - category_id: int (optional) - filter by category
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page
    """
    category_id = request.args.get("category_id", type=int)
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)

    try:
        return products_service.list_products(category_id=category_id, page=page, per_page=per_page)
    except Exception:
        current_app.logger.exception("Failed to list products")
        return internal_error_response()


@products_bp.post("")
def create_product_route():
    try:
        payload = require_json_object(request.get_json(silent=True))
        product = products_service.create_product(payload)
        return jsonify(product.to_dict(include_category=True)), 201
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return internal_error_response()


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    """Get a product with its category and sell history (newest first)."""
    try:
        product = products_service.get_product(product_id)
        return jsonify(product.to_dict(include_category=True, include_history=True)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load product")
        return internal_error_response()


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    try:
        payload = require_json_object(request.get_json(silent=True))
        product = products_service.update_product(product_id, payload)
        return jsonify(product.to_dict(include_category=True)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return internal_error_response()


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id)
        return jsonify({"ok": True}), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return internal_error_response()


@products_bp.post("/<int:product_id>/sell")
def sell_product_route(product_id: int):
    """
    Sell units of a product.

    Body: {"amount": int > 0, "sold_price_cents": int > 0}
    Returns the updated product including its sell history.
    400 on invalid input or insufficient stock, 404 if the product is missing.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        product = sales_service.sell_product(product_id, data.get("amount"), data.get("sold_price_cents"))
        return jsonify(product.to_dict(include_category=True, include_history=True)), 200
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to sell product")
        return internal_error_response()
