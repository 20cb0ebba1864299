# Overview: Flask API route for multi-product (quick sell) checkouts.

from flask import Blueprint, current_app, jsonify, request

from ..errors import AppError, error_response, internal_error_response
from ..services import sales_service
from ..validation import require_json_object

sell_bp = Blueprint("sell", __name__, url_prefix="/api/sell")


@sell_bp.post("/bulk")
def bulk_sell_route():
    """
    Sell several products in one transaction.

    Body: {"items": [{"product_id": int, "amount": int, "sold_price_cents": int}, ...]}

    All or nothing: if any item is invalid, missing or short on stock, no
    product changes and no history is written.
    Returns the transaction with its sell history and the updated products.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        transaction = sales_service.bulk_sell(data.get("items"))

        products = {}
        for history in transaction.sell_history:
            products[history.product.id] = history.product
        return jsonify({
            "transaction": transaction.to_dict(include_history=True),
            "products": [p.to_dict(include_category=True) for p in products.values()],
        }), 201
    except AppError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to process bulk sell")
        return internal_error_response()
