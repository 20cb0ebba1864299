# Overview: Error taxonomy shared by services and routes.

"""
Every business failure raised by the service layer is an AppError subclass.
Routes turn them into JSON bodies with the status code carried by the class;
anything else is an internal failure and is reported as a bare 500.
"""
from __future__ import annotations

from flask import jsonify


class AppError(Exception):
    """Base class for errors the caller can recover from."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(AppError, ValueError):
    """400-level input problem, raised before the database is touched."""


class NotFoundError(AppError, LookupError):
    """Referenced record does not exist."""
    status_code = 404


class InsufficientStockError(AppError):
    """A product sell asks for more units than are in stock."""


class ExceedsTotalError(AppError):
    """A debit payment would overshoot the debit's total."""


class ConflictError(AppError, ValueError):
    """409-level business rule conflict (duplicate name, concurrent write)."""
    status_code = 409


def error_response(exc: AppError):
    body = {"error": str(exc)}
    if exc.details:
        body["details"] = exc.details
    return jsonify(body), exc.status_code


def internal_error_response():
    return jsonify({"error": "Internal server error"}), 500
