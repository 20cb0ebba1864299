# Overview: Service-layer operations for the sellable services catalog.

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Service
from ..validation import ModelValidationPolicy, enforce_rules_service, validate_payload
from .concurrency import lock_for_update, run_with_retry
from .products_service import ensure_not_in_debit, refresh_transactions

SERVICE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "default_price_cents"},
    required_on_create={"name", "default_price_cents"},
)


def _ensure_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Service).filter(Service.name == name)
    if exclude_id is not None:
        query = query.filter(Service.id != exclude_id)
    if query.first():
        raise ConflictError("Service with this name already exists")


def list_services() -> list[Service]:
    return db.session.query(Service).order_by(Service.created_at.desc(), Service.id.desc()).all()


def get_service(service_id: int) -> Service:
    service = db.session.query(Service).filter_by(id=service_id).first()
    if not service:
        raise NotFoundError("Service not found")
    return service


def create_service(payload: dict) -> Service:
    patch = validate_payload(model=Service, payload=payload, policy=SERVICE_POLICY, partial=False)
    enforce_rules_service(patch)

    def _op():
        _ensure_unique_name(patch["name"])
        service = Service(total_sold=0, revenue_cents=0, **patch)
        db.session.add(service)
        db.session.commit()
        return service

    service = run_with_retry(_op)
    current_app.logger.info("Created service %s (%s)", service.id, service.name)
    return service


def update_service(service_id: int, payload: dict) -> Service:
    patch = validate_payload(model=Service, payload=payload, policy=SERVICE_POLICY, partial=True)
    enforce_rules_service(patch)

    def _op():
        service = lock_for_update(db.session.query(Service).filter_by(id=service_id)).first()
        if not service:
            raise NotFoundError("Service not found")
        if "name" in patch and patch["name"] != service.name:
            _ensure_unique_name(patch["name"], exclude_id=service.id)
        for key, value in patch.items():
            setattr(service, key, value)
        db.session.commit()
        return service

    return run_with_retry(_op)


def delete_service(service_id: int) -> None:
    def _op():
        service = get_service(service_id)
        ensure_not_in_debit(service.sell_history)
        transactions = {h.transaction for h in service.sell_history if h.transaction is not None}

        db.session.delete(service)
        db.session.flush()
        refresh_transactions(transactions)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Deleted service %s", service_id)
