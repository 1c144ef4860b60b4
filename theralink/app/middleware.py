"""Application middleware utilities such as audit logging."""
from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any

from flask import Flask, current_app, g, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from sqlalchemy.exc import SQLAlchemyError

from theralink.app.models import AuditLog
from theralink.extensions import db


@dataclass(slots=True)
class _AuditConfig:
    action: str
    entity_type: str


SIGNIFICANT_ACTIONS: dict[tuple[str, str], _AuditConfig] = {
    ("POST", "api.login"): _AuditConfig(action="auth.login", entity_type="user"),
    ("POST", "api.bookings.create_booking"): _AuditConfig(
        action="booking.created", entity_type="booking"
    ),
    ("POST", "frontend.book_session"): _AuditConfig(
        action="booking.created", entity_type="booking"
    ),
    ("POST", "api.bookings.cancel"): _AuditConfig(
        action="booking.cancelled", entity_type="booking"
    ),
    ("POST", "frontend.cancel_booking_page"): _AuditConfig(
        action="booking.cancelled", entity_type="booking"
    ),
    ("POST", "api.therapists.register_therapist"): _AuditConfig(
        action="therapist.registered", entity_type="therapist"
    ),
    ("POST", "frontend.register_therapist"): _AuditConfig(
        action="therapist.registered", entity_type="therapist"
    ),
}


def record_audit_entity(entity_id: int | None) -> None:
    """Remember the entity touched by the current request for the audit log."""

    g.audit_entity_id = entity_id


def register_audit_middleware(app: Flask) -> None:
    """Attach middleware that records audit logs for significant actions."""

    @app.before_request
    def _capture_audit_context() -> None:
        method = request.method.upper()
        config = SIGNIFICANT_ACTIONS.get((method, request.endpoint or ""))
        g.audit_entity_id = None
        if not config:
            g.audit_context = None
            return

        g.audit_context = {
            "config": config,
            "method": method,
            "path": _normalize_path(request.path),
            "request_bytes": request.get_data(cache=True) or b"",
        }

    @app.after_request
    def _persist_audit_log(response):
        context: dict[str, Any] | None = getattr(g, "audit_context", None)
        if not context or response.status_code >= 400:
            return response

        entity_id = getattr(g, "audit_entity_id", None)
        if entity_id is None:
            return response

        config: _AuditConfig = context["config"]
        user_id = entity_id if config.action == "auth.login" else _current_user_id()

        audit_log = AuditLog(
            user_id=user_id,
            entity_type=config.entity_type,
            entity_id=entity_id,
            action=config.action,
            description=_default_description(config, entity_id),
            method=context["method"],
            path=context["path"],
            request_hash=_hash_request(
                context["method"], context["path"], context["request_bytes"]
            ),
            response_hash=_hash_response(response),
        )

        db.session.add(audit_log)
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Failed to persist audit log entry")

        return response


def _normalize_path(path: str) -> str:
    if path != "/" and path.endswith("/"):
        return path[:-1]
    return path


def _current_user_id() -> int | None:
    try:
        verify_jwt_in_request(optional=True)
        identity = get_jwt_identity()
    except Exception:
        return None

    try:
        return int(identity) if identity is not None else None
    except (TypeError, ValueError):
        return None


def _default_description(config: _AuditConfig, entity_id: int) -> str:
    if config.action == "auth.login":
        return f"User {entity_id} signed in with a wallet."
    if config.action == "booking.created":
        return f"Booking {entity_id} created."
    if config.action == "booking.cancelled":
        return f"Booking {entity_id} cancelled."
    return f"Therapist {entity_id} registered."


def _hash_request(method: str, path: str, body: bytes) -> str:
    payload = f"{method}\n{path}\n".encode("utf-8") + body
    return hashlib.sha256(payload).hexdigest()


def _hash_response(response) -> str:
    body = b"" if response.direct_passthrough else response.get_data()
    payload = f"{response.status_code}\n".encode("utf-8") + body
    return hashlib.sha256(payload).hexdigest()
