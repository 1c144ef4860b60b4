"""Booking endpoints."""
from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify, request
from flask.typing import ResponseReturnValue

from theralink.app.middleware import record_audit_entity
from theralink.app.models import Booking, Therapist
from theralink.app.services.booking_service import (
    BookingError,
    BookingStorageError,
    cancel_booking,
    list_bookings,
    normalize_status_filter,
    submit_booking,
    validate_booking,
)
from theralink.extensions import db

bookings_bp = Blueprint("bookings", __name__)


@bookings_bp.get("")
def get_bookings() -> ResponseReturnValue:
    """Return bookings filtered by status."""

    status = normalize_status_filter(request.args.get("status"))
    bookings = list_bookings(status)
    return jsonify(bookings=[booking.to_dict() for booking in bookings], status=status), HTTPStatus.OK


@bookings_bp.post("")
def create_booking() -> ResponseReturnValue:
    """Book a session with a therapist."""

    payload: dict[str, Any] = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify(message="Request body must be a JSON object."), HTTPStatus.BAD_REQUEST

    therapist_id = payload.get("therapist_id")
    try:
        therapist_pk = int(therapist_id)
    except (TypeError, ValueError):
        return jsonify(message="therapist_id must be an integer."), HTTPStatus.BAD_REQUEST

    therapist = db.session.get(Therapist, therapist_pk)
    if therapist is None:
        return jsonify(message="Therapist not found."), HTTPStatus.NOT_FOUND

    booking_request, errors = validate_booking(therapist, payload)
    if booking_request is None:
        return jsonify(message="Booking is invalid.", errors=errors), HTTPStatus.BAD_REQUEST

    result = submit_booking(booking_request)
    if not result.ok:
        return jsonify(message=result.error), HTTPStatus.INTERNAL_SERVER_ERROR

    record_audit_entity(result.booking.id)
    return jsonify(booking=result.booking.to_dict()), HTTPStatus.CREATED


@bookings_bp.post("/<int:booking_id>/cancel")
def cancel(booking_id: int) -> ResponseReturnValue:
    """Cancel a scheduled booking."""

    booking = db.session.get(Booking, booking_id)
    if booking is None:
        return jsonify(message="Booking not found."), HTTPStatus.NOT_FOUND

    try:
        cancel_booking(booking)
    except BookingStorageError as exc:
        return jsonify(message=str(exc)), HTTPStatus.INTERNAL_SERVER_ERROR
    except BookingError as exc:
        return jsonify(message=str(exc)), HTTPStatus.CONFLICT

    record_audit_entity(booking.id)
    return jsonify(booking=booking.to_dict()), HTTPStatus.OK
