"""Therapist directory and registration endpoints."""
from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask.typing import ResponseReturnValue

from theralink.app.middleware import record_audit_entity
from theralink.app.models import Therapist
from theralink.app.services.booking_service import (
    SESSION_DURATIONS,
    calculate_price,
    parse_duration,
)
from theralink.app.services.directory import filter_therapists, parse_filters
from theralink.app.services.registration import RegistrationForm, submit_registration
from theralink.extensions import db

therapists_bp = Blueprint("therapists", __name__)


def price_bounds() -> tuple[int, int]:
    return (
        int(current_app.config.get("PRICE_RANGE_MIN", 50)),
        int(current_app.config.get("PRICE_RANGE_MAX", 300)),
    )


def all_therapists() -> list[Therapist]:
    return Therapist.query.order_by(Therapist.id.asc()).all()


@therapists_bp.get("")
def list_therapists() -> ResponseReturnValue:
    """Return therapists matching the specialization, price and search filters."""

    filters = parse_filters(request.args, bounds=price_bounds())
    therapists = filter_therapists(
        all_therapists(),
        specialization=filters.specialization,
        price_range=filters.price_range,
        query=filters.query,
    )
    return (
        jsonify(
            therapists=[therapist.to_dict() for therapist in therapists],
            count=len(therapists),
            filters={
                "specialization": filters.specialization,
                "min_price": filters.price_range[0],
                "max_price": filters.price_range[1],
                "q": filters.query,
            },
        ),
        HTTPStatus.OK,
    )


@therapists_bp.get("/<int:therapist_id>")
def get_therapist(therapist_id: int) -> ResponseReturnValue:
    therapist = db.session.get(Therapist, therapist_id)
    if therapist is None:
        return jsonify(message="Therapist not found."), HTTPStatus.NOT_FOUND
    return jsonify(therapist.to_dict()), HTTPStatus.OK


@therapists_bp.get("/<int:therapist_id>/quote")
def quote_session(therapist_id: int) -> ResponseReturnValue:
    """Return the price of a session of the requested duration."""

    therapist = db.session.get(Therapist, therapist_id)
    if therapist is None:
        return jsonify(message="Therapist not found."), HTTPStatus.NOT_FOUND

    duration = parse_duration(request.args.get("duration"))
    if duration is None:
        allowed = ", ".join(str(value) for value in SESSION_DURATIONS)
        return (
            jsonify(message=f"duration must be one of {allowed} minutes."),
            HTTPStatus.BAD_REQUEST,
        )

    amount = calculate_price(therapist.hourly_rate, duration)
    return (
        jsonify(
            therapist_id=therapist.id,
            hourly_rate=float(therapist.hourly_rate),
            duration=duration,
            amount=f"{amount:.2f}",
        ),
        HTTPStatus.OK,
    )


@therapists_bp.post("/register")
def register_therapist() -> ResponseReturnValue:
    """Register a therapist profile with weekly availability."""

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify(message="Request body must be a JSON object."), HTTPStatus.BAD_REQUEST

    result = submit_registration(RegistrationForm.from_json(payload))
    if not result.ok:
        status = (
            HTTPStatus.INTERNAL_SERVER_ERROR
            if "form" in result.errors
            else HTTPStatus.BAD_REQUEST
        )
        return jsonify(message="Registration is invalid.", errors=result.errors), status

    record_audit_entity(result.therapist.id)
    return (
        jsonify(message="Registration successful.", therapist=result.therapist.to_dict()),
        HTTPStatus.CREATED,
    )
