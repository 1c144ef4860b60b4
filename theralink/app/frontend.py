"""Routes for the rendered client pages."""
from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, redirect, render_template, request, url_for
from flask.typing import ResponseReturnValue
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from theralink.app.api.auth import resolve_user
from theralink.app.api.therapists import all_therapists, price_bounds
from theralink.app.middleware import record_audit_entity
from theralink.app.models import Booking, Therapist
from theralink.app.services.booking_service import (
    DEFAULT_DURATION,
    SESSION_DURATIONS,
    STATUS_FILTERS,
    BookingError,
    calculate_price,
    cancel_booking,
    list_bookings,
    normalize_status_filter,
    parse_duration,
    submit_booking,
    validate_booking,
)
from theralink.app.services.directory import SPECIALIZATION_FACETS, filter_therapists, parse_filters
from theralink.app.services.registration import (
    SPECIALIZATIONS,
    Day,
    RegistrationForm,
    TimeOfDay,
    submit_registration,
)
from theralink.app.services.wallet import display_name
from theralink.extensions import db

frontend_bp = Blueprint("frontend", __name__)


@frontend_bp.app_context_processor
def inject_current_user() -> dict:
    """Expose the signed-in user, if any, to every template."""

    try:
        verify_jwt_in_request(optional=True)
        user = resolve_user(get_jwt_identity())
    except Exception:
        user = None

    return {
        "current_user": user,
        "current_user_name": display_name(user.username, user.wallet_address) if user else None,
    }


@frontend_bp.get("/")
def home() -> str:
    """Render the landing page with the wallet login."""

    return render_template("index.html")


@frontend_bp.get("/therapists")
def therapist_directory() -> str:
    """Render the therapist directory with the requested filters applied."""

    bounds = price_bounds()
    filters = parse_filters(request.args, bounds=bounds)
    therapists = filter_therapists(
        all_therapists(),
        specialization=filters.specialization,
        price_range=filters.price_range,
        query=filters.query,
    )
    return render_template(
        "therapists/list.html",
        therapists=therapists,
        filters=filters,
        facets=SPECIALIZATION_FACETS,
        bounds=bounds,
    )


@frontend_bp.route("/booking-confirmation", methods=["GET", "POST"])
@frontend_bp.route("/therapists/<int:therapist_id>/book", methods=["GET", "POST"])
def book_session(therapist_id: int | None = None) -> ResponseReturnValue:
    """Render and handle the booking form for a therapist."""

    if therapist_id is None:
        raw_id = request.args.get("therapistId") or request.form.get("therapistId")
        try:
            therapist_id = int(raw_id) if raw_id else None
        except ValueError:
            therapist_id = None

    therapist = db.session.get(Therapist, therapist_id) if therapist_id is not None else None
    if therapist is None:
        return render_template("therapists/not_found.html"), HTTPStatus.NOT_FOUND

    form = request.form if request.method == "POST" else request.args
    errors: dict[str, str] = {}
    submit_error: str | None = None

    if request.method == "POST":
        booking_request, errors = validate_booking(therapist, form)
        if booking_request is not None:
            result = submit_booking(booking_request)
            if result.ok:
                record_audit_entity(result.booking.id)
                return redirect(url_for("frontend.booking_confirmation", booking_id=result.booking.id))
            submit_error = result.error

    duration = parse_duration(form.get("duration")) or DEFAULT_DURATION
    status = HTTPStatus.BAD_REQUEST if errors else HTTPStatus.OK
    if submit_error:
        status = HTTPStatus.INTERNAL_SERVER_ERROR
    return (
        render_template(
            "therapists/book.html",
            therapist=therapist,
            durations=SESSION_DURATIONS,
            duration=duration,
            selected_date=form.get("date", ""),
            selected_time=form.get("time", ""),
            price=calculate_price(therapist.hourly_rate, duration),
            errors=errors,
            submit_error=submit_error,
        ),
        status,
    )


@frontend_bp.get("/bookings/confirmation")
def booking_confirmation() -> ResponseReturnValue:
    """Render the confirmation for a freshly created booking."""

    booking_id = request.args.get("booking_id", type=int)
    booking = db.session.get(Booking, booking_id) if booking_id is not None else None
    return render_template("bookings/confirmation.html", booking=booking)


@frontend_bp.get("/bookings")
def bookings() -> str:
    """Render the bookings list filtered by status."""

    status = normalize_status_filter(request.args.get("status"))
    return render_template(
        "bookings/list.html",
        bookings=list_bookings(status),
        status=status,
        statuses=STATUS_FILTERS,
        message=request.args.get("message"),
    )


@frontend_bp.post("/bookings/<int:booking_id>/cancel")
def cancel_booking_page(booking_id: int) -> ResponseReturnValue:
    """Cancel a booking from the bookings list."""

    booking = db.session.get(Booking, booking_id)
    if booking is None:
        return redirect(url_for("frontend.bookings", message="Booking not found."))

    try:
        cancel_booking(booking)
    except BookingError as exc:
        return redirect(url_for("frontend.bookings", message=str(exc)))

    record_audit_entity(booking.id)
    return redirect(url_for("frontend.bookings", message="Session cancelled."))


@frontend_bp.route("/therapists/register", methods=["GET", "POST"])
def register_therapist() -> ResponseReturnValue:
    """Render and handle the therapist registration form."""

    form = RegistrationForm()
    errors: dict[str, str] = {}

    if request.method == "POST":
        form = RegistrationForm.from_form(request.form)
        result = submit_registration(form)
        if result.ok:
            record_audit_entity(result.therapist.id)
            return render_template("therapists/registered.html", form=form, therapist=result.therapist)
        errors = result.errors

    return (
        render_template(
            "therapists/register.html",
            form=form,
            errors=errors,
            specializations=SPECIALIZATIONS,
            days=list(Day),
            slots=list(TimeOfDay),
        ),
        HTTPStatus.BAD_REQUEST if errors else HTTPStatus.OK,
    )
