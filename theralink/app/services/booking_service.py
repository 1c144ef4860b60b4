"""Booking quotes, submission and status changes."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError

from theralink.app.models import BOOKING_STATUSES, Booking, Therapist
from theralink.extensions import db

LOGGER = logging.getLogger(__name__)

SESSION_DURATIONS: dict[int, str] = {
    30: "30 minutes",
    60: "1 hour",
    90: "1.5 hours",
    120: "2 hours",
}
DEFAULT_DURATION = 60
STATUS_FILTERS: tuple[str, ...] = ("all",) + BOOKING_STATUSES

SUBMISSION_FAILED_MESSAGE = "Failed to create booking. Please try again."
MISSING_DATE_TIME_MESSAGE = "Please select both date and time"
CANCEL_FAILED_MESSAGE = "Failed to cancel booking. Please try again."
INVALID_DATE_TIME_MESSAGE = "Date and time must be text values."

_CENTS = Decimal("0.01")


class BookingError(Exception):
    """Raised when a booking cannot transition to the requested state."""


class BookingStorageError(BookingError):
    """Raised when a booking change could not be saved."""


def calculate_price(hourly_rate: Any, duration_minutes: int) -> Decimal:
    """Return ``hourly_rate * duration / 60`` rounded to cents."""

    total = Decimal(str(hourly_rate)) * Decimal(duration_minutes) / Decimal(60)
    return total.quantize(_CENTS, rounding=ROUND_HALF_UP)


def format_price(amount: Decimal) -> str:
    return f"${amount:.2f}"


def parse_duration(raw: Any) -> int | None:
    """Return a supported session duration in minutes, or ``None``."""

    if raw in (None, ""):
        return DEFAULT_DURATION
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value in SESSION_DURATIONS else None


@dataclass(slots=True)
class BookingRequest:
    """Validated booking input for a therapist."""

    therapist: Therapist
    session_date: date
    session_time: str
    duration: int

    @property
    def amount(self) -> Decimal:
        return calculate_price(self.therapist.hourly_rate, self.duration)


@dataclass(slots=True)
class BookingResult:
    """Outcome of a booking submission."""

    booking: Booking | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.booking is not None and self.error is None


def validate_booking(
    therapist: Therapist,
    payload: Mapping[str, Any],
    *,
    today: date | None = None,
) -> tuple[BookingRequest | None, dict[str, str]]:
    """Validate raw booking fields and return the request or field errors."""

    errors: dict[str, str] = {}
    raw_date = payload.get("date") or ""
    raw_time = payload.get("time") or ""
    if not isinstance(raw_date, str) or not isinstance(raw_time, str):
        errors["form"] = INVALID_DATE_TIME_MESSAGE
        return None, errors

    raw_date, raw_time = raw_date.strip(), raw_time.strip()

    if not raw_date or not raw_time:
        errors["form"] = MISSING_DATE_TIME_MESSAGE
        return None, errors

    session_date: date | None = None
    try:
        session_date = date.fromisoformat(raw_date)
    except ValueError:
        errors["date"] = "Date must use YYYY-MM-DD format."
    else:
        if session_date < (today or date.today()):
            errors["date"] = "Date cannot be in the past."

    if raw_time not in (therapist.availability or []):
        errors["time"] = "Please choose one of the available times."

    duration = parse_duration(payload.get("duration"))
    if duration is None:
        errors["duration"] = "Please choose a valid session duration."

    if errors or session_date is None or duration is None:
        return None, errors

    return (
        BookingRequest(
            therapist=therapist,
            session_date=session_date,
            session_time=raw_time,
            duration=duration,
        ),
        errors,
    )


def submit_booking(booking_request: BookingRequest) -> BookingResult:
    """Persist a scheduled booking awaiting payment."""

    booking = Booking(
        therapist_id=booking_request.therapist.id,
        session_date=booking_request.session_date,
        session_time=booking_request.session_time,
        duration=booking_request.duration,
        amount=booking_request.amount,
        status="scheduled",
        payment_status="pending",
    )

    try:
        db.session.add(booking)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        LOGGER.exception("Booking submission failed for therapist %s", booking_request.therapist.id)
        return BookingResult(error=SUBMISSION_FAILED_MESSAGE)

    LOGGER.info(
        "Booked therapist %s on %s at %s",
        booking.therapist_id,
        booking.session_date.isoformat(),
        booking.session_time,
    )
    return BookingResult(booking=booking)


def normalize_status_filter(raw: str | None) -> str:
    value = (raw or "all").strip().lower()
    return value if value in STATUS_FILTERS else "all"


def list_bookings(status: str | None = "all") -> list[Booking]:
    """Return bookings, optionally restricted to a single status."""

    query = Booking.query.order_by(Booking.id.asc())
    status_value = normalize_status_filter(status)
    if status_value != "all":
        query = query.filter_by(status=status_value)
    return query.all()


def cancel_booking(booking: Booking) -> Booking:
    """Cancel a scheduled booking, refunding a confirmed payment."""

    if booking.status != "scheduled":
        raise BookingError(f"Only scheduled bookings can be cancelled (status is {booking.status}).")

    booking_id = booking.id
    booking.status = "cancelled"
    if booking.payment_status == "confirmed":
        booking.payment_status = "refunded"

    try:
        db.session.add(booking)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        LOGGER.exception("Cancelling booking %s failed", booking_id)
        raise BookingStorageError(CANCEL_FAILED_MESSAGE) from exc

    LOGGER.info("Cancelled booking %s", booking_id)
    return booking
