"""Tests for session pricing and the booking flow."""
from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from http import HTTPStatus
import unittest
from unittest.mock import patch

from sqlalchemy.exc import SQLAlchemyError

from theralink.app import create_app
from theralink.app.models import AuditLog, Booking, Therapist
from theralink.app.services.booking_service import (
    INVALID_DATE_TIME_MESSAGE,
    MISSING_DATE_TIME_MESSAGE,
    SESSION_DURATIONS,
    SUBMISSION_FAILED_MESSAGE,
    calculate_price,
    submit_booking,
    validate_booking,
)
from theralink.extensions import db


class PriceCalculatorTests(unittest.TestCase):
    def test_ninety_minutes_at_150(self) -> None:
        self.assertEqual(calculate_price(150, 90), Decimal("225.00"))

    def test_price_is_linear_in_duration(self) -> None:
        for rate in (75, 150, 180, 200):
            for minutes in (30, 60):
                self.assertEqual(
                    calculate_price(rate, minutes * 2), calculate_price(rate, minutes) * 2
                )

    def test_rounds_to_cents(self) -> None:
        self.assertEqual(calculate_price(Decimal("99.99"), 30), Decimal("50.00"))
        self.assertEqual(calculate_price(100, 20), Decimal("33.33"))


class BookingFlowTests(unittest.TestCase):
    """Exercise booking validation and submission through the Flask stack."""

    def setUp(self) -> None:
        self.app = create_app("testing")
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.client = self.app.test_client()
        self.therapist = db.session.get(Therapist, 1)
        self.future_date = (date.today() + timedelta(days=7)).isoformat()

    def tearDown(self) -> None:
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def test_validation_requires_date_and_time(self) -> None:
        booking_request, errors = validate_booking(self.therapist, {"date": self.future_date})
        self.assertIsNone(booking_request)
        self.assertEqual(errors, {"form": MISSING_DATE_TIME_MESSAGE})

    def test_validation_rejects_past_dates_and_unknown_slots(self) -> None:
        booking_request, errors = validate_booking(
            self.therapist,
            {"date": "2020-01-01", "time": "Sun 23:00", "duration": "45"},
            today=date(2024, 1, 1),
        )
        self.assertIsNone(booking_request)
        self.assertEqual(set(errors), {"date", "time", "duration"})

    def test_valid_request_carries_calculated_amount(self) -> None:
        booking_request, errors = validate_booking(
            self.therapist, {"date": self.future_date, "time": "Mon 10:00", "duration": "90"}
        )
        self.assertEqual(errors, {})
        assert booking_request is not None
        self.assertEqual(booking_request.amount, Decimal("225.00"))

    def test_api_creates_scheduled_booking(self) -> None:
        response = self.client.post(
            "/api/bookings",
            json={
                "therapist_id": 1,
                "date": self.future_date,
                "time": "Tue 14:00",
                "duration": 30,
            },
        )
        self.assertEqual(response.status_code, HTTPStatus.CREATED, response.get_data(as_text=True))
        data = response.get_json()
        assert data is not None
        booking = data["booking"]
        self.assertEqual(booking["status"], "scheduled")
        self.assertEqual(booking["payment_status"], "pending")
        self.assertEqual(booking["amount"], 75.0)
        self.assertEqual(booking["therapist_name"], "Dr. Sarah Johnson")

        audit = AuditLog.query.filter_by(action="booking.created").one()
        self.assertEqual(audit.entity_id, booking["id"])
        self.assertEqual(audit.path, "/api/bookings")
        self.assertEqual(len(audit.request_hash), 64)
        self.assertEqual(len(audit.response_hash), 64)

    def test_api_rejects_unknown_therapist(self) -> None:
        response = self.client.post(
            "/api/bookings",
            json={"therapist_id": 42, "date": self.future_date, "time": "Mon 10:00"},
        )
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)

    def test_api_rejects_non_text_date_and_time(self) -> None:
        response = self.client.post(
            "/api/bookings",
            json={"therapist_id": 1, "date": 20300101, "time": ["Mon 10:00"]},
        )
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        data = response.get_json()
        assert data is not None
        self.assertEqual(data["errors"], {"form": INVALID_DATE_TIME_MESSAGE})

        response = self.client.post("/api/bookings", json=[1, self.future_date])
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        self.assertEqual(Booking.query.count(), 3)

    def test_quote_endpoint(self) -> None:
        response = self.client.get("/api/therapists/1/quote", query_string={"duration": 90})
        self.assertEqual(response.status_code, HTTPStatus.OK)
        data = response.get_json()
        assert data is not None
        self.assertEqual(data["amount"], "225.00")

        response = self.client.get("/api/therapists/1/quote", query_string={"duration": 45})
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)

    def test_booking_page_renders_price_and_slots(self) -> None:
        response = self.client.get("/booking-confirmation?therapistId=3&duration=120")
        self.assertEqual(response.status_code, HTTPStatus.OK)
        body = response.get_data(as_text=True)
        self.assertIn("Dr. Emily Rodriguez", body)
        self.assertIn("$400.00", body)
        self.assertIn("Fri 10:00", body)
        for label in SESSION_DURATIONS.values():
            self.assertIn(label, body)

    def test_booking_page_for_unknown_therapist_is_not_found(self) -> None:
        response = self.client.get("/booking-confirmation?therapistId=77")
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)
        self.assertIn("Return to Therapists", response.get_data(as_text=True))

        response = self.client.get("/booking-confirmation")
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)

    def test_booking_page_submission_redirects_to_confirmation(self) -> None:
        response = self.client.post(
            "/therapists/2/book",
            data={"date": self.future_date, "time": "Wed 10:00", "duration": "60"},
        )
        self.assertEqual(response.status_code, HTTPStatus.FOUND)
        self.assertIn("/bookings/confirmation?booking_id=", response.headers["Location"])

        confirmation = self.client.get(response.headers["Location"])
        body = confirmation.get_data(as_text=True)
        self.assertIn("Booking Confirmed", body)
        self.assertIn("Dr. Michael Chen", body)
        self.assertIn("$180.00", body)

    def test_booking_page_shows_missing_fields_message(self) -> None:
        response = self.client.post("/therapists/2/book", data={"duration": "60"})
        self.assertEqual(response.status_code, HTTPStatus.BAD_REQUEST)
        self.assertIn(MISSING_DATE_TIME_MESSAGE, response.get_data(as_text=True))
        self.assertEqual(Booking.query.count(), 3)

    def test_storage_failure_surfaces_retry_message(self) -> None:
        booking_request, _ = validate_booking(
            self.therapist, {"date": self.future_date, "time": "Mon 10:00"}
        )
        assert booking_request is not None

        with patch("theralink.app.services.booking_service.db") as fake_db:
            fake_db.session.commit.side_effect = SQLAlchemyError("disk full")
            result = submit_booking(booking_request)

        self.assertFalse(result.ok)
        self.assertEqual(result.error, SUBMISSION_FAILED_MESSAGE)
        fake_db.session.rollback.assert_called_once()
        self.assertEqual(Booking.query.count(), 3)


if __name__ == "__main__":
    unittest.main()
