"""Therapist registration form parsing, validation and submission."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterator, Mapping

from sqlalchemy.exc import SQLAlchemyError

from theralink.app.models import Therapist
from theralink.extensions import db

LOGGER = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SPECIALIZATIONS: tuple[str, ...] = (
    "Cognitive Behavioral Therapy",
    "Family Therapy",
    "Trauma Therapy",
    "Addiction Counseling",
    "Relationship Counseling",
    "Child Psychology",
    "Clinical Psychology",
    "Other",
)

SUBMISSION_FAILED_MESSAGE = "Registration failed. Please try again."


class Day(Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def abbreviation(self) -> str:
        return self.label[:3]


class TimeOfDay(Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def start(self) -> str:
        return _SLOT_START[self]


_SLOT_START = {
    TimeOfDay.MORNING: "09:00",
    TimeOfDay.AFTERNOON: "13:00",
    TimeOfDay.EVENING: "17:00",
}


class AvailabilityGrid:
    """Fixed 7x3 table of weekly availability."""

    __slots__ = ("_cells",)

    def __init__(self) -> None:
        self._cells: dict[tuple[Day, TimeOfDay], bool] = {
            (day, slot): False for day in Day for slot in TimeOfDay
        }

    def __getitem__(self, key: tuple[Day, TimeOfDay]) -> bool:
        return self._cells[key]

    def __setitem__(self, key: tuple[Day, TimeOfDay], value: bool) -> None:
        if key not in self._cells:
            raise KeyError(key)
        self._cells[key] = bool(value)

    def toggle(self, day: Day, slot: TimeOfDay) -> None:
        self._cells[(day, slot)] = not self._cells[(day, slot)]

    def selected(self) -> Iterator[tuple[Day, TimeOfDay]]:
        """Yield the selected cells in weekday then time-of-day order."""

        for day in Day:
            for slot in TimeOfDay:
                if self._cells[(day, slot)]:
                    yield day, slot

    def any(self) -> bool:
        return any(self._cells.values())

    def as_slots(self) -> list[str]:
        """Return the selection as ``"Day HH:MM"`` availability strings."""

        return [f"{day.abbreviation} {slot.start}" for day, slot in self.selected()]

    def as_dict(self) -> dict[str, dict[str, bool]]:
        return {
            day.value: {slot.value: self._cells[(day, slot)] for slot in TimeOfDay}
            for day in Day
        }

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "AvailabilityGrid":
        """Read checkbox fields named ``availability-<day>-<slot>``."""

        grid = cls()
        for day in Day:
            for slot in TimeOfDay:
                if form.get(f"availability-{day.value}-{slot.value}"):
                    grid[(day, slot)] = True
        return grid

    @classmethod
    def from_mapping(cls, data: Any) -> "AvailabilityGrid":
        """Read a ``{day: {slot: bool}}`` mapping, ignoring unknown or malformed entries."""

        grid = cls()
        if not isinstance(data, Mapping):
            return grid
        for day in Day:
            day_data = data.get(day.value)
            if not isinstance(day_data, Mapping):
                continue
            for slot in TimeOfDay:
                grid[(day, slot)] = bool(day_data.get(slot.value, False))
        return grid


@dataclass(slots=True)
class RegistrationForm:
    """Therapist registration data as entered."""

    full_name: str = ""
    email: str = ""
    phone: str = ""
    specialization: str = ""
    description: str = ""
    hourly_rate: str = ""
    credentials: str = ""
    experience: str = ""
    availability: AvailabilityGrid = field(default_factory=AvailabilityGrid)

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "RegistrationForm":
        return cls(
            **{name: str(form.get(name) or "") for name in _TEXT_FIELDS},
            availability=AvailabilityGrid.from_form(form),
        )

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "RegistrationForm":
        values = {name: payload.get(_JSON_ALIASES.get(name, name)) for name in _TEXT_FIELDS}
        return cls(
            **{name: "" if value is None else str(value) for name, value in values.items()},
            availability=AvailabilityGrid.from_mapping(payload.get("availability")),
        )


_TEXT_FIELDS = (
    "full_name",
    "email",
    "phone",
    "specialization",
    "description",
    "hourly_rate",
    "credentials",
    "experience",
)

_JSON_ALIASES = {"full_name": "fullName", "hourly_rate": "hourlyRate"}


def validate_registration(form: RegistrationForm) -> dict[str, str]:
    """Return a mapping of field name to error message; empty when valid."""

    errors: dict[str, str] = {}

    if not form.full_name.strip():
        errors["full_name"] = "Full name is required"

    if not form.email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_PATTERN.match(form.email):
        errors["email"] = "Invalid email format"

    if not form.phone.strip():
        errors["phone"] = "Phone number is required"

    if not form.specialization:
        errors["specialization"] = "Specialization is required"
    elif form.specialization not in SPECIALIZATIONS:
        errors["specialization"] = "Please choose a specialization from the list"

    if not form.description.strip():
        errors["description"] = "Description is required"

    if not form.hourly_rate.strip():
        errors["hourly_rate"] = "Hourly rate is required"
    elif _parse_rate(form.hourly_rate) is None:
        errors["hourly_rate"] = "Please enter a valid hourly rate"

    if not form.credentials.strip():
        errors["credentials"] = "Credentials are required"

    if not form.experience.strip():
        errors["experience"] = "Years of experience is required"

    if not form.availability.any():
        errors["availability"] = "Please select at least one available time slot"

    return errors


def _parse_rate(raw: str) -> Decimal | None:
    try:
        rate = Decimal(raw.strip())
    except InvalidOperation:
        return None
    if not rate.is_finite() or rate <= 0:
        return None
    return rate


@dataclass(slots=True)
class RegistrationResult:
    """Outcome of a registration submission."""

    therapist: Therapist | None = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.therapist is not None and not self.errors


def submit_registration(form: RegistrationForm) -> RegistrationResult:
    """Validate the form and add the therapist to the directory."""

    errors = validate_registration(form)
    if errors:
        return RegistrationResult(errors=errors)

    therapist = Therapist(
        name=form.full_name.strip(),
        specialization=form.specialization,
        description=form.description.strip(),
        hourly_rate=_parse_rate(form.hourly_rate),
        availability=form.availability.as_slots(),
        email=form.email.strip(),
        phone=form.phone.strip(),
        credentials=form.credentials.strip(),
        experience=form.experience.strip(),
    )

    try:
        db.session.add(therapist)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        LOGGER.exception("Therapist registration failed for %s", form.email)
        return RegistrationResult(errors={"form": SUBMISSION_FAILED_MESSAGE})

    LOGGER.info("Registered therapist %s (%s)", therapist.id, therapist.specialization)
    return RegistrationResult(therapist=therapist)
