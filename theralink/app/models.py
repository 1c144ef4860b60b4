"""Database models for the TheraLink booking platform."""
from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from theralink.extensions import db

BOOKING_STATUSES = ("scheduled", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "confirmed", "refunded")


def utcnow() -> datetime:
    """Return the current time as a naive UTC timestamp."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    """Mixin providing timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )


class Therapist(db.Model, TimestampMixin):
    """A therapist listed in the directory."""

    __tablename__ = "therapists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    specialization: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    availability: Mapped[list[str]] = mapped_column(db.JSON, nullable=False, default=list)
    rating: Mapped[float | None] = mapped_column(Float)
    image_url: Mapped[str | None] = mapped_column(String(512))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    credentials: Mapped[str | None] = mapped_column(Text)
    experience: Mapped[str | None] = mapped_column(String(100))

    bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="therapist")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "specialization": self.specialization,
            "description": self.description,
            "hourly_rate": float(self.hourly_rate),
            "availability": list(self.availability or []),
            "rating": self.rating,
            "image_url": self.image_url,
        }

    def __repr__(self) -> str:
        return f"<Therapist id={self.id} name={self.name!r}>"


class Booking(db.Model, TimestampMixin):
    """A session booked with a therapist."""

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    therapist_id: Mapped[int] = mapped_column(ForeignKey("therapists.id"), nullable=False)
    session_date: Mapped[date] = mapped_column(Date, nullable=False)
    session_time: Mapped[str] = mapped_column(String(20), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, default=60, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="scheduled", nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)

    therapist: Mapped[Therapist] = relationship("Therapist", back_populates="bookings")

    @property
    def therapist_name(self) -> str:
        return self.therapist.name

    @property
    def specialization(self) -> str:
        return self.therapist.specialization

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "therapist_id": self.therapist_id,
            "therapist_name": self.therapist_name,
            "specialization": self.specialization,
            "date": self.session_date.isoformat(),
            "time": self.session_time,
            "status": self.status,
            "payment_status": self.payment_status,
            "amount": float(self.amount),
            "duration": self.duration,
        }

    def __repr__(self) -> str:
        return f"<Booking id={self.id} status={self.status!r}>"


class User(db.Model, TimestampMixin):
    """A wallet-authenticated user."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    wallet_address: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    username: Mapped[str | None] = mapped_column(String(255))
    profile_picture_url: Mapped[str | None] = mapped_column(String(512))
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    audit_logs: Mapped[list["AuditLog"]] = relationship("AuditLog", back_populates="user")

    def to_dict(self) -> dict:
        return {
            "walletAddress": self.wallet_address,
            "username": self.username,
            "profilePictureUrl": self.profile_picture_url,
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} wallet={self.wallet_address!r}>"


class AuditLog(db.Model):
    """Immutable log of significant user actions."""

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_id: Mapped[int | None] = mapped_column(Integer)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    method: Mapped[str] = mapped_column(String(10), nullable=False)
    path: Mapped[str] = mapped_column(String(255), nullable=False)
    request_hash: Mapped[str | None] = mapped_column(String(128))
    response_hash: Mapped[str | None] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    user: Mapped[User | None] = relationship("User", back_populates="audit_logs")

    def __repr__(self) -> str:
        return f"<AuditLog id={self.id} action={self.action!r}>"
