"""Mock therapists and bookings seeded into a fresh database."""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from theralink.app.models import Booking, Therapist
from theralink.extensions import db

DEMO_THERAPISTS: list[dict] = [
    {
        "name": "Dr. Sarah Johnson",
        "specialization": "Cognitive Behavioral Therapy",
        "description": (
            "Experienced therapist specializing in anxiety and depression treatment. "
            "Licensed with 10+ years of experience."
        ),
        "hourly_rate": Decimal("150"),
        "availability": ["Mon 10:00", "Tue 14:00", "Wed 16:00", "Thu 11:00", "Fri 15:00"],
        "rating": 4.8,
        "image_url": "https://images.unsplash.com/photo-1559839734-2b71ea197ec2?auto=format&fit=crop&w=300&q=80",
    },
    {
        "name": "Dr. Michael Chen",
        "specialization": "Family Therapy",
        "description": (
            "Family therapist with expertise in relationship counseling and family dynamics. "
            "Focus on communication and conflict resolution."
        ),
        "hourly_rate": Decimal("180"),
        "availability": ["Mon 13:00", "Tue 15:00", "Wed 10:00", "Thu 14:00", "Fri 16:00"],
        "rating": 4.9,
        "image_url": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?auto=format&fit=crop&w=300&q=80",
    },
    {
        "name": "Dr. Emily Rodriguez",
        "specialization": "Trauma Therapy",
        "description": (
            "Specialized in trauma-informed care and EMDR therapy. "
            "Helping clients heal from past experiences and build resilience."
        ),
        "hourly_rate": Decimal("200"),
        "availability": ["Mon 09:00", "Tue 11:00", "Wed 14:00", "Thu 16:00", "Fri 10:00"],
        "rating": 4.7,
        "image_url": "https://images.unsplash.com/photo-1573496359142-b8d87734a5a2?auto=format&fit=crop&w=300&q=80",
    },
]

# (therapist index, date, time, status, payment status, amount, duration)
DEMO_BOOKINGS: list[tuple] = [
    (0, date(2024, 3, 25), "10:00 AM", "scheduled", "confirmed", Decimal("150"), 60),
    (1, date(2024, 3, 20), "2:30 PM", "completed", "confirmed", Decimal("180"), 90),
    (2, date(2024, 3, 28), "4:00 PM", "scheduled", "pending", Decimal("200"), 60),
]


def seed_demo_data() -> bool:
    """Populate an empty database with the demo records.

    Returns ``True`` when records were inserted.
    """

    if db.session.query(Therapist.id).first() is not None:
        return False

    therapists = [Therapist(**entry) for entry in DEMO_THERAPISTS]
    db.session.add_all(therapists)
    db.session.flush()

    for index, session_date, session_time, status, payment_status, amount, duration in DEMO_BOOKINGS:
        db.session.add(
            Booking(
                therapist_id=therapists[index].id,
                session_date=session_date,
                session_time=session_time,
                status=status,
                payment_status=payment_status,
                amount=amount,
                duration=duration,
            )
        )

    db.session.commit()
    return True
