"""Therapist directory filtering."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol, Sequence, TypeVar

SPECIALIZATION_FACETS: tuple[str, ...] = ("all", "CBT", "Family Therapy", "Trauma", "Addiction")
DEFAULT_PRICE_RANGE: tuple[int, int] = (50, 300)


class TherapistLike(Protocol):
    name: str
    specialization: str
    description: str
    hourly_rate: Any


T = TypeVar("T", bound=TherapistLike)


@dataclass(slots=True)
class DirectoryFilters:
    """Filter inputs for the therapist directory."""

    specialization: str | None = "all"
    price_range: tuple[float, float] = DEFAULT_PRICE_RANGE
    query: str = ""

    @property
    def is_default(self) -> bool:
        return (
            _is_all(self.specialization)
            and tuple(self.price_range) == DEFAULT_PRICE_RANGE
            and not self.query
        )


def _is_all(specialization: str | None) -> bool:
    return specialization is None or specialization.strip().lower() in {"", "all"}


def matches_specialization(therapist: TherapistLike, specialization: str | None) -> bool:
    if _is_all(specialization):
        return True
    return specialization.strip().lower() in therapist.specialization.lower()


def matches_price(therapist: TherapistLike, price_range: Sequence[float]) -> bool:
    low, high = price_range
    return low <= float(therapist.hourly_rate) <= high


def matches_query(therapist: TherapistLike, query: str) -> bool:
    needle = (query or "").strip().lower()
    if not needle:
        return True
    return any(
        needle in (value or "").lower()
        for value in (therapist.name, therapist.specialization, therapist.description)
    )


def filter_therapists(
    therapists: Iterable[T],
    specialization: str | None = "all",
    price_range: Sequence[float] = DEFAULT_PRICE_RANGE,
    query: str = "",
) -> list[T]:
    """Return the therapists satisfying every filter, in their original order."""

    return [
        therapist
        for therapist in therapists
        if matches_specialization(therapist, specialization)
        and matches_price(therapist, price_range)
        and matches_query(therapist, query)
    ]


def parse_filters(
    args: Mapping[str, str],
    *,
    bounds: tuple[int, int] = DEFAULT_PRICE_RANGE,
) -> DirectoryFilters:
    """Build filters from query-string arguments.

    Malformed price bounds fall back to ``bounds``; values are clamped to
    ``bounds`` and swapped when reversed.
    """

    specialization = (args.get("specialization") or "all").strip() or "all"
    low = _parse_bound(args.get("min_price"), bounds[0], bounds)
    high = _parse_bound(args.get("max_price"), bounds[1], bounds)
    if low > high:
        low, high = high, low
    query = (args.get("q") or "").strip()
    return DirectoryFilters(specialization=specialization, price_range=(low, high), query=query)


def _parse_bound(raw: str | None, default: int, bounds: tuple[int, int]) -> float:
    if raw in (None, ""):
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    if value != value:  # NaN
        return default
    value = float(min(max(value, bounds[0]), bounds[1]))
    return int(value) if value.is_integer() else value
