"""Tests for therapist directory filtering and the directory pages."""
from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from itertools import product
import unittest

from theralink.app import create_app
from theralink.app.services.directory import (
    SPECIALIZATION_FACETS,
    filter_therapists,
    matches_price,
    matches_query,
    matches_specialization,
    parse_filters,
)
from theralink.extensions import db


@dataclass
class FakeTherapist:
    name: str
    specialization: str
    description: str
    hourly_rate: float


ROSTER = [
    FakeTherapist("Dr. Ada Park", "Family Therapy", "Couples and family work.", 120),
    FakeTherapist("Dr. Ben Ortiz", "Trauma Therapy", "EMDR and trauma recovery.", 210),
    FakeTherapist("Dr. Cleo Grant", "Addiction Counseling", "Recovery from substance use.", 90),
    FakeTherapist("Dr. Dan Reyes", "Family Therapy", "Adolescent trauma in families.", 300),
    FakeTherapist("Dr. Eve Stone", "Cognitive Behavioral Therapy", "Anxiety treatment.", 50),
]


class DirectoryFilterTests(unittest.TestCase):
    """Pure filtering behaviour."""

    def test_result_is_ordered_subsequence_matching_every_predicate(self) -> None:
        specializations = list(SPECIALIZATION_FACETS) + [None, "therapy"]
        ranges = [(50, 300), (100, 250), (300, 300), (60, 80)]
        queries = ["", "trauma", "DR.", "nobody"]

        for specialization, price_range, query in product(specializations, ranges, queries):
            result = filter_therapists(ROSTER, specialization, price_range, query)
            positions = [ROSTER.index(therapist) for therapist in result]
            self.assertEqual(positions, sorted(positions))
            for therapist in result:
                self.assertTrue(matches_specialization(therapist, specialization))
                self.assertTrue(matches_price(therapist, price_range))
                self.assertTrue(matches_query(therapist, query))
            excluded = [therapist for therapist in ROSTER if therapist not in result]
            for therapist in excluded:
                self.assertFalse(
                    matches_specialization(therapist, specialization)
                    and matches_price(therapist, price_range)
                    and matches_query(therapist, query)
                )

    def test_specialization_match_is_case_insensitive_substring(self) -> None:
        result = filter_therapists(ROSTER, specialization="family")
        self.assertEqual([t.name for t in result], ["Dr. Ada Park", "Dr. Dan Reyes"])

    def test_query_searches_description(self) -> None:
        result = filter_therapists(ROSTER, query="Trauma")
        self.assertEqual([t.name for t in result], ["Dr. Ben Ortiz", "Dr. Dan Reyes"])

    def test_price_bounds_are_inclusive(self) -> None:
        result = filter_therapists(ROSTER, price_range=(50, 120))
        self.assertEqual([t.name for t in result], ["Dr. Ada Park", "Dr. Cleo Grant", "Dr. Eve Stone"])

    def test_parse_filters_falls_back_and_clamps(self) -> None:
        filters = parse_filters({"min_price": "abc", "max_price": "900", "q": "  anxiety "})
        self.assertEqual(filters.specialization, "all")
        self.assertEqual(filters.price_range, (50, 300))
        self.assertEqual(filters.query, "anxiety")

        swapped = parse_filters({"min_price": "250", "max_price": "100"})
        self.assertEqual(swapped.price_range, (100, 250))
        self.assertFalse(swapped.is_default)

        clamped = parse_filters({"min_price": "10", "max_price": "120.5"})
        self.assertEqual(clamped.price_range, (50, 120.5))


class DirectoryPageTests(unittest.TestCase):
    """Directory page and API against the seeded therapists."""

    def setUp(self) -> None:
        self.app = create_app("testing")
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def test_trauma_filter_returns_emily_rodriguez(self) -> None:
        response = self.client.get("/api/therapists", query_string={"specialization": "Trauma"})
        self.assertEqual(response.status_code, HTTPStatus.OK)
        data = response.get_json()
        assert data is not None
        self.assertEqual(data["count"], 1)
        self.assertEqual(data["therapists"][0]["name"], "Dr. Emily Rodriguez")

    def test_price_and_search_filters_combine(self) -> None:
        response = self.client.get(
            "/api/therapists", query_string={"max_price": "180", "q": "family"}
        )
        data = response.get_json()
        assert data is not None
        self.assertEqual([t["name"] for t in data["therapists"]], ["Dr. Michael Chen"])
        self.assertEqual(data["filters"]["max_price"], 180)

    def test_page_lists_all_seeded_therapists(self) -> None:
        response = self.client.get("/therapists")
        self.assertEqual(response.status_code, HTTPStatus.OK)
        body = response.get_data(as_text=True)
        self.assertIn("3 therapists found", body)
        self.assertIn("Dr. Sarah Johnson", body)
        self.assertIn("/booking-confirmation?therapistId=1", body)

    def test_page_shows_empty_state_with_reset(self) -> None:
        response = self.client.get("/therapists", query_string={"q": "hypnosis"})
        body = response.get_data(as_text=True)
        self.assertIn("0 therapists found", body)
        self.assertIn("No therapists found matching your criteria.", body)
        self.assertIn("Reset filters", body)

    def test_out_of_range_prices_are_clamped_on_page_and_api(self) -> None:
        response = self.client.get("/therapists", query_string={"max_price": "900"})
        self.assertEqual(response.status_code, HTTPStatus.OK)
        self.assertIn("3 therapists found", response.get_data(as_text=True))

        response = self.client.get("/api/therapists", query_string={"min_price": "10"})
        self.assertEqual(response.status_code, HTTPStatus.OK)
        data = response.get_json()
        assert data is not None
        self.assertEqual(data["filters"]["min_price"], 50)
        self.assertEqual(data["count"], 3)

    def test_page_form_keeps_specialization_while_searching(self) -> None:
        body = self.client.get(
            "/therapists", query_string={"specialization": "Trauma"}
        ).get_data(as_text=True)
        self.assertIn('<input type="hidden" name="specialization" value="Trauma">', body)

        response = self.client.get(
            "/therapists", query_string={"specialization": "Trauma", "q": "EMDR"}
        )
        body = response.get_data(as_text=True)
        self.assertIn("1 therapist found", body)
        self.assertIn("Dr. Emily Rodriguez", body)
        self.assertIn('<input type="hidden" name="specialization" value="Trauma">', body)
        self.assertIn('name="q" value="EMDR"', body)

    def test_clicked_facet_overrides_carried_specialization(self) -> None:
        response = self.client.get(
            "/therapists", query_string="specialization=Family&specialization=Trauma"
        )
        body = response.get_data(as_text=True)
        self.assertIn("1 therapist found", body)
        self.assertIn("Dr. Michael Chen", body)

    def test_unknown_therapist_returns_not_found(self) -> None:
        response = self.client.get("/api/therapists/999")
        self.assertEqual(response.status_code, HTTPStatus.NOT_FOUND)


if __name__ == "__main__":
    unittest.main()
