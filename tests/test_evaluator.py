"""Tests for CriteriaEvaluator."""

import pytest

from hogarscan.analysis.evaluator import (
    CriteriaEvaluator,
    estimate_commute_minutes,
    haversine_distance,
)
from hogarscan.models.criteria import Preferences, SearchCriteria
from hogarscan.models.property import Coordinates, PropertyLocation

WORK = Coordinates(lat=4.6765, lng=-74.0482)  # Calle 93, Bogotá
NEAR_WORK = Coordinates(lat=4.6951, lng=-74.0307)
SOACHA = Coordinates(lat=4.5794, lng=-74.2168)


def location(neighborhood: str, city: str = "Bogotá", **kwargs) -> PropertyLocation:
    return PropertyLocation(
        address=f"{neighborhood}, {city}", neighborhood=neighborhood, city=city, **kwargs
    )


class TestHardRequirements:
    """Rent, 3-4 rooms, 70-110 m2, up to 3.5M total, Usaquén, Bogotá."""

    def test_matching_listing(self, evaluator, make_listing):
        scored = evaluator.evaluate(make_listing())

        assert scored.hard_match
        assert scored.failed_requirement is None

    @pytest.mark.parametrize(
        "overrides,failed",
        [
            ({"rooms": 2}, "rooms"),
            ({"rooms": 5}, "rooms"),
            ({"area": 65}, "area"),
            ({"area": 120}, "area"),
            ({"price": 3_200_000, "admin_fee": 400_000}, "total_price"),
            ({"property_type": "Casa"}, "property_types"),
            ({"location": location("Chapinero")}, "neighborhoods"),
            ({"location": location("Usaquén", city="Medellín")}, "city"),
        ],
    )
    def test_violations(self, evaluator, make_listing, overrides, failed):
        scored = evaluator.evaluate(make_listing(**overrides))

        assert not scored.hard_match
        assert scored.failed_requirement == failed

    def test_bounds_inclusive(self, evaluator, make_listing):
        listing = make_listing(rooms=4, area=110, price=3_500_000)

        assert evaluator.evaluate(listing).hard_match

    def test_unknown_value_fails_minimum(self, evaluator, make_listing):
        """Area left at 0 by extraction cannot satisfy min_area."""
        scored = evaluator.evaluate(make_listing(area=0))

        assert scored.failed_requirement == "area"

    def test_unknown_value_passes_open_range(self, make_listing):
        evaluator = CriteriaEvaluator(SearchCriteria.from_filters(max_rooms=3))

        assert evaluator.evaluate(make_listing(rooms=0)).hard_match

    def test_case_insensitive(self, evaluator, make_listing):
        listing = make_listing(
            property_type="APARTAMENTO",
            location=PropertyLocation(
                address="USAQUÉN,  BOGOTÁ", neighborhood="usaquén", city="BOGOTÁ"
            ),
        )

        assert evaluator.evaluate(listing).hard_match

    def test_accents_are_significant(self, evaluator, make_listing):
        listing = make_listing(
            location=PropertyLocation(
                address="Usaquen, Bogotá", neighborhood="Usaquen", city="Bogotá"
            ),
        )

        assert evaluator.evaluate(listing).failed_requirement == "neighborhoods"

    def test_decomposed_accents_match(self, evaluator, make_listing):
        decomposed = "Usaque\u0301n"
        listing = make_listing(
            location=PropertyLocation(
                address=f"{decomposed}, Bogotá", neighborhood=decomposed, city="Bogotá"
            ),
        )

        assert evaluator.evaluate(listing).hard_match

    def test_neighborhood_found_in_address(self, evaluator, make_listing):
        listing = make_listing(
            location=PropertyLocation(
                address="Calle 127 # 15-20, Usaquén, Bogotá",
                neighborhood="Calle 127 # 15-20",
                city="Bogotá",
            )
        )

        assert evaluator.evaluate(listing).hard_match

    def test_admin_overage_allowed(self, usaquen_criteria, make_listing):
        usaquen_criteria.hard.allow_admin_overage = True
        listing = make_listing(price=3_200_000, admin_fee=400_000)

        assert CriteriaEvaluator(usaquen_criteria).evaluate(listing).hard_match

    def test_no_requirements_match_everything(self, make_listing):
        evaluator = CriteriaEvaluator(SearchCriteria())

        assert evaluator.evaluate(make_listing(rooms=0, area=0, price=0)).hard_match


class TestPreferences:
    """Test preference scoring."""

    def test_no_preferences_score_zero(self, evaluator, make_listing):
        scored = evaluator.evaluate(make_listing(amenities=["Piscina"]))

        assert scored.score == 0
        assert scored.preference_matches == []

    def test_feature_groups(self, make_listing):
        criteria = SearchCriteria(
            preferences=Preferences(
                amenities=["gimnasio", "bbq"],
                wet_areas=["sauna"],
                sports=["padel"],
                preferred_neighborhoods=["Usaquén"],
            )
        )
        listing = make_listing(amenities=["Gimnasio", "Sauna y Turco", "Cancha de Pádel"])

        scored = CriteriaEvaluator(criteria).evaluate(listing)

        assert scored.score == pytest.approx(3.1)
        assert scored.preference_matches == [
            "gimnasio",
            "sauna",
            "padel",
            "preferred_neighborhood",
        ]

    def test_custom_weights(self, make_listing):
        preferences = Preferences(amenities=["piscina"])
        preferences.weights.amenities = 2.5
        criteria = SearchCriteria(preferences=preferences)

        scored = CriteriaEvaluator(criteria).evaluate(make_listing(amenities=["Piscina"]))

        assert scored.score == pytest.approx(2.5)

    def test_failing_listing_still_scored(self, usaquen_criteria, make_listing):
        usaquen_criteria.preferences.amenities = ["piscina"]
        scored = CriteriaEvaluator(usaquen_criteria).evaluate(
            make_listing(rooms=1, amenities=["Piscina"])
        )

        assert not scored.hard_match
        assert scored.score == pytest.approx(0.5)

    def test_commute_within_limit(self, make_listing):
        criteria = SearchCriteria(
            preferences=Preferences(max_commute_minutes=30, work_location=WORK)
        )
        near = make_listing(location=location("Usaquén", coordinates=NEAR_WORK))
        far = make_listing(location=location("Soacha", city="Soacha", coordinates=SOACHA))
        unknown = make_listing()

        evaluator = CriteriaEvaluator(criteria)

        assert evaluator.evaluate(near).preference_matches == ["commute"]
        assert evaluator.evaluate(far).preference_matches == []
        assert evaluator.evaluate(unknown).score == 0


class TestGeo:
    def test_haversine_bogota_medellin(self):
        meters = haversine_distance(4.7110, -74.0721, 6.2442, -75.5812)

        assert 230_000 < meters < 250_000

    def test_commute_estimate(self):
        minutes = estimate_commute_minutes(WORK, NEAR_WORK)

        assert 5 < minutes < 15
