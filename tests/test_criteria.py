"""Tests for search criteria models."""

import pytest
from pydantic import ValidationError

from hogarscan.models.criteria import (
    HardRequirements,
    InvalidCriteriaError,
    NumericRange,
    SearchCriteria,
)
from hogarscan.models.property import Operation


class TestNumericRange:
    def test_open_range_contains_everything(self):
        value_range = NumericRange()

        assert not value_range.is_set
        assert value_range.contains(0)
        assert value_range.contains(10**9)

    def test_bounds_inclusive(self):
        value_range = NumericRange(min=3, max=4)

        assert value_range.contains(3)
        assert value_range.contains(4)
        assert not value_range.contains(2)
        assert not value_range.contains(5)

    def test_equal_bounds_allowed(self):
        assert NumericRange(min=2, max=2).contains(2)

    def test_min_above_max_rejected(self):
        with pytest.raises(ValidationError):
            NumericRange(min=5, max=3)


class TestFromFilters:
    """Test building criteria from flat form fields."""

    def test_ranges_populated(self, usaquen_criteria):
        hard = usaquen_criteria.hard

        assert hard.operation == Operation.RENT
        assert hard.rooms.min == 3
        assert hard.rooms.max == 4
        assert hard.total_price.max == 3_500_000
        assert hard.location.neighborhoods == ["Usaquén"]

    @pytest.mark.parametrize(
        "field", ["rooms", "bathrooms", "parking", "area", "total_price", "stratum"]
    )
    def test_min_above_max(self, field):
        with pytest.raises(InvalidCriteriaError, match=field):
            SearchCriteria.from_filters(**{f"min_{field}": 5, f"max_{field}": 4})

    def test_invalid_criteria_is_value_error(self):
        with pytest.raises(ValueError):
            SearchCriteria.from_filters(min_rooms=4, max_rooms=2)

    def test_unknown_operation(self):
        with pytest.raises(InvalidCriteriaError):
            SearchCriteria.from_filters(operation="permuta")

    def test_blank_neighborhoods_dropped(self):
        criteria = SearchCriteria.from_filters(neighborhoods=["Usaquén", " ", ""])

        assert criteria.hard.location.neighborhoods == ["Usaquén"]


class TestActiveFilters:
    def test_only_populated_fields(self, usaquen_criteria):
        filters = usaquen_criteria.hard.active_filters()

        assert filters == {
            "operation": "arriendo",
            "property_types": ["apartamento"],
            "city": "Bogotá",
            "neighborhoods": ["Usaquén"],
            "min_rooms": 3,
            "max_rooms": 4,
            "min_area": 70,
            "max_area": 110,
            "max_price": 3_500_000,
        }

    def test_defaults(self):
        assert HardRequirements().active_filters() == {"operation": "arriendo"}


class TestEnsureValid:
    def test_valid_criteria_pass(self, usaquen_criteria):
        usaquen_criteria.ensure_valid()

    def test_unvalidated_range_caught(self):
        hard = HardRequirements.model_construct(
            rooms=NumericRange.model_construct(min=4, max=2)
        )
        criteria = SearchCriteria.model_construct(hard=hard)

        with pytest.raises(InvalidCriteriaError, match="rooms"):
            criteria.ensure_valid()
