"""Search criteria: hard requirements and soft preferences."""

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .property import Coordinates, Operation


class InvalidCriteriaError(ValueError):
    """Raised for malformed search criteria or paging arguments.

    This is the only error a search surfaces to its caller; it is raised
    before any source is contacted.
    """


class NumericRange(BaseModel):
    """Inclusive range; either bound may be left open."""

    min: Optional[float] = None
    max: Optional[float] = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "NumericRange":
        problem = self.problem()
        if problem:
            raise ValueError(problem)
        return self

    def problem(self) -> Optional[str]:
        """Describe why the range is impossible, or None if it is fine."""
        if self.min is not None and self.max is not None and self.min > self.max:
            return f"minimum {self.min:g} is greater than maximum {self.max:g}"
        return None

    @property
    def is_set(self) -> bool:
        return self.min is not None or self.max is not None

    def contains(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


class LocationCriteria(BaseModel):
    city: Optional[str] = None
    neighborhoods: list[str] = Field(default_factory=list)

    @field_validator("neighborhoods")
    @classmethod
    def _drop_blank(cls, value: list[str]) -> list[str]:
        return [n.strip() for n in value if n and n.strip()]


class HardRequirements(BaseModel):
    """Mandatory filters. Unset fields impose no constraint."""

    operation: Operation = Operation.RENT
    property_types: list[str] = Field(default_factory=list)
    location: LocationCriteria = Field(default_factory=LocationCriteria)

    rooms: NumericRange = Field(default_factory=NumericRange)
    bathrooms: NumericRange = Field(default_factory=NumericRange)
    parking: NumericRange = Field(default_factory=NumericRange)
    area: NumericRange = Field(default_factory=NumericRange)
    total_price: NumericRange = Field(default_factory=NumericRange)
    stratum: NumericRange = Field(default_factory=NumericRange)

    # Check the price ceiling against the base price, letting the admin fee
    # push the total above it.
    allow_admin_overage: bool = False

    RANGE_FIELDS: ClassVar[tuple[str, ...]] = (
        "rooms",
        "bathrooms",
        "parking",
        "area",
        "total_price",
        "stratum",
    )

    def ranges(self) -> dict[str, NumericRange]:
        return {name: getattr(self, name) for name in self.RANGE_FIELDS}

    def active_filters(self) -> dict[str, Any]:
        """Populated requirements keyed by the filter names schemas declare.

        Range bounds are reported as ``min_<field>`` / ``max_<field>``, with
        ``total_price`` shortened to ``price``.
        """
        filters: dict[str, Any] = {"operation": self.operation.value}
        if self.property_types:
            filters["property_types"] = list(self.property_types)
        if self.location.city:
            filters["city"] = self.location.city
        if self.location.neighborhoods:
            filters["neighborhoods"] = list(self.location.neighborhoods)
        for name, value_range in self.ranges().items():
            key = "price" if name == "total_price" else name
            if value_range.min is not None:
                filters[f"min_{key}"] = value_range.min
            if value_range.max is not None:
                filters[f"max_{key}"] = value_range.max
        return filters


class PreferenceWeights(BaseModel):
    """Points added per satisfied preference."""

    amenities: float = Field(default=0.5, ge=0)
    wet_areas: float = Field(default=1.0, ge=0)
    sports: float = Field(default=1.0, ge=0)
    neighborhood: float = Field(default=0.6, ge=0)
    commute: float = Field(default=1.0, ge=0)


class Preferences(BaseModel):
    """Advisory criteria. They only move listings up or down the ranking."""

    max_commute_minutes: Optional[float] = Field(default=None, gt=0)
    work_location: Optional[Coordinates] = None
    amenities: list[str] = Field(default_factory=list)
    preferred_neighborhoods: list[str] = Field(default_factory=list)
    wet_areas: list[str] = Field(default_factory=list)  # jacuzzi, sauna, turco
    sports: list[str] = Field(default_factory=list)  # padel, tenis, gimnasio
    weights: PreferenceWeights = Field(default_factory=PreferenceWeights)


class SearchCriteria(BaseModel):
    """A complete query.

    Example:
        criteria = SearchCriteria.from_filters(
            operation="arriendo",
            property_types=["apartamento"],
            min_rooms=3,
            max_rooms=4,
            max_total_price=3_500_000,
            city="Bogotá",
            neighborhoods=["Usaquén"],
        )
    """

    hard: HardRequirements = Field(default_factory=HardRequirements)
    preferences: Preferences = Field(default_factory=Preferences)
    sources: list[str] = Field(
        default_factory=list, description="Restrict the search to these source ids"
    )

    model_config = {"validate_assignment": True}

    def ensure_valid(self) -> None:
        """Re-check every range.

        Validation already runs on construction; this catches criteria built
        with ``model_construct`` or mutated bounds.

        Raises:
            InvalidCriteriaError: If any explicit minimum exceeds its maximum.
        """
        for name, value_range in self.hard.ranges().items():
            problem = value_range.problem()
            if problem:
                raise InvalidCriteriaError(f"{name}: {problem}")

    @classmethod
    def from_filters(
        cls,
        operation: str = "arriendo",
        property_types: Optional[list[str]] = None,
        city: Optional[str] = None,
        neighborhoods: Optional[list[str]] = None,
        min_rooms: Optional[float] = None,
        max_rooms: Optional[float] = None,
        min_bathrooms: Optional[float] = None,
        max_bathrooms: Optional[float] = None,
        min_parking: Optional[float] = None,
        max_parking: Optional[float] = None,
        min_area: Optional[float] = None,
        max_area: Optional[float] = None,
        min_total_price: Optional[float] = None,
        max_total_price: Optional[float] = None,
        min_stratum: Optional[float] = None,
        max_stratum: Optional[float] = None,
        allow_admin_overage: bool = False,
        preferences: Optional[Preferences] = None,
        sources: Optional[list[str]] = None,
    ) -> "SearchCriteria":
        """Build criteria from the flat field set search forms submit.

        Raises:
            InvalidCriteriaError: If a minimum exceeds its maximum.
        """
        bounds = {
            "rooms": (min_rooms, max_rooms),
            "bathrooms": (min_bathrooms, max_bathrooms),
            "parking": (min_parking, max_parking),
            "area": (min_area, max_area),
            "total_price": (min_total_price, max_total_price),
            "stratum": (min_stratum, max_stratum),
        }
        for name, (low, high) in bounds.items():
            if low is not None and high is not None and low > high:
                raise InvalidCriteriaError(
                    f"{name}: minimum {low:g} is greater than maximum {high:g}"
                )

        try:
            op = Operation(operation)
        except ValueError:
            raise InvalidCriteriaError(f"unknown operation: {operation!r}")

        hard = HardRequirements(
            operation=op,
            property_types=property_types or [],
            location=LocationCriteria(city=city, neighborhoods=neighborhoods or []),
            allow_admin_overage=allow_admin_overage,
            **{
                name: NumericRange(min=low, max=high)
                for name, (low, high) in bounds.items()
            },
        )
        return cls(
            hard=hard,
            preferences=preferences or Preferences(),
            sources=sources or [],
        )
