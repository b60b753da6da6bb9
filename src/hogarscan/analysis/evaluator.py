"""Hard-requirement filtering and preference scoring.

Hard requirements exclude a listing outright; preferences only add points
used for ranking. Free-text comparisons (types, city, neighborhoods,
amenities) ignore case and surrounding whitespace but not accents, so
"USAQUÉN" matches "Usaquén" while "Usaquen" does not.
"""

import logging
import math
import unicodedata
from typing import Optional

from ..models.criteria import HardRequirements, Preferences, SearchCriteria
from ..models.property import CanonicalProperty, Coordinates, ScoredProperty

logger = logging.getLogger(__name__)

# Door-to-door average for Bogotá traffic, used for commute estimates
AVERAGE_URBAN_SPEED_KMH = 20.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in meters between two coordinates using the Haversine formula."""
    R = 6371000  # Earth radius in meters
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return R * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def estimate_commute_minutes(origin: Coordinates, destination: Coordinates) -> float:
    """Straight-line travel time at the average urban speed."""
    meters = haversine_distance(origin.lat, origin.lng, destination.lat, destination.lng)
    return meters / 1000 / AVERAGE_URBAN_SPEED_KMH * 60


def casefold_text(value: object) -> str:
    """Comparison form of free text: NFC, casefolded, whitespace collapsed."""
    text = unicodedata.normalize("NFC", str(value or ""))
    return " ".join(text.split()).casefold()


def matches_neighborhood(listing: CanonicalProperty, required: str) -> bool:
    """A neighborhood matches when it appears in the address or equals the barrio."""
    wanted = casefold_text(required)
    if not wanted:
        return False
    location = listing.location
    return wanted in casefold_text(location.address) or wanted == casefold_text(
        location.neighborhood
    )


class CriteriaEvaluator:
    """Evaluate listings against one SearchCriteria.

    Example:
        evaluator = CriteriaEvaluator(criteria)
        scored = [evaluator.evaluate(listing) for listing in listings]
        matches = [s for s in scored if s.hard_match]
    """

    def __init__(self, criteria: SearchCriteria):
        self.criteria = criteria

    # =========================================================================
    # Hard requirements
    # =========================================================================

    @staticmethod
    def first_violation(
        listing: CanonicalProperty, hard: HardRequirements
    ) -> Optional[str]:
        """Name of the first hard requirement the listing violates, or None.

        A field left at 0 because extraction failed is compared as 0, so a
        minimum above 0 rejects it.
        """
        if hard.property_types:
            wanted = {casefold_text(t) for t in hard.property_types}
            if casefold_text(listing.property_type) not in wanted:
                return "property_types"

        city = hard.location.city
        if city and casefold_text(city) != casefold_text(listing.location.city):
            return "city"

        if hard.location.neighborhoods and not any(
            matches_neighborhood(listing, n) for n in hard.location.neighborhoods
        ):
            return "neighborhoods"

        for name, value_range in hard.ranges().items():
            if not value_range.is_set:
                continue
            if name == "total_price":
                value = listing.total_price
                if hard.allow_admin_overage:
                    value = listing.price
            else:
                value = getattr(listing, name)
            if not value_range.contains(value):
                return name

        return None

    # =========================================================================
    # Preferences
    # =========================================================================

    @staticmethod
    def preference_points(
        listing: CanonicalProperty, preferences: Preferences
    ) -> tuple[float, list[str]]:
        """Score and the names of satisfied preferences."""
        weights = preferences.weights
        amenities = [casefold_text(a) for a in listing.amenities]
        score = 0.0
        matched: list[str] = []

        def has_feature(feature: str) -> bool:
            wanted = casefold_text(feature)
            return bool(wanted) and any(wanted in amenity for amenity in amenities)

        for group, weight in (
            (preferences.amenities, weights.amenities),
            (preferences.wet_areas, weights.wet_areas),
            (preferences.sports, weights.sports),
        ):
            for feature in group:
                if has_feature(feature):
                    score += weight
                    matched.append(feature)

        if any(matches_neighborhood(listing, n) for n in preferences.preferred_neighborhoods):
            score += weights.neighborhood
            matched.append("preferred_neighborhood")

        coordinates = listing.location.coordinates
        if (
            preferences.max_commute_minutes is not None
            and preferences.work_location is not None
            and coordinates is not None
        ):
            minutes = estimate_commute_minutes(coordinates, preferences.work_location)
            if minutes <= preferences.max_commute_minutes:
                score += weights.commute
                matched.append("commute")

        return round(max(score, 0.0), 2), matched

    def evaluate(self, listing: CanonicalProperty) -> ScoredProperty:
        """Hard-match flag plus preference score for one listing."""
        violation = self.first_violation(listing, self.criteria.hard)
        score, matched = self.preference_points(listing, self.criteria.preferences)
        if violation:
            logger.debug(f"{listing.id} fails {violation}")
        return ScoredProperty(
            listing=listing,
            score=score,
            hard_match=violation is None,
            preference_matches=matched,
            failed_requirement=violation,
        )

    def evaluate_all(self, listings: list[CanonicalProperty]) -> list[ScoredProperty]:
        return [self.evaluate(listing) for listing in listings]
