"""POI scoring.

Every candidate gets a composite desirability score in [0, 100]:

    rating       (rating / 5) * 25                      0 when unrated
    popularity   min(ln(reviews) / ln(1000), 1) * 20    0 when no reviews
    category     lookup table, 20 (tourist attraction) down to 8 (unknown)
    proximity    10 / 8 / 5 / 2 for <=500 m / <=1 km / <=2 km / farther
    uniqueness   7.5 constant
    historical   5 constant

The uniqueness and historical-significance terms are placeholders for a
future signal. They lift every POI by the same amount and never reorder
candidates.

``score_poi`` is the single implementation; storage layers that need a score
call it instead of re-implementing the formula.
"""

import math
from typing import Optional

from scenic_route.models import CandidatePOI, ScoredPOI
from scenic_route.utils.geo import point_to_path_distance

RATING_WEIGHT = 25.0
POPULARITY_WEIGHT = 20.0
POPULARITY_SATURATION_REVIEWS = 1000

CATEGORY_WEIGHTS = {
    "tourist_attraction": 20.0,
    "museum": 18.0,
    "historical_site": 16.0,
    "landmark": 15.0,
    "park": 12.0,
    "restaurant": 10.0,
}
UNKNOWN_CATEGORY_WEIGHT = 8.0

# Provider type names that map onto a table category
CATEGORY_ALIASES = {
    "attraction": "tourist_attraction",
    "art_gallery": "museum",
    "gallery": "museum",
    "historic": "historical_site",
    "historic_site": "historical_site",
    "castle": "historical_site",
    "ruins": "historical_site",
    "church": "historical_site",
    "place_of_worship": "historical_site",
    "monument": "landmark",
    "memorial": "landmark",
    "tower": "landmark",
    "national_park": "park",
    "nature_reserve": "park",
    "natural_feature": "park",
    "campground": "park",
}

# (upper bound in meters, points), checked in order
PROXIMITY_STEPS = (
    (500.0, 10.0),
    (1000.0, 8.0),
    (2000.0, 5.0),
)
PROXIMITY_FLOOR = 2.0

UNIQUENESS_BASELINE = 7.5
HISTORICAL_BASELINE = 5.0


def normalize_category(category: Optional[str]) -> str:
    """Map a provider category onto a key of CATEGORY_WEIGHTS, or ``unknown``."""
    if not category:
        return "unknown"
    key = category.strip().lower().replace(" ", "_").replace("-", "_")
    if key in CATEGORY_WEIGHTS:
        return key
    return CATEGORY_ALIASES.get(key, "unknown")


def rating_component(rating: Optional[float]) -> float:
    if rating is None or rating <= 0:
        return 0.0
    return min(rating, 5.0) / 5.0 * RATING_WEIGHT


def popularity_component(review_count: Optional[int]) -> float:
    # ln(1) == 0, so a single review contributes nothing
    if review_count is None or review_count <= 0:
        return 0.0
    ratio = math.log(review_count) / math.log(POPULARITY_SATURATION_REVIEWS)
    return min(ratio, 1.0) * POPULARITY_WEIGHT


def category_component(category: Optional[str]) -> float:
    return CATEGORY_WEIGHTS.get(normalize_category(category), UNKNOWN_CATEGORY_WEIGHT)


def proximity_component(distance_meters: float) -> float:
    for limit, points in PROXIMITY_STEPS:
        if distance_meters <= limit:
            return points
    return PROXIMITY_FLOOR


def score_poi(
    rating: Optional[float],
    review_count: Optional[int],
    category: Optional[str],
    distance_meters: float,
) -> int:
    """Composite score in [0, 100]. Pure and defined for every input."""
    total = (
        rating_component(rating)
        + popularity_component(review_count)
        + category_component(category)
        + proximity_component(distance_meters)
        + UNIQUENESS_BASELINE
        + HISTORICAL_BASELINE
    )
    # Round half up
    return max(0, min(100, math.floor(total + 0.5)))


def score_candidates(
    candidates: list[CandidatePOI],
    path: list[tuple[float, float]],
) -> list[ScoredPOI]:
    """Score every candidate against the baseline path, keeping input order."""
    scored = []
    for candidate in candidates:
        projection = point_to_path_distance(candidate.coordinates.as_tuple(), path)
        scored.append(ScoredPOI(
            **candidate.model_dump(),
            score=score_poi(
                candidate.rating,
                candidate.review_count,
                candidate.category,
                projection.distance_meters,
            ),
            distance_to_path_meters=projection.distance_meters,
            path_segment_index=projection.segment_index,
        ))
    return scored


def rank_pois(scored: list[ScoredPOI]) -> list[ScoredPOI]:
    """Order by score descending, then closer to the path, then discovery order."""
    return sorted(
        scored,
        key=lambda p: (-p.score, p.distance_to_path_meters, p.sample_index, p.discovery_order),
    )
