"""POI scoring: pure composite score and ranking."""

from .service import (
    CATEGORY_WEIGHTS,
    UNKNOWN_CATEGORY_WEIGHT,
    category_component,
    normalize_category,
    popularity_component,
    proximity_component,
    rank_pois,
    rating_component,
    score_candidates,
    score_poi,
)

__all__ = [
    "CATEGORY_WEIGHTS",
    "UNKNOWN_CATEGORY_WEIGHT",
    "category_component",
    "normalize_category",
    "popularity_component",
    "proximity_component",
    "rank_pois",
    "rating_component",
    "score_candidates",
    "score_poi",
]
