"""Route variant selection under a time-increase budget.

Greedy accept/reject over the ranked POI list:

1. Take POIs in rank order (score desc, closer to the path, discovery order)
2. Ask the directions service for a route through the accepted stops plus
   the candidate
3. Keep the candidate if the new duration stays within
   ``baseline * (1 + max_time_increase_percent / 100)``, otherwise skip it
4. Stop at ``max_stops`` or when the list runs out

This is a heuristic, not an optimal knapsack/TSP solver: an early high-score
POI that eats most of the budget can crowd out a better combination of
cheaper stops. A bounded branch-and-bound or beam search over waypoint
subsets could replace ``select`` without changing its contract.

When fewer than ``min_stops`` fit, the variant with as many stops as fit is
returned; with none, the baseline itself is the result.
"""

import logging

from scenic_route.models import (
    Coordinates,
    NoViableRouteError,
    RoutePath,
    RoutePreferences,
    RouteVariant,
    ScoredPOI,
    UpstreamUnavailableError,
)
from scenic_route.services.directions import DirectionsResult, DirectionsService

logger = logging.getLogger(__name__)


def within_budget(duration: float, baseline: float, max_increase_percent: float) -> bool:
    """True if ``duration`` is at most ``max_increase_percent`` over ``baseline``."""
    # Scaled by 100 to stay exact for whole-number budgets
    return duration * 100 <= baseline * (100 + max_increase_percent)


def time_increase_percent(duration: float, baseline: float) -> float:
    if baseline <= 0:
        return 0.0
    return round(max(0.0, (duration - baseline) / baseline * 100), 2)


def order_along_path(pois: list[ScoredPOI]) -> list[ScoredPOI]:
    """Order stops by where they sit along the baseline so the route doesn't zig-zag."""
    return sorted(
        pois,
        key=lambda p: (p.path_segment_index, p.sample_index, p.discovery_order),
    )


def build_variant(
    result: DirectionsResult,
    baseline_duration: float,
    pois: list[ScoredPOI],
) -> RouteVariant:
    """Turn a directions result into a RouteVariant."""
    points = result.decode_path()
    return RouteVariant(
        path=RoutePath(
            coordinates=tuple(points),
            distance_meters=result.distance_meters,
            duration_seconds=result.duration_seconds,
        ),
        pois=pois,
        instructions=result.instructions,
        total_distance_meters=result.distance_meters,
        total_duration_seconds=result.duration_seconds,
        baseline_duration_seconds=baseline_duration,
        time_increase_percent=time_increase_percent(result.duration_seconds, baseline_duration),
    )


class RouteVariantSelector:
    """Greedy budget-constrained waypoint selection."""

    def __init__(self, directions: DirectionsService) -> None:
        self._directions = directions

    async def select(
        self,
        origin: Coordinates,
        destination: Coordinates,
        baseline: DirectionsResult,
        ranked: list[ScoredPOI],
        preferences: RoutePreferences,
    ) -> RouteVariant:
        baseline_duration = baseline.duration_seconds
        budget = preferences.max_time_increase_percent
        limit = baseline_duration * (1 + budget / 100)
        logger.info(
            f"[ROUTE] Selecting up to {preferences.max_stops} stops from {len(ranked)} POIs "
            f"(baseline={baseline_duration:.0f}s, limit={limit:.0f}s)"
        )

        accepted: list[ScoredPOI] = []
        best = baseline

        for poi in ranked:
            if len(accepted) >= preferences.max_stops:
                break

            trial = order_along_path([*accepted, poi])
            try:
                result = await self._directions.get_directions(
                    origin, destination, [p.coordinates for p in trial]
                )
            except (NoViableRouteError, UpstreamUnavailableError) as e:
                logger.info(f"[ROUTE] Skipping {poi.name}: no route through it ({e})")
                continue

            if within_budget(result.duration_seconds, baseline_duration, budget):
                accepted = trial
                best = result
                logger.info(
                    f"[ROUTE] Accepted {poi.name} (score={poi.score}, "
                    f"duration={result.duration_seconds:.0f}s)"
                )
            else:
                logger.info(
                    f"[ROUTE] Rejected {poi.name}: {result.duration_seconds:.0f}s exceeds {limit:.0f}s"
                )

        if len(accepted) < preferences.min_stops:
            logger.warning(
                f"[ROUTE] Only {len(accepted)} of the requested minimum {preferences.min_stops} "
                f"stops fit within a {budget:g}% time increase"
            )

        return build_variant(best, baseline_duration, accepted)
