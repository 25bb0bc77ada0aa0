"""Scenic route planning: baseline, discovery, scoring and variant selection."""

from .selector import (
    RouteVariantSelector,
    build_variant,
    order_along_path,
    time_increase_percent,
    within_budget,
)
from .service import GenerationResult, ScenicRouteService, create_route_service

__all__ = [
    "GenerationResult",
    "RouteVariantSelector",
    "ScenicRouteService",
    "build_variant",
    "create_route_service",
    "order_along_path",
    "time_increase_percent",
    "within_budget",
]
