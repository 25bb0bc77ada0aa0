"""Generation progress tracking."""

from .service import (
    ACCEPTED,
    BASELINE_READY,
    COMPLETE,
    POIS_READY,
    ProgressTracker,
    estimated_completion_seconds,
    partial_results,
)

__all__ = [
    "ACCEPTED",
    "BASELINE_READY",
    "COMPLETE",
    "POIS_READY",
    "ProgressTracker",
    "estimated_completion_seconds",
    "partial_results",
]
