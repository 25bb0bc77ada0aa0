"""Unit tests for the generation progress state machine."""

from datetime import timedelta

import pytest

from fakes import FailingStore
from scenic_route.models import (
    GenerationState,
    GenerationStatus,
    InvalidTransitionError,
    UpstreamUnavailableError,
)
from scenic_route.services.progress import (
    ACCEPTED,
    BASELINE_READY,
    POIS_READY,
    ProgressTracker,
    estimated_completion_seconds,
    partial_results,
)
from scenic_route.services.store import InMemoryRouteStore


class FlakyStore(InMemoryRouteStore):
    """Accepts the first save, then fails every write."""

    def __init__(self) -> None:
        super().__init__()
        self.saves = 0

    async def save_state(self, state: GenerationState, ttl_seconds: int | None = None) -> None:
        self.saves += 1
        if self.saves > 1:
            raise ConnectionError("store unavailable")
        await super().save_state(state, ttl_seconds)


class TestProgressTracker:
    """Tests for ProgressTracker transitions."""

    @pytest.mark.asyncio
    async def test_begin_persists_accepted_state(self, store) -> None:
        tracker = await ProgressTracker.begin(store, "route-1")
        stored = await store.get_state("route-1")
        assert stored is not None
        assert stored.status == GenerationStatus.PROCESSING
        assert stored.progress == ACCEPTED
        assert tracker.route_id == "route-1"

    @pytest.mark.asyncio
    async def test_begin_generates_route_id(self, store) -> None:
        first = await ProgressTracker.begin(store)
        second = await ProgressTracker.begin(store)
        assert first.route_id != second.route_id

    @pytest.mark.asyncio
    async def test_checkpoints_are_monotonic(self, store) -> None:
        tracker = await ProgressTracker.begin(store, "route-1")
        await tracker.advance(BASELINE_READY)
        await tracker.advance(POIS_READY)
        assert (await store.get_state("route-1")).progress == POIS_READY

        with pytest.raises(InvalidTransitionError):
            await tracker.advance(BASELINE_READY)
        assert tracker.state.progress == POIS_READY

    @pytest.mark.asyncio
    async def test_advance_cannot_reach_completion(self, store) -> None:
        tracker = await ProgressTracker.begin(store)
        with pytest.raises(InvalidTransitionError):
            await tracker.advance(100)

    @pytest.mark.asyncio
    async def test_complete(self, store, simple_variant) -> None:
        tracker = await ProgressTracker.begin(store, "route-1", cache_ttl_seconds=3600)
        await tracker.complete(simple_variant)

        state = await store.get_state("route-1")
        assert state.status == GenerationStatus.COMPLETED
        assert state.progress == 100
        assert state.variant == simple_variant
        assert state.cache_expires_at - state.updated_at == timedelta(seconds=3600)

    @pytest.mark.asyncio
    async def test_terminal_states_are_final(self, store, simple_variant) -> None:
        tracker = await ProgressTracker.begin(store)
        await tracker.complete(simple_variant)
        with pytest.raises(InvalidTransitionError):
            await tracker.advance(POIS_READY)
        with pytest.raises(InvalidTransitionError):
            await tracker.fail("late failure")
        with pytest.raises(InvalidTransitionError):
            await tracker.complete(simple_variant)

    @pytest.mark.asyncio
    async def test_fail_keeps_progress(self, store) -> None:
        tracker = await ProgressTracker.begin(store, "route-1")
        await tracker.advance(BASELINE_READY)
        await tracker.fail("Unable to geocode start location")

        state = await store.get_state("route-1")
        assert state.status == GenerationStatus.FAILED
        assert state.progress == BASELINE_READY
        assert state.error_message == "Unable to geocode start location"
        assert state.variant is None

    @pytest.mark.asyncio
    async def test_store_failure_does_not_stop_tracking(self) -> None:
        store = FlakyStore()
        tracker = await ProgressTracker.begin(store, "route-1")
        await tracker.advance(BASELINE_READY)
        assert tracker.state.progress == BASELINE_READY
        # The store still holds the last state it accepted
        assert (await store.get_state("route-1")).progress == ACCEPTED

    @pytest.mark.asyncio
    async def test_rejected_first_write_is_upstream_error(self) -> None:
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await ProgressTracker.begin(FailingStore(fail_from=1), "route-1")
        assert exc_info.value.service == "store"

    @pytest.mark.asyncio
    async def test_completion_write_is_retried(self, simple_variant) -> None:
        store = FailingStore(fail_from=2, recover_after=2)
        tracker = await ProgressTracker.begin(store, "route-1")
        await tracker.complete(simple_variant)
        assert tracker.persisted
        assert (await store.get_state("route-1")).status == GenerationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_lost_terminal_write_is_reported(self) -> None:
        store = FailingStore(fail_from=2)
        tracker = await ProgressTracker.begin(store, "route-1")
        assert tracker.persisted
        await tracker.fail("boom")
        assert not tracker.persisted
        assert store.failures == 3
        assert (await store.get_state("route-1")).status == GenerationStatus.PROCESSING


class TestProgressReporting:
    """Tests for the status-endpoint helpers."""

    @pytest.mark.asyncio
    async def test_estimates_shrink_with_progress(self, store) -> None:
        tracker = await ProgressTracker.begin(store)
        assert estimated_completion_seconds(tracker.state) == 27
        await tracker.advance(BASELINE_READY)
        assert estimated_completion_seconds(tracker.state) == 18
        await tracker.advance(POIS_READY)
        assert estimated_completion_seconds(tracker.state) == 9

    @pytest.mark.asyncio
    async def test_no_estimate_once_terminal(self, store) -> None:
        tracker = await ProgressTracker.begin(store)
        await tracker.fail("boom")
        assert estimated_completion_seconds(tracker.state) is None

    @pytest.mark.asyncio
    async def test_partial_results(self, store, simple_variant) -> None:
        tracker = await ProgressTracker.begin(store)
        assert partial_results(tracker.state) == {"route_calculated": False, "pois_discovered": False}
        await tracker.advance(BASELINE_READY)
        assert partial_results(tracker.state) == {"route_calculated": True, "pois_discovered": False}
        await tracker.advance(POIS_READY)
        await tracker.complete(simple_variant)
        assert partial_results(tracker.state) == {"route_calculated": True, "pois_discovered": True}
