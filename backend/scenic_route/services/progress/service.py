"""Generation progress state machine.

    processing(10) -> processing(40) -> processing(70) -> completed(100)

Any processing state may go to ``failed``, keeping its last progress value.
Progress never decreases and terminal states accept no further transitions.
One tracker per request; it is the only writer of that request's state.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from scenic_route.models import (
    GenerationState,
    GenerationStatus,
    InvalidTransitionError,
    RouteVariant,
    UpstreamUnavailableError,
)
from scenic_route.services.store import RouteStore

logger = logging.getLogger(__name__)

# Pipeline checkpoints
ACCEPTED = 10
BASELINE_READY = 40
POIS_READY = 70
COMPLETE = 100

# Rough end-to-end generation time used for completion estimates
ESTIMATED_TOTAL_SECONDS = 30

# Completion and failure writes are retried before giving up
TERMINAL_WRITE_ATTEMPTS = 3


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ProgressTracker:
    """Drives one GenerationState through its lifecycle and persists each step."""

    def __init__(
        self,
        state: GenerationState,
        store: RouteStore,
        cache_ttl_seconds: int = 86400,
    ) -> None:
        self._state = state
        self._store = store
        self._cache_ttl = cache_ttl_seconds
        self._persisted = True

    @classmethod
    async def begin(
        cls,
        store: RouteStore,
        route_id: str | None = None,
        cache_ttl_seconds: int = 86400,
    ) -> "ProgressTracker":
        """Create and store a new state at the ``ACCEPTED`` checkpoint."""
        now = _now()
        state = GenerationState(
            route_id=route_id or str(uuid.uuid4()),
            status=GenerationStatus.PROCESSING,
            progress=ACCEPTED,
            created_at=now,
            updated_at=now,
        )
        tracker = cls(state, store, cache_ttl_seconds)
        try:
            await store.save_state(state, ttl_seconds=cache_ttl_seconds)
        except Exception as e:
            # A request nobody can poll is not accepted
            raise UpstreamUnavailableError(f"Route store unavailable: {e}", service="store") from e
        logger.info(f"[PROGRESS] {state.route_id}: accepted ({ACCEPTED}%)")
        return tracker

    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def route_id(self) -> str:
        return self._state.route_id

    @property
    def persisted(self) -> bool:
        """Whether the store holds the latest state."""
        return self._persisted

    def _check_open(self) -> None:
        if self._state.is_terminal:
            raise InvalidTransitionError(
                f"Route {self.route_id} is already {self._state.status.value}"
            )

    async def advance(self, progress: int) -> None:
        """Move to a later checkpoint while still processing."""
        self._check_open()
        if not 0 <= progress < COMPLETE:
            raise InvalidTransitionError(
                f"Progress must be in [0, {COMPLETE}) while processing, got {progress}"
            )
        if progress < self._state.progress:
            raise InvalidTransitionError(
                f"Progress cannot decrease ({self._state.progress} -> {progress})"
            )
        self._state = self._state.model_copy(update={"progress": progress, "updated_at": _now()})
        logger.info(f"[PROGRESS] {self.route_id}: {progress}%")
        await self._persist()

    async def complete(self, variant: RouteVariant) -> None:
        """Finish with the chosen variant at 100%."""
        self._check_open()
        now = _now()
        self._state = self._state.model_copy(update={
            "status": GenerationStatus.COMPLETED,
            "progress": COMPLETE,
            "variant": variant,
            "updated_at": now,
            "cache_expires_at": now + timedelta(seconds=self._cache_ttl),
        })
        logger.info(f"[PROGRESS] {self.route_id}: completed")
        await self._persist(attempts=TERMINAL_WRITE_ATTEMPTS)

    async def fail(self, reason: str) -> None:
        """Mark the request failed; progress stays where it was."""
        self._check_open()
        self._state = self._state.model_copy(update={
            "status": GenerationStatus.FAILED,
            "error_message": reason,
            "updated_at": _now(),
        })
        logger.warning(f"[PROGRESS] {self.route_id}: failed at {self._state.progress}%: {reason}")
        await self._persist(attempts=TERMINAL_WRITE_ATTEMPTS)

    async def _persist(self, attempts: int = 1) -> None:
        for attempt in range(1, attempts + 1):
            try:
                await self._store.save_state(self._state, ttl_seconds=self._cache_ttl)
                self._persisted = True
                return
            except Exception as e:
                logger.warning(
                    f"[PROGRESS] Could not persist state for {self.route_id} "
                    f"(attempt {attempt}/{attempts}): {e}"
                )
        # The in-process state stays authoritative for this request
        self._persisted = False


def estimated_completion_seconds(state: GenerationState) -> int | None:
    """Remaining-time estimate while processing, None once terminal."""
    if state.is_terminal:
        return None
    return round((COMPLETE - state.progress) / COMPLETE * ESTIMATED_TOTAL_SECONDS)


def partial_results(state: GenerationState) -> dict[str, bool]:
    """Which pipeline stages have finished, derived from progress."""
    return {
        "route_calculated": state.progress >= BASELINE_READY,
        "pois_discovered": state.progress >= POIS_READY,
    }
