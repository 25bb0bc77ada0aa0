"""Error types for Scenic Route.

``AppError`` is the error envelope returned by the API. The exception classes
are raised by the service layer and carry the code, HTTP status and
user-facing message used to build that envelope.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error codes returned to API clients."""

    INVALID_INPUT = "INVALID_INPUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    GEOCODING_FAILED = "GEOCODING_FAILED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    NO_VIABLE_ROUTE = "NO_VIABLE_ROUTE"
    ROUTE_GENERATION_FAILED = "ROUTE_GENERATION_FAILED"
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"
    ROUTE_NOT_READY = "ROUTE_NOT_READY"
    API_ERROR = "API_ERROR"


class AppError(BaseModel):
    """Error envelope returned to API clients."""

    code: ErrorCode
    message: str = Field(..., description="Technical error message")
    user_message: str = Field(..., description="Message safe to show to end users")
    details: Optional[dict[str, Any]] = None


class ScenicRouteError(Exception):
    """Base class for all service-layer errors."""

    code = ErrorCode.API_ERROR
    status_code = 500
    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_app_error(self) -> AppError:
        return AppError(
            code=self.code,
            message=self.message,
            user_message=self.user_message,
            details=self.details,
        )


class InvalidInputError(ScenicRouteError):
    """Malformed coordinates or missing locations. Never retried."""

    code = ErrorCode.INVALID_INPUT
    status_code = 400
    user_message = "Invalid request. Please check your start and end locations."


class UpstreamUnavailableError(ScenicRouteError):
    """An external service (geocoding, directions, places) failed."""

    code = ErrorCode.UPSTREAM_UNAVAILABLE
    status_code = 502
    user_message = "A mapping service is unavailable. Please try again shortly."

    def __init__(
        self,
        message: str,
        service: str = "unknown",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.service = service


class NoViableRouteError(ScenicRouteError):
    """The directions service found no route between the given points."""

    code = ErrorCode.NO_VIABLE_ROUTE
    status_code = 422
    user_message = "No route could be found between these locations."

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(
            message,
            details
            or {
                "suggestions": [
                    "Check start/end locations",
                    "Increase max_time_increase_percent",
                    "Lower min_stops",
                ]
            },
        )


class RouteGenerationFailed(ScenicRouteError):
    """Fatal pipeline failure, e.g. geocoding or baseline path retrieval."""

    code = ErrorCode.ROUTE_GENERATION_FAILED
    status_code = 502
    user_message = "We couldn't generate a route right now. Please try again."

    def __init__(
        self,
        reason: str,
        code: Optional[ErrorCode] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(reason, details)
        self.reason = reason
        if code is not None:
            self.code = code


class RouteNotFoundError(ScenicRouteError):
    """No generation state is stored under the requested route id."""

    code = ErrorCode.ROUTE_NOT_FOUND
    status_code = 404
    user_message = "Route not found. It may have expired."


class RouteNotReadyError(ScenicRouteError):
    """The route exists but has no completed path yet."""

    code = ErrorCode.ROUTE_NOT_READY
    status_code = 409
    user_message = "The route is still being generated."


class InvalidTransitionError(ScenicRouteError):
    """A progress update violated the generation state machine."""

    code = ErrorCode.API_ERROR
    status_code = 500
