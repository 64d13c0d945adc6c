"""
Failure envelope for the HTTP surface.

Only errors that abort an operation travel through here: a bad catalog, an
unknown theme or session, an illegal state transition, a full registry.
Rejected or ignored match attempts are ordinary game results and are
returned by the session instead.

INVARIANT: a client never receives an unclassified 500.

Outcomes:
- success: the operation completed
- known_failure: the cause is known and described
- unknown_failure: something unexpected broke; the message says so

Every envelope handed to a client goes through `finalize_response()`.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """What kind of thing went wrong."""

    # Bad input from the caller
    INVALID_INPUT = "invalid_input"
    INVALID_CATALOG = "invalid_catalog"

    NOT_FOUND = "not_found"

    # Operation not allowed right now
    INVALID_TRANSITION = "invalid_transition"
    BUDGET_EXCEEDED = "budget_exceeded"

    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


T = TypeVar("T")


class FailureDetail(BaseModel):
    """Explanation attached to every non-success envelope."""

    kind: FailureKind
    message: str = Field(..., description="Shown to the player")
    detail: str | None = Field(default=None, description="Technical context, if any")
    suggestion: str | None = Field(default=None, description="What the caller can do next")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope carrying either a payload or a failure explanation."""

    outcome: OutcomeType
    data: T | None = None
    failure: FailureDetail | None = None

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse[Any]":
        failure = FailureDetail(kind=kind, message=message, detail=detail, suggestion=suggestion)
        return cls(outcome=OutcomeType.KNOWN_FAILURE, failure=failure)


class KnownError(Exception):
    """
    An error whose cause the service can state precisely.

    Raise a subclass anywhere below the HTTP layer; the app's exception
    handler turns it into a known-failure envelope with `status_code`.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code

    def to_response(self) -> ApiResponse[Any]:
        return ApiResponse.known_failure(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class CatalogValidationError(KnownError):
    """
    A theme document that cannot start a session.

    Raised before any session state exists, so a failed catalog never
    leaves a half-built game behind.
    """

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_CATALOG,
            message=message,
            detail=detail,
            suggestion="Fix the theme file and try again.",
            status_code=422,
        )


# =============================================================================
# FINALIZATION
# =============================================================================

STANDARD_MESSAGES: dict[OutcomeType, str] = {
    OutcomeType.UNKNOWN_FAILURE: (
        "Something went wrong and I don't know why. Please retry or start a new game."
    ),
}

STANDARD_SUGGESTIONS: dict[OutcomeType, str] = {
    OutcomeType.UNKNOWN_FAILURE: "If it keeps happening, report it with the time it occurred.",
}


def finalize_response(response: ApiResponse[Any]) -> ApiResponse[Any]:
    """
    Check an envelope's shape before it is handed to the client.

    Raises:
        ValueError: If a success carries a failure, or a failure carries none
    """
    has_failure = response.failure is not None
    if response.outcome is OutcomeType.SUCCESS and has_failure:
        raise ValueError("Success response must not have failure details")
    if response.outcome is not OutcomeType.SUCCESS and not has_failure:
        raise ValueError(f"{response.outcome.value} response must have failure details")

    return response


def create_unknown_failure(
    exception: Exception,
    include_type: bool = True,
) -> ApiResponse[Any]:
    """
    Envelope for an unexpected exception.

    The message is always the standard one; the exception text is never
    shown. With `include_type`, the exception class name goes in `detail`.
    """
    response: ApiResponse[Any] = ApiResponse(
        outcome=OutcomeType.UNKNOWN_FAILURE,
        failure=FailureDetail(
            kind=FailureKind.UNKNOWN,
            message=STANDARD_MESSAGES[OutcomeType.UNKNOWN_FAILURE],
            detail=type(exception).__name__ if include_type else None,
            suggestion=STANDARD_SUGGESTIONS[OutcomeType.UNKNOWN_FAILURE],
        ),
    )
    return finalize_response(response)


def create_known_failure(error: KnownError) -> ApiResponse[Any]:
    return finalize_response(error.to_response())
