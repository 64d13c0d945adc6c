"""
Tests for the Failure Classification System.

These tests verify the core invariant:

    No raw 500 error may reach a client.
    Every failure must be classified and explained.

These tests protect the failure semantics only.
"""

import pytest
from fastapi.testclient import TestClient

from cardmatch.main import app
from cardmatch.models.failure import (
    STANDARD_MESSAGES,
    ApiResponse,
    CatalogValidationError,
    FailureDetail,
    FailureKind,
    KnownError,
    OutcomeType,
    create_known_failure,
    create_unknown_failure,
    finalize_response,
)
from cardmatch.services.theme_library import get_theme_library


class TestFailureEnvelope:
    """Tests for the ApiResponse failure envelope."""

    def test_known_failure_response_structure(self) -> None:
        """Known failure response has correct structure."""
        response = ApiResponse.known_failure(
            kind=FailureKind.NOT_FOUND,
            message="Theme not found",
            detail="Theme 'xyz' does not exist",
        )

        assert response.outcome == OutcomeType.KNOWN_FAILURE
        assert response.data is None
        assert response.failure is not None
        assert response.failure.kind == FailureKind.NOT_FOUND

    def test_unknown_failure_message_is_fixed(self) -> None:
        """Unknown failures explicitly say the cause is unknown."""
        response = create_unknown_failure(RuntimeError("secret internals"))

        assert response.failure is not None
        assert response.failure.kind == FailureKind.UNKNOWN
        assert "don't know why" in response.failure.message.lower()
        assert "secret" not in response.failure.message
        assert response.failure.detail == "RuntimeError"
        assert response.failure.suggestion

    def test_unknown_failure_can_hide_type(self) -> None:
        response = create_unknown_failure(RuntimeError("x"), include_type=False)

        assert response.failure is not None
        assert response.failure.detail is None


class TestKnownErrorException:
    """Tests for KnownError exception handling."""

    def test_known_error_converts_to_response(self) -> None:
        """KnownError converts to ApiResponse correctly."""
        error = KnownError(
            kind=FailureKind.INVALID_INPUT,
            message="Invalid theme id",
            detail="theme_id='a/b'",
            status_code=400,
        )

        response = error.to_response()

        assert response.outcome == OutcomeType.KNOWN_FAILURE
        assert response.failure is not None
        assert response.failure.kind == FailureKind.INVALID_INPUT
        assert response.failure.message == "Invalid theme id"

    def test_catalog_validation_error(self) -> None:
        error = CatalogValidationError("Theme contains no pairs")

        assert error.kind == FailureKind.INVALID_CATALOG
        assert error.status_code == 422
        assert error.suggestion is not None


class TestAuthorityBoundary:
    """All user-visible responses pass through finalize_response()."""

    def test_known_failure_helper_keeps_error_fields(self) -> None:
        response = create_known_failure(CatalogValidationError("bad", detail="pairs"))

        assert response.outcome == OutcomeType.KNOWN_FAILURE
        assert response.failure is not None
        assert response.failure.kind == FailureKind.INVALID_CATALOG
        assert response.failure.detail == "pairs"

    def test_success_without_failure_passes(self) -> None:
        response = ApiResponse(outcome=OutcomeType.SUCCESS, data={"key": "value"})

        assert finalize_response(response) is response

    def test_success_with_failure_raises(self) -> None:
        response = ApiResponse(
            outcome=OutcomeType.SUCCESS,
            data={"key": "value"},
            failure=FailureDetail(kind=FailureKind.UNKNOWN, message="oops"),
        )

        with pytest.raises(ValueError, match="must not have failure"):
            finalize_response(response)

    def test_failure_without_details_raises(self) -> None:
        response = ApiResponse(outcome=OutcomeType.KNOWN_FAILURE, failure=None)

        with pytest.raises(ValueError, match="must have failure details"):
            finalize_response(response)


class TestExceptionHandlers:
    """Tests for global exception handlers in main.py."""

    @pytest.fixture
    def client(self):
        """Create test client."""
        yield TestClient(app, raise_server_exceptions=False)
        app.dependency_overrides.clear()

    def test_health_endpoint_returns_success(self, client: TestClient) -> None:
        """Health endpoint returns successful response (baseline)."""
        response = client.get("/health")

        assert response.status_code == 200

    def test_known_error_returns_envelope(self, client: TestClient) -> None:
        """Invalid theme id returns a classified 400, not 500."""
        response = client.get("/themes/bad_id!")

        assert response.status_code == 400
        data = response.json()
        assert data["outcome"] == "known_failure"
        assert data["failure"]["kind"] == "invalid_input"

    def test_unknown_session_returns_404(self, client: TestClient) -> None:
        response = client.get("/sessions/does-not-exist")

        assert response.status_code == 404
        assert response.json()["failure"]["kind"] == "not_found"

    def test_unexpected_error_returns_classified_500(self, client: TestClient) -> None:
        """Unexpected errors return a classified 500, not a raw crash."""

        def broken_library():
            raise RuntimeError("disk on fire")

        app.dependency_overrides[get_theme_library] = broken_library

        response = client.get("/themes")

        assert response.status_code == 500
        data = response.json()
        assert data["outcome"] == "unknown_failure"
        assert data["failure"]["message"] == STANDARD_MESSAGES[OutcomeType.UNKNOWN_FAILURE]
        assert "disk on fire" not in response.text


class TestFailureKindCoverage:
    """Tests ensuring all FailureKind values are valid."""

    def test_all_failure_kinds_are_unique(self) -> None:
        values = [kind.value for kind in FailureKind]
        assert len(values) == len(set(values))

    def test_unknown_failure_kind_exists(self) -> None:
        assert FailureKind.UNKNOWN.value == "unknown"
