"""
Health check endpoints.

Provides liveness and readiness probes. Readiness checks that the theme
directory is present and holds at least one theme file.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from cardmatch.services.theme_library import ThemeLibrary, get_theme_library

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Probe result, with the number of servable themes on readiness."""

    status: str
    themes: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe; does not look at the theme directory."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    library: Annotated[ThemeLibrary, Depends(get_theme_library)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 if no theme can be served.
    """
    theme_ids = library.available_ids()
    if not theme_ids:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", themes=0)
    return HealthResponse(status="ready", themes=len(theme_ids))
