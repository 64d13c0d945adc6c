import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cardmatch.api import health_router, sessions_router, themes_router
from cardmatch.config import settings
from cardmatch.models.failure import KnownError, create_known_failure, create_unknown_failure
from cardmatch.services.session_registry import get_session_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    logger.info("APP_STARTED", extra={"themes_dir": str(settings.themes_dir)})
    yield
    get_session_registry().clear()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardmatch"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(sessions_router)
app.include_router(themes_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    logger.info(
        "KNOWN_FAILURE",
        extra={"kind": exc.kind.value, "error_message": exc.message},
    )
    response = create_known_failure(exc)
    return JSONResponse(status_code=exc.status_code, content=response.model_dump(mode="json"))


@app.exception_handler(Exception)
async def unknown_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("UNHANDLED_EXCEPTION")
    response = create_unknown_failure(exc, include_type=settings.debug)
    return JSONResponse(status_code=500, content=response.model_dump(mode="json"))
