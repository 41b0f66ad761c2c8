"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nutriscan.api.assistant import recommendations_router
from nutriscan.api.assistant import router as assistant_router
from nutriscan.api.auth import router as auth_router
from nutriscan.api.food import router as food_router
from nutriscan.api.goals import router as goals_router
from nutriscan.api.logs import router as logs_router
from nutriscan.api.profile import router as profile_router
from nutriscan.app_logging import configure_logging
from nutriscan.config import parse_cors_origins
from nutriscan.containers import AppContainer
from nutriscan.domain.errors import (
    AuthenticationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    NutriScanError,
    ValidationError,
)

_ERROR_STATUS: tuple[tuple[type[NutriScanError], int], ...] = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (AuthenticationError, 401),
    (ExternalServiceError, 502),
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(title="NutriScan API", lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(container.settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NutriScanError)
    async def handle_app_error(request: Request, exc: NutriScanError) -> JSONResponse:
        status_code = error_status(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning(
                "Upstream failure", extra={"path": request.url.path, "error": str(exc)}
            )
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def handle_invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "error": "Invalid request",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(goals_router)
    app.include_router(food_router)
    app.include_router(logs_router)
    app.include_router(assistant_router)
    app.include_router(recommendations_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok", "service": "nutriscan"}

    return app


def error_status(exc: NutriScanError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR
