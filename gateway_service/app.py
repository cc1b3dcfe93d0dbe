"""
FastAPI gateway for the interview coach.

Every /api route passes through the governance chain
(auth -> rate limit -> usage caps -> cost degradation) before its handler
picks an AI or voice provider for the caller's tier.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from interview_gateway.common.logger import setup_logging
from version import __version__

from .config import GatewaySettings, validate_config_on_startup
from .dependencies import GatewayServices, build_services
from .models import HealthResponse
from .responses import ApiError, error_body
from .routes import coaching_router, interview_router, usage_router, voice_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[GatewaySettings] = None,
    services: Optional[GatewayServices] = None,
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        settings: Validated settings (read from the environment if omitted)
        services: Prebuilt service container (built from settings if omitted)
    """
    if services is not None:
        settings = services.settings
    settings = validate_config_on_startup(settings)
    setup_logging(settings.log_level, settings.log_format)

    app = FastAPI(title="Interview Gateway", version=__version__)
    app.state.services = services or build_services(settings)

    if settings.cors_origins_list:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=error_body("Missing required fields", details=jsonable_encoder(exc.errors())),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content=error_body("Internal server error"))

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Liveness probe; not governed."""
        return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc))

    app.include_router(interview_router)
    app.include_router(voice_router)
    app.include_router(coaching_router)
    app.include_router(usage_router)

    logger.info(f"Interview gateway {__version__} ready ({settings.environment})")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    from .config import get_settings

    uvicorn.run("gateway_service.app:app", host="0.0.0.0", port=get_settings().port)
