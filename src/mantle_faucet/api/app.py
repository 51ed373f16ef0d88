"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mantle_faucet import __version__
from mantle_faucet.config import get_settings
from mantle_faucet.services.faucet import FaucetService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    service: FaucetService = app.state.faucet_service
    operator = service.operator_address()
    if operator:
        logger.info(f"Faucet ready, operator account {operator}")
    else:
        logger.error("Operator private key missing or invalid - withdrawals will fail")
    yield
    logger.info("Faucet shutting down")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render body validation errors as 400 faucet responses."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request body"
    return JSONResponse(status_code=400, content={"success": False, "message": message})


def create_app(service: Optional[FaucetService] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: Pre-built faucet service (tests); built from settings if None
    """
    settings = get_settings()

    app = FastAPI(
        title="Mantle Faucet API",
        description="Native token faucet with per-address cooldown",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    if service is None:
        service = FaucetService.from_settings(settings)
    app.state.faucet_service = service

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Register routes
    from mantle_faucet.api.routes import faucet, health

    app.include_router(health.router, tags=["Health"])
    app.include_router(faucet.router, tags=["Faucet"])

    return app
