"""Health check endpoints."""

from fastapi import APIRouter, Request

from mantle_faucet import __version__
from mantle_faucet.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "mantle-faucet"}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Detailed health check with configuration info."""
    settings = get_settings()
    service = request.app.state.faucet_service
    return {
        "status": "healthy",
        "service": "mantle-faucet",
        "version": __version__,
        "operator_address": service.operator_address(),
        "tracked_addresses": len(service.ledger),
        "withdrawals_in_progress": service.ledger.in_flight,
        "config": settings.get_safe_dict(),
    }
