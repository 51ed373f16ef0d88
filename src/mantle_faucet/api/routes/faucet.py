"""Faucet withdrawal endpoint."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mantle_faucet.services.faucet import FaucetService
from mantle_faucet.withdrawal.base import WithdrawalRequest

logger = logging.getLogger(__name__)

router = APIRouter()


class FaucetRequest(BaseModel):
    """Withdrawal request body."""
    network: str = Field(..., min_length=1, description="Chain endpoint host, e.g. rpc.sepolia.mantle.xyz")
    address: str = Field(..., min_length=1, description="Recipient wallet address")
    amount: str = Field(..., min_length=1, description="Amount in ether as a decimal string")


class FaucetResponse(BaseModel):
    """Withdrawal response."""
    success: bool
    message: Optional[str] = None
    tx_id: Optional[str] = None
    explorer_url: Optional[str] = None


def get_faucet_service(request: Request) -> FaucetService:
    """Faucet service attached to the running app."""
    return request.app.state.faucet_service


@router.post("/mantle/request", response_model=FaucetResponse, response_model_exclude_none=True)
async def request_funds(
    body: FaucetRequest,
    service: FaucetService = Depends(get_faucet_service),
):
    """Send faucet funds to an address, at most once per cooldown window."""
    outcome = await service.request_withdrawal(
        WithdrawalRequest(network=body.network, address=body.address, amount=body.amount)
    )

    if outcome.success:
        return FaucetResponse(
            success=True,
            tx_id=outcome.tx_id,
            explorer_url=outcome.explorer_url,
        )

    return JSONResponse(
        status_code=outcome.status_code,
        content=FaucetResponse(success=False, message=outcome.message).model_dump(exclude_none=True),
    )
