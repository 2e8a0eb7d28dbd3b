"""
Staking API Routes.

Read-only FastAPI endpoints for the Vhagar reward pool:
- Pool totals and per-tier lock configuration
- A wallet's active lock slots

Instructions (stake, unstake, autocompound) are signed by the user's wallet
and never go through this server.
"""

import logging
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from api.errors import fastapi_error, staking_error_response
from vhagar.errors import StakingError
from vhagar.staking import StakingOrchestrator

logger = logging.getLogger("vhagar.api.staking")

router = APIRouter(prefix="/api/staking", tags=["Staking"])


# =============================================================================
# Response Models
# =============================================================================


class TierInfoResponse(BaseModel):
    """Lock configuration for one tier."""
    tag: str = Field(..., description="Tier name")
    lockPeriod: int = Field(..., description="Lock period in seconds")
    rewardPercentage: int = Field(..., description="Reward percentage scaled by 10,000")


class StakingInfoResponse(BaseModel):
    """Pool totals in whole tokens."""
    totalStaked: float = Field(..., description="Total locked balance (tokens)")
    totalClaimable: float = Field(..., description="Total locked reward (tokens)")
    stakeInfo: List[TierInfoResponse] = Field(default_factory=list)


class LockSlotResponse(BaseModel):
    """One active lock slot, formatted for display."""
    tier: str
    slot: int
    lockedAmount: str
    lockedReward: str
    unlockTime: str
    lockedTime: str


class UserInfoResponse(BaseModel):
    """A wallet's active locks."""
    wallet: str
    locks: List[LockSlotResponse] = Field(default_factory=list)


# =============================================================================
# Dependency
# =============================================================================


def get_orchestrator(request: Request) -> StakingOrchestrator:
    """Orchestrator installed on the app by create_app()."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(503, "Staking program not configured")
    return orchestrator


def _to_tokens(amount: int, decimals: int) -> float:
    return float(Decimal(int(amount)).scaleb(-decimals))


# =============================================================================
# API Endpoints
# =============================================================================


@router.get("/info", response_model=StakingInfoResponse)
async def get_staking_info(
    request: Request,
    orchestrator: StakingOrchestrator = Depends(get_orchestrator),
):
    """Pool totals and tier configuration."""
    decimals = request.app.state.config.staking.token_decimals
    try:
        balance = await orchestrator.program.get_total_staked_balance()
        stake_info = await orchestrator.program.get_stake_info()
    except Exception as e:
        logger.error(f"Error fetching staking info: {e}")
        # Don't expose internal error details to the client
        return fastapi_error("SYS_003", "Failed to fetch staking info", http_status=500)

    return StakingInfoResponse(
        totalStaked=_to_tokens(balance.total_locked_balance, decimals),
        totalClaimable=_to_tokens(balance.total_locked_reward, decimals),
        stakeInfo=[
            TierInfoResponse(
                tag=item.tier.label,
                lockPeriod=item.lock_period,
                rewardPercentage=item.reward_percentage,
            )
            for item in stake_info
        ],
    )


@router.get("/user/{wallet}", response_model=UserInfoResponse)
async def get_user_info(
    wallet: str,
    orchestrator: StakingOrchestrator = Depends(get_orchestrator),
):
    """Active lock slots for ``wallet``."""
    result = await orchestrator.get_user_info(wallet)
    if result.ok:
        return UserInfoResponse(wallet=wallet, locks=[LockSlotResponse(**lock) for lock in result.data])

    if isinstance(result.exception, StakingError):
        return staking_error_response(result.exception)
    return fastapi_error("SYS_003", "Failed to fetch user info", http_status=500)
