"""
Staking client core.

Usage:
    from vhagar.staking import create_orchestrator

    orchestrator = create_orchestrator(program)
    result = await orchestrator.unstake("gold", 0)
"""

from typing import Optional

from vhagar.config import VhagarConfig, get_config
from vhagar.staking.audit_record import NOT_APPLICABLE, AuditRecord, AuditRecordBuilder, Operation
from vhagar.staking.delivery import DeliveryPipeline
from vhagar.staking.forfeiture import Completion, Settlement, classify, settle
from vhagar.staking.models import LockRecord, StakingPoolState, UserLockInfo
from vhagar.staking.orchestrator import (
    OperationResult,
    OperationState,
    OperationStatus,
    StakingOrchestrator,
)
from vhagar.staking.program import RpcStakingProgram, StakingProgram
from vhagar.staking.tiers import LOCK_SLOTS_PER_TIER, PERCENTAGE_SCALE, Tier, resolve_reward_percentage


def create_orchestrator(program: StakingProgram, config: Optional[VhagarConfig] = None) -> StakingOrchestrator:
    """Wire an orchestrator and its audit pipeline from configuration."""
    config = config or get_config()
    pipeline = DeliveryPipeline(config.audit_sink)
    return StakingOrchestrator(program, pipeline, token_mint=config.staking.token_mint)


__all__ = [
    "AuditRecord",
    "AuditRecordBuilder",
    "Completion",
    "DeliveryPipeline",
    "LOCK_SLOTS_PER_TIER",
    "LockRecord",
    "NOT_APPLICABLE",
    "Operation",
    "OperationResult",
    "OperationState",
    "OperationStatus",
    "PERCENTAGE_SCALE",
    "RpcStakingProgram",
    "Settlement",
    "StakingOrchestrator",
    "StakingPoolState",
    "StakingProgram",
    "Tier",
    "UserLockInfo",
    "classify",
    "create_orchestrator",
    "resolve_reward_percentage",
    "settle",
]
