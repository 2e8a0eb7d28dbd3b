"""
Staking operation orchestration.

Each user operation runs a linear state machine:

    IDLE -> SUBMITTING -> CONFIRMED -> AUDIT_BUILDING -> AUDIT_DELIVERING -> IDLE
                       \\-> FAILED -> IDLE

Only a confirmed operation produces an audit record. Delivery is detached:
the result is returned without waiting for the audit sink, and nothing that
happens after confirmation can turn a success into an error.

No state survives between calls. Lock records and the pool are re-read from
the program every time.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from vhagar.errors import (
    AccountNotInitialized,
    InvalidLockSlot,
    RecordNotFound,
    ValidationError,
)
from vhagar.staking.audit_record import AuditRecord, AuditRecordBuilder, Operation
from vhagar.staking.delivery import DeliveryPipeline
from vhagar.staking.display import (
    TOKEN_SYMBOL,
    format_percentage,
    format_time,
    format_token_amount,
    percent_to_scaled,
)
from vhagar.staking.models import LockRecord
from vhagar.staking.pda import derive_user_token_account
from vhagar.staking.program import StakingProgram
from vhagar.staking.tiers import LOCK_SLOTS_PER_TIER, Tier, resolve_reward_percentage

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def _system_clock() -> int:
    return int(time.time())


class OperationState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    AUDIT_BUILDING = "audit_building"
    AUDIT_DELIVERING = "audit_delivering"


class OperationStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class OperationResult:
    """Consolidated outcome reported to the presentation layer."""
    operation: str
    status: OperationStatus
    data: Any = None
    error: Optional[str] = None
    exception: Optional[BaseException] = field(default=None, repr=False)
    trace: List[OperationState] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        d = {"operation": self.operation, "status": self.status.value}
        if self.ok:
            d["data"] = self.data
        else:
            d["error"] = self.error
        return d


class _Run:
    """Tracks state transitions for one operation."""

    def __init__(self, operation: str):
        self.operation = operation
        self.trace: List[OperationState] = [OperationState.IDLE]

    def enter(self, state: OperationState) -> None:
        logger.debug(f"{self.operation}: {self.trace[-1].value} -> {state.value}")
        self.trace.append(state)

    def succeed(self, data: Any) -> OperationResult:
        self.enter(OperationState.IDLE)
        return OperationResult(self.operation, OperationStatus.SUCCESS, data=data, trace=self.trace)

    def fail(self, exc: BaseException) -> OperationResult:
        if self.trace[-1] is OperationState.SUBMITTING:
            self.enter(OperationState.FAILED)
        self.enter(OperationState.IDLE)
        return OperationResult(
            self.operation, OperationStatus.ERROR,
            error=getattr(exc, "message", None) or str(exc),
            exception=exc,
            trace=self.trace,
        )


class StakingOrchestrator:
    """Runs staking operations and files an audit record for each success."""

    def __init__(
        self,
        program: StakingProgram,
        pipeline: DeliveryPipeline,
        token_mint: str,
        clock: Clock = _system_clock,
    ):
        self.program = program
        self.pipeline = pipeline
        self.token_mint = token_mint
        self.clock = clock

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def _validate_slot(slot: Any) -> int:
        if isinstance(slot, float):
            raise InvalidLockSlot(slot, LOCK_SLOTS_PER_TIER)
        try:
            index = int(slot)
        except (TypeError, ValueError):
            raise InvalidLockSlot(slot, LOCK_SLOTS_PER_TIER)
        if isinstance(slot, bool) or not 0 <= index < LOCK_SLOTS_PER_TIER:
            raise InvalidLockSlot(slot, LOCK_SLOTS_PER_TIER)
        return index

    @staticmethod
    def _validate_amount(amount: Any) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError(f"Amount must be a positive number of base units, got {amount!r}")
        return amount

    async def _reward_percentage(self, tier: Tier) -> int:
        pool = await self.program.fetch_staking_pool()
        return resolve_reward_percentage(pool.bronze_reward_percentage, tier)

    async def _existing_lock(self, tier: Tier, slot: int) -> LockRecord:
        """Pre-operation snapshot. Missing state aborts before submitting."""
        user = self.program.wallet_address
        info = await self.program.fetch_user_lock_info(user)
        if info is None:
            raise RecordNotFound(f"No staking information found for {user}", {"user": user})
        lock = info.lock_for(tier, slot)
        if lock is None or not lock.is_active:
            raise RecordNotFound(
                f"No active {tier.label} lock in slot {slot}",
                {"user": user, "tier": tier.value, "slot": slot},
            )
        return lock

    async def _file_audit(self, run: _Run, build: Callable[[], Awaitable[AuditRecord]]) -> None:
        """Build and dispatch the audit record; failures are logged only."""
        run.enter(OperationState.AUDIT_BUILDING)
        try:
            record = await build()
        except Exception as e:
            logger.error(f"Could not build {run.operation} audit record: {e}")
            return
        run.enter(OperationState.AUDIT_DELIVERING)
        self.pipeline.dispatch(record)

    # =========================================================================
    # User operations
    # =========================================================================

    async def stake(self, amount: int, tier: Union[str, Tier], slot: int) -> OperationResult:
        run = _Run(Operation.STAKE.value)
        try:
            amount = self._validate_amount(amount)
            tier = Tier.parse(tier)
            slot = self._validate_slot(slot)
            user = self.program.wallet_address

            token_account = derive_user_token_account(user, self.token_mint)
            if not await self.program.account_exists(token_account):
                raise AccountNotInitialized(account=token_account)

            run.enter(OperationState.SUBMITTING)
            signature = await self.program.stake(amount, tier, slot)
        except Exception as e:
            logger.error(f"Error executing stake: {e}")
            return run.fail(e)

        run.enter(OperationState.CONFIRMED)
        logger.info(f"Stake transaction completed: {signature}")
        now = self.clock()

        async def build() -> AuditRecord:
            percentage = await self._reward_percentage(tier)
            return AuditRecordBuilder.for_stake(user, amount, tier, percentage, now)

        await self._file_audit(run, build)
        return run.succeed(signature)

    async def unstake(self, tier: Union[str, Tier], slot: int) -> OperationResult:
        run = _Run(Operation.UNSTAKE.value)
        try:
            tier = Tier.parse(tier)
            slot = self._validate_slot(slot)
            user = self.program.wallet_address
            before = await self._existing_lock(tier, slot)

            run.enter(OperationState.SUBMITTING)
            signature = await self.program.unstake(tier, slot)
        except Exception as e:
            logger.error(f"Error executing unstake: {e}")
            return run.fail(e)

        run.enter(OperationState.CONFIRMED)
        logger.info(f"Unstake transaction completed: {signature}")
        now = self.clock()

        async def build() -> AuditRecord:
            percentage = await self._reward_percentage(tier)
            return AuditRecordBuilder.for_unstake(user, tier, before, percentage, now)

        await self._file_audit(run, build)
        return run.succeed(signature)

    async def autocompound(self, tier: Union[str, Tier], slot: int) -> OperationResult:
        run = _Run(Operation.AUTOCOMPOUND.value)
        try:
            tier = Tier.parse(tier)
            slot = self._validate_slot(slot)
            user = self.program.wallet_address
            before = await self._existing_lock(tier, slot)

            run.enter(OperationState.SUBMITTING)
            signature = await self.program.autocompound(tier, slot)
        except Exception as e:
            logger.error(f"Error executing autocompound: {e}")
            return run.fail(e)

        run.enter(OperationState.CONFIRMED)
        logger.info(f"Autocompound transaction completed: {signature}")
        now = self.clock()

        async def build() -> AuditRecord:
            info = await self.program.fetch_user_lock_info(user)
            after = info.lock_for(tier, slot) if info is not None else None
            if after is None:
                raise RecordNotFound(f"Lock {tier.label}/{slot} missing after autocompound")
            percentage = await self._reward_percentage(tier)
            return AuditRecordBuilder.for_autocompound(user, tier, before, after, percentage, now)

        await self._file_audit(run, build)
        return run.succeed(signature)

    # =========================================================================
    # Manager operations (no audit record)
    # =========================================================================

    async def _execute(self, name: str, call: Callable[[], Awaitable[Any]]) -> OperationResult:
        run = _Run(name)
        try:
            run.enter(OperationState.SUBMITTING)
            data = await call()
        except Exception as e:
            logger.error(f"Error executing {name}: {e}")
            return run.fail(e)
        run.enter(OperationState.CONFIRMED)
        return run.succeed(data)

    async def pause(self) -> OperationResult:
        return await self._execute("pause", self.program.pause)

    async def unpause(self) -> OperationResult:
        return await self._execute("unpause", self.program.unpause)

    async def staking_pause(self) -> OperationResult:
        return await self._execute("stakingPause", self.program.staking_pause)

    async def staking_unpause(self) -> OperationResult:
        return await self._execute("stakingUnpause", self.program.staking_unpause)

    async def update_reward_percentage(self, percent) -> OperationResult:
        """``percent`` is human-readable, e.g. 15.77."""
        async def call():
            scaled = percent_to_scaled(percent)
            if scaled < 0:
                raise ValidationError(f"Reward percentage must be non-negative, got {percent!r}")
            return await self.program.update_reward_percentage(scaled)
        return await self._execute("updateRewardPercentage", call)

    async def update_lock_time(self, seconds: int) -> OperationResult:
        async def call():
            if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds <= 0:
                raise ValidationError(f"Lock time must be a positive number of seconds, got {seconds!r}")
            return await self.program.update_lock_time(seconds)
        return await self._execute("updateLockTime", call)

    async def deposit_rewards(self, amount: int) -> OperationResult:
        async def call():
            return await self.program.deposit_rewards(self._validate_amount(amount))
        return await self._execute("depositRewards", call)

    async def withdraw_unassigned_rewards(self) -> OperationResult:
        return await self._execute("withdrawUnassignedRewards", self.program.withdraw_unassigned_rewards)

    # =========================================================================
    # Views
    # =========================================================================

    async def _view(self, name: str, call: Callable[[], Awaitable[Any]]) -> OperationResult:
        run = _Run(name)
        try:
            data = await call()
        except Exception as e:
            logger.error(f"Error executing {name}: {e}")
            return run.fail(e)
        return run.succeed(data)

    async def get_apy(self) -> OperationResult:
        async def call():
            return [
                {"tier": item.tier.label, "apy": format_percentage(item.reward_percentage)}
                for item in await self.program.get_apy()
            ]
        return await self._view("getApy", call)

    async def get_stake_info(self) -> OperationResult:
        async def call():
            return [
                {
                    "tier": item.tier.label,
                    "lockPeriod": item.lock_period,
                    "rewardPercentage": format_percentage(item.reward_percentage),
                }
                for item in await self.program.get_stake_info()
            ]
        return await self._view("getStakeInfo", call)

    async def get_user_info(self, address: Optional[str] = None) -> OperationResult:
        async def call():
            user = address or self.program.wallet_address
            info = await self.program.fetch_user_lock_info(user)
            if info is None:
                raise RecordNotFound("No staking information found for this address.", {"user": user})
            return [
                {
                    "tier": tier.label,
                    "slot": slot,
                    "lockedAmount": f"{format_token_amount(lock.locked_amount)} {TOKEN_SYMBOL}",
                    "lockedReward": f"{format_token_amount(lock.locked_reward)} {TOKEN_SYMBOL}",
                    "unlockTime": format_time(lock.unlock_time),
                    "lockedTime": format_time(lock.lock_start_time),
                }
                for tier, slot, lock in info.active_locks()
            ]
        return await self._view("getUserInfo", call)

    async def get_total_staked_balance(self) -> OperationResult:
        async def call():
            balance = await self.program.get_total_staked_balance()
            return {
                "totalLockedBalance": f"{format_token_amount(balance.total_locked_balance)} {TOKEN_SYMBOL}",
                "totalLockedReward": f"{format_token_amount(balance.total_locked_reward)} {TOKEN_SYMBOL}",
            }
        return await self._view("getTotalStakedBalance", call)

    async def get_reward_balance(self) -> OperationResult:
        async def call():
            return f"{format_token_amount(await self.program.get_reward_balance())} {TOKEN_SYMBOL}"
        return await self._view("getRewardBalance", call)

    async def get_manager_address(self) -> OperationResult:
        return await self._view("getManagerAddress", self.program.get_manager_address)

    async def get_program_pause_status(self) -> OperationResult:
        async def call():
            return "Paused" if await self.program.get_program_pause_status() else "Not Paused"
        return await self._view("getProgramPauseStatus", call)

    async def get_staking_pause_status(self) -> OperationResult:
        async def call():
            return "Paused" if await self.program.get_staking_pause_status() else "Not Paused"
        return await self._view("getStakingPauseStatus", call)
