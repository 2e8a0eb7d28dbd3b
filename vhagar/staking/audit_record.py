"""
Audit records for completed staking operations.

A record is built once per confirmed stake, unstake or autocompound and
shipped to the audit sink; nothing is kept locally. Fields that have no
meaning for an operation hold ``NOT_APPLICABLE`` rather than 0, so "no reward
yet" is never confused with "zero reward".

The builder never reads the clock. Callers pass ``now``.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Union

from vhagar.staking.forfeiture import Completion, settle
from vhagar.staking.models import LockRecord
from vhagar.staking.tiers import Tier


class _NotApplicable:
    """Sentinel for audit fields that do not apply to an operation."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_APPLICABLE"

    def __bool__(self) -> bool:
        return False


NOT_APPLICABLE = _NotApplicable()

MaybeInt = Union[int, _NotApplicable]


class Operation(str, Enum):
    STAKE = "Stake"
    UNSTAKE = "Unstake"
    AUTOCOMPOUND = "Autocompound"


@dataclass(frozen=True)
class AuditRecord:
    """Denormalised summary of one completed operation."""
    operation: Operation
    user_address: str
    amount_staked: int
    tier: Tier
    reward_percentage: int
    start_time: int
    duration: MaybeInt = NOT_APPLICABLE
    unlock_time: MaybeInt = NOT_APPLICABLE
    end_time: MaybeInt = NOT_APPLICABLE
    locked_reward: MaybeInt = NOT_APPLICABLE
    released_reward: MaybeInt = NOT_APPLICABLE
    completion: Completion = Completion.NOT_APPLICABLE

    def to_dict(self) -> Dict[str, Any]:
        """Raw values keyed by field name; N/A fields map to None."""
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is NOT_APPLICABLE:
                value = None
            elif isinstance(value, Enum):
                value = value.value
            data[f.name] = value
        return data


class AuditRecordBuilder:
    """Assembles AuditRecords from program snapshots."""

    @staticmethod
    def for_stake(
        user_address: str,
        amount: int,
        tier: Tier,
        reward_percentage: int,
        now: int,
    ) -> AuditRecord:
        # Unlock time and reward are only known to the program at this point
        return AuditRecord(
            operation=Operation.STAKE,
            user_address=user_address,
            amount_staked=amount,
            tier=tier,
            reward_percentage=reward_percentage,
            start_time=now,
        )

    @staticmethod
    def for_unstake(
        user_address: str,
        tier: Tier,
        before: LockRecord,
        reward_percentage: int,
        now: int,
    ) -> AuditRecord:
        settlement = settle(before.lock_start_time, before.unlock_time, before.locked_reward, now)
        return AuditRecord(
            operation=Operation.UNSTAKE,
            user_address=user_address,
            amount_staked=before.locked_amount,
            tier=tier,
            reward_percentage=reward_percentage,
            start_time=before.lock_start_time,
            duration=settlement.elapsed,
            unlock_time=before.unlock_time,
            end_time=now,
            locked_reward=before.locked_reward,
            released_reward=settlement.released,
            completion=settlement.completion,
        )

    @staticmethod
    def for_autocompound(
        user_address: str,
        tier: Tier,
        before: LockRecord,
        after: LockRecord,
        reward_percentage: int,
        now: int,
    ) -> AuditRecord:
        # The reward is rolled into the extended lock, never released early
        return AuditRecord(
            operation=Operation.AUTOCOMPOUND,
            user_address=user_address,
            amount_staked=after.locked_amount,
            tier=tier,
            reward_percentage=reward_percentage,
            start_time=before.lock_start_time,
            duration=max(0, now - before.lock_start_time),
            unlock_time=after.unlock_time,
            end_time=now,
            locked_reward=before.locked_reward,
            released_reward=before.locked_reward,
            completion=Completion.FULL,
        )
