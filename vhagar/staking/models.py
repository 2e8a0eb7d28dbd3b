"""
Read-only snapshots of staking program accounts.

The program owns all state; these are copies taken before and after a remote
call. Decoded accounts may expose fields as attributes or mapping keys and in
snake_case or camelCase depending on the IDL, so ``_field`` accepts both.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from vhagar.staking.tiers import LOCK_SLOTS_PER_TIER, Tier


def _field(obj: Any, *names: str, default: Any = None) -> Any:
    for name in names:
        if isinstance(obj, dict):
            if name in obj:
                return obj[name]
        elif hasattr(obj, name):
            return getattr(obj, name)
    return default


def _to_int(value: Any) -> int:
    return int(value) if value is not None else 0


def variant_name(tag: Any) -> str:
    """Name of a decoded Anchor enum value ({"gold": {}}, Gold(), "Gold")."""
    if isinstance(tag, str):
        return tag
    if isinstance(tag, dict) and tag:
        return next(iter(tag))
    return type(tag).__name__


@dataclass(frozen=True)
class LockRecord:
    """One lock slot as stored by the program."""
    locked_amount: int
    locked_reward: int
    lock_start_time: int
    unlock_time: int

    @property
    def is_active(self) -> bool:
        return self.locked_amount > 0

    @classmethod
    def from_account(cls, lock: Any) -> 'LockRecord':
        return cls(
            locked_amount=_to_int(_field(lock, "locked_amount", "lockedAmount")),
            locked_reward=_to_int(_field(lock, "locked_reward", "lockedReward")),
            lock_start_time=_to_int(_field(
                lock, "lock_start_time", "lockStartTime", "locked_time", "lockedTime",
            )),
            unlock_time=_to_int(_field(lock, "unlock_time", "unlockTime")),
        )


@dataclass(frozen=True)
class UserLockInfo:
    """Per-user lock account: ``locks[tier.index][slot]``."""
    locks: Tuple[Tuple[LockRecord, ...], ...]

    @classmethod
    def from_account(cls, account: Any) -> 'UserLockInfo':
        rows = _field(account, "locks", default=[]) or []
        return cls(locks=tuple(
            tuple(LockRecord.from_account(lock) for lock in row) for row in rows
        ))

    def lock_for(self, tier: Tier, slot: int) -> Optional[LockRecord]:
        try:
            return self.locks[tier.index][slot]
        except IndexError:
            return None

    def active_locks(self) -> List[Tuple[Tier, int, LockRecord]]:
        """(tier, slot, lock) for every slot holding tokens."""
        found = []
        for tier in Tier:
            for slot in range(LOCK_SLOTS_PER_TIER):
                lock = self.lock_for(tier, slot)
                if lock is not None and lock.is_active:
                    found.append((tier, slot, lock))
        return found


@dataclass(frozen=True)
class StakingPoolState:
    """The pool account fields the client reads."""
    bronze_reward_percentage: int
    is_paused: bool = False
    is_staking_paused: bool = False
    manager: Optional[str] = None

    @classmethod
    def from_account(cls, account: Any) -> 'StakingPoolState':
        manager = _field(account, "manager")
        return cls(
            bronze_reward_percentage=_to_int(_field(
                account, "bronze_reward_percentage", "bronzeRewardPercentage",
            )),
            is_paused=bool(_field(account, "is_paused", "isPaused", "paused", default=False)),
            is_staking_paused=bool(_field(
                account, "is_staking_paused", "isStakingPaused", "staking_paused", default=False,
            )),
            manager=str(manager) if manager is not None else None,
        )


@dataclass(frozen=True)
class TierInfo:
    """One entry of the program's get_stake_info / get_apy views."""
    tier: Tier
    lock_period: int = 0
    reward_percentage: int = 0

    @classmethod
    def from_account(cls, item: Any) -> 'TierInfo':
        return cls(
            tier=Tier.parse(variant_name(_field(item, "tag"))),
            lock_period=_to_int(_field(item, "lock_period", "lockPeriod")),
            reward_percentage=_to_int(_field(
                item, "reward_percentage", "rewardPercentage", "apy",
            )),
        )


@dataclass(frozen=True)
class StakedBalance:
    """Totals from the get_total_staked_balance view."""
    total_locked_balance: int = 0
    total_locked_reward: int = 0

    @classmethod
    def from_account(cls, result: Any) -> 'StakedBalance':
        return cls(
            total_locked_balance=_to_int(_field(result, "total_locked_balance", "totalLockedBalance")),
            total_locked_reward=_to_int(_field(result, "total_locked_reward", "totalLockedReward")),
        )
