"""
Reward forfeiture rules for early unstaking.

Mirrors the staking program's payout arithmetic:

    elapsed >= full duration          -> 100% of the locked reward
    half duration <= elapsed < full   -> 50% (floored)
    elapsed < half duration           -> nothing

The half threshold is ``full_duration // 2``. Elapsed time before the lock
start (clock skew) is clamped to zero.
"""

from dataclasses import dataclass
from enum import Enum

from vhagar.errors import InvalidLockWindow


class Completion(str, Enum):
    """How much of the lock duration was served."""
    FULL = "full"
    HALF = "half"
    LESS_THAN_HALF = "less_than_half"
    NOT_APPLICABLE = "not_applicable"

    @property
    def label(self) -> str:
        return _COMPLETION_LABELS[self]


_COMPLETION_LABELS = {
    Completion.FULL: "Full",
    Completion.HALF: "Half",
    Completion.LESS_THAN_HALF: "Less than half",
    Completion.NOT_APPLICABLE: "N/A",
}


@dataclass(frozen=True)
class Settlement:
    """Outcome of settling a lock at a point in time."""
    released: int
    completion: Completion
    elapsed: int
    full_duration: int
    locked_reward: int

    @property
    def forfeited(self) -> int:
        return self.locked_reward - self.released


def classify(elapsed: int, full_duration: int) -> Completion:
    """Completion bucket for ``elapsed`` seconds of a ``full_duration`` lock."""
    if full_duration <= 0:
        raise ValueError(f"Lock duration must be positive, got {full_duration}")
    elapsed = max(0, elapsed)
    if elapsed >= full_duration:
        return Completion.FULL
    if elapsed >= full_duration // 2:
        return Completion.HALF
    return Completion.LESS_THAN_HALF


def settle(lock_start: int, unlock_time: int, locked_reward: int, now: int) -> Settlement:
    """Reward released when unstaking at ``now``."""
    full_duration = unlock_time - lock_start
    if full_duration <= 0:
        raise InvalidLockWindow(lock_start, unlock_time)
    if locked_reward < 0:
        raise ValueError(f"Locked reward must be non-negative, got {locked_reward}")

    elapsed = max(0, now - lock_start)
    completion = classify(elapsed, full_duration)

    if completion is Completion.FULL:
        released = locked_reward
    elif completion is Completion.HALF:
        released = locked_reward // 2
    else:
        released = 0

    return Settlement(
        released=released,
        completion=completion,
        elapsed=elapsed,
        full_duration=full_duration,
        locked_reward=locked_reward,
    )
