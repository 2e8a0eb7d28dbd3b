"""
Lock tiers and reward percentage scaling.

The staking pool stores a single Bronze reward percentage; every other tier
earns a fixed multiple of it. Percentages are integers scaled by 10,000
relative to a fraction, so 1577 is 15.77%.
"""

from enum import Enum
from typing import Dict, Tuple, Union

from vhagar.errors import InvalidTier

SECONDS_PER_DAY = 86_400
PERCENTAGE_SCALE = 10_000
LOCK_SLOTS_PER_TIER = 2


class Tier(str, Enum):
    """Staking lock category, in increasing multiplier order."""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    DIAMOND = "diamond"

    @classmethod
    def parse(cls, value: Union[str, "Tier"]) -> "Tier":
        """Normalise user input ("Gold", "gold", Tier.GOLD) to a Tier."""
        if isinstance(value, Tier):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidTier(value)

    @property
    def index(self) -> int:
        """Position in the program's locks[tier][slot] array."""
        return list(Tier).index(self)

    @property
    def variant(self) -> str:
        """Anchor enum variant name."""
        return self.value.capitalize()

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def multiplier(self) -> int:
        return TIER_TABLE[self][0]

    @property
    def lock_days(self) -> int:
        return TIER_TABLE[self][1]

    @property
    def lock_seconds(self) -> int:
        return self.lock_days * SECONDS_PER_DAY


# Maps tier -> (multiple of the Bronze percentage, nominal lock days)
TIER_TABLE: Dict[Tier, Tuple[int, int]] = {
    Tier.BRONZE: (1, 15),
    Tier.SILVER: (3, 30),
    Tier.GOLD: (9, 60),
    Tier.DIAMOND: (27, 120),
}


def resolve_reward_percentage(base_bronze_percentage: int, tier: Tier) -> int:
    """Effective reward percentage for ``tier`` given the pool's Bronze value."""
    if not isinstance(tier, Tier):
        raise InvalidTier(tier)
    if base_bronze_percentage < 0:
        raise ValueError(f"Reward percentage must be non-negative, got {base_bronze_percentage}")
    return int(base_bronze_percentage) * TIER_TABLE[tier][0]
