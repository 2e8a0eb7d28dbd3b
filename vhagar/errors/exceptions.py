"""Custom exception hierarchy."""
from typing import Optional, Dict, Any


class StakingError(Exception):
    """Base exception for all Vhagar staking errors."""
    code: str = "SYS_001"
    status_code: int = 500

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(StakingError):
    """Input validation failed."""
    code = "VAL_001"
    status_code = 400


class InvalidTier(ValidationError):
    """Lock tier is not one of Bronze, Silver, Gold, Diamond."""
    code = "VAL_002"

    def __init__(self, tier: Any):
        super().__init__(f"Invalid lock tag: {tier!r}", {"tier": str(tier)})
        self.tier = tier


class InvalidLockSlot(ValidationError):
    """Lock slot index is out of range."""
    code = "VAL_003"

    def __init__(self, slot: Any, slots_per_tier: int):
        super().__init__(
            f"Invalid lock slot {slot!r}; expected 0..{slots_per_tier - 1}",
            {"slot": slot, "slots_per_tier": slots_per_tier},
        )
        self.slot = slot


class InvalidLockWindow(ValidationError):
    """Lock unlock time does not come after its start time."""
    code = "VAL_004"

    def __init__(self, lock_start: int, unlock_time: int):
        super().__init__(
            f"Invalid lock window: unlock time {unlock_time} is not after start {lock_start}",
            {"lock_start": lock_start, "unlock_time": unlock_time},
        )


class AccountNotInitialized(StakingError):
    """The acting wallet has no token account for the staking mint."""
    code = "ACCT_001"
    status_code = 400

    def __init__(self, message: str = "User token account does not exist. Please initialize it first.",
                 account: Optional[str] = None):
        super().__init__(message, {"account": account})
        self.account = account


class RecordNotFound(StakingError):
    """A remote lookup returned nothing."""
    code = "SYS_002"
    status_code = 404


class RemoteCallFailed(StakingError):
    """Network or program-level failure talking to the staking program."""
    code = "EXT_001"
    status_code = 502

    def __init__(self, message: str, method: str = None):
        super().__init__(message, {"method": method})
        self.method = method


class DeliveryFailed(StakingError):
    """Audit record could not be delivered. Logged, never surfaced."""
    code = "EXT_002"
    status_code = 502

    def __init__(self, message: str, transport: str = None):
        super().__init__(message, {"transport": transport})
        self.transport = transport


class ConfigurationError(StakingError):
    """Configuration error."""
    code = "CFG_001"
    status_code = 500
