"""
Error handling and exception classes.

NOTE: There are two error hierarchies in this codebase:
1. vhagar.errors (this module) - Internal errors with StakingError as root
2. api.errors - HTTP response helpers for the FastAPI surface

Use StakingError subclasses for business logic and let the API layer
translate them with make_error_response().
"""

from vhagar.errors.exceptions import (
    StakingError, ValidationError, InvalidTier, InvalidLockSlot, InvalidLockWindow,
    AccountNotInitialized, RecordNotFound, RemoteCallFailed, DeliveryFailed,
    ConfigurationError,
)

__all__ = [
    "StakingError", "ValidationError", "InvalidTier", "InvalidLockSlot",
    "InvalidLockWindow", "AccountNotInitialized", "RecordNotFound",
    "RemoteCallFailed", "DeliveryFailed", "ConfigurationError",
]
