"""Configuration module for Vhagar."""

from vhagar.config.loader import (
    APIConfig,
    AuditSinkConfig,
    DEFAULT_AUDIT_FIELD_MAP,
    StakingConfig,
    VhagarConfig,
    get_config,
    reload_config,
)

__all__ = [
    "APIConfig",
    "AuditSinkConfig",
    "DEFAULT_AUDIT_FIELD_MAP",
    "StakingConfig",
    "VhagarConfig",
    "get_config",
    "reload_config",
]
