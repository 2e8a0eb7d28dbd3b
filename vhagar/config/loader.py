"""
Vhagar Configuration Loader - Single Source of Truth

Consolidates configuration loading into one module:
- Environment variables (.env, loaded with python-dotenv)
- Deployment constants for the staking program
- Audit sink settings

Usage:
    from vhagar.config import get_config

    cfg = get_config()
    rpc_url = cfg.staking.rpc_url
    form_url = cfg.audit_sink.url
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = ROOT / ".env"

T = TypeVar("T")

# Google Form entry ids used by the production audit sheet.
DEFAULT_AUDIT_FIELD_MAP: Dict[str, str] = {
    "operation": "entry.789225441",
    "user_address": "entry.1422429793",
    "amount_staked": "entry.1258731213",
    "tier": "entry.241253245",
    "duration": "entry.932689884",
    "reward_percentage": "entry.49812710",
    "start_time": "entry.35443853",
    "unlock_time": "entry.1389448011",
    "end_time": "entry.1543706863",
    "locked_reward": "entry.710024409",
    "released_reward": "entry.1984049138",
    "completion": "entry.744966987",
}

DEFAULT_AUDIT_SINK_URL = (
    "https://docs.google.com/forms/u/0/d/e/"
    "1FAIpQLSdt5zwL9UM9RzOMQaiTBwrzzAL4-FZhhXB2zvIBY00hs3Kz6g/formResponse"
)

TRANSPORT_MODES = ("auto", "opaque", "client")

DEFAULT_CORS_ORIGINS = ("http://localhost:3000",)


def _get_env(key: str, default: T = None, cast: Type[T] = str) -> T:
    """Read ``key`` from the environment, cast to ``cast``.

    Blank values count as unset. Numbers that fail to parse fall back to
    ``default`` with a warning.
    """
    value = os.environ.get(key, "").strip()
    if not value:
        return default

    if cast is bool:
        return value.lower() in ("true", "1", "yes", "on")
    if cast is list:
        return [item.strip() for item in value.split(",") if item.strip()]
    if cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            logger.warning(f"Ignoring non-numeric {key}={value!r}")
            return default
    return value


@dataclass
class StakingConfig:
    """Solana staking program deployment."""
    rpc_url: str = "https://api.devnet.solana.com"
    commitment: str = "confirmed"
    program_id: str = "DybDiU1cRQMPJQLEE5xbtMZg1cihaW7g9aPvqyDSAwwg"
    staking_pool_key: str = "9QmBeWNKpzzSFZisGf8c3ay6ttnh7N5LFdUsWaGmbpgY"
    stake_authority: str = "BfwdtsDcLLWiTTL8WprXXDEZsZBNHHKcjiKZ8zhvTXgc"
    token_mint: str = "EwVMtR3qMpES8uskX4AFWSxLnRjGRLowaYzn6C4ZN48Y"
    stake_vault: str = "DQPsctR9MT5MBgKhPQE8i8faM6CQU7HRtAn8o9fQ7nwG"
    reward_vault: str = "DQPsctR9MT5MBgKhPQE8i8faM6CQU7HRtAn8o9fQ7nwG"
    token_decimals: int = 9

    @classmethod
    def from_env(cls) -> 'StakingConfig':
        defaults = cls()
        return cls(
            rpc_url=_get_env("SOLANA_RPC_URL", defaults.rpc_url),
            commitment=_get_env("SOLANA_COMMITMENT", defaults.commitment),
            program_id=_get_env("STAKING_PROGRAM_ID", defaults.program_id),
            staking_pool_key=_get_env("STAKING_POOL_KEY", defaults.staking_pool_key),
            stake_authority=_get_env("STAKE_AUTHORITY", defaults.stake_authority),
            token_mint=_get_env("TOKEN_MINT", defaults.token_mint),
            stake_vault=_get_env("STAKE_VAULT", defaults.stake_vault),
            reward_vault=_get_env("REWARD_VAULT", defaults.reward_vault),
            token_decimals=_get_env("TOKEN_DECIMALS", defaults.token_decimals, int),
        )


@dataclass
class AuditSinkConfig:
    """External audit log endpoint."""
    url: str = DEFAULT_AUDIT_SINK_URL
    enabled: bool = True
    timeout_seconds: float = 10.0
    transport: str = "auto"
    field_map: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_AUDIT_FIELD_MAP))

    @classmethod
    def from_env(cls) -> 'AuditSinkConfig':
        field_map = dict(DEFAULT_AUDIT_FIELD_MAP)
        override = _get_env("AUDIT_SINK_FIELD_MAP", "")
        if override:
            try:
                field_map.update(json.loads(override))
            except (ValueError, TypeError) as e:
                logger.warning(f"Ignoring malformed AUDIT_SINK_FIELD_MAP: {e}")

        transport = _get_env("AUDIT_SINK_TRANSPORT", "auto").lower()
        if transport not in TRANSPORT_MODES:
            logger.warning(f"Unknown AUDIT_SINK_TRANSPORT {transport!r}, using auto")
            transport = "auto"

        return cls(
            url=_get_env("AUDIT_SINK_URL", DEFAULT_AUDIT_SINK_URL),
            enabled=_get_env("AUDIT_SINK_ENABLED", True, bool),
            timeout_seconds=_get_env("AUDIT_SINK_TIMEOUT_SECONDS", 10.0, float),
            transport=transport,
            field_map=field_map,
        )


@dataclass
class APIConfig:
    """Read-only staking API server."""
    host: str = "127.0.0.1"
    port: int = 8766
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @classmethod
    def from_env(cls) -> 'APIConfig':
        defaults = cls()
        return cls(
            host=_get_env("API_HOST", defaults.host),
            port=_get_env("API_PORT", defaults.port, int),
            cors_origins=_get_env("CORS_ORIGINS", defaults.cors_origins, list),
        )


@dataclass
class VhagarConfig:
    """Complete configuration."""
    staking: StakingConfig = field(default_factory=StakingConfig)
    audit_sink: AuditSinkConfig = field(default_factory=AuditSinkConfig)
    api: APIConfig = field(default_factory=APIConfig)

    _env_file_loaded: bool = False

    @classmethod
    def load(cls, env_path: Path = ENV_FILE) -> 'VhagarConfig':
        """Load configuration from environment."""
        # Never overwrite variables already set in the process
        loaded = load_dotenv(env_path, override=False)

        config = cls(
            staking=StakingConfig.from_env(),
            audit_sink=AuditSinkConfig.from_env(),
            api=APIConfig.from_env(),
        )
        config._env_file_loaded = bool(loaded)

        logger.info(f"Configuration loaded (.env: {config._env_file_loaded})")
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "staking": asdict(self.staking),
            "audit_sink": asdict(self.audit_sink),
            "api": asdict(self.api),
        }


# Global configuration instance
_config: Optional[VhagarConfig] = None


def get_config() -> VhagarConfig:
    """Get global configuration instance."""
    global _config
    if _config is None:
        _config = VhagarConfig.load()
    return _config


def reload_config() -> VhagarConfig:
    """Reload configuration from environment."""
    global _config
    _config = VhagarConfig.load()
    return _config
