"""
Vhagar Test Configuration

Shared fixtures: an in-memory staking program, a recording audit transport,
a controllable clock and the FastAPI test client.
"""

import os
import sys

# Add project root to path FIRST
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from typing import List, Optional

from vhagar.config import AuditSinkConfig, StakingConfig, VhagarConfig
from vhagar.staking.delivery import AuditTransport, DeliveryPipeline
from vhagar.staking.models import (
    StakedBalance,
    StakingPoolState,
    TierInfo,
    UserLockInfo,
)
from vhagar.staking.orchestrator import StakingOrchestrator
from vhagar.staking.program import StakingProgram
from vhagar.staking.tiers import Tier, resolve_reward_percentage

# Known Solana devnet addresses (no funds)
TEST_WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
TEST_MINT = "EwVMtR3qMpES8uskX4AFWSxLnRjGRLowaYzn6C4ZN48Y"
AUDIT_URL = "https://audit.example.com/formResponse"

T0 = 1_700_000_000


class FakeStakingProgram(StakingProgram):
    """In-memory program double recording every call."""

    def __init__(self, wallet: str = TEST_WALLET):
        self._wallet = wallet
        self.token_account_initialized = True
        self.bronze_reward_percentage = 1577
        self.lock_info: Optional[UserLockInfo] = None
        self.lock_info_after_submit: Optional[UserLockInfo] = None
        self.fail_with: Optional[Exception] = None
        self.pool_error: Optional[Exception] = None
        self.signature = "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW"
        self.calls: List[tuple] = []
        self.paused = False
        self.staking_paused = False

    @property
    def wallet_address(self) -> str:
        return self._wallet

    async def account_exists(self, address: str) -> bool:
        self.calls.append(("account_exists", address))
        return self.token_account_initialized

    async def fetch_user_lock_info(self, user: str) -> Optional[UserLockInfo]:
        self.calls.append(("fetch_user_lock_info", user))
        return self.lock_info

    async def fetch_staking_pool(self) -> StakingPoolState:
        self.calls.append(("fetch_staking_pool",))
        if self.pool_error:
            raise self.pool_error
        return StakingPoolState(
            bronze_reward_percentage=self.bronze_reward_percentage,
            is_paused=self.paused,
            is_staking_paused=self.staking_paused,
            manager=self._wallet,
        )

    async def _submit(self, name: str, *args) -> str:
        self.calls.append((name,) + args)
        if self.fail_with:
            raise self.fail_with
        if self.lock_info_after_submit is not None:
            self.lock_info = self.lock_info_after_submit
        return self.signature

    async def stake(self, amount, tier, slot):
        return await self._submit("stake", amount, tier, slot)

    async def unstake(self, tier, slot):
        return await self._submit("unstake", tier, slot)

    async def autocompound(self, tier, slot):
        return await self._submit("autocompound", tier, slot)

    async def get_apy(self):
        return [TierInfo(t, 0, resolve_reward_percentage(self.bronze_reward_percentage, t)) for t in Tier]

    async def get_stake_info(self):
        return [
            TierInfo(t, t.lock_seconds, resolve_reward_percentage(self.bronze_reward_percentage, t))
            for t in Tier
        ]

    async def get_total_staked_balance(self):
        return StakedBalance(80_000_000 * 10**9, 30_000_000 * 10**9)

    async def get_reward_balance(self):
        return 5_500_000_000

    async def pause(self):
        return await self._submit("pause")

    async def unpause(self):
        return await self._submit("unpause")

    async def staking_pause(self):
        return await self._submit("staking_pause")

    async def staking_unpause(self):
        return await self._submit("staking_unpause")

    async def update_reward_percentage(self, new_percentage):
        return await self._submit("update_reward_percentage", new_percentage)

    async def update_lock_time(self, new_lock_time):
        return await self._submit("update_lock_time", new_lock_time)

    async def deposit_rewards(self, amount):
        return await self._submit("deposit_rewards", amount)

    async def withdraw_unassigned_rewards(self):
        return await self._submit("withdraw_unassigned_rewards")


class RecordingTransport(AuditTransport):
    """Audit transport that stores requests instead of sending them."""

    name = "recording"

    def __init__(self, error: Optional[Exception] = None):
        self.sent: List[tuple] = []
        self.error = error

    async def send(self, url, body, headers):
        self.sent.append((url, body, headers))
        if self.error:
            raise self.error


class FixedClock:
    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def program():
    return FakeStakingProgram()


@pytest.fixture
def audit_config():
    return AuditSinkConfig(url=AUDIT_URL)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def pipeline(audit_config, transport):
    return DeliveryPipeline(audit_config, transport=transport)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def orchestrator(program, pipeline, clock):
    return StakingOrchestrator(program, pipeline, token_mint=TEST_MINT, clock=clock)


@pytest.fixture
def vhagar_config(audit_config):
    return VhagarConfig(staking=StakingConfig(token_mint=TEST_MINT), audit_sink=audit_config)


@pytest.fixture
def client(program, vhagar_config, transport):
    from fastapi.testclient import TestClient
    from api.fastapi_app import create_app
    app = create_app(program=program, config=vhagar_config)
    app.state.orchestrator.pipeline.transport = transport
    return TestClient(app)


@pytest.fixture
def failing_transport():
    """Factory for transports whose send raises ``error``."""
    return lambda error: RecordingTransport(error=error)
