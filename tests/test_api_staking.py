"""
Tests for the staking API routes.

Tests cover:
- Health check
- Pool info endpoint and its sanitized error
- Per-wallet lock listing
- Missing program binding
"""

import pytest
from fastapi.testclient import TestClient

from api.fastapi_app import create_app
from vhagar.errors import RemoteCallFailed
from vhagar.staking.models import LockRecord, UserLockInfo
from vhagar.staking.tiers import LOCK_SLOTS_PER_TIER, Tier

DAY = 86_400
T0 = 1_700_000_000
WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


def gold_slot_zero():
    empty = LockRecord(0, 0, 0, 0)
    locks = [[empty] * LOCK_SLOTS_PER_TIER for _ in Tier]
    locks[Tier.GOLD.index][0] = LockRecord(25 * 10**8, 10**8, T0, T0 + 60 * DAY)
    return UserLockInfo(locks=tuple(tuple(row) for row in locks))


class TestHealth:
    def test_healthy_with_program(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"]["staking"] is True

    def test_degraded_without_program(self, vhagar_config):
        response = TestClient(create_app(config=vhagar_config)).get("/api/health")
        assert response.json()["status"] == "degraded"


class TestStakingInfo:
    def test_returns_totals_and_tiers(self, client):
        response = client.get("/api/staking/info")
        assert response.status_code == 200

        data = response.json()
        assert data["totalStaked"] == 80_000_000
        assert data["totalClaimable"] == 30_000_000
        assert [t["tag"] for t in data["stakeInfo"]] == ["Bronze", "Silver", "Gold", "Diamond"]
        assert data["stakeInfo"][0] == {"tag": "Bronze", "lockPeriod": 15 * DAY, "rewardPercentage": 1577}

    def test_error_is_sanitized(self, client, program, monkeypatch):
        async def boom():
            raise RemoteCallFailed("RPC https://secret-node/ failed", "getAccountInfo")

        monkeypatch.setattr(program, "get_total_staked_balance", boom)
        response = client.get("/api/staking/info")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["message"] == "Failed to fetch staking info"
        assert "secret" not in response.text

    def test_not_configured(self, vhagar_config):
        response = TestClient(create_app(config=vhagar_config)).get("/api/staking/info")
        assert response.status_code == 503
        assert response.json()["error"]["code"] == "CFG_001"


class TestUserInfo:
    def test_lists_active_locks(self, client, program):
        program.lock_info = gold_slot_zero()
        response = client.get(f"/api/staking/user/{WALLET}")

        assert response.status_code == 200
        data = response.json()
        assert data["wallet"] == WALLET
        assert data["locks"] == [{
            "tier": "Gold",
            "slot": 0,
            "lockedAmount": "2.5 VGR",
            "lockedReward": "0.1 VGR",
            "unlockTime": "Jan 13, 2024, 10:13 PM",
            "lockedTime": "Nov 14, 2023, 10:13 PM",
        }]

    def test_unknown_wallet(self, client, program):
        program.lock_info = None
        response = client.get(f"/api/staking/user/{WALLET}")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "SYS_002"
        assert error["message"] == "No staking information found for this address."

    @pytest.mark.parametrize("path", ["/api/staking/user/", "/api/staking/nope"])
    def test_unknown_routes(self, client, path):
        assert client.get(path).status_code == 404
