"""
Contract of the on-chain staking program as seen by the client.

The program is an external collaborator: it owns balances, lock slots and
reward accrual, and it signs and sends transactions through whatever wallet
the host provides. Instruction methods return the transaction signature once
the cluster confirms it and raise on failure. Views return protocol integers
in base units.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from vhagar.config import StakingConfig
from vhagar.staking.models import StakedBalance, StakingPoolState, TierInfo, UserLockInfo
from vhagar.staking.pda import derive_user_lock_info_address, derive_user_token_account
from vhagar.staking.rpc import SolanaRpcClient
from vhagar.staking.tiers import Tier


class StakingProgram(ABC):
    """Remote staking program bound to one acting wallet."""

    @property
    @abstractmethod
    def wallet_address(self) -> str:
        """Base58 address of the wallet signing instructions."""

    # -- reads ---------------------------------------------------------------

    @abstractmethod
    async def account_exists(self, address: str) -> bool:
        ...

    @abstractmethod
    async def fetch_user_lock_info(self, user: str) -> Optional[UserLockInfo]:
        """Decoded lock account for ``user``, or None if it was never created."""

    @abstractmethod
    async def fetch_staking_pool(self) -> StakingPoolState:
        ...

    # -- user instructions ---------------------------------------------------

    @abstractmethod
    async def stake(self, amount: int, tier: Tier, slot: int) -> str:
        ...

    @abstractmethod
    async def unstake(self, tier: Tier, slot: int) -> str:
        ...

    @abstractmethod
    async def autocompound(self, tier: Tier, slot: int) -> str:
        ...

    # -- views ---------------------------------------------------------------

    @abstractmethod
    async def get_apy(self) -> List[TierInfo]:
        ...

    @abstractmethod
    async def get_stake_info(self) -> List[TierInfo]:
        ...

    @abstractmethod
    async def get_total_staked_balance(self) -> StakedBalance:
        ...

    @abstractmethod
    async def get_reward_balance(self) -> int:
        ...

    async def get_manager_address(self) -> str:
        return (await self.fetch_staking_pool()).manager

    async def get_program_pause_status(self) -> bool:
        return (await self.fetch_staking_pool()).is_paused

    async def get_staking_pause_status(self) -> bool:
        return (await self.fetch_staking_pool()).is_staking_paused

    # -- manager instructions ------------------------------------------------

    @abstractmethod
    async def pause(self) -> str:
        ...

    @abstractmethod
    async def unpause(self) -> str:
        ...

    @abstractmethod
    async def staking_pause(self) -> str:
        ...

    @abstractmethod
    async def staking_unpause(self) -> str:
        ...

    @abstractmethod
    async def update_reward_percentage(self, new_percentage: int) -> str:
        ...

    @abstractmethod
    async def update_lock_time(self, new_lock_time: int) -> str:
        ...

    @abstractmethod
    async def deposit_rewards(self, amount: int) -> str:
        ...

    @abstractmethod
    async def withdraw_unassigned_rewards(self) -> str:
        ...


class RpcStakingProgram(StakingProgram, ABC):
    """
    Base for live bindings: account lookups and vault balances go through
    JSON-RPC, while instruction building and account decoding are left to
    the IDL-aware subclass.
    """

    def __init__(self, config: StakingConfig, wallet_address: str, rpc: Optional[SolanaRpcClient] = None):
        self.config = config
        self._wallet_address = wallet_address
        self.rpc = rpc or SolanaRpcClient(config.rpc_url, config.commitment)

    @property
    def wallet_address(self) -> str:
        return self._wallet_address

    def user_lock_info_address(self, user: Optional[str] = None) -> str:
        return derive_user_lock_info_address(
            user or self._wallet_address, self.config.staking_pool_key, self.config.program_id,
        )

    def user_token_account(self, owner: Optional[str] = None) -> str:
        return derive_user_token_account(owner or self._wallet_address, self.config.token_mint)

    async def account_exists(self, address: str) -> bool:
        return await self.rpc.account_exists(address)

    async def get_reward_balance(self) -> int:
        return await self.rpc.get_token_account_balance(self.config.reward_vault)

    async def fetch_user_lock_info(self, user: str) -> Optional[UserLockInfo]:
        data = await self.rpc.get_account_data(self.user_lock_info_address(user))
        if data is None:
            return None
        return self.decode_user_lock_info(data)

    @abstractmethod
    def decode_user_lock_info(self, data: bytes) -> UserLockInfo:
        """Decode raw account bytes using the program's IDL layout."""
