"""Minimal Solana JSON-RPC reader with retry on rate limiting."""

from __future__ import annotations

import asyncio
import base64
import logging
import random
from typing import Any, Dict, List, Optional

from vhagar.errors import ConfigurationError, RemoteCallFailed

try:
    import aiohttp
    HAS_AIOHTTP = True
except ImportError:
    HAS_AIOHTTP = False

logger = logging.getLogger(__name__)


def _backoff_delay(base: float, attempt: int, max_delay: float = 30.0) -> float:
    """Exponential backoff with jitter to prevent thundering herd."""
    delay = min(max_delay, base * (2 ** attempt))
    jitter = delay * 0.1 * random.random()
    return delay + jitter


def _is_rate_limited(status: int) -> bool:
    """Check if response indicates rate limiting."""
    return status in (429, 503, 502)


class SolanaRpcClient:
    """Read-only JSON-RPC calls against a Solana cluster."""

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        *,
        retries: int = 3,
        backoff_seconds: float = 0.5,
        timeout_seconds: int = 20,
    ):
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.retries = retries
        self.backoff_seconds = backoff_seconds
        self.timeout_seconds = timeout_seconds
        self._request_id = 0

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Invoke ``method`` and return its ``result``. Raises RemoteCallFailed."""
        if not HAS_AIOHTTP:
            raise ConfigurationError("aiohttp not installed; Solana RPC reads are unavailable")
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params or []}
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        last_error = None

        for attempt in range(self.retries):
            try:
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    async with session.post(self.rpc_url, json=payload) as resp:
                        if _is_rate_limited(resp.status):
                            wait_time = _backoff_delay(self.backoff_seconds, attempt)
                            logger.warning(f"Rate limited on {method}, waiting {wait_time:.1f}s")
                            last_error = f"HTTP {resp.status}"
                            await asyncio.sleep(wait_time)
                            continue
                        if resp.status != 200:
                            raise RemoteCallFailed(f"RPC {method} returned HTTP {resp.status}", method)
                        body = await resp.json()
            except asyncio.TimeoutError:
                last_error = "timeout"
                logger.warning(f"RPC timeout on {method} (attempt {attempt + 1}/{self.retries})")
                await asyncio.sleep(_backoff_delay(self.backoff_seconds, attempt))
                continue
            except aiohttp.ClientError as e:
                last_error = str(e)
                logger.warning(f"RPC client error on {method}: {e} (attempt {attempt + 1}/{self.retries})")
                await asyncio.sleep(_backoff_delay(self.backoff_seconds, attempt))
                continue

            if body.get("error"):
                error = body["error"]
                message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
                raise RemoteCallFailed(f"RPC {method} failed: {message}", method)
            return body.get("result")

        raise RemoteCallFailed(f"RPC {method} failed after {self.retries} attempts: {last_error}", method)

    async def get_account_info(self, address: str) -> Optional[Dict[str, Any]]:
        """Account value, or None when the account does not exist."""
        result = await self.call(
            "getAccountInfo",
            [address, {"encoding": "base64", "commitment": self.commitment}],
        )
        return (result or {}).get("value")

    async def get_account_data(self, address: str) -> Optional[bytes]:
        value = await self.get_account_info(address)
        if value is None:
            return None
        data = value.get("data") or ["", "base64"]
        return base64.b64decode(data[0])

    async def account_exists(self, address: str) -> bool:
        return await self.get_account_info(address) is not None

    async def get_token_account_balance(self, address: str) -> int:
        """Raw base-unit balance of an SPL token account."""
        result = await self.call(
            "getTokenAccountBalance",
            [address, {"commitment": self.commitment}],
        )
        return int(((result or {}).get("value") or {}).get("amount", 0))
