"""
Best-effort delivery of audit records to the external logging sink.

Records are flattened into the sink's form fields and POSTed as
``application/x-www-form-urlencoded``. Two transports implement the same
interface:

- OpaqueTransport (aiohttp): fire the POST and treat dispatch as success.
  The response is never inspected.
- ClientTransport (requests): a plain HTTP client call with an explicit
  timeout that raises on non-2xx responses.

The transport is chosen once, when the pipeline is built. Delivery is
at-most-once: any failure is logged and dropped, and never reaches the
staking operation that produced the record.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Set
from urllib.parse import urlencode

import requests

from vhagar.config import AuditSinkConfig
from vhagar.errors import DeliveryFailed
from vhagar.staking.audit_record import NOT_APPLICABLE, AuditRecord
from vhagar.staking.display import (
    format_duration,
    format_percentage,
    format_time,
    format_token_amount,
)

try:
    import aiohttp
    HAS_AIOHTTP = True
except ImportError:
    HAS_AIOHTTP = False

logger = logging.getLogger(__name__)

FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}
NOT_APPLICABLE_TEXT = "N/A"


# =============================================================================
# Serialization
# =============================================================================


def _text(value, formatter) -> str:
    if value is NOT_APPLICABLE:
        return NOT_APPLICABLE_TEXT
    return formatter(value)


def serialize(record: AuditRecord, field_map: Dict[str, str]) -> Dict[str, str]:
    """Flatten a record into ``{sink field name: display string}``."""
    values = {
        "operation": record.operation.value,
        "user_address": record.user_address,
        "amount_staked": format_token_amount(record.amount_staked),
        "tier": record.tier.label,
        "duration": _text(record.duration, format_duration),
        "reward_percentage": format_percentage(record.reward_percentage),
        "start_time": format_time(record.start_time),
        "unlock_time": _text(record.unlock_time, format_time),
        "end_time": _text(record.end_time, format_time),
        "locked_reward": _text(record.locked_reward, format_token_amount),
        "released_reward": _text(record.released_reward, format_token_amount),
        "completion": record.completion.label,
    }
    missing = set(values) - set(field_map)
    if missing:
        raise DeliveryFailed(f"Audit field map is missing {sorted(missing)}")
    return {field_map[name]: value for name, value in values.items()}


def encode_form(data: Dict[str, str]) -> str:
    return urlencode(data)


# =============================================================================
# Transports
# =============================================================================


class AuditTransport(ABC):
    """Sends an encoded form body to the sink."""

    name: str = "transport"

    @abstractmethod
    async def send(self, url: str, body: str, headers: Dict[str, str]) -> None:
        """Raise DeliveryFailed if the request could not be sent."""


class OpaqueTransport(AuditTransport):
    """POST without reading the response, like a no-cors browser fetch."""

    name = "opaque"

    def __init__(self, timeout_seconds: float = 10.0):
        self.timeout_seconds = timeout_seconds

    async def send(self, url: str, body: str, headers: Dict[str, str]) -> None:
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, data=body, headers=headers):
                    pass
        except asyncio.TimeoutError as e:
            raise DeliveryFailed(f"Audit POST timed out after {self.timeout_seconds}s", self.name) from e
        except aiohttp.ClientError as e:
            raise DeliveryFailed(f"Audit POST failed: {e}", self.name) from e


class ClientTransport(AuditTransport):
    """Blocking requests POST run in a worker thread, with a hard timeout."""

    name = "client"

    def __init__(self, timeout_seconds: float = 10.0, session: Optional[requests.Session] = None):
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def _post(self, url: str, body: str, headers: Dict[str, str]) -> None:
        response = self._session.post(url, data=body, headers=headers, timeout=self.timeout_seconds)
        response.raise_for_status()

    async def send(self, url: str, body: str, headers: Dict[str, str]) -> None:
        try:
            await asyncio.to_thread(self._post, url, body, headers)
        except requests.RequestException as e:
            raise DeliveryFailed(f"Audit POST failed: {e}", self.name) from e


def select_transport(config: AuditSinkConfig) -> AuditTransport:
    """Pick the transport for this process. Called once per pipeline."""
    if config.transport == "client" or not HAS_AIOHTTP:
        if config.transport == "opaque":
            logger.warning("Opaque audit transport requested but aiohttp is unavailable")
        return ClientTransport(config.timeout_seconds)
    return OpaqueTransport(config.timeout_seconds)


# =============================================================================
# Pipeline
# =============================================================================


class DeliveryPipeline:
    """Fire-and-forget audit submission."""

    def __init__(self, config: AuditSinkConfig, transport: Optional[AuditTransport] = None):
        self.config = config
        self.transport = transport or select_transport(config)
        self._pending: Set[asyncio.Task] = set()
        logger.debug(f"Audit delivery using {self.transport.name} transport")

    async def deliver(self, record: AuditRecord) -> bool:
        """Send one record. Never raises; returns whether the send went out."""
        if not self.config.enabled:
            logger.debug(f"Audit sink disabled, dropping {record.operation.value} record")
            return False

        try:
            body = encode_form(serialize(record, self.config.field_map))
            await self.transport.send(self.config.url, body, dict(FORM_HEADERS))
        except DeliveryFailed as e:
            logger.error(f"Error submitting {record.operation.value} audit record: {e.message}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error submitting {record.operation.value} audit record: {e}")
            return False

        logger.info(f"{record.operation.value} audit record submitted for {record.user_address}")
        return True

    def dispatch(self, record: AuditRecord) -> asyncio.Task:
        """Deliver in the background; the caller does not wait."""
        task = asyncio.get_running_loop().create_task(self.deliver(record))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
