"""
Sender protocol: a uniform interface over the delivery channels.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Protocol

from solders.transaction import Transaction

from core.errors import RpcError
from utils.logger import get_logger

if TYPE_CHECKING:
    from core.client import SolanaClient

logger = get_logger(__name__)


class SendStatus(Enum):
    SUCCESS = 'success'
    FAILED = 'failed'


@dataclass
class SendResult:
    """Result of one send attempt"""
    status: SendStatus
    signature: Optional[str] = None
    provider: str = ''
    latency_ms: float = 0.0
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == SendStatus.SUCCESS


class SendProvider(Protocol):
    """Delivery channel protocol"""

    name: str

    async def send(self, transaction: Transaction) -> SendResult:
        """Send a signed transaction; failures are reported, not raised"""
        ...

    async def close(self) -> None:
        """Close connections"""
        ...


class RpcSender:
    """Standard channel: the node's sendTransaction.

    Preflight is skipped and the node is told not to rebroadcast
    (maxRetries=0); the submit loop owns every retry.
    """

    name = 'rpc'

    def __init__(self, client: "SolanaClient", preflight_commitment: str = 'confirmed'):
        self.client = client
        self.preflight_commitment = preflight_commitment

    async def send(self, transaction: Transaction) -> SendResult:
        started = time.monotonic()
        try:
            signature = await self.client.send_transaction(
                transaction,
                skip_preflight=True,
                preflight_commitment=self.preflight_commitment,
                max_retries=0,
            )
        except RpcError as e:
            logger.warning(f"[RPC] Send failed: {e}")
            return SendResult(
                status=SendStatus.FAILED,
                provider=self.name,
                error=str(e),
                latency_ms=(time.monotonic() - started) * 1000,
            )

        logger.debug(f"[RPC] TX sent: {signature}")
        return SendResult(
            status=SendStatus.SUCCESS,
            signature=signature,
            provider=self.name,
            latency_ms=(time.monotonic() - started) * 1000,
        )

    async def close(self) -> None:
        await self.client.close()
