"""
SenderRegistry - picks the delivery channel for a transaction.

Tipped transactions go to the relay, everything else to the node's RPC.
"""

from enum import Enum
from typing import Dict

from solders.transaction import Transaction

from core.retry_policy import tip_present
from core.sender import SendProvider, SendResult, SendStatus
from utils.logger import get_logger

logger = get_logger(__name__)


class Channel(Enum):
    STANDARD = 'standard'   # node sendTransaction
    RELAY = 'relay'         # boosted relay, requires a tip


def select_channel(tip_lamports: int | None) -> Channel:
    """Channel for a transaction carrying `tip_lamports`."""
    return Channel.RELAY if tip_present(tip_lamports) else Channel.STANDARD


class SenderRegistry:
    """
    Delivery channel registry.

    Usage:
        registry = SenderRegistry()
        registry.register(Channel.STANDARD, RpcSender(client))
        registry.register(Channel.RELAY, RelaySender())

        result = await registry.send(tx, tip_lamports=1000)
    """

    def __init__(self):
        self._providers: Dict[Channel, SendProvider] = {}

    def register(self, channel: Channel, provider: SendProvider) -> None:
        """Register the provider serving `channel`"""
        self._providers[channel] = provider
        logger.info(f"Registered sender: {provider.name} ({channel.value})")

    def get_provider(self, channel: Channel) -> SendProvider | None:
        return self._providers.get(channel)

    async def send(self, transaction: Transaction, tip_lamports: int | None = None) -> SendResult:
        """
        Send the transaction on the channel chosen by the tip.
        Provider exceptions are reported as a failed SendResult.
        """
        channel = select_channel(tip_lamports)
        provider = self._providers.get(channel)
        if provider is None:
            return SendResult(
                status=SendStatus.FAILED,
                error=f'No sender registered for {channel.value} channel',
            )

        try:
            return await provider.send(transaction)
        except Exception as e:
            logger.error(f"Provider {provider.name} error: {e}")
            return SendResult(
                status=SendStatus.FAILED,
                provider=provider.name,
                error=str(e),
            )

    async def close(self) -> None:
        """Close all providers"""
        for provider in self._providers.values():
            try:
                await provider.close()
            except Exception as e:
                logger.error(f"Error closing {provider.name}: {e}")
