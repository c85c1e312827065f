"""
Boosted relay channel for tipped transactions.

The relay takes the base64 encoded transaction as the raw POST body and
answers with a bare HTTP status: nothing is echoed back, so the locally
computed signature is returned on any 2xx.
"""

import asyncio
import time
from typing import Optional

import aiohttp
from solders.transaction import Transaction

from core.sender import SendResult, SendStatus
from core.settings import DEFAULT_RELAY_URL
from core.transaction import signature_of, to_base64
from utils.logger import get_logger

logger = get_logger(__name__)


class RelaySender:
    name = "relay"

    def __init__(self, relay_url: str = DEFAULT_RELAY_URL, timeout: float = 30.0):
        self.relay_url = relay_url
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None
        logger.info(f"[RELAY] Init: url={self.relay_url}")

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send(self, transaction: Transaction) -> SendResult:
        """Send transaction via the relay endpoint."""
        signature = signature_of(transaction)
        started = time.monotonic()

        try:
            session = await self._get_session()
            async with session.post(
                self.relay_url,
                data=to_base64(transaction).encode("ascii"),
                headers={"Content-Type": "application/octet-stream"},
            ) as resp:
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"[RELAY] Fail to send request, signature {signature}: {e!r}")
            return SendResult(
                status=SendStatus.FAILED,
                signature=signature,
                provider=self.name,
                error=f"Fail to send request, signature {signature}: {e!r}",
                latency_ms=(time.monotonic() - started) * 1000,
            )

        latency_ms = (time.monotonic() - started) * 1000
        if 200 <= status < 300:
            logger.info(f"[RELAY] TX sent: {signature[:20]}...")
            return SendResult(
                status=SendStatus.SUCCESS,
                signature=signature,
                provider=self.name,
                latency_ms=latency_ms,
            )

        logger.error(f"[RELAY] HTTP {status} for signature {signature}")
        return SendResult(
            status=SendStatus.FAILED,
            signature=signature,
            provider=self.name,
            error=f"Fail to send request, signature {signature}: HTTP {status}",
            latency_ms=latency_ms,
        )
