"""
Solana RPC client used by the submission pipeline.
"""

import asyncio
import json
from collections.abc import Awaitable
from typing import Any

import aiohttp
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from core.confirmation import SignatureStatus
from core.errors import RpcError
from utils.logger import get_logger

logger = get_logger(__name__)


class SolanaClient:
    """Abstraction for Solana RPC client operations."""

    def __init__(self, rpc_endpoint: str, commitment: str = "confirmed", timeout: float = 10.0):
        """Initialize Solana client with RPC endpoint.

        Args:
            rpc_endpoint: URL of the Solana RPC endpoint
            commitment: Default commitment for reads
            timeout: Per request timeout in seconds
        """
        self.rpc_endpoint = rpc_endpoint
        self.commitment = commitment
        self.timeout = timeout
        self._client: AsyncClient | None = None
        self._session: aiohttp.ClientSession | None = None

    async def get_client(self) -> AsyncClient:
        """Get or create the AsyncClient instance.

        Returns:
            AsyncClient instance
        """
        if self._client is None:
            self._client = AsyncClient(
                self.rpc_endpoint, commitment=Commitment(self.commitment), timeout=self.timeout
            )
        return self._client

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self):
        """Close the client connection."""
        if self._client:
            await self._client.close()
            self._client = None
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _value(self, method: str, request: Awaitable) -> Any:
        try:
            response = await request
        except (SolanaRpcException, RPCException) as e:
            raise RpcError(f"{method} failed: {e}", method=method) from e
        except asyncio.TimeoutError as e:
            raise RpcError(f"{method} timed out after {self.timeout}s", method=method) from e
        return response.value

    async def get_balance(self, pubkey: Pubkey, commitment: str | None = None) -> int:
        """Get the lamport balance of an account."""
        client = await self.get_client()
        return await self._value(
            "getBalance",
            client.get_balance(pubkey, commitment=Commitment(commitment or self.commitment)),
        )

    async def get_latest_blockhash(self, commitment: str | None = None) -> Hash:
        """Get the latest blockhash.

        Returns:
            Recent blockhash
        """
        client = await self.get_client()
        value = await self._value(
            "getLatestBlockhash",
            client.get_latest_blockhash(commitment=Commitment(commitment or self.commitment)),
        )
        return value.blockhash

    async def send_transaction(
        self,
        transaction: Transaction,
        skip_preflight: bool = True,
        preflight_commitment: str = "confirmed",
        max_retries: int | None = 0,
    ) -> str:
        """Send a signed transaction, returning the signature the node reports."""
        client = await self.get_client()
        tx_opts = TxOpts(
            skip_preflight=skip_preflight,
            preflight_commitment=Commitment(preflight_commitment),
            max_retries=max_retries,
        )
        signature = await self._value(
            "sendTransaction", client.send_transaction(transaction, tx_opts)
        )
        return str(signature)

    async def get_signature_statuses(
        self, signatures: list[str], search_transaction_history: bool = False
    ) -> list[SignatureStatus | None]:
        """Get the status of each signature; None for unknown signatures."""
        client = await self.get_client()
        sig_objs = [Signature.from_string(signature) for signature in signatures]
        statuses = await self._value(
            "getSignatureStatuses",
            client.get_signature_statuses(
                sig_objs, search_transaction_history=search_transaction_history
            ),
        )
        return [
            SignatureStatus.from_status(status) if status is not None else None
            for status in statuses
        ]

    async def post_rpc(self, body: dict[str, Any]) -> dict[str, Any]:
        """
        Send a raw RPC request to the Solana node.

        Args:
            body: JSON-RPC request body.

        Returns:
            Parsed JSON response.

        Raises:
            RpcError: On HTTP, timeout or decoding failures.
        """
        method = body.get("method")
        try:
            session = await self._get_session()
            async with session.post(self.rpc_endpoint, json=body) as response:
                response.raise_for_status()
                return await response.json()
        except aiohttp.ClientError as e:
            raise RpcError(f"RPC request {method} failed: {e}", method=method) from e
        except asyncio.TimeoutError as e:
            raise RpcError(f"RPC request {method} timed out after {self.timeout}s", method=method) from e
        except json.JSONDecodeError as e:
            raise RpcError(f"Failed to decode RPC response for {method}: {e}", method=method) from e

    async def get_recent_prioritization_fees(
        self, accounts: list[Pubkey] | None = None
    ) -> list[int]:
        """Get recent per-slot prioritization fees (micro-lamports per CU)."""
        body = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getRecentPrioritizationFees",
            "params": [[str(account) for account in accounts]] if accounts else [],
        }
        response = await self.post_rpc(body)
        if "error" in response:
            error = response["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise RpcError(
                f"getRecentPrioritizationFees returned error: {message}",
                method="getRecentPrioritizationFees",
            )
        result = response.get("result") or []
        return [int(item.get("prioritizationFee", 0)) for item in result]
