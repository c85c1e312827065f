"""
Transaction builder: compute budget, caller instructions, optional tip, signature.

Instruction order is fixed:

    set_compute_unit_limit | set_compute_unit_price | caller instructions | tip transfer
"""

from typing import TYPE_CHECKING

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from core.cancel import CancelToken
from core.compute_budget import MAX_COMPUTE_UNIT_LIMIT, ComputeBudget, CostEstimator
from core.errors import InsufficientFundsError, RpcError
from core.priority_fee import FeeConfig
from core.settings import LAMPORTS_PER_SOL
from core.transaction import signature_of, tip_transfer
from utils.logger import get_logger

if TYPE_CHECKING:
    from core.client import SolanaClient

logger = get_logger(__name__)

# Head room added on top of an estimator's figure.
ESTIMATE_MARGIN_UNITS = 1_000


class TransactionBuilder:
    """Builds signed, fee-prioritized transactions."""

    def __init__(
        self,
        client: "SolanaClient",
        tip_recipient: Pubkey,
        min_balance_lamports: int = 5_000_000,
        commitment: str = "confirmed",
        cost_estimator: CostEstimator | None = None,
    ):
        self.client = client
        self.tip_recipient = tip_recipient
        self.min_balance_lamports = min_balance_lamports
        self.commitment = commitment
        self.cost_estimator = cost_estimator

    async def check_balance(
        self, fee_payer: Pubkey, cancel_token: CancelToken | None = None
    ) -> int | None:
        """
        Ensure the fee payer can pay for the transaction.

        Returns the balance, or None when it could not be read (the build
        goes ahead in that case).

        Raises:
            InsufficientFundsError: balance at or below the minimum.
        """
        cancel_token = cancel_token or CancelToken()
        try:
            balance = await cancel_token.run(self.client.get_balance(fee_payer))
        except RpcError as e:
            logger.warning(f"Balance check for {fee_payer} failed, continuing: {e}")
            return None

        if balance <= self.min_balance_lamports:
            logger.error(
                f"Insufficient balance: {balance / LAMPORTS_PER_SOL} SOL "
                f"(minimum {self.min_balance_lamports / LAMPORTS_PER_SOL} SOL)"
            )
            raise InsufficientFundsError(balance, self.min_balance_lamports)
        return balance

    async def compute_unit_limit(
        self, compute_budget: ComputeBudget, instructions: list[Instruction], payer: Pubkey
    ) -> int:
        if not compute_budget.is_dynamic:
            return compute_budget.units
        if self.cost_estimator is None:
            return MAX_COMPUTE_UNIT_LIMIT

        estimate = await self.cost_estimator.estimate_compute_units(instructions, payer)
        if estimate is None:
            return MAX_COMPUTE_UNIT_LIMIT
        return min(estimate + ESTIMATE_MARGIN_UNITS, MAX_COMPUTE_UNIT_LIMIT)

    def build_instructions(
        self,
        instructions: list[Instruction],
        compute_unit_limit: int,
        fee_config: FeeConfig,
        signer: Pubkey,
    ) -> list[Instruction]:
        """Assemble the final instruction list in submission order."""
        final_ixs = [
            set_compute_unit_limit(compute_unit_limit),
            set_compute_unit_price(fee_config.priority_fee_micro_lamports),
        ]
        final_ixs.extend(instructions)
        if fee_config.tip_present:
            final_ixs.append(tip_transfer(signer, self.tip_recipient, fee_config.tip_lamports))
        return final_ixs

    def sign(
        self,
        instructions: list[Instruction],
        signer: Keypair,
        fee_payer: Keypair,
        recent_blockhash: Hash,
    ) -> Transaction:
        message = Message(instructions, fee_payer.pubkey())
        if signer.pubkey() == fee_payer.pubkey():
            return Transaction([signer], message, recent_blockhash)
        return Transaction([signer, fee_payer], message, recent_blockhash)

    async def build(
        self,
        instructions: list[Instruction],
        compute_budget: ComputeBudget,
        fee_config: FeeConfig,
        signer: Keypair,
        fee_payer: Keypair | None = None,
        cancel_token: CancelToken | None = None,
    ) -> Transaction:
        """
        Build and sign a transaction.

        Args:
            instructions: Caller instructions, included verbatim.
            compute_budget: Dynamic or fixed compute unit limit.
            fee_config: Priority fee and optional tip.
            signer: Signs the caller instructions and pays the tip.
            fee_payer: Pays network fees; defaults to the signer.
            cancel_token: Checked at each network call.

        Raises:
            InsufficientFundsError: fee payer balance too low.
            RpcError: the latest blockhash could not be fetched.
        """
        cancel_token = cancel_token or CancelToken()
        fee_payer = fee_payer or signer

        await self.check_balance(fee_payer.pubkey(), cancel_token)

        cu_limit = await self.compute_unit_limit(compute_budget, instructions, fee_payer.pubkey())
        logger.info(f"Priority fee: {fee_config.priority_fee_micro_lamports} microlamports")
        if fee_config.tip_present:
            logger.info(f"Tip: {fee_config.tip_lamports} lamports to {self.tip_recipient}")

        final_ixs = self.build_instructions(instructions, cu_limit, fee_config, signer.pubkey())

        recent_blockhash = await cancel_token.run(
            self.client.get_latest_blockhash(self.commitment)
        )
        transaction = self.sign(final_ixs, signer, fee_payer, recent_blockhash)
        logger.debug(
            f"Built transaction {signature_of(transaction)} "
            f"({len(final_ixs)} instructions, cu_limit={cu_limit:,})"
        )
        return transaction
