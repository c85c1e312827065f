"""
Reliable send-and-confirm.

Submitting -> Confirming -> {Done, Submitting (retry)}

The same signed transaction is resubmitted until it confirms, fails on-chain
or the policy's resubmission ceiling is passed. The blockhash is never
refreshed inside the loop, so every attempt carries the same signature.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from core.cancel import CancelToken
from core.client import SolanaClient
from core.compute_budget import ComputeBudget, CostEstimator
from core.confirmation import ConfirmationOutcome, ConfirmationPoller
from core.errors import OnChainRejectionError, RetriesExhaustedError
from core.priority_fee import DynamicPriorityFee, FeeConfig, PriorityFeeManager
from core.relay_sender import RelaySender
from core.retry_policy import STANDARD_POLICY, TIPPED_POLICY, RetryPolicy, select_policy
from core.sender import RpcSender
from core.sender_registry import Channel, SenderRegistry
from core.settings import SendSettings
from core.transaction import signature_of
from core.tx_builder import TransactionBuilder
from utils.logger import bind_log_signature, get_logger, unbind_log_signature

logger = get_logger(__name__)


class SubmissionStatus(Enum):
    LANDED = "landed"
    REJECTED_ON_CHAIN = "rejected_on_chain"
    EXHAUSTED_RETRIES = "exhausted_retries"


@dataclass
class SubmissionResult:
    """Terminal outcome of one send_and_confirm call."""

    status: SubmissionStatus
    signature: str
    attempts: int
    confirmed: bool = False
    error: Any = None

    @property
    def is_success(self) -> bool:
        return self.status == SubmissionStatus.LANDED

    def raise_for_status(self) -> str:
        """Return the signature, or raise the error matching a failed outcome."""
        if self.status == SubmissionStatus.REJECTED_ON_CHAIN:
            raise OnChainRejectionError(self.signature, self.error)
        if self.status == SubmissionStatus.EXHAUSTED_RETRIES:
            raise RetriesExhaustedError(self.attempts, self.error)
        return self.signature


class Phase(Enum):
    SUBMITTING = "submitting"
    CONFIRMING = "confirming"
    RETRYING = "retrying"


@dataclass(frozen=True)
class SubmissionProgress:
    phase: Phase
    attempt: int
    signature: str
    last_error: str | None = None


ProgressCallback = Callable[[SubmissionProgress], None]


class TransactionSubmitter:
    """Builds, submits and confirms transactions with bounded retries."""

    def __init__(
        self,
        fee_manager: PriorityFeeManager,
        builder: TransactionBuilder,
        senders: SenderRegistry,
        poller: ConfirmationPoller,
        tip_lamports: int = 0,
        skip_confirm: bool = False,
        standard_policy: RetryPolicy = STANDARD_POLICY,
        tipped_policy: RetryPolicy = TIPPED_POLICY,
        on_progress: ProgressCallback | None = None,
        client: SolanaClient | None = None,
    ):
        self.fee_manager = fee_manager
        self.builder = builder
        self.senders = senders
        self.poller = poller
        self.tip_lamports = tip_lamports
        self.skip_confirm = skip_confirm
        self.standard_policy = standard_policy
        self.tipped_policy = tipped_policy
        self.on_progress = on_progress
        self.client = client

    @classmethod
    def from_settings(
        cls,
        settings: SendSettings,
        on_progress: ProgressCallback | None = None,
        cost_estimator: CostEstimator | None = None,
    ) -> "TransactionSubmitter":
        """Wire a submitter and its collaborators from settings."""
        client = SolanaClient(
            settings.rpc_endpoint, commitment=settings.commitment, timeout=settings.rpc_timeout
        )

        dynamic_plugin = None
        if settings.dynamic_fee:
            dynamic_plugin = DynamicPriorityFee(client, strategy=settings.dynamic_fee_strategy)
        fee_manager = PriorityFeeManager(
            dynamic_fee_plugin=dynamic_plugin,
            fixed_fee=settings.priority_fee,
            hard_cap=settings.dynamic_fee_max,
        )

        builder = TransactionBuilder(
            client,
            tip_recipient=Pubkey.from_string(settings.tip_recipient),
            min_balance_lamports=settings.min_balance_lamports,
            commitment=settings.commitment,
            cost_estimator=cost_estimator,
        )

        senders = SenderRegistry()
        senders.register(Channel.STANDARD, RpcSender(client))
        senders.register(
            Channel.RELAY, RelaySender(settings.relay_url, timeout=settings.relay_timeout)
        )

        return cls(
            fee_manager=fee_manager,
            builder=builder,
            senders=senders,
            poller=ConfirmationPoller(client),
            tip_lamports=settings.tip_lamports,
            skip_confirm=settings.skip_confirm,
            standard_policy=settings.standard_policy,
            tipped_policy=settings.tipped_policy,
            on_progress=on_progress,
            client=client,
        )

    async def close(self) -> None:
        await self.senders.close()
        if self.client is not None:
            await self.client.close()

    def policy_for(self, tip_lamports: int | None) -> RetryPolicy:
        return select_policy(tip_lamports, self.standard_policy, self.tipped_policy)

    async def send_and_confirm(
        self,
        instructions: list[Instruction],
        signer: Keypair,
        compute_budget: ComputeBudget | None = None,
        fee_payer: Keypair | None = None,
        skip_confirm: bool | None = None,
        cancel_token: CancelToken | None = None,
    ) -> SubmissionResult:
        """
        Build a transaction from `instructions` and drive it until it lands.

        Args:
            instructions: Caller instructions, included verbatim.
            signer: Signs the instructions and pays the tip.
            compute_budget: Defaults to a dynamic budget.
            fee_payer: Pays network fees; defaults to the signer.
            skip_confirm: Return as soon as one send succeeds. Defaults to
                          the submitter's setting.
            cancel_token: Cancels the call at the next wait.

        Returns:
            SubmissionResult: LANDED, REJECTED_ON_CHAIN or EXHAUSTED_RETRIES.

        Raises:
            InsufficientFundsError: fee payer balance too low; nothing is sent.
            RpcError: the latest blockhash could not be fetched.
            SubmissionCancelledError: `cancel_token` was cancelled.
        """
        cancel_token = cancel_token or CancelToken()
        compute_budget = compute_budget or ComputeBudget.dynamic()

        fee_config = await self.fee_manager.resolve(self.tip_lamports)
        transaction = await self.builder.build(
            instructions,
            compute_budget,
            fee_config,
            signer,
            fee_payer=fee_payer,
            cancel_token=cancel_token,
        )
        return await self.submit_signed(
            transaction, fee_config, skip_confirm=skip_confirm, cancel_token=cancel_token
        )

    async def submit_signed(
        self,
        transaction: Transaction,
        fee_config: FeeConfig,
        skip_confirm: bool | None = None,
        cancel_token: CancelToken | None = None,
    ) -> SubmissionResult:
        """Run the submit/confirm loop for an already signed transaction."""
        cancel_token = cancel_token or CancelToken()
        skip_confirm = self.skip_confirm if skip_confirm is None else skip_confirm
        policy = self.policy_for(fee_config.tip_lamports)
        signature = signature_of(transaction)

        log_token = bind_log_signature(signature)
        try:
            return await self._submit_loop(
                transaction, fee_config, policy, skip_confirm, cancel_token
            )
        finally:
            unbind_log_signature(log_token)

    async def _submit_loop(
        self,
        transaction: Transaction,
        fee_config: FeeConfig,
        policy: RetryPolicy,
        skip_confirm: bool,
        cancel_token: CancelToken,
    ) -> SubmissionResult:
        signature = signature_of(transaction)
        attempts = 0
        last_error = None

        while True:
            self._report(Phase.SUBMITTING, attempts, signature, last_error)
            result = await cancel_token.run(
                self.senders.send(transaction, fee_config.tip_lamports)
            )

            if result.is_success:
                sent_signature = result.signature or signature

                if skip_confirm:
                    logger.info(f"Sent: {sent_signature}")
                    return SubmissionResult(
                        status=SubmissionStatus.LANDED,
                        signature=sent_signature,
                        attempts=attempts + 1,
                        confirmed=False,
                    )

                self._report(Phase.CONFIRMING, attempts, sent_signature, last_error)
                confirmation = await self.poller.poll(sent_signature, policy, cancel_token)

                if confirmation.outcome == ConfirmationOutcome.CONFIRMED:
                    logger.info(f"OK {sent_signature}")
                    return SubmissionResult(
                        status=SubmissionStatus.LANDED,
                        signature=sent_signature,
                        attempts=attempts + 1,
                        confirmed=True,
                    )

                if confirmation.outcome == ConfirmationOutcome.REJECTED:
                    logger.error(f"ERROR: {confirmation.error}")
                    return SubmissionResult(
                        status=SubmissionStatus.REJECTED_ON_CHAIN,
                        signature=sent_signature,
                        attempts=attempts + 1,
                        error=confirmation.error,
                    )

                last_error = confirmation.last_transport_error or (
                    f"not confirmed after {confirmation.polls} status checks"
                )
            else:
                last_error = result.error
                logger.warning(f"ERROR: {last_error}")

            await cancel_token.sleep(policy.submit_delay)
            attempts += 1

            if attempts > policy.max_submit_retries:
                logger.error("ERROR: Max retries")
                return SubmissionResult(
                    status=SubmissionStatus.EXHAUSTED_RETRIES,
                    signature=signature,
                    attempts=attempts,
                    error=last_error,
                )
            self._report(Phase.RETRYING, attempts, signature, last_error)

    def _report(self, phase: Phase, attempt: int, signature: str, last_error: str | None):
        if phase == Phase.SUBMITTING:
            logger.info(f"Submitting transaction... (attempt {attempt})")
        elif phase == Phase.RETRYING:
            logger.debug(f"Retrying after: {last_error}")
        if self.on_progress is not None:
            self.on_progress(SubmissionProgress(phase, attempt, signature, last_error))
