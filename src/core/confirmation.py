"""
Confirmation poller.

Polls getSignatureStatuses after a submission until the transaction is
confirmed, rejected on-chain, or the poll budget runs out. A timeout is not a
failure: the orchestrator decides whether to resubmit.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from solders.transaction_status import TransactionConfirmationStatus

from core.cancel import CancelToken
from core.errors import RpcError
from core.retry_policy import RetryPolicy
from utils.logger import get_logger

if TYPE_CHECKING:
    from core.client import SolanaClient

logger = get_logger(__name__)


class ConfirmationLevel(Enum):
    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"

    @classmethod
    def parse(cls, value: Any) -> "ConfirmationLevel | None":
        """Level for a node-reported status; None when absent or unrecognised."""
        if value is None:
            return None
        for solders_level, level in _SOLDERS_LEVELS:
            if value == solders_level:
                return level
        try:
            return cls(str(value).lower())
        except ValueError:
            logger.debug(f"Ignoring unknown confirmation status {value!r}")
            return None


_SOLDERS_LEVELS = (
    (TransactionConfirmationStatus.Processed, ConfirmationLevel.PROCESSED),
    (TransactionConfirmationStatus.Confirmed, ConfirmationLevel.CONFIRMED),
    (TransactionConfirmationStatus.Finalized, ConfirmationLevel.FINALIZED),
)


@dataclass(frozen=True)
class SignatureStatus:
    """One entry of a getSignatureStatuses response."""

    slot: int
    confirmations: int | None = None
    err: Any = None
    confirmation_status: ConfirmationLevel | None = None

    @classmethod
    def from_status(cls, status: Any) -> "SignatureStatus":
        """Convert a solders TransactionStatus."""
        return cls(
            slot=status.slot,
            confirmations=status.confirmations,
            err=status.err,
            confirmation_status=ConfirmationLevel.parse(status.confirmation_status),
        )


class ConfirmationOutcome(Enum):
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"


@dataclass
class ConfirmResult:
    """Result of one confirmation phase."""

    outcome: ConfirmationOutcome
    signature: str
    polls: int = 0
    slot: int | None = None
    level: ConfirmationLevel | None = None
    error: Any = None
    last_transport_error: str | None = None

    @property
    def confirmed(self) -> bool:
        return self.outcome == ConfirmationOutcome.CONFIRMED


class ConfirmationPoller:
    """Polls a signature until it reaches a terminal status."""

    def __init__(self, client: "SolanaClient"):
        self.client = client

    async def poll(
        self,
        signature: str,
        policy: RetryPolicy,
        cancel_token: CancelToken | None = None,
    ) -> ConfirmResult:
        """
        Poll `signature` up to `policy.confirm_attempts` times.

        Each poll is preceded by `policy.confirm_delay`. Transport errors are
        logged and count as an inconclusive poll.
        """
        cancel_token = cancel_token or CancelToken()
        last_transport_error = None

        for poll in range(1, policy.confirm_attempts + 1):
            await cancel_token.sleep(policy.confirm_delay)
            try:
                statuses = await cancel_token.run(
                    self.client.get_signature_statuses([signature])
                )
            except RpcError as e:
                last_transport_error = str(e)
                logger.warning(f"Status check {poll}/{policy.confirm_attempts} failed: {e}")
                continue

            for status in statuses:
                if status is None:
                    continue

                if status.err is not None:
                    logger.error(f"Transaction {signature} failed on-chain: {status.err}")
                    return ConfirmResult(
                        outcome=ConfirmationOutcome.REJECTED,
                        signature=signature,
                        polls=poll,
                        slot=status.slot,
                        level=status.confirmation_status,
                        error=status.err,
                    )

                if status.confirmation_status in (
                    ConfirmationLevel.CONFIRMED,
                    ConfirmationLevel.FINALIZED,
                ):
                    logger.info(
                        f"Transaction {signature} {status.confirmation_status.value} "
                        f"at slot {status.slot}"
                    )
                    return ConfirmResult(
                        outcome=ConfirmationOutcome.CONFIRMED,
                        signature=signature,
                        polls=poll,
                        slot=status.slot,
                        level=status.confirmation_status,
                    )

            logger.debug(f"Status check {poll}/{policy.confirm_attempts}: not confirmed yet")

        return ConfirmResult(
            outcome=ConfirmationOutcome.TIMED_OUT,
            signature=signature,
            polls=policy.confirm_attempts,
            last_transport_error=last_transport_error,
        )
