"""Core transaction submission functionality."""

from core.cancel import CancelToken
from core.client import SolanaClient
from core.compute_budget import ComputeBudget
from core.errors import (
    InsufficientFundsError,
    OnChainRejectionError,
    RetriesExhaustedError,
    RpcError,
    SubmissionCancelledError,
    SubmissionError,
)
from core.send_and_confirm import (
    SubmissionResult,
    SubmissionStatus,
    TransactionSubmitter,
)
from core.settings import SendSettings
from core.transaction import signature_of

__all__ = [
    # Submission
    "TransactionSubmitter",
    "SubmissionResult",
    "SubmissionStatus",
    "SendSettings",
    "CancelToken",
    "ComputeBudget",
    "signature_of",
    "SolanaClient",
    # Errors
    "SubmissionError",
    "InsufficientFundsError",
    "RpcError",
    "OnChainRejectionError",
    "RetriesExhaustedError",
    "SubmissionCancelledError",
]
