"""
Error taxonomy for transaction submission.

Expected outcomes (a failed send, a timed out confirmation) travel as result
dataclasses; the exceptions below are the hard stops a caller sees.
"""


class SubmissionError(Exception):
    """Base class for every submission error."""


class InsufficientFundsError(SubmissionError):
    """Fee payer balance is at or below the configured minimum. Never retried."""

    def __init__(self, balance_lamports: int, min_balance_lamports: int):
        self.balance_lamports = balance_lamports
        self.min_balance_lamports = min_balance_lamports
        super().__init__(
            f"Insufficient balance: {balance_lamports / 1_000_000_000:.9f} SOL. "
            f"Please top up with at least {min_balance_lamports / 1_000_000_000} SOL"
        )


class RpcError(SubmissionError):
    """Transport level failure talking to the node or the relay."""

    def __init__(self, message: str, method: str | None = None):
        self.method = method
        super().__init__(message)


class OnChainRejectionError(SubmissionError):
    """The network executed the transaction and rejected it."""

    def __init__(self, signature: str, error):
        self.signature = signature
        self.error = error
        super().__init__(f"Transaction {signature} failed on-chain: {error}")


class RetriesExhaustedError(SubmissionError):
    """Gave up after the retry ceiling. The transaction may still land later."""

    def __init__(self, attempts: int, last_error: str | None = None):
        self.attempts = attempts
        self.last_error = last_error
        message = f"Max retries ({attempts} submission attempts)"
        if last_error:
            message += f", last error: {last_error}"
        super().__init__(message)


class SubmissionCancelledError(SubmissionError):
    """The caller cancelled the submission through its CancelToken."""
