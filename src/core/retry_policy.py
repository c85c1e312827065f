"""
Retry budgets for the submit/confirm loop.

Tipped submissions go through the relay and get a short submit budget with a
longer confirmation window; untipped ones resubmit through the node up to
150 times. The policy is picked once per call from the tip amount.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Timing and attempt caps for one submission call."""

    max_submit_retries: int      # resubmissions after the first send
    submit_delay: float          # seconds between submit cycles
    confirm_attempts: int        # status polls per submit cycle
    confirm_delay: float         # seconds before each status poll

    def __post_init__(self):
        if self.max_submit_retries < 0:
            raise ValueError("max_submit_retries must be >= 0")
        if self.confirm_attempts < 0:
            raise ValueError("confirm_attempts must be >= 0")
        if self.submit_delay < 0 or self.confirm_delay < 0:
            raise ValueError("delays must be >= 0")

    @classmethod
    def from_dict(cls, data: dict, defaults: "RetryPolicy") -> "RetryPolicy":
        """Overlay a (possibly partial) config section on top of `defaults`."""
        return cls(
            max_submit_retries=int(data.get("max_submit_retries", defaults.max_submit_retries)),
            submit_delay=float(data.get("submit_delay", defaults.submit_delay)),
            confirm_attempts=int(data.get("confirm_attempts", defaults.confirm_attempts)),
            confirm_delay=float(data.get("confirm_delay", defaults.confirm_delay)),
        )


STANDARD_POLICY = RetryPolicy(
    max_submit_retries=150,
    submit_delay=0.0,
    confirm_attempts=8,
    confirm_delay=0.5,
)

TIPPED_POLICY = RetryPolicy(
    max_submit_retries=1,
    submit_delay=0.5,
    confirm_attempts=20,
    confirm_delay=0.5,
)


def tip_present(tip_lamports: int | None) -> bool:
    return (tip_lamports or 0) > 0


def select_policy(
    tip_lamports: int | None,
    standard: RetryPolicy = STANDARD_POLICY,
    tipped: RetryPolicy = TIPPED_POLICY,
) -> RetryPolicy:
    return tipped if tip_present(tip_lamports) else standard
