"""
Settings consumed by the submission pipeline.

Built by config_loader.load_send_config() from YAML, or directly in code.
"""

from dataclasses import dataclass, field

from core.retry_policy import STANDARD_POLICY, TIPPED_POLICY, RetryPolicy

LAMPORTS_PER_SOL = 1_000_000_000

DEFAULT_RELAY_URL = "https://rpc.ore.wtf/send"
DEFAULT_TIP_RECIPIENT = "EoXEM37CZpA4pPv2pet4befGQ93sw2ZRNUrEWVQRJQnK"
DEFAULT_MIN_BALANCE_SOL = 0.005

COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")


@dataclass
class SendSettings:
    rpc_endpoint: str
    commitment: str = "confirmed"
    min_balance_sol: float = DEFAULT_MIN_BALANCE_SOL
    skip_confirm: bool = False

    # Fees
    priority_fee: int | None = None          # static micro-lamports per CU
    dynamic_fee: bool = False
    dynamic_fee_strategy: str = "aggressive"
    dynamic_fee_max: int | None = None       # cap for the dynamic estimate
    tip_lamports: int = 0

    # Relay channel
    relay_url: str = DEFAULT_RELAY_URL
    tip_recipient: str = DEFAULT_TIP_RECIPIENT

    # Retry budgets
    standard_policy: RetryPolicy = field(default_factory=lambda: STANDARD_POLICY)
    tipped_policy: RetryPolicy = field(default_factory=lambda: TIPPED_POLICY)

    rpc_timeout: float = 10.0
    relay_timeout: float = 30.0

    def __post_init__(self):
        if not self.rpc_endpoint:
            raise ValueError("rpc_endpoint is required")
        if self.commitment not in COMMITMENT_LEVELS:
            raise ValueError(
                f"Unknown commitment '{self.commitment}', expected one of {COMMITMENT_LEVELS}"
            )
        if self.priority_fee is not None and self.priority_fee < 0:
            raise ValueError("priority_fee must be >= 0")
        if self.dynamic_fee_max is not None and self.dynamic_fee_max < 0:
            raise ValueError("dynamic_fee_max must be >= 0")
        if self.tip_lamports < 0:
            raise ValueError("tip_lamports must be >= 0")
        if self.min_balance_sol < 0:
            raise ValueError("min_balance_sol must be >= 0")

    @property
    def min_balance_lamports(self) -> int:
        return int(round(self.min_balance_sol * LAMPORTS_PER_SOL))
