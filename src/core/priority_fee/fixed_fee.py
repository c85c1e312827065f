from core.priority_fee import PriorityFeePlugin


class FixedPriorityFee(PriorityFeePlugin):
    """Fixed priority fee plugin."""

    def __init__(self, fixed_fee: int | None):
        """
        Initialize the fixed fee plugin.

        Args:
            fixed_fee: Fixed priority fee in micro-lamports, or None for no fee.
        """
        if fixed_fee is not None and fixed_fee < 0:
            raise ValueError("fixed_fee must be >= 0")
        self.fixed_fee = fixed_fee

    async def get_priority_fee(self) -> int | None:
        """Return the configured fee."""
        return self.fixed_fee
