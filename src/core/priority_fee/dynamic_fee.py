import math
import time
from enum import Enum
from typing import TYPE_CHECKING

from solders.pubkey import Pubkey

from core.errors import RpcError
from core.priority_fee import PriorityFeePlugin
from utils.logger import get_logger

if TYPE_CHECKING:
    from core.client import SolanaClient

logger = get_logger(__name__)


class FeeStrategy(Enum):
    """How far up the recent fee distribution to bid."""
    CONSERVATIVE = "conservative"  # median
    AGGRESSIVE = "aggressive"      # p75
    SNIPER = "sniper"              # p90


# strategy -> (percentile, multiplier)
STRATEGY_PARAMS = {
    FeeStrategy.CONSERVATIVE: (0.50, 1.0),
    FeeStrategy.AGGRESSIVE: (0.75, 1.5),
    FeeStrategy.SNIPER: (0.90, 1.2),
}


def nearest_rank(values: list[int], q: float) -> int:
    """Nearest-rank percentile of a non-empty sample."""
    ordered = sorted(values)
    rank = max(1, math.ceil(q * len(ordered)))
    return ordered[rank - 1]


class DynamicPriorityFee(PriorityFeePlugin):
    """Estimates the priority fee from getRecentPrioritizationFees."""

    MIN_FEE = 0
    MAX_FEE = 10_000_000
    CACHE_TTL = 2.0  # seconds

    def __init__(
        self,
        client: "SolanaClient",
        strategy: FeeStrategy | str = FeeStrategy.AGGRESSIVE,
        min_fee: int | None = None,
        max_fee: int | None = None,
        accounts: list[Pubkey] | None = None,
    ):
        """
        Args:
            client: RPC client the fee sample is read from.
            strategy: conservative, aggressive or sniper.
            min_fee: Floor in micro-lamports.
            max_fee: Ceiling in micro-lamports.
            accounts: Write-locked accounts to scope the sample to.
                      None samples the whole network.
        """
        self.client = client
        self.strategy = self._parse_strategy(strategy)
        self.min_fee = self.MIN_FEE if min_fee is None else min_fee
        self.max_fee = self.MAX_FEE if max_fee is None else max_fee
        self.accounts = accounts

        self._cached_fee: int | None = None
        self._cached_at = 0.0

    @staticmethod
    def _parse_strategy(strategy: FeeStrategy | str) -> FeeStrategy:
        if isinstance(strategy, FeeStrategy):
            return strategy
        try:
            return FeeStrategy(strategy.lower())
        except ValueError:
            logger.warning(f"Unknown fee strategy '{strategy}', falling back to aggressive")
            return FeeStrategy.AGGRESSIVE

    def set_strategy(self, strategy: FeeStrategy | str):
        self.strategy = self._parse_strategy(strategy)
        self._cached_fee = None
        logger.info(f"Fee strategy set to {self.strategy.value}")

    async def get_priority_fee(self) -> int | None:
        """
        Returns:
            Optional[int]: Estimated fee in micro-lamports, or None when the
            node reported nothing usable.
        """
        if self._cached_fee is not None and time.monotonic() - self._cached_at < self.CACHE_TTL:
            return self._cached_fee

        try:
            samples = await self.client.get_recent_prioritization_fees(self.accounts)
        except RpcError as e:
            logger.warning(f"Could not read recent prioritization fees: {e}")
            return None

        # slots without any prioritized transaction report 0
        samples = [fee for fee in samples if fee > 0]
        if not samples:
            logger.warning("No recent prioritization fees reported")
            return None

        fee = self.estimate(samples)
        self._cached_fee, self._cached_at = fee, time.monotonic()
        logger.info(
            f"Dynamic priority fee: {fee:,} microlamports "
            f"({self.strategy.value}, {len(samples)} samples)"
        )
        return fee

    def estimate(self, samples: list[int]) -> int:
        """Percentile of `samples` scaled by the strategy multiplier, clamped."""
        q, multiplier = STRATEGY_PARAMS[self.strategy]
        base = nearest_rank(samples, q)
        fee = int(base * multiplier)
        clamped = min(max(fee, self.min_fee), self.max_fee)
        logger.debug(f"p{int(q * 100)}={base:,} x{multiplier} -> {fee:,}, clamped {clamped:,}")
        return clamped
