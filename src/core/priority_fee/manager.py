from dataclasses import dataclass

from core.priority_fee import PriorityFeePlugin
from core.priority_fee.fixed_fee import FixedPriorityFee
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FeeConfig:
    """Fees attached to one transaction."""

    priority_fee_micro_lamports: int = 0
    tip_lamports: int | None = None

    def __post_init__(self):
        if self.priority_fee_micro_lamports < 0:
            raise ValueError("priority fee must be >= 0")
        if self.tip_lamports is not None and self.tip_lamports < 0:
            raise ValueError("tip must be >= 0")

    @property
    def tip_present(self) -> bool:
        return (self.tip_lamports or 0) > 0


class PriorityFeeManager:
    """Picks the priority fee for a transaction: dynamic estimate, else fixed, else zero."""

    def __init__(
        self,
        dynamic_fee_plugin: PriorityFeePlugin | None = None,
        fixed_fee: int | None = None,
        hard_cap: int | None = None,
    ):
        """
        Initialize the priority fee manager.

        Args:
            dynamic_fee_plugin: Estimator consulted first; None disables dynamic fees.
            fixed_fee: Static priority fee in micro-lamports, used when there is
                       no dynamic plugin or it has nothing to offer.
            hard_cap: Maximum allowed dynamic fee in micro-lamports.
        """
        self.dynamic_fee_plugin = dynamic_fee_plugin
        self.fixed_fee_plugin = FixedPriorityFee(fixed_fee)
        self.hard_cap = hard_cap

        logger.info(
            f"PriorityFeeManager initialized: "
            f"dynamic={self.dynamic_enabled}, fixed={fixed_fee}, hard_cap={hard_cap}"
        )

    @property
    def dynamic_enabled(self) -> bool:
        return self.dynamic_fee_plugin is not None

    async def priority_fee(self) -> int:
        """
        Calculate the priority fee based on the configuration.

        Returns:
            int: Priority fee in micro-lamports per compute unit (>= 0).
        """
        if self.dynamic_fee_plugin is not None:
            dynamic_fee = await self._dynamic_fee()
            if dynamic_fee is not None:
                return dynamic_fee
            logger.warning("Dynamic fee unavailable, falling back to fixed fee")

        fixed_fee = await self.fixed_fee_plugin.get_priority_fee()
        return fixed_fee or 0

    async def _dynamic_fee(self) -> int | None:
        try:
            fee = await self.dynamic_fee_plugin.get_priority_fee()
        except Exception:
            logger.exception("Dynamic fee plugin failed")
            return None

        if fee is None:
            return None
        fee = max(0, int(fee))
        if self.hard_cap is not None and fee > self.hard_cap:
            logger.warning(
                f"Calculated priority fee {fee:,} exceeds hard cap {self.hard_cap:,}. Applying hard cap."
            )
            fee = self.hard_cap
        return fee

    async def resolve(self, tip_lamports: int | None = None) -> FeeConfig:
        """Build the FeeConfig for the next transaction."""
        return FeeConfig(
            priority_fee_micro_lamports=await self.priority_fee(),
            tip_lamports=tip_lamports,
        )
