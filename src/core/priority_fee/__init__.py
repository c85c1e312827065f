from abc import ABC, abstractmethod


class PriorityFeePlugin(ABC):
    """Base class for priority fee calculation plugins."""

    @abstractmethod
    async def get_priority_fee(self) -> int | None:
        """
        Calculate the priority fee.

        Returns:
            Optional[int]: Priority fee in micro-lamports per compute unit,
            or None if this plugin has no value to offer.
        """
        pass


from .dynamic_fee import DynamicPriorityFee, FeeStrategy  # noqa: E402
from .fixed_fee import FixedPriorityFee  # noqa: E402
from .manager import FeeConfig, PriorityFeeManager  # noqa: E402

__all__ = [
    "DynamicPriorityFee",
    "FeeConfig",
    "FeeStrategy",
    "FixedPriorityFee",
    "PriorityFeeManager",
    "PriorityFeePlugin",
]
