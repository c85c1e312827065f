"""
Per-call compute budget choice.
"""

from dataclasses import dataclass
from typing import Protocol

from solders.instruction import Instruction
from solders.pubkey import Pubkey

# Placeholder ceiling used until simulation-based sizing exists.
MAX_COMPUTE_UNIT_LIMIT = 1_400_000

# set_compute_unit_limit takes a u32
MAX_U32 = 0xFFFFFFFF


@dataclass(frozen=True)
class ComputeBudget:
    """Either dynamic (sized by estimator or ceiling) or a fixed unit count."""

    units: int | None = None

    def __post_init__(self):
        if self.units is not None and not 0 <= self.units <= MAX_U32:
            raise ValueError(f"Compute units must fit in a u32, got {self.units}")

    @classmethod
    def dynamic(cls) -> "ComputeBudget":
        return cls(None)

    @classmethod
    def fixed(cls, units: int) -> "ComputeBudget":
        return cls(units)

    @property
    def is_dynamic(self) -> bool:
        return self.units is None


class CostEstimator(Protocol):
    """Extension point for sizing a dynamic compute budget, e.g. by simulation.

    Return the estimated compute units for the instructions, or None when no
    estimate is available; the ceiling is used in that case.
    """

    async def estimate_compute_units(
        self, instructions: list[Instruction], payer: Pubkey
    ) -> int | None:
        ...
