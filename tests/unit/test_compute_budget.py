"""Unit tests for the compute budget choice"""
import pytest

from core.compute_budget import MAX_COMPUTE_UNIT_LIMIT, MAX_U32, ComputeBudget


class TestComputeBudget:

    def test_dynamic(self):
        budget = ComputeBudget.dynamic()
        assert budget.is_dynamic
        assert budget.units is None

    def test_fixed(self):
        budget = ComputeBudget.fixed(50_000)
        assert not budget.is_dynamic
        assert budget.units == 50_000

    @pytest.mark.parametrize("units", [0, MAX_COMPUTE_UNIT_LIMIT, 2_000_000, MAX_U32])
    def test_fixed_accepts_any_u32(self, units):
        assert ComputeBudget.fixed(units).units == units

    @pytest.mark.parametrize("units", [-1, MAX_U32 + 1])
    def test_fixed_outside_u32(self, units):
        with pytest.raises(ValueError):
            ComputeBudget.fixed(units)
