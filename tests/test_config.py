import pytest

from gasbench.config import (
    CATEGORIES,
    CategorySpec,
    MeasurementPlan,
    OperationQuantities,
    default_measurement_plan,
    level_label,
    plan_from_dict,
)


class TestDefaultPlan:
    def test_constants(self):
        plan = default_measurement_plan()
        assert plan.max_assets == 10
        assert plan.repeat_count == 3
        assert plan.quantities == OperationQuantities(mint=100, exchange=1, burn=50)
        assert plan.sentinel_gas_cost == 9_000_000
        assert plan.category_names == CATEGORIES

    def test_claiming_disabled_by_default(self):
        plan = default_measurement_plan()
        assert not plan.is_enabled("claiming")
        assert all(plan.is_enabled(name) for name in ("minting", "burning", "exchanging"))

    def test_levels_are_one_based(self):
        assert list(MeasurementPlan(max_assets=3).levels()) == [1, 2, 3]

    def test_target_symbol(self):
        plan = default_measurement_plan()
        assert plan.target_symbol(1) is None
        assert plan.target_symbol(4) == "s3"

    def test_level_label(self):
        assert level_label(3) == "3_synths"


class TestValidation:
    def test_burn_must_be_below_mint(self):
        with pytest.raises(ValueError, match="smaller than mint"):
            OperationQuantities(mint=50, burn=50)

    def test_non_positive_quantity(self):
        with pytest.raises(ValueError):
            OperationQuantities(exchange=0)

    def test_zero_levels_rejected(self):
        with pytest.raises(ValueError):
            MeasurementPlan(max_assets=0)

    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError, match="Unknown measurement categories"):
            MeasurementPlan(categories=(CategorySpec("staking"),))


class TestPlanFromDict:
    def test_overrides(self):
        plan = plan_from_dict(
            {
                "max_assets": 4,
                "repeat_count": 2,
                "quantities": {"mint": 200},
                "enabled_categories": ["minting", "burning", "claiming"],
                "check_preconditions": False,
            }
        )
        assert plan.max_assets == 4
        assert plan.repeat_count == 2
        assert plan.quantities.mint == 200
        assert plan.quantities.burn == 50
        assert plan.is_enabled("claiming")
        assert not plan.is_enabled("exchanging")
        assert plan.category_names == CATEGORIES
        assert plan.check_preconditions is False

    def test_empty_document_is_default(self):
        assert plan_from_dict({}) == default_measurement_plan()
