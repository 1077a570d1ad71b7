"""Tests for the pre-trade risk guard."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from journal_app.config.defaults import RiskParams
from journal_app.data.models import RiskRewardLevel
from journal_app.errors import CriticalRiskReward, InvalidLot, RiskRejected, ZeroRiskDistance
from journal_app.risk.guard import RiskGuard


class TestRiskReward:
    """Test risk/reward ratio and its classification."""

    def setup_method(self):
        self.guard = RiskGuard()

    def test_ratio(self):
        assert self.guard.risk_reward_ratio(10, 9, 13) == Decimal("3")
        assert self.guard.risk_reward_ratio("100", "98", "101") == Decimal("0.5")

    def test_ratio_rounded_to_four_places(self):
        assert self.guard.risk_reward_ratio(10, 7, 11) == Decimal("0.3333")

    def test_zero_risk_distance(self):
        with pytest.raises(ZeroRiskDistance):
            self.guard.risk_reward_ratio(10, 10, 12)

    @pytest.mark.parametrize("entry, stop, target, level", [
        (100, 98, 101, RiskRewardLevel.CRITICAL),   # 0.5
        (100, 98, 102, RiskRewardLevel.WARNING),    # 1.0
        (100, 98, 102.9, RiskRewardLevel.WARNING),  # 1.45
        (100, 98, 103, RiskRewardLevel.ACCEPTABLE), # 1.5
        (10, 9, 13, RiskRewardLevel.ACCEPTABLE),    # 3.0
    ])
    def test_levels(self, entry, stop, target, level):
        assert self.guard.assess_risk_reward(entry, stop, target).level == level

    def test_classification_uses_unrounded_ratio(self):
        """0.99999 rounds to 1.0000 but is still below the critical threshold."""
        assessment = self.guard.assess_risk_reward("100", "90", "109.9999")
        assert assessment.ratio == Decimal("1.0000")
        assert assessment.level == RiskRewardLevel.CRITICAL

    def test_check_rejects_critical(self):
        with pytest.raises(CriticalRiskReward) as exc_info:
            self.guard.check_risk_reward(100, 98, 101)

        assert isinstance(exc_info.value, RiskRejected)
        assert exc_info.value.ratio == Decimal("0.5")
        assert exc_info.value.threshold == Decimal("1.0")

    def test_check_warning_passes(self):
        assessment = self.guard.check_risk_reward(100, 98, 102)

        assert assessment.passed
        assert assessment.discipline_warning

    def test_check_logs_decisions(self):
        with patch("journal_app.risk.guard.log_risk_decision") as log:
            self.guard.check_risk_reward(10, 9, 13, plan_id="p1")
            with pytest.raises(CriticalRiskReward):
                self.guard.check_risk_reward(100, 98, 101, plan_id="p2")

        passed_flags = [c.args[2] for c in log.call_args_list]
        assert passed_flags == [True, False]
        assert log.call_args_list[1].args[3] == "p2"

    def test_configurable_thresholds(self):
        strict = RiskGuard(RiskParams(critical_risk_reward=2.0, warning_risk_reward=3.0))

        with pytest.raises(CriticalRiskReward):
            strict.check_risk_reward(100, 98, 103)
        assert strict.assess_risk_reward(10, 9, 13).level == RiskRewardLevel.ACCEPTABLE


class TestPositionSizing:
    """Test capital-at-risk position sizing."""

    def setup_method(self):
        self.guard = RiskGuard()

    def test_sizing_floors_to_lot(self):
        # 1,000,000 * 1% = 10,000 at risk; 10,000 / 3 = 3333 shares -> 3300
        sizing = self.guard.suggested_position_size(1000000, "0.01", 10, 7)

        assert sizing.quantity == 3300
        assert sizing.risk_amount == Decimal("10000")
        assert sizing.risk_per_share == Decimal("3")
        assert not sizing.zero_risk_distance

    def test_sizing_minimum_one_lot(self):
        sizing = self.guard.suggested_position_size(1000, "0.001", 100, 50)
        assert sizing.quantity == 100

    def test_zero_distance(self):
        sizing = self.guard.suggested_position_size(1000000, "0.01", 10, 10)

        assert sizing.quantity == 0
        assert sizing.zero_risk_distance

    def test_validate_lot(self):
        assert self.guard.validate_lot(200) == 200
        with pytest.raises(InvalidLot):
            self.guard.validate_lot(150)
