"""Unit tests for plan draft normalization."""

from decimal import Decimal

import pytest

from journal_app.data.models import TradeDirection
from journal_app.data.plan_normalizer import PlanNormalizer
from journal_app.errors import ValidationError


class TestPlanNormalizer:
    """Test raw plan input normalization."""

    def setup_method(self):
        self.normalizer = PlanNormalizer()

    def test_normalizes_canonical_fields(self, sample_plan_data):
        result = self.normalizer.normalize_plan(sample_plan_data)

        assert result.success
        draft = result.draft
        assert draft.symbol == "600519"
        assert draft.entry_price == Decimal("10.0000")
        assert draft.stop_loss == Decimal("9")
        assert draft.take_profit == Decimal("13")
        assert draft.quantity == 100
        assert draft.direction == TradeDirection.LONG
        assert draft.display_name == "Kweichow Moutai"

    def test_resolves_camel_case_aliases(self):
        result = self.normalizer.normalize_plan({
            "stockCode": "000001",
            "stockName": "Ping An Bank",
            "plannedEntryPrice": 12.5,
            "stopLoss": 12,
            "takeProfit": 14,
            "entryLogic": "Support bounce",
            "plannedQuantity": "300",
        })

        assert result.success
        assert result.draft.symbol == "000001"
        assert result.draft.entry_price == Decimal("12.5")
        assert result.draft.quantity == 300

    def test_quantity_optional(self, sample_plan_data):
        del sample_plan_data["quantity"]
        result = self.normalizer.normalize_plan(sample_plan_data)

        assert result.success
        assert result.draft.quantity is None

    @pytest.mark.parametrize("missing", ["symbol", "entry_price", "stop_loss", "take_profit", "entry_logic"])
    def test_missing_required_field(self, sample_plan_data, missing):
        del sample_plan_data[missing]
        result = self.normalizer.normalize_plan(sample_plan_data)

        assert not result.success
        assert missing in result.error_msg
        assert result.error_field == missing

    def test_invalid_price(self, sample_plan_data):
        sample_plan_data["stop_loss"] = "-1"
        result = self.normalizer.normalize_plan(sample_plan_data)

        assert not result.success
        assert result.error_field == "stop_loss"

    def test_blank_entry_logic(self, sample_plan_data):
        sample_plan_data["entry_logic"] = "   "
        assert not self.normalizer.normalize_plan(sample_plan_data).success

    def test_direction_parsed_case_insensitive(self, sample_plan_data):
        sample_plan_data["direction"] = "short"
        result = self.normalizer.normalize_plan(sample_plan_data)

        assert result.success
        assert result.draft.direction == TradeDirection.SHORT

    def test_unknown_direction(self, sample_plan_data):
        sample_plan_data["direction"] = "sideways"
        assert not self.normalizer.normalize_plan(sample_plan_data).success

    def test_unwrap_raises_validation_error(self):
        result = self.normalizer.normalize_plan({"symbol": "X"})

        with pytest.raises(ValidationError):
            result.unwrap()

    def test_non_mapping_input(self):
        assert not self.normalizer.normalize_plan(["not", "a", "dict"]).success
