"""
Plan draft normalization for converting raw plan input to a PlanDraft.

This module handles field-name aliasing, type coercion and shape validation
of trade plan input coming from forms, JSON payloads or YAML fixtures.
Business rules (risk/reward, lot size) are enforced later by the lifecycle
manager; the normalizer only guarantees a well-formed draft.
"""

from dataclasses import dataclass
from typing import Any, Optional

from ..errors import ValidationError
from ..logging.config import get_logger
from ..utils.numeric import to_price, to_quantity
from .models import PlanDraft, TradeDirection

logger = get_logger(__name__)

# Canonical field -> accepted input spellings
FIELD_ALIASES = {
    "symbol": ("symbol", "stock_code", "stockCode"),
    "entry_price": ("entry_price", "entryPrice", "planned_entry_price", "plannedEntryPrice"),
    "stop_loss": ("stop_loss", "stopLoss"),
    "take_profit": ("take_profit", "takeProfit", "target_price"),
    "entry_logic": ("entry_logic", "entryLogic"),
    "quantity": ("quantity", "planned_quantity", "plannedQuantity"),
    "display_name": ("display_name", "stock_name", "stockName"),
    "direction": ("direction",),
}

REQUIRED_FIELDS = ("symbol", "entry_price", "stop_loss", "take_profit", "entry_logic")


@dataclass
class PlanNormalizationResult:
    """Result of plan normalization process."""
    # Normalized draft (None if invalid)
    draft: Optional[PlanDraft] = None
    # Processing metadata
    success: bool = True
    error_msg: Optional[str] = None
    error_field: Optional[str] = None

    @classmethod
    def ok(cls, draft: PlanDraft) -> "PlanNormalizationResult":
        """Create successful result with normalized draft."""
        return cls(draft=draft, success=True)

    @classmethod
    def error(cls, error_msg: str, field: Optional[str] = None) -> "PlanNormalizationResult":
        """Create error result."""
        return cls(success=False, error_msg=error_msg, error_field=field)

    def unwrap(self) -> PlanDraft:
        """
        Return the draft or raise.

        Raises:
            ValidationError: If normalization failed
        """
        if not self.success or self.draft is None:
            raise ValidationError(self.error_msg or "Invalid plan draft", field=self.error_field)
        return self.draft


class PlanNormalizer:
    """
    Plan draft normalization pipeline.

    Resolves field aliases, coerces prices to Decimal and quantities to int,
    and validates the presence of required fields.
    """

    def __init__(self, config: Optional[dict[str, Any]] = None):
        """
        Initialize plan normalizer with configuration.

        Args:
            config: Normalization configuration dict
        """
        self.config = config or {}
        self.logger = logger

    def _resolve(self, plan_data: dict[str, Any]) -> dict[str, Any]:
        resolved: dict[str, Any] = {}
        for canonical, aliases in FIELD_ALIASES.items():
            for alias in aliases:
                if alias in plan_data and plan_data[alias] is not None:
                    resolved[canonical] = plan_data[alias]
                    break
        return resolved

    def normalize_plan(self, plan_data: dict[str, Any]) -> PlanNormalizationResult:
        """
        Normalize a trade plan from raw format to a PlanDraft.

        Args:
            plan_data: Raw plan data dictionary

        Returns:
            PlanNormalizationResult with the draft or error information
        """
        if not isinstance(plan_data, dict):
            return PlanNormalizationResult.error("Plan data must be a mapping")

        fields = self._resolve(plan_data)

        # Validate required fields
        for field in REQUIRED_FIELDS:
            if field not in fields:
                return PlanNormalizationResult.error(f"Missing required field: {field}", field)

        symbol = fields["symbol"]
        if not isinstance(symbol, str) or not symbol.strip():
            return PlanNormalizationResult.error("symbol must be a non-empty string", "symbol")

        entry_logic = fields["entry_logic"]
        if not isinstance(entry_logic, str) or not entry_logic.strip():
            return PlanNormalizationResult.error("entry_logic must be a non-empty string", "entry_logic")

        # Direction, case-insensitive
        raw_direction = fields.get("direction", TradeDirection.LONG.value)
        try:
            direction = TradeDirection(str(raw_direction).upper())
        except ValueError:
            return PlanNormalizationResult.error(f"Invalid direction: {raw_direction}", "direction")

        try:
            entry_price = to_price(fields["entry_price"], "entry_price")
            stop_loss = to_price(fields["stop_loss"], "stop_loss")
            take_profit = to_price(fields["take_profit"], "take_profit")
            quantity = to_quantity(fields["quantity"]) if "quantity" in fields else None
        except ValidationError as e:
            return PlanNormalizationResult.error(e.message, e.field)

        display_name = fields.get("display_name")
        if display_name is not None:
            display_name = str(display_name).strip() or None

        draft = PlanDraft(
            symbol=symbol.strip(),
            entry_price=entry_price,
            stop_loss=stop_loss,
            take_profit=take_profit,
            entry_logic=entry_logic.strip(),
            quantity=quantity,
            display_name=display_name,
            direction=direction,
        )

        self.logger.debug("Normalized plan draft", symbol=draft.symbol, direction=draft.direction.value)
        return PlanNormalizationResult.ok(draft)
