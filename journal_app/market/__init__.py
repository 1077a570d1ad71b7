"""Market price sources used by the dashboard."""

from .price_source import PriceSource, StaticPriceSource

__all__ = ["PriceSource", "StaticPriceSource"]
