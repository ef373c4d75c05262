"""
Pricing, depreciation and settlement.
"""

from .depreciation import (
    DEFAULT_SCHEDULES,
    DepreciationCalculator,
    DepreciationResult,
    DepreciationSchedule,
    calculate_depreciation,
)
from .pricing import CalculatedLineItem, LineItemPricer
from .settlement import SettlementCalculator, SettlementResult, SettlementTotals

__all__ = [
    "DEFAULT_SCHEDULES",
    "CalculatedLineItem",
    "DepreciationCalculator",
    "DepreciationResult",
    "DepreciationSchedule",
    "LineItemPricer",
    "SettlementCalculator",
    "SettlementResult",
    "SettlementTotals",
    "calculate_depreciation",
]
