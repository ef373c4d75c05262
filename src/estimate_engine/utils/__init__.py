"""
Utility modules for the Estimate Integrity Engine.
"""

from .log_config import configure_logging
from .money import round_measure, round_money, to_decimal

__all__ = [
    "configure_logging",
    "round_measure",
    "round_money",
    "to_decimal",
]
