"""
Estimate validation (linting) and its configuration tables.
"""

from .config import ValidationConfig
from .validator import EstimateValidator, ValidationCheck, ValidationContext

__all__ = [
    "EstimateValidator",
    "ValidationCheck",
    "ValidationConfig",
    "ValidationContext",
]
