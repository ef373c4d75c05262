"""
Reporting modules for validation, rules and settlement output.
"""

from .formatter import ValidationReportFormatter

__all__ = ["ValidationReportFormatter"]
