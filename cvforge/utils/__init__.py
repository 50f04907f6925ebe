"""
Shared utilities for cvforge.

Common functionality used across contexts:
- Logger setup
- PDF inspection
- Timestamps
"""

from cvforge.utils.timestamp import format_month_year, now, today

__all__ = ["format_month_year", "now", "today"]
