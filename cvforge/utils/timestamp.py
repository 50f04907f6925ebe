"""Timestamp formatting utilities."""

from datetime import datetime


def now() -> str:
    """Current local time as a directory-safe stamp (e.g., "20251113_184540")."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def today() -> str:
    """Current local date (e.g., "2025-11-13")."""
    return datetime.now().strftime("%Y-%m-%d")


def format_month_year(date_string: str) -> str:
    """
    Format an ISO date as abbreviated month and year.

    Args:
        date_string: Date in ISO 8601 form ("2022-01-01" or "2022-01")

    Returns:
        Formatted date ("Jan 2022"), "" for empty input, or the original
        string if it cannot be parsed

    Examples:
        format_month_year("2022-01-01")
        # "Jan 2022"

        format_month_year("2022-01")
        # "Jan 2022"
    """
    if not date_string:
        return ""

    value = date_string.strip()
    for fmt in ("%Y-%m-%d", "%Y-%m"):
        try:
            return datetime.strptime(value, fmt).strftime("%b %Y")
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(value).strftime("%b %Y")
    except ValueError:
        # Return original if parsing fails
        return date_string
