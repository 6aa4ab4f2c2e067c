"""Australian date and currency formatting shared by templates and prompts."""

import logging
import math
from datetime import date, datetime
from typing import Any

logger = logging.getLogger(__name__)

AU_DATE_FORMAT = "%d/%m/%Y"


def format_date(value: Any) -> str:
    """
    Format a date as DD/MM/YYYY (en-AU).

    Accepts date/datetime objects and ISO 8601 strings (date or timestamp).
    Values already in DD/MM/YYYY form pass through.

    Args:
        value: Date-like value

    Returns:
        Formatted date, "" for None/empty input, or the input unchanged
        (as a string) when it cannot be parsed
    """
    if value is None or value == "":
        return ""
    if isinstance(value, (date, datetime)):
        return value.strftime(AU_DATE_FORMAT)

    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).strftime(AU_DATE_FORMAT)
    except ValueError:
        pass
    try:
        return datetime.strptime(text, AU_DATE_FORMAT).strftime(AU_DATE_FORMAT)
    except ValueError:
        logger.warning(f"format_date received invalid date string: {value!r}")
        return text


def format_currency(amount: Any) -> str:
    """
    Format a number as Australian dollars, e.g. 1234.5 -> "$1,234.50".

    Args:
        amount: Numeric amount

    Returns:
        Formatted amount, "" for None/empty input, or the input unchanged
        (as a string) when it is not a finite number
    """
    if amount is None or amount == "":
        return ""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
        logger.warning(f"format_currency received non-numeric value: {amount!r}")
        return str(amount)

    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
