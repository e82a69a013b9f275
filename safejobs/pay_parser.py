"""
Pay text parsing for Safe Jobs.

Pay is free text on a posting ("$15/hr", "$15-20/hr, weekly bonus",
"25k per season"). These helpers pull the numbers out of it for the
verification sanity checks and the minimum-salary search filter.
"""

import logging
import re
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

INTEGER_PATTERN = re.compile(r'\d+')

# "20", "20.50", "20,000", "$25k" with an optional thousands suffix
AMOUNT_PATTERN = re.compile(r'(\d+(?:,\d{3})*(?:\.\d+)?)\s*([kK])?')


def extract_pay_numbers(pay: str) -> list[int]:
    """
    Extract every run of digits in the pay text as an integer.

    Separators are not interpreted, so "$1,500" yields [1, 500] and
    "$2000000" yields [2000000].

    Args:
        pay: Free-text pay description.

    Returns:
        Integers in the order they appear; empty when there are none.
    """
    if not pay:
        return []
    return [int(n) for n in INTEGER_PATTERN.findall(pay)]


def highest_pay_number(pay: str) -> Optional[int]:
    """Largest integer embedded in the pay text, or None."""
    numbers = extract_pay_numbers(pay)
    return max(numbers) if numbers else None


def find_unrealistic_phrase(pay: str, phrases: Iterable[str]) -> Optional[str]:
    """
    Find the first get-rich-quick phrase contained in the pay text.

    Args:
        pay: Free-text pay description.
        phrases: Phrases to look for (case-insensitive substring match).

    Returns:
        The matching phrase, or None.
    """
    if not pay:
        return None
    lowered = pay.lower()
    for phrase in phrases:
        if phrase.lower() in lowered:
            return phrase
    return None


def parse_amount(value) -> Optional[float]:
    """
    Parse a single monetary amount such as 20, "20", "$20.50", "20,000" or "25k".

    Used for search filter values, which arrive from the AI query parser
    as either numbers or strings.

    Returns:
        The amount as a float, or None if no number is present.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    match = AMOUNT_PATTERN.search(str(value))
    if not match:
        return None

    try:
        amount = float(match.group(1).replace(',', ''))
    except ValueError:
        return None

    if match.group(2):
        amount *= 1000
    return amount
