"""Input validators for externally supplied portfolio data.

Every function here is total: it returns a boolean (or a cleaned string) and
never raises, whatever it is handed.
"""

import math
import re
from typing import Any, Optional

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9]{1,10}$")
LETTERS_ONLY_SYMBOL_PATTERN = re.compile(r"^[A-Z]{1,10}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Leading numeric prefix, the way a browser's parseFloat reads "12.5abc"
_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_UNSAFE_CHARACTERS = re.compile(r"[<>'\"&]")

MIN_SHARES = 0.0001
MAX_SHARES = 1_000_000
MIN_PRICE = 0.01
MAX_PRICE = 100_000
MIN_PERCENTAGE = -100
MAX_PERCENTAGE = 1000


def parse_number(value: Any) -> Optional[float]:
    """Parse a user-entered number, returning None when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _FLOAT_PREFIX.match(value.strip())
        if not match:
            return None
        number = float(match.group(0))
    else:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def validate_symbol(value: Any, allow_digits: bool = True) -> bool:
    """Check a ticker symbol: 1-10 uppercase letters, digits allowed by default."""
    if not isinstance(value, str):
        return False
    pattern = SYMBOL_PATTERN if allow_digits else LETTERS_ONLY_SYMBOL_PATTERN
    return bool(pattern.match(value.strip()))


def validate_number(value: Any, min_value: float = 0, max_value: float = 2**53 - 1) -> bool:
    """Check that value parses as a number inside [min_value, max_value]."""
    number = parse_number(value)
    return number is not None and min_value <= number <= max_value


def validate_shares(value: Any) -> bool:
    return validate_number(value, MIN_SHARES, MAX_SHARES)


def validate_price(value: Any) -> bool:
    return validate_number(value, MIN_PRICE, MAX_PRICE)


def validate_percentage(value: Any) -> bool:
    return validate_number(value, MIN_PERCENTAGE, MAX_PERCENTAGE)


def validate_email(value: Any) -> bool:
    """Permissive local@domain.tld check."""
    if not isinstance(value, str):
        return False
    return bool(EMAIL_PATTERN.match(value.strip()))


def validate_day_of_week(value: Any) -> bool:
    """Day index for the weekly schedule, 0 = Monday through 6 = Sunday."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 6


def validate_hour(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 23


def sanitize_string(value: Any) -> str:
    """Strip markup-significant characters and surrounding whitespace."""
    if value is None:
        return ""
    return _UNSAFE_CHARACTERS.sub("", str(value)).strip()
