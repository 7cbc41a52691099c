"""Price parsing - display price strings to representative yen amounts.

Generator prices are user-facing strings: single values ("3,000円"),
bounded ranges ("1,500円〜3,000円"), open ranges ("〜3,000円", "1,500円〜")
or free markers ("無料", "Free"). Budget arithmetic needs one deterministic
integer per item, picked according to a PriceMode:

    "1,500円〜3,000円"  mid 2250 / upper 3000 / lower 1500
    "〜3,000円"         mid 2100 (0.7x)  / upper 3000 / lower 0
    "1,500円〜"         mid 1725 (1.15x) / upper 1950 (1.3x) / lower 1500
    "3,000円"           3000
    "無料", "Free"      0
    anything else       0
"""

import math
import re
from typing import Any

from backend.app.models.common import PriceMode

FREE_PATTERN = re.compile(r"無料|free|no\s*charge", re.IGNORECASE)

# Thousands-grouped run ("12,500") or a plain digit run ("12500")
NUMBER_PATTERN = re.compile(r"\d{1,3}(?:,\d{3})+|\d+")

RANGE_MARKERS = "〜～~\\-–—"
RANGE_PATTERN = re.compile(f"[{RANGE_MARKERS}]")
# "〜3,000円": marker before any digit
UPPER_ONLY_PATTERN = re.compile(rf"^\D*[{RANGE_MARKERS}]")
# "1,500円〜": marker after the last digit
LOWER_ONLY_PATTERN = re.compile(rf"[{RANGE_MARKERS}]\D*$")

# Factors as (numerator, denominator) so amounts stay exact integers
UPPER_ONLY_MID_FACTOR = (7, 10)
LOWER_ONLY_MID_FACTOR = (23, 20)
LOWER_ONLY_UPPER_FACTOR = (13, 10)

# Longer digit runs are not prices (and would overflow float math)
MAX_TOKEN_DIGITS = 15


def round_half_up(numerator: int, denominator: int) -> int:
    """Round numerator / denominator to the nearest int, halves up (non-negative input)."""
    return (2 * numerator + denominator) // (2 * denominator)


def scale(amount: int, factor: tuple[int, int]) -> int:
    """amount x factor, rounded half up."""
    numerator, denominator = factor
    return round_half_up(amount * numerator, denominator)


def extract_numbers(text: str) -> list[int] | None:
    """Return every numeric token in text with separators stripped.

    None when any token is longer than MAX_TOKEN_DIGITS digits.
    """
    tokens = [token.replace(",", "") for token in NUMBER_PATTERN.findall(text)]
    if any(len(token) > MAX_TOKEN_DIGITS for token in tokens):
        return None
    return [int(token) for token in tokens]


def is_free(text: str) -> bool:
    """True when text uses the free / no-charge vocabulary."""
    return FREE_PATTERN.search(text) is not None


def parse_price(value: Any, mode: PriceMode | str = PriceMode.MID) -> int:
    """Map a price representation to a non-negative integer yen amount.

    Args:
        value: None, a non-negative number, or a display string
        mode: Representative value to pick from a range (mid/upper/lower)

    Returns:
        Non-negative integer amount; 0 for anything unparseable. Never raises.
    """
    try:
        mode = PriceMode(mode)
    except ValueError:
        mode = PriceMode.MID

    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value < 0:
            return 0
        return math.floor(value)

    if not isinstance(value, str):
        return 0

    text = value.strip()
    if not text or is_free(text):
        return 0

    numbers = extract_numbers(text)
    if numbers is None:
        return 0
    has_range = RANGE_PATTERN.search(text) is not None

    if has_range and len(numbers) >= 2:
        low, high = min(numbers[0], numbers[1]), max(numbers[0], numbers[1])
        if mode is PriceMode.UPPER:
            return high
        if mode is PriceMode.LOWER:
            return low
        return round_half_up(low + high, 2)

    if has_range and len(numbers) == 1 and UPPER_ONLY_PATTERN.search(text):
        high = numbers[0]
        if mode is PriceMode.UPPER:
            return high
        if mode is PriceMode.LOWER:
            return 0
        return scale(high, UPPER_ONLY_MID_FACTOR)

    if has_range and len(numbers) == 1 and LOWER_ONLY_PATTERN.search(text):
        low = numbers[0]
        if mode is PriceMode.UPPER:
            return scale(low, LOWER_ONLY_UPPER_FACTOR)
        if mode is PriceMode.LOWER:
            return low
        return scale(low, LOWER_ONLY_MID_FACTOR)

    if numbers:
        return numbers[0]

    return 0


def to_jpy(value: Any) -> int:
    """Representative (mid) yen amount for value."""
    return parse_price(value, PriceMode.MID)


def format_price(amount: int) -> str:
    """Render a canonical amount back into a display string, e.g. "2,250円"."""
    return f"{max(0, int(amount)):,}円"
