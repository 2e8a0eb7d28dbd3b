"""
Human-readable formatting for base-unit integers.

Token amounts are stored in base units (10^9 per token). Reward percentages
are scaled by 10,000 relative to a fraction, so they print as value / 100
with two decimals.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Union

from vhagar.errors import ValidationError
from vhagar.staking.tiers import PERCENTAGE_SCALE

TOKEN_DECIMALS = 9
TOKEN_SYMBOL = "VGR"

Number = Union[int, float, str, Decimal]


def format_token_amount(amount: int, decimals: int = TOKEN_DECIMALS) -> str:
    """1234500000000 -> '1,234.5'"""
    value = Decimal(int(amount)).scaleb(-decimals)
    text = f"{value:,.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_percentage(scaled: int) -> str:
    """1577 -> '15.77%'"""
    percent = Decimal(int(scaled)) * 100 / PERCENTAGE_SCALE
    return f"{percent:.2f}%"


def format_time(timestamp: int) -> str:
    """Unix seconds -> 'Jan 5, 2024, 3:04 PM' (UTC)."""
    dt = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt:%b} {dt.day}, {dt.year}, {hour}:{dt:%M} {meridiem}"


def format_duration(seconds: int) -> str:
    """93784 -> '1d 2h 3m 4s'"""
    seconds = max(0, int(seconds))
    days, seconds = divmod(seconds, 86_400)
    hours, seconds = divmod(seconds, 3_600)
    minutes, seconds = divmod(seconds, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds:
        parts.append(f"{seconds}s")
    return " ".join(parts) or "0s"


def _to_decimal(value: Number, what: str) -> Decimal:
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {what}: {value!r}", {what: str(value)})
    if not result.is_finite():
        raise ValidationError(f"Invalid {what}: {value!r}", {what: str(value)})
    return result


def to_base_units(amount: Number, decimals: int = TOKEN_DECIMALS) -> int:
    """'1.5' -> 1500000000. Sub-base-unit precision is truncated."""
    value = _to_decimal(amount, "amount").scaleb(decimals)
    return int(value.quantize(Decimal(1), rounding=ROUND_DOWN))


def percent_to_scaled(percent: Number) -> int:
    """Human percent to the program's scale: 15.77 -> 1577."""
    value = _to_decimal(percent, "percentage") * PERCENTAGE_SCALE / 100
    return int(value.quantize(Decimal(1), rounding=ROUND_DOWN))
