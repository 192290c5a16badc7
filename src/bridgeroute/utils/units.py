"""Fixed-point amount conversion.

On-chain amounts are integers scaled by the token's decimal count; display
values are Decimals obtained by dividing by 10**decimals.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

AmountLike = Union[str, int, Decimal]


def to_decimal(value: AmountLike) -> Decimal:
    """Parse a human-entered amount into a Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount


def to_base_units(value: AmountLike, decimals: int) -> int:
    """Convert a display amount to integer base units.

    Raises ValueError if the amount is negative or carries more fractional
    digits than the token supports; amounts are never silently truncated.
    """
    amount = to_decimal(value)
    if amount < 0:
        raise ValueError("Amount must be non-negative")
    scaled = amount * (Decimal(10) ** decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {value} has more than {decimals} decimal places")
    return int(scaled)


def from_base_units(amount: int, decimals: int) -> Decimal:
    """Convert integer base units to a display Decimal."""
    return Decimal(amount) / (Decimal(10) ** decimals)
