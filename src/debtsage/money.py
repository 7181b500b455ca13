"""Fixed-point money helpers.

Every amount inside the engine is an ``int`` number of cents. Human-entered
amounts (floats from SQLite rows, strings from the CLI, Decimals) are
converted once with :func:`to_cents`; all later arithmetic stays in integers
and the only rounding rule is half-up to the nearest cent.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

Amount = Union[int, float, str, Decimal]

CENT = Decimal("0.01")
_HUNDRED = Decimal(100)


def to_decimal(amount: Amount) -> Decimal:
    """Parse *amount* into a finite Decimal.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion.
    """

    if isinstance(amount, bool):
        raise ValueError("Boolean is not a money amount")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid money amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid money amount: {amount!r}")
    return value


def round_half_up(value: Decimal) -> int:
    """Round a Decimal number of cents to a whole cent."""

    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_cents(amount: Amount) -> int:
    """Convert a decimal currency amount to integer cents (half-up)."""

    if isinstance(amount, int) and not isinstance(amount, bool):
        return amount * 100
    return round_half_up(to_decimal(amount) * _HUNDRED)


def from_cents(cents: int) -> Decimal:
    """Return cents as a two-place Decimal amount."""

    return (Decimal(int(cents)) / _HUNDRED).quantize(CENT)


def sum_cents(values: Iterable[int]) -> int:
    """Exact sum of cent amounts."""

    total = 0
    for value in values:
        total += int(value)
    return total


def split_cents(total: int, buckets: int) -> list[int]:
    """Divide *total* cents into *buckets* shares.

    Leftover cents are handed out one at a time to the first buckets, so the
    shares always add back up to *total*.
    """

    if buckets <= 0:
        raise ValueError("buckets must be positive")
    base, remainder = divmod(int(total), buckets)
    return [base + (1 if index < remainder else 0) for index in range(buckets)]


def apply_rate(cents: int, factor: Decimal) -> int:
    """Multiply *cents* by *factor* and round half-up to whole cents."""

    if cents == 0 or factor == 0:
        return 0
    return round_half_up(Decimal(int(cents)) * factor)


def percentage(part: int, whole: int) -> Decimal:
    """``part / whole`` as a percentage with two decimals; 0 when *whole* is 0."""

    if whole == 0:
        return Decimal("0.00")
    return (Decimal(int(part)) * _HUNDRED / Decimal(int(whole))).quantize(
        CENT, rounding=ROUND_HALF_UP
    )


def format_cents(cents: int) -> str:
    """Render cents for display, e.g. ``-123456 -> "-$1,234.56"``."""

    amount = from_cents(abs(int(cents)))
    sign = "-" if cents < 0 else ""
    return f"{sign}${amount:,.2f}"


__all__ = [
    "Amount",
    "apply_rate",
    "format_cents",
    "from_cents",
    "percentage",
    "round_half_up",
    "split_cents",
    "sum_cents",
    "to_cents",
    "to_decimal",
]
