# backend/utils/money.py
"""Currency helpers shared by order creation and payout computation.

All amounts are ``Decimal`` with two decimal places. Rounding is
ROUND_HALF_UP everywhere, so a commission of 1.005 becomes 1.01 and the
seller share is whatever is left of the total. The seller share is never
rounded on its own, which keeps ``commission + seller == total`` exact.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple, Union

CENT = Decimal("0.01")
RATE_PRECISION = Decimal("0.0001")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() avoids importing binary float noise (0.1 -> 0.1000000000000000055...)
    return Decimal(str(value))


def quantize(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_rate(value: Number) -> Decimal:
    return to_decimal(value).quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)


def line_total(price: Number, quantity: int) -> Decimal:
    return quantize(to_decimal(price) * quantity)


def money_sum(values: Iterable[Number]) -> Decimal:
    return quantize(sum((to_decimal(v) for v in values), Decimal("0")))


def split_commission(total: Number, rate: Number) -> Tuple[Decimal, Decimal]:
    """Split ``total`` into (admin_commission, seller_amount) at ``rate``."""
    total = quantize(total)
    rate = to_decimal(rate)
    if rate < 0 or rate > 1:
        raise ValueError(f"commission rate must be within [0, 1], got {rate}")
    commission = quantize(total * rate)
    return commission, total - commission
