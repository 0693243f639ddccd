"""Platform fee split between the marketplace and the provider"""

from decimal import ROUND_HALF_UP, Decimal

from ..config import FEE_SPLIT_MODE, PLATFORM_FEE_RATE


def round_half_up(value: Decimal) -> int:
    """Round to a whole dollar, halves going up (150 * 0.15 = 22.5 -> 23)"""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def split_fee(
    total: int | float,
    rate: str | Decimal = PLATFORM_FEE_RATE,
    mode: str = FEE_SPLIT_MODE,
) -> tuple[int, int]:
    """
    Split a booking total into (platform_fee, provider_amount).

    "independent" rounds each share on its own, so the two can exceed the
    total by one (150 -> 23 + 128). "remainder" gives the provider total - fee.
    """
    amount = Decimal(str(total))
    fee_rate = Decimal(str(rate))
    platform_fee = round_half_up(amount * fee_rate)

    if mode == "remainder":
        return platform_fee, round_half_up(amount) - platform_fee
    if mode != "independent":
        raise ValueError(f"Unknown fee split mode: {mode}")
    return platform_fee, round_half_up(amount * (Decimal("1") - fee_rate))
