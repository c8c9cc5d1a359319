"""Integer arithmetic utilities for cents-based balances.

All amounts and balances use int (cents). Rates use int basis points (bps).
No float, no Decimal.
One currency unit = 100 cents; 1 bps = 0.01%.
"""

CENTS_PER_UNIT = 100
BPS_DENOMINATOR = 10_000


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 100200 -> '1,002.00', -1200 -> '-12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"{cents // 100:,}.{cents % 100:02d}"


def bps_to_display(bps: int) -> str:
    """Convert basis points to a percent string: 50 -> '0.50%'."""
    return f"{bps // 100}.{bps % 100:02d}%"


def calculate_commission(amount: int, rate_bps: int) -> int:
    """Commission in cents, rounded half-up.

    commission = round(amount * rate_bps / 10000)
    Using integer half-up: (a * 2 + b) // (2 * b)
    """
    if amount <= 0 or rate_bps <= 0:
        return 0
    return (amount * rate_bps * 2 + BPS_DENOMINATOR) // (2 * BPS_DENOMINATOR)


def apply_ratio_bps(amount: int, ratio_bps: int) -> int:
    """floor(amount * ratio) for a ratio expressed in bps."""
    return amount * ratio_bps // BPS_DENOMINATOR


def floor_to_unit(cents: int) -> int:
    """Drop the fractional part of a currency unit: 40099 -> 40000."""
    return cents // CENTS_PER_UNIT * CENTS_PER_UNIT


def ceil_div(a: int, b: int) -> int:
    """Integer ceiling division for positive divisors."""
    return -(-a // b)


def round_half_up_div(a: int, b: int) -> int:
    """round(a / b) with .5 rounding up, for non-negative a and positive b."""
    return (a * 2 + b) // (2 * b)
