"""Pure arithmetic for matched orders: target draw, product sizing, commission.

Every function takes an explicit `random.Random` where randomness is involved
so the matcher can be driven deterministically in tests.
"""

import random

from src.tm_catalog.domain.models import Product
from src.tm_common.money import (
    CENTS_PER_UNIT,
    apply_ratio_bps,
    ceil_div,
    floor_to_unit,
    round_half_up_div,
)
from src.tm_task.domain.models import MatchParams, OrderLine, PlainLine, ProductLine


def draw_target_amount(balance: int, params: MatchParams, rng: random.Random) -> int:
    """floor(balance * r) in whole units, r uniform in the ratio window.

    Never below min_line_total.
    """
    ratio_bps = rng.randint(params.min_ratio_bps, params.max_ratio_bps)
    target = floor_to_unit(apply_ratio_bps(balance, ratio_bps))
    return max(target, params.min_line_total)


def draw_dispatch_amount(
    min_amount: int, max_amount: int, params: MatchParams, rng: random.Random
) -> int:
    """Amount uniform in [max(floor, min), max(min, max)], never outside it.

    Whole units are drawn when the range holds one; otherwise any cent in the
    range. May exceed the account balance.
    """
    low = max(params.min_line_total, min_amount)
    high = max(low, max_amount)
    low_units = ceil_div(low, CENTS_PER_UNIT)
    high_units = high // CENTS_PER_UNIT
    if low_units > high_units:
        return rng.randint(low, high)
    return rng.randint(low_units, high_units) * CENTS_PER_UNIT


def size_quantity(target: int, unit_price: int, params: MatchParams) -> int:
    """Quantity whose line total is closest to `target`.

    At least 1, raised so the line reaches min_line_total, capped at max_quantity.
    """
    if unit_price <= 0 or target <= 0:
        return 1
    quantity = max(1, round_half_up_div(target, unit_price))
    quantity = max(quantity, ceil_div(params.min_line_total, unit_price))
    return min(quantity, params.max_quantity)


def build_line(target: int, product: Product | None, params: MatchParams) -> OrderLine:
    if product is None or product.price <= 0:
        return PlainLine(amount=target)
    return ProductLine(
        product_id=product.id,
        title=product.title,
        image_url=product.image_url,
        unit_price=product.price,
        quantity=size_quantity(target, product.price, params),
    )
