"""Choice of expected close prices that keep opened positions spread apart."""

from __future__ import annotations

import uuid
from collections.abc import Collection, MutableMapping
from dataclasses import dataclass
from decimal import Decimal

from sortedcontainers import SortedDict

from gridorders.order import OrderDirection

_ONE = Decimal(1)


@dataclass(frozen=True)
class ProfitBand:
    """Profit range for closing a position, as fractions of its open price.

    Fees are not included in the percentages.
    """

    min_profit_percentage: Decimal
    max_profit_percentage: Decimal
    close_price_step_percentage: Decimal

    def bounds(
        self, open_price: Decimal, direction: OrderDirection
    ) -> tuple[Decimal, Decimal]:
        """Return (nearest, farthest) close price for a position.

        For a long position both lie above the open price, for a short one below.
        """
        if direction is OrderDirection.LONG:
            return (
                open_price * (_ONE + self.min_profit_percentage),
                open_price * (_ONE + self.max_profit_percentage),
            )
        return (
            open_price * (_ONE - self.min_profit_percentage),
            open_price * (_ONE - self.max_profit_percentage),
        )

    def step(self, open_price: Decimal) -> Decimal:
        """Minimum distance between close prices of positions at this open price."""
        return open_price * self.close_price_step_percentage


def _has_key_between(levels: MutableMapping, low: Decimal, high: Decimal) -> bool:
    """True if some key lies strictly between low and high."""
    if isinstance(levels, SortedDict):
        return any(True for _ in levels.irange(low, high, inclusive=(False, False)))
    return any(low < key < high for key in levels)


def find_close_price(
    levels: MutableMapping[Decimal, list[uuid.UUID]],
    open_price: Decimal,
    direction: OrderDirection,
    band: ProfitBand,
) -> Decimal:
    """Find the nearest close price with no other level within one step of it.

    The search starts at the band's nearest close price and moves away from the
    open price one step at a time, never past the band's farthest close price.
    """
    price, price_limit = band.bounds(open_price, direction)
    step = band.step(open_price)
    is_long = direction is OrderDirection.LONG

    while (price < price_limit) if is_long else (price > price_limit):
        if step <= 0:
            raise ValueError(f"close price step must be positive, got {step}")
        if not _has_key_between(levels, price - step, price + step):
            break
        if is_long:
            price = min(price_limit, price + step)
        else:
            price = max(price_limit, price - step)
    return price


def prune_levels(
    levels: MutableMapping[Decimal, list[uuid.UUID]],
    live_ids: Collection[uuid.UUID],
) -> None:
    """Drop ids that are not in live_ids, and any price level left empty."""
    for price in list(levels):
        remaining = [item for item in levels[price] if item in live_ids]
        if remaining:
            levels[price] = remaining
        else:
            del levels[price]