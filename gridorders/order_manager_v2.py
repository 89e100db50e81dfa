"""Strategy order manager that indexes opened positions by their expected close price."""

from __future__ import annotations

import uuid
from decimal import Decimal

from sortedcontainers import SortedDict

from gridorders.close_price import ProfitBand, find_close_price, prune_levels
from gridorders.order import OrderDirection, OrderTicket, StrategyOrder
from gridorders.registry import (
    DanglingOrderIdError,
    EmptyPriceLevelError,
    OrderIdNotFound,
    StrategyOrderIdNotFound,
    StrategyOrderRegistry,
)


class ClosePriceOrderManager(StrategyOrderRegistry):
    """Strategy orders plus indexes of opened positions keyed by expected close price.

    When a position is opened it is given the nearest close price within the
    profit band that keeps at least one step away from every other indexed
    close price on the same side.
    """

    def __init__(
        self,
        min_profit_percentage: Decimal,
        max_profit_percentage: Decimal,
        close_price_step_percentage: Decimal,
    ) -> None:
        super().__init__()
        self.band = ProfitBand(
            min_profit_percentage, max_profit_percentage, close_price_step_percentage
        )
        self.long_opened_orders: SortedDict = SortedDict()
        self.short_opened_orders: SortedDict = SortedDict()

    def _levels(self, direction: OrderDirection) -> SortedDict:
        if direction is OrderDirection.LONG:
            return self.long_opened_orders
        return self.short_opened_orders

    def _push_into_opened_orders(self, order: StrategyOrder) -> Decimal:
        levels = self._levels(order.direction)
        price = find_close_price(levels, order.open_price, order.direction, self.band)
        levels.setdefault(price, []).append(order.id)
        order.expected_close_price = price
        return price

    def _remove_from_opened_orders(self, order: StrategyOrder) -> None:
        price = order.expected_close_price
        if price is None:
            return
        levels = self._levels(order.direction)
        level = levels.get(price)
        if level is None:
            return
        remaining = [item for item in level if item != order.id]
        if remaining:
            levels[price] = remaining
        else:
            del levels[price]

    def clean_long_opened_orders(self) -> None:
        """Drop ids of removed strategy orders from the long index."""
        prune_levels(self.long_opened_orders, self.strategy_orders.keys())

    def clean_short_opened_orders(self) -> None:
        """Drop ids of removed strategy orders from the short index."""
        prune_levels(self.short_opened_orders, self.strategy_orders.keys())

    def clean_index(self) -> None:
        """Drop ids of removed strategy orders from both indexes."""
        self.clean_long_opened_orders()
        self.clean_short_opened_orders()

    def cancel_open_by_order_id(self, order_id: uuid.UUID) -> StrategyOrder:
        """Cancel the opening order and remove the strategy order, returning it."""
        order = self.get_by_order_id(order_id)
        order.cancel_open()
        popped = self.pop_by_id(order.id)
        if popped is None:
            raise StrategyOrderIdNotFound(order.id)
        return popped

    def opened_by_order_id(self, order_id: uuid.UUID) -> Decimal:
        """Record the fill of the opening order; return its expected close price."""
        order = self.get_by_order_id(order_id)
        order.opened()
        return self._push_into_opened_orders(order)

    def _bind_close(self, order: StrategyOrder, closing_order: OrderTicket) -> None:
        order.bind_close(closing_order)
        self._remove_from_opened_orders(order)
        self.order_index[closing_order.id] = order.id

    def bind_close_by_order_id(
        self, order_id: uuid.UUID, closing_order: OrderTicket
    ) -> None:
        """Attach a closing order to the strategy order bound to order_id."""
        self._bind_close(self.get_by_order_id(order_id), closing_order)

    def bind_close_by_id(
        self, strategy_order_id: uuid.UUID, closing_order: OrderTicket
    ) -> None:
        """Attach a closing order to the strategy order with the given id."""
        self._bind_close(self.get_by_id(strategy_order_id), closing_order)

    def closed_by_order_id(self, order_id: uuid.UUID) -> StrategyOrder:
        """Remove the strategy order, record its closing fill and return it."""
        order = self.pop_by_order_id(order_id)
        if order is None:
            raise OrderIdNotFound(order_id)
        order.closed()
        return order

    def cancel_close_by_order_id(self, order_id: uuid.UUID) -> Decimal:
        """Cancel the closing order and re-index the position; return its close price."""
        order = self.get_by_order_id(order_id)
        order.cancel_close()
        return self._push_into_opened_orders(order)

    def _peek_first_opened(
        self, direction: OrderDirection, highest: bool
    ) -> StrategyOrder | None:
        levels = self._levels(direction)
        if not levels:
            return None
        price, ids = levels.peekitem(-1 if highest else 0)
        if not ids:
            raise EmptyPriceLevelError(direction, price)
        strategy_order_id = ids[0]
        try:
            return self.get_by_id(strategy_order_id)
        except StrategyOrderIdNotFound:
            raise DanglingOrderIdError(direction, price, strategy_order_id) from None

    def _pop_first_opened(
        self, direction: OrderDirection, highest: bool
    ) -> StrategyOrder | None:
        order = self._peek_first_opened(direction, highest)
        if order is None:
            return None
        result = self.pop_by_id(order.id)
        if direction is OrderDirection.LONG:
            self.clean_long_opened_orders()
        else:
            self.clean_short_opened_orders()
        return result

    def peek_highest_long_opened_order(self) -> StrategyOrder | None:
        """Opened long position with the highest close price, or None."""
        return self._peek_first_opened(OrderDirection.LONG, True)

    def pop_highest_long_opened_order(self) -> StrategyOrder | None:
        """Remove and return the opened long position with the highest close price."""
        return self._pop_first_opened(OrderDirection.LONG, True)

    def peek_lowest_long_opened_order(self) -> StrategyOrder | None:
        """Opened long position with the lowest close price, or None."""
        return self._peek_first_opened(OrderDirection.LONG, False)

    def pop_lowest_long_opened_order(self) -> StrategyOrder | None:
        """Remove and return the opened long position with the lowest close price."""
        return self._pop_first_opened(OrderDirection.LONG, False)

    def peek_highest_short_opened_order(self) -> StrategyOrder | None:
        """Opened short position with the highest close price, or None."""
        return self._peek_first_opened(OrderDirection.SHORT, True)

    def pop_highest_short_opened_order(self) -> StrategyOrder | None:
        """Remove and return the opened short position with the highest close price."""
        return self._pop_first_opened(OrderDirection.SHORT, True)

    def peek_lowest_short_opened_order(self) -> StrategyOrder | None:
        """Opened short position with the lowest close price, or None."""
        return self._peek_first_opened(OrderDirection.SHORT, False)

    def pop_lowest_short_opened_order(self) -> StrategyOrder | None:
        """Remove and return the opened short position with the lowest close price."""
        return self._pop_first_opened(OrderDirection.SHORT, False)