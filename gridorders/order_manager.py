"""Strategy order manager that indexes opened positions by their open price."""

from __future__ import annotations

import uuid
from decimal import Decimal

from sortedcontainers import SortedDict

from gridorders.order import (
    OrderDirection,
    OrderTicket,
    StrategyOrder,
    StrategyOrderState,
)
from gridorders.registry import (
    DanglingOrderIdError,
    EmptyPriceLevelError,
    StrategyOrderIdNotFound,
    StrategyOrderRegistry,
)


class StrategyOrderManager(StrategyOrderRegistry):
    """Strategy orders plus price-ordered indexes of opened long and short positions.

    Only orders in the OPENED state (filled, no closing order bound yet) appear
    in ``long_opened_orders`` / ``short_opened_orders``, keyed by open price.
    """

    def __init__(self) -> None:
        super().__init__()
        self.long_opened_orders: SortedDict = SortedDict()
        self.short_opened_orders: SortedDict = SortedDict()

    def _levels(self, direction: OrderDirection) -> SortedDict:
        if direction is OrderDirection.LONG:
            return self.long_opened_orders
        return self.short_opened_orders

    def _push_into_opened_orders(self, order: StrategyOrder) -> None:
        levels = self._levels(order.direction)
        levels.setdefault(order.open_price, []).append(order.id)

    def _remove_from_opened_orders(self, order: StrategyOrder) -> None:
        levels = self._levels(order.direction)
        level = levels.get(order.open_price)
        if level is None:
            return
        remaining = [item for item in level if item != order.id]
        if remaining:
            levels[order.open_price] = remaining
        else:
            del levels[order.open_price]

    def pop_by_id(self, strategy_order_id: uuid.UUID) -> StrategyOrder | None:
        """Remove and return a strategy order, dropping it from every index."""
        order = super().pop_by_id(strategy_order_id)
        if order is not None and order.state is StrategyOrderState.OPENED:
            self._remove_from_opened_orders(order)
        return order

    def cancel_open_by_order_id(self, order_id: uuid.UUID) -> StrategyOrder:
        """Cancel the opening order and remove the strategy order, returning it."""
        order = self.get_by_order_id(order_id)
        order.cancel_open()
        popped = self.pop_by_id(order.id)
        if popped is None:
            raise StrategyOrderIdNotFound(order.id)
        return popped

    def opened_by_order_id(self, order_id: uuid.UUID) -> None:
        """Record the fill of the opening order and index the position."""
        order = self.get_by_order_id(order_id)
        order.opened()
        self._push_into_opened_orders(order)

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

    def closed_by_order_id(self, order_id: uuid.UUID) -> None:
        """Record the fill of the closing order."""
        self.get_by_order_id(order_id).closed()

    def cancel_close_by_order_id(self, order_id: uuid.UUID) -> None:
        """Cancel the closing order and put the position back in the index."""
        order = self.get_by_order_id(order_id)
        order.cancel_close()
        self._push_into_opened_orders(order)

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
        return self.pop_by_id(order.id)

    def peek_highest_long_opened_order(self) -> StrategyOrder | None:
        """Opened long position with the highest open price, or None."""
        return self._peek_first_opened(OrderDirection.LONG, True)

    def pop_highest_long_opened_order(self) -> StrategyOrder | None:
        """Remove and return the opened long position with the highest open price."""
        return self._pop_first_opened(OrderDirection.LONG, True)

    def peek_lowest_long_opened_order(self) -> StrategyOrder | None:
        """Opened long position with the lowest open price, or None."""
        return self._peek_first_opened(OrderDirection.LONG, False)

    def pop_lowest_long_opened_order(self) -> StrategyOrder | None:
        """Remove and return the opened long position with the lowest open price."""
        return self._pop_first_opened(OrderDirection.LONG, False)

    def peek_highest_short_opened_order(self) -> StrategyOrder | None:
        """Opened short position with the highest open price, or None."""
        return self._peek_first_opened(OrderDirection.SHORT, True)

    def pop_highest_short_opened_order(self) -> StrategyOrder | None:
        """Remove and return the opened short position with the highest open price."""
        return self._pop_first_opened(OrderDirection.SHORT, True)

    def peek_lowest_short_opened_order(self) -> StrategyOrder | None:
        """Opened short position with the lowest open price, or None."""
        return self._peek_first_opened(OrderDirection.SHORT, False)

    def pop_lowest_short_opened_order(self) -> StrategyOrder | None:
        """Remove and return the opened short position with the lowest open price."""
        return self._pop_first_opened(OrderDirection.SHORT, False)