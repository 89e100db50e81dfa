"""Storage of strategy orders with lookup by their own id or by a plain order id."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Iterator

from gridorders.order import OrderDirection, OrderTicket, StrategyOrder


class StrategyOrderManagerError(Exception):
    """Base class for strategy order manager failures."""


class StrategyOrderIdNotFound(StrategyOrderManagerError, LookupError):
    """No strategy order has the given id."""

    def __init__(self, strategy_order_id: uuid.UUID) -> None:
        super().__init__(f"strategy order {strategy_order_id} not found")
        self.strategy_order_id = strategy_order_id


class OrderIdNotFound(StrategyOrderManagerError, LookupError):
    """No strategy order is bound to the given plain order id."""

    def __init__(self, order_id: uuid.UUID) -> None:
        super().__init__(f"no strategy order bound to order {order_id}")
        self.order_id = order_id


class EmptyPriceLevelError(StrategyOrderManagerError):
    """A price level in the opened-order index holds no ids."""

    def __init__(self, direction: OrderDirection, price: Decimal) -> None:
        super().__init__(f"empty {direction.name} price level at {price}")
        self.direction = direction
        self.price = price


class DanglingOrderIdError(StrategyOrderManagerError):
    """An id in the opened-order index has no strategy order behind it."""

    def __init__(
        self, direction: OrderDirection, price: Decimal, strategy_order_id: uuid.UUID
    ) -> None:
        super().__init__(
            f"{direction.name} price level {price} refers to unknown "
            f"strategy order {strategy_order_id}"
        )
        self.direction = direction
        self.price = price
        self.strategy_order_id = strategy_order_id


class StrategyOrderRegistry:
    """Strategy orders by id, plus an index from plain order ids to them."""

    def __init__(self) -> None:
        self.strategy_orders: dict[uuid.UUID, StrategyOrder] = {}
        self.order_index: dict[uuid.UUID, uuid.UUID] = {}

    def __len__(self) -> int:
        return len(self.strategy_orders)

    def __contains__(self, strategy_order_id: object) -> bool:
        return strategy_order_id in self.strategy_orders

    def __iter__(self) -> Iterator[StrategyOrder]:
        return iter(self.strategy_orders.values())

    def add(self, order: StrategyOrder) -> None:
        """Store a strategy order and index its open and close order ids.

        Raises ValueError if a strategy order with the same id is already stored.
        """
        if order.id in self.strategy_orders:
            raise ValueError(f"duplicated strategy order id {order.id}")
        self.strategy_orders[order.id] = order
        self.order_index[order.open_order_id] = order.id
        if order.close_order_id is not None:
            self.order_index[order.close_order_id] = order.id

    def add_with_order(self, order: OrderTicket) -> StrategyOrder:
        """Create a strategy order from an opening order, store it and return it."""
        strategy_order = StrategyOrder.from_order(order)
        self.add(strategy_order)
        return strategy_order

    def get_by_id(self, strategy_order_id: uuid.UUID) -> StrategyOrder:
        """Return the strategy order with the given id."""
        try:
            return self.strategy_orders[strategy_order_id]
        except KeyError:
            raise StrategyOrderIdNotFound(strategy_order_id) from None

    def get_by_order_id(self, order_id: uuid.UUID) -> StrategyOrder:
        """Return the strategy order bound to a plain order id."""
        try:
            strategy_order_id = self.order_index[order_id]
        except KeyError:
            raise OrderIdNotFound(order_id) from None
        return self.get_by_id(strategy_order_id)

    def pop_by_id(self, strategy_order_id: uuid.UUID) -> StrategyOrder | None:
        """Remove and return a strategy order, or None if it is not stored."""
        order = self.strategy_orders.pop(strategy_order_id, None)
        if order is None:
            return None
        self.order_index.pop(order.open_order_id, None)
        if order.close_order_id is not None:
            self.order_index.pop(order.close_order_id, None)
        return order

    def pop_by_order_id(self, order_id: uuid.UUID) -> StrategyOrder | None:
        """Remove and return the strategy order bound to a plain order id."""
        strategy_order_id = self.order_index.get(order_id)
        if strategy_order_id is None:
            return None
        return self.pop_by_id(strategy_order_id)