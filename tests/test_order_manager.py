import uuid
from decimal import Decimal

import pytest

from gridorders.order import (
    InconsistentQuantityError,
    OrderDirection,
    OrderTicket,
    StateTransferError,
    StrategyOrderState,
)
from gridorders.order_manager import StrategyOrderManager
from gridorders.registry import (
    DanglingOrderIdError,
    EmptyPriceLevelError,
    OrderIdNotFound,
)

PAIR = "BTCUSDT"

PRICES = [
    ("400", "0.4"),
    ("200", "0.2"),
    ("100", "0.1"),
    ("300", "0.3"),
    ("300", "0.33"),
    ("500", "0.5"),
    ("600", "0.6"),
]


def make_origin(direction):
    manager = StrategyOrderManager()
    tickets = {}
    factory = OrderTicket.buy if direction is OrderDirection.LONG else OrderTicket.sell
    for price, quantity in PRICES:
        ticket = factory(PAIR, Decimal(price), Decimal(quantity))
        manager.add_with_order(ticket)
        tickets[ticket.id] = ticket
    return list(tickets), tickets, manager


def make_opened(direction):
    ids, tickets, manager = make_origin(direction)
    for order_id in ids:
        manager.opened_by_order_id(order_id)
    return ids, tickets, manager


def test_origin_data():
    ids, tickets, manager = make_origin(OrderDirection.LONG)
    assert len(manager.long_opened_orders) == 0
    for order_id in ids:
        order = manager.get_by_order_id(order_id)
        assert order.open_price == tickets[order_id].price
        assert order.quantity == tickets[order_id].quantity
        assert order.state is StrategyOrderState.OPENING


def test_opened_data():
    _, _, manager = make_opened(OrderDirection.LONG)
    levels = [(price, len(ids)) for price, ids in manager.long_opened_orders.items()]
    assert levels == [
        (Decimal(100), 1),
        (Decimal(200), 1),
        (Decimal(300), 2),
        (Decimal(400), 1),
        (Decimal(500), 1),
        (Decimal(600), 1),
    ]
    assert len(manager.short_opened_orders) == 0


def test_index():
    ids, tickets, manager = make_opened(OrderDirection.LONG)
    for order_id in ids:
        order = manager.get_by_order_id(order_id)
        assert order.open_order_id == order_id
        assert order.open_price == tickets[order_id].price
        assert order.quantity == tickets[order_id].quantity
        assert order.state is StrategyOrderState.OPENED


def test_bind_close_and_cancel_close():
    ids, tickets, manager = make_opened(OrderDirection.LONG)
    open_id = ids[1]
    open_ticket = tickets[open_id]
    close_ticket = OrderTicket.sell(
        PAIR, open_ticket.price * Decimal("1.1"), open_ticket.quantity
    )

    manager.bind_close_by_order_id(open_id, close_ticket)
    assert open_ticket.price not in manager.long_opened_orders
    order = manager.get_by_order_id(close_ticket.id)
    assert order.state is StrategyOrderState.CLOSING
    assert order.close_order_id == close_ticket.id

    manager.cancel_close_by_order_id(open_id)
    assert len(manager.long_opened_orders[open_ticket.price]) == 1
    assert manager.get_by_order_id(open_id).state is StrategyOrderState.OPENED


def test_opened():
    ids, tickets, manager = make_origin(OrderDirection.LONG)
    open_id = ids[1]
    price = tickets[open_id].price
    assert price not in manager.long_opened_orders
    manager.opened_by_order_id(open_id)
    assert len(manager.long_opened_orders[price]) == 1


def test_opened_twice_raises():
    ids, _, manager = make_opened(OrderDirection.LONG)
    with pytest.raises(StateTransferError) as info:
        manager.opened_by_order_id(ids[0])
    assert info.value.current is StrategyOrderState.OPENED
    assert info.value.expected is StrategyOrderState.OPENING


def test_unknown_order_id_raises():
    manager = StrategyOrderManager()
    missing = uuid.uuid4()
    with pytest.raises(OrderIdNotFound):
        manager.opened_by_order_id(missing)


def test_cancel_open_removes_order():
    ids, _, manager = make_origin(OrderDirection.LONG)
    popped = manager.cancel_open_by_order_id(ids[0])
    assert popped.state is StrategyOrderState.CANCELED
    assert popped.open_order_id == ids[0]
    assert len(manager) == len(PRICES) - 1
    with pytest.raises(OrderIdNotFound):
        manager.get_by_order_id(ids[0])


def test_bind_close_inconsistent_quantity_keeps_index():
    ids, tickets, manager = make_opened(OrderDirection.LONG)
    open_ticket = tickets[ids[0]]
    close_ticket = OrderTicket.sell(PAIR, Decimal(500), Decimal("0.41"))
    with pytest.raises(InconsistentQuantityError):
        manager.bind_close_by_order_id(ids[0], close_ticket)
    assert open_ticket.price in manager.long_opened_orders
    assert close_ticket.id not in manager.order_index


def test_closed_by_order_id():
    ids, tickets, manager = make_opened(OrderDirection.LONG)
    order = manager.get_by_order_id(ids[2])
    close_ticket = OrderTicket.sell(PAIR, Decimal(110), tickets[ids[2]].quantity)
    manager.bind_close_by_id(order.id, close_ticket)
    manager.closed_by_order_id(close_ticket.id)
    assert order.state is StrategyOrderState.CLOSED
    assert order.close_price == Decimal(110)


def test_peek_pop_long_opened_order():
    _, _, manager = make_opened(OrderDirection.LONG)
    assert manager.peek_highest_long_opened_order().open_price == Decimal(600)
    assert manager.peek_lowest_long_opened_order().open_price == Decimal(100)
    assert manager.peek_highest_short_opened_order() is None
    assert manager.peek_lowest_short_opened_order() is None

    assert manager.pop_highest_long_opened_order().open_price == Decimal(600)
    assert manager.peek_highest_long_opened_order().open_price == Decimal(500)
    assert manager.pop_highest_long_opened_order().open_price == Decimal(500)
    popped = [manager.pop_lowest_long_opened_order().open_price for _ in range(5)]
    assert popped == [Decimal(100), Decimal(200), Decimal(300), Decimal(300), Decimal(400)]

    assert manager.pop_lowest_long_opened_order() is None
    assert manager.pop_highest_long_opened_order() is None
    assert manager.peek_highest_long_opened_order() is None
    assert manager.peek_lowest_long_opened_order() is None
    assert len(manager) == 0


def test_peek_pop_short_opened_order():
    _, _, manager = make_opened(OrderDirection.SHORT)
    assert manager.peek_highest_short_opened_order().open_price == Decimal(600)
    assert manager.peek_lowest_short_opened_order().open_price == Decimal(100)
    assert manager.peek_highest_long_opened_order() is None
    assert manager.peek_lowest_long_opened_order() is None

    assert manager.pop_highest_short_opened_order().open_price == Decimal(600)
    assert manager.peek_highest_short_opened_order().open_price == Decimal(500)
    assert manager.pop_highest_short_opened_order().open_price == Decimal(500)
    popped = [manager.pop_lowest_short_opened_order().open_price for _ in range(5)]
    assert popped == [Decimal(100), Decimal(200), Decimal(300), Decimal(300), Decimal(400)]

    assert manager.pop_lowest_short_opened_order() is None
    assert manager.pop_highest_short_opened_order() is None
    assert manager.peek_highest_short_opened_order() is None
    assert manager.peek_lowest_short_opened_order() is None


def test_empty_price_level_raises():
    manager = StrategyOrderManager()
    manager.long_opened_orders[Decimal(10)] = []
    with pytest.raises(EmptyPriceLevelError) as info:
        manager.peek_lowest_long_opened_order()
    assert info.value.price == Decimal(10)
    assert info.value.direction is OrderDirection.LONG


def test_dangling_id_raises():
    manager = StrategyOrderManager()
    ghost = uuid.uuid4()
    manager.short_opened_orders[Decimal(20)] = [ghost]
    with pytest.raises(DanglingOrderIdError) as info:
        manager.pop_highest_short_opened_order()
    assert info.value.strategy_order_id == ghost
    assert info.value.direction is OrderDirection.SHORT


def test_pop_by_id_cleans_opened_index():
    ids, tickets, manager = make_opened(OrderDirection.LONG)
    order = manager.get_by_order_id(ids[3])
    popped = manager.pop_by_id(order.id)
    assert popped is order
    assert len(manager.long_opened_orders[Decimal(300)]) == 1
    assert manager.pop_by_id(order.id) is None