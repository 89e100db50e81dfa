# gridorders

Bookkeeping for strategy orders in grid-style trading backtests.

A *strategy order* pairs an opening order with its closing order and follows
both through a small state machine:

```
OPENING --opened()--> OPENED --bind_close()--> CLOSING --closed()--> CLOSED
   |                    ^                         |
   +--cancel_open()--> CANCELED                   |
                        +------cancel_close()-----+
```

A transition that does not start from the expected state raises
`StateTransferError`. Binding a closing order whose quantity differs from the
opening quantity raises `InconsistentQuantityError`. Both derive from
`StrategyOrderError` in `gridorders.order`.

## Installation

```
pip install gridorders
```

All prices and quantities are `decimal.Decimal`.

## Strategy orders

```python
from decimal import Decimal
from gridorders.order import OrderTicket, StrategyOrder, StrategyOrderState

open_ticket = OrderTicket.buy("BTCUSDT", Decimal("100000"), Decimal("0.5"))
order = StrategyOrder.from_order(open_ticket)
order.opened()

close_ticket = OrderTicket.sell("BTCUSDT", Decimal("110000"), Decimal("0.5"))
order.bind_close(close_ticket)
order.closed()
assert order.state is StrategyOrderState.CLOSED
```

A buy ticket opens a `LONG` position, a sell ticket a `SHORT` one. The trading
pair of a ticket may be any hashable value.

## Managing opened positions

`StrategyOrderRegistry` (in `gridorders.registry`) stores strategy orders by
their own id and indexes them by the ids of their opening and closing orders
(`get_by_id`, `get_by_order_id`, `pop_by_id`, `pop_by_order_id`). Failed
lookups raise `StrategyOrderIdNotFound` or `OrderIdNotFound`; adding an order
whose id is already stored raises `ValueError`.

`StrategyOrderManager` (in `gridorders.order_manager`) extends the registry
with the opened but not yet closed positions sorted by open price, one index
for longs and one for shorts:

```python
from gridorders.order_manager import StrategyOrderManager

manager = StrategyOrderManager()
manager.add_with_order(open_ticket)
manager.opened_by_order_id(open_ticket.id)

lowest = manager.peek_lowest_long_opened_order()
position = manager.pop_highest_long_opened_order()
```

The `peek_*` and `pop_*` methods return `None` when the index is empty.
Binding a closing order takes the position out of the index; cancelling the
closing order puts it back.

`ClosePriceOrderManager` (in `gridorders.order_manager_v2`) works the same
way, but sorts opened positions by a planned close price, stored on each
order as `expected_close_price`. It is built from a minimum and a maximum
profit fraction and a minimum spacing between close prices, all fractions of
the open price. Each new position gets the first price in that band that is
not within one step of a close price already taken on the same side:

```python
from gridorders.order_manager_v2 import ClosePriceOrderManager

manager = ClosePriceOrderManager(Decimal("0.01"), Decimal("0.05"), Decimal("0.001"))
manager.add_with_order(open_ticket)
close_price = manager.opened_by_order_id(open_ticket.id)  # Decimal("101000.00")
```

The underlying calculation is available on its own in `gridorders.close_price`
as `ProfitBand` and `find_close_price`; `prune_levels` drops stale ids from a
price index.

## Utilities

`gridorders.timeutil.normalize_to_minute` truncates a `datetime` to the start
of its minute, keeping its time zone.

## What this package does not do

It keeps books only. It does not place orders on an exchange, fetch market
data, run a backtest or value assets, and it has no command-line program.
It has no container of managers per trading pair; use a plain `dict` keyed by
trading pair for that.

## Running the tests

```
pip install -e ".[test]"
pytest
```