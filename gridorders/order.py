"""Strategy orders: an opening order paired with its closing order, driven by a state machine."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Hashable


class OrderAction(enum.Enum):
    """Side of a plain exchange order."""

    BUY = "buy"
    SELL = "sell"


class OrderDirection(enum.Enum):
    """Direction of a position."""

    LONG = "long"
    SHORT = "short"


class StrategyOrderState(enum.Enum):
    """Life cycle of a strategy order."""

    OPENING = "opening"
    OPENED = "opened"
    CLOSING = "closing"
    CLOSED = "closed"
    CANCELED = "canceled"


class StrategyOrderError(Exception):
    """Base class for strategy order failures."""


class StateVerificationError(StrategyOrderError):
    """An operation is not allowed in the order's current state."""

    def __init__(self, state: StrategyOrderState, message: str) -> None:
        super().__init__(message)
        self.state = state


class CloseOrderIdAlreadySetError(StrategyOrderError):
    """A close order id is already bound and would be overwritten."""

    def __init__(self, existing_id: uuid.UUID, new_id: uuid.UUID) -> None:
        super().__init__(f"close order id already set to {existing_id}, refusing {new_id}")
        self.existing_id = existing_id
        self.new_id = new_id


class StateTransferError(StrategyOrderError):
    """The order was not in the state a transition expects."""

    def __init__(
        self,
        current: StrategyOrderState,
        expected: StrategyOrderState,
        new: StrategyOrderState,
    ) -> None:
        super().__init__(
            f"cannot move to {new.name}: state is {current.name}, expected {expected.name}"
        )
        self.current = current
        self.expected = expected
        self.new = new


class InconsistentQuantityError(StrategyOrderError):
    """The opening and closing orders have different quantities."""

    def __init__(self, open_quantity: Decimal, close_quantity: Decimal) -> None:
        super().__init__(
            f"open quantity {open_quantity} differs from close quantity {close_quantity}"
        )
        self.open_quantity = open_quantity
        self.close_quantity = close_quantity


@dataclass(frozen=True)
class OrderTicket:
    """A plain limit order as submitted to an exchange."""

    trading_pair: Hashable
    action: OrderAction
    price: Decimal
    quantity: Decimal
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @classmethod
    def buy(cls, trading_pair: Hashable, price: Decimal, quantity: Decimal) -> "OrderTicket":
        """Create a buy order."""
        return cls(trading_pair, OrderAction.BUY, price, quantity)

    @classmethod
    def sell(cls, trading_pair: Hashable, price: Decimal, quantity: Decimal) -> "OrderTicket":
        """Create a sell order."""
        return cls(trading_pair, OrderAction.SELL, price, quantity)


@dataclass
class StrategyOrder:
    """A position opened by one order and closed by another."""

    open_order_id: uuid.UUID
    direction: OrderDirection
    quantity: Decimal
    open_price: Decimal
    state: StrategyOrderState = StrategyOrderState.OPENING
    close_order_id: uuid.UUID | None = None
    expected_close_price: Decimal | None = None
    close_price: Decimal | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @classmethod
    def from_order(cls, opening_order: OrderTicket) -> "StrategyOrder":
        """Build a strategy order from a submitted opening order."""
        direction = (
            OrderDirection.LONG
            if opening_order.action is OrderAction.BUY
            else OrderDirection.SHORT
        )
        return cls(
            open_order_id=opening_order.id,
            direction=direction,
            quantity=opening_order.quantity,
            open_price=opening_order.price,
        )

    def transition(
        self, expected_state: StrategyOrderState, new_state: StrategyOrderState
    ) -> None:
        """Move to new_state, provided the order is in expected_state."""
        if self.state is not expected_state:
            raise StateTransferError(self.state, expected_state, new_state)
        self.state = new_state

    def cancel_open(self) -> None:
        """Cancel the opening order."""
        self.transition(StrategyOrderState.OPENING, StrategyOrderState.CANCELED)

    def opened(self) -> None:
        """Record that the opening order has been filled."""
        self.transition(StrategyOrderState.OPENING, StrategyOrderState.OPENED)

    def bind_close(self, closing_order: OrderTicket) -> None:
        """Attach a closing order; its quantity must match the opening one."""
        self.transition(StrategyOrderState.OPENED, StrategyOrderState.CLOSING)
        if self.quantity != closing_order.quantity:
            raise InconsistentQuantityError(self.quantity, closing_order.quantity)
        self.close_order_id = closing_order.id
        self.close_price = closing_order.price

    def closed(self) -> None:
        """Record that the closing order has been filled."""
        self.transition(StrategyOrderState.CLOSING, StrategyOrderState.CLOSED)

    def cancel_close(self) -> None:
        """Cancel the closing order and wait for a new one."""
        self.transition(StrategyOrderState.CLOSING, StrategyOrderState.OPENED)
        self.close_order_id = None
        self.close_price = None

    def set_close_order_id(self, close_order_id: uuid.UUID) -> None:
        """Set the close order id without overwriting an existing one."""
        if self.state is not StrategyOrderState.CLOSING:
            raise StateVerificationError(
                self.state, f"cannot set close_order_id in state {self.state.name}"
            )
        if self.close_order_id is not None:
            raise CloseOrderIdAlreadySetError(self.close_order_id, close_order_id)
        self.close_order_id = close_order_id