"""Strategy order state machine, opened-position indexes and close-price allocation for grid trading backtests."""

__version__ = "0.1.0"