"""Runtime settings for the commerce core.

Protean settings (databases, brokers, event store) live in ``domain.toml``.
The values here are business knobs read from the environment.
"""

import os

DEFAULT_LOW_STOCK_THRESHOLD = 5
DEFAULT_ORDER_NUMBER_PREFIX = "ORD"


class Settings:
    """Business settings resolved from environment variables."""

    def __init__(self, low_stock_threshold=None, order_number_prefix=None):
        if low_stock_threshold is None:
            low_stock_threshold = int(os.getenv("COMMERCE_LOW_STOCK_THRESHOLD", DEFAULT_LOW_STOCK_THRESHOLD))
        if order_number_prefix is None:
            order_number_prefix = os.getenv("COMMERCE_ORDER_NUMBER_PREFIX", DEFAULT_ORDER_NUMBER_PREFIX)

        if low_stock_threshold < 0:
            raise ValueError("Low stock threshold cannot be negative")

        self.low_stock_threshold = low_stock_threshold
        self.order_number_prefix = order_number_prefix

    def __repr__(self):
        return (
            f"Settings(low_stock_threshold={self.low_stock_threshold!r}, "
            f"order_number_prefix={self.order_number_prefix!r})"
        )


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
