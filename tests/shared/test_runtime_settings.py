"""Tests for environment-driven settings."""

import pytest
from commerce.config import DEFAULT_LOW_STOCK_THRESHOLD, Settings, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("COMMERCE_LOW_STOCK_THRESHOLD", raising=False)
        monkeypatch.delenv("COMMERCE_ORDER_NUMBER_PREFIX", raising=False)

        settings = get_settings()
        assert settings.low_stock_threshold == DEFAULT_LOW_STOCK_THRESHOLD
        assert settings.order_number_prefix == "ORD"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("COMMERCE_LOW_STOCK_THRESHOLD", "12")
        monkeypatch.setenv("COMMERCE_ORDER_NUMBER_PREFIX", "SO")

        settings = Settings()
        assert settings.low_stock_threshold == 12
        assert settings.order_number_prefix == "SO"

    def test_explicit_values_win(self, monkeypatch):
        monkeypatch.setenv("COMMERCE_LOW_STOCK_THRESHOLD", "12")
        assert Settings(low_stock_threshold=3).low_stock_threshold == 3

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError):
            Settings(low_stock_threshold=-1)
