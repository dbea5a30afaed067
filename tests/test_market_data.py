"""
Unit tests for the Yahoo Finance quote service. yfinance is mocked.
"""
from types import SimpleNamespace
from unittest.mock import patch

import pandas as pd
import pytest

from core.market_data import MarketDataService


@pytest.fixture
def yf():
    with patch("core.market_data.yf") as mock_yf:
        yield mock_yf


class TestGetQuote:
    def test_quote_with_daily_change(self, yf):
        yf.Ticker.return_value.fast_info = SimpleNamespace(last_price=110.0, previous_close=100.0)

        quote = MarketDataService.get_quote("PETR4")

        yf.Ticker.assert_called_once_with("PETR4.SA")
        assert quote.ticker == "PETR4"
        assert quote.price == pytest.approx(110)
        assert quote.change == pytest.approx(10)

    def test_index_uses_yahoo_symbol(self, yf):
        yf.Ticker.return_value.fast_info = SimpleNamespace(last_price=128500.0, previous_close=None)

        quote = MarketDataService.get_quote("IBOV")

        yf.Ticker.assert_called_once_with("^BVSP")
        assert quote.ticker == "IBOV"
        assert quote.change == 0.0

    def test_network_error_returns_none(self, yf, caplog):
        yf.Ticker.side_effect = RuntimeError("HTTP 404")

        assert MarketDataService.get_quote("XPTO3") is None
        assert "Cotacao indisponivel" in caplog.text

    def test_missing_price_returns_none(self, yf):
        yf.Ticker.return_value.fast_info = SimpleNamespace(last_price=None, previous_close=10.0)
        assert MarketDataService.get_quote("VALE3") is None

    def test_get_quotes_skips_failures(self, yf):
        def fake_ticker(symbol):
            if symbol == "FAIL3.SA":
                raise RuntimeError("boom")
            return SimpleNamespace(fast_info=SimpleNamespace(last_price=10.0, previous_close=10.0))

        yf.Ticker.side_effect = fake_ticker

        quotes = MarketDataService.get_quotes(["ITUB4", "FAIL3", "BBAS3"])

        assert [q.ticker for q in quotes] == ["ITUB4", "BBAS3"]


class TestPriceHistory:
    def test_keeps_close_column(self, yf):
        index = pd.date_range("2025-01-01", periods=3)
        yf.Ticker.return_value.history.return_value = pd.DataFrame(
            {"Open": [1, 2, 3], "Close": [1.5, 2.5, 3.5]}, index=index
        )

        hist = MarketDataService.get_price_history("WEGE3")

        yf.Ticker.return_value.history.assert_called_once_with(period="1y")
        assert list(hist.columns) == ["Close"]
        assert hist["Close"].tolist() == [1.5, 2.5, 3.5]

    def test_failure_returns_empty_frame(self, yf):
        yf.Ticker.return_value.history.side_effect = RuntimeError("rate limited")

        hist = MarketDataService.get_price_history("WEGE3")

        assert hist.empty
        assert list(hist.columns) == ["Close"]

    def test_empty_history(self, yf):
        yf.Ticker.return_value.history.return_value = pd.DataFrame()
        assert MarketDataService.get_price_history("WEGE3").empty
