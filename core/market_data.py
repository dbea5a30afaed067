import logging
from typing import Iterable, List, Optional

import pandas as pd
import yfinance as yf

from .models import MarketTickerItem
from .router import yahoo_symbol

logger = logging.getLogger("VipMarketData")


class MarketDataService:
    """
    Cotacoes via Yahoo Finance.
    Plano B da faixa de cotacoes quando a LLM nao responde, e fonte do grafico de historico.
    """

    @staticmethod
    def get_quote(ticker: str) -> Optional[MarketTickerItem]:
        symbol = yahoo_symbol(ticker)
        try:
            info = yf.Ticker(symbol).fast_info
            price = info.last_price
            previous = info.previous_close
        except Exception as e:
            # yfinance levanta tipos variados (HTTP, KeyError, JSON); para a faixa basta pular o ativo
            logger.warning(f"Cotacao indisponivel para {symbol}: {e}")
            return None

        if not price:
            return None

        change = ((price - previous) / previous) * 100 if previous else 0.0
        return MarketTickerItem(ticker=ticker, price=price, change=change)

    @classmethod
    def get_quotes(cls, tickers: Iterable[str]) -> List[MarketTickerItem]:
        quotes = []
        for ticker in tickers:
            quote = cls.get_quote(ticker)
            if quote is not None:
                quotes.append(quote)
        return quotes

    @staticmethod
    def get_price_history(ticker: str, period: str = "1y") -> pd.DataFrame:
        symbol = yahoo_symbol(ticker)
        try:
            hist = yf.Ticker(symbol).history(period=period)
        except Exception as e:
            logger.warning(f"Historico indisponivel para {symbol}: {e}")
            return pd.DataFrame(columns=["Close"])

        if hist is None or hist.empty or "Close" not in hist:
            return pd.DataFrame(columns=["Close"])
        return hist[["Close"]]
