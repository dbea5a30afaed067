# core/router.py
"""
Roteamento por tipo de ativo.

Decide a classe de um ativo a partir do ticker quando o provedor nao informa,
e traduz tickers da B3 para os simbolos do Yahoo Finance.
"""

import re

from .market_map import ETF_NAME_PATTERN, NON_ANALYZABLE_TICKERS, YAHOO_SYMBOLS
from .models import AssetClass

_ETF_HINT = re.compile(ETF_NAME_PATTERN, re.IGNORECASE)

# Tickers da B3: 4 letras + 1 ou 2 digitos (PETR4, TAEE11, AAPL34)
_B3_TICKER = re.compile(r"^[A-Z]{4}\d{1,2}$")


def identify_asset(ticker: str, name: str = "", description: str = "") -> AssetClass:
    """
    Identifica a classe do ativo pelo padrao do ticker.

    - Final 33/34: BDR (recibo de acao estrangeira)
    - Final 11: FII, a menos que nome/descricao indiquem um ETF
    - Demais: Acao
    """
    ticker = ticker.upper().strip()

    if ticker.endswith("33") or ticker.endswith("34"):
        return AssetClass.DEPOSITARY_RECEIPT

    if ticker.endswith("11"):
        if _ETF_HINT.search(name or "") or _ETF_HINT.search(description or ""):
            return AssetClass.EXCHANGE_TRADED_FUND
        return AssetClass.REAL_ESTATE_FUND

    return AssetClass.STOCK


def yahoo_symbol(ticker: str) -> str:
    """Converte o ticker para o simbolo do Yahoo (PETR4 -> PETR4.SA, IBOV -> ^BVSP)."""
    ticker = ticker.upper().strip()
    if ticker in YAHOO_SYMBOLS:
        return YAHOO_SYMBOLS[ticker]
    if _B3_TICKER.match(ticker):
        return f"{ticker}.SA"
    return ticker


def is_analyzable(ticker: str) -> bool:
    """Indices e cambio nao se encaixam no modelo de analise fundamentalista."""
    return ticker.upper().strip() not in NON_ANALYZABLE_TICKERS
