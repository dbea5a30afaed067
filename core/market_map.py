# core/market_map.py

# Ativos exibidos na faixa de cotacoes do topo
MARKET_OVERVIEW_TICKERS = [
    "IBOV", "USDBRL", "CDI", "PETR4", "VALE3", "ITUB4", "BBAS3",
    "WEGE3", "HGLG11", "MXRF11", "KNRI11", "IVVB11", "BTC", "IFIX",
]

# Indices e indicadores nao tem fundamentos: clicar neles nao dispara analise
NON_ANALYZABLE_TICKERS = {"IBOV", "IFIX", "USDBRL", "CDI"}

# Codigos especiais no Yahoo (indices e cambio nao seguem o padrao TICKER.SA)
YAHOO_SYMBOLS = {
    "IBOV": "^BVSP",
    "IFIX": "IFIX.SA",
    "USDBRL": "BRL=X",
    "BTC": "BTC-USD",
}

# ETFs listados na B3 que replicam ativos do exterior (contam como "Exterior" na alocacao)
INTERNATIONAL_ETFS = {"IVVB11", "WRLD11", "SPXI11", "GOLD11", "EURP11", "XINA11"}

# Padroes de nome que denunciam um ETF entre os tickers terminados em 11
ETF_NAME_PATTERN = r"ETF|Index|Indice|Gold|S&P|Small"

# Usado quando nem a LLM nem o Yahoo respondem
FALLBACK_MARKET_ITEMS = [
    {"ticker": "IBOV", "price": 128500, "change": 0.45},
    {"ticker": "USDBRL", "price": 5.15, "change": -0.20},
    {"ticker": "PETR4", "price": 41.50, "change": 1.25},
    {"ticker": "VALE3", "price": 60.80, "change": -0.90},
    {"ticker": "ITUB4", "price": 34.20, "change": 0.55},
    {"ticker": "BBAS3", "price": 58.10, "change": 0.80},
    {"ticker": "WEGE3", "price": 38.50, "change": 1.10},
    {"ticker": "HGLG11", "price": 162.50, "change": 0.15},
    {"ticker": "MXRF11", "price": 10.45, "change": 0.10},
    {"ticker": "IVVB11", "price": 298.50, "change": 0.60},
    {"ticker": "BTC", "price": 350000, "change": 2.50},
    {"ticker": "IFIX", "price": 3380, "change": 0.05},
]

# Sugestoes de busca para o usuario nao comecar do zero
POPULAR_TICKERS = {
    "BR_STOCK": ["PETR4", "VALE3", "ITUB4", "WEGE3", "BBAS3", "TAEE11"],
    "FII": ["HGLG11", "KNRI11", "MXRF11", "VISC11", "XPML11"],
    "US_STOCK": ["AAPL", "MSFT", "KO", "JNJ", "O"],
}
