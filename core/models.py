from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .normalizer import NumericNormalizer

# --- CONTRATOS DE DADOS (SCHEMA) ---
# A LLM devolve JSON com campos ausentes, tipos errados e numeros como texto.
# Estes modelos sao a camada de decodificacao defensiva: qualquer dict parcial
# vira uma entidade completa, com todos os numeros preenchidos (0 quando desconhecido).


class AssetClass(str, Enum):
    """Classe do ativo. O valor e o codigo usado pelo provedor (padrao B3)."""
    STOCK = "ACAO"
    REAL_ESTATE_FUND = "FII"
    EXCHANGE_TRADED_FUND = "ETF"
    DEPOSITARY_RECEIPT = "BDR"


class Currency(str, Enum):
    BRL = "BRL"
    USD = "USD"


CURRENCY_SYMBOLS = {Currency.BRL: "R$", Currency.USD: "US$"}


def _to_float(value: Any) -> float:
    return NumericNormalizer.normalize(value)


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _to_optional_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _parse_enum(enum_cls, value: Any) -> Optional[Enum]:
    """Aceita o valor do enum ("FII") ou o nome ("REAL_ESTATE_FUND"), sem diferenciar caixa."""
    if isinstance(value, enum_cls):
        return value
    if not value:
        return None
    key = str(value).strip().upper()
    for member in enum_cls:
        if key in (member.value, member.name):
            return member
    return None


class DividendHistoryEntry(BaseModel):
    """Um pagamento de provento (Dividendo, JCP ou Rendimento)."""
    month: str = Field("", description="Mes do pagamento, ex: Jan/24")
    amount: float = Field(0.0, description="Valor por acao/cota")
    payout_type: Optional[str] = Field(None, description="Dividendo, JCP ou Rendimento")

    normalize_numbers = field_validator("amount", mode="before")(_to_float)
    coerce_month = field_validator("month", mode="before")(_to_text)
    coerce_type = field_validator("payout_type", mode="before")(_to_optional_text)


class SectorMetric(BaseModel):
    """KPI especifico do setor (ex: Basileia para bancos, Vacancia para FIIs)."""
    label: str = ""
    value: str = Field("", description="Valor ja formatado para exibicao")
    unit: Optional[str] = None
    tooltip: Optional[str] = None

    coerce_text = field_validator("label", "value", mode="before")(_to_text)
    coerce_optional = field_validator("unit", "tooltip", mode="before")(_to_optional_text)


class FinancialData(BaseModel):
    """
    Fotografia dos fundamentos de um ativo no momento da analise.
    Imutavel: uma nova analise gera um novo objeto.
    """
    model_config = ConfigDict(frozen=True)

    # --- IDENTIFICACAO ---
    ticker: str
    name: str = "Unknown"
    asset_class: AssetClass = AssetClass.STOCK
    currency: Currency = Currency.BRL
    sector: str = "Geral"
    description: str = ""

    # --- FUNDAMENTOS ---
    current_price: float = Field(0.0, ge=0, description="Preco atual")
    earnings_per_share: float = Field(0.0, description="LPA")
    book_value_per_share: float = Field(0.0, description="VPA")
    dividend_yield: float = Field(0.0, description="DY anual em %, ex: 8.5")
    price_to_earnings: float = Field(0.0, description="P/L")
    price_to_book: float = Field(0.0, description="P/VP")
    return_on_equity: float = Field(0.0, description="ROE em %")
    debt_to_equity: float = Field(0.0, description="Divida Liquida / PL")
    net_margin: float = Field(0.0, description="Margem Liquida em %")
    last_dividend: float = Field(0.0, description="Soma dos proventos por acao nos ultimos 12 meses")
    free_cash_flow_per_share: float = Field(0.0, description="FCL por acao")
    revenue_growth_3y: float = Field(0.0, description="CAGR de receita 3 anos em %")

    dividend_history: List[DividendHistoryEntry] = Field(default_factory=list)
    sector_metrics: List[SectorMetric] = Field(default_factory=list)

    normalize_numbers = field_validator(
        "earnings_per_share", "book_value_per_share", "dividend_yield",
        "price_to_earnings", "price_to_book", "return_on_equity", "debt_to_equity",
        "net_margin", "last_dividend", "free_cash_flow_per_share", "revenue_growth_3y",
        mode="before",
    )(_to_float)

    @field_validator("current_price", mode="before")
    @classmethod
    def clamp_price(cls, value: Any) -> float:
        return max(_to_float(value), 0.0)

    @field_validator("ticker", mode="before")
    @classmethod
    def upper_ticker(cls, value: Any) -> str:
        return _to_text(value).strip().upper()

    @field_validator("name", "sector", "description", mode="before")
    @classmethod
    def default_text(cls, value: Any, info) -> str:
        text = _to_text(value)
        if text:
            return text
        return cls.model_fields[info.field_name].default

    @field_validator("currency", mode="before")
    @classmethod
    def parse_currency(cls, value: Any) -> Currency:
        return _parse_enum(Currency, value) or Currency.BRL

    @field_validator("asset_class", mode="before")
    @classmethod
    def parse_asset_class(cls, value: Any) -> AssetClass:
        return _parse_enum(AssetClass, value) or AssetClass.STOCK

    @field_validator("dividend_history", "sector_metrics", mode="before")
    @classmethod
    def keep_records(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, BaseModel))]

    @classmethod
    def from_provider(cls, raw: dict, ticker: str) -> "FinancialData":
        """
        Constroi o snapshot a partir do JSON da LLM.
        Se a classe do ativo nao vier (ou vier invalida), inferimos pelo ticker.
        """
        from .router import identify_asset

        raw = dict(raw or {})
        raw["ticker"] = raw.get("ticker") or ticker

        history = raw.get("dividend_history")
        if isinstance(history, list):
            # Aceita tanto "amount" quanto "value" e "type" vindos do provedor
            raw["dividend_history"] = [
                {
                    "month": entry.get("month"),
                    "amount": entry.get("amount", entry.get("value")),
                    "payout_type": entry.get("payout_type", entry.get("type")),
                }
                for entry in history if isinstance(entry, dict)
            ]

        asset_class = _parse_enum(AssetClass, raw.get("asset_class"))
        if asset_class is None:
            asset_class = identify_asset(
                _to_text(raw["ticker"]).upper(),
                name=_to_text(raw.get("name")),
                description=_to_text(raw.get("description")),
            )
        raw["asset_class"] = asset_class

        return cls(**raw)

    @property
    def currency_symbol(self) -> str:
        return CURRENCY_SYMBOLS[self.currency]

    @property
    def is_real_estate_fund(self) -> bool:
        return self.asset_class == AssetClass.REAL_ESTATE_FUND


class AnalysisResult(BaseModel):
    data: FinancialData
    grounding_urls: List[str] = Field(default_factory=list)


class PortfolioItem(BaseModel):
    """Posicao mantida pelo usuario. Apenas quantidade e preco medio sao editaveis."""
    ticker: str
    category: AssetClass = AssetClass.STOCK
    sector: Optional[str] = None
    quantity: float = Field(0.0, ge=0)
    average_price: float = 0.0
    current_price: float = 0.0

    dividend_yield: float = 0.0
    price_to_book: float = 0.0
    price_to_earnings: float = 0.0
    return_on_equity: float = 0.0
    payout_ratio: float = 0.0

    normalize_numbers = field_validator(
        "average_price", "current_price", "dividend_yield", "price_to_book",
        "price_to_earnings", "return_on_equity", "payout_ratio",
        mode="before",
    )(_to_float)

    @field_validator("quantity", mode="before")
    @classmethod
    def clamp_quantity(cls, value: Any) -> float:
        return max(_to_float(value), 0.0)

    @field_validator("ticker", mode="before")
    @classmethod
    def upper_ticker(cls, value: Any) -> str:
        return _to_text(value).strip().upper()

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, value: Any) -> AssetClass:
        return _parse_enum(AssetClass, value) or AssetClass.STOCK

    coerce_sector = field_validator("sector", mode="before")(_to_optional_text)

    @property
    def market_value(self) -> float:
        return self.quantity * self.current_price

    @property
    def cost_basis(self) -> float:
        return self.quantity * self.average_price


class DividendProjectionResult(BaseModel):
    """Leitura do relatorio mais recente e a projecao de proventos feita pela LLM."""
    ticker: str = ""
    latest_report_date: str = ""
    report_highlights: str = ""
    reported_net_income: float = 0.0
    reported_revenue: float = 0.0
    shares_outstanding: float = 0.0
    payout_ratio: float = 0.0
    projected_dividend_per_share: float = 0.0
    reasoning: str = ""
    risk_factors: str = ""

    normalize_numbers = field_validator(
        "reported_net_income", "reported_revenue", "shares_outstanding",
        "payout_ratio", "projected_dividend_per_share",
        mode="before",
    )(_to_float)
    coerce_text = field_validator(
        "ticker", "latest_report_date", "report_highlights", "reasoning", "risk_factors",
        mode="before",
    )(_to_text)


class MarketTickerItem(BaseModel):
    ticker: str
    price: float = 0.0
    change: float = Field(0.0, description="Variacao diaria em %")

    normalize_numbers = field_validator("price", "change", mode="before")(_to_float)
    coerce_ticker = field_validator("ticker", mode="before")(_to_text)
