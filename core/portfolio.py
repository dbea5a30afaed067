import logging
import math
from typing import Dict, Iterable, List, Optional

from .market_map import INTERNATIONAL_ETFS
from .models import AssetClass, FinancialData, PortfolioItem

logger = logging.getLogger("VipPortfolio")

ALLOCATION_VIEWS = ("type", "asset", "exposure")


class PortfolioError(Exception):
    """Edicao invalida da carteira (ticker inexistente, numero invalido)."""
    pass


class Portfolio:
    """
    Dona unica da lista de posicoes da sessao.
    Nao ha persistencia: a carteira vive enquanto a sessao do Streamlit viver.
    """

    def __init__(self, items: Optional[Iterable[PortfolioItem]] = None):
        self.items: List[PortfolioItem] = list(items or [])

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def find(self, ticker: str) -> Optional[PortfolioItem]:
        ticker = ticker.upper().strip()
        for item in self.items:
            if item.ticker == ticker:
                return item
        return None

    # =========================================================================
    # MUTACOES
    # =========================================================================
    def replace(self, items: Iterable[PortfolioItem]) -> None:
        """Substitui a carteira inteira (importacao)."""
        self.items = list(items)
        logger.info(f"Carteira importada com {len(self.items)} ativos.")

    def add(self, item: PortfolioItem) -> None:
        # Unicidade do ticker nao e garantida: a UI mostra duplicatas lado a lado
        if self.find(item.ticker):
            logger.warning(f"{item.ticker} ja existe na carteira; adicionando posicao duplicada.")
        self.items.append(item)

    def add_from_analysis(self, data: FinancialData) -> PortfolioItem:
        """Cria uma posicao de 1 unidade ao preco atual a partir de uma analise."""
        item = PortfolioItem(
            ticker=data.ticker,
            category=data.asset_class,
            sector=data.sector,
            quantity=1,
            average_price=data.current_price,
            current_price=data.current_price,
            dividend_yield=data.dividend_yield,
            price_to_book=data.price_to_book,
            price_to_earnings=data.price_to_earnings,
            return_on_equity=data.return_on_equity,
            payout_ratio=0,
        )
        self.add(item)
        return item

    def edit(self, ticker: str, quantity: float, average_price: float) -> PortfolioItem:
        """Altera quantidade e preco medio da posicao (os unicos campos editaveis)."""
        item = self.find(ticker)
        if item is None:
            raise PortfolioError(f"Ativo {ticker} não está na carteira.")

        try:
            quantity = float(quantity)
            average_price = float(average_price)
        except (TypeError, ValueError):
            raise PortfolioError("Quantidade e preço médio devem ser números.")

        if not math.isfinite(quantity) or not math.isfinite(average_price):
            raise PortfolioError("Quantidade e preço médio devem ser números.")
        if quantity < 0:
            raise PortfolioError("Quantidade não pode ser negativa.")

        item.quantity = quantity
        item.average_price = average_price
        return item

    def remove(self, ticker: str) -> bool:
        ticker = ticker.upper().strip()
        before = len(self.items)
        self.items = [item for item in self.items if item.ticker != ticker]
        return len(self.items) < before

    # =========================================================================
    # AGREGADOS (Dashboard)
    # =========================================================================
    @property
    def total_balance(self) -> float:
        return sum(item.market_value for item in self.items)

    @property
    def total_cost(self) -> float:
        return sum(item.cost_basis for item in self.items)

    @property
    def total_profit(self) -> float:
        return self.total_balance - self.total_cost

    @property
    def profit_percent(self) -> float:
        cost = self.total_cost
        return (self.total_profit / cost) * 100 if cost > 0 else 0.0

    @property
    def annual_dividends_estimate(self) -> float:
        """Renda anual estimada: valor de mercado x DY de cada posicao."""
        return sum(
            item.market_value * (item.dividend_yield / 100)
            for item in self.items
            if item.dividend_yield
        )

    def by_category(self, category: AssetClass) -> List[PortfolioItem]:
        return [item for item in self.items if item.category == category]

    def allocation(self, view: str = "type") -> Dict[str, float]:
        """
        Distribuicao do patrimonio.

        Args:
            view: "type" (por classe), "asset" (por ticker) ou "exposure" (Nacional x Exterior)
        """
        if view not in ALLOCATION_VIEWS:
            raise ValueError(f"Visao de alocacao desconhecida: {view}")

        if view == "type":
            groups: Dict[str, float] = {}
            for item in self.items:
                groups[item.category.value] = groups.get(item.category.value, 0.0) + item.market_value
            return groups

        if view == "asset":
            groups = {}
            for item in self.items:
                groups[item.ticker] = groups.get(item.ticker, 0.0) + item.market_value
            return groups

        international = sum(
            item.market_value
            for item in self.items
            if item.category == AssetClass.DEPOSITARY_RECEIPT or item.ticker in INTERNATIONAL_ETFS
        )
        return {"Nacional": self.total_balance - international, "Exterior": international}
