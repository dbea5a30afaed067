from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .calculator import ValuationParams
from .models import AnalysisResult, DividendProjectionResult, MarketTickerItem, PortfolioItem
from .portfolio import Portfolio

TABS = ("analyze", "portfolio", "dashboard", "portfolio-analysis", "dividend-projection")


class RequestTracker:
    """
    Controle de geracao das chamadas a LLM.

    Cada nova requisicao de um canal ("analyze", "projection"...) recebe um token
    maior que o anterior. Ao chegar a resposta, so e aceita se o token ainda for o
    mais recente; respostas atrasadas de buscas antigas sao descartadas.
    """

    def __init__(self):
        self._generations: Dict[str, int] = {}

    def begin(self, channel: str) -> int:
        token = self._generations.get(channel, 0) + 1
        self._generations[channel] = token
        return token

    def is_current(self, channel: str, token: int) -> bool:
        return self._generations.get(channel, 0) == token


@dataclass
class AppState:
    """Estado explicito da aplicacao. O core nunca le isto; so a camada de UI."""
    active_tab: str = "analyze"
    portfolio: Portfolio = field(default_factory=Portfolio)
    analysis: Optional[AnalysisResult] = None
    valuation_params: Optional[ValuationParams] = None
    projection: Optional[DividendProjectionResult] = None
    market_items: List[MarketTickerItem] = field(default_factory=list)
    errors: Dict[str, Optional[str]] = field(default_factory=dict)
    requests: RequestTracker = field(default_factory=RequestTracker)

    def accept_analysis(self, token: int, result: AnalysisResult) -> bool:
        """Guarda o resultado se ele ainda corresponder a busca mais recente."""
        if not self.requests.is_current("analyze", token):
            return False
        self.analysis = result
        self.valuation_params = ValuationParams.for_asset(result.data)
        self.errors["analyze"] = None
        return True

    def accept_projection(self, token: int, result: DividendProjectionResult) -> bool:
        if not self.requests.is_current("projection", token):
            return False
        self.projection = result
        self.errors["projection"] = None
        return True

    def accept_portfolio(self, token: int, items: List[PortfolioItem]) -> bool:
        if not self.requests.is_current("portfolio", token):
            return False
        self.portfolio.replace(items)
        self.errors["portfolio"] = None
        return True

    def fail(self, channel: str, token: int, message: str) -> bool:
        if not self.requests.is_current(channel, token):
            return False
        self.errors[channel] = message
        return True

    def error_for(self, channel: str) -> Optional[str]:
        """Erro pendente do canal; cada aba so mostra o seu."""
        return self.errors.get(channel)
