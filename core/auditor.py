import logging
import math
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .calculator import ValuationEngine
from .models import AssetClass, PortfolioItem

logger = logging.getLogger("VipAuditor")

# Faixas fixas de decisao (degraus, nao score continuo)
BUY_MARGIN = 15.0
EXPENSIVE_MARGIN = -10.0

# Bazin na carteira usa sempre o yield classico de 6%
PORTFOLIO_BAZIN_YIELD = 6.0
GRAHAM_CONSTANT = 22.5

# --- ESTRUTURAS DE DECISAO (Enums & Models) ---

class PortfolioDecision(str, Enum):
    """Veredito categorico por ativo da carteira."""
    BUY = "BUY"
    WAIT = "WAIT"
    EXPENSIVE = "EXPENSIVE"
    HOLD = "HOLD"  # alvo nao calculavel (ex: ETF sem yield)


DECISION_LABELS = {
    PortfolioDecision.BUY: "COMPRA",
    PortfolioDecision.WAIT: "AGUARDAR",
    PortfolioDecision.EXPENSIVE: "CARO",
    PortfolioDecision.HOLD: "MANTER",
}

DECISION_COLORS = {
    PortfolioDecision.BUY: "green",
    PortfolioDecision.WAIT: "yellow",
    PortfolioDecision.EXPENSIVE: "red",
    PortfolioDecision.HOLD: "blue",
}


class PortfolioVerdict(BaseModel):
    """Linha da tabela de decisao."""
    ticker: str
    category: AssetClass
    current_price: float
    graham: float = Field(0.0, description="Graham via multiplos (P/L e P/VP)")
    bazin: float = Field(0.0, description="Bazin via DY a 6%")
    target_value: float = 0.0
    safety_margin: Optional[float] = Field(None, description="Margem sobre o alvo em %; None se nao calculavel")
    decision: PortfolioDecision = PortfolioDecision.HOLD

    @property
    def label(self) -> str:
        return DECISION_LABELS[self.decision]


# --- O CLASSIFICADOR ---

class PortfolioAuditor:
    """
    Analise automatica de decisao para cada posicao.
    Usa apenas os multiplos atuais da carteira (P/L, P/VP, DY), sem chamar a LLM.
    """

    @staticmethod
    def graham_from_multiples(price: float, pl: Optional[float], pvp: Optional[float]) -> float:
        """Graham reescrito com multiplos: Preco x raiz(22.5 / (P/L x P/VP))."""
        if not pl or not pvp or pl <= 0 or pvp <= 0:
            return 0.0
        factor = GRAHAM_CONSTANT / (pl * pvp)
        if price <= 0 or not math.isfinite(factor):
            return 0.0
        return price * math.sqrt(factor)

    @staticmethod
    def bazin_from_yield(price: float, dividend_yield: Optional[float]) -> float:
        if not dividend_yield or dividend_yield <= 0 or price <= 0:
            return 0.0
        dividend_per_share = price * (dividend_yield / 100)
        return ValuationEngine.bazin_value(dividend_per_share, PORTFOLIO_BAZIN_YIELD)

    @classmethod
    def target_value(cls, item: PortfolioItem) -> float:
        """
        Alvo por categoria:
        - Acoes: Graham, e Bazin se Graham nao for calculavel
        - FIIs, ETFs e BDRs: Bazin (0 quando nao ha yield)
        """
        bazin = cls.bazin_from_yield(item.current_price, item.dividend_yield)
        if item.category == AssetClass.STOCK:
            graham = cls.graham_from_multiples(item.current_price, item.price_to_earnings, item.price_to_book)
            return graham if graham > 0 else bazin
        return bazin

    @staticmethod
    def safety_margin(target: float, current_price: float) -> Optional[float]:
        if target <= 0:
            return None
        return (target - current_price) / target * 100

    @staticmethod
    def classify_margin(margin: Optional[float]) -> PortfolioDecision:
        if margin is None:
            return PortfolioDecision.HOLD
        if margin > BUY_MARGIN:
            return PortfolioDecision.BUY
        if margin < EXPENSIVE_MARGIN:
            return PortfolioDecision.EXPENSIVE
        return PortfolioDecision.WAIT

    @classmethod
    def classify(cls, item: PortfolioItem) -> PortfolioVerdict:
        graham = 0.0
        if item.category == AssetClass.STOCK:
            graham = cls.graham_from_multiples(item.current_price, item.price_to_earnings, item.price_to_book)
        bazin = cls.bazin_from_yield(item.current_price, item.dividend_yield)
        target = cls.target_value(item)
        margin = cls.safety_margin(target, item.current_price)

        return PortfolioVerdict(
            ticker=item.ticker,
            category=item.category,
            current_price=item.current_price,
            graham=graham,
            bazin=bazin,
            target_value=target,
            safety_margin=margin,
            decision=cls.classify_margin(margin),
        )

    def audit(self, items: List[PortfolioItem]) -> List[PortfolioVerdict]:
        logger.info(f"Classificando {len(items)} posicoes da carteira...")
        verdicts = [self.classify(item) for item in items]
        buys = sum(1 for v in verdicts if v.decision == PortfolioDecision.BUY)
        logger.info(f"Classificacao concluida: {buys} oportunidades de compra.")
        return verdicts
