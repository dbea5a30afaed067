import logging
import math
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from .models import FinancialData

logger = logging.getLogger("VipValuation")

# Crescimento na perpetuidade do DCF (fixo, nao ajustavel pelo usuario)
TERMINAL_GROWTH = 0.02


class ValuationParams(BaseModel):
    """
    Premissas ajustaveis pelo usuario (sliders). Vivem apenas na sessao.
    Todas as taxas em percentual (6 = 6%).
    """
    graham_constant: float = Field(22.5, description="Constante de Graham (15 x 1.5)")
    bazin_target_yield: float = Field(6.0, description="Yield minimo exigido por Bazin")
    gordon_growth: float = Field(2.0, description="Crescimento perpetuo dos dividendos")
    gordon_required_return: float = Field(10.0, description="Retorno exigido (Ke)")
    dcf_growth: float = Field(5.0, description="Crescimento do FCL no periodo explicito")
    dcf_discount: float = Field(12.0, description="Taxa de desconto (WACC)")
    dcf_years: int = Field(10, description="Horizonte de projecao em anos")
    margin_of_safety: float = Field(30.0, description="Margem de seguranca sobre o valor justo")

    @classmethod
    def for_asset(cls, data: FinancialData) -> "ValuationParams":
        """Premissas iniciais: o crescimento do DCF parte do CAGR de receita (teto de 15%)."""
        growth = min(data.revenue_growth_3y, 15.0) if data.revenue_growth_3y > 0 else 5.0
        return cls(dcf_growth=growth)


class ValuationReport:
    """Objeto de transferencia de dados (DTO) com o resultado de todos os modelos."""
    def __init__(self, current_price: float, graham: float, bazin: float, gordon: float, dcf: float,
                 average: float, buy_price: float, upside: float, graham_upside: float):
        self.current_price = current_price
        self.graham = graham
        self.bazin = bazin
        self.gordon = gordon
        self.dcf = dcf
        self.average = average
        self.buy_price = buy_price
        self.upside = upside
        self.graham_upside = graham_upside

    @property
    def is_computable(self) -> bool:
        return self.average > 0

    @property
    def is_discounted(self) -> bool:
        """Preco atual abaixo do preco teto (valor justo com margem de seguranca)."""
        return 0 < self.current_price < self.buy_price

    def models(self) -> dict:
        return {"Graham": self.graham, "Bazin": self.bazin, "Gordon": self.gordon, "DCF": self.dcf}


class ValuationEngine:
    """
    Motor de valuation deterministico.

    Todas as funcoes sao puras e totais: entrada fora do dominio do modelo
    (LPA negativo, sem dividendos, Ke <= g...) devolve 0, que a UI interpreta
    como "nao calculavel". Nunca levantam excecao.
    """

    @staticmethod
    def safe_div(n: Optional[float], d: Optional[float], default: float = 0.0) -> float:
        """Divisao segura para evitar ZeroDivisionError."""
        if n is None or d is None:
            return default
        return n / d if d != 0 else default

    @staticmethod
    def graham_value(eps: float, bvps: float, constant: float = 22.5) -> float:
        """Valor intrinseco de Graham: raiz(constante x LPA x VPA)."""
        if eps <= 0 or bvps <= 0 or constant <= 0:
            return 0.0
        return math.sqrt(constant * eps * bvps)

    @staticmethod
    def graham_upside(graham: float, current_price: float) -> float:
        if graham <= 0:
            return 0.0
        return ValuationEngine.safe_div(graham - current_price, current_price) * 100

    @staticmethod
    def bazin_value(last_dividend: float, target_yield: float = 6.0) -> float:
        """Preco teto de Bazin: dividendos dos ultimos 12m / yield exigido."""
        if last_dividend <= 0 or target_yield <= 0:
            return 0.0
        return last_dividend / (target_yield / 100)

    @staticmethod
    def gordon_value(last_dividend: float, growth: float = 2.0, required_return: float = 10.0) -> float:
        """Modelo de Gordon: D1 / (Ke - g). Indefinido quando Ke <= g."""
        if last_dividend <= 0:
            return 0.0
        k = required_return / 100
        g = growth / 100
        if k <= g:
            return 0.0
        return (last_dividend * (1 + g)) / (k - g)

    @staticmethod
    def dcf_value(fcf_per_share: float, growth: float = 5.0, discount: float = 12.0, years: int = 10) -> float:
        """
        Fluxo de Caixa Descontado por acao.

        Projeta o FCL por `years` anos crescendo a `growth`%, traz cada ano a valor
        presente a `discount`% e soma a perpetuidade (Gordon com g = 2%) descontada
        do ultimo ano. Com desconto <= 2% a perpetuidade explode: devolve 0.
        """
        if fcf_per_share <= 0:
            return 0.0

        r = discount / 100
        g = growth / 100
        if r <= TERMINAL_GROWTH:
            logger.warning(f"DCF nao calculavel: desconto de {discount}% <= crescimento terminal.")
            return 0.0

        years = max(int(years), 0)
        current_fcf = fcf_per_share
        sum_pv = 0.0
        try:
            for year in range(1, years + 1):
                current_fcf = current_fcf * (1 + g)
                sum_pv += current_fcf / (1 + r) ** year

            terminal_value = (current_fcf * (1 + TERMINAL_GROWTH)) / (r - TERMINAL_GROWTH)
            pv_terminal = terminal_value / (1 + r) ** years
        except OverflowError:
            logger.warning(f"DCF nao calculavel: overflow com horizonte de {years} anos.")
            return 0.0

        value = sum_pv + pv_terminal
        return value if math.isfinite(value) else 0.0

    @staticmethod
    def average_intrinsic_value(values: Iterable[float]) -> float:
        """Media apenas dos modelos que conseguiram calcular (valores > 0)."""
        valid = [v for v in values if v > 0]
        if not valid:
            return 0.0
        return sum(valid) / len(valid)

    @staticmethod
    def buy_price(average: float, margin_of_safety: float = 30.0) -> float:
        return average * (1 - margin_of_safety / 100)

    @staticmethod
    def upside(average: float, current_price: float) -> float:
        if average <= 0:
            return 0.0
        return ValuationEngine.safe_div(average - current_price, current_price) * 100

    def evaluate(self, data: FinancialData, params: Optional[ValuationParams] = None) -> ValuationReport:
        """Roda todos os modelos sobre o snapshot com as premissas informadas."""
        params = params or ValuationParams.for_asset(data)
        logger.info(f"Valuation de {data.ticker} | Preco: {data.current_price}")

        graham = self.graham_value(data.earnings_per_share, data.book_value_per_share, params.graham_constant)
        bazin = self.bazin_value(data.last_dividend, params.bazin_target_yield)
        gordon = self.gordon_value(data.last_dividend, params.gordon_growth, params.gordon_required_return)
        dcf = self.dcf_value(data.free_cash_flow_per_share, params.dcf_growth, params.dcf_discount, params.dcf_years)

        average = self.average_intrinsic_value([graham, bazin, gordon, dcf])

        return ValuationReport(
            current_price=data.current_price,
            graham=graham,
            bazin=bazin,
            gordon=gordon,
            dcf=dcf,
            average=average,
            buy_price=self.buy_price(average, params.margin_of_safety),
            upside=self.upside(average, data.current_price),
            graham_upside=self.graham_upside(graham, data.current_price),
        )


# =========================================================================
# SIMULADOR DE DIVIDENDOS
# =========================================================================
class DividendSimulation:
    """Resultado do simulador de renda passiva."""
    def __init__(self, projected_dps: float, total_investment: float, annual_income: float,
                 monthly_income: float, required_shares: int, required_capital: float):
        self.projected_dps = projected_dps
        self.total_investment = total_investment
        self.annual_income = annual_income
        self.monthly_income = monthly_income
        self.required_shares = required_shares
        self.required_capital = required_capital


class DividendSimulator:
    """Projecao de renda e o "Numero Magico" (cotas necessarias para uma renda mensal alvo)."""

    @staticmethod
    def projected_dividend_per_share(price: float, projected_yield: float) -> float:
        return price * (projected_yield / 100)

    @staticmethod
    def starting_yield(data: FinancialData) -> float:
        """Yield inicial do simulador; o provedor pode devolver yield negativo."""
        return max(data.dividend_yield, 0.0)

    @staticmethod
    def required_shares(target_monthly_income: float, projected_dps: float) -> int:
        if projected_dps <= 0:
            return 0
        shares = (target_monthly_income * 12) / projected_dps
        if not math.isfinite(shares):
            return 0
        return math.ceil(shares)

    @staticmethod
    def dividend_from_earnings(net_income: float, payout_ratio: float, shares: float) -> float:
        """Dividendo por acao implicito no lucro reportado: Lucro x Payout / Acoes."""
        if shares <= 0:
            return 0.0
        return (net_income * (payout_ratio / 100)) / shares

    @classmethod
    def simulate(cls, price: float, quantity: float, projected_yield: float,
                 target_monthly_income: float) -> DividendSimulation:
        dps = cls.projected_dividend_per_share(price, projected_yield)
        annual_income = quantity * dps
        shares = cls.required_shares(target_monthly_income, dps)

        return DividendSimulation(
            projected_dps=dps,
            total_investment=quantity * price,
            annual_income=annual_income,
            monthly_income=annual_income / 12,
            required_shares=shares,
            required_capital=shares * price,
        )
