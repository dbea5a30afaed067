"""
Unit tests for the session portfolio.
"""
import pytest

from core.models import AssetClass, FinancialData, PortfolioItem
from core.portfolio import ALLOCATION_VIEWS, Portfolio, PortfolioError


@pytest.fixture
def portfolio():
    return Portfolio([
        PortfolioItem(ticker="PETR4", category="ACAO", quantity=100, average_price=30, current_price=40,
                      dividend_yield=10),
        PortfolioItem(ticker="HGLG11", category="FII", quantity=10, average_price=150, current_price=160,
                      dividend_yield=8),
        PortfolioItem(ticker="IVVB11", category="ETF", quantity=5, average_price=300, current_price=280),
        PortfolioItem(ticker="AAPL34", category="BDR", quantity=20, average_price=50, current_price=60),
    ])


class TestMutations:
    def test_find_is_case_insensitive(self, portfolio):
        assert portfolio.find("petr4").ticker == "PETR4"
        assert portfolio.find("XXXX3") is None

    def test_add_from_analysis(self):
        data = FinancialData.from_provider(
            {"current_price": 58.1, "sector": "Bancos", "dividend_yield": 9.2, "asset_class": "ACAO"},
            "BBAS3",
        )
        p = Portfolio()
        item = p.add_from_analysis(data)

        assert len(p) == 1
        assert item.quantity == 1
        assert item.average_price == pytest.approx(58.1)
        assert item.current_price == pytest.approx(58.1)
        assert item.category == AssetClass.STOCK
        assert item.sector == "Bancos"

    def test_duplicate_is_added_with_warning(self, portfolio, caplog):
        portfolio.add(PortfolioItem(ticker="PETR4", quantity=1))
        assert len(portfolio) == 5
        assert "ja existe" in caplog.text

    def test_edit(self, portfolio):
        item = portfolio.edit("PETR4", 200, 28.5)
        assert item.quantity == 200
        assert item.average_price == 28.5
        assert portfolio.find("PETR4").quantity == 200

    def test_edit_accepts_numeric_strings(self, portfolio):
        assert portfolio.edit("HGLG11", "12", "149.9").quantity == 12

    @pytest.mark.parametrize("quantity, price", [("abc", 10), (10, None), (float("nan"), 10), (-1, 10)])
    def test_edit_rejects_invalid_numbers(self, portfolio, quantity, price):
        with pytest.raises(PortfolioError):
            portfolio.edit("PETR4", quantity, price)

    def test_edit_unknown_ticker(self, portfolio):
        with pytest.raises(PortfolioError, match="VALE3 não está na carteira"):
            portfolio.edit("VALE3", 10, 60)

    def test_remove(self, portfolio):
        assert portfolio.remove("ivvb11") is True
        assert portfolio.find("IVVB11") is None
        assert portfolio.remove("IVVB11") is False

    def test_replace(self, portfolio):
        portfolio.replace([PortfolioItem(ticker="VALE3", quantity=1)])
        assert [i.ticker for i in portfolio] == ["VALE3"]


class TestAggregates:
    def test_totals(self, portfolio):
        # 4000 + 1600 + 1400 + 1200
        assert portfolio.total_balance == pytest.approx(8200)
        # 3000 + 1500 + 1500 + 1000
        assert portfolio.total_cost == pytest.approx(7000)
        assert portfolio.total_profit == pytest.approx(1200)
        assert portfolio.profit_percent == pytest.approx(1200 / 7000 * 100)

    def test_empty_portfolio(self):
        p = Portfolio()
        assert p.total_balance == 0
        assert p.profit_percent == 0.0
        assert p.allocation("type") == {}

    def test_annual_dividends_skip_unknown_yield(self, portfolio):
        assert portfolio.annual_dividends_estimate == pytest.approx(4000 * 0.10 + 1600 * 0.08)

    def test_by_category(self, portfolio):
        assert [i.ticker for i in portfolio.by_category(AssetClass.REAL_ESTATE_FUND)] == ["HGLG11"]


class TestAllocation:
    def test_by_type(self, portfolio):
        assert portfolio.allocation("type") == pytest.approx(
            {"ACAO": 4000, "FII": 1600, "ETF": 1400, "BDR": 1200}
        )

    def test_by_asset_sums_duplicates(self, portfolio):
        portfolio.add(PortfolioItem(ticker="PETR4", quantity=10, current_price=40))
        assert portfolio.allocation("asset")["PETR4"] == pytest.approx(4400)

    def test_exposure(self, portfolio):
        # BDR e ETF internacional contam como Exterior
        assert portfolio.allocation("exposure") == pytest.approx({"Nacional": 5600, "Exterior": 2600})

    def test_unknown_view(self, portfolio):
        with pytest.raises(ValueError):
            portfolio.allocation("setor")

    def test_every_listed_view_sums_to_balance(self, portfolio):
        for view in ALLOCATION_VIEWS:
            assert sum(portfolio.allocation(view).values()) == pytest.approx(portfolio.total_balance)
