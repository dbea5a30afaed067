"""
Unit tests for the explicit application state and stale-response protection.
"""
from core.calculator import ValuationParams
from core.models import AnalysisResult, DividendProjectionResult, FinancialData, PortfolioItem
from core.session import TABS, AppState, RequestTracker


def make_result(ticker, growth=0):
    data = FinancialData.from_provider({"revenue_growth_3y": growth}, ticker)
    return AnalysisResult(data=data)


class TestRequestTracker:
    def test_tokens_increase_per_channel(self):
        tracker = RequestTracker()
        assert tracker.begin("analyze") == 1
        assert tracker.begin("analyze") == 2
        assert tracker.begin("projection") == 1

    def test_only_latest_token_is_current(self):
        tracker = RequestTracker()
        old = tracker.begin("analyze")
        new = tracker.begin("analyze")
        assert not tracker.is_current("analyze", old)
        assert tracker.is_current("analyze", new)

    def test_unknown_channel(self):
        assert not RequestTracker().is_current("analyze", 1)


class TestAppState:
    def test_defaults(self):
        state = AppState()
        assert state.active_tab == "analyze"
        assert state.active_tab in TABS
        assert len(state.portfolio) == 0
        assert state.analysis is None

    def test_accepts_latest_analysis(self):
        state = AppState(errors={"analyze": "falha anterior"})
        token = state.requests.begin("analyze")

        assert state.accept_analysis(token, make_result("WEGE3", growth=25))
        assert state.analysis.data.ticker == "WEGE3"
        assert state.valuation_params == ValuationParams(dcf_growth=15)
        assert state.error_for("analyze") is None

    def test_discards_stale_analysis(self):
        state = AppState()
        first = state.requests.begin("analyze")
        second = state.requests.begin("analyze")

        assert state.accept_analysis(second, make_result("VALE3"))
        assert not state.accept_analysis(first, make_result("PETR4"))
        assert state.analysis.data.ticker == "VALE3"

    def test_stale_failure_is_ignored(self):
        state = AppState()
        first = state.requests.begin("analyze")
        state.requests.begin("analyze")

        assert not state.fail("analyze", first, "timeout")
        assert state.error_for("analyze") is None

    def test_projection(self):
        state = AppState()
        token = state.requests.begin("projection")
        state.requests.begin("analyze")

        assert state.accept_projection(token, DividendProjectionResult(ticker="ITSA4"))
        assert state.projection.ticker == "ITSA4"

    def test_errors_are_kept_per_channel(self):
        state = AppState()
        token = state.requests.begin("projection")

        assert state.fail("projection", token, "Não foi possível analisar os relatórios.")
        assert state.error_for("projection") == "Não foi possível analisar os relatórios."
        assert state.error_for("analyze") is None
        assert state.error_for("portfolio") is None

    def test_successful_projection_clears_its_error(self):
        state = AppState()
        failed = state.requests.begin("projection")
        state.fail("projection", failed, "timeout")

        token = state.requests.begin("projection")
        assert state.accept_projection(token, DividendProjectionResult(ticker="BBSE3"))
        assert state.error_for("projection") is None

    def test_portfolio_import(self):
        state = AppState()
        stale = state.requests.begin("portfolio")
        token = state.requests.begin("portfolio")

        assert not state.accept_portfolio(stale, [PortfolioItem(ticker="PETR4")])
        assert len(state.portfolio) == 0
        assert state.accept_portfolio(token, [PortfolioItem(ticker="MXRF11"), PortfolioItem(ticker="ITSA4")])
        assert [item.ticker for item in state.portfolio] == ["MXRF11", "ITSA4"]
