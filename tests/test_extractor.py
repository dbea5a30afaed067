"""
Unit tests for the provider client. The OpenAI SDK is replaced by mocks.
"""
import json
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from openai import OpenAIError

from core.config import LLM_PROVIDERS
from core.extractor import ExtractionError, ProjectionError, VipExtractor
from core.market_map import FALLBACK_MARKET_ITEMS
from core.models import AssetClass, MarketTickerItem


def make_response(content, urls=None, citations=None):
    annotations = [SimpleNamespace(type="url_citation", url_citation=SimpleNamespace(url=u)) for u in urls or []]
    message = SimpleNamespace(content=content, annotations=annotations or None)
    response = SimpleNamespace(choices=[SimpleNamespace(message=message)])
    if citations is not None:
        response.citations = citations
    return response


def sent_prompt(create_mock, call=0):
    messages = create_mock.call_args_list[call].kwargs["messages"]
    return messages[-1]["content"]


@pytest.fixture
def openai_cls():
    with patch("core.extractor.OpenAI") as mock_openai:
        yield mock_openai


@pytest.fixture
def extractor(openai_cls):
    return VipExtractor(api_key="test-key", model="primary-model", fallback_model="backup-model")


@pytest.fixture
def create(openai_cls):
    return openai_cls.return_value.chat.completions.create


class TestClientSetup:
    def test_default_base_url_is_not_forwarded(self, openai_cls):
        VipExtractor(api_key="k")
        openai_cls.assert_called_once_with(api_key="k")

    def test_from_provider(self, openai_cls):
        extractor = VipExtractor.from_provider("Grok (xAI) - Live Search", "xai-key")
        config = LLM_PROVIDERS["Grok (xAI) - Live Search"]

        openai_cls.assert_called_once_with(api_key="xai-key", base_url=config["base_url"])
        assert extractor.model == config["model"]
        assert extractor.fallback_model == config["fallback_model"]

    def test_request_options_are_sent(self, openai_cls, create):
        create.return_value = make_response("{}")
        extractor = VipExtractor(api_key="k", model="gpt", request_options={"web_search_options": {}})
        extractor.analyze_ticker("PETR4")

        kwargs = create.call_args.kwargs
        assert kwargs["web_search_options"] == {}
        assert kwargs["model"] == "gpt"
        assert kwargs["messages"][0]["role"] == "system"


class TestAnalyzeTicker:
    def test_parses_fenced_json(self, extractor, create):
        payload = {
            "ticker": "HGLG11",
            "name": "CSHG Logistica",
            "asset_class": "FII",
            "current_price": "R$ 162,50",
            "dividend_yield": "8,9",
            "dividend_history": [{"month": "Jan/24", "value": 1.1, "type": "Rendimento"}],
        }
        create.return_value = make_response(f"Aqui esta:\n```json\n{json.dumps(payload)}\n```")

        result = extractor.analyze_ticker(" hglg11 ")

        assert result.data.ticker == "HGLG11"
        assert result.data.asset_class == AssetClass.REAL_ESTATE_FUND
        assert result.data.current_price == pytest.approx(162.5)
        assert result.data.dividend_history[0].amount == pytest.approx(1.1)
        assert "HGLG11" in sent_prompt(create)

    def test_grounding_urls_are_deduplicated_and_capped(self, extractor, create):
        urls = [f"https://fonte{i}.com" for i in range(4)]
        create.return_value = make_response(
            "{}", urls=urls + [urls[0]], citations=["https://fonte3.com", "https://x.com/post", "https://extra.com"]
        )

        result = extractor.analyze_ticker("PETR4")

        assert result.grounding_urls == urls + ["https://x.com/post"]

    def test_no_grounding(self, extractor, create):
        create.return_value = make_response("{}")
        assert extractor.analyze_ticker("PETR4").grounding_urls == []

    def test_garbage_response_yields_defaults(self, extractor, create):
        create.return_value = make_response("Desculpe, nao encontrei esse ativo.")

        data = extractor.analyze_ticker("AAPL34").data

        assert data.ticker == "AAPL34"
        assert data.name == "Unknown"
        assert data.current_price == 0.0
        assert data.asset_class == AssetClass.DEPOSITARY_RECEIPT

    def test_empty_choices(self, extractor, create):
        create.return_value = SimpleNamespace(choices=[])
        assert extractor.analyze_ticker("VALE3").data.ticker == "VALE3"

    def test_provider_failure(self, extractor, create):
        create.side_effect = OpenAIError("connection reset")

        with pytest.raises(ExtractionError, match="Falha ao obter dados financeiros"):
            extractor.analyze_ticker("PETR4")

    def test_blank_ticker(self, extractor, create):
        with pytest.raises(ExtractionError):
            extractor.analyze_ticker("   ")
        create.assert_not_called()


class TestDividendProjection:
    PAYLOAD = json.dumps({
        "ticker": "PETR4",
        "latest_report_date": "4T25",
        "reported_net_income": "35bi",
        "shares_outstanding": 13000000000,
        "payout_ratio": 45,
        "projected_dividend_per_share": "1,20",
    })

    def test_primary_model(self, extractor, create):
        create.return_value = make_response(self.PAYLOAD)

        result = extractor.get_dividend_projection("petr4", current_year=2026)

        assert create.call_count == 1
        assert create.call_args.kwargs["model"] == "primary-model"
        assert result.reported_net_income == pytest.approx(35e9)
        assert result.projected_dividend_per_share == pytest.approx(1.2)
        assert "2026" in sent_prompt(create)
        assert "2025" in sent_prompt(create)

    def test_falls_back_on_provider_error(self, extractor, create):
        create.side_effect = [OpenAIError("503"), make_response(self.PAYLOAD)]

        result = extractor.get_dividend_projection("PETR4", current_year=2026)

        models = [call.kwargs["model"] for call in create.call_args_list]
        assert models == ["primary-model", "backup-model"]
        assert result.ticker == "PETR4"

    def test_unparseable_primary_answer_uses_fallback(self, extractor, create):
        create.side_effect = [
            make_response("Desculpe, não consegui { quebrado"),
            make_response('{"projected_dividend_per_share": "R$ 2,50"}'),
        ]

        result = extractor.get_dividend_projection("ITSA4")

        assert create.call_count == 2
        assert create.call_args.kwargs["model"] == "backup-model"
        assert result.ticker == "ITSA4"
        assert result.projected_dividend_per_share == pytest.approx(2.5)

    def test_unparseable_fallback_answer_yields_defaults(self, extractor, create):
        create.side_effect = [make_response("sem json"), make_response("ainda sem json")]

        result = extractor.get_dividend_projection("ITSA4")

        assert create.call_count == 2
        assert result.ticker == "ITSA4"
        assert result.reported_net_income == 0.0

    def test_unparseable_answer_without_fallback_yields_defaults(self, openai_cls, create):
        create.return_value = make_response("sem json")
        extractor = VipExtractor(api_key="k", model="only-model")

        result = extractor.get_dividend_projection("ITSA4")

        assert create.call_count == 1
        assert result.reported_net_income == 0.0

    def test_both_models_fail(self, extractor, create):
        create.side_effect = [OpenAIError("503"), OpenAIError("quota")]

        with pytest.raises(ProjectionError) as exc_info:
            extractor.get_dividend_projection("PETR4")

        assert exc_info.value.primary_error.model == "primary-model"
        assert exc_info.value.fallback_error.model == "backup-model"
        assert isinstance(exc_info.value, ExtractionError)

    def test_no_fallback_configured(self, openai_cls, create):
        create.side_effect = OpenAIError("503")
        extractor = VipExtractor(api_key="k", model="only-model")

        with pytest.raises(ProjectionError) as exc_info:
            extractor.get_dividend_projection("PETR4")

        assert create.call_count == 1
        assert exc_info.value.fallback_error is None


class TestMarketOverview:
    def test_items_from_provider(self, extractor, create):
        create.return_value = make_response(
            '[{"ticker": "IBOV", "price": "128.500,00", "change": "0,45"}, {"price": 1}]'
        )

        items = extractor.get_market_overview(["IBOV"])

        assert items == [MarketTickerItem(ticker="IBOV", price=128500, change=0.45)]

    def test_falls_back_to_yahoo(self, extractor, create):
        create.side_effect = OpenAIError("timeout")
        quote = MarketTickerItem(ticker="PETR4", price=41.5, change=1.0)

        with patch("core.extractor.MarketDataService.get_quotes", return_value=[quote]) as get_quotes:
            items = extractor.get_market_overview(["PETR4"])

        get_quotes.assert_called_once_with(["PETR4"])
        assert items == [quote]

    def test_falls_back_to_static_list(self, extractor, create):
        create.return_value = make_response("[]")

        with patch("core.extractor.MarketDataService.get_quotes", return_value=[]):
            items = extractor.get_market_overview()

        assert len(items) == len(FALLBACK_MARKET_ITEMS)
        assert items[0].ticker == FALLBACK_MARKET_ITEMS[0]["ticker"]


class TestImportPortfolio:
    def test_invalid_cpf(self, extractor, create):
        with pytest.raises(ExtractionError, match="CPF"):
            extractor.import_portfolio("123.456")
        create.assert_not_called()

    def test_cpf_with_extra_digits_is_rejected(self, extractor, create):
        with pytest.raises(ExtractionError, match="11 dígitos"):
            extractor.import_portfolio("123.456.789-0912")
        create.assert_not_called()

    def test_imports_valid_items(self, extractor, create):
        create.return_value = make_response(json.dumps([
            {"ticker": "VALE3", "category": "ACAO", "quantity": 100, "average_price": 62, "current_price": 60.8},
            {"ticker": "HGLG11", "category": "FII", "quantity": "50", "average_price": "160,00",
             "current_price": 162.5, "dividend_yield": 8.9},
            {"category": "ETF"},
            "IVVB11",
        ]))

        items = extractor.import_portfolio("123.456.789-09")

        assert [i.ticker for i in items] == ["VALE3", "HGLG11"]
        assert items[1].category == AssetClass.REAL_ESTATE_FUND
        assert items[1].average_price == pytest.approx(160)

    def test_cpf_is_not_sent_to_provider(self, extractor, create):
        create.return_value = make_response("[]")
        extractor.import_portfolio("12345678909")

        for message in create.call_args.kwargs["messages"]:
            assert "12345678909" not in message["content"]

    def test_provider_failure(self, extractor, create):
        create.side_effect = OpenAIError("down")
        with pytest.raises(ExtractionError):
            extractor.import_portfolio("12345678909")
