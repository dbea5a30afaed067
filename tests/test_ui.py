"""
Unit tests for the pt-BR formatters of the design system.
"""
from unittest.mock import patch

from core.auditor import PortfolioDecision
from core.models import AssetClass
from ui import (
    alert_box,
    asset_class_badge,
    badge,
    decision_badge,
    fmt_compact,
    fmt_money,
    fmt_number,
    fmt_pct,
    icon,
    metric_card,
    page_header,
    trend_class,
)


class TestFormatters:
    def test_number(self):
        assert fmt_number(1234567.891) == "1.234.567,89"
        assert fmt_number(2400, 0) == "2.400"
        assert fmt_number(-1234.5) == "-1.234,50"

    def test_money(self):
        assert fmt_money(10.5) == "R$ 10,50"
        assert fmt_money(1500, "US$") == "US$ 1.500,00"
        assert fmt_money(-10.5) == "-R$ 10,50"

    def test_percent(self):
        assert fmt_pct(8.5) == "8,50%"
        assert fmt_pct(5, signed=True) == "+5,00%"
        assert fmt_pct(-3.2, signed=True) == "-3,20%"
        assert fmt_pct(None) == "-"

    def test_compact(self):
        assert fmt_compact(35e9) == "35,00 bi"
        assert fmt_compact(12_500_000) == "12,50 mi"
        assert fmt_compact(950) == "950,00"

    def test_trend_class(self):
        assert trend_class(1) == "vip-up"
        assert trend_class(-1) == "vip-down"
        assert trend_class(0) == "vip-flat"


class TestComponents:
    def test_badges(self):
        assert badge("ok", "green") == '<span class="vip-pill pill-green">ok</span>'
        assert "COMPRA" in decision_badge(PortfolioDecision.BUY)
        assert "pill-green" in decision_badge(PortfolioDecision.BUY)
        assert ">FII<" in asset_class_badge(AssetClass.REAL_ESTATE_FUND)

    def test_icon_size(self):
        svg = icon("search", size=14)
        assert 'width="14"' in svg and 'height="14"' in svg

    def test_unknown_icon_falls_back(self):
        assert icon("nao-existe") == icon("info")


class TestProviderTextIsEscaped:
    """Textos vindos do provedor nao podem quebrar o HTML dos cards."""

    def rendered(self, render, *args, **kwargs):
        with patch("ui.st") as st_mock:
            render(*args, **kwargs)
        return st_mock.markdown.call_args.args[0]

    def test_tooltip_with_quotes(self):
        html = self.rendered(metric_card, "Basileia", "15,2%", tooltip='Indice "regulatorio" <min 11%>')
        assert 'title="Indice &quot;regulatorio&quot; &lt;min 11%&gt;"' in html

    def test_metric_label_and_value(self):
        html = self.rendered(metric_card, "<b>P/L</b>", "5 & 6")
        assert "&lt;b&gt;P/L&lt;/b&gt;" in html
        assert "5 &amp; 6" in html

    def test_page_header(self):
        html = self.rendered(page_header, "PETR4", "Petrobras <script>", AssetClass.STOCK, "Óleo & Gás")
        assert "<script>" not in html
        assert "Óleo &amp; Gás" in html

    def test_alert_message(self):
        html = self.rendered(alert_box, "Risco: dívida > EBITDA", "warning")
        assert "dívida &gt; EBITDA" in html
