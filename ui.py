# -*- coding: utf-8 -*-
"""
VIP Research - Design System
Componentes HTML/CSS injetados no Streamlit e formatadores de numeros no padrao brasileiro.
"""

import html
from typing import Iterable, Optional

import streamlit as st

from core.auditor import DECISION_COLORS, DECISION_LABELS, PortfolioDecision
from core.models import AssetClass, MarketTickerItem

# =============================================================================
# ICONES SVG (Lucide Style)
# =============================================================================

_SVG_OPEN = '<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24" viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="1.75" stroke-linecap="round" stroke-linejoin="round">'

ICONS = {
    "search": _SVG_OPEN + '<circle cx="11" cy="11" r="8"/><line x1="21" y1="21" x2="16.65" y2="16.65"/></svg>',
    "trending_up": _SVG_OPEN + '<polyline points="23 6 13.5 15.5 8.5 10.5 1 18"/><polyline points="17 6 23 6 23 12"/></svg>',
    "trending_down": _SVG_OPEN + '<polyline points="23 18 13.5 8.5 8.5 13.5 1 6"/><polyline points="17 18 23 18 23 12"/></svg>',
    "wallet": _SVG_OPEN + '<path d="M20 12V8H6a2 2 0 0 1 0-4h12v4"/><path d="M4 6v12a2 2 0 0 0 2 2h14v-4"/><path d="M18 12a2 2 0 0 0 0 4h4v-4z"/></svg>',
    "pie_chart": _SVG_OPEN + '<path d="M21.21 15.89A10 10 0 1 1 8 2.83"/><path d="M22 12A10 10 0 0 0 12 2v10z"/></svg>',
    "target": _SVG_OPEN + '<circle cx="12" cy="12" r="10"/><circle cx="12" cy="12" r="6"/><circle cx="12" cy="12" r="2"/></svg>',
    "calendar": _SVG_OPEN + '<rect x="3" y="4" width="18" height="18" rx="2"/><line x1="16" y1="2" x2="16" y2="6"/><line x1="8" y1="2" x2="8" y2="6"/><line x1="3" y1="10" x2="21" y2="10"/></svg>',
    "dollar": _SVG_OPEN + '<line x1="12" y1="1" x2="12" y2="23"/><path d="M17 5H9.5a3.5 3.5 0 0 0 0 7h5a3.5 3.5 0 0 1 0 7H6"/></svg>',
    "bar_chart": _SVG_OPEN + '<line x1="12" y1="20" x2="12" y2="10"/><line x1="18" y1="20" x2="18" y2="4"/><line x1="6" y1="20" x2="6" y2="16"/></svg>',
    "alert": _SVG_OPEN + '<path d="M10.29 3.86L1.82 18a2 2 0 0 0 1.71 3h16.94a2 2 0 0 0 1.71-3L13.71 3.86a2 2 0 0 0-3.42 0z"/><line x1="12" y1="9" x2="12" y2="13"/><line x1="12" y1="17" x2="12.01" y2="17"/></svg>',
    "check": _SVG_OPEN + '<path d="M22 11.08V12a10 10 0 1 1-5.93-9.14"/><polyline points="22 4 12 14.01 9 11.01"/></svg>',
    "info": _SVG_OPEN + '<circle cx="12" cy="12" r="10"/><line x1="12" y1="16" x2="12" y2="12"/><line x1="12" y1="8" x2="12.01" y2="8"/></svg>',
    "building": _SVG_OPEN + '<rect x="4" y="2" width="16" height="20" rx="2"/><path d="M9 22v-4h6v4"/><path d="M8 6h.01M16 6h.01M12 6h.01M12 10h.01M12 14h.01M16 10h.01M16 14h.01M8 10h.01M8 14h.01"/></svg>',
    "globe": _SVG_OPEN + '<circle cx="12" cy="12" r="10"/><line x1="2" y1="12" x2="22" y2="12"/><path d="M12 2a15.3 15.3 0 0 1 4 10 15.3 15.3 0 0 1-4 10 15.3 15.3 0 0 1-4-10 15.3 15.3 0 0 1 4-10z"/></svg>',
}

# Cor da pill por classe de ativo
ASSET_CLASS_COLORS = {
    AssetClass.STOCK: "blue",
    AssetClass.REAL_ESTATE_FUND: "purple",
    AssetClass.EXCHANGE_TRADED_FUND: "yellow",
    AssetClass.DEPOSITARY_RECEIPT: "green",
}


# =============================================================================
# CSS GLOBAL
# =============================================================================

GLOBAL_CSS = """<style>
@import url('https://fonts.googleapis.com/css2?family=Manrope:wght@400;500;600;700;800&display=swap');

.stApp { font-family: 'Manrope', -apple-system, sans-serif; }
.block-container { padding-top: 1.5rem !important; }
#MainMenu {visibility: hidden;}
footer {visibility: hidden;}

.vip-card {
    background: #111827;
    border: 1px solid #1f2937;
    border-radius: 14px;
    padding: 1rem 1.25rem;
    margin-bottom: 0.75rem;
}
.vip-card-label {
    display: flex;
    align-items: center;
    gap: 0.4rem;
    font-size: 0.72rem;
    font-weight: 700;
    color: #9ca3af;
    text-transform: uppercase;
    letter-spacing: 0.08em;
}
.vip-card-value {
    font-size: 1.6rem;
    font-weight: 800;
    color: #f9fafb;
    margin-top: 0.35rem;
}
.vip-card-hint { font-size: 0.75rem; color: #6b7280; margin-top: 0.25rem; }
.vip-help { cursor: help; border-bottom: 1px dotted #6b7280; }

.vip-up { color: #10b981; }
.vip-down { color: #f43f5e; }
.vip-flat { color: #9ca3af; }

.vip-pill {
    display: inline-block;
    padding: 0.2rem 0.7rem;
    border-radius: 999px;
    font-size: 0.7rem;
    font-weight: 700;
    letter-spacing: 0.04em;
}
.pill-green { background: rgba(16, 185, 129, 0.15); color: #10b981; }
.pill-red { background: rgba(244, 63, 94, 0.15); color: #f43f5e; }
.pill-yellow { background: rgba(234, 179, 8, 0.15); color: #eab308; }
.pill-blue { background: rgba(56, 189, 248, 0.15); color: #38bdf8; }
.pill-purple { background: rgba(167, 139, 250, 0.15); color: #a78bfa; }

.vip-section {
    display: flex;
    align-items: center;
    gap: 0.6rem;
    margin: 1.75rem 0 0.75rem 0;
    font-size: 1.05rem;
    font-weight: 700;
    color: #e5e7eb;
}
.vip-section svg { color: #38bdf8; }

.vip-alert {
    display: flex;
    gap: 0.6rem;
    padding: 0.8rem 1rem;
    border-radius: 10px;
    font-size: 0.85rem;
    margin: 0.5rem 0;
}
.vip-alert-info { background: rgba(56, 189, 248, 0.08); color: #7dd3fc; }
.vip-alert-warning { background: rgba(234, 179, 8, 0.08); color: #fde047; }
.vip-alert-error { background: rgba(244, 63, 94, 0.08); color: #fda4af; }
.vip-alert-success { background: rgba(16, 185, 129, 0.08); color: #6ee7b7; }

.vip-strip {
    display: flex;
    gap: 1.5rem;
    overflow-x: auto;
    white-space: nowrap;
    padding: 0.5rem 0.25rem;
    border-bottom: 1px solid #1f2937;
    margin-bottom: 1rem;
    font-size: 0.8rem;
}
.vip-strip-ticker { font-weight: 800; color: #e5e7eb; margin-right: 0.35rem; }

.vip-header h1 { margin: 0; font-size: 1.9rem; font-weight: 800; color: #f9fafb; }
.vip-header-sub { color: #9ca3af; font-size: 0.9rem; margin-top: 0.3rem; }
</style>"""


# =============================================================================
# FORMATADORES (padrao pt-BR)
# =============================================================================

def fmt_number(value: float, decimals: int = 2) -> str:
    """1234567.891 -> '1.234.567,89'"""
    text = f"{value:,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def fmt_money(value: float, symbol: str = "R$") -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol} {fmt_number(abs(value))}"


def fmt_pct(value: Optional[float], decimals: int = 2, signed: bool = False) -> str:
    if value is None:
        return "-"
    prefix = "+" if signed and value > 0 else ""
    return f"{prefix}{fmt_number(value, decimals)}%"


def fmt_compact(value: float) -> str:
    """Valores grandes abreviados: 35000000000 -> '35,00 bi'."""
    magnitude = abs(value)
    if magnitude >= 1_000_000_000:
        return f"{fmt_number(value / 1_000_000_000)} bi"
    if magnitude >= 1_000_000:
        return f"{fmt_number(value / 1_000_000)} mi"
    return fmt_number(value)


def trend_class(value: float) -> str:
    if value > 0:
        return "vip-up"
    if value < 0:
        return "vip-down"
    return "vip-flat"


# =============================================================================
# COMPONENTES UI
# =============================================================================

def inject_css():
    st.markdown(GLOBAL_CSS, unsafe_allow_html=True)


def icon(name: str, size: int = 24, color: str = "currentColor") -> str:
    """Retorna um icone SVG como string HTML."""
    svg = ICONS.get(name, ICONS["info"])
    svg = svg.replace('width="24"', f'width="{size}"').replace('height="24"', f'height="{size}"')
    return svg.replace('stroke="currentColor"', f'stroke="{color}"')


def badge(text: str, variant: str = "blue") -> str:
    """Pill colorida. variant: green, red, yellow, blue, purple"""
    return f'<span class="vip-pill pill-{variant}">{text}</span>'


def asset_class_badge(asset_class: AssetClass) -> str:
    return badge(asset_class.value, ASSET_CLASS_COLORS.get(asset_class, "blue"))


def decision_badge(decision: PortfolioDecision) -> str:
    return badge(DECISION_LABELS[decision], DECISION_COLORS[decision])


def metric_card(label: str, value: str, hint: Optional[str] = None, icon_name: str = "bar_chart",
                tooltip: Optional[str] = None, value_class: str = ""):
    """
    Card de metrica.

    Args:
        label: Titulo curto (ex: "P/L")
        value: Valor ja formatado
        hint: Linha auxiliar abaixo do valor
        tooltip: Explicacao exibida ao passar o mouse no titulo
        value_class: Classe extra para o valor (vip-up / vip-down)
    """
    # Rotulos, valores e tooltips podem vir do provedor
    title_attr = f'title="{html.escape(tooltip)}"' if tooltip else ""
    help_class = "vip-help" if tooltip else ""
    hint_html = f'<div class="vip-card-hint">{html.escape(hint)}</div>' if hint else ""

    # HTML sem indentacao para o Markdown nao virar code block
    card = f"""<div class="vip-card">
<div class="vip-card-label">{icon(icon_name, size=14)}<span class="{help_class}" {title_attr}>{html.escape(label)}</span></div>
<div class="vip-card-value {value_class}">{html.escape(value)}</div>
{hint_html}
</div>"""
    st.markdown(card, unsafe_allow_html=True)


def section_header(text: str, icon_name: str = "bar_chart"):
    st.markdown(f'<div class="vip-section">{icon(icon_name, size=20)}<span>{text}</span></div>',
                unsafe_allow_html=True)


def alert_box(message: str, variant: str = "info"):
    """variant: info, warning, error, success"""
    icon_map = {"info": "info", "warning": "alert", "error": "alert", "success": "check"}
    box = f"""<div class="vip-alert vip-alert-{variant}">
{icon(icon_map.get(variant, "info"), size=18)}<span>{html.escape(message)}</span>
</div>"""
    st.markdown(box, unsafe_allow_html=True)


def page_header(ticker: str, name: str, asset_class: AssetClass, sector: str):
    header = f"""<div class="vip-header">
<h1>{html.escape(ticker)} <span style="color:#6b7280;font-weight:500;font-size:1.2rem;">{html.escape(name)}</span></h1>
<div class="vip-header-sub">{asset_class_badge(asset_class)} &nbsp; {html.escape(sector)}</div>
</div>"""
    st.markdown(header, unsafe_allow_html=True)


def ticker_strip(items: Iterable[MarketTickerItem]):
    """Faixa horizontal de cotacoes no topo da pagina."""
    cells = []
    for item in items:
        arrow = "&#9650;" if item.change > 0 else "&#9660;" if item.change < 0 else "&#9679;"
        cells.append(
            f'<span><span class="vip-strip-ticker">{html.escape(item.ticker)}</span>{fmt_number(item.price)} '
            f'<span class="{trend_class(item.change)}">{arrow} {fmt_pct(item.change, signed=True)}</span></span>'
        )
    if cells:
        st.markdown(f'<div class="vip-strip">{"".join(cells)}</div>', unsafe_allow_html=True)
