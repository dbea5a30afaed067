import pandas as pd
import streamlit as st
from dotenv import load_dotenv

# --- IMPORTACAO DO CORE ---
from core.auditor import DECISION_LABELS, PortfolioAuditor, PortfolioDecision
from core.calculator import DividendSimulator, ValuationEngine, ValuationParams
from core.config import DEFAULT_PROVIDER, LLM_PROVIDERS, get_provider_config, resolve_api_key
from core.extractor import ExtractionError, VipExtractor
from core.market_data import MarketDataService
from core.market_map import POPULAR_TICKERS
from core.models import AssetClass, PortfolioItem
from core.portfolio import ALLOCATION_VIEWS, Portfolio, PortfolioError
from core.router import is_analyzable
from core.session import TABS, AppState

# --- IMPORTACAO DO DESIGN SYSTEM ---
from ui import (
    alert_box,
    asset_class_badge,
    decision_badge,
    fmt_compact,
    fmt_money,
    fmt_number,
    fmt_pct,
    inject_css,
    metric_card,
    page_header,
    section_header,
    ticker_strip,
    trend_class,
)

# --- CONFIGURAÇÃO INICIAL ---
load_dotenv()

st.set_page_config(
    page_title="VIP Research",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Estado explicito da sessao (carteira, analise atual, premissas)
if "app_state" not in st.session_state:
    st.session_state.app_state = AppState()

TAB_LABELS = {
    "analyze": "Análise",
    "portfolio": "Carteira",
    "dashboard": "Dash",
    "portfolio-analysis": "Decisão",
    "dividend-projection": "Projeção",
}

ALLOCATION_LABELS = {"type": "Por classe", "asset": "Por ativo", "exposure": "Nacional x Exterior"}


# --- FUNÇÕES UTILITÁRIAS ---

def get_state() -> AppState:
    return st.session_state.app_state


def get_extractor(provider_key: str) -> VipExtractor:
    """Recupera a chave (st.secrets ou .env) e instancia o cliente do provedor."""
    config = get_provider_config(provider_key)
    if config is None:
        st.error(f"Provedor {provider_key} não configurado.")
        st.stop()
    env_var = config["api_key_env"]

    api_key = resolve_api_key(env_var, st.secrets)
    if not api_key:
        st.error(f"Chave {env_var} não encontrada. Configure no .env (local) ou em Secrets (Streamlit Cloud).")
        st.stop()

    return VipExtractor.from_provider(provider_key, api_key)


@st.cache_data(ttl=3600, show_spinner=False)
def load_price_history(ticker: str) -> pd.DataFrame:
    return MarketDataService.get_price_history(ticker)


def portfolio_frame(portfolio: Portfolio) -> pd.DataFrame:
    rows = []
    for item in portfolio:
        rows.append({
            "Ticker": item.ticker,
            "Classe": item.category.value,
            "Setor": item.sector or "-",
            "Qtd": item.quantity,
            "Preço Médio": item.average_price,
            "Preço Atual": item.current_price,
            "Saldo": item.market_value,
            "Resultado %": ((item.current_price / item.average_price) - 1) * 100 if item.average_price else 0.0,
            "DY %": item.dividend_yield,
        })
    return pd.DataFrame(rows)


# =============================================================================
# ABA 1: ANALISE DE TICKER
# =============================================================================

def run_analysis(state: AppState, extractor: VipExtractor, ticker: str):
    token = state.requests.begin("analyze")
    with st.spinner(f"Buscando dados de {ticker}..."):
        try:
            result = extractor.analyze_ticker(ticker)
        except ExtractionError as e:
            state.fail("analyze", token, str(e))
            return

    if state.accept_analysis(token, result):
        # Projecao pertence ao ativo anterior
        state.projection = None


def render_analysis_tab(state: AppState, extractor: VipExtractor):
    section_header("Buscar ativo", "search")

    col_input, col_button = st.columns([4, 1])
    with col_input:
        ticker_input = st.text_input("Ticker", placeholder="Ex: PETR4, HGLG11, AAPL", label_visibility="collapsed")
    with col_button:
        clicked = st.button("Analisar", type="primary", use_container_width=True)

    st.caption("Sugestões:")
    suggestions = POPULAR_TICKERS["BR_STOCK"] + POPULAR_TICKERS["FII"]
    cols = st.columns(len(suggestions))
    target = None
    for i, sug in enumerate(suggestions):
        if cols[i].button(sug, key=f"sug_{sug}", use_container_width=True):
            target = sug

    if clicked and ticker_input.strip():
        target = ticker_input.strip().upper()

    if target:
        if not is_analyzable(target):
            alert_box(f"{target} é um índice/indicador e não possui fundamentos para análise.", "warning")
        else:
            run_analysis(state, extractor, target)

    if state.error_for("analyze"):
        alert_box(state.error_for("analyze"), "error")

    if state.analysis is None:
        alert_box("Digite um ticker para ver fundamentos, valuation e simulação de dividendos.", "info")
        return

    render_analysis(state)


def render_analysis(state: AppState):
    data = state.analysis.data
    sym = data.currency_symbol

    page_header(data.ticker, data.name, data.asset_class, data.sector)
    if data.description:
        st.caption(data.description)

    # --- FUNDAMENTOS ---
    if data.is_real_estate_fund:
        cards = [
            ("Preço", fmt_money(data.current_price, sym), "dollar", None),
            ("Dividend Yield", fmt_pct(data.dividend_yield), "calendar", "Rendimentos dos últimos 12 meses sobre o preço."),
            ("P/VP", fmt_number(data.price_to_book), "target", "Preço sobre valor patrimonial da cota."),
            ("Proventos 12m", fmt_money(data.last_dividend, sym), "wallet", None),
        ]
    else:
        cards = [
            ("Preço", fmt_money(data.current_price, sym), "dollar", None),
            ("Dividend Yield", fmt_pct(data.dividend_yield), "calendar", "Proventos dos últimos 12 meses sobre o preço."),
            ("P/L", fmt_number(data.price_to_earnings), "bar_chart", "Preço sobre lucro por ação."),
            ("P/VP", fmt_number(data.price_to_book), "target", "Preço sobre valor patrimonial por ação."),
            ("ROE", fmt_pct(data.return_on_equity), "trending_up", "Retorno sobre o patrimônio líquido."),
            ("Margem Líquida", fmt_pct(data.net_margin), "pie_chart", None),
        ]
    cols = st.columns(len(cards))
    for col, (label, value, icon_name, tooltip) in zip(cols, cards):
        with col:
            metric_card(label, value, icon_name=icon_name, tooltip=tooltip)

    if data.sector_metrics:
        section_header(f"Indicadores do setor: {data.sector}", "building")
        cols = st.columns(min(len(data.sector_metrics), 3))
        for i, metric in enumerate(data.sector_metrics):
            with cols[i % len(cols)]:
                value = f"{metric.value} {metric.unit}" if metric.unit and metric.unit not in metric.value else metric.value
                metric_card(metric.label, value, icon_name="info", tooltip=metric.tooltip)

    # --- HISTORICOS ---
    col_div, col_price = st.columns(2)
    with col_div:
        section_header("Proventos (12 meses)", "calendar")
        if data.dividend_history:
            history = pd.DataFrame(
                [{"Mês": entry.month, "Valor": entry.amount} for entry in data.dividend_history]
            ).set_index("Mês")
            st.bar_chart(history)
        else:
            st.caption("Sem proventos nos últimos 12 meses.")
    with col_price:
        section_header("Cotação (1 ano)", "trending_up")
        prices = load_price_history(data.ticker)
        if prices.empty:
            st.caption("Histórico de preços indisponível.")
        else:
            st.line_chart(prices["Close"])

    # --- VALUATION ---
    if data.is_real_estate_fund:
        alert_box("Graham, Gordon e DCF não se aplicam a FIIs. Use o simulador de renda abaixo.", "info")
    else:
        render_valuation(state)

    render_simulator(state)

    if st.button(f"Adicionar {data.ticker} à carteira"):
        state.portfolio.add_from_analysis(data)
        st.success(f"{data.ticker} adicionado com 1 unidade ao preço atual.")

    if state.analysis.grounding_urls:
        with st.expander("Fontes consultadas"):
            for url in state.analysis.grounding_urls:
                st.markdown(f"- [{url}]({url})")


def render_valuation(state: AppState):
    data = state.analysis.data
    sym = data.currency_symbol
    params = state.valuation_params or ValuationParams.for_asset(data)

    section_header("Valuation", "target")

    with st.expander("Premissas dos modelos", expanded=False):
        c1, c2, c3 = st.columns(3)
        key = data.ticker
        with c1:
            graham_constant = st.slider("Constante de Graham", 10.0, 30.0, params.graham_constant, 0.5, key=f"gc_{key}")
            bazin_yield = st.slider("Yield Bazin (%)", 3.0, 12.0, params.bazin_target_yield, 0.5, key=f"by_{key}")
            margin = st.slider("Margem de segurança (%)", 0.0, 50.0, params.margin_of_safety, 5.0, key=f"ms_{key}")
        with c2:
            gordon_growth = st.slider("Crescimento Gordon (%)", 0.0, 8.0, params.gordon_growth, 0.5, key=f"gg_{key}")
            gordon_return = st.slider("Retorno exigido Gordon (%)", 5.0, 20.0, params.gordon_required_return, 0.5, key=f"gr_{key}")
        with c3:
            dcf_growth = st.slider("Crescimento DCF (%)", 0.0, 20.0, params.dcf_growth, 0.5, key=f"dg_{key}")
            dcf_discount = st.slider("Desconto DCF (%)", 5.0, 20.0, params.dcf_discount, 0.5, key=f"dd_{key}")
            dcf_years = st.slider("Horizonte DCF (anos)", 5, 15, params.dcf_years, 1, key=f"dy_{key}")

    params = ValuationParams(
        graham_constant=graham_constant,
        bazin_target_yield=bazin_yield,
        gordon_growth=gordon_growth,
        gordon_required_return=gordon_return,
        dcf_growth=dcf_growth,
        dcf_discount=dcf_discount,
        dcf_years=dcf_years,
        margin_of_safety=margin,
    )
    state.valuation_params = params
    report = ValuationEngine().evaluate(data, params)

    cols = st.columns(4)
    for col, (name, value) in zip(cols, report.models().items()):
        with col:
            metric_card(name, fmt_money(value, sym) if value > 0 else "N/A", icon_name="target",
                        hint=None if value > 0 else "Não calculável com estes dados")

    if not report.is_computable:
        alert_box("Nenhum modelo conseguiu calcular um valor justo para este ativo.", "warning")
        return

    cols = st.columns(3)
    with cols[0]:
        metric_card("Valor justo médio", fmt_money(report.average, sym), icon_name="bar_chart")
    with cols[1]:
        metric_card("Preço teto", fmt_money(report.buy_price, sym), icon_name="wallet",
                    hint=f"Com margem de {fmt_pct(params.margin_of_safety, 0)}")
    with cols[2]:
        metric_card("Potencial", fmt_pct(report.upside, signed=True), icon_name="trending_up",
                    value_class=trend_class(report.upside))

    chart = pd.DataFrame(
        {"Valor": [v for v in report.models().values()] + [report.current_price]},
        index=list(report.models().keys()) + ["Preço atual"],
    )
    st.bar_chart(chart)

    if report.is_discounted:
        alert_box(f"{data.ticker} negocia abaixo do preço teto.", "success")


def render_simulator(state: AppState):
    data = state.analysis.data
    sym = data.currency_symbol

    section_header("Simulador de renda", "wallet")
    c1, c2, c3 = st.columns(3)
    with c1:
        quantity = st.number_input("Quantidade", min_value=0, value=100, step=10, key=f"sim_qty_{data.ticker}")
    with c2:
        projected_yield = st.number_input("Yield projetado (%)", min_value=0.0,
                                          value=DividendSimulator.starting_yield(data),
                                          step=0.5, key=f"sim_yield_{data.ticker}")
    with c3:
        target_income = st.number_input(f"Renda mensal alvo ({sym})", min_value=0.0, value=1000.0, step=100.0,
                                        key=f"sim_target_{data.ticker}")

    sim = DividendSimulator.simulate(data.current_price, quantity, projected_yield, target_income)

    cols = st.columns(4)
    with cols[0]:
        metric_card("Investimento", fmt_money(sim.total_investment, sym), icon_name="dollar")
    with cols[1]:
        metric_card("Renda mensal", fmt_money(sim.monthly_income, sym), icon_name="calendar",
                    hint=f"{fmt_money(sim.annual_income, sym)} por ano")
    with cols[2]:
        metric_card("Número mágico", fmt_number(sim.required_shares, 0), icon_name="target",
                    tooltip="Cotas necessárias para atingir a renda mensal alvo.")
    with cols[3]:
        metric_card("Capital necessário", fmt_money(sim.required_capital, sym), icon_name="wallet")


# =============================================================================
# ABA 2: CARTEIRA
# =============================================================================

def render_portfolio_tab(state: AppState, extractor: VipExtractor):
    portfolio = state.portfolio

    section_header("Importar carteira", "wallet")
    st.caption("Simulação: nenhuma corretora é consultada e o CPF não sai da sua sessão.")
    col_cpf, col_btn = st.columns([3, 1])
    with col_cpf:
        cpf = st.text_input("CPF", placeholder="000.000.000-00", type="password", label_visibility="collapsed")
    with col_btn:
        if st.button("Importar", type="primary", use_container_width=True):
            token = state.requests.begin("portfolio")
            with st.spinner("Sincronizando posições..."):
                try:
                    items = extractor.import_portfolio(cpf)
                except ExtractionError as e:
                    state.fail("portfolio", token, str(e))
                    items = None
            if items is not None and state.accept_portfolio(token, items):
                st.success(f"{len(items)} ativos importados.")

    if state.error_for("portfolio"):
        alert_box(state.error_for("portfolio"), "error")

    with st.expander("Adicionar ativo manualmente"):
        with st.form("add_item", clear_on_submit=True):
            c1, c2, c3 = st.columns(3)
            ticker = c1.text_input("Ticker")
            category = c2.selectbox("Classe", [c.value for c in AssetClass])
            sector = c3.text_input("Setor")
            c4, c5, c6, c7 = st.columns(4)
            quantity = c4.number_input("Quantidade", min_value=0.0, step=1.0)
            average_price = c5.number_input("Preço médio", min_value=0.0, step=0.01)
            current_price = c6.number_input("Preço atual", min_value=0.0, step=0.01)
            dividend_yield = c7.number_input("DY (%)", min_value=0.0, step=0.1)
            if st.form_submit_button("Adicionar") and ticker.strip():
                portfolio.add(PortfolioItem(
                    ticker=ticker, category=category, sector=sector, quantity=quantity,
                    average_price=average_price, current_price=current_price, dividend_yield=dividend_yield,
                ))
                st.rerun()

    if not len(portfolio):
        alert_box("Carteira vazia. Importe uma carteira simulada ou adicione ativos pela aba Análise.", "info")
        return

    section_header("Posições", "bar_chart")
    st.dataframe(portfolio_frame(portfolio), hide_index=True, use_container_width=True)

    section_header("Editar posição", "target")
    tickers = [item.ticker for item in portfolio]
    selected = st.selectbox("Ativo", tickers)
    item = portfolio.find(selected)
    c1, c2, c3, c4 = st.columns([2, 2, 1, 1])
    new_quantity = c1.number_input("Quantidade", value=float(item.quantity), key=f"edit_qty_{selected}")
    new_average = c2.number_input("Preço médio", value=float(item.average_price), key=f"edit_avg_{selected}")
    if c3.button("Salvar", use_container_width=True):
        try:
            portfolio.edit(selected, new_quantity, new_average)
            st.rerun()
        except PortfolioError as e:
            alert_box(str(e), "error")
    if c4.button("Remover", use_container_width=True):
        portfolio.remove(selected)
        st.rerun()


# =============================================================================
# ABA 3: DASHBOARD
# =============================================================================

def render_dashboard_tab(state: AppState):
    portfolio = state.portfolio
    if not len(portfolio):
        alert_box("Adicione ativos à carteira para ver o dashboard.", "info")
        return

    cols = st.columns(4)
    with cols[0]:
        metric_card("Patrimônio", fmt_money(portfolio.total_balance), icon_name="wallet")
    with cols[1]:
        metric_card("Custo", fmt_money(portfolio.total_cost), icon_name="dollar")
    with cols[2]:
        metric_card("Resultado", fmt_money(portfolio.total_profit), icon_name="trending_up",
                    hint=fmt_pct(portfolio.profit_percent, signed=True),
                    value_class=trend_class(portfolio.total_profit))
    with cols[3]:
        metric_card("Proventos estimados/ano", fmt_money(portfolio.annual_dividends_estimate), icon_name="calendar",
                    hint=f"{fmt_money(portfolio.annual_dividends_estimate / 12)} por mês")

    section_header("Alocação", "pie_chart")
    view = st.radio("Visão", ALLOCATION_VIEWS, format_func=ALLOCATION_LABELS.get, horizontal=True)
    allocation = portfolio.allocation(view)
    total = portfolio.total_balance
    frame = pd.DataFrame(
        [{"Grupo": k, "Valor": v, "%": (v / total) * 100 if total else 0.0} for k, v in allocation.items()]
    ).set_index("Grupo")
    c1, c2 = st.columns([2, 1])
    with c1:
        st.bar_chart(frame["Valor"])
    with c2:
        st.dataframe(frame, use_container_width=True)

    section_header("Por classe", "building")
    cols = st.columns(len(AssetClass))
    for col, asset_class in zip(cols, AssetClass):
        items = portfolio.by_category(asset_class)
        with col:
            st.markdown(asset_class_badge(asset_class), unsafe_allow_html=True)
            st.metric("Ativos", len(items))
            st.caption(fmt_money(sum(i.market_value for i in items)))


# =============================================================================
# ABA 4: DECISAO
# =============================================================================

def render_decision_tab(state: AppState):
    if not len(state.portfolio):
        alert_box("Adicione ativos à carteira para ver a análise de decisão.", "info")
        return

    verdicts = PortfolioAuditor().audit(state.portfolio.items)

    cols = st.columns(len(PortfolioDecision))
    for col, decision in zip(cols, PortfolioDecision):
        count = sum(1 for v in verdicts if v.decision == decision)
        with col:
            st.markdown(decision_badge(decision), unsafe_allow_html=True)
            st.metric(DECISION_LABELS[decision], count, label_visibility="collapsed")

    frame = pd.DataFrame([{
        "Ticker": v.ticker,
        "Classe": v.category.value,
        "Preço": v.current_price,
        "Graham": v.graham or None,
        "Bazin": v.bazin or None,
        "Alvo": v.target_value or None,
        "Margem %": v.safety_margin,
        "Decisão": v.label,
    } for v in verdicts])
    st.dataframe(frame, hide_index=True, use_container_width=True)

    st.caption(
        "Ações: Graham pelos múltiplos (P/L e P/VP), ou Bazin se Graham não for calculável. "
        "FIIs, ETFs e BDRs: Bazin a 6%. Margem acima de 15% = COMPRA; abaixo de -10% = CARO."
    )


# =============================================================================
# ABA 5: PROJECAO DE DIVIDENDOS
# =============================================================================

def render_projection_tab(state: AppState, extractor: VipExtractor):
    default_ticker = state.analysis.data.ticker if state.analysis else ""

    section_header("Projeção pelo último relatório", "calendar")
    col_input, col_button = st.columns([4, 1])
    with col_input:
        ticker = st.text_input("Ticker do relatório", value=default_ticker, label_visibility="collapsed")
    with col_button:
        clicked = st.button("Ler relatório", type="primary", use_container_width=True)

    if clicked and ticker.strip():
        token = state.requests.begin("projection")
        with st.spinner(f"Lendo relatórios de {ticker.upper()}..."):
            try:
                result = extractor.get_dividend_projection(ticker)
            except ExtractionError as e:
                state.fail("projection", token, str(e))
                result = None
        if result is not None:
            state.accept_projection(token, result)

    if state.error_for("projection"):
        alert_box(state.error_for("projection"), "error")

    projection = state.projection
    if projection is None:
        alert_box("A IA lê o relatório mais recente e projeta o próximo dividendo a partir do lucro e do payout.", "info")
        return

    st.subheader(projection.ticker, anchor=False)
    if projection.latest_report_date:
        st.caption(f"Relatório base: {projection.latest_report_date}")

    cols = st.columns(4)
    with cols[0]:
        metric_card("Lucro reportado", fmt_compact(projection.reported_net_income), icon_name="dollar")
    with cols[1]:
        metric_card("Receita", fmt_compact(projection.reported_revenue), icon_name="bar_chart")
    with cols[2]:
        metric_card("Ações/Cotas", fmt_compact(projection.shares_outstanding), icon_name="pie_chart")
    with cols[3]:
        metric_card("Dividendo projetado (IA)", fmt_money(projection.projected_dividend_per_share), icon_name="calendar")

    if projection.report_highlights:
        with st.expander("Destaques do relatório", expanded=True):
            st.markdown(projection.report_highlights)

    # --- E SE? ---
    section_header("E se?", "target")
    c1, c2 = st.columns(2)
    with c1:
        net_income = st.number_input("Lucro líquido", value=float(projection.reported_net_income), step=1e8,
                                     format="%.0f", key=f"whatif_income_{projection.ticker}")
    with c2:
        payout = st.slider("Payout (%)", 0.0, 100.0, float(min(max(projection.payout_ratio, 0.0), 100.0)), 1.0,
                           key=f"whatif_payout_{projection.ticker}")

    dps = DividendSimulator.dividend_from_earnings(net_income, payout, projection.shares_outstanding)
    cols = st.columns(2)
    with cols[0]:
        metric_card("Dividendo por ação (cenário)", fmt_money(dps), icon_name="wallet",
                    hint="Lucro x Payout / Ações")
    if state.analysis and state.analysis.data.ticker == projection.ticker and state.analysis.data.current_price > 0:
        implied_yield = dps / state.analysis.data.current_price * 100
        with cols[1]:
            metric_card("Yield implícito", fmt_pct(implied_yield), icon_name="trending_up",
                        hint=f"Sobre {fmt_money(state.analysis.data.current_price)}")

    if projection.reasoning:
        with st.expander("Racional da projeção"):
            st.markdown(projection.reasoning)
    if projection.risk_factors:
        alert_box(projection.risk_factors, "warning")


# =============================================================================
# MAIN
# =============================================================================

def main():
    inject_css()
    state = get_state()

    # --- SIDEBAR (NAVEGAÇÃO) ---
    with st.sidebar:
        st.header("VIP Research", anchor=False)
        st.caption("Análise fundamentalista com IA")

        state.active_tab = st.radio(
            "Navegação",
            list(TABS),
            index=TABS.index(state.active_tab),
            format_func=TAB_LABELS.get,
        )

        st.markdown("---")

        st.subheader("Configuração da IA")
        providers = list(LLM_PROVIDERS.keys())
        provider = st.selectbox("Motor", providers, index=providers.index(DEFAULT_PROVIDER))
        st.caption(LLM_PROVIDERS[provider]["desc"])

        refresh = st.button("Atualizar cotações", use_container_width=True)

    extractor = get_extractor(provider)

    # --- FAIXA DE COTACOES ---
    if refresh or not state.market_items:
        with st.spinner("Carregando cotações..."):
            state.market_items = extractor.get_market_overview()
    ticker_strip(state.market_items)

    # --- ÁREA PRINCIPAL ---
    if state.active_tab == "analyze":
        render_analysis_tab(state, extractor)
    elif state.active_tab == "portfolio":
        render_portfolio_tab(state, extractor)
    elif state.active_tab == "dashboard":
        render_dashboard_tab(state)
    elif state.active_tab == "portfolio-analysis":
        render_decision_tab(state)
    elif state.active_tab == "dividend-projection":
        render_projection_tab(state, extractor)


if __name__ == "__main__":
    main()
