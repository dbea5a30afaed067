"""
Modulo Central de Engenharia de Prompts.
Cada prompt define o schema JSON esperado; os nomes de campos batem com core/models.py.
"""

# ==============================================================================
# 1. SYSTEM PROMPT (comum a todos os agentes)
# ==============================================================================
SYSTEM_PROMPT = """
Voce e um analista financeiro senior especializado em Value Investing no Brasil e nos EUA.
Use a busca na web para obter os dados MAIS RECENTES disponiveis.
Responda APENAS com JSON valido, sem texto antes ou depois.
"""


# ==============================================================================
# 2. ANALISE FUNDAMENTALISTA DE UM TICKER
# ==============================================================================
def build_analysis_prompt(ticker: str) -> str:
    ticker = ticker.upper()
    return f"""
Preciso dos dados fundamentalistas mais recentes para o ativo: "{ticker}".

Identifique a classe do ativo com precisao:
- ACAO (Ex: PETR4, VALE3, AAPL)
- FII (Fundo Imobiliario, Ex: HGLG11, MXRF11)
- ETF (Exchange Traded Fund, Ex: BOVA11, IVVB11, GOLD11)
- BDR (Brazilian Depositary Receipt, Ex: AAPL34, NVDC34)

IMPORTANTE:
1. Liste em "dividend_history" os proventos (Dividendos, JCP, Rendimentos) dos ULTIMOS 12 MESES.
2. Identifique o SETOR (Eletrico, Bancario, Varejo, Saneamento, Logistica...).
3. Com base no setor, forneca 4 a 6 indicadores especificos (KPIs) em "sector_metrics".
   - Bancos: Indice de Basileia, Indice de Eficiencia, PDD/Carteira.
   - Varejo: SSS, Giro de Estoque, Margem Bruta.
   - Eletricas/Saneamento: Divida Liq/EBITDA, CAGR Receita, Margem EBITDA.
   - FIIs: Vacancia Fisica, Vacancia Financeira, Cap Rate, Valor p/ m2.

--- OUTPUT SCHEMA (JSON) ---
{{
    "ticker": "{ticker}",
    "name": "Nome da Empresa",
    "asset_class": "ACAO | FII | ETF | BDR",
    "currency": "BRL | USD",
    "current_price": Float,
    "sector": "Setor especifico",
    "description": "Breve descricao do negocio (max 150 caracteres)",
    "earnings_per_share": Float (LPA. Para FII use o rendimento medio mensal),
    "book_value_per_share": Float (VPA),
    "dividend_yield": Float (percentual anual, ex: 8.5 para 8.5%),
    "last_dividend": Float (SOMA dos proventos por acao nos ultimos 12 meses),
    "dividend_history": [
        {{"month": "Jan/24", "amount": Float, "payout_type": "Dividendo | JCP | Rendimento"}}
    ],
    "sector_metrics": [
        {{"label": "Nome do indicador", "value": "Valor formatado", "unit": "% | R$ | x", "tooltip": "Explicacao breve"}}
    ],
    "price_to_earnings": Float (P/L),
    "price_to_book": Float (P/VP),
    "return_on_equity": Float (ROE em %),
    "debt_to_equity": Float (Divida Liquida / PL. Para FII use 0),
    "net_margin": Float (Margem Liquida em %),
    "free_cash_flow_per_share": Float (FCL por acao estimado),
    "revenue_growth_3y": Float (crescimento medio da receita em 3 anos, em %)
}}

Se algum dado nao for encontrado, faca a melhor estimativa com base nos dados recentes ou use 0.
"""


# ==============================================================================
# 3. PROJECAO DE DIVIDENDOS (Leitura do relatorio mais recente)
# ==============================================================================
def build_projection_prompt(ticker: str, current_year: int) -> str:
    ticker = ticker.upper()
    last_year = current_year - 1
    return f"""
Estamos no ano de {current_year}.
OBJETIVO: analisar a situacao atual do ativo "{ticker}" para projetar dividendos.

Estrategia de busca:
1. PRIORIZE dados de {current_year} (Fatos Relevantes, Previas Operacionais, 1T{current_year}).
2. Sem dados completos de {current_year}, use os resultados consolidados de {last_year} (4T{last_year}).
3. Procure "Guidance {current_year}" ou a Politica de Dividendos vigente.
Se o ativo for PETR4 ou VALE3, procure o Plano Estrategico vigente em {current_year}.

--- OUTPUT SCHEMA (JSON) ---
{{
    "ticker": "{ticker}",
    "latest_report_date": "Ex: 4T{last_year} ou 1T{current_year}, divulgado em Mes/Ano",
    "report_highlights": "Markdown. Pontos do relatorio mais recente que afetam dividendos",
    "reported_net_income": Float (lucro reportado ABSOLUTO. Ex: 35000000000 para 35 bi),
    "reported_revenue": Float (receita reportada absoluta),
    "shares_outstanding": Float (numero total de acoes/cotas, valor absoluto),
    "payout_ratio": Float (0 a 100. FIIs costumam distribuir 95),
    "projected_dividend_per_share": Float (estimativa do proximo provento por acao),
    "reasoning": "Markdown. Racional, dizendo se usou dados de {current_year} ou {last_year}",
    "risk_factors": "Riscos especificos para {current_year}"
}}

Use APENAS numeros puros nos campos numericos. Nao escreva "35bi" ou "R$ 10,00"; use 35000000000 e 10.00.
"""


# ==============================================================================
# 4. FAIXA DE COTACOES
# ==============================================================================
def build_market_overview_prompt(tickers) -> str:
    return f"""
Encontre a COTACAO ATUAL e a VARIACAO DIARIA (%) dos seguintes ativos agora:
{", ".join(tickers)}.

Retorne APENAS um array JSON:
[
    {{"ticker": "IBOV", "price": Float, "change": Float (ex: 0.5 ou -1.2)}}
]
"""


# ==============================================================================
# 5. IMPORTACAO SIMULADA DE CARTEIRA
# ==============================================================================
PORTFOLIO_IMPORT_PROMPT = """
Gere uma carteira de investimentos brasileira realista para simulacao contendo:
- 3 Acoes brasileiras (ex: VALE3, BBAS3, WEGE3) -> category "ACAO"
- 3 Fundos Imobiliarios (ex: HGLG11, MXRF11, KNRI11) -> category "FII"
- 1 ETF (ex: IVVB11 ou BOVA11) -> category "ETF"
- 1 BDR (ex: AAPL34 ou NVDC34) -> category "BDR"

Para cada ativo busque o PRECO ATUAL e indicadores REAIS (DY, P/VP, P/L, ROE, Payout).
Invente "quantity" entre 10 e 500 e um "average_price" realista (um pouco acima ou abaixo do preco atual).

Retorne APENAS um array JSON. Cada item:
{
    "ticker": "String",
    "category": "ACAO | FII | ETF | BDR",
    "sector": "String (para FIIs o segmento, ex: Logistica)",
    "quantity": Float,
    "average_price": Float,
    "current_price": Float,
    "dividend_yield": Float (DY anual %),
    "price_to_book": Float (P/VP),
    "price_to_earnings": Float (P/L, apenas acoes),
    "return_on_equity": Float (ROE %, apenas acoes),
    "payout_ratio": Float (Payout %, apenas acoes)
}
"""
