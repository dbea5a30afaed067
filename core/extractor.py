import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from prompts import (
    PORTFOLIO_IMPORT_PROMPT,
    SYSTEM_PROMPT,
    build_analysis_prompt,
    build_market_overview_prompt,
    build_projection_prompt,
)

from .config import LLM_PROVIDERS
from .market_data import MarketDataService
from .market_map import FALLBACK_MARKET_ITEMS, MARKET_OVERVIEW_TICKERS
from .models import (
    AnalysisResult,
    DividendProjectionResult,
    FinancialData,
    MarketTickerItem,
    PortfolioItem,
)
from .normalizer import NumericNormalizer

# Configuração de Logs Profissional
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("VipExtractor")

MAX_GROUNDING_URLS = 5


# --- HIERARQUIA DE ERROS ---

class ProviderError(Exception):
    """Falha de rede/API ao chamar um modelo especifico."""
    def __init__(self, model: str, cause: Any):
        super().__init__(f"{model}: {cause}")
        self.model = model
        self.cause = cause


class MalformedResponseError(ProviderError):
    """O modelo respondeu, mas sem JSON utilizavel."""
    pass


class ExtractionError(Exception):
    """Falha que deve ser mostrada ao usuario."""
    pass


class ProjectionError(ExtractionError):
    """Os dois modelos (principal e fallback) falharam na projecao de dividendos."""
    def __init__(self, message: str, primary_error: ProviderError, fallback_error: Optional[ProviderError]):
        super().__init__(message)
        self.primary_error = primary_error
        self.fallback_error = fallback_error


class ProviderResponse:
    """Texto bruto da LLM e as URLs citadas pela busca (grounding)."""
    def __init__(self, text: str, grounding_urls: List[str]):
        self.text = text
        self.grounding_urls = grounding_urls


# --- ENGINE DE EXTRACAO ---

class VipExtractor:
    def __init__(self, api_key: str, base_url: Optional[str] = None, model: str = "gemini-2.5-flash",
                 fallback_model: Optional[str] = None, request_options: Optional[Dict[str, Any]] = None):
        # Evita passar explicitamente None para parâmetros tipados como `str`.
        if base_url:
            self.client = OpenAI(api_key=api_key, base_url=base_url)
        else:
            self.client = OpenAI(api_key=api_key)
        self.model = model
        self.fallback_model = fallback_model
        self.request_options = request_options or {}

    @classmethod
    def from_provider(cls, provider_key: str, api_key: str) -> "VipExtractor":
        config = LLM_PROVIDERS[provider_key]
        return cls(
            api_key=api_key,
            base_url=config["base_url"],
            model=config["model"],
            fallback_model=config.get("fallback_model"),
            request_options=config.get("request_options"),
        )

    # =========================================================================
    # CHAMADA AO PROVEDOR
    # =========================================================================
    def _generate(self, prompt: str, model: Optional[str] = None) -> ProviderResponse:
        model = model or self.model
        logger.info(f"Consultando modelo {model}...")

        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                **self.request_options,
            )
        except OpenAIError as e:
            raise ProviderError(model, e) from e

        if not response.choices:
            return ProviderResponse("", [])

        content = response.choices[0].message.content or ""
        return ProviderResponse(content, self._grounding_urls(response))

    @staticmethod
    def _grounding_urls(response: Any) -> List[str]:
        """
        Junta as fontes citadas pela busca.
        OpenAI: message.annotations[].url_citation.url | xAI: response.citations[]
        """
        urls: List[str] = []

        message = response.choices[0].message
        for annotation in getattr(message, "annotations", None) or []:
            citation = getattr(annotation, "url_citation", None)
            url = getattr(citation, "url", None)
            if url:
                urls.append(url)

        for citation in getattr(response, "citations", None) or []:
            if isinstance(citation, str):
                urls.append(citation)

        # Remove duplicatas mantendo a ordem
        return list(dict.fromkeys(urls))[:MAX_GROUNDING_URLS]

    # =========================================================================
    # ANALISE DE TICKER
    # =========================================================================
    def analyze_ticker(self, ticker: str) -> AnalysisResult:
        ticker = ticker.upper().strip()
        if not ticker:
            raise ExtractionError("Informe um ticker para analisar.")

        logger.info(f"Iniciando analise de {ticker} com modelo {self.model}...")

        try:
            response = self._generate(build_analysis_prompt(ticker))
        except ProviderError as e:
            logger.error(f"Erro ao buscar dados de {ticker}: {e}")
            raise ExtractionError("Falha ao obter dados financeiros. Verifique o Ticker ou tente novamente.") from e

        raw = NumericNormalizer.load_json_object(response.text)
        try:
            data = FinancialData.from_provider(raw, ticker)
        except ValidationError as e:
            logger.warning(f"Schema invalido para {ticker}, usando valores padrao: {e}")
            data = FinancialData.from_provider({}, ticker)

        logger.info(f"Analise concluida para: {data.ticker} ({data.asset_class.value})")
        return AnalysisResult(data=data, grounding_urls=response.grounding_urls)

    # =========================================================================
    # PROJECAO DE DIVIDENDOS (Dois niveis: principal -> fallback)
    # =========================================================================
    def get_dividend_projection(self, ticker: str, current_year: Optional[int] = None) -> DividendProjectionResult:
        ticker = ticker.upper().strip()
        prompt = build_projection_prompt(ticker, current_year or datetime.now().year)

        # Com fallback disponivel, resposta sem JSON conta como falha do principal
        try:
            return self._request_projection(prompt, self.model, ticker, strict=bool(self.fallback_model))
        except ProviderError as primary_error:
            if not self.fallback_model:
                logger.error(f"Projecao de {ticker} falhou sem modelo de fallback: {primary_error}")
                raise ProjectionError(
                    "Não foi possível analisar os relatórios. O serviço está indisponível.",
                    primary_error, None,
                ) from primary_error

            logger.warning(f"Modelo {self.model} falhou, tentando fallback {self.fallback_model}: {primary_error}")
            try:
                return self._request_projection(prompt, self.fallback_model, ticker, strict=False)
            except ProviderError as fallback_error:
                logger.error(f"Projecao de {ticker} falhou nos dois modelos: {fallback_error}")
                raise ProjectionError(
                    "Não foi possível analisar os relatórios. O modelo pode ter gerado uma resposta "
                    "inválida ou o serviço está indisponível.",
                    primary_error, fallback_error,
                ) from fallback_error

    def _request_projection(self, prompt: str, model: str, ticker: str, strict: bool) -> DividendProjectionResult:
        response = self._generate(prompt, model)
        raw = NumericNormalizer.load_json_object(response.text)
        if strict and not raw:
            raise MalformedResponseError(model, "resposta sem JSON utilizavel")
        return self._parse_projection(raw, ticker)

    @staticmethod
    def _parse_projection(raw: Dict[str, Any], ticker: str) -> DividendProjectionResult:
        raw["ticker"] = raw.get("ticker") or ticker
        try:
            return DividendProjectionResult(**raw)
        except ValidationError as e:
            logger.warning(f"Projecao com schema invalido para {ticker}: {e}")
            return DividendProjectionResult(ticker=ticker)

    # =========================================================================
    # FAIXA DE COTACOES
    # =========================================================================
    def get_market_overview(self, tickers: Sequence[str] = MARKET_OVERVIEW_TICKERS) -> List[MarketTickerItem]:
        """LLM primeiro; se falhar, Yahoo Finance; por ultimo, a lista estatica."""
        items: List[MarketTickerItem] = []
        try:
            response = self._generate(build_market_overview_prompt(tickers))
            for raw in NumericNormalizer.load_json_array(response.text):
                if isinstance(raw, dict) and raw.get("ticker"):
                    items.append(MarketTickerItem(**raw))
        except ProviderError as e:
            logger.warning(f"Cotacoes via LLM indisponiveis: {e}")

        if items:
            return items

        quotes = MarketDataService.get_quotes(tickers)
        if quotes:
            return quotes

        logger.warning("Usando cotacoes estaticas de fallback.")
        return [MarketTickerItem(**item) for item in FALLBACK_MARKET_ITEMS]

    # =========================================================================
    # IMPORTACAO SIMULADA DE CARTEIRA
    # =========================================================================
    def import_portfolio(self, cpf: str) -> List[PortfolioItem]:
        digits = re.sub(r"\D", "", cpf or "")
        if len(digits) != 11:
            raise ExtractionError("CPF inválido: informe os 11 dígitos.")

        # O CPF nunca e enviado ao provedor; a carteira e simulada
        try:
            response = self._generate(PORTFOLIO_IMPORT_PROMPT)
        except ProviderError as e:
            logger.error(f"Erro ao gerar carteira: {e}")
            raise ExtractionError("Não foi possível importar a carteira. Tente novamente.") from e

        items: List[PortfolioItem] = []
        for raw in NumericNormalizer.load_json_array(response.text):
            if not isinstance(raw, dict) or not raw.get("ticker"):
                continue
            try:
                items.append(PortfolioItem(**raw))
            except ValidationError as e:
                logger.warning(f"Ativo ignorado na importacao: {e}")

        logger.info(f"Carteira simulada com {len(items)} ativos.")
        return items
