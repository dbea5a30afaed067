import os
from typing import Any, Dict, Mapping, Optional

# --- DEFINICAO DE MODELOS ---
# Todos os provedores falam o protocolo da OpenAI (chat.completions).
# "model" e o modelo principal (mais caro/lento); "fallback_model" e usado
# pela projecao de dividendos quando o principal falha.
LLM_PROVIDERS: Dict[str, Dict[str, Any]] = {
    "Google Gemini - 2.5 Pro": {
        "model": "gemini-2.5-pro",
        "fallback_model": "gemini-2.5-flash",
        "base_url": "https://generativelanguage.googleapis.com/v1beta/openai/",
        "api_key_env": "GEMINI_API_KEY",
        "desc": "Raciocinio profundo com fallback para o Flash.",
        "request_options": {},
    },
    "OpenAI - GPT-4o Search": {
        "model": "gpt-4o-search-preview",
        "fallback_model": "gpt-4o-mini-search-preview",
        "base_url": None,
        "api_key_env": "OPENAI_API_KEY",
        "desc": "Busca na web integrada com citacao das fontes.",
        "request_options": {"web_search_options": {}},
    },
    "Grok (xAI) - Live Search": {
        "model": "grok-4",
        "fallback_model": "grok-4-1-fast-reasoning",
        "base_url": "https://api.x.ai/v1",
        "api_key_env": "XAI_API_KEY",
        "desc": "Busca ao vivo na web e no X.",
        "request_options": {"extra_body": {"search_parameters": {"mode": "auto", "return_citations": True}}},
    },
}

DEFAULT_PROVIDER = "Google Gemini - 2.5 Pro"


def resolve_api_key(env_var: str, secrets: Optional[Mapping[str, Any]] = None) -> Optional[str]:
    """
    Recupera a chave do provedor.
    Tenta os secrets do Streamlit Cloud primeiro e depois o ambiente (.env local).
    """
    key = None
    if secrets is not None:
        try:
            if env_var in secrets:
                key = secrets[env_var]
        except FileNotFoundError:
            # st.secrets sem secrets.toml levanta ao ser acessado
            key = None

    if not key:
        key = os.getenv(env_var)

    return key or None


def get_provider_config(provider_key: str) -> Optional[Dict[str, Any]]:
    return LLM_PROVIDERS.get(provider_key)
