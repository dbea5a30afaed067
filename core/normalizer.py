import json
import logging
import math
import re
from typing import Any, Dict, List

logger = logging.getLogger("VipNormalizer")

# Tudo que nao for digito, virgula, ponto ou sinal de menos e descartado (R$, US$, letras, espacos)
_NON_NUMERIC = re.compile(r"[^0-9,.\-]")

# Prefixo numerico valido, no mesmo espirito do parseFloat: "12.5.3" -> 12.5, "5-" -> 5
_LEADING_FLOAT = re.compile(r"^-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")

_FENCED_JSON = re.compile(r"```json([\s\S]*?)```")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")

BILLION = 1_000_000_000
MILLION = 1_000_000


class NumericNormalizer:
    """
    Converte numeros "sujos" vindos da LLM em float.
    Lida com simbolos de moeda, sufixos de escala (bi/mi) e com a ambiguidade
    entre o formato brasileiro (1.234,56) e o americano (1,234.56).

    Nunca levanta excecao: entrada ilegivel vira 0.0.
    """

    @staticmethod
    def normalize(raw: Any) -> float:
        # bool e subclasse de int, mas nao e um numero vindo do provedor
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            value = float(raw)
            return value if math.isfinite(value) else 0.0
        if not raw:
            return 0.0

        text = str(raw).lower()

        multiplier = 1
        if "bi" in text:
            multiplier = BILLION
        elif "mi" in text:
            multiplier = MILLION

        text = _NON_NUMERIC.sub("", text)
        text = NumericNormalizer._resolve_separators(text)

        match = _LEADING_FLOAT.match(text)
        if not match:
            return 0.0
        return float(match.group(0)) * multiplier

    @staticmethod
    def _resolve_separators(text: str) -> str:
        """Decide qual separador e decimal e devolve a string no formato do Python."""
        if text.count(".") > 1:
            # 1.234.567,89 -> pontos sao milhar
            return text.replace(".", "").replace(",", ".", 1)

        if "," in text and "." in text:
            if text.index(".") < text.index(","):
                # 1.234,56
                return text.replace(".", "").replace(",", ".", 1)
            # 1,234.56
            return text.replace(",", "")

        if "," in text:
            return text.replace(",", ".", 1)

        return text

    # =========================================================================
    # EXTRACAO DE JSON (Respostas da LLM misturam prosa, markdown e JSON)
    # =========================================================================
    @staticmethod
    def extract_json(text: str) -> str:
        """Retorna o trecho de objeto JSON da resposta, ou "{}" se nao houver."""
        return NumericNormalizer._extract_span(text, _JSON_OBJECT, "{}")

    @staticmethod
    def extract_json_array(text: str) -> str:
        """Retorna o trecho de array JSON da resposta, ou "[]" se nao houver."""
        return NumericNormalizer._extract_span(text, _JSON_ARRAY, "[]")

    @staticmethod
    def _extract_span(text: str, pattern: "re.Pattern[str]", empty: str) -> str:
        if not text:
            return empty
        fenced = _FENCED_JSON.search(text)
        if fenced and fenced.group(1).strip():
            return fenced.group(1).strip()
        match = pattern.search(text)
        if match:
            return match.group(0)
        return empty

    @staticmethod
    def load_json_object(text: str) -> Dict[str, Any]:
        """Decodifica o objeto JSON da resposta; qualquer falha vira {}."""
        try:
            data = json.loads(NumericNormalizer.extract_json(text))
        except json.JSONDecodeError as e:
            logger.warning(f"JSON invalido na resposta da LLM, usando objeto vazio: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Esperava objeto JSON, recebi {type(data).__name__}.")
            return {}
        return data

    @staticmethod
    def load_json_array(text: str) -> List[Any]:
        """Decodifica o array JSON da resposta; qualquer falha vira []."""
        try:
            data = json.loads(NumericNormalizer.extract_json_array(text))
        except json.JSONDecodeError as e:
            logger.warning(f"JSON invalido na resposta da LLM, usando lista vazia: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Esperava array JSON, recebi {type(data).__name__}.")
            return []
        return data
