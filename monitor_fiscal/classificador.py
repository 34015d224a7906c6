# monitor_fiscal/classificador.py
"""
Classificador de situação fiscal a partir do texto livre devolvido pelo provedor.

Regra única para CND Federal, CND Estadual e FGTS. Sem palavra-chave
reconhecida o resultado é IRREGULAR: texto ambíguo nunca vira "regular".
"""

from __future__ import annotations

import logging
from typing import Optional

from .modelos import Veredito
from .utils import safe_str

logger = logging.getLogger(__name__)


class ClassificadorSituacao:
    """
    Classificador baseado em palavras-chave (sem ML), aplicado em ordem de precedência.
    """

    # "regular" também casa dentro de "irregular"; corrigido pela regra de irregularidade
    KEYWORDS_REGULAR = [
        "negativa",
        "não constam",
        "sem pendências",
        "em vigor",
        "regular",
    ]

    KEYWORD_IRREGULAR = "irregular"
    KEYWORD_POSITIVA = "positiva"
    KEYWORD_EFEITOS_NEGATIVA = "efeitos de negativa"

    @staticmethod
    def classify(texto_principal: Optional[str], texto_secundario: Optional[str] = None) -> Veredito:
        """
        Classifica o par (situação, emitida_as) em REGULAR ou IRREGULAR.

        Ordem:
        1. Parte de irregular.
        2. Qualquer palavra-chave de regularidade em um dos textos -> regular.
        3. Principal com "positiva" e "efeitos de negativa" -> regular.
        4. "irregular" em um dos textos -> irregular.
        5. "positiva" em um dos textos, fora do caso 3 -> irregular.
        """
        principal = safe_str(texto_principal).lower()
        secundario = safe_str(texto_secundario).lower()
        textos = (principal, secundario)

        regular = False

        if any(k in t for k in ClassificadorSituacao.KEYWORDS_REGULAR for t in textos):
            regular = True

        positiva_com_efeitos = (
            ClassificadorSituacao.KEYWORD_POSITIVA in principal
            and ClassificadorSituacao.KEYWORD_EFEITOS_NEGATIVA in principal
        )
        if positiva_com_efeitos:
            regular = True

        if any(ClassificadorSituacao.KEYWORD_IRREGULAR in t for t in textos):
            regular = False

        if any(ClassificadorSituacao.KEYWORD_POSITIVA in t for t in textos) and not positiva_com_efeitos:
            regular = False

        veredito = Veredito.REGULAR if regular else Veredito.IRREGULAR
        logger.debug("Classificação: %r | %r -> %s", principal, secundario, veredito.value)
        return veredito


def classificar(texto_principal: Optional[str], texto_secundario: Optional[str] = None) -> Veredito:
    """Atalho funcional para `ClassificadorSituacao.classify`."""
    return ClassificadorSituacao.classify(texto_principal, texto_secundario)
