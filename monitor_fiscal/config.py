# monitor_fiscal/config.py
"""
Configuração do monitor fiscal lida do ambiente (.env suportado via python-dotenv).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .erros import ConfiguracaoAusente

logger = logging.getLogger(__name__)

INFOSIMPLES_BASE_URL = "https://api.infosimples.com"


def _ler_float(nome: str, padrao: float) -> float:
    valor = os.getenv(nome)
    if valor is None or not valor.strip():
        return padrao
    try:
        return float(valor)
    except ValueError:
        logger.warning("⚠️ Valor inválido para %s (%r). Usando padrão %s.", nome, valor, padrao)
        return padrao


def _ler_int(nome: str, padrao: int) -> int:
    valor = os.getenv(nome)
    if valor is None or not valor.strip():
        return padrao
    try:
        return int(valor)
    except ValueError:
        logger.warning("⚠️ Valor inválido para %s (%r). Usando padrão %s.", nome, valor, padrao)
        return padrao


@dataclass
class Configuracao:
    """
    Parâmetros de execução.

    Os intervalos padrão seguem o limite do provedor: 3s entre consultas,
    5s antes de cada retentativa.
    """

    infosimples_token: Optional[str] = None
    infosimples_base_url: str = INFOSIMPLES_BASE_URL
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    intervalo_entre_consultas: float = 3.0
    espera_retentativa: float = 5.0
    timeout_padrao: float = 60.0
    timeout_fgts: float = 150.0
    tamanho_log_lote: int = 5

    @classmethod
    def from_env(cls) -> "Configuracao":
        load_dotenv()
        return cls(
            infosimples_token=(os.getenv("INFOSIMPLES_TOKEN") or "").strip() or None,
            infosimples_base_url=os.getenv("INFOSIMPLES_BASE_URL") or INFOSIMPLES_BASE_URL,
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
            intervalo_entre_consultas=_ler_float("MONITOR_INTERVALO_SEGUNDOS", 3.0),
            espera_retentativa=_ler_float("MONITOR_ESPERA_RETENTATIVA", 5.0),
            timeout_padrao=_ler_float("MONITOR_TIMEOUT_PADRAO", 60.0),
            timeout_fgts=_ler_float("MONITOR_TIMEOUT_FGTS", 150.0),
            tamanho_log_lote=_ler_int("MONITOR_LOG_TAMANHO", 5),
        )

    def exigir_token(self) -> str:
        if not self.infosimples_token:
            raise ConfiguracaoAusente("Token InfoSimples não configurado (defina INFOSIMPLES_TOKEN no .env).")
        return self.infosimples_token
