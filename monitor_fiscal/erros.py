# monitor_fiscal/erros.py
"""
Hierarquia de erros do monitor fiscal.

Cada erro corresponde a uma categoria de falha de consulta:
- ErroProvedor: falha transitória (rede, timeout, HTTP != 2xx, código >= 600).
- ErroIntegridade: o provedor devolveu dados de outro CNPJ. Nunca é retentado.
- PrecondicaoAusente: falta um dado obrigatório do cliente. Nunca é retentado.
- ConfiguracaoAusente: variável de ambiente obrigatória não encontrada.
"""

from __future__ import annotations

from typing import Optional


class ErroMonitorFiscal(Exception):
    """Raiz de todos os erros do pacote."""


class ErroProvedor(ErroMonitorFiscal):
    """Falha transitória do provedor de consultas."""

    def __init__(self, mensagem: str, codigo: Optional[int] = None, status_http: Optional[int] = None) -> None:
        super().__init__(mensagem)
        self.codigo = codigo
        self.status_http = status_http


class ErroIntegridade(ErroMonitorFiscal):
    """O documento retornado não pertence ao cliente consultado."""

    def __init__(self, solicitado: str, retornado: str) -> None:
        super().__init__(
            f"Integridade falhou: CNPJ retornado ({retornado}) diferente do solicitado ({solicitado})"
        )
        self.solicitado = solicitado
        self.retornado = retornado


class PrecondicaoAusente(ErroMonitorFiscal):
    """Dado obrigatório do cliente ausente (ex: Inscrição Estadual)."""


class ConfiguracaoAusente(RuntimeError):
    """Configuração obrigatória não encontrada no ambiente."""
