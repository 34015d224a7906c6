# monitor_fiscal/provedores/__init__.py
"""
Provedores de consulta de certidões (fachada).
"""

from .base import ProvedorConsulta, RespostaProvedor
from .infosimples import ENDPOINTS, InfoSimplesProvider, mensagem_codigo

__all__ = [
    "ENDPOINTS",
    "InfoSimplesProvider",
    "ProvedorConsulta",
    "RespostaProvedor",
    "mensagem_codigo",
]
