# monitor_fiscal/__init__.py
"""
Monitor fiscal: consulta de certidões (CND Federal, CND Estadual, FGTS),
classificação da situação e consolidação por cliente.
"""

from .agregador import AgregadorStatusCliente
from .armazenamento import ArmazenamentoConsultas, ArmazenamentoMemoria
from .classificador import ClassificadorSituacao, classificar
from .config import Configuracao
from .executor import ExecutorConsulta
from .lote import CoordenadorLote, ProgressoLote, RelatorioLote
from .modelos import (
    Cliente,
    Consulta,
    MotivoFalha,
    SituacaoFiscalCliente,
    StatusConsulta,
    TipoConsulta,
    Veredito,
)

__all__ = [
    "AgregadorStatusCliente",
    "ArmazenamentoConsultas",
    "ArmazenamentoMemoria",
    "ClassificadorSituacao",
    "Cliente",
    "Configuracao",
    "Consulta",
    "CoordenadorLote",
    "ExecutorConsulta",
    "MotivoFalha",
    "ProgressoLote",
    "RelatorioLote",
    "SituacaoFiscalCliente",
    "StatusConsulta",
    "TipoConsulta",
    "Veredito",
    "classificar",
]
