# monitor_fiscal/provedores/base.py
"""
Contrato dos provedores de consulta de certidões.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from ..modelos import TipoConsulta


@dataclass
class RespostaProvedor:
    """
    Resposta normalizada do provedor.

    - codigo: código de retorno do provedor (>= 600 = falha do provedor)
    - itens: lista `data` da resposta (cada item é um dict livre)
    - bruto: payload completo, gravado na consulta para auditoria
    """

    codigo: Optional[int]
    itens: List[Dict[str, Any]] = field(default_factory=list)
    bruto: Dict[str, Any] = field(default_factory=dict)

    @property
    def primeiro_item(self) -> Dict[str, Any]:
        return self.itens[0] if self.itens else {}


@runtime_checkable
class ProvedorConsulta(Protocol):
    """
    Contrato mínimo de um provedor de consultas fiscais.

    `campos` traz os dados de identificação do cliente: `cnpj` (somente
    dígitos) e, quando exigido pelo tipo, `inscricao_estadual`.
    Erros de rede, HTTP e códigos de falha devem ser levantados como
    `ErroProvedor`.
    """

    async def consultar(self, tipo: TipoConsulta, campos: Dict[str, str]) -> RespostaProvedor:
        ...
