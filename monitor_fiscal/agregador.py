# monitor_fiscal/agregador.py
"""
Consolidação da situação fiscal do cliente a partir da última consulta de cada tipo.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from .armazenamento import ArmazenamentoConsultas
from .modelos import TIPOS_CONSULTA, SituacaoFiscalCliente, TipoConsulta, Veredito

logger = logging.getLogger(__name__)


class AgregadorStatusCliente:
    """
    Único escritor de `clientes.status_fiscal`.

    Um tipo conta como regular apenas se a consulta mais recente dele estiver
    concluída com veredito REGULAR. Erro, consulta em andamento ou tipo nunca
    consultado contam como irregular.
    """

    def __init__(self, armazenamento: ArmazenamentoConsultas) -> None:
        self.armazenamento = armazenamento

    def situacao_atual(self, cliente_id: str) -> SituacaoFiscalCliente:
        """Calcula a situação sem gravar."""
        por_tipo: Dict[TipoConsulta, Optional[Veredito]] = {}
        for tipo in TIPOS_CONSULTA:
            ultima = self.armazenamento.ultima_consulta(cliente_id, tipo)
            por_tipo[tipo] = ultima.veredito if ultima is not None else None

        regular = all(v == Veredito.REGULAR for v in por_tipo.values())
        return SituacaoFiscalCliente(
            cliente_id=cliente_id,
            veredito=Veredito.REGULAR if regular else Veredito.IRREGULAR,
            por_tipo=por_tipo,
        )

    def recalcular(self, cliente_id: str) -> SituacaoFiscalCliente:
        situacao = self.situacao_atual(cliente_id)
        self.armazenamento.atualizar_status_fiscal(cliente_id, situacao.veredito)
        logger.info(
            "Situação fiscal do cliente %s: %s (pendentes: %s)",
            cliente_id,
            situacao.veredito.value.upper(),
            ", ".join(t.value for t in situacao.tipos_pendentes()) or "nenhum",
        )
        return situacao
