# monitor_fiscal/lote.py
"""
Execução em lote de consultas (clientes x tipos), sequencial e com limite de taxa.

O provedor limita a taxa de requisições: no máximo uma chamada em voo e
um intervalo fixo entre chamadas.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from .config import Configuracao
from .executor import ExecutorConsulta
from .modelos import (
    ROTULOS_TIPO,
    Cliente,
    Consulta,
    MotivoFalha,
    StatusConsulta,
    TipoConsulta,
    Veredito,
)

logger = logging.getLogger(__name__)

GLIFO_INICIO = "🔄"
GLIFO_REGULAR = "✅"
GLIFO_IRREGULAR = "⚠️"
GLIFO_IGNORADA = "➖"
GLIFO_FALHA = "❌"


@dataclass
class ItemLote:
    cliente_id: str
    razao_social: str
    tipo: TipoConsulta
    sucesso: bool
    status: Optional[StatusConsulta] = None
    veredito: Optional[Veredito] = None
    mensagem: str = ""
    glifo: str = GLIFO_FALHA

    def linha_log(self) -> str:
        texto = f"{self.glifo} {self.razao_social} — {ROTULOS_TIPO[self.tipo]}"
        return f"{texto}: {self.mensagem}" if self.mensagem else texto


@dataclass
class ProgressoLote:
    concluidas: int
    total: int
    log: List[str] = field(default_factory=list)

    @property
    def percentual(self) -> int:
        if not self.total:
            return 100
        return round(self.concluidas * 100 / self.total)


@dataclass
class RelatorioLote:
    total: int
    itens: List[ItemLote] = field(default_factory=list)
    cancelado: bool = False

    @property
    def processadas(self) -> int:
        return len(self.itens)

    @property
    def regulares(self) -> int:
        return sum(1 for i in self.itens if i.veredito == Veredito.REGULAR)

    @property
    def irregulares(self) -> int:
        return sum(1 for i in self.itens if i.veredito == Veredito.IRREGULAR)

    @property
    def falhas(self) -> List[ItemLote]:
        return [i for i in self.itens if not i.sucesso]


def _item_de_consulta(cliente: Cliente, consulta: Consulta) -> ItemLote:
    item = ItemLote(
        cliente_id=cliente.id,
        razao_social=cliente.razao_social,
        tipo=consulta.tipo,
        sucesso=consulta.status == StatusConsulta.CONCLUIDO,
        status=consulta.status,
        veredito=consulta.veredito,
    )
    if consulta.status == StatusConsulta.CONCLUIDO:
        item.glifo = GLIFO_REGULAR if consulta.veredito == Veredito.REGULAR else GLIFO_IRREGULAR
        item.mensagem = "Regular" if consulta.veredito == Veredito.REGULAR else "Irregular"
    elif consulta.motivo_falha == MotivoFalha.PRECONDICAO_AUSENTE:
        item.glifo = GLIFO_IGNORADA
        item.mensagem = consulta.mensagem_erro or ""
    else:
        item.glifo = GLIFO_FALHA
        item.mensagem = consulta.mensagem_erro or "Erro desconhecido"
    return item


class CoordenadorLote:
    """Sequencia chamadas ao `ExecutorConsulta` respeitando o intervalo mínimo."""

    def __init__(
        self,
        executor: ExecutorConsulta,
        config: Optional[Configuracao] = None,
        *,
        espera: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        self.executor = executor
        self.config = config or executor.config
        self._espera = espera or self._espera_interrompivel
        self._cancelar = False
        # criado dentro do loop em execução (executar_lote)
        self._cancelamento: Optional[asyncio.Event] = None

    # ------------------------------------------------------------------
    # cancelamento
    # ------------------------------------------------------------------
    def cancelar(self) -> None:
        """Pede o fim do lote. A consulta em andamento termina normalmente."""
        logger.info("Cancelamento do lote solicitado")
        self._cancelar = True
        if self._cancelamento is not None:
            self._cancelamento.set()

    @property
    def cancelamento_solicitado(self) -> bool:
        return self._cancelar

    async def _espera_interrompivel(self, segundos: float) -> None:
        if self._cancelamento is None:
            self._cancelamento = asyncio.Event()
        if self._cancelar:
            return
        try:
            await asyncio.wait_for(self._cancelamento.wait(), timeout=segundos)
        except asyncio.TimeoutError:
            pass

    # ------------------------------------------------------------------
    # execução
    # ------------------------------------------------------------------
    async def executar_unica(self, cliente: Cliente, tipo: TipoConsulta) -> Consulta:
        """Consulta avulsa (botão "forçar consulta")."""
        return await self.executor.executar(cliente, tipo)

    async def executar_lote(
        self,
        clientes: Iterable[Cliente],
        tipos: Iterable[TipoConsulta],
        ao_progredir: Optional[Callable[[ProgressoLote], None]] = None,
    ) -> RelatorioLote:
        self._cancelar = False
        self._cancelamento = asyncio.Event()
        ativos = [c for c in clientes if c.ativo]
        tipos = list(tipos)
        pares = [(cliente, tipo) for cliente in ativos for tipo in tipos]

        relatorio = RelatorioLote(total=len(pares))
        log = deque(maxlen=self.config.tamanho_log_lote)

        if not pares:
            logger.warning("Nenhum cliente ativo encontrado para o lote")
            return relatorio

        logger.info("Iniciando lote: %d consulta(s) em %d cliente(s)", len(pares), len(ativos))

        for indice, (cliente, tipo) in enumerate(pares):
            if self.cancelamento_solicitado:
                break
            if indice > 0:
                await self._espera(self.config.intervalo_entre_consultas)
                if self.cancelamento_solicitado:
                    break

            log.append(f"{GLIFO_INICIO} {cliente.razao_social} — {ROTULOS_TIPO[tipo]}")
            try:
                consulta = await self.executor.executar(cliente, tipo)
                item = _item_de_consulta(cliente, consulta)
            except Exception as exc:
                logger.exception("❌ Falha inesperada no lote para %s (%s)", cliente.razao_social, tipo.value)
                item = ItemLote(
                    cliente_id=cliente.id,
                    razao_social=cliente.razao_social,
                    tipo=tipo,
                    sucesso=False,
                    mensagem=str(exc) or exc.__class__.__name__,
                )

            relatorio.itens.append(item)
            log.append(item.linha_log())
            if ao_progredir is not None:
                ao_progredir(ProgressoLote(concluidas=relatorio.processadas, total=relatorio.total, log=list(log)))

        relatorio.cancelado = self.cancelamento_solicitado and relatorio.processadas < relatorio.total
        logger.info(
            "Lote %s! %d/%d consultas processadas (%d regulares, %d irregulares, %d falhas).",
            "cancelado" if relatorio.cancelado else "concluído",
            relatorio.processadas,
            relatorio.total,
            relatorio.regulares,
            relatorio.irregulares,
            len(relatorio.falhas),
        )
        return relatorio
