# monitor_fiscal/__main__.py
"""Execução do lote de consultas fiscais pela linha de comando (usado pelo cron)."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .agregador import AgregadorStatusCliente
from .config import Configuracao
from .erros import ConfiguracaoAusente
from .executor import ExecutorConsulta
from .lote import CoordenadorLote, ProgressoLote
from .modelos import TIPOS_CONSULTA, TipoConsulta
from .provedores import InfoSimplesProvider
from .supabase_db import ArmazenamentoSupabase

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("monitor_fiscal")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Consulta CND Federal, CND Estadual e FGTS dos clientes ativos.")
    parser.add_argument(
        "--tipos",
        nargs="+",
        choices=[t.value for t in TIPOS_CONSULTA],
        default=[t.value for t in TIPOS_CONSULTA],
        help="Tipos de consulta a executar (padrão: todos).",
    )
    parser.add_argument("--clientes", nargs="+", help="IDs de clientes (padrão: todos os ativos).")
    parser.add_argument(
        "--encerrar-travadas",
        type=int,
        metavar="MINUTOS",
        help="Antes do lote, marca como erro consultas em 'processando' há mais de MINUTOS.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Apenas lista as consultas que seriam executadas.")
    return parser.parse_args(argv)


def _imprimir_progresso(progresso: ProgressoLote) -> None:
    logger.info("Progresso: %d/%d (%d%%) | %s", progresso.concluidas, progresso.total,
                progresso.percentual, progresso.log[-1] if progresso.log else "")


async def _executar(args: argparse.Namespace, config: Configuracao) -> int:
    armazenamento = ArmazenamentoSupabase.from_config(config)
    clientes = armazenamento.listar_clientes(somente_ativos=True)
    if args.clientes:
        clientes = [c for c in clientes if c.id in set(args.clientes)]
    tipos = [TipoConsulta(t) for t in args.tipos]

    if args.dry_run:
        for cliente in clientes:
            for tipo in tipos:
                logger.info("Encontrado (dry-run): %s — %s", cliente.razao_social, tipo.value)
        return 0

    async with InfoSimplesProvider(config.exigir_token(), api_base=config.infosimples_base_url) as provedor:
        executor = ExecutorConsulta(provedor, armazenamento, AgregadorStatusCliente(armazenamento), config)
        if args.encerrar_travadas is not None:
            executor.encerrar_travadas(args.encerrar_travadas)
        coordenador = CoordenadorLote(executor, config)
        relatorio = await coordenador.executar_lote(clientes, tipos, ao_progredir=_imprimir_progresso)

    for item in relatorio.falhas:
        logger.warning("Falha: %s", item.linha_log())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    config = Configuracao.from_env()
    try:
        return asyncio.run(_executar(args, config))
    except ConfiguracaoAusente as exc:
        logger.error("❌ %s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
