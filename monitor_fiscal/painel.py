# monitor_fiscal/painel.py
"""
Tabelas (pandas) do painel de monitoramento: situação por cliente e histórico.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .modelos import (
    ROTULOS_TIPO,
    TIPOS_CONSULTA,
    Cliente,
    Consulta,
    MotivoFalha,
    StatusConsulta,
    TipoConsulta,
    Veredito,
)
from .utils import formatar_cnpj, formatar_data_br

ROTULOS_STATUS: Dict[StatusConsulta, str] = {
    StatusConsulta.PENDENTE: "Pendente",
    StatusConsulta.PROCESSANDO: "Processando",
    StatusConsulta.CONCLUIDO: "Concluído",
    StatusConsulta.ERRO: "Erro",
}


def status_categoria(consulta: Optional[Consulta]) -> Tuple[str, str]:
    """Ícone e rótulo da última consulta de um tipo."""
    if consulta is None:
        return "⚪", "N/C"
    if consulta.status in (StatusConsulta.PENDENTE, StatusConsulta.PROCESSANDO):
        return "🟡", "Processando"
    if consulta.regular:
        return "🟢", "Regular"
    if consulta.motivo_falha == MotivoFalha.PRECONDICAO_AUSENTE:
        return "➖", "N/A"
    return "🔴", "Irregular"


def _ultimas_por_tipo(consultas: Iterable[Consulta]) -> Dict[Tuple[str, TipoConsulta], Consulta]:
    ultimas: Dict[Tuple[str, TipoConsulta], Consulta] = {}
    for consulta in sorted(consultas, key=lambda c: c.created_at):
        ultimas[(consulta.cliente_id, consulta.tipo)] = consulta
    return ultimas


def tabela_clientes(clientes: Iterable[Cliente], consultas: Iterable[Consulta]) -> pd.DataFrame:
    """
    Uma linha por cliente: ícone por tipo, data da última execução e situação geral.
    """
    ultimas = _ultimas_por_tipo(consultas)
    linhas: List[Dict[str, str]] = []
    for cliente in clientes:
        linha = {
            "Cliente": cliente.razao_social,
            "CNPJ": formatar_cnpj(cliente.cnpj),
        }
        execucoes = []
        for tipo in TIPOS_CONSULTA:
            consulta = ultimas.get((cliente.id, tipo))
            icone, rotulo = status_categoria(consulta)
            linha[ROTULOS_TIPO[tipo]] = f"{icone} {rotulo}"
            if consulta is not None and consulta.data_execucao:
                execucoes.append(consulta.data_execucao)
        linha["Última execução"] = formatar_data_br(max(execucoes) if execucoes else None)
        linha["Situação"] = "🟢 Regular" if cliente.status_fiscal == Veredito.REGULAR else (
            "🔴 Irregular" if cliente.status_fiscal == Veredito.IRREGULAR else "⚪ Indefinido"
        )
        linhas.append(linha)

    colunas = ["Cliente", "CNPJ", *ROTULOS_TIPO.values(), "Última execução", "Situação"]
    return pd.DataFrame(linhas, columns=colunas)


def tabela_historico(consultas: Iterable[Consulta], clientes: Iterable[Cliente] = ()) -> pd.DataFrame:
    """Histórico de consultas, mais recentes primeiro."""
    nomes = {c.id: c.razao_social for c in clientes}
    linhas = []
    for consulta in sorted(consultas, key=lambda c: c.created_at, reverse=True):
        icone, rotulo = status_categoria(consulta)
        linhas.append({
            "Data": formatar_data_br(consulta.data_execucao or consulta.created_at),
            "Cliente": nomes.get(consulta.cliente_id, consulta.cliente_id),
            "Tipo": ROTULOS_TIPO[consulta.tipo],
            "Status": ROTULOS_STATUS[consulta.status],
            "Situação": f"{icone} {rotulo}",
            "Validade": formatar_data_br(consulta.data_validade),
            "Tentativas": consulta.tentativas,
            "Mensagem": consulta.mensagem_erro or "",
        })
    colunas = ["Data", "Cliente", "Tipo", "Status", "Situação", "Validade", "Tentativas", "Mensagem"]
    return pd.DataFrame(linhas, columns=colunas)
