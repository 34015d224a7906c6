# app.py
"""
Aplicativo Streamlit para o monitoramento fiscal dos clientes.

Integração:
- Executor/Lote -> Consultam CND Federal, CND Estadual e FGTS no provedor.
- Agregador -> Consolida a situação fiscal de cada cliente.
- Painel -> Monta as tabelas (pandas) exibidas aqui.
"""

from __future__ import annotations

import asyncio
import logging

import streamlit as st

from monitor_fiscal import AgregadorStatusCliente, Configuracao, CoordenadorLote, ExecutorConsulta
from monitor_fiscal.erros import ConfiguracaoAusente
from monitor_fiscal.lote import ProgressoLote, RelatorioLote
from monitor_fiscal.modelos import ROTULOS_TIPO, TIPOS_CONSULTA, Veredito
from monitor_fiscal.painel import tabela_clientes, tabela_historico
from monitor_fiscal.provedores import InfoSimplesProvider
from monitor_fiscal.supabase_db import ArmazenamentoSupabase

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def _rodar_lote(config, armazenamento, clientes, tipos, ao_progredir) -> RelatorioLote:
    async with InfoSimplesProvider(config.exigir_token(), api_base=config.infosimples_base_url) as provedor:
        executor = ExecutorConsulta(provedor, armazenamento, AgregadorStatusCliente(armazenamento), config)
        executor.encerrar_travadas()
        coordenador = CoordenadorLote(executor, config)
        return await coordenador.executar_lote(clientes, tipos, ao_progredir=ao_progredir)


# ============================================================================
# INTERFACE STREAMLIT
# ============================================================================

def main() -> None:
    st.set_page_config(
        page_title="Monitor Fiscal",
        page_icon="🧾",
        layout="wide",
    )

    st.title("🧾 Monitor Fiscal")
    st.caption("Situação de CND Federal, CND Estadual (PR) e FGTS dos clientes ativos.")

    config = Configuracao.from_env()
    try:
        armazenamento = ArmazenamentoSupabase.from_config(config)
    except ConfiguracaoAusente as exc:
        st.error(str(exc))
        st.stop()

    clientes = armazenamento.listar_clientes(somente_ativos=True)

    with st.sidebar:
        st.header("Nova consulta")
        opcoes_clientes = {"Todos": None, **{c.razao_social: c.id for c in clientes}}
        escolha_cliente = st.selectbox("Cliente", list(opcoes_clientes))
        tipos = st.multiselect(
            "Tipos",
            options=list(TIPOS_CONSULTA),
            default=list(TIPOS_CONSULTA),
            format_func=lambda t: ROTULOS_TIPO[t],
        )
        executar = st.button("🔄 Executar consultas", type="primary", disabled=not tipos)

    if executar:
        cliente_id = opcoes_clientes[escolha_cliente]
        alvo = [c for c in clientes if cliente_id is None or c.id == cliente_id]

        barra = st.progress(0, text="Executando lote...")
        painel_log = st.empty()

        def ao_progredir(progresso: ProgressoLote) -> None:
            barra.progress(progresso.percentual, text=f"Executando lote... {progresso.concluidas}/{progresso.total}")
            painel_log.markdown("\n\n".join(progresso.log))

        try:
            relatorio = asyncio.run(_rodar_lote(config, armazenamento, alvo, tipos, ao_progredir))
        except ConfiguracaoAusente as exc:
            st.error(str(exc))
        else:
            st.success(f"Lote concluído! {relatorio.processadas}/{relatorio.total} consultas processadas.")
            for item in relatorio.falhas:
                st.warning(item.linha_log())
        clientes = armazenamento.listar_clientes(somente_ativos=True)

    consultas = armazenamento.listar_consultas(limite=200)

    col1, col2, col3 = st.columns(3)
    col1.metric("Clientes ativos", len(clientes))
    col2.metric("🟢 Regulares", sum(1 for c in clientes if c.status_fiscal == Veredito.REGULAR))
    col3.metric("🔴 Irregulares", sum(1 for c in clientes if c.status_fiscal == Veredito.IRREGULAR))

    st.subheader("📊 Situação por cliente")
    st.dataframe(tabela_clientes(clientes, consultas), use_container_width=True, hide_index=True)

    with st.expander("📋 Histórico de consultas", expanded=False):
        st.dataframe(tabela_historico(consultas, clientes), use_container_width=True, hide_index=True)


if __name__ == "__main__":
    main()
