# monitor_fiscal/supabase_db.py
"""Acesso ao Supabase para o monitor fiscal (tabelas clientes, consultas e logs_execucao)."""

from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import List, Optional

from supabase import Client, create_client

from .erros import ConfiguracaoAusente
from .modelos import Cliente, Consulta, RegistroLog, TipoConsulta, Veredito

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def get_supabase_client(url: Optional[str], key: Optional[str]) -> Client:
    if not url or not key:
        raise ConfiguracaoAusente(
            "Defina SUPABASE_URL e SUPABASE_SERVICE_ROLE_KEY no ambiente para usar a API do Supabase."
        )
    return create_client(url, key)


class ArmazenamentoSupabase:
    """Implementação de `ArmazenamentoConsultas` sobre o Supabase."""

    def __init__(self, client: Client) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config) -> "ArmazenamentoSupabase":
        return cls(get_supabase_client(config.supabase_url, config.supabase_key))

    # ------------------------------------------------------------------
    # CLIENTES
    # ------------------------------------------------------------------
    def listar_clientes(self, somente_ativos: bool = True) -> List[Cliente]:
        query = self._client.table("clientes").select("*")
        if somente_ativos:
            query = query.eq("ativo", True)
        response = query.order("razao_social").execute()
        return [Cliente.de_registro(row) for row in response.data or []]

    def obter_cliente(self, cliente_id: str) -> Optional[Cliente]:
        response = self._client.table("clientes").select("*").eq("id", cliente_id).limit(1).execute()
        data = response.data or []
        return Cliente.de_registro(data[0]) if data else None

    def atualizar_status_fiscal(self, cliente_id: str, veredito: Veredito) -> None:
        self._client.table("clientes").update({"status_fiscal": veredito.value}).eq("id", cliente_id).execute()

    # ------------------------------------------------------------------
    # CONSULTAS
    # ------------------------------------------------------------------
    def criar_consulta(self, consulta: Consulta) -> Consulta:
        response = self._client.table("consultas").insert(consulta.como_registro()).execute()
        data = response.data or []
        return Consulta.de_registro(data[0]) if data else consulta

    def atualizar_consulta(self, consulta: Consulta) -> Consulta:
        payload = consulta.como_registro()
        payload.pop("id")
        payload.pop("created_at")
        self._client.table("consultas").update(payload).eq("id", consulta.id).execute()
        return consulta

    def obter_consulta(self, consulta_id: str) -> Optional[Consulta]:
        response = self._client.table("consultas").select("*").eq("id", consulta_id).limit(1).execute()
        data = response.data or []
        return Consulta.de_registro(data[0]) if data else None

    def ultima_consulta(self, cliente_id: str, tipo: TipoConsulta) -> Optional[Consulta]:
        response = (
            self._client.table("consultas")
            .select("*")
            .eq("cliente_id", cliente_id)
            .eq("tipo", tipo.value)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        data = response.data or []
        return Consulta.de_registro(data[0]) if data else None

    def listar_consultas(self, cliente_id: Optional[str] = None, limite: int = 200) -> List[Consulta]:
        query = self._client.table("consultas").select("*")
        if cliente_id:
            query = query.eq("cliente_id", cliente_id)
        response = query.order("created_at", desc=True).limit(limite).execute()
        return [Consulta.de_registro(row) for row in response.data or []]

    def listar_travadas(self, antes_de: datetime) -> List[Consulta]:
        response = (
            self._client.table("consultas")
            .select("*")
            .eq("status", "processando")
            .lt("created_at", antes_de.isoformat())
            .execute()
        )
        return [Consulta.de_registro(row) for row in response.data or []]

    # ------------------------------------------------------------------
    # LOGS
    # ------------------------------------------------------------------
    def registrar_log(self, registro: RegistroLog) -> None:
        self._client.table("logs_execucao").insert(registro.como_registro()).execute()
