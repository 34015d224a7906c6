# monitor_fiscal/armazenamento.py
"""
Contrato de persistência de consultas e implementação em memória.

A implementação em memória é usada nos testes; em produção usa-se
`ArmazenamentoSupabase` (supabase_db.py).
"""

from __future__ import annotations

import copy
import itertools
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Tuple

from .modelos import Cliente, Consulta, RegistroLog, StatusConsulta, TipoConsulta, Veredito


class ArmazenamentoConsultas(Protocol):
    """Operações de leitura/escrita usadas pelo executor, agregador e lote."""

    def listar_clientes(self, somente_ativos: bool = True) -> List[Cliente]: ...

    def obter_cliente(self, cliente_id: str) -> Optional[Cliente]: ...

    def criar_consulta(self, consulta: Consulta) -> Consulta: ...

    def atualizar_consulta(self, consulta: Consulta) -> Consulta: ...

    def obter_consulta(self, consulta_id: str) -> Optional[Consulta]: ...

    def ultima_consulta(self, cliente_id: str, tipo: TipoConsulta) -> Optional[Consulta]: ...

    def listar_consultas(self, cliente_id: Optional[str] = None, limite: int = 200) -> List[Consulta]: ...

    def listar_travadas(self, antes_de: datetime) -> List[Consulta]: ...

    def atualizar_status_fiscal(self, cliente_id: str, veredito: Veredito) -> None: ...

    def registrar_log(self, registro: RegistroLog) -> None: ...


class ArmazenamentoMemoria:
    """Armazenamento em processo. Devolve cópias para simular um banco."""

    def __init__(self, clientes: Optional[List[Cliente]] = None) -> None:
        self._clientes: Dict[str, Cliente] = {}
        self._consultas: Dict[str, Tuple[int, Consulta]] = {}
        self._sequencia = itertools.count()
        self.logs: List[RegistroLog] = []
        for cliente in clientes or []:
            self.adicionar_cliente(cliente)

    # ------------------------------------------------------------------
    # CLIENTES
    # ------------------------------------------------------------------
    def adicionar_cliente(self, cliente: Cliente) -> None:
        self._clientes[cliente.id] = copy.deepcopy(cliente)

    def listar_clientes(self, somente_ativos: bool = True) -> List[Cliente]:
        clientes = sorted(self._clientes.values(), key=lambda c: c.razao_social)
        if somente_ativos:
            clientes = [c for c in clientes if c.ativo]
        return [copy.deepcopy(c) for c in clientes]

    def obter_cliente(self, cliente_id: str) -> Optional[Cliente]:
        cliente = self._clientes.get(cliente_id)
        return copy.deepcopy(cliente) if cliente else None

    def atualizar_status_fiscal(self, cliente_id: str, veredito: Veredito) -> None:
        cliente = self._clientes.get(cliente_id)
        if cliente is not None:
            cliente.status_fiscal = veredito

    # ------------------------------------------------------------------
    # CONSULTAS
    # ------------------------------------------------------------------
    def criar_consulta(self, consulta: Consulta) -> Consulta:
        if consulta.id in self._consultas:
            raise ValueError(f"Consulta {consulta.id} já existe")
        self._consultas[consulta.id] = (next(self._sequencia), copy.deepcopy(consulta))
        return copy.deepcopy(consulta)

    def atualizar_consulta(self, consulta: Consulta) -> Consulta:
        if consulta.id not in self._consultas:
            raise KeyError(consulta.id)
        ordem, _ = self._consultas[consulta.id]
        self._consultas[consulta.id] = (ordem, copy.deepcopy(consulta))
        return copy.deepcopy(consulta)

    def obter_consulta(self, consulta_id: str) -> Optional[Consulta]:
        item = self._consultas.get(consulta_id)
        return copy.deepcopy(item[1]) if item else None

    def _ordenadas(self) -> List[Consulta]:
        # mais recente primeiro; empate de created_at resolvido pela ordem de inserção
        itens = sorted(self._consultas.values(), key=lambda par: (par[1].created_at, par[0]), reverse=True)
        return [consulta for _, consulta in itens]

    def ultima_consulta(self, cliente_id: str, tipo: TipoConsulta) -> Optional[Consulta]:
        for consulta in self._ordenadas():
            if consulta.cliente_id == cliente_id and consulta.tipo == tipo:
                return copy.deepcopy(consulta)
        return None

    def listar_consultas(self, cliente_id: Optional[str] = None, limite: int = 200) -> List[Consulta]:
        consultas = [c for c in self._ordenadas() if cliente_id is None or c.cliente_id == cliente_id]
        return [copy.deepcopy(c) for c in consultas[:limite]]

    def listar_travadas(self, antes_de: datetime) -> List[Consulta]:
        return [
            copy.deepcopy(c)
            for c in self._ordenadas()
            if c.status == StatusConsulta.PROCESSANDO and c.created_at < antes_de
        ]

    # ------------------------------------------------------------------
    # LOGS
    # ------------------------------------------------------------------
    def registrar_log(self, registro: RegistroLog) -> None:
        self.logs.append(copy.deepcopy(registro))
