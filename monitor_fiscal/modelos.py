# monitor_fiscal/modelos.py
"""
Estruturas básicas do monitor fiscal: clientes, consultas e situação consolidada.

A ideia é:
- Cada consulta (CND Federal, CND Estadual, FGTS) vira um registro `Consulta`,
  com ciclo de vida pendente -> processando -> concluido | erro.
- O veredito é sempre semântico (REGULAR / IRREGULAR). Os termos do provedor
  ("positiva", "negativa") nunca são gravados como veredito.
- `SituacaoFiscalCliente` é derivada das últimas consultas de cada tipo e só
  é escrita pelo agregador.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .utils import safe_str


def agora_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(valor: Any) -> Optional[datetime]:
    if valor is None or valor == "":
        return None
    if isinstance(valor, datetime):
        return valor
    return datetime.fromisoformat(str(valor).replace("Z", "+00:00"))


# ------------------------------------------------------------------
# ENUMERAÇÕES
# ------------------------------------------------------------------

class TipoConsulta(str, Enum):
    CND_FEDERAL = "cnd_federal"
    CND_ESTADUAL = "cnd_estadual"
    FGTS = "fgts"


class StatusConsulta(str, Enum):
    PENDENTE = "pendente"
    PROCESSANDO = "processando"
    CONCLUIDO = "concluido"
    ERRO = "erro"


class Veredito(str, Enum):
    REGULAR = "regular"
    IRREGULAR = "irregular"
    INDEFINIDO = "indefinido"


class MotivoFalha(str, Enum):
    FALHA_PROVEDOR = "falha_provedor"
    INTEGRIDADE = "integridade"
    PRECONDICAO_AUSENTE = "precondicao_ausente"


TIPOS_CONSULTA = (TipoConsulta.CND_FEDERAL, TipoConsulta.CND_ESTADUAL, TipoConsulta.FGTS)

ROTULOS_TIPO: Dict[TipoConsulta, str] = {
    TipoConsulta.CND_FEDERAL: "CND Federal",
    TipoConsulta.CND_ESTADUAL: "CND Estadual",
    TipoConsulta.FGTS: "FGTS",
}

STATUS_TERMINAIS = (StatusConsulta.CONCLUIDO, StatusConsulta.ERRO)


# ------------------------------------------------------------------
# CLIENTE
# ------------------------------------------------------------------

@dataclass
class Cliente:
    """
    Cliente do escritório (empresa monitorada).

    `inscricao_estadual` é obrigatória apenas para a CND Estadual.
    """

    id: str
    razao_social: str
    cnpj: str
    inscricao_estadual: Optional[str] = None
    ativo: bool = True
    status_fiscal: Veredito = Veredito.INDEFINIDO

    @classmethod
    def de_registro(cls, row: Dict[str, Any]) -> "Cliente":
        return cls(
            id=str(row["id"]),
            razao_social=safe_str(row.get("razao_social")),
            cnpj=safe_str(row.get("cnpj")),
            inscricao_estadual=row.get("inscricao_estadual_pr") or None,
            ativo=bool(row.get("ativo", True)),
            status_fiscal=Veredito(row.get("status_fiscal") or Veredito.INDEFINIDO.value),
        )


# ------------------------------------------------------------------
# CONSULTA
# ------------------------------------------------------------------

@dataclass
class Consulta:
    """
    Uma tentativa de obter uma certidão para um cliente e um tipo.

    Invariantes:
    - veredito presente se e somente se status == CONCLUIDO
    - mensagem_erro presente se e somente se status == ERRO
    - tentativas >= 1, incrementado apenas em retentativa
    """

    cliente_id: str
    tipo: TipoConsulta
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: StatusConsulta = StatusConsulta.PENDENTE
    veredito: Optional[Veredito] = None
    resultado: Dict[str, Any] = field(default_factory=dict)
    pdf_url: Optional[str] = None
    data_validade: Optional[str] = None
    mensagem_erro: Optional[str] = None
    motivo_falha: Optional[MotivoFalha] = None
    tentativas: int = 1
    created_at: datetime = field(default_factory=agora_utc)
    data_execucao: Optional[datetime] = None

    @property
    def terminal(self) -> bool:
        return self.status in STATUS_TERMINAIS

    @property
    def regular(self) -> bool:
        return self.status == StatusConsulta.CONCLUIDO and self.veredito == Veredito.REGULAR

    def como_registro(self) -> Dict[str, Any]:
        """Converte para o formato das colunas da tabela `consultas`."""
        return {
            "id": self.id,
            "cliente_id": self.cliente_id,
            "tipo": self.tipo.value,
            "status": self.status.value,
            "situacao": self.veredito.value if self.veredito else None,
            "resultado": self.resultado,
            "pdf_url": self.pdf_url,
            "data_validade": self.data_validade,
            "mensagem_erro": self.mensagem_erro,
            "motivo_falha": self.motivo_falha.value if self.motivo_falha else None,
            "tentativas": self.tentativas,
            "created_at": self.created_at.isoformat(),
            "data_execucao": self.data_execucao.isoformat() if self.data_execucao else None,
        }

    @classmethod
    def de_registro(cls, row: Dict[str, Any]) -> "Consulta":
        situacao = row.get("situacao")
        motivo = row.get("motivo_falha")
        return cls(
            id=str(row["id"]),
            cliente_id=str(row["cliente_id"]),
            tipo=TipoConsulta(row["tipo"]),
            status=StatusConsulta(row["status"]),
            veredito=Veredito(situacao) if situacao in {v.value for v in Veredito} else None,
            resultado=row.get("resultado") or {},
            pdf_url=row.get("pdf_url"),
            data_validade=row.get("data_validade"),
            mensagem_erro=row.get("mensagem_erro"),
            motivo_falha=MotivoFalha(motivo) if motivo else None,
            tentativas=int(row.get("tentativas") or 1),
            created_at=_parse_datetime(row.get("created_at")) or agora_utc(),
            data_execucao=_parse_datetime(row.get("data_execucao")),
        )


# ------------------------------------------------------------------
# SITUAÇÃO CONSOLIDADA E LOGS
# ------------------------------------------------------------------

@dataclass
class SituacaoFiscalCliente:
    """
    Resumo derivado por cliente. REGULAR apenas se a última consulta de
    todos os tipos for REGULAR.
    """

    cliente_id: str
    veredito: Veredito
    por_tipo: Dict[TipoConsulta, Optional[Veredito]] = field(default_factory=dict)

    def tipos_pendentes(self) -> List[TipoConsulta]:
        """Tipos que impedem a situação regular."""
        return [tipo for tipo, v in self.por_tipo.items() if v != Veredito.REGULAR]


@dataclass
class RegistroLog:
    """Linha da tabela `logs_execucao`."""

    consulta_id: Optional[str]
    nivel: str
    mensagem: str
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=agora_utc)

    def como_registro(self) -> Dict[str, Any]:
        return {
            "consulta_id": self.consulta_id,
            "nivel": self.nivel,
            "mensagem": self.mensagem,
            "payload": self.payload,
        }
