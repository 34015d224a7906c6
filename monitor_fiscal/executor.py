# monitor_fiscal/executor.py
"""
Execução de uma consulta fiscal (cliente x tipo).

Fluxo:
1. Cria o registro em `processando` antes de chamar o provedor, para que uma
   queda no meio da chamada deixe rastro.
2. Verifica pré-condições (CNPJ, Inscrição Estadual para a CND Estadual).
3. Chama o provedor com timeout, confere a integridade do CNPJ devolvido e
   classifica o texto da certidão.
4. Em falha transitória, retenta até 3 tentativas no total.
5. Grava o estado terminal e recalcula a situação do cliente.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .agregador import AgregadorStatusCliente
from .armazenamento import ArmazenamentoConsultas
from .classificador import classificar
from .config import Configuracao
from .erros import ErroIntegridade, ErroProvedor, PrecondicaoAusente
from .modelos import (
    Cliente,
    Consulta,
    MotivoFalha,
    RegistroLog,
    StatusConsulta,
    TipoConsulta,
    agora_utc,
)
from .provedores.base import ProvedorConsulta, RespostaProvedor
from .utils import converter_data_br_para_iso, normalize_text, safe_str, somente_digitos

logger = logging.getLogger(__name__)

MAX_TENTATIVAS = 3
MENSAGEM_TRAVADA = "Timeout (processo interrompido)"


# ==============================================================================
# EXTRAÇÃO DOS CAMPOS DA RESPOSTA
# ==============================================================================

def extrair_textos(item: Dict[str, Any]) -> Tuple[str, str]:
    """Retorna (texto principal, texto secundário) do primeiro item da resposta."""
    principal = item.get("situacao") or item.get("certidao") or item.get("mensagem") or ""
    secundario = item.get("emitida_as") or ""
    return normalize_text(principal), normalize_text(secundario)


def extrair_pdf_url(item: Dict[str, Any]) -> Optional[str]:
    url = item.get("site_receipt") or item.get("pdf_url")
    if isinstance(url, list):
        url = url[0] if url else None
    return safe_str(url) or None


def verificar_integridade(cnpj_solicitado: str, resposta: RespostaProvedor) -> None:
    """
    Levanta ErroIntegridade se o provedor devolveu o documento de outro CNPJ.
    CNPJ ausente na resposta não é considerado violação.
    """
    retornado = somente_digitos(resposta.primeiro_item.get("cnpj"))
    if retornado and retornado != cnpj_solicitado:
        raise ErroIntegridade(cnpj_solicitado, retornado)


# ==============================================================================
# EXECUTOR
# ==============================================================================

class ExecutorConsulta:
    """Único escritor dos estados terminais de `Consulta`."""

    def __init__(
        self,
        provedor: ProvedorConsulta,
        armazenamento: ArmazenamentoConsultas,
        agregador: Optional[AgregadorStatusCliente] = None,
        config: Optional[Configuracao] = None,
        *,
        espera: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        relogio: Callable[[], datetime] = agora_utc,
    ) -> None:
        self.provedor = provedor
        self.armazenamento = armazenamento
        self.agregador = agregador or AgregadorStatusCliente(armazenamento)
        self.config = config or Configuracao()
        self._espera = espera
        self._relogio = relogio

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _timeout(self, tipo: TipoConsulta) -> float:
        if tipo == TipoConsulta.FGTS:
            return self.config.timeout_fgts
        return self.config.timeout_padrao

    @staticmethod
    def _campos(cliente: Cliente, tipo: TipoConsulta) -> Dict[str, str]:
        cnpj = somente_digitos(cliente.cnpj)
        if not cnpj:
            raise PrecondicaoAusente("Sem CNPJ cadastrado (N/A)")
        campos = {"cnpj": cnpj}
        if tipo == TipoConsulta.CND_ESTADUAL:
            inscricao = safe_str(cliente.inscricao_estadual).strip()
            if not inscricao:
                raise PrecondicaoAusente("Sem Inscrição Estadual (N/A)")
            campos["inscricao_estadual"] = inscricao
        return campos

    def _log(self, consulta: Consulta, nivel: str, mensagem: str, **payload: Any) -> None:
        """Grava em `logs_execucao`. Falha na gravação não interrompe a consulta."""
        try:
            self.armazenamento.registrar_log(
                RegistroLog(consulta_id=consulta.id, nivel=nivel, mensagem=mensagem, payload=payload)
            )
        except Exception:
            logger.exception("❌ Falha ao gravar log de execução da consulta %s", consulta.id)

    def _concluir(self, consulta: Consulta, resposta: RespostaProvedor) -> None:
        item = resposta.primeiro_item
        principal, secundario = extrair_textos(item)
        consulta.status = StatusConsulta.CONCLUIDO
        consulta.veredito = classificar(principal, secundario)
        consulta.resultado = resposta.bruto
        consulta.pdf_url = extrair_pdf_url(item)
        consulta.data_validade = converter_data_br_para_iso(item.get("validade"))
        consulta.mensagem_erro = None
        consulta.motivo_falha = None
        consulta.data_execucao = self._relogio()

    def _falhar(self, consulta: Consulta, mensagem: str, motivo: MotivoFalha) -> None:
        consulta.status = StatusConsulta.ERRO
        consulta.veredito = None
        consulta.resultado = {"error": mensagem}
        consulta.mensagem_erro = mensagem
        consulta.motivo_falha = motivo
        consulta.data_execucao = self._relogio()

    def _finalizar(self, cliente: Cliente, consulta: Consulta) -> Consulta:
        self.armazenamento.atualizar_consulta(consulta)
        self.agregador.recalcular(cliente.id)
        return consulta

    # ------------------------------------------------------------------
    # operações públicas
    # ------------------------------------------------------------------
    async def executar(self, cliente: Cliente, tipo: TipoConsulta) -> Consulta:
        """
        Executa a consulta e devolve o registro em estado terminal.
        Nenhuma falha de consulta é propagada: tudo vira estado da consulta.
        """
        consulta = self.armazenamento.criar_consulta(
            Consulta(
                cliente_id=cliente.id,
                tipo=tipo,
                status=StatusConsulta.PROCESSANDO,
                tentativas=1,
                created_at=self._relogio(),
            )
        )

        try:
            campos = self._campos(cliente, tipo)
        except PrecondicaoAusente as exc:
            logger.info("ℹ️ %s: %s ignorada (%s)", cliente.razao_social, tipo.value, exc)
            self._falhar(consulta, str(exc), MotivoFalha.PRECONDICAO_AUSENTE)
            return self._finalizar(cliente, consulta)

        while True:
            try:
                resposta = await asyncio.wait_for(
                    self.provedor.consultar(tipo, campos), timeout=self._timeout(tipo)
                )
                verificar_integridade(campos["cnpj"], resposta)
            except ErroIntegridade as exc:
                logger.error("❌ %s: %s", cliente.razao_social, exc)
                self._falhar(consulta, str(exc), MotivoFalha.INTEGRIDADE)
                self._log(consulta, "erro", f"Integridade violada na consulta {tipo.value} de {cliente.razao_social}",
                          error=str(exc), solicitado=exc.solicitado, retornado=exc.retornado)
                break
            except asyncio.TimeoutError:
                erro = f"Timeout após {self._timeout(tipo):.0f}s aguardando o provedor"
            except ErroProvedor as exc:
                erro = str(exc)
            except Exception as exc:
                logger.exception("Erro inesperado consultando %s para %s", tipo.value, cliente.razao_social)
                erro = f"Erro inesperado: {exc}"
            else:
                self._concluir(consulta, resposta)
                logger.info(
                    "✅ %s: %s concluída (%s) na tentativa %d",
                    cliente.razao_social, tipo.value, consulta.veredito.value.upper(), consulta.tentativas,
                )
                break

            if consulta.tentativas < MAX_TENTATIVAS:
                logger.warning(
                    "⚠️ Tentativa %d falhou para %s (%s): %s. Retentando...",
                    consulta.tentativas, cliente.razao_social, tipo.value, erro,
                )
                self._log(consulta, "aviso", f"Tentativa {consulta.tentativas} falhou para {cliente.razao_social}. Retentando...",
                          error=erro)
                await self._espera(self.config.espera_retentativa)
                consulta.tentativas += 1
                self.armazenamento.atualizar_consulta(consulta)
                continue

            logger.error("❌ Consulta %s para %s falhou após %d tentativas: %s",
                         tipo.value, cliente.razao_social, consulta.tentativas, erro)
            self._falhar(consulta, erro, MotivoFalha.FALHA_PROVEDOR)
            self._log(consulta, "erro", f"Consulta {tipo.value} para {cliente.razao_social} falhou após {consulta.tentativas} tentativas",
                      error=erro)
            break

        return self._finalizar(cliente, consulta)

    def encerrar_travadas(self, limite_minutos: int = 10) -> List[Consulta]:
        """
        Marca como erro as consultas presas em `processando` há mais de
        `limite_minutos` (ex: processo interrompido no meio da chamada).
        """
        antes_de = self._relogio() - timedelta(minutes=limite_minutos)
        encerradas = []
        for consulta in self.armazenamento.listar_travadas(antes_de):
            self._falhar(consulta, MENSAGEM_TRAVADA, MotivoFalha.FALHA_PROVEDOR)
            self.armazenamento.atualizar_consulta(consulta)
            encerradas.append(consulta)

        for cliente_id in {c.cliente_id for c in encerradas}:
            self.agregador.recalcular(cliente_id)

        if encerradas:
            logger.warning("⚠️ %d consulta(s) travada(s) encerrada(s) como erro", len(encerradas))
        return encerradas
