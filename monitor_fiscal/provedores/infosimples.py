# monitor_fiscal/provedores/infosimples.py
"""
Integração com a API de consultas da InfoSimples (CND Federal, SEFAZ/PR e FGTS).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..erros import ErroProvedor
from ..modelos import TipoConsulta
from ..utils import mascarar_token
from .base import RespostaProvedor

logger = logging.getLogger(__name__)


ENDPOINTS: Dict[TipoConsulta, str] = {
    TipoConsulta.CND_FEDERAL: "/api/v2/consultas/receita-federal/pgfn/nova",
    TipoConsulta.CND_ESTADUAL: "/api/v2/consultas/sefaz/pr/certidao-debitos",
    TipoConsulta.FGTS: "/api/v2/consultas/caixa/regularidade",
}

# Timeout repassado ao provedor (segundos). O site da Caixa é mais lento.
TIMEOUT_PROVEDOR: Dict[TipoConsulta, int] = {
    TipoConsulta.CND_FEDERAL: 60,
    TipoConsulta.CND_ESTADUAL: 60,
    TipoConsulta.FGTS: 120,
}

MENSAGENS_CODIGO: Dict[int, str] = {
    603: "Saldo insuficiente (InfoSimples)",
    604: "Timeout/instabilidade do site do governo",
    612: "Site da Caixa (FGTS) indisponível",
    615: "Dados inválidos (verifique a I.E.)",
}


def mensagem_codigo(codigo: Optional[int]) -> str:
    """Mensagem legível para os códigos de falha do provedor."""
    if codigo is None:
        return "Falha na análise"
    return MENSAGENS_CODIGO.get(codigo, f"Erro API {codigo}")


def _mensagem_http(response: httpx.Response) -> str:
    status = response.status_code
    mensagem_api = None
    try:
        corpo = response.json()
    except ValueError:
        corpo = None
    if isinstance(corpo, dict):
        erros = corpo.get("errors")
        mensagem_api = corpo.get("message") or (
            erros[0].get("message") if isinstance(erros, list) and erros and isinstance(erros[0], dict) else None
        )
    if mensagem_api:
        return f"({status}) {mensagem_api}"
    if status in (401, 403):
        return f"({status}) Erro de token/autenticação"
    if status == 404:
        return "(404) Endpoint não encontrado"
    return f"({status}) Erro HTTP do provedor"


class InfoSimplesProvider:
    """Cliente assíncrono para a API v2 da InfoSimples."""

    def __init__(
        self,
        token: str,
        *,
        api_base: str = "https://api.infosimples.com",
        timeout: float = 150.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not token or not token.strip():
            raise ValueError("token é obrigatório")
        self._token = token.strip()
        self._api_base = api_base.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._owns_client = http_client is None

    async def __aenter__(self) -> "InfoSimplesProvider":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _montar_corpo(self, tipo: TipoConsulta, campos: Dict[str, str]) -> Dict[str, Any]:
        corpo: Dict[str, Any] = {
            "token": self._token,
            "cnpj": campos["cnpj"],
            "timeout": TIMEOUT_PROVEDOR[tipo],
        }
        if tipo == TipoConsulta.CND_ESTADUAL:
            corpo["inscricao_estadual"] = campos["inscricao_estadual"]
        return corpo

    async def consultar(self, tipo: TipoConsulta, campos: Dict[str, str]) -> RespostaProvedor:
        url = f"{self._api_base}{ENDPOINTS[tipo]}"
        logger.info("Consultando %s para CNPJ %s (token %s)", tipo.value, campos.get("cnpj"), mascarar_token(self._token))

        try:
            response = await self._client.post(url, json=self._montar_corpo(tipo, campos))
        except httpx.TimeoutException as exc:
            raise ErroProvedor(f"Timeout na comunicação com o provedor: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ErroProvedor(f"Falha de rede: {exc}") from exc

        if not response.is_success:
            raise ErroProvedor(_mensagem_http(response), status_http=response.status_code)

        try:
            dados = response.json()
        except ValueError as exc:
            raise ErroProvedor("Resposta inválida do provedor (JSON malformado)") from exc
        if not isinstance(dados, dict):
            raise ErroProvedor("Resposta inválida do provedor")

        codigo = dados.get("code")
        if isinstance(codigo, int) and codigo >= 600:
            raise ErroProvedor(mensagem_codigo(codigo), codigo=codigo)

        itens = dados.get("data")
        if not isinstance(itens, list):
            itens = []
        itens = [item for item in itens if isinstance(item, dict)]
        if not itens:
            raise ErroProvedor("Provedor não retornou dados", codigo=codigo if isinstance(codigo, int) else None)

        return RespostaProvedor(codigo=codigo if isinstance(codigo, int) else None, itens=itens, bruto=dados)
