# tests/fakes.py
"""
Dublês de teste compartilhados: provedor falso e fábricas de clientes/respostas.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from monitor_fiscal.config import Configuracao
from monitor_fiscal.modelos import Cliente, TipoConsulta
from monitor_fiscal.provedores.base import RespostaProvedor

CNPJ_PADRAO = "05718417000108"


def config_teste(**kwargs: Any) -> Configuracao:
    """Configuração com intervalos padrão; as esperas são injetadas nos testes."""
    return Configuracao(infosimples_token="token-teste-1234", **kwargs)


def cliente_teste(
    cliente_id: str = "c1",
    razao_social: str = "Empresa Teste LTDA",
    cnpj: str = "05.718.417/0001-08",
    inscricao_estadual: Optional[str] = "9012345678",
    ativo: bool = True,
) -> Cliente:
    return Cliente(
        id=cliente_id,
        razao_social=razao_social,
        cnpj=cnpj,
        inscricao_estadual=inscricao_estadual,
        ativo=ativo,
    )


def resposta(situacao: str = "Certidão Negativa de Débitos", **item: Any) -> RespostaProvedor:
    dados_item = {"situacao": situacao, "cnpj": CNPJ_PADRAO}
    dados_item.update(item)
    bruto = {"code": 200, "code_message": "OK", "data": [dados_item]}
    return RespostaProvedor(codigo=200, itens=[dados_item], bruto=bruto)


class ProvedorFalso:
    """
    Provedor que devolve (ou levanta) os itens de `roteiro` em sequência.
    Quando o roteiro acaba, repete o último item.
    """

    def __init__(self, *roteiro: Any, atraso: float = 0.0) -> None:
        self.roteiro: List[Any] = list(roteiro) or [resposta()]
        self.atraso = atraso
        self.chamadas: List[Dict[str, Any]] = []
        self.ao_chamar = None

    async def consultar(self, tipo: TipoConsulta, campos: Dict[str, str]) -> RespostaProvedor:
        self.chamadas.append({"tipo": tipo, **campos})
        if self.ao_chamar is not None:
            self.ao_chamar(tipo, campos)
        if self.atraso:
            await asyncio.sleep(self.atraso)
        indice = min(len(self.chamadas) - 1, len(self.roteiro) - 1)
        item = self.roteiro[indice]
        if isinstance(item, BaseException):
            raise item
        return item


class EsperaFalsa:
    """Substitui asyncio.sleep registrando os segundos pedidos."""

    def __init__(self) -> None:
        self.pedidos: List[float] = []

    async def __call__(self, segundos: float) -> None:
        self.pedidos.append(segundos)
