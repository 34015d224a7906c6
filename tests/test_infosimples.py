# tests/test_infosimples.py
"""
Testes do cliente InfoSimples com httpx.MockTransport.
"""

import json
import unittest

import httpx

from monitor_fiscal.erros import ErroProvedor
from monitor_fiscal.modelos import TipoConsulta
from monitor_fiscal.provedores import ENDPOINTS, InfoSimplesProvider, mensagem_codigo

CAMPOS = {"cnpj": "05718417000108", "inscricao_estadual": "9012345678"}


def _provedor(handler):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return InfoSimplesProvider("TOKEN-ABCD", api_base="https://api.teste.local", http_client=http_client), http_client


class TestRequisicao(unittest.IsolatedAsyncioTestCase):

    async def test_corpo_e_endpoint(self):
        capturado = {}

        def handler(request: httpx.Request) -> httpx.Response:
            capturado["url"] = str(request.url)
            capturado["body"] = json.loads(request.content.decode("utf-8"))
            return httpx.Response(200, json={"code": 200, "data": [{"situacao": "Regular"}]})

        provedor, http_client = _provedor(handler)
        async with http_client:
            resposta = await provedor.consultar(TipoConsulta.CND_FEDERAL, CAMPOS)

        self.assertEqual(capturado["url"], "https://api.teste.local" + ENDPOINTS[TipoConsulta.CND_FEDERAL])
        self.assertEqual(capturado["body"], {"token": "TOKEN-ABCD", "cnpj": "05718417000108", "timeout": 60})
        self.assertEqual(resposta.codigo, 200)
        self.assertEqual(resposta.primeiro_item, {"situacao": "Regular"})
        self.assertEqual(resposta.bruto["data"][0]["situacao"], "Regular")

    async def test_estadual_envia_inscricao(self):
        corpos = []

        def handler(request):
            corpos.append(json.loads(request.content.decode("utf-8")))
            return httpx.Response(200, json={"code": 200, "data": [{"certidao": "Negativa"}]})

        provedor, http_client = _provedor(handler)
        async with http_client:
            await provedor.consultar(TipoConsulta.CND_ESTADUAL, CAMPOS)
            await provedor.consultar(TipoConsulta.FGTS, CAMPOS)

        self.assertEqual(corpos[0]["inscricao_estadual"], "9012345678")
        self.assertNotIn("inscricao_estadual", corpos[1])
        self.assertEqual(corpos[1]["timeout"], 120)

    def test_token_obrigatorio(self):
        with self.assertRaises(ValueError):
            InfoSimplesProvider("  ")


class TestFalhas(unittest.IsolatedAsyncioTestCase):

    async def _consultar(self, handler):
        provedor, http_client = _provedor(handler)
        async with http_client:
            return await provedor.consultar(TipoConsulta.FGTS, CAMPOS)

    async def test_codigo_maior_ou_igual_a_600(self):
        with self.assertRaises(ErroProvedor) as ctx:
            await self._consultar(lambda r: httpx.Response(200, json={"code": 612, "data": [{"situacao": "Regular"}]}))
        self.assertEqual(ctx.exception.codigo, 612)
        self.assertEqual(str(ctx.exception), "Site da Caixa (FGTS) indisponível")

    async def test_resposta_sem_dados(self):
        with self.assertRaises(ErroProvedor) as ctx:
            await self._consultar(lambda r: httpx.Response(200, json={"code": 200, "data": []}))
        self.assertIn("não retornou dados", str(ctx.exception))

    async def test_http_500(self):
        with self.assertRaises(ErroProvedor) as ctx:
            await self._consultar(lambda r: httpx.Response(500, text="erro interno"))
        self.assertEqual(ctx.exception.status_http, 500)

    async def test_http_401(self):
        with self.assertRaises(ErroProvedor) as ctx:
            await self._consultar(lambda r: httpx.Response(401, json={}))
        self.assertIn("token", str(ctx.exception))

    async def test_mensagem_da_api_no_erro_http(self):
        with self.assertRaises(ErroProvedor) as ctx:
            await self._consultar(lambda r: httpx.Response(400, json={"errors": [{"message": "CNPJ inválido"}]}))
        self.assertEqual(str(ctx.exception), "(400) CNPJ inválido")

    async def test_falha_de_rede(self):
        def handler(request):
            raise httpx.ConnectError("conexão recusada", request=request)

        with self.assertRaises(ErroProvedor) as ctx:
            await self._consultar(handler)
        self.assertIn("Falha de rede", str(ctx.exception))

    async def test_timeout_de_rede(self):
        def handler(request):
            raise httpx.ReadTimeout("demorou", request=request)

        with self.assertRaises(ErroProvedor) as ctx:
            await self._consultar(handler)
        self.assertIn("Timeout", str(ctx.exception))

    async def test_json_malformado(self):
        with self.assertRaises(ErroProvedor):
            await self._consultar(lambda r: httpx.Response(200, text="<html>"))


class TestMensagens(unittest.TestCase):

    def test_codigos_conhecidos(self):
        self.assertEqual(mensagem_codigo(603), "Saldo insuficiente (InfoSimples)")
        self.assertEqual(mensagem_codigo(615), "Dados inválidos (verifique a I.E.)")
        self.assertEqual(mensagem_codigo(699), "Erro API 699")
        self.assertEqual(mensagem_codigo(None), "Falha na análise")


if __name__ == '__main__':
    unittest.main()
