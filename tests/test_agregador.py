# tests/test_agregador.py
"""
Testes da consolidação da situação fiscal por cliente.
"""

import unittest
from datetime import timedelta

from monitor_fiscal.agregador import AgregadorStatusCliente
from monitor_fiscal.armazenamento import ArmazenamentoMemoria
from monitor_fiscal.modelos import (
    Consulta,
    MotivoFalha,
    StatusConsulta,
    TipoConsulta,
    Veredito,
    agora_utc,
)
from tests.fakes import cliente_teste


def _concluida(tipo, veredito, minutos_atras=0):
    return Consulta(
        cliente_id="c1",
        tipo=tipo,
        status=StatusConsulta.CONCLUIDO,
        veredito=veredito,
        created_at=agora_utc() - timedelta(minutes=minutos_atras),
    )


class TestAgregador(unittest.TestCase):

    def setUp(self):
        self.armazenamento = ArmazenamentoMemoria([cliente_teste()])
        self.agregador = AgregadorStatusCliente(self.armazenamento)

    def _gravar(self, *consultas):
        for consulta in consultas:
            self.armazenamento.criar_consulta(consulta)

    def test_todos_regulares(self):
        self._gravar(*(_concluida(tipo, Veredito.REGULAR) for tipo in TipoConsulta))
        situacao = self.agregador.recalcular("c1")
        self.assertEqual(situacao.veredito, Veredito.REGULAR)
        self.assertEqual(self.armazenamento.obter_cliente("c1").status_fiscal, Veredito.REGULAR)

    def test_um_irregular(self):
        self._gravar(
            _concluida(TipoConsulta.CND_FEDERAL, Veredito.REGULAR),
            _concluida(TipoConsulta.CND_ESTADUAL, Veredito.REGULAR),
            _concluida(TipoConsulta.FGTS, Veredito.IRREGULAR),
        )
        situacao = self.agregador.recalcular("c1")
        self.assertEqual(situacao.veredito, Veredito.IRREGULAR)
        self.assertEqual(situacao.tipos_pendentes(), [TipoConsulta.FGTS])

    def test_tipo_nunca_consultado(self):
        self._gravar(
            _concluida(TipoConsulta.CND_FEDERAL, Veredito.REGULAR),
            _concluida(TipoConsulta.FGTS, Veredito.REGULAR),
        )
        situacao = self.agregador.recalcular("c1")
        self.assertEqual(situacao.veredito, Veredito.IRREGULAR)
        self.assertIsNone(situacao.por_tipo[TipoConsulta.CND_ESTADUAL])

    def test_sem_consultas(self):
        self.assertEqual(self.agregador.recalcular("c1").veredito, Veredito.IRREGULAR)

    def test_consulta_com_erro_conta_como_irregular(self):
        self._gravar(
            _concluida(TipoConsulta.CND_FEDERAL, Veredito.REGULAR),
            _concluida(TipoConsulta.FGTS, Veredito.REGULAR),
            Consulta(
                cliente_id="c1",
                tipo=TipoConsulta.CND_ESTADUAL,
                status=StatusConsulta.ERRO,
                mensagem_erro="Sem Inscrição Estadual (N/A)",
                motivo_falha=MotivoFalha.PRECONDICAO_AUSENTE,
            ),
        )
        self.assertEqual(self.agregador.recalcular("c1").veredito, Veredito.IRREGULAR)

    def test_consulta_em_andamento_conta_como_irregular(self):
        self._gravar(
            *(_concluida(tipo, Veredito.REGULAR, minutos_atras=5) for tipo in TipoConsulta),
            Consulta(cliente_id="c1", tipo=TipoConsulta.FGTS, status=StatusConsulta.PROCESSANDO),
        )
        self.assertEqual(self.agregador.recalcular("c1").veredito, Veredito.IRREGULAR)

    def test_usa_apenas_a_mais_recente(self):
        self._gravar(
            _concluida(TipoConsulta.CND_FEDERAL, Veredito.IRREGULAR, minutos_atras=60),
            _concluida(TipoConsulta.CND_FEDERAL, Veredito.REGULAR, minutos_atras=1),
            _concluida(TipoConsulta.CND_ESTADUAL, Veredito.REGULAR),
            _concluida(TipoConsulta.FGTS, Veredito.REGULAR, minutos_atras=1),
            _concluida(TipoConsulta.FGTS, Veredito.IRREGULAR, minutos_atras=60),
        )
        situacao = self.agregador.recalcular("c1")
        self.assertEqual(situacao.veredito, Veredito.REGULAR)

    def test_idempotente(self):
        self._gravar(
            _concluida(TipoConsulta.CND_FEDERAL, Veredito.REGULAR),
            _concluida(TipoConsulta.FGTS, Veredito.IRREGULAR),
        )
        primeira = self.agregador.recalcular("c1")
        segunda = self.agregador.recalcular("c1")
        self.assertEqual(primeira, segunda)

    def test_situacao_atual_nao_grava(self):
        self._gravar(*(_concluida(tipo, Veredito.REGULAR) for tipo in TipoConsulta))
        situacao = self.agregador.situacao_atual("c1")
        self.assertEqual(situacao.veredito, Veredito.REGULAR)
        self.assertEqual(self.armazenamento.obter_cliente("c1").status_fiscal, Veredito.INDEFINIDO)


if __name__ == '__main__':
    unittest.main()
