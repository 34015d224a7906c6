# tests/test_config.py
"""
Testes da leitura de configuração do ambiente.
"""

import os
import unittest
from unittest import mock

from monitor_fiscal.config import INFOSIMPLES_BASE_URL, Configuracao
from monitor_fiscal.erros import ConfiguracaoAusente


class TestConfiguracao(unittest.TestCase):

    def _carregar(self, ambiente):
        with mock.patch.dict(os.environ, ambiente, clear=True), \
                mock.patch("monitor_fiscal.config.load_dotenv"):
            return Configuracao.from_env()

    def test_padroes(self):
        config = self._carregar({})
        self.assertIsNone(config.infosimples_token)
        self.assertEqual(config.infosimples_base_url, INFOSIMPLES_BASE_URL)
        self.assertEqual(config.intervalo_entre_consultas, 3.0)
        self.assertEqual(config.espera_retentativa, 5.0)
        self.assertEqual(config.tamanho_log_lote, 5)

    def test_valores_do_ambiente(self):
        config = self._carregar({
            "INFOSIMPLES_TOKEN": "  abc123  ",
            "SUPABASE_URL": "https://exemplo.supabase.co",
            "SUPABASE_SERVICE_ROLE_KEY": "chave",
            "MONITOR_INTERVALO_SEGUNDOS": "1.5",
            "MONITOR_LOG_TAMANHO": "10",
        })
        self.assertEqual(config.infosimples_token, "abc123")
        self.assertEqual(config.supabase_url, "https://exemplo.supabase.co")
        self.assertEqual(config.intervalo_entre_consultas, 1.5)
        self.assertEqual(config.tamanho_log_lote, 10)

    def test_valor_invalido_usa_padrao(self):
        with self.assertLogs("monitor_fiscal.config", level="WARNING"):
            config = self._carregar({"MONITOR_ESPERA_RETENTATIVA": "cinco"})
        self.assertEqual(config.espera_retentativa, 5.0)

    def test_exigir_token(self):
        with self.assertRaises(ConfiguracaoAusente):
            Configuracao().exigir_token()
        self.assertEqual(Configuracao(infosimples_token="t").exigir_token(), "t")


if __name__ == '__main__':
    unittest.main()
