# monitor_fiscal/utils.py
"""
Utilitários compartilhados para normalização de textos, documentos e datas.
"""

import re
import logging
from datetime import date, datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)


def safe_str(x: Any) -> str:
    """
    Converte qualquer valor para string de forma segura.
    Retorna string vazia se None.
    """
    if x is None:
        return ""
    try:
        return str(x)
    except (ValueError, TypeError):
        return ""


def normalize_text(s: Any) -> str:
    """
    Normaliza texto: colapsa espaços, remove quebras excessivas e bordas.
    """
    if not s:
        return ""
    # Remove quebras de linha excessivas
    texto = re.sub(r'\n{3,}', '\n\n', str(s))
    # Colapsa espaços múltiplos
    texto = re.sub(r'[ \t]+', ' ', texto)
    return texto.strip()


def somente_digitos(valor: Any) -> str:
    """
    Remove tudo que não for dígito (CNPJ, CPF, Inscrição Estadual).

    Exemplos:
        '05.718.417/0001-08' -> '05718417000108'
        None -> ''
    """
    return re.sub(r'\D', '', safe_str(valor))


def formatar_cnpj(valor: Any) -> str:
    """
    Formata CNPJ no padrão XX.XXX.XXX/XXXX-XX.
    Se não tiver 14 dígitos, devolve o valor original sem alteração.
    """
    digitos = somente_digitos(valor)
    if len(digitos) != 14:
        return safe_str(valor)
    return f"{digitos[:2]}.{digitos[2:5]}.{digitos[5:8]}/{digitos[8:12]}-{digitos[12:]}"


def converter_data_br_para_iso(valor: Any) -> Optional[str]:
    """
    Converte data 'DD/MM/AAAA' para ISO 'AAAA-MM-DD'.

    Regras:
    - Data já em ISO (AAAA-MM-DD...) é mantida (apenas a parte da data).
    - Datas inexistentes (ex: 31/02/2024) ou formatos desconhecidos retornam None.
    - Nunca inventa um valor: na dúvida, None.
    """
    texto = safe_str(valor).strip()
    if not texto:
        return None

    match_iso = re.match(r'^(\d{4})-(\d{2})-(\d{2})', texto)
    if match_iso:
        try:
            return date(*(int(p) for p in match_iso.groups())).isoformat()
        except ValueError:
            return None

    match_br = re.match(r'^(\d{2})/(\d{2})/(\d{4})$', texto)
    if not match_br:
        return None

    try:
        return datetime.strptime(texto, "%d/%m/%Y").date().isoformat()
    except ValueError:
        logger.debug("Data inválida ignorada: %s", texto)
        return None


def formatar_data_br(valor: Any) -> str:
    """
    Formata datetime/ISO para 'DD/MM/AAAA'. Retorna '—' se ausente ou inválido.
    """
    if not valor:
        return "—"
    if isinstance(valor, datetime):
        return valor.strftime("%d/%m/%Y")
    if isinstance(valor, date):
        return valor.strftime("%d/%m/%Y")
    try:
        return datetime.fromisoformat(str(valor).replace("Z", "+00:00")).strftime("%d/%m/%Y")
    except ValueError:
        return "—"


def mascarar_token(token: Optional[str]) -> str:
    """Mostra apenas os 4 últimos caracteres do token (para logs)."""
    if not token:
        return "NONE"
    return f"...{token.strip()[-4:]}"
