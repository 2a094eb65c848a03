"""
SANITIZAÇÃO DE INPUTS
=====================================================
Funções centralizadas para sanitizar nomes de ficheiros de download
(Content-Disposition) e termos de pesquisa vindos da query string.
"""

import re
import logging
import unicodedata

from apoio_factual.config import SEARCH_QUERY_MAX

logger = logging.getLogger(__name__)

# Caracteres proibidos em nomes de ficheiros (path traversal + especiais)
_UNSAFE_FILENAME_CHARS = re.compile(r'[/\\<>:"|?*\x00-\x1f;]')
_WHITESPACE = re.compile(r"\s+")


def sanitize_download_name(name: str, default: str = "export") -> str:
    """
    Produz um nome de ficheiro seguro para o header Content-Disposition.

    Remove acentos (o header é latin-1), caracteres perigosos e espaços,
    e limita o tamanho a 100 caracteres. Nunca devolve string vazia.

    Args:
        name: Nome desejado (ex: título do dossiê)
        default: Nome a usar se o resultado ficar vazio

    Returns:
        Nome sanitizado, sem extensão
    """
    if not name or not isinstance(name, str):
        return default

    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    safe_name = _UNSAFE_FILENAME_CHARS.sub("_", ascii_name)
    safe_name = _WHITESPACE.sub("_", safe_name.strip())
    # Remover pontos iniciais (ficheiros ocultos) e sequências ".."
    safe_name = safe_name.replace("..", "_").lstrip(".")

    if safe_name != name:
        logger.debug(f"[SANITIZE] Nome de download ajustado: {name!r} -> {safe_name!r}")

    return safe_name[:100] or default


def sanitize_search_query(query: str | None) -> str:
    """Normaliza um termo de pesquisa: trim, lower-case, tamanho máximo."""
    if not query:
        return ""
    return query.strip().lower()[:SEARCH_QUERY_MAX]
