
"""Guardrails simples para texto vindo da UI/HTTP."""
import re

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
MAX_QUERY_LEN = 200

def sanitize_query(text: str | None) -> str:
    """Remove caracteres de controle e limita o tamanho. Espaços são preservados."""
    return CONTROL_CHARS.sub("", text or "")[:MAX_QUERY_LEN]
