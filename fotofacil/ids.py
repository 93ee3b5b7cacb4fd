"""
FotoFacil IDs — Geração de identificadores e nomes de arquivo.
"""

from __future__ import annotations

import re
import secrets
import string


# Caracteres seguros para IDs (sem ambíguos: 0/O, 1/l/I)
_SAFE_CHARS = string.ascii_uppercase.replace("O", "").replace("I", "") + string.digits.replace("0", "").replace("1", "")

_WHITESPACE_RE = re.compile(r"\s+")


def _generate_id(prefix: str, length: int = 8) -> str:
    """
    Gera um ID único com prefixo.

    Args:
        prefix: Prefixo do ID (ex.: "VG")
        length: Comprimento da parte aleatória

    Returns:
        ID no formato PREFIX-XXXXXXXX
    """
    random_part = "".join(secrets.choice(_SAFE_CHARS) for _ in range(length))
    return f"{prefix}-{random_part}"


def generate_version_group_id() -> str:
    """
    Gera ID estável de grupo de versões (substituições do mesmo arquivo).

    Formato: VG-XXXXXXXXXXXXXXXX
    """
    return _generate_id("VG", 16)


def normalize_slot_name(raw: str | None, default: str = "VIDEO") -> str:
    """Slot em maiúsculas, espaços → "_". Vazio cai no default."""
    base = str(raw or "").strip().upper()
    return _WHITESPACE_RE.sub("_", base) if base else default


def extension_from_filename(name: str) -> str:
    parts = (name or "").split(".")
    if len(parts) < 2:
        return ""
    return parts[-1].lower()


def build_final_filename(store_code: str, date_key: str, slot_name: str, sequence: int, extension: str) -> str:
    """
    Nome final do arquivo no Drive.

    Formato: {loja}_{YYYY-MM-DD}_{SLOT}_{NN}.{ext}
    """
    return f"{store_code}_{date_key}_{slot_name}_{sequence:02d}.{extension}"
