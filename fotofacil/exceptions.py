"""
FotoFacil Exceptions — Exceções específicas do FotoFacil.

Todas as exceções seguem o padrão:
- code: Código máquina do erro (ex.: "date_out_of_window", "chunk_too_large")
- message: Mensagem legível para humanos (mostrada à loja/gestor)
- context: Dados adicionais sobre o erro
"""

from __future__ import annotations


class FotofacilError(Exception):
    """
    Classe base para todas as exceções do FotoFacil.

    Attributes:
        code: Código máquina do erro
        message: Mensagem legível para humanos
        context: Dados adicionais sobre o erro
    """

    def __init__(self, code: str = "error", message: str = "", context: dict | None = None):
        self.code = code
        self.message = message
        self.context = context or {}
        super().__init__(message)


class ValidationError(FotofacilError):
    """
    Erro de validação de entrada.

    Codes: "invalid_date", "date_out_of_window", "unknown_slot", "invalid_range",
    "chunk_size_mismatch", "chunk_too_large", "total_mismatch", "duplicate_weekday",
    "invalid_weekday", "invalid_replace_file", "file_too_large"
    """


class AccessDenied(FotofacilError):
    """
    Erro de autorização (conta ou loja não conferem).

    Codes: "account_mismatch", "store_forbidden", "cluster_forbidden", "global_forbidden"
    """


class UploadTokenError(FotofacilError):
    """
    Token de capacidade inválido.

    Codes: "invalid_token", "expired_token", "wrong_token_type"
    """


class DestinationMismatch(FotofacilError):
    """
    Arquivo remoto não corresponde ao destino prometido pelo token.

    Codes: "unverifiable_file", "filename_mismatch", "folder_mismatch", "invalid_upload_day"
    """


class StorageError(FotofacilError):
    """
    Falha no armazenamento remoto (Drive).

    Codes: "drive_not_configured", "upstream_error"

    Attributes:
        upstream_status: Status HTTP devolvido pelo armazenamento, se houver
    """

    def __init__(
        self,
        code: str = "upstream_error",
        message: str = "",
        context: dict | None = None,
        upstream_status: int | None = None,
    ):
        super().__init__(code=code, message=message, context=context)
        self.upstream_status = upstream_status


class NotFound(FotofacilError):
    """
    Recurso não encontrado.

    Codes: "file_not_found", "store_not_found", "cluster_not_found", "day_not_found"
    """
