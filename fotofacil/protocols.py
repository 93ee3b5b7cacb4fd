"""
FotoFacil Core Protocols — Interface para o armazenamento remoto.

O protocol vive no core para que serviços dependam só dele.
Implementações concretas vivem em contrib/drive/adapters/:
- google.py - Google Drive v3 (produção)
- memory.py - em memória (desenvolvimento/testes)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


@dataclass
class StoredFile:
    """Metadados de um arquivo/pasta remoto."""

    id: str
    name: str = ""
    mime_type: str = ""
    parents: list[str] = field(default_factory=list)
    size: int | None = None
    web_view_link: str | None = None


@dataclass
class ChunkResult:
    """
    Resultado de um PUT com Content-Range.

    done=False: armazenamento espera mais dados; `uploaded_bytes` é o
    offset a partir do qual o cliente deve continuar.
    done=True: arquivo completo; `file_id` é o ID remoto.
    """

    done: bool
    uploaded_bytes: int = 0
    file_id: str | None = None


@runtime_checkable
class StorageBackend(Protocol):
    """
    Protocol para backends de armazenamento (Drive).

    Erros de upstream devem virar StorageError com `upstream_status`.
    """

    def find_folder(self, parent_id: str, name: str) -> str | None:
        """ID da pasta `name` dentro de `parent_id`, ou None."""
        ...

    def create_folder(self, parent_id: str, name: str) -> str:
        """Cria pasta e retorna o ID."""
        ...

    def upload_bytes(self, *, parent_id: str, name: str, mime_type: str, data: bytes) -> StoredFile:
        """Upload pequeno em uma única requisição."""
        ...

    def create_resumable_session(self, *, parent_id: str, name: str, mime_type: str, total_bytes: int) -> str:
        """Abre sessão resumível e retorna a URL da sessão."""
        ...

    def put_chunk(
        self,
        *,
        session_url: str,
        data: bytes,
        start: int,
        end_exclusive: int,
        total_bytes: int,
        mime_type: str,
    ) -> ChunkResult:
        """Envia bytes [start, end_exclusive) da sessão."""
        ...

    def get_file_meta(self, file_id: str) -> StoredFile:
        ...

    def delete_file(self, file_id: str) -> None:
        ...
