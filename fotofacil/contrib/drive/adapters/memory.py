"""
Memory Drive Backend — Para desenvolvimento e testes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

from fotofacil.exceptions import StorageError
from fotofacil.protocols import FOLDER_MIME_TYPE, ChunkResult, StoredFile


@dataclass
class _ResumableSession:
    parent_id: str
    name: str
    mime_type: str
    total_bytes: int
    data: bytearray = field(default_factory=bytearray)
    file_id: str | None = None


class MemoryDriveBackend:
    """
    Backend em memória com a mesma semântica resumível do Drive.

    - Chunk com offset à frente do já recebido não avança; a resposta
      informa o offset real (como um 308 com Range).
    - Reenvio de um intervalo já recebido sobrescreve os mesmos bytes.

    Uso:
        backend = MemoryDriveBackend()
        url = backend.create_resumable_session(parent_id="root", name="a.mp4",
                                               mime_type="video/mp4", total_bytes=10)
        backend.put_chunk(session_url=url, data=b"0123456789", start=0,
                          end_exclusive=10, total_bytes=10, mime_type="video/mp4")

    Para simular falhas de upstream, defina `fail_status` (ex.: 403).
    """

    def __init__(self, *, root_folder_id: str = "root"):
        self.root_folder_id = root_folder_id
        self.files: dict[str, StoredFile] = {}
        self.contents: dict[str, bytes] = {}
        self.sessions: dict[str, _ResumableSession] = {}
        self.fail_status: int | None = None

    def _new_id(self) -> str:
        return f"mem_{uuid4().hex[:16]}"

    def _maybe_fail(self, operation: str) -> None:
        if self.fail_status is not None:
            raise StorageError(
                message=f"Google Drive rechazó {operation} ({self.fail_status})",
                context={"operation": operation},
                upstream_status=self.fail_status,
            )

    def _store(self, *, parent_id: str, name: str, mime_type: str, data: bytes) -> StoredFile:
        file_id = self._new_id()
        stored = StoredFile(
            id=file_id,
            name=name,
            mime_type=mime_type,
            parents=[parent_id],
            size=len(data),
            web_view_link=f"https://drive.google.com/file/d/{file_id}/view",
        )
        self.files[file_id] = stored
        self.contents[file_id] = bytes(data)
        return stored

    def find_folder(self, parent_id: str, name: str) -> str | None:
        self._maybe_fail("find_folder")
        for stored in self.files.values():
            if stored.mime_type == FOLDER_MIME_TYPE and stored.name == name and parent_id in stored.parents:
                return stored.id
        return None

    def create_folder(self, parent_id: str, name: str) -> str:
        self._maybe_fail("create_folder")
        folder_id = self._new_id()
        self.files[folder_id] = StoredFile(id=folder_id, name=name, mime_type=FOLDER_MIME_TYPE, parents=[parent_id])
        return folder_id

    def upload_bytes(self, *, parent_id: str, name: str, mime_type: str, data: bytes) -> StoredFile:
        self._maybe_fail("upload")
        return self._store(parent_id=parent_id, name=name, mime_type=mime_type, data=data)

    def create_resumable_session(self, *, parent_id: str, name: str, mime_type: str, total_bytes: int) -> str:
        self._maybe_fail("resumable_init")
        url = f"memory://upload/{uuid4().hex}"
        self.sessions[url] = _ResumableSession(
            parent_id=parent_id,
            name=name,
            mime_type=mime_type,
            total_bytes=total_bytes,
        )
        return url

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
        self._maybe_fail("chunk")
        session = self.sessions.get(session_url)
        if session is None:
            raise StorageError(message="Sesión de subida desconocida", upstream_status=404)
        if session.file_id:
            return ChunkResult(done=True, uploaded_bytes=session.total_bytes, file_id=session.file_id)

        received = len(session.data)
        if start > received:
            return ChunkResult(done=False, uploaded_bytes=received)

        session.data[start:end_exclusive] = data
        if len(session.data) < session.total_bytes:
            return ChunkResult(done=False, uploaded_bytes=len(session.data))

        stored = self._store(
            parent_id=session.parent_id,
            name=session.name,
            mime_type=session.mime_type,
            data=bytes(session.data[: session.total_bytes]),
        )
        session.file_id = stored.id
        return ChunkResult(done=True, uploaded_bytes=session.total_bytes, file_id=stored.id)

    def get_file_meta(self, file_id: str) -> StoredFile:
        self._maybe_fail("get_file")
        stored = self.files.get(file_id)
        if stored is None:
            raise StorageError(message="Archivo no encontrado en Drive", upstream_status=404)
        return stored

    def delete_file(self, file_id: str) -> None:
        self._maybe_fail("delete")
        self.files.pop(file_id, None)
        self.contents.pop(file_id, None)
