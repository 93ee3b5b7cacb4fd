"""
Google Drive Backend — Drive v3 REST via sessão autorizada (google-auth).

Requer: pip install google-auth requests
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from fotofacil.conf import get_fotofacil_setting
from fotofacil.exceptions import StorageError
from fotofacil.protocols import FOLDER_MIME_TYPE, ChunkResult, StoredFile

logger = logging.getLogger(__name__)


DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]
FILES_URL = "https://www.googleapis.com/drive/v3/files"
UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"
FILE_FIELDS = "id,name,mimeType,parents,size,webViewLink"
DEFAULT_TIMEOUT = 60

_RANGE_RE = re.compile(r"bytes=0-(\d+)", re.IGNORECASE)


def parse_last_uploaded_byte(range_header: str | None) -> int | None:
    """
    Último byte confirmado a partir do header Range de um 308.

    "bytes=0-524287" → 524287. Ausente ou malformado → None.
    """
    if not range_header:
        return None
    match = _RANGE_RE.search(range_header)
    if not match:
        return None
    return int(match.group(1))


def _stored_file(data: dict) -> StoredFile:
    size = data.get("size")
    return StoredFile(
        id=str(data.get("id") or ""),
        name=data.get("name") or "",
        mime_type=data.get("mimeType") or "",
        parents=list(data.get("parents") or []),
        size=int(size) if size not in (None, "") else None,
        web_view_link=data.get("webViewLink"),
    )


class GoogleDriveBackend:
    """
    Backend para Google Drive (inclusive unidades compartilhadas).

    Args:
        credentials: Credenciais google-auth já montadas. Se omitidas,
            usa GOOGLE_SERVICE_ACCOUNT_INFO ou GOOGLE_SERVICE_ACCOUNT_FILE
            das settings, com impersonação opcional (GOOGLE_IMPERSONATE_USER).
        session: Sessão HTTP (AuthorizedSession); útil para testes.

    Configuração via settings:
        FOTOFACIL = {
            "STORAGE_BACKEND": "fotofacil.contrib.drive.adapters.google.GoogleDriveBackend",
            "GOOGLE_SERVICE_ACCOUNT_FILE": os.environ["GOOGLE_SERVICE_ACCOUNT_FILE"],
            "GOOGLE_IMPERSONATE_USER": "drive@empresa.es",
        }
    """

    def __init__(self, credentials: Any = None, session: Any = None, timeout: int = DEFAULT_TIMEOUT):
        if session is None:
            session = AuthorizedSession(credentials or self._load_credentials())
        self.session = session
        self.timeout = timeout

    @staticmethod
    def _load_credentials():
        info = get_fotofacil_setting("GOOGLE_SERVICE_ACCOUNT_INFO")
        path = get_fotofacil_setting("GOOGLE_SERVICE_ACCOUNT_FILE")

        if info:
            if isinstance(info, str):
                info = json.loads(info)
            credentials = service_account.Credentials.from_service_account_info(info, scopes=DRIVE_SCOPES)
        elif path:
            credentials = service_account.Credentials.from_service_account_file(path, scopes=DRIVE_SCOPES)
        else:
            raise StorageError(
                code="drive_not_configured",
                message="Credenciales de Google Drive no configuradas",
            )

        subject = get_fotofacil_setting("GOOGLE_IMPERSONATE_USER")
        if subject:
            credentials = credentials.with_subject(subject)
        return credentials

    def _check(self, response, operation: str, ok=(200,)) -> None:
        if response.status_code in ok:
            return
        details = (response.text or "")[:500]
        logger.warning(
            "drive.request_failed",
            extra={"operation": operation, "status": response.status_code},
        )
        raise StorageError(
            message=f"Google Drive rechazó {operation} ({response.status_code}) {details}".strip(),
            context={"operation": operation},
            upstream_status=response.status_code,
        )

    # ------------------------------------------------------------------ folders

    def find_folder(self, parent_id: str, name: str) -> str | None:
        escaped = name.replace("\\", "\\\\").replace("'", "\\'")
        query = " and ".join([
            f"'{parent_id}' in parents",
            f"name = '{escaped}'",
            f"mimeType = '{FOLDER_MIME_TYPE}'",
            "trashed = false",
        ])
        response = self.session.get(
            FILES_URL,
            params={
                "q": query,
                "fields": "files(id,name)",
                "pageSize": 10,
                "includeItemsFromAllDrives": "true",
                "supportsAllDrives": "true",
            },
            timeout=self.timeout,
        )
        self._check(response, "find_folder")
        files = response.json().get("files") or []
        return files[0]["id"] if files else None

    def create_folder(self, parent_id: str, name: str) -> str:
        response = self.session.post(
            FILES_URL,
            params={"fields": "id", "supportsAllDrives": "true"},
            json={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
            timeout=self.timeout,
        )
        self._check(response, "create_folder")
        folder_id = response.json().get("id")
        if not folder_id:
            raise StorageError(message="No se pudo crear la carpeta en Drive", context={"name": name})
        logger.info("drive.folder_created", extra={"parent_id": parent_id, "folder_name": name})
        return folder_id

    # ------------------------------------------------------------------ uploads

    def upload_bytes(self, *, parent_id: str, name: str, mime_type: str, data: bytes) -> StoredFile:
        session_url = self.create_resumable_session(
            parent_id=parent_id,
            name=name,
            mime_type=mime_type,
            total_bytes=len(data),
        )
        response = self.session.put(
            session_url,
            data=data,
            headers={"Content-Type": mime_type or "application/octet-stream"},
            timeout=self.timeout,
        )
        self._check(response, "upload", ok=(200, 201))
        stored = _stored_file(response.json())
        if not stored.id:
            raise StorageError(message="Drive no devolvió el ID del archivo subido")
        return stored

    def create_resumable_session(self, *, parent_id: str, name: str, mime_type: str, total_bytes: int) -> str:
        response = self.session.post(
            UPLOAD_URL,
            params={"uploadType": "resumable", "supportsAllDrives": "true", "fields": FILE_FIELDS},
            headers={
                "X-Upload-Content-Type": mime_type,
                "X-Upload-Content-Length": str(total_bytes),
            },
            json={"name": name, "parents": [parent_id]},
            timeout=self.timeout,
        )
        self._check(response, "resumable_init")
        upload_url = response.headers.get("Location")
        if not upload_url:
            raise StorageError(
                message="Drive no devolvió la URL de sesión resumible",
                upstream_status=response.status_code,
            )
        return upload_url

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
        response = self.session.put(
            session_url,
            data=data,
            headers={
                "Content-Type": mime_type or "application/octet-stream",
                "Content-Range": f"bytes {start}-{end_exclusive - 1}/{total_bytes}",
            },
            timeout=self.timeout,
        )

        if response.status_code == 308:
            last = parse_last_uploaded_byte(response.headers.get("Range"))
            uploaded = end_exclusive if last is None else min(total_bytes, last + 1)
            return ChunkResult(done=False, uploaded_bytes=uploaded)

        self._check(response, "chunk", ok=(200, 201))

        try:
            file_id = response.json().get("id")
        except ValueError:
            file_id = None
        if not file_id:
            raise StorageError(
                message="No se pudo obtener el ID del archivo en Drive tras subir el vídeo",
                upstream_status=response.status_code,
            )
        return ChunkResult(done=True, uploaded_bytes=total_bytes, file_id=file_id)

    # ------------------------------------------------------------------ files

    def get_file_meta(self, file_id: str) -> StoredFile:
        response = self.session.get(
            f"{FILES_URL}/{file_id}",
            params={"fields": FILE_FIELDS, "supportsAllDrives": "true"},
            timeout=self.timeout,
        )
        self._check(response, "get_file")
        return _stored_file(response.json())

    def delete_file(self, file_id: str) -> None:
        response = self.session.delete(
            f"{FILES_URL}/{file_id}",
            params={"supportsAllDrives": "true"},
            timeout=self.timeout,
        )
        # Já removido no Drive
        if response.status_code == 404:
            return
        self._check(response, "delete", ok=(200, 204))
