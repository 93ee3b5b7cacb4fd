"""
FotoFacil Client — Subida de vídeo resumível a partir de scripts ou apps.

Conduz o protocolo de três fases da API:

    POST upload/video/init      → finalize_token
    POST upload/video/chunk     → {done, uploaded_bytes} | {done, drive_file_id}
    POST upload/video/finalize  → registro gravado e status do dia

Uso:
    uploader = VideoUploader("https://fotofacil.example.com/api/", session=session)
    result = uploader.upload(data, filename="loja.mp4", mime_type="video/mp4", date="2026-02-26")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urljoin

import requests


logger = logging.getLogger(__name__)


VIDEO_CHUNK_BYTES = 2 * 1024 * 1024
MAX_STALLED_CHUNKS = 3
DEFAULT_ERROR_MESSAGE = "Error de conexión. Revisa internet e inténtalo de nuevo."

# (data, mime_type, filename) → mesmo formato, ou None se não otimizou
Optimizer = Callable[[bytes, str, str], "tuple[bytes, str, str] | None"]


class UploadClientError(Exception):
    """
    Falha da subida, com mensagem pronta para o usuário.

    Attributes:
        code: Código de erro devolvido pelo servidor (se houver)
        status: Status HTTP (None para falhas de rede)
    """

    def __init__(self, message: str, code: str = "", status: int | None = None):
        self.message = message
        self.code = code
        self.status = status
        super().__init__(message)


@dataclass
class VideoUploadResult:
    payload: dict
    data: bytes
    mime_type: str
    filename: str
    optimized: bool


class VideoUploader:
    """
    Cliente do protocolo de vídeo.

    Falhas de rede são repetidas com espera linear (350ms, 700ms, ...).
    Respostas de erro do servidor não são repetidas: a mensagem do campo
    `message` sobe como UploadClientError.
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        chunk_size: int = VIDEO_CHUNK_BYTES,
        optimizer: Optimizer | None = None,
        on_progress: Callable[[dict], None] | None = None,
        timeout: float = 60,
        backoff_seconds: float = 0.35,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.session = session or requests.Session()
        self.chunk_size = chunk_size
        self.optimizer = optimizer
        self.on_progress = on_progress
        self.timeout = timeout
        self.backoff_seconds = backoff_seconds
        self.sleep = sleep

    # ------------------------------------------------------------------ helpers

    def _progress(self, phase: str, **extra) -> None:
        if self.on_progress:
            self.on_progress({"phase": phase, **extra})

    def _post(self, path: str, retries: int, **kwargs) -> dict:
        url = urljoin(self.base_url, path)
        for attempt in range(retries + 1):
            try:
                response = self.session.post(url, timeout=self.timeout, **kwargs)
                break
            except (requests.ConnectionError, requests.Timeout) as exc:
                if attempt >= retries:
                    logger.warning("client.network_error", extra={"url": url, "attempts": attempt + 1})
                    raise UploadClientError(DEFAULT_ERROR_MESSAGE) from exc
                self.sleep(self.backoff_seconds * (attempt + 1))

        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = {}

        if not response.ok:
            message = str(payload.get("message") or "").strip()
            raise UploadClientError(
                message or f"No se pudo completar la subida de vídeo ({response.status_code})",
                code=str(payload.get("code") or ""),
                status=response.status_code,
            )
        return payload

    def _optimize(self, data: bytes, mime_type: str, filename: str) -> tuple[bytes, str, str, bool]:
        """Aplica o otimizador; qualquer falha ou ganho nulo mantém o original."""
        if self.optimizer is None:
            return data, mime_type, filename, False
        try:
            result = self.optimizer(data, mime_type, filename)
        except Exception:
            logger.warning("client.optimizer_failed", exc_info=True, extra={"original_filename": filename})
            return data, mime_type, filename, False
        if not result:
            return data, mime_type, filename, False

        new_data, new_mime, new_name = result
        if not new_data or len(new_data) >= len(data):
            return data, mime_type, filename, False
        return new_data, new_mime or mime_type, new_name or filename, True

    # ------------------------------------------------------------------ flow

    def upload(
        self,
        data: bytes,
        *,
        filename: str,
        mime_type: str,
        date: str,
        slot_name: str | None = None,
        replace_file_id: int | str | None = None,
    ) -> VideoUploadResult:
        """
        Envia o vídeo inteiro e devolve a resposta do finalize.

        Raises:
            UploadClientError: erro do servidor ou rede esgotada
        """
        self._progress("optimizing")
        used, used_mime, used_name, optimized = self._optimize(data, mime_type or "video/mp4", filename)
        total = len(used)

        init = self._post(
            "upload/video/init",
            retries=2,
            json={
                "date": date,
                "mime_type": used_mime or "video/mp4",
                "total_bytes": total,
                "original_filename": used_name,
                "slot_name": slot_name or "VIDEO",
                "replace_file_id": str(replace_file_id) if replace_file_id else None,
            },
        )
        token = str(init.get("finalize_token") or "")
        if not token:
            raise UploadClientError("No se recibió token para finalizar la subida")

        drive_file_id = self._send_chunks(token, used, total)

        self._progress("finalizing")
        payload = self._post(
            "upload/video/finalize",
            retries=1,
            json={"finalize_token": token, "drive_file_id": drive_file_id},
        )

        logger.info(
            "client.video_uploaded",
            extra={"final_filename": init.get("final_filename"), "total_bytes": total, "optimized": optimized},
        )
        return VideoUploadResult(
            payload=payload,
            data=used,
            mime_type=used_mime,
            filename=used_name,
            optimized=optimized,
        )

    def _send_chunks(self, token: str, data: bytes, total: int) -> str:
        offset = 0
        stalled = 0
        while offset < total:
            end_exclusive = min(offset + self.chunk_size, total)
            result = self._post(
                "upload/video/chunk",
                retries=3,
                data={
                    "finalize_token": token,
                    "start": str(offset),
                    "end_exclusive": str(end_exclusive),
                    "total_bytes": str(total),
                },
                files={"chunk": ("chunk.bin", data[offset:end_exclusive], "application/octet-stream")},
            )

            if result.get("done"):
                self._progress("uploading", uploaded_bytes=total, total_bytes=total)
                drive_file_id = str(result.get("drive_file_id") or "")
                if not drive_file_id:
                    raise UploadClientError("No se obtuvo el ID del vídeo en Google Drive")
                return drive_file_id

            # O armazenamento pode ter confirmado menos do que o enviado
            uploaded = result.get("uploaded_bytes")
            next_offset = int(uploaded) if uploaded is not None else end_exclusive
            stalled = stalled + 1 if next_offset <= offset else 0
            if stalled > MAX_STALLED_CHUNKS:
                raise UploadClientError("La subida de vídeo no avanza, inténtalo de nuevo")
            offset = next_offset
            self._progress("uploading", uploaded_bytes=min(offset, total), total_bytes=total)

        raise UploadClientError("No se obtuvo el ID del vídeo en Google Drive")
