"""
Tokens de capacidade — estado assinado (HMAC) e com validade da subida de vídeo.

O servidor não guarda sessão de subida: tudo que chunk/finalize precisam
para validar e continuar vai dentro do token (URL da sessão resumível,
tamanho total, pasta, nome final, vínculo de versão, conta e loja).

Usa django.core.signing (JSON + HMAC-SHA256 com SECRET_KEY + timestamp).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields

from django.core import signing

from .conf import get_fotofacil_setting
from .exceptions import UploadTokenError


VIDEO_UPLOAD_TOKEN_TYPE = "video_upload_finalize"
_SALT = "fotofacil.upload.video"


@dataclass(frozen=True)
class VideoUploadTicket:
    uid: str
    store_id: str
    upload_day_id: str
    folder_id: str
    slot_name: str
    sequence: int
    final_filename: str
    version_group_id: str
    version_number: int
    supersedes_file_id: str | None
    mime_type: str
    bytes: int
    upload_url: str
    original_filename: str = ""
    t: str = VIDEO_UPLOAD_TOKEN_TYPE


def sign_video_ticket(ticket: VideoUploadTicket) -> str:
    return signing.dumps(asdict(ticket), salt=_SALT, compress=True)


def read_video_ticket(token: str, max_age: int | None = None) -> VideoUploadTicket:
    """
    Verifica assinatura, validade e tipo do token.

    Raises:
        UploadTokenError: expired_token | invalid_token | wrong_token_type
    """
    if max_age is None:
        max_age = get_fotofacil_setting("VIDEO_TOKEN_TTL_SECONDS")

    try:
        payload = signing.loads(token or "", salt=_SALT, max_age=max_age)
    except signing.SignatureExpired:
        raise UploadTokenError(code="expired_token", message="Token de subida expirado")
    except signing.BadSignature:
        raise UploadTokenError(code="invalid_token", message="Token de subida inválido")

    if not isinstance(payload, dict) or payload.get("t") != VIDEO_UPLOAD_TOKEN_TYPE:
        raise UploadTokenError(code="wrong_token_type", message="Tipo de token inválido")

    known = {f.name for f in fields(VideoUploadTicket)}
    try:
        return VideoUploadTicket(**{k: v for k, v in payload.items() if k in known})
    except TypeError:
        raise UploadTokenError(code="invalid_token", message="Token de subida inválido")
