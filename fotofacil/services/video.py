"""
VideoUploadService — Subida resumível de vídeo em três fases.

    init → (chunk)* → finalize

Nenhum estado de sessão fica no servidor: o token assinado (tokens.py)
carrega URL da sessão resumível, tamanho, pasta, nome final, vínculo de
versão e identidade (conta + loja). Cada chamada revalida o token; o
cancelamento é simplesmente parar de enviar chunks.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date

from django.db import IntegrityError, transaction

from fotofacil.choices import UploadKind
from fotofacil.conf import get_fotofacil_setting
from fotofacil.contrib.drive import get_storage_backend
from fotofacil.dates import ensure_within_window, format_date_key
from fotofacil.exceptions import AccessDenied, DestinationMismatch, StorageError, ValidationError
from fotofacil.ids import build_final_filename, extension_from_filename, normalize_slot_name
from fotofacil.models import Store, UploadDay, UploadFile
from fotofacil.tokens import VideoUploadTicket, read_video_ticket, sign_video_ticket

from .days import DayService
from .uploads import (
    VersionPlan,
    actor_role,
    after_upload,
    ensure_destination,
    plan_version,
    store_new_version,
    upload_result,
)


logger = logging.getLogger(__name__)


DEFAULT_VIDEO_EXTENSION = "mp4"


def _ticket_for(store: Store, user, token: str) -> VideoUploadTicket:
    """
    Lê o token e confere conta e loja com a sessão autenticada.

    Raises:
        UploadTokenError: token inválido/expirado/de outro tipo
        AccessDenied: code="account_mismatch"
    """
    ticket = read_video_ticket(token)
    if ticket.uid != str(user.pk) or ticket.store_id != str(store.pk):
        logger.warning(
            "upload.video_account_mismatch",
            extra={"store_id": store.pk, "user_id": user.pk},
        )
        raise AccessDenied(code="account_mismatch", message="El token no pertenece a esta cuenta")
    return ticket


class VideoUploadService:
    """
    Protocolo de subida de vídeo.

    Falhas de verificação abortam com erro específico e nada é gravado;
    o cliente recomeça o fluxo (falha dura) ou retoma do último offset
    confirmado (falha de rede).
    """

    @staticmethod
    def init(
        *,
        store: Store,
        user,
        day: date,
        mime_type: str,
        total_bytes: int,
        original_filename: str,
        slot_name: str | None = None,
        replace_file_id=None,
    ) -> dict:
        """
        Abre a sessão resumível e emite o token de finalização.

        Returns:
            dict com finalize_token, final_filename, chunk_size e expires_in
        """
        mime_type = (mime_type or "").strip()
        original_filename = (original_filename or "").strip()
        if not mime_type:
            raise ValidationError(code="mime_type_required", message="mime_type es obligatorio")
        if not original_filename:
            raise ValidationError(code="filename_required", message="original_filename es obligatorio")

        max_bytes = get_fotofacil_setting("MAX_VIDEO_BYTES")
        if not isinstance(total_bytes, int) or total_bytes <= 0:
            raise ValidationError(code="invalid_size", message="Tamaño de archivo inválido")
        if total_bytes > max_bytes:
            raise ValidationError(
                code="file_too_large",
                message=f"Vídeo demasiado grande (máximo {max_bytes} bytes)",
                context={"bytes": total_bytes, "max_bytes": max_bytes},
            )

        ensure_within_window(day, get_fotofacil_setting("MAX_DAYS_BACK"))

        upload_day = DayService.get_or_create_day(store, day)
        backend = get_storage_backend()
        folder = ensure_destination(store, upload_day, UploadKind.VIDEO, backend=backend)

        plan = plan_version(
            upload_day,
            kind=UploadKind.VIDEO,
            slot_name=normalize_slot_name(slot_name),
            replace_file_id=(str(replace_file_id).strip() or None) if replace_file_id else None,
        )

        extension = extension_from_filename(original_filename) or DEFAULT_VIDEO_EXTENSION
        final_filename = build_final_filename(
            store.store_code,
            format_date_key(day),
            plan.slot_name,
            plan.sequence,
            extension,
        )

        upload_url = backend.create_resumable_session(
            parent_id=folder.folder_id,
            name=final_filename,
            mime_type=mime_type,
            total_bytes=total_bytes,
        )

        ticket = VideoUploadTicket(
            uid=str(user.pk),
            store_id=str(store.pk),
            upload_day_id=str(upload_day.pk),
            folder_id=folder.folder_id,
            slot_name=plan.slot_name,
            sequence=plan.sequence,
            final_filename=final_filename,
            version_group_id=plan.version_group_id,
            version_number=plan.version_number,
            supersedes_file_id=str(plan.supersedes_id) if plan.supersedes_id else None,
            mime_type=mime_type,
            bytes=total_bytes,
            upload_url=upload_url,
            original_filename=original_filename,
        )

        logger.info(
            "upload.video_init",
            extra={
                "store_id": store.pk,
                "upload_day_id": upload_day.pk,
                "final_filename": final_filename,
                "total_bytes": total_bytes,
                "version_number": plan.version_number,
            },
        )

        return {
            "finalize_token": sign_video_ticket(ticket),
            "final_filename": final_filename,
            "chunk_size": get_fotofacil_setting("MAX_CHUNK_BYTES"),
            "expires_in": get_fotofacil_setting("VIDEO_TOKEN_TTL_SECONDS"),
        }

    @staticmethod
    def relay_chunk(
        *,
        store: Store,
        user,
        token: str,
        start: int,
        end_exclusive: int,
        total_bytes: int,
        chunk: bytes,
    ) -> dict:
        """
        Repassa o intervalo [start, end_exclusive) à sessão resumível.

        Returns:
            {"done": False, "uploaded_bytes": N} ou {"done": True, "drive_file_id": ID}

        Raises:
            ValidationError: total_mismatch, invalid_range, chunk_size_mismatch, chunk_too_large
            StorageError: armazenamento recusou o chunk
        """
        ticket = _ticket_for(store, user, token)
        if not ticket.upload_url:
            raise ValidationError(code="invalid_token", message="Token de vídeo inválido")

        if total_bytes != ticket.bytes:
            raise ValidationError(
                code="total_mismatch",
                message="Tamaño total no coincide con el token de subida",
                context={"total_bytes": total_bytes, "expected": ticket.bytes},
            )
        if start < 0 or start >= end_exclusive or end_exclusive > total_bytes:
            raise ValidationError(
                code="invalid_range",
                message="Rango de chunk inválido",
                context={"start": start, "end_exclusive": end_exclusive},
            )
        if len(chunk) != end_exclusive - start:
            raise ValidationError(
                code="chunk_size_mismatch",
                message="Tamaño de chunk inválido",
                context={"chunk_bytes": len(chunk), "expected": end_exclusive - start},
            )
        max_chunk = get_fotofacil_setting("MAX_CHUNK_BYTES")
        if len(chunk) > max_chunk:
            raise ValidationError(
                code="chunk_too_large",
                message=f"Chunk demasiado grande (máximo {max_chunk} bytes)",
                context={"chunk_bytes": len(chunk), "max_bytes": max_chunk},
            )

        result = get_storage_backend().put_chunk(
            session_url=ticket.upload_url,
            data=chunk,
            start=start,
            end_exclusive=end_exclusive,
            total_bytes=total_bytes,
            mime_type=ticket.mime_type or "application/octet-stream",
        )

        logger.debug(
            "upload.video_chunk",
            extra={"upload_day_id": ticket.upload_day_id, "start": start, "done": result.done},
        )

        if result.done:
            return {"done": True, "drive_file_id": result.file_id}
        return {"done": False, "uploaded_bytes": result.uploaded_bytes}

    @staticmethod
    def finalize(*, store: Store, user, token: str, drive_file_id: str) -> dict:
        """
        Confere o arquivo no Drive contra o token e grava o registro.

        Idempotente por (dia, drive_file_id): repetir devolve o mesmo registro.

        Raises:
            DestinationMismatch: invalid_upload_day, unverifiable_file,
                filename_mismatch, folder_mismatch
        """
        ticket = _ticket_for(store, user, token)

        drive_file_id = (drive_file_id or "").strip()
        if not drive_file_id:
            raise ValidationError(code="drive_file_id_required", message="drive_file_id es obligatorio")

        upload_day = UploadDay.objects.filter(pk=ticket.upload_day_id, store=store).first()
        if upload_day is None:
            raise DestinationMismatch(code="invalid_upload_day", message="Jornada de subida inválida")

        try:
            meta = get_storage_backend().get_file_meta(drive_file_id)
        except StorageError as e:
            if e.upstream_status != 404:
                raise
            raise DestinationMismatch(
                code="unverifiable_file",
                message="No se pudo verificar el archivo subido",
                context={"drive_file_id": drive_file_id},
            )
        if not meta.id:
            raise DestinationMismatch(code="unverifiable_file", message="No se pudo verificar el archivo subido")
        if meta.name and meta.name != ticket.final_filename:
            raise DestinationMismatch(
                code="filename_mismatch",
                message="Nombre final no coincide con el esperado",
                context={"expected": ticket.final_filename, "found": meta.name},
            )
        if ticket.folder_id and ticket.folder_id not in meta.parents:
            raise DestinationMismatch(
                code="folder_mismatch",
                message="El archivo no está en la carpeta esperada",
                context={"expected": ticket.folder_id},
            )

        # Registro, promoção de versão e status do dia num único commit
        with transaction.atomic():
            record = UploadFile.objects.filter(upload_day=upload_day, drive_file_id=drive_file_id).first()
            created = record is None
            if created:
                try:
                    record = VideoUploadService._store(upload_day, ticket, meta, drive_file_id, user)
                except IntegrityError:
                    # Finalize concorrente gravou primeiro
                    record = UploadFile.objects.get(upload_day=upload_day, drive_file_id=drive_file_id)
                    created = False

            if created:
                upload_day = after_upload(store, upload_day, record, user=user, mode="resumable")
            else:
                upload_day, _ = DayService.refresh_day(upload_day)

        if created:
            logger.info(
                "upload.video_finalized",
                extra={"store_id": store.pk, "upload_day_id": upload_day.pk, "file_id": record.pk},
            )
        else:
            logger.info(
                "upload.video_finalize_replayed",
                extra={"upload_day_id": upload_day.pk, "file_id": record.pk},
            )

        return upload_result(upload_day, record, created=created)

    @staticmethod
    def _store(upload_day: UploadDay, ticket: VideoUploadTicket, meta, drive_file_id: str, user) -> UploadFile:
        plan = VersionPlan(
            slot_name=ticket.slot_name,
            sequence=ticket.sequence,
            version_group_id=ticket.version_group_id,
            version_number=ticket.version_number,
            supersedes_id=int(ticket.supersedes_file_id) if ticket.supersedes_file_id else None,
        )
        with transaction.atomic():
            # Versão substituída pode ter sido apagada entre init e finalize
            if plan.supersedes_id and not UploadFile.objects.filter(pk=plan.supersedes_id).exists():
                plan = replace(plan, supersedes_id=None)
            return store_new_version(
                upload_day,
                plan,
                kind=UploadKind.VIDEO,
                original_filename=ticket.original_filename or meta.name or ticket.final_filename,
                final_filename=ticket.final_filename,
                drive_file_id=drive_file_id,
                drive_web_view_link=meta.web_view_link,
                mime_type=meta.mime_type or ticket.mime_type or "video/mp4",
                bytes=int(meta.size or ticket.bytes or 0),
                created_by=user if getattr(user, "is_authenticated", False) else None,
                created_by_role=actor_role(user),
            )
