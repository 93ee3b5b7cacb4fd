"""
PhotoUploadService — Subida de fotos (uma requisição) e peças comuns às subidas.

Peças comuns (também usadas pelo VideoUploadService):
- ensure_destination: pasta estruturada no Drive + cache na loja/dia
- plan_version: slot, sequência e vínculo de versão (nova ou substituição)
- store_new_version: rebaixa a versão atual do grupo e cria o registro
  (sempre dentro da mesma transação que o after_upload)
- after_upload: reavalia o dia, fecha alertas, aviso fora de data, auditoria
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from django.db import transaction
from django.db.models import Max

from fotofacil.choices import UploadKind
from fotofacil.conf import get_fotofacil_setting
from fotofacil.contrib.drive import get_storage_backend
from fotofacil.contrib.drive.folders import StructuredFolder, ensure_structured_folder
from fotofacil.dates import ensure_within_window, format_date_key
from fotofacil.exceptions import FotofacilError, ValidationError
from fotofacil.ids import build_final_filename, generate_version_group_id
from fotofacil.images import normalize_image
from fotofacil.models import SlotTemplate, Store, UploadDay, UploadFile

from .alerts import AlertService
from .audit import AuditService
from .days import DayService


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionPlan:
    slot_name: str
    sequence: int
    version_group_id: str
    version_number: int
    supersedes_id: int | None = None


def actor_role(user) -> str:
    profile = getattr(user, "fotofacil_profile", None)
    return profile.role if profile else ""


def file_summary(record: UploadFile) -> dict:
    return {
        "id": record.pk,
        "kind": str(record.kind),
        "slot_name": record.slot_name,
        "sequence": record.sequence,
        "final_filename": record.final_filename,
        "drive_file_id": record.drive_file_id,
        "drive_web_view_link": record.drive_web_view_link,
        "version_group_id": record.version_group_id,
        "version_number": record.version_number,
        "is_current_version": record.is_current_version,
    }


def ensure_destination(store: Store, upload_day: UploadDay, kind: str, backend=None) -> StructuredFolder:
    """Garante a pasta no Drive e guarda os IDs de loja/dia em cache."""
    backend = backend or get_storage_backend()
    folder = ensure_structured_folder(
        backend,
        cluster_name=store.cluster.name if store.cluster_id else None,
        store_label=store.folder_label,
        day=upload_day.date,
        kind=kind,
        cached_day_folder_id=upload_day.drive_folder_id,
    )

    if folder.store_folder_id and store.drive_folder_id != folder.store_folder_id:
        store.drive_folder_id = folder.store_folder_id
        store.save(update_fields=["drive_folder_id", "updated_at"])
    DayService.set_drive_folder(upload_day, folder.day_folder_id)
    return folder


def plan_version(
    upload_day: UploadDay,
    *,
    kind: str,
    slot_name: str,
    replace_file_id=None,
    allow_multiple: bool = True,
) -> VersionPlan:
    """
    Substituição herda slot/sequência/grupo; a versão é a maior do grupo + 1
    (vale também ao substituir uma versão antiga).
    Arquivo novo abre grupo; sequência = arquivos do slot no dia + 1
    (ou 1 se o slot não permite várias fotos).

    Raises:
        ValidationError: code="invalid_replace_file"
    """
    if replace_file_id:
        replaced = UploadFile.objects.filter(
            pk=replace_file_id,
            upload_day=upload_day,
            kind=kind,
        ).first()
        if replaced is None:
            raise ValidationError(
                code="invalid_replace_file",
                message="replace_file_id inválido",
                context={"replace_file_id": replace_file_id},
            )
        return VersionPlan(
            slot_name=replaced.slot_name,
            sequence=replaced.sequence,
            version_group_id=replaced.version_group_id,
            version_number=next_version_number(replaced.version_group_id),
            supersedes_id=replaced.pk,
        )

    if allow_multiple:
        sequence = upload_day.files.filter(slot_name__iexact=slot_name).count() + 1
    else:
        sequence = 1
    return VersionPlan(
        slot_name=slot_name,
        sequence=sequence,
        version_group_id=generate_version_group_id(),
        version_number=1,
    )


def next_version_number(version_group_id: str) -> int:
    latest = UploadFile.objects.filter(version_group_id=version_group_id).aggregate(
        latest=Max("version_number")
    )["latest"]
    return (latest or 0) + 1


def store_new_version(upload_day: UploadDay, plan: VersionPlan, **fields) -> UploadFile:
    """
    Rebaixa a versão atual do grupo e cria a nova na mesma transação.

    O número da versão é recalculado com o grupo travado: um plano feito
    antes (ex.: init de vídeo) pode ter ficado para trás.
    """
    with transaction.atomic():
        taken = list(
            UploadFile.objects.select_for_update()
            .filter(version_group_id=plan.version_group_id)
            .values_list("version_number", flat=True)
        )
        version_number = max(taken) + 1 if taken else plan.version_number

        UploadFile.objects.filter(
            version_group_id=plan.version_group_id,
            is_current_version=True,
        ).update(is_current_version=False)

        return UploadFile.objects.create(
            upload_day=upload_day,
            slot_name=plan.slot_name,
            sequence=plan.sequence,
            version_group_id=plan.version_group_id,
            version_number=version_number,
            supersedes_id=plan.supersedes_id,
            is_current_version=True,
            **fields,
        )


def discard_stored_file(backend, drive_file_id: str) -> None:
    """Remove do Drive um arquivo cujo registro não chegou a ser gravado."""
    try:
        backend.delete_file(drive_file_id)
    except FotofacilError as e:
        logger.warning(
            "upload.orphan_delete_failed",
            extra={"drive_file_id": drive_file_id, "code": e.code},
        )


def after_upload(store: Store, upload_day: UploadDay, record: UploadFile, user=None, mode: str = "single") -> UploadDay:
    """Roda na mesma transação que gravou o arquivo (ver PhotoUploadService/VideoUploadService)."""
    upload_day, _ = DayService.refresh_day(upload_day)
    AlertService.resolve_alerts(upload_day)
    AlertService.notify_offdate_upload(store, upload_day.date)

    AuditService.write(
        "UPLOAD_DAY_SENT" if upload_day.is_sent else "UPLOAD_FILE",
        store=store,
        user=user,
        payload={
            "kind": str(record.kind),
            "slot_name": record.slot_name,
            "final_filename": record.final_filename,
            "date": format_date_key(upload_day.date),
            "status": str(upload_day.status),
            "is_sent": upload_day.is_sent,
            "version_group_id": record.version_group_id,
            "version_number": record.version_number,
            "mode": mode,
        },
    )
    return upload_day


def upload_result(upload_day: UploadDay, record: UploadFile, **extra) -> dict:
    return {
        "status": str(upload_day.status),
        "is_sent": upload_day.is_sent,
        "requirement": str(upload_day.requirement_kind),
        "file": file_summary(record),
        "drive_folder_id": upload_day.drive_folder_id,
        **extra,
    }


class PhotoUploadService:
    """
    Subida de foto para um slot do dia.

    Pipeline:
    1. Valida janela de datas, slot e tamanho
    2. Materializa o dia (congela requisito)
    3. Garante pasta "Foto" no Drive
    4. Planeja versão (nova ou substituição)
    5. Normaliza a imagem (Pillow) e envia ao Drive
    6. Grava o registro e reavalia o dia
    """

    @staticmethod
    def upload(
        *,
        store: Store,
        user,
        day: date,
        slot_name: str,
        data: bytes,
        mime_type: str,
        original_filename: str = "",
        replace_file_id=None,
    ) -> dict:
        ensure_within_window(day, get_fotofacil_setting("MAX_DAYS_BACK"))

        slot_name = (slot_name or "").strip()
        if not slot_name:
            raise ValidationError(code="slot_required", message="slot_name es obligatorio")

        slot = next(
            (s for s in SlotTemplate.objects.effective_for(store) if s.name.strip().casefold() == slot_name.casefold()),
            None,
        )
        if slot is None:
            raise ValidationError(
                code="unknown_slot",
                message=f"El slot '{slot_name}' no está configurado",
                context={"slot_name": slot_name},
            )

        max_bytes = get_fotofacil_setting("MAX_PHOTO_BYTES")
        if not data:
            raise ValidationError(code="file_required", message="file es obligatorio")
        if len(data) > max_bytes:
            raise ValidationError(
                code="file_too_large",
                message=f"Archivo demasiado grande (máximo {max_bytes} bytes)",
                context={"bytes": len(data), "max_bytes": max_bytes},
            )

        upload_day = DayService.get_or_create_day(store, day)
        backend = get_storage_backend()
        folder = ensure_destination(store, upload_day, UploadKind.PHOTO, backend=backend)

        plan = plan_version(
            upload_day,
            kind=UploadKind.PHOTO,
            slot_name=slot.name,
            replace_file_id=replace_file_id,
            allow_multiple=slot.allow_multiple,
        )

        normalized = normalize_image(data, mime_type)
        final_filename = build_final_filename(
            store.store_code,
            format_date_key(day),
            plan.slot_name,
            plan.sequence,
            normalized.extension or "jpg",
        )

        stored = backend.upload_bytes(
            parent_id=folder.folder_id,
            name=final_filename,
            mime_type=normalized.mime_type,
            data=normalized.data,
        )

        try:
            with transaction.atomic():
                record = store_new_version(
                    upload_day,
                    plan,
                    kind=UploadKind.PHOTO,
                    original_filename=original_filename or "",
                    final_filename=final_filename,
                    drive_file_id=stored.id,
                    drive_web_view_link=stored.web_view_link,
                    mime_type=stored.mime_type or normalized.mime_type,
                    bytes=len(normalized.data),
                    created_by=user if getattr(user, "is_authenticated", False) else None,
                    created_by_role=actor_role(user),
                )
                upload_day = after_upload(store, upload_day, record, user=user)
        except Exception:
            discard_stored_file(backend, stored.id)
            raise

        logger.info(
            "upload.photo_stored",
            extra={
                "store_id": store.pk,
                "upload_day_id": upload_day.pk,
                "file_id": record.pk,
                "slot_name": record.slot_name,
                "version_number": record.version_number,
            },
        )
        return upload_result(upload_day, record)
