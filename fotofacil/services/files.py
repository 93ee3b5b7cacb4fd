"""
FileService — Remoção e validação de arquivos enviados.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from fotofacil.choices import RequirementKind, UploadKind
from fotofacil.contrib.drive import get_storage_backend
from fotofacil.exceptions import FotofacilError, NotFound
from fotofacil.models import UploadFile

from .audit import AuditService
from .days import DayService


logger = logging.getLogger(__name__)


REQUIRED_KINDS = {
    RequirementKind.PHOTO: {UploadKind.PHOTO},
    RequirementKind.VIDEO: {UploadKind.VIDEO},
    RequirementKind.BOTH: {UploadKind.PHOTO, UploadKind.VIDEO},
}


class FileService:
    """
    Operações de gestor sobre arquivos.

    Remoção mantém a exclusividade de versão: se o arquivo removido era o
    atual do grupo, a versão seguinte mais recente (version_number desc,
    created_at desc) é promovida na mesma transação.
    """

    @staticmethod
    def get_file(file_id) -> UploadFile:
        record = (
            UploadFile.objects.select_related("upload_day", "upload_day__store")
            .filter(pk=file_id)
            .first()
        )
        if record is None:
            raise NotFound(code="file_not_found", message="Archivo no encontrado", context={"file_id": file_id})
        return record

    @staticmethod
    def delete(record: UploadFile, actor=None) -> dict:
        """
        Remove o arquivo, promove a versão anterior e reavalia o dia.

        Remoção, promoção e status do dia vão no mesmo commit; o objeto
        no Drive é removido depois, best-effort.

        Returns:
            dict com file_id, promoted_file_id, status e is_sent do dia
        """
        upload_day = record.upload_day
        file_id = record.pk
        drive_file_id = record.drive_file_id
        promoted = None

        with transaction.atomic():
            locked = UploadFile.objects.select_for_update().get(pk=file_id)
            was_current = locked.is_current_version
            group_id = locked.version_group_id
            locked.delete()

            if was_current:
                promoted = (
                    UploadFile.objects.select_for_update()
                    .filter(upload_day=upload_day, version_group_id=group_id)
                    .order_by("-version_number", "-created_at", "-id")
                    .first()
                )
                if promoted is not None:
                    promoted.is_current_version = True
                    promoted.save(update_fields=["is_current_version"])

            upload_day, _ = DayService.refresh_day(upload_day)

        try:
            get_storage_backend().delete_file(drive_file_id)
        except FotofacilError as e:
            logger.warning(
                "files.drive_delete_failed",
                extra={"file_id": file_id, "drive_file_id": drive_file_id, "code": e.code},
            )

        AuditService.write(
            "MEDIA_FILE_DELETED",
            store=upload_day.store,
            user=actor,
            payload={
                "file_id": file_id,
                "upload_day_id": upload_day.pk,
                "promoted_file_id": promoted.pk if promoted else None,
            },
        )
        logger.info(
            "files.deleted",
            extra={
                "file_id": file_id,
                "upload_day_id": upload_day.pk,
                "promoted_file_id": promoted.pk if promoted else None,
            },
        )

        return {
            "file_id": file_id,
            "promoted_file_id": promoted.pk if promoted else None,
            "status": str(upload_day.status),
            "is_sent": upload_day.is_sent,
        }

    @staticmethod
    def set_validated(record: UploadFile, validated: bool, actor=None) -> dict:
        """
        Marca (ou desmarca) a validação do gestor.

        Resumo: validados / total de arquivos correntes dos tipos exigidos
        pelo dia (sem requisito, todos os tipos) e total de correntes.
        """
        if validated:
            record.validated_at = timezone.now()
            record.validated_by = actor if getattr(actor, "is_authenticated", False) else None
        else:
            record.validated_at = None
            record.validated_by = None
        record.save(update_fields=["validated_at", "validated_by"])

        upload_day = record.upload_day
        current = list(upload_day.files.current().only("id", "kind", "validated_at"))
        kinds = REQUIRED_KINDS.get(upload_day.requirement_kind, {UploadKind.PHOTO, UploadKind.VIDEO})
        scoped = [f for f in current if f.kind in kinds]

        AuditService.write(
            "MEDIA_FILE_VALIDATED" if validated else "MEDIA_FILE_UNVALIDATED",
            store=upload_day.store,
            user=actor,
            payload={"file_id": record.pk, "upload_day_id": upload_day.pk},
        )

        return {
            "item": {
                "id": record.pk,
                "validated_at": record.validated_at,
            },
            "summary": {
                "validated": sum(1 for f in scoped if f.validated_at),
                "total": len(scoped),
                "all_total": len(current),
            },
        }
