"""
DayService — Materialização, avaliação, visão e histórico dos dias de envio.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from fotofacil.choices import RequirementKind, UploadKind
from fotofacil.dates import format_date_key, today as local_today
from fotofacil.exceptions import ValidationError
from fotofacil.evaluation import DayEvaluation, evaluate_day, slot_coverage
from fotofacil.models import SlotTemplate, Store, UploadDay, required_slot_names
from fotofacil.resolution import RequirementLookup

from .rules import RuleService


logger = logging.getLogger(__name__)


HISTORY_DEFAULT_DAYS = 30


class DayService:
    """
    Serviço do agregado UploadDay.

    O status gravado é cache: cada refresh recalcula a partir dos arquivos
    correntes e corrige o que estiver diferente (último a escrever vence).
    """

    @staticmethod
    def get_or_create_day(store: Store, day: date, lookup: RequirementLookup | None = None) -> UploadDay:
        """
        Dia da loja; na criação resolve e congela o requisito.
        """
        existing = UploadDay.objects.filter(store=store, date=day).first()
        if existing:
            return existing

        requirement = RuleService.resolve_for(store, day, lookup=lookup)
        upload_day, created = UploadDay.objects.get_or_create(
            store=store,
            date=day,
            defaults={"requirement_kind": requirement},
        )
        if created:
            logger.info(
                "day.created",
                extra={
                    "store_id": store.pk,
                    "date": format_date_key(day),
                    "requirement": str(requirement),
                },
            )
        return upload_day

    @staticmethod
    def evaluate(upload_day: UploadDay) -> DayEvaluation:
        """Avaliação pura do dia com os arquivos e slots atuais (sem gravar)."""
        slots = SlotTemplate.objects.effective_for(upload_day.store)
        files = list(upload_day.files.current().only("kind", "slot_name", "is_current_version"))
        return evaluate_day(upload_day.requirement_kind, files, required_slot_names(slots))

    @staticmethod
    def apply_evaluation(upload_day: UploadDay, evaluation: DayEvaluation) -> bool:
        """
        Copia a avaliação para o dia. Retorna True se algo mudou.

        completed_at: gravado na primeira transição para enviado, mantido
        enquanto enviado, nulo quando deixa de estar enviado.
        """
        completed_at = upload_day.completed_at
        if evaluation.is_sent and completed_at is None:
            completed_at = timezone.now()
        elif not evaluation.is_sent:
            completed_at = None

        changed = (
            upload_day.status != evaluation.status
            or upload_day.is_sent != evaluation.is_sent
            or upload_day.completed_at != completed_at
        )
        upload_day.status = evaluation.status
        upload_day.is_sent = evaluation.is_sent
        upload_day.completed_at = completed_at
        return changed

    @staticmethod
    def refresh_day(upload_day: UploadDay | int) -> tuple[UploadDay, DayEvaluation]:
        """
        Reavalia o dia sob lock de linha e persiste status/is_sent/completed_at.

        Args:
            upload_day: UploadDay ou seu pk

        Returns:
            (UploadDay atualizado, DayEvaluation)
        """
        pk = upload_day.pk if isinstance(upload_day, UploadDay) else upload_day

        with transaction.atomic():
            locked = UploadDay.objects.select_for_update().select_related("store").get(pk=pk)
            was_sent = locked.is_sent
            evaluation = DayService.evaluate(locked)
            if DayService.apply_evaluation(locked, evaluation):
                locked.save(update_fields=["status", "is_sent", "completed_at", "updated_at"])
                logger.info(
                    "day.status_changed",
                    extra={
                        "upload_day_id": locked.pk,
                        "store_id": locked.store_id,
                        "status": str(locked.status),
                        "is_sent": locked.is_sent,
                        "was_sent": was_sent,
                    },
                )

        return locked, evaluation

    @staticmethod
    def set_drive_folder(upload_day: UploadDay, folder_id: str | None) -> None:
        if folder_id and upload_day.drive_folder_id != folder_id:
            upload_day.drive_folder_id = folder_id
            upload_day.save(update_fields=["drive_folder_id", "updated_at"])

    @staticmethod
    def day_view(store: Store, day: date) -> dict:
        """
        Visão do dia para a loja: requisito, status, pendências e cobertura por slot.

        Recalcula a partir dos arquivos correntes e corrige o cache do dia.
        """
        upload_day = DayService.get_or_create_day(store, day)
        upload_day, evaluation = DayService.refresh_day(upload_day)

        slots = SlotTemplate.objects.effective_for(store)
        files = list(upload_day.files.current().order_by("-created_at", "-id"))

        slot_checks = []
        for slot in slots:
            covered = slot_coverage(files, slot.name)
            slot_checks.append({
                "name": slot.name,
                "required": slot.required,
                "allow_multiple": slot.allow_multiple,
                "order": slot.order,
                "done": bool(covered),
                "count": len(covered),
                "preview": covered[0].preview_url if covered else None,
            })

        videos = [f for f in files if f.kind == UploadKind.VIDEO]

        return {
            "upload_day_id": upload_day.pk,
            "date": format_date_key(upload_day.date),
            "requirement": str(upload_day.requirement_kind),
            "requirement_label": str(RequirementKind(upload_day.requirement_kind).label),
            "status": str(upload_day.status),
            "is_sent": upload_day.is_sent,
            "completed_at": upload_day.completed_at,
            "missing_kinds": [str(k) for k in evaluation.missing_kinds],
            "missing_slots": list(evaluation.missing_slots),
            "slots": slot_checks,
            "videos": [
                {
                    "id": v.pk,
                    "final_filename": v.final_filename,
                    "drive_file_id": v.drive_file_id,
                    "drive_web_view_link": v.drive_web_view_link,
                    "version_number": v.version_number,
                }
                for v in videos
            ],
            "drive_folder_id": upload_day.drive_folder_id,
        }

    @staticmethod
    def history(store: Store, date_from: date | None = None, date_to: date | None = None) -> list[dict]:
        """
        Dias materializados da loja no intervalo (padrão: últimos 30 dias), mais recentes primeiro.

        Raises:
            ValidationError: code="invalid_date_range"
        """
        date_to = date_to or local_today()
        date_from = date_from or date_to - timedelta(days=HISTORY_DEFAULT_DAYS)
        if date_from > date_to:
            raise ValidationError(
                code="invalid_date_range",
                message="La fecha inicial debe ser anterior a la final",
                context={"from": format_date_key(date_from), "to": format_date_key(date_to)},
            )

        days = (
            UploadDay.objects.filter(store=store, date__gte=date_from, date__lte=date_to)
            .annotate(file_count=Count("files"))
            .order_by("-date")
        )
        return [
            {
                "id": d.pk,
                "date": format_date_key(d.date),
                "requirement": str(d.requirement_kind),
                "status": str(d.status),
                "is_sent": d.is_sent,
                "completed_at": d.completed_at,
                "file_count": d.file_count,
                "drive_folder_id": d.drive_folder_id,
            }
            for d in days
        ]
