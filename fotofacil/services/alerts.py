"""
AlertService — Alertas de envio pendente e avisos automáticos.

Emails são best-effort e disparados após o commit (transaction.on_commit);
falha no envio nunca desfaz o alerta.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from django.db import transaction
from django.utils import timezone

from fotofacil.choices import AlertType, RequirementKind, Role
from fotofacil.conf import get_fotofacil_setting
from fotofacil.contrib.notifications import notify_admin, notify_many
from fotofacil.dates import format_date_key, parse_deadline_to_minutes, today as local_today
from fotofacil.evaluation import evaluate_day
from fotofacil.models import Alert, Message, SlotTemplate, Store, UploadDay, UserProfile, required_slot_names

from .audit import AuditService
from .days import DayService
from .rules import RuleService


logger = logging.getLogger(__name__)


@dataclass
class MissingUploadReport:
    date: date
    triggered: list[dict] = field(default_factory=list)
    dry_run: bool = False

    @property
    def triggered_count(self) -> int:
        return len(self.triggered)

    def as_dict(self) -> dict:
        return {
            "date": format_date_key(self.date),
            "triggered_count": self.triggered_count,
            "triggered": self.triggered,
            "dry_run": self.dry_run,
        }


def profile_emails(**profile_filters) -> list[str]:
    return [
        email
        for email in UserProfile.objects.filter(**profile_filters)
        .exclude(user__email="")
        .values_list("user__email", flat=True)
        if email
    ]


class AlertService:
    """
    Serviço de alertas.

    Pipeline de check_missing_uploads (por loja ativa):
    1. Pula se ainda não passou do horário limite da loja
    2. Materializa/reavalia o dia de hoje
    3. Pula se o requisito é NONE ou o dia já está enviado
    4. Pula se já existe alerta do dia
    5. Cria alerta + mensagem automática + auditoria
    6. Emails (cluster, loja, admin) após o commit
    """

    @staticmethod
    def _deadline_minutes(store: Store) -> int:
        deadline = store.deadline_time or get_fotofacil_setting("DEFAULT_DEADLINE")
        try:
            return parse_deadline_to_minutes(deadline)
        except ValueError:
            logger.warning(
                "alerts.invalid_deadline",
                extra={"store_id": store.pk, "deadline": deadline},
            )
            return parse_deadline_to_minutes(get_fotofacil_setting("DEFAULT_DEADLINE"))

    @staticmethod
    def _preview(store: Store, day: date, lookup):
        """Requisito e avaliação sem gravar nada (dry-run)."""
        upload_day = UploadDay.objects.filter(store=store, date=day).first()
        if upload_day:
            return upload_day.requirement_kind, DayService.evaluate(upload_day)
        requirement = RuleService.resolve_for(store, day, lookup=lookup)
        slots = SlotTemplate.objects.effective_for(store)
        return requirement, evaluate_day(requirement, [], required_slot_names(slots))

    @staticmethod
    def check_missing_uploads(now: datetime | None = None, *, dry_run: bool = False) -> MissingUploadReport:
        """
        Gera alertas MISSING_UPLOAD para lojas sem envio após o horário limite.

        Args:
            now: Instante de referência (default: agora, no fuso do projeto)
            dry_run: Só reporta, sem gravar nem notificar

        Returns:
            MissingUploadReport
        """
        now = timezone.localtime(now or timezone.now())
        today = now.date()
        now_minutes = now.hour * 60 + now.minute
        report = MissingUploadReport(date=today, dry_run=dry_run)

        stores = list(Store.objects.filter(is_active=True).select_related("cluster").order_by("store_code"))
        lookup = RuleService.load_lookup(store_ids=[s.pk for s in stores])
        recipients: list[str] = []

        for store in stores:
            if now_minutes < AlertService._deadline_minutes(store):
                continue

            if dry_run:
                requirement, evaluation = AlertService._preview(store, today, lookup)
            else:
                upload_day = DayService.get_or_create_day(store, today, lookup=lookup)
                upload_day, evaluation = DayService.refresh_day(upload_day)
                requirement = upload_day.requirement_kind

            if requirement == RequirementKind.NONE or evaluation.is_sent:
                continue
            if Alert.objects.filter(store=store, date=today, type=AlertType.MISSING_UPLOAD).exists():
                continue

            entry = {
                "store_id": store.pk,
                "store_code": store.store_code,
                "name": store.name,
                "cluster_name": store.cluster.name if store.cluster else None,
                "requirement": str(requirement),
            }
            report.triggered.append(entry)
            if dry_run:
                continue

            with transaction.atomic():
                Alert.objects.create(store=store, date=today, type=AlertType.MISSING_UPLOAD)
                Message.objects.create(
                    store=store,
                    from_role=Role.SUPERADMIN,
                    is_automatic=True,
                    text=(
                        f"Recordatorio automático: hoy se requiere "
                        f"{RequirementKind(requirement).label} y aún está en \"No enviado\"."
                    ),
                )
                AuditService.write(
                    "ALERT_MISSING_UPLOAD",
                    store=store,
                    payload={
                        "date": format_date_key(today),
                        "deadline": store.deadline_time,
                        "requirement": str(requirement),
                        "cluster_id": store.cluster_id,
                    },
                )

            logger.info(
                "alerts.missing_upload",
                extra={"store_id": store.pk, "store_code": store.store_code, "date": format_date_key(today)},
            )

            if store.cluster_id:
                recipients += profile_emails(role=Role.CLUSTER, cluster_id=store.cluster_id)
            recipients += profile_emails(role=Role.STORE, store=store)

        if report.triggered and not dry_run:
            summary = ", ".join(
                (f"[{s['cluster_name']}] " if s["cluster_name"] else "") + f"{s['store_code']} {s['name']}"
                for s in report.triggered
            )
            context = {"date": format_date_key(today), "stores_summary": summary, "count": report.triggered_count}

            def _send():
                notify_admin(event="upload.missing", context=context)
                notify_many(event="upload.missing", recipients=recipients, context=context)

            transaction.on_commit(_send)

        return report

    @staticmethod
    def resolve_alerts(upload_day: UploadDay) -> int:
        """Fecha alertas abertos de envio pendente do dia, se ele está enviado."""
        if not upload_day.is_sent:
            return 0
        resolved = Alert.objects.filter(
            store_id=upload_day.store_id,
            date=upload_day.date,
            type=AlertType.MISSING_UPLOAD,
            resolved_at__isnull=True,
        ).update(resolved_at=timezone.now())
        if resolved:
            logger.info(
                "alerts.resolved",
                extra={"store_id": upload_day.store_id, "date": format_date_key(upload_day.date), "count": resolved},
            )
        return resolved

    @staticmethod
    def notify_offdate_upload(store: Store, upload_date: date, today: date | None = None) -> bool:
        """
        Aviso de subida fora de data (data do conteúdo ≠ hoje).

        Uma mensagem automática por texto e dia; emails aos gestores do cluster.
        Retorna True se a data era diferente de hoje e a loja tem cluster.
        """
        today = today or local_today()
        if upload_date == today or not store.cluster_id:
            return False

        target_key = format_date_key(upload_date)
        today_key = format_date_key(today)
        text = f"Aviso automático: {store.store_code} subió contenido para {target_key} en fecha real {today_key}."

        day_start = timezone.make_aware(datetime.combine(today, datetime.min.time()))
        already_posted = Message.objects.filter(
            store=store,
            from_role=Role.STORE,
            text=text,
            created_at__gte=day_start,
            created_at__lt=day_start + timedelta(days=1),
        ).exists()
        if not already_posted:
            Message.objects.create(store=store, from_role=Role.STORE, is_automatic=True, text=text)

        recipients = profile_emails(role=Role.CLUSTER, cluster_id=store.cluster_id)
        context = {
            "store_code": store.store_code,
            "store_name": store.name,
            "target_date": target_key,
            "today": today_key,
        }
        transaction.on_commit(
            lambda: notify_many(event="upload.offdate", recipients=recipients, context=context)
        )
        logger.info(
            "alerts.offdate_upload",
            extra={"store_id": store.pk, "target_date": target_key},
        )
        return True
