from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from fotofacil.choices import DayStatus, RequirementKind, Role, UploadKind


class UploadDay(models.Model):
    """
    Agregado loja+data: requisito congelado, arquivos e status de conclusão.

    - requirement_kind é resolvido na criação e não muda se as regras mudarem.
    - status/is_sent são cache da avaliação; a visão do dia recalcula e corrige.
    - completed_at é gravado na primeira transição para enviado e volta a
      nulo quando o dia deixa de estar enviado.
    """

    store = models.ForeignKey(
        "fotofacil.Store",
        verbose_name=_("loja"),
        on_delete=models.CASCADE,
        related_name="upload_days",
    )
    date = models.DateField(_("data"), db_index=True)
    requirement_kind = models.CharField(
        _("requisito"),
        max_length=8,
        choices=RequirementKind.choices,
        default=RequirementKind.NONE,
    )
    status = models.CharField(
        _("status"),
        max_length=16,
        choices=DayStatus.choices,
        default=DayStatus.PENDING,
        db_index=True,
    )
    is_sent = models.BooleanField(_("enviado"), default=False)
    completed_at = models.DateTimeField(_("concluído em"), null=True, blank=True)
    drive_folder_id = models.CharField(_("pasta do dia no Drive"), max_length=128, null=True, blank=True)

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True)
    updated_at = models.DateTimeField(_("atualizado em"), auto_now=True)

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("dia de envio")
        verbose_name_plural = _("dias de envio")
        ordering = ("-date", "store_id")
        constraints = [
            models.UniqueConstraint(fields=["store", "date"], name="fotofacil_uploadday_store_date"),
        ]

    def __str__(self) -> str:
        return f"{self.store_id}@{self.date.isoformat()} ({self.status})"


class UploadFileQuerySet(models.QuerySet):
    def current(self):
        return self.filter(is_current_version=True)

    def in_group(self, version_group_id: str):
        return self.filter(version_group_id=version_group_id)


class UploadFile(models.Model):
    """
    Arquivo enviado (foto ou vídeo) de um dia.

    Substituições compartilham `version_group_id`; no máximo um arquivo
    por grupo tem `is_current_version=True` (constraint parcial).
    """

    upload_day = models.ForeignKey(
        UploadDay,
        verbose_name=_("dia de envio"),
        on_delete=models.CASCADE,
        related_name="files",
    )
    kind = models.CharField(_("tipo"), max_length=8, choices=UploadKind.choices)
    slot_name = models.CharField(_("slot"), max_length=64, blank=True, default="")
    sequence = models.PositiveIntegerField(_("sequência"), default=1)

    original_filename = models.CharField(_("nome original"), max_length=255, blank=True, default="")
    final_filename = models.CharField(_("nome final"), max_length=255)
    drive_file_id = models.CharField(_("arquivo no Drive"), max_length=128)
    drive_web_view_link = models.URLField(_("link do Drive"), max_length=512, null=True, blank=True)
    mime_type = models.CharField(_("tipo MIME"), max_length=128, blank=True, default="")
    bytes = models.BigIntegerField(_("tamanho (bytes)"), default=0)

    version_group_id = models.CharField(_("grupo de versões"), max_length=32, db_index=True)
    version_number = models.PositiveIntegerField(_("versão"), default=1)
    is_current_version = models.BooleanField(_("versão atual"), default=True)
    supersedes = models.ForeignKey(
        "self",
        verbose_name=_("substitui"),
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="superseded_by",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        verbose_name=_("enviado por"),
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_by_role = models.CharField(_("papel de quem enviou"), max_length=16, choices=Role.choices, blank=True, default="")

    validated_at = models.DateTimeField(_("validado em"), null=True, blank=True)
    validated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        verbose_name=_("validado por"),
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True)

    objects = UploadFileQuerySet.as_manager()

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("arquivo enviado")
        verbose_name_plural = _("arquivos enviados")
        ordering = ("-created_at", "-id")
        constraints = [
            models.UniqueConstraint(
                fields=["version_group_id"],
                condition=models.Q(is_current_version=True),
                name="fotofacil_uploadfile_one_current_per_group",
            ),
            models.UniqueConstraint(
                fields=["upload_day", "drive_file_id"],
                name="fotofacil_uploadfile_day_drive_file",
            ),
        ]

    def __str__(self) -> str:
        return self.final_filename

    @property
    def preview_url(self) -> str | None:
        if not self.drive_file_id:
            return None
        return f"https://drive.google.com/thumbnail?id={self.drive_file_id}"
