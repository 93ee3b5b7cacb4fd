from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from fotofacil.choices import AlertType, Role


class Alert(models.Model):
    """
    Alerta operacional de uma loja num dia (ex.: envio pendente após o horário limite).

    Um por (loja, data, tipo). Resolvido quando o dia passa a enviado.
    """

    store = models.ForeignKey(
        "fotofacil.Store",
        verbose_name=_("loja"),
        on_delete=models.CASCADE,
        related_name="alerts",
    )
    date = models.DateField(_("data"))
    type = models.CharField(_("tipo"), max_length=32, choices=AlertType.choices, default=AlertType.MISSING_UPLOAD)
    resolved_at = models.DateTimeField(_("resolvido em"), null=True, blank=True)

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True)

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("alerta")
        verbose_name_plural = _("alertas")
        ordering = ("-date", "-created_at")
        constraints = [
            models.UniqueConstraint(fields=["store", "date", "type"], name="fotofacil_alert_store_date_type"),
        ]

    def __str__(self) -> str:
        return f"{self.type}:{self.store_id}@{self.date.isoformat()}"

    @property
    def is_open(self) -> bool:
        return self.resolved_at is None


class Message(models.Model):
    """
    Mensagem do chat loja ↔ gestão. Avisos automáticos têm
    `is_automatic=True` e nenhum autor; o anexo (imagem) fica no Drive.
    """

    store = models.ForeignKey(
        "fotofacil.Store",
        verbose_name=_("loja"),
        on_delete=models.CASCADE,
        related_name="messages",
    )
    from_role = models.CharField(_("papel do remetente"), max_length=16, choices=Role.choices)
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        verbose_name=_("autor"),
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    text = models.TextField(_("texto"), blank=True, default="")
    attachment_drive_file_id = models.CharField(_("anexo no Drive"), max_length=128, null=True, blank=True)
    attachment_web_view_link = models.URLField(_("link do anexo"), max_length=512, null=True, blank=True)
    is_automatic = models.BooleanField(_("automática"), default=False)
    read_at = models.DateTimeField(_("lida em"), null=True, blank=True)

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True)

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("mensagem")
        verbose_name_plural = _("mensagens")
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        return f"{self.from_role}→{self.store_id}: {self.text[:40]}"
