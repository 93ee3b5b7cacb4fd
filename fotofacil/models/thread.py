from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from fotofacil.choices import Role


class MediaThread(models.Model):
    """
    Conversa sobre um arquivo enviado, opcionalmente ancorada numa zona da imagem.

    A conversa pertence ao grupo de versões: continua visível quando o
    arquivo é substituído. `current_file` aponta a versão discutida agora.
    Zona em coordenadas relativas (0..1): todas as quatro ou nenhuma.
    """

    store = models.ForeignKey(
        "fotofacil.Store",
        verbose_name=_("loja"),
        on_delete=models.CASCADE,
        related_name="media_threads",
    )
    upload_day = models.ForeignKey(
        "fotofacil.UploadDay",
        verbose_name=_("dia de envio"),
        on_delete=models.CASCADE,
        related_name="threads",
    )
    root_file = models.ForeignKey(
        "fotofacil.UploadFile",
        verbose_name=_("arquivo de origem"),
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    current_file = models.ForeignKey(
        "fotofacil.UploadFile",
        verbose_name=_("arquivo atual"),
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="threads",
    )
    version_group_id = models.CharField(_("grupo de versões"), max_length=32, db_index=True)

    zone_x = models.FloatField(_("zona x"), null=True, blank=True)
    zone_y = models.FloatField(_("zona y"), null=True, blank=True)
    zone_w = models.FloatField(_("zona largura"), null=True, blank=True)
    zone_h = models.FloatField(_("zona altura"), null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        verbose_name=_("criado por"),
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_by_role = models.CharField(_("papel de quem criou"), max_length=16, choices=Role.choices, blank=True, default="")
    resolved_at = models.DateTimeField(_("resolvido em"), null=True, blank=True)

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True)
    updated_at = models.DateTimeField(_("atualizado em"), auto_now=True)

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("conversa de arquivo")
        verbose_name_plural = _("conversas de arquivo")
        ordering = ("-updated_at", "-id")
        indexes = [
            models.Index(fields=["store", "version_group_id"], name="fotofacil_thread_store_group"),
        ]

    def __str__(self) -> str:
        return f"#{self.pk} {self.version_group_id}"

    @property
    def has_zone(self) -> bool:
        return None not in (self.zone_x, self.zone_y, self.zone_w, self.zone_h)

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None


class ThreadMessage(models.Model):
    thread = models.ForeignKey(
        MediaThread,
        verbose_name=_("conversa"),
        on_delete=models.CASCADE,
        related_name="messages",
    )
    # Versão do arquivo a que a mensagem se refere, quando informada
    file = models.ForeignKey(
        "fotofacil.UploadFile",
        verbose_name=_("arquivo"),
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        verbose_name=_("autor"),
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    author_role = models.CharField(_("papel do autor"), max_length=16, choices=Role.choices)
    text = models.TextField(_("texto"))

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True)

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("mensagem da conversa")
        verbose_name_plural = _("mensagens da conversa")
        ordering = ("created_at", "id")

    def __str__(self) -> str:
        return f"{self.author_role}@{self.thread_id}: {self.text[:40]}"


class ThreadRead(models.Model):
    """Até onde cada usuário leu uma conversa."""

    thread = models.ForeignKey(
        MediaThread,
        verbose_name=_("conversa"),
        on_delete=models.CASCADE,
        related_name="reads",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        verbose_name=_("usuário"),
        on_delete=models.CASCADE,
        related_name="+",
    )
    last_read_at = models.DateTimeField(_("lido até"))

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("leitura de conversa")
        verbose_name_plural = _("leituras de conversa")
        constraints = [
            models.UniqueConstraint(fields=["thread", "user"], name="fotofacil_threadread_thread_user"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}@{self.thread_id}"
