from __future__ import annotations

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from fotofacil.choices import RequirementKind, RuleScope


class UploadRule(models.Model):
    """
    Regra de envio por dia da semana (0=Domingo ... 6=Sábado).

    O escopo deriva do dono: loja, cluster ou nenhum (global). Regras
    globais duplicadas para o mesmo dia são toleradas; vale a de maior
    `updated_at`.
    """

    store = models.ForeignKey(
        "fotofacil.Store",
        verbose_name=_("loja"),
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="upload_rules",
    )
    cluster = models.ForeignKey(
        "fotofacil.Cluster",
        verbose_name=_("cluster"),
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="upload_rules",
    )
    weekday = models.PositiveSmallIntegerField(
        _("dia da semana"),
        validators=[MinValueValidator(0), MaxValueValidator(6)],
    )
    requirement = models.CharField(
        _("requisito"),
        max_length=8,
        choices=RequirementKind.choices,
        default=RequirementKind.NONE,
    )

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True)
    updated_at = models.DateTimeField(_("atualizado em"), auto_now=True)

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("regra de envio")
        verbose_name_plural = _("regras de envio")
        ordering = ("weekday", "id")
        constraints = [
            models.CheckConstraint(
                condition=~(models.Q(store__isnull=False) & models.Q(cluster__isnull=False)),
                name="fotofacil_rule_single_owner",
            ),
        ]
        indexes = [
            models.Index(fields=["store", "weekday"], name="fotofacil_rule_store_wd"),
            models.Index(fields=["cluster", "weekday"], name="fotofacil_rule_cluster_wd"),
        ]

    def __str__(self) -> str:
        return f"{self.scope}:{self.weekday}={self.requirement}"

    @property
    def scope(self) -> str:
        if self.store_id:
            return RuleScope.STORE
        if self.cluster_id:
            return RuleScope.CLUSTER
        return RuleScope.GLOBAL
