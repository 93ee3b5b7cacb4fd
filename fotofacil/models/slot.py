from __future__ import annotations

from django.db import models
from django.utils.translation import gettext_lazy as _


class SlotTemplateQuerySet(models.QuerySet):
    def effective_for(self, store) -> list["SlotTemplate"]:
        """
        Slots que valem para a loja: os próprios, se houver algum;
        senão os globais (store nulo). Ordenados por (order, name).
        """
        own = list(self.filter(store=store).order_by("order", "name"))
        if own:
            return own
        return list(self.filter(store__isnull=True).order_by("order", "name"))


class SlotTemplate(models.Model):
    """
    Slot de foto (ex.: ESCAPARATE, FACHADA) que a loja deve cobrir.
    """

    name = models.CharField(_("nome"), max_length=64)
    store = models.ForeignKey(
        "fotofacil.Store",
        verbose_name=_("loja"),
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="slot_templates",
        help_text=_("Vazio = slot global"),
    )
    required = models.BooleanField(_("obrigatório"), default=True)
    order = models.PositiveIntegerField(_("ordem"), default=0)
    allow_multiple = models.BooleanField(_("permite várias fotos"), default=False)

    objects = SlotTemplateQuerySet.as_manager()

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("slot")
        verbose_name_plural = _("slots")
        ordering = ("order", "name")

    def __str__(self) -> str:
        return self.name


def required_slot_names(slots) -> list[str]:
    return [slot.name for slot in slots if slot.required]
