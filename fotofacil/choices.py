"""
FotoFacil Choices — Enums compartilhados entre modelos e núcleo puro.

Ficam fora de models/ para que resolution.py e evaluation.py possam ser
usados sem app registry carregado.
"""

from __future__ import annotations

from django.db import models
from django.utils.translation import gettext_lazy as _


class RequirementKind(models.TextChoices):
    """O que precisa ser enviado num dia."""
    NONE = "NONE", _("Sin requerimiento")
    PHOTO = "PHOTO", _("Foto")
    VIDEO = "VIDEO", _("Video")
    BOTH = "BOTH", _("Foto + Video")


class UploadKind(models.TextChoices):
    PHOTO = "PHOTO", _("Foto")
    VIDEO = "VIDEO", _("Video")


class DayStatus(models.TextChoices):
    PENDING = "PENDING", _("Pendiente")
    PARTIAL = "PARTIAL", _("Parcial")
    COMPLETE = "COMPLETE", _("Completo")


class Role(models.TextChoices):
    SUPERADMIN = "SUPERADMIN", _("Superadmin")
    CLUSTER = "CLUSTER", _("Cluster")
    STORE = "STORE", _("Tienda")


class AlertType(models.TextChoices):
    MISSING_UPLOAD = "MISSING_UPLOAD", _("Subida pendiente")


class RuleScope(models.TextChoices):
    GLOBAL = "global", _("Global")
    CLUSTER = "cluster", _("Cluster")
    STORE = "store", _("Tienda")
