from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from fotofacil.choices import Role


class Cluster(models.Model):
    """
    Agrupamento de lojas (região) com um gestor responsável.
    """

    code = models.CharField(_("código"), max_length=32, unique=True)
    name = models.CharField(_("nome"), max_length=128)
    is_active = models.BooleanField(_("ativo"), default=True)

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True)
    updated_at = models.DateTimeField(_("atualizado em"), auto_now=True)

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("cluster")
        verbose_name_plural = _("clusters")
        ordering = ("name", "id")

    def __str__(self) -> str:
        return self.name


class Store(models.Model):
    """
    Loja que envia fotos/vídeos diários.

    `deadline_time` é o horário (HH:MM, fuso do projeto) a partir do qual
    um dia ainda não enviado gera alerta. `drive_folder_id` guarda a pasta
    raiz da loja no Drive, quando conhecida.
    """

    store_code = models.CharField(_("código da loja"), max_length=32, unique=True)
    name = models.CharField(_("nome"), max_length=128)
    cluster = models.ForeignKey(
        Cluster,
        verbose_name=_("cluster"),
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stores",
    )
    is_active = models.BooleanField(_("ativo"), default=True)
    deadline_time = models.CharField(_("horário limite"), max_length=5, default="10:30")
    drive_folder_id = models.CharField(_("pasta no Drive"), max_length=128, null=True, blank=True)

    created_at = models.DateTimeField(_("criado em"), auto_now_add=True)
    updated_at = models.DateTimeField(_("atualizado em"), auto_now=True)

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("loja")
        verbose_name_plural = _("lojas")
        ordering = ("store_code", "id")

    def __str__(self) -> str:
        return f"{self.store_code} {self.name}"

    @property
    def folder_label(self) -> str:
        return f"{self.store_code} {self.name}"


class UserProfile(models.Model):
    """
    Vincula um usuário Django a um papel e tenant (loja ou cluster).

    - SUPERADMIN: vê e gerencia tudo
    - CLUSTER: gerencia as lojas do seu cluster
    - STORE: envia arquivos da sua loja
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        verbose_name=_("usuário"),
        on_delete=models.CASCADE,
        related_name="fotofacil_profile",
    )
    role = models.CharField(_("papel"), max_length=16, choices=Role.choices, default=Role.STORE)
    store = models.ForeignKey(
        Store,
        verbose_name=_("loja"),
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="profiles",
    )
    cluster = models.ForeignKey(
        Cluster,
        verbose_name=_("cluster"),
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="profiles",
    )

    class Meta:
        app_label = "fotofacil"
        verbose_name = _("perfil")
        verbose_name_plural = _("perfis")

    def __str__(self) -> str:
        return f"{self.user} ({self.role})"

    @property
    def is_superadmin(self) -> bool:
        return self.role == Role.SUPERADMIN

    @property
    def is_cluster_manager(self) -> bool:
        return self.role == Role.CLUSTER

    def can_manage_store(self, store: Store) -> bool:
        if self.is_superadmin:
            return True
        if self.is_cluster_manager:
            return bool(self.cluster_id) and store.cluster_id == self.cluster_id
        return False

    def can_access_store(self, store: Store) -> bool:
        """Gestores no seu alcance ou a conta da própria loja."""
        if self.role == Role.STORE:
            return bool(self.store_id) and self.store_id == store.pk
        return self.can_manage_store(store)
