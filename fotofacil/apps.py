"""
Django AppConfig para FotoFacil.
"""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class FotofacilConfig(AppConfig):
    name = "fotofacil"
    label = "fotofacil"
    verbose_name = _("FotoFacil")
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        """Registra os backends de notificação padrão quando a app carrega."""
        from fotofacil.contrib.notifications.backends import ConsoleBackend, EmailBackend
        from fotofacil.contrib.notifications.service import get_backend, register_backend

        # Mantém backends registrados pelo projeto (pode acontecer em reloads)
        if get_backend("console") is None:
            register_backend("console", ConsoleBackend())
        if get_backend("email") is None:
            register_backend("email", EmailBackend(subject_prefix="[FotoFacil]"))
