"""
Avisos por email das alertas de subida.

    upload.missing  lojas sem envio depois do horário limite (admin + clusters + lojas)
    upload.offdate  loja enviou conteúdo para um dia diferente de hoje

Backends registrados em FotofacilConfig.ready(): "console" e "email".
O ativo vem de FOTOFACIL["NOTIFICATION_BACKEND"].
"""

from .messages import render_message
from .protocols import NotificationBackend, NotificationResult, RenderedMessage
from .service import get_backend, notify, notify_admin, notify_many, register_backend

__all__ = [
    "notify",
    "notify_many",
    "notify_admin",
    "get_backend",
    "register_backend",
    "render_message",
    "NotificationBackend",
    "NotificationResult",
    "RenderedMessage",
]
