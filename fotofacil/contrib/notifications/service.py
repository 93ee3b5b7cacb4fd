"""
Envio de notificações por backend registrado.

Best-effort: nenhuma falha de backend chega ao chamador; tudo vira um
NotificationResult com success=False e uma linha de log.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from fotofacil.conf import get_fotofacil_setting

from .protocols import NotificationBackend, NotificationResult

logger = logging.getLogger(__name__)

_backends: dict[str, NotificationBackend] = {}


def register_backend(name: str, backend: NotificationBackend) -> None:
    _backends[name] = backend
    logger.debug("notifications.backend_registered", extra={"backend": name})


def get_backend(name: str | None = None) -> NotificationBackend | None:
    """Backend pelo nome; sem nome, o de FOTOFACIL["NOTIFICATION_BACKEND"]."""
    return _backends.get(name or get_fotofacil_setting("NOTIFICATION_BACKEND"))


def notify(
    *,
    event: str,
    recipient: str,
    context: dict[str, Any],
    backend: str | None = None,
) -> NotificationResult:
    """
    Entrega um evento a um destinatário.

    Example:
        notify(
            event="upload.offdate",
            recipient="norte@empresa.es",
            context={"store_code": "T001", "target_date": "2026-02-25"},
        )
    """
    sender = get_backend(backend)
    if sender is None:
        name = backend or get_fotofacil_setting("NOTIFICATION_BACKEND")
        logger.warning("notifications.backend_missing", extra={"backend": name, "event": event})
        return NotificationResult(success=False, error=f"Backend not found: {name}")

    try:
        result = sender.send(event=event, recipient=recipient, context=context)
    except Exception as e:
        logger.exception("notifications.backend_error", extra={"event": event, "recipient": recipient})
        return NotificationResult(success=False, error=str(e))

    if not result.success:
        logger.warning(
            "notifications.not_delivered",
            extra={"event": event, "recipient": recipient, "error": result.error},
        )
    return result


def unique_recipients(recipients: Iterable[str | None]) -> list[str]:
    """Emails normalizados (trim + minúsculas), sem vazios nem repetidos, na ordem."""
    seen: list[str] = []
    for email in recipients:
        cleaned = (email or "").strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


def notify_many(
    *,
    event: str,
    recipients: Iterable[str | None],
    context: dict[str, Any],
    backend: str | None = None,
) -> list[NotificationResult]:
    return [
        notify(event=event, recipient=recipient, context=context, backend=backend)
        for recipient in unique_recipients(recipients)
    ]


def notify_admin(*, event: str, context: dict[str, Any], backend: str | None = None) -> NotificationResult | None:
    """Notifica ADMIN_NOTIFICATION_EMAIL, se configurado."""
    admin_email = get_fotofacil_setting("ADMIN_NOTIFICATION_EMAIL")
    if not admin_email:
        return None
    return notify(event=event, recipient=admin_email, context=context, backend=backend)
