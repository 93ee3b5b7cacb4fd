"""
Email Backend — Envia notificações via Django email.
"""

from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.core.mail import send_mail

from fotofacil.contrib.notifications.messages import render_message
from fotofacil.contrib.notifications.protocols import NotificationResult

logger = logging.getLogger(__name__)


class EmailBackend:
    """
    Backend de email (settings.EMAIL_*), um email por destinatário.

    Args:
        from_email: Remetente (default: settings.DEFAULT_FROM_EMAIL)
        subject_prefix: Prefixo do assunto (ex.: "[FotoFacil]")
    """

    def __init__(self, from_email: str | None = None, subject_prefix: str = ""):
        self.from_email = from_email or getattr(settings, "DEFAULT_FROM_EMAIL", None)
        self.subject_prefix = subject_prefix

    def send(self, *, event: str, recipient: str, context: dict[str, Any]) -> NotificationResult:
        message = render_message(event, context, subject_prefix=self.subject_prefix)
        try:
            send_mail(
                subject=message.subject,
                message=message.body,
                from_email=self.from_email,
                recipient_list=[recipient],
                fail_silently=False,
            )
        except Exception as e:
            logger.warning(
                "notifications.email_failed",
                extra={"event": event, "recipient": recipient, "error": str(e)},
            )
            return NotificationResult(success=False, error=str(e))

        logger.info("notifications.email_sent", extra={"event": event, "recipient": recipient})
        return NotificationResult(success=True, message_id=f"email_{recipient}")
