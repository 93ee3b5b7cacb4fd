"""
Console Backend — Notificações só no log (desenvolvimento e testes).
"""

from __future__ import annotations

import logging
from typing import Any

from fotofacil.contrib.notifications.messages import render_message
from fotofacil.contrib.notifications.protocols import NotificationResult

logger = logging.getLogger(__name__)


class ConsoleBackend:
    """
    Renderiza a mensagem e a escreve no log em vez de enviar.

    Cada envio fica em `sent` (evento, destinatário, contexto, assunto).
    """

    def __init__(self):
        self.sent: list[dict[str, Any]] = []

    def send(self, *, event: str, recipient: str, context: dict[str, Any]) -> NotificationResult:
        message = render_message(event, context)
        self.sent.append({
            "event": event,
            "recipient": recipient,
            "context": dict(context),
            "subject": message.subject,
        })
        logger.info(
            "notification [%s] to=%s subject=%s\n%s",
            event,
            recipient,
            message.subject,
            message.body,
        )
        return NotificationResult(success=True, message_id=f"console_{len(self.sent)}")
