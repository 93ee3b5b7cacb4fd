"""
FotoFacil Notifications Protocols — Interface para backends.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass
class NotificationResult:
    """Resultado do envio para um destinatário."""

    success: bool
    message_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class RenderedMessage:
    """Assunto e corpo prontos (ver messages.render_message)."""

    subject: str
    body: str


@runtime_checkable
class NotificationBackend(Protocol):
    """
    Backend de notificação: recebe o evento e o contexto cru e decide
    como apresentá-los (email, log...).
    """

    def send(
        self,
        *,
        event: str,
        recipient: str,
        context: dict[str, Any],
    ) -> NotificationResult:
        """
        Args:
            event: "upload.missing" | "upload.offdate"
            recipient: Email do destinatário
            context: Dados do evento (ver messages.EVENT_TEMPLATES)
        """
        ...
