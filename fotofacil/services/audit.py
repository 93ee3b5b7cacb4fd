"""
AuditService — Trilha de auditoria.
"""

from __future__ import annotations

import logging
from typing import Any

from fotofacil.models import AuditLog


logger = logging.getLogger(__name__)


class AuditService:
    """Grava entradas de auditoria (append-only)."""

    @staticmethod
    def write(action: str, *, store=None, user=None, payload: dict[str, Any] | None = None) -> AuditLog:
        if user is not None and not getattr(user, "is_authenticated", False):
            user = None

        entry = AuditLog.objects.create(
            action=action,
            store=store,
            user=user,
            payload=payload or {},
        )
        logger.debug(
            "audit.written",
            extra={"action": action, "store_id": getattr(store, "pk", None)},
        )
        return entry
