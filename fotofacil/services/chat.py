"""
ChatService — Chat loja ↔ gestão e lembretes de gestor.

Cada loja tem uma caixa de mensagens. Quem lê marca como lidas as
mensagens do outro lado: a loja lê o que veio da gestão e vice-versa.

Emails de mensagem nova vão ao outro lado, após o commit:
- loja escreveu: ADMIN_NOTIFICATION_EMAIL + gestores do cluster da loja
- gestão escreveu: contas da loja
"""

from __future__ import annotations

import logging
from typing import Any

from django.db import transaction
from django.utils import timezone

from fotofacil.choices import Role
from fotofacil.conf import get_fotofacil_setting
from fotofacil.contrib.drive import get_storage_backend
from fotofacil.contrib.drive.folders import CHAT_FOLDER, ensure_child_folder, ensure_store_folder
from fotofacil.contrib.notifications import notify_admin, notify_many
from fotofacil.dates import format_date_key, today as local_today
from fotofacil.exceptions import ValidationError
from fotofacil.ids import extension_from_filename
from fotofacil.images import normalize_image
from fotofacil.models import Message, Store

from .alerts import profile_emails
from .audit import AuditService
from .uploads import actor_role, discard_stored_file


logger = logging.getLogger(__name__)


CHAT_PAGE_SIZE = 30
MAX_CHAT_TEXT = 1200
MAX_REMINDER_TEXT = 500
DEFAULT_REMINDER_TEXT = (
    "Recordatorio: por favor sube el contenido diario requerido en cuanto te sea posible. Gracias."
)


def notify_counterpart(store: Store, author_role: str, *, event: str, context: dict[str, Any]) -> None:
    """Agenda (on_commit) o email do evento para o outro lado da conversa."""
    if author_role == Role.STORE:
        recipients = profile_emails(role=Role.CLUSTER, cluster_id=store.cluster_id) if store.cluster_id else []
        include_admin = True
    else:
        recipients = profile_emails(role=Role.STORE, store=store)
        include_admin = False

    def _send():
        if include_admin:
            notify_admin(event=event, context=context)
        notify_many(event=event, recipients=recipients, context=context)

    transaction.on_commit(_send)


def message_summary(message: Message) -> dict:
    return {
        "id": message.pk,
        "store_id": message.store_id,
        "from_role": message.from_role,
        "author_id": message.author_id,
        "text": message.text,
        "is_automatic": message.is_automatic,
        "attachment_drive_file_id": message.attachment_drive_file_id,
        "attachment_web_view_link": message.attachment_web_view_link,
        "read_at": message.read_at,
        "created_at": message.created_at,
    }


def _chat_filename(store: Store, extension: str) -> str:
    stamp = int(timezone.now().timestamp() * 1000)
    return f"{store.store_code}_{format_date_key(local_today())}_CHAT_{stamp}.{extension}"


class ChatService:
    """
    Mensagens de uma loja.

    Paginação por cursor: `before` é o id da mensagem mais antiga já
    recebida; a página vem em ordem cronológica.
    """

    @staticmethod
    def list_messages(store: Store, viewer, *, before: int | None = None, page_size: int = CHAT_PAGE_SIZE) -> dict:
        qs = Message.objects.filter(store=store).order_by("-id")
        if before:
            qs = qs.filter(pk__lt=before)
        page = list(qs[: page_size + 1])
        has_more = len(page) > page_size
        page = page[:page_size]

        unread = Message.objects.filter(store=store, read_at__isnull=True)
        if actor_role(viewer) == Role.STORE:
            unread = unread.exclude(from_role=Role.STORE)
        else:
            unread = unread.filter(from_role=Role.STORE)
        marked = unread.update(read_at=timezone.now())
        if marked:
            logger.debug("chat.marked_read", extra={"store_id": store.pk, "count": marked})

        return {
            "items": [message_summary(m) for m in reversed(page)],
            "next_cursor": page[-1].pk if has_more else None,
        }

    @staticmethod
    def post_message(
        store: Store,
        user,
        *,
        text: str = "",
        attachment: bytes | None = None,
        mime_type: str = "",
        original_filename: str = "",
    ) -> dict:
        """
        Grava uma mensagem com texto e/ou imagem anexa.

        O anexo é normalizado (Pillow) e vai para a pasta INCIDENCIAS da loja.

        Raises:
            ValidationError: text_too_long, message_empty, file_too_large, invalid_image
            StorageError: falha no Drive
        """
        text = (text or "").strip()
        if len(text) > MAX_CHAT_TEXT:
            raise ValidationError(
                code="text_too_long",
                message=f"Mensaje demasiado largo (máximo {MAX_CHAT_TEXT} caracteres)",
                context={"max_length": MAX_CHAT_TEXT},
            )
        if not text and not attachment:
            raise ValidationError(code="message_empty", message="Escribe un mensaje o adjunta una imagen")

        role = actor_role(user)
        backend = get_storage_backend()
        stored = None
        if attachment:
            max_bytes = get_fotofacil_setting("MAX_PHOTO_BYTES")
            if len(attachment) > max_bytes:
                raise ValidationError(
                    code="file_too_large",
                    message=f"Archivo demasiado grande (máximo {max_bytes} bytes)",
                    context={"bytes": len(attachment), "max_bytes": max_bytes},
                )
            normalized = normalize_image(attachment, mime_type or "application/octet-stream")
            extension = normalized.extension
            if extension == "bin":
                extension = extension_from_filename(original_filename) or "bin"

            store_folder_id = ensure_store_folder(
                backend,
                cluster_name=store.cluster.name if store.cluster_id else None,
                store_label=store.folder_label,
                cached_store_folder_id=store.drive_folder_id,
            )
            if store.drive_folder_id != store_folder_id:
                store.drive_folder_id = store_folder_id
                store.save(update_fields=["drive_folder_id", "updated_at"])
            stored = backend.upload_bytes(
                parent_id=ensure_child_folder(backend, store_folder_id, CHAT_FOLDER),
                name=_chat_filename(store, extension),
                mime_type=normalized.mime_type,
                data=normalized.data,
            )

        try:
            with transaction.atomic():
                message = Message.objects.create(
                    store=store,
                    from_role=role,
                    author=user,
                    text=text,
                    attachment_drive_file_id=stored.id if stored else None,
                    attachment_web_view_link=stored.web_view_link if stored else None,
                )
                AuditService.write(
                    "MESSAGE_SENT",
                    store=store,
                    user=user,
                    payload={"message_id": message.pk, "has_attachment": stored is not None},
                )
                notify_counterpart(
                    store,
                    role,
                    event="message.new",
                    context={
                        "store_code": store.store_code,
                        "store_name": store.name,
                        "author": user.get_username(),
                        "from_role": role,
                        "text": text or "(imagen adjunta)",
                    },
                )
        except Exception:
            if stored is not None:
                discard_stored_file(backend, stored.id)
            raise

        logger.info(
            "chat.message_sent",
            extra={"store_id": store.pk, "message_id": message.pk, "from_role": role},
        )
        return message_summary(message)

    @staticmethod
    def send_reminder(store: Store, manager, text: str | None = None) -> dict:
        """
        Lembrete do gestor na caixa da loja (texto padrão se vazio).

        Raises:
            ValidationError: code="text_too_long"
        """
        text = (text or "").strip()
        if len(text) > MAX_REMINDER_TEXT:
            raise ValidationError(
                code="text_too_long",
                message=f"Recordatorio demasiado largo (máximo {MAX_REMINDER_TEXT} caracteres)",
                context={"max_length": MAX_REMINDER_TEXT},
            )
        role = actor_role(manager)

        with transaction.atomic():
            message = Message.objects.create(
                store=store,
                from_role=role,
                author=manager,
                text=text or DEFAULT_REMINDER_TEXT,
            )
            AuditService.write(
                "MANAGER_REMINDER_SENT",
                store=store,
                user=manager,
                payload={"message_id": message.pk, "from_role": role},
            )

        logger.info("chat.reminder_sent", extra={"store_id": store.pk, "message_id": message.pk})
        return message_summary(message)
