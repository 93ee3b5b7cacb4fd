"""
ThreadService — Conversas sobre arquivos enviados (anotações com zona opcional).

Uma conversa nasce de um arquivo e vale para todo o grupo de versões:
ao substituir a foto, a conversa continua e pode apontar a nova versão.
Não lidas = mensagens de outros autores depois do marcador de leitura
do usuário.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db import transaction
from django.db.models import Prefetch
from django.utils import timezone

from fotofacil.exceptions import NotFound, ValidationError
from fotofacil.models import MediaThread, ThreadMessage, ThreadRead, UploadFile

from .audit import AuditService
from .chat import notify_counterpart
from .uploads import actor_role


logger = logging.getLogger(__name__)


MAX_THREAD_TEXT = 4000
ZONE_FIELDS = ("zone_x", "zone_y", "zone_w", "zone_h")


def _clean_text(text: str | None) -> str:
    text = (text or "").strip()
    if not text:
        raise ValidationError(code="text_required", message="text es obligatorio")
    if len(text) > MAX_THREAD_TEXT:
        raise ValidationError(
            code="text_too_long",
            message=f"Mensaje demasiado largo (máximo {MAX_THREAD_TEXT} caracteres)",
            context={"max_length": MAX_THREAD_TEXT},
        )
    return text


def _clean_zone(zone: dict[str, Any] | None) -> dict[str, float]:
    """
    Zona relativa à imagem: as quatro coordenadas em 0..1 ou nenhuma.

    Raises:
        ValidationError: code="invalid_zone"
    """
    values = {k: (zone or {}).get(k) for k in ZONE_FIELDS}
    given = {k: v for k, v in values.items() if v is not None}
    if not given:
        return {}
    if len(given) != len(ZONE_FIELDS):
        raise ValidationError(
            code="invalid_zone",
            message="La zona requiere zone_x, zone_y, zone_w y zone_h",
            context={"missing": [k for k in ZONE_FIELDS if k not in given]},
        )
    cleaned = {k: float(v) for k, v in given.items()}
    if any(v < 0 or v > 1 for v in cleaned.values()):
        raise ValidationError(code="invalid_zone", message="Coordenadas de zona fuera de rango (0..1)", context=cleaned)
    return cleaned


def _file_in_thread_group(thread: MediaThread, file_id) -> UploadFile:
    """
    Raises:
        ValidationError: code="invalid_thread_file"
    """
    record = UploadFile.objects.filter(
        pk=file_id,
        upload_day__store_id=thread.store_id,
        version_group_id=thread.version_group_id,
    ).first()
    if record is None:
        raise ValidationError(
            code="invalid_thread_file",
            message="Archivo no válido para esta conversación",
            context={"file_id": file_id},
        )
    return record


def _mark_read(thread: MediaThread, user, at) -> None:
    ThreadRead.objects.update_or_create(thread=thread, user=user, defaults={"last_read_at": at})


def thread_message_summary(message: ThreadMessage) -> dict:
    return {
        "id": message.pk,
        "thread_id": message.thread_id,
        "file_id": message.file_id,
        "file_version_number": message.file.version_number if message.file_id and message.file else None,
        "author_id": message.author_id,
        "author_role": message.author_role,
        "text": message.text,
        "created_at": message.created_at,
    }


def thread_summary(thread: MediaThread, messages: list[ThreadMessage] | None = None, last_read_at=None, viewer=None) -> dict:
    data = {
        "id": thread.pk,
        "store_id": thread.store_id,
        "upload_day_id": thread.upload_day_id,
        "root_file_id": thread.root_file_id,
        "current_file_id": thread.current_file_id,
        "version_group_id": thread.version_group_id,
        "zone_x": thread.zone_x,
        "zone_y": thread.zone_y,
        "zone_w": thread.zone_w,
        "zone_h": thread.zone_h,
        "resolved_at": thread.resolved_at,
        "updated_at": thread.updated_at,
    }
    if messages is not None:
        viewer_id = getattr(viewer, "pk", None)
        data["unread_count"] = sum(
            1
            for m in messages
            if m.author_id != viewer_id and (last_read_at is None or m.created_at > last_read_at)
        )
        data["messages"] = [thread_message_summary(m) for m in messages]
    return data


def _notify_thread_message(thread: MediaThread, user, role: str, text: str) -> None:
    current = thread.current_file
    notify_counterpart(
        thread.store,
        role,
        event="thread.message",
        context={
            "store_code": thread.store.store_code,
            "store_name": thread.store.name,
            "final_filename": current.final_filename if current else thread.version_group_id,
            "author": user.get_username(),
            "text": text,
        },
    )


class ThreadService:
    """
    Serviço de conversas de arquivo.

    O controle de acesso (loja dona ou gestor no alcance) fica nas views;
    aqui só se garante que arquivos citados são do mesmo grupo e loja.
    """

    @staticmethod
    def get_thread(thread_id) -> MediaThread:
        thread = (
            MediaThread.objects.select_related("store", "current_file")
            .filter(pk=thread_id)
            .first()
        )
        if thread is None:
            raise NotFound(code="thread_not_found", message="Conversación no encontrada", context={"thread_id": thread_id})
        return thread

    @staticmethod
    def list_for_file(record: UploadFile, viewer) -> list[dict]:
        """Conversas do grupo de versões do arquivo, mais recentes primeiro."""
        threads = list(
            MediaThread.objects.filter(
                store_id=record.upload_day.store_id,
                version_group_id=record.version_group_id,
            )
            .order_by("-updated_at", "-id")
            .prefetch_related(
                Prefetch("messages", queryset=ThreadMessage.objects.select_related("file").order_by("created_at", "id"))
            )
        )
        reads = dict(
            ThreadRead.objects.filter(thread__in=threads, user=viewer).values_list("thread_id", "last_read_at")
        )
        return [
            thread_summary(t, list(t.messages.all()), last_read_at=reads.get(t.pk), viewer=viewer)
            for t in threads
        ]

    @staticmethod
    def create(record: UploadFile, user, text: str, zone: dict[str, Any] | None = None) -> dict:
        """
        Abre conversa sobre o arquivo com a primeira mensagem.

        Raises:
            ValidationError: text_required, text_too_long, invalid_zone
        """
        text = _clean_text(text)
        coordinates = _clean_zone(zone)
        role = actor_role(user)
        store = record.upload_day.store

        with transaction.atomic():
            thread = MediaThread.objects.create(
                store=store,
                upload_day=record.upload_day,
                root_file=record,
                current_file=record,
                version_group_id=record.version_group_id,
                created_by=user,
                created_by_role=role,
                **coordinates,
            )
            message = ThreadMessage.objects.create(
                thread=thread,
                file=record,
                author=user,
                author_role=role,
                text=text,
            )
            _mark_read(thread, user, message.created_at)
            AuditService.write(
                "MEDIA_THREAD_CREATED",
                store=store,
                user=user,
                payload={"file_id": record.pk, "thread_id": thread.pk, "has_zone": thread.has_zone},
            )
            _notify_thread_message(thread, user, role, text)

        logger.info(
            "thread.created",
            extra={"thread_id": thread.pk, "store_id": store.pk, "file_id": record.pk},
        )
        return thread_summary(thread, [message], last_read_at=message.created_at, viewer=user)

    @staticmethod
    def post_message(thread: MediaThread, user, text: str, file_id=None) -> dict:
        """
        Responde na conversa; `file_id` (mesmo grupo) passa a ser a versão atual dela.

        Raises:
            ValidationError: text_required, text_too_long, invalid_thread_file
        """
        text = _clean_text(text)
        linked = _file_in_thread_group(thread, file_id) if file_id else None
        role = actor_role(user)

        with transaction.atomic():
            message = ThreadMessage.objects.create(
                thread=thread,
                file=linked,
                author=user,
                author_role=role,
                text=text,
            )
            if linked is not None:
                thread.current_file = linked
            thread.save(update_fields=["current_file", "updated_at"])
            _mark_read(thread, user, message.created_at)
            AuditService.write(
                "MEDIA_THREAD_MESSAGE_SENT",
                store=thread.store,
                user=user,
                payload={"thread_id": thread.pk, "file_id": linked.pk if linked else None},
            )
            _notify_thread_message(thread, user, role, text)

        logger.info("thread.message_sent", extra={"thread_id": thread.pk, "message_id": message.pk})
        return thread_message_summary(message)

    @staticmethod
    def update(thread: MediaThread, user, *, resolved: bool | None = None, current_file_id=None) -> dict:
        """
        Marca/desmarca resolvida e/ou troca a versão atual da conversa.

        Raises:
            ValidationError: code="invalid_thread_file"
        """
        if current_file_id:
            thread.current_file = _file_in_thread_group(thread, current_file_id)
        if resolved is not None:
            thread.resolved_at = timezone.now() if resolved else None

        with transaction.atomic():
            thread.save(update_fields=["current_file", "resolved_at", "updated_at"])
            AuditService.write(
                "MEDIA_THREAD_UPDATED",
                store=thread.store,
                user=user,
                payload={"thread_id": thread.pk, "resolved": resolved, "current_file_id": thread.current_file_id},
            )

        logger.info(
            "thread.updated",
            extra={"thread_id": thread.pk, "resolved": thread.is_resolved, "current_file_id": thread.current_file_id},
        )
        return thread_summary(thread)

    @staticmethod
    def mark_read(thread: MediaThread, user) -> dict:
        now = timezone.now()
        _mark_read(thread, user, now)
        return {"thread_id": thread.pk, "read_at": now}
