"""
FotoFacil API Views — Endpoints REST para lojas e gestores.

Lojas (IsStoreUser):
    GET  /api/day-view?date=            Visão do dia (requisito, status, slots)
    POST /api/upload/photo              Subida de foto (multipart)
    POST /api/upload/video/init         Abre a subida resumível
    POST /api/upload/video/chunk        Repassa um intervalo de bytes
    POST /api/upload/video/finalize     Grava o registro e reavalia o dia
    GET  /api/history                   Dias da loja (padrão: últimos 30)

Gestores (IsManager):
    GET/DELETE /api/files/{id}          Detalhe / remoção com promoção de versão
    POST       /api/files/{id}/validate Marca ou desmarca validação
    GET/PUT    /api/upload-rules        Regras por escopo (global, cluster, loja)
    POST       /api/stores/{id}/remind  Lembrete na caixa da loja

Loja dona ou gestor no alcance (IsParticipant):
    GET/POST /api/stores/{id}/messages  Chat da loja (texto e/ou imagem)
    GET/POST /api/threads               Conversas de um arquivo / nova conversa
    PATCH    /api/threads/{id}          Resolver, trocar versão atual
    POST     /api/threads/{id}/messages Resposta na conversa
    POST     /api/threads/{id}/read     Marca a conversa como lida

Erros de domínio (FotofacilError) viram {code, message, context}:
    400 validação, token e destino; 403 acesso; 404 não encontrado; 502 armazenamento.

Configuração de Throttling (settings.py):

    REST_FRAMEWORK = {
        'DEFAULT_THROTTLE_RATES': {
            'user': '5000/hour',
            'fotofacil_chunk': '600/minute',  # Chunks de vídeo
        }
    }
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework.views import APIView

from fotofacil.conf import get_fotofacil_setting
from fotofacil.dates import parse_date_key, today
from fotofacil.exceptions import (
    AccessDenied,
    DestinationMismatch,
    FotofacilError,
    NotFound,
    StorageError,
    UploadTokenError,
    ValidationError,
)
from fotofacil.models import Store
from fotofacil.services import (
    ChatService,
    DayService,
    FileService,
    PhotoUploadService,
    RuleService,
    ThreadService,
    VideoUploadService,
)

from .permissions import get_profile
from .serializers import (
    ChatMessageSerializer,
    ChatQuerySerializer,
    DayViewQuerySerializer,
    FileValidateSerializer,
    HistoryQuerySerializer,
    PhotoUploadSerializer,
    ReminderSerializer,
    RuleScopeSerializer,
    RulesReplaceSerializer,
    ThreadCreateSerializer,
    ThreadListQuerySerializer,
    ThreadReplySerializer,
    ThreadUpdateSerializer,
    UploadFileSerializer,
    VideoChunkSerializer,
    VideoFinalizeSerializer,
    VideoInitSerializer,
)


logger = logging.getLogger(__name__)


ERROR_STATUS = (
    (AccessDenied, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (StorageError, status.HTTP_502_BAD_GATEWAY),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (UploadTokenError, status.HTTP_400_BAD_REQUEST),
    (DestinationMismatch, status.HTTP_400_BAD_REQUEST),
)


def _get_actor(request) -> str:
    """Extrai username do request ou retorna 'api' como fallback."""
    user = getattr(request, "user", None)
    return getattr(user, "username", None) or "api"


def error_status(exc: FotofacilError) -> int:
    for exc_class, http_status in ERROR_STATUS:
        if isinstance(exc, exc_class):
            return http_status
    return status.HTTP_400_BAD_REQUEST


class ChunkRateThrottle(UserRateThrottle):
    """
    Throttle específico para chunks de vídeo.

    Configure via 'fotofacil_chunk' em DEFAULT_THROTTLE_RATES.
    """

    scope = "fotofacil_chunk"


class FotofacilAPIView(APIView):
    """
    Base das views: permissões vindas de FOTOFACIL e tradução de erros.
    """

    permission_setting = "DEFAULT_PERMISSION_CLASSES"
    throttle_classes = [UserRateThrottle]

    def get_permissions(self):
        return [cls() for cls in get_fotofacil_setting(self.permission_setting)]

    def handle_exception(self, exc):
        if isinstance(exc, FotofacilError):
            http_status = error_status(exc)
            log = logger.error if http_status >= 500 else logger.warning
            log(
                "API request rejected",
                extra={
                    "view": type(self).__name__,
                    "actor": _get_actor(self.request),
                    "error_code": exc.code,
                    "error_message": exc.message,
                },
            )
            return Response(
                {"code": exc.code, "message": exc.message, "context": exc.context},
                status=http_status,
            )
        return super().handle_exception(exc)


def _store_forbidden(store) -> AccessDenied:
    return AccessDenied(
        code="store_forbidden",
        message="Tienda fuera de tu alcance",
        context={"store_id": store.pk},
    )


def _get_store(store_id) -> Store:
    store = Store.objects.select_related("cluster").filter(pk=store_id).first()
    if store is None:
        raise NotFound(code="store_not_found", message="Tienda no encontrada", context={"store_id": store_id})
    return store


class StoreAPIView(FotofacilAPIView):
    permission_setting = "STORE_PERMISSION_CLASSES"

    def get_store(self, request):
        return get_profile(request.user).store


class ManagerAPIView(FotofacilAPIView):
    permission_setting = "MANAGER_PERMISSION_CLASSES"

    def get_managed_store(self, request, store_id):
        store = _get_store(store_id)
        if not get_profile(request.user).can_manage_store(store):
            raise _store_forbidden(store)
        return store

    def get_managed_file(self, request, file_id):
        record = FileService.get_file(file_id)
        store = record.upload_day.store
        if not get_profile(request.user).can_manage_store(store):
            raise _store_forbidden(store)
        return record


class ParticipantAPIView(FotofacilAPIView):
    """Loja dona do recurso ou gestor com a loja no alcance."""

    permission_setting = "PARTICIPANT_PERMISSION_CLASSES"

    def check_store(self, request, store):
        if not get_profile(request.user).can_access_store(store):
            raise _store_forbidden(store)
        return store

    def get_accessible_store(self, request, store_id):
        return self.check_store(request, _get_store(store_id))

    def get_accessible_file(self, request, file_id):
        record = FileService.get_file(file_id)
        self.check_store(request, record.upload_day.store)
        return record

    def get_accessible_thread(self, request, thread_id):
        thread = ThreadService.get_thread(thread_id)
        self.check_store(request, thread.store)
        return thread


class DayView(StoreAPIView):
    def get(self, request):
        s = DayViewQuerySerializer(data=request.query_params)
        s.is_valid(raise_exception=True)
        raw = s.validated_data.get("date")
        day = parse_date_key(raw) if raw else today()
        return Response(DayService.day_view(self.get_store(request), day))


class PhotoUploadView(StoreAPIView):
    def post(self, request):
        s = PhotoUploadSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data
        upload = data.get("file")

        result = PhotoUploadService.upload(
            store=self.get_store(request),
            user=request.user,
            day=parse_date_key(data["date"]),
            slot_name=data.get("slot_name") or "",
            data=upload.read() if upload else b"",
            mime_type=getattr(upload, "content_type", "") or "",
            original_filename=getattr(upload, "name", "") or "",
            replace_file_id=data.get("replace_file_id") or None,
        )
        return Response(result, status=status.HTTP_201_CREATED)


class VideoInitView(StoreAPIView):
    def post(self, request):
        s = VideoInitSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data
        store = self.get_store(request)

        logger.info(
            "Video upload requested",
            extra={"store_id": store.pk, "actor": _get_actor(request), "total_bytes": data["total_bytes"]},
        )

        result = VideoUploadService.init(
            store=store,
            user=request.user,
            day=parse_date_key(data["date"]),
            mime_type=data.get("mime_type") or "",
            total_bytes=data["total_bytes"],
            original_filename=data.get("original_filename") or "",
            slot_name=data.get("slot_name"),
            replace_file_id=data.get("replace_file_id") or None,
        )
        return Response(result, status=status.HTTP_201_CREATED)


class VideoChunkView(StoreAPIView):
    throttle_classes = [ChunkRateThrottle]

    def post(self, request):
        s = VideoChunkSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        result = VideoUploadService.relay_chunk(
            store=self.get_store(request),
            user=request.user,
            token=data["finalize_token"],
            start=data["start"],
            end_exclusive=data["end_exclusive"],
            total_bytes=data["total_bytes"],
            chunk=data["chunk"].read(),
        )
        return Response(result)


class VideoFinalizeView(StoreAPIView):
    def post(self, request):
        s = VideoFinalizeSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        result = VideoUploadService.finalize(
            store=self.get_store(request),
            user=request.user,
            token=s.validated_data["finalize_token"],
            drive_file_id=s.validated_data.get("drive_file_id") or "",
        )
        http_status = status.HTTP_201_CREATED if result.get("created") else status.HTTP_200_OK
        return Response(result, status=http_status)


class FileDetailView(ManagerAPIView):
    def get(self, request, file_id: int):
        record = self.get_managed_file(request, file_id)
        return Response(UploadFileSerializer(record).data)

    def delete(self, request, file_id: int):
        record = self.get_managed_file(request, file_id)
        logger.info(
            "File delete requested",
            extra={"file_id": record.pk, "actor": _get_actor(request)},
        )
        return Response(FileService.delete(record, actor=request.user))


class FileValidateView(ManagerAPIView):
    def post(self, request, file_id: int):
        record = self.get_managed_file(request, file_id)
        s = FileValidateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        return Response(FileService.set_validated(record, s.validated_data["validated"], actor=request.user))


class UploadRulesView(ManagerAPIView):
    """
    Regras de envio por escopo.

    GET  ?scope=global|cluster|store&cluster_id=&store_id=
    PUT  {scope, cluster_id?, store_id?, rules: [{weekday, requirement}]}
    """

    def _target(self, request, data):
        return RuleService.resolve_target(
            get_profile(request.user),
            data.get("scope") or None,
            cluster_id=data.get("cluster_id"),
            store_id=data.get("store_id"),
        )

    def get(self, request):
        s = RuleScopeSerializer(data=request.query_params)
        s.is_valid(raise_exception=True)
        target = self._target(request, s.validated_data)
        return Response({**target.as_dict(), "rules": RuleService.read_rules(target)})

    def put(self, request):
        s = RulesReplaceSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        target = self._target(request, s.validated_data)
        rules = RuleService.replace_rules(target, s.validated_data["rules"], actor=request.user)
        return Response({**target.as_dict(), "rules": rules})


class HistoryView(StoreAPIView):
    def get(self, request):
        s = HistoryQuerySerializer(data=request.query_params)
        s.is_valid(raise_exception=True)
        data = s.validated_data
        items = DayService.history(
            self.get_store(request),
            date_from=parse_date_key(data["date_from"]) if data.get("date_from") else None,
            date_to=parse_date_key(data["date_to"]) if data.get("date_to") else None,
        )
        return Response({"items": items})


class StoreMessagesView(ParticipantAPIView):
    """
    Chat da loja.

    GET  ?before=<id>        Página (30) anterior ao id, em ordem cronológica
    POST {text?, attachment?} Mensagem com texto e/ou imagem
    """

    def get(self, request, store_id: int):
        store = self.get_accessible_store(request, store_id)
        s = ChatQuerySerializer(data=request.query_params)
        s.is_valid(raise_exception=True)
        return Response(ChatService.list_messages(store, request.user, before=s.validated_data.get("before")))

    def post(self, request, store_id: int):
        store = self.get_accessible_store(request, store_id)
        s = ChatMessageSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        attachment = s.validated_data.get("attachment")

        result = ChatService.post_message(
            store,
            request.user,
            text=s.validated_data.get("text") or "",
            attachment=attachment.read() if attachment else None,
            mime_type=getattr(attachment, "content_type", "") or "",
            original_filename=getattr(attachment, "name", "") or "",
        )
        return Response(result, status=status.HTTP_201_CREATED)


class StoreReminderView(ManagerAPIView):
    def post(self, request, store_id: int):
        store = self.get_managed_store(request, store_id)
        s = ReminderSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        logger.info(
            "Reminder requested",
            extra={"store_id": store.pk, "actor": _get_actor(request)},
        )
        result = ChatService.send_reminder(store, request.user, s.validated_data.get("text"))
        return Response(result, status=status.HTTP_201_CREATED)


class ThreadListView(ParticipantAPIView):
    """
    Conversas de um arquivo (grupo de versões).

    GET  ?file_id=
    POST {file_id, text, zone_x?, zone_y?, zone_w?, zone_h?}
    """

    def get(self, request):
        s = ThreadListQuerySerializer(data=request.query_params)
        s.is_valid(raise_exception=True)
        record = self.get_accessible_file(request, s.validated_data["file_id"])
        return Response({"items": ThreadService.list_for_file(record, request.user)})

    def post(self, request):
        s = ThreadCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data
        record = self.get_accessible_file(request, data["file_id"])
        result = ThreadService.create(
            record,
            request.user,
            data.get("text") or "",
            zone={k: data.get(k) for k in ("zone_x", "zone_y", "zone_w", "zone_h")},
        )
        return Response(result, status=status.HTTP_201_CREATED)


class ThreadDetailView(ParticipantAPIView):
    def patch(self, request, thread_id: int):
        thread = self.get_accessible_thread(request, thread_id)
        s = ThreadUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        return Response(
            ThreadService.update(
                thread,
                request.user,
                resolved=s.validated_data.get("resolved"),
                current_file_id=s.validated_data.get("current_file_id"),
            )
        )


class ThreadMessagesView(ParticipantAPIView):
    def post(self, request, thread_id: int):
        thread = self.get_accessible_thread(request, thread_id)
        s = ThreadReplySerializer(data=request.data)
        s.is_valid(raise_exception=True)
        result = ThreadService.post_message(
            thread,
            request.user,
            s.validated_data.get("text") or "",
            file_id=s.validated_data.get("file_id"),
        )
        return Response(result, status=status.HTTP_201_CREATED)


class ThreadReadView(ParticipantAPIView):
    def post(self, request, thread_id: int):
        thread = self.get_accessible_thread(request, thread_id)
        return Response(ThreadService.mark_read(thread, request.user))
