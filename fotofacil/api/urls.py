from __future__ import annotations

from django.http import JsonResponse
from django.urls import path

from .views import (
    DayView,
    FileDetailView,
    FileValidateView,
    HistoryView,
    PhotoUploadView,
    StoreMessagesView,
    StoreReminderView,
    ThreadDetailView,
    ThreadListView,
    ThreadMessagesView,
    ThreadReadView,
    UploadRulesView,
    VideoChunkView,
    VideoFinalizeView,
    VideoInitView,
)


def health_check(request):
    """
    Healthcheck endpoint para monitoramento.

    Returns:
        200 OK com {"status": "healthy", "version": "X.X.X"}
    """
    from fotofacil import __version__

    return JsonResponse({
        "status": "healthy",
        "version": __version__,
    })


urlpatterns = [
    path("health", health_check, name="health-check"),
    path("day-view", DayView.as_view(), name="day-view"),
    path("upload/photo", PhotoUploadView.as_view(), name="upload-photo"),
    path("upload/video/init", VideoInitView.as_view(), name="upload-video-init"),
    path("upload/video/chunk", VideoChunkView.as_view(), name="upload-video-chunk"),
    path("upload/video/finalize", VideoFinalizeView.as_view(), name="upload-video-finalize"),
    path("files/<int:file_id>", FileDetailView.as_view(), name="file-detail"),
    path("files/<int:file_id>/validate", FileValidateView.as_view(), name="file-validate"),
    path("upload-rules", UploadRulesView.as_view(), name="upload-rules"),
    path("history", HistoryView.as_view(), name="history"),
    path("stores/<int:store_id>/messages", StoreMessagesView.as_view(), name="store-messages"),
    path("stores/<int:store_id>/remind", StoreReminderView.as_view(), name="store-remind"),
    path("threads", ThreadListView.as_view(), name="threads"),
    path("threads/<int:thread_id>", ThreadDetailView.as_view(), name="thread-detail"),
    path("threads/<int:thread_id>/messages", ThreadMessagesView.as_view(), name="thread-messages"),
    path("threads/<int:thread_id>/read", ThreadReadView.as_view(), name="thread-read"),
]
