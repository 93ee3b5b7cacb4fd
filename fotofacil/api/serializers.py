from __future__ import annotations

from rest_framework import serializers

from fotofacil.models import UploadFile


class UploadFileSerializer(serializers.ModelSerializer):
    preview_url = serializers.CharField(read_only=True)

    class Meta:
        model = UploadFile
        fields = (
            "id",
            "kind",
            "slot_name",
            "sequence",
            "original_filename",
            "final_filename",
            "drive_file_id",
            "drive_web_view_link",
            "preview_url",
            "mime_type",
            "bytes",
            "version_group_id",
            "version_number",
            "is_current_version",
            "validated_at",
            "created_at",
        )


class DayViewQuerySerializer(serializers.Serializer):
    """GET /api/day-view?date=YYYY-MM-DD (sem data = hoje)."""

    date = serializers.CharField(required=False, allow_blank=True)


class PhotoUploadSerializer(serializers.Serializer):
    """
    POST /api/upload/photo (multipart)

    Slot e arquivo são conferidos pelo serviço, que devolve os códigos
    de erro do domínio (slot_required, unknown_slot, file_required...).
    """

    date = serializers.CharField()
    slot_name = serializers.CharField(required=False, allow_blank=True, default="")
    file = serializers.FileField(required=False)
    replace_file_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class VideoInitSerializer(serializers.Serializer):
    """POST /api/upload/video/init"""

    date = serializers.CharField()
    mime_type = serializers.CharField(required=False, allow_blank=True, default="")
    total_bytes = serializers.IntegerField()
    original_filename = serializers.CharField(required=False, allow_blank=True, default="")
    slot_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    replace_file_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class VideoChunkSerializer(serializers.Serializer):
    """
    POST /api/upload/video/chunk (multipart)

    Intervalo semiaberto [start, end_exclusive) do arquivo de total_bytes.
    """

    finalize_token = serializers.CharField()
    start = serializers.IntegerField()
    end_exclusive = serializers.IntegerField()
    total_bytes = serializers.IntegerField()
    chunk = serializers.FileField()


class VideoFinalizeSerializer(serializers.Serializer):
    """POST /api/upload/video/finalize"""

    finalize_token = serializers.CharField()
    drive_file_id = serializers.CharField(required=False, allow_blank=True, default="")


class FileValidateSerializer(serializers.Serializer):
    validated = serializers.BooleanField(default=True)


class RuleScopeSerializer(serializers.Serializer):
    scope = serializers.CharField(required=False, allow_blank=True)
    cluster_id = serializers.IntegerField(required=False, allow_null=True)
    store_id = serializers.IntegerField(required=False, allow_null=True)


class RulesReplaceSerializer(RuleScopeSerializer):
    """
    PUT /api/upload-rules

    `rules` = [{"weekday": 0..6, "requirement": "NONE|PHOTO|VIDEO|BOTH"}, ...]
    Faixa e duplicidade de weekday são validadas pelo RuleService.
    """

    rules = serializers.ListField(child=serializers.DictField(), allow_empty=True)


class HistoryQuerySerializer(serializers.Serializer):
    """GET /api/history?date_from=YYYY-MM-DD&date_to=YYYY-MM-DD (padrão: últimos 30 dias)."""

    date_from = serializers.CharField(required=False, allow_blank=True)
    date_to = serializers.CharField(required=False, allow_blank=True)


class ChatQuerySerializer(serializers.Serializer):
    before = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class ChatMessageSerializer(serializers.Serializer):
    """
    POST /api/stores/{id}/messages (multipart ou JSON)

    Texto e/ou imagem; o serviço exige pelo menos um dos dois.
    """

    text = serializers.CharField(required=False, allow_blank=True, default="", trim_whitespace=False)
    attachment = serializers.FileField(required=False)


class ReminderSerializer(serializers.Serializer):
    text = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ThreadListQuerySerializer(serializers.Serializer):
    file_id = serializers.IntegerField()


class ThreadCreateSerializer(serializers.Serializer):
    """
    POST /api/threads

    Zona opcional em coordenadas relativas (0..1); todas ou nenhuma,
    conferido pelo ThreadService.
    """

    file_id = serializers.IntegerField()
    text = serializers.CharField(required=False, allow_blank=True, default="", trim_whitespace=False)
    zone_x = serializers.FloatField(required=False, allow_null=True)
    zone_y = serializers.FloatField(required=False, allow_null=True)
    zone_w = serializers.FloatField(required=False, allow_null=True)
    zone_h = serializers.FloatField(required=False, allow_null=True)


class ThreadUpdateSerializer(serializers.Serializer):
    resolved = serializers.BooleanField(required=False, allow_null=True, default=None)
    current_file_id = serializers.IntegerField(required=False, allow_null=True)


class ThreadReplySerializer(serializers.Serializer):
    text = serializers.CharField(required=False, allow_blank=True, default="", trim_whitespace=False)
    file_id = serializers.IntegerField(required=False, allow_null=True)
