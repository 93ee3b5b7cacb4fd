from __future__ import annotations

import logging

from django.contrib import admin
from django.http import HttpResponseRedirect
from django.urls import reverse
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _
from unfold.admin import ModelAdmin, TabularInline
from unfold.contrib.filters.admin.choice_filters import ChoicesRadioFilter
from unfold.decorators import action, display

from .models import (
    Alert,
    AuditLog,
    Cluster,
    MediaThread,
    Message,
    SlotTemplate,
    Store,
    ThreadMessage,
    UploadDay,
    UploadFile,
    UploadRule,
    UserProfile,
)
from .services import DayService


logger = logging.getLogger(__name__)


def history_action(modeladmin, request, object_id):
    """Action que redireciona para o histórico do objeto."""
    url = reverse(
        f"admin:{modeladmin.model._meta.app_label}_{modeladmin.model._meta.model_name}_history",
        args=[object_id],
    )
    return HttpResponseRedirect(url)


class ClusterFilter(admin.SimpleListFilter):
    title = _("cluster")
    parameter_name = "store__cluster__id__exact"

    def lookups(self, request, model_admin):
        return [(str(c.pk), c.name) for c in Cluster.objects.filter(is_active=True).order_by("name")]

    def queryset(self, request, queryset):
        value = self.value()
        if not value:
            return queryset
        return queryset.filter(store__cluster_id=value)


@admin.register(Cluster)
class ClusterAdmin(ModelAdmin):
    list_display = ("name", "code", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("code", "name")
    ordering = ("name", "id")
    list_fullwidth = True
    compressed_fields = True
    warn_unsaved_form = True


@admin.register(Store)
class StoreAdmin(ModelAdmin):
    list_display = ("store_code", "name", "cluster", "deadline_time", "is_active")
    list_filter = ("is_active", "cluster")
    search_fields = ("store_code", "name", "cluster__name")
    ordering = ("store_code", "id")
    list_filter_submit = True
    list_fullwidth = True
    compressed_fields = True
    warn_unsaved_form = True

    actions_detail = ["history_detail_action"]

    fieldsets = (
        (_("Identidade"), {"fields": ("store_code", "name", "cluster", "is_active"), "classes": ("tab",)}),
        (_("Envio"), {"fields": ("deadline_time", "drive_folder_id"), "classes": ("tab",)}),
        (_("Auditoria"), {"fields": ("created_at", "updated_at"), "classes": ("tab",)}),
    )
    readonly_fields = ("created_at", "updated_at")

    @action(description=_("Histórico"), url_path="history-action", icon="history")
    def history_detail_action(self, request, object_id):
        return history_action(self, request, object_id)


@admin.register(UserProfile)
class UserProfileAdmin(ModelAdmin):
    list_display = ("user", "role", "store", "cluster")
    list_filter = (("role", ChoicesRadioFilter),)
    search_fields = ("user__username", "user__email", "store__store_code", "cluster__name")
    autocomplete_fields = ("store", "cluster")
    list_fullwidth = True


@admin.register(SlotTemplate)
class SlotTemplateAdmin(ModelAdmin):
    list_display = ("name", "store", "required", "allow_multiple", "order")
    list_filter = ("required", "allow_multiple")
    search_fields = ("name", "store__store_code")
    ordering = ("store", "order", "name")
    list_fullwidth = True
    compressed_fields = True


@admin.register(UploadRule)
class UploadRuleAdmin(ModelAdmin):
    list_display = ("weekday", "requirement_badge", "scope_display", "store", "cluster", "updated_at")
    list_filter = (("requirement", ChoicesRadioFilter), "weekday")
    search_fields = ("store__store_code", "cluster__name")
    ordering = ("store", "cluster", "weekday")
    list_fullwidth = True
    compressed_fields = True

    @display(description=_("alcance"))
    def scope_display(self, obj: UploadRule) -> str:
        return obj.scope.label

    @display(
        description=_("requisito"),
        label={"NONE": "secondary", "PHOTO": "info", "VIDEO": "info", "BOTH": "warning"},
    )
    def requirement_badge(self, obj: UploadRule) -> str:
        return obj.requirement


class UploadFileInline(TabularInline):
    model = UploadFile
    fk_name = "upload_day"
    extra = 0
    fields = (
        "kind",
        "slot_name",
        "sequence",
        "final_filename",
        "version_number",
        "is_current_version",
        "drive_link",
        "validated_at",
        "created_at",
    )
    readonly_fields = fields
    can_delete = False
    ordering = ("kind", "slot_name", "sequence", "-version_number")

    def has_add_permission(self, request, obj=None):
        return False

    @display(description=_("Drive"))
    def drive_link(self, obj: UploadFile) -> str:
        if not obj.drive_web_view_link:
            return "-"
        return format_html('<a href="{}" target="_blank" rel="noopener">{}</a>', obj.drive_web_view_link, _("abrir"))


@admin.register(UploadDay)
class UploadDayAdmin(ModelAdmin):
    list_display = ("date", "store", "requirement_kind", "status_badge", "is_sent", "completed_at")
    list_filter = (ClusterFilter, ("status", ChoicesRadioFilter), "is_sent", "requirement_kind")
    search_fields = ("store__store_code", "store__name")
    ordering = ("-date", "store__store_code")
    date_hierarchy = "date"
    list_filter_submit = True
    list_fullwidth = True
    compressed_fields = True

    inlines = [UploadFileInline]
    actions = ["recompute_status_action"]
    actions_detail = ["history_detail_action"]

    # O status é derivado dos arquivos; só o requisito congelado é editável aqui
    readonly_fields = ("store", "date", "status", "is_sent", "completed_at", "drive_folder_id", "created_at", "updated_at")

    @action(description=_("Histórico"), url_path="history-action", icon="history")
    def history_detail_action(self, request, object_id):
        return history_action(self, request, object_id)

    @admin.action(description=_("Recalcular status"))
    def recompute_status_action(self, request, queryset):
        changed = 0
        for upload_day in queryset:
            before = (upload_day.status, upload_day.is_sent)
            refreshed, _evaluation = DayService.refresh_day(upload_day)
            if (refreshed.status, refreshed.is_sent) != before:
                changed += 1
        logger.info("admin.days_recomputed", extra={"count": queryset.count(), "changed": changed})
        self.message_user(request, _("Dias recalculados: %(n)s (alterados: %(c)s)") % {"n": queryset.count(), "c": changed})

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        if change and "requirement_kind" in form.changed_data:
            DayService.refresh_day(obj)

    @display(
        description=_("status"),
        label={"PENDING": "danger", "PARTIAL": "warning", "COMPLETE": "success"},
    )
    def status_badge(self, obj: UploadDay) -> str:
        return obj.status


@admin.register(Alert)
class AlertAdmin(ModelAdmin):
    list_display = ("date", "store", "type", "open_badge", "created_at", "resolved_at")
    list_filter = (ClusterFilter, "type")
    search_fields = ("store__store_code", "store__name")
    ordering = ("-date", "-id")
    date_hierarchy = "date"
    list_fullwidth = True
    readonly_fields = ("store", "date", "type", "created_at", "resolved_at")

    def has_add_permission(self, request):
        return False

    @display(description=_("situação"), label={"aberto": "danger", "resolvido": "success"})
    def open_badge(self, obj: Alert) -> str:
        return "aberto" if obj.is_open else "resolvido"


@admin.register(Message)
class MessageAdmin(ModelAdmin):
    list_display = ("created_at", "store", "from_role", "is_automatic", "has_attachment", "read_at")
    list_filter = ("is_automatic", ("from_role", ChoicesRadioFilter))
    search_fields = ("store__store_code", "text")
    ordering = ("-created_at", "-id")
    list_fullwidth = True

    @display(description=_("anexo"), boolean=True)
    def has_attachment(self, obj: Message) -> bool:
        return bool(obj.attachment_drive_file_id)


class ThreadMessageInline(TabularInline):
    model = ThreadMessage
    extra = 0
    fields = ("created_at", "author", "author_role", "file", "text")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(MediaThread)
class MediaThreadAdmin(ModelAdmin):
    list_display = ("id", "store", "upload_day", "current_file", "zone_badge", "resolved_badge", "updated_at")
    list_filter = (ClusterFilter, ("resolved_at", admin.EmptyFieldListFilter))
    search_fields = ("store__store_code", "version_group_id", "messages__text")
    ordering = ("-updated_at", "-id")
    list_fullwidth = True
    inlines = [ThreadMessageInline]
    readonly_fields = (
        "store",
        "upload_day",
        "root_file",
        "current_file",
        "version_group_id",
        "zone_x",
        "zone_y",
        "zone_w",
        "zone_h",
        "created_by",
        "created_by_role",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        return False

    @display(description=_("zona"), boolean=True)
    def zone_badge(self, obj: MediaThread) -> bool:
        return obj.has_zone

    @display(description=_("situação"), label={"aberta": "warning", "resolvida": "success"})
    def resolved_badge(self, obj: MediaThread) -> str:
        return "resolvida" if obj.is_resolved else "aberta"


@admin.register(AuditLog)
class AuditLogAdmin(ModelAdmin):
    list_display = ("created_at", "action", "store", "user")
    list_filter = ("action",)
    search_fields = ("action", "store__store_code", "user__username")
    ordering = ("-created_at", "-id")
    date_hierarchy = "created_at"
    list_fullwidth = True
    readonly_fields = ("action", "store", "user", "payload", "created_at")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
