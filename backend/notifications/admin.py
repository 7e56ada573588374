from django.contrib import admin

from .models import AdminNotification


@admin.register(AdminNotification)
class AdminNotificationAdmin(admin.ModelAdmin):
    list_display = ("type", "title", "created_at")
    list_filter = ("type",)
    search_fields = ("title", "message")
    readonly_fields = ("id", "type", "title", "message", "data", "read_by", "created_at")
