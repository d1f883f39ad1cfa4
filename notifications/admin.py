from django.contrib import admin
from .models import NotificationLedger


@admin.register(NotificationLedger)
class NotificationLedgerAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'count', 'record_count', 'updated_at')
    search_fields = ('user__username', 'user__email')
    readonly_fields = ('user', 'records', 'updated_at')
    list_per_page = 50
    actions = ['mark_as_seen', 'clear_notifications']

    def record_count(self, obj):
        return len(obj.records or [])
    record_count.short_description = "Records"

    def mark_as_seen(self, request, queryset):
        queryset.update(count=0)
    mark_as_seen.short_description = "Mark selected ledgers as seen"

    def clear_notifications(self, request, queryset):
        queryset.update(count=0, records=[])
    clear_notifications.short_description = "Clear all notifications of selected users"
