"""
Core Admin
"""

from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['changed_at', 'action', 'table_name', 'record_id', 'changed_by', 'ip_address']
    list_filter = ['action', 'table_name']
    search_fields = ['table_name', 'request_id']
    date_hierarchy = 'changed_at'
    readonly_fields = [f.name for f in AuditLog._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
