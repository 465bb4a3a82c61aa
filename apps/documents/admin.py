from django.contrib import admin

from .models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ['employee', 'document_type', 'file_name', 'version', 'is_verified', 'expiration_date', 'uploaded_at']
    list_filter = ['document_type', 'is_verified']
    search_fields = ['file_name', 'document_name', 'employee__first_name', 'employee__last_name']
    raw_id_fields = ['employee', 'verified_by', 'uploaded_by', 'previous_version']
    readonly_fields = ['file', 'file_size', 'mime_type', 'version', 'previous_version', 'uploaded_at']
